"""Holder-side selective re-disclosure of SD-JWT credentials.

A presentation keeps the issuer-signed JWT byte for byte and attaches only a
subset of the original disclosures, so it needs no re-signing. Disclosures
are passed through in their original wire form; re-serializing them could
change their digests.
"""

import logging
from typing import Iterable

from .decoder import DISCLOSURE_SEPARATOR, decode_credential
from .disclosure import decode_disclosure

logger = logging.getLogger(__name__)


def select_disclosures_by_claim_names(disclosures: list[str], claim_names: Iterable[str]) -> list[str]:
    """Select disclosure wire forms whose claim name is in ``claim_names``.

    Args:
        disclosures: Disclosure wire forms
        claim_names: Claim names to keep

    Returns:
        Matching wire forms, in their original order. Undecodable
        disclosures are never selected.
    """
    wanted = set(claim_names)
    selected = []
    for wire in disclosures:
        decoded = decode_disclosure(wire)
        if decoded.claim_name is not None and decoded.claim_name in wanted:
            selected.append(wire)
    return selected


def build_sd_jwt(jwt: str, disclosures: list[str]) -> str:
    """Join a JWT and disclosure wire forms into an SD-JWT string."""
    return jwt + DISCLOSURE_SEPARATOR + DISCLOSURE_SEPARATOR.join(disclosures)


def redisclose_credential(sd_jwt: str, claim_names: Iterable[str]) -> str:
    """Create a presentation disclosing only the named claims.

    Args:
        sd_jwt: Issued SD-JWT
        claim_names: Names of the selectively disclosable claims to reveal

    Returns:
        SD-JWT with the same JWT part and the filtered disclosures

    Raises:
        MalformedSdJwt: If the string has no ``~``
        MalformedJwt: If the JWT part does not have three segments
        InvalidEncoding: If the header or payload is not base64url JSON

    Example:
        presentation = redisclose_credential(credential, {"studentId"})
    """
    decoded = decode_credential(sd_jwt)
    selected = select_disclosures_by_claim_names([item.wire for item in decoded.disclosures], claim_names)
    logger.debug("Presenting %d of %d disclosures", len(selected), len(decoded.disclosures))
    return build_sd_jwt(decoded.jwt, selected)
