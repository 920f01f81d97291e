"""SD-JWT parsing and claim reconstruction.

Decoding never verifies the signature; see ``verifiers.CredentialVerifier``.
The decoded view is meant for display and is usable whatever the
verification outcome.
"""

import logging
from typing import Any, NamedTuple

from . import b64url
from .disclosure import SUPPORTED_HASH_ALGORITHMS, DecodedDisclosure, decode_disclosure
from .exceptions import DecodeError, InvalidEncoding, MalformedJwt, MalformedSdJwt

logger = logging.getLogger(__name__)

DISCLOSURE_SEPARATOR = "~"


class DecodedCredential(NamedTuple):
    """Structured view of an SD-JWT."""

    header: dict[str, Any]
    payload: dict[str, Any]
    disclosures: list[DecodedDisclosure]
    reconstructed_claims: dict[str, Any]
    signature: str
    jwt: str

    @property
    def signing_input(self) -> str:
        """The ``header.payload`` part the signature covers."""
        return self.jwt.rsplit(".", 1)[0]

    @property
    def credential_subject(self) -> dict[str, Any]:
        return _credential_subject(self.payload)

    @property
    def sd_digests(self) -> list[str]:
        digests = self.payload.get("_sd", [])
        return list(digests) if isinstance(digests, list) else []

    @property
    def valid_disclosures(self) -> list[DecodedDisclosure]:
        return [item for item in self.disclosures if item.is_valid]


def split_sd_jwt(sd_jwt: str) -> tuple[str, list[str]]:
    """Split an SD-JWT into its JWT part and disclosure wire forms.

    Empty segments, such as the one after a trailing ``~``, are dropped.

    Raises:
        MalformedSdJwt: If the string contains no ``~``
    """
    sd_jwt = sd_jwt.strip()
    if DISCLOSURE_SEPARATOR not in sd_jwt:
        raise MalformedSdJwt("SD-JWT must contain at least one '~' separator")

    jwt, *rest = sd_jwt.split(DISCLOSURE_SEPARATOR)
    return jwt, [segment for segment in rest if segment]


def split_jwt(jwt: str) -> tuple[str, str, str]:
    """Split a compact JWT into header, payload and signature segments.

    Raises:
        MalformedJwt: If there are not exactly three segments
    """
    segments = jwt.split(".")
    if len(segments) != 3:
        raise MalformedJwt(f"JWT must have 3 segments, got {len(segments)}")
    header_b64, payload_b64, signature = segments
    return header_b64, payload_b64, signature


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        value = b64url.decode_json(segment)
    except DecodeError as e:
        raise InvalidEncoding(name, str(e)) from e
    if not isinstance(value, dict):
        raise InvalidEncoding(name, f"expected a JSON object, got {type(value).__name__}")
    return value


def _credential_subject(payload: dict[str, Any]) -> dict[str, Any]:
    vc = payload.get("vc")
    if not isinstance(vc, dict):
        return {}
    subject = vc.get("credentialSubject")
    return subject if isinstance(subject, dict) else {}


def reconstruct_claims(payload: dict[str, Any], disclosures: list[DecodedDisclosure]) -> dict[str, Any]:
    """Merge embedded claims with decoded disclosures.

    Embedded claims win over a disclosure with the same name, and the first
    disclosure for a name wins over later ones. Either collision means the
    credential is malformed and is logged. The subject ``id`` is not a claim
    and is left out.
    """
    claims = {key: value for key, value in _credential_subject(payload).items() if key != "id"}
    disclosed_names: set[str] = set()

    for item in disclosures:
        if item.disclosure is None:
            continue
        name = item.disclosure.claim_name
        if name in claims:
            if name in disclosed_names:
                logger.warning("Duplicate disclosure for claim %s ignored", name)
            else:
                logger.warning("Disclosure for embedded claim %s ignored", name)
            continue
        claims[name] = item.disclosure.claim_value
        disclosed_names.add(name)

    return claims


def decode_credential(sd_jwt: str) -> DecodedCredential:
    """Decode an SD-JWT into header, payload, disclosures and claims.

    Args:
        sd_jwt: Compact SD-JWT string

    Returns:
        DecodedCredential; undecodable disclosures are kept as error entries

    Raises:
        MalformedSdJwt: If the string has no ``~``
        MalformedJwt: If the JWT part does not have three segments
        InvalidEncoding: If the header or payload is not base64url JSON
    """
    jwt, wires = split_sd_jwt(sd_jwt)
    header_b64, payload_b64, signature = split_jwt(jwt)

    header = _decode_segment(header_b64, "header")
    payload = _decode_segment(payload_b64, "payload")

    hash_alg = payload.get("_sd_alg", "sha-256")
    if hash_alg not in SUPPORTED_HASH_ALGORITHMS:
        logger.warning("Unsupported _sd_alg %r, digests not computed", hash_alg)

    disclosures = [decode_disclosure(wire, hash_alg) for wire in wires]
    claims = reconstruct_claims(payload, disclosures)

    return DecodedCredential(
        header=header,
        payload=payload,
        disclosures=disclosures,
        reconstructed_claims=claims,
        signature=signature,
        jwt=jwt,
    )
