"""Verifiers for SD-JWT credentials and presentations.

Verification is separate from decoding: ``decode_credential`` succeeds on
any well-formed SD-JWT, while ``CredentialVerifier`` reports whether the
issuer signature holds and whether every presented disclosure is referenced
by the signed ``_sd`` digests.
"""

import logging
import time
from typing import Any, Callable, NamedTuple, Optional, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils

from . import b64url
from .decoder import DecodedCredential, decode_credential
from .exceptions import DecodeError, SDJWTError
from .keys import JWS_ALG_ES256, public_key_from_jwk

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    """Protocol for JWS signature verifiers."""

    def verify(self, signing_input: str, signature: str) -> bool:
        """Verify a base64url signature over a JWS signing input.

        Args:
            signing_input: ``base64url(header) "." base64url(payload)``
            signature: Base64url-encoded signature

        Returns:
            True if signature is valid, False otherwise
        """


class ES256Verifier:
    """ECDSA P-256 SHA-256 verifier implementation."""

    def __init__(self, public_jwk: dict[str, Any]):
        """Initialize ES256 verifier with a public JWK.

        Args:
            public_jwk: EC P-256 JWK with ``x`` and ``y`` coordinates
        """
        self.public_key = public_key_from_jwk(public_jwk)

    def verify(self, signing_input: str, signature: str) -> bool:
        """Verify a raw r||s ES256 signature."""
        try:
            raw = b64url.decode(signature)
            if len(raw) != 64:
                return False

            # Convert raw (r||s) signature to DER format
            r = int.from_bytes(raw[:32], byteorder="big")
            s = int.from_bytes(raw[32:], byteorder="big")
            signature_der = utils.encode_dss_signature(r, s)

            self.public_key.verify(signature_der, signing_input.encode("ascii"), ec.ECDSA(hashes.SHA256()))
            return True

        except InvalidSignature:
            return False
        except (DecodeError, ValueError, TypeError):
            return False


class VerificationResult(NamedTuple):
    """Outcome of verifying an SD-JWT.

    ``credential`` is the decoded view, available whenever decoding
    succeeded, even if verification failed.
    """

    signature_valid: bool
    digests_valid: bool
    expired: bool
    unreferenced_disclosures: list[str]
    credential: Optional[DecodedCredential]
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.signature_valid and self.digests_valid and not self.expired

    @property
    def verified_claims(self) -> Optional[dict[str, Any]]:
        """Reconstructed claims, only when verification succeeded."""
        if not self.valid or self.credential is None:
            return None
        return self.credential.reconstructed_claims


def check_disclosure_digests(credential: DecodedCredential) -> list[str]:
    """Return wire forms of disclosures that ``_sd`` does not reference.

    Undecodable disclosures are always reported.
    """
    digests = set(credential.sd_digests)
    return [
        item.wire
        for item in credential.disclosures
        if not item.is_valid or not item.digest or item.digest not in digests
    ]


class CredentialVerifier:
    """Verifies SD-JWT credentials using a public key resolver."""

    def __init__(
        self,
        public_key_resolver: Callable[[str], dict[str, Any]],
        clock: Callable[[], float] = time.time,
        leeway: int = 0,
    ):
        """Initialize credential verifier with a public key resolver.

        Args:
            public_key_resolver: Function that takes a ``kid`` and returns the
                corresponding public JWK, raising ValueError if unknown
            clock: Returns the current time in seconds
            leeway: Seconds of clock skew tolerated when checking ``exp``
        """
        self.public_key_resolver = public_key_resolver
        self.clock = clock
        self.leeway = leeway

    def verify(self, sd_jwt: str) -> VerificationResult:
        """Verify SD-JWT signature, disclosure digests and expiry.

        Args:
            sd_jwt: Compact SD-JWT string

        Returns:
            VerificationResult; malformed input yields a failed result
            with ``error`` set rather than raising
        """
        try:
            credential = decode_credential(sd_jwt)
        except SDJWTError as e:
            logger.debug("SD-JWT could not be decoded: %s", e)
            return VerificationResult(False, False, False, [], None, str(e))

        signature_valid, error = self._verify_signature(credential)
        unreferenced = check_disclosure_digests(credential)

        exp = credential.payload.get("exp")
        expired = isinstance(exp, (int, float)) and exp + self.leeway < self.clock()

        if unreferenced:
            logger.debug("%d disclosures not referenced by _sd", len(unreferenced))
        return VerificationResult(signature_valid, not unreferenced, expired, unreferenced, credential, error)

    def _verify_signature(self, credential: DecodedCredential) -> tuple[bool, Optional[str]]:
        alg = credential.header.get("alg")
        if alg != JWS_ALG_ES256:
            return False, f"Unsupported algorithm: {alg}"

        kid = credential.header.get("kid")
        if not kid:
            return False, "Missing kid in JWT header"

        # Resolve the public key using the key identifier
        try:
            issuer_jwk = self.public_key_resolver(kid)
            verifier = ES256Verifier(issuer_jwk)
        except (ValueError, KeyError) as e:
            logger.debug("Cannot resolve key %s: %s", kid, e)
            return False, f"Unknown key: {kid}"

        if verifier.verify(credential.signing_input, credential.signature):
            return True, None
        return False, "Signature verification failed"
