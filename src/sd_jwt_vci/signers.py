"""Signers for SD-JWT credentials.

The issuer never signs by itself; it hands the JWS signing input to a
``Signer`` together with the ``kid`` from the JWT header:
- ES256Signer: Signs with a single EC P-256 private JWK
- KeyRingSigner: Dispatches to one of several ES256 keys by ``kid``
- PlaceholderSigner: Emits a fixed marker for demos without key material
"""

from typing import Any, Iterable, Protocol

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, utils

from . import b64url
from .exceptions import SigningError
from .keys import JWS_ALG_ES256, private_key_from_jwk, public_jwk


class Signer(Protocol):
    """Protocol for JWS signers."""

    def sign(self, signing_input: str, key_id: str) -> str:
        """Sign a JWS signing input.

        Args:
            signing_input: ``base64url(header) "." base64url(payload)``
            key_id: The ``kid`` from the JWT header

        Returns:
            Base64url-encoded signature

        Raises:
            SigningError: If the signature cannot be produced
        """

    @property
    def algorithm(self) -> str:
        """Get the JWS algorithm identifier (e.g., "ES256")."""


class ES256Signer:
    """ECDSA P-256 SHA-256 signer for a single private JWK."""

    def __init__(self, private_jwk: dict[str, Any]):
        """Initialize ES256 signer with a private JWK.

        Args:
            private_jwk: EC P-256 JWK including the private component ``d``

        Raises:
            KeyError: If the private component or ``kid`` is missing
            ValueError: If the key is not an EC P-256 key
        """
        if "kid" not in private_jwk:
            raise KeyError("Key identifier 'kid' missing from JWK")
        self.private_key = private_key_from_jwk(private_jwk)
        self.key_id = private_jwk["kid"]
        self.public_jwk = public_jwk(private_jwk)

    def sign(self, signing_input: str, key_id: str) -> str:
        """Sign with ES256, returning the raw r||s signature base64url-encoded."""
        if key_id != self.key_id:
            raise SigningError(f"Signer holds key '{self.key_id}', not '{key_id}'")

        signature_der = self.private_key.sign(signing_input.encode("ascii"), ec.ECDSA(hashes.SHA256()))

        # Convert DER to raw (r||s) format for JWS
        r, s = utils.decode_dss_signature(signature_der)
        signature = r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")

        return b64url.encode(signature)

    @property
    def algorithm(self) -> str:
        return JWS_ALG_ES256


class KeyRingSigner:
    """Signs with whichever of several ES256 keys matches the requested ``kid``."""

    def __init__(self, private_jwks: Iterable[dict[str, Any]]):
        self._signers = {}
        for jwk in private_jwks:
            signer = ES256Signer(jwk)
            self._signers[signer.key_id] = signer

    def sign(self, signing_input: str, key_id: str) -> str:
        signer = self._signers.get(key_id)
        if signer is None:
            raise SigningError(f"No signing key for kid '{key_id}'")
        return signer.sign(signing_input, key_id)

    @property
    def algorithm(self) -> str:
        return JWS_ALG_ES256

    @property
    def key_ids(self) -> list[str]:
        return list(self._signers)

    def jwks(self) -> dict[str, Any]:
        """Public JWK Set for all keys in the ring."""
        return {"keys": [signer.public_jwk for signer in self._signers.values()]}


class PlaceholderSigner:
    """Returns a fixed, unverifiable signature.

    WARNING: Credentials signed this way cannot be verified. Use only for
    demos and display tests.
    """

    SIGNATURE = "SIMULATED_SIGNATURE_FOR_DEMO_PURPOSES_ONLY"

    def sign(self, signing_input: str, key_id: str) -> str:
        return self.SIGNATURE

    @property
    def algorithm(self) -> str:
        return JWS_ALG_ES256


def create_credential_signer(issuer_jwk: dict[str, Any]) -> ES256Signer:
    """Create a credential signer from an issuer's private JWK.

    Args:
        issuer_jwk: Issuer's JWK with private component

    Returns:
        ES256Signer instance
    """
    return ES256Signer(issuer_jwk)
