"""Disclosure creation, serialization and digest handling for SD-JWT."""

import hashlib
import logging
import random
import secrets
from typing import Any, NamedTuple, Optional, Protocol

from . import b64url, json_utils
from .exceptions import DecodeError, InvalidDisclosure

logger = logging.getLogger(__name__)

# Placeholder array shown in place of a disclosure that failed to decode
DISCLOSURE_ERROR_MARKER = ("<decode-error>", "<invalid>")

SUPPORTED_HASH_ALGORITHMS = ("sha-256", "sha-384", "sha-512")


class SaltGenerator(Protocol):
    """Protocol for generating salts for disclosures."""

    def generate_salt(self, length: int = 16) -> bytes:
        """Generate a salt.

        Args:
            length: Salt length in bytes (default 16 for 128 bits)

        Returns:
            Random salt bytes
        """


class SecureSaltGenerator:
    """Cryptographically secure salt generator using secrets module."""

    def generate_salt(self, length: int = 16) -> bytes:
        """Generate a cryptographically secure salt.

        Args:
            length: Salt length in bytes (default 16 for 128 bits)

        Returns:
            Cryptographically secure random salt bytes
        """
        return secrets.token_bytes(length)


class SeededSaltGenerator:
    """Deterministic salt generator for testing purposes.

    WARNING: This generator is NOT cryptographically secure and should
    only be used for testing and reproducible examples.
    """

    def __init__(self, seed: int = 42):
        """Initialize with a seed value.

        Args:
            seed: Integer seed for deterministic salt generation
        """
        self._random = random.Random(seed)

    def generate_salt(self, length: int = 16) -> bytes:
        """Generate a deterministic salt based on the seed.

        Args:
            length: Salt length in bytes (default 16 for 128 bits)

        Returns:
            Deterministic salt bytes (NOT cryptographically secure)
        """
        return bytes(self._random.getrandbits(8) for _ in range(length))


_default_salt_generator = SecureSaltGenerator()


class Disclosure(NamedTuple):
    """A selectively disclosable claim: ``[salt, claim_name, claim_value]``."""

    salt: Any
    claim_name: str
    claim_value: Any

    def to_array(self) -> list[Any]:
        return [self.salt, self.claim_name, self.claim_value]

    def serialize(self) -> str:
        return serialize_disclosure(self)


class DecodedDisclosure(NamedTuple):
    """Result of leniently decoding one disclosure from an SD-JWT.

    ``disclosure`` is None when the wire form could not be decoded; in that
    case ``error`` holds the reason and ``as_array`` yields the error marker.
    """

    wire: str
    digest: str
    disclosure: Optional[Disclosure]
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.disclosure is not None

    @property
    def claim_name(self) -> Optional[str]:
        return self.disclosure.claim_name if self.disclosure is not None else None

    def as_array(self) -> list[Any]:
        if self.disclosure is None:
            return list(DISCLOSURE_ERROR_MARKER)
        return self.disclosure.to_array()


def generate_salt(length: int = 16, salt_generator: Optional[SaltGenerator] = None) -> str:
    """Generate a random salt as a base64url string.

    Args:
        length: Salt length in bytes (default 16 for 128 bits)
        salt_generator: Optional custom salt generator (uses secure default if None)

    Returns:
        Base64url-encoded salt
    """
    if salt_generator is None:
        salt_generator = _default_salt_generator
    return b64url.encode(salt_generator.generate_salt(length))


def create_disclosure(
    claim_name: str,
    claim_value: Any,
    salt_generator: Optional[SaltGenerator] = None,
    salt: Optional[str] = None,
) -> Disclosure:
    """Create a disclosure for a claim with a fresh salt.

    Args:
        claim_name: Name of the claim
        claim_value: JSON-compatible claim value
        salt_generator: Optional custom salt generator
        salt: Explicit salt, bypassing the generator

    Returns:
        New Disclosure
    """
    if salt is None:
        salt = generate_salt(salt_generator=salt_generator)
    return Disclosure(salt, claim_name, claim_value)


def serialize_disclosure(disclosure: Disclosure) -> str:
    """Serialize a disclosure to its wire form.

    SD-JWT format: base64url(UTF-8(JSON [salt, name, value]))
    """
    return b64url.encode(json_utils.dumps_bytes(disclosure.to_array()))


def deserialize_disclosure(wire: str) -> Disclosure:
    """Decode a disclosure wire form.

    Args:
        wire: Base64url-encoded disclosure

    Returns:
        The decoded Disclosure

    Raises:
        InvalidDisclosure: If the wire form is not base64url JSON, is not an
            array of at least 3 elements, or has a non-string claim name
    """
    try:
        decoded = b64url.decode_json(wire)
    except DecodeError as e:
        raise InvalidDisclosure(str(e)) from e

    if not isinstance(decoded, list):
        raise InvalidDisclosure(f"Disclosure must be a JSON array, got {type(decoded).__name__}")
    if len(decoded) < 3:
        raise InvalidDisclosure(f"Disclosure must have at least 3 elements, got {len(decoded)}")

    salt, claim_name, claim_value = decoded[0], decoded[1], decoded[2]
    if not isinstance(claim_name, str):
        raise InvalidDisclosure("Disclosure claim name must be a string")

    return Disclosure(salt, claim_name, claim_value)


def hash_disclosure(wire: str, hash_alg: str = "sha-256") -> str:
    """Compute the ``_sd`` digest of a disclosure wire form.

    Args:
        wire: Base64url-encoded disclosure
        hash_alg: Hash algorithm name

    Returns:
        Base64url-encoded digest of the ASCII wire form
    """
    data = wire.encode("ascii")
    if hash_alg == "sha-256":
        digest = hashlib.sha256(data).digest()
    elif hash_alg == "sha-384":
        digest = hashlib.sha384(data).digest()
    elif hash_alg == "sha-512":
        digest = hashlib.sha512(data).digest()
    else:
        raise ValueError(f"Unsupported hash algorithm: {hash_alg}")
    return b64url.encode(digest)


def decode_disclosure(wire: str, hash_alg: str = "sha-256") -> DecodedDisclosure:
    """Decode a disclosure without raising on malformed input.

    One bad disclosure must not abort decoding of a whole credential, so
    failures are reported through ``DecodedDisclosure.error``.
    """
    try:
        digest = hash_disclosure(wire, hash_alg)
    except ValueError:
        # non-ASCII wire form or unknown algorithm
        digest = ""

    try:
        disclosure = deserialize_disclosure(wire)
    except InvalidDisclosure as e:
        logger.warning("Skipping undecodable disclosure: %s", e)
        return DecodedDisclosure(wire, digest, None, str(e))
    return DecodedDisclosure(wire, digest, disclosure)
