"""JWK generation and management for ES256 (ECDSA P-256)."""

import hashlib
from typing import Any, Optional

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric import ec

from . import b64url, json_utils

# Constants for ES256/P-256 only
JWK_KTY_EC = "EC"
JWK_CRV_P256 = "P-256"
JWS_ALG_ES256 = "ES256"

# Required members for thumbprints per RFC 7638, by key type
THUMBPRINT_MEMBERS = {
    "EC": ("crv", "kty", "x", "y"),
    "OKP": ("crv", "kty", "x"),
    "RSA": ("e", "kty", "n"),
    "oct": ("k", "kty"),
}


def _int_to_b64(value: int) -> str:
    return b64url.encode(value.to_bytes(32, byteorder="big"))


def _b64_to_int(value: str) -> int:
    return int.from_bytes(b64url.decode(value), byteorder="big")


def jwk_from_private_key(private_key: ec.EllipticCurvePrivateKey, kid: Optional[str] = None) -> dict[str, Any]:
    """Export a P-256 private key as a JWK dictionary.

    Args:
        private_key: cryptography EC private key on SECP256R1
        kid: Optional key identifier; defaults to the RFC 7638 thumbprint

    Returns:
        JWK containing both private and public key material
    """
    if not isinstance(private_key.curve, ec.SECP256R1):
        raise ValueError(f"Only P-256 keys are supported, got {private_key.curve.name}")

    private_numbers = private_key.private_numbers()
    public_numbers = private_numbers.public_numbers

    jwk = {
        "kty": JWK_KTY_EC,
        "crv": JWK_CRV_P256,
        "x": _int_to_b64(public_numbers.x),
        "y": _int_to_b64(public_numbers.y),
        "d": _int_to_b64(private_numbers.private_value),
    }
    jwk["kid"] = kid if kid is not None else jwk_thumbprint(jwk)
    jwk["alg"] = JWS_ALG_ES256
    return jwk


def generate_es256_jwk(kid: Optional[str] = None) -> dict[str, Any]:
    """Generate an ES256/P-256 key pair as a JWK.

    Args:
        kid: Optional key identifier; defaults to the RFC 7638 thumbprint

    Returns:
        JWK containing both private and public key material
    """
    private_key = ec.generate_private_key(ec.SECP256R1(), default_backend())
    return jwk_from_private_key(private_key, kid)


def public_jwk(jwk: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a JWK with private material removed."""
    return {name: value for name, value in jwk.items() if name != "d"}


def private_key_from_jwk(jwk: dict[str, Any]) -> ec.EllipticCurvePrivateKey:
    """Load a cryptography private key from an EC P-256 JWK.

    Raises:
        KeyError: If the private component ``d`` is missing
        ValueError: If the key is not an EC P-256 key
    """
    _check_p256(jwk)
    if "d" not in jwk:
        raise KeyError("Private key component 'd' missing from JWK")
    return ec.derive_private_key(_b64_to_int(jwk["d"]), ec.SECP256R1(), default_backend())


def public_key_from_jwk(jwk: dict[str, Any]) -> ec.EllipticCurvePublicKey:
    """Load a cryptography public key from an EC P-256 JWK.

    Raises:
        ValueError: If the key is not an EC P-256 key or the point is invalid
    """
    _check_p256(jwk)
    numbers = ec.EllipticCurvePublicNumbers(_b64_to_int(jwk["x"]), _b64_to_int(jwk["y"]), ec.SECP256R1())
    return numbers.public_key(default_backend())


def _check_p256(jwk: dict[str, Any]) -> None:
    if jwk.get("kty") != JWK_KTY_EC:
        raise ValueError(f"Only EC keys are supported, got kty: {jwk.get('kty')}")
    if jwk.get("crv") != JWK_CRV_P256:
        raise ValueError(f"Only P-256 curve is supported, got crv: {jwk.get('crv')}")


def jwk_thumbprint(jwk: dict[str, Any], hash_alg: str = "sha256") -> str:
    """Compute the RFC 7638 JWK thumbprint.

    Args:
        jwk: JWK dictionary
        hash_alg: Hash algorithm to use (sha256, sha384, sha512)

    Returns:
        Base64url-encoded thumbprint

    Raises:
        ValueError: If the key type or hash algorithm is unsupported, or a
            required member is missing
    """
    kty = jwk.get("kty")
    if kty not in THUMBPRINT_MEMBERS:
        raise ValueError(f"Unsupported key type: {kty}")

    required = {}
    for member in THUMBPRINT_MEMBERS[kty]:
        if member not in jwk:
            raise ValueError(f"Required member {member} missing from JWK")
        required[member] = jwk[member]

    canonical = json_utils.dumps_bytes(required, sort_keys=True)

    if hash_alg == "sha256":
        digest = hashlib.sha256(canonical).digest()
    elif hash_alg == "sha384":
        digest = hashlib.sha384(canonical).digest()
    elif hash_alg == "sha512":
        digest = hashlib.sha512(canonical).digest()
    else:
        raise ValueError(f"Unsupported hash algorithm: {hash_alg}")
    return b64url.encode(digest)
