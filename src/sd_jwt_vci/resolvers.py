"""Resolvers for issuer public keys by ``kid`` or JWK thumbprint.

A resolver maps the ``kid`` from an SD-JWT header to the issuer's public JWK
so ``CredentialVerifier`` can check the signature.
"""

from typing import Any, Callable, Iterable

from .keys import jwk_thumbprint, public_jwk


def jwk_kid_resolver(
    kid_key_pairs: Iterable[tuple[str, dict[str, Any]]],
) -> Callable[[str], dict[str, Any]]:
    """Create a resolver function for JWKs based on key identifiers (kid).

    Args:
        kid_key_pairs: Pairs of (kid, JWK); private members are stripped

    Returns:
        Resolver function that takes a kid and returns the public JWK

    Raises:
        ValueError: If resolver is called with a kid that doesn't match any key
    """
    kid_to_key = {kid: public_jwk(jwk) for kid, jwk in kid_key_pairs}

    def resolve_public_key(requested_kid: str) -> dict[str, Any]:
        if requested_kid not in kid_to_key:
            raise ValueError(
                f"Kid not found: {requested_kid}. Available kids: {', '.join(kid_to_key)}"
            )
        return kid_to_key[requested_kid]

    return resolve_public_key


def jwk_thumbprint_resolver(jwks: Iterable[dict[str, Any]]) -> Callable[[str], dict[str, Any]]:
    """Create a resolver that looks keys up by their RFC 7638 thumbprint.

    Note:
        Uses jwk_kid_resolver internally with thumbprints as kids.
    """
    return jwk_kid_resolver((jwk_thumbprint(jwk), jwk) for jwk in jwks)


def jwks_resolver(jwk_set: dict[str, Any]) -> Callable[[str], dict[str, Any]]:
    """Create a resolver from a JWK Set document (``{"keys": [...]}``).

    Keys without a ``kid`` are indexed by thumbprint.
    """
    return jwk_kid_resolver((jwk.get("kid") or jwk_thumbprint(jwk), jwk) for jwk in jwk_set.get("keys", []))
