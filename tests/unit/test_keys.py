"""Unit tests for ES256 JWK handling, signers and verifiers."""

from typing import Any, Dict

import pytest

from sd_jwt_vci import b64url
from sd_jwt_vci.exceptions import SigningError
from sd_jwt_vci.keys import (
    generate_es256_jwk,
    jwk_thumbprint,
    private_key_from_jwk,
    public_jwk,
    public_key_from_jwk,
)
from sd_jwt_vci.signers import ES256Signer, KeyRingSigner, PlaceholderSigner, create_credential_signer
from sd_jwt_vci.verifiers import ES256Verifier

SIGNING_INPUT = "eyJhbGciOiJFUzI1NiJ9.eyJzdWIiOiJzdHVkZW50LTEyMyJ9"


class TestJWK:
    """Test JWK generation and conversion."""

    @pytest.mark.unit
    def test_generate(self) -> None:
        jwk = generate_es256_jwk(kid="issuer-key")
        assert jwk["kty"] == "EC"
        assert jwk["crv"] == "P-256"
        assert jwk["alg"] == "ES256"
        assert jwk["kid"] == "issuer-key"
        assert len(b64url.decode(jwk["x"])) == 32
        assert len(b64url.decode(jwk["d"])) == 32

    @pytest.mark.unit
    def test_default_kid_is_thumbprint(self) -> None:
        jwk = generate_es256_jwk()
        assert jwk["kid"] == jwk_thumbprint(jwk)

    @pytest.mark.unit
    def test_public_jwk_drops_private_component(self, issuer_jwk: Dict[str, Any]) -> None:
        public = public_jwk(issuer_jwk)
        assert "d" not in public
        assert "d" in issuer_jwk
        assert public["x"] == issuer_jwk["x"]

    @pytest.mark.unit
    def test_load_keys(self, issuer_jwk: Dict[str, Any]) -> None:
        private_key = private_key_from_jwk(issuer_jwk)
        public_key = public_key_from_jwk(issuer_jwk)
        assert private_key.public_key().public_numbers() == public_key.public_numbers()

    @pytest.mark.unit
    def test_private_component_required(self, issuer_jwk: Dict[str, Any]) -> None:
        with pytest.raises(KeyError):
            private_key_from_jwk(public_jwk(issuer_jwk))

    @pytest.mark.unit
    def test_rejects_other_curves(self, issuer_jwk: Dict[str, Any]) -> None:
        with pytest.raises(ValueError, match="P-256"):
            public_key_from_jwk({**issuer_jwk, "crv": "P-384"})
        with pytest.raises(ValueError, match="EC"):
            public_key_from_jwk({"kty": "OKP", "crv": "Ed25519", "x": "abc"})


class TestThumbprint:
    """Test RFC 7638 thumbprints."""

    @pytest.mark.unit
    def test_rfc7638_example(self) -> None:
        """RSA example key from RFC 7638 section 3.1."""
        jwk = {
            "kty": "RSA",
            "n": (
                "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_BJECPebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_FDW2QvzqY368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4vMQFh6WeZu0fM4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
            ),
            "e": "AQAB",
            "alg": "RS256",
            "kid": "2011-04-29",
        }
        assert jwk_thumbprint(jwk) == "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"

    @pytest.mark.unit
    def test_ignores_optional_members(self, issuer_jwk: Dict[str, Any]) -> None:
        assert jwk_thumbprint(issuer_jwk) == jwk_thumbprint(public_jwk(issuer_jwk))
        assert jwk_thumbprint(issuer_jwk) == jwk_thumbprint({**issuer_jwk, "kid": "other"})

    @pytest.mark.unit
    def test_hash_algorithms(self, issuer_jwk: Dict[str, Any]) -> None:
        assert len(b64url.decode(jwk_thumbprint(issuer_jwk, "sha384"))) == 48
        assert len(b64url.decode(jwk_thumbprint(issuer_jwk, "sha512"))) == 64
        with pytest.raises(ValueError, match="Unsupported hash algorithm"):
            jwk_thumbprint(issuer_jwk, "md5")

    @pytest.mark.unit
    def test_missing_member(self) -> None:
        with pytest.raises(ValueError, match="missing"):
            jwk_thumbprint({"kty": "EC", "crv": "P-256", "x": "abc"})


class TestSigners:
    """Test signer implementations against the ES256 verifier."""

    @pytest.mark.unit
    @pytest.mark.requires_crypto
    def test_sign_and_verify(self, issuer_jwk: Dict[str, Any]) -> None:
        signer = ES256Signer(issuer_jwk)
        signature = signer.sign(SIGNING_INPUT, "test-issuer-key")

        assert len(b64url.decode(signature)) == 64
        verifier = ES256Verifier(signer.public_jwk)
        assert verifier.verify(SIGNING_INPUT, signature)
        assert not verifier.verify(SIGNING_INPUT + "x", signature)

    @pytest.mark.unit
    def test_verifier_rejects_malformed_signatures(self, issuer_jwk: Dict[str, Any]) -> None:
        verifier = ES256Verifier(public_jwk(issuer_jwk))
        assert not verifier.verify(SIGNING_INPUT, "!!!")
        assert not verifier.verify(SIGNING_INPUT, b64url.encode(b"short"))
        assert not verifier.verify(SIGNING_INPUT, PlaceholderSigner.SIGNATURE)

    @pytest.mark.unit
    def test_wrong_kid(self, es256_signer: ES256Signer) -> None:
        with pytest.raises(SigningError):
            es256_signer.sign(SIGNING_INPUT, "another-key")

    @pytest.mark.unit
    def test_kid_required(self, issuer_jwk: Dict[str, Any]) -> None:
        without_kid = {name: value for name, value in issuer_jwk.items() if name != "kid"}
        with pytest.raises(KeyError):
            ES256Signer(without_kid)

    @pytest.mark.unit
    def test_key_ring(self, issuer_jwk: Dict[str, Any]) -> None:
        other = generate_es256_jwk(kid="rotated-key")
        ring = KeyRingSigner([issuer_jwk, other])

        assert ring.key_ids == ["test-issuer-key", "rotated-key"]
        assert all("d" not in jwk for jwk in ring.jwks()["keys"])

        signature = ring.sign(SIGNING_INPUT, "rotated-key")
        assert ES256Verifier(other).verify(SIGNING_INPUT, signature)
        assert not ES256Verifier(issuer_jwk).verify(SIGNING_INPUT, signature)

        with pytest.raises(SigningError, match="No signing key"):
            ring.sign(SIGNING_INPUT, "unknown")

    @pytest.mark.unit
    def test_placeholder(self) -> None:
        signer = PlaceholderSigner()
        assert signer.sign(SIGNING_INPUT, "any") == "SIMULATED_SIGNATURE_FOR_DEMO_PURPOSES_ONLY"
        assert signer.algorithm == "ES256"

    @pytest.mark.unit
    def test_create_credential_signer(self, issuer_jwk: Dict[str, Any]) -> None:
        signer = create_credential_signer(issuer_jwk)
        assert signer.key_id == "test-issuer-key"
        assert signer.algorithm == "ES256"
