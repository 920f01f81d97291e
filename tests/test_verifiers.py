"""Tests for credential verification."""

import pytest

from sd_jwt_vci import (
    CredentialVerifier,
    PlaceholderSigner,
    assemble_credential,
    b64url,
    decode_credential,
    jwk_kid_resolver,
    redisclose_credential,
)
from sd_jwt_vci.disclosure import Disclosure, serialize_disclosure
from sd_jwt_vci.issuer import SECONDS_PER_DAY
from sd_jwt_vci.verifiers import check_disclosure_digests

ISSUED_AT = 1_700_000_000


@pytest.fixture
def verifier(issuer_jwk) -> CredentialVerifier:
    resolver = jwk_kid_resolver([(issuer_jwk["kid"], issuer_jwk)])
    return CredentialVerifier(resolver, clock=lambda: ISSUED_AT + 60)


@pytest.fixture
def credential(simple_template, student_claims, es256_signer) -> str:
    return assemble_credential(
        "student-123",
        student_claims,
        simple_template,
        es256_signer,
        key_id=es256_signer.key_id,
        issued_at=ISSUED_AT,
    )


class TestCredentialVerifier:
    """Test CredentialVerifier.verify outcomes."""

    @pytest.mark.requires_crypto
    def test_valid_credential(self, verifier: CredentialVerifier, credential: str) -> None:
        result = verifier.verify(credential)

        assert result.valid, result.error
        assert result.signature_valid
        assert result.digests_valid
        assert not result.expired
        assert result.unreferenced_disclosures == []
        assert result.verified_claims == {
            "department": "工学部",
            "name": "山田太郎",
            "studentId": "S12345678",
        }

    def test_presentation_verifies(self, verifier: CredentialVerifier, credential: str) -> None:
        """A presentation keeps the issuer signature valid."""
        result = verifier.verify(redisclose_credential(credential, {"studentId"}))
        assert result.valid
        assert result.verified_claims == {"department": "工学部", "studentId": "S12345678"}

    def test_injected_disclosure_rejected(self, verifier: CredentialVerifier, credential: str) -> None:
        forged = serialize_disclosure(Disclosure("salt", "gpa", 4.0))
        result = verifier.verify(f"{credential}~{forged}")

        assert result.signature_valid
        assert not result.digests_valid
        assert not result.valid
        assert result.unreferenced_disclosures == [forged]
        assert result.verified_claims is None
        # The decoded view stays available for display
        assert result.credential.reconstructed_claims["gpa"] == 4.0

    def test_garbage_disclosure_unreferenced(self, verifier: CredentialVerifier, credential: str) -> None:
        result = verifier.verify(credential + "~!!!invalid!!!")
        assert result.unreferenced_disclosures == ["!!!invalid!!!"]

    def test_tampered_payload(
        self, verifier: CredentialVerifier, credential: str, simple_template, es256_signer
    ) -> None:
        other = assemble_credential(
            "student-456",
            {"name": "佐藤花子", "studentId": "S87654321", "department": "理学部"},
            simple_template,
            es256_signer,
            key_id=es256_signer.key_id,
            issued_at=ISSUED_AT,
        )
        header_b64, _, signature = credential.split("~")[0].split(".")
        payload_b64 = other.split("~")[0].split(".")[1]

        result = verifier.verify(f"{header_b64}.{payload_b64}.{signature}~")
        assert not result.signature_valid
        assert result.error == "Signature verification failed"

    def test_placeholder_signature(
        self, verifier: CredentialVerifier, simple_template, student_claims, issuer_jwk
    ) -> None:
        credential = assemble_credential(
            "student-123", student_claims, simple_template, PlaceholderSigner(), key_id=issuer_jwk["kid"]
        )
        result = verifier.verify(credential)
        assert not result.signature_valid
        assert result.digests_valid

    def test_expired(self, issuer_jwk, credential: str) -> None:
        resolver = jwk_kid_resolver([(issuer_jwk["kid"], issuer_jwk)])
        after_expiry = ISSUED_AT + 366 * SECONDS_PER_DAY

        result = CredentialVerifier(resolver, clock=lambda: after_expiry).verify(credential)
        assert result.signature_valid
        assert result.expired
        assert not result.valid

        lenient = CredentialVerifier(resolver, clock=lambda: after_expiry, leeway=SECONDS_PER_DAY)
        assert lenient.verify(credential).valid

    def test_malformed_input_reports_error(self, verifier: CredentialVerifier) -> None:
        result = verifier.verify("not-a-valid-sdjwt")
        assert not result.valid
        assert result.credential is None
        assert result.error

    def test_unsupported_algorithm(self, verifier: CredentialVerifier, credential: str) -> None:
        header = {"alg": "none", "typ": "vc+sd-jwt", "kid": "test-issuer-key"}
        _, payload_b64, signature = credential.split("~")[0].split(".")
        result = verifier.verify(f"{b64url.encode_json(header)}.{payload_b64}.{signature}~")
        assert result.error == "Unsupported algorithm: none"


class TestDigestCheck:
    def test_all_referenced(self, credential: str) -> None:
        assert check_disclosure_digests(decode_credential(credential)) == []
