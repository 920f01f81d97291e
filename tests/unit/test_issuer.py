"""Unit tests for SD-JWT credential assembly."""

from typing import Any, Dict

import pytest

from sd_jwt_vci import b64url
from sd_jwt_vci.disclosure import SeededSaltGenerator, deserialize_disclosure, hash_disclosure
from sd_jwt_vci.exceptions import InvalidClaimValue, MissingRequiredClaim, TemplateNotFound
from sd_jwt_vci.issuer import (
    DEMO_HOLDER_JWK,
    SECONDS_PER_DAY,
    SDJWTIssuer,
    assemble_credential,
    build_header,
    create_disclosures,
    partition_claims,
)
from sd_jwt_vci.signers import PlaceholderSigner
from sd_jwt_vci.templates import ClaimDefinition, CredentialTemplate, default_registry

FIXED_TIME = 1_700_000_000


def _parts(sd_jwt: str):
    jwt, *disclosures = sd_jwt.split("~")
    header_b64, payload_b64, signature = jwt.split(".")
    return b64url.decode_json(header_b64), b64url.decode_json(payload_b64), signature, disclosures


class RepeatingSaltGenerator:
    def generate_salt(self, length: int = 16) -> bytes:
        return b"\x00" * length


class TestPartitionClaims:
    """Test the split between embedded and disclosed claims."""

    @pytest.mark.unit
    def test_partition(self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]) -> None:
        embedded, disclosed = partition_claims(simple_template, student_claims)
        assert embedded == {"department": "工学部"}
        assert list(disclosed) == ["name", "studentId"]

    @pytest.mark.unit
    def test_selection_limits_disclosed_only(
        self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]
    ) -> None:
        embedded, disclosed = partition_claims(simple_template, student_claims, ["studentId"])
        assert embedded == {"department": "工学部"}
        assert disclosed == {"studentId": "S12345678"}

    @pytest.mark.unit
    def test_unresolved_claims_skipped(self, simple_template: CredentialTemplate) -> None:
        embedded, disclosed = partition_claims(simple_template, {"name": "A"})
        assert embedded == {}
        assert disclosed == {"name": "A"}


class TestCreateDisclosures:
    """Test disclosure creation during issuance."""

    @pytest.mark.unit
    def test_salts_unique(self, salt_generator: SeededSaltGenerator) -> None:
        wires = create_disclosures({"a": 1, "b": 2, "c": 3}, salt_generator)
        salts = {deserialize_disclosure(wire).salt for wire in wires}
        assert len(salts) == 3

    @pytest.mark.unit
    def test_repeating_generator_fails(self) -> None:
        with pytest.raises(RuntimeError, match="repeated salts"):
            create_disclosures({"a": 1, "b": 2}, RepeatingSaltGenerator())

    @pytest.mark.unit
    def test_single_disclosure_with_constant_salt(self) -> None:
        assert len(create_disclosures({"a": 1}, RepeatingSaltGenerator())) == 1


class TestAssembleCredential:
    """Test the complete SD-JWT produced by assemble_credential."""

    @pytest.fixture
    def credential(
        self,
        simple_template: CredentialTemplate,
        student_claims: Dict[str, Any],
        placeholder_signer: PlaceholderSigner,
        salt_generator: SeededSaltGenerator,
    ) -> str:
        return assemble_credential(
            "student-123",
            student_claims,
            simple_template,
            placeholder_signer,
            salt_generator=salt_generator,
            issued_at=FIXED_TIME,
        )

    @pytest.mark.unit
    def test_header(self, credential: str) -> None:
        header, _, _, _ = _parts(credential)
        assert header == {"alg": "ES256", "typ": "vc+sd-jwt", "kid": "university-issuer-key-2023"}
        assert build_header("k") == {"alg": "ES256", "typ": "vc+sd-jwt", "kid": "k"}

    @pytest.mark.unit
    def test_payload(self, credential: str) -> None:
        _, payload, _, _ = _parts(credential)

        assert list(payload) == ["iss", "sub", "iat", "exp", "cnf", "vc", "_sd", "_sd_alg"]
        assert payload["iss"] == "https://university-issuer.example.com"
        assert payload["sub"] == "student-123"
        assert payload["iat"] == FIXED_TIME
        assert payload["exp"] == FIXED_TIME + 365 * SECONDS_PER_DAY
        assert payload["cnf"] == {"jwk": DEMO_HOLDER_JWK}
        assert payload["vc"]["type"] == ["VerifiableCredential", "StudentCredential"]
        assert payload["vc"]["credentialSubject"] == {
            "id": "did:example:student-123",
            "department": "工学部",
        }
        assert payload["_sd_alg"] == "sha-256"

    @pytest.mark.unit
    def test_digests_reference_disclosures(self, credential: str) -> None:
        _, payload, _, disclosures = _parts(credential)

        assert len(disclosures) == len(payload["_sd"]) == 2
        assert payload["_sd"] == [hash_disclosure(wire) for wire in disclosures]
        names = [deserialize_disclosure(wire).claim_name for wire in disclosures]
        assert names == ["name", "studentId"]

    @pytest.mark.unit
    def test_disclosed_values_not_in_payload(self, credential: str) -> None:
        jwt = credential.split("~")[0]
        payload_b64 = jwt.split(".")[1]
        assert "S12345678" not in b64url.decode(payload_b64).decode("utf-8")

    @pytest.mark.unit
    def test_placeholder_signature(self, credential: str) -> None:
        _, _, signature, _ = _parts(credential)
        assert signature == PlaceholderSigner.SIGNATURE

    @pytest.mark.unit
    def test_no_disclosures_keeps_trailing_separator(
        self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]
    ) -> None:
        credential = assemble_credential(
            "student-123", student_claims, simple_template, PlaceholderSigner(), selected_claim_keys=[]
        )
        assert credential.endswith("~")
        assert credential.count("~") == 1
        _, payload, _, _ = _parts(credential)
        assert payload["_sd"] == []

    @pytest.mark.unit
    def test_without_holder_binding(
        self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]
    ) -> None:
        credential = assemble_credential(
            "student-123", student_claims, simple_template, PlaceholderSigner(), holder_jwk=None
        )
        _, payload, _, _ = _parts(credential)
        assert "cnf" not in payload

    @pytest.mark.unit
    def test_sha512_digests(self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]) -> None:
        credential = assemble_credential(
            "student-123", student_claims, simple_template, PlaceholderSigner(), hash_alg="sha-512"
        )
        _, payload, _, disclosures = _parts(credential)
        assert payload["_sd_alg"] == "sha-512"
        assert payload["_sd"] == [hash_disclosure(wire, "sha-512") for wire in disclosures]

    @pytest.mark.unit
    def test_unsupported_hash(self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]) -> None:
        with pytest.raises(ValueError):
            assemble_credential("s", student_claims, simple_template, PlaceholderSigner(), hash_alg="md5")

    @pytest.mark.unit
    def test_missing_required_claim(self, simple_template: CredentialTemplate) -> None:
        with pytest.raises(MissingRequiredClaim):
            assemble_credential("s", {"name": "山田太郎"}, simple_template, PlaceholderSigner())

    @pytest.mark.unit
    def test_non_finite_number_rejected(self) -> None:
        template = CredentialTemplate("transcript", [ClaimDefinition("gpa", type="number", required=True)])
        with pytest.raises(InvalidClaimValue):
            assemble_credential("s", {"gpa": "NaN"}, template, PlaceholderSigner())

    @pytest.mark.unit
    def test_deterministic_with_seeded_salts(
        self, simple_template: CredentialTemplate, student_claims: Dict[str, Any]
    ) -> None:
        def issue() -> str:
            return assemble_credential(
                "s",
                student_claims,
                simple_template,
                PlaceholderSigner(),
                salt_generator=SeededSaltGenerator(5),
                issued_at=FIXED_TIME,
            )

        assert issue() == issue()


class TestSDJWTIssuer:
    """Test issuance through the template registry."""

    @pytest.fixture
    def issuer(self, salt_generator: SeededSaltGenerator) -> SDJWTIssuer:
        return SDJWTIssuer(
            PlaceholderSigner(),
            default_registry(),
            key_id="issuer-key-1",
            salt_generator=salt_generator,
            clock=lambda: FIXED_TIME + 0.9,
        )

    @pytest.mark.unit
    def test_issue_builtin_template(self, issuer: SDJWTIssuer, demo_user: Dict[str, Any]) -> None:
        credential = issuer.issue_credential("academic-transcript", "student-123", demo_user)
        header, payload, _, disclosures = _parts(credential)

        assert header["kid"] == "issuer-key-1"
        assert payload["iat"] == FIXED_TIME
        assert payload["exp"] == FIXED_TIME + 90 * SECONDS_PER_DAY
        assert len(disclosures) == 6
        values = {deserialize_disclosure(w).claim_name: deserialize_disclosure(w).claim_value for w in disclosures}
        assert values["gpa"] == 3.75
        assert values["totalCredits"] == 98

    @pytest.mark.unit
    def test_issue_with_overrides_and_selection(self, issuer: SDJWTIssuer, demo_user: Dict[str, Any]) -> None:
        credential = issuer.issue_credential(
            "student-credential",
            "student-123",
            demo_user,
            overrides={"status": "graduated"},
            selected_claim_keys=["studentId", "status"],
        )
        _, _, _, disclosures = _parts(credential)
        values = {deserialize_disclosure(w).claim_name: deserialize_disclosure(w).claim_value for w in disclosures}
        assert values == {"studentId": "S12345678", "status": "graduated"}

    @pytest.mark.unit
    def test_unknown_template(self, issuer: SDJWTIssuer) -> None:
        with pytest.raises(TemplateNotFound):
            issuer.issue_credential("missing", "student-123", {})

    @pytest.mark.unit
    def test_custom_template_with_embedded_claims(self, issuer: SDJWTIssuer) -> None:
        issuer.templates.register(
            CredentialTemplate(
                "badge",
                [
                    ClaimDefinition("name", required=True),
                    ClaimDefinition("level", type="number", selective_disclosure=False),
                ],
            )
        )
        credential = issuer.issue_credential("badge", "student-123", {"name": "A", "level": "3"})
        _, payload, _, disclosures = _parts(credential)
        assert payload["vc"]["credentialSubject"]["level"] == 3
        assert len(disclosures) == 1
