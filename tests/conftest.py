"""Pytest configuration and shared fixtures for SD-JWT tests."""

import os
from typing import Any, Dict

import pytest

from sd_jwt_vci import (
    ClaimDefinition,
    CredentialTemplate,
    ES256Signer,
    PlaceholderSigner,
    SeededSaltGenerator,
    generate_es256_jwk,
)


@pytest.fixture(scope="session")
def issuer_jwk() -> Dict[str, Any]:
    """Generate an ES256 issuer key for the test session."""
    return generate_es256_jwk(kid="test-issuer-key")


@pytest.fixture
def es256_signer(issuer_jwk: Dict[str, Any]) -> ES256Signer:
    """Provide a signer for the session issuer key."""
    return ES256Signer(issuer_jwk)


@pytest.fixture
def placeholder_signer() -> PlaceholderSigner:
    """Provide a signer that emits a fixed placeholder signature."""
    return PlaceholderSigner()


@pytest.fixture
def salt_generator() -> SeededSaltGenerator:
    """Provide a deterministic salt generator."""
    return SeededSaltGenerator(seed=1234)


@pytest.fixture
def simple_template() -> CredentialTemplate:
    """Template with two selectively disclosable claims and one embedded claim."""
    return CredentialTemplate(
        id="simple-student",
        issuer="https://university-issuer.example.com",
        validity_period_days=365,
        type=["VerifiableCredential", "StudentCredential"],
        claims=[
            ClaimDefinition("name", "氏名", required=True, selective_disclosure=True),
            ClaimDefinition("studentId", "学籍番号", required=True, selective_disclosure=True),
            ClaimDefinition("department", "所属学部", required=True, selective_disclosure=False),
        ],
    )


@pytest.fixture
def student_claims() -> Dict[str, Any]:
    """Provide the claims for the demo student."""
    return {
        "name": "山田太郎",
        "studentId": "S12345678",
        "department": "工学部",
    }


@pytest.fixture
def demo_user() -> Dict[str, Any]:
    """Provide a full demo user record with VCM-style alternate field names."""
    return {
        "name": "山田 太郎",
        "fullName": "山田 太郎",
        "studentId": "S12345678",
        "department": "工学部 情報工学科",
        "faculty": "工学部",
        "email": "yamada@example.university.edu",
        "status": "enrolled",
        "enrollmentDate": "2021-04-01",
        "expectedGraduation": "2025-03-31",
        "gpa": 3.75,
        "totalCredits": 98,
        "academicYear": "4年生",
        "major": "情報工学",
        "degree": "学士（工学）",
        "graduationDate": "2025-03-25",
        "currentYear": "4年生",
    }


@pytest.fixture(autouse=True)
def reset_environment():
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "requires_crypto: mark test as requiring cryptographic operations")
