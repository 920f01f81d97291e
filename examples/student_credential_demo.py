#!/usr/bin/env python3
"""Issue a student credential, present one claim and verify the presentation."""

import sd_jwt_vci


def main():
    """Demonstrate the issuer, holder and verifier roles."""
    print("SD-JWT Student Credential Example")
    print("=" * 40)

    # 1. Generate the issuer key (ES256)
    print("\n1. Generating issuer key...")
    issuer_jwk = sd_jwt_vci.generate_es256_jwk(kid="university-issuer-key-2023")
    print(f"   Key id: {issuer_jwk['kid']}")
    print(f"   Thumbprint: {sd_jwt_vci.jwk_thumbprint(issuer_jwk)}")

    # 2. Issue a credential from the built-in template
    print("\n2. Issuing student-credential...")
    issuer = sd_jwt_vci.SDJWTIssuer(
        sd_jwt_vci.ES256Signer(issuer_jwk),
        sd_jwt_vci.default_registry(),
        key_id=issuer_jwk["kid"],
    )
    credential = issuer.issue_credential(
        "student-credential",
        "student-123",
        {
            "fullName": "山田 太郎",
            "studentId": "S12345678",
            "faculty": "工学部",
            "enrollmentDate": "2021-04-01",
        },
    )
    decoded = sd_jwt_vci.decode_credential(credential)
    print(f"   Disclosures: {len(decoded.disclosures)}")
    for name, value in decoded.reconstructed_claims.items():
        print(f"   {name}: {value}")

    # 3. Holder discloses only the student id
    print("\n3. Presenting studentId only...")
    presentation = sd_jwt_vci.redisclose_credential(credential, {"studentId"})
    print(f"   Presentation: {len(presentation)} characters")

    # 4. Verifier checks signature and digests
    print("\n4. Verifying presentation...")
    resolver = sd_jwt_vci.jwk_kid_resolver([(issuer_jwk["kid"], issuer_jwk)])
    result = sd_jwt_vci.CredentialVerifier(resolver).verify(presentation)
    print(f"   Valid: {result.valid}")
    print(f"   Claims: {result.verified_claims}")


if __name__ == "__main__":
    main()
