"""SD-JWT credential assembly.

A template's claims are split into embedded claims, placed directly in
``vc.credentialSubject``, and selectively disclosable claims, which appear in
the signed payload only as digests in ``_sd`` while their values travel as
detached disclosures after the JWT:

    base64url(header) "." base64url(payload) "." signature "~" d1 "~" ... "~" dn
"""

import logging
import time
from typing import Any, Callable, Iterable, Mapping, Optional

from . import b64url
from .claims import JSONValue, resolve_template_claims
from .disclosure import (
    SUPPORTED_HASH_ALGORITHMS,
    SaltGenerator,
    create_disclosure,
    generate_salt,
    hash_disclosure,
)
from .signers import Signer
from .templates import CredentialTemplate, TemplateRegistry

logger = logging.getLogger(__name__)

SD_JWT_TYP = "vc+sd-jwt"
DEFAULT_KEY_ID = "university-issuer-key-2023"
SECONDS_PER_DAY = 86400

# Holder binding key used when no holder key is supplied
DEMO_HOLDER_JWK = {
    "kty": "EC",
    "crv": "P-256",
    "x": "7xbG-J0AQtpPArBOYNv1x9_JPvgBWGI40rZnwjNzTuc",
    "y": "pBRgr0oi_I-C_zszVCT3XcCYTq8jar8XYRiUoEhUQ4Y",
}

_MAX_SALT_ATTEMPTS = 8


def subject_did(subject_id: str) -> str:
    return f"did:example:{subject_id}"


def build_header(key_id: str, algorithm: str = "ES256") -> dict[str, Any]:
    return {"alg": algorithm, "typ": SD_JWT_TYP, "kid": key_id}


def partition_claims(
    template: CredentialTemplate,
    resolved_claims: Mapping[str, JSONValue],
    selected_claim_keys: Optional[Iterable[str]] = None,
) -> tuple[dict[str, JSONValue], dict[str, JSONValue]]:
    """Split resolved claims into embedded and disclosed sets.

    Args:
        template: Credential template declaring the disclosure policy
        resolved_claims: Claim values keyed by template claim key
        selected_claim_keys: If given, only these selectively disclosable
            claims are disclosed; embedded claims are unaffected

    Returns:
        Tuple of (embedded, disclosed), both in template order
    """
    selected = set(selected_claim_keys) if selected_claim_keys is not None else None
    embedded: dict[str, JSONValue] = {}
    disclosed: dict[str, JSONValue] = {}

    for definition in template.claims:
        if definition.key not in resolved_claims:
            continue
        value = resolved_claims[definition.key]
        if not definition.selective_disclosure:
            embedded[definition.key] = value
        elif selected is None or definition.key in selected:
            disclosed[definition.key] = value

    return embedded, disclosed


def create_disclosures(
    disclosed: Mapping[str, JSONValue],
    salt_generator: Optional[SaltGenerator] = None,
) -> list[str]:
    """Create serialized disclosures with salts unique within the credential.

    Args:
        disclosed: Claims to disclose, in order
        salt_generator: Optional custom salt generator

    Returns:
        Disclosure wire forms in the same order

    Raises:
        RuntimeError: If the salt generator keeps repeating salts
    """
    used_salts: set[str] = set()
    wires = []

    for claim_name, claim_value in disclosed.items():
        for _ in range(_MAX_SALT_ATTEMPTS):
            salt = generate_salt(salt_generator=salt_generator)
            if salt not in used_salts:
                break
        else:
            raise RuntimeError("Salt generator produced repeated salts")
        used_salts.add(salt)

        disclosure = create_disclosure(claim_name, claim_value, salt=salt)
        wires.append(disclosure.serialize())

    return wires


def build_payload(
    subject_id: str,
    template: CredentialTemplate,
    embedded: Mapping[str, JSONValue],
    sd_digests: list[str],
    issued_at: int,
    holder_jwk: Optional[dict[str, Any]] = DEMO_HOLDER_JWK,
    hash_alg: str = "sha-256",
) -> dict[str, Any]:
    """Build the JWT payload for an SD-JWT credential."""
    credential_subject: dict[str, Any] = {"id": subject_did(subject_id)}
    credential_subject.update(embedded)

    payload: dict[str, Any] = {
        "iss": template.issuer,
        "sub": subject_id,
        "iat": issued_at,
        "exp": issued_at + template.validity_period_days * SECONDS_PER_DAY,
    }
    if holder_jwk is not None:
        payload["cnf"] = {"jwk": dict(holder_jwk)}
    payload["vc"] = {
        "@context": list(template.context),
        "type": list(template.type),
        "credentialSubject": credential_subject,
    }
    payload["_sd"] = sd_digests
    payload["_sd_alg"] = hash_alg
    return payload


def assemble_credential(
    subject_id: str,
    claims: Mapping[str, Any],
    template: CredentialTemplate,
    signer: Signer,
    selected_claim_keys: Optional[Iterable[str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    key_id: str = DEFAULT_KEY_ID,
    holder_jwk: Optional[dict[str, Any]] = DEMO_HOLDER_JWK,
    hash_alg: str = "sha-256",
    salt_generator: Optional[SaltGenerator] = None,
    issued_at: Optional[int] = None,
) -> str:
    """Assemble and sign an SD-JWT credential.

    Args:
        subject_id: Opaque subject identifier (``sub``)
        claims: Subject claims from the user directory
        template: Credential template
        signer: Signer invoked with the JWS signing input and ``key_id``
        selected_claim_keys: Restricts which selectively disclosable claims
            are disclosed at issuance; None discloses all of them
        overrides: Custom claim values taking precedence over ``claims``
        key_id: ``kid`` placed in the JWT header and passed to the signer
        holder_jwk: Holder binding key for ``cnf``; None omits ``cnf``
        hash_alg: Digest algorithm for ``_sd`` entries
        salt_generator: Optional custom salt generator
        issued_at: Optional timestamp (uses current time if None)

    Returns:
        Compact SD-JWT string

    Raises:
        MissingRequiredClaim: If a required claim has no value
        InvalidClaimValue: If a value cannot be coerced to its claim type
        SigningError: Propagated from the signer
    """
    if hash_alg not in SUPPORTED_HASH_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm: {hash_alg}")

    resolved = resolve_template_claims(template, claims, overrides)
    embedded, disclosed = partition_claims(template, resolved, selected_claim_keys)

    disclosure_wires = create_disclosures(disclosed, salt_generator)
    sd_digests = [hash_disclosure(wire, hash_alg) for wire in disclosure_wires]

    now = issued_at if issued_at is not None else int(time.time())
    header = build_header(key_id, signer.algorithm)
    payload = build_payload(subject_id, template, embedded, sd_digests, now, holder_jwk, hash_alg)

    signing_input = f"{b64url.encode_json(header)}.{b64url.encode_json(payload)}"
    signature = signer.sign(signing_input, key_id)

    logger.info(
        "Issued %s credential with %d embedded and %d disclosable claims",
        template.id,
        len(embedded),
        len(disclosure_wires),
    )
    return f"{signing_input}.{signature}~" + "~".join(disclosure_wires)


class SDJWTIssuer:
    """Issues SD-JWT credentials from registered templates."""

    def __init__(
        self,
        signer: Signer,
        templates: TemplateRegistry,
        key_id: str = DEFAULT_KEY_ID,
        hash_alg: str = "sha-256",
        salt_generator: Optional[SaltGenerator] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the issuer.

        Args:
            signer: Signer for the issuer key
            templates: Template resolver
            key_id: ``kid`` for the JWT header
            hash_alg: Digest algorithm for ``_sd`` entries
            salt_generator: Optional custom salt generator
            clock: Returns the current time in seconds
        """
        self.signer = signer
        self.templates = templates
        self.key_id = key_id
        self.hash_alg = hash_alg
        self.salt_generator = salt_generator
        self.clock = clock

    def issue_credential(
        self,
        template_id: str,
        subject_id: str,
        claims: Mapping[str, Any],
        overrides: Optional[Mapping[str, Any]] = None,
        selected_claim_keys: Optional[Iterable[str]] = None,
        holder_jwk: Optional[dict[str, Any]] = DEMO_HOLDER_JWK,
    ) -> str:
        """Issue a credential for a subject from a template id.

        Example:
            sd_jwt = issuer.issue_credential(
                "student-credential",
                "student-123",
                {"name": "山田 太郎", "studentId": "S12345678", "department": "工学部"},
                selected_claim_keys=["name", "studentId"],
            )

        Raises:
            TemplateNotFound: If the template id is unknown
            MissingRequiredClaim: If a required claim has no value
        """
        template = self.templates.resolve(template_id)
        return assemble_credential(
            subject_id,
            claims,
            template,
            self.signer,
            selected_claim_keys=selected_claim_keys,
            overrides=overrides,
            key_id=self.key_id,
            holder_jwk=holder_jwk,
            hash_alg=self.hash_alg,
            salt_generator=self.salt_generator,
            issued_at=int(self.clock()),
        )
