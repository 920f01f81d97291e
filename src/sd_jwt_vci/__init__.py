"""SD-JWT VCI: selective disclosure JWT credentials for an OpenID4VCI issuer."""

from . import (
    b64url,
    claims,
    decoder,
    disclosure,
    exceptions,
    issuer,
    keys,
    metadata,
    presentation,
    resolvers,
    signers,
    stores,
    templates,
    verifiers,
)
from .claims import (
    CLAIM_ALIASES,
    coerce_claim_value,
    resolve_template_claims,
)
from .decoder import (
    DecodedCredential,
    decode_credential,
    split_sd_jwt,
)
from .disclosure import (
    DecodedDisclosure,
    Disclosure,
    SaltGenerator,
    SecureSaltGenerator,
    SeededSaltGenerator,
    create_disclosure,
    deserialize_disclosure,
    hash_disclosure,
    serialize_disclosure,
)
from .exceptions import (
    DecodeError,
    InvalidClaimValue,
    InvalidDisclosure,
    InvalidEncoding,
    MalformedJwt,
    MalformedSdJwt,
    MissingRequiredClaim,
    SDJWTError,
    SigningError,
    TemplateNotFound,
)
from .issuer import (
    SDJWTIssuer,
    assemble_credential,
)
from .keys import (
    generate_es256_jwk,
    jwk_thumbprint,
    public_jwk,
)
from .metadata import issuer_metadata
from .presentation import (
    redisclose_credential,
    select_disclosures_by_claim_names,
)
from .resolvers import (
    jwk_kid_resolver,
    jwk_thumbprint_resolver,
    jwks_resolver,
)
from .signers import (
    ES256Signer,
    KeyRingSigner,
    PlaceholderSigner,
    Signer,
    create_credential_signer,
)
from .stores import (
    InMemoryStore,
    KeyValueStore,
)
from .templates import (
    ClaimDefinition,
    CredentialTemplate,
    TemplateRegistry,
    builtin_templates,
    default_registry,
)
from .verifiers import (
    CredentialVerifier,
    ES256Verifier,
    VerificationResult,
    Verifier,
)

__version__ = "0.1.0"


__all__ = [
    "__version__",
    # Base64url codec module
    "b64url",
    # Disclosures
    "Disclosure",
    "DecodedDisclosure",
    "create_disclosure",
    "serialize_disclosure",
    "deserialize_disclosure",
    "hash_disclosure",
    # Salt generators for deterministic testing
    "SaltGenerator",
    "SecureSaltGenerator",
    "SeededSaltGenerator",
    # Templates and claim resolution
    "ClaimDefinition",
    "CredentialTemplate",
    "TemplateRegistry",
    "builtin_templates",
    "default_registry",
    "CLAIM_ALIASES",
    "coerce_claim_value",
    "resolve_template_claims",
    # Issuance, decoding and presentation
    "assemble_credential",
    "SDJWTIssuer",
    "decode_credential",
    "split_sd_jwt",
    "DecodedCredential",
    "redisclose_credential",
    "select_disclosures_by_claim_names",
    # Keys, signers and verifiers
    "generate_es256_jwk",
    "jwk_thumbprint",
    "public_jwk",
    "Signer",
    "ES256Signer",
    "KeyRingSigner",
    "PlaceholderSigner",
    "create_credential_signer",
    "Verifier",
    "ES256Verifier",
    "CredentialVerifier",
    "VerificationResult",
    # Resolvers for dynamic key resolution
    "jwk_kid_resolver",
    "jwk_thumbprint_resolver",
    "jwks_resolver",
    # Issuance state and metadata
    "KeyValueStore",
    "InMemoryStore",
    "issuer_metadata",
    # Errors
    "SDJWTError",
    "DecodeError",
    "InvalidDisclosure",
    "InvalidEncoding",
    "MalformedJwt",
    "MalformedSdJwt",
    "MissingRequiredClaim",
    "InvalidClaimValue",
    "TemplateNotFound",
    "SigningError",
]
