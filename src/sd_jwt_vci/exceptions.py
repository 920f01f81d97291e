"""Exception hierarchy for SD-JWT issuance, decoding and verification."""


class SDJWTError(Exception):
    """Base class for all sd_jwt_vci errors."""


class DecodeError(SDJWTError, ValueError):
    """Raised when base64url input cannot be decoded."""


class InvalidDisclosure(SDJWTError, ValueError):
    """Raised when a disclosure does not decode to [salt, name, value]."""


class MalformedSdJwt(SDJWTError, ValueError):
    """Raised when an SD-JWT string has no ``~`` separator."""


class MalformedJwt(SDJWTError, ValueError):
    """Raised when the JWT part does not have exactly three segments."""


class InvalidEncoding(SDJWTError, ValueError):
    """Raised when a JWT header or payload segment is not base64url JSON."""

    def __init__(self, segment: str, reason: str):
        """Initialize with the failing segment name.

        Args:
            segment: Name of the segment ("header" or "payload")
            reason: Underlying failure description
        """
        super().__init__(f"Invalid {segment} encoding: {reason}")
        self.segment = segment


class MissingRequiredClaim(SDJWTError):
    """Raised when a required template claim has no resolved value."""

    def __init__(self, claim_key: str, template_id: str = ""):
        """Initialize with the missing claim key.

        Args:
            claim_key: Key of the required claim
            template_id: Identifier of the template that declares it
        """
        where = f" in template '{template_id}'" if template_id else ""
        super().__init__(f"Required claim '{claim_key}'{where} has no value")
        self.claim_key = claim_key
        self.template_id = template_id


class InvalidClaimValue(SDJWTError, ValueError):
    """Raised when a claim value cannot be coerced to its declared type."""


class TemplateNotFound(SDJWTError, KeyError):
    """Raised when a template identifier cannot be resolved."""

    def __init__(self, template_id: str):
        super().__init__(f"Credential template '{template_id}' not found")
        self.template_id = template_id

    def __str__(self) -> str:
        return str(self.args[0])


class SigningError(SDJWTError):
    """Raised when a signer cannot produce a signature."""
