"""OpenID4VCI credential issuer metadata built from credential templates."""

from typing import Any, Iterable, Optional

from .issuer import SD_JWT_TYP
from .keys import JWS_ALG_ES256
from .templates import CredentialTemplate


def credential_configuration(template: CredentialTemplate) -> dict[str, Any]:
    """Describe one template as a ``credential_configurations_supported`` entry."""
    locale = template.display.get("locale", "ja-JP")

    display: dict[str, Any] = {
        "name": template.display.get("name", template.name),
        "locale": locale,
        "background_color": template.display.get("backgroundColor", "#1e40af"),
        "text_color": template.display.get("textColor", "#ffffff"),
    }
    logo = template.display.get("logo")
    if logo:
        display["logo"] = {"url": logo.get("url"), "alt_text": logo.get("altText", "")}

    claims = {
        claim.key: {
            "display": [{"name": claim.name, "locale": locale}],
            "mandatory": claim.required,
        }
        for claim in template.claims
    }

    return {
        "format": SD_JWT_TYP,
        "scope": template.id,
        "cryptographic_binding_methods_supported": ["jwk"],
        "credential_signing_alg_values_supported": [JWS_ALG_ES256],
        "credential_definition": {
            "type": list(template.type),
            "@context": list(template.context),
        },
        "display": [display],
        "claims": claims,
    }


def issuer_metadata(
    base_url: str,
    templates: Iterable[CredentialTemplate],
    credential_issuer: Optional[str] = None,
) -> dict[str, Any]:
    """Build the ``/.well-known/openid-credential-issuer`` document.

    Args:
        base_url: Public base URL of the issuer service
        templates: Templates to advertise, keyed by template id
        credential_issuer: Issuer identifier; defaults to ``base_url``

    Returns:
        Issuer metadata dictionary
    """
    base_url = base_url.rstrip("/")
    issuer = credential_issuer or base_url
    return {
        "credential_issuer": issuer,
        "authorization_server": issuer,
        "credential_endpoint": f"{base_url}/api/credential-issuer/credential",
        "token_endpoint": f"{base_url}/api/credential-issuer/token",
        "jwks_uri": f"{base_url}/api/credential-issuer/.well-known/jwks.json",
        "credential_configurations_supported": {
            template.id: credential_configuration(template) for template in templates
        },
    }
