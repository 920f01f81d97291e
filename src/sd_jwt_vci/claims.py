"""Claim value resolution for credential templates.

A template claim's value is taken from, in order: explicit overrides, the
subject's claims under the same key, the subject's claims under an aliased
key (``CLAIM_ALIASES``), and finally the claim's default value. The resolved
value is coerced to the claim's declared type.
"""

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Mapping, NamedTuple, Optional, Union

from .exceptions import InvalidClaimValue, MissingRequiredClaim
from .templates import ClaimDefinition, CredentialTemplate

logger = logging.getLogger(__name__)

JSONValue = Union[str, int, float, bool, None, list["JSONValue"], dict[str, "JSONValue"]]


class ClaimAlias(NamedTuple):
    """Alternate source key for a claim and how to convert its value."""

    source_key: str
    kind: str = "copy"  # "copy" or "year"


# Field names differ between the local user directory and VCM templates.
CLAIM_ALIASES: dict[str, tuple[ClaimAlias, ...]] = {
    "fullName": (ClaimAlias("name"),),
    "name": (ClaimAlias("fullName"),),
    "faculty": (ClaimAlias("department"),),
    "department": (ClaimAlias("faculty"),),
    "studentNumber": (ClaimAlias("studentId"),),
    "studentId": (ClaimAlias("studentNumber"),),
    "studentStatus": (ClaimAlias("status"),),
    "status": (ClaimAlias("studentStatus"),),
    "enrollmentYear": (ClaimAlias("enrollmentDate", "year"),),
}


# Year and month only, e.g. an expected graduation "2025-03"
_YEAR_MONTH = re.compile(r"\d{4}-\d{2}")


def _parse_datetime(value: str) -> datetime:
    text = value.strip()
    if _YEAR_MONTH.fullmatch(text):
        text += "-01"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _apply_alias(alias: ClaimAlias, value: Any) -> Any:
    if alias.kind == "copy":
        return value
    if alias.kind == "year":
        if isinstance(value, (date, datetime)):
            return value.year
        try:
            return _parse_datetime(str(value)).year
        except ValueError as e:
            raise InvalidClaimValue(f"Cannot extract year from {value!r}") from e
    raise ValueError(f"Unknown alias kind: {alias.kind}")


def lookup_alias(claim_key: str, claims: Mapping[str, Any]) -> Optional[Any]:
    """Look up a claim through the alias table.

    Returns:
        The converted value of the first alias present in ``claims``, or None
    """
    for alias in CLAIM_ALIASES.get(claim_key, ()):
        value = claims.get(alias.source_key)
        if value is not None:
            return _apply_alias(alias, value)
    return None


def coerce_claim_value(claim_type: str, value: Any) -> JSONValue:
    """Coerce a resolved value to a template claim type.

    Args:
        claim_type: "string", "number", "boolean" or "date"
        value: Resolved value

    Returns:
        JSON-compatible value of the declared type

    Raises:
        InvalidClaimValue: If the value cannot be converted
    """
    if claim_type == "number":
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            number = value
        else:
            text = str(value).strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError as e:
                raise InvalidClaimValue(f"Not a number: {value!r}") from e
        if not math.isfinite(number):
            raise InvalidClaimValue(f"Not a finite number: {value!r}")
        return number

    if claim_type == "boolean":
        if isinstance(value, str):
            return value == "true"
        return bool(value)

    if claim_type == "date":
        if isinstance(value, datetime):
            parsed = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        elif isinstance(value, str):
            try:
                parsed = _parse_datetime(value)
            except ValueError as e:
                raise InvalidClaimValue(f"Not an ISO 8601 date: {value!r}") from e
        else:
            raise InvalidClaimValue(f"Not a date: {value!r}")
        parsed = parsed.astimezone(timezone.utc)
        return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"

    if claim_type == "string":
        if isinstance(value, (dict, list, str)):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    raise ValueError(f"Unsupported claim type: {claim_type}")


def resolve_claim_value(
    definition: ClaimDefinition,
    claims: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Optional[JSONValue]:
    """Resolve and coerce one claim's value.

    Returns:
        The coerced value, or None when nothing resolves
    """
    value = None
    if overrides is not None:
        value = overrides.get(definition.key)
    if value is None:
        value = claims.get(definition.key)
    if value is None:
        value = lookup_alias(definition.key, claims)
    if value is None:
        value = definition.default_value
    if value is None:
        return None
    return coerce_claim_value(definition.type, value)


def resolve_template_claims(
    template: CredentialTemplate,
    claims: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> dict[str, JSONValue]:
    """Resolve every claim a template declares.

    Claims without a value are left out; they appear neither as disclosures
    nor as embedded claims.

    Args:
        template: Credential template
        claims: Subject claims from the user directory
        overrides: Per-request custom claim values

    Returns:
        Mapping of claim key to value, in template order

    Raises:
        MissingRequiredClaim: If a required claim has no value
    """
    resolved: dict[str, JSONValue] = {}
    for definition in template.claims:
        value = resolve_claim_value(definition, claims, overrides)
        if value is None:
            if definition.required:
                raise MissingRequiredClaim(definition.key, template.id)
            logger.debug("Optional claim %s has no value, skipping", definition.key)
            continue
        resolved[definition.key] = value
    return resolved
