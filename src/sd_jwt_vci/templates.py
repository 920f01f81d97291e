"""Credential templates: claim definitions and selective-disclosure policy.

Templates are normally synchronized from a Verifiable Credential Manager and
arrive as camelCase JSON; ``CredentialTemplate.from_dict`` accepts that shape
and ``to_dict`` produces it again.
"""

import copy
import logging
from typing import Any, Iterable, Optional

from .exceptions import TemplateNotFound

logger = logging.getLogger(__name__)

CLAIM_TYPES = ("string", "number", "boolean", "date")

DEFAULT_ISSUER = "https://university-issuer.example.com"

# credentialSubject member holding the subject DID
SUBJECT_ID_KEY = "id"


class ClaimDefinition:
    """A single claim declared by a credential template."""

    def __init__(
        self,
        key: str,
        name: str = "",
        description: str = "",
        type: str = "string",
        required: bool = False,
        selective_disclosure: bool = True,
        default_value: Any = None,
    ):
        """Initialize a claim definition.

        Args:
            key: Claim key as it appears in the credential
            name: Human readable display name
            description: Human readable description
            type: One of "string", "number", "boolean" or "date"
            required: Whether issuance fails when no value resolves
            selective_disclosure: Whether the claim is issued as a disclosure
                rather than embedded in ``credentialSubject``
            default_value: Value used when nothing else resolves

        Raises:
            ValueError: If the claim type is unknown
        """
        if type not in CLAIM_TYPES:
            raise ValueError(f"Unsupported claim type: {type}")
        self.key = key
        self.name = name or key
        self.description = description
        self.type = type
        self.required = required
        self.selective_disclosure = selective_disclosure
        self.default_value = default_value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClaimDefinition":
        return cls(
            key=data["key"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            type=data.get("type", "string"),
            required=bool(data.get("required", False)),
            selective_disclosure=bool(data.get("selectiveDisclosure", True)),
            default_value=data.get("defaultValue"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "required": self.required,
            "selectiveDisclosure": self.selective_disclosure,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data

    def __repr__(self) -> str:
        return (
            f"ClaimDefinition(key={self.key!r}, required={self.required}, "
            f"selective_disclosure={self.selective_disclosure})"
        )


class CredentialTemplate:
    """A credential type: metadata plus its claim definitions."""

    def __init__(
        self,
        id: str,
        claims: Iterable[ClaimDefinition],
        issuer: str = DEFAULT_ISSUER,
        validity_period_days: int = 365,
        context: Optional[list[str]] = None,
        type: Optional[list[str]] = None,
        name: str = "",
        description: str = "",
        display: Optional[dict[str, Any]] = None,
    ):
        """Initialize a credential template.

        Args:
            id: Template identifier
            claims: Claim definitions in issuance order
            issuer: Issuer URL placed in the ``iss`` claim
            validity_period_days: Credential lifetime in days
            context: JSON-LD ``@context`` values
            type: Verifiable credential types
            name: Display name
            description: Display description
            display: Display metadata (locale, colors, logo)

        Raises:
            ValueError: If two claims share a key, a claim uses the reserved
                subject key ``id``, or the validity period is negative
        """
        self.id = id
        self.claims = list(claims)
        self.issuer = issuer
        self.validity_period_days = validity_period_days
        self.context = list(context or ["https://www.w3.org/2018/credentials/v1"])
        self.type = list(type or ["VerifiableCredential"])
        self.name = name or id
        self.description = description
        self.display = dict(display or {})

        keys = [claim.key for claim in self.claims]
        duplicates = {key for key in keys if keys.count(key) > 1}
        if duplicates:
            raise ValueError(f"Duplicate claim keys in template '{id}': {sorted(duplicates)}")
        if SUBJECT_ID_KEY in keys:
            raise ValueError(f"Claim key '{SUBJECT_ID_KEY}' is reserved for the credential subject")
        if validity_period_days < 0:
            raise ValueError("validity_period_days must not be negative")

    def get_claim(self, key: str) -> Optional[ClaimDefinition]:
        for claim in self.claims:
            if claim.key == key:
                return claim
        return None

    @property
    def selectively_disclosable_keys(self) -> list[str]:
        return [claim.key for claim in self.claims if claim.selective_disclosure]

    @property
    def embedded_keys(self) -> list[str]:
        return [claim.key for claim in self.claims if not claim.selective_disclosure]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CredentialTemplate":
        """Build a template from VCM-style camelCase JSON."""
        return cls(
            id=data["id"],
            claims=[ClaimDefinition.from_dict(claim) for claim in data.get("claims", [])],
            issuer=data.get("issuer", DEFAULT_ISSUER),
            validity_period_days=int(data.get("validityPeriod", 365)),
            context=data.get("context"),
            type=data.get("type"),
            name=data.get("name", ""),
            description=data.get("description", ""),
            display=data.get("display"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": list(self.type),
            "context": list(self.context),
            "claims": [claim.to_dict() for claim in self.claims],
            "display": copy.deepcopy(self.display),
            "validityPeriod": self.validity_period_days,
            "issuer": self.issuer,
        }

    def __repr__(self) -> str:
        return f"CredentialTemplate(id={self.id!r}, claims={len(self.claims)})"


class TemplateRegistry:
    """In-memory template resolver keyed by template id."""

    def __init__(self, templates: Optional[Iterable[CredentialTemplate]] = None):
        self._templates: dict[str, CredentialTemplate] = {}
        for template in templates or []:
            self.register(template)

    def register(self, template: CredentialTemplate) -> None:
        if template.id in self._templates:
            logger.info("Replacing credential template %s", template.id)
        self._templates[template.id] = template

    def register_dicts(self, items: Iterable[dict[str, Any]]) -> int:
        """Register templates from VCM JSON and return how many were added."""
        count = 0
        for item in items:
            self.register(CredentialTemplate.from_dict(item))
            count += 1
        return count

    def resolve(self, template_id: str) -> CredentialTemplate:
        """Resolve a template by id.

        Raises:
            TemplateNotFound: If no template is registered under the id
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFound(template_id) from None

    def remove(self, template_id: str) -> None:
        if self._templates.pop(template_id, None) is None:
            raise TemplateNotFound(template_id)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __iter__(self):
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)


def _display(name: str, background_color: str) -> dict[str, Any]:
    return {
        "name": name,
        "locale": "ja-JP",
        "backgroundColor": background_color,
        "textColor": "#ffffff",
        "logo": {
            "url": f"{DEFAULT_ISSUER}/logo.png",
            "altText": "大学ロゴ",
        },
    }


def _name_claim(description: str = "学生の氏名") -> ClaimDefinition:
    return ClaimDefinition("name", "氏名", description, "string", required=True)


def _student_id_claim() -> ClaimDefinition:
    return ClaimDefinition("studentId", "学籍番号", "大学が発行した学籍番号", "string", required=True)


def builtin_templates() -> list[CredentialTemplate]:
    """Return fresh copies of the built-in university credential templates."""
    return [
        CredentialTemplate(
            id="student-credential",
            name="学生証明書",
            description="大学の在籍を証明する基本的な学生証明書",
            type=["VerifiableCredential", "StudentCredential"],
            context=[
                "https://www.w3.org/2018/credentials/v1",
                "https://www.w3.org/2018/credentials/examples/v1",
            ],
            claims=[
                _name_claim(),
                _student_id_claim(),
                ClaimDefinition("department", "所属学部・学科", "学生が所属する学部・学科", required=True),
                ClaimDefinition(
                    "status", "在籍状況", "現在の在籍状況", required=True, default_value="enrolled"
                ),
                ClaimDefinition("enrollmentDate", "入学年月日", "大学への入学年月日", "date"),
                ClaimDefinition("expectedGraduation", "卒業予定年月", "卒業予定年月", "date"),
            ],
            display=_display("学生証明書", "#1e40af"),
            validity_period_days=365,
        ),
        CredentialTemplate(
            id="academic-transcript",
            name="成績証明書",
            description="学生の学業成績を証明する証明書",
            type=["VerifiableCredential", "AcademicTranscript"],
            context=[
                "https://www.w3.org/2018/credentials/v1",
                "https://schema.org/",
                "https://purl.imsglobal.org/spec/ob/v3p0/context.json",
            ],
            claims=[
                _name_claim(),
                _student_id_claim(),
                ClaimDefinition("gpa", "GPA", "累積成績評価平均", "number", required=True),
                ClaimDefinition("totalCredits", "取得単位数", "取得した総単位数", "number", required=True),
                ClaimDefinition("academicYear", "学年", "現在の学年", required=True),
                ClaimDefinition("major", "専攻", "主専攻分野", required=True),
            ],
            display=_display("成績証明書", "#059669"),
            validity_period_days=90,
        ),
        CredentialTemplate(
            id="graduation-certificate",
            name="卒業証明書",
            description="大学の卒業を証明する証明書",
            type=["VerifiableCredential", "GraduationCertificate"],
            context=[
                "https://www.w3.org/2018/credentials/v1",
                "https://purl.imsglobal.org/spec/ob/v3p0/context.json",
            ],
            claims=[
                _name_claim("卒業生の氏名"),
                _student_id_claim(),
                ClaimDefinition("degree", "学位", "取得した学位", required=True),
                ClaimDefinition("major", "専攻", "主専攻分野", required=True),
                ClaimDefinition("graduationDate", "卒業年月日", "卒業した年月日", "date", required=True),
                ClaimDefinition("honors", "優等学位", "優等学位の有無"),
            ],
            display=_display("卒業証明書", "#7c2d12"),
            validity_period_days=3650,
        ),
        CredentialTemplate(
            id="enrollment-certificate",
            name="在学証明書",
            description="現在の在学状況を証明する証明書",
            type=["VerifiableCredential", "EnrollmentCertificate"],
            context=["https://www.w3.org/2018/credentials/v1"],
            claims=[
                _name_claim(),
                _student_id_claim(),
                ClaimDefinition("currentYear", "現在の学年", "現在在籍している学年", required=True),
                ClaimDefinition(
                    "enrollmentStatus",
                    "在籍区分",
                    "在籍区分（正規生、科目等履修生等）",
                    required=True,
                    default_value="正規生",
                ),
                ClaimDefinition(
                    "expectedGraduation", "卒業予定年月", "卒業予定年月", "date", required=True
                ),
            ],
            display=_display("在学証明書", "#7c3aed"),
            validity_period_days=30,
        ),
    ]


def default_registry() -> TemplateRegistry:
    """Create a registry preloaded with the built-in templates."""
    return TemplateRegistry(builtin_templates())
