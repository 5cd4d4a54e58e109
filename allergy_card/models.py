"""
Request and card data models
"""
import re
from dataclasses import dataclass, field
from email.utils import parseaddr
from typing import Any, FrozenSet, List, Mapping, Optional

from allergy_card.utils.normalizer import collapse_whitespace, normalize

# One bare local@domain address; separators and brackets mean a list or a display name
_ADDRESS = re.compile(r"[^@\s,;:<>()\[\]\"]+@[^@\s,;:<>()\[\]\"]+\.[^@\s,;:<>()\[\]\"]+")


def _text(value: Any) -> str:
    """Form fields may arrive as None, numbers, repeated lists or with embedded newlines"""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    return collapse_whitespace(value)


def _address(value: Any) -> str:
    """
    The recipient address, or "" unless the field holds exactly one address.

    "a@b.com, c@d.org" or "Jo <a@b.com>" read as missing so they never
    reach the mail headers.
    """
    raw = _text(value)
    if not _ADDRESS.fullmatch(raw):
        return ""
    _, address = parseaddr(raw)
    return address if address == raw else ""


@dataclass(frozen=True)
class AllergyCardRequest:
    """One card request, built from the HTTP body and discarded after the response"""
    email: str
    name: str = ""
    contact_name: str = ""
    contact_phone: str = ""
    language: str = "en"
    allergens: FrozenSet[str] = frozenset()

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> "AllergyCardRequest":
        """Build a request from a raw form/JSON body (snake_case or camelCase contact keys)"""
        body = body or {}
        selection = normalize(body)
        return cls(
            email=_address(body.get("email")),
            name=_text(body.get("name")),
            contact_name=_text(body.get("contact_name", body.get("contactName"))),
            contact_phone=_text(body.get("contact_phone", body.get("contactPhone"))),
            language=selection.language,
            allergens=selection.allergens,
        )

    def missing_fields(self, require_name: bool = False) -> List[str]:
        """Names of required fields that are empty"""
        missing = []
        if not self.email:
            missing.append("email")
        if require_name and not self.name:
            missing.append("name")
        return missing

    def to_log_dict(self) -> dict:
        return {
            "language": self.language,
            "allergens": sorted(self.allergens),
            "has_contact": bool(self.contact_name or self.contact_phone),
        }


@dataclass
class RenderedCard:
    """A finished card: text block or PNG buffer"""
    language: str
    text: Optional[str] = None
    image: Optional[bytes] = None
    content_type: str = "image/png"
    markers: List[tuple] = field(default_factory=list)

    @property
    def is_image(self) -> bool:
        return self.image is not None

    @property
    def filename(self) -> str:
        return f"allergy-card-{self.language}.png"
