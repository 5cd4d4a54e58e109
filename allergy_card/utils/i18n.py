"""
Per-language card profiles
Template image, emergency-contact label, email subject and greeting for each supported language.
"""
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union

from allergy_card.utils.normalizer import DEFAULT_LANGUAGE


def _with_name(prefix: str, name: Optional[str], suffix: str) -> str:
    name = (name or "").strip()
    return f"{prefix} {name}{suffix}" if name else f"{prefix}{suffix}"


@dataclass(frozen=True)
class LanguageProfile:
    """Static, read-only localization data for one language"""
    code: str
    template: str  # file name inside the assets directory
    emergency_label: str
    subject: str
    greeting: Callable[[Optional[str]], str]

    def template_path(self, assets_dir: Union[str, Path]) -> Path:
        return Path(assets_dir) / self.template

    def emergency_line(self, contact_name: str = "", contact_phone: str = "") -> str:
        """Label, contact name and phone joined by spaces; empty parts leave extra spaces"""
        return f"{self.emergency_label} {contact_name or ''} {contact_phone or ''}"


LANGUAGE_PROFILES: Mapping[str, LanguageProfile] = MappingProxyType({
    "en": LanguageProfile(
        code="en",
        template="template-en.png",
        emergency_label="Emergency Contact:",
        subject="Your Allergy Card",
        greeting=lambda n: f"Hi {(n or '').strip() or 'there'}, your allergy card is ready.",
    ),
    "fr": LanguageProfile(
        code="fr",
        template="template-fr.png",
        emergency_label="Contact d’urgence :",
        subject="Votre carte d’allergies",
        greeting=lambda n: _with_name("Bonjour", n, ", votre carte d’allergies est prête."),
    ),
    "es": LanguageProfile(
        code="es",
        template="template-es.png",
        emergency_label="Contacto de emergencia:",
        subject="Tu tarjeta de alergias",
        greeting=lambda n: _with_name("Hola", n, ", tu tarjeta de alergias está lista."),
    ),
    "pt": LanguageProfile(
        code="pt",
        template="template-pt.png",
        emergency_label="Contacto de emergência:",
        subject="Seu cartão de alergias",
        greeting=lambda n: _with_name("Olá", n, ", seu cartão de alergias está pronto."),
    ),
    "zh": LanguageProfile(
        code="zh",
        template="template-zh.png",
        emergency_label="紧急联系人：",
        subject="过敏卡已生成",
        greeting=lambda n: "您的过敏卡已生成。",
    ),
})

# Allergen names printed on the placeholder templates
ALLERGEN_LABELS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "en": {"eggs": "Eggs", "dairy": "Dairy", "peanuts": "Peanuts",
           "tree_nuts": "Tree nuts", "shellfish": "Shellfish", "soy": "Soy"},
    "fr": {"eggs": "Œufs", "dairy": "Lait", "peanuts": "Arachides",
           "tree_nuts": "Fruits à coque", "shellfish": "Crustacés", "soy": "Soja"},
    "es": {"eggs": "Huevos", "dairy": "Lácteos", "peanuts": "Cacahuetes",
           "tree_nuts": "Frutos secos", "shellfish": "Mariscos", "soy": "Soja"},
    "pt": {"eggs": "Ovos", "dairy": "Laticínios", "peanuts": "Amendoins",
           "tree_nuts": "Frutos secos", "shellfish": "Marisco", "soy": "Soja"},
    "zh": {"eggs": "鸡蛋", "dairy": "乳制品", "peanuts": "花生",
           "tree_nuts": "坚果", "shellfish": "贝类", "soy": "大豆"},
})


def get_profile(language: Optional[str]) -> LanguageProfile:
    """Profile for a language code; unknown codes get English"""
    return LANGUAGE_PROFILES.get((language or "").lower(), LANGUAGE_PROFILES[DEFAULT_LANGUAGE])


def get_allergen_label(allergen: str, language: str = DEFAULT_LANGUAGE) -> str:
    labels = ALLERGEN_LABELS.get(language, ALLERGEN_LABELS[DEFAULT_LANGUAGE])
    return labels.get(allergen, allergen.replace("_", " "))
