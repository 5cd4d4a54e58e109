"""
Form Input Normalizer
Turns raw form/JSON bodies into a supported language code and a canonical allergen set.

Both functions are total: bad input never raises, it defaults (language -> "en")
or is dropped (unknown allergen tokens).
"""
import re
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Mapping

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "fr", "es", "pt", "zh")

# Order is the display order on the card and in prose
ALLERGENS = ("eggs", "dairy", "peanuts", "tree_nuts", "shellfish", "soy")

CHECKBOX_PREFIX = "allergens_"
_FALSY_STRINGS = {"", "0", "false", "off", "no", "none", "null"}
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class NormalizedSelection:
    """Language and allergens after normalization"""
    language: str
    allergens: FrozenSet[str]


def normalize_language(value: Any) -> str:
    """Lowercase/trim a language code, falling back to English when unsupported"""
    if not isinstance(value, str):
        return DEFAULT_LANGUAGE
    code = value.strip().lower()
    return code if code in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def normalize_token(value: Any) -> str:
    """'Tree Nuts ' -> 'tree_nuts'"""
    return _WHITESPACE.sub("_", str(value).strip().lower())


def collapse_whitespace(value: Any) -> str:
    """'Jo\\n  Smith ' -> 'Jo Smith'; card lines are single-line"""
    return _WHITESPACE.sub(" ", str(value or "")).strip()


def _filter_known(tokens: Iterable[Any]) -> FrozenSet[str]:
    normalized = (normalize_token(t) for t in tokens if t is not None)
    return frozenset(t for t in normalized if t in ALLERGENS)


def _is_checked(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_STRINGS
    if isinstance(value, (list, tuple)):
        return any(_is_checked(v) for v in value)
    return bool(value)


def normalize_allergens(body: Mapping[str, Any]) -> FrozenSet[str]:
    """
    Build the canonical allergen set from any of the accepted input shapes.

    Tried in order, first non-empty result wins:
    1. ``allergens`` is a list/tuple/set of names
    2. ``allergens`` is a comma-separated string
    3. checkbox fields such as ``allergens_tree_nuts=on``

    Returns:
        Subset of ALLERGENS (possibly empty)
    """
    raw = body.get("allergens")
    result: FrozenSet[str] = frozenset()

    if isinstance(raw, (list, tuple, set, frozenset)):
        result = _filter_known(raw)
    elif isinstance(raw, str):
        result = _filter_known(raw.split(","))

    if result:
        return result

    checked = [
        key[len(CHECKBOX_PREFIX):]
        for key, value in body.items()
        if isinstance(key, str)
        and key.lower().startswith(CHECKBOX_PREFIX)
        and _is_checked(value)
    ]
    return _filter_known(checked)


def normalize(body: Mapping[str, Any]) -> NormalizedSelection:
    """Normalize the language and allergens of a raw request body"""
    body = body or {}
    return NormalizedSelection(
        language=normalize_language(body.get("language")),
        allergens=normalize_allergens(body),
    )


def ordered_allergens(allergens: Iterable[str]) -> list:
    """Known allergens in card order, unknown tags dropped"""
    present = set(allergens)
    return [a for a in ALLERGENS if a in present]


def format_allergen_list(allergens: Iterable[str], empty: str = "None specified") -> str:
    """Human-readable, comma-joined allergen names ('tree nuts, soy')"""
    names = [a.replace("_", " ") for a in ordered_allergens(allergens)]
    return ", ".join(names) if names else empty
