"""
Card Text Service
Writes the allergy card text with OpenAI, with a deterministic template as backstop
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from openai import OpenAI

from allergy_card.config import settings
from allergy_card.utils.normalizer import ordered_allergens, format_allergen_list

logger = logging.getLogger(__name__)

SAFETY_SENTENCE = "Please ensure my food does not contain these allergens."


class CardTextError(RuntimeError):
    """The text backend failed or returned nothing usable"""


def build_prompt(
    language: str,
    name: str,
    allergens: Iterable[str],
    contact_name: str = "",
    contact_phone: str = "",
) -> str:
    """Prompt asking for a four-line card in the target language"""
    listed = format_allergen_list(allergens, empty="several foods")
    return f"""Write a 4-line "allergy card" in {language}. Use short, clear, polite language. No emojis.
Format with **bold** for the name and the "Emergency Contact" label.

Lines to include (exactly these ideas):
1) **{name or "Name not provided"}**
2) A sentence: "I am severely allergic to: {listed}."
3) A sentence: "Do not feed me foods containing these allergens."
4) **Emergency Contact:** {contact_name or "N/A"} - {contact_phone or "N/A"}

If allergens are English, translate the food names naturally into {language}.
Return only the final card as plain text with line breaks (no extra commentary)."""


def fallback_card_text(
    language: str,
    name: str,
    allergens: Iterable[str],
    contact_name: str = "",
    contact_phone: str = "",
) -> str:
    """
    Fixed-format card used when the text backend is unavailable.

    Pure function of its inputs; no network, no randomness.
    """
    contact = (contact_name or "").strip() or "N/A"
    phone = (contact_phone or "").strip()
    if phone:
        contact = f"{contact} ({phone})"

    lines = [
        (name or "").strip() or "Name not provided",
        f"Allergies: {format_allergen_list(allergens)}",
        SAFETY_SENTENCE,
        f"Emergency Contact: {contact}",
        f"Language: {(language or 'en').upper()}",
    ]
    return "\n".join(lines)


class CardTextService:
    """
    Two-tier card text resolver.
    Tries OpenAI first; any failure there falls back to fallback_card_text().
    """

    def __init__(self):
        self._client: Optional[OpenAI] = None
        self._executor = ThreadPoolExecutor(max_workers=4)  # OpenAI SDK is blocking

    @property
    def client(self) -> OpenAI:
        """Lazy load OpenAI client"""
        if self._client is None:
            if not settings.openai_api_key:
                raise CardTextError("OPENAI_API_KEY not configured")
            self._client = OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.request_timeout_seconds,
            )
        return self._client

    def try_primary(
        self,
        language: str,
        name: str,
        allergens: Iterable[str],
        contact_name: str = "",
        contact_phone: str = "",
    ) -> str:
        """Generate the card with OpenAI, raising CardTextError on any failure"""
        prompt = build_prompt(language, name, ordered_allergens(allergens), contact_name, contact_phone)
        try:
            response = self.client.chat.completions.create(
                model=settings.openai_model,
                temperature=settings.openai_temperature,
                messages=[{"role": "user", "content": prompt}],
            )
            content = response.choices[0].message.content if response.choices else None
        except CardTextError:
            raise
        except Exception as e:
            raise CardTextError(f"OpenAI request failed: {e}") from e

        text = (content or "").strip()
        if not text:
            raise CardTextError("OpenAI returned an empty card")
        return text

    def resolve(
        self,
        language: str,
        name: str,
        allergens: Iterable[str],
        contact_name: str = "",
        contact_phone: str = "",
    ) -> str:
        """Card text in the target language; never raises for backend problems"""
        allergens = ordered_allergens(allergens)
        try:
            return self.try_primary(language, name, allergens, contact_name, contact_phone)
        except CardTextError as e:
            logger.warning(f"Card text backend unavailable, using fallback: {e}")
            return fallback_card_text(language, name, allergens, contact_name, contact_phone)

    async def resolve_async(self, *args, **kwargs) -> str:
        """resolve() on the worker pool so the event loop keeps serving"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, lambda: self.resolve(*args, **kwargs))


# Singleton
_service: Optional[CardTextService] = None


def get_card_text_service() -> CardTextService:
    """Get singleton card text service"""
    global _service
    if _service is None:
        _service = CardTextService()
    return _service
