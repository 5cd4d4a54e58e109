"""
Allergy Card Generator
Produces the card for a request: a composited PNG or a generated text block
"""
import logging
from typing import Optional

from allergy_card.config import settings
from allergy_card.models import AllergyCardRequest, RenderedCard
from allergy_card.services.card_text_service import get_card_text_service
from allergy_card.utils.i18n import LanguageProfile, get_profile
from allergy_card.utils.image_generator import compose_card, load_template, marker_positions

logger = logging.getLogger(__name__)


def generate_image_card(
    request: AllergyCardRequest,
    profile: Optional[LanguageProfile] = None,
) -> RenderedCard:
    """
    Render the image card for a request.

    Args:
        request: Normalized card request
        profile: Language profile (looked up from request.language if omitted)

    Returns:
        RenderedCard holding the PNG bytes and the marker coordinates drawn

    Raises:
        TemplateAssetError: the language template is missing or unreadable
    """
    profile = profile or get_profile(request.language)
    template = load_template(profile.template_path(settings.assets_path))

    png = compose_card(
        template,
        name=request.name,
        allergens=request.allergens,
        emergency_line=profile.emergency_line(request.contact_name, request.contact_phone),
        bold_font_path=settings.bold_font,
        regular_font_path=settings.regular_font,
    )
    markers = [point for _, point in marker_positions(request.allergens, template.size)]

    logger.debug(f"Rendered {profile.code} card {template.size} with {len(markers)} marks")
    return RenderedCard(language=profile.code, image=png, markers=markers)


async def generate_text_card(request: AllergyCardRequest) -> RenderedCard:
    """Card text from the text backend, or the fixed fallback when it is down"""
    text = await get_card_text_service().resolve_async(
        request.language,
        request.name,
        request.allergens,
        request.contact_name,
        request.contact_phone,
    )
    return RenderedCard(language=request.language, text=text, content_type="text/plain")
