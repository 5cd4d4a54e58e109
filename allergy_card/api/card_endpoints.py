"""
Allergy Card Endpoints
Single POST endpoint: normalize the form, build the card, email it
"""
import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from allergy_card.config import settings, ConfigurationError
from allergy_card.models import AllergyCardRequest
from allergy_card.services.email_service import (
    Attachment,
    build_image_card_html,
    build_text_card_html,
    get_email_service,
)
from allergy_card.services.image_host_service import get_image_host_service
from allergy_card.utils.card_generator import generate_image_card, generate_text_card
from allergy_card.utils.i18n import get_profile
from allergy_card.utils.logging_config import RequestLogger

router = APIRouter(tags=["Allergy Card"])
logger = logging.getLogger(__name__)

CARD_PATH = "/render-and-email"
CARD_MODES = ("image", "text")
FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message, **extra})


async def read_body(request: Request) -> Dict[str, Any]:
    """
    Parse a JSON or form body into a plain dict.

    Repeated form keys (allergens=eggs&allergens=soy) become lists.
    Unparseable bodies read as empty so they fail validation, not the server.
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        body = {}
        for key in form.keys():
            values = [v for v in form.getlist(key) if isinstance(v, str)]
            if values:
                body[key] = values if len(values) > 1 else values[0]
        return body

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = await request.json()
    except ValueError:
        logger.info("Ignoring unparseable request body")
        return {}
    return data if isinstance(data, dict) else {}


async def _send_image_card(card_request: AllergyCardRequest, log: RequestLogger) -> Dict[str, Any]:
    profile = get_profile(card_request.language)
    card = await run_in_threadpool(generate_image_card, card_request, profile)
    log.info(f"Image card rendered with {len(card.markers)} allergen marks")

    public_url = await get_image_host_service().upload_png(card.image)

    message_id = await get_email_service().send_async(
        card_request.email,
        profile.subject,
        build_image_card_html(profile.greeting(card_request.name), public_url),
        attachments=[Attachment(card.filename, card.image, card.content_type)],
    )
    return {"messageId": message_id, "url": public_url}


async def _send_text_card(card_request: AllergyCardRequest, log: RequestLogger) -> Dict[str, Any]:
    profile = get_profile(card_request.language)
    card = await generate_text_card(card_request)
    log.info("Card text ready")

    message_id = await get_email_service().send_async(
        card_request.email,
        profile.subject,
        build_text_card_html(card.text),
        text_body=card.text,
    )
    return {"messageId": message_id, "card_text": card.text}


@router.post(CARD_PATH)
async def render_and_email(request: Request):
    """
    Build an allergy card from form/JSON input and email it to the requester.

    Image mode composites name, contact line and allergen marks onto the
    language template and attaches the PNG (plus a hosted link when image
    hosting is configured). Text mode emails an AI-written card.
    """
    body = await read_body(request)
    card_request = AllergyCardRequest.from_body(body)
    mode = settings.card_mode.lower()
    log = RequestLogger(uuid.uuid4().hex[:12], card_request.language, mode)

    missing = card_request.missing_fields(require_name=(mode == "text"))
    if missing:
        return _error(400, f"Missing required field(s): {', '.join(missing)}", missing=missing)

    log.info(f"Card requested: {card_request.to_log_dict()}")

    try:
        if mode not in CARD_MODES:
            raise ConfigurationError(f"Unsupported CARD_MODE: {settings.card_mode}")

        missing_config = settings.missing_config(mode)
        if missing_config:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing_config)}")

        if mode == "text":
            result = await _send_text_card(card_request, log)
        else:
            result = await _send_image_card(card_request, log)

    except ConfigurationError as e:
        log.error(str(e))
        return _error(500, str(e))
    except Exception as e:
        log.error(f"Card request failed: {e}", exc_info=True)
        return _error(500, str(e) or "Render or email failed")

    log.info("Card emailed")
    return {"ok": True, "emailed_to": card_request.email, **result}


@router.options(CARD_PATH)
async def card_preflight():
    """CORS pre-flight"""
    if not settings.enable_cors:
        return _error(405, "POST only")
    return Response(status_code=204, headers=CORS_HEADERS)


@router.api_route(CARD_PATH, methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def card_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"ok": False, "error": "POST only"},
        headers={"Allow": "POST, OPTIONS"},
    )
