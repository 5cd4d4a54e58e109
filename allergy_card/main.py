"""
Allergy Card Mailer - FastAPI Main Application
Renders personalized allergy cards and emails them to the requester
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response

from allergy_card import __version__
from allergy_card.api.card_endpoints import router as card_router
from allergy_card.config import settings
from allergy_card.utils.i18n import LANGUAGE_PROFILES
from allergy_card.utils.logging_config import init_logging

init_logging(environment=settings.environment, debug=settings.debug, level=settings.log_level)
logger = logging.getLogger(__name__)


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers accepted browser pre-flights with 204 No Content"""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


def template_status() -> dict:
    """Which language templates exist on disk"""
    return {
        code: profile.template_path(settings.assets_path).is_file()
        for code, profile in LANGUAGE_PROFILES.items()
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle - startup and shutdown"""
    logger.info("🚀 Starting Allergy Card Mailer...")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   Card mode: {settings.card_mode}")
    logger.info(f"   Email provider: {settings.email_provider}")

    missing = settings.missing_config()
    if missing:
        logger.warning(f"Requests will fail until configured: {', '.join(missing)}")

    if settings.card_mode == "image":
        absent = [code for code, present in template_status().items() if not present]
        if absent:
            logger.warning(f"Missing card templates in {settings.assets_dir}: {', '.join(absent)}")
        else:
            logger.info("✓ Card templates found")

    yield

    logger.info("👋 Shutting down Allergy Card Mailer...")


app = FastAPI(
    title="Allergy Card Mailer",
    description="Generates a personalized allergy card and emails it to the requester",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

if settings.enable_cors:
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )


# ==================
# Core Endpoints
# ==================

@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "name": "Allergy Card Mailer",
        "version": __version__,
        "description": "Allergy card rendering and delivery",
        "card_endpoint": "/api/render-and-email",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    missing = settings.missing_config()
    return {
        "status": "healthy" if not missing else "degraded",
        "environment": settings.environment,
        "card_mode": settings.card_mode,
        "missing_config": missing,
        "components": {
            "openai": "configured" if settings.openai_api_key else "not configured",
            "email": settings.email_provider if settings.email_from else "not configured",
            "image_host": "configured" if settings.image_host_enabled else "disabled",
            "templates": template_status(),
        },
    }


app.include_router(card_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "allergy_card.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
