"""
Image Host Service
Best-effort Cloudinary upload giving the card a shareable public URL
"""
import base64
import logging
from typing import Optional

import httpx

from allergy_card.config import settings

logger = logging.getLogger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class ImageHostService:
    """Unsigned uploads to Cloudinary"""

    @property
    def enabled(self) -> bool:
        return settings.image_host_enabled

    async def upload_png(self, png_bytes: bytes) -> Optional[str]:
        """
        Upload a PNG and return its public URL.

        Never raises: a failed upload is logged and returns None so the
        email still goes out.
        """
        if not self.enabled:
            return None

        url = CLOUDINARY_UPLOAD_URL.format(cloud_name=settings.cloudinary_cloud_name)
        payload = {
            "file": "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii"),
            "upload_preset": settings.cloudinary_upload_preset,
        }

        try:
            async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                public_url = response.json().get("secure_url")
        except Exception as e:
            logger.warning(f"Card upload failed, sending attachment only: {e}")
            return None

        if public_url:
            logger.info(f"Card uploaded: {public_url}")
        return public_url or None


# Singleton
_service: Optional[ImageHostService] = None


def get_image_host_service() -> ImageHostService:
    """Get singleton image host service"""
    global _service
    if _service is None:
        _service = ImageHostService()
    return _service
