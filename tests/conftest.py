"""
PyTest Configuration and Shared Fixtures
"""
import pytest
from pathlib import Path
from unittest.mock import MagicMock, AsyncMock, patch

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image, ImageDraw

TEMPLATE_SIZE = (1050, 600)
LANGUAGES = ("en", "fr", "es", "pt", "zh")


def make_template(path: Path, size=TEMPLATE_SIZE) -> Path:
    """White card with the dark red contact bar along the bottom"""
    img = Image.new("RGB", size, "white")
    draw = ImageDraw.Draw(img)
    draw.rectangle([(0, size[1] - 95), (size[0], size[1])], fill="#B71C1C")
    img.save(path, format="PNG")
    return path


@pytest.fixture
def template_factory():
    """make_template, for tests that need odd sizes or names"""
    return make_template


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Assets directory holding a template for every language"""
    assets = tmp_path / "assets"
    assets.mkdir()
    for code in LANGUAGES:
        make_template(assets / f"template-{code}.png")
    return assets


@pytest.fixture
def configured_settings(template_dir):
    """Fully configured SMTP + image mode, no image hosting"""
    values = {
        "card_mode": "image",
        "email_provider": "smtp",
        "email_from": "cards@example.com",
        "smtp_host": "smtp.example.com",
        "smtp_user": "user",
        "smtp_pass": "secret",
        "openai_api_key": "sk-test",
        "assets_dir": str(template_dir),
        "cloudinary_cloud_name": "",
        "cloudinary_upload_preset": "",
    }
    with patch.multiple("allergy_card.config.settings", **values):
        from allergy_card.config import settings
        yield settings


@pytest.fixture
def mock_email_service():
    """Email service whose send_async records the call"""
    with patch("allergy_card.api.card_endpoints.get_email_service") as mock:
        service = MagicMock()
        service.send_async = AsyncMock(return_value="<msg-123@example.com>")
        mock.return_value = service
        yield service


@pytest.fixture
def mock_card_text_service():
    """Card text service used by the text-card path"""
    with patch("allergy_card.utils.card_generator.get_card_text_service") as mock:
        service = MagicMock()
        service.resolve_async = AsyncMock(return_value="JO\nI am severely allergic to: eggs.")
        mock.return_value = service
        yield service


@pytest.fixture
def test_client():
    """Create FastAPI test client"""
    from fastapi.testclient import TestClient
    from allergy_card.main import app

    return TestClient(app)
