"""
Allergy Card Mailer - Configuration Management
Uses pydantic-settings for type-safe environment variable loading
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when a required credential or setting is missing"""


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    debug: bool = True
    card_mode: str = "image"  # "image" (composited PNG) or "text" (generated card text)
    enable_cors: bool = True

    # OpenAI (card text)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.2

    # Email
    email_provider: str = "smtp"  # "smtp" or "resend"
    email_from: str = ""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_use_tls: bool = True  # STARTTLS on 587
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"

    # Optional image hosting (Cloudinary unsigned upload)
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""

    # Assets
    assets_dir: str = "./assets"
    font_bold_path: Optional[str] = None
    font_regular_path: Optional[str] = None

    # Outbound HTTP
    request_timeout_seconds: float = 15.0

    # Logging
    log_level: str = "INFO"

    # Paths
    @property
    def assets_path(self) -> Path:
        return Path(self.assets_dir)

    @property
    def bold_font(self) -> Path:
        return Path(self.font_bold_path) if self.font_bold_path else self.assets_path / "OpenSans-Bold.ttf"

    @property
    def regular_font(self) -> Path:
        return Path(self.font_regular_path) if self.font_regular_path else self.assets_path / "OpenSans-Regular.ttf"

    @property
    def image_host_enabled(self) -> bool:
        return bool(self.cloudinary_cloud_name and self.cloudinary_upload_preset)

    def missing_config(self, card_mode: Optional[str] = None) -> List[str]:
        """
        List the environment variables a request needs but that are empty.

        Args:
            card_mode: "image" or "text" (defaults to the configured mode)

        Returns:
            Upper-case variable names, empty when fully configured
        """
        mode = (card_mode or self.card_mode).lower()
        missing = []

        if mode == "text" and not self.openai_api_key:
            missing.append("OPENAI_API_KEY")

        provider = self.email_provider.lower()
        if provider == "smtp":
            for name in ("smtp_host", "smtp_user", "smtp_pass"):
                if not getattr(self, name):
                    missing.append(name.upper())
        elif provider == "resend":
            if not self.resend_api_key:
                missing.append("RESEND_API_KEY")
        else:
            missing.append("EMAIL_PROVIDER")

        if not self.email_from:
            missing.append("EMAIL_FROM")

        return missing

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


# Convenience exports
settings = get_settings()
