"""Ethical Media Analyzer - Configuration
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Settings are read once from the environment (and an optional .env file)
and passed explicitly to everything that needs them.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
}

# Provider-specific credential first, then the generic one
API_KEY_VARS = {
    "gemini": ("GEMINI_API_KEY", "API_KEY"),
    "openai": ("OPENAI_API_KEY", "API_KEY"),
    "anthropic": ("ANTHROPIC_API_KEY", "API_KEY"),
}

SUPPORTED_DATE_LOCALES = ("es", "en")
DEFAULT_ALLOWED_ORIGINS = ("http://localhost:8000", "http://127.0.0.1:8000")


def split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    provider: str = "gemini"
    api_key: Optional[str] = None
    model: Optional[str] = None
    report_language: str = "Spanish"
    translation_language: str = "English"
    date_locale: str = "es"
    transcript_languages: list[str] = field(default_factory=lambda: ["es", "en"])
    max_upload_mb: int = 20
    api_secret_key: Optional[str] = None
    report_author: str = "Polanco, M."
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))

    def __post_init__(self):
        self.provider = (self.provider or "").strip().lower()
        if not self.model:
            self.model = DEFAULT_MODELS.get(self.provider)

    @property
    def max_media_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from os.environ after loading .env (if present)."""
        load_dotenv(env_file)

        provider = os.environ.get("AI_PROVIDER", "gemini").strip().lower()
        api_key = None
        for var in API_KEY_VARS.get(provider, ("API_KEY",)):
            value = os.environ.get(var, "").strip()
            if value:
                api_key = value
                break

        try:
            max_upload_mb = int(os.environ.get("MAX_UPLOAD_MB", "20"))
        except ValueError as e:
            raise ConfigurationError("MAX_UPLOAD_MB must be an integer") from e

        allowed_origins = split_csv(os.environ.get("ALLOWED_ORIGINS", ""))
        if not allowed_origins:
            logger.warning("CORS: No ALLOWED_ORIGINS set - allowing localhost only.")
            allowed_origins = list(DEFAULT_ALLOWED_ORIGINS)

        return cls(
            provider=provider,
            api_key=api_key,
            model=os.environ.get("AI_MODEL", "").strip() or None,
            report_language=os.environ.get("REPORT_LANGUAGE", "Spanish").strip() or "Spanish",
            translation_language=os.environ.get("TRANSLATION_LANGUAGE", "English").strip() or "English",
            date_locale=os.environ.get("DATE_LOCALE", "es").strip().lower() or "es",
            transcript_languages=split_csv(os.environ.get("TRANSCRIPT_LANGUAGES", "es,en")) or ["es", "en"],
            max_upload_mb=max_upload_mb,
            api_secret_key=os.environ.get("API_SECRET_KEY", "").strip() or None,
            report_author=os.environ.get("REPORT_AUTHOR", "Polanco, M.").strip() or "Polanco, M.",
            allowed_origins=allowed_origins,
        )

    def validate(self) -> "Settings":
        """Raise ConfigurationError for anything that would fail later at request time."""
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported AI_PROVIDER '{self.provider}'. Use one of: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if not self.api_key:
            names = " or ".join(API_KEY_VARS[self.provider])
            raise ConfigurationError(f"{names} environment variable not set.")
        if self.date_locale not in SUPPORTED_DATE_LOCALES:
            raise ConfigurationError(
                f"Unsupported DATE_LOCALE '{self.date_locale}'. Use one of: {', '.join(SUPPORTED_DATE_LOCALES)}"
            )
        if self.max_upload_mb <= 0:
            raise ConfigurationError("MAX_UPLOAD_MB must be positive")

        logger.info(f"Configuration OK: provider={self.provider}, model={self.model}, "
                    f"language={self.report_language}, translation={self.translation_language}")
        return self
