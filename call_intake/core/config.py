"""
Application configuration.

Everything is read once from environment variables / the .env file at
import time. The record store URL and the Gemini key are required; the
CRM auth code is optional and its absence only disables forwarding.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Record store
    DATABASE_URL: str

    # Gemini (call analysis)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    COMPANY_NAME: str = "Justauto Solution Pvt. Ltd."

    # External CRM
    EXTERNAL_CRM_AUTHCODE: str = ""
    CRM_URL: str = "https://indiavoice.rpdigitalphone.com/api_v2/savecontact_v2"
    CRM_BODY_FORMAT: str = "json"  # "json" or "form"

    # In-call "databasecheck" tool
    DATABASE_CHECK_ENABLED: bool = True

    HTTP_TIMEOUT_SECONDS: float = 30.0

    class Config:
        env_file = ".env"


settings = Settings()

if not settings.GEMINI_API_KEY:
    raise ValueError(
        "GEMINI_API_KEY is not set. Export it or add it to the .env file; "
        "call analysis cannot run without it."
    )

if settings.CRM_BODY_FORMAT not in ("json", "form"):
    raise ValueError(
        f"CRM_BODY_FORMAT must be 'json' or 'form', got {settings.CRM_BODY_FORMAT!r}"
    )

if not settings.EXTERNAL_CRM_AUTHCODE:
    logger.warning("EXTERNAL_CRM_AUTHCODE is not set; CRM forwarding is disabled.")
