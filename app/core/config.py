"""Configuration settings for the contact form API.

This module manages environment variables and application settings.
"""
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


DEFAULT_FRONTEND_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


class ConfigurationError(Exception):
    """Raised when required configuration is missing at startup."""

    pass


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings.

    Attributes:
        API_PREFIX: Path prefix shared by every endpoint
        PROJECT_NAME: Name of the project, reported by the info endpoint
        ENVIRONMENT: Deployment environment, "development" exposes error details
        EMAIL_SENDER: Mail account identity used as sender and SMTP username
        EMAIL_PASSWORD: SMTP credential for the sender account
        NOTIFICATION_EMAIL: Operator address receiving contact notifications
        MAIL_TRANSPORT: Either "smtp" or "ses"
        DEBUG_TOKEN: Operator token guarding the debug endpoint
    """
    def __init__(self):
        self.API_PREFIX = "/api"
        self.PROJECT_NAME = os.getenv("PROJECT_NAME", "Portfolio Contact Form API")
        self.VERSION = "2.0.0"
        self.DEBUG = _as_bool(os.getenv("DEBUG", "False"))
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.PORT = int(os.getenv("PORT", 3001))

        # CORS Settings
        frontend_url = os.getenv("FRONTEND_URL")
        self.FRONTEND_ORIGINS = (
            _as_list(frontend_url) if frontend_url else list(DEFAULT_FRONTEND_ORIGINS)
        )
        self.TRUST_PROXY = _as_bool(os.getenv("TRUST_PROXY", "False"))

        # Email Settings
        self.EMAIL_SENDER = os.getenv("EMAIL_SENDER")
        self.EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Portfolio Contact Form")
        self.EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
        self.NOTIFICATION_EMAIL = os.getenv("NOTIFICATION_EMAIL")
        self.MAIL_TRANSPORT = os.getenv("MAIL_TRANSPORT", "smtp").lower()
        self.MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", 60))
        self.VERIFY_MAIL_ON_STARTUP = _as_bool(os.getenv("VERIFY_MAIL_ON_STARTUP", "True"))

        # SMTP Settings
        self.SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", 465))
        self.SMTP_USE_SSL = _as_bool(os.getenv("SMTP_USE_SSL", "True"))

        # AWS SETTINGS
        self.AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
        self.AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
        self.AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

        # Auto-reply signature
        self.OWNER_NAME = os.getenv("OWNER_NAME", "The Team")
        self.OWNER_LINKS = _as_list(os.getenv("OWNER_LINKS", ""))
        self.TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")

        # Rate limiting
        self.RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", 10))
        self.RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 15 * 60))

        # Debug endpoint
        self.DEBUG_TOKEN = os.getenv("DEBUG_TOKEN")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def notification_recipient(self) -> str:
        """Operator address, falling back to the sender identity."""
        return self.NOTIFICATION_EMAIL or self.EMAIL_SENDER

    def missing_required(self) -> List[str]:
        """Names of required variables that are not set for the chosen transport."""
        required = ["EMAIL_SENDER"]
        if self.MAIL_TRANSPORT == "ses":
            required += ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]
        else:
            required.append("EMAIL_PASSWORD")
        return [name for name in required if not getattr(self, name)]

    def validate(self) -> None:
        if self.MAIL_TRANSPORT not in ("smtp", "ses"):
            raise ConfigurationError(
                f"MAIL_TRANSPORT must be 'smtp' or 'ses', got '{self.MAIL_TRANSPORT}'"
            )
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
