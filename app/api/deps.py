from fastapi import Request

from app.core.config import Settings
from app.services.mail_service import MailService


def get_app_settings(request: Request) -> Settings:
    """Settings built once at startup and stored on the application."""
    return request.app.state.settings


def get_mail_service(request: Request) -> MailService:
    """Mail service built once at startup and stored on the application."""
    return request.app.state.mail_service
