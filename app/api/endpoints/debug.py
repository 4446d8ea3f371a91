"""Operator diagnostics for the mail configuration.

The report checks which mail settings are present, verifies the transport
and performs a real test send to the sender identity. Only reachable with
the operator debug token.
"""

import logging

from fastapi import APIRouter, Depends, status

from app.api.deps import get_app_settings, get_mail_service
from app.api.operator_guard import operator_guard
from app.core.config import Settings
from app.models.contact import CheckResult, DebugReport
from app.services.mail_service import MailDispatchError, MailService
from app.utils.helper_functions import now_utc_iso

logger = logging.getLogger(__name__)

router = APIRouter()

GMAIL_APP_PASSWORD_LENGTH = 16


def environment_checks(settings: Settings) -> dict:
    checks = {
        "EMAIL_SENDER": bool(settings.EMAIL_SENDER),
        "NOTIFICATION_EMAIL": bool(settings.NOTIFICATION_EMAIL),
        "EMAIL_SENDER_VALUE": settings.EMAIL_SENDER or "NOT SET",
        "NOTIFICATION_EMAIL_VALUE": settings.NOTIFICATION_EMAIL or "NOT SET",
    }
    if settings.MAIL_TRANSPORT == "ses":
        checks["AWS_ACCESS_KEY_ID"] = bool(settings.AWS_ACCESS_KEY_ID)
        checks["AWS_SECRET_ACCESS_KEY"] = bool(settings.AWS_SECRET_ACCESS_KEY)
        checks["AWS_REGION_VALUE"] = settings.AWS_REGION
    else:
        checks["EMAIL_PASSWORD"] = bool(settings.EMAIL_PASSWORD)
        checks["EMAIL_PASSWORD_LENGTH"] = len(settings.EMAIL_PASSWORD or "")
        checks["SMTP_HOST_VALUE"] = f"{settings.SMTP_HOST}:{settings.SMTP_PORT}"
    return checks


def build_recommendations(
    settings: Settings, checks: dict, transporter: CheckResult
) -> list:
    recommendations = [
        f"{name} environment variable is missing" for name in settings.missing_required()
    ]

    if (
        settings.MAIL_TRANSPORT == "smtp"
        and "gmail" in settings.SMTP_HOST
        and checks.get("EMAIL_PASSWORD_LENGTH", 0) < GMAIL_APP_PASSWORD_LENGTH
    ):
        recommendations.append(
            "EMAIL_PASSWORD seems too short for a Gmail App Password (should be 16 characters)"
        )

    if transporter.status == "ERROR" and transporter.error:
        if "Username and Password not accepted" in transporter.error:
            recommendations.append(
                "Gmail rejected credentials - ensure 2FA is enabled and you're using an App Password"
            )
        elif transporter.kind == "auth":
            recommendations.append(
                "Invalid mail credentials - check EMAIL_SENDER and the transport credentials"
            )
        elif transporter.kind in ("connection", "timeout"):
            recommendations.append(
                "Mail provider unreachable - check network access and the SMTP/SES endpoint"
            )

    if not recommendations:
        recommendations.append("Configuration looks good!")
    return recommendations


@router.get(
    "/debug",
    response_model=DebugReport,
    status_code=status.HTTP_200_OK,
    summary="Mail configuration diagnostics",
    description="Operator only. Verifies the mail transport and sends a real test email.",
    dependencies=[Depends(operator_guard)],
)
async def debug_mail_configuration(
    settings: Settings = Depends(get_app_settings),
    mail_service: MailService = Depends(get_mail_service),
) -> DebugReport:
    logger.info("Starting email configuration debug...")
    checks = environment_checks(settings)

    try:
        await mail_service.verify()
        transporter = CheckResult(status="OK")
    except MailDispatchError as e:
        logger.error(f"Transport verification failed ({e.kind}): {e.detail}")
        transporter = CheckResult(status="ERROR", error=e.detail, kind=e.kind)

    if transporter.status == "OK":
        try:
            await mail_service.send(mail_service.build_test_message())
            email_test = CheckResult(status="SUCCESS")
        except MailDispatchError as e:
            email_test = CheckResult(status="ERROR", error=e.detail, kind=e.kind)
    else:
        email_test = CheckResult(status="SKIPPED")

    return DebugReport(
        success=True,
        timestamp=now_utc_iso(),
        transport=mail_service.transport_name,
        environment=checks,
        transporter=transporter,
        emailTest=email_test,
        recommendations=build_recommendations(settings, checks, transporter),
    )
