"""Contact form endpoints for the contact form API.

This module contains the FastAPI route that validates a contact form
submission, composes the operator notification and the auto-reply, and
dispatches both through the mail service.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from app.api.deps import get_app_settings, get_mail_service
from app.api.rate_limit import enforce_contact_rate_limit
from app.core.config import Settings
from app.models.contact import ContactResponse, ContactSubmission, ErrorResponse
from app.services.compose_service import compose_contact_messages
from app.services.mail_service import MailDispatchError, MailService, MailUnknownError
from app.services.validation_service import ContactValidationError, validate_submission
from app.utils.helper_functions import format_local_time

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_MESSAGE = "Message sent successfully! You should receive a confirmation email shortly."


def error_response(
    status_code: int,
    error: str,
    response: Response,
    details: Optional[str] = None,
) -> JSONResponse:
    """Build a `{success: false, error}` body carrying the rate limit headers."""
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=dict(response.headers))


@router.post(
    "/contact",
    response_model=ContactResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Submit contact form",
    description="Validate a contact form submission, notify the operator and send an auto-reply. No authentication required.",
    dependencies=[Depends(enforce_contact_rate_limit)],
)
async def submit_contact_form(
    submission: ContactSubmission,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    mail_service: MailService = Depends(get_mail_service),
):
    """
    Submit a contact form message.

    This endpoint:
    - Sanitizes and validates the submission (400 on the first failing rule)
    - Sends a notification to the operator and an auto-reply to the submitter
    - Reports failure if either email fails, even when the other was delivered

    Args:
        submission: Contact form data
        response: Sub-response carrying the rate limit headers
        settings: Application settings
        mail_service: Service dispatching the two emails

    Returns:
        Confirmation response, or an error body with status 400 or 500
    """
    try:
        sanitized = validate_submission(submission)
    except ContactValidationError as e:
        logger.warning(f"Rejected contact form submission: {e.message}")
        return error_response(status.HTTP_400_BAD_REQUEST, e.message, response)

    received_at = datetime.now(timezone.utc)
    notification, auto_reply = compose_contact_messages(sanitized, settings, received_at)

    try:
        await mail_service.send_batch([notification, auto_reply])
    except MailDispatchError as e:
        logger.error(f"Contact form dispatch failed ({e.kind}) for {sanitized.email}: {e.detail}")
        details = e.detail if settings.is_development and isinstance(e, MailUnknownError) else None
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, e.user_message, response, details
        )

    logger.info(
        f"New contact form submission processed successfully - "
        f"name: {sanitized.name}, email: {sanitized.email}, subject: {sanitized.subject}, "
        f"time: {format_local_time(received_at, settings.TIMEZONE)}"
    )

    return ContactResponse(success=True, message=SUCCESS_MESSAGE)
