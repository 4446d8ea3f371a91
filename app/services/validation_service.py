"""Validation Service Module

Checks a raw contact submission and turns it into a sanitized one.
Rules are applied in a fixed order and the first failing rule wins.
"""

import logging
import re
from typing import Any, Optional

from app.models.contact import ContactSubmission, SanitizedSubmission
from app.utils.helper_functions import sanitize_input

logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 254
NAME_LENGTH = (2, 100)
MESSAGE_LENGTH = (10, 2000)
MAX_SUBJECT_LENGTH = 200

EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

OPTIONAL_FIELDS = ("phone", "company", "budget", "timeline")


class ContactValidationError(Exception):
    """Base class for contact submissions rejected by validation."""

    message = "Invalid contact submission"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingFieldsError(ContactValidationError):
    message = "Name, email, subject, and message are required fields"


class InvalidEmailError(ContactValidationError):
    message = "Please provide a valid email address"


class InvalidNameError(ContactValidationError):
    message = "Name must be between 2 and 100 characters"


class InvalidMessageError(ContactValidationError):
    message = "Message must be between 10 and 2000 characters"


class InvalidSubjectError(ContactValidationError):
    message = "Subject must be less than 200 characters"


def is_valid_email(email: Any) -> bool:
    """Check an address against a conservative RFC 5322 style pattern."""
    if not isinstance(email, str) or len(email) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_submission(submission: ContactSubmission) -> SanitizedSubmission:
    """Validate and sanitize a contact form submission.

    Args:
        submission: Raw submission parsed from the request body

    Returns:
        The sanitized submission

    Raises:
        MissingFieldsError: name, email, subject or message is missing
        InvalidEmailError: the email address is malformed or too long
        InvalidNameError: the sanitized name is not 2-100 characters
        InvalidMessageError: the sanitized message is not 10-2000 characters
        InvalidSubjectError: the sanitized subject exceeds 200 characters
    """
    if not all([submission.name, submission.email, submission.subject, submission.message]):
        raise MissingFieldsError()

    if not is_valid_email(submission.email):
        raise InvalidEmailError()

    sanitized = {
        "name": sanitize_input(submission.name),
        "email": sanitize_input(submission.email).lower(),
        "subject": sanitize_input(submission.subject),
        "message": sanitize_input(submission.message),
    }
    for field in OPTIONAL_FIELDS:
        value = getattr(submission, field)
        sanitized[field] = sanitize_input(value) if value else ""

    if not NAME_LENGTH[0] <= len(sanitized["name"]) <= NAME_LENGTH[1]:
        raise InvalidNameError()

    if not MESSAGE_LENGTH[0] <= len(sanitized["message"]) <= MESSAGE_LENGTH[1]:
        raise InvalidMessageError()

    if len(sanitized["subject"]) > MAX_SUBJECT_LENGTH:
        raise InvalidSubjectError()

    return SanitizedSubmission(**sanitized)
