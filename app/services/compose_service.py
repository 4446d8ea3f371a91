"""
Compose Service Module

Builds the operator notification and the submitter auto-reply for a
contact submission by rendering Jinja2 templates. Rendering is pure:
nothing here touches the network.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import Settings
from app.models.contact import OutgoingMessage, SanitizedSubmission
from app.utils.helper_functions import format_local_time

import logging

logger = logging.getLogger(__name__)

# HTML templates are autoescaped, plain text templates are rendered verbatim
template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
jinja_env = Environment(
    loader=FileSystemLoader(template_dir),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

NOTIFICATION_TEMPLATE = "contact_notification"
AUTO_REPLY_TEMPLATE = "contact_auto_reply"

NEXT_STEPS = [
    "I'll review your project details carefully",
    "You'll hear back from me within 24 hours",
    "We can schedule a call to discuss your vision in detail",
]


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    """Render a single template from the templates directory."""
    return jinja_env.get_template(template_name).render(**context)


def render_pair(template_base: str, context: Dict[str, Any]) -> Tuple[str, str]:
    """Render the HTML and plain text variants of a template.

    Both variants receive the same context, so they show the same values.

    Returns:
        Tuple of (html_body, text_body)
    """
    html_body = render_template(f"{template_base}.html", context)
    text_body = render_template(f"{template_base}.txt", context)
    return html_body, text_body.strip() + "\n"


def _header_text(value: str) -> str:
    # header values must stay on one line
    return " ".join(value.split())


def _client_fields(submission: SanitizedSubmission) -> List[Tuple[str, str]]:
    fields = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Subject", submission.subject),
    ]
    if submission.phone:
        fields.append(("Phone", submission.phone))
    if submission.company:
        fields.append(("Company", submission.company))
    return fields


def _project_fields(submission: SanitizedSubmission) -> List[Tuple[str, str]]:
    fields = []
    if submission.budget:
        fields.append(("Budget", submission.budget))
    if submission.timeline:
        fields.append(("Timeline", submission.timeline))
    return fields


def compose_notification(
    submission: SanitizedSubmission,
    settings: Settings,
    received_at: Optional[datetime] = None,
) -> OutgoingMessage:
    """Compose the message telling the operator about a new inquiry.

    Args:
        submission: Validated submission
        settings: Application settings providing sender and operator addresses
        received_at: When the submission arrived, defaults to now

    Returns:
        The notification message addressed to the operator
    """
    received_at = received_at or datetime.now(timezone.utc)
    context = {
        "submission": submission,
        "client_fields": _client_fields(submission),
        "project_fields": _project_fields(submission),
        "received_at": format_local_time(received_at, settings.TIMEZONE),
        "project_name": settings.PROJECT_NAME,
    }
    html_body, text_body = render_pair(NOTIFICATION_TEMPLATE, context)

    return OutgoingMessage(
        sender=settings.EMAIL_SENDER,
        sender_name=settings.EMAIL_SENDER_NAME,
        recipient=settings.notification_recipient,
        subject=f"New Project Inquiry: {_header_text(submission.subject)}",
        html_body=html_body,
        text_body=text_body,
        reply_to=submission.email,
    )


def compose_auto_reply(
    submission: SanitizedSubmission, settings: Settings
) -> OutgoingMessage:
    """Compose the acknowledgment sent back to the submitter."""
    context = {
        "submission": submission,
        "next_steps": NEXT_STEPS,
        "links": settings.OWNER_LINKS,
        "owner_name": settings.OWNER_NAME,
    }
    html_body, text_body = render_pair(AUTO_REPLY_TEMPLATE, context)

    return OutgoingMessage(
        sender=settings.EMAIL_SENDER,
        sender_name=settings.EMAIL_SENDER_NAME,
        recipient=submission.email,
        subject=f"Thanks for reaching out! Re: {_header_text(submission.subject)}",
        html_body=html_body,
        text_body=text_body,
    )


def compose_contact_messages(
    submission: SanitizedSubmission,
    settings: Settings,
    received_at: Optional[datetime] = None,
) -> Tuple[OutgoingMessage, OutgoingMessage]:
    """Compose both messages for a submission.

    Returns:
        Tuple of (notification, auto_reply)
    """
    notification = compose_notification(submission, settings, received_at)
    auto_reply = compose_auto_reply(submission, settings)
    logger.debug(f"Composed contact messages for {submission.email}")
    return notification, auto_reply
