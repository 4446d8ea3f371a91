"""
MailService Module

This module dispatches composed emails through a pluggable transport
(SMTP or Amazon SES) and classifies transport failures into a small
error taxonomy the API can map onto user facing messages.
"""

import asyncio
import smtplib
import socket
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.models.contact import OutgoingMessage

import logging

logger = logging.getLogger(__name__)


class MailDispatchError(Exception):
    """Base class for failures raised while dispatching mail."""

    kind = "unknown"
    user_message = "Failed to send message. Please try again later."

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class MailAuthError(MailDispatchError):
    """The provider rejected the configured credentials."""

    kind = "auth"
    user_message = "Email authentication failed. Please contact support."


class MailConnectionError(MailDispatchError):
    """The provider could not be reached."""

    kind = "connection"
    user_message = "Connection failed. Please check your internet connection and try again."


class MailTimeoutError(MailDispatchError):
    """The provider did not answer within the transport timeouts."""

    kind = "timeout"
    user_message = "Request timed out. Please try again."


class MailUnknownError(MailDispatchError):
    """Any other dispatch failure."""

    kind = "unknown"


def create_email_multipart_message(message: OutgoingMessage) -> MIMEMultipart:
    """
    Creates a MIME multipart email message from a composed message.

    The message is `multipart/alternative` when both a plain text and an HTML
    body are present, so clients can pick the variant they support.

    Args:
        message (OutgoingMessage): The composed message.

    Returns:
        MIMEMultipart: The constructed email message ready to be sent.
    """
    if message.text_body and message.html_body:
        content_subtype = "alternative"
    else:
        content_subtype = "mixed"

    mime = MIMEMultipart(content_subtype)
    mime["Subject"] = message.subject

    # if sender_name is provided, the format will be 'Sender Name <email@example.com>'
    if message.sender_name:
        mime["From"] = formataddr((message.sender_name, message.sender))
    else:
        mime["From"] = message.sender

    mime["To"] = message.recipient
    if message.reply_to:
        mime["Reply-To"] = message.reply_to

    # plain text first, clients prefer the last alternative they understand
    if message.text_body:
        mime.attach(MIMEText(message.text_body, "plain", "utf-8"))
    if message.html_body:
        mime.attach(MIMEText(message.html_body, "html", "utf-8"))

    return mime


class SMTPTransport:
    """Sends mail through an SMTP server using the sender's credentials."""

    name = "smtp"

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.use_ssl = settings.SMTP_USE_SSL
        self.username = settings.EMAIL_SENDER
        self.password = settings.EMAIL_PASSWORD
        self.timeout = settings.MAIL_TIMEOUT_SECONDS

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            server = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=context
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if not self.use_ssl:
                server.starttls(context=context)
            server.login(self.username, self.password)
        except Exception:
            server.close()
            raise
        return server

    @staticmethod
    def classify(error: Exception) -> MailDispatchError:
        """Map an smtplib/socket error onto the dispatch error taxonomy."""
        if isinstance(error, MailDispatchError):
            return error
        if isinstance(error, smtplib.SMTPAuthenticationError):
            return MailAuthError(str(error))
        if isinstance(error, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)):
            return MailConnectionError(str(error))
        # SMTPException derives from OSError, so it must be matched before it
        if isinstance(error, smtplib.SMTPException):
            return MailUnknownError(str(error))
        if isinstance(error, (socket.timeout, TimeoutError)):
            return MailTimeoutError(str(error) or "SMTP operation timed out")
        if isinstance(error, OSError):
            return MailConnectionError(str(error))
        return MailUnknownError(str(error))

    def send(self, message: OutgoingMessage) -> None:
        try:
            with self._connect() as server:
                server.send_message(
                    create_email_multipart_message(message),
                    from_addr=message.sender,
                    to_addrs=[message.recipient],
                )
        except Exception as e:
            raise self.classify(e) from e

    def verify(self) -> None:
        try:
            with self._connect() as server:
                server.noop()
        except Exception as e:
            raise self.classify(e) from e


AUTH_ERROR_CODES = {
    "InvalidClientTokenId",
    "SignatureDoesNotMatch",
    "UnrecognizedClientException",
    "InvalidAccessKeyId",
    "MissingAuthenticationToken",
    "AccessDenied",
    "AccessDeniedException",
    "ExpiredToken",
}


class SESTransport:
    """Sends mail through Amazon SES."""

    name = "ses"

    def __init__(self, settings: Settings, client=None):
        self.ses_client = client or boto3.client(
            "ses",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION,
            config=Config(
                connect_timeout=settings.MAIL_TIMEOUT_SECONDS,
                read_timeout=settings.MAIL_TIMEOUT_SECONDS,
                retries={"total_max_attempts": 1},
            ),
        )

    @staticmethod
    def classify(error: Exception) -> MailDispatchError:
        """Map a botocore error onto the dispatch error taxonomy."""
        if isinstance(error, MailDispatchError):
            return error
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            message = error.response.get("Error", {}).get("Message", str(error))
            if code in AUTH_ERROR_CODES:
                return MailAuthError(message)
            return MailUnknownError(message)
        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return MailAuthError(str(error))
        if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)):
            return MailTimeoutError(str(error))
        if isinstance(error, (EndpointConnectionError, BotoConnectionError)):
            return MailConnectionError(str(error))
        return MailUnknownError(str(error))

    def send(self, message: OutgoingMessage) -> None:
        try:
            mime = create_email_multipart_message(message)
            self.ses_client.send_raw_email(
                Source=message.sender,
                Destinations=[message.recipient],
                RawMessage={"Data": mime.as_string()},
            )
        except Exception as e:
            raise self.classify(e) from e

    def verify(self) -> None:
        try:
            self.ses_client.get_send_quota()
        except Exception as e:
            raise self.classify(e) from e


def create_transport(settings: Settings):
    if settings.MAIL_TRANSPORT == "ses":
        return SESTransport(settings)
    return SMTPTransport(settings)


class MailService:
    """Dispatches composed messages through the configured transport.

    Sends are never retried; every failure reaches the caller once as a
    MailDispatchError subclass.
    """

    def __init__(self, settings: Settings, transport=None):
        self.settings = settings
        self.transport = transport or create_transport(settings)

    @property
    def transport_name(self) -> str:
        return getattr(self.transport, "name", type(self.transport).__name__)

    async def send(self, message: OutgoingMessage) -> None:
        """
        Send a single message.

        Args:
            message: The composed message

        Raises:
            MailDispatchError: The transport failed to deliver the message
        """
        try:
            await run_in_threadpool(self.transport.send, message)
        except MailDispatchError as e:
            logger.error(
                f"Failed to send email to {message.recipient} ({e.kind}): {e.detail}"
            )
            raise
        except Exception as e:
            logger.error(f"Unexpected error sending email to {message.recipient}: {str(e)}")
            raise MailUnknownError(str(e)) from e

        logger.info(f"Email sent successfully to {message.recipient}")

    async def send_batch(self, messages: Sequence[OutgoingMessage]) -> None:
        """
        Send several messages concurrently.

        Succeeds only when every send succeeds. The first failure is raised;
        messages already delivered cannot be recalled.

        Raises:
            MailDispatchError: At least one message failed
        """
        await asyncio.gather(*(self.send(message) for message in messages))

    async def verify(self) -> None:
        """
        Check that the transport is reachable with the configured credentials.

        Raises:
            MailDispatchError: The check failed
        """
        try:
            await run_in_threadpool(self.transport.verify)
        except MailDispatchError:
            raise
        except Exception as e:
            raise MailUnknownError(str(e)) from e
        logger.info(f"Email configuration verified successfully ({self.transport_name})")

    def build_test_message(self) -> OutgoingMessage:
        """A minimal message from the sender identity to itself."""
        text = "This is a test email from your contact form debug endpoint."
        return OutgoingMessage(
            sender=self.settings.EMAIL_SENDER,
            sender_name=self.settings.EMAIL_SENDER_NAME,
            recipient=self.settings.EMAIL_SENDER,
            subject="Test Email - Debug",
            html_body="",
            text_body=text,
        )
