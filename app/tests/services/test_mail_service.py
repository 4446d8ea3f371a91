import smtplib
import socket
import ssl
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
)

from app.core.config import Settings
from app.models.contact import OutgoingMessage
from app.services.mail_service import (
    MailAuthError,
    MailConnectionError,
    MailService,
    MailTimeoutError,
    MailUnknownError,
    SESTransport,
    SMTPTransport,
    create_email_multipart_message,
    create_transport,
)
from app.tests.constants.contact import ContactTestConstants


def make_message(recipient="jo@example.com", **overrides):
    data = {
        "sender": ContactTestConstants.MOCK_SENDER.value,
        "sender_name": "Portfolio Contact Form",
        "recipient": recipient,
        "subject": "Hello",
        "html_body": "<p>Hello</p>",
        "text_body": "Hello",
    }
    data.update(overrides)
    return OutgoingMessage(**data)


def client_error(code, message="denied"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "SendRawEmail")


class TestMultipartMessage:
    def test_alternative_parts(self):
        mime = create_email_multipart_message(make_message(reply_to="ada@example.com"))

        assert mime.get_content_subtype() == "alternative"
        assert mime["To"] == "jo@example.com"
        assert mime["Reply-To"] == "ada@example.com"
        assert mime["From"] == f"Portfolio Contact Form <{ContactTestConstants.MOCK_SENDER.value}>"
        assert [part.get_content_type() for part in mime.get_payload()] == [
            "text/plain",
            "text/html",
        ]

    def test_text_only(self):
        mime = create_email_multipart_message(make_message(html_body="", sender_name=None))

        assert mime.get_content_subtype() == "mixed"
        assert mime["From"] == ContactTestConstants.MOCK_SENDER.value
        assert "Reply-To" not in mime


class TestSMTPTransport:
    @pytest.fixture
    def smtp_server(self, mocker):
        server = MagicMock()
        server.__enter__.return_value = server
        mocker.patch("app.services.mail_service.smtplib.SMTP_SSL", return_value=server)
        return server

    @pytest.mark.parametrize(
        "error,expected",
        [
            (smtplib.SMTPAuthenticationError(535, b"Username and Password not accepted"), MailAuthError),
            (smtplib.SMTPConnectError(421, b"Service not available"), MailConnectionError),
            (smtplib.SMTPServerDisconnected("Connection unexpectedly closed"), MailConnectionError),
            (smtplib.SMTPRecipientsRefused({"x@example.com": (550, b"No such user")}), MailUnknownError),
            (socket.timeout("timed out"), MailTimeoutError),
            (TimeoutError(), MailTimeoutError),
            (ConnectionRefusedError(111, "Connection refused"), MailConnectionError),
            (socket.gaierror(-2, "Name or service not known"), MailConnectionError),
            (ValueError("bad header"), MailUnknownError),
        ],
    )
    def test_classify(self, error, expected):
        assert type(SMTPTransport.classify(error)) is expected

    def test_send(self, smtp_server):
        transport = SMTPTransport(Settings())

        transport.send(make_message())

        smtp_server.login.assert_called_once_with(
            ContactTestConstants.MOCK_SENDER.value,
            ContactTestConstants.MOCK_SENDER_PASSWORD.value,
        )
        smtp_server.send_message.assert_called_once()
        assert smtp_server.send_message.call_args.kwargs["to_addrs"] == ["jo@example.com"]

    def test_login_failure_is_auth_error(self, smtp_server):
        smtp_server.login.side_effect = smtplib.SMTPAuthenticationError(
            535, b"5.7.8 Username and Password not accepted"
        )
        transport = SMTPTransport(Settings())

        with pytest.raises(MailAuthError):
            transport.send(make_message())

        smtp_server.close.assert_called_once()
        smtp_server.send_message.assert_not_called()

    def test_starttls_when_ssl_disabled(self, mocker, monkeypatch):
        monkeypatch.setenv("SMTP_USE_SSL", "false")
        monkeypatch.setenv("SMTP_PORT", "587")
        server = MagicMock()
        server.__enter__.return_value = server
        smtp = mocker.patch("app.services.mail_service.smtplib.SMTP", return_value=server)

        SMTPTransport(Settings()).verify()

        smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=60.0)
        server.starttls.assert_called_once()
        server.noop.assert_called_once()

    def test_starttls_failure_closes_connection(self, mocker, monkeypatch):
        monkeypatch.setenv("SMTP_USE_SSL", "false")
        server = MagicMock()
        server.starttls.side_effect = ssl.SSLError("wrong version number")
        mocker.patch("app.services.mail_service.smtplib.SMTP", return_value=server)

        with pytest.raises(MailConnectionError):
            SMTPTransport(Settings()).verify()

        server.close.assert_called_once()
        server.login.assert_not_called()


class TestSESTransport:
    @pytest.fixture
    def ses_client(self):
        return MagicMock()

    def test_send(self, ses_client):
        transport = SESTransport(Settings(), client=ses_client)

        transport.send(make_message())

        kwargs = ses_client.send_raw_email.call_args.kwargs
        assert kwargs["Source"] == ContactTestConstants.MOCK_SENDER.value
        assert kwargs["Destinations"] == ["jo@example.com"]
        assert "Subject: Hello" in kwargs["RawMessage"]["Data"]

    def test_verify_uses_send_quota(self, ses_client):
        SESTransport(Settings(), client=ses_client).verify()

        ses_client.get_send_quota.assert_called_once()

    @pytest.mark.parametrize(
        "error,expected",
        [
            (client_error("InvalidClientTokenId"), MailAuthError),
            (client_error("SignatureDoesNotMatch"), MailAuthError),
            (client_error("MessageRejected", "Email address is not verified."), MailUnknownError),
            (NoCredentialsError(), MailAuthError),
            (ConnectTimeoutError(endpoint_url="https://email.us-east-1.amazonaws.com"), MailTimeoutError),
            (EndpointConnectionError(endpoint_url="https://email.us-east-1.amazonaws.com"), MailConnectionError),
        ],
    )
    def test_send_errors(self, ses_client, error, expected):
        ses_client.send_raw_email.side_effect = error
        transport = SESTransport(Settings(), client=ses_client)

        with pytest.raises(expected):
            transport.send(make_message())

    def test_client_error_message_kept_as_detail(self):
        error = SESTransport.classify(client_error("MessageRejected", "Email address is not verified."))
        assert error.detail == "Email address is not verified."


def test_create_transport_follows_settings(monkeypatch, mocker):
    mocker.patch("app.services.mail_service.boto3.client")
    assert isinstance(create_transport(Settings()), SMTPTransport)

    monkeypatch.setenv("MAIL_TRANSPORT", "ses")
    assert isinstance(create_transport(Settings()), SESTransport)


@pytest.mark.asyncio
class TestMailService:
    async def test_send_batch_sends_all(self, mail_service, fake_transport):
        await mail_service.send_batch([make_message("a@example.com"), make_message("b@example.com")])

        assert sorted(m.recipient for m in fake_transport.sent) == ["a@example.com", "b@example.com"]

    async def test_send_batch_raises_first_failure(self, mail_service, fake_transport):
        fake_transport.send_error = MailTimeoutError("socket read timeout")
        fake_transport.fail_for = {"b@example.com"}

        with pytest.raises(MailTimeoutError):
            await mail_service.send_batch(
                [make_message("a@example.com"), make_message("b@example.com")]
            )

    async def test_unexpected_error_becomes_unknown(self, fake_transport):
        fake_transport.send = MagicMock(side_effect=RuntimeError("boom"))
        service = MailService(Settings(), transport=fake_transport)

        with pytest.raises(MailUnknownError) as exc_info:
            await service.send(make_message())
        assert exc_info.value.detail == "boom"

    async def test_verify(self, mail_service, fake_transport):
        await mail_service.verify()
        assert fake_transport.verified == 1

    async def test_verify_failure_propagates(self, mail_service, fake_transport):
        fake_transport.verify_error = MailConnectionError("unreachable")

        with pytest.raises(MailConnectionError):
            await mail_service.verify()

    async def test_test_message_goes_to_sender(self, mail_service):
        message = mail_service.build_test_message()

        assert message.recipient == ContactTestConstants.MOCK_SENDER.value
        assert message.subject == "Test Email - Debug"
