import os

from app.tests.constants.contact import ContactTestConstants

# must be in place before app.main builds its settings
os.environ["EMAIL_SENDER"] = ContactTestConstants.MOCK_SENDER.value
os.environ["EMAIL_PASSWORD"] = ContactTestConstants.MOCK_SENDER_PASSWORD.value
os.environ["NOTIFICATION_EMAIL"] = ContactTestConstants.MOCK_OPERATOR_EMAIL.value
os.environ["MAIL_TRANSPORT"] = "smtp"
os.environ["ENVIRONMENT"] = "production"
os.environ["VERIFY_MAIL_ON_STARTUP"] = "false"
os.environ["TIMEZONE"] = "Asia/Kolkata"
os.environ.pop("DEBUG_TOKEN", None)

import pytest
from app.core.config import get_settings
from app.tests.fixtures.contact import *


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
