import pytest

from app.models.contact import ContactSubmission
from app.services.validation_service import (
    InvalidEmailError,
    InvalidMessageError,
    InvalidNameError,
    InvalidSubjectError,
    MissingFieldsError,
    is_valid_email,
    validate_submission,
)
from app.tests.constants.contact import ContactTestConstants


def make_submission(**overrides):
    data = dict(ContactTestConstants.MOCK_MINIMAL_SUBMISSION.value)
    data.update(overrides)
    return ContactSubmission(**data)


class TestEmailPattern:
    @pytest.mark.parametrize(
        "email,expected",
        [
            ("jo@example.com", True),
            ("first.last+tag@sub.example.co.uk", True),
            ("o'brien@example.ie", True),
            ("jo@localhost", True),
            ("jo@-example.com", False),
            ("jo@example..com", False),
            ("jo example@example.com", False),
            ("jo@example.com\n", False),
            ("", False),
            (None, False),
            (42, False),
            ("a" * 243 + "@example.com", False),
        ],
    )
    def test_is_valid_email(self, email, expected):
        assert is_valid_email(email) is expected

    def test_length_limit_is_inclusive(self):
        email = "a" * 242 + "@example.com"
        assert len(email) == 254
        assert is_valid_email(email) is True


class TestValidateSubmission:
    def test_boundary_values_accepted(self):
        result = validate_submission(make_submission())

        assert result.name == "Jo"
        assert result.message == "1234567890"
        assert result.phone == ""
        assert result.timeline == ""

    def test_sanitizes_and_lowercases(self):
        result = validate_submission(
            ContactSubmission(**ContactTestConstants.MOCK_FULL_SUBMISSION.value)
        )

        assert result.email == "ada.lovelace@example.com"
        assert result.company == "Babbage and Co"

    def test_optional_fields_sanitized(self):
        result = validate_submission(
            make_submission(company="<script>x()</script>Acme <Corp>", budget=0)
        )

        assert result.company == "Acme Corp"
        assert result.budget == ""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": None},
            {"email": ""},
            {"subject": None},
            {"message": ""},
            {"name": 0},
        ],
    )
    def test_missing_fields(self, overrides):
        with pytest.raises(MissingFieldsError) as exc_info:
            validate_submission(make_submission(**overrides))
        assert exc_info.value.message == "Name, email, subject, and message are required fields"

    def test_missing_fields_checked_before_email(self):
        with pytest.raises(MissingFieldsError):
            validate_submission(make_submission(email="broken", message=""))

    def test_invalid_email(self):
        with pytest.raises(InvalidEmailError):
            validate_submission(make_submission(email="jo at example.com"))

    def test_non_string_email(self):
        with pytest.raises(InvalidEmailError):
            validate_submission(make_submission(email=["jo@example.com"]))

    @pytest.mark.parametrize("name", ["J", "   J   ", "n" * 101, 12345])
    def test_invalid_name(self, name):
        with pytest.raises(InvalidNameError):
            validate_submission(make_submission(name=name))

    def test_name_checked_before_message(self):
        with pytest.raises(InvalidNameError):
            validate_submission(make_submission(name="J", message="short"))

    @pytest.mark.parametrize("message", ["123456789", "<p>hi</p>", "  short   "])
    def test_invalid_message(self, message):
        with pytest.raises(InvalidMessageError):
            validate_submission(make_submission(message=message))

    def test_long_message_is_capped_not_rejected(self):
        """Sanitization truncates to 2000 characters before the length check."""
        result = validate_submission(make_submission(message="m" * 2500))
        assert len(result.message) == 2000

    def test_subject_too_long(self):
        with pytest.raises(InvalidSubjectError) as exc_info:
            validate_submission(make_submission(subject="s" * 201))
        assert exc_info.value.message == "Subject must be less than 200 characters"

    def test_subject_of_200_accepted(self):
        result = validate_submission(make_submission(subject="s" * 200))
        assert len(result.subject) == 200
