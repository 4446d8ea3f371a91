import re
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


MAX_FIELD_LENGTH = 2000

_SCRIPT_BLOCK = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def _strip_markup(text: str) -> str:
    text = _SCRIPT_BLOCK.sub("", text)
    text = _ANGLE_BRACKETS.sub("", text)
    text = _JAVASCRIPT_URI.sub("", text)
    text = _EVENT_HANDLER.sub("", text)
    return text.strip()


def sanitize_input(value: Any) -> str:
    """Strip markup and script vectors from untrusted text.

    Removes script blocks, angle brackets, ``javascript:`` prefixes and
    inline event handler attributes, trims whitespace and caps the result
    at 2000 characters. Non-string values become an empty string.

    Args:
        value: Untrusted value taken from a request body

    Returns:
        The sanitized string
    """
    if not isinstance(value, str):
        return ""

    # removing one pattern can splice together another, e.g. "javajavascript:script:"
    cleaned = _strip_markup(value)
    while True:
        again = _strip_markup(cleaned)
        if again == cleaned:
            break
        cleaned = again

    return cleaned[:MAX_FIELD_LENGTH].rstrip()


def now_utc_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_local_time(moment: datetime, tz_name: str) -> str:
    """Format a timestamp for humans in the given IANA timezone.

    Falls back to UTC when the timezone is unknown.
    """
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        tz = timezone.utc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(tz)
    return f"{local.strftime('%A, %B %d, %Y at %I:%M %p')} {local.tzname()}"
