import re
from typing import Optional
from urllib.parse import urlparse

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value.strip()))


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Validate and lowercase an optional email; empty strings become None."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if not is_valid_email(cleaned):
        raise ValueError("Invalid email address")
    return cleaned.lower()


def validate_url(value: str) -> str:
    cleaned = (value or "").strip()
    parsed = urlparse(cleaned)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid URL")
    return cleaned


def reject_null(value):
    """Field validator body for optional update fields backed by NOT NULL columns."""
    if value is None:
        raise ValueError("Field may not be null")
    return value
