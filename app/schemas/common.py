"""Field normalizers shared by request schemas."""

import re
from typing import Any, Optional
from urllib.parse import urlparse

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


def blank_to_none(value: Any) -> Any:
    """Treat empty or whitespace-only strings as an absent value."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def reject_bool(value: Any) -> Any:
    """Refuse JSON booleans where an integer is expected (bool is an int subclass)."""
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer")
    return value


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and check the loose E.164-like phone pattern."""
    if value is None:
        return None
    compact = re.sub(r"\s", "", value)
    if not compact:
        return None
    if not PHONE_PATTERN.match(compact):
        raise ValueError("Please enter a valid phone number")
    return compact


def normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value


def normalize_url(value: Optional[str], allow_relative: bool = False) -> Optional[str]:
    """Accept absolute http(s) URLs, and root-relative paths when allowed."""
    if value is None:
        return None
    value = value.strip()
    if allow_relative and value.startswith("/") and not value.startswith("//"):
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Please enter a valid URL")
    return value
