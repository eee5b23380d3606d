"""Input sanitization utilities for query-string and body text."""

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def strip_control_chars(value: str) -> str:
    """Remove non-printable control characters (except newline, tab)."""
    if not value:
        return value
    return _CONTROL_CHARS.sub("", value)


def escape_like(value: str) -> str:
    """Escape LIKE/ILIKE metacharacters so the value matches literally.

    Pair with ``escape="\\\\"`` on the SQLAlchemy ``like``/``ilike`` call.
    """
    return (
        value
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def contains_pattern(value: str) -> str:
    """Bound parameter for a case-insensitive substring match."""
    return f"%{escape_like(value)}%"
