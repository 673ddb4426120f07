"""Field rules used by schema validation.

A rule takes one value and answers with a message when the value is
rejected, ``None`` when it passes. Values arrive from path params, the
query string and headers as strings, or from a decoded JSON body as any
JSON type, so rules accept a string and its JSON counterpart alike.

Rules that need an argument are built by a factory::

    Fields({"name": [required, max_length(80)]})
"""

import re
from collections.abc import Callable
from typing import Any, TypeAlias

# value -> message or None
Validator: TypeAlias = Callable[[Any], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> str | None:
    """Field must be present and non-empty."""
    if value is None:
        return "This field is required"
    if isinstance(value, str) and not value.strip():
        return "This field is required"
    return None


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String (or list) must be at most *n* long."""

    def check(value: Any) -> str | None:
        if not isinstance(value, (str, list)):
            return "Must be a string or list"
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String (or list) must be at least *n* long."""

    def check(value: Any) -> str | None:
        if not isinstance(value, (str, list)):
            return "Must be a string or list"
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Basic email pattern, checks structure only
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: Any) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must be a string matching the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if not isinstance(value, str) or not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: Any) -> Validator:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)

    def check(value: Any) -> str | None:
        try:
            ok = value in allowed
        except TypeError:
            ok = False
        if not ok:
            return f"Must be one of: {', '.join(sorted(map(str, allowed)))}"
        return None

    return check


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------


def integer(value: Any) -> str | None:
    """Value must be an integer or a string holding one."""
    if isinstance(value, bool):
        return "Must be a whole number"
    if isinstance(value, int):
        return None
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None


def number(value: Any) -> str | None:
    """Value must be a number (int or float) or a string holding one."""
    if isinstance(value, bool):
        return "Must be a number"
    if isinstance(value, (int, float)):
        return None
    try:
        float(value)
    except (ValueError, TypeError):
        return "Must be a number"
    return None


def string(value: Any) -> str | None:
    """Value must be a string."""
    if not isinstance(value, str):
        return "Must be a string"
    return None


def boolean(value: Any) -> str | None:
    """Value must be a boolean or ``"true"``/``"false"``."""
    if isinstance(value, bool) or value in ("true", "false"):
        return None
    return "Must be true or false"
