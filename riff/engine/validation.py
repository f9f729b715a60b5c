"""
riff.engine.validation — Content & Username Rules
==================================================
"""

from __future__ import annotations

import re

from riff.constants import (
    MAX_RIFF_LENGTH,
    MAX_USERNAME_LENGTH,
    MIN_RIFF_LENGTH,
    MIN_USERNAME_LENGTH,
)
from riff.errors import ValidationError

_USERNAME_REGEX = re.compile(
    rf"^[A-Za-z0-9_]{{{MIN_USERNAME_LENGTH},{MAX_USERNAME_LENGTH}}}$"
)


def validate_content(
    content: str | None,
    *,
    min_length: int = MIN_RIFF_LENGTH,
    max_length: int = MAX_RIFF_LENGTH,
) -> str:
    """Return the trimmed riff text, or raise :class:`ValidationError`.

    Lengths are measured after trimming surrounding whitespace.
    """
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationError("content", "Riff content must not be empty")
    if len(trimmed) < min_length:
        raise ValidationError(
            "content", f"Riff content must be at least {min_length} characters"
        )
    if len(trimmed) > max_length:
        raise ValidationError(
            "content", f"Riff content must be at most {max_length} characters"
        )
    return trimmed


def validate_username(username: str | None) -> str:
    """3–20 characters of letters, digits and underscores."""
    candidate = (username or "").strip()
    if not _USERNAME_REGEX.match(candidate):
        raise ValidationError(
            "username",
            f"Username must be {MIN_USERNAME_LENGTH}-{MAX_USERNAME_LENGTH} "
            "letters, digits or underscores",
        )
    return candidate
