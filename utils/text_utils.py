"""
Text utilities for matching uploaded column headers.

Used by the auto-mapper to compare headers with field keys, labels and aliases.
"""

import re
import unicodedata
from typing import Optional

SEPARATOR = "_"

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    """
    Remove accent marks, keeping the base characters.

    - "Teléfono" → "Telefono"
    - "Dueño" → "Dueno"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize('NFD', text)
    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a header, field key or label for comparison.

    - "Owner Email" → "owner_email"
    - "  E-Mail Address " → "e_mail_address"
    - "firstName" → "first_name"
    - "Duration (minutes)" → "duration_minutes"

    Args:
        header: Raw header text (may be None)

    Returns:
        Lowercase alphanumeric tokens joined by single underscores,
        or "" if nothing alphanumeric remains
    """
    if not header:
        return ""

    text = strip_accents(str(header))
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text)
    text = _NON_ALPHANUMERIC.sub(SEPARATOR, text.lower())
    return text.strip(SEPARATOR)


def remove_token_run(normalized: str, fragment: str) -> Optional[str]:
    """
    Remove the first occurrence of fragment from a normalized header.

    Returns the remainder with edge separators trimmed and doubled
    separators collapsed, or None if fragment does not occur.

    - remove_token_run("owner_email", "owner") → "email"
    - remove_token_run("primary_owner_phone", "owner") → "primary_phone"
    """
    if not fragment:
        return None

    idx = normalized.find(fragment)
    if idx < 0:
        return None

    remainder = normalized[:idx] + SEPARATOR + normalized[idx + len(fragment):]
    remainder = re.sub(f"{SEPARATOR}+", SEPARATOR, remainder)
    return remainder.strip(SEPARATOR)
