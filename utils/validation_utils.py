"""
utils/validation_utils.py

Purpose: Input validation

- UUID identifier checks and generation
- Jurisdiction (RW) code normalization
- Input sanitization
"""

import re
import uuid
from typing import Optional


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE
)


def is_valid_uuid(value: Optional[str]) -> bool:
    """
    Checks that a value is a canonical, hyphenated UUID string.

    Args:
        value: Candidate identifier

    Returns:
        True if the value is a well-formed UUID
    """
    if not value or not isinstance(value, str):
        return False

    return bool(UUID_PATTERN.match(value))


def generate_uuid() -> str:
    """Returns a fresh random (version 4) UUID string."""
    return str(uuid.uuid4())


def normalize_rw(rw: Optional[str]) -> Optional[str]:
    """
    Normalizes an RW code to two digits.
    "1", "01" and " 01 " all become "01"; non-numeric codes are kept as typed.

    Args:
        rw: Raw RW code

    Returns:
        Normalized code, or None when empty
    """
    if rw is None:
        return None

    rw = rw.strip()
    if not rw:
        return None

    if rw.isdigit():
        return rw.zfill(2)

    return rw


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitizes free-text user input.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    # Remove markup characters
    text = re.sub(r"[<>{}\[\]]", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()
