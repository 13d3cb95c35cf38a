"""
Text Normalization Utilities for cross-document comparisons.

Provides functions for:
- Identifier / name normalization (letters and digits only, upper case)
- Date normalization (digits only)
- Display formatting of numbers inside human-readable messages
"""
from typing import Optional


def normalize_value(value: Optional[str]) -> str:
    """
    Normalize a document value for equality checks.

    Steps:
    1. Trim and upper-case
    2. Keep only letters and digits (any script)

    Example:
        >>> normalize_value(" ab-12 34 ")
        'AB1234'
    """
    if value is None or not value.strip():
        return ""

    return "".join(ch for ch in value.strip().upper() if ch.isalnum())


def normalize_date(value: Optional[str]) -> str:
    """
    Reduce a date string to its digits.

    "1990-05-15" and "15.05.1990" do not normalize to the same value;
    both documents are expected to use the same vendor date format.
    """
    if value is None or not value.strip():
        return ""

    return "".join(ch for ch in value if ch.isdigit())


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return value is None or not value.strip()


def format_number(value: float, digits: int = 2) -> str:
    """
    Round a number for display, dropping trailing zeros.

    Example:
        >>> format_number(75.0)
        '75'
        >>> format_number(62.456)
        '62.46'
    """
    text = f"{round(value, digits):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
