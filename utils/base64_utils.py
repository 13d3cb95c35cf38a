"""
Base64 helpers for images travelling between the browser and the vendors.
"""
import base64
import binascii
import re
from pathlib import PurePath
from typing import Optional

from utils.config import BASE64_MIN_LENGTH

BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/=]+$")
WHITESPACE = re.compile(r"\s+")

KNOWN_DATA_URI_PREFIXES = (
    "data:image/jpeg;base64,",
    "data:image/png;base64,",
)

EXTENSION_FORMATS = {
    ".pdf": "pdf",
    ".png": "png",
    ".jpg": "jpg",
    ".jpeg": "jpg",
}


def clean_base64(value: Optional[str]) -> Optional[str]:
    """
    Strip a `data:<mime>;base64,` prefix from a base64 payload.

    Cleaning an already clean string returns it unchanged, so the
    function can be applied any number of times.

    Args:
        value: Base64 string, optionally a data URI

    Returns:
        Bare base64 string (blank input is returned as-is)
    """
    if value is None or not value.strip():
        return value

    for prefix in KNOWN_DATA_URI_PREFIXES:
        value = value.replace(prefix, "")

    comma_index = value.find(",")
    if comma_index >= 0 and "base64" in value[:comma_index].lower():
        return value[comma_index + 1:]

    return value


def is_probably_base64(value: Optional[str], min_length: int = BASE64_MIN_LENGTH) -> bool:
    """
    Heuristic check for an embedded binary blob.

    True when the trimmed string is at least `min_length` long, its length
    is a multiple of 4 and it only uses base64 alphabet characters.
    """
    if not isinstance(value, str):
        return False

    trimmed = value.strip()
    if len(trimmed) < min_length or len(trimmed) % 4 != 0:
        return False

    return BASE64_ALPHABET.match(trimmed) is not None


def bytes_to_base64(data: bytes) -> str:
    """Encode raw file bytes as a base64 string."""
    return base64.b64encode(data).decode("ascii")


def detect_image_format(content_type: Optional[str], filename: Optional[str]) -> Optional[str]:
    """
    Guess the vendor format tag ("pdf", "png", "jpg") of an uploaded file.

    Content type wins over the file extension.
    """
    if content_type:
        content_type = content_type.lower()
        if "pdf" in content_type:
            return "pdf"
        if "png" in content_type:
            return "png"
        if "jpeg" in content_type or "jpg" in content_type:
            return "jpg"

    if filename:
        return EXTENSION_FORMATS.get(PurePath(filename).suffix.lower())

    return None


def normalize_base64(value: Optional[str]) -> Optional[str]:
    """
    Return `value` without embedded whitespace if it decodes as strict
    base64 (standard alphabet, correct padding), otherwise None.
    """
    if not isinstance(value, str):
        return None

    compact = WHITESPACE.sub("", value)
    if not compact:
        return None

    try:
        base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None
    return compact
