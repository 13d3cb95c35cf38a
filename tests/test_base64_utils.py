"""
Base64 Helper Tests

Tests for data URI cleaning, the embedded-image heuristic and format detection.
Run with: pytest tests/test_base64_utils.py -v
"""
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.base64_utils import (
    bytes_to_base64,
    clean_base64,
    detect_image_format,
    is_probably_base64,
    normalize_base64,
)


class TestCleanBase64:
    """Test data URI prefix removal."""

    @pytest.mark.parametrize("value", [
        "data:image/jpeg;base64,QUJD",
        "data:image/png;base64,QUJD",
        "data:image/webp;base64,QUJD",
        "QUJD",
    ])
    def test_prefix_removed(self, value):
        """Known and generic data URI prefixes should be stripped."""
        assert clean_base64(value) == "QUJD"

    def test_idempotent(self):
        """Cleaning twice equals cleaning once."""
        value = "data:image/jpeg;base64,QUJDRA=="
        assert clean_base64(clean_base64(value)) == clean_base64(value)

    def test_blank_passthrough(self):
        """Blank input is returned unchanged."""
        assert clean_base64("") == ""
        assert clean_base64(None) is None


class TestIsProbablyBase64:
    """Test the embedded-image heuristic."""

    def test_long_valid_string(self):
        """200+ alphabet characters with length % 4 == 0 qualify."""
        assert is_probably_base64("A" * 200)

    def test_too_short(self):
        assert not is_probably_base64("A" * 196)

    def test_bad_length(self):
        """Length must be a multiple of 4."""
        assert not is_probably_base64("A" * 201)

    def test_bad_alphabet(self):
        assert not is_probably_base64("A" * 199 + "-")

    def test_surrounding_whitespace_ignored(self):
        assert is_probably_base64("  " + "A" * 200 + "\n")

    def test_non_string(self):
        assert not is_probably_base64(12345)


class TestNormalizeBase64:
    """Test strict base64 validation."""

    def test_valid(self):
        assert normalize_base64("QUJD") == "QUJD"
        assert normalize_base64("TElWRQ==") == "TElWRQ=="

    def test_whitespace_removed(self):
        assert normalize_base64(" QUJD\r\nREVG ") == "QUJDREVG"

    @pytest.mark.parametrize("value", ["not base64 at all!!", "QUJ", "QU=D", "QUJD-_", "\u00e9t\u00e9", "", "   ", None])
    def test_invalid(self, value):
        """Bad alphabet, bad padding, non-ASCII and blank input are rejected."""
        assert normalize_base64(value) is None


class TestUploads:
    """Test upload encoding helpers."""

    def test_bytes_to_base64(self):
        assert bytes_to_base64(b"ABC") == "QUJD"

    @pytest.mark.parametrize("content_type,filename,expected", [
        ("application/pdf", "scan.bin", "pdf"),
        ("image/png", None, "png"),
        ("image/jpeg", "x.png", "jpg"),
        (None, "photo.JPEG", "jpg"),
        ("application/octet-stream", "page.pdf", "pdf"),
        (None, "unknown.tiff", None),
    ])
    def test_detect_image_format(self, content_type, filename, expected):
        """Content type wins; the extension is the fallback."""
        assert detect_image_format(content_type, filename) == expected
