"""
Configuration and Threshold Tests

Tests for configuration defaults, error rendering and logging setup.
Run with: pytest tests/test_config.py -v
"""
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config import (
    DOCR_DEFAULT_TIMEOUT_SECONDS,
    DOCR_FACE_API_THRESHOLD,
    FACE_API_DEFAULT_TIMEOUT_SECONDS,
    FRAME_ANGLE_ACCEPTABLE,
    FRAME_ANGLE_NOTICEABLE,
    FRAME_AREA_BORDERLINE,
    FRAME_AREA_GOOD,
    ICAO_GROUP_NAMES,
    JSON_MAX_DEPTH,
)
from utils.exceptions import ExtractionError, InvalidRequestError, VendorError, VendorUnavailableError
from utils.logging_config import JSONFormatter


class TestDefaults:
    """Test configuration defaults."""

    def test_vendor_timeouts(self):
        assert DOCR_DEFAULT_TIMEOUT_SECONDS == 60
        assert FACE_API_DEFAULT_TIMEOUT_SECONDS == 30

    def test_face_threshold_is_a_fraction(self):
        assert 0 < DOCR_FACE_API_THRESHOLD <= 1

    def test_framing_thresholds_ordered(self):
        """Borderline area must sit below good area; acceptable angle below noticeable."""
        assert FRAME_AREA_BORDERLINE < FRAME_AREA_GOOD
        assert FRAME_ANGLE_ACCEPTABLE < FRAME_ANGLE_NOTICEABLE

    def test_depth_limit_positive(self):
        assert JSON_MAX_DEPTH > 0

    def test_icao_groups(self):
        assert set(ICAO_GROUP_NAMES) == set(range(1, 9))


class TestErrors:
    """Test error codes and status mapping."""

    def test_invalid_request(self):
        error = InvalidRequestError("Provide images.", field="images")
        assert error.status_code == 400
        assert error.to_dict() == {"error": "Provide images.", "code": "INVALID_REQUEST", "details": {"field": "images"}}

    def test_extraction(self):
        assert ExtractionError("No portrait.").status_code == 422

    def test_vendor_status_relayed(self):
        error = VendorError("docr", "failed", status_code=404, details="not found")
        assert error.status_code == 404
        assert error.details == "not found"

    def test_unavailable(self):
        assert VendorUnavailableError("face_api", "failed").status_code == 502
        assert VendorUnavailableError("face_api", "failed", timed_out=True).code == "VENDOR_TIMEOUT"


class TestLogging:
    """Test the JSON log formatter."""

    def test_json_formatter_extra_fields(self):
        record = logging.LogRecord("services.vendor_clients", logging.INFO, __file__, 1, "sent", None, None)
        record.vendor = "docr"
        record.latency_ms = 12.5

        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "sent"
        assert entry["vendor"] == "docr"
        assert entry["latency_ms"] == 12.5
