"""
Document Portrait Extractor Tests

Run with: pytest tests/test_portrait_extractor.py -v
"""
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from services.portrait_extractor import (
    collect_base64_candidates,
    extract_document_portrait,
    find_best_image_base64,
    score_image_candidate,
)


class TestScoring:
    """Test candidate scoring."""

    def test_portrait_path_bonus(self):
        """Portrait paths get +50 plus the length bonus."""
        assert score_image_candidate("A" * 1000, "root.portrait") == pytest.approx(51.0)

    def test_penalties(self):
        """MRZ/signature paths lose 20, logo/emblem/flag paths lose 30."""
        assert score_image_candidate("A" * 1000, "root.Signature") == pytest.approx(-19.0)
        assert score_image_candidate("A" * 1000, "root.Flag") == pytest.approx(-29.0)

    def test_length_bonus_capped(self):
        assert score_image_candidate("A" * 200000, "root.x") == pytest.approx(50.0)


class TestSelection:
    """Test portrait selection across candidates."""

    def test_portrait_preferred_over_longer_logo(self, portrait_b64, logo_b64):
        """A short portrait outranks a much longer logo."""
        tree = {"Logo": logo_b64, "Images": {"Portrait": portrait_b64}}
        assert find_best_image_base64(tree) == portrait_b64

    def test_first_candidate_wins_ties(self):
        first, second = "QUJD" * 60, "REVG" * 60
        tree = {"a": {"portrait": first}, "b": {"portrait": second}}
        assert find_best_image_base64(tree) == first

    def test_only_logo_uses_fallback(self, logo_b64):
        """A negative best score falls through to the key/first-string fallbacks."""
        tree = {"Logo": logo_b64}
        assert find_best_image_base64(tree) is None
        assert extract_document_portrait(tree) == logo_b64

    def test_array_strings_are_not_candidates(self, portrait_b64):
        """Bare strings inside arrays have no property name and are skipped."""
        assert collect_base64_candidates({"images": [portrait_b64]}) == []

    def test_no_image(self):
        assert extract_document_portrait({"Status": {"overallStatus": 1}}) is None

    def test_sample_response(self, docr_response, portrait_b64):
        """The sample document reader answer yields its portrait."""
        assert extract_document_portrait(docr_response) == portrait_b64
