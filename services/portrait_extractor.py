"""
Document Portrait Extractor.

Vendor responses embed many base64 blobs (portrait, ghost portrait, MRZ
raster, signature, logos, full page crops). The portrait is chosen by
scoring every candidate on its JSON path and size:

    +50  path mentions "portrait" or "face"
    -20  path mentions "mrz" or "signature"
    -30  path mentions "logo", "emblem" or "flag"
    +min(len / 1000, 50)

Highest score wins; ties go to the candidate seen first.
"""
import logging
from typing import Any, List, Optional, Tuple

from services.json_tree import iter_entries
from utils.base64_utils import clean_base64, is_probably_base64
from utils.config import (
    PORTRAIT_MIN_SCORE,
    PORTRAIT_PATH_BONUS,
    MRZ_SIGNATURE_PATH_PENALTY,
    LOGO_PATH_PENALTY,
    LENGTH_SCORE_CAP,
    PORTRAIT_PATH_HINTS,
    MRZ_SIGNATURE_PATH_HINTS,
    LOGO_PATH_HINTS,
    PORTRAIT_FALLBACK_KEYS,
)

logger = logging.getLogger(__name__)


def collect_base64_candidates(root: Any) -> List[Tuple[str, str]]:
    """
    Collect every base64-looking property value with its path.

    Only object property values are candidates; bare strings inside arrays
    have no property name to score and are skipped.

    Returns:
        [(value, path)] in traversal order
    """
    return [
        (value, path)
        for _, value, path in iter_entries(root)
        if isinstance(value, str) and is_probably_base64(value)
    ]


def score_image_candidate(value: str, path: str) -> float:
    """Score a base64 candidate by its path hints and length."""
    lower_path = path.lower()
    score = 0.0

    if any(hint in lower_path for hint in PORTRAIT_PATH_HINTS):
        score += PORTRAIT_PATH_BONUS

    if any(hint in lower_path for hint in MRZ_SIGNATURE_PATH_HINTS):
        score -= MRZ_SIGNATURE_PATH_PENALTY

    if any(hint in lower_path for hint in LOGO_PATH_HINTS):
        score -= LOGO_PATH_PENALTY

    score += min(len(value) / 1000.0, LENGTH_SCORE_CAP)
    return score


def find_best_image_base64(root: Any, min_score: float = PORTRAIT_MIN_SCORE) -> Optional[str]:
    """
    Return the highest-scoring base64 candidate.

    None when there are no candidates or the best one scores below
    `min_score` (e.g. only a logo was found).
    """
    best_value = None
    best_score = None

    for value, path in collect_base64_candidates(root):
        score = score_image_candidate(value, path)
        # Strict comparison keeps the first of equally scored candidates
        if best_score is None or score > best_score:
            best_value, best_score = value, score

    if best_score is None or best_score < min_score:
        return None

    return best_value


def find_first_base64_by_keys(root: Any, keys: List[str] = PORTRAIT_FALLBACK_KEYS) -> Optional[str]:
    """First base64 value stored under one of `keys` (case-insensitive)."""
    targets = {key.lower() for key in keys}
    for key, value, _ in iter_entries(root):
        if key.lower() in targets and is_probably_base64(value):
            return value
    return None


def find_first_base64_string(root: Any) -> Optional[str]:
    """First base64-looking property value anywhere in the tree."""
    for _, value, _ in iter_entries(root):
        if is_probably_base64(value):
            return value
    return None


def extract_document_portrait(root: Any) -> Optional[str]:
    """
    Locate the document holder's portrait in a document reader response.

    Tries, in order: best scored candidate, well-known portrait keys,
    first base64 string anywhere.

    Returns:
        Cleaned base64 string, or None when the response holds no image
    """
    portrait = find_best_image_base64(root)
    if portrait is None:
        portrait = find_first_base64_by_keys(root)
        if portrait is not None:
            logger.debug("Portrait selected by key fallback")
    if portrait is None:
        portrait = find_first_base64_string(root)
        if portrait is not None:
            logger.debug("Portrait selected by first-base64 fallback")

    if portrait is None:
        return None

    return clean_base64(portrait.strip())
