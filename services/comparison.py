"""
Identity document comparison rules.

Similarity values from the face vendor arrive either as 0-1 fractions or as
0-100 percentages; both scales are normalized here. Field equality rules
compare normalized text (letters and digits, upper case) so that spacing,
punctuation and case differences between two documents do not matter.
"""
from typing import Optional

from models.schemas import ComparisonResult, IdentityDocumentInfo
from utils.config import DOCR_FACE_API_THRESHOLD
from utils.text_normalization import normalize_date, normalize_value


def normalize_similarity_percent(value: Optional[float]) -> Optional[float]:
    """
    Express a similarity as a percentage.

    0-1 → x100, 1-100 → unchanged; both rounded to 2 decimals.
    Values outside 0-100 are returned as-is.
    """
    if value is None:
        return None

    if 0 <= value <= 1:
        return round(value * 100, 2)

    if 1 < value <= 100:
        return round(value, 2)

    return value


def normalize_similarity_score(value: Optional[float]) -> Optional[float]:
    """Express a similarity as a 0-1 score (4 decimals); negatives are discarded."""
    if value is None or value < 0:
        return None

    if 1 < value <= 100:
        return round(value / 100.0, 4)

    return round(value, 4)


def compare_document_numbers(left: Optional[str], right: Optional[str]) -> bool:
    """Equal after normalization; a missing value never matches."""
    left_norm = normalize_value(left)
    right_norm = normalize_value(right)
    if not left_norm or not right_norm:
        return False

    return left_norm == right_norm


def compare_names(first: IdentityDocumentInfo, second: IdentityDocumentInfo) -> bool:
    """
    Compare holder names.

    Given names and surnames are compared separately when both documents
    have both; otherwise the concatenated "given surname" forms are compared.
    """
    left_name = normalize_value(first.name)
    right_name = normalize_value(second.name)
    left_surname = normalize_value(first.surname)
    right_surname = normalize_value(second.surname)

    if left_name and right_name and left_surname and right_surname:
        return left_name == right_name and left_surname == right_surname

    full_left = normalize_value(f"{first.name or ''} {first.surname or ''}")
    full_right = normalize_value(f"{second.name or ''} {second.surname or ''}")
    if full_left and full_right:
        return full_left == full_right

    return False


def compare_dates(left: Optional[str], right: Optional[str]) -> bool:
    """Equal digit sequences; a missing date never matches."""
    left_norm = normalize_date(left)
    right_norm = normalize_date(right)
    if not left_norm or not right_norm:
        return False

    return left_norm == right_norm


def build_comparison_result(
    first: IdentityDocumentInfo,
    second: IdentityDocumentInfo,
    similarity: Optional[float],
    threshold: float = DOCR_FACE_API_THRESHOLD
) -> ComparisonResult:
    """
    Combine the face match and the field equality checks.

    Args:
        first: Identity record of the first document
        second: Identity record of the second document
        similarity: Raw similarity returned by the face vendor (any scale)
        threshold: Minimum 0-1 score counted as the same person
    """
    score = normalize_similarity_score(similarity)

    return ComparisonResult(
        first_document=first,
        second_document=second,
        face_match_score=score,
        face_match_score_percent=normalize_similarity_percent(similarity),
        is_face_match=score is not None and score >= threshold,
        is_document_number_match=compare_document_numbers(first.document_number, second.document_number),
        is_name_match=compare_names(first, second),
        is_dob_match=compare_dates(first.date_of_birth, second.date_of_birth),
        face_match_threshold=threshold,
    )
