"""
Document reader response summary.

Combines the visual fields, the authenticity validity lists and the framing
interpretation of one document reader response into a DocumentSummary.
"""
import logging
from typing import Any

from models.schemas import DocumentSummary
from services.document_fields import (
    DATE_OF_BIRTH_ALIASES,
    DOCUMENT_NUMBER_ALIASES,
    DOCUMENT_TYPE_ALIASES,
    EXPIRY_DATE_ALIASES,
    extract_visual_fields,
    get_field_value,
    resolve_full_name,
)
from services.document_position import extract_document_position
from services.fraud_checks import extract_validity_summary, resolve_overall_status
from services.json_tree import JsonParseError, find_first_string, load_json
from utils.config import TRANSACTION_ID_KEYS

logger = logging.getLogger(__name__)

PARSE_ERROR_MESSAGE = "Unable to parse document reader response."


def summarize_document(root: Any) -> DocumentSummary:
    """Summarize a parsed document reader response."""
    fields = extract_visual_fields(root)
    validity = extract_validity_summary(root)

    return DocumentSummary(
        transaction_id=find_first_string(root, TRANSACTION_ID_KEYS),
        overall_status=resolve_overall_status(root, validity),
        document_type=get_field_value(fields, *DOCUMENT_TYPE_ALIASES),
        document_number=get_field_value(fields, *DOCUMENT_NUMBER_ALIASES),
        full_name=resolve_full_name(fields),
        date_of_birth=get_field_value(fields, *DATE_OF_BIRTH_ALIASES),
        expiry_date=get_field_value(fields, *EXPIRY_DATE_ALIASES),
        validity=validity,
        document_position=extract_document_position(root),
    )


def build_document_summary(content: str) -> DocumentSummary:
    """
    Summarize a raw document reader body.

    Unparseable bodies give a degraded summary (overall status "unknown"
    and an error message) instead of raising.
    """
    try:
        root = load_json(content)
    except JsonParseError as e:
        logger.warning(f"Document reader response could not be parsed: {e}")
        return DocumentSummary(overall_status="unknown", error=PARSE_ERROR_MESSAGE)

    return summarize_document(root)
