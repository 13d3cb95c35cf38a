"""
Face API response summaries.

Every summary echoes the parsed vendor body as `raw` (None when the body is
not JSON) next to the few values the browser needs.
"""
import logging
from typing import Any, Dict, List, Optional

from models.schemas import FaceDetectResult, FaceMatchResult, IcaoSection, IcaoSummary, LivenessResult
from services.json_tree import (
    as_int,
    as_list,
    as_str,
    find_first_number,
    find_first_object,
    find_first_string,
    get_property,
    parse_json,
    read_path,
)
from utils.config import ICAO_GROUP_NAMES
from utils.text_normalization import is_blank

logger = logging.getLogger(__name__)

LIVENESS_STATUS_KEYS = ("status", "liveness", "result")

# Face API quality check status: 1 = compliant, 0 = not compliant, 2 = undetermined
ICAO_COMPLIANT_STATUS = 1


def summarize_face_detection(content: str) -> FaceDetectResult:
    """
    Collect the attribute details of the first described detection.

    Source: `results.detections[].attributes.details[] = {name, value}`.
    """
    root = parse_json(content)
    details: Dict[str, Any] = {}

    for detection in as_list(read_path(root, "results", "detections")):
        attribute_details = read_path(detection, "attributes", "details")
        if not isinstance(attribute_details, list):
            continue

        for detail in attribute_details:
            name = as_str(get_property(detail, "name"))
            if is_blank(name) or not isinstance(detail, dict):
                continue
            if any(key.lower() == "value" for key in detail):
                details[name] = get_property(detail, "value")
        break

    return FaceDetectResult(details=details, raw=root)


def summarize_face_match(content: str) -> FaceMatchResult:
    """Similarity and score of the first compared pair (`results[0]`)."""
    root = parse_json(content)
    results = as_list(get_property(root, "results"))
    first = results[0] if results else None

    return FaceMatchResult(
        similarity=find_first_number(first, "similarity"),
        score=find_first_number(first, "score"),
        raw=root,
    )


def summarize_liveness(content: str) -> LivenessResult:
    """First status-like string and first `score` number anywhere in the body."""
    root = parse_json(content)

    status = None
    for key in LIVENESS_STATUS_KEYS:
        status = find_first_string(root, key)
        if status is not None:
            break

    return LivenessResult(
        liveness_status=status,
        score=find_first_number(root, "score"),
        raw=root,
    )


def _group_name(group_id: Optional[int], fallback: Optional[str] = None) -> str:
    if group_id in ICAO_GROUP_NAMES:
        return ICAO_GROUP_NAMES[group_id]
    if not is_blank(fallback):
        return fallback
    return f"Group {group_id}" if group_id is not None else "Section"


def _sections_from_groups(groups: List[Any]) -> List[IcaoSection]:
    sections = []
    for group in groups:
        if not isinstance(group, dict):
            continue
        sections.append(IcaoSection(
            name=_group_name(as_int(get_property(group, "groupId")), as_str(get_property(group, "name"))),
            compliant_count=as_int(get_property(group, "compliantCount")) or 0,
            total_count=as_int(get_property(group, "totalCount")) or 0,
        ))
    return sections


def _sections_from_details(details: List[Any]) -> List[IcaoSection]:
    """Group individual quality checks by groupId, in first-seen order."""
    grouped: Dict[Optional[int], Dict[str, int]] = {}
    for detail in details:
        if not isinstance(detail, dict):
            continue
        group_id = as_int(get_property(detail, "groupId"))
        counts = grouped.setdefault(group_id, {"total": 0, "compliant": 0})
        counts["total"] += 1
        if as_int(get_property(detail, "status")) == ICAO_COMPLIANT_STATUS:
            counts["compliant"] += 1

    return [
        IcaoSection(name=_group_name(group_id), compliant_count=counts["compliant"], total_count=counts["total"])
        for group_id, counts in grouped.items()
    ]


def summarize_icao(content: str) -> IcaoSummary:
    """
    Summarize an ICAO photo-compliance response.

    Uses the `quality` object's `detailsGroups` when present, otherwise
    groups its individual `details`. Compliance is the share of compliant
    checks across all sections, as a percentage rounded to 2 decimals.
    """
    root = parse_json(content)
    quality = find_first_object(root, "quality")

    groups = get_property(quality, "detailsGroups")
    if isinstance(groups, list) and groups:
        sections = _sections_from_groups(groups)
    else:
        sections = _sections_from_details(as_list(get_property(quality, "details")))

    if not sections:
        return IcaoSummary(raw=root)

    total = sum(section.total_count for section in sections)
    compliant = sum(section.compliant_count for section in sections)
    percent = round(compliant / total * 100, 2) if total > 0 else None

    return IcaoSummary(
        sections=sections,
        total_count=total,
        total_compliant_count=compliant,
        compliance_percent=percent,
        raw=root,
    )
