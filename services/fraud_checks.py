"""
Document Authenticity / Fraud Check Evaluator.

Each rule is a pure function `(root) -> CheckResult` that inspects one named
vendor subtree:

- subtree absent          → not_applicable (no evidence paths)
- definitive failing value → fail
- definitive passing value → pass
- anything else           → unknown

Rules never look at each other's results. They run in the order of
FRAUD_CHECKS; adding a check means writing one function and appending it.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.schemas import CheckResult, FraudSummary, ValiditySummary
from services.document_fields import iter_containers
from services.document_position import find_document_position
from services.json_tree import (
    JsonParseError,
    as_int,
    as_list,
    find_first_object,
    find_first_string,
    get_property,
    load_json,
    read_int,
    read_str,
)
from utils.config import (
    FRAUD_DETAIL_SAMPLE_SIZE,
    FRAUD_FIELD_SAMPLE_SIZE,
    GENERIC_STATUS_KEYS,
    TRANSACTION_ID_KEYS,
)

logger = logging.getLogger(__name__)

DOCUMENT_TYPE = "Document Type Identification"
IMAGE_QUALITY = "Image Quality Assessment"
DOCUMENT_LIVENESS = "Document Liveness Check"
HOLOGRAM = "Hologram / OVI / MLI / Dynaprint Check"
MRZ = "MRZ (Machine Readable Zone) Check"
BARCODE = "Barcode & QR Code Check"
VISUAL_OCR = "Visual Zone OCR Validation"
PHOTO_EMBEDDING = "Photo Embedding Check"
PORTRAIT_CROSS_CHECK = "Portrait / Face Cross-Check"
SECURITY_PATTERN = "Security Pattern / Image Pattern Check"
IPI = "IPI (Invisible Personal Information) Check"
ENCRYPTED_IPI = "Encrypted IPI Check"
UV_IR = "UV / IR Security Checks"
EXTENDED_MRZ_OCR = "Extended MRZ & Extended OCR"
AXIAL_PROTECTION = "Axial Protection Check"
GEOMETRY = "Geometry Check"
DATA_CROSS_VALIDATION = "Data Cross-Validation"

PARSING = "Parsing"

AUTHENTICITY_ELEMENTS_PATH = "ContainerList.List[].AuthenticityCheckList.List[].List[]"
TEXT_FIELD_LIST_PATH = "ContainerList.List[].Text.fieldList"
TEXT_COMPARISON_PATH = "ContainerList.List[].Text.comparisonStatus"


# =============================================================================
# RESULT HELPERS
# =============================================================================

def _result(name: str, status: str, details: str, *evidence_paths: str) -> CheckResult:
    return CheckResult(name=name, status=status, details=details, evidence_paths=evidence_paths)


def not_applicable(name: str, details: str) -> CheckResult:
    """Result for a check whose vendor data is absent."""
    return CheckResult(name=name, status="not_applicable", details=details)


def tri_state(value: Optional[int]) -> str:
    """1 → pass, 0 → fail, anything else (including missing) → unknown."""
    if value == 1:
        return "pass"
    if value == 0:
        return "fail"
    return "unknown"


def _describe(value: Optional[int], missing: str = "?") -> str:
    return missing if value is None else str(value)


def _text_field_list(root: Any) -> Tuple[Optional[Dict[str, Any]], Optional[List[Any]]]:
    """Return the `Text` section and its `fieldList` array (either may be None)."""
    text_node = find_first_object(root, "Text")
    fields = get_property(text_node, "fieldList")
    return text_node, fields if isinstance(fields, list) else None


def _field_has_source(field: Any, source: str) -> bool:
    for item in as_list(get_property(field, "valueList")):
        item_source = read_str(item, "source")
        if item_source is not None and item_source.lower() == source.lower():
            return True
    return False


def _has_named_field(node: Any, list_key: str, name_key: str, field_name: str) -> bool:
    for field in as_list(get_property(node, list_key)):
        name = read_str(field, name_key)
        if name is not None and name.lower() == field_name.lower():
            return True
    return False


def _comparison_mismatches(fields: List[Any]) -> List[str]:
    """Names of text fields whose comparisonStatus is present and not 1."""
    mismatches = []
    for field in fields:
        status = read_int(field, "comparisonStatus")
        if status is not None and status != 1:
            mismatches.append(read_str(field, "fieldName") or "Field")
    return mismatches


def extract_authenticity_elements(node: Any) -> List[Dict[str, Optional[int]]]:
    """Flatten `AuthenticityCheckList.List[].List[]` into element records."""
    elements = []
    for group in as_list(get_property(node, "List")):
        for element in as_list(get_property(group, "List")):
            elements.append({
                "type": read_int(element, "Type"),
                "element_type": read_int(element, "ElementType"),
                "diagnose": read_int(element, "ElementDiagnose"),
                "result": read_int(element, "ElementResult"),
            })
    return elements


def format_authenticity_element(element: Dict[str, Optional[int]]) -> str:
    return (
        f"Type={_describe(element['type'])}, "
        f"Element={_describe(element['element_type'])}, "
        f"Diagnose={_describe(element['diagnose'])}, "
        f"Result={_describe(element['result'])}"
    )


# =============================================================================
# RULES
# =============================================================================

def evaluate_document_type(root: Any) -> CheckResult:
    node = find_first_object(root, "OneCandidate")
    if node is None:
        return not_applicable(DOCUMENT_TYPE, "No OneCandidate section in response.")

    name = read_str(node, "DocumentName")
    fds_count = read_int(node, "FDSIDList", "Count")
    icao = read_str(node, "FDSIDList", "ICAOCode")

    has_template = bool(name and name.strip()) or (fds_count is not None and fds_count > 0)
    if has_template:
        details = f"Matched template: {name or 'unknown'} (ICAO {icao or 'n/a'})."
    else:
        details = "No document template match in the response."

    return _result(
        DOCUMENT_TYPE,
        "pass" if has_template else "fail",
        details,
        "ContainerList.List[].OneCandidate",
    )


def evaluate_image_quality(root: Any) -> CheckResult:
    node = find_first_object(root, "ImageQualityCheckList")
    if node is None:
        return not_applicable(IMAGE_QUALITY, "No ImageQualityCheckList section in response.")

    failed = []
    passed = 0
    for item in as_list(get_property(node, "List")):
        result = read_int(item, "result")
        if result == 0:
            failed.append(
                f"type={_describe(read_int(item, 'type'))}, "
                f"probability={_describe(read_int(item, 'probability'))}"
            )
        elif result == 1:
            passed += 1

    if failed:
        examples = "; ".join(failed[:FRAUD_DETAIL_SAMPLE_SIZE])
        return _result(
            IMAGE_QUALITY,
            "fail",
            f"Quality checks failed ({len(failed)}). Examples: {examples}.",
            "ContainerList.List[].ImageQualityCheckList.List",
        )

    if passed:
        return _result(
            IMAGE_QUALITY, "pass", "All reported quality checks passed.",
            "ContainerList.List[].ImageQualityCheckList",
        )

    return _result(
        IMAGE_QUALITY, "unknown", "Quality checks present but status could not be confirmed.",
        "ContainerList.List[].ImageQualityCheckList",
    )


def evaluate_document_liveness(root: Any) -> CheckResult:
    status_node = find_first_object(root, "Status")
    if status_node is None:
        return not_applicable(DOCUMENT_LIVENESS, "No Status section in response.")

    integrity = read_int(status_node, "captureProcessIntegrity")
    if integrity is None:
        return not_applicable(DOCUMENT_LIVENESS, "captureProcessIntegrity not provided.")

    return _result(
        DOCUMENT_LIVENESS,
        tri_state(integrity),
        f"captureProcessIntegrity={integrity}.",
        "ContainerList.List[].Status.captureProcessIntegrity",
    )


def evaluate_hologram(root: Any) -> CheckResult:
    node = find_first_object(root, "AuthenticityCheckList")
    if node is None:
        return not_applicable(HOLOGRAM, "No AuthenticityCheckList section in response.")

    elements = extract_authenticity_elements(node)
    if not elements:
        return _result(
            HOLOGRAM, "unknown", "Authenticity check list present but no elements found.",
            "ContainerList.List[].AuthenticityCheckList",
        )

    failed = [element for element in elements if element["result"] == 0]
    passed = [element for element in elements if element["result"] == 1]

    if failed:
        sample = "; ".join(format_authenticity_element(e) for e in failed[:FRAUD_DETAIL_SAMPLE_SIZE])
        return _result(HOLOGRAM, "fail", f"Authenticity elements failed: {sample}.", AUTHENTICITY_ELEMENTS_PATH)

    if passed:
        return _result(HOLOGRAM, "pass", f"Authenticity elements passed ({len(passed)}).", AUTHENTICITY_ELEMENTS_PATH)

    return _result(
        HOLOGRAM, "unknown", "Authenticity elements present but status could not be determined.",
        AUTHENTICITY_ELEMENTS_PATH,
    )


def evaluate_mrz(root: Any) -> CheckResult:
    mrz_quality = find_first_object(root, "MRZTestQuality")

    mrz_strings = None
    _, fields = _text_field_list(root)
    for field in fields or []:
        name = read_str(field, "fieldName")
        if name is not None and name.lower() == "mrz strings":
            mrz_strings = field
            break

    if mrz_quality is None and mrz_strings is None:
        return not_applicable(MRZ, "No MRZTestQuality or MRZ Strings data.")

    evidence = ("ContainerList.List[].MRZTestQuality", "ContainerList.List[].Text.fieldList[MRZ Strings]")
    failed_reasons = []
    if read_int(mrz_quality, "CHECK_SUMS") == 0:
        failed_reasons.append("MRZ checksum failed")
    if read_int(mrz_strings, "validityStatus") == 0:
        failed_reasons.append("MRZ text validity failed")

    if failed_reasons:
        return _result(MRZ, "fail", "; ".join(failed_reasons), *evidence)

    return _result(MRZ, "pass", "MRZ checksum and MRZ text validity passed.", *evidence)


def evaluate_barcode(root: Any) -> CheckResult:
    node = find_first_object(root, "DocBarCodeInfo")
    if node is None:
        return not_applicable(BARCODE, "No DocBarCodeInfo section in response.")

    code_result = read_int(node, "pArrayFields", 0, "bcCodeResult")
    decode_type = read_int(node, "pArrayFields", 0, "bcType_DECODE")

    if code_result is not None and code_result > 0:
        return _result(
            BARCODE, "pass",
            f"Barcode decoded (bcCodeResult={code_result}, type={_describe(decode_type, '')}).",
            "ContainerList.List[].DocBarCodeInfo",
        )

    return _result(
        BARCODE, "fail", "Barcode present but decoding failed or returned no data.",
        "ContainerList.List[].DocBarCodeInfo",
    )


def evaluate_visual_ocr(root: Any) -> CheckResult:
    text_node, fields = _text_field_list(root)
    if text_node is None:
        return not_applicable(VISUAL_OCR, "No Text section in response.")
    if fields is None:
        return not_applicable(VISUAL_OCR, "No fieldList in Text section.")

    visual_fields = [
        (read_str(field, "fieldName") or "Field", read_int(field, "validityStatus"))
        for field in fields
        if _field_has_source(field, "VISUAL")
    ]
    if not visual_fields:
        return not_applicable(VISUAL_OCR, "No visual OCR fields found.")

    failed = [name for name, validity in visual_fields if validity == 0]
    if failed:
        sample = ", ".join(failed[:FRAUD_FIELD_SAMPLE_SIZE])
        return _result(
            VISUAL_OCR, "fail",
            f"Visual OCR validity failed for {len(failed)} field(s): {sample}.",
            TEXT_FIELD_LIST_PATH,
        )

    return _result(VISUAL_OCR, "pass", "Visual OCR fields validated successfully.", TEXT_FIELD_LIST_PATH)


def evaluate_photo_embedding(root: Any) -> CheckResult:
    images = find_first_object(root, "Images")
    graphics = find_first_object(root, "DocGraphicsInfo")
    if images is None and graphics is None:
        return not_applicable(PHOTO_EMBEDDING, "No Images or DocGraphicsInfo sections in response.")

    has_portrait = (
        _has_named_field(images, "fieldList", "fieldName", "Portrait")
        or _has_named_field(graphics, "pArrayFields", "FieldName", "Portrait")
    )
    has_ghost = _has_named_field(images, "fieldList", "fieldName", "Ghost portrait")

    evidence = ("ContainerList.List[].Images.fieldList", "ContainerList.List[].DocGraphicsInfo.pArrayFields")
    if has_portrait:
        return _result(
            PHOTO_EMBEDDING, "pass",
            f"Portrait image present. Ghost portrait present: {str(has_ghost).lower()}.",
            *evidence,
        )

    return _result(PHOTO_EMBEDDING, "fail", "No portrait image found in visual graphics.", *evidence)


def evaluate_portrait_cross_check(root: Any) -> CheckResult:
    has_face_api = find_first_object(root, "faceApi") is not None
    has_rfid = find_first_object(root, "RFID") is not None
    if not has_face_api and not has_rfid:
        return not_applicable(PORTRAIT_CROSS_CHECK, "No face API or RFID portrait data in response.")

    return _result(
        PORTRAIT_CROSS_CHECK, "unknown",
        "Face comparison data present but mapping is not implemented yet.",
        "ContainerList.List[].faceApi", "ContainerList.List[].RFID",
    )


def evaluate_security_pattern(root: Any) -> CheckResult:
    status_node = find_first_object(root, "Status")
    if status_node is None:
        return not_applicable(SECURITY_PATTERN, "No Status section in response.")

    security = read_int(status_node, "detailsOptical", "security")
    if security is None:
        return not_applicable(SECURITY_PATTERN, "No security status in detailsOptical.")

    return _result(
        SECURITY_PATTERN,
        tri_state(security),
        f"detailsOptical.security={security}.",
        "ContainerList.List[].Status.detailsOptical.security",
    )


def _presence_stub(root: Any, name: str, keys: Tuple[str, ...], missing: str, present: str) -> CheckResult:
    """Checks the vendor reports without a documented verdict field."""
    if all(find_first_object(root, key) is None for key in keys):
        return not_applicable(name, missing)
    return _result(name, "unknown", present, *(f"ContainerList.List[].{key}" for key in keys))


def evaluate_ipi(root: Any) -> CheckResult:
    return _presence_stub(
        root, IPI, ("IPI",),
        "No IPI data in response.",
        "IPI data present but parsing is not implemented.",
    )


def evaluate_encrypted_ipi(root: Any) -> CheckResult:
    return _presence_stub(
        root, ENCRYPTED_IPI, ("EncryptedIpi",),
        "No Encrypted IPI data in response.",
        "Encrypted IPI data present but parsing is not implemented.",
    )


def evaluate_uv_ir(root: Any) -> CheckResult:
    return _presence_stub(
        root, UV_IR, ("UV", "IR"),
        "No UV/IR data in response.",
        "UV/IR data present but parsing is not implemented.",
    )


def evaluate_axial_protection(root: Any) -> CheckResult:
    return _presence_stub(
        root, AXIAL_PROTECTION, ("AxialProtection",),
        "No axial protection data in response.",
        "Axial protection data present but parsing is not implemented.",
    )


def _evaluate_text_comparison(root: Any, name: str, mismatch_prefix: str, pass_details: str) -> CheckResult:
    text_node, fields = _text_field_list(root)
    if text_node is None:
        return not_applicable(name, "No Text section in response.")
    if fields is None:
        return not_applicable(name, "No fieldList in Text section.")

    mismatches = _comparison_mismatches(fields)
    if mismatches:
        sample = ", ".join(mismatches[:FRAUD_FIELD_SAMPLE_SIZE])
        return _result(name, "fail", f"{mismatch_prefix}: {sample}.", TEXT_FIELD_LIST_PATH)

    if read_int(text_node, "comparisonStatus") == 1:
        return _result(name, "pass", pass_details, TEXT_COMPARISON_PATH)

    return _result(
        name, "unknown", "No mismatches found, but comparison status is not confirmed.",
        TEXT_COMPARISON_PATH,
    )


def evaluate_extended_mrz_ocr(root: Any) -> CheckResult:
    return _evaluate_text_comparison(
        root, EXTENDED_MRZ_OCR,
        "Field comparison mismatches detected",
        "MRZ/OCR extended field comparisons passed.",
    )


def evaluate_data_cross_validation(root: Any) -> CheckResult:
    return _evaluate_text_comparison(
        root, DATA_CROSS_VALIDATION,
        "Data mismatches detected across sources",
        "MRZ/visual comparisons are consistent.",
    )


def evaluate_geometry(root: Any) -> CheckResult:
    node = find_document_position(root)
    if node is None:
        return not_applicable(GEOMETRY, "No DocumentPosition section in response.")

    result_status = read_int(node, "ResultStatus")
    angle = read_int(node, "Angle")
    perspective = read_int(node, "PerspectiveTr")

    return _result(
        GEOMETRY,
        tri_state(result_status),
        f"DocumentPosition.ResultStatus={_describe(result_status, 'n/a')}, "
        f"Angle={_describe(angle, 'n/a')}, "
        f"PerspectiveTr={_describe(perspective, 'n/a')}.",
        "ContainerList.List[].DocumentPosition",
    )


FRAUD_CHECKS: List[Callable[[Any], CheckResult]] = [
    evaluate_document_type,
    evaluate_image_quality,
    evaluate_document_liveness,
    evaluate_hologram,
    evaluate_mrz,
    evaluate_barcode,
    evaluate_visual_ocr,
    evaluate_photo_embedding,
    evaluate_portrait_cross_check,
    evaluate_security_pattern,
    evaluate_ipi,
    evaluate_encrypted_ipi,
    evaluate_uv_ir,
    evaluate_extended_mrz_ocr,
    evaluate_axial_protection,
    evaluate_geometry,
    evaluate_data_cross_validation,
]


# =============================================================================
# VALIDITY AGGREGATE
# =============================================================================

def read_element_verdict(element: Any) -> Optional[bool]:
    """
    Verdict of one authenticity element.

    The first of ElementResult, Result, ElementDiagnose holding a bool or an
    integer decides: true / non-zero → valid, false / 0 → invalid.
    """
    for key in ("ElementResult", "Result", "ElementDiagnose"):
        value = get_property(element, key)
        if isinstance(value, bool):
            return value
        number = as_int(value)
        if number is not None:
            return number != 0
    return None


def build_authenticity_label(element: Any) -> str:
    parts = []
    for key, label in (("Type", "Type"), ("ElementType", "Element"), ("ElementDiagnose", "Diagnose")):
        value = read_int(element, key)
        if value is not None:
            parts.append(f"{label} {value}")

    if not parts:
        return "AuthenticityCheck"
    return f"AuthenticityCheck ({', '.join(parts)})"


def _dedupe_case_insensitive(labels: List[str]) -> List[str]:
    seen = set()
    unique = []
    for label in labels:
        if label.lower() not in seen:
            seen.add(label.lower())
            unique.append(label)
    return unique


def extract_validity_summary(root: Any) -> ValiditySummary:
    """
    Split authenticity elements into valid / invalid labels.

    Walks `ContainerList.List[].AuthenticityCheckList.List[].List[]` on every
    page; elements without a verdict are ignored.
    """
    valid, invalid = [], []

    for container in iter_containers(root):
        auth_list = get_property(container, "AuthenticityCheckList")
        for group in as_list(get_property(auth_list, "List")):
            for element in as_list(get_property(group, "List")):
                verdict = read_element_verdict(element)
                if verdict is None:
                    continue
                (valid if verdict else invalid).append(build_authenticity_label(element))

    return ValiditySummary(
        valid=_dedupe_case_insensitive(valid),
        invalid=_dedupe_case_insensitive(invalid),
    )


def resolve_overall_status(root: Any, validity: Optional[ValiditySummary] = None) -> Optional[str]:
    """
    Overall document status.

    "invalid" when any authenticity element failed, "valid" when elements
    exist and none failed. Without elements, falls back to the vendor's
    `Status.overallStatus`, then to the first generic status string.
    """
    if validity is None:
        validity = extract_validity_summary(root)

    if validity.invalid:
        return "invalid"
    if validity.valid:
        return "valid"

    overall = read_int(find_first_object(root, "Status"), "overallStatus")
    if overall is not None:
        return str(overall)

    return find_first_string(root, GENERIC_STATUS_KEYS)


# =============================================================================
# SUMMARY
# =============================================================================

def evaluate_fraud_checks(root: Any) -> FraudSummary:
    """Run every rule over a parsed document reader response."""
    checks = [check(root) for check in FRAUD_CHECKS]

    return FraudSummary(
        transaction_id=find_first_string(root, TRANSACTION_ID_KEYS),
        overall_status=resolve_overall_status(root),
        checks=checks,
        not_applicable=[check.name for check in checks if check.status == "not_applicable"],
    )


def build_fraud_summary(content: str) -> FraudSummary:
    """
    Build the fraud summary from a raw document reader body.

    An unparseable body yields a single `Parsing` check with status unknown.
    """
    try:
        root = load_json(content)
    except JsonParseError as e:
        logger.warning(f"Document reader response could not be parsed: {e}")
        return FraudSummary(
            checks=[CheckResult(
                name=PARSING,
                status="unknown",
                details="Unable to parse document reader response.",
            )]
        )

    return evaluate_fraud_checks(root)
