"""
Document Position Interpreter.

Turns the document reader's raw framing geometry (DocumentPosition) into:
- per-field interpretation texts,
- a framing verdict with ordered reason codes,
- one coaching message for the person holding the document.

Thresholds (percent of image covered, degrees of rotation) live in
utils/config.py.
"""
from typing import Any, List, Optional

from models.schemas import (
    DocumentPoint,
    DocumentPositionInfo,
    DocumentPositionInterpretation,
    DocumentPositionRaw,
    DocumentPositionVerdict,
    DocumentRegion,
    DocumentWidthHeight,
    InterpretationEntry,
)
from services.json_tree import find_first_object, get_property, read_float, read_lenient_int
from utils.config import (
    FRAME_AREA_GOOD,
    FRAME_AREA_BORDERLINE,
    FRAME_ANGLE_ACCEPTABLE,
    FRAME_ANGLE_NOTICEABLE,
)
from utils.text_normalization import format_number

DOCUMENT_POSITION_KEY = "DocumentPosition"

NOT_PROVIDED = "Not provided by server."

# Verdict reason codes
RESULT_STATUS_MISSING = "ResultStatusMissing"
RESULT_STATUS_NOT_OK = "ResultStatusNotOK"
OBJ_AREA_MISSING = "ObjAreaMissing"
OBJ_AREA_TOO_SMALL = "ObjAreaTooSmall"
OBJ_AREA_BORDERLINE = "ObjAreaBorderline"
PERSPECTIVE_NOT_OK = "PerspectiveNotOK"
IMAGE_INVERTED = "ImageInverted"
ROTATION_TOO_LARGE = "RotationTooLarge"

CORRECT_FRAMING_MESSAGE = "Great framing. Keep the document centered and fully inside the frame."
FALLBACK_MESSAGE = "Unable to evaluate framing; please try again."

# First reason present picks the message
USER_MESSAGES = [
    (OBJ_AREA_TOO_SMALL, "Please move the document closer to fill more of the frame."),
    (OBJ_AREA_BORDERLINE, "Please move the document slightly closer and minimize background."),
    (PERSPECTIVE_NOT_OK, "Please hold the document flat to the camera."),
    (ROTATION_TOO_LARGE, "Please rotate the document to be level."),
    (IMAGE_INVERTED, "Please flip the document to the correct orientation."),
    (RESULT_STATUS_NOT_OK, "Please make sure the entire document is visible, well lit, and centered."),
]

RESULT_STATUS_TEXTS = {
    1: "OK",
    0: "Failed",
    2: "Borderline / not ideal framing. Not fully OK.",
}

PERSPECTIVE_TEXTS = {
    1: "Perspective is acceptable (no strong distortion).",
    0: "Perspective is not acceptable (strong distortion).",
    2: "Perspective check not performed.",
}

INVERSE_TEXTS = {
    0: "Image is not inverted.",
    1: "Image appears inverted.",
}


# =============================================================================
# RAW GEOMETRY
# =============================================================================

def read_point(node: Any, name: str) -> Optional[DocumentPoint]:
    """Read an {x, y} object; None unless at least one coordinate is numeric."""
    point = get_property(node, name)
    if not isinstance(point, dict):
        return None

    x = read_float(point, "x")
    y = read_float(point, "y")
    if x is None and y is None:
        return None

    return DocumentPoint(x=x, y=y)


def parse_document_position_raw(node: Any) -> DocumentPositionRaw:
    """
    Snapshot the geometry values of a DocumentPosition object.

    Numbers may arrive as floats or numeric strings; integer flags are
    rounded.
    """
    return DocumentPositionRaw(
        angle=read_float(node, "Angle"),
        center=read_point(node, "Center"),
        dpi=read_lenient_int(node, "Dpi"),
        height=read_lenient_int(node, "Height"),
        width=read_lenient_int(node, "Width"),
        inverse=read_lenient_int(node, "Inverse"),
        obj_area=read_float(node, "ObjArea"),
        obj_int_angle_dev=read_float(node, "ObjIntAngleDev"),
        perspective_tr=read_lenient_int(node, "PerspectiveTr"),
        result_status=read_lenient_int(node, "ResultStatus"),
        doc_format=read_lenient_int(node, "docFormat"),
        left_top=read_point(node, "LeftTop"),
        right_top=read_point(node, "RightTop"),
        right_bottom=read_point(node, "RightBottom"),
        left_bottom=read_point(node, "LeftBottom"),
    )


def build_region(raw: DocumentPositionRaw) -> Optional[DocumentRegion]:
    """Document quadrilateral; None when no corner was reported."""
    corners = [raw.left_top, raw.right_top, raw.right_bottom, raw.left_bottom]
    if all(corner is None for corner in corners):
        return None

    return DocumentRegion(
        left_top=raw.left_top,
        right_top=raw.right_top,
        right_bottom=raw.right_bottom,
        left_bottom=raw.left_bottom,
        points=[corner for corner in corners if corner is not None],
    )


# =============================================================================
# INTERPRETATION
# =============================================================================

def _coded(value: Optional[int], texts: dict, unknown: str) -> InterpretationEntry:
    if value is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)
    return InterpretationEntry(value=value, description=texts.get(value, unknown))


def interpret_result_status(value: Optional[int]) -> InterpretationEntry:
    return _coded(value, RESULT_STATUS_TEXTS, "Unknown result status.")


def interpret_obj_area(value: Optional[float]) -> InterpretationEntry:
    """Coverage buckets: >= 70 good, >= 50 borderline, below that too much background."""
    if value is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)

    coverage = f"Document covers {format_number(value)}% of the image."
    if value >= FRAME_AREA_GOOD:
        description = f"{coverage} Good full-frame coverage."
    elif value >= FRAME_AREA_BORDERLINE:
        description = f"{coverage} Borderline coverage; recommended >= {FRAME_AREA_GOOD}%."
    else:
        description = f"{coverage} Too much background; recommended >= {FRAME_AREA_GOOD}%."

    return InterpretationEntry(value=value, description=description)


def interpret_perspective(value: Optional[int]) -> InterpretationEntry:
    return _coded(value, PERSPECTIVE_TEXTS, "Unknown perspective status.")


def interpret_angle(value: Optional[float]) -> InterpretationEntry:
    """Rotation buckets on |angle|: <= 2 acceptable, <= 10 noticeable, else large."""
    if value is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)

    angle = abs(value)
    if angle <= FRAME_ANGLE_ACCEPTABLE:
        description = "Small rotation angle (acceptable)."
    elif angle <= FRAME_ANGLE_NOTICEABLE:
        description = "Noticeable rotation; try to align the document."
    else:
        description = "Large rotation angle; please rotate the document."

    return InterpretationEntry(value=value, description=description)


def interpret_inverse(value: Optional[int]) -> InterpretationEntry:
    return _coded(value, INVERSE_TEXTS, "Unknown inversion status.")


def interpret_doc_format(value: Optional[int]) -> InterpretationEntry:
    if value is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)
    return InterpretationEntry(value=value, description="Detected document format code.")


def interpret_center(value: Optional[DocumentPoint]) -> InterpretationEntry:
    if value is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)
    return InterpretationEntry(value=value, description="Document center point in image coordinates.")


def interpret_width_height(width: Optional[int], height: Optional[int]) -> InterpretationEntry:
    if width is None and height is None:
        return InterpretationEntry(value=None, description=NOT_PROVIDED)
    return InterpretationEntry(
        value=DocumentWidthHeight(width=width, height=height),
        description="Detected document size in pixels (in the input image coordinate space).",
    )


def build_interpretation(raw: DocumentPositionRaw) -> DocumentPositionInterpretation:
    return DocumentPositionInterpretation(
        result_status=interpret_result_status(raw.result_status),
        obj_area=interpret_obj_area(raw.obj_area),
        perspective_tr=interpret_perspective(raw.perspective_tr),
        angle=interpret_angle(raw.angle),
        inverse=interpret_inverse(raw.inverse),
        doc_format=interpret_doc_format(raw.doc_format),
        center=interpret_center(raw.center),
        width_height=interpret_width_height(raw.width, raw.height),
    )


# =============================================================================
# VERDICT
# =============================================================================

def build_verdict(raw: DocumentPositionRaw) -> DocumentPositionVerdict:
    """
    Accumulate framing problems in a fixed order.

    The reasons list is order-stable: result status, area, perspective,
    inversion, rotation. Framing is correct only when it is empty.
    """
    reasons: List[str] = []

    if raw.result_status is None:
        reasons.append(RESULT_STATUS_MISSING)
    elif raw.result_status != 1:
        reasons.append(RESULT_STATUS_NOT_OK)

    if raw.obj_area is None:
        reasons.append(OBJ_AREA_MISSING)
    elif raw.obj_area < FRAME_AREA_BORDERLINE:
        reasons.append(OBJ_AREA_TOO_SMALL)
    elif raw.obj_area < FRAME_AREA_GOOD:
        reasons.append(OBJ_AREA_BORDERLINE)

    if raw.perspective_tr == 0:
        reasons.append(PERSPECTIVE_NOT_OK)

    if raw.inverse == 1:
        reasons.append(IMAGE_INVERTED)

    if raw.angle is not None and abs(raw.angle) > FRAME_ANGLE_NOTICEABLE:
        reasons.append(ROTATION_TOO_LARGE)

    return DocumentPositionVerdict(is_correct_framing=not reasons, reasons=reasons)


def build_user_message(verdict: Optional[DocumentPositionVerdict]) -> str:
    """Pick exactly one coaching message, by reason priority."""
    if verdict is None:
        return FALLBACK_MESSAGE

    if verdict.is_correct_framing:
        return CORRECT_FRAMING_MESSAGE

    for reason, message in USER_MESSAGES:
        if reason in verdict.reasons:
            return message

    return FALLBACK_MESSAGE


def interpret_document_position(node: Any) -> DocumentPositionInfo:
    """Full interpretation of one DocumentPosition object."""
    raw = parse_document_position_raw(node)
    verdict = build_verdict(raw)

    return DocumentPositionInfo(
        raw=raw,
        region=build_region(raw),
        interpretation=build_interpretation(raw),
        verdict=verdict,
        user_message=build_user_message(verdict),
    )


def find_document_position(root: Any) -> Optional[dict]:
    """
    First DocumentPosition object in a response.

    An exactly spelled DocumentPosition wins over other casings found earlier.
    """
    node = find_first_object(root, DOCUMENT_POSITION_KEY, case_sensitive=True)
    if node is None:
        node = find_first_object(root, DOCUMENT_POSITION_KEY)
    return node


def extract_document_position(root: Any) -> Optional[DocumentPositionInfo]:
    """Interpret the first DocumentPosition object in a response, if any."""
    node = find_document_position(root)
    if node is None:
        return None
    return interpret_document_position(node)
