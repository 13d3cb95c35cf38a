"""
Pydantic models for API request/response schemas.

Attributes are snake_case; the browser client reads and sends camelCase,
so every model serializes with camelCase aliases and accepts either form.
"""
from typing import Optional, List, Literal, Dict, Any, Tuple
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CheckStatus = Literal["pass", "fail", "unknown", "not_applicable"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUESTS
# =============================================================================

class DocumentImage(CamelModel):
    """One document page sent to the document reader."""
    base64: str = Field(..., description="Base64 image data (data URI prefix allowed)")
    format: Optional[str] = Field(None, description="Image format tag: pdf, png or jpg")


class DocumentProcessRequest(CamelModel):
    """Document processing request (pages in vendor order: front, back, ...)."""
    images: List[DocumentImage] = Field(default_factory=list)
    scenario: Optional[str] = Field(None, description="Vendor processing scenario (default FullAuth)")
    tag: Optional[str] = Field(None, description="Correlation tag")
    live_portrait_base64: Optional[str] = Field(None, description="Live face capture for identity checks")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "images": [{"base64": "/9j/4AAQSkZJRgABAQ...", "format": "jpg"}],
                "scenario": "FullAuth",
            }
        }
    )


class CompareDocumentsRequest(CamelModel):
    """Two identity documents to cross-check."""
    first_document_image_base64: Optional[str] = None
    second_document_image_base64: Optional[str] = None


class DetectFaceRequest(CamelModel):
    image_base64: Optional[str] = None


class FaceMatchRequest(CamelModel):
    image_base64_1: Optional[str] = Field(None, alias="imageBase64_1")
    image_base64_2: Optional[str] = Field(None, alias="imageBase64_2")


class LivenessRequest(CamelModel):
    """Liveness lookup by transaction id, or a capture of base64 frames."""
    transaction_id: Optional[str] = None
    frames: List[str] = Field(default_factory=list)


# =============================================================================
# AUTHENTICITY / FRAUD
# =============================================================================

class CheckResult(CamelModel):
    """Outcome of one authenticity rule."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    status: CheckStatus
    details: str
    evidence_paths: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Vendor JSON paths the rule consulted"
    )


class FraudSummary(CamelModel):
    transaction_id: Optional[str] = None
    overall_status: Optional[str] = None
    checks: List[CheckResult] = Field(default_factory=list)
    not_applicable: List[str] = Field(
        default_factory=list,
        description="Names of checks whose vendor data was absent"
    )


class ValiditySummary(CamelModel):
    valid: List[str] = Field(default_factory=list)
    invalid: List[str] = Field(default_factory=list)


# =============================================================================
# DOCUMENT POSITION
# =============================================================================

class DocumentPoint(CamelModel):
    x: Optional[float] = None
    y: Optional[float] = None


class DocumentWidthHeight(CamelModel):
    width: Optional[int] = None
    height: Optional[int] = None


class DocumentRegion(CamelModel):
    left_top: Optional[DocumentPoint] = None
    right_top: Optional[DocumentPoint] = None
    right_bottom: Optional[DocumentPoint] = None
    left_bottom: Optional[DocumentPoint] = None
    points: List[DocumentPoint] = Field(default_factory=list)


class DocumentPositionRaw(CamelModel):
    """Geometry values exactly as read from the vendor."""
    angle: Optional[float] = None
    center: Optional[DocumentPoint] = None
    dpi: Optional[int] = None
    height: Optional[int] = None
    width: Optional[int] = None
    inverse: Optional[int] = None
    obj_area: Optional[float] = None
    obj_int_angle_dev: Optional[float] = None
    perspective_tr: Optional[int] = None
    result_status: Optional[int] = None
    doc_format: Optional[int] = None
    left_top: Optional[DocumentPoint] = None
    right_top: Optional[DocumentPoint] = None
    right_bottom: Optional[DocumentPoint] = None
    left_bottom: Optional[DocumentPoint] = None


class InterpretationEntry(CamelModel):
    value: Any = None
    description: str


class DocumentPositionInterpretation(CamelModel):
    result_status: InterpretationEntry
    obj_area: InterpretationEntry
    perspective_tr: InterpretationEntry
    angle: InterpretationEntry
    inverse: InterpretationEntry
    doc_format: InterpretationEntry
    center: InterpretationEntry
    width_height: InterpretationEntry


class DocumentPositionVerdict(CamelModel):
    is_correct_framing: bool
    reasons: List[str] = Field(default_factory=list)


class DocumentPositionInfo(CamelModel):
    raw: DocumentPositionRaw
    region: Optional[DocumentRegion] = None
    interpretation: DocumentPositionInterpretation
    verdict: DocumentPositionVerdict
    user_message: str


# =============================================================================
# DOCUMENT SUMMARIES
# =============================================================================

class DocumentSummary(CamelModel):
    """Simplified view of a document reader response."""
    transaction_id: Optional[str] = None
    overall_status: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    full_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    expiry_date: Optional[str] = None
    validity: ValiditySummary = Field(default_factory=ValiditySummary)
    document_position: Optional[DocumentPositionInfo] = None
    error: Optional[str] = Field(None, description="Set when the vendor body could not be parsed")


class IdentityDocumentInfo(CamelModel):
    name: Optional[str] = None
    surname: Optional[str] = None
    document_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    mrz_text: Optional[str] = None
    portrait_image_base64: Optional[str] = None
    raw_response_json: Optional[str] = None


class ComparisonResult(CamelModel):
    first_document: IdentityDocumentInfo
    second_document: IdentityDocumentInfo
    face_match_score: Optional[float] = Field(None, description="Similarity on a 0-1 scale")
    face_match_score_percent: Optional[float] = None
    is_face_match: bool = False
    is_document_number_match: bool = False
    is_name_match: bool = False
    is_dob_match: bool = False
    face_match_threshold: float


class VerifyIdentityResult(CamelModel):
    similarity_percent: Optional[float] = None
    document_portrait_base64: str


# =============================================================================
# FACE API
# =============================================================================

class FaceDetectResult(CamelModel):
    details: Dict[str, Any] = Field(default_factory=dict, description="Attribute name → value")
    raw: Any = None


class FaceMatchResult(CamelModel):
    similarity: Optional[float] = None
    score: Optional[float] = None
    raw: Any = None


class LivenessResult(CamelModel):
    liveness_status: Optional[str] = None
    score: Optional[float] = None
    raw: Any = None


class IcaoSection(CamelModel):
    name: str
    compliant_count: int = 0
    total_count: int = 0


class IcaoSummary(CamelModel):
    """Photo compliance grouped by ICAO quality section."""
    sections: List[IcaoSection] = Field(default_factory=list)
    total_count: Optional[int] = None
    total_compliant_count: Optional[int] = None
    compliance_percent: Optional[float] = None
    raw: Any = None


# =============================================================================
# SERVICE
# =============================================================================

class ErrorResponse(BaseModel):
    """Body returned for every handled error."""
    error: str
    code: str
    details: Optional[Any] = None


class HealthResponse(CamelModel):
    status: str
    version: str
    auth_enabled: bool
    docr_base_url: str
    face_api_base_url: str
