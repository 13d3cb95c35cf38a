"""
Verification flows.

Each public coroutine backs one endpoint: it validates the parsed request,
calls the vendors in sequence and turns their answers into response models.
Vendor failures propagate as VendorError; missing input raises
InvalidRequestError and missing vendor data raises ExtractionError.
"""
import logging
from typing import Optional, Tuple

from models.schemas import (
    CompareDocumentsRequest,
    ComparisonResult,
    DocumentImage,
    DocumentProcessRequest,
    DocumentSummary,
    FaceDetectResult,
    FaceMatchResult,
    FraudSummary,
    IcaoSummary,
    IdentityDocumentInfo,
    LivenessRequest,
    LivenessResult,
    VerifyIdentityResult,
)
from services.comparison import build_comparison_result, normalize_similarity_percent
from services.document_fields import extract_identity_document
from services.document_summary import build_document_summary
from services.face_summary import (
    summarize_face_detection,
    summarize_face_match,
    summarize_icao,
    summarize_liveness,
)
from services.fraud_checks import build_fraud_summary
from services.json_tree import JsonParseError, load_json
from services.portrait_extractor import extract_document_portrait
from services.vendor_clients import (
    DocumentReaderClient,
    FaceClient,
    build_face_api_config,
    build_process_payload,
)
from utils.base64_utils import clean_base64
from utils.config import DOCR_FACE_API_THRESHOLD, DOCR_USE_FACE_API
from utils.exceptions import ExtractionError, InvalidRequestError
from utils.text_normalization import is_blank

logger = logging.getLogger(__name__)

MISSING_IMAGES_MESSAGE = (
    "Provide document images. Send multipart/form-data with 'images' "
    "or JSON with 'images' [{ base64, format }]."
)
MISSING_LIVE_PORTRAIT_MESSAGE = (
    "Provide a live portrait. Send form field 'livePortrait' with base64 "
    "or JSON 'livePortraitBase64'."
)
MISSING_FACE_IMAGE_MESSAGE = (
    "No image provided. Send multipart/form-data with 'image' or JSON with 'imageBase64'."
)
MISSING_FACE_PAIR_MESSAGE = (
    "Provide two images. Send multipart/form-data with 'image1' and 'image2' "
    "or JSON with 'imageBase64_1' and 'imageBase64_2'."
)
MISSING_LIVENESS_INPUT_MESSAGE = "Provide 'transactionId' or an array of 'frames' (base64 images)."


def _require_images(request: DocumentProcessRequest) -> None:
    if not request.images:
        raise InvalidRequestError(MISSING_IMAGES_MESSAGE, field="images")


# =============================================================================
# DOCUMENT FLOWS
# =============================================================================

async def process_document(
    request: DocumentProcessRequest,
    client: DocumentReaderClient
) -> DocumentSummary:
    """Send the pages to the document reader and summarize the answer."""
    _require_images(request)

    content = await client.process(build_process_payload(request))
    return build_document_summary(content)


async def fraud_detection(
    request: DocumentProcessRequest,
    client: DocumentReaderClient
) -> DocumentSummary:
    """Same as process_document, with authenticity checks always requested."""
    _require_images(request)

    content = await client.process(build_process_payload(request, force_auth=True))
    return build_document_summary(content)


async def detect_document_fraud(
    request: DocumentProcessRequest,
    client: DocumentReaderClient
) -> FraudSummary:
    """Run the authenticity rule set over a document reader answer."""
    _require_images(request)

    content = await client.process(build_process_payload(request, force_auth=True))
    summary = build_fraud_summary(content)

    logger.info(
        f"Fraud detection finished: {len(summary.checks)} checks, "
        f"{len(summary.not_applicable)} not applicable",
        extra={"transaction_id": summary.transaction_id}
    )
    return summary


async def verify_identity(
    request: DocumentProcessRequest,
    docr_client: DocumentReaderClient,
    face_client: FaceClient
) -> VerifyIdentityResult:
    """
    Match the document portrait against a live capture.

    Flow:
        1. Document reader processes the pages (no forced authenticity checks)
        2. The portrait is located in its answer
        3. Face API matches document portrait and live portrait

    Raises:
        InvalidRequestError: No pages or no live portrait
        ExtractionError: No portrait in the document reader answer
    """
    _require_images(request)
    if is_blank(request.live_portrait_base64):
        raise InvalidRequestError(MISSING_LIVE_PORTRAIT_MESSAGE, field="livePortraitBase64")

    if DOCR_USE_FACE_API:
        payload = build_process_payload(
            request,
            force_auth=False,
            include_live_portrait=True,
            use_face_api=True,
            face_api_config=build_face_api_config(),
        )
    else:
        payload = build_process_payload(request, force_auth=False)

    content = await docr_client.process(payload)

    try:
        root = load_json(content)
    except JsonParseError as e:
        raise ExtractionError("Unable to extract document portrait from document reader response.") from e

    document_portrait = extract_document_portrait(root)
    if is_blank(document_portrait):
        raise ExtractionError("Unable to extract document portrait from document reader response.")

    match_content = await face_client.match(document_portrait, clean_base64(request.live_portrait_base64))
    match = summarize_face_match(match_content)

    return VerifyIdentityResult(
        similarity_percent=normalize_similarity_percent(match.similarity),
        document_portrait_base64=document_portrait,
    )


async def _read_identity_document(image: str, client: DocumentReaderClient) -> Optional[IdentityDocumentInfo]:
    """Process a single document image; None when the answer is not JSON."""
    content = await client.process(build_process_payload(DocumentProcessRequest(images=[DocumentImage(base64=image)])))

    try:
        root = load_json(content)
    except JsonParseError:
        logger.warning("Document reader answer for comparison could not be parsed")
        return None

    return extract_identity_document(root, raw_json=content)


async def compare_documents(
    request: CompareDocumentsRequest,
    docr_client: DocumentReaderClient,
    face_client: FaceClient,
    threshold: float = DOCR_FACE_API_THRESHOLD
) -> ComparisonResult:
    """
    Cross-check two identity documents of the same holder.

    Both documents are read one after the other, then their portraits are
    matched and their number, name and birth date compared.
    """
    first_image = request.first_document_image_base64
    second_image = request.second_document_image_base64
    if is_blank(first_image) or is_blank(second_image):
        raise InvalidRequestError("Both document images are required.")

    first = await _read_identity_document(first_image, docr_client)
    second = await _read_identity_document(second_image, docr_client)

    if first is None or second is None:
        raise ExtractionError("Unable to parse document data from document reader responses.")

    if is_blank(first.portrait_image_base64) or is_blank(second.portrait_image_base64):
        raise ExtractionError("Unable to extract document portrait(s) for face matching.")

    match_content = await face_client.match(
        clean_base64(first.portrait_image_base64),
        clean_base64(second.portrait_image_base64),
    )
    match = summarize_face_match(match_content)

    result = build_comparison_result(first, second, match.similarity, threshold=threshold)
    logger.info(
        f"Document comparison: face={result.is_face_match} number={result.is_document_number_match} "
        f"name={result.is_name_match} dob={result.is_dob_match}"
    )
    return result


# =============================================================================
# FACE FLOWS
# =============================================================================

async def detect_face(image: Optional[str], client: FaceClient) -> FaceDetectResult:
    if is_blank(image):
        raise InvalidRequestError(MISSING_FACE_IMAGE_MESSAGE, field="imageBase64")

    return summarize_face_detection(await client.detect(image))


async def detect_icao(image: Optional[str], client: FaceClient) -> IcaoSummary:
    if is_blank(image):
        raise InvalidRequestError(MISSING_FACE_IMAGE_MESSAGE, field="imageBase64")

    return summarize_icao(await client.detect_icao(image))


async def match_faces(images: Tuple[Optional[str], Optional[str]], client: FaceClient) -> FaceMatchResult:
    image1, image2 = images
    if is_blank(image1) or is_blank(image2):
        raise InvalidRequestError(MISSING_FACE_PAIR_MESSAGE)

    return summarize_face_match(await client.match(image1, image2))


async def check_liveness(request: LivenessRequest, client: FaceClient) -> LivenessResult:
    """
    Liveness by transaction lookup, or by frame capture.

    A transaction id wins when both are sent.
    """
    if not is_blank(request.transaction_id):
        content = await client.liveness_by_transaction(request.transaction_id)
    elif request.frames:
        content = await client.liveness_frames(request.frames)
    else:
        raise InvalidRequestError(MISSING_LIVENESS_INPUT_MESSAGE)

    return summarize_liveness(content)
