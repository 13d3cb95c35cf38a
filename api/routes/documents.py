"""Document reader endpoints: processing, fraud detection and identity checks."""
from fastapi import APIRouter, Depends, Request

from models.schemas import ComparisonResult, DocumentSummary, ErrorResponse, VerifyIdentityResult
from services.request_parsing import parse_compare_request, parse_document_request
from services.vendor_clients import (
    DocumentReaderClient,
    FaceClient,
    get_document_reader_client,
    get_face_client,
)
from services import verification_service

router = APIRouter(prefix="/documents", tags=["Documents"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing images or malformed body"},
    502: {"model": ErrorResponse, "description": "Vendor request failed"},
    504: {"model": ErrorResponse, "description": "Vendor timed out"},
}


@router.post("/process", response_model=DocumentSummary, responses=ERROR_RESPONSES)
async def process_document(
    request: Request,
    client: DocumentReaderClient = Depends(get_document_reader_client)
):
    """
    Process document pages with the document reader.

    Accepts multipart/form-data (one file per page, plus `scenario` and `tag`)
    or JSON `{images: [{base64, format}], scenario, tag}`.
    Returns the key fields, authenticity validity and framing feedback.
    """
    parsed = await parse_document_request(request)
    return await verification_service.process_document(parsed, client)


@router.post("/fraud-detection", response_model=DocumentSummary, responses=ERROR_RESPONSES)
async def fraud_detection(
    request: Request,
    client: DocumentReaderClient = Depends(get_document_reader_client)
):
    """Process document pages with authenticity checks always requested."""
    parsed = await parse_document_request(request)
    return await verification_service.fraud_detection(parsed, client)


@router.post(
    "/verify-identity",
    response_model=VerifyIdentityResult,
    responses={**ERROR_RESPONSES, 422: {"model": ErrorResponse, "description": "No document portrait found"}}
)
async def verify_identity(
    request: Request,
    docr_client: DocumentReaderClient = Depends(get_document_reader_client),
    face_client: FaceClient = Depends(get_face_client)
):
    """
    Compare the document portrait with a live capture.

    Send the document pages like `/process`, plus the live portrait as the
    `livePortrait` form field or JSON `livePortraitBase64`.
    Returns the similarity as a percentage and the document portrait.
    """
    parsed = await parse_document_request(request)
    return await verification_service.verify_identity(parsed, docr_client, face_client)


@router.post(
    "/compare-documents",
    response_model=ComparisonResult,
    responses={**ERROR_RESPONSES, 422: {"model": ErrorResponse, "description": "Document data or portraits missing"}}
)
@router.post("/compare-passports", response_model=ComparisonResult, include_in_schema=False)
async def compare_documents(
    request: Request,
    docr_client: DocumentReaderClient = Depends(get_document_reader_client),
    face_client: FaceClient = Depends(get_face_client)
):
    """
    Cross-check two identity documents (e.g. passport and national ID).

    JSON body: `{firstDocumentImageBase64, secondDocumentImageBase64}`.
    """
    parsed = await parse_compare_request(request)
    return await verification_service.compare_documents(parsed, docr_client, face_client)
