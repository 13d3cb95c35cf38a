"""Document fraud rule endpoint."""
from fastapi import APIRouter, Depends, Request

from models.schemas import ErrorResponse, FraudSummary
from services.request_parsing import parse_document_request
from services.vendor_clients import DocumentReaderClient, get_document_reader_client
from services import verification_service

router = APIRouter(prefix="/document-fraud", tags=["Document Fraud"])


@router.post(
    "/detect",
    response_model=FraudSummary,
    responses={
        400: {"model": ErrorResponse, "description": "Missing images or malformed body"},
        502: {"model": ErrorResponse, "description": "Vendor request failed"},
    }
)
async def detect_document_fraud(
    request: Request,
    client: DocumentReaderClient = Depends(get_document_reader_client)
):
    """
    Run the authenticity rule set on document pages.

    Each rule reports pass, fail, unknown or not_applicable with a short
    explanation; rules without vendor data are also listed in `notApplicable`.
    """
    parsed = await parse_document_request(request)
    return await verification_service.detect_document_fraud(parsed, client)
