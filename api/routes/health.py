"""Health check endpoints."""
from fastapi import APIRouter

from models.schemas import HealthResponse
from utils.config import API_KEYS, APP_VERSION, DOCR_BASE_URL, FACE_API_BASE_URL

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Report service status and the configured vendors.

    Vendors are not contacted.
    """
    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        auth_enabled=bool(API_KEYS),
        docr_base_url=DOCR_BASE_URL,
        face_api_base_url=FACE_API_BASE_URL,
    )
