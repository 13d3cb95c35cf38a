"""Face API endpoints."""
from fastapi import APIRouter, Depends, Request

from models.schemas import ErrorResponse, FaceDetectResult, FaceMatchResult, IcaoSummary, LivenessResult
from services.request_parsing import parse_liveness_request, parse_single_image, parse_two_images
from services.vendor_clients import FaceClient, get_face_client
from services import verification_service

router = APIRouter(tags=["Face"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing image(s)"},
    502: {"model": ErrorResponse, "description": "Vendor request failed"},
}


@router.post("/detect-face", response_model=FaceDetectResult, responses=ERROR_RESPONSES)
async def detect_face(request: Request, client: FaceClient = Depends(get_face_client)):
    """
    Detect a face and return its attributes (age, sex, emotion, ...).

    Accepts multipart/form-data `image` or JSON `{imageBase64}`.
    """
    image = await parse_single_image(request)
    return await verification_service.detect_face(image, client)


@router.post("/icao-detect", response_model=IcaoSummary, responses=ERROR_RESPONSES)
async def detect_icao(request: Request, client: FaceClient = Depends(get_face_client)):
    """Check photo compliance with ICAO portrait requirements."""
    image = await parse_single_image(request)
    return await verification_service.detect_icao(image, client)


@router.post("/face-match", response_model=FaceMatchResult, responses=ERROR_RESPONSES)
async def face_match(request: Request, client: FaceClient = Depends(get_face_client)):
    """
    Compare two face images.

    Accepts multipart/form-data `image1` and `image2` or JSON
    `{imageBase64_1, imageBase64_2}`.
    """
    images = await parse_two_images(request)
    return await verification_service.match_faces(images, client)


@router.post("/liveness-detection", response_model=LivenessResult, responses=ERROR_RESPONSES)
async def liveness_detection(request: Request, client: FaceClient = Depends(get_face_client)):
    """Look up a liveness transaction, or check a set of captured frames."""
    parsed = await parse_liveness_request(request)
    return await verification_service.check_liveness(parsed, client)
