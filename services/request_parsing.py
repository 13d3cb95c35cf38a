"""
Inbound request parsing.

Every endpoint accepts either multipart/form-data (image files plus text
fields) or a JSON body with base64 strings. Uploaded files are base64
encoded here; JSON base64 strings are cleaned of any data URI prefix.
"""
import json
import logging
from typing import Any, List, Optional, Tuple

from fastapi import Request
from pydantic import BaseModel, ValidationError
from starlette.datastructures import FormData, UploadFile

from models.schemas import (
    CompareDocumentsRequest,
    DetectFaceRequest,
    DocumentImage,
    DocumentProcessRequest,
    FaceMatchRequest,
    LivenessRequest,
)
from utils.base64_utils import bytes_to_base64, clean_base64, detect_image_format, normalize_base64
from utils.exceptions import InvalidRequestError
from utils.text_normalization import is_blank

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

LIVE_PORTRAIT_FIELD = "livePortrait"

INVALID_BASE64_MESSAGE = "Image data is not valid base64."


def is_form_request(request: Request) -> bool:
    content_type = request.headers.get("content-type", "").lower()
    return content_type.startswith(FORM_CONTENT_TYPES)


async def read_json_body(request: Request) -> Any:
    """
    Parse the request body as JSON; an empty body reads as {}.

    Raises:
        InvalidRequestError: If the body is not valid JSON
    """
    body = await request.body()
    if not body.strip():
        return {}

    try:
        return json.loads(body)
    except ValueError as e:
        raise InvalidRequestError(
            "Request body must be valid JSON or multipart/form-data.",
            details=str(e)
        ) from e


def _validate(model: type, body: Any) -> BaseModel:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidRequestError(
            "Invalid request body.",
            details=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e


async def read_upload_base64(upload: Optional[UploadFile]) -> Optional[str]:
    """Read an uploaded file as base64; empty files read as None."""
    if upload is None:
        return None

    data = await upload.read()
    if not data:
        return None
    return bytes_to_base64(data)


def _form_text(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    return value if isinstance(value, str) and value.strip() else None


def _form_files(form: FormData) -> List[Tuple[str, UploadFile]]:
    return [(key, value) for key, value in form.multi_items() if isinstance(value, UploadFile)]


def _clean_optional(value: Optional[str], field: str) -> Optional[str]:
    """
    Strip any data URI prefix; blank reads as None.

    Raises:
        InvalidRequestError: If what remains is not valid base64
    """
    cleaned = clean_base64(value)
    if is_blank(cleaned):
        return None

    normalized = normalize_base64(cleaned)
    if normalized is None:
        raise InvalidRequestError(INVALID_BASE64_MESSAGE, field=field)
    return normalized


# =============================================================================
# DOCUMENT REQUESTS
# =============================================================================

async def parse_document_request(request: Request) -> DocumentProcessRequest:
    """
    Read document pages and options.

    Multipart: every uploaded file is a page, in upload order, except a
    file sent as `livePortrait`; text fields `scenario`, `tag` and
    `livePortrait` (base64). JSON: a DocumentProcessRequest body.
    Pages with empty data are dropped; base64 that does not decode is a 400.
    """
    if is_form_request(request):
        form = await request.form()
        images = []
        live_portrait = _clean_optional(_form_text(form, LIVE_PORTRAIT_FIELD), LIVE_PORTRAIT_FIELD)

        for field_name, upload in _form_files(form):
            data = await read_upload_base64(upload)
            if data is None:
                continue
            if field_name == LIVE_PORTRAIT_FIELD:
                live_portrait = data
                continue
            images.append(DocumentImage(
                base64=data,
                format=detect_image_format(upload.content_type, upload.filename)
            ))

        parsed = DocumentProcessRequest(
            images=images,
            scenario=_form_text(form, "scenario"),
            tag=_form_text(form, "tag"),
            live_portrait_base64=live_portrait,
        )
    else:
        parsed = _validate(DocumentProcessRequest, await read_json_body(request))
        parsed.images = [
            DocumentImage(base64=cleaned, format=image.format)
            for image in parsed.images
            if (cleaned := _clean_optional(image.base64, "images")) is not None
        ]
        parsed.live_portrait_base64 = _clean_optional(parsed.live_portrait_base64, "livePortraitBase64")

    logger.debug(f"Parsed document request with {len(parsed.images)} page(s)")
    return parsed


async def parse_compare_request(request: Request) -> CompareDocumentsRequest:
    """Read the two document images of a comparison (JSON only)."""
    body = await read_json_body(request)
    if not isinstance(body, dict) or not body:
        raise InvalidRequestError(
            "Provide JSON body with firstDocumentImageBase64 and secondDocumentImageBase64."
        )

    parsed = _validate(CompareDocumentsRequest, body)
    return CompareDocumentsRequest(
        first_document_image_base64=_clean_optional(parsed.first_document_image_base64, "firstDocumentImageBase64"),
        second_document_image_base64=_clean_optional(parsed.second_document_image_base64, "secondDocumentImageBase64"),
    )


# =============================================================================
# FACE REQUESTS
# =============================================================================

async def parse_single_image(request: Request) -> Optional[str]:
    """First uploaded file, or JSON `imageBase64`."""
    if is_form_request(request):
        form = await request.form()
        files = _form_files(form)
        return await read_upload_base64(files[0][1]) if files else None

    parsed = _validate(DetectFaceRequest, await read_json_body(request))
    return _clean_optional(parsed.image_base64, "imageBase64")


async def parse_two_images(request: Request) -> Tuple[Optional[str], Optional[str]]:
    """
    Two face images.

    Multipart: files `image1` / `image2`, falling back to the first and
    second uploaded files. JSON: `imageBase64_1` / `imageBase64_2`.
    """
    if is_form_request(request):
        form = await request.form()
        files = _form_files(form)
        named = dict(files)
        first = named.get("image1") or (files[0][1] if len(files) > 0 else None)
        second = named.get("image2") or (files[1][1] if len(files) > 1 else None)
        return await read_upload_base64(first), await read_upload_base64(second)

    parsed = _validate(FaceMatchRequest, await read_json_body(request))
    return (
        _clean_optional(parsed.image_base64_1, "imageBase64_1"),
        _clean_optional(parsed.image_base64_2, "imageBase64_2"),
    )


async def parse_liveness_request(request: Request) -> LivenessRequest:
    """Liveness lookup (`transactionId`) or frame capture (`frames`)."""
    parsed = _validate(LivenessRequest, await read_json_body(request))
    return LivenessRequest(
        transaction_id=None if is_blank(parsed.transaction_id) else parsed.transaction_id.strip(),
        frames=[frame for frame in (_clean_optional(f, "frames") for f in parsed.frames) if frame is not None],
    )
