"""
Vendor HTTP clients.

Thin async clients for the two external services:
- DocumentReaderClient: document reader ("docr") process endpoint
- FaceClient: face recognition API (detect, ICAO quality, match, liveness)

Each call opens an httpx.AsyncClient with the vendor's base URL, optional
API-key header and fixed timeout. Calls are never retried. Non-2xx answers
raise VendorError carrying the vendor's status code and raw body; transport
failures raise VendorUnavailableError.
"""
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from prometheus_client import Counter, Histogram

from models.schemas import DocumentProcessRequest
from utils.base64_utils import clean_base64
from utils.config import (
    DEFAULT_SCENARIO,
    DOCR_API_KEY,
    DOCR_API_KEY_HEADER,
    DOCR_BASE_URL,
    DOCR_DEFAULT_TIMEOUT_SECONDS,
    DOCR_FACE_API_MODE,
    DOCR_FACE_API_THRESHOLD,
    DOCR_FACE_API_URL,
    DOCR_PROCESS_ENDPOINT,
    DOCR_TIMEOUT_SECONDS,
    FACE_API_BASE_URL,
    FACE_API_DEFAULT_TIMEOUT_SECONDS,
    FACE_API_DETECT_ENDPOINT,
    FACE_API_KEY,
    FACE_API_KEY_HEADER,
    FACE_API_LIVENESS_ENDPOINT,
    FACE_API_MATCH_ENDPOINT,
    FACE_API_TIMEOUT_SECONDS,
    FACE_DETECT_ATTRIBUTES,
    ICAO_SCENARIO,
)
from utils.exceptions import VendorError, VendorUnavailableError
from utils.logging_config import log_execution_time

logger = logging.getLogger(__name__)

DOCR_VENDOR = "docr"
FACE_API_VENDOR = "face_api"

VENDOR_REQUEST_COUNT = Counter(
    "gateway_vendor_requests_total",
    "Total number of outbound vendor requests",
    ["vendor", "operation", "status"]
)
VENDOR_REQUEST_LATENCY = Histogram(
    "gateway_vendor_request_latency_seconds",
    "Outbound vendor request latency in seconds",
    ["vendor", "operation"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)


def resolve_timeout(configured: int, default: int) -> float:
    """Configured timeout in seconds; non-positive values fall back to the default."""
    return float(configured if configured > 0 else default)


# =============================================================================
# PAYLOAD BUILDERS
# =============================================================================

def build_face_api_config(
    url: str = DOCR_FACE_API_URL,
    mode: str = DOCR_FACE_API_MODE,
    threshold: Optional[float] = DOCR_FACE_API_THRESHOLD
) -> Dict[str, Any]:
    """Face API settings forwarded to the document reader."""
    config: Dict[str, Any] = {"url": url, "mode": mode}
    if threshold is not None:
        config["threshold"] = threshold
    return config


def build_process_payload(
    request: DocumentProcessRequest,
    force_auth: bool = True,
    include_live_portrait: bool = False,
    use_face_api: bool = False,
    face_api_config: Optional[Dict[str, Any]] = None,
    check_liveness: Optional[bool] = None,
    one_shot_identification: Optional[bool] = None
) -> Dict[str, Any]:
    """
    Build the document reader process payload.

    Optional parameters that are not set are omitted from the payload
    rather than sent as null.

    Args:
        request: Parsed inbound request (pages kept in order)
        force_auth: Ask for authenticity checks (`authParams`)
        include_live_portrait: Send the live portrait alongside the pages
        use_face_api: Let the document reader run its own face match
        face_api_config: Face API settings used when `use_face_api` is set
        check_liveness: Optional document liveness flag
        one_shot_identification: Optional one-shot identification flag
    """
    scenario = request.scenario if request.scenario and request.scenario.strip() else DEFAULT_SCENARIO
    process_param: Dict[str, Any] = {"scenario": scenario}

    if force_auth:
        process_param["authParams"] = {"checkLiveness": False}
    if use_face_api:
        process_param["useFaceApi"] = True
        if face_api_config is not None:
            process_param["faceApi"] = face_api_config
    if check_liveness is not None:
        process_param["checkLiveness"] = check_liveness
    if one_shot_identification is not None:
        process_param["oneShotIdentification"] = one_shot_identification

    payload: Dict[str, Any] = {
        "processParam": process_param,
        "List": [{"ImageData": {"image": clean_base64(image.base64)}} for image in request.images],
    }

    if include_live_portrait:
        payload["livePortrait"] = clean_base64(request.live_portrait_base64 or "")

    return payload


def build_detect_payload(image: str) -> Dict[str, Any]:
    return {
        "tag": "detect-face",
        "processParam": {
            "attributes": {"config": [{"name": name} for name in FACE_DETECT_ATTRIBUTES]}
        },
        "image": image,
    }


def build_icao_payload(image: str) -> Dict[str, Any]:
    return {
        "tag": "icao-detect",
        "processParam": {"scenario": ICAO_SCENARIO},
        "image": image,
    }


def build_match_payload(image1: str, image2: str) -> Dict[str, Any]:
    return {
        "tag": "face-match",
        "images": [
            {"index": 0, "type": 1, "data": image1},
            {"index": 1, "type": 1, "data": image2},
        ],
    }


def build_liveness_payload(frames: List[str]) -> Dict[str, Any]:
    return {"tag": "liveness", "frames": frames}


def build_liveness_lookup_url(endpoint: str, transaction_id: str) -> str:
    """Append `transactionId` to the liveness endpoint, escaping it."""
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}transactionId={quote(transaction_id, safe='')}"


# =============================================================================
# CLIENTS
# =============================================================================

class VendorClient:
    """Shared request handling for one vendor."""

    vendor = "vendor"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        api_key_header: str = "",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.api_key_header = api_key_header
        self.timeout = timeout_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        if self.api_key_header and self.api_key:
            return {self.api_key_header: self.api_key}
        return {}

    async def _send(
        self,
        operation: str,
        method: str,
        url: str,
        failure_message: str,
        json: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Send one request and return the response body.

        Raises:
            VendorError: Vendor answered with a non-2xx status
            VendorUnavailableError: Vendor timed out or could not be reached
        """
        start_time = time.perf_counter()
        status = "error"

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, url, json=json)
            status = str(response.status_code)
        except httpx.TimeoutException as e:
            status = "timeout"
            logger.warning(
                f"{self.vendor} {operation} timed out after {self.timeout}s",
                extra={"vendor": self.vendor, "operation": operation}
            )
            raise VendorUnavailableError(self.vendor, failure_message, timed_out=True, details=str(e)) from e
        except httpx.TransportError as e:
            logger.warning(
                f"{self.vendor} {operation} transport error: {e}",
                extra={"vendor": self.vendor, "operation": operation}
            )
            raise VendorUnavailableError(self.vendor, failure_message, details=str(e)) from e
        finally:
            VENDOR_REQUEST_COUNT.labels(vendor=self.vendor, operation=operation, status=status).inc()
            VENDOR_REQUEST_LATENCY.labels(vendor=self.vendor, operation=operation).observe(
                time.perf_counter() - start_time
            )

        if not response.is_success:
            logger.warning(
                f"{self.vendor} {operation} failed with status {response.status_code}",
                extra={"vendor": self.vendor, "operation": operation, "status_code": response.status_code}
            )
            raise VendorError(self.vendor, failure_message, status_code=response.status_code, details=response.text)

        return response.text


class DocumentReaderClient(VendorClient):
    """Client for the document reader process endpoint."""

    vendor = DOCR_VENDOR

    def __init__(self, process_endpoint: str = DOCR_PROCESS_ENDPOINT, **kwargs):
        super().__init__(**kwargs)
        self.process_endpoint = process_endpoint

    @log_execution_time
    async def process(self, payload: Dict[str, Any]) -> str:
        """POST a process payload; returns the raw response body."""
        logger.info(
            f"Sending {len(payload.get('List', []))} page(s) to document reader",
            extra={"vendor": self.vendor, "operation": "process"}
        )
        return await self._send(
            "process", "POST", self.process_endpoint,
            "Document reader process request failed.",
            json=payload,
        )


class FaceClient(VendorClient):
    """Client for the face recognition API."""

    vendor = FACE_API_VENDOR

    def __init__(
        self,
        detect_endpoint: str = FACE_API_DETECT_ENDPOINT,
        match_endpoint: str = FACE_API_MATCH_ENDPOINT,
        liveness_endpoint: str = FACE_API_LIVENESS_ENDPOINT,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.detect_endpoint = detect_endpoint
        self.match_endpoint = match_endpoint
        self.liveness_endpoint = liveness_endpoint

    @log_execution_time
    async def detect(self, image: str) -> str:
        return await self._send(
            "detect", "POST", self.detect_endpoint,
            "Face detect request failed.",
            json=build_detect_payload(image),
        )

    @log_execution_time
    async def detect_icao(self, image: str) -> str:
        return await self._send(
            "icao_detect", "POST", self.detect_endpoint,
            "Face ICAO quality request failed.",
            json=build_icao_payload(image),
        )

    @log_execution_time
    async def match(self, image1: str, image2: str) -> str:
        return await self._send(
            "match", "POST", self.match_endpoint,
            "Face match request failed.",
            json=build_match_payload(image1, image2),
        )

    @log_execution_time
    async def liveness_by_transaction(self, transaction_id: str) -> str:
        return await self._send(
            "liveness", "GET", build_liveness_lookup_url(self.liveness_endpoint, transaction_id),
            "Face liveness request failed.",
        )

    @log_execution_time
    async def liveness_frames(self, frames: List[str]) -> str:
        return await self._send(
            "liveness_frames", "POST", self.liveness_endpoint,
            "Face liveness frames request failed.",
            json=build_liveness_payload(frames),
        )


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

_document_reader_client: Optional[DocumentReaderClient] = None
_face_client: Optional[FaceClient] = None


def get_document_reader_client() -> DocumentReaderClient:
    """Get or create the configured document reader client."""
    global _document_reader_client
    if _document_reader_client is None:
        _document_reader_client = DocumentReaderClient(
            base_url=DOCR_BASE_URL,
            api_key=DOCR_API_KEY,
            api_key_header=DOCR_API_KEY_HEADER,
            timeout_seconds=resolve_timeout(DOCR_TIMEOUT_SECONDS, DOCR_DEFAULT_TIMEOUT_SECONDS),
        )
    return _document_reader_client


def get_face_client() -> FaceClient:
    """Get or create the configured face API client."""
    global _face_client
    if _face_client is None:
        _face_client = FaceClient(
            base_url=FACE_API_BASE_URL,
            api_key=FACE_API_KEY,
            api_key_header=FACE_API_KEY_HEADER,
            timeout_seconds=resolve_timeout(FACE_API_TIMEOUT_SECONDS, FACE_API_DEFAULT_TIMEOUT_SECONDS),
        )
    return _face_client
