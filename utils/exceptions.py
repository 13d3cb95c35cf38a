"""
Custom Application Exceptions.

Provides a hierarchy of exceptions for consistent error handling.

Usage:
    from utils.exceptions import InvalidRequestError, VendorError

    # In request parsing
    raise InvalidRequestError("Provide document images.")

    # In vendor clients
    raise VendorError("docr", "Document reader process request failed.", status_code=503, details=body)
"""
from typing import Optional, Any


class AppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "VENDOR_REQUEST_FAILED")
        status_code: HTTP status code to return
        details: Additional context (raw vendor body, field name, ...)
    """
    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Any] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to API response format."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


# =============================================================================
# CLIENT ERRORS (400-level)
# =============================================================================

class InvalidRequestError(AppError):
    """
    Inbound request is missing images or parameters, or its body is malformed.
    """
    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Any] = None
    ):
        if field and details is None:
            details = {"field": field}
        super().__init__(message, "INVALID_REQUEST", status_code=400, details=details)


class ExtractionError(AppError):
    """
    Vendor answered successfully but the expected data could not be located.

    Use for: no document portrait, no parsable document data.
    """
    def __init__(
        self,
        message: str,
        details: Optional[Any] = None
    ):
        super().__init__(message, "EXTRACTION_FAILED", status_code=422, details=details)


# =============================================================================
# VENDOR ERRORS (relayed status codes, 500-level)
# =============================================================================

class VendorError(AppError):
    """
    Vendor answered with a non-2xx status.

    The vendor's status code is relayed and its raw body is returned as details.
    """
    def __init__(
        self,
        vendor: str,
        message: str,
        status_code: int = 502,
        details: Optional[Any] = None,
        code: str = "VENDOR_REQUEST_FAILED"
    ):
        self.vendor = vendor
        super().__init__(message, code, status_code=status_code, details=details)


class VendorUnavailableError(VendorError):
    """
    Vendor could not be reached (connection failure or timeout).
    """
    def __init__(
        self,
        vendor: str,
        message: str,
        timed_out: bool = False,
        details: Optional[Any] = None
    ):
        super().__init__(
            vendor,
            message,
            status_code=504 if timed_out else 502,
            details=details,
            code="VENDOR_TIMEOUT" if timed_out else "VENDOR_UNAVAILABLE"
        )
