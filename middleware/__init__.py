"""
Middleware package for the verification gateway.
"""
from middleware.api_key import APIKeyMiddleware
from middleware.request_id import RequestIDMiddleware, get_request_id

__all__ = ["APIKeyMiddleware", "RequestIDMiddleware", "get_request_id"]
