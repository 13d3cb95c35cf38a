"""
API Key Authentication Middleware for the verification gateway.

Validates X-API-Key header against configured API keys.
Excludes public endpoints like /api/health, /metrics, /docs from authentication.
"""
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse


logger = logging.getLogger(__name__)

# Endpoints that don't require authentication
PUBLIC_PATHS = {
    "/api",
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/metrics",
}


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Middleware to validate API key authentication."""

    def __init__(self, app, api_keys: list[str] = None):
        """
        Initialize API Key middleware.

        Args:
            app: ASGI application
            api_keys: List of valid API keys. If empty/None, auth is disabled.
        """
        super().__init__(app)
        self.api_keys = set(api_keys) if api_keys else set()
        self.auth_enabled = len(self.api_keys) > 0

        if self.auth_enabled:
            logger.info(f"API Key authentication enabled with {len(self.api_keys)} key(s)")
        else:
            logger.info("API Key authentication disabled (no keys configured)")

    async def dispatch(self, request: Request, call_next):
        if not self.auth_enabled or request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path.rstrip("/") in PUBLIC_PATHS or path in PUBLIC_PATHS:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key")
        if not api_key or api_key not in self.api_keys:
            message = "Missing X-API-Key header" if not api_key else "Invalid API key"
            logger.warning(
                f"{message} for {request.method} {path}",
                extra={"method": request.method, "path": path}
            )
            return JSONResponse(
                status_code=401,
                content={"error": message, "code": "UNAUTHORIZED", "details": None}
            )

        return await call_next(request)
