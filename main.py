"""
Document & Face Verification Gateway

Backend for a browser client that checks identity documents with a document
reader service and faces with a face recognition service. Vendor answers are
returned as compact summaries (key fields, authenticity verdicts, framing
feedback, face similarity).

Usage:
    uvicorn main:app --reload

Then access the API documentation at http://localhost:8000/docs
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from utils.exceptions import AppError
from utils.logging_config import configure_logging
from utils.config import (
    API_KEYS,
    APP_NAME,
    APP_VERSION,
    DOCR_BASE_URL,
    FACE_API_BASE_URL,
    LOG_LEVEL,
    LOG_JSON_FORMAT,
)
from middleware.request_id import RequestIDMiddleware, get_request_id
from middleware.api_key import APIKeyMiddleware
from api.routes import router as api_router
from api.routes.metrics import router as metrics_router, MetricsMiddleware

# Configure structured JSON logging
configure_logging(level=LOG_LEVEL, json_format=LOG_JSON_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the vendor configuration on startup."""
    logger.info(f"Starting {APP_NAME} {APP_VERSION}...")
    logger.info(f"Document reader: {DOCR_BASE_URL}")
    logger.info(f"Face API: {FACE_API_BASE_URL}")

    yield  # Application runs here

    logger.info(f"Shutting down {APP_NAME}...")


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description="""
    Gateway between a browser client and two identity vendors.

    ## Features

    * **Document processing**: Key fields, authenticity validity and framing feedback
    * **Fraud detection**: Per-check authenticity verdicts with explanations
    * **Identity verification**: Document portrait vs live capture similarity
    * **Document comparison**: Face, number, name and birth date cross-check of two documents
    * **Face services**: Attribute detection, ICAO compliance, face match, liveness
    """,
    version=APP_VERSION,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware (order matters: last added = outermost)
app.add_middleware(APIKeyMiddleware, api_keys=API_KEYS)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLER
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Global handler for all AppError exceptions.

    Converts custom exceptions to consistent JSON responses.
    """
    logger.warning(
        f"[{exc.code}] {exc.message} | {request.method} {request.url.path}",
        extra={"status_code": exc.status_code, "request_id": get_request_id(request)}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )

# Include API routes
app.include_router(api_router, prefix="/api")
app.include_router(metrics_router)  # /metrics at root level


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/api/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=False
    )
