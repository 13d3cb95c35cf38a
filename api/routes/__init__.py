"""
API Routes Module.

This module combines all route modules into a single router for the gateway.
"""
from fastapi import APIRouter

from .health import router as health_router
from .documents import router as documents_router
from .document_fraud import router as document_fraud_router
from .face import router as face_router

# Combined router that includes all sub-routers
router = APIRouter()

router.include_router(health_router)
router.include_router(documents_router)
router.include_router(document_fraud_router)
router.include_router(face_router)

__all__ = ["router"]
