# kuflow_samples/api/health.py

from fastapi import APIRouter

from kuflow_samples.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "ok", "app": settings.APP_NAME}
