"""Health and readiness check routes."""

from fastapi import APIRouter

from config import settings
from services.venues import cache_status

router = APIRouter()


@router.get("/")
async def root() -> dict:
    return {"ok": True, "message": "API is running"}


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": "apres-ski-api", "commit": settings.git_sha}


@router.get("/health")
async def health() -> dict:
    """Readiness plus the state of every resort's cache slot. No upstream calls."""
    return {
        "status": "ok",
        "service": "apres-ski-api",
        "commit": settings.git_sha,
        "cache": cache_status(),
    }
