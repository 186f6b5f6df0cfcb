"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe."""
    return {"status": "ok", "service": "chatrelay"}
