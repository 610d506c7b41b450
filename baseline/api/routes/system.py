from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Lightweight wake-up probe for the hosting platform's cold starts."""
    return {"status": "awake", "message": "Baseline topic radar is ready"}
