from __future__ import annotations

import logging
from datetime import date as date_type
from secrets import compare_digest
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from baseline.api.dependencies import get_app_settings, get_run_orchestrator
from baseline.core.config import Settings
from baseline.core.exceptions import ValidationError
from baseline.services.run_logic import DailyRunOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(
    x_cron_auth: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Require a shared secret header for cron-triggered endpoints."""
    expected_secret = settings.CRON_SECRET
    if not expected_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cron secret is not configured.",
        )

    if not x_cron_auth or not compare_digest(x_cron_auth, expected_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized cron invocation.",
        )


@router.post("/daily", dependencies=[Depends(verify_cron_secret)])
async def run_daily(
    date: str | None = Query(default=None, description="ISO date (YYYY-MM-DD); defaults to today UTC"),
    orchestrator: DailyRunOrchestrator = Depends(get_run_orchestrator),
) -> dict[str, Any]:
    """Select and record the topic of the day."""
    if date is not None:
        try:
            date = date_type.fromisoformat(date).isoformat()
        except ValueError as exc:
            raise ValidationError(f"Invalid date {date!r}; expected YYYY-MM-DD") from exc
    logger.info("Cron daily run triggered for %s", date or "today")
    return await orchestrator.run_daily(date)
