from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from baseline.api.dependencies import get_engine, get_run_orchestrator
from baseline.domain.models import RankRequest
from baseline.services.aggregation_logic import SignalAggregationEngine
from baseline.services.run_logic import DailyRunOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/candidates", tags=["candidates"])


@router.post("/rank")
async def rank_candidates(
    payload: RankRequest,
    engine: SignalAggregationEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Rank caller-supplied raw records from the three sources."""
    ranked = engine.aggregate(payload.discussion, payload.trends, payload.video, top_n=payload.top_n)
    return {
        "count": len(ranked),
        "candidates": [candidate.model_dump(mode="json") for candidate in ranked],
    }


@router.get("")
async def live_candidates(
    orchestrator: DailyRunOrchestrator = Depends(get_run_orchestrator),
) -> dict[str, Any]:
    """Fetch today's signals from every source and rank them without selecting a topic."""
    ranked, warnings, _ = await orchestrator.fetch_ranked_candidates()
    return {
        "count": len(ranked),
        "candidates": [candidate.model_dump(mode="json") for candidate in ranked],
        "warnings": warnings,
    }
