from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from baseline.api.dependencies import get_history
from baseline.core.config import RECENT_TITLES_LIMIT
from baseline.storage.topic_history import TopicHistoryStore

router = APIRouter(prefix="/api", tags=["topics"])


@router.get("/topics/recent")
async def recent_topics(
    limit: int = Query(default=RECENT_TITLES_LIMIT, ge=1, le=365),
    history: TopicHistoryStore = Depends(get_history),
) -> dict[str, Any]:
    """Previously selected titles, most recent first."""
    titles = history.recent_titles(limit)
    return {"count": len(titles), "titles": titles}


@router.get("/runs")
async def list_runs(
    limit: int = Query(default=50, ge=1, le=500),
    history: TopicHistoryStore = Depends(get_history),
) -> dict[str, Any]:
    runs = history.list_runs(limit)
    return {"count": len(runs), "runs": [run.model_dump(mode="json") for run in runs]}
