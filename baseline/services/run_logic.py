from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any

from baseline.domain.models import RankedCandidate, RawCandidate, Source
from baseline.services.aggregation_logic import SignalAggregationEngine
from baseline.services.llm_svc import DecisionService
from baseline.services.reddit_svc import RedditService
from baseline.services.trends_svc import TrendsService
from baseline.services.youtube_svc import YouTubeService
from baseline.storage.topic_history import TopicHistoryStore

logger = logging.getLogger(__name__)

SOURCE_WARNINGS = {
    Source.DISCUSSION: "Reddit signals unavailable",
    Source.TRENDS: "Google Trends signals unavailable",
    Source.VIDEO: "YouTube signals unavailable",
}


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class DailyRunOrchestrator:
    """
    Runs the once-a-day topic pipeline.

    Fetches every source concurrently, ranks the merged candidates, asks the
    decision-maker for one topic and records the outcome. A failing adapter
    only costs its own signals; the run carries on with whatever remains.
    """

    def __init__(
        self,
        reddit_service: RedditService,
        trends_service: TrendsService,
        youtube_service: YouTubeService,
        engine: SignalAggregationEngine,
        decision_service: DecisionService,
        history: TopicHistoryStore,
        decision_limit: int = 15,
    ) -> None:
        self.reddit_service = reddit_service
        self.trends_service = trends_service
        self.youtube_service = youtube_service
        self.engine = engine
        self.decision_service = decision_service
        self.history = history
        self.decision_limit = decision_limit

    async def _fetch_all_sources(self) -> tuple[dict[Source, list[RawCandidate]], list[str]]:
        """Fetch all adapters in parallel; a failed source contributes nothing."""
        results = await asyncio.gather(
            self.reddit_service.fetch_candidates(),
            self.trends_service.fetch_candidates(),
            self.youtube_service.fetch_candidates(),
            return_exceptions=True,
        )
        inputs: dict[Source, list[RawCandidate]] = {}
        warnings: list[str] = []
        for source, result in zip((Source.DISCUSSION, Source.TRENDS, Source.VIDEO), results):
            if isinstance(result, BaseException):
                logger.warning("%s fetch failed: %s", source.value, result)
                warnings.append(SOURCE_WARNINGS[source])
                inputs[source] = []
            else:
                inputs[source] = list(result)
        return inputs, warnings

    async def fetch_ranked_candidates(self) -> tuple[list[RankedCandidate], list[str], bool]:
        """
        Fetch live signals and rank them.

        Returns:
            The ranked candidates, adapter warnings, and whether every
            source came back empty.
        """
        inputs, warnings = await self._fetch_all_sources()
        logger.info(
            "Fetched candidates: discussion=%d trends=%d video=%d",
            len(inputs[Source.DISCUSSION]),
            len(inputs[Source.TRENDS]),
            len(inputs[Source.VIDEO]),
        )
        all_empty = not any(inputs.values())
        ranked = self.engine.aggregate(
            inputs[Source.DISCUSSION],
            inputs[Source.TRENDS],
            inputs[Source.VIDEO],
        )
        return ranked, warnings, all_empty

    async def run_daily(self, date: str | None = None) -> dict[str, Any]:
        """
        Select and record the topic for ``date`` (today, UTC, by default).

        Raises:
            Any failure from ranking, the decision-maker or storage, after
            recording an ``error`` run.
        """
        run_date = date or today_iso()
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        if self.history.topic_exists_for_date(run_date):
            logger.info("Topic already selected for %s; skipping", run_date)
            self.history.log_run(run_date, "skipped", error_msg="Topic already exists", duration_ms=elapsed_ms())
            return {"status": "skipped", "date": run_date, "reason": "Topic already exists"}

        try:
            recent_titles = self.history.recent_titles()
            ranked, warnings, all_empty = await self.fetch_ranked_candidates()

            if all_empty:
                logger.warning("All sources returned no candidates; using history-free selection")
                selection = await self.decision_service.select_topic_for_date(run_date, recent_titles)
            else:
                selection = await self.decision_service.select_topic(
                    ranked[: self.decision_limit], recent_titles, run_date
                )

            if selection is None:
                duration_ms = elapsed_ms()
                self.history.log_run(
                    run_date, "skipped", error_msg="No decision-maker configured", duration_ms=duration_ms
                )
                return {
                    "status": "skipped",
                    "date": run_date,
                    "reason": "No decision-maker configured",
                    "selection": None,
                    "candidates": [candidate.model_dump(mode="json") for candidate in ranked],
                    "warnings": warnings,
                    "duration_ms": duration_ms,
                }

            self.history.record_selection(run_date, selection)
            duration_ms = elapsed_ms()
            self.history.log_run(run_date, "success", topic_title=selection.selected_title, duration_ms=duration_ms)
            logger.info("Daily run for %s complete in %dms: %s", run_date, duration_ms, selection.selected_title)
            return {
                "status": "success",
                "date": run_date,
                "selection": selection.model_dump(),
                "candidates": [candidate.model_dump(mode="json") for candidate in ranked],
                "warnings": warnings,
                "duration_ms": duration_ms,
            }
        except Exception as exc:
            logger.error("Daily run for %s failed: %s", run_date, exc, exc_info=True)
            try:
                self.history.log_run(run_date, "error", error_msg=str(exc), duration_ms=elapsed_ms())
            except Exception as log_exc:
                logger.error("Failed to record error run for %s: %s", run_date, log_exc)
            raise
