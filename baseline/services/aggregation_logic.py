from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from baseline.domain.models import (
    SOURCE_ORDER,
    EngineConfig,
    MergedCandidate,
    RankedCandidate,
    RawCandidate,
    Source,
)
from baseline.services.matching_svc import FuzzyMatcher
from baseline.services.merge_svc import CandidatePool
from baseline.services.ranking_svc import CompositeRanker
from baseline.services.scoring_svc import SignalScoringService

logger = logging.getLogger(__name__)

SourceInput = Iterable[RawCandidate | Mapping[str, Any]]


def coerce_raw_candidate(record: RawCandidate | Mapping[str, Any], source: Source) -> RawCandidate:
    """Accept adapter models or plain records; the list a record arrives in decides its source."""
    if isinstance(record, RawCandidate):
        if record.source is source:
            return record
        return record.model_copy(update={"source": source})
    return RawCandidate.model_validate({**record, "source": source})


class SignalAggregationEngine:
    """
    Cross-source aggregation and divisiveness ranking.

    Runs score -> fuzzy match/merge -> composite rank as a pure function of
    its inputs. Sources are folded in a fixed order (discussion, trends,
    video) so the canonical title of a multi-source cluster is reproducible.
    Each call builds its own pool, so one engine can serve concurrent runs.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        scoring_service: SignalScoringService | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.scoring_service = scoring_service or SignalScoringService()
        self.ranker = CompositeRanker.from_config(self.config)

    def build_pool(self) -> CandidatePool:
        return CandidatePool(
            FuzzyMatcher(
                threshold=self.config.match_threshold,
                min_token_length=self.config.min_token_length,
            )
        )

    def merge(self, inputs: Mapping[Source, SourceInput]) -> CandidatePool:
        """Score and fold each source's records into a fresh pool."""
        pool = self.build_pool()
        for source in SOURCE_ORDER:
            records = inputs.get(source) or []
            scored = [
                self.scoring_service.score(coerce_raw_candidate(record, source))
                for record in records
            ]
            pool.fold_source(source, scored)
        return pool

    def rank_clusters(
        self,
        discussion: SourceInput | None = None,
        trends: SourceInput | None = None,
        video: SourceInput | None = None,
        *,
        top_n: int | None = None,
    ) -> list[MergedCandidate]:
        pool = self.merge(
            {
                Source.DISCUSSION: discussion or [],
                Source.TRENDS: trends or [],
                Source.VIDEO: video or [],
            }
        )
        ranked = self.ranker.rank(pool, top_n=top_n)
        logger.info("Merged %d clusters; returning top %d", len(pool), len(ranked))
        return ranked

    def aggregate(
        self,
        discussion: SourceInput | None = None,
        trends: SourceInput | None = None,
        video: SourceInput | None = None,
        *,
        top_n: int | None = None,
    ) -> list[RankedCandidate]:
        """Rank candidates from all three sources; empty inputs give an empty list."""
        return self.ranker.to_output(
            self.rank_clusters(discussion, trends, video, top_n=top_n)
        )
