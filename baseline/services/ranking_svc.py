from __future__ import annotations

from collections.abc import Iterable

from baseline.domain.models import (
    SOURCE_ORDER,
    EngineConfig,
    MergedCandidate,
    RankedCandidate,
    RankingWeights,
    Source,
)

CROSS_PLATFORM_SOURCES = 3


class CompositeRanker:
    """Weighted composite ranking over merged candidates.

    Weights arrive as configuration, so switching between a "maximally
    divisive" and a "mainstream but divisive" policy never touches this class.
    """

    def __init__(self, weights: RankingWeights | None = None, top_n: int | None = None) -> None:
        self.weights = weights or RankingWeights()
        self.top_n = top_n

    @classmethod
    def from_config(cls, config: EngineConfig) -> "CompositeRanker":
        return cls(weights=config.weights, top_n=config.top_n)

    @staticmethod
    def cross_platform_presence(candidate: MergedCandidate) -> float:
        return min(len(candidate.contributing_sources) / CROSS_PLATFORM_SOURCES, 1.0)

    def composite_score(self, candidate: MergedCandidate) -> float:
        return (
            self.weights.discussion * candidate.signal(Source.DISCUSSION)
            + self.weights.video * candidate.signal(Source.VIDEO)
            + self.weights.trends * candidate.signal(Source.TRENDS)
            + self.weights.cross_platform * self.cross_platform_presence(candidate)
        )

    def rank(self, pool: Iterable[MergedCandidate], top_n: int | None = None) -> list[MergedCandidate]:
        """Score and order candidates best first, truncated to ``top_n``.

        Returns scored copies; the pool's candidates are left untouched. The
        sort is stable, so equal scores keep pool order.
        """
        scored = [
            candidate.model_copy(
                update={
                    "composite_score": self.composite_score(candidate),
                    "per_source_signals": {source: candidate.signal(source) for source in SOURCE_ORDER},
                    "contributing_sources": set(candidate.contributing_sources),
                }
            )
            for candidate in pool
        ]
        ordered = sorted(scored, key=lambda candidate: candidate.composite_score, reverse=True)
        limit = top_n if top_n is not None else self.top_n
        return ordered[:limit] if limit is not None else ordered

    @staticmethod
    def to_output(ranked: Iterable[MergedCandidate]) -> list[RankedCandidate]:
        """Project ranked clusters onto the decision-maker contract."""
        return [
            RankedCandidate(
                title=candidate.title,
                composite_score=candidate.composite_score,
                contributing_sources=set(candidate.contributing_sources),
                per_source_signals=dict(candidate.per_source_signals),
                discussion_comments=candidate.discussion_comments(),
                subreddits=candidate.subreddits(),
            )
            for candidate in ranked
        ]
