from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from baseline.domain.models import MergedCandidate, ScoredCandidate, Source
from baseline.services.matching_svc import FuzzyMatcher, normalize_title

logger = logging.getLogger(__name__)


class CandidatePool:
    """Shared pool of merged candidates for a single pipeline run.

    Build a fresh pool per run; nothing here is shared between runs.
    """

    def __init__(self, matcher: FuzzyMatcher | None = None) -> None:
        self.matcher = matcher or FuzzyMatcher()
        self._clusters: list[MergedCandidate] = []

    def __len__(self) -> int:
        return len(self._clusters)

    def __iter__(self) -> Iterator[MergedCandidate]:
        return iter(self._clusters)

    def entries(self) -> Iterator[tuple[str, MergedCandidate]]:
        """Clusters keyed by their founding key, in insertion order."""
        for cluster in self._clusters:
            yield cluster.normalized_key, cluster

    @property
    def candidates(self) -> list[MergedCandidate]:
        return list(self._clusters)

    def fold(self, scored: ScoredCandidate) -> MergedCandidate:
        """Fold one scored candidate into its cluster, creating one if nothing matches."""
        key = normalize_title(scored.title)
        cluster = self.matcher.find_match(key, self.entries())
        if cluster is None:
            cluster = MergedCandidate(title=scored.title, normalized_key=key)
            self._clusters.append(cluster)
        self._apply(cluster, scored)
        return cluster

    def fold_source(self, source: Source, candidates: Iterable[ScoredCandidate]) -> int:
        """Fold every candidate a source produced; returns how many were folded."""
        folded = 0
        for scored in candidates:
            self.fold(scored)
            folded += 1
        logger.debug("Folded %d %s candidates; pool size %d", folded, source.value, len(self))
        return folded

    @staticmethod
    def _apply(cluster: MergedCandidate, scored: ScoredCandidate) -> None:
        source = scored.source
        value = scored.divisiveness_or_engagement
        if source in cluster.contributing_sources:
            # One slot per source per run: a repeat from the same source only raises it.
            value = max(cluster.per_source_signals[source], value)
        cluster.per_source_signals[source] = value
        cluster.contributing_sources.add(source)
        cluster.members.append(scored)
