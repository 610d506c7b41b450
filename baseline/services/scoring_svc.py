from __future__ import annotations

import math

from baseline.domain.models import RawCandidate, ScoredCandidate, Source


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class SignalScoringService:
    """Per-source divisiveness and engagement heuristics.

    Every method is pure and total: missing metrics count as zero and a zero
    denominator yields zero, so any adapter record can be scored.
    """

    RATIO_WEIGHT = 0.6
    ENGAGEMENT_WEIGHT = 0.3
    VISIBILITY_WEIGHT = 0.1
    ENGAGEMENT_LOG_DIVISOR = 4.0
    VISIBILITY_SATURATION = 100.0
    TRENDS_VOLUME_SCALE = 100.0
    COMMENT_DENSITY_SCALE = 1000.0

    def ratio_divisiveness(self, approval_ratio: float | None) -> float:
        """1.0 at an even 0.5 split, falling linearly to 0.0 at unanimity either way."""
        ratio = _clamp(approval_ratio or 0.0)
        return 1.0 - abs(ratio - 0.5) * 2

    def engagement_weight(self, comment_count: float | None) -> float:
        comments = max(comment_count or 0.0, 0.0)
        return min(math.log10(comments + 1) / self.ENGAGEMENT_LOG_DIVISOR, 1.0)

    def visibility_weight(self, raw_score: float | None) -> float:
        score = max(raw_score or 0.0, 0.0)
        if score > self.VISIBILITY_SATURATION:
            return 1.0
        return score / self.VISIBILITY_SATURATION

    def score_discussion(
        self,
        approval_ratio: float | None,
        comment_count: float | None,
        raw_score: float | None,
    ) -> float:
        """Near-even approval plus real discussion volume; popularity is a weak tiebreaker."""
        return (
            self.RATIO_WEIGHT * self.ratio_divisiveness(approval_ratio)
            + self.ENGAGEMENT_WEIGHT * self.engagement_weight(comment_count)
            + self.VISIBILITY_WEIGHT * self.visibility_weight(raw_score)
        )

    def score_trends(self, relative_volume: float | None) -> float:
        """Relative search volume (0-100) rescaled to [0, 1]."""
        return _clamp((relative_volume or 0.0) / self.TRENDS_VOLUME_SCALE)

    def comment_density(self, comment_count: float | None, view_count: float | None) -> float:
        views = view_count or 0.0
        if views <= 0:
            return 0.0
        return max(comment_count or 0.0, 0.0) / views

    def score_video(self, comment_count: float | None, view_count: float | None) -> float:
        """Comments per view as a contentiousness proxy, saturating at 1 per 1000 views."""
        return min(self.comment_density(comment_count, view_count) * self.COMMENT_DENSITY_SCALE, 1.0)

    def score_value(self, raw: RawCandidate) -> float:
        if raw.precomputed_signal is not None:
            # Adapters that aggregate several items (Reddit clusters) score them upstream
            value = raw.precomputed_signal
        elif raw.source is Source.DISCUSSION:
            value = self.score_discussion(raw.approval_ratio, raw.comment_count, raw.raw_score)
        elif raw.source is Source.TRENDS:
            value = self.score_trends(raw.relative_volume)
        else:
            value = self.score_video(raw.comment_count, raw.view_count)
        return _clamp(value)

    def score(self, raw: RawCandidate) -> ScoredCandidate:
        """Attach the matching per-source value to a raw candidate."""
        return ScoredCandidate(
            **raw.model_dump(),
            divisiveness_or_engagement=self.score_value(raw),
        )
