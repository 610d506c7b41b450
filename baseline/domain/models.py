from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class Source(str, Enum):
    """Trending-signal providers feeding the engine."""

    DISCUSSION = "discussion"
    TRENDS = "trends"
    VIDEO = "video"


# Fan-in order used by the engine; the first source folded owns the canonical title.
SOURCE_ORDER: tuple[Source, ...] = (Source.DISCUSSION, Source.TRENDS, Source.VIDEO)

TOPIC_CATEGORIES: tuple[str, ...] = (
    "social-issues",
    "economic-policy",
    "foreign-policy",
    "civil-rights",
    "science-technology",
    "religion",
    "healthcare",
    "immigration",
    "education",
    "environment",
)


def lenient_number(value: Any) -> float | None:
    """Coerce a provider metric to a finite float, or ``None`` when unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def empty_signals() -> dict[Source, float]:
    return {source: 0.0 for source in SOURCE_ORDER}


class RawCandidate(BaseModel):
    """Candidate record returned by a source adapter, before scoring."""

    title: str = ""
    source: Source
    url: str = ""
    # discussion
    approval_ratio: float | None = None
    raw_score: float | None = None
    # discussion + video
    comment_count: float | None = None
    # trends
    relative_volume: float | None = None
    # video
    view_count: float | None = None
    # adapter-computed per-source value; replaces the metric heuristic when set
    precomputed_signal: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title", "url", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator(
        "approval_ratio",
        "raw_score",
        "comment_count",
        "relative_volume",
        "view_count",
        "precomputed_signal",
        mode="before",
    )
    @classmethod
    def coerce_metric(cls, v: Any) -> float | None:
        """Malformed metrics are kept as absent rather than rejected."""
        return lenient_number(v)


class ScoredCandidate(RawCandidate):
    """Raw candidate augmented with its per-source heuristic value."""

    divisiveness_or_engagement: float = Field(ge=0.0, le=1.0)


class MergedCandidate(BaseModel):
    """One fuzzy-matched cluster of candidates across sources."""

    title: str
    normalized_key: str
    per_source_signals: dict[Source, float] = Field(default_factory=empty_signals)
    contributing_sources: set[Source] = Field(default_factory=set)
    composite_score: float = 0.0
    members: list[ScoredCandidate] = Field(default_factory=list)

    def signal(self, source: Source) -> float:
        return self.per_source_signals.get(source, 0.0)

    def discussion_comments(self) -> int:
        """Comments summed over every discussion member of the cluster."""
        return int(
            sum(member.comment_count or 0.0 for member in self.members if member.source is Source.DISCUSSION)
        )

    def subreddits(self) -> list[str]:
        """Subreddits named by discussion members, first-seen order."""
        names: dict[str, None] = {}
        for member in self.members:
            if member.source is not Source.DISCUSSION:
                continue
            for name in member.metadata.get("subreddits") or []:
                names.setdefault(str(name), None)
        return list(names)


class RankedCandidate(BaseModel):
    """Ranked entry handed to the decision-maker."""

    title: str
    composite_score: float
    contributing_sources: set[Source]
    per_source_signals: dict[Source, float]
    discussion_comments: int = 0
    subreddits: list[str] = Field(default_factory=list)

    @field_serializer("contributing_sources")
    def serialize_sources(self, sources: set[Source]) -> list[str]:
        return sorted(source.value for source in sources)


class RankingWeights(BaseModel):
    """Composite score weights; a policy choice, not a derived constant."""

    model_config = ConfigDict(frozen=True)

    discussion: float = Field(default=0.45, ge=0.0)
    video: float = Field(default=0.25, ge=0.0)
    trends: float = Field(default=0.15, ge=0.0)
    cross_platform: float = Field(default=0.15, ge=0.0)


class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    weights: RankingWeights = Field(default_factory=RankingWeights)
    match_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    min_token_length: int = Field(default=3, ge=0)
    top_n: int = Field(default=20, ge=1)


class TopicSelection(BaseModel):
    """Structured answer returned by the decision-maker."""

    selected_title: str = Field(min_length=1)
    category: str
    summary: str = ""
    trending_reason: str = ""
    divisiveness_explanation: str = ""
    selection_reasoning: str = ""

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        category = v.strip().lower()
        if category not in TOPIC_CATEGORIES:
            raise ValueError(f"Unknown category {v!r}. Must be one of {', '.join(TOPIC_CATEGORIES)}")
        return category


class RunRecord(BaseModel):
    run_date: str
    status: Literal["success", "skipped", "error"]
    topic_title: str | None = None
    error_msg: str | None = None
    duration_ms: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RankRequest(BaseModel):
    discussion: list[dict[str, Any]] = Field(default_factory=list)
    trends: list[dict[str, Any]] = Field(default_factory=list)
    video: list[dict[str, Any]] = Field(default_factory=list)
    top_n: int | None = Field(default=None, ge=1)
