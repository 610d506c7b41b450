"""
Application configuration with validation.

Provider credentials are optional: each source adapter degrades to its RSS
fallback and the daily run is skipped when no decision-maker key is present.
The ranking policy (weights, match threshold, token cutoff, top-N) is read
from the environment so it can change without touching the engine.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from baseline.domain.models import EngineConfig, RankingWeights

logger = logging.getLogger(__name__)

# Constants
SEARCH_TIMEOUT_SECONDS = 15.0
RECENT_TITLES_LIMIT = 30


class Settings(BaseSettings):
    """Application settings loaded from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # OPTIONAL: OpenAI decision-maker
    OPENAI_API_KEY: str | None = None
    CHAT_MODEL: str = "gpt-4o"
    OPENAI_TEMPERATURE: float = 0.3

    # OPTIONAL: Reddit OAuth (falls back to subreddit RSS)
    REDDIT_CLIENT_ID: str | None = None
    REDDIT_CLIENT_SECRET: str | None = None
    REDDIT_USER_AGENT: str = "Baseline/1.0"

    # OPTIONAL: Google Trends via SerpAPI (falls back to the daily trends RSS)
    SERPAPI_KEY: str | None = None
    TRENDS_GEO: str = "US"

    # OPTIONAL: YouTube Data API (falls back to channel RSS)
    YOUTUBE_API_KEY: str | None = None
    YOUTUBE_REGION: str = "US"

    # OPTIONAL: Google Sheets mirror for topic history
    GOOGLE_CREDENTIALS: str | None = None  # JSON string of service account credentials
    SHEET_ID: str | None = None

    # Ranking policy
    WEIGHT_DISCUSSION: float = 0.45
    WEIGHT_VIDEO: float = 0.25
    WEIGHT_TRENDS: float = 0.15
    WEIGHT_CROSS_PLATFORM: float = 0.15
    MATCH_THRESHOLD: float = 0.4
    MIN_TOKEN_LENGTH: int = 3
    RANK_TOP_N: int = 20
    DECISION_CANDIDATE_LIMIT: int = 15

    # OPTIONAL: Application Settings
    HISTORY_DIR: str = "/tmp/baseline_history"
    REQUEST_PAUSE_SECONDS: float = 0.5
    CRON_SECRET: str | None = None
    CORS_ORIGINS: list[str] = []
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "production"

    @field_validator("WEIGHT_DISCUSSION", "WEIGHT_VIDEO", "WEIGHT_TRENDS", "WEIGHT_CROSS_PLATFORM")
    @classmethod
    def validate_weight_not_negative(cls, v: float, info) -> float:
        """Composite weights may be zero but never negative."""
        if v < 0:
            raise ValueError(f"{info.field_name} cannot be negative")
        return v

    @field_validator("MATCH_THRESHOLD")
    @classmethod
    def validate_threshold_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("MATCH_THRESHOLD must be between 0 and 1")
        return v

    @field_validator("RANK_TOP_N", "DECISION_CANDIDATE_LIMIT")
    @classmethod
    def validate_positive_limit(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_google_credentials_json(self) -> "Settings":
        """Validate that GOOGLE_CREDENTIALS, when given, is a JSON object."""
        if not self.GOOGLE_CREDENTIALS:
            return self
        try:
            credentials_dict = json.loads(self.GOOGLE_CREDENTIALS)
        except json.JSONDecodeError as e:
            raise ValueError(f"GOOGLE_CREDENTIALS is not valid JSON: {e}") from e
        if not isinstance(credentials_dict, dict):
            raise ValueError("GOOGLE_CREDENTIALS must be a JSON object")
        return self

    def ranking_weights(self) -> RankingWeights:
        return RankingWeights(
            discussion=self.WEIGHT_DISCUSSION,
            video=self.WEIGHT_VIDEO,
            trends=self.WEIGHT_TRENDS,
            cross_platform=self.WEIGHT_CROSS_PLATFORM,
        )

    def engine_config(self) -> EngineConfig:
        """Build the explicit configuration handed to the ranking engine."""
        return EngineConfig(
            weights=self.ranking_weights(),
            match_threshold=self.MATCH_THRESHOLD,
            min_token_length=self.MIN_TOKEN_LENGTH,
            top_n=self.RANK_TOP_N,
        )

    def log_startup_summary(self) -> None:
        """Log configuration summary on startup (without leaking secrets)."""
        logger.info("=" * 60)
        logger.info("Baseline Topic Radar - Configuration")
        logger.info("=" * 60)
        logger.info("Environment: %s", self.ENVIRONMENT)
        logger.info("Log Level: %s", self.LOG_LEVEL)
        logger.info("Chat Model: %s", self.CHAT_MODEL)
        logger.info("OpenAI API Key: %s", "✓ Present" if self.OPENAI_API_KEY else "○ Not set (daily run skipped)")
        logger.info(
            "Reddit OAuth: %s",
            "✓ Present" if self.REDDIT_CLIENT_ID and self.REDDIT_CLIENT_SECRET else "○ Not set (RSS fallback)",
        )
        logger.info("SerpAPI Key: %s", "✓ Present" if self.SERPAPI_KEY else "○ Not set (RSS fallback)")
        logger.info("YouTube API Key: %s", "✓ Present" if self.YOUTUBE_API_KEY else "○ Not set (RSS fallback)")
        logger.info("Sheets Mirror: %s", "✓ Configured" if self.GOOGLE_CREDENTIALS and self.SHEET_ID else "○ Local only")
        logger.info(
            "Weights: discussion=%.2f video=%.2f trends=%.2f cross_platform=%.2f",
            self.WEIGHT_DISCUSSION,
            self.WEIGHT_VIDEO,
            self.WEIGHT_TRENDS,
            self.WEIGHT_CROSS_PLATFORM,
        )
        logger.info(
            "Matching: threshold=%.2f min_token_length=%d top_n=%d",
            self.MATCH_THRESHOLD,
            self.MIN_TOKEN_LENGTH,
            self.RANK_TOP_N,
        )
        logger.info("Cron Secret: %s", "✓ Configured" if self.CRON_SECRET else "○ Not configured")
        logger.info("=" * 60)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Will raise ValidationError if configuration is invalid.
    """
    settings = Settings()
    settings.log_startup_summary()
    return settings
