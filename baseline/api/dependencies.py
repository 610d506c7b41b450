from __future__ import annotations

from functools import lru_cache

from baseline.core.config import Settings, get_settings
from baseline.services.aggregation_logic import SignalAggregationEngine
from baseline.services.llm_svc import DecisionService
from baseline.services.reddit_svc import RedditService
from baseline.services.run_logic import DailyRunOrchestrator
from baseline.services.scoring_svc import SignalScoringService
from baseline.services.trends_svc import TrendsService
from baseline.services.youtube_svc import YouTubeService
from baseline.storage.topic_history import TopicHistoryStore, get_topic_history


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def get_scoring_service() -> SignalScoringService:
    return SignalScoringService()


@lru_cache(maxsize=1)
def get_engine() -> SignalAggregationEngine:
    return SignalAggregationEngine(get_settings().engine_config(), get_scoring_service())


@lru_cache(maxsize=1)
def get_reddit_service() -> RedditService:
    return RedditService(get_settings(), get_scoring_service())


@lru_cache(maxsize=1)
def get_trends_service() -> TrendsService:
    return TrendsService(get_settings())


@lru_cache(maxsize=1)
def get_youtube_service() -> YouTubeService:
    return YouTubeService(get_settings(), get_scoring_service())


@lru_cache(maxsize=1)
def get_decision_service() -> DecisionService:
    return DecisionService(get_settings())


def get_history() -> TopicHistoryStore:
    return get_topic_history()


@lru_cache(maxsize=1)
def get_run_orchestrator() -> DailyRunOrchestrator:
    return DailyRunOrchestrator(
        reddit_service=get_reddit_service(),
        trends_service=get_trends_service(),
        youtube_service=get_youtube_service(),
        engine=get_engine(),
        decision_service=get_decision_service(),
        history=get_history(),
        decision_limit=get_settings().DECISION_CANDIDATE_LIMIT,
    )
