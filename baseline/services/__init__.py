from baseline.services.aggregation_logic import SignalAggregationEngine
from baseline.services.llm_svc import DecisionService
from baseline.services.matching_svc import FuzzyMatcher
from baseline.services.merge_svc import CandidatePool
from baseline.services.ranking_svc import CompositeRanker
from baseline.services.reddit_svc import RedditService
from baseline.services.run_logic import DailyRunOrchestrator
from baseline.services.scoring_svc import SignalScoringService
from baseline.services.trends_svc import TrendsService
from baseline.services.youtube_svc import YouTubeService

__all__ = [
    "CandidatePool",
    "CompositeRanker",
    "DailyRunOrchestrator",
    "DecisionService",
    "FuzzyMatcher",
    "RedditService",
    "SignalAggregationEngine",
    "SignalScoringService",
    "TrendsService",
    "YouTubeService",
]
