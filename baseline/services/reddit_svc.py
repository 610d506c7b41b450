from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any

import httpx

from baseline.core.config import SEARCH_TIMEOUT_SECONDS, Settings
from baseline.core.exceptions import APIError
from baseline.core.resilience import retry_with_backoff
from baseline.domain.models import RawCandidate, Source, lenient_number
from baseline.services.matching_svc import title_tokens, token_overlap
from baseline.services.provider_utils import entry_value, fetch_feed_entries, provider_error
from baseline.services.scoring_svc import SignalScoringService

logger = logging.getLogger(__name__)

SUBREDDITS: tuple[str, ...] = (
    "politics",
    "news",
    "worldnews",
    "AmericanPolitics",
    "Conservative",
    "liberal",
    "PoliticalDiscussion",
    "changemyview",
    "neutralnews",
    "Ask_Politics",
)

NOISE_TERMS = re.compile(
    r"nfl|nba|nhl|mlb|oscar|grammy|celebrity|kardashian|taylor swift|super bowl", re.IGNORECASE
)

_PUNCTUATION = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

POST_CLUSTER_THRESHOLD = 0.35
DIVISIVENESS_SORT_WEIGHT = 0.7
COMMENT_SORT_WEIGHT = 0.3
COMMENT_SATURATION = 50_000
MAX_CANDIDATES = 15


def post_cluster_key(title: Any) -> str:
    """Key for grouping posts; punctuation becomes a word break, so "abortion-pill" is two words."""
    if not title:
        return ""
    spaced = _PUNCTUATION.sub(" ", str(title).lower())
    return _WHITESPACE.sub(" ", spaced).strip()


class RedditService:
    """
    Reddit adapter for divisive discussion topics.

    Pulls hot posts from news and politics subreddits through the OAuth API,
    falling back per subreddit to the public RSS feed when credentials are
    missing or the API fails. Posts are clustered by title overlap so each
    topic reaches the engine once.
    """

    TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
    API_BASE = "https://oauth.reddit.com"
    RSS_BASE = "https://www.reddit.com/r"

    def __init__(
        self,
        settings: Settings,
        scoring_service: SignalScoringService | None = None,
        subreddits: tuple[str, ...] = SUBREDDITS,
    ) -> None:
        self.settings = settings
        self.scoring_service = scoring_service or SignalScoringService()
        self.subreddits = subreddits
        self._token: str | None = None
        self._token_expiry = 0.0

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": self.settings.REDDIT_USER_AGENT}

    async def get_token(self) -> str | None:
        """Client-credentials token, cached until a minute before it expires."""
        if self._token and time.monotonic() < self._token_expiry:
            return self._token
        if not self.settings.REDDIT_CLIENT_ID or not self.settings.REDDIT_CLIENT_SECRET:
            return None

        try:
            async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={"grant_type": "client_credentials"},
                    auth=(self.settings.REDDIT_CLIENT_ID, self.settings.REDDIT_CLIENT_SECRET),
                    headers=self.headers,
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reddit OAuth failed, falling back to RSS: %s", exc)
            return None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.warning("Reddit OAuth response carried no access token")
            return None
        expires_in = lenient_number(payload.get("expires_in")) or 3600.0
        self._token = token
        self._token_expiry = time.monotonic() + max(expires_in - 60, 0)
        return token

    @retry_with_backoff(retries=3, delay=1.0)
    async def _get_listing(self, subreddit: str, token: str, sort: str, limit: int) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{self.API_BASE}/r/{subreddit}/{sort}.json",
                params={"limit": limit},
                headers={**self.headers, "Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
            payload = response.json()
        children = payload.get("data", {}).get("children", []) if isinstance(payload, dict) else []
        return [child.get("data", {}) for child in children if isinstance(child, dict)]

    async def fetch_subreddit_api(self, subreddit: str, sort: str = "hot", limit: int = 25) -> list[dict[str, Any]] | None:
        """
        Fetch a subreddit listing through the OAuth API.

        Returns:
            Post dictionaries, or ``None`` when no credentials are configured.

        Raises:
            SourceAdapterError: If the API keeps failing or rejects the call.
            RateLimitError: If Reddit answers 429 after all retries.
        """
        token = await self.get_token()
        if not token:
            return None
        try:
            return await self._get_listing(subreddit, token, sort, limit)
        except httpx.HTTPError as exc:
            raise provider_error(exc, "Reddit") from exc

    async def fetch_subreddit_rss(self, subreddit: str) -> list[dict[str, Any]]:
        """Hot posts from the public feed; no vote data, so metrics are neutral."""
        try:
            entries = await fetch_feed_entries(f"{self.RSS_BASE}/{subreddit}/hot.rss", headers=self.headers)
        except httpx.HTTPError as exc:
            logger.warning("Reddit RSS error for r/%s: %s", subreddit, exc)
            return []
        return [
            {
                "title": entry_value(entry, "title", default=""),
                "selftext": entry_value(entry, "summary", default=""),
                "url": entry_value(entry, "link", default=""),
                "score": 0,
                "num_comments": 0,
                "upvote_ratio": 0.5,
                "subreddit": subreddit,
            }
            for entry in entries
        ]

    def post_divisiveness(self, post: dict[str, Any]) -> float:
        return self.scoring_service.score_discussion(
            lenient_number(post.get("upvote_ratio")),
            lenient_number(post.get("num_comments")),
            lenient_number(post.get("score")),
        )

    def cluster_posts(self, posts: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
        """Greedy single-pass grouping of posts whose titles overlap above 0.35."""
        tokens = [title_tokens(post_cluster_key(post.get("title"))) for post in posts]
        clusters: list[list[dict[str, Any]]] = []
        used: set[int] = set()
        for i, post in enumerate(posts):
            if i in used:
                continue
            cluster = [post]
            used.add(i)
            for j in range(i + 1, len(posts)):
                if j in used:
                    continue
                if token_overlap(tokens[i], tokens[j]) > POST_CLUSTER_THRESHOLD:
                    cluster.append(posts[j])
                    used.add(j)
            clusters.append(cluster)
        return clusters

    def _cluster_to_candidate(self, cluster: list[dict[str, Any]]) -> tuple[float, RawCandidate]:
        representative = max(cluster, key=lambda post: lenient_number(post.get("score")) or 0.0)
        total_comments = sum(lenient_number(post.get("num_comments")) or 0.0 for post in cluster)
        avg_divisiveness = sum(self.post_divisiveness(post) for post in cluster) / len(cluster)
        subreddits = list(dict.fromkeys(post.get("subreddit") for post in cluster if post.get("subreddit")))
        permalink = representative.get("permalink") or ""
        candidate = RawCandidate(
            title=representative.get("title", ""),
            source=Source.DISCUSSION,
            url=representative.get("url") or (f"https://reddit.com{permalink}" if permalink else ""),
            approval_ratio=representative.get("upvote_ratio"),
            comment_count=total_comments,
            raw_score=representative.get("score"),
            precomputed_signal=avg_divisiveness,
            metadata={
                "subreddits": subreddits,
                "post_count": len(cluster),
                "avg_divisiveness": round(avg_divisiveness, 4),
            },
        )
        sort_key = (
            avg_divisiveness * DIVISIVENESS_SORT_WEIGHT
            + min(total_comments / COMMENT_SATURATION, 1.0) * COMMENT_SORT_WEIGHT
        )
        return sort_key, candidate

    async def fetch_candidates(self) -> list[RawCandidate]:
        """Fetch, denoise and cluster posts into at most 15 discussion candidates."""
        logger.info("Reddit scraper started")
        all_posts: list[dict[str, Any]] = []

        for index, subreddit in enumerate(self.subreddits):
            posts: list[dict[str, Any]] | None
            try:
                posts = await self.fetch_subreddit_api(subreddit, "hot", 25)
            except APIError as exc:
                logger.warning("Reddit API error for r/%s: %s", subreddit, exc)
                posts = None
            if posts is None:
                posts = await self.fetch_subreddit_rss(subreddit)
            all_posts.extend({**post, "subreddit": post.get("subreddit") or subreddit} for post in posts)
            if self.settings.REQUEST_PAUSE_SECONDS > 0 and index < len(self.subreddits) - 1:
                await asyncio.sleep(self.settings.REQUEST_PAUSE_SECONDS)

        logger.info("Reddit: fetched %d posts", len(all_posts))
        filtered = [post for post in all_posts if not NOISE_TERMS.search(str(post.get("title") or ""))]

        ranked = [self._cluster_to_candidate(cluster) for cluster in self.cluster_posts(filtered)]
        ranked.sort(key=lambda pair: pair[0], reverse=True)
        top = [candidate for _, candidate in ranked[:MAX_CANDIDATES]]
        logger.info("Reddit: returning %d topic candidates", len(top))
        return top
