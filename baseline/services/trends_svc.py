from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from baseline.core.config import SEARCH_TIMEOUT_SECONDS, Settings
from baseline.core.exceptions import APIError
from baseline.core.resilience import retry_with_backoff
from baseline.domain.models import RawCandidate, Source
from baseline.services.provider_utils import entry_value, fetch_feed_entries, provider_error

logger = logging.getLogger(__name__)

NOISE = re.compile(
    r"weather|sports|nfl|nba|recipe|movie|actor|singer|celebrity|game|score|match|fashion", re.IGNORECASE
)
POLICY_SIGNAL = re.compile(
    r"law|bill|policy|rights|immigration|healthcare|climate|gun|abortion|tax|election|vote|economy|"
    r"inflation|war|crisis|court|congress|senate|president|ban|regulation|reform",
    re.IGNORECASE,
)


class TrendsService:
    """
    Google Trends adapter.

    Uses SerpAPI's trending-now engine when a key is configured and falls back
    to the public daily trends RSS feed. Either way only the relative search
    volume (0-100) is reported; trends carry no divisiveness signal.
    """

    SERPAPI_URL = "https://serpapi.com/search.json"
    RSS_URL = "https://trends.google.com/trends/trendingsearches/daily/rss"
    MAX_ITEMS = 20
    RANK_VOLUME_STEP = 3
    TRAFFIC_PER_POINT = 1000
    HIGH_VOLUME_PASS = 60

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @retry_with_backoff(retries=3, delay=1.0)
    async def _get_serpapi(self) -> dict[str, Any]:
        params = {
            "engine": "google_trends_trending_now",
            "geo": self.settings.TRENDS_GEO,
            "api_key": self.settings.SERPAPI_KEY,
        }
        async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS) as client:
            response = await client.get(self.SERPAPI_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _query_of(item: Any) -> str:
        if not isinstance(item, dict):
            return str(item)
        title = item.get("title")
        if isinstance(title, dict):
            title = title.get("query")
        return str(item.get("query") or title or "")

    async def fetch_via_serpapi(self) -> list[RawCandidate] | None:
        """
        Trending searches ranked by SerpAPI, scored ``100 - 3 * rank``.

        Returns ``None`` when no key is configured.

        Raises:
            SourceAdapterError: If SerpAPI fails after retries.
        """
        if not self.settings.SERPAPI_KEY:
            return None
        try:
            payload = await self._get_serpapi()
        except httpx.HTTPError as exc:
            raise provider_error(exc, "SerpAPI") from exc

        items = payload.get("trending_searches") or []
        return [
            RawCandidate(
                title=self._query_of(item),
                source=Source.TRENDS,
                relative_volume=100 - index * self.RANK_VOLUME_STEP,
                metadata={"provider": "google_trends_serpapi", "rank": index + 1},
            )
            for index, item in enumerate(items[: self.MAX_ITEMS])
        ]

    def _traffic_volume(self, entry: Any) -> tuple[str, float]:
        traffic = str(entry_value(entry, "ht_approx_traffic", "approx_traffic", default="0"))
        digits = re.sub(r"[^0-9]", "", traffic)
        volume = int(digits) if digits else 0
        return traffic, min(volume / self.TRAFFIC_PER_POINT, 100.0)

    async def fetch_via_rss(self) -> list[RawCandidate]:
        """Daily trending searches; approximate traffic / 1000, capped at 100."""
        try:
            entries = await fetch_feed_entries(f"{self.RSS_URL}?geo={self.settings.TRENDS_GEO}")
        except httpx.HTTPError as exc:
            logger.warning("Google Trends RSS failed: %s", exc)
            return []

        candidates: list[RawCandidate] = []
        for entry in entries[: self.MAX_ITEMS]:
            traffic, volume = self._traffic_volume(entry)
            candidates.append(
                RawCandidate(
                    title=entry_value(entry, "title", default=""),
                    source=Source.TRENDS,
                    url=entry_value(entry, "link", default=""),
                    relative_volume=volume,
                    metadata={"provider": "google_trends_rss", "approx_traffic": traffic},
                )
            )
        return candidates

    def filter_topics(self, candidates: list[RawCandidate]) -> list[RawCandidate]:
        """Keep policy/societal searches, or very high volume ones, minus obvious noise."""
        kept: list[RawCandidate] = []
        for candidate in candidates:
            if NOISE.search(candidate.title):
                continue
            if POLICY_SIGNAL.search(candidate.title) or (candidate.relative_volume or 0) > self.HIGH_VOLUME_PASS:
                kept.append(candidate)
        return kept

    async def fetch_candidates(self) -> list[RawCandidate]:
        logger.info("Google Trends scraper started")
        trends: list[RawCandidate] | None
        try:
            trends = await self.fetch_via_serpapi()
        except APIError as exc:
            logger.warning("SerpAPI Google Trends failed: %s", exc)
            trends = None
        if not trends:
            logger.info("Google Trends: falling back to RSS")
            trends = await self.fetch_via_rss()

        filtered = self.filter_topics(trends)
        logger.info("Google Trends: returning %d candidates", len(filtered))
        return filtered
