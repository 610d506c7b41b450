from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

import httpx
from dateutil import parser as date_parser

from baseline.core.config import SEARCH_TIMEOUT_SECONDS, Settings
from baseline.core.exceptions import APIError
from baseline.core.resilience import retry_with_backoff
from baseline.domain.models import RawCandidate, Source, lenient_number
from baseline.services.provider_utils import entry_value, fetch_feed_entries, provider_error
from baseline.services.scoring_svc import SignalScoringService

logger = logging.getLogger(__name__)

# News/politics channels sampled by the RSS fallback
CHANNEL_IDS: tuple[str, ...] = (
    "UCXIJgqnII2ZOINSWNOGFThA",  # Fox News
    "UCVTyTA7KZpC4yvubITZBGYg",  # ABC News
    "UCeY0bbntWzzVIaj2z3QigXg",  # NBC News
    "UC16niRr50-MSBwiO3YDb3RA",  # BBC News
    "UCupvZG-5ko_eiXAupbDfxWw",  # CNN
    "UCHd62-u_v4DvJ8TCFtpi4GA",  # MSNBC
    "UC3XTzVzaHQEd30rQbuvCtTQ",  # LastWeekTonight
    "UCF9IOB2TExg3QIBupFtBDxg",  # PBSNewsHour
)

NOISE = re.compile(r"vlog|cooking|gaming|makeup|music video|trailer|review|unboxing|prank", re.IGNORECASE)
POLICY_SIGNAL = re.compile(
    r"congress|senate|president|supreme court|election|policy|law|bill|vote|immigration|economy|"
    r"climate|healthcare|gun|abortion|rights|crisis|war|budget|inflation",
    re.IGNORECASE,
)


def _iso_date(value: Any) -> str | None:
    if not value:
        return None
    try:
        return date_parser.parse(str(value)).isoformat()
    except (ValueError, OverflowError):
        return None


class YouTubeService:
    """
    YouTube adapter for trending News & Politics videos.

    YouTube hides dislike counts, so comment density stands in for
    contentiousness. The RSS fallback carries no statistics at all and its
    videos score zero unless the engine finds them elsewhere.
    """

    API_URL = "https://www.googleapis.com/youtube/v3/videos"
    RSS_URL = "https://www.youtube.com/feeds/videos.xml"
    NEWS_AND_POLITICS_CATEGORY = "25"
    MAX_RESULTS = 50
    RSS_CHANNELS = 4
    RSS_ITEMS_PER_CHANNEL = 5
    DIVISIVENESS_PASS = 0.5

    def __init__(self, settings: Settings, scoring_service: SignalScoringService | None = None) -> None:
        self.settings = settings
        self.scoring_service = scoring_service or SignalScoringService()

    @retry_with_backoff(retries=3, delay=1.0)
    async def _get_videos(self) -> list[dict[str, Any]]:
        params = {
            "part": "snippet,statistics",
            "chart": "mostPopular",
            "regionCode": self.settings.YOUTUBE_REGION,
            "videoCategoryId": self.NEWS_AND_POLITICS_CATEGORY,
            "maxResults": self.MAX_RESULTS,
            "key": self.settings.YOUTUBE_API_KEY,
        }
        async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS) as client:
            response = await client.get(self.API_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        items = payload.get("items", []) if isinstance(payload, dict) else []
        return [item for item in items if isinstance(item, dict)]

    async def fetch_trending_videos(self) -> list[RawCandidate] | None:
        """
        Most popular News & Politics videos with their statistics.

        Returns ``None`` when no API key is configured.

        Raises:
            SourceAdapterError: If the Data API fails after retries.
        """
        if not self.settings.YOUTUBE_API_KEY:
            return None
        try:
            items = await self._get_videos()
        except httpx.HTTPError as exc:
            raise provider_error(exc, "YouTube") from exc

        candidates: list[RawCandidate] = []
        for video in items:
            snippet = video.get("snippet") or {}
            stats = video.get("statistics") or {}
            candidates.append(
                RawCandidate(
                    title=snippet.get("title", ""),
                    source=Source.VIDEO,
                    url=f"https://www.youtube.com/watch?v={video['id']}" if video.get("id") else "",
                    view_count=stats.get("viewCount"),
                    comment_count=stats.get("commentCount"),
                    metadata={
                        "provider": "youtube_api",
                        "video_id": video.get("id"),
                        "channel": snippet.get("channelTitle"),
                        "description": (snippet.get("description") or "")[:200],
                        "like_count": lenient_number(stats.get("likeCount")) or 0,
                        "published_at": _iso_date(snippet.get("publishedAt")),
                    },
                )
            )
        return candidates

    async def fetch_via_rss(self) -> list[RawCandidate]:
        """Latest uploads from the first few news channels, without statistics."""
        results: list[RawCandidate] = []
        channels = CHANNEL_IDS[: self.RSS_CHANNELS]
        for index, channel_id in enumerate(channels):
            try:
                entries = await fetch_feed_entries(f"{self.RSS_URL}?channel_id={channel_id}")
            except httpx.HTTPError as exc:
                logger.warning("YouTube RSS error for channel %s: %s", channel_id, exc)
                entries = []
            for entry in entries[: self.RSS_ITEMS_PER_CHANNEL]:
                results.append(
                    RawCandidate(
                        title=entry_value(entry, "title", default=""),
                        source=Source.VIDEO,
                        url=entry_value(entry, "link", default=""),
                        metadata={
                            "provider": "youtube_rss",
                            "channel": entry_value(entry, "author", default=None),
                            "description": (entry_value(entry, "summary", default="") or "")[:200],
                            "published_at": _iso_date(entry_value(entry, "published", "updated")),
                        },
                    )
                )
            if self.settings.REQUEST_PAUSE_SECONDS > 0 and index < len(channels) - 1:
                await asyncio.sleep(self.settings.REQUEST_PAUSE_SECONDS)
        return results

    def filter_videos(self, videos: list[RawCandidate]) -> list[RawCandidate]:
        """Drop entertainment noise; keep policy content or unusually contentious videos."""
        kept: list[RawCandidate] = []
        for video in videos:
            text = f"{video.title} {video.metadata.get('description') or ''}"
            if NOISE.search(text):
                continue
            divisiveness = self.scoring_service.score_video(video.comment_count, video.view_count)
            if POLICY_SIGNAL.search(text) or divisiveness > self.DIVISIVENESS_PASS:
                kept.append(video)
        return kept

    async def fetch_candidates(self) -> list[RawCandidate]:
        logger.info("YouTube scraper started")
        videos: list[RawCandidate] | None
        try:
            videos = await self.fetch_trending_videos()
        except APIError as exc:
            logger.warning("YouTube API error: %s", exc)
            videos = None
        if not videos:
            logger.info("YouTube: falling back to RSS")
            videos = await self.fetch_via_rss()

        filtered = self.filter_videos(videos)
        logger.info("YouTube: returning %d candidates", len(filtered))
        return filtered
