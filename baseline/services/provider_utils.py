"""Shared HTTP and RSS helpers for the trending-signal adapters."""
from __future__ import annotations

from typing import Any

import feedparser
import httpx

from baseline.core.config import SEARCH_TIMEOUT_SECONDS
from baseline.core.exceptions import APIError, RateLimitError, SourceAdapterError
from baseline.core.resilience import retry_with_backoff
from baseline.domain.models import lenient_number


def provider_error(exc: httpx.HTTPError, service: str) -> APIError:
    """Translate an httpx failure into the Baseline exception hierarchy."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 429:
            retry_after = lenient_number(exc.response.headers.get("Retry-After"))
            return RateLimitError(service=service, retry_after=int(retry_after) if retry_after is not None else None)
        return SourceAdapterError(
            f"{service} request failed with status {status_code}",
            source=service,
            status_code=status_code,
        )
    return SourceAdapterError(f"{service} request failed: {exc}", source=service)


@retry_with_backoff(retries=3, delay=1.0)
async def fetch_feed_entries(url: str, headers: dict[str, str] | None = None) -> list[Any]:
    """Download an RSS/Atom feed with httpx and parse it with feedparser."""
    async with httpx.AsyncClient(timeout=SEARCH_TIMEOUT_SECONDS, follow_redirects=True) as client:
        response = await client.get(url, headers=headers)
        response.raise_for_status()
    parsed = feedparser.parse(response.text)
    return list(parsed.entries or [])


def entry_value(entry: Any, *keys: str, default: Any = None) -> Any:
    """First non-empty value among ``keys`` on a feedparser entry."""
    for key in keys:
        value = entry.get(key) if hasattr(entry, "get") else getattr(entry, key, None)
        if value:
            return value
    return default
