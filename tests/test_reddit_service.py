"""
Tests for RedditService with respx HTTP mocking.
"""
from __future__ import annotations

import pytest
import respx
from httpx import Response

from baseline.domain.models import Source
from baseline.services.aggregation_logic import SignalAggregationEngine
from baseline.services.reddit_svc import RedditService, post_cluster_key

LISTING_PATTERN = r"https://oauth\.reddit\.com/r/[^/]+/hot\.json.*"
RSS_PATTERN = r"https://www\.reddit\.com/r/[^/]+/hot\.rss.*"

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>hot : politics</title>
  <entry>
    <title>Senate votes on gun background check bill</title>
    <link href="https://www.reddit.com/r/politics/comments/abc/senate_votes/" />
    <id>t3_abc</id>
  </entry>
  <entry>
    <title>NFL playoff megathread</title>
    <link href="https://www.reddit.com/r/politics/comments/def/nfl/" />
    <id>t3_def</id>
  </entry>
</feed>
"""


def listing(*posts: dict) -> dict:
    return {"data": {"children": [{"kind": "t3", "data": post} for post in posts]}}


@pytest.fixture
def oauth_service(make_settings):
    settings = make_settings(REDDIT_CLIENT_ID="client", REDDIT_CLIENT_SECRET="secret")
    return RedditService(settings, subreddits=("politics", "news"))


@pytest.mark.asyncio
async def test_get_token_without_credentials_returns_none(make_settings):
    service = RedditService(make_settings())
    assert await service.get_token() is None


@pytest.mark.asyncio
@respx.mock
async def test_api_path_clusters_and_scores_posts(oauth_service):
    token_route = respx.post(RedditService.TOKEN_URL).mock(
        return_value=Response(200, json={"access_token": "tok", "expires_in": 3600})
    )
    politics = listing(
        {
            "title": "Senate passes sweeping immigration reform bill",
            "score": 5000,
            "upvote_ratio": 0.55,
            "num_comments": 3000,
            "url": "https://example.com/immigration",
        },
        {
            "title": "Immigration reform bill passes Senate vote",
            "score": 1000,
            "upvote_ratio": 0.6,
            "num_comments": 1000,
        },
        {
            "title": "Local library expands weekend hours",
            "score": 50,
            "upvote_ratio": 0.97,
            "num_comments": 10,
        },
    )
    listing_route = respx.get(url__regex=LISTING_PATTERN).mock(
        side_effect=[Response(200, json=politics), Response(200, json=listing())]
    )

    candidates = await oauth_service.fetch_candidates()

    assert token_route.call_count == 1
    assert listing_route.call_count == 2
    assert listing_route.calls[0].request.headers["Authorization"] == "Bearer tok"

    assert len(candidates) == 2
    top = candidates[0]
    assert top.source is Source.DISCUSSION
    assert top.title == "Senate passes sweeping immigration reform bill"
    assert top.comment_count == 4000
    assert top.raw_score == 5000
    assert top.approval_ratio == 0.55
    assert top.url == "https://example.com/immigration"
    assert top.metadata["post_count"] == 2
    assert top.metadata["subreddits"] == ["politics"]


@pytest.mark.asyncio
@respx.mock
async def test_api_failure_falls_back_to_rss(make_settings):
    service = RedditService(
        make_settings(REDDIT_CLIENT_ID="client", REDDIT_CLIENT_SECRET="secret"), subreddits=("politics",)
    )
    respx.post(RedditService.TOKEN_URL).mock(return_value=Response(200, json={"access_token": "tok"}))
    respx.get(url__regex=LISTING_PATTERN).mock(return_value=Response(403))
    rss_route = respx.get(url__regex=RSS_PATTERN).mock(return_value=Response(200, text=RSS_FEED))

    candidates = await service.fetch_candidates()

    assert rss_route.called
    assert [candidate.title for candidate in candidates] == ["Senate votes on gun background check bill"]


@pytest.mark.asyncio
@respx.mock
async def test_rss_only_without_credentials(make_settings):
    service = RedditService(make_settings(), subreddits=("politics",))
    respx.get(url__regex=RSS_PATTERN).mock(return_value=Response(200, text=RSS_FEED))

    [candidate] = await service.fetch_candidates()

    assert candidate.approval_ratio == 0.5
    assert candidate.comment_count == 0
    assert candidate.raw_score == 0
    assert candidate.url == "https://www.reddit.com/r/politics/comments/abc/senate_votes/"
    assert candidate.metadata["subreddits"] == ["politics"]


@pytest.mark.asyncio
@respx.mock
async def test_rss_failure_yields_nothing(make_settings):
    service = RedditService(make_settings(), subreddits=("politics",))
    respx.get(url__regex=RSS_PATTERN).mock(return_value=Response(404))

    assert await service.fetch_candidates() == []


def test_cluster_posts_groups_overlapping_titles(make_settings):
    service = RedditService(make_settings())
    posts = [
        {"title": "Supreme Court hears abortion pill case"},
        {"title": "Abortion pill case reaches Supreme Court"},
        {"title": "Federal Reserve holds interest rates"},
    ]
    clusters = service.cluster_posts(posts)
    assert [len(cluster) for cluster in clusters] == [2, 1]


def test_post_divisiveness_prefers_even_splits(make_settings):
    service = RedditService(make_settings())
    split = service.post_divisiveness({"upvote_ratio": 0.5, "num_comments": 500, "score": 100})
    consensus = service.post_divisiveness({"upvote_ratio": 0.98, "num_comments": 500, "score": 100})
    assert split > consensus


def test_cluster_key_splits_hyphenated_words():
    assert post_cluster_key("State-by-state abortion-pill limits!") == "state by state abortion pill limits"
    assert post_cluster_key(None) == ""


def test_hyphenated_titles_cluster_with_spaced_variants(make_settings):
    service = RedditService(make_settings())
    posts = [
        {"title": "State-by-state abortion-pill limits"},
        {"title": "state abortion pill limits"},
    ]
    assert [len(cluster) for cluster in service.cluster_posts(posts)] == [2]


def test_engine_discussion_signal_is_cluster_average(make_settings):
    service = RedditService(make_settings())
    posts = [
        {
            "title": "Supreme Court upholds abortion pill access",
            "score": 5000,
            "upvote_ratio": 0.98,
            "num_comments": 10,
            "subreddit": "politics",
        },
        {
            "title": "Abortion pill access upheld by Supreme Court",
            "score": 50,
            "upvote_ratio": 0.5,
            "num_comments": 20000,
            "subreddit": "news",
        },
    ]
    [cluster] = service.cluster_posts(posts)
    _, candidate = service._cluster_to_candidate(cluster)

    [ranked] = SignalAggregationEngine().aggregate(discussion=[candidate])

    assert candidate.metadata["avg_divisiveness"] == pytest.approx(0.5761, abs=1e-4)
    assert ranked.per_source_signals[Source.DISCUSSION] == pytest.approx(
        candidate.metadata["avg_divisiveness"], abs=1e-4
    )
    assert ranked.discussion_comments == 20010
    assert ranked.subreddits == ["politics", "news"]
