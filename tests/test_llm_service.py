"""
Tests for the OpenAI decision-maker.
"""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, Mock

import pytest

from baseline.core.exceptions import LLMServiceError
from baseline.domain.models import RankedCandidate, Source
from baseline.services.llm_svc import DecisionService

SELECTION = {
    "selected_title": "Student Loan Forgiveness",
    "category": "Economic-Policy",
    "summary": "Whether federal student debt should be cancelled.",
    "trending_reason": "Court ruling discussed on Reddit and YouTube.",
    "divisiveness_explanation": "Fairness versus relief.",
    "selection_reasoning": "Strongest cross-platform signal.",
}


@pytest.fixture
def mock_settings():
    """Create mock settings with API key."""
    settings = Mock()
    settings.OPENAI_API_KEY = "test_key"
    settings.CHAT_MODEL = "gpt-4o-mini"
    settings.OPENAI_TEMPERATURE = 0.3
    return settings


@pytest.fixture
def candidates():
    return [
        RankedCandidate(
            title="Student loan forgiveness plan",
            composite_score=0.9,
            contributing_sources={Source.DISCUSSION, Source.VIDEO},
            per_source_signals={Source.DISCUSSION: 0.9, Source.TRENDS: 0.0, Source.VIDEO: 0.8},
        )
    ]


def completion(content: str | None) -> Mock:
    response = Mock()
    response.choices = [Mock(message=Mock(content=content))]
    return response


def service_with_response(settings, content: str | None) -> DecisionService:
    service = DecisionService(settings=settings)
    service.client = Mock()
    service.client.chat.completions.create = AsyncMock(return_value=completion(content))
    return service


def test_decision_service_without_api_key():
    settings = Mock()
    settings.OPENAI_API_KEY = None
    settings.CHAT_MODEL = "gpt-4o-mini"

    service = DecisionService(settings=settings)

    assert service.client is None
    assert service.model == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_select_topic_without_client_returns_none(candidates):
    settings = Mock()
    settings.OPENAI_API_KEY = None
    service = DecisionService(settings=settings)

    assert await service.select_topic(candidates, [], "2024-03-01") is None
    assert await service.select_topic_for_date("2024-03-01", []) is None


@pytest.mark.asyncio
async def test_select_topic_rejects_empty_candidates(mock_settings):
    service = DecisionService(settings=mock_settings)
    with pytest.raises(ValueError):
        await service.select_topic([], [], "2024-03-01")


@pytest.mark.asyncio
async def test_select_topic_parses_selection(mock_settings, candidates):
    service = service_with_response(mock_settings, json.dumps(SELECTION))

    selection = await service.select_topic(candidates, ["Gun Control", "TikTok Ban"], "2024-03-01")

    assert selection.selected_title == "Student Loan Forgiveness"
    assert selection.category == "economic-policy"

    kwargs = service.client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}
    prompt = kwargs["messages"][1]["content"]
    assert "Student loan forgiveness plan" in prompt
    assert "Gun Control, TikTok Ban" in prompt
    assert "2024-03-01" in prompt


@pytest.mark.asyncio
async def test_prompt_lists_only_ten_recent_titles(mock_settings, candidates):
    service = service_with_response(mock_settings, json.dumps(SELECTION))
    recent = [f"Old topic {i}" for i in range(25)]

    await service.select_topic(candidates, recent, "2024-03-01")

    prompt = service.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "Old topic 9" in prompt
    assert "Old topic 10" not in prompt


@pytest.mark.asyncio
async def test_fallback_prompt_has_no_candidates(mock_settings):
    service = service_with_response(mock_settings, json.dumps(SELECTION))

    selection = await service.select_topic_for_date("2020-06-15", ["Police Reform"])

    assert selection.selected_title == "Student Loan Forgiveness"
    prompt = service.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "No real-time trending data" in prompt
    assert "Police Reform" in prompt


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        None,
        "not json",
        json.dumps(["a list"]),
        json.dumps({**SELECTION, "category": "sports"}),
        json.dumps({"category": "religion"}),
    ],
)
async def test_unusable_answers_raise(mock_settings, candidates, content):
    service = service_with_response(mock_settings, content)
    with pytest.raises(LLMServiceError) as exc_info:
        await service.select_topic(candidates, [], "2024-03-01")
    assert exc_info.value.model == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_api_failure_raises_llm_service_error(mock_settings, candidates):
    service = DecisionService(settings=mock_settings)
    service.client = Mock()
    service.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("connection reset"))

    with pytest.raises(LLMServiceError, match="connection reset"):
        await service.select_topic(candidates, [], "2024-03-01")


@pytest.mark.asyncio
async def test_prompt_includes_reddit_context(mock_settings):
    service = service_with_response(mock_settings, json.dumps(SELECTION))
    ranked = [
        RankedCandidate(
            title="Student loan forgiveness plan",
            composite_score=0.9,
            contributing_sources={Source.DISCUSSION},
            per_source_signals={Source.DISCUSSION: 0.9, Source.TRENDS: 0.0, Source.VIDEO: 0.0},
            discussion_comments=4200,
            subreddits=["politics", "news"],
        ),
        RankedCandidate(
            title="Solar eclipse viewing",
            composite_score=0.2,
            contributing_sources={Source.TRENDS},
            per_source_signals={Source.DISCUSSION: 0.0, Source.TRENDS: 0.9, Source.VIDEO: 0.0},
        ),
    ]

    await service.select_topic(ranked, [], "2024-03-01")

    prompt = service.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "Reddit comments: 4200 | Subreddits: r/politics, r/news" in prompt
    assert prompt.count("Reddit comments:") == 1
