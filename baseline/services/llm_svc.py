from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, cast

from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from baseline.core.config import get_settings
from baseline.core.exceptions import LLMServiceError
from baseline.core.prompts import SYSTEM_INSTRUCTIONS, build_fallback_prompt, build_selection_prompt
from baseline.domain.models import RankedCandidate, TopicSelection

logger = logging.getLogger(__name__)


class DecisionService:
    """
    OpenAI decision-maker that picks the day's debate topic.

    Receives the engine's ranked candidates plus recently published titles,
    and returns a single TopicSelection with its narrative fields. Recency
    exclusion is left to the model via the prompt. Stateless: every call
    carries its full context.
    """

    RECENT_TITLES_IN_PROMPT = 10
    RECENT_TITLES_IN_FALLBACK = 15

    def __init__(self, settings: Any = None) -> None:
        """
        Initialise the decision service.

        Args:
            settings: Application settings containing the OpenAI API key,
                      model and temperature. Falls back to global settings
                      if not provided.
        """
        self.settings = settings or get_settings()
        self.client: AsyncOpenAI | None
        if self.settings.OPENAI_API_KEY:
            self.client = AsyncOpenAI(api_key=self.settings.OPENAI_API_KEY)
        else:
            self.client = None
            logger.warning("DecisionService initialized without OPENAI_API_KEY. Topic selection will be skipped.")
        self.model = self.settings.CHAT_MODEL
        self.temperature = getattr(self.settings, "OPENAI_TEMPERATURE", 0.3)

    async def select_topic(
        self,
        candidates: Sequence[RankedCandidate],
        recent_titles: Sequence[str],
        date: str,
    ) -> TopicSelection | None:
        """
        Select one topic from ranked candidates.

        Args:
            candidates: Ranked candidates, best first. The caller bounds
                        the list; it is sent as given.
            recent_titles: Previously selected titles, most recent first.
            date: ISO date of the run.

        Returns:
            The selection, or ``None`` when no OpenAI client is configured.

        Raises:
            ValueError: If *candidates* is empty.
            LLMServiceError: If the API call fails or the answer is unusable.
        """
        if not candidates:
            raise ValueError("Cannot select a topic from an empty candidate list")
        if not self.client:
            logger.warning("OpenAI client not initialized. Skipping topic selection.")
            return None

        prompt = build_selection_prompt(
            candidates, list(recent_titles)[: self.RECENT_TITLES_IN_PROMPT], date
        )
        selection = await self._complete(prompt)
        logger.info(
            "Topic selected by decision-maker: %s",
            selection.selected_title,
            extra={"context": {"reasoning": selection.selection_reasoning, "date": date}},
        )
        return selection

    async def select_topic_for_date(self, date: str, recent_titles: Sequence[str]) -> TopicSelection | None:
        """
        Select a topic from model knowledge alone.

        Used when every source adapter came back empty, or to backfill a
        historical date.
        """
        if not self.client:
            logger.warning("OpenAI client not initialized. Skipping fallback topic selection.")
            return None

        prompt = build_fallback_prompt(list(recent_titles)[: self.RECENT_TITLES_IN_FALLBACK], date)
        selection = await self._complete(prompt)
        logger.info("Topic directly selected by decision-maker for %s: %s", date, selection.selected_title)
        return selection

    async def _complete(self, prompt: str) -> TopicSelection:
        client = cast(AsyncOpenAI, self.client)
        messages = [
            {"role": "system", "content": SYSTEM_INSTRUCTIONS},
            {"role": "user", "content": prompt},
        ]
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=cast(Any, messages),
                response_format=cast(Any, {"type": "json_object"}),
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"Decision-maker call failed: {e}", exc_info=True)
            raise LLMServiceError(f"Topic selection failed: {str(e)}", model=self.model) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMServiceError("Topic selection returned an empty response", model=self.model)
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise LLMServiceError(f"Topic selection returned invalid JSON: {e}", model=self.model) from e
        if not isinstance(payload, dict):
            raise LLMServiceError("Topic selection did not return a JSON object", model=self.model)
        try:
            return TopicSelection.model_validate(payload)
        except PydanticValidationError as e:
            raise LLMServiceError(f"Topic selection failed schema validation: {e}", model=self.model) from e
