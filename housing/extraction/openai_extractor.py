"""OpenAI-backed preference extractor using JSON-object chat completions."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from housing.extraction.base import (
    ExtractionErr,
    ExtractionResult,
    PreferenceExtractor,
    parse_extraction,
)
from housing.extraction.prompts import EXTRACTION_SYSTEM_PROMPT, render_turn_prompt
from housing.models.dialogue import Role, Turn
from housing.models.slots import SlotSet

log = logging.getLogger("housing.extraction.openai")


class OpenAIPreferenceExtractor(PreferenceExtractor):
    """Ask a chat model to update the caller's slots.

    The transcript is sent as chat history (system turns are replaced by
    the extraction prompt) and the final user message restates the known
    slots so the model only has to fill gaps.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 8.0,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _build_messages(
        self, turns: Sequence[Turn], slots: SlotSet, utterance: str,
    ) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": EXTRACTION_SYSTEM_PROMPT}]
        messages.extend(t.as_message() for t in turns if t.role != Role.SYSTEM)
        messages.append({"role": "user", "content": render_turn_prompt(slots, utterance)})
        return messages

    async def extract(
        self,
        turns: Sequence[Turn],
        slots: SlotSet,
        utterance: str,
    ) -> ExtractionResult:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._build_messages(turns, slots, utterance),
                response_format={"type": "json_object"},
                temperature=0,
            )
        except OpenAIError as exc:
            log.warning("Extraction request failed: %s", exc)
            return ExtractionErr(f"request failed: {exc.__class__.__name__}")

        if not response.choices:
            return ExtractionErr("no choices in response")

        result = parse_extraction(response.choices[0].message.content)
        if isinstance(result, ExtractionErr):
            log.warning("Extraction response unusable: %s", result.reason)
        else:
            log.debug("Extracted slots=%s done=%s", result.slots, result.done)
        return result
