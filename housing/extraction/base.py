"""Abstract base class for preference extractors.

An extractor reads the conversation so far and returns updated slot
values, a completion flag, and an optional follow-up question. Failures
are returned as ``ExtractionErr`` values rather than raised, so callers
branch on the result type.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, ValidationError

from housing.models.dialogue import Turn
from housing.models.slots import SlotSet


@dataclass
class ExtractionOk:
    slots: dict[str, Any] = field(default_factory=dict)
    done: bool = False
    next_question: Optional[str] = None


@dataclass
class ExtractionErr:
    reason: str


ExtractionResult = Union[ExtractionOk, ExtractionErr]


class ExtractionPayload(BaseModel):
    """Structured reply expected from the extraction service."""

    slots: dict[str, Any]
    done: bool
    next_question: Optional[str] = None


def parse_extraction(content: Optional[str]) -> ExtractionResult:
    """Parse raw service output into an extraction result.

    Empty content, invalid JSON, or a payload missing ``slots`` or
    ``done`` all produce ``ExtractionErr``.
    """
    if not content or not content.strip():
        return ExtractionErr("empty response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        return ExtractionErr(f"invalid JSON: {exc.msg}")
    if not isinstance(data, dict):
        return ExtractionErr("response is not a JSON object")
    try:
        payload = ExtractionPayload.model_validate(data)
    except ValidationError as exc:
        return ExtractionErr(f"unexpected structure: {exc.error_count()} error(s)")
    question = payload.next_question.strip() if payload.next_question else None
    return ExtractionOk(slots=payload.slots, done=payload.done, next_question=question or None)


class PreferenceExtractor(ABC):
    """Abstract extraction backend.

    Subclasses must not raise for expected failures (network errors,
    malformed output); they return ``ExtractionErr`` instead.
    """

    @abstractmethod
    async def extract(
        self,
        turns: Sequence[Turn],
        slots: SlotSet,
        utterance: str,
    ) -> ExtractionResult:
        """Infer updated slots from the conversation.

        Args:
            turns: Full transcript, including the latest user turn.
            slots: Slot values gathered so far.
            utterance: The caller's latest utterance (may be empty).
        """


class OfflinePreferenceExtractor(PreferenceExtractor):
    """Extractor used when no extraction service is configured.

    Every call reports a failure, so the dialogue machine applies its
    fallback preferences and concludes on the first turn.
    """

    async def extract(
        self,
        turns: Sequence[Turn],
        slots: SlotSet,
        utterance: str,
    ) -> ExtractionResult:
        return ExtractionErr("offline")
