"""Dialogue state machine: drives one call from greeting to results.

Each caller utterance is one turn:

  1. Append the utterance to the session transcript
  2. Ask the preference extractor for updated slots (time-bounded)
  3. On any extraction failure, substitute the fallback preferences
  4. Merge non-null slot values into the session (never clearing one)
  5. Force completion once the turn limit is exceeded
  6. COLLECTING: speak the next question and keep the session
  7. CONCLUDED: rank the catalog, text the results, speak a summary,
     and destroy the session
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from listings.schema import Listing

from housing.extraction.base import (
    ExtractionErr,
    ExtractionOk,
    ExtractionResult,
    PreferenceExtractor,
)
from housing.models.slots import SLOT_KEYS, SlotSet
from housing.notify.base import Notifier
from housing.session import DialogueSession, SessionStore, redact_pii
from housing.tools.listing_search import (
    SearchCriteria,
    TieBreak,
    build_criteria,
    format_sms_body,
    format_spoken_summary,
    top_matches,
)

log = logging.getLogger("housing.dialogue")

FALLBACK_CITY = "Toronto"
FALLBACK_MIN_BUDGET = 600
FALLBACK_MAX_BUDGET = 2500

FALLBACK_QUESTION = (
    "Could you tell me a little more about what you're looking for, "
    "like the city, your budget, or how many bedrooms you need?"
)
CLOSING = "Thank you for calling. Goodbye."
SMS_NOTICE = "I'm texting you the details now."


class DialogueState(str, Enum):
    COLLECTING = "collecting"
    CONCLUDED = "concluded"


@dataclass
class TurnOutcome:
    """What the telephony layer should do after a turn."""

    state: DialogueState
    speech: str
    matches: list[Listing] = field(default_factory=list)
    criteria: Optional[SearchCriteria] = None
    sms_body: str = ""
    closing: str = ""

    @property
    def is_concluded(self) -> bool:
        return self.state == DialogueState.CONCLUDED


def fallback_extraction(slots: SlotSet) -> ExtractionOk:
    """Extraction result used when the extractor fails.

    Keeps every slot the caller already supplied and only fills a
    missing city or budget bound with the documented defaults.
    """
    values = slots.model_dump()
    if values["city"] is None:
        values["city"] = FALLBACK_CITY
    if values["min_budget"] is None:
        values["min_budget"] = FALLBACK_MIN_BUDGET
    if values["max_budget"] is None:
        values["max_budget"] = FALLBACK_MAX_BUDGET
    return ExtractionOk(slots=values, done=True, next_question=None)


def merge_slots(slots: SlotSet, updates: Mapping[str, Any]) -> list[str]:
    """Merge extractor output into ``slots`` in place.

    Only recognized keys with non-null values are applied; values that
    fail validation are skipped. Returns the names of changed slots.
    """
    changed: list[str] = []
    for key, value in updates.items():
        if key not in SLOT_KEYS or value is None:
            continue
        try:
            setattr(slots, key, value)
        except ValidationError:
            log.warning("Ignoring invalid value for slot %s: %r", key, value)
            continue
        changed.append(key)
    return changed


class DialogueMachine:
    """Runs turns for every in-progress call.

    Usage::

        machine = DialogueMachine(store, extractor, notifier, CATALOG)
        greeting = machine.start_call(call_sid)

        outcome = await machine.handle_turn(call_sid, "two bedrooms in Ottawa")
        if outcome.is_concluded:
            ...  # speak outcome.speech, outcome.closing, hang up
    """

    def __init__(
        self,
        store: SessionStore,
        extractor: PreferenceExtractor,
        notifier: Notifier,
        catalog: Sequence[Listing],
        max_turns: int = 5,
        extraction_timeout: float = 8.0,
        tie_break: TieBreak = "distance",
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._notifier = notifier
        self._catalog = tuple(catalog)
        self._max_turns = max_turns
        self._extraction_timeout = extraction_timeout
        self._tie_break = tie_break
        self._pending: set[asyncio.Task] = set()

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def max_turns(self) -> int:
        return self._max_turns

    # ── Public API ────────────────────────────────────────────

    def start_call(self, call_id: str) -> str:
        """Create (or fetch) the call's session and return the greeting."""
        session = self._store.get_or_create(call_id)
        return session.greeting

    async def handle_turn(
        self,
        call_id: str,
        utterance: str,
        contact: Optional[str] = None,
    ) -> TurnOutcome:
        """Process one caller utterance and return what to say next."""
        session = self._store.get_or_create(call_id)
        if contact:
            session.contact = contact

        utterance = (utterance or "").strip()
        session.add_user_turn(utterance)
        log.info("Call %s turn %d: %r", call_id, session.turn_count, utterance[:100])

        result = await self._extract(session, utterance)
        if isinstance(result, ExtractionErr):
            log.warning("Call %s: extraction failed (%s), using fallback", call_id, result.reason)
            result = fallback_extraction(session.slots)

        changed = merge_slots(session.slots, result.slots)
        if changed:
            log.info("Call %s slots updated: %s", call_id, ", ".join(changed))

        done = result.done
        if not done and session.turn_count > self._max_turns:
            log.info("Call %s hit turn limit (%d), concluding", call_id, self._max_turns)
            done = True

        if not done:
            question = result.next_question or FALLBACK_QUESTION
            session.add_assistant_turn(question)
            return TurnOutcome(state=DialogueState.COLLECTING, speech=question)

        return self._conclude(session)

    async def drain_notifications(self, timeout: Optional[float] = None) -> int:
        """Wait for background SMS deliveries to finish.

        Deliveries still running after ``timeout`` seconds are cancelled and
        logged. Returns how many were abandoned.
        """
        if not self._pending:
            return 0
        _, unfinished = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in unfinished:
            task.cancel()
        if unfinished:
            log.warning("Abandoned %d result text(s) still sending at shutdown", len(unfinished))
        return len(unfinished)

    # ── Internal ──────────────────────────────────────────────

    async def _extract(self, session: DialogueSession, utterance: str) -> ExtractionResult:
        try:
            return await asyncio.wait_for(
                self._extractor.extract(list(session.turns), session.slots.model_copy(), utterance),
                timeout=self._extraction_timeout,
            )
        except asyncio.TimeoutError:
            return ExtractionErr(f"timed out after {self._extraction_timeout}s")
        except Exception as e:
            log.error("Extractor raised for call %s: %s", session.call_id, e)
            return ExtractionErr(f"extractor error: {e.__class__.__name__}")

    def _conclude(self, session: DialogueSession) -> TurnOutcome:
        criteria = build_criteria(session.slots)
        matches = top_matches(self._catalog, criteria, self._tie_break)
        sms_body = format_sms_body(criteria, matches)
        speech = format_spoken_summary(matches)

        log.info(
            "Call %s concluded after %d turns: criteria=%s matches=%s",
            session.call_id,
            session.turn_count,
            criteria,
            [m.id for m in matches],
        )

        closing = CLOSING
        if session.contact and sms_body:
            self._notify_in_background(session.contact, sms_body)
            closing = f"{SMS_NOTICE} {CLOSING}"

        self._store.remove(session.call_id)
        return TurnOutcome(
            state=DialogueState.CONCLUDED,
            speech=speech,
            matches=matches,
            criteria=criteria,
            sms_body=sms_body,
            closing=closing,
        )

    def _notify_in_background(self, contact: str, body: str) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(contact, body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, contact: str, body: str) -> None:
        try:
            await self._notifier.send(contact, body)
        except Exception as e:
            log.error("Failed to send results to %s: %s", redact_pii(contact), e)
