"""Per-call dialogue sessions and the keyed store that owns them.

Each inbound call gets a DialogueSession that:
  1. Holds the transcript (system / assistant / user turns)
  2. Holds the caller's SlotSet, filled progressively
  3. Counts caller turns for the turn limit

The SessionStore is the only owner of sessions. The dialogue machine
fetches a session at the start of each turn and removes it when the
call concludes; nothing else keeps a reference between turns.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional

from housing.models.dialogue import Role, Turn
from housing.models.slots import SlotSet

log = logging.getLogger("housing.session")


def redact_pii(value: str) -> str:
    """Mask PII for logging, showing first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


GREETING = (
    "Welcome to the student housing helper. "
    "Tell me which city you'd like to live in, your monthly budget, "
    "and how many bedrooms you need."
)


class DialogueSession:
    """One call's accumulated conversation state.

    Typical lifecycle::

        session = store.get_or_create("CA123")
        session.add_user_turn("Something in Ottawa under nine hundred")
        ...
        store.remove("CA123")
    """

    def __init__(self, call_id: str, greeting: str = GREETING) -> None:
        self.call_id = call_id
        self.turns: list[Turn] = [Turn(role=Role.ASSISTANT, text=greeting)]
        self.slots = SlotSet()
        self.turn_count = 0
        self.contact: str = ""
        self.started_at = time.time()

    @property
    def greeting(self) -> str:
        return self.turns[0].text

    def add_user_turn(self, text: str) -> None:
        self.turns.append(Turn(role=Role.USER, text=text))
        self.turn_count += 1

    def add_assistant_turn(self, text: str) -> None:
        self.turns.append(Turn(role=Role.ASSISTANT, text=text))

    def to_dict(self, detail: bool = False) -> dict[str, Any]:
        """Serialize session state for the admin API.

        With detail=False: summary suitable for listing.
        With detail=True: adds the recent transcript.
        """
        d: dict[str, Any] = {
            "call_id": self.call_id,
            "turn_count": self.turn_count,
            "started_at": self.started_at,
            "contact": redact_pii(self.contact) if self.contact else "",
            "slots": self.slots.model_dump(),
        }
        if detail:
            d["message_count"] = len(self.turns)
            d["recent_turns"] = [t.as_message() for t in self.turns[-6:]]
        return d


class SessionStore:
    """Thread-safe map of call id → DialogueSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, DialogueSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, call_id: str) -> DialogueSession:
        """Return the call's session, creating a fresh one if absent."""
        with self._lock:
            session = self._sessions.get(call_id)
            if session is None:
                session = DialogueSession(call_id)
                self._sessions[call_id] = session
                log.info("Session created: %s", call_id)
            return session

    def get(self, call_id: str) -> Optional[DialogueSession]:
        with self._lock:
            return self._sessions.get(call_id)

    def remove(self, call_id: str) -> None:
        """Drop a session. A no-op for unknown ids."""
        with self._lock:
            removed = self._sessions.pop(call_id, None)
        if removed is not None:
            log.info("Session removed: %s (%d turns)", call_id, removed.turn_count)

    def active(self) -> list[DialogueSession]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, call_id: object) -> bool:
        with self._lock:
            return call_id in self._sessions
