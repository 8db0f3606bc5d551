"""Prompt text for the preference extraction service."""

from __future__ import annotations

import json

from housing.models.slots import SlotSet

EXTRACTION_SYSTEM_PROMPT = """\
You help a student-housing phone line collect a caller's preferences.
You read the conversation and return ONLY a JSON object with these keys:

  "slots": object with any of
      "city" (string), "min_budget" (number), "max_budget" (number),
      "move_in_date" (string), "bedrooms" (integer), "roommates" (integer).
      Use null for anything the caller has not said. Budgets are monthly
      rent in dollars.
  "done": true once city and a budget are known and the caller has nothing
      more to add, otherwise false.
  "next_question": one short, friendly question for the missing details,
      or null when done is true.

The question will be read aloud by text-to-speech: write numbers as words
and never mention JSON, null, or field names."""


def render_turn_prompt(slots: SlotSet, utterance: str) -> str:
    """Per-turn user message carrying the known slots and latest utterance."""
    known = json.dumps(slots.model_dump(), sort_keys=True)
    said = utterance.strip() or "(no speech captured)"
    return f"Known preferences so far: {known}\nCaller just said: \"{said}\""
