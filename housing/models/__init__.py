"""Data models for the dialogue layer."""

from .dialogue import Role, Turn
from .slots import SLOT_KEYS, SlotSet

__all__ = ["Role", "SLOT_KEYS", "SlotSet", "Turn"]
