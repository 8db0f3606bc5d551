"""Pydantic model tracking the caller's housing preferences."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SlotSet(BaseModel):
    """Preference slots gathered during the call.

    Every slot stays ``None`` until the caller (or the fallback policy)
    supplies a value. Assignments are validated, so a malformed value
    raises instead of being stored.
    """

    model_config = ConfigDict(validate_assignment=True)

    city: Optional[str] = None
    min_budget: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    max_budget: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    move_in_date: Optional[str] = None  # free-form, e.g. "September"
    bedrooms: Optional[int] = Field(default=None, ge=0)
    roommates: Optional[int] = Field(default=None, ge=0)


SLOT_KEYS: tuple[str, ...] = tuple(SlotSet.model_fields)
