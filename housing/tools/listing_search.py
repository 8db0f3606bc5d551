"""Listing search: filters and ranks the static catalog for a caller.

``rank`` is a pure function of (catalog, criteria). It never returns an
empty list for a non-empty catalog: when nothing passes the filters the
whole catalog comes back ordered by price, so the caller always hears
about something.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from listings.schema import Listing

from housing.models.slots import SlotSet

TieBreak = Literal["distance", "bedrooms"]

DEFAULT_CITY = "Toronto"
DEFAULT_MIN_BUDGET = 0.0
TOP_MATCHES = 3


@dataclass(frozen=True)
class SearchCriteria:
    city: str = ""
    min_budget: float = DEFAULT_MIN_BUDGET
    max_budget: Optional[float] = None  # None means no upper limit
    bedrooms: Optional[int] = None  # None means no bedroom floor

    def matches(self, listing: Listing) -> bool:
        if self.city and self.city.lower() not in listing.city.lower():
            return False
        if listing.price < self.min_budget:
            return False
        if self.max_budget is not None and listing.price > self.max_budget:
            return False
        if self.bedrooms is not None and listing.bedrooms < self.bedrooms:
            return False
        return True


def build_criteria(slots: SlotSet) -> SearchCriteria:
    """Derive search criteria from the caller's final slots."""
    bedrooms = slots.bedrooms
    if bedrooms is not None and bedrooms < 0:
        bedrooms = None
    return SearchCriteria(
        city=slots.city if slots.city is not None else DEFAULT_CITY,
        min_budget=slots.min_budget if slots.min_budget is not None else DEFAULT_MIN_BUDGET,
        max_budget=slots.max_budget,
        bedrooms=bedrooms,
    )


def _sort_key(tie_break: TieBreak):
    if tie_break == "bedrooms":
        return lambda listing: (listing.price, -listing.bedrooms)
    return lambda listing: (listing.price, listing.distance_to_campus_minutes)


def rank(
    catalog: Sequence[Listing],
    criteria: SearchCriteria,
    tie_break: TieBreak = "distance",
) -> list[Listing]:
    """Return catalog listings ordered by fit to the criteria.

    Filtered listings sort by ascending price, then by ``tie_break``:
    ascending distance to campus, or descending bedroom count. Remaining
    ties keep catalog order (``sorted`` is stable).
    """
    filtered = [listing for listing in catalog if criteria.matches(listing)]
    if not filtered:
        return sorted(catalog, key=lambda listing: listing.price)
    return sorted(filtered, key=_sort_key(tie_break))


def top_matches(
    catalog: Sequence[Listing],
    criteria: SearchCriteria,
    tie_break: TieBreak = "distance",
    limit: int = TOP_MATCHES,
) -> list[Listing]:
    return rank(catalog, criteria, tie_break)[:limit]


# ------------------------------------------------------------------
# Result formatting
# ------------------------------------------------------------------


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


def format_sms_body(criteria: SearchCriteria, listings: Sequence[Listing]) -> str:
    """Header line plus one numbered line per listing; empty if no listings."""
    if not listings:
        return ""
    upper = _money(criteria.max_budget) if criteria.max_budget is not None else "no limit"
    bedrooms = str(criteria.bedrooms) if criteria.bedrooms is not None else "any"
    city = criteria.city or "any"
    header = (
        f"Thanks for calling! Here are your matches for city: {city}, "
        f"budget: {_money(criteria.min_budget)}-{upper}, bedrooms: {bedrooms}."
    )
    lines = [listing.to_sms_line(idx) for idx, listing in enumerate(listings, start=1)]
    return "\n".join([header, *lines])


def format_spoken_summary(listings: Sequence[Listing]) -> str:
    """One sentence for text-to-speech describing the best match."""
    if not listings:
        return "I could not find a good match, but we will text you options soon."
    best = listings[0]
    count = len(listings)
    options = "option" if count == 1 else "options"
    if best.bedrooms == 0:
        bedrooms = "a studio"
    elif best.bedrooms == 1:
        bedrooms = "1 bedroom"
    else:
        bedrooms = f"{best.bedrooms} bedrooms"
    return (
        f"I found {count} {options}. The first is {best.title} in {best.city} "
        f"for {best.price} dollars per month with {bedrooms}, "
        f"{best.distance_to_campus_minutes} minutes from campus."
    )
