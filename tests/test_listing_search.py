"""Tests for the Listing schema, the static catalog, and the ranker."""

import json

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pydantic import ValidationError

from housing.models.slots import SlotSet
from housing.tools.listing_search import (
    SearchCriteria,
    build_criteria,
    format_sms_body,
    format_spoken_summary,
    rank,
    top_matches,
)
from listings.catalog import CATALOG, build_catalog, load_catalog
from listings.schema import Listing


def _listing(id, price, city="Toronto", distance=10, bedrooms=1, **kw):
    return Listing(
        id=id,
        title=kw.pop("title", f"Listing {id}"),
        city=city,
        price=price,
        distance_to_campus_minutes=distance,
        bedrooms=bedrooms,
        description=kw.pop("description", "Nice place."),
        **kw,
    )


# ── Listing / catalog tests ─────────────────────────────────────────


class TestListing:
    def test_is_immutable(self):
        listing = _listing(1, 900)
        with pytest.raises(ValidationError):
            listing.price = 100

    def test_rejects_non_positive_price(self):
        with pytest.raises(ValidationError):
            _listing(1, 0)

    def test_sms_line_with_url(self):
        listing = _listing(
            7, 1250, city="Ottawa", distance=12, bedrooms=2,
            title="Sandy Hill Flat", description="Bright flat.",
            url="https://example.com/7",
        )
        assert listing.to_sms_line(1) == (
            "1) Sandy Hill Flat - Ottawa - 2BR - $1250/mo - 12 mins to campus. "
            "Bright flat. https://example.com/7"
        )

    def test_sms_line_without_url(self):
        line = _listing(3, 700, description="Basement unit.").to_sms_line(2)
        assert line.endswith("to campus. Basement unit.")


class TestCatalog:
    def test_default_catalog_loads(self):
        assert len(CATALOG) >= 8
        assert len({l.id for l in CATALOG}) == len(CATALOG)
        assert {"Toronto", "Ottawa"} <= {l.city for l in CATALOG}

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate listing id"):
            build_catalog([_listing(1, 900), _listing(1, 1000)])

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "listings.json"
        path.write_text(json.dumps([
            {
                "id": 1, "title": "A", "city": "Kingston", "price": 800,
                "distance_to_campus_minutes": 4, "bedrooms": 1, "description": "x",
            },
        ]))
        catalog = load_catalog(path)
        assert isinstance(catalog, tuple)
        assert catalog[0].url is None


# ── Criteria tests ──────────────────────────────────────────────────


class TestBuildCriteria:
    def test_defaults_for_empty_slots(self):
        criteria = build_criteria(SlotSet())
        assert criteria.city == "Toronto"
        assert criteria.min_budget == 0
        assert criteria.max_budget is None
        assert criteria.bedrooms is None

    def test_uses_slot_values(self):
        slots = SlotSet(city="Ottawa", min_budget=500, max_budget=900, bedrooms=2)
        criteria = build_criteria(slots)
        assert criteria == SearchCriteria(city="Ottawa", min_budget=500, max_budget=900, bedrooms=2)

    def test_zero_values_are_kept(self):
        """A legitimate 0 must not be treated as missing."""
        criteria = build_criteria(SlotSet(min_budget=0, max_budget=0, bedrooms=0))
        assert criteria.max_budget == 0
        assert criteria.bedrooms == 0


# ── Ranker tests ────────────────────────────────────────────────────


class TestRank:
    def test_ottawa_example(self):
        catalog = [
            _listing(1, 850, city="Ottawa"),
            _listing(2, 650, city="Ottawa"),
            _listing(3, 500, city="Toronto"),
        ]
        criteria = SearchCriteria(city="ottawa", min_budget=0, max_budget=900)
        result = rank(catalog, criteria)
        assert [l.price for l in result] == [650, 850]

    def test_city_is_case_insensitive_substring(self):
        catalog = [_listing(1, 900, city="North York (Toronto)"), _listing(2, 900, city="Ottawa")]
        result = rank(catalog, SearchCriteria(city="TORONTO"))
        assert [l.id for l in result] == [1]

    def test_empty_city_matches_everything(self):
        catalog = [_listing(1, 900, city="Ottawa"), _listing(2, 800, city="Waterloo")]
        assert [l.id for l in rank(catalog, SearchCriteria(city=""))] == [2, 1]

    def test_budget_bounds_are_inclusive(self):
        catalog = [_listing(1, 600), _listing(2, 599), _listing(3, 900), _listing(4, 901)]
        result = rank(catalog, SearchCriteria(city="", min_budget=600, max_budget=900))
        assert [l.id for l in result] == [1, 3]

    def test_bedroom_floor(self):
        catalog = [_listing(1, 900, bedrooms=1), _listing(2, 950, bedrooms=2), _listing(3, 990, bedrooms=3)]
        result = rank(catalog, SearchCriteria(city="", bedrooms=2))
        assert [l.id for l in result] == [2, 3]

    def test_filtered_results_satisfy_criteria(self):
        criteria = SearchCriteria(city="toronto", min_budget=800, max_budget=1500, bedrooms=1)
        result = rank(CATALOG, criteria)
        assert result
        for listing in result:
            assert 800 <= listing.price <= 1500
            assert listing.bedrooms >= 1
            assert "toronto" in listing.city.lower()

    def test_fallback_returns_whole_catalog_by_price(self):
        catalog = [_listing(1, 1200), _listing(2, 700, distance=30), _listing(3, 700, distance=5)]
        result = rank(catalog, SearchCriteria(city="Vancouver"))
        # Fallback orders by price only; equal prices keep catalog order
        assert [l.id for l in result] == [2, 3, 1]

    def test_distance_tie_break(self):
        catalog = [_listing(1, 900, distance=20), _listing(2, 900, distance=5)]
        assert [l.id for l in rank(catalog, SearchCriteria(city=""))] == [2, 1]

    def test_full_ties_keep_catalog_order(self):
        catalog = [_listing(i, 900, distance=10) for i in (4, 2, 9)]
        assert [l.id for l in rank(catalog, SearchCriteria(city=""))] == [4, 2, 9]

    def test_bedrooms_tie_break(self):
        catalog = [_listing(1, 900, bedrooms=1, distance=1), _listing(2, 900, bedrooms=3, distance=50)]
        result = rank(catalog, SearchCriteria(city=""), tie_break="bedrooms")
        assert [l.id for l in result] == [2, 1]

    def test_top_matches_limits_to_three(self):
        catalog = [_listing(i, 500 + i) for i in range(1, 6)]
        assert [l.id for l in top_matches(catalog, SearchCriteria(city=""))] == [1, 2, 3]


# ── Formatting tests ────────────────────────────────────────────────


class TestFormatting:
    def test_sms_body_header_and_lines(self):
        listings = [_listing(1, 650, city="Ottawa", title="Glebe Room"), _listing(2, 850, city="Ottawa")]
        criteria = SearchCriteria(city="Ottawa", min_budget=600, max_budget=2500, bedrooms=1)
        body = format_sms_body(criteria, listings).split("\n")
        assert body[0] == (
            "Thanks for calling! Here are your matches for city: Ottawa, "
            "budget: $600-$2,500, bedrooms: 1."
        )
        assert body[1].startswith("1) Glebe Room - Ottawa - 1BR - $650/mo")
        assert body[2].startswith("2) ")

    def test_sms_body_open_ended_criteria(self):
        body = format_sms_body(SearchCriteria(city="Toronto"), [_listing(1, 900)])
        assert "budget: $0-no limit, bedrooms: any." in body

    def test_sms_body_empty_without_listings(self):
        assert format_sms_body(SearchCriteria(), []) == ""

    def test_spoken_summary(self):
        listings = [_listing(1, 650, city="Ottawa", title="Glebe Room", distance=20)]
        text = format_spoken_summary(listings)
        assert text.startswith("I found 1 option.")
        assert "Glebe Room in Ottawa for 650 dollars per month" in text

    def test_spoken_summary_studio(self):
        text = format_spoken_summary([_listing(1, 900, bedrooms=0), _listing(2, 950)])
        assert "I found 2 options." in text
        assert "a studio" in text
