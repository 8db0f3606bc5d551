"""Static listing catalog shared read-only by every call.

Usage:
    from listings.catalog import CATALOG

    # Or validate a different file
    catalog = load_catalog("path/to/listings.json")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from listings.schema import Listing

DEFAULT_DATA_PATH = Path(__file__).parent / "sample_data" / "listings.json"


def build_catalog(listings: Iterable[Listing]) -> tuple[Listing, ...]:
    """Freeze listings into a catalog tuple, rejecting duplicate ids."""
    catalog = tuple(listings)
    seen: set[int] = set()
    for listing in catalog:
        if listing.id in seen:
            raise ValueError(f"Duplicate listing id in catalog: {listing.id}")
        seen.add(listing.id)
    return catalog


def load_catalog(data_path: str | Path | None = None) -> tuple[Listing, ...]:
    """Load listings from a JSON file into an immutable catalog."""
    path = Path(data_path) if data_path is not None else DEFAULT_DATA_PATH
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return build_catalog(Listing(**item) for item in raw)


CATALOG: tuple[Listing, ...] = load_catalog()
