"""Search tools used by the dialogue machine."""

from .listing_search import SearchCriteria, build_criteria, rank, top_matches

__all__ = ["SearchCriteria", "build_criteria", "rank", "top_matches"]
