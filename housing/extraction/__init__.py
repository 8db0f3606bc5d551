from .base import (
    ExtractionErr,
    ExtractionOk,
    ExtractionResult,
    OfflinePreferenceExtractor,
    PreferenceExtractor,
    parse_extraction,
)

__all__ = [
    "ExtractionErr",
    "ExtractionOk",
    "ExtractionResult",
    "OfflinePreferenceExtractor",
    "PreferenceExtractor",
    "parse_extraction",
]
