"""Fuzzy duplicate detection.

Provides field comparators and the default ``FieldDuplicateDetector``
plugged into the resolution engine.
"""

from bibmerge.scoring.comparators import (
    FIELD_CONFIGS,
    FieldConfig,
    compare_authors,
    compare_identifiers,
    compare_title,
    compare_venue,
    compare_year,
    jaccard_similarity,
)
from bibmerge.scoring.detector import DetectorConfig, DuplicateDetector, FieldDuplicateDetector

__all__ = [
    "FIELD_CONFIGS",
    "DetectorConfig",
    "DuplicateDetector",
    "FieldConfig",
    "FieldDuplicateDetector",
    "compare_authors",
    "compare_identifiers",
    "compare_title",
    "compare_venue",
    "compare_year",
    "jaccard_similarity",
]
