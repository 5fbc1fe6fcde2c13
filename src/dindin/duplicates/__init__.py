"""
Duplicate Detection Package

Strict (exact-key) and fuzzy (tolerance-based) duplicate detection.
"""

from .normalize import (
    description_similarity,
    extract_installment_marker,
    normalize_description,
    strip_diacritics,
)
from .strategies import (
    CandidatePreview,
    DuplicateStrategy,
    FuzzyDuplicateStrategy,
    MatchStrategy,
    StrictDuplicateStrategy,
    preview_candidates,
    strict_key,
)

__all__ = [
    "CandidatePreview",
    "DuplicateStrategy",
    "FuzzyDuplicateStrategy",
    "MatchStrategy",
    "StrictDuplicateStrategy",
    "description_similarity",
    "extract_installment_marker",
    "normalize_description",
    "preview_candidates",
    "strict_key",
    "strip_diacritics",
]
