"""Approximate string similarity for normalized titles."""

from pubdedupe.scoring.comparators import (
    DEFAULT_PREFIX_SCALE,
    common_prefix_length,
    jaro,
    jaro_winkler,
    similarity,
    title_similarity,
)

__all__ = [
    "DEFAULT_PREFIX_SCALE",
    "common_prefix_length",
    "jaro",
    "jaro_winkler",
    "similarity",
    "title_similarity",
]
