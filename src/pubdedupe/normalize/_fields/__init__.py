"""Field normalization functions.

Each function is pure, deterministic, and tolerant of missing input.
"""

from .doi import dois_match, normalize_doi
from .title import normalize_title

__all__ = [
    "dois_match",
    "normalize_doi",
    "normalize_title",
]
