"""Normalization of titles and DOIs into comparable forms."""

from pubdedupe.normalize._fields import dois_match, normalize_doi, normalize_title
from pubdedupe.normalize.flags import DOI_NOT_TEXT, TITLE_MISSING, TITLE_NOT_TEXT, generate_flags
from pubdedupe.normalize.normalizer import (
    NormalizedRecord,
    normalize_batch,
    normalize_record,
)

__all__ = [
    "DOI_NOT_TEXT",
    "TITLE_MISSING",
    "TITLE_NOT_TEXT",
    "NormalizedRecord",
    "dois_match",
    "generate_flags",
    "normalize_batch",
    "normalize_doi",
    "normalize_record",
    "normalize_title",
]
