"""Deduplication of publication lists merged from several sources.

This package provides:
- Data models (pubdedupe.models): records and source priority
- Normalization (pubdedupe.normalize): DOI and title normalization
- Scoring (pubdedupe.scoring): Jaro-Winkler title similarity
- Decision (pubdedupe.decision): three-way pair classification
- Merge (pubdedupe.merge): priority resolution of duplicates
- Clustering (pubdedupe.clustering): review groups from ambiguous pairs
- Review (pubdedupe.review): resumable human review session
- Engine (pubdedupe.engine): batch orchestration
- Audit (pubdedupe.audit): event log and run manifest
- CLI (pubdedupe.cli): command-line interface
- Public API (pubdedupe.api): high-level convenience functions
"""

__version__ = "0.1.0"
__license__ = "MIT"

from pubdedupe.api import (
    InputError,
    dedupe,
    group_records,
    read_records_jsonl,
    write_jsonl,
)
from pubdedupe.decision import MatchMode, Verdict
from pubdedupe.engine import BatchContext, DedupConfig, deduplicate_batch
from pubdedupe.models import Record, RecordError, SourcePriority
from pubdedupe.normalize import normalize_doi, normalize_title
from pubdedupe.review import ReviewSession, ReviewSessionError
from pubdedupe.scoring import jaro_winkler, similarity

__all__ = [
    "__version__",
    "__license__",
    "BatchContext",
    "DedupConfig",
    "InputError",
    "MatchMode",
    "Record",
    "RecordError",
    "ReviewSession",
    "ReviewSessionError",
    "SourcePriority",
    "Verdict",
    "dedupe",
    "deduplicate_batch",
    "group_records",
    "jaro_winkler",
    "normalize_doi",
    "normalize_title",
    "read_records_jsonl",
    "similarity",
    "write_jsonl",
]
