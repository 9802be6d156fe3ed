"""Deduplication engine.

This package provides the entry points for deduplicating one batch or a
keyed set of batches, including configuration and result types.
"""

from pubdedupe.engine.config import BatchResult, BatchSummary, DedupConfig
from pubdedupe.engine.runner import BatchContext, ProgressCallback, deduplicate_batch

__all__ = [
    "BatchContext",
    "BatchResult",
    "BatchSummary",
    "DedupConfig",
    "ProgressCallback",
    "deduplicate_batch",
]
