"""Priority-based resolution of automatically confirmed duplicates."""

from pubdedupe.merge.models import REMOVAL_REASON, DeduplicationLogEntry, Resolution
from pubdedupe.merge.processor import apply_resolution, resolve_duplicates
from pubdedupe.merge.survivor import select_keeper

__all__ = [
    "REMOVAL_REASON",
    "DeduplicationLogEntry",
    "Resolution",
    "apply_resolution",
    "resolve_duplicates",
    "select_keeper",
]
