"""Data models for automatic duplicate resolution."""

from dataclasses import dataclass, field
from typing import Any

from pubdedupe.decision.models import ReasonCode
from pubdedupe.models import Record

# Fixed reason recorded for every automatic removal
REMOVAL_REASON = "duplicate by title/DOI match"


@dataclass(frozen=True)
class DeduplicationLogEntry:
    """Audit row for one automatically removed record.

    Attributes
    ----------
    removed : Record
        The record that was dropped.
    duplicate_of_id : str
        ID of the record that was kept.
    duplicate_of_title : str | None
        Title of the kept record.
    duplicate_of_doi : str | None
        DOI of the kept record.
    match_reason : ReasonCode
        Verdict reason of the pair that caused the removal.
    score : float | None
        Title similarity of that pair, if computed.
    reason : str
        Fixed removal reason.
    """

    removed: Record
    duplicate_of_id: str
    duplicate_of_title: str | None
    duplicate_of_doi: str | None
    match_reason: ReasonCode
    score: float | None = None
    reason: str = REMOVAL_REASON

    @property
    def removed_id(self) -> str:
        """ID of the removed record."""
        return self.removed.id

    def to_dict(self) -> dict[str, Any]:
        """Flatten into one export row.

        The removed record's fields come first, followed by the
        ``duplicate_of_*`` columns and the reasons.

        Returns
        -------
        dict[str, Any]
            Dictionary representation.
        """
        row = self.removed.to_dict()
        row.update(
            {
                "reason_for_removal": self.reason,
                "duplicate_of_id": self.duplicate_of_id,
                "duplicate_of_title": self.duplicate_of_title,
                "duplicate_of_doi": self.duplicate_of_doi,
                "match_reason": self.match_reason.value,
                "similarity": self.score,
            }
        )
        return row


@dataclass(frozen=True)
class Resolution:
    """Outcome of automatic duplicate resolution for one batch.

    Attributes
    ----------
    removed_ids : frozenset[str]
        IDs of records removed as duplicates.
    log : tuple[DeduplicationLogEntry, ...]
        One entry per removed record, in removal order.
    skipped_pairs : int
        Duplicate pairs ignored because one side was already removed or
        both sides came from the canonical source.
    """

    removed_ids: frozenset[str] = frozenset()
    log: tuple[DeduplicationLogEntry, ...] = field(default_factory=tuple)
    skipped_pairs: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to counters dictionary."""
        return {
            "removed": len(self.removed_ids),
            "skipped_pairs": self.skipped_pairs,
        }
