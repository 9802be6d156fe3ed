"""Data models for the human review workflow."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pubdedupe.clustering import ReviewGroup, ReviewMember

# Records shown per page in the reference review screen
DEFAULT_PAGE_SIZE = 6


class ReviewSessionError(RuntimeError):
    """Raised when the review session is driven out of protocol."""


class ReviewStatus(StrEnum):
    """Review session states.

    Attributes
    ----------
    ACTIVE : str
        A group is awaiting a decision.
    COMPLETE : str
        Every group has been decided.
    """

    ACTIVE = "ACTIVE"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True)
class ReviewDecision:
    """Human decision for one review group.

    Attributes
    ----------
    group_id : int
        Decided group.
    kept_ids : tuple[str, ...]
        Records the reviewer kept, in group order.
    discarded_ids : tuple[str, ...]
        Records the reviewer discarded, in group order.
    """

    group_id: int
    kept_ids: tuple[str, ...]
    discarded_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "group_id": self.group_id,
            "kept_ids": list(self.kept_ids),
            "discarded_ids": list(self.discarded_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewDecision":
        """Reconstruct a decision from a dictionary."""
        return cls(
            group_id=int(data["group_id"]),
            kept_ids=tuple(data.get("kept_ids", [])),
            discarded_ids=tuple(data.get("discarded_ids", [])),
        )


@dataclass(frozen=True)
class ReviewPage:
    """One presentation page of the current group.

    Attributes
    ----------
    number : int
        1-based page number.
    page_count : int
        Total pages for the group.
    members : tuple[ReviewMember, ...]
        Members shown on this page.
    first_position : int
        0-based position of the first member within the group.
    """

    number: int
    page_count: int
    members: tuple[ReviewMember, ...]
    first_position: int

    @property
    def has_previous(self) -> bool:
        """Whether a previous page exists."""
        return self.number > 1

    @property
    def has_next(self) -> bool:
        """Whether a next page exists."""
        return self.number < self.page_count


@dataclass(frozen=True)
class ReviewSessionState:
    """Frozen snapshot of a review session.

    Attributes
    ----------
    groups : tuple[ReviewGroup, ...]
        All groups of the batch run, in review order.
    cursor : int
        Index of the group awaiting a decision, -1 when complete.
    decisions : tuple[ReviewDecision, ...]
        Decisions applied so far, in group order.
    """

    groups: tuple[ReviewGroup, ...]
    cursor: int
    decisions: tuple[ReviewDecision, ...] = field(default_factory=tuple)

    @property
    def status(self) -> ReviewStatus:
        """Session status implied by the cursor."""
        return ReviewStatus.COMPLETE if self.cursor < 0 else ReviewStatus.ACTIVE
