"""Data models for review groups."""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pubdedupe.models import Record

# Fields never highlighted as differences between group members
_IGNORED_DIFF_FIELDS: frozenset[str] = frozenset({"id"})


def format_similarity(score: float) -> str:
    """Render a similarity score as a percent label (e.g. ``"91.3%"``)."""
    return f"{score * 100:.1f}%"


@dataclass(frozen=True)
class ReviewMember:
    """A record inside a review group.

    Attributes
    ----------
    record : Record
        The grouped record.
    index : int
        Batch position of the record.
    similarity : float
        Highest similarity between this record and any review neighbor.
    """

    record: Record
    index: int
    similarity: float

    @property
    def rid(self) -> str:
        """Record identifier."""
        return self.record.id

    @property
    def similarity_label(self) -> str:
        """Similarity as a display string."""
        return format_similarity(self.similarity)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "index": self.index,
            "similarity": self.similarity,
            "similarity_label": self.similarity_label,
            "record": self.record.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewMember":
        """Reconstruct a member written by :meth:`to_dict`."""
        return cls(
            record=Record.from_dict(data["record"]),
            index=int(data["index"]),
            similarity=float(data["similarity"]),
        )


@dataclass(frozen=True)
class ReviewGroup:
    """A connected component of REVIEW links, adjudicated by a human.

    Attributes
    ----------
    group_id : int
        1-based position in emission order.
    members : tuple[ReviewMember, ...]
        Two or more linked records, in breadth-first order.
    key : str | None
        Batch key (author or grouping column value) the group came from.
    """

    group_id: int
    members: tuple[ReviewMember, ...]
    key: str | None = None

    def __post_init__(self) -> None:
        """Validate group size."""
        if len(self.members) < 2:
            raise ValueError(f"Review group {self.group_id} needs at least 2 members")

    @property
    def record_ids(self) -> tuple[str, ...]:
        """Member record IDs in member order."""
        return tuple(member.rid for member in self.members)

    @property
    def records(self) -> tuple[Record, ...]:
        """Member records in member order."""
        return tuple(member.record for member in self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[ReviewMember]:
        return iter(self.members)

    def __contains__(self, item: object) -> bool:
        rid = item.id if isinstance(item, Record) else item
        return rid in self.record_ids

    def differing_fields(self) -> list[str]:
        """List fields whose values differ between members.

        Values are compared after ``str()``, trimming and lower-casing, with
        missing values treated as empty. Field order follows first
        appearance across members.

        Returns
        -------
        list[str]
            Field names to highlight for the reviewer.
        """
        rows = [member.record.to_dict() for member in self.members]
        names: dict[str, None] = {}
        for row in rows:
            for name in row:
                if name not in _IGNORED_DIFF_FIELDS:
                    names.setdefault(name, None)

        def display(value: Any) -> str:
            return "" if value is None else str(value).strip().lower()

        return [
            name for name in names if len({display(row.get(name)) for row in rows}) > 1
        ]

    def renumbered(self, group_id: int) -> "ReviewGroup":
        """Return a copy with a new group ID."""
        return ReviewGroup(group_id=group_id, members=self.members, key=self.key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns
        -------
        dict[str, Any]
            Dictionary representation.
        """
        return {
            "group_id": self.group_id,
            "key": self.key,
            "members": [member.to_dict() for member in self.members],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewGroup":
        """Reconstruct a group written by :meth:`to_dict`.

        Raises
        ------
        KeyError
            If a required key is missing.
        ValueError
            If the group has fewer than 2 members.
        """
        return cls(
            group_id=int(data["group_id"]),
            members=tuple(ReviewMember.from_dict(m) for m in data["members"]),
            key=data.get("key"),
        )
