"""Publication record data models for pubdedupe.

This module defines the record shape consumed by every stage of the
deduplication core. The core reads a fixed set of fields and passes every
other column through untouched.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# Fields lifted out of the flat input mapping into Record attributes
CORE_FIELDS: tuple[str, ...] = ("id", "source", "title", "doi", "origin_detail")


class RecordError(ValueError):
    """Raised when a single input record is malformed."""

    def __init__(self, message: str, record_id: str | None = None) -> None:
        """Initialize record error.

        Parameters
        ----------
        message : str
            Error message.
        record_id : str | None, optional
            Identifier of the offending record, when known.
        """
        super().__init__(message)
        self.record_id = record_id


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class Record:
    """One publication collected from a single source.

    Attributes
    ----------
    id : str
        Caller-assigned identifier, unique within a batch.
    source : str
        Origin that produced the record (e.g. 'scopus', 'orcid').
    title : str | None
        Free-text title.
    doi : str | None
        Free-text DOI, with or without a URL prefix.
    origin_detail : str | None
        Sub-source tag used only for priority ranking
        (e.g. an ORCID sync channel name).
    extra : Mapping[str, Any]
        Source-specific columns carried through untouched.
    """

    id: str
    source: str
    title: str | None = None
    doi: str | None = None
    origin_detail: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        """Validate identifiers and freeze the extra-field table."""
        if not isinstance(self.id, str) or not self.id:
            raise RecordError(f"Record id must be a non-empty string, got {self.id!r}")
        if not isinstance(self.source, str) or not self.source:
            raise RecordError(f"Record {self.id!r} has no source", record_id=self.id)
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a core or pass-through field by name."""
        if name in CORE_FIELDS:
            return getattr(self, name)
        return self.extra.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        """Flatten record into a single mapping.

        Pass-through columns come first, core fields last so they win on
        key collisions.

        Returns
        -------
        dict[str, Any]
            Flat mapping suitable for JSON or spreadsheet export.
        """
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "source": self.source,
                "title": self.title,
                "doi": self.doi,
                "origin_detail": self.origin_detail,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, id_field: str = "id") -> "Record":
        """Build a record from a flat mapping.

        Parameters
        ----------
        data : Mapping[str, Any]
            Flat field mapping (e.g. one JSON line or spreadsheet row).
        id_field : str, optional
            Key holding the record identifier, by default "id".

        Returns
        -------
        Record
            Parsed record.

        Raises
        ------
        RecordError
            If the identifier or source is missing.
        """
        raw_id = data.get(id_field)
        if raw_id is None or str(raw_id).strip() == "":
            raise RecordError(f"Record is missing '{id_field}'")
        record_id = str(raw_id)

        source = data.get("source")
        if source is None or str(source).strip() == "":
            raise RecordError(f"Record {record_id!r} is missing 'source'", record_id=record_id)

        skip = set(CORE_FIELDS) | {id_field}
        extra = {k: v for k, v in data.items() if k not in skip}

        return cls(
            id=record_id,
            source=str(source),
            title=_optional_text(data.get("title")),
            doi=_optional_text(data.get("doi")),
            origin_detail=_optional_text(data.get("origin_detail")),
            extra=extra,
        )


class SourcePriority:
    """Total order over ``(source, origin_detail)`` combinations.

    Entries listed earlier win. An entry whose ``origin_detail`` is None is
    a wildcard for every channel of that source that has no exact entry.
    Records matching no entry rank after all listed ones.

    Attributes
    ----------
    entries : tuple[tuple[str, str | None], ...]
        Ranked entries, best first.
    """

    def __init__(self, entries: Iterable[tuple[str, str | None]]) -> None:
        """Initialize ranking from ordered entries.

        Parameters
        ----------
        entries : Iterable[tuple[str, str | None]]
            ``(source, origin_detail)`` pairs, best first.

        Raises
        ------
        ValueError
            If an entry appears twice.
        """
        self.entries: tuple[tuple[str, str | None], ...] = tuple(
            (str(source), None if detail is None else str(detail)) for source, detail in entries
        )
        self._index: dict[tuple[str, str | None], int] = {}
        for rank, entry in enumerate(self.entries):
            if entry in self._index:
                raise ValueError(f"Duplicate priority entry: {entry}")
            self._index[entry] = rank

    @classmethod
    def default(cls) -> "SourcePriority":
        """Ranking used for Scopus + ORCID author profiles."""
        return cls(
            [
                ("scopus", None),
                ("orcid", "Web of Science Researcher Profile Sync"),
                ("orcid", "Scopus - Elsevier"),
                ("orcid", None),
                ("orcid", "author"),
            ]
        )

    def rank(self, record: Record) -> int:
        """Return numeric priority for a record (lower wins)."""
        exact = self._index.get((record.source, record.origin_detail))
        if exact is not None:
            return exact
        wildcard = self._index.get((record.source, None))
        if wildcard is not None:
            return wildcard
        return len(self.entries)

    def __call__(self, record: Record) -> int:
        """Alias for :meth:`rank`."""
        return self.rank(record)

    def to_list(self) -> list[list[str | None]]:
        """Convert to JSON-friendly list of ``[source, origin_detail]``."""
        return [[source, detail] for source, detail in self.entries]

    def __repr__(self) -> str:
        return f"SourcePriority({list(self.entries)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SourcePriority):
            return NotImplemented
        return self.entries == other.entries

    def __hash__(self) -> int:
        return hash(self.entries)


# Anything that maps a record to its rank
PriorityFunc = Callable[[Record], int]
