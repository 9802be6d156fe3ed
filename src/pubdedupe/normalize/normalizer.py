"""Per-record normalization for the comparison stage.

This module pairs each record with the canonical forms of its title and
DOI once, so the all-pairs loop never normalizes the same string twice.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pubdedupe.models import Record

from ._fields import normalize_doi, normalize_title
from .flags import generate_flags


@dataclass(frozen=True)
class NormalizedRecord:
    """A record with its comparison keys.

    Attributes
    ----------
    record : Record
        Original, untouched record.
    index : int
        0-based position of the record in its batch.
    title_norm : str
        Normalized title ("" when missing).
    doi_norm : str | None
        Normalized DOI (None when missing).
    flags : tuple[str, ...]
        Quality flag codes, see :mod:`pubdedupe.normalize.flags`.
    """

    record: Record
    index: int
    title_norm: str
    doi_norm: str | None
    flags: tuple[str, ...] = ()

    @property
    def rid(self) -> str:
        """Record identifier."""
        return self.record.id

    @property
    def has_title(self) -> bool:
        """Whether the normalized title is non-empty."""
        return bool(self.title_norm)


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    return str(value)


def normalize_record(record: Record, index: int) -> NormalizedRecord:
    """Normalize the comparison fields of one record.

    Non-string title or DOI values (numbers from spreadsheet cells, for
    instance) are coerced to text; booleans and None count as missing.
    Either case, and an empty normalized title, is recorded in ``flags``.

    Parameters
    ----------
    record : Record
        Record to normalize.
    index : int
        Position of the record in its batch.

    Returns
    -------
    NormalizedRecord
        Record paired with its normalized title and DOI.
    """
    title_norm = normalize_title(_as_text(record.title))
    return NormalizedRecord(
        record=record,
        index=index,
        title_norm=title_norm,
        doi_norm=normalize_doi(_as_text(record.doi)),
        flags=generate_flags(record.title, record.doi, title_norm),
    )


def normalize_batch(records: Sequence[Record]) -> list[NormalizedRecord]:
    """Normalize every record of a batch, preserving order.

    Parameters
    ----------
    records : Sequence[Record]
        Batch records in input order.

    Returns
    -------
    list[NormalizedRecord]
        Normalized records, ``result[i].index == i``.
    """
    return [normalize_record(record, index) for index, record in enumerate(records)]
