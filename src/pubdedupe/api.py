"""Public API for reading, deduplicating and writing publication records.

This module provides the high-level entry points of pubdedupe:
- Reading JSONL record files validated against the bundled schema
- Splitting records into per-author (or any column) batches
- Running the deduplication engine over those batches
- Writing results as deterministic JSONL
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jsonschema
from jsonschema.exceptions import best_match

from pubdedupe.audit import AuditLogger, InputFile
from pubdedupe.models import (
    Record,
    RecordError,
    calculate_record_digest,
    calculate_record_id,
)
from pubdedupe.schemas import load_schema
from pubdedupe.utils import calculate_file_sha256, get_file_mtime

if TYPE_CHECKING:
    from pubdedupe.engine import BatchContext, DedupConfig, ProgressCallback

__all__ = [
    "ALL_KEY",
    "UNGROUPED_KEY",
    "InputError",
    "RecordFile",
    "dedupe",
    "group_records",
    "load_records_jsonl",
    "read_records_jsonl",
    "write_jsonl",
]

# Batch key used when records are not grouped
ALL_KEY = "all"
# Batch key for records whose grouping column is empty
UNGROUPED_KEY = "(none)"


class InputError(Exception):
    """Raised when an input file cannot be read or validated."""

    def __init__(
        self,
        message: str,
        file: str | None = None,
        line: int | None = None,
    ) -> None:
        """Initialize input error.

        Parameters
        ----------
        message : str
            Error message.
        file : str | None, optional
            File where error occurred.
        line : int | None, optional
            1-based line number, when the error concerns one line.
        """
        super().__init__(message)
        self.file = file
        self.line = line

    def __str__(self) -> str:
        message = super().__str__()
        if self.file is not None and self.line is not None:
            return f"{self.file}:{self.line}: {message}"
        if self.file is not None:
            return f"{self.file}: {message}"
        return message


@dataclass(frozen=True)
class RecordFile:
    """Records read from one JSONL file.

    Attributes
    ----------
    path : Path
        File that was read.
    records : list[Record]
        Accepted records in file order.
    rejected : list[InputError]
        Lines skipped in non-strict mode.
    """

    path: Path
    records: list[Record] = field(default_factory=list)
    rejected: list[InputError] = field(default_factory=list)

    def file_info(self) -> InputFile:
        """Describe the file for the run manifest."""
        return InputFile(
            name=self.path.name,
            bytes=self.path.stat().st_size,
            sha256=calculate_file_sha256(self.path),
            records_read=len(self.records),
            records_rejected=len(self.rejected),
            mtime=get_file_mtime(self.path),
        )


def _parse_line(
    text: str,
    position: int,
    validator: jsonschema.protocols.Validator,
) -> Record:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise InputError(f"Expected a JSON object, got {type(data).__name__}")

    error = best_match(validator.iter_errors(data))
    if error is not None:
        where = "/".join(str(p) for p in error.absolute_path) or "record"
        raise InputError(f"Schema violation at {where}: {error.message}")

    if data.get("id") is None or str(data["id"]).strip() == "":
        data = {
            **data,
            "id": calculate_record_id(
                str(data["source"]), position, calculate_record_digest(data)
            ),
        }

    try:
        return Record.from_dict(data)
    except RecordError as e:
        raise InputError(str(e)) from e


def load_records_jsonl(path: str | Path, *, strict: bool = True) -> RecordFile:
    """Read a JSONL record file, keeping track of rejected lines.

    Each non-blank line must be a JSON object matching the bundled
    ``record`` schema. Records without an ``id`` get a deterministic
    UUIDv5 derived from source, position and content.

    Parameters
    ----------
    path : str | Path
        File to read.
    strict : bool, optional
        If True, the first bad line raises. If False, bad lines are
        collected in ``rejected`` and reading continues, by default True.

    Returns
    -------
    RecordFile
        Accepted records and rejected lines.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    InputError
        If a line is invalid and strict=True, or the file is not UTF-8.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    validator = jsonschema.Draft202012Validator(load_schema("record"))
    records: list[Record] = []
    rejected: list[InputError] = []
    seen_ids: set[str] = set()
    position = 0

    try:
        with file_path.open("r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    record = _parse_line(line, position, validator)
                    if record.id in seen_ids:
                        raise InputError(f"Duplicate record id {record.id!r}")
                except InputError as e:
                    error = InputError(str(e), file=str(file_path), line=line_number)
                    if strict:
                        raise error from e
                    rejected.append(error)
                    continue
                finally:
                    position += 1
                seen_ids.add(record.id)
                records.append(record)
    except UnicodeDecodeError as e:
        raise InputError(f"File is not valid UTF-8: {e.reason}", file=str(file_path)) from e

    return RecordFile(path=file_path, records=records, rejected=rejected)


def read_records_jsonl(path: str | Path, *, strict: bool = True) -> list[Record]:
    """Read records from a JSONL file.

    See :func:`load_records_jsonl` for validation rules.

    Examples
    --------
    >>> from pubdedupe import read_records_jsonl
    >>> records = read_records_jsonl("publications.jsonl")  # doctest: +SKIP
    """
    return load_records_jsonl(path, strict=strict).records


def group_records(
    records: Iterable[Record],
    group_by: str | None = None,
) -> dict[str, list[Record]]:
    """Split records into batches by a column value.

    Parameters
    ----------
    records : Iterable[Record]
        Records in input order.
    group_by : str | None, optional
        Core or pass-through column (e.g. "author_id"). If None, all
        records form a single batch keyed ``ALL_KEY``.

    Returns
    -------
    dict[str, list[Record]]
        Batches in order of first appearance; records with an empty
        column value go to ``UNGROUPED_KEY``.
    """
    if group_by is None:
        return {ALL_KEY: list(records)}

    batches: dict[str, list[Record]] = {}
    for record in records:
        value = record.get(group_by)
        key = UNGROUPED_KEY if value is None or str(value).strip() == "" else str(value)
        batches.setdefault(key, []).append(record)
    return batches


def write_jsonl(
    rows: Iterable[Any],
    path: str | Path,
    *,
    sort_keys: bool = True,
) -> int:
    """Write rows to a JSONL file (one JSON object per line).

    Output is deterministic with consistent field ordering and UTF-8 encoding.

    Parameters
    ----------
    rows : Iterable[Any]
        Mappings, or objects with a ``to_dict()`` method (records, log
        entries, review groups, decisions).
    path : str | Path
        Output file path; parent directories are created.
    sort_keys : bool, optional
        Whether to sort dictionary keys, by default True.

    Returns
    -------
    int
        Number of rows written.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with file_path.open("w", encoding="utf-8", newline="\n") as f:
        for row in rows:
            data = row.to_dict() if hasattr(row, "to_dict") else dict(row)
            f.write(json.dumps(data, ensure_ascii=False, sort_keys=sort_keys) + "\n")
            count += 1
    return count


def dedupe(
    records: Sequence[Record] | Mapping[str, Sequence[Record]],
    *,
    group_by: str | None = None,
    config: DedupConfig | None = None,
    logger: AuditLogger | None = None,
    progress: ProgressCallback | None = None,
    **options: Any,
) -> BatchContext:
    """Deduplicate records and return the context holding the results.

    Parameters
    ----------
    records : Sequence[Record] | Mapping[str, Sequence[Record]]
        Flat records (split with ``group_by``) or ready-made batches.
    group_by : str | None, optional
        Column to split flat records by, e.g. an author id.
    config : DedupConfig | None, optional
        Full configuration. Mutually exclusive with ``options``.
    logger : AuditLogger | None, optional
        Audit logger for stage and removal events.
    progress : ProgressCallback | None, optional
        Called as ``progress(current, total, key)`` after each batch.
    **options : Any
        ``DedupConfig`` fields (``mode``, ``match_threshold``, ...).

    Returns
    -------
    BatchContext
        Context with survivors, deduplication log and review groups;
        call ``start_review()`` on it for human review.

    Raises
    ------
    TypeError
        If both ``config`` and ``options`` are given.
    ConfigurationError
        If an option value is invalid.

    Examples
    --------
    >>> from pubdedupe import Record, dedupe
    >>> ctx = dedupe(
    ...     [
    ...         Record(id="1", source="orcid", title="Graph Methods"),
    ...         Record(id="2", source="scopus", title="Graph methods."),
    ...     ],
    ...     mode="standard",
    ... )
    >>> [r.id for r in ctx.final_records()]
    ['2']
    """
    from pubdedupe.engine import BatchContext, DedupConfig

    if config is not None and options:
        raise TypeError("Pass either config or keyword options, not both")
    if config is None:
        config = DedupConfig.from_dict(options)

    if isinstance(records, Mapping):
        batches = {str(key): list(batch) for key, batch in records.items()}
    else:
        batches = group_records(records, group_by)

    context = BatchContext(config, logger=logger)
    context.run(batches, progress=progress)
    return context
