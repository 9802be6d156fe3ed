"""Records written to ``events.jsonl`` and ``run.json``.

All types are plain dataclasses serialized with :func:`dataclasses.asdict`,
so declaration order is the key order on disk.
"""

from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "MANIFEST_VERSION",
    "Artifact",
    "BatchStats",
    "InputFile",
    "LogEvent",
    "Manifest",
    "RunEnvironment",
    "RunError",
    "StageTiming",
]

# Bumped whenever the run.json layout changes
MANIFEST_VERSION = "1.0.0"


@dataclass(frozen=True)
class LogEvent:
    """One line of ``events.jsonl``.

    Attributes
    ----------
    ts : str
        UTC timestamp with microseconds ("...Z").
    run_id : str
        Run the event belongs to.
    level : str
        "DEBUG", "INFO", "WARN" or "ERROR".
    event : str
        Event name (e.g. "record_removed").
    data : dict[str, Any]
        Event payload.
    stage : str | None
        Stage active when the event was written.
    rid : str | None
        Record the event is about, if any.
    """

    ts: str
    run_id: str
    level: str
    event: str
    data: dict[str, Any]
    stage: str | None = None
    rid: str | None = None


@dataclass(frozen=True)
class RunEnvironment:
    """How and where a run was launched.

    Attributes
    ----------
    argv : list[str]
        Command line.
    cwd : str | None
        Basename of the working directory; full paths are not recorded.
    python : str
        Interpreter version.
    platform : str
        System, release and machine.
    pubdedupe : str
        Installed package version.
    dependencies : dict[str, str]
        Versions of the runtime libraries.
    """

    argv: list[str]
    cwd: str | None
    python: str
    platform: str
    pubdedupe: str
    dependencies: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InputFile:
    """An input file as seen by the record loader.

    Attributes
    ----------
    name : str
        File name without directories.
    bytes : int
        File size.
    sha256 : str
        Content hash ("sha256:<hex>").
    records_read : int
        Records accepted.
    records_rejected : int
        Lines skipped by a lenient read.
    mtime : str | None
        Modification time, when available.
    format : str
        Input format.
    """

    name: str
    bytes: int
    sha256: str
    records_read: int
    records_rejected: int = 0
    mtime: str | None = None
    format: str = "jsonl"


@dataclass
class StageTiming:
    """Wall-clock span and counters of one stage."""

    name: str
    started_at: str
    finished_at: str | None = None
    duration_seconds: float | None = None
    counters: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchStats:
    """Counters of one batch (one author or grouping value).

    Attributes
    ----------
    key : str | None
        Batch key.
    records_in : int
        Records in the batch.
    records_out : int
        Records left after automatic resolution.
    auto_removed : int
        Records removed automatically.
    review_groups : int
        Groups built for review.
    """

    key: str | None
    records_in: int
    records_out: int
    auto_removed: int
    review_groups: int


@dataclass(frozen=True)
class Artifact:
    """A file written to the output directory."""

    path: str
    sha256: str
    bytes: int
    rows: int | None = None


@dataclass(frozen=True)
class RunError:
    """An exception that ended or disturbed a run."""

    at: str
    exception: str
    message: str
    stage: str | None = None
    rid: str | None = None
    traceback: str | None = None


@dataclass
class Manifest:
    """Content of ``run.json``.

    Attributes
    ----------
    manifest_version : str
        Layout version, see ``MANIFEST_VERSION``.
    run_id : str
        Run identifier shared with every event.
    revision : str
        "git:<sha>" when run from a checkout, else the package version.
    environment : RunEnvironment
        Launch details.
    config : dict[str, Any]
        Effective configuration.
    started_at : str
        Run start.
    status : str
        "partial" until finished, then "success" or "failed".
    finished_at : str | None
        Run end.
    duration_seconds : float | None
        Run duration.
    inputs : list[InputFile]
        Files read.
    stages : list[StageTiming]
        Stages in start order.
    batches : list[BatchStats]
        Per-batch counters in processing order.
    summary : dict[str, Any]
        Totals over all batches.
    artifacts : list[Artifact]
        Output files, hashed when the run finishes.
    errors : list[RunError]
        Recorded exceptions.
    """

    manifest_version: str
    run_id: str
    revision: str
    environment: RunEnvironment
    config: dict[str, Any]
    started_at: str
    status: str = "partial"
    finished_at: str | None = None
    duration_seconds: float | None = None
    inputs: list[InputFile] = field(default_factory=list)
    stages: list[StageTiming] = field(default_factory=list)
    batches: list[BatchStats] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)
    artifacts: list[Artifact] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)
