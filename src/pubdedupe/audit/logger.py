"""Append-only JSONL event log.

Each deduplication step reports what it did to an :class:`AuditLogger`,
so every removal and every review decision can be traced from
``events.jsonl`` alone. The logger is optional everywhere; stages that
receive None stay silent.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pubdedupe.audit.models import LogEvent
from pubdedupe.utils import get_iso_timestamp

__all__ = ["EVENT_LEVELS", "AuditLogger"]

EVENT_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARN", "ERROR")


class AuditLogger:
    """Writes one JSON object per line and flushes after each event.

    Attributes
    ----------
    run_id : str
        Stamped on every event.
    log_path : Path
        Target file; opened for appending, so several commands of one run
        can share it.
    current_stage : str | None
        Default ``stage`` for events that do not name one.
    events_written : int
        Events written by this instance.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        self.run_id = run_id
        self.log_path = Path(log_path)
        self.current_stage: str | None = None
        self.events_written = 0

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._handle.closed

    def close(self) -> None:
        """Close the file; later events raise ValueError."""
        if not self._handle.closed:
            self._handle.close()

    def set_stage(self, stage: str | None) -> None:
        """Make ``stage`` the default for subsequent events."""
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        rid: str | None = None,
    ) -> None:
        """Append one event.

        Parameters
        ----------
        event_type : str
            Event name.
        data : dict[str, Any] | None, optional
            JSON-serializable payload.
        level : str, optional
            One of ``EVENT_LEVELS``, by default "INFO".
        stage : str | None, optional
            Overrides ``current_stage``.
        rid : str | None, optional
            Record the event is about.

        Raises
        ------
        ValueError
            If the level is unknown or the logger is closed.
        """
        if level not in EVENT_LEVELS:
            raise ValueError(f"Unknown log level {level!r}; expected one of {EVENT_LEVELS}")
        if self._handle.closed:
            raise ValueError(f"Audit log {self.log_path} is closed")

        record = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=dict(data or {}),
            stage=self.current_stage if stage is None else stage,
            rid=rid,
        )
        self._handle.write(json.dumps(asdict(record), ensure_ascii=False, separators=(",", ":")))
        self._handle.write("\n")
        self._handle.flush()
        self.events_written += 1

    # ------------------------------------------------------------------
    # Run and stage lifecycle
    # ------------------------------------------------------------------

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        self.event("run_started", data={"command": command, "parameters": parameters})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_processed: int | None = None,
    ) -> None:
        """Log the end of a run ("success", "failed" or "partial")."""
        data: dict[str, Any] = {"status": status, "duration_seconds": duration_seconds}
        if records_processed is not None:
            data["records_processed"] = records_processed
        self.event("run_finished", data=data)

    def stage_started(self, stage: str, expected_records: int | None = None) -> None:
        """Enter ``stage``; following events default to it."""
        self.set_stage(stage)
        data = {} if expected_records is None else {"expected_records": expected_records}
        self.event("stage_started", data=data, stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> None:
        """Leave ``stage``, reporting its duration and counters."""
        data: dict[str, Any] = {"duration_seconds": duration_seconds}
        if counters:
            data["counters"] = dict(counters)
        self.event("stage_finished", data=data, stage=stage)
        if self.current_stage == stage:
            self.set_stage(None)

    def batch_finished(self, key: str, counters: dict[str, int]) -> None:
        """Report the counters of one deduplicated batch."""
        self.event("batch_finished", data={"key": key, **counters})

    # ------------------------------------------------------------------
    # Record-level events
    # ------------------------------------------------------------------

    def record_flagged(
        self,
        rid: str | None,
        reason_code: str,
        message: str | None = None,
        stage: str | None = None,
    ) -> None:
        """Warn about a record (or input line) that was set aside.

        Parameters
        ----------
        rid : str | None
            Record id; None when the line could not be parsed at all.
        reason_code : str
            Machine-readable reason, e.g. "invalid_record".
        message : str | None, optional
            Human-readable detail.
        stage : str | None, optional
            Overrides ``current_stage``.
        """
        data: dict[str, Any] = {"reason_code": reason_code}
        if message is not None:
            data["message"] = message
        self.event("record_flagged", data=data, level="WARN", stage=stage, rid=rid)

    def record_removed(
        self,
        rid: str,
        duplicate_of: str,
        reason_code: str,
        stage: str | None = None,
    ) -> None:
        """Log an automatic removal of ``rid`` in favour of ``duplicate_of``."""
        self.event(
            "record_removed",
            data={"duplicate_of": duplicate_of, "reason_code": reason_code},
            stage=stage,
            rid=rid,
        )

    def review_decision(
        self,
        group_id: int,
        kept: list[str],
        discarded: list[str],
        stage: str | None = None,
    ) -> None:
        """Log a reviewer's decision on one group."""
        self.event(
            "review_decision",
            data={"group_id": group_id, "kept": list(kept), "discarded": list(discarded)},
            stage=stage,
        )

    # ------------------------------------------------------------------
    # Outputs and failures
    # ------------------------------------------------------------------

    def artifact_written(
        self,
        path: str,
        sha256: str,
        stage: str | None = None,
        bytes_written: int | None = None,
        record_count: int | None = None,
    ) -> None:
        """Log an output file.

        Parameters
        ----------
        path : str
            Path relative to the output directory.
        sha256 : str
            Content hash ("sha256:<hex>").
        stage : str | None, optional
            Overrides ``current_stage``.
        bytes_written : int | None, optional
            File size.
        record_count : int | None, optional
            Rows written.
        """
        data: dict[str, Any] = {"path": path, "sha256": sha256}
        if bytes_written is not None:
            data["bytes"] = bytes_written
        if record_count is not None:
            data["record_count"] = record_count
        self.event("artifact_written", data=data, stage=stage)

    def error(
        self,
        exception_class: str,
        message: str,
        stage: str | None = None,
        rid: str | None = None,
        traceback: str | None = None,
    ) -> None:
        """Log an exception at level ERROR."""
        data: dict[str, Any] = {"exception_class": exception_class, "message": message}
        if traceback is not None:
            data["traceback"] = traceback
        self.event("error", data=data, level="ERROR", stage=stage, rid=rid)
