"""One run's audit trail: ``events.jsonl`` plus ``run.json``."""

import time
import traceback
from pathlib import Path
from typing import Any

from pubdedupe.audit.helpers import describe_environment, generate_run_id, source_revision
from pubdedupe.audit.logger import AuditLogger
from pubdedupe.audit.manifest import ManifestWriter
from pubdedupe.audit.models import BatchStats, InputFile, RunError
from pubdedupe.utils import calculate_file_sha256, get_iso_timestamp

__all__ = ["RunContext"]


class RunContext:
    """Keeps the event log and the manifest of a run in step.

    Callers name stages and hand over facts; the context times stages,
    mirrors them into both files and writes the manifest when the run
    ends. Used as a context manager it finishes with "success", or with
    "failed" after logging the escaping exception.

    Attributes
    ----------
    run_id : str
        Run identifier.
    output_dir : Path
        Directory receiving every output.
    audit_logger : AuditLogger
        Logger to pass down to the engine.
    manifest_writer : ManifestWriter
        Manifest under construction.
    finished : bool
        Whether :meth:`finish` has run.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        audit_logger: AuditLogger,
        manifest_writer: ManifestWriter,
    ) -> None:
        self.run_id = run_id
        self.output_dir = output_dir
        self.audit_logger = audit_logger
        self.manifest_writer = manifest_writer
        self.finished = False
        self._started = time.perf_counter()
        self._stage_clock: dict[str, float] = {}

    @classmethod
    def start(
        cls,
        output_dir: Path,
        config: dict[str, Any],
        argv: list[str] | None = None,
    ) -> "RunContext":
        """Create the output directory, open the log and log ``run_started``.

        Parameters
        ----------
        output_dir : Path
            Output directory, created if missing.
        config : dict[str, Any]
            Effective configuration, copied into the manifest.
        argv : list[str] | None, optional
            Command line; ``sys.argv`` when None.

        Returns
        -------
        RunContext
            The started run.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        run_id = generate_run_id()
        environment = describe_environment(argv)
        logger = AuditLogger(run_id=run_id, log_path=output_dir / "events.jsonl")
        writer = ManifestWriter(
            run_id=run_id,
            output_dir=output_dir,
            environment=environment,
            revision=source_revision(),
            config=config,
        )
        logger.run_started(command=environment.argv, parameters=config)
        return cls(run_id, output_dir, logger, writer)

    # ------------------------------------------------------------------
    # Facts
    # ------------------------------------------------------------------

    def add_input(self, input_file: InputFile) -> None:
        self.manifest_writer.add_input(input_file)

    def add_batch(self, stats: BatchStats) -> None:
        self.manifest_writer.add_batch(stats)

    def set_summary(self, summary: dict[str, Any]) -> None:
        self.manifest_writer.set_summary(summary)

    def start_stage(self, stage_name: str, expected_records: int | None = None) -> None:
        """Begin a stage in both the manifest and the event log.

        Raises
        ------
        ValueError
            If the stage name was already used in this run.
        """
        self.manifest_writer.open_stage(stage_name)
        self._stage_clock[stage_name] = time.perf_counter()
        self.audit_logger.stage_started(stage_name, expected_records=expected_records)

    def finish_stage(self, stage_name: str, counters: dict[str, int] | None = None) -> None:
        """End a stage, recording its duration and counters.

        Raises
        ------
        ValueError
            If the stage was not started.
        """
        started = self._stage_clock.pop(stage_name, None)
        if started is None:
            raise ValueError(f"Stage not started: {stage_name}")
        duration = time.perf_counter() - started
        self.manifest_writer.close_stage(stage_name, duration, counters)
        self.audit_logger.stage_finished(stage_name, duration_seconds=duration, counters=counters)

    def artifact_written(self, path: Path, record_count: int | None = None) -> None:
        """Log a finished output file and register it for the manifest.

        Parameters
        ----------
        path : Path
            File inside ``output_dir``.
        record_count : int | None, optional
            Rows written.
        """
        relative = path.relative_to(self.output_dir).as_posix()
        self.audit_logger.artifact_written(
            path=relative,
            sha256=calculate_file_sha256(path),
            bytes_written=path.stat().st_size,
            record_count=record_count,
        )
        self.manifest_writer.register_artifact(relative, rows=record_count)

    def record_error(
        self,
        exception: BaseException,
        stage: str | None = None,
        rid: str | None = None,
        include_traceback: bool = False,
    ) -> None:
        """Log an exception and add it to the manifest."""
        trace = None
        if include_traceback:
            trace = "".join(traceback.format_exception(exception))
        error = RunError(
            at=get_iso_timestamp(),
            exception=type(exception).__name__,
            message=str(exception),
            stage=stage,
            rid=rid,
            traceback=trace,
        )
        self.manifest_writer.add_error(error)
        self.audit_logger.error(
            error.exception, error.message, stage=stage, rid=rid, traceback=trace
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finish(self, status: str = "success", records_processed: int | None = None) -> None:
        """Log ``run_finished``, close the log and write ``run.json``.

        The log is closed first so its hash in the manifest covers every
        event. Only the first call has an effect.
        """
        if self.finished:
            return
        self.finished = True

        duration = time.perf_counter() - self._started
        self.audit_logger.run_finished(
            status=status, duration_seconds=duration, records_processed=records_processed
        )
        self.audit_logger.close()
        self.manifest_writer.finish(status, duration_seconds=duration)

    def __enter__(self) -> "RunContext":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.finish("success")
            return
        if not self.finished:
            self.record_error(exc_val, stage=self.audit_logger.current_stage, include_traceback=True)
        self.finish("failed")
