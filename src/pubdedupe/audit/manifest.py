"""Builder for ``run.json``."""

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any

from pubdedupe.audit.models import (
    MANIFEST_VERSION,
    Artifact,
    BatchStats,
    InputFile,
    Manifest,
    RunEnvironment,
    RunError,
    StageTiming,
)
from pubdedupe.utils import calculate_file_sha256, get_iso_timestamp

__all__ = ["MANIFEST_FILE", "ManifestWriter"]

MANIFEST_FILE = "run.json"

# Always hashed at finish when present
_EVENT_LOG = "events.jsonl"


class ManifestWriter:
    """Accumulates run facts in memory and writes them once, atomically.

    Output files are only registered while the run is in progress and are
    hashed in :meth:`finish`, after every writer has closed them.

    Attributes
    ----------
    output_dir : Path
        Directory holding ``run.json`` and the registered artifacts.
    manifest : Manifest
        Data written by :meth:`finish`.
    """

    def __init__(
        self,
        run_id: str,
        output_dir: Path,
        environment: RunEnvironment,
        revision: str,
        config: dict[str, Any],
    ) -> None:
        self.output_dir = output_dir
        self.manifest = Manifest(
            manifest_version=MANIFEST_VERSION,
            run_id=run_id,
            revision=revision,
            environment=environment,
            config=dict(config),
            started_at=get_iso_timestamp(),
        )
        self._stages: dict[str, StageTiming] = {}
        # relative path -> rows, in registration order
        self._registered: dict[str, int | None] = {}

    @property
    def path(self) -> Path:
        """Location of ``run.json``."""
        return self.output_dir / MANIFEST_FILE

    def add_input(self, input_file: InputFile) -> None:
        self.manifest.inputs.append(input_file)

    def add_batch(self, stats: BatchStats) -> None:
        self.manifest.batches.append(stats)

    def set_summary(self, summary: dict[str, Any]) -> None:
        self.manifest.summary = dict(summary)

    def add_error(self, error: RunError) -> None:
        self.manifest.errors.append(error)

    def open_stage(self, name: str) -> StageTiming:
        """Start timing a stage.

        Raises
        ------
        ValueError
            If a stage of that name was already opened in this run.
        """
        if name in self._stages:
            raise ValueError(f"Stage already recorded: {name}")
        timing = StageTiming(name=name, started_at=get_iso_timestamp())
        self._stages[name] = timing
        self.manifest.stages.append(timing)
        return timing

    def close_stage(
        self,
        name: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> StageTiming:
        """Stop timing a stage and merge its counters.

        Raises
        ------
        ValueError
            If the stage was never opened.
        """
        timing = self._stages.get(name)
        if timing is None:
            raise ValueError(f"Stage not started: {name}")
        timing.finished_at = get_iso_timestamp()
        timing.duration_seconds = duration_seconds
        if counters:
            timing.counters.update(counters)
        return timing

    def register_artifact(self, relative_path: str, rows: int | None = None) -> None:
        """Mark an output file for hashing at :meth:`finish`."""
        self._registered[relative_path] = rows

    def _hash_artifacts(self) -> None:
        pending = dict(self._registered)
        pending.setdefault(_EVENT_LOG, None)
        for relative_path, rows in pending.items():
            target = self.output_dir / relative_path
            if not target.is_file():
                continue
            self.manifest.artifacts.append(
                Artifact(
                    path=relative_path,
                    sha256=calculate_file_sha256(target),
                    bytes=target.stat().st_size,
                    rows=rows,
                )
            )
        self._registered.clear()

    def finish(self, status: str, duration_seconds: float | None = None) -> Path:
        """Hash artifacts, stamp the final status and write ``run.json``.

        Parameters
        ----------
        status : str
            "success", "failed" or "partial".
        duration_seconds : float | None, optional
            Run duration.

        Returns
        -------
        Path
            The written manifest.
        """
        self._hash_artifacts()
        self.manifest.status = status
        self.manifest.finished_at = get_iso_timestamp()
        self.manifest.duration_seconds = duration_seconds
        self._write_atomic()
        return self.path

    def _write_atomic(self) -> None:
        # Readers never see a half-written manifest
        staging = self.path.with_name(f".{MANIFEST_FILE}.tmp")
        with staging.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        staging.replace(self.path)

    def to_dict(self) -> dict[str, Any]:
        """Manifest as plain JSON-compatible data."""
        return asdict(self.manifest)
