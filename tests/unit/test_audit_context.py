"""Tests for RunContext and the run manifest."""

import json
from pathlib import Path

import jsonschema
import pytest

from pubdedupe.audit import BatchStats, InputFile, RunContext, generate_run_id
from pubdedupe.schemas import load_schema
from pubdedupe.utils import calculate_file_sha256


def _manifest(output_dir: Path) -> dict:
    return json.loads((output_dir / "run.json").read_text(encoding="utf-8"))


def _events(output_dir: Path) -> list[dict]:
    lines = (output_dir / "events.jsonl").read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines]


@pytest.mark.unit
def test_successful_run_writes_valid_manifest(tmp_path: Path) -> None:
    """Test a finished run leaves a schema-valid run.json with hashed artifacts."""
    out = tmp_path / "out"
    with RunContext.start(out, {"mode": "approximate"}, argv=["pubdedupe"]) as run:
        run.add_input(
            InputFile(name="a.jsonl", bytes=10, sha256="sha256:" + "a" * 64, records_read=2)
        )
        run.start_stage("write", expected_records=2)
        artifact = out / "records.jsonl"
        artifact.write_text('{"id": "1"}\n{"id": "2"}\n', encoding="utf-8")
        run.artifact_written(artifact, record_count=2)
        run.finish_stage("write", counters={"records_out": 2})
        run.add_batch(
            BatchStats(key="ada", records_in=2, records_out=2, auto_removed=0, review_groups=0)
        )
        run.set_summary({"initial_count": 2})

    manifest = _manifest(out)
    jsonschema.Draft202012Validator(load_schema("run_manifest")).validate(manifest)

    assert manifest["status"] == "success"
    assert manifest["run_id"] == run.run_id
    assert manifest["environment"]["argv"] == ["pubdedupe"]
    assert set(manifest["environment"]["dependencies"]) == {"click", "jsonschema"}
    assert manifest["config"] == {"mode": "approximate"}
    assert manifest["summary"] == {"initial_count": 2}
    assert manifest["inputs"][0]["format"] == "jsonl"
    assert manifest["batches"] == [
        {"key": "ada", "records_in": 2, "records_out": 2, "auto_removed": 0, "review_groups": 0}
    ]
    assert manifest["stages"][0]["name"] == "write"
    assert manifest["stages"][0]["counters"] == {"records_out": 2}
    artifacts = {a["path"]: a for a in manifest["artifacts"]}
    assert set(artifacts) == {"records.jsonl", "events.jsonl"}
    assert artifacts["records.jsonl"]["rows"] == 2
    assert not list(out.glob("*.tmp"))


@pytest.mark.unit
def test_event_log_brackets_run(tmp_path: Path) -> None:
    """Test events.jsonl starts with run_started and ends with run_finished."""
    with RunContext.start(tmp_path, {}, argv=[]) as run:
        run.start_stage("read")
        run.finish_stage("read")

    events = [e["event"] for e in _events(tmp_path)]

    assert events == ["run_started", "stage_started", "stage_finished", "run_finished"]
    assert _events(tmp_path)[-1]["data"]["status"] == "success"


@pytest.mark.unit
def test_events_jsonl_hash_covers_final_event(tmp_path: Path) -> None:
    """Test the manifest hashes the closed event log."""
    with RunContext.start(tmp_path, {}, argv=[]):
        pass

    artifact = next(a for a in _manifest(tmp_path)["artifacts"] if a["path"] == "events.jsonl")
    assert artifact["sha256"] == calculate_file_sha256(tmp_path / "events.jsonl")


@pytest.mark.unit
def test_failed_run_records_error(tmp_path: Path) -> None:
    """Test an exception marks the run failed and is logged with its stage."""
    with pytest.raises(RuntimeError):
        with RunContext.start(tmp_path, {}, argv=[]) as run:
            run.start_stage("deduplicate")
            raise RuntimeError("boom")

    manifest = _manifest(tmp_path)
    error = next(e for e in _events(tmp_path) if e["event"] == "error")

    assert manifest["status"] == "failed"
    assert manifest["errors"][0]["exception"] == "RuntimeError"
    assert manifest["errors"][0]["stage"] == "deduplicate"
    assert "boom" in manifest["errors"][0]["traceback"]
    assert error["level"] == "ERROR"
    assert error["data"]["message"] == "boom"


@pytest.mark.unit
def test_finish_is_idempotent(tmp_path: Path) -> None:
    """Test a second finish does not rewrite the manifest."""
    run = RunContext.start(tmp_path, {}, argv=[])
    run.finish(status="partial")
    first = (tmp_path / "run.json").read_text(encoding="utf-8")

    run.finish(status="success")

    assert (tmp_path / "run.json").read_text(encoding="utf-8") == first
    assert _manifest(tmp_path)["status"] == "partial"


@pytest.mark.unit
def test_stage_errors(tmp_path: Path) -> None:
    """Test finishing an unknown stage and reusing a name both raise."""
    run = RunContext.start(tmp_path, {}, argv=[])
    try:
        with pytest.raises(ValueError, match="not started"):
            run.finish_stage("never")

        run.start_stage("read")
        with pytest.raises(ValueError, match="already recorded"):
            run.start_stage("read")
    finally:
        run.finish()


@pytest.mark.unit
def test_run_ids_are_unique() -> None:
    """Test generated run ids do not repeat."""
    assert len({generate_run_id() for _ in range(50)}) == 50
