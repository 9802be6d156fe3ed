"""Tests for the batch runner, run context and configuration."""

import json
import random
from collections.abc import Callable
from pathlib import Path

import jsonschema
import pytest

from pubdedupe.audit import AuditLogger
from pubdedupe.decision import ConfigurationError, MatchMode
from pubdedupe.engine import BatchContext, BatchSummary, DedupConfig, deduplicate_batch
from pubdedupe.models import Record, RecordError, SourcePriority
from pubdedupe.schemas import load_schema

MakeRecord = Callable[..., Record]


@pytest.fixture
def author_records(make_record: MakeRecord) -> list[Record]:
    """One DOI duplicate, one title duplicate and one review pair."""
    return [
        make_record("1", "Deep Learning", doi="10.1/X"),
        make_record("2", "Other", source="scopus", doi="https://doi.org/10.1/x"),
        make_record("3", "Neural net in medicine"),
        make_record("4", "Neural nets in medicine"),
        make_record("5", "Jellyfish"),
        make_record("6", "Smellyfish"),
    ]


# ========== deduplicate_batch ==========


@pytest.mark.unit
def test_batch_removes_duplicates_and_groups_reviews(author_records: list[Record]) -> None:
    """Test one batch produces survivors, a log and one review group."""
    result = deduplicate_batch(author_records, key="ada")

    assert [r.id for r in result.survivors] == ["2", "3", "5", "6"]
    assert result.removed_ids == frozenset({"1", "4"})
    assert [(e.removed_id, e.duplicate_of_id) for e in result.dedup_log] == [
        ("1", "2"),
        ("4", "3"),
    ]
    assert len(result.review_groups) == 1
    assert result.review_groups[0].record_ids == ("5", "6")
    assert result.review_groups[0].key == "ada"
    assert len(result.decisions) == 15


@pytest.mark.unit
def test_batch_summary_counts(author_records: list[Record]) -> None:
    """Test the summary counters of a batch before review."""
    summary = deduplicate_batch(author_records).summary

    assert summary.to_dict() == {
        "initial_count": 6,
        "final_count": 4,
        "auto_removed_count": 2,
        "pending_review_count": 2,
        "review_group_count": 1,
        "review_discarded_count": 0,
        "initial_by_source": {"orcid": 5, "scopus": 1},
    }


@pytest.mark.unit
def test_batch_empty_and_single() -> None:
    """Test degenerate batches pass through untouched."""
    assert deduplicate_batch([]).survivors == ()

    only = Record(id="x", source="orcid", title="Alone")
    result = deduplicate_batch([only])

    assert result.survivors == (only,)
    assert result.decisions == ()
    assert result.review_groups == ()


@pytest.mark.unit
def test_batch_rejects_duplicate_ids(make_record: MakeRecord) -> None:
    """Test repeated record ids raise RecordError naming the id."""
    with pytest.raises(RecordError) as exc_info:
        deduplicate_batch([make_record("a"), make_record("a", "Other")])

    assert exc_info.value.record_id == "a"


@pytest.mark.unit
def test_batch_survivors_independent_of_shuffle(author_records: list[Record]) -> None:
    """Test the surviving set does not depend on input order when priorities differ."""
    baseline = {r.id for r in deduplicate_batch(author_records).survivors}

    rng = random.Random(7)
    for _ in range(5):
        shuffled = list(author_records)
        rng.shuffle(shuffled)
        survivors = {r.id for r in deduplicate_batch(shuffled).survivors}
        # Ties inside one source follow batch order, so compare the DOI pair only
        assert "2" in survivors and "1" not in survivors
        assert len(survivors) == len(baseline)


@pytest.mark.unit
def test_batch_is_deterministic(author_records: list[Record]) -> None:
    """Test repeated runs give identical output."""
    first = deduplicate_batch(author_records)
    second = deduplicate_batch(author_records)

    assert first.survivors == second.survivors
    assert first.dedup_log == second.dedup_log
    assert first.review_groups == second.review_groups


@pytest.mark.unit
def test_batch_standard_mode_only_exact_titles(author_records: list[Record]) -> None:
    """Test standard mode keeps near-identical titles apart."""
    result = deduplicate_batch(author_records, DedupConfig(mode=MatchMode.STANDARD))

    assert result.removed_ids == frozenset({"1"})
    assert result.review_groups == ()


@pytest.mark.unit
def test_batch_logs_stage_and_removals(author_records: list[Record], tmp_path: Path) -> None:
    """Test the audit log receives stage, classification and removal events."""
    log_path = tmp_path / "events.jsonl"
    with AuditLogger(run_id="run-1", log_path=log_path) as logger:
        deduplicate_batch(author_records, key="ada", logger=logger)

    events = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    names = [e["event"] for e in events]

    assert names[0] == "stage_started"
    assert names[-1] == "stage_finished"
    assert "pairs_classified" in names
    assert "batch_finished" in names
    removed = [e for e in events if e["event"] == "record_removed"]
    assert [(e["rid"], e["data"]["duplicate_of"]) for e in removed] == [("1", "2"), ("4", "3")]
    assert all(e["stage"] == "deduplicate" for e in removed)
    assert "record_flagged" not in names


@pytest.mark.unit
def test_batch_flags_degraded_records(tmp_path: Path) -> None:
    """Test records with non-text or empty fields are reported at WARN."""
    records = [
        Record(id="1", source="orcid", title=123, doi=True),  # type: ignore[arg-type]
        Record(id="2", source="scopus", title=None, doi=["x"]),  # type: ignore[arg-type]
        Record(id="3", source="scopus", title="Clean title", doi="10.1/a"),
    ]
    log_path = tmp_path / "events.jsonl"
    with AuditLogger(run_id="run-1", log_path=log_path) as logger:
        result = deduplicate_batch(records, key="ada", logger=logger)

    events = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    validator = jsonschema.Draft202012Validator(load_schema("log_event"))
    for event in events:
        validator.validate(event)

    flagged = [e for e in events if e["event"] == "record_flagged"]
    assert [(e["rid"], e["data"]["reason_code"]) for e in flagged] == [
        ("1", "title_not_text"),
        ("1", "doi_not_text"),
        ("2", "doi_not_text"),
        ("2", "title_missing"),
    ]
    assert all(e["level"] == "WARN" and e["stage"] == "deduplicate" for e in flagged)
    finished = next(e for e in events if e["event"] == "stage_finished")
    assert finished["data"]["counters"]["records_flagged"] == 2
    # Flagged records stay in the batch
    assert [r.id for r in result.survivors] == ["1", "2", "3"]


# ========== BatchContext ==========


@pytest.mark.unit
def test_context_renumbers_groups_across_batches(make_record: MakeRecord) -> None:
    """Test review group ids are sequential over all batches."""
    context = BatchContext()
    context.run(
        {
            "ada": [make_record("a1", "Jellyfish"), make_record("a2", "Smellyfish")],
            "bob": [make_record("b1", "Jellyfish"), make_record("b2", "Smellyfish")],
        }
    )

    groups = context.review_groups

    assert [g.group_id for g in groups] == [1, 2]
    assert [g.key for g in groups] == ["ada", "bob"]


@pytest.mark.unit
def test_context_keeps_batches_apart(make_record: MakeRecord) -> None:
    """Test identical titles in different batches are never compared."""
    context = BatchContext()
    context.run({"ada": [make_record("a1", "Same")], "bob": [make_record("b1", "Same")]})

    assert [r.id for r in context.survivors] == ["a1", "b1"]
    assert context.dedup_log == []


@pytest.mark.unit
def test_context_rejects_ids_repeated_across_batches(make_record: MakeRecord) -> None:
    """Test ids must be unique over the whole run."""
    context = BatchContext()

    with pytest.raises(RecordError):
        context.run({"ada": [make_record("x")], "bob": [make_record("x", "Other")]})


@pytest.mark.unit
def test_context_reports_progress(make_record: MakeRecord) -> None:
    """Test the progress callback fires once per batch in order."""
    calls: list[tuple[int, int, str]] = []
    context = BatchContext()

    context.run(
        {"ada": [make_record("a1")], "bob": [make_record("b1")]},
        progress=lambda current, total, key: calls.append((current, total, key)),
    )

    assert calls == [(1, 2, "ada"), (2, 2, "bob")]


@pytest.mark.unit
def test_context_final_records_follow_review(author_records: list[Record]) -> None:
    """Test review discards shrink the final records and the summary."""
    context = BatchContext()
    context.run({"ada": author_records})

    assert [r.id for r in context.final_records()] == ["2", "3", "5", "6"]

    session = context.start_review()
    session.submit_decision(["5"])
    summary = context.summary()

    assert [r.id for r in context.final_records()] == ["2", "3", "5"]
    assert summary.final_count == 3
    assert summary.review_discarded_count == 1
    assert summary.pending_review_count == 0
    assert summary.auto_removed_count == 2


@pytest.mark.unit
def test_context_keeping_removed_record_does_not_resurrect(make_record: MakeRecord) -> None:
    """Test a review group member removed automatically stays removed."""
    records = [
        make_record("a", "Jellyfish"),
        make_record("b", "Jellyfish"),
        make_record("c", "Smellyfish"),
    ]
    context = BatchContext()
    context.run({"k": records})
    session = context.start_review()

    assert session.current_group().record_ids == ("a", "c", "b")

    session.submit_decision(["b"])

    assert [r.id for r in context.final_records()] == []
    assert context.summary().review_discarded_count == 2


@pytest.mark.unit
def test_context_pending_review_counts_undecided(author_records: list[Record]) -> None:
    """Test pending counts cover undecided groups only."""
    context = BatchContext()
    context.run({"ada": author_records})
    context.start_review()

    assert context.summary().pending_review_count == 2
    assert context.summary().final_count == 4


@pytest.mark.unit
def test_context_rerun_resets_review(author_records: list[Record]) -> None:
    """Test a new run drops the earlier session."""
    context = BatchContext()
    context.run({"ada": author_records})
    context.start_review()
    context.run({"ada": author_records})

    assert context.review_session is None
    assert len(context.results) == 1


# ========== DedupConfig ==========


@pytest.mark.unit
def test_config_defaults() -> None:
    """Test default configuration values."""
    config = DedupConfig()

    assert config.mode == MatchMode.APPROXIMATE
    assert (config.match_threshold, config.review_threshold) == (95, 88)
    assert config.priority == SourcePriority.default()
    assert config.canonical_source == "scopus"
    assert config.page_size == 6


@pytest.mark.unit
def test_config_coerces_mode_string() -> None:
    """Test mode strings are converted to MatchMode."""
    assert DedupConfig(mode="standard").mode == MatchMode.STANDARD

    with pytest.raises(ConfigurationError, match="mode"):
        DedupConfig(mode="fuzzy")


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs",
    [
        {"match_threshold": 101},
        {"review_threshold": -1},
        {"match_threshold": 80, "review_threshold": 90},
        {"match_threshold": 95.5},
        {"page_size": 0},
        {"page_size": True},
        {"priority": "scopus"},
    ],
)
def test_config_rejects_invalid_values(kwargs: dict) -> None:
    """Test invalid settings raise ConfigurationError."""
    with pytest.raises(ConfigurationError):
        DedupConfig(**kwargs)


@pytest.mark.unit
def test_config_blank_canonical_source_disables_exemption() -> None:
    """Test an empty canonical source becomes None."""
    assert DedupConfig(canonical_source="  ").canonical_source is None


@pytest.mark.unit
def test_config_from_dict_round_trip() -> None:
    """Test configs survive to_dict/from_dict."""
    config = DedupConfig(
        mode=MatchMode.STANDARD,
        match_threshold=97,
        review_threshold=90,
        priority=SourcePriority([("scopus", None), ("orcid", None)]),
        canonical_source=None,
        page_size=10,
    )

    assert DedupConfig.from_dict(config.to_dict()) == config


@pytest.mark.unit
def test_config_from_dict_rejects_unknown_keys() -> None:
    """Test unknown keys are reported."""
    with pytest.raises(ConfigurationError, match="threshold"):
        DedupConfig.from_dict({"threshold": 90})


@pytest.mark.unit
def test_config_from_dict_rejects_bad_priority() -> None:
    """Test malformed priority lists raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match="priority"):
        DedupConfig.from_dict({"priority": [["scopus"]]})


@pytest.mark.unit
def test_config_callable_priority_serialized_by_name() -> None:
    """Test a custom priority function is named in to_dict."""

    def newest_first(record: Record) -> int:
        return 0

    assert DedupConfig(priority=newest_first).to_dict()["priority"] == "newest_first"


@pytest.mark.unit
def test_summary_merge_adds_counters() -> None:
    """Test merged summaries add counters and per-source counts."""
    a = BatchSummary(initial_count=3, final_count=2, initial_by_source={"orcid": 3})
    b = BatchSummary(initial_count=2, final_count=2, initial_by_source={"orcid": 1, "scopus": 1})

    merged = a.merge(b)

    assert merged.initial_count == 5
    assert merged.final_count == 4
    assert merged.initial_by_source == {"orcid": 4, "scopus": 1}
