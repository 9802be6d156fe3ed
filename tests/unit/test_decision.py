"""Tests for the three-way pair classifier."""

from collections.abc import Callable

import pytest

from pubdedupe.decision import (
    ConfigurationError,
    MatchMode,
    ReasonCode,
    Thresholds,
    Verdict,
    check_safety_gates,
    classify_batch,
    classify_pair,
    make_verdict,
    summarize,
)
from pubdedupe.normalize import NormalizedRecord

_DEFAULT = Thresholds(match=95, review=88)
_RANK = {Verdict.DISTINCT: 0, Verdict.REVIEW: 1, Verdict.DUPLICATE: 2}

Batch = Callable[..., list[NormalizedRecord]]


# ========== Single pairs ==========


@pytest.mark.unit
def test_doi_match_wins_over_titles(make_batch: Batch) -> None:
    """Test equal normalized DOIs are duplicates whatever the titles say."""
    a, b = make_batch(
        {"rid": "a", "title": "Deep Learning for X", "doi": "10.1/abc"},
        {"rid": "b", "title": "Something else entirely", "doi": "https://doi.org/10.1/ABC"},
    )

    for mode in MatchMode:
        decision = classify_pair(a, b, mode, _DEFAULT)
        assert decision.verdict == Verdict.DUPLICATE
        assert decision.reason == ReasonCode.DOI_EXACT
        assert decision.score is None


@pytest.mark.unit
def test_doi_match_with_missing_title(make_batch: Batch) -> None:
    """Test a DOI match needs no title."""
    a, b = make_batch(
        {"rid": "a", "title": None, "doi": "10.1/x"},
        {"rid": "b", "title": "Title", "doi": "10.1/X"},
    )

    assert classify_pair(a, b, MatchMode.APPROXIMATE, _DEFAULT).verdict == Verdict.DUPLICATE


@pytest.mark.unit
@pytest.mark.parametrize("mode", list(MatchMode))
def test_missing_title_is_distinct(make_batch: Batch, mode: MatchMode) -> None:
    """Test an empty normalized title never matches."""
    a, b = make_batch({"rid": "a", "title": "?!"}, {"rid": "b", "title": ""})

    decision = classify_pair(a, b, mode, _DEFAULT)

    assert decision.verdict == Verdict.DISTINCT
    assert decision.reason == ReasonCode.TITLE_MISSING


@pytest.mark.unit
def test_different_dois_fall_back_to_titles(make_batch: Batch) -> None:
    """Test differing DOIs do not block a title match."""
    a, b = make_batch(
        {"rid": "a", "title": "Graph methods", "doi": "10.1/a"},
        {"rid": "b", "title": "Graph Methods.", "doi": "10.1/b"},
    )

    decision = classify_pair(a, b, MatchMode.STANDARD, _DEFAULT)

    assert decision.verdict == Verdict.DUPLICATE
    assert decision.reason == ReasonCode.TITLE_EXACT


@pytest.mark.unit
def test_standard_mode_requires_exact_title(make_batch: Batch) -> None:
    """Test standard mode ignores near matches."""
    a, b = make_batch(
        {"rid": "a", "title": "Neural nets in medicine"},
        {"rid": "b", "title": "Neural net in medicine"},
    )

    decision = classify_pair(a, b, MatchMode.STANDARD, _DEFAULT)

    assert decision.verdict == Verdict.DISTINCT
    assert decision.reason == ReasonCode.TITLE_MISMATCH


@pytest.mark.unit
def test_approximate_mode_near_duplicate(make_batch: Batch) -> None:
    """Test a plural variant is a duplicate at 95%."""
    c, d = make_batch(
        {"rid": "c", "title": "Neural nets in medicine"},
        {"rid": "d", "title": "Neural net in medicine"},
    )

    decision = classify_pair(c, d, MatchMode.APPROXIMATE, _DEFAULT)

    assert decision.verdict == Verdict.DUPLICATE
    assert decision.reason == ReasonCode.SIMILARITY_ABOVE_MATCH
    assert decision.score == pytest.approx(0.9913, abs=1e-4)


@pytest.mark.unit
def test_approximate_mode_review(make_batch: Batch) -> None:
    """Test a mid-range score goes to review."""
    a, b = make_batch({"rid": "a", "title": "jellyfish"}, {"rid": "b", "title": "smellyfish"})

    decision = classify_pair(a, b, MatchMode.APPROXIMATE, _DEFAULT)

    assert decision.verdict == Verdict.REVIEW
    assert decision.reason == ReasonCode.SIMILARITY_ABOVE_REVIEW


@pytest.mark.unit
def test_pair_orientation(make_batch: Batch) -> None:
    """Test decisions are oriented by batch index whatever the call order."""
    a, b = make_batch({"rid": "a", "title": "jellyfish"}, {"rid": "b", "title": "smellyfish"})

    forward = classify_pair(a, b, MatchMode.APPROXIMATE, _DEFAULT)
    backward = classify_pair(b, a, MatchMode.APPROXIMATE, _DEFAULT)

    assert forward == backward
    assert (forward.index_a, forward.index_b) == (0, 1)
    assert forward.pair_id == "a|b"


# ========== Thresholds ==========


@pytest.mark.unit
def test_thresholds_are_strict() -> None:
    """Test a score equal to a threshold does not clear it."""
    assert make_verdict(0.95, _DEFAULT)[0] == Verdict.REVIEW
    assert make_verdict(0.88, _DEFAULT)[0] == Verdict.DISTINCT
    assert make_verdict(0.9501, _DEFAULT)[0] == Verdict.DUPLICATE
    assert make_verdict(None, _DEFAULT) == (Verdict.DISTINCT, ReasonCode.TITLE_MISSING)


@pytest.mark.unit
def test_verdict_monotonic_in_score() -> None:
    """Test a higher score never yields a weaker verdict."""
    scores = [i / 200 for i in range(201)]
    for thresholds in [_DEFAULT, Thresholds(90, 80), Thresholds(100, 96), Thresholds(90, 90)]:
        ranks = [_RANK[make_verdict(s, thresholds)[0]] for s in scores]
        assert ranks == sorted(ranks)


@pytest.mark.unit
def test_review_band_empty_when_thresholds_equal() -> None:
    """Test equal thresholds leave no review band."""
    thresholds = Thresholds(match=92, review=92)
    verdicts = {make_verdict(i / 100, thresholds)[0] for i in range(101)}
    assert Verdict.REVIEW not in verdicts


@pytest.mark.unit
def test_thresholds_validate() -> None:
    """Test invalid threshold combinations are rejected."""
    assert Thresholds(95, 88).validate() == Thresholds(95, 88)

    with pytest.raises(ConfigurationError):
        Thresholds(match=90, review=91).validate()
    with pytest.raises(ConfigurationError):
        Thresholds(match=101, review=88).validate()
    with pytest.raises(ConfigurationError):
        Thresholds(match=95, review=-1).validate()
    with pytest.raises(ConfigurationError):
        Thresholds(match=True, review=0).validate()  # type: ignore[arg-type]


@pytest.mark.unit
def test_thresholds_clamped_adjustment() -> None:
    """Test slider-style adjustment clamps and keeps review below match."""
    assert Thresholds(95, 88).with_match(50) == Thresholds(90, 88)
    assert Thresholds(95, 92).with_match(91) == Thresholds(91, 90)
    assert Thresholds(95, 88).with_review(97) == Thresholds(97, 96)
    assert Thresholds(95, 88).with_review(70) == Thresholds(95, 80)
    assert Thresholds(95, 88).to_dict() == {"match_threshold": 95, "review_threshold": 88}


# ========== Safety gates ==========


@pytest.mark.unit
def test_same_canonical_source_duplicates_downgraded(make_batch: Batch) -> None:
    """Test two canonical-source records are never auto-duplicates."""
    batch = make_batch(
        {"rid": "s1", "title": "Same", "doi": "10.1/x", "source": "scopus"},
        {"rid": "s2", "title": "Same", "doi": "10.1/x", "source": "scopus"},
    )

    (decision,) = classify_batch(batch, MatchMode.APPROXIMATE, _DEFAULT, canonical_source="scopus")

    assert decision.verdict == Verdict.DISTINCT
    assert decision.reason == ReasonCode.SAME_CANONICAL_SOURCE


@pytest.mark.unit
def test_gate_disabled_without_canonical_source(make_batch: Batch) -> None:
    """Test no gate applies when no canonical source is configured."""
    batch = make_batch(
        {"rid": "s1", "title": "Same", "source": "scopus"},
        {"rid": "s2", "title": "Same", "source": "scopus"},
    )

    (decision,) = classify_batch(batch, MatchMode.STANDARD, _DEFAULT)

    assert decision.verdict == Verdict.DUPLICATE


@pytest.mark.unit
def test_gate_leaves_review_verdicts(make_batch: Batch) -> None:
    """Test only DUPLICATE verdicts are downgraded."""
    a, b = make_batch(
        {"rid": "s1", "title": "x", "source": "scopus"},
        {"rid": "s2", "title": "y", "source": "scopus"},
    )

    assert check_safety_gates(a.record, b.record, Verdict.REVIEW, "scopus") is None
    assert check_safety_gates(a.record, b.record, Verdict.DISTINCT, "scopus") is None
    assert (
        check_safety_gates(a.record, b.record, Verdict.DUPLICATE, "scopus")
        == ReasonCode.SAME_CANONICAL_SOURCE
    )


# ========== Batches ==========


@pytest.mark.unit
def test_classify_batch_all_pairs_in_order(make_batch: Batch) -> None:
    """Test every unordered pair is classified once, in index order."""
    batch = make_batch(*({"rid": f"r{i}", "title": f"title {i}"} for i in range(5)))

    decisions = classify_batch(batch, MatchMode.APPROXIMATE, _DEFAULT)

    assert len(decisions) == 10
    pairs = [(d.index_a, d.index_b) for d in decisions]
    assert pairs == sorted(pairs)
    assert all(a < b for a, b in pairs)


@pytest.mark.unit
def test_classify_batch_trivial_sizes(make_batch: Batch) -> None:
    """Test empty and single-record batches have no pairs."""
    assert classify_batch([], MatchMode.APPROXIMATE, _DEFAULT) == []
    assert classify_batch(make_batch({"rid": "a"}), MatchMode.APPROXIMATE, _DEFAULT) == []


@pytest.mark.unit
def test_summarize_counts(make_batch: Batch) -> None:
    """Test verdict counters add up to the number of pairs."""
    batch = make_batch(
        {"rid": "a", "title": "jellyfish"},
        {"rid": "b", "title": "smellyfish"},
        {"rid": "c", "title": "Jellyfish!"},
        {"rid": "d", "title": None},
    )

    summary = summarize(classify_batch(batch, MatchMode.APPROXIMATE, _DEFAULT))

    assert summary.pairs_in == 6
    assert summary.duplicate == 1
    assert summary.review == 2
    assert summary.distinct == 3
    assert summary.duplicate + summary.review + summary.distinct == summary.pairs_in
