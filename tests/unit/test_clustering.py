"""Tests for review group construction."""

import random
from collections.abc import Callable

import pytest

from pubdedupe.clustering import (
    ReviewGroup,
    ReviewMember,
    build_review_graph,
    build_review_groups,
    format_similarity,
)
from pubdedupe.decision import (
    MatchMode,
    PairDecision,
    ReasonCode,
    Thresholds,
    Verdict,
    classify_batch,
)
from pubdedupe.normalize import NormalizedRecord

Batch = Callable[..., list[NormalizedRecord]]


def _review(i: int, j: int, score: float = 0.9) -> PairDecision:
    return PairDecision(
        index_a=i,
        index_b=j,
        rid_a=f"r{i}",
        rid_b=f"r{j}",
        verdict=Verdict.REVIEW,
        reason=ReasonCode.SIMILARITY_ABOVE_REVIEW,
        score=score,
    )


def _distinct(i: int, j: int) -> PairDecision:
    return PairDecision(
        index_a=i,
        index_b=j,
        rid_a=f"r{i}",
        rid_b=f"r{j}",
        verdict=Verdict.DISTINCT,
        reason=ReasonCode.SIMILARITY_BELOW_REVIEW,
        score=0.1,
    )


@pytest.fixture
def six(make_batch: Batch) -> list[NormalizedRecord]:
    """Six records r0..r5 with distinct titles."""
    return make_batch(*({"rid": f"r{i}", "title": f"paper {i}"} for i in range(6)))


@pytest.mark.unit
def test_components_are_maximal(six: list[NormalizedRecord]) -> None:
    """Test chained REVIEW links form one group and isolated records none."""
    decisions = [_review(0, 1), _review(1, 2), _review(3, 4), _distinct(2, 3), _distinct(0, 5)]

    groups = build_review_groups(decisions, six)

    assert [g.record_ids for g in groups] == [("r0", "r1", "r2"), ("r3", "r4")]
    assert [g.group_id for g in groups] == [1, 2]
    assert all("r5" not in g for g in groups)


@pytest.mark.unit
def test_every_review_edge_inside_one_group(six: list[NormalizedRecord]) -> None:
    """Test groups partition the records touched by REVIEW edges."""
    decisions = [_review(0, 4), _review(2, 5), _review(4, 5), _review(1, 3)]

    groups = build_review_groups(decisions, six)
    group_of = {rid: g.group_id for g in groups for rid in g.record_ids}

    assert sum(len(g) for g in groups) == len(group_of)
    for d in decisions:
        assert group_of[d.rid_a] == group_of[d.rid_b]
    assert len(groups) == 2


@pytest.mark.unit
def test_breadth_first_member_order(six: list[NormalizedRecord]) -> None:
    """Test members are listed in BFS order from the first-seen node."""
    decisions = [_review(1, 2), _review(0, 3), _review(0, 1)]

    (group,) = build_review_groups(decisions, six)

    assert group.record_ids == ("r0", "r1", "r3", "r2")


@pytest.mark.unit
def test_groups_independent_of_decision_order(six: list[NormalizedRecord]) -> None:
    """Test shuffled decisions yield identical groups."""
    decisions = [_review(0, 4), _review(2, 5), _review(4, 5), _review(1, 3), _distinct(0, 1)]
    expected = build_review_groups(decisions, six)

    for seed in range(5):
        shuffled = list(decisions)
        random.Random(seed).shuffle(shuffled)
        assert build_review_groups(shuffled, six) == expected


@pytest.mark.unit
def test_member_similarity_is_best_edge(six: list[NormalizedRecord]) -> None:
    """Test each member carries its highest REVIEW similarity."""
    decisions = [_review(0, 1, 0.90), _review(1, 2, 0.934)]

    (group,) = build_review_groups(decisions, six)
    scores = {m.rid: m.similarity for m in group}

    assert scores == {"r0": 0.90, "r1": 0.934, "r2": 0.934}
    assert group.members[1].similarity_label == "93.4%"
    assert format_similarity(0.8963) == "89.6%"


@pytest.mark.unit
def test_no_review_pairs_no_groups(six: list[NormalizedRecord]) -> None:
    """Test a batch without REVIEW verdicts has no groups."""
    assert build_review_groups([_distinct(0, 1)], six) == []
    assert len(build_review_graph([])) == 0


@pytest.mark.unit
def test_groups_from_classifier(make_batch: Batch) -> None:
    """Test the ambiguous-title scenario yields one group with both records."""
    batch = make_batch(
        {"rid": "C", "title": "jellyfish"},
        {"rid": "D", "title": "smellyfish"},
        {"rid": "E", "title": "Completely unrelated"},
    )
    decisions = classify_batch(batch, MatchMode.APPROXIMATE, Thresholds())

    (group,) = build_review_groups(decisions, batch, key="author-1", first_group_id=7)

    assert group.record_ids == ("C", "D")
    assert group.group_id == 7
    assert group.key == "author-1"


@pytest.mark.unit
def test_group_needs_two_members(make_record: Callable) -> None:
    """Test a group of one record is rejected."""
    member = ReviewMember(record=make_record("a"), index=0, similarity=0.9)

    with pytest.raises(ValueError, match="at least 2"):
        ReviewGroup(group_id=1, members=(member,))


@pytest.mark.unit
def test_group_membership_and_differences(make_record: Callable) -> None:
    """Test containment by record or id and differing-field detection."""
    a = make_record("a", "Graph methods", doi="10.1/x", year=2020)
    b = make_record("b", "Graph Methods ", doi="10.1/x", year=2021, journal="J")
    group = ReviewGroup(
        group_id=1,
        members=(
            ReviewMember(record=a, index=0, similarity=0.9),
            ReviewMember(record=b, index=1, similarity=0.9),
        ),
    )

    assert a in group
    assert "b" in group
    assert "zzz" not in group
    assert group.records == (a, b)
    assert group.differing_fields() == ["year", "journal"]


@pytest.mark.unit
def test_group_dict_round_trip(six: list[NormalizedRecord]) -> None:
    """Test a serialized group reads back equal."""
    (group,) = build_review_groups([_review(0, 1, 0.91)], six, key="k")

    assert ReviewGroup.from_dict(group.to_dict()) == group
    assert group.renumbered(5).group_id == 5
