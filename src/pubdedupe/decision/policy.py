"""Pairwise classification policy.

This module turns pairs of normalized records into DUPLICATE, REVIEW or
DISTINCT verdicts. DOI equality always wins; otherwise titles are compared
either exactly (standard mode) or by Jaro-Winkler similarity against two
thresholds (approximate mode).
"""

from collections.abc import Sequence
from dataclasses import replace

from pubdedupe.audit.logger import AuditLogger
from pubdedupe.decision.models import (
    DecisionSummary,
    MatchMode,
    PairDecision,
    ReasonCode,
    Thresholds,
    Verdict,
)
from pubdedupe.decision.safety_gates import check_safety_gates
from pubdedupe.normalize import NormalizedRecord, dois_match
from pubdedupe.scoring import title_similarity


def make_verdict(
    score: float | None,
    thresholds: Thresholds,
) -> tuple[Verdict, ReasonCode]:
    """Map a similarity score onto a verdict.

    Parameters
    ----------
    score : float | None
        Title similarity, None when a title was missing.
    thresholds : Thresholds
        Match and review thresholds.

    Returns
    -------
    tuple[Verdict, ReasonCode]
        Verdict and the reason for it.
    """
    if score is None:
        return Verdict.DISTINCT, ReasonCode.TITLE_MISSING

    if score > thresholds.match_ratio:
        return Verdict.DUPLICATE, ReasonCode.SIMILARITY_ABOVE_MATCH

    if score > thresholds.review_ratio:
        return Verdict.REVIEW, ReasonCode.SIMILARITY_ABOVE_REVIEW

    return Verdict.DISTINCT, ReasonCode.SIMILARITY_BELOW_REVIEW


def classify_pair(
    a: NormalizedRecord,
    b: NormalizedRecord,
    mode: MatchMode,
    thresholds: Thresholds,
) -> PairDecision:
    """Classify a single record pair.

    Parameters
    ----------
    a : NormalizedRecord
        First record.
    b : NormalizedRecord
        Second record.
    mode : MatchMode
        Title comparison strategy.
    thresholds : Thresholds
        Thresholds for approximate mode (ignored in standard mode).

    Returns
    -------
    PairDecision
        Verdict, ordered so that ``index_a < index_b``.
    """
    if a.index > b.index:
        a, b = b, a

    score: float | None = None

    if dois_match(a.doi_norm, b.doi_norm):
        verdict, reason = Verdict.DUPLICATE, ReasonCode.DOI_EXACT
    elif not a.has_title or not b.has_title:
        verdict, reason = Verdict.DISTINCT, ReasonCode.TITLE_MISSING
    elif mode == MatchMode.STANDARD:
        if a.title_norm == b.title_norm:
            verdict, reason = Verdict.DUPLICATE, ReasonCode.TITLE_EXACT
        else:
            verdict, reason = Verdict.DISTINCT, ReasonCode.TITLE_MISMATCH
    else:
        score = title_similarity(a.title_norm, b.title_norm)
        verdict, reason = make_verdict(score, thresholds)

    return PairDecision(
        index_a=a.index,
        index_b=b.index,
        rid_a=a.rid,
        rid_b=b.rid,
        verdict=verdict,
        reason=reason,
        score=score,
    )


def classify_batch(
    normalized: Sequence[NormalizedRecord],
    mode: MatchMode,
    thresholds: Thresholds,
    *,
    canonical_source: str | None = None,
    logger: AuditLogger | None = None,
) -> list[PairDecision]:
    """Classify every unordered pair of a batch.

    Pairs are emitted in ``(index_a, index_b)`` order. DUPLICATE verdicts
    between two canonical-source records are downgraded to DISTINCT.

    Parameters
    ----------
    normalized : Sequence[NormalizedRecord]
        Normalized batch records in batch order.
    mode : MatchMode
        Title comparison strategy.
    thresholds : Thresholds
        Similarity thresholds.
    canonical_source : str | None, optional
        Source trusted to be internally unique, by default None.
    logger : AuditLogger | None, optional
        Audit logger for stage events, by default None.

    Returns
    -------
    list[PairDecision]
        One decision per pair, ``n * (n - 1) / 2`` in total.
    """
    decisions: list[PairDecision] = []

    for i, a in enumerate(normalized):
        for b in normalized[i + 1 :]:
            decision = classify_pair(a, b, mode, thresholds)
            gate = check_safety_gates(a.record, b.record, decision.verdict, canonical_source)
            if gate is not None:
                decision = replace(decision, verdict=Verdict.DISTINCT, reason=gate)
            decisions.append(decision)

    if logger is not None:
        logger.event(
            "pairs_classified",
            data={"mode": str(mode), **thresholds.to_dict(), **summarize(decisions).to_dict()},
        )

    return decisions


def summarize(decisions: Sequence[PairDecision]) -> DecisionSummary:
    """Count verdicts.

    Parameters
    ----------
    decisions : Sequence[PairDecision]
        Pair decisions of one batch.

    Returns
    -------
    DecisionSummary
        Verdict counters.
    """
    counts: dict[Verdict, int] = dict.fromkeys(Verdict, 0)
    exempt = 0
    for decision in decisions:
        counts[decision.verdict] += 1
        if decision.reason is ReasonCode.SAME_CANONICAL_SOURCE:
            exempt += 1

    return DecisionSummary(
        pairs_in=len(decisions),
        duplicate=counts[Verdict.DUPLICATE],
        review=counts[Verdict.REVIEW],
        distinct=counts[Verdict.DISTINCT],
        same_source_exempt=exempt,
    )
