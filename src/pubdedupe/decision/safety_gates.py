"""Safety gates that keep a DUPLICATE verdict from removing a record.

The canonical source is trusted to be internally unique. Two of its
records matching each other signal a comparison artifact, so such pairs
are downgraded to DISTINCT and left for downstream handling.
"""

from pubdedupe.decision.models import ReasonCode, Verdict
from pubdedupe.models import Record


def is_same_canonical_source(
    record_a: Record,
    record_b: Record,
    canonical_source: str | None,
) -> bool:
    """Check whether both records come from the canonical source.

    Parameters
    ----------
    record_a : Record
        First record.
    record_b : Record
        Second record.
    canonical_source : str | None
        Name of the canonical source, or None to disable the gate.

    Returns
    -------
    bool
        True if the gate applies.
    """
    if canonical_source is None:
        return False
    return record_a.source == canonical_source and record_b.source == canonical_source


def check_safety_gates(
    record_a: Record,
    record_b: Record,
    verdict: Verdict,
    canonical_source: str | None,
) -> ReasonCode | None:
    """Return the reason a DUPLICATE verdict must be downgraded, if any.

    Parameters
    ----------
    record_a : Record
        First record.
    record_b : Record
        Second record.
    verdict : Verdict
        Verdict produced by the classifier.
    canonical_source : str | None
        Name of the canonical source.

    Returns
    -------
    ReasonCode | None
        SAME_CANONICAL_SOURCE when the gate fires, otherwise None.
        REVIEW and DISTINCT verdicts are never touched.
    """
    if verdict is Verdict.DUPLICATE and is_same_canonical_source(
        record_a, record_b, canonical_source
    ):
        return ReasonCode.SAME_CANONICAL_SOURCE
    return None
