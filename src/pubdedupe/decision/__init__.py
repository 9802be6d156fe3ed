"""Three-way pairwise classification.

This module implements the decision layer that converts record pairs into
DUPLICATE, REVIEW or DISTINCT verdicts.
"""

from pubdedupe.decision.models import (
    MATCH_THRESHOLD_BOUNDS,
    REVIEW_THRESHOLD_BOUNDS,
    ConfigurationError,
    DecisionSummary,
    MatchMode,
    PairDecision,
    ReasonCode,
    Thresholds,
    Verdict,
)
from pubdedupe.decision.policy import (
    classify_batch,
    classify_pair,
    make_verdict,
    summarize,
)
from pubdedupe.decision.safety_gates import check_safety_gates, is_same_canonical_source

__all__ = [
    "MATCH_THRESHOLD_BOUNDS",
    "REVIEW_THRESHOLD_BOUNDS",
    "ConfigurationError",
    "DecisionSummary",
    "MatchMode",
    "PairDecision",
    "ReasonCode",
    "Thresholds",
    "Verdict",
    "check_safety_gates",
    "classify_batch",
    "classify_pair",
    "is_same_canonical_source",
    "make_verdict",
    "summarize",
]
