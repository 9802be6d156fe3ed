"""Data models for the pairwise classifier.

This module defines verdicts, match modes, reason codes, thresholds and
the per-pair decision record.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# UI bounds for the two similarity sliders (percent)
MATCH_THRESHOLD_BOUNDS: tuple[int, int] = (90, 100)
REVIEW_THRESHOLD_BOUNDS: tuple[int, int] = (80, 96)


class ConfigurationError(ValueError):
    """Raised when deduplication settings violate their contract."""


class Verdict(StrEnum):
    """Three-way pair verdicts.

    Attributes
    ----------
    DUPLICATE : str
        Same publication; resolved automatically by source priority.
    REVIEW : str
        Ambiguous; routed to a human reviewer.
    DISTINCT : str
        Different publications.
    """

    DUPLICATE = "DUPLICATE"
    REVIEW = "REVIEW"
    DISTINCT = "DISTINCT"


class MatchMode(StrEnum):
    """Title comparison strategy.

    Attributes
    ----------
    STANDARD : str
        Exact normalized-title equality (plus DOI match).
    APPROXIMATE : str
        Jaro-Winkler similarity against two thresholds (plus DOI match).
    """

    STANDARD = "standard"
    APPROXIMATE = "approximate"


class ReasonCode(StrEnum):
    """Reason codes explaining a pair verdict.

    Attributes
    ----------
    DOI_EXACT : str
        Both DOIs normalize to the same non-empty string.
    TITLE_EXACT : str
        Normalized titles are equal (standard mode).
    TITLE_MISMATCH : str
        Normalized titles differ (standard mode).
    TITLE_MISSING : str
        At least one normalized title is empty.
    SIMILARITY_ABOVE_MATCH : str
        score > match threshold.
    SIMILARITY_ABOVE_REVIEW : str
        review threshold < score <= match threshold.
    SIMILARITY_BELOW_REVIEW : str
        score <= review threshold.
    SAME_CANONICAL_SOURCE : str
        Both records come from the canonical source; never auto-removed.
    """

    DOI_EXACT = "doi_exact"
    TITLE_EXACT = "title_exact"
    TITLE_MISMATCH = "title_mismatch"
    TITLE_MISSING = "title_missing"
    SIMILARITY_ABOVE_MATCH = "similarity_above_match"
    SIMILARITY_ABOVE_REVIEW = "similarity_above_review"
    SIMILARITY_BELOW_REVIEW = "similarity_below_review"
    SAME_CANONICAL_SOURCE = "same_canonical_source"


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


@dataclass(frozen=True)
class Thresholds:
    """Similarity thresholds in integer percent.

    Attributes
    ----------
    match : int
        Scores strictly above ``match / 100`` are duplicates.
    review : int
        Scores strictly above ``review / 100`` (and not duplicates)
        go to review. Must not exceed ``match``.
    """

    match: int = 95
    review: int = 88

    def validate(self) -> "Thresholds":
        """Check the threshold contract.

        Returns
        -------
        Thresholds
            Self, for chaining.

        Raises
        ------
        ConfigurationError
            If a value lies outside 0..100 or review exceeds match.
        """
        for name, value in (("match_threshold", self.match), ("review_threshold", self.review)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer percent, got {value!r}")
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be in [0, 100], got {value}")
        if self.review > self.match:
            raise ConfigurationError(
                f"review_threshold ({self.review}) must not exceed match_threshold ({self.match})"
            )
        return self

    @property
    def match_ratio(self) -> float:
        """Match threshold as a fraction."""
        return self.match / 100

    @property
    def review_ratio(self) -> float:
        """Review threshold as a fraction."""
        return self.review / 100

    def with_match(self, value: int) -> "Thresholds":
        """Move the match threshold, dragging review down if they cross.

        The new match value is clamped to [90, 100]. When it lands at or
        below the current review threshold, review becomes
        ``max(80, match - 1)``.

        Parameters
        ----------
        value : int
            Requested match threshold.

        Returns
        -------
        Thresholds
            Adjusted thresholds.
        """
        match = _clamp(value, MATCH_THRESHOLD_BOUNDS)
        if match <= self.review:
            return Thresholds(match=match, review=max(REVIEW_THRESHOLD_BOUNDS[0], match - 1))
        return Thresholds(match=match, review=self.review)

    def with_review(self, value: int) -> "Thresholds":
        """Move the review threshold, pushing match up if they cross.

        The new review value is clamped to [80, 96]. When it lands at or
        above the current match threshold, match becomes
        ``min(100, review + 1)``.

        Parameters
        ----------
        value : int
            Requested review threshold.

        Returns
        -------
        Thresholds
            Adjusted thresholds.
        """
        review = _clamp(value, REVIEW_THRESHOLD_BOUNDS)
        if review >= self.match:
            return Thresholds(match=min(MATCH_THRESHOLD_BOUNDS[1], review + 1), review=review)
        return Thresholds(match=self.match, review=review)

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary.

        Returns
        -------
        dict[str, int]
            Dictionary with match_threshold and review_threshold keys.
        """
        return {"match_threshold": self.match, "review_threshold": self.review}


@dataclass(frozen=True)
class PairDecision:
    """Verdict for one unordered record pair.

    Attributes
    ----------
    index_a : int
        Batch position of the first record (always < index_b).
    index_b : int
        Batch position of the second record.
    rid_a : str
        First record ID.
    rid_b : str
        Second record ID.
    verdict : Verdict
        Classification outcome.
    reason : ReasonCode
        Why the verdict was reached.
    score : float | None
        Title similarity when one was computed.
    """

    index_a: int
    index_b: int
    rid_a: str
    rid_b: str
    verdict: Verdict
    reason: ReasonCode
    score: float | None = None

    @property
    def pair_id(self) -> str:
        """Pair identifier (format: "rid_a|rid_b")."""
        return f"{self.rid_a}|{self.rid_b}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Returns
        -------
        dict[str, Any]
            Dictionary representation.
        """
        return {
            "pair_id": self.pair_id,
            "rid_a": self.rid_a,
            "rid_b": self.rid_b,
            "verdict": self.verdict.value,
            "reason": self.reason.value,
            "score": self.score,
        }


@dataclass(frozen=True)
class DecisionSummary:
    """Verdict counts for one batch.

    Attributes
    ----------
    pairs_in : int
        Total pairs compared.
    duplicate : int
        DUPLICATE verdicts.
    review : int
        REVIEW verdicts.
    distinct : int
        DISTINCT verdicts.
    same_source_exempt : int
        Duplicates downgraded because both records came from the
        canonical source.
    """

    pairs_in: int
    duplicate: int
    review: int
    distinct: int
    same_source_exempt: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to counters dictionary."""
        return {
            "pairs_in": self.pairs_in,
            "duplicate": self.duplicate,
            "review": self.review,
            "distinct": self.distinct,
            "same_source_exempt": self.same_source_exempt,
        }
