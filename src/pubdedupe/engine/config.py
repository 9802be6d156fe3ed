"""Engine configuration and result dataclasses."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pubdedupe.audit import BatchStats
from pubdedupe.clustering import ReviewGroup
from pubdedupe.decision import ConfigurationError, MatchMode, PairDecision, Thresholds
from pubdedupe.merge import DeduplicationLogEntry
from pubdedupe.models import PriorityFunc, Record, SourcePriority
from pubdedupe.review import DEFAULT_PAGE_SIZE

# Keys accepted by DedupConfig.from_dict
CONFIG_KEYS: frozenset[str] = frozenset(
    {
        "mode",
        "match_threshold",
        "review_threshold",
        "priority",
        "canonical_source",
        "page_size",
    }
)


@dataclass
class DedupConfig:
    """Configuration for one deduplication run.

    Attributes
    ----------
    mode : MatchMode
        Title comparison strategy (default: approximate).
    match_threshold : int
        Percent above which titles are duplicates (default: 95).
    review_threshold : int
        Percent above which titles go to review (default: 88).
    priority : SourcePriority | PriorityFunc
        Source ranking deciding which duplicate survives; any
        ``record -> int`` callable works (lower wins).
    canonical_source : str | None
        Source whose records are never removed against each other
        (default: "scopus"). None disables the exemption.
    page_size : int
        Records per review page (default: 6).
    """

    mode: MatchMode = MatchMode.APPROXIMATE
    match_threshold: int = 95
    review_threshold: int = 88
    priority: SourcePriority | PriorityFunc = field(default_factory=SourcePriority.default)
    canonical_source: str | None = "scopus"
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        """Coerce enums and validate."""
        try:
            self.mode = MatchMode(self.mode)
        except ValueError as e:
            valid = ", ".join(m.value for m in MatchMode)
            raise ConfigurationError(f"mode must be one of {valid}, got {self.mode!r}") from e

        self.thresholds.validate()

        if not callable(self.priority):
            raise ConfigurationError(
                f"priority must be a SourcePriority or callable, got {type(self.priority).__name__}"
            )

        if self.canonical_source is not None and not str(self.canonical_source).strip():
            self.canonical_source = None

        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise ConfigurationError(f"page_size must be an integer, got {self.page_size!r}")
        if self.page_size < 1:
            raise ConfigurationError(f"page_size must be positive, got {self.page_size}")

    @property
    def thresholds(self) -> Thresholds:
        """Thresholds view of the two percent values."""
        return Thresholds(match=self.match_threshold, review=self.review_threshold)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (JSON-compatible)."""
        return {
            "mode": self.mode.value,
            "match_threshold": self.match_threshold,
            "review_threshold": self.review_threshold,
            "priority": (
                self.priority.to_list()
                if isinstance(self.priority, SourcePriority)
                else getattr(self.priority, "__name__", repr(self.priority))
            ),
            "canonical_source": self.canonical_source,
            "page_size": self.page_size,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DedupConfig":
        """Build a config from a mapping (e.g. a JSON config file).

        Parameters
        ----------
        data : Mapping[str, Any]
            Any subset of ``CONFIG_KEYS``; ``priority`` is a list of
            ``[source, origin_detail | null]`` pairs, best first.

        Returns
        -------
        DedupConfig
            Validated configuration.

        Raises
        ------
        ConfigurationError
            If a key is unknown or a value is invalid.
        """
        unknown = sorted(set(data) - CONFIG_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {k: v for k, v in data.items() if k != "priority"}
        if data.get("priority") is not None:
            try:
                kwargs["priority"] = SourcePriority(
                    (entry[0], entry[1]) for entry in data["priority"]
                )
            except (TypeError, IndexError, ValueError) as e:
                raise ConfigurationError(f"Invalid priority list: {e}") from e

        return cls(**kwargs)


@dataclass
class BatchSummary:
    """Record-level counters for one or more batches.

    Attributes
    ----------
    initial_count : int
        Records read.
    final_count : int
        Records left after automatic resolution and review discards.
    auto_removed_count : int
        Records removed automatically.
    pending_review_count : int
        Records in groups not decided yet.
    review_group_count : int
        Review groups built.
    review_discarded_count : int
        Surviving records discarded by a reviewer.
    initial_by_source : dict[str, int]
        Records read per source.
    """

    initial_count: int = 0
    final_count: int = 0
    auto_removed_count: int = 0
    pending_review_count: int = 0
    review_group_count: int = 0
    review_discarded_count: int = 0
    initial_by_source: dict[str, int] = field(default_factory=dict)

    def merge(self, other: "BatchSummary") -> "BatchSummary":
        """Add another summary's counters to a new summary."""
        by_source = dict(self.initial_by_source)
        for source, count in other.initial_by_source.items():
            by_source[source] = by_source.get(source, 0) + count
        return BatchSummary(
            initial_count=self.initial_count + other.initial_count,
            final_count=self.final_count + other.final_count,
            auto_removed_count=self.auto_removed_count + other.auto_removed_count,
            pending_review_count=self.pending_review_count + other.pending_review_count,
            review_group_count=self.review_group_count + other.review_group_count,
            review_discarded_count=self.review_discarded_count + other.review_discarded_count,
            initial_by_source=dict(sorted(by_source.items())),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "initial_count": self.initial_count,
            "final_count": self.final_count,
            "auto_removed_count": self.auto_removed_count,
            "pending_review_count": self.pending_review_count,
            "review_group_count": self.review_group_count,
            "review_discarded_count": self.review_discarded_count,
            "initial_by_source": dict(self.initial_by_source),
        }


@dataclass(frozen=True)
class BatchResult:
    """Outcome of :func:`deduplicate_batch` for one batch.

    Attributes
    ----------
    key : str | None
        Batch key (author or grouping column value).
    records : tuple[Record, ...]
        Input records in batch order.
    decisions : tuple[PairDecision, ...]
        One verdict per unordered pair.
    survivors : tuple[Record, ...]
        Records left after automatic resolution, in batch order.
    dedup_log : tuple[DeduplicationLogEntry, ...]
        One entry per automatically removed record.
    review_groups : tuple[ReviewGroup, ...]
        Groups awaiting human review.
    summary : BatchSummary
        Counters before any review decision.
    """

    key: str | None
    records: tuple[Record, ...]
    decisions: tuple[PairDecision, ...]
    survivors: tuple[Record, ...]
    dedup_log: tuple[DeduplicationLogEntry, ...]
    review_groups: tuple[ReviewGroup, ...]
    summary: BatchSummary

    @property
    def removed_ids(self) -> frozenset[str]:
        """Records removed automatically."""
        return frozenset(entry.removed_id for entry in self.dedup_log)

    def stats(self) -> BatchStats:
        """Per-batch counters for the run manifest."""
        return BatchStats(
            key=self.key,
            records_in=self.summary.initial_count,
            records_out=self.summary.final_count,
            auto_removed=self.summary.auto_removed_count,
            review_groups=self.summary.review_group_count,
        )
