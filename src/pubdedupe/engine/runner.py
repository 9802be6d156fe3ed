"""Batch deduplication runner.

One batch (typically the publications of one author) flows through four
deterministic steps:

    1. Normalization of titles and DOIs
    2. All-pairs classification (DUPLICATE / REVIEW / DISTINCT)
    3. Priority resolution of DUPLICATE pairs
    4. Clustering of REVIEW pairs into review groups

Human review happens afterwards through :class:`BatchContext.start_review`.
"""

import time
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace

from pubdedupe.audit.logger import AuditLogger
from pubdedupe.clustering import ReviewGroup, build_review_groups
from pubdedupe.decision import classify_batch
from pubdedupe.engine.config import BatchResult, BatchSummary, DedupConfig
from pubdedupe.merge import DeduplicationLogEntry, apply_resolution, resolve_duplicates
from pubdedupe.models import Record, RecordError
from pubdedupe.normalize import (
    DOI_NOT_TEXT,
    TITLE_MISSING,
    TITLE_NOT_TEXT,
    NormalizedRecord,
    normalize_batch,
)
from pubdedupe.review import ReviewSession

__all__ = ["BatchContext", "ProgressCallback", "deduplicate_batch"]

STAGE_NAME = "deduplicate"

_FLAG_MESSAGES = {
    TITLE_NOT_TEXT: "title is not text; compared as its string form or as missing",
    DOI_NOT_TEXT: "DOI is not text; compared as its string form or as missing",
    TITLE_MISSING: "no comparable title; record can only match by DOI",
}

# progress(current, total, key)
ProgressCallback = Callable[[int, int, str], None]


def _check_unique_ids(records: Sequence[Record], seen: set[str] | None = None) -> None:
    seen = set() if seen is None else seen
    for record in records:
        if record.id in seen:
            raise RecordError(f"Duplicate record id in batch: {record.id!r}", record_id=record.id)
        seen.add(record.id)


def _report_flags(normalized: Sequence[NormalizedRecord], logger: AuditLogger | None) -> int:
    """Log one ``record_flagged`` event per quality flag; return records flagged."""
    flagged = [item for item in normalized if item.flags]
    if logger is not None:
        for item in flagged:
            for flag in item.flags:
                logger.record_flagged(
                    item.rid, flag, message=_FLAG_MESSAGES[flag], stage=STAGE_NAME
                )
    return len(flagged)


def _count_by_source(records: Sequence[Record]) -> dict[str, int]:
    return dict(sorted(Counter(record.source for record in records).items()))


def deduplicate_batch(
    records: Sequence[Record],
    config: DedupConfig | None = None,
    *,
    key: str | None = None,
    logger: AuditLogger | None = None,
) -> BatchResult:
    """Deduplicate one batch of records.

    Parameters
    ----------
    records : Sequence[Record]
        Batch records; order decides tie-breaks.
    config : DedupConfig | None, optional
        Run configuration. If None, uses defaults.
    key : str | None, optional
        Batch key copied onto the result and its review groups.
    logger : AuditLogger | None, optional
        Audit logger for stage, quality flag and removal events.

    Returns
    -------
    BatchResult
        Survivors, deduplication log and review groups.

    Raises
    ------
    RecordError
        If two records share an id.

    Examples
    --------
    >>> from pubdedupe.models import Record
    >>> result = deduplicate_batch([
    ...     Record(id="1", source="orcid", title="Deep Learning", doi="10.1/X"),
    ...     Record(id="2", source="scopus", title="Other", doi="https://doi.org/10.1/x"),
    ... ])
    >>> [r.id for r in result.survivors]
    ['2']
    """
    if config is None:
        config = DedupConfig()

    records = tuple(records)
    _check_unique_ids(records)

    started = time.perf_counter()
    if logger is not None:
        logger.stage_started(STAGE_NAME, expected_records=len(records))

    normalized = normalize_batch(records)
    flagged = _report_flags(normalized, logger)
    decisions = classify_batch(
        normalized,
        config.mode,
        config.thresholds,
        canonical_source=config.canonical_source,
        logger=logger,
    )
    resolution = resolve_duplicates(
        decisions,
        normalized,
        config.priority,
        canonical_source=config.canonical_source,
        logger=logger,
    )
    survivors = tuple(item.record for item in apply_resolution(normalized, resolution))
    groups = build_review_groups(decisions, normalized, key=key)

    summary = BatchSummary(
        initial_count=len(records),
        final_count=len(survivors),
        auto_removed_count=len(resolution.removed_ids),
        pending_review_count=sum(len(group) for group in groups),
        review_group_count=len(groups),
        review_discarded_count=0,
        initial_by_source=_count_by_source(records),
    )

    if logger is not None:
        counters = {
            "records_in": summary.initial_count,
            "records_out": summary.final_count,
            "auto_removed": summary.auto_removed_count,
            "review_groups": summary.review_group_count,
            "records_flagged": flagged,
        }
        if key is not None:
            logger.batch_finished(key, counters)
        logger.stage_finished(
            STAGE_NAME, duration_seconds=time.perf_counter() - started, counters=counters
        )

    return BatchResult(
        key=key,
        records=records,
        decisions=tuple(decisions),
        survivors=survivors,
        dedup_log=resolution.log,
        review_groups=tuple(groups),
        summary=summary,
    )


class BatchContext:
    """Caller-owned state for one deduplication run over several batches.

    Holds the per-batch results, the cross-batch review group numbering
    and at most one :class:`ReviewSession`.

    Attributes
    ----------
    config : DedupConfig
        Run configuration.
    logger : AuditLogger | None
        Audit logger passed to every stage.
    review_session : ReviewSession | None
        Session created by :meth:`start_review`, if any.
    """

    def __init__(
        self,
        config: DedupConfig | None = None,
        *,
        logger: AuditLogger | None = None,
    ) -> None:
        """Initialize an empty context.

        Parameters
        ----------
        config : DedupConfig | None, optional
            Run configuration. If None, uses defaults.
        logger : AuditLogger | None, optional
            Audit logger passed to every stage.
        """
        self.config = config if config is not None else DedupConfig()
        self.logger = logger
        self.review_session: ReviewSession | None = None
        self._results: list[BatchResult] = []

    def run(
        self,
        records_by_key: Mapping[str, Sequence[Record]],
        progress: ProgressCallback | None = None,
    ) -> list[BatchResult]:
        """Deduplicate each batch in key order of the mapping.

        Earlier results and any review session are discarded. Review
        groups are renumbered so IDs are unique across batches.

        Parameters
        ----------
        records_by_key : Mapping[str, Sequence[Record]]
            Batches keyed by author or grouping column value.
        progress : ProgressCallback | None, optional
            Called as ``progress(current, total, key)`` after each batch.

        Returns
        -------
        list[BatchResult]
            One result per batch.

        Raises
        ------
        RecordError
            If a record id occurs more than once across all batches.
        """
        seen: set[str] = set()
        for records in records_by_key.values():
            _check_unique_ids(records, seen)

        self._results = []
        self.review_session = None

        total = len(records_by_key)
        next_group_id = 1
        for current, (key, records) in enumerate(records_by_key.items(), start=1):
            result = deduplicate_batch(records, self.config, key=key, logger=self.logger)
            groups = tuple(
                group.renumbered(next_group_id + offset)
                for offset, group in enumerate(result.review_groups)
            )
            next_group_id += len(groups)
            self._results.append(replace(result, review_groups=groups))
            if progress is not None:
                progress(current, total, key)

        return list(self._results)

    @property
    def results(self) -> tuple[BatchResult, ...]:
        """Per-batch results of the last run."""
        return tuple(self._results)

    @property
    def survivors(self) -> list[Record]:
        """Records left after automatic resolution, batch by batch."""
        return [record for result in self._results for record in result.survivors]

    @property
    def dedup_log(self) -> list[DeduplicationLogEntry]:
        """Automatic removals across all batches."""
        return [entry for result in self._results for entry in result.dedup_log]

    @property
    def review_groups(self) -> list[ReviewGroup]:
        """Review groups across all batches, numbered from 1."""
        return [group for result in self._results for group in result.review_groups]

    def start_review(self) -> ReviewSession:
        """Open a review session over all groups, replacing any earlier one."""
        self.review_session = ReviewSession(
            self.review_groups,
            page_size=self.config.page_size,
            logger=self.logger,
        )
        return self.review_session

    def final_records(self) -> list[Record]:
        """Survivors minus records discarded in review.

        Records of undecided groups are kept. Keeping a record that was
        removed automatically does not bring it back.
        """
        survivors = self.survivors
        if self.review_session is None:
            return survivors
        return self.review_session.apply(survivors)

    def summary(self) -> BatchSummary:
        """Counters over all batches, reflecting review decisions so far."""
        total = BatchSummary()
        for result in self._results:
            total = total.merge(result.summary)

        if self.review_session is None:
            return total

        survivor_ids = {record.id for record in self.survivors}
        discarded = len(self.review_session.discarded_ids & survivor_ids)
        session = self.review_session
        pending_groups = () if session.is_complete else session.groups[session.cursor :]
        return replace(
            total,
            final_count=total.final_count - discarded,
            review_discarded_count=discarded,
            pending_review_count=sum(len(group) for group in pending_groups),
        )
