"""Automatic resolution of confirmed duplicate pairs.

DUPLICATE pairs are resolved by source priority: the better ranked record
stays, the other is removed and logged. The outcome does not depend on
the order pairs are supplied in, because pairs are processed in batch
order.
"""

from collections.abc import Sequence

from pubdedupe.audit.logger import AuditLogger
from pubdedupe.decision import PairDecision, Verdict, is_same_canonical_source
from pubdedupe.merge.models import DeduplicationLogEntry, Resolution
from pubdedupe.merge.survivor import select_keeper
from pubdedupe.models import PriorityFunc
from pubdedupe.normalize import NormalizedRecord


def resolve_duplicates(
    decisions: Sequence[PairDecision],
    normalized: Sequence[NormalizedRecord],
    priority: PriorityFunc,
    *,
    canonical_source: str | None = None,
    logger: AuditLogger | None = None,
) -> Resolution:
    """Pick keepers for DUPLICATE pairs and log every removal.

    A record already removed is never re-added, never logged twice, and
    never acts as the keeper of a later pair (first removal wins).

    Parameters
    ----------
    decisions : Sequence[PairDecision]
        Pair decisions of one batch; non-DUPLICATE verdicts are ignored.
    normalized : Sequence[NormalizedRecord]
        Batch records indexed by batch position.
    priority : PriorityFunc
        Maps a record to its rank (lower wins).
    canonical_source : str | None, optional
        Pairs where both records come from this source are skipped.
    logger : AuditLogger | None, optional
        Audit logger; one ``record_removed`` event per removal.

    Returns
    -------
    Resolution
        Removed IDs and the deduplication log.
    """
    duplicate_pairs = sorted(
        (d for d in decisions if d.verdict == Verdict.DUPLICATE),
        key=lambda d: (d.index_a, d.index_b),
    )

    removed: set[str] = set()
    log: list[DeduplicationLogEntry] = []
    skipped = 0

    for decision in duplicate_pairs:
        a = normalized[decision.index_a]
        b = normalized[decision.index_b]

        if a.rid in removed or b.rid in removed:
            skipped += 1
            continue

        if is_same_canonical_source(a.record, b.record, canonical_source):
            skipped += 1
            continue

        keep, remove = select_keeper(a, b, priority)
        removed.add(remove.rid)

        entry = DeduplicationLogEntry(
            removed=remove.record,
            duplicate_of_id=keep.rid,
            duplicate_of_title=keep.record.title,
            duplicate_of_doi=keep.record.doi,
            match_reason=decision.reason,
            score=decision.score,
        )
        log.append(entry)

        if logger is not None:
            logger.record_removed(
                rid=remove.rid,
                duplicate_of=keep.rid,
                reason_code=decision.reason.value,
            )

    return Resolution(removed_ids=frozenset(removed), log=tuple(log), skipped_pairs=skipped)


def apply_resolution(
    normalized: Sequence[NormalizedRecord],
    resolution: Resolution,
) -> list[NormalizedRecord]:
    """Drop removed records, preserving batch order.

    Parameters
    ----------
    normalized : Sequence[NormalizedRecord]
        Batch records.
    resolution : Resolution
        Resolution outcome.

    Returns
    -------
    list[NormalizedRecord]
        Surviving records.
    """
    return [item for item in normalized if item.rid not in resolution.removed_ids]
