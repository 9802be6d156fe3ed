"""Keeper selection for confirmed duplicate pairs."""

from pubdedupe.models import PriorityFunc
from pubdedupe.normalize import NormalizedRecord


def select_keeper(
    a: NormalizedRecord,
    b: NormalizedRecord,
    priority: PriorityFunc,
) -> tuple[NormalizedRecord, NormalizedRecord]:
    """Decide which record of a duplicate pair survives.

    Selection is based on lexicographic tuple ranking:
    1. source priority (lower wins)
    2. tie-breaker: earlier batch position

    Parameters
    ----------
    a : NormalizedRecord
        First record.
    b : NormalizedRecord
        Second record.
    priority : PriorityFunc
        Maps a record to its rank.

    Returns
    -------
    tuple[NormalizedRecord, NormalizedRecord]
        ``(keep, remove)``.
    """

    def ranking_key(item: NormalizedRecord) -> tuple[int, int]:
        return (priority(item.record), item.index)

    if ranking_key(a) <= ranking_key(b):
        return a, b
    return b, a
