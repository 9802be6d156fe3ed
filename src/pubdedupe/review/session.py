"""Resumable human review of ambiguous duplicate groups.

The session walks review groups strictly in order. The presentation layer
only reads :meth:`ReviewSession.current_group` (optionally page by page)
and calls :meth:`ReviewSession.submit_decision`. Nothing in the session
expires, so it can be paused between decisions for as long as needed.

State machine::

    Active(0) -> Active(1) -> ... -> Active(n - 1) -> Complete
    (Complete immediately when there are no groups)
"""

import math
from collections.abc import Iterable, Sequence

from pubdedupe.audit.logger import AuditLogger
from pubdedupe.clustering import ReviewGroup, ReviewMember
from pubdedupe.models import Record
from pubdedupe.review.models import (
    DEFAULT_PAGE_SIZE,
    ReviewDecision,
    ReviewPage,
    ReviewSessionError,
    ReviewSessionState,
    ReviewStatus,
)

__all__ = ["ReviewSession"]

RecordRef = Record | ReviewMember | str


def _record_id(item: RecordRef) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, ReviewMember):
        return item.rid
    if isinstance(item, Record):
        return item.id
    raise TypeError(f"Expected Record, ReviewMember or record id, got {type(item).__name__}")


class ReviewSession:
    """Stateful walk through review groups.

    Attributes
    ----------
    groups : tuple[ReviewGroup, ...]
        Groups in review order; never mutated.
    page_size : int
        Members per presentation page.
    """

    def __init__(
        self,
        groups: Sequence[ReviewGroup],
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: AuditLogger | None = None,
    ) -> None:
        """Initialize a session at the first group.

        Parameters
        ----------
        groups : Sequence[ReviewGroup]
            Groups to review, in order.
        page_size : int, optional
            Members per page, by default 6.
        logger : AuditLogger | None, optional
            Audit logger; one ``review_decision`` event per decision.

        Raises
        ------
        ValueError
            If page_size is not positive.
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self.groups: tuple[ReviewGroup, ...] = tuple(groups)
        self.page_size = page_size
        self._logger = logger
        self._cursor = 0 if self.groups else -1
        self._decisions: list[ReviewDecision] = []
        self._selection: set[str] = set()
        self._reset_selection()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        """Index of the group awaiting a decision, -1 when complete."""
        return self._cursor

    @property
    def status(self) -> ReviewStatus:
        """Current state."""
        return ReviewStatus.COMPLETE if self._cursor < 0 else ReviewStatus.ACTIVE

    @property
    def is_complete(self) -> bool:
        """Whether every group has been decided."""
        return self._cursor < 0

    @property
    def group_count(self) -> int:
        """Number of groups in the session."""
        return len(self.groups)

    @property
    def remaining(self) -> int:
        """Groups still awaiting a decision."""
        return 0 if self.is_complete else self.group_count - self._cursor

    @property
    def decisions(self) -> tuple[ReviewDecision, ...]:
        """Decisions applied so far."""
        return tuple(self._decisions)

    @property
    def kept_ids(self) -> frozenset[str]:
        """Every record kept by a decision so far."""
        return frozenset(rid for d in self._decisions for rid in d.kept_ids)

    @property
    def discarded_ids(self) -> frozenset[str]:
        """Every record discarded by a decision so far."""
        return frozenset(rid for d in self._decisions for rid in d.discarded_ids)

    def current_group(self) -> ReviewGroup:
        """Return the group awaiting a decision.

        Raises
        ------
        ReviewSessionError
            If the session is complete.
        """
        if self.is_complete:
            raise ReviewSessionError("Review session is complete; no current group")
        return self.groups[self._cursor]

    # ------------------------------------------------------------------
    # Selection and paging (presentation helpers, no state transitions)
    # ------------------------------------------------------------------

    def _reset_selection(self) -> None:
        self._selection = set() if self.is_complete else set(self.current_group().record_ids)

    def _check_members(self, record_ids: Iterable[str]) -> list[str]:
        group = self.current_group()
        ids = list(record_ids)
        outsiders = [rid for rid in ids if rid not in group]
        if outsiders:
            raise ReviewSessionError(
                f"Records {outsiders} do not belong to review group {group.group_id}"
            )
        return ids

    @property
    def selection(self) -> frozenset[str]:
        """Record IDs currently marked to keep (default: whole group)."""
        return frozenset(self._selection)

    def is_selected(self, item: RecordRef) -> bool:
        """Whether a record of the current group is marked to keep."""
        return _record_id(item) in self._selection

    def select(self, *items: RecordRef) -> None:
        """Mark records of the current group to keep."""
        self._selection.update(self._check_members(_record_id(i) for i in items))

    def deselect(self, *items: RecordRef) -> None:
        """Mark records of the current group to discard."""
        self._selection.difference_update(self._check_members(_record_id(i) for i in items))

    def toggle(self, item: RecordRef) -> bool:
        """Flip the keep mark of one record.

        Returns
        -------
        bool
            New selection state of the record.
        """
        (rid,) = self._check_members([_record_id(item)])
        if rid in self._selection:
            self._selection.discard(rid)
            return False
        self._selection.add(rid)
        return True

    @property
    def page_count(self) -> int:
        """Pages needed to show the current group (0 when complete)."""
        if self.is_complete:
            return 0
        return math.ceil(len(self.current_group()) / self.page_size)

    def page(self, number: int = 1) -> ReviewPage:
        """Return one page of the current group.

        Page numbers outside the valid range are clamped. Paging never
        changes the session state or the selection.

        Parameters
        ----------
        number : int, optional
            1-based page number, by default 1.

        Returns
        -------
        ReviewPage
            The requested page.
        """
        group = self.current_group()
        page_count = self.page_count
        number = max(1, min(number, page_count))
        start = (number - 1) * self.page_size
        return ReviewPage(
            number=number,
            page_count=page_count,
            members=group.members[start : start + self.page_size],
            first_position=start,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit_decision(
        self,
        records_to_keep: Iterable[RecordRef],
        *,
        group_id: int | None = None,
    ) -> ReviewDecision:
        """Decide the current group and advance.

        Every record of the group not listed in ``records_to_keep`` is
        discarded. Discards are human decisions and are not added to the
        automatic deduplication log.

        Parameters
        ----------
        records_to_keep : Iterable[Record | ReviewMember | str]
            Subset of the current group to keep.
        group_id : int | None, optional
            Group the caller believes it is deciding. When given, it must
            match the current group; this rejects stale or repeated
            submissions. Without it a repeat is only caught when it names
            records of the previous group: a repeated empty keep list is
            taken as "discard all" for the next group. Presentation layers
            should always pass it, as :meth:`submit_selection` does.

        Returns
        -------
        ReviewDecision
            The recorded decision.

        Raises
        ------
        ReviewSessionError
            If the session is complete, the group_id is not current, or a
            record does not belong to the current group.
        """
        if self.is_complete:
            raise ReviewSessionError("Review session is complete; decision rejected")

        group = self.current_group()
        if group_id is not None and group_id != group.group_id:
            raise ReviewSessionError(
                f"Decision for group {group_id} rejected; current group is {group.group_id}"
            )

        keep = set(self._check_members(_record_id(item) for item in records_to_keep))
        decision = ReviewDecision(
            group_id=group.group_id,
            kept_ids=tuple(rid for rid in group.record_ids if rid in keep),
            discarded_ids=tuple(rid for rid in group.record_ids if rid not in keep),
        )
        self._decisions.append(decision)

        if self._logger is not None:
            self._logger.review_decision(
                group_id=decision.group_id,
                kept=list(decision.kept_ids),
                discarded=list(decision.discarded_ids),
            )

        self._cursor = -1 if self._cursor + 1 >= self.group_count else self._cursor + 1
        self._reset_selection()
        return decision

    def submit_selection(self) -> ReviewDecision:
        """Submit the current selection as the decision for the group."""
        group = self.current_group()
        return self.submit_decision(
            [rid for rid in group.record_ids if rid in self._selection],
            group_id=group.group_id,
        )

    # ------------------------------------------------------------------
    # Results and persistence
    # ------------------------------------------------------------------

    def apply(self, records: Sequence[Record]) -> list[Record]:
        """Fold decisions into a record list.

        Records discarded by a decision are dropped; everything else,
        including members of undecided groups, is kept in input order.

        Parameters
        ----------
        records : Sequence[Record]
            Records surviving automatic resolution.

        Returns
        -------
        list[Record]
            Records after human review.
        """
        discarded = self.discarded_ids
        return [record for record in records if record.id not in discarded]

    def snapshot(self) -> ReviewSessionState:
        """Capture the session state for later resumption."""
        return ReviewSessionState(
            groups=self.groups,
            cursor=self._cursor,
            decisions=tuple(self._decisions),
        )

    @classmethod
    def restore(
        cls,
        state: ReviewSessionState,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: AuditLogger | None = None,
    ) -> "ReviewSession":
        """Resume a session from a snapshot.

        Parameters
        ----------
        state : ReviewSessionState
            Snapshot from :meth:`snapshot`.
        page_size : int, optional
            Members per page, by default 6.
        logger : AuditLogger | None, optional
            Audit logger for later decisions.

        Returns
        -------
        ReviewSession
            Session positioned at the snapshot cursor.

        Raises
        ------
        ReviewSessionError
            If the cursor and decisions are inconsistent.
        """
        session = cls(state.groups, page_size=page_size, logger=logger)
        expected_cursor = len(state.decisions) if len(state.decisions) < len(state.groups) else -1
        if state.cursor != expected_cursor:
            raise ReviewSessionError(
                f"Snapshot cursor {state.cursor} does not match "
                f"{len(state.decisions)} decisions over {len(state.groups)} groups"
            )
        for group, decision in zip(state.groups, state.decisions, strict=False):
            if decision.group_id != group.group_id:
                raise ReviewSessionError(
                    f"Snapshot decision for group {decision.group_id} out of order"
                )
        session._decisions = list(state.decisions)
        session._cursor = state.cursor
        session._reset_selection()
        return session
