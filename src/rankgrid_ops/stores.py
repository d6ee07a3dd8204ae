"""Paired grid + backlog mutators with an undo journal.

Every mutator here changes slot occupancy and the referenced item's
``matched``/``matched_with`` fields together. Lookups that can fail happen
before the first write. Each write pushes its inverse onto the active
transaction's journal, so an exception part-way through an operation can be
undone exactly.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Tuple

from rankgrid_core.backlog import BacklogStore
from rankgrid_core.errors import InvariantViolationError, TransactionError
from rankgrid_core.grid import GridStore
from rankgrid_core.invariants import check_invariants
from rankgrid_core.models import ItemDisplay, SlotContent, slot_id

logger = logging.getLogger(__name__)

UndoStep = Callable[[], None]


class OperationStores:
    """The grid and backlog an operation works on, treated as one consistency unit."""

    def __init__(self, grid: GridStore, backlog: BacklogStore, check_invariants: bool = False):
        self.grid = grid
        self.backlog = backlog
        self.check_invariants = check_invariants
        self._journal: Optional[List[UndoStep]] = None

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    @contextmanager
    def auditing(self, enabled: bool) -> Iterator[None]:
        """Turn the post-transaction audit on for the enclosed calls only."""
        previous = self.check_invariants
        self.check_invariants = previous or enabled
        try:
            yield
        finally:
            self.check_invariants = previous

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Apply the enclosed mutations fully or not at all.

        On any exception the journal is replayed in reverse and the exception
        re-raised. If undoing itself fails, TransactionError is raised since the
        stores can no longer be trusted.
        """
        if self._journal is not None:
            raise TransactionError("Nested transactions are not supported")
        self._journal = []
        try:
            yield
            if self.check_invariants:
                violations = check_invariants(self.grid, self.backlog)
                if violations:
                    raise InvariantViolationError(violations)
        except Exception:
            journal, self._journal = self._journal, None
            self._undo(journal)
            raise
        self._journal = None

    def _undo(self, journal: List[UndoStep]) -> None:
        logger.debug("rolling back %d step(s)", len(journal))
        for step in reversed(journal):
            try:
                step()
            except Exception as e:
                raise TransactionError(f"Rollback of partial operation failed: {e}") from e

    def _record(self, step: UndoStep) -> None:
        if self._journal is not None:
            self._journal.append(step)

    def _set_match(self, item_id: str, matched: bool, matched_with: Optional[str]) -> None:
        item = self.backlog.get_item(item_id)
        if item is None:
            return
        previous = (item.matched, item.matched_with)
        if matched:
            self.backlog.mark_matched(item_id, matched_with)
        else:
            self.backlog.mark_unmatched(item_id)
        self._record(lambda: self._restore_match(item_id, *previous))

    def _restore_match(self, item_id: str, matched: bool, matched_with: Optional[str]) -> None:
        item = self.backlog.require_item(item_id)
        item.matched = matched
        item.matched_with = matched_with

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def assign_item(self, position: int, item_id: str) -> SlotContent:
        """Place a resident backlog item into an empty slot and mark it matched."""
        item = self.backlog.require_item(item_id)
        content = self.grid.place(position, item_id, ItemDisplay.from_item(item))
        self._record(lambda: self.grid.vacate(position))
        self._set_match(item_id, True, slot_id(position))
        return content

    def restore_content(self, position: int, content: SlotContent) -> SlotContent:
        """
        Put previously removed content back into an empty slot.

        The display copy is rebuilt from the item when it is resident, so a
        group reloaded in the meantime does not leave a stale copy behind.
        """
        item = self.backlog.get_item(content.item_id)
        display = ItemDisplay.from_item(item) if item is not None else content.display
        placed = self.grid.place(position, content.item_id, display)
        self._record(lambda: self.grid.vacate(position))
        self._set_match(content.item_id, True, slot_id(position))
        return placed

    def unassign(self, position: int) -> SlotContent:
        """Empty a slot and mark its item unmatched (if the item is resident)."""
        content = self.grid.vacate(position)
        self._record(lambda: self.grid.place(position, content.item_id, content.display))
        self._set_match(content.item_id, False, None)
        return content

    def relocate(self, from_position: int, to_position: int) -> SlotContent:
        """Move a slot's content to an empty slot and repoint the item at it."""
        content = self.grid.relocate(from_position, to_position)
        self._record(lambda: self.grid.relocate(to_position, from_position))
        self._set_match(content.item_id, True, slot_id(to_position))
        return content

    def exchange(self, position_a: int, position_b: int) -> Tuple[SlotContent, SlotContent]:
        """Swap two occupied slots and repoint both items in the same step."""
        content_a, content_b = self.grid.exchange(position_a, position_b)
        self._record(lambda: self.grid.exchange(position_a, position_b))
        self._set_match(content_a.item_id, True, slot_id(position_b))
        self._set_match(content_b.item_id, True, slot_id(position_a))
        return content_a, content_b
