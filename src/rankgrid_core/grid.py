"""Fixed-length grid of ranked slots.

The grid is created once per session with every slot empty and is never
resized. Slots are never created or destroyed afterwards; the primitives below
only occupy or vacate them. Each primitive keeps an item-id index in step with
the slots so lookups stay O(1) and no item id can be referenced twice.

The grid never touches backlog items. Pairing a slot write with the matching
``matched``/``matched_with`` update is the job of the operation layer.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import GridIntegrityError
from .models import GridSlot, ItemDisplay, SlotContent, slot_id

logger = logging.getLogger(__name__)


class GridStore:
    """In-memory grid of ``max_size`` slots."""

    def __init__(self, size: int):
        if size < 1:
            raise GridIntegrityError(f"Grid size must be at least 1, got {size}")
        self._slots: List[GridSlot] = [GridSlot(position=i) for i in range(size)]
        self._positions: Dict[str, int] = {}

    @classmethod
    def from_slots(cls, slots: Sequence[GridSlot]) -> "GridStore":
        """Rebuild a grid from persisted slots (positions must be 0..n-1 in order)."""
        grid = cls(len(slots))
        for expected, slot in enumerate(slots):
            if slot.position != expected:
                raise GridIntegrityError(
                    f"Slot at index {expected} has position {slot.position}",
                    position=slot.position,
                )
            if slot.content is not None:
                grid.place(expected, slot.content.item_id, slot.content.display)
        return grid

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def max_size(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> Tuple[GridSlot, ...]:
        return tuple(self._slots)

    def in_bounds(self, position: Optional[int]) -> bool:
        return position is not None and 0 <= position < len(self._slots)

    def slot_at(self, position: int) -> GridSlot:
        self._check_bounds(position)
        return self._slots[position]

    def position_of(self, item_id: str) -> Optional[int]:
        return self._positions.get(item_id)

    def matched_slots(self) -> List[GridSlot]:
        return [slot for slot in self._slots if slot.occupied]

    def next_available_position(self) -> Optional[int]:
        for slot in self._slots:
            if not slot.occupied:
                return slot.position
        return None

    def is_full(self) -> bool:
        return len(self._positions) == len(self._slots)

    def snapshot(self) -> List[Optional[str]]:
        """Item ids by position, None for empty slots."""
        return [slot.item_id for slot in self._slots]

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def place(self, position: int, item_id: str, display: ItemDisplay) -> SlotContent:
        """Occupy an empty slot with a reference to ``item_id``."""
        self._check_bounds(position)
        slot = self._slots[position]
        if slot.occupied:
            raise GridIntegrityError(
                f"Slot {slot.slot_id} already holds {slot.item_id}", position=position
            )
        existing = self._positions.get(item_id)
        if existing is not None:
            raise GridIntegrityError(
                f"Item {item_id} is already referenced by {slot_id(existing)}",
                position=position,
            )
        content = SlotContent(item_id=item_id, display=display)
        slot.content = content
        self._positions[item_id] = position
        logger.debug("placed %s at %s", item_id, slot.slot_id)
        return content

    def vacate(self, position: int) -> SlotContent:
        """Empty an occupied slot and return what it held."""
        self._check_bounds(position)
        slot = self._slots[position]
        if slot.content is None:
            raise GridIntegrityError(f"Slot {slot.slot_id} is already empty", position=position)
        content = slot.content
        slot.content = None
        del self._positions[content.item_id]
        logger.debug("vacated %s (was %s)", slot.slot_id, content.item_id)
        return content

    def relocate(self, from_position: int, to_position: int) -> SlotContent:
        """Move content from an occupied slot to an empty one."""
        self._check_bounds(from_position)
        self._check_bounds(to_position)
        source = self._slots[from_position]
        target = self._slots[to_position]
        if source.content is None:
            raise GridIntegrityError(f"Slot {source.slot_id} is empty", position=from_position)
        if target.content is not None:
            raise GridIntegrityError(
                f"Slot {target.slot_id} already holds {target.item_id}", position=to_position
            )
        content = source.content
        target.content = content
        source.content = None
        self._positions[content.item_id] = to_position
        logger.debug("relocated %s %s -> %s", content.item_id, source.slot_id, target.slot_id)
        return content

    def exchange(self, position_a: int, position_b: int) -> Tuple[SlotContent, SlotContent]:
        """Swap the content of two occupied slots."""
        self._check_bounds(position_a)
        self._check_bounds(position_b)
        if position_a == position_b:
            raise GridIntegrityError(
                f"Cannot exchange {slot_id(position_a)} with itself", position=position_a
            )
        slot_a = self._slots[position_a]
        slot_b = self._slots[position_b]
        if slot_a.content is None or slot_b.content is None:
            empty = slot_a if slot_a.content is None else slot_b
            raise GridIntegrityError(f"Slot {empty.slot_id} is empty", position=empty.position)
        content_a, content_b = slot_a.content, slot_b.content
        slot_a.content, slot_b.content = content_b, content_a
        self._positions[content_a.item_id] = position_b
        self._positions[content_b.item_id] = position_a
        logger.debug("exchanged %s <-> %s", slot_a.slot_id, slot_b.slot_id)
        return content_a, content_b

    def refresh_display(self, position: int, display: ItemDisplay) -> SlotContent:
        """Replace the display copy of an occupied slot, keeping its item reference."""
        self._check_bounds(position)
        slot = self._slots[position]
        if slot.content is None:
            raise GridIntegrityError(f"Slot {slot.slot_id} is empty", position=position)
        slot.content = SlotContent(item_id=slot.content.item_id, display=display)
        return slot.content

    def clear(self) -> List[SlotContent]:
        """Empty every slot; returns the removed contents in position order."""
        removed = []
        for slot in self._slots:
            if slot.content is not None:
                removed.append(slot.content)
                slot.content = None
        self._positions.clear()
        return removed

    def _check_bounds(self, position: int) -> None:
        if not self.in_bounds(position):
            raise GridIntegrityError(
                f"Position {position} is outside the grid (0-{len(self._slots) - 1})",
                position=position,
            )
