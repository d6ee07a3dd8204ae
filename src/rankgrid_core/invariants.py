"""Audit of the grid/backlog cross-structure invariants."""

from typing import Dict, List

from .backlog import BacklogStore
from .grid import GridStore
from .models import ItemDisplay


def check_invariants(grid: GridStore, backlog: BacklogStore, check_display: bool = True) -> List[str]:
    """
    Check the slot/item invariants.

    - occupancy: a slot is occupied exactly when it references an item id
    - uniqueness: no item id is referenced by two slots
    - matching: a resident item is matched exactly when a slot references it,
      and ``matched_with`` names that slot
    - stable positions: slot ``i`` sits at index ``i``

    Items of unloaded groups are not resident and are skipped by the matching
    check. With ``check_display`` the slot's display copy must also equal the
    resident item's display fields.

    Returns:
        Violation messages (empty when all invariants hold)
    """
    violations: List[str] = []
    referenced: Dict[str, str] = {}

    for index, slot in enumerate(grid.slots):
        if slot.position != index:
            violations.append(f"slot at index {index} reports position {slot.position}")
        if slot.occupied != (slot.item_id is not None):
            violations.append(f"{slot.slot_id}: occupied flag disagrees with item reference")
        if slot.item_id is None:
            continue
        if slot.item_id in referenced:
            violations.append(
                f"{slot.item_id} referenced by both {referenced[slot.item_id]} and {slot.slot_id}"
            )
            continue
        referenced[slot.item_id] = slot.slot_id
        if grid.position_of(slot.item_id) != slot.position:
            violations.append(f"{slot.slot_id}: position index out of date for {slot.item_id}")

        item = backlog.get_item(slot.item_id)
        if item is None:
            continue
        if not item.matched or item.matched_with != slot.slot_id:
            violations.append(
                f"{item.id}: referenced by {slot.slot_id} but matched={item.matched}, "
                f"matched_with={item.matched_with}"
            )
        if check_display and slot.display != ItemDisplay.from_item(item):
            violations.append(f"{slot.slot_id}: display copy drifted from item {item.id}")

    for item in backlog.items():
        if item.id in referenced:
            continue
        if item.matched or item.matched_with is not None:
            violations.append(
                f"{item.id}: matched={item.matched}, matched_with={item.matched_with} "
                "but no slot references it"
            )

    return violations
