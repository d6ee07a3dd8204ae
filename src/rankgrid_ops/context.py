"""Drag context: what was picked up and where it was dropped."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from rankgrid_core.models import parse_slot_id
from rankgrid_core.validation import GridView, TransferKind, TransferRequest

BACKLOG_DROP_ZONE_ID = "backlog"


class SourceKind(str, Enum):
    BACKLOG = "backlog"
    GRID = "grid"


class TargetKind(str, Enum):
    GRID_SLOT = "grid-slot"
    BACKLOG_DROP = "backlog-drop"


class DragSource(BaseModel):
    """The dragged item and where it came from."""

    item_id: Optional[str] = None
    kind: SourceKind
    grid_position: Optional[int] = None
    group_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class DragTarget(BaseModel):
    """The drop target. ``is_occupied`` is the caller's view at drop time, if known."""

    kind: TargetKind
    position: Optional[int] = None
    is_occupied: Optional[bool] = None

    model_config = ConfigDict(frozen=True)


class DragContext(BaseModel):
    """A proposed transfer."""

    source: DragSource
    target: DragTarget

    model_config = ConfigDict(frozen=True)

    @classmethod
    def assign(cls, item_id: str, position: int, group_id: Optional[str] = None) -> DragContext:
        return cls(
            source=DragSource(item_id=item_id, kind=SourceKind.BACKLOG, group_id=group_id),
            target=DragTarget(kind=TargetKind.GRID_SLOT, position=position),
        )

    @classmethod
    def move(cls, from_position: int, to_position: int, item_id: Optional[str] = None) -> DragContext:
        return cls(
            source=DragSource(item_id=item_id, kind=SourceKind.GRID, grid_position=from_position),
            target=DragTarget(kind=TargetKind.GRID_SLOT, position=to_position),
        )

    @classmethod
    def swap(cls, from_position: int, to_position: int, item_id: Optional[str] = None) -> DragContext:
        return cls(
            source=DragSource(item_id=item_id, kind=SourceKind.GRID, grid_position=from_position),
            target=DragTarget(kind=TargetKind.GRID_SLOT, position=to_position, is_occupied=True),
        )

    @classmethod
    def remove(cls, position: int, item_id: Optional[str] = None) -> DragContext:
        return cls(
            source=DragSource(item_id=item_id, kind=SourceKind.GRID, grid_position=position),
            target=DragTarget(kind=TargetKind.BACKLOG_DROP),
        )

    def to_transfer_request(self) -> TransferRequest:
        """Translate into the validation authority's vocabulary."""
        return TransferRequest(
            item_id=self.source.item_id,
            from_kind=TransferKind(self.source.kind.value),
            to_kind=TransferKind.GRID if self.target.kind == TargetKind.GRID_SLOT else TransferKind.BACKLOG,
            from_position=self.source.grid_position,
            to_position=self.target.position,
            group_id=self.source.group_id,
        )


def parse_drag_event(
    active_id: str,
    over_id: Optional[str],
    grid: Optional[GridView] = None,
    group_id: Optional[str] = None,
) -> Optional[DragContext]:
    """
    Build a DragContext from raw drag/drop element ids.

    ``grid-N`` ids name grid slots; ``backlog`` names the backlog drop zone;
    any other active id is treated as a backlog item id. When ``grid`` is
    given, the grid source's item id and the target occupancy are read from it.

    Returns:
        DragContext, or None when there is no usable drop target. A backlog
        item dropped back on the backlog drop zone is a no-op and also gives None.
    """
    if not over_id:
        return None

    from_position = parse_slot_id(active_id)
    if from_position is not None:
        item_id = None
        if grid is not None and grid.in_bounds(from_position):
            item_id = grid.slot_at(from_position).item_id
        source = DragSource(item_id=item_id, kind=SourceKind.GRID, grid_position=from_position)
    else:
        source = DragSource(item_id=active_id, kind=SourceKind.BACKLOG, group_id=group_id)

    if over_id == BACKLOG_DROP_ZONE_ID:
        if source.kind == SourceKind.BACKLOG:
            return None
        return DragContext(source=source, target=DragTarget(kind=TargetKind.BACKLOG_DROP))

    to_position = parse_slot_id(over_id)
    if to_position is None:
        return None
    is_occupied = None
    if grid is not None and grid.in_bounds(to_position):
        is_occupied = grid.slot_at(to_position).occupied
    return DragContext(
        source=source,
        target=DragTarget(kind=TargetKind.GRID_SLOT, position=to_position, is_occupied=is_occupied),
    )


__all__ = [
    "BACKLOG_DROP_ZONE_ID",
    "DragContext",
    "DragSource",
    "DragTarget",
    "SourceKind",
    "TargetKind",
    "parse_drag_event",
]
