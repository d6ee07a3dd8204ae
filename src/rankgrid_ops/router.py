"""Routes a DragContext to the operation(s) that carry it out.

Dispatch table:

    backlog -> empty grid slot      Assign
    backlog -> occupied grid slot   Remove, then Assign (replace)
    grid    -> empty grid slot      Move
    grid    -> occupied grid slot   Swap
    grid    -> backlog drop zone    Remove

The router only reads slot occupancy. Legality is the validation authority's
business, so an out-of-range target still routes and is rejected later.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from rankgrid_core.errors import UnroutableDragError
from rankgrid_core.validation import GridView

from .context import DragContext, SourceKind, TargetKind
from .results import OperationType


@dataclass(frozen=True)
class RoutePlan:
    """
    Selected operation and the occupancy steps it performs.

    ``operation`` is what the caller sees in the result; ``steps`` spells out
    the composite replace path as (REMOVE, ASSIGN).
    """

    operation: OperationType
    steps: Tuple[OperationType, ...]

    @property
    def is_replace(self) -> bool:
        return self.steps == (OperationType.REMOVE, OperationType.ASSIGN)


class OperationRouter:
    def route(self, context: DragContext, grid: Optional[GridView] = None) -> RoutePlan:
        source, target = context.source, context.target
        match (source.kind, target.kind):
            case (SourceKind.BACKLOG, TargetKind.GRID_SLOT):
                if self._target_occupied(context, grid):
                    return RoutePlan(
                        OperationType.ASSIGN, (OperationType.REMOVE, OperationType.ASSIGN)
                    )
                return RoutePlan(OperationType.ASSIGN, (OperationType.ASSIGN,))
            case (SourceKind.GRID, TargetKind.GRID_SLOT):
                if self._target_occupied(context, grid):
                    return RoutePlan(OperationType.SWAP, (OperationType.SWAP,))
                return RoutePlan(OperationType.MOVE, (OperationType.MOVE,))
            case (SourceKind.GRID, TargetKind.BACKLOG_DROP):
                return RoutePlan(OperationType.REMOVE, (OperationType.REMOVE,))
            case _:
                raise UnroutableDragError(source.kind.value, target.kind.value)

    @staticmethod
    def _target_occupied(context: DragContext, grid: Optional[GridView]) -> bool:
        if context.target.is_occupied is not None:
            return context.target.is_occupied
        position = context.target.position
        if grid is None or not grid.in_bounds(position):
            return False
        return grid.slot_at(position).occupied
