"""Tests for the operation router and raw drag event parsing."""

import pytest

from rankgrid_core.errors import UnroutableDragError
from rankgrid_ops.context import (
    BACKLOG_DROP_ZONE_ID,
    DragContext,
    DragSource,
    DragTarget,
    SourceKind,
    TargetKind,
    parse_drag_event,
)
from rankgrid_ops.results import OperationType
from rankgrid_ops.router import OperationRouter

from conftest import make_stores

router = OperationRouter()


def _context(source_kind, target_kind, occupied=None, from_position=None, to_position=0):
    return DragContext(
        source=DragSource(item_id="A", kind=source_kind, grid_position=from_position),
        target=DragTarget(kind=target_kind, position=to_position, is_occupied=occupied),
    )


@pytest.mark.parametrize(
    "source_kind, target_kind, occupied, operation, steps",
    [
        (SourceKind.BACKLOG, TargetKind.GRID_SLOT, False, OperationType.ASSIGN, (OperationType.ASSIGN,)),
        (
            SourceKind.BACKLOG,
            TargetKind.GRID_SLOT,
            True,
            OperationType.ASSIGN,
            (OperationType.REMOVE, OperationType.ASSIGN),
        ),
        (SourceKind.GRID, TargetKind.GRID_SLOT, False, OperationType.MOVE, (OperationType.MOVE,)),
        (SourceKind.GRID, TargetKind.GRID_SLOT, True, OperationType.SWAP, (OperationType.SWAP,)),
        (SourceKind.GRID, TargetKind.BACKLOG_DROP, None, OperationType.REMOVE, (OperationType.REMOVE,)),
    ],
)
def test_dispatch_table(source_kind, target_kind, occupied, operation, steps):
    plan = router.route(_context(source_kind, target_kind, occupied=occupied, from_position=1))
    assert plan.operation == operation
    assert plan.steps == steps
    assert plan.is_replace == (steps == (OperationType.REMOVE, OperationType.ASSIGN))


def test_backlog_to_backlog_is_unroutable():
    with pytest.raises(UnroutableDragError):
        router.route(_context(SourceKind.BACKLOG, TargetKind.BACKLOG_DROP))


def test_occupancy_read_from_grid_when_unset():
    stores = make_stores(3, ["A", "B", None])
    assert router.route(DragContext.move(0, 1), stores.grid).operation == OperationType.SWAP
    assert router.route(DragContext.move(0, 2), stores.grid).operation == OperationType.MOVE
    # Out-of-range targets still route; validation rejects them later
    assert router.route(DragContext.move(0, 9), stores.grid).operation == OperationType.MOVE


def test_explicit_occupancy_wins_over_grid():
    stores = make_stores(3, ["A", None, None])
    context = _context(SourceKind.GRID, TargetKind.GRID_SLOT, occupied=True, from_position=0, to_position=2)
    assert router.route(context, stores.grid).operation == OperationType.SWAP


def test_routing_is_deterministic():
    context = _context(SourceKind.GRID, TargetKind.GRID_SLOT, occupied=True, from_position=0)
    assert len({router.route(context) for _ in range(5)}) == 1


def test_parse_drag_event_backlog_item_to_slot():
    stores = make_stores(3, ["A", None, None], backlog_only=["X"])
    context = parse_drag_event("X", "grid-0", stores.grid, group_id="g1")
    assert context.source.kind == SourceKind.BACKLOG
    assert context.source.item_id == "X"
    assert context.source.group_id == "g1"
    assert context.target.kind == TargetKind.GRID_SLOT
    assert context.target.position == 0
    assert context.target.is_occupied is True


def test_parse_drag_event_grid_source_reads_item():
    stores = make_stores(3, ["A", None, None])
    context = parse_drag_event("grid-0", "grid-2", stores.grid)
    assert context.source.kind == SourceKind.GRID
    assert context.source.grid_position == 0
    assert context.source.item_id == "A"
    assert context.target.is_occupied is False


def test_parse_drag_event_backlog_drop_zone():
    context = parse_drag_event("grid-1", BACKLOG_DROP_ZONE_ID)
    assert context.target.kind == TargetKind.BACKLOG_DROP
    assert context.source.item_id is None


def test_parse_drag_event_backlog_item_on_backlog_zone_is_noop():
    assert parse_drag_event("X", BACKLOG_DROP_ZONE_ID) is None


@pytest.mark.parametrize("over_id", [None, "", "somewhere-else"])
def test_parse_drag_event_without_target(over_id):
    assert parse_drag_event("X", over_id) is None


def test_transfer_request_translation():
    request = DragContext.remove(2, item_id="A").to_transfer_request()
    assert request.from_kind.value == "grid"
    assert request.to_kind.value == "backlog"
    assert request.from_position == 2
