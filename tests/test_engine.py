"""Tests for the DragEngine facade, history and result reporting."""

import pytest

from rankgrid_core.config import ConfigLoader
from rankgrid_core.errors import UnroutableDragError
from rankgrid_core.validation import ErrorCode
from rankgrid_ops.context import DragContext, DragSource, DragTarget, SourceKind, TargetKind
from rankgrid_ops.engine import DragEngine
from rankgrid_ops.history import OperationHistory
from rankgrid_ops.notifications import ResultReporter, Severity, get_validation_notification
from rankgrid_ops.results import OperationType

from conftest import layout_of, make_stores, state_of


def _engine(layout=("A", "B", None), backlog_only=("X", "Y"), **kwargs):
    stores = make_stores(len(layout), list(layout), backlog_only=list(backlog_only))
    return DragEngine(stores, **kwargs)


def test_handle_routes_and_records():
    engine = _engine()
    result = engine.handle(DragContext.move(0, 2))
    assert result.operation_type == OperationType.MOVE
    assert layout_of(engine.stores) == [None, "B", "A"]
    assert len(engine.history) == 1

    result = engine.handle(DragContext.move(2, 1))
    assert result.operation_type == OperationType.SWAP
    assert layout_of(engine.stores) == [None, "A", "B"]
    assert len(engine.history) == 2


def test_rejections_are_not_recorded():
    engine = _engine()
    result = engine.handle(DragContext.assign("A", 2))
    assert result.error_code == ErrorCode.ITEM_ALREADY_PLACED
    assert len(engine.history) == 0


def test_apply_skips_routing():
    engine = _engine()
    result = engine.apply(OperationType.MOVE, DragContext.move(0, 1))
    assert result.error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE
    assert layout_of(engine.stores) == ["A", "B", None]


def test_validate_is_a_dry_run():
    engine = _engine()
    before = state_of(engine.stores)
    assert engine.validate(DragContext.assign("X", 0)).is_valid
    assert engine.validate(DragContext.move(2, 0)).error_code == ErrorCode.SOURCE_NOT_FOUND
    assert state_of(engine.stores) == before


def test_handle_drop_from_raw_ids():
    engine = _engine()
    result = engine.handle_drop("X", "grid-2", group_id="g1")
    assert result.success
    assert layout_of(engine.stores) == ["A", "B", "X"]

    result = engine.handle_drop("grid-0", "backlog")
    assert result.operation_type == OperationType.REMOVE
    assert layout_of(engine.stores) == [None, "B", "X"]

    assert engine.handle_drop("Y", None) is None


def test_backlog_item_dropped_on_backlog_zone_is_noop():
    engine = _engine()
    before = state_of(engine.stores)
    assert engine.handle_drop("X", "backlog") is None
    assert state_of(engine.stores) == before
    assert len(engine.history) == 0


def test_drop_on_own_slot_is_same_position():
    engine = _engine()
    before = state_of(engine.stores)
    result = engine.handle_drop("grid-1", "grid-1")
    assert result.operation_type == OperationType.SWAP
    assert result.error_code == ErrorCode.SAME_POSITION
    assert state_of(engine.stores) == before


def test_unroutable_drop_raises():
    engine = _engine()
    context = DragContext(
        source=DragSource(item_id="X", kind=SourceKind.BACKLOG),
        target=DragTarget(kind=TargetKind.BACKLOG_DROP),
    )
    with pytest.raises(UnroutableDragError):
        engine.handle(context)


def test_undo_redo():
    engine = _engine()
    start = state_of(engine.stores)
    engine.handle(DragContext.assign("X", 0))
    replaced = state_of(engine.stores)
    engine.handle(DragContext.move(1, 2))

    assert engine.undo().success
    assert state_of(engine.stores) == replaced
    assert engine.undo().success
    assert state_of(engine.stores) == start
    assert engine.undo() is None

    assert engine.redo().success
    assert state_of(engine.stores) == replaced
    assert engine.history.can_redo
    assert engine.redo().success
    assert layout_of(engine.stores) == ["X", None, "B"]
    assert engine.redo() is None


def test_new_operation_clears_redo():
    engine = _engine()
    engine.handle(DragContext.move(0, 2))
    engine.undo()
    assert engine.history.can_redo
    engine.handle(DragContext.remove(1))
    assert not engine.history.can_redo


def test_undo_rejected_when_state_changed_outside_history():
    engine = _engine()
    engine.handle(DragContext.move(0, 2))
    # Direct operation use bypasses the history
    engine.operation(OperationType.REMOVE).execute(DragContext.remove(2), engine.stores)

    inverse = engine.undo()
    assert not inverse.success
    assert engine.history.can_undo


def test_history_limit_from_config():
    config = ConfigLoader.from_dict({"engine": {"history_limit": 1}})
    engine = _engine(config=config)
    engine.handle(DragContext.move(0, 2))
    engine.handle(DragContext.remove(1))
    assert len(engine.history) == 1
    assert engine.history.peek_undo().result.operation_type == OperationType.REMOVE


def test_history_disabled():
    history = OperationHistory(limit=0)
    engine = _engine(history=history)
    engine.handle(DragContext.move(0, 2))
    assert engine.undo() is None


def test_swap_disabled_by_config():
    config = ConfigLoader.from_dict({"rules": {"allow_swap": False}})
    engine = _engine(config=config)
    result = engine.handle(DragContext.move(0, 1))
    assert result.operation_type == OperationType.SWAP
    assert result.error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE


def test_swap_can_be_undone_after_swapping_is_disabled():
    engine = _engine()
    assert engine.handle(DragContext.move(0, 1)).operation_type == OperationType.SWAP
    assert layout_of(engine.stores) == ["B", "A", None]

    config = ConfigLoader.from_dict({"rules": {"allow_swap": False}})
    strict = DragEngine(engine.stores, config=config, history=engine.history)
    undone = strict.undo()
    assert undone.success
    assert layout_of(engine.stores) == ["A", "B", None]
    assert not strict.history.can_undo

    # New swaps stay refused
    assert strict.handle(DragContext.move(0, 1)).error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE


def test_invariant_audit_enabled_by_config(monkeypatch):
    config = ConfigLoader.from_dict({"engine": {"check_invariants": True}})
    engine = _engine(config=config)
    assert engine.handle(DragContext.assign("X", 2)).success
    assert not engine.stores.check_invariants

    # A match write that does nothing is caught by the audit and rolled back
    monkeypatch.setattr(engine.stores.backlog, "mark_matched", lambda item_id, slot_id: None)
    before = state_of(engine.stores)
    result = engine.handle(DragContext.assign("Y", 0))
    assert result.error_code == ErrorCode.UNKNOWN_ERROR
    assert state_of(engine.stores) == before


def test_invariant_audit_does_not_leak_to_other_engines(monkeypatch):
    audited = _engine(config=ConfigLoader.from_dict({"engine": {"check_invariants": True}}))
    plain = DragEngine(audited.stores)
    assert not audited.stores.check_invariants

    monkeypatch.setattr(plain.stores.backlog, "mark_matched", lambda item_id, slot_id: None)
    # Without the audit the broken write goes through unnoticed
    assert plain.handle(DragContext.assign("X", 2)).success


def test_reporter_notifications():
    seen = []
    reporter = ResultReporter(on_notification=seen.append, show_success=True, duration_ms=1000)
    engine = _engine(reporter=reporter)

    engine.handle(DragContext.move(0, 2))
    engine.handle(DragContext.assign("A", 0))
    engine.handle(DragContext.assign("X", 1))

    assert [n.severity for n in seen] == [Severity.SUCCESS, Severity.WARNING, Severity.SUCCESS]
    assert seen[0].title == "Item Moved"
    assert seen[0].description == "Moved from position 1 to 3"
    assert seen[1].title == "Item Already Placed"
    assert seen[2].title == "Item Replaced"
    assert all(n.duration_ms == 1000 for n in seen)


def test_reporter_hides_success_by_default():
    seen = []
    engine = _engine(reporter=ResultReporter(on_notification=seen.append))
    engine.handle(DragContext.move(0, 2))
    engine.handle(DragContext.move(2, 2))
    assert len(seen) == 1
    assert seen[0].title == "Same Position"


def test_failures_are_logged(caplog):
    engine = _engine()
    with caplog.at_level("WARNING", logger="rankgrid_ops.notifications"):
        engine.handle(DragContext.remove(2))
    assert "SOURCE_NOT_FOUND" in caplog.text


@pytest.mark.parametrize("code", list(ErrorCode))
def test_every_error_code_has_a_notification(code):
    notification = get_validation_notification(code)
    assert notification.title
    assert notification.description
    assert notification.severity != Severity.SUCCESS


def test_unknown_error_notification():
    notification = get_validation_notification(ErrorCode.UNKNOWN_ERROR)
    assert notification.title == "Something Went Wrong"
    assert notification.severity == Severity.ERROR
