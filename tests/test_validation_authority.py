"""Tests for the validation authority."""

import pytest

from rankgrid_core.validation import (
    ErrorCode,
    TransferKind,
    TransferRequest,
    ValidationAuthority,
    ValidationRules,
)

from conftest import make_group, make_stores, state_of

authority = ValidationAuthority()


def test_assign_to_empty_slot_is_valid():
    stores = make_stores(3, ["A", None, None], backlog_only=["X"])
    result = authority.can_assign("X", 1, stores.grid, stores.backlog)
    assert result.is_valid
    assert result.error_code is None


@pytest.mark.parametrize("position", [None, -1, 3])
def test_assign_out_of_bounds(position):
    stores = make_stores(3, backlog_only=["X"])
    result = authority.can_assign("X", position, stores.grid, stores.backlog)
    assert result.error_code == ErrorCode.TARGET_POSITION_INVALID


def test_assign_unknown_item_or_wrong_group():
    stores = make_stores(3, backlog_only=["X"])
    assert authority.can_assign("nope", 0, stores.grid, stores.backlog).error_code == ErrorCode.SOURCE_NOT_FOUND
    result = authority.can_assign("X", 0, stores.grid, stores.backlog, group_id="other")
    assert result.error_code == ErrorCode.SOURCE_NOT_FOUND


def test_assign_already_placed_item():
    stores = make_stores(2, ["A", None])
    result = authority.can_assign("A", 1, stores.grid, stores.backlog)
    assert result.error_code == ErrorCode.ITEM_ALREADY_PLACED
    assert result.debug_info["matched_with"] == "grid-0"


def test_assign_onto_occupied_slot_reports_displaced_item():
    stores = make_stores(2, ["A", None], backlog_only=["X"])
    result = authority.can_assign("X", 0, stores.grid, stores.backlog)
    assert result.is_valid
    assert result.debug_info["displaced_item_id"] == "A"


def test_assign_onto_slot_of_unloaded_group():
    stores = make_stores(2, ["A", None], groups=[make_group("g1", ["A"]), make_group("g2", ["X"])])
    stores.backlog.unload_group("g1")
    result = authority.can_assign("X", 0, stores.grid, stores.backlog)
    assert result.error_code == ErrorCode.TARGET_GROUP_NOT_LOADED
    assert result.debug_info["occupant_id"] == "A"


def test_move_checks():
    stores = make_stores(3, ["A", "B", None])
    assert authority.can_move(1, 2, stores.grid).is_valid
    assert authority.can_move(1, 2, stores.grid, item_id="B").is_valid
    assert authority.can_move(1, 2, stores.grid, item_id="A").error_code == ErrorCode.SOURCE_NOT_FOUND
    assert authority.can_move(1, 0, stores.grid).error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE
    assert authority.can_move(1, 1, stores.grid).error_code == ErrorCode.SAME_POSITION
    assert authority.can_move(2, 0, stores.grid).error_code == ErrorCode.SOURCE_NOT_FOUND
    assert authority.can_move(1, 7, stores.grid).error_code == ErrorCode.TARGET_POSITION_INVALID
    assert authority.can_move(None, 2, stores.grid).error_code == ErrorCode.TARGET_POSITION_INVALID


def test_swap_checks():
    stores = make_stores(3, ["A", "B", None])
    assert authority.can_swap(0, 1, stores.grid).is_valid
    assert authority.can_swap(0, 2, stores.grid).error_code == ErrorCode.TARGET_EMPTY_FOR_SWAP
    assert authority.can_swap(0, 0, stores.grid).error_code == ErrorCode.SAME_POSITION
    assert authority.can_swap(2, 0, stores.grid).error_code == ErrorCode.SOURCE_NOT_FOUND


def test_swap_disabled_by_rules():
    stores = make_stores(3, ["A", "B", None])
    strict = ValidationAuthority(ValidationRules(allow_swap=False))
    assert strict.can_swap(0, 1, stores.grid).error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE
    assert not strict.can_swap_at(1, stores.grid)
    assert authority.can_swap_at(1, stores.grid)
    # Slot checks still apply when the rule is skipped
    assert strict.can_swap(0, 1, stores.grid, enforce_rules=False).is_valid
    assert strict.can_swap(0, 2, stores.grid, enforce_rules=False).error_code == ErrorCode.TARGET_EMPTY_FOR_SWAP


def test_remove_checks():
    stores = make_stores(2, ["A", None])
    assert authority.can_remove(0, stores.grid).is_valid
    assert authority.can_remove(1, stores.grid).error_code == ErrorCode.SOURCE_NOT_FOUND
    assert authority.can_remove(5, stores.grid).error_code == ErrorCode.TARGET_POSITION_INVALID
    assert authority.can_remove(0, stores.grid, item_id="B").error_code == ErrorCode.SOURCE_NOT_FOUND


def test_restore_checks():
    stores = make_stores(3, ["A", None, None])
    assert authority.can_restore(1, "Z", stores.grid).is_valid
    assert authority.can_restore(1, "A", stores.grid).error_code == ErrorCode.ITEM_ALREADY_PLACED
    assert authority.can_restore(0, "Z", stores.grid).error_code == ErrorCode.TARGET_OCCUPIED_FOR_MOVE


def test_position_predicates():
    stores = make_stores(2, ["A", None])
    assert authority.can_receive_at(1, stores.grid)
    assert not authority.can_receive_at(0, stores.grid)
    assert not authority.can_receive_at(2, stores.grid)
    assert authority.is_position_in_bounds(1, stores.grid).is_valid
    assert not authority.is_item_available("A", stores.grid, stores.backlog).is_valid


def test_can_transfer_dispatches_by_kind():
    stores = make_stores(3, ["A", "B", None], backlog_only=["X"])
    grid, backlog = stores.grid, stores.backlog

    assign = TransferRequest("X", TransferKind.BACKLOG, TransferKind.GRID, to_position=2)
    assert authority.can_transfer(assign, grid, backlog).is_valid

    missing = TransferRequest(None, TransferKind.BACKLOG, TransferKind.GRID, to_position=2)
    assert authority.can_transfer(missing, grid, backlog).error_code == ErrorCode.SOURCE_NOT_FOUND

    swap = TransferRequest("A", TransferKind.GRID, TransferKind.GRID, from_position=0, to_position=1)
    assert authority.can_transfer(swap, grid, backlog).is_valid

    move = TransferRequest("A", TransferKind.GRID, TransferKind.GRID, from_position=0, to_position=2)
    assert authority.can_transfer(move, grid, backlog).is_valid

    remove = TransferRequest("B", TransferKind.GRID, TransferKind.BACKLOG, from_position=1)
    assert authority.can_transfer(remove, grid, backlog).is_valid

    nowhere = TransferRequest("X", TransferKind.BACKLOG, TransferKind.BACKLOG)
    assert authority.can_transfer(nowhere, grid, backlog).error_code == ErrorCode.TARGET_POSITION_INVALID


def test_checks_never_mutate_state():
    stores = make_stores(3, ["A", "B", None], backlog_only=["X"])
    before = state_of(stores)
    for _ in range(3):
        authority.can_assign("X", 0, stores.grid, stores.backlog)
        authority.can_assign("A", 2, stores.grid, stores.backlog)
        authority.can_move(0, 2, stores.grid)
        authority.can_swap(0, 1, stores.grid)
        authority.can_remove(1, stores.grid)
    assert state_of(stores) == before
