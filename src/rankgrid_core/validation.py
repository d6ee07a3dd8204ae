"""Validation authority for grid/backlog transfers.

Every legality rule for assign, move, swap and remove lives here. The checks
are pure: they read the grid and backlog through the ``GridView`` and
``BacklogView`` protocols and never write to them, so they can be called
repeatedly (or from several threads) with no observable side effect.

A failed check returns exactly one ``ErrorCode`` so callers can show a stable
message per code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from .models import BacklogItem, GridSlot, slot_id


class ErrorCode(str, Enum):
    """Closed set of rejection reasons."""

    TARGET_POSITION_INVALID = "TARGET_POSITION_INVALID"
    SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"
    SAME_POSITION = "SAME_POSITION"
    ITEM_ALREADY_PLACED = "ITEM_ALREADY_PLACED"
    TARGET_OCCUPIED_FOR_MOVE = "TARGET_OCCUPIED_FOR_MOVE"
    TARGET_EMPTY_FOR_SWAP = "TARGET_EMPTY_FOR_SWAP"
    TARGET_GROUP_NOT_LOADED = "TARGET_GROUP_NOT_LOADED"
    # Execution-time anomaly, never produced by validation
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TransferKind(str, Enum):
    """Where a transfer starts or ends."""

    BACKLOG = "backlog"
    GRID = "grid"


class GridView(Protocol):
    @property
    def max_size(self) -> int: ...

    def in_bounds(self, position: Optional[int]) -> bool: ...

    def slot_at(self, position: int) -> GridSlot: ...

    def position_of(self, item_id: str) -> Optional[int]: ...


class BacklogView(Protocol):
    def get_item(self, item_id: str) -> Optional[BacklogItem]: ...

    def is_group_loaded(self, group_id: str) -> bool: ...


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a legality check."""

    is_valid: bool
    error_code: Optional[ErrorCode] = None
    error_message: str = ""
    debug_info: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **debug_info: Any) -> "ValidationResult":
        return cls(is_valid=True, debug_info=debug_info)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, **debug_info: Any) -> "ValidationResult":
        return cls(is_valid=False, error_code=code, error_message=message, debug_info=debug_info)


@dataclass(frozen=True)
class TransferRequest:
    """A proposed transfer of one item between backlog and grid."""

    item_id: Optional[str]
    from_kind: TransferKind
    to_kind: TransferKind
    from_position: Optional[int] = None
    to_position: Optional[int] = None
    group_id: Optional[str] = None


@dataclass(frozen=True)
class ValidationRules:
    """Tunable rules; everything else is fixed by the slot invariants."""

    allow_swap: bool = True


class ValidationAuthority:
    """
    Single place that decides whether a transfer is legal.

    The authority keeps only its rules. Grid and backlog state are passed in on
    every call.
    """

    def __init__(self, rules: Optional[ValidationRules] = None):
        self._rules = rules or ValidationRules()

    @property
    def rules(self) -> ValidationRules:
        return self._rules

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def can_transfer(
        self, request: TransferRequest, grid: GridView, backlog: BacklogView
    ) -> ValidationResult:
        """
        Validate a transfer described by source/target kinds.

        Grid-to-grid transfers are judged as a swap when the target slot is
        occupied and as a move otherwise.
        """
        if request.from_kind == TransferKind.BACKLOG and request.to_kind == TransferKind.GRID:
            if request.item_id is None:
                return ValidationResult.fail(
                    ErrorCode.SOURCE_NOT_FOUND, "No item was given for the transfer."
                )
            return self.can_assign(
                request.item_id, request.to_position, grid, backlog, group_id=request.group_id
            )

        if request.from_kind == TransferKind.GRID and request.to_kind == TransferKind.GRID:
            if grid.in_bounds(request.to_position) and grid.slot_at(request.to_position).occupied:
                return self.can_swap(
                    request.from_position, request.to_position, grid, item_id=request.item_id
                )
            return self.can_move(
                request.from_position, request.to_position, grid, item_id=request.item_id
            )

        if request.from_kind == TransferKind.GRID and request.to_kind == TransferKind.BACKLOG:
            return self.can_remove(request.from_position, grid, item_id=request.item_id)

        return ValidationResult.fail(
            ErrorCode.TARGET_POSITION_INVALID,
            "Items can only be dropped onto the grid from the backlog.",
            from_kind=request.from_kind.value,
            to_kind=request.to_kind.value,
        )

    # ------------------------------------------------------------------
    # Per-operation checks
    # ------------------------------------------------------------------

    def can_assign(
        self,
        item_id: str,
        position: Optional[int],
        grid: GridView,
        backlog: BacklogView,
        group_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Check placing a backlog item at ``position``.

        An occupied target is legal (the occupant is sent back to the
        backlog) as long as the occupant's group is loaded.
        """
        bounds = self.is_position_in_bounds(position, grid)
        if not bounds.is_valid:
            return bounds

        availability = self.is_item_available(item_id, grid, backlog, group_id=group_id)
        if not availability.is_valid:
            return availability

        target = grid.slot_at(position)
        if target.occupied:
            occupant = backlog.get_item(target.item_id)
            if occupant is None or not backlog.is_group_loaded(occupant.group_id or ""):
                return ValidationResult.fail(
                    ErrorCode.TARGET_GROUP_NOT_LOADED,
                    f"Position {position + 1} holds an item whose backlog group is not loaded. "
                    "Open its group before replacing it.",
                    position=position,
                    occupant_id=target.item_id,
                )
            return ValidationResult.ok(position=position, displaced_item_id=target.item_id)

        return ValidationResult.ok(position=position)

    def can_move(
        self,
        from_position: Optional[int],
        to_position: Optional[int],
        grid: GridView,
        item_id: Optional[str] = None,
    ) -> ValidationResult:
        """Check relocating the content of ``from_position`` to an empty ``to_position``."""
        pair = self._check_grid_pair(from_position, to_position, grid, item_id)
        if not pair.is_valid:
            return pair

        target = grid.slot_at(to_position)
        if target.occupied:
            return ValidationResult.fail(
                ErrorCode.TARGET_OCCUPIED_FOR_MOVE,
                f"Position {to_position + 1} already has an item. Drop on an empty slot or swap items.",
                to_position=to_position,
                occupant_id=target.item_id,
            )
        return ValidationResult.ok(from_position=from_position, to_position=to_position)

    def can_swap(
        self,
        from_position: Optional[int],
        to_position: Optional[int],
        grid: GridView,
        item_id: Optional[str] = None,
        enforce_rules: bool = True,
    ) -> ValidationResult:
        """
        Check exchanging the items of two occupied slots.

        ``enforce_rules=False`` skips the configurable ``allow_swap`` rule; it is
        used to undo a swap that was already applied.
        """
        pair = self._check_grid_pair(from_position, to_position, grid, item_id)
        if not pair.is_valid:
            return pair

        target = grid.slot_at(to_position)
        if not target.occupied:
            return ValidationResult.fail(
                ErrorCode.TARGET_EMPTY_FOR_SWAP,
                f"Position {to_position + 1} is empty; there is nothing to swap with.",
                to_position=to_position,
            )
        if enforce_rules and not self._rules.allow_swap:
            return ValidationResult.fail(
                ErrorCode.TARGET_OCCUPIED_FOR_MOVE,
                f"Position {to_position + 1} already has an item and swapping is disabled.",
                to_position=to_position,
                occupant_id=target.item_id,
            )
        return ValidationResult.ok(from_position=from_position, to_position=to_position)

    def can_remove(
        self, position: Optional[int], grid: GridView, item_id: Optional[str] = None
    ) -> ValidationResult:
        """Check sending the item at ``position`` back to the backlog."""
        bounds = self.is_position_in_bounds(position, grid)
        if not bounds.is_valid:
            return bounds
        return self._check_source_slot(position, grid, item_id)

    def can_restore(
        self, position: Optional[int], item_id: str, grid: GridView
    ) -> ValidationResult:
        """
        Check putting previously removed content back at ``position``.

        Unlike ``can_assign`` the item need not be resident in the backlog:
        a slot may reference an item whose group was never loaded.
        """
        bounds = self.is_position_in_bounds(position, grid)
        if not bounds.is_valid:
            return bounds
        placed_at = grid.position_of(item_id)
        if placed_at is not None:
            return ValidationResult.fail(
                ErrorCode.ITEM_ALREADY_PLACED,
                "This item is already placed on the grid.",
                item_id=item_id,
                matched_with=slot_id(placed_at),
            )
        target = grid.slot_at(position)
        if target.occupied:
            return ValidationResult.fail(
                ErrorCode.TARGET_OCCUPIED_FOR_MOVE,
                f"Position {position + 1} already has an item.",
                position=position,
                occupant_id=target.item_id,
            )
        return ValidationResult.ok(position=position, item_id=item_id)

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def is_position_in_bounds(self, position: Optional[int], grid: GridView) -> ValidationResult:
        if position is None:
            return ValidationResult.fail(
                ErrorCode.TARGET_POSITION_INVALID,
                "Could not determine the grid position.",
                position=None,
            )
        if not grid.in_bounds(position):
            return ValidationResult.fail(
                ErrorCode.TARGET_POSITION_INVALID,
                f"Position {position + 1} is outside the valid range (1-{grid.max_size}).",
                position=position,
                max_size=grid.max_size,
            )
        return ValidationResult.ok(position=position)

    def is_item_available(
        self,
        item_id: str,
        grid: GridView,
        backlog: BacklogView,
        group_id: Optional[str] = None,
    ) -> ValidationResult:
        """The item must be resident (in ``group_id`` when given) and not already placed."""
        item = backlog.get_item(item_id)
        if item is None or (group_id is not None and item.group_id != group_id):
            return ValidationResult.fail(
                ErrorCode.SOURCE_NOT_FOUND,
                "The item you tried to drag could not be found. It may have been removed.",
                item_id=item_id,
                group_id=group_id,
            )
        placed_at = grid.position_of(item_id)
        if item.matched or placed_at is not None:
            return ValidationResult.fail(
                ErrorCode.ITEM_ALREADY_PLACED,
                "This item is already placed on the grid. Remove it first to move it.",
                item_id=item_id,
                matched_with=item.matched_with or (slot_id(placed_at) if placed_at is not None else None),
            )
        return ValidationResult.ok(item_id=item_id)

    def can_receive_at(self, position: int, grid: GridView) -> bool:
        """True when ``position`` is an empty in-bounds slot."""
        return grid.in_bounds(position) and not grid.slot_at(position).occupied

    def can_swap_at(self, position: int, grid: GridView) -> bool:
        """True when ``position`` holds an item that could take part in a swap."""
        return self._rules.allow_swap and grid.in_bounds(position) and grid.slot_at(position).occupied

    def _check_grid_pair(
        self,
        from_position: Optional[int],
        to_position: Optional[int],
        grid: GridView,
        item_id: Optional[str],
    ) -> ValidationResult:
        for position in (from_position, to_position):
            bounds = self.is_position_in_bounds(position, grid)
            if not bounds.is_valid:
                return bounds
        if from_position == to_position:
            return ValidationResult.fail(
                ErrorCode.SAME_POSITION,
                "The item is already at this position.",
                from_position=from_position,
                to_position=to_position,
            )
        return self._check_source_slot(from_position, grid, item_id)

    def _check_source_slot(
        self, position: int, grid: GridView, item_id: Optional[str]
    ) -> ValidationResult:
        source = grid.slot_at(position)
        if not source.occupied or (item_id is not None and source.item_id != item_id):
            return ValidationResult.fail(
                ErrorCode.SOURCE_NOT_FOUND,
                f"No matching item at position {position + 1}.",
                position=position,
                expected_item_id=item_id,
                actual_item_id=source.item_id,
            )
        return ValidationResult.ok(position=position, item_id=source.item_id)
