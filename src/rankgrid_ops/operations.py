"""The four grid operations: Assign, Move, Swap, Remove.

Each operation validates through the ValidationAuthority, executes inside a
store transaction, and knows its own inverse:

- Assign  -> Remove (and re-place the item it displaced, if any)
- Move    -> Move with the positions exchanged
- Swap    -> the same Swap again
- Remove  -> Assign of the removed content at the same position
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, assert_never

from rankgrid_core.errors import TransactionError
from rankgrid_core.validation import ErrorCode, ValidationAuthority, ValidationResult

from .context import DragContext, SourceKind, TargetKind
from .results import DragAction, DragOperationResult, OperationMetadata, OperationType
from .stores import OperationStores

logger = logging.getLogger(__name__)


class DragOperation(ABC):
    """Base class for one kind of validated, reversible grid mutation."""

    type: OperationType

    def __init__(self, authority: Optional[ValidationAuthority] = None):
        self.authority = authority or ValidationAuthority()

    @abstractmethod
    def validate(self, context: DragContext, stores: OperationStores) -> ValidationResult:
        """Pure legality check; never mutates ``stores``."""
        pass

    @abstractmethod
    def _apply(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        """Perform the mutation. Runs inside a transaction after validation passed."""
        pass

    @abstractmethod
    def _validate_inverse(
        self, result: DragOperationResult, stores: OperationStores
    ) -> ValidationResult:
        pass

    @abstractmethod
    def _apply_inverse(
        self, result: DragOperationResult, stores: OperationStores
    ) -> DragOperationResult:
        pass

    def execute(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        """
        Validate and apply the operation as one unit.

        Returns:
            A successful result, a rejection carrying the validation error code
            (nothing changed), or an UNKNOWN_ERROR result after an execution
            anomaly (partial changes already rolled back)
        """
        validation = self.validate(context, stores)
        if not validation.is_valid:
            logger.debug("%s rejected: %s", self.type.value, validation.error_code)
            return DragOperationResult.rejected(self.type, validation)
        return self._transact(lambda: self._apply(context, stores), stores)

    def rollback(
        self, context: DragContext, result: DragOperationResult, stores: OperationStores
    ) -> DragOperationResult:
        """
        Undo a successful result of this operation with its minimal inverse.

        The inverse is validated against the current state first; if the grid
        has changed so that the inverse no longer applies, a rejection is
        returned and nothing is modified.
        """
        if not result.success or result.operation_type != self.type or result.metadata is None:
            raise TransactionError(
                f"Cannot roll back a {result.operation_type.value} result with {self.type.value}"
                + ("" if result.success else " (operation did not succeed)")
            )
        validation = self._validate_inverse(result, stores)
        if not validation.is_valid:
            logger.debug("%s rollback rejected: %s", self.type.value, validation.error_code)
            return DragOperationResult.rejected(self.inverse_type, validation)
        return self._transact(lambda: self._apply_inverse(result, stores), stores)

    @property
    def inverse_type(self) -> OperationType:
        match self.type:
            case OperationType.ASSIGN:
                return OperationType.REMOVE
            case OperationType.REMOVE:
                return OperationType.ASSIGN
            case OperationType.MOVE | OperationType.SWAP:
                return self.type
            case _:
                assert_never(self.type)

    def _transact(
        self, apply: Callable[[], DragOperationResult], stores: OperationStores
    ) -> DragOperationResult:
        try:
            with stores.transaction():
                return apply()
        except TransactionError:
            raise
        except Exception as e:
            logger.error("%s failed during execution, changes rolled back: %s", self.type.value, e)
            return DragOperationResult.failed(self.type, str(e))


class AssignOperation(DragOperation):
    """Backlog item -> grid slot. An occupied slot's item is sent back to the backlog first."""

    type = OperationType.ASSIGN

    def validate(self, context: DragContext, stores: OperationStores) -> ValidationResult:
        source, target = context.source, context.target
        if source.kind != SourceKind.BACKLOG or target.kind != TargetKind.GRID_SLOT:
            return _wrong_shape(self.type, context)
        if source.item_id is None:
            return ValidationResult.fail(ErrorCode.SOURCE_NOT_FOUND, "No item was given to place.")
        return self.authority.can_assign(
            source.item_id, target.position, stores.grid, stores.backlog, group_id=source.group_id
        )

    def _apply(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        position = context.target.position
        removed = None
        if stores.grid.slot_at(position).occupied:
            removed = stores.unassign(position)
        placed = stores.assign_item(position, context.source.item_id)
        logger.info(
            "assigned %s to position %d%s",
            placed.item_id,
            position,
            f" (displaced {removed.item_id})" if removed else "",
        )
        return DragOperationResult(
            success=True,
            operation_type=self.type,
            action=DragAction.PLACE,
            item=placed,
            metadata=OperationMetadata(position=position, placed_item=placed, removed_item=removed),
        )

    def _validate_inverse(self, result, stores):
        meta = result.metadata
        check = self.authority.can_remove(meta.position, stores.grid, item_id=meta.placed_item.item_id)
        if not check.is_valid or meta.removed_item is None:
            return check
        displaced_id = meta.removed_item.item_id
        if stores.grid.position_of(displaced_id) is not None:
            return ValidationResult.fail(
                ErrorCode.ITEM_ALREADY_PLACED,
                "The replaced item has since been placed elsewhere on the grid.",
                item_id=displaced_id,
            )
        return check

    def _apply_inverse(self, result, stores):
        meta = result.metadata
        removed = stores.unassign(meta.position)
        restored = None
        if meta.removed_item is not None:
            restored = stores.restore_content(meta.position, meta.removed_item)
        return DragOperationResult(
            success=True,
            operation_type=OperationType.REMOVE,
            action=DragAction.REMOVE,
            item=removed,
            metadata=OperationMetadata(position=meta.position, removed_item=removed, placed_item=restored),
        )


class MoveOperation(DragOperation):
    """Grid slot -> empty grid slot."""

    type = OperationType.MOVE

    def validate(self, context: DragContext, stores: OperationStores) -> ValidationResult:
        source, target = context.source, context.target
        if source.kind != SourceKind.GRID or target.kind != TargetKind.GRID_SLOT:
            return _wrong_shape(self.type, context)
        return self.authority.can_move(
            source.grid_position, target.position, stores.grid, item_id=source.item_id
        )

    def _apply(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        from_position, to_position = context.source.grid_position, context.target.position
        content = stores.relocate(from_position, to_position)
        logger.info("moved %s from %d to %d", content.item_id, from_position, to_position)
        return _pair_result(self.type, DragAction.MOVE, content, from_position, to_position)

    def _validate_inverse(self, result, stores):
        meta = result.metadata
        return self.authority.can_move(
            meta.to_position, meta.from_position, stores.grid, item_id=result.item.item_id
        )

    def _apply_inverse(self, result, stores):
        meta = result.metadata
        content = stores.relocate(meta.to_position, meta.from_position)
        return _pair_result(self.type, DragAction.MOVE, content, meta.to_position, meta.from_position)


class SwapOperation(DragOperation):
    """Grid slot <-> occupied grid slot. Its own inverse."""

    type = OperationType.SWAP

    def validate(self, context: DragContext, stores: OperationStores) -> ValidationResult:
        source, target = context.source, context.target
        if source.kind != SourceKind.GRID or target.kind != TargetKind.GRID_SLOT:
            return _wrong_shape(self.type, context)
        return self.authority.can_swap(
            source.grid_position, target.position, stores.grid, item_id=source.item_id
        )

    def _apply(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        from_position, to_position = context.source.grid_position, context.target.position
        dragged, other = stores.exchange(from_position, to_position)
        logger.info(
            "swapped %s (%d) with %s (%d)", dragged.item_id, from_position, other.item_id, to_position
        )
        return _pair_result(self.type, DragAction.SWAP, dragged, from_position, to_position)

    def _validate_inverse(self, result, stores):
        meta = result.metadata
        # The dragged item must still sit where the swap put it
        return self.authority.can_swap(
            meta.to_position,
            meta.from_position,
            stores.grid,
            item_id=result.item.item_id,
            enforce_rules=False,
        )

    def _apply_inverse(self, result, stores):
        meta = result.metadata
        stores.exchange(meta.from_position, meta.to_position)
        return _pair_result(self.type, DragAction.SWAP, result.item, meta.from_position, meta.to_position)


class RemoveOperation(DragOperation):
    """Grid slot -> backlog drop zone."""

    type = OperationType.REMOVE

    def validate(self, context: DragContext, stores: OperationStores) -> ValidationResult:
        source, target = context.source, context.target
        if source.kind != SourceKind.GRID or target.kind != TargetKind.BACKLOG_DROP:
            return _wrong_shape(self.type, context)
        return self.authority.can_remove(source.grid_position, stores.grid, item_id=source.item_id)

    def _apply(self, context: DragContext, stores: OperationStores) -> DragOperationResult:
        position = context.source.grid_position
        removed = stores.unassign(position)
        logger.info("removed %s from position %d", removed.item_id, position)
        return DragOperationResult(
            success=True,
            operation_type=self.type,
            action=DragAction.REMOVE,
            item=removed,
            metadata=OperationMetadata(position=position, removed_item=removed),
        )

    def _validate_inverse(self, result, stores):
        meta = result.metadata
        return self.authority.can_restore(meta.position, meta.removed_item.item_id, stores.grid)

    def _apply_inverse(self, result, stores):
        meta = result.metadata
        placed = stores.restore_content(meta.position, meta.removed_item)
        return DragOperationResult(
            success=True,
            operation_type=OperationType.ASSIGN,
            action=DragAction.PLACE,
            item=placed,
            metadata=OperationMetadata(position=meta.position, placed_item=placed),
        )


def _pair_result(op_type, action, content, from_position, to_position) -> DragOperationResult:
    return DragOperationResult(
        success=True,
        operation_type=op_type,
        action=action,
        item=content,
        metadata=OperationMetadata(from_position=from_position, to_position=to_position),
    )


def _wrong_shape(op_type: OperationType, context: DragContext) -> ValidationResult:
    return ValidationResult.fail(
        ErrorCode.TARGET_POSITION_INVALID,
        f"A {context.source.kind.value} -> {context.target.kind.value} drop is not a {op_type.value}.",
        source_kind=context.source.kind.value,
        target_kind=context.target.kind.value,
    )


def create_operation(
    op_type: OperationType, authority: Optional[ValidationAuthority] = None
) -> DragOperation:
    match op_type:
        case OperationType.ASSIGN:
            return AssignOperation(authority)
        case OperationType.MOVE:
            return MoveOperation(authority)
        case OperationType.SWAP:
            return SwapOperation(authority)
        case OperationType.REMOVE:
            return RemoveOperation(authority)
        case _:
            assert_never(op_type)


def build_operations(
    authority: Optional[ValidationAuthority] = None,
) -> Dict[OperationType, DragOperation]:
    """One instance of every operation, sharing ``authority``."""
    authority = authority or ValidationAuthority()
    return {op_type: create_operation(op_type, authority) for op_type in OperationType}
