"""Operation results and the metadata each operation's inverse needs."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from rankgrid_core.models import SlotContent
from rankgrid_core.validation import ErrorCode, ValidationResult


class OperationType(str, Enum):
    """The closed set of grid operations."""

    ASSIGN = "assign"
    MOVE = "move"
    SWAP = "swap"
    REMOVE = "remove"


class DragAction(str, Enum):
    PLACE = "place"
    MOVE = "move"
    SWAP = "swap"
    REMOVE = "remove"
    REJECT = "reject"


class OperationMetadata(BaseModel):
    """
    Exactly what the inverse operation needs.

    Move/Swap: ``from_position``, ``to_position``.
    Assign: ``position``, ``placed_item`` and the displaced ``removed_item`` if any.
    Remove: ``position``, ``removed_item``.
    """

    position: Optional[int] = None
    from_position: Optional[int] = None
    to_position: Optional[int] = None
    placed_item: Optional[SlotContent] = None
    removed_item: Optional[SlotContent] = None

    model_config = ConfigDict(frozen=True)


class DragOperationResult(BaseModel):
    success: bool
    operation_type: OperationType
    action: DragAction
    item: Optional[SlotContent] = None
    metadata: Optional[OperationMetadata] = None
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def rejected(cls, operation_type: OperationType, validation: ValidationResult) -> DragOperationResult:
        return cls(
            success=False,
            operation_type=operation_type,
            action=DragAction.REJECT,
            error_code=validation.error_code,
            error_message=validation.error_message,
        )

    @classmethod
    def failed(cls, operation_type: OperationType, message: str) -> DragOperationResult:
        """Execution anomaly: state was left (or restored to) exactly as before."""
        return cls(
            success=False,
            operation_type=operation_type,
            action=DragAction.REJECT,
            error_code=ErrorCode.UNKNOWN_ERROR,
            error_message=message,
        )
