"""User-facing feedback for operation results."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional, assert_never

from pydantic import BaseModel

from rankgrid_core.validation import ErrorCode

from .context import DragContext
from .results import DragOperationResult, OperationType

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 3000


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    severity: Severity
    title: str
    description: str
    duration_ms: int = DEFAULT_DURATION_MS


NotificationCallback = Callable[[Notification], None]


_VALIDATION_NOTIFICATIONS: Dict[ErrorCode, tuple[str, str, Severity]] = {
    ErrorCode.SOURCE_NOT_FOUND: (
        "Item Not Found",
        "The item could not be found. Reload its group and try again.",
        Severity.ERROR,
    ),
    ErrorCode.ITEM_ALREADY_PLACED: (
        "Item Already Placed",
        "This item is already on your grid. Remove it first to reposition.",
        Severity.WARNING,
    ),
    ErrorCode.TARGET_POSITION_INVALID: (
        "Invalid Position",
        "That position is not part of the grid.",
        Severity.ERROR,
    ),
    ErrorCode.TARGET_OCCUPIED_FOR_MOVE: (
        "Position Occupied",
        "Drop on an empty slot, or drag directly onto another item to swap.",
        Severity.INFO,
    ),
    ErrorCode.TARGET_EMPTY_FOR_SWAP: (
        "Nothing to Swap",
        "The target slot is empty. Drop the item there to move it instead.",
        Severity.INFO,
    ),
    ErrorCode.TARGET_GROUP_NOT_LOADED: (
        "Group Not Loaded",
        "The item in that slot belongs to a group that is not loaded. Load the group first.",
        Severity.WARNING,
    ),
    ErrorCode.SAME_POSITION: (
        "Same Position",
        "The item is already at this position.",
        Severity.INFO,
    ),
}

_UNKNOWN = ("Something Went Wrong", "An unexpected error occurred. Please try again.", Severity.ERROR)


def get_validation_notification(code: Optional[ErrorCode]) -> Notification:
    """Title, description and severity to show for a rejection code."""
    title, description, severity = _VALIDATION_NOTIFICATIONS.get(code, _UNKNOWN)
    return Notification(severity=severity, title=title, description=description)


def success_notification(result: DragOperationResult) -> Notification:
    meta = result.metadata
    match result.operation_type:
        case OperationType.ASSIGN:
            title = "Item Replaced" if meta.removed_item else "Item Placed"
            description = f"Added to position {meta.position + 1}"
        case OperationType.MOVE:
            title = "Item Moved"
            description = f"Moved from position {meta.from_position + 1} to {meta.to_position + 1}"
        case OperationType.SWAP:
            title = "Items Swapped"
            description = f"Swapped positions {meta.from_position + 1} and {meta.to_position + 1}"
        case OperationType.REMOVE:
            title = "Item Removed"
            description = f"Returned position {meta.position + 1} to the backlog"
        case _:
            assert_never(result.operation_type)
    return Notification(severity=Severity.SUCCESS, title=title, description=description)


class ResultReporter:
    """
    Logs every result and turns it into a notification.

    Successes are logged at debug level and only notified when
    ``show_success`` is set. Failures are logged as warnings and always
    notified.
    """

    def __init__(
        self,
        on_notification: Optional[NotificationCallback] = None,
        show_success: bool = False,
        duration_ms: int = DEFAULT_DURATION_MS,
    ):
        self.on_notification = on_notification
        self.show_success = show_success
        self.duration_ms = duration_ms

    def report(self, result: DragOperationResult, context: DragContext) -> Optional[Notification]:
        if result.success:
            logger.debug(
                "%s succeeded (%s): %s",
                result.operation_type.value,
                result.action.value,
                result.metadata.model_dump(exclude_none=True) if result.metadata else {},
            )
            if not self.show_success:
                return None
            notification = success_notification(result)
        else:
            logger.warning(
                "%s failed [%s]: %s (source=%s, target=%s)",
                result.operation_type.value,
                result.error_code.value if result.error_code else None,
                result.error_message,
                context.source.model_dump(exclude_none=True),
                context.target.model_dump(exclude_none=True),
            )
            notification = get_validation_notification(result.error_code)
            if result.error_code == ErrorCode.UNKNOWN_ERROR and result.error_message:
                notification = notification.model_copy(update={"description": result.error_message})

        notification = notification.model_copy(update={"duration_ms": self.duration_ms})
        if self.on_notification is not None:
            self.on_notification(notification)
        return notification
