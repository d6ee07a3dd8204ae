"""rankgrid ops - drag/transfer use cases over the core stores."""

from rankgrid_core.__version__ import __version__

from .context import (
    BACKLOG_DROP_ZONE_ID,
    DragContext,
    DragSource,
    DragTarget,
    SourceKind,
    TargetKind,
    parse_drag_event,
)
from .results import DragAction, DragOperationResult, OperationMetadata, OperationType
from .stores import OperationStores
from .operations import (
    AssignOperation,
    DragOperation,
    MoveOperation,
    RemoveOperation,
    SwapOperation,
    build_operations,
    create_operation,
)
from .router import OperationRouter, RoutePlan
from .notifications import (
    Notification,
    ResultReporter,
    Severity,
    get_validation_notification,
)
from .history import HistoryEntry, OperationHistory
from .engine import DragEngine
from .session import RankingSession, SessionState, groups_from_records

__all__ = [
    "__version__",
    # Context
    "BACKLOG_DROP_ZONE_ID",
    "DragContext",
    "DragSource",
    "DragTarget",
    "SourceKind",
    "TargetKind",
    "parse_drag_event",
    # Results
    "DragAction",
    "DragOperationResult",
    "OperationMetadata",
    "OperationType",
    # Operations
    "OperationStores",
    "AssignOperation",
    "DragOperation",
    "MoveOperation",
    "RemoveOperation",
    "SwapOperation",
    "build_operations",
    "create_operation",
    "OperationRouter",
    "RoutePlan",
    # Feedback
    "Notification",
    "ResultReporter",
    "Severity",
    "get_validation_notification",
    # Engine
    "HistoryEntry",
    "OperationHistory",
    "DragEngine",
    # Session
    "RankingSession",
    "SessionState",
    "groups_from_records",
]
