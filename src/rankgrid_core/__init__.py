"""rankgrid core - transport-agnostic ranking grid domain library."""

from .__version__ import __version__, __version_info__

from .models import (
    BacklogGroup,
    BacklogItem,
    GridSlot,
    ItemDisplay,
    SlotContent,
    is_slot_id,
    parse_slot_id,
    slot_id,
)
from .grid import GridStore
from .backlog import BacklogStore, GroupLoader, InMemoryGroupLoader, JsonGroupLoader
from .validation import (
    ErrorCode,
    TransferKind,
    TransferRequest,
    ValidationAuthority,
    ValidationResult,
    ValidationRules,
)
from .invariants import check_invariants
from .config import ConfigLoader, EngineConfig
from .errors import (
    ConfigError,
    GridIntegrityError,
    GroupLoadError,
    GroupNotFoundError,
    InvariantViolationError,
    ItemNotFoundError,
    RankGridError,
    SessionError,
    TransactionError,
    UnroutableDragError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Models
    "BacklogGroup",
    "BacklogItem",
    "GridSlot",
    "ItemDisplay",
    "SlotContent",
    "is_slot_id",
    "parse_slot_id",
    "slot_id",
    # Stores
    "GridStore",
    "BacklogStore",
    "GroupLoader",
    "InMemoryGroupLoader",
    "JsonGroupLoader",
    # Validation
    "ErrorCode",
    "TransferKind",
    "TransferRequest",
    "ValidationAuthority",
    "ValidationResult",
    "ValidationRules",
    "check_invariants",
    # Config
    "ConfigLoader",
    "EngineConfig",
    # Errors
    "ConfigError",
    "GridIntegrityError",
    "GroupLoadError",
    "GroupNotFoundError",
    "InvariantViolationError",
    "ItemNotFoundError",
    "RankGridError",
    "SessionError",
    "TransactionError",
    "UnroutableDragError",
]
