"""Exception taxonomy for rankgrid-core."""

from typing import List, Optional


class RankGridError(Exception):
    """Base exception for all rankgrid errors."""

    pass


# Config errors


class ConfigError(RankGridError):
    """Failed to load or validate configuration."""

    pass


# Backlog errors


class ItemNotFoundError(RankGridError):
    """Item is not resident in any loaded backlog group."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class GroupNotFoundError(RankGridError):
    """Backlog group does not exist."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Backlog group not found: {group_id}")


class GroupLoadError(RankGridError):
    """Backlog group could not be loaded."""

    def __init__(self, group_id: str, details: str) -> None:
        self.group_id = group_id
        self.details = details
        super().__init__(f"Failed to load group {group_id}: {details}")


# Grid errors


class GridIntegrityError(RankGridError):
    """A grid primitive was asked to break a slot invariant."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        self.position = position
        super().__init__(message)


class InvariantViolationError(RankGridError):
    """Post-operation audit found broken invariants."""

    def __init__(self, violations: List[str]) -> None:
        self.violations = violations
        violation_list = "\n".join(f"  - {v}" for v in violations)
        super().__init__(f"Invariant check failed:\n{violation_list}")


# Engine errors


class TransactionError(RankGridError):
    """Operation transaction could not be applied or undone."""

    pass


class UnroutableDragError(RankGridError):
    """No operation is defined for the given source/target combination."""

    def __init__(self, source_kind: str, target_kind: str) -> None:
        self.source_kind = source_kind
        self.target_kind = target_kind
        super().__init__(f"No operation for drag {source_kind} -> {target_kind}")


# Session errors


class SessionError(RankGridError):
    """Session file could not be read or written."""

    pass
