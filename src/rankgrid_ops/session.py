"""
Ranking session: one grid and one backlog, persisted as a JSON file.

The session owns the stores and the undo history. It is also where lazily
loaded groups are reconciled with the grid: items come back from a loader
unmatched, so any item a slot already references is re-marked as matched
(and its slot's display copy refreshed) right after the load.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from rankgrid_core.backlog import BacklogStore, GroupLoader
from rankgrid_core.config import EngineConfig
from rankgrid_core.errors import GridIntegrityError, GroupLoadError, SessionError
from rankgrid_core.grid import GridStore
from rankgrid_core.invariants import check_invariants
from rankgrid_core.models import BacklogGroup, GridSlot, ItemDisplay, slot_id

from .engine import DragEngine
from .history import HistoryEntry, OperationHistory
from .notifications import ResultReporter
from .stores import OperationStores

logger = logging.getLogger(__name__)

SESSION_FORMAT_VERSION = 1


class SessionState(BaseModel):
    """On-disk form of a RankingSession."""

    version: int = SESSION_FORMAT_VERSION
    list_size: int = Field(..., ge=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    slots: List[GridSlot]
    groups: List[BacklogGroup] = Field(default_factory=list)
    history_limit: int = Field(100, ge=0)
    history: List[HistoryEntry] = Field(default_factory=list)
    redo: List[HistoryEntry] = Field(default_factory=list)


def groups_from_records(records: Iterable[Any]) -> List[BacklogGroup]:
    """
    Build groups from raw records.

    A record that carries inline ``items`` is treated as already loaded;
    otherwise the group starts unloaded and is filled later by a loader.
    """
    groups = []
    for record in records:
        try:
            group = BacklogGroup.model_validate(record)
        except PydanticValidationError as e:
            raise SessionError(f"Invalid backlog group: {e}")
        if group.items and not group.loaded:
            group.loaded = True
        for item in group.items:
            item.group_id = group.id
            item.matched = False
            item.matched_with = None
        groups.append(group)
    return groups


class RankingSession:
    def __init__(
        self,
        grid: GridStore,
        backlog: BacklogStore,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        history: Optional[OperationHistory] = None,
    ):
        self.stores = OperationStores(grid, backlog)
        self.category = category
        self.subcategory = subcategory
        self.history = history if history is not None else OperationHistory()

    @classmethod
    def create(
        cls,
        size: int,
        groups: Iterable[BacklogGroup] = (),
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        history_limit: int = 100,
    ) -> RankingSession:
        """New session with an empty grid of ``size`` slots."""
        try:
            backlog = BacklogStore(groups)
        except GroupLoadError as e:
            raise SessionError(str(e))
        return cls(
            GridStore(size),
            backlog,
            category=category,
            subcategory=subcategory,
            history=OperationHistory(history_limit),
        )

    @property
    def grid(self) -> GridStore:
        return self.stores.grid

    @property
    def backlog(self) -> BacklogStore:
        return self.stores.backlog

    @property
    def list_size(self) -> int:
        return self.grid.max_size

    def engine(
        self, config: Optional[EngineConfig] = None, reporter: Optional[ResultReporter] = None
    ) -> DragEngine:
        """An engine over this session's stores, sharing its undo history."""
        if config is not None and config.engine.history_limit != self.history.limit:
            self.history = OperationHistory.restore(
                config.engine.history_limit, self.history.entries(), self.history.redo_entries()
            )
        return DragEngine(self.stores, config=config, reporter=reporter, history=self.history)

    # ------------------------------------------------------------------
    # Backlog groups
    # ------------------------------------------------------------------

    def load_group(self, group_id: str, loader: GroupLoader, force: bool = False) -> BacklogGroup:
        group = self.backlog.load_group(group_id, loader, force=force)
        resynced = self.sync_matches(group)
        if resynced:
            logger.info("group %s: %d item(s) already on the grid", group_id, resynced)
        return group

    def unload_group(self, group_id: str) -> BacklogGroup:
        return self.backlog.unload_group(group_id)

    def sync_matches(self, group: BacklogGroup) -> int:
        """
        Mark the group's items that slots already reference as matched.

        Returns:
            Number of items re-synced
        """
        count = 0
        for item in group.items:
            position = self.grid.position_of(item.id)
            if position is None:
                continue
            self.backlog.mark_matched(item.id, slot_id(position))
            display = ItemDisplay.from_item(item)
            if self.grid.slot_at(position).display != display:
                self.grid.refresh_display(position, display)
            count += 1
        return count

    def check(self) -> List[str]:
        return check_invariants(self.grid, self.backlog)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_state(self) -> SessionState:
        return SessionState(
            list_size=self.list_size,
            category=self.category,
            subcategory=self.subcategory,
            slots=[slot.model_copy(deep=True) for slot in self.grid.slots],
            groups=[group.model_copy(deep=True) for group in self.backlog.groups],
            history_limit=self.history.limit,
            history=self.history.entries(),
            redo=self.history.redo_entries(),
        )

    @classmethod
    def from_state(cls, state: SessionState, verify: bool = True) -> RankingSession:
        """
        Rebuild a session from its persisted state.

        Raises:
            SessionError: If the state is inconsistent (with ``verify``, also
                when the slot/item invariants do not hold)
        """
        if state.version != SESSION_FORMAT_VERSION:
            raise SessionError(f"Unsupported session format version: {state.version}")
        if len(state.slots) != state.list_size:
            raise SessionError(
                f"Session declares {state.list_size} slots but stores {len(state.slots)}"
            )
        try:
            grid = GridStore.from_slots([slot.model_copy(deep=True) for slot in state.slots])
            backlog = BacklogStore(group.model_copy(deep=True) for group in state.groups)
        except (GridIntegrityError, GroupLoadError) as e:
            raise SessionError(f"Corrupt session: {e}")

        session = cls(
            grid,
            backlog,
            category=state.category,
            subcategory=state.subcategory,
            history=OperationHistory.restore(state.history_limit, state.history, state.redo),
        )
        if verify:
            violations = session.check()
            if violations:
                raise SessionError("Session violates slot invariants:\n" + "\n".join(violations))
        return session

    def save(self, path: Path) -> None:
        """Write the session to a JSON file."""
        data = self.to_state().model_dump(mode="json")
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise SessionError(f"Failed to write session {path}: {e}")
        logger.debug("saved session to %s", path)

    @classmethod
    def load(cls, path: Path, verify: bool = True) -> RankingSession:
        if not path.exists():
            raise SessionError(f"Session file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SessionError(f"Failed to read session {path}: {e}")
        try:
            state = SessionState.model_validate(data)
        except PydanticValidationError as e:
            raise SessionError(f"Invalid session file {path}: {e}")
        return cls.from_state(state, verify=verify)
