"""Bounded undo/redo history of successful operations."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from .context import DragContext
from .results import DragOperationResult


class HistoryEntry(BaseModel):
    """A successful operation: the context that produced it and its result."""

    context: DragContext
    result: DragOperationResult

    model_config = ConfigDict(frozen=True)


class OperationHistory:
    """
    Undo and redo stacks.

    Recording a new entry clears the redo stack. When more than ``limit``
    entries are recorded the oldest is dropped; ``limit=0`` keeps nothing.
    """

    def __init__(self, limit: int = 100):
        self.limit = limit
        self._undo: Deque[HistoryEntry] = deque(maxlen=limit)
        self._redo: Deque[HistoryEntry] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._undo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self, context: DragContext, result: DragOperationResult) -> None:
        if self.limit == 0:
            return
        self._undo.append(HistoryEntry(context=context, result=result))
        self._redo.clear()

    def peek_undo(self) -> Optional[HistoryEntry]:
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> Optional[HistoryEntry]:
        return self._redo[-1] if self._redo else None

    def mark_undone(self) -> HistoryEntry:
        entry = self._undo.pop()
        self._redo.append(entry)
        return entry

    def mark_redone(self, result: DragOperationResult) -> HistoryEntry:
        """Move the top redo entry back onto the undo stack with its fresh result."""
        entry = self._redo.pop()
        redone = HistoryEntry(context=entry.context, result=result)
        self._undo.append(redone)
        return redone

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def entries(self) -> List[HistoryEntry]:
        return list(self._undo)

    def redo_entries(self) -> List[HistoryEntry]:
        return list(self._redo)

    @classmethod
    def restore(
        cls,
        limit: int,
        entries: Iterable[HistoryEntry],
        redo_entries: Iterable[HistoryEntry] = (),
    ) -> OperationHistory:
        history = cls(limit)
        if limit:
            history._undo.extend(entries)
            history._redo.extend(redo_entries)
        return history
