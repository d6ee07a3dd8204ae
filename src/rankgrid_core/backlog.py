"""Backlog store: named groups of candidate items, loaded lazily."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from .errors import GroupLoadError, GroupNotFoundError, ItemNotFoundError
from .models import BacklogGroup, BacklogItem

logger = logging.getLogger(__name__)


class GroupLoader(ABC):
    """Source of items for a backlog group."""

    @abstractmethod
    def load(self, group_id: str) -> List[BacklogItem]:
        """
        Fetch the items of one group.

        Args:
            group_id: Group identifier

        Returns:
            Items in display order

        Raises:
            GroupLoadError: If the group cannot be fetched or parsed
        """
        pass


class InMemoryGroupLoader(GroupLoader):
    """Loader backed by a mapping of group id to raw item records."""

    def __init__(self, groups: Mapping[str, Sequence[Any]]):
        self._groups = groups

    def load(self, group_id: str) -> List[BacklogItem]:
        if group_id not in self._groups:
            raise GroupLoadError(group_id, "no such group in loader")
        return _coerce_items(group_id, self._groups[group_id])


class JsonGroupLoader(GroupLoader):
    """
    Loader reading ``<root>/<group_id>.json``.

    The file holds either a list of item objects or ``{"items": [...]}``.
    """

    def __init__(self, root: Path):
        self.root = root

    def load(self, group_id: str) -> List[BacklogItem]:
        path = self.root / f"{group_id}.json"
        if not path.exists():
            raise GroupLoadError(group_id, f"file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise GroupLoadError(group_id, f"invalid JSON in {path}: {e}")
        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise GroupLoadError(group_id, f"expected a list of items in {path}")
        return _coerce_items(group_id, data)


def _coerce_items(group_id: str, records: Iterable[Any]) -> List[BacklogItem]:
    items = []
    for record in records:
        try:
            item = record if isinstance(record, BacklogItem) else BacklogItem.model_validate(record)
        except PydanticValidationError as e:
            raise GroupLoadError(group_id, str(e))
        # Loaded items always start unmatched; grid references are re-synced by the session
        items.append(item.model_copy(update={"group_id": group_id, "matched": False, "matched_with": None}))
    return items


class BacklogStore:
    """
    Group-organised pool of items.

    Only items of loaded groups are resident: lookups, availability checks and
    match bookkeeping never see items of groups that are not loaded.
    """

    def __init__(self, groups: Optional[Iterable[BacklogGroup]] = None):
        self._groups: Dict[str, BacklogGroup] = {}
        self._items: Dict[str, BacklogItem] = {}
        for group in groups or []:
            self.add_group(group)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    @property
    def groups(self) -> List[BacklogGroup]:
        return list(self._groups.values())

    def get_group(self, group_id: str) -> BacklogGroup:
        group = self._groups.get(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    def has_group(self, group_id: str) -> bool:
        return group_id in self._groups

    def add_group(self, group: BacklogGroup) -> None:
        """Register a group. Items of an already-loaded group become resident."""
        if group.id in self._groups:
            raise GroupLoadError(group.id, "group already registered")
        self._groups[group.id] = group
        if group.loaded:
            self._index_items(group, group.items)

    def is_group_loaded(self, group_id: str) -> bool:
        group = self._groups.get(group_id)
        return group is not None and group.loaded

    def load_group(self, group_id: str, loader: GroupLoader, force: bool = False) -> BacklogGroup:
        """
        Load a group's items through ``loader``.

        Loading an already loaded group is a no-op unless ``force`` is set, in
        which case its items are replaced. A failed load leaves the group as it
        was.
        """
        group = self.get_group(group_id)
        if group.loaded and not force:
            logger.debug("group %s already loaded", group_id)
            return group

        items = loader.load(group_id)
        self._check_items(group, items)
        if group.loaded:
            self.unload_group(group_id)
        self._index_items(group, items)
        group.items = items
        group.loaded = True
        logger.info("loaded group %s (%d items)", group_id, len(items))
        return group

    def unload_group(self, group_id: str) -> BacklogGroup:
        """Drop a group's items from residency; the group itself stays registered."""
        group = self.get_group(group_id)
        for item in group.items:
            self._items.pop(item.id, None)
        group.items = []
        group.loaded = False
        group.expanded = False
        logger.debug("unloaded group %s", group_id)
        return group

    def expand(self, group_id: str) -> None:
        self.get_group(group_id).expanded = True

    def collapse(self, group_id: str) -> None:
        self.get_group(group_id).expanded = False

    def _check_items(self, group: BacklogGroup, items: Sequence[BacklogItem]) -> None:
        seen = set()
        for item in items:
            owner = self._items.get(item.id)
            if item.id in seen or (owner is not None and owner.group_id != group.id):
                raise GroupLoadError(group.id, f"item {item.id} is already resident")
            seen.add(item.id)

    def _index_items(self, group: BacklogGroup, items: Sequence[BacklogItem]) -> None:
        self._check_items(group, items)
        for item in items:
            item.group_id = group.id
            self._items[item.id] = item

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_item(self, item_id: str) -> Optional[BacklogItem]:
        return self._items.get(item_id)

    def require_item(self, item_id: str) -> BacklogItem:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def find_group_of(self, item_id: str) -> Optional[str]:
        item = self._items.get(item_id)
        return item.group_id if item else None

    def items(self) -> List[BacklogItem]:
        return list(self._items.values())

    def available_items(self) -> List[BacklogItem]:
        return [item for item in self._items.values() if not item.matched]

    def mark_matched(self, item_id: str, slot_id: str) -> None:
        item = self.require_item(item_id)
        item.matched = True
        item.matched_with = slot_id

    def mark_unmatched(self, item_id: str) -> None:
        item = self.require_item(item_id)
        item.matched = False
        item.matched_with = None
