"""Pydantic models for backlog items, groups and grid slots."""

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SLOT_ID_PREFIX = "grid-"
_SLOT_ID_RE = re.compile(r"^grid-(\d+)$")


def slot_id(position: int) -> str:
    """Return the stable slot identifier for a grid position (e.g. ``grid-3``)."""
    return f"{SLOT_ID_PREFIX}{position}"


def parse_slot_id(value: str) -> Optional[int]:
    """Extract the position from a slot identifier, or None if it is not one."""
    match = _SLOT_ID_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))


def is_slot_id(value: str) -> bool:
    return parse_slot_id(value) is not None


class BacklogItem(BaseModel):
    """Candidate item resident in a backlog group."""

    id: str = Field(..., description="Stable item identity")
    title: str = ""
    description: str = ""
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    group_id: Optional[str] = Field(None, description="Owning backlog group")

    # Engine-owned fields
    matched: bool = False
    matched_with: Optional[str] = Field(None, description="Slot id referencing this item")

    model_config = ConfigDict(extra="ignore")


class ItemDisplay(BaseModel):
    """Denormalized display copy of an item, stored on the slot that references it."""

    title: str = ""
    description: str = ""
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_item(cls, item: BacklogItem) -> "ItemDisplay":
        # Empty image strings are stored as None so the copy compares equal after reloads
        return cls(
            title=item.title,
            description=item.description,
            image_url=item.image_url or None,
            tags=list(item.tags),
        )


class SlotContent(BaseModel):
    """What a slot holds when occupied: the referenced item id and its display copy."""

    item_id: str
    display: ItemDisplay

    model_config = ConfigDict(frozen=True)


class GridSlot(BaseModel):
    """One ranked position in the grid. The position never changes."""

    position: int = Field(..., ge=0)
    content: Optional[SlotContent] = None

    @property
    def slot_id(self) -> str:
        return slot_id(self.position)

    @property
    def occupied(self) -> bool:
        return self.content is not None

    @property
    def item_id(self) -> Optional[str]:
        return self.content.item_id if self.content else None

    @property
    def display(self) -> Optional[ItemDisplay]:
        return self.content.display if self.content else None


class BacklogGroup(BaseModel):
    """Named, ordered collection of items, loaded lazily."""

    id: str
    name: str = ""
    items: List[BacklogItem] = Field(default_factory=list)
    loaded: bool = False
    expanded: bool = False

    @property
    def item_count(self) -> int:
        return len(self.items)
