from typing import Any, Dict, Iterable, List, Optional, Sequence

from hypothesis import settings

from rankgrid_core.backlog import BacklogStore
from rankgrid_core.grid import GridStore
from rankgrid_core.models import BacklogGroup, BacklogItem
from rankgrid_ops.stores import OperationStores

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("rankgrid-tests", database=None, deadline=None)
settings.load_profile("rankgrid-tests")


def make_item(item_id: str, group_id: str = "g1", **kwargs: Any) -> BacklogItem:
    """Create a minimal backlog item for testing."""
    defaults: Dict[str, Any] = {
        "id": item_id,
        "title": f"Title {item_id}",
        "description": f"About {item_id}",
        "group_id": group_id,
    }
    defaults.update(kwargs)
    return BacklogItem(**defaults)


def make_group(group_id: str, item_ids: Iterable[str], loaded: bool = True) -> BacklogGroup:
    items = [make_item(item_id, group_id) for item_id in item_ids] if loaded else []
    return BacklogGroup(id=group_id, name=group_id.upper(), items=items, loaded=loaded)


def make_stores(
    size: int,
    layout: Sequence[Optional[str]] = (),
    backlog_only: Iterable[str] = (),
    groups: Optional[List[BacklogGroup]] = None,
    check_invariants: bool = False,
) -> OperationStores:
    """
    Build stores with ``layout`` already placed on the grid.

    Every id in ``layout`` and ``backlog_only`` goes into one loaded group
    ``g1`` unless ``groups`` is given. Placed items are marked matched.
    """
    if groups is None:
        ids = [item_id for item_id in layout if item_id is not None] + list(backlog_only)
        groups = [make_group("g1", ids)]
    stores = OperationStores(GridStore(size), BacklogStore(groups), check_invariants=check_invariants)
    for position, item_id in enumerate(layout):
        if item_id is not None:
            stores.assign_item(position, item_id)
    return stores


def state_of(stores: OperationStores) -> Dict[str, Any]:
    """Deep, comparable snapshot of both stores."""
    return {
        "slots": [slot.model_dump() for slot in stores.grid.slots],
        "items": {item.id: item.model_dump() for item in stores.backlog.items()},
        "groups": {group.id: group.loaded for group in stores.backlog.groups},
    }


def layout_of(stores: OperationStores) -> List[Optional[str]]:
    return stores.grid.snapshot()
