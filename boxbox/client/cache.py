"""Client-side query cache.

Cached values are keyed by QueryKey tuples built through ``keys``:

    ("boxes",)                  List[BoxResponse]
    ("boxes", "search", term)   List[BoxResponse]
    ("box", box_id)             BoxWithItems
    ("items",)                  List[ItemResponse]
    ("items", "search", term)   List[ItemResponse]
    ("item", item_id)           ItemResponse

Invalidation works on key prefixes, so invalidating ("boxes",) also marks every
box search stale. Stale values stay readable until the next fetch replaces them. ``INVALIDATIONS`` lists which keys each mutation makes stale.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from boxbox.schemas.box import BoxResponse, BoxWithItems
from boxbox.schemas.item import ItemResponse

log = logging.getLogger(__name__)

QueryKey = Tuple[str, ...]


class keys:
    """Constructors for every cache key in use."""

    @staticmethod
    def boxes() -> QueryKey:
        return ("boxes",)

    @staticmethod
    def boxes_search(term: str) -> QueryKey:
        return ("boxes", "search", term.strip())

    @staticmethod
    def box(box_id: str) -> QueryKey:
        return ("box", box_id)

    @staticmethod
    def all_boxes_detail() -> QueryKey:
        return ("box",)

    @staticmethod
    def items() -> QueryKey:
        return ("items",)

    @staticmethod
    def items_search(term: str) -> QueryKey:
        return ("items", "search", term.strip())

    @staticmethod
    def item(item_id: str) -> QueryKey:
        return ("item", item_id)

    @staticmethod
    def all_items_detail() -> QueryKey:
        return ("item",)


class QueryCache:
    """In-memory store of query results with prefix invalidation."""

    def __init__(self):
        self._data: Dict[QueryKey, Any] = {}
        self._stale: Set[QueryKey] = set()

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._data

    def cached_keys(self) -> List[QueryKey]:
        return list(self._data)

    def get(self, key: QueryKey, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: QueryKey, value: Any) -> None:
        self._data[key] = value
        self._stale.discard(key)

    def is_stale(self, key: QueryKey) -> bool:
        return key in self._stale

    def update(self, key: QueryKey, updater: Callable[[Any], Any]) -> Any:
        """Replace the value under key with updater(previous).

        The previous value is None when absent; returning None leaves the key absent.
        """
        value = updater(self._data.get(key))
        if value is None:
            self._data.pop(key, None)
            self._stale.discard(key)
        else:
            self._data[key] = value
        return value

    async def fetch(self, query) -> Any:
        """Return the cached value for a QueryOptions, fetching it on a miss."""
        if not query.enabled:
            return None
        if query.key in self._data and query.key not in self._stale:
            return self._data[query.key]
        value = await query.fetch()
        self.set(query.key, value)
        return value

    def _matching(self, prefix: QueryKey) -> List[QueryKey]:
        return [key for key in self._data if key[:len(prefix)] == prefix]

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every key starting with prefix stale. Returns how many were marked."""
        matched = self._matching(prefix)
        self._stale.update(matched)
        return len(matched)

    def remove(self, prefix: QueryKey) -> int:
        """Drop every key starting with prefix. Returns how many were dropped."""
        matched = self._matching(prefix)
        for key in matched:
            del self._data[key]
            self._stale.discard(key)
        return len(matched)

    def clear(self) -> None:
        self._data.clear()
        self._stale.clear()


def _box_keys(*box_ids: Optional[str]) -> List[QueryKey]:
    return [keys.box(box_id) for box_id in dict.fromkeys(box_ids) if box_id]


INVALIDATIONS: Dict[str, Callable[..., List[QueryKey]]] = {
    "create_box": lambda **ids: [keys.boxes()],
    "update_box": lambda box_id=None, **ids: [keys.boxes(), *_box_keys(box_id)],
    # Deleting a box cascades to its items
    "delete_box": lambda box_id=None, **ids: [
        keys.boxes(), *_box_keys(box_id), keys.items(), keys.all_items_detail()
    ],
    "create_item": lambda box_id=None, **ids: [keys.items(), keys.boxes(), *_box_keys(box_id)],
    "update_item": lambda box_id=None, item_id=None, previous_box_id=None, **ids: [
        keys.items(), keys.boxes(), *_box_keys(box_id, previous_box_id),
        *([keys.item(item_id)] if item_id else []),
    ],
    "delete_item": lambda box_id=None, item_id=None, **ids: [
        keys.items(), keys.boxes(), *_box_keys(box_id),
        *([keys.item(item_id)] if item_id else []),
    ],
    "enrich_item": lambda box_id=None, **ids: [keys.items(), keys.boxes(), *_box_keys(box_id)],
}


def invalidate_after(cache: QueryCache, mutation: str, **ids: Optional[str]) -> List[QueryKey]:
    """Apply the invalidation rule for a mutation. Returns the prefixes used."""
    prefixes = INVALIDATIONS[mutation](**ids)
    for prefix in prefixes:
        cache.invalidate(prefix)
    log.debug("Invalidated after %s: %s", mutation, prefixes)
    return prefixes


def _without(items: Optional[List[ItemResponse]], item_id: str) -> List[ItemResponse]:
    return [existing for existing in (items or []) if existing.id != item_id]


def _replace_or_prepend(items: Optional[List[ItemResponse]], item: ItemResponse) -> List[ItemResponse]:
    items = list(items or [])
    for index, existing in enumerate(items):
        if existing.id == item.id:
            items[index] = item
            return items
    return [item, *items]


def _bump_box_count(boxes: Optional[List[BoxResponse]], box_id: str, delta: int):
    if boxes is None:
        return None
    return [
        box.model_copy(update={"item_count": box.item_count + delta}) if box.id == box_id else box
        for box in boxes
    ]


def insert_optimistic_item(cache: QueryCache, item: ItemResponse, box_id: str) -> None:
    """Show a just-created item everywhere it belongs, newest first."""
    cache.update(keys.items(), lambda prev: None if prev is None else [item, *_without(prev, item.id)])
    cache.set(keys.item(item.id), item)

    box: Optional[BoxWithItems] = cache.get(keys.box(box_id))
    already_listed = box is not None and any(existing.id == item.id for existing in box.items)
    if box is not None:
        cache.set(keys.box(box_id), box.model_copy(update={
            "items": [item, *_without(box.items, item.id)],
            "item_count": box.item_count + (0 if already_listed else 1),
        }))
    if not already_listed:
        cache.update(keys.boxes(), lambda prev: _bump_box_count(prev, box_id, +1))


def upsert_cached_item(cache: QueryCache, item: ItemResponse, box_id: Optional[str] = None) -> None:
    """Replace a cached item in place by id, or prepend it where missing."""
    cache.update(keys.items(), lambda prev: None if prev is None else _replace_or_prepend(prev, item))
    cache.set(keys.item(item.id), item)
    if not box_id:
        return
    cache.update(
        keys.box(box_id),
        lambda prev: None if prev is None else prev.model_copy(
            update={"items": _replace_or_prepend(prev.items, item)}
        ),
    )


def remove_cached_item(cache: QueryCache, item_id: str, box_id: Optional[str] = None) -> None:
    """Drop a deleted item from every cached list and adjust counts."""
    cache.update(keys.items(), lambda prev: None if prev is None else _without(prev, item_id))
    cache.remove(keys.item(item_id))
    if not box_id:
        return
    box: Optional[BoxWithItems] = cache.get(keys.box(box_id))
    if box is not None and any(existing.id == item_id for existing in box.items):
        cache.set(keys.box(box_id), box.model_copy(update={
            "items": _without(box.items, item_id),
            "item_count": max(box.item_count - 1, 0),
        }))
    cache.update(keys.boxes(), lambda prev: _bump_box_count(prev, box_id, -1))
