"""
Thread-safe set used to share membership state between worker threads.
"""

import threading
from typing import Any, Hashable, List, Optional


class ConcurrentSet:
    """
    A set that can be mutated and queried from many threads.

    flatten() caches its snapshot until the next mutation. Every mutation
    drops the cache before it releases the lock, so a stale snapshot is never
    handed out after add() or remove() returned.

    Example:
        queued = ConcurrentSet()
        queued.add("symfony/console")
        if queued.exists("symfony/console"):
            ...
    """

    def __init__(self, *items: Hashable):
        self._items = set(items)
        self._lock = threading.Lock()
        self._flattened: Optional[List[Any]] = None

    def add(self, *items: Hashable) -> None:
        """Add the given items to the set."""
        with self._lock:
            self._flattened = None
            self._items.update(items)

    def add_if_missing(self, item: Hashable) -> bool:
        """Add item unless present. Returns True if it was added."""
        with self._lock:
            if item in self._items:
                return False
            self._flattened = None
            self._items.add(item)
            return True

    def remove(self, *items: Hashable) -> None:
        """Remove the given items. Missing items are ignored."""
        with self._lock:
            self._flattened = None
            for item in items:
                self._items.discard(item)

    def exists(self, item: Hashable) -> bool:
        with self._lock:
            return item in self._items

    def all(self, *items: Hashable) -> bool:
        """True if every given item is in the set."""
        with self._lock:
            return all(item in self._items for item in items)

    def flatten(self) -> List[Any]:
        """Return a snapshot of the items. Order is unspecified."""
        with self._lock:
            if self._flattened is None:
                self._flattened = list(self._items)
            return list(self._flattened)

    def clear(self) -> None:
        with self._lock:
            self._flattened = None
            self._items = set()

    def __contains__(self, item: Hashable) -> bool:
        return self.exists(item)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        return f"ConcurrentSet({len(self)} items)"
