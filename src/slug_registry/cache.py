"""In-process cache for part definitions.

Part definitions are effectively static configuration, so the registry
keeps every successful lookup.  Entries are inserted once per name and
never replaced in place; a stale entry is dropped only by an explicit
:meth:`PartCache.invalidate`.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from slug_registry.logging import logger

if TYPE_CHECKING:
    from slug_registry.models import PartDefinition


class PartCache:
    """Thread-safe, insert-once mapping of part name to definition.

    Usage::

        cache = PartCache()
        part = cache.get("article")
        if part is None:
            part = cache.add(loaded_part)
    """

    def __init__(self) -> None:
        self._entries: dict[str, PartDefinition] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> PartDefinition | None:
        with self._lock:
            return self._entries.get(name)

    def add(self, part: PartDefinition) -> PartDefinition:
        """Insert *part* unless its name is cached already.

        Returns the cached definition, which is the earlier entry when
        two callers race on the same name.
        """
        with self._lock:
            cached = self._entries.setdefault(part.name, part)
        if cached is part:
            logger.debug("Cached part '%s'", part.name)
        return cached

    def invalidate(self, name: str | None = None) -> None:
        """Drop one entry, or every entry when *name* is ``None``."""
        with self._lock:
            if name is None:
                self._entries.clear()
            else:
                self._entries.pop(name, None)
        logger.debug("Part cache invalidated (%s)", name or "all")

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
