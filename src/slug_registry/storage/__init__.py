"""Storage layer — Strategy pattern for slug persistence backends.

Importing this package triggers backend registration via the
``@BackendRegistry.register`` decorator on each concrete store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

# Import concrete stores to trigger registration
from slug_registry.storage import chroma as _chroma  # noqa: F401
from slug_registry.storage import memory as _memory  # noqa: F401
from slug_registry.storage.base import SlugStore
from slug_registry.storage.chroma import ChromaSlugStore
from slug_registry.storage.memory import InMemorySlugStore
from slug_registry.storage.registry import BackendRegistry

if TYPE_CHECKING:
    from slug_registry.config import StorageConfig


def open_store(config: StorageConfig) -> SlugStore:
    """Return the store selected by ``[storage].backend``."""
    return BackendRegistry.create(config)


__all__ = [
    "BackendRegistry",
    "ChromaSlugStore",
    "InMemorySlugStore",
    "SlugStore",
    "open_store",
]
