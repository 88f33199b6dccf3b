"""Abstract storage contract for parts and slugs.

Every backend keeps two guarantees the registry relies on:

- (part, lang, name) is unique across all slugs, whatever their state,
  and ``name`` is unique across parts.  Violations raise
  :meth:`ActionableError.conflict`, which callers may retry.
- :meth:`SlugStore.mutate_for_object` runs a read-decide-write sequence
  for one (part, object_id) pair while holding that pair's lock, so two
  assignments to the same object never interleave.

Both guarantees hold within one process.  The locks are
``threading`` locks owned by the store instance, and ChromaDB has no
unique constraint of its own, so two processes writing to the same
``persist_dir`` (two CLI runs, say) can both pass the uniqueness check
before either writes.  Run a single writer per persist directory.

Backends implement the read primitives and the two ``_write_*`` hooks.
Locking, id assignment and uniqueness checks live here.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar

from slug_registry.errors import ActionableError
from slug_registry.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from slug_registry.config import StorageConfig
    from slug_registry.models import PartDefinition, SlugRecord

T = TypeVar("T")

# Number of lock stripes shared by all (part, object_id) pairs
_LOCK_STRIPES = 64


class SlugStore(ABC):
    """Strategy interface for slug persistence."""

    def __init__(self) -> None:
        self._write_lock = threading.RLock()
        self._object_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Unique identifier string for this backend."""
        ...

    @classmethod
    def from_config(cls, config: StorageConfig) -> SlugStore:
        """Build the store from ``[storage]`` settings.

        Backends without settings of their own keep this default.
        """
        return cls()

    # -- read primitives -----------------------------------------------------

    @abstractmethod
    def get_part(self, name: str) -> PartDefinition | None:
        """Return the part named *name*, or ``None``."""
        ...

    @abstractmethod
    def list_parts(self) -> list[PartDefinition]:
        ...

    @abstractmethod
    def find_slug(self, part_name: str, *, lang: str, name: str) -> SlugRecord | None:
        """Return the single slug at (part, lang, name), in any state."""
        ...

    @abstractmethod
    def list_slugs(self, part_name: str, object_id: int) -> list[SlugRecord]:
        """Return every slug of one object, across languages and states."""
        ...

    # -- write hooks ---------------------------------------------------------

    @abstractmethod
    def _write_part(self, part: PartDefinition) -> None:
        ...

    @abstractmethod
    def _write_slugs(self, records: Sequence[SlugRecord]) -> None:
        """Write *records* as one unit.  Uniqueness is already checked."""
        ...

    # -- public write API ----------------------------------------------------

    def save_part(self, part: PartDefinition) -> PartDefinition:
        """Create *part*, or update it when it was loaded from this store."""
        with self._write_lock:
            existing = self.get_part(part.name)
            if existing is not None and existing.id != part.id:
                raise ActionableError.duplicate_part(part.name)
            if part.id is None:
                part.id = _new_id()
                logger.info("Created part '%s' (model '%s')", part.name, part.model_name)
            else:
                part.touch()
            self._write_part(part)
        return part

    def persist(self, records: Sequence[SlugRecord]) -> None:
        """Durably write *records* as one atomic batch.

        Raises :class:`~slug_registry.errors.ActionableError` (CONFLICT)
        and writes nothing if any record would share its
        (part, lang, name) with a different slug.
        """
        if not records:
            return
        with self._write_lock:
            self._check_unique(records)
            for record in records:
                if record.id is None:
                    record.id = _new_id()
                else:
                    record.touch()
            self._write_slugs(records)
        logger.debug("Persisted %d slug(s) via %s store", len(records), self.backend_name)

    def mutate_for_object(
        self,
        part_name: str,
        object_id: int,
        fn: Callable[[list[SlugRecord]], tuple[Sequence[SlugRecord], T]],
    ) -> T:
        """Run *fn* on the object's slugs and persist what it returns.

        *fn* receives every stored slug for (part_name, object_id) and
        returns ``(records_to_persist, result)``.  Loading, deciding and
        persisting all happen under the object's lock; *result* is
        returned to the caller.
        """
        with self._object_lock(part_name, object_id):
            existing = self.list_slugs(part_name, object_id)
            to_persist, result = fn(existing)
            self.persist(to_persist)
        return result

    # -- internal helpers ----------------------------------------------------

    def _check_unique(self, records: Sequence[SlugRecord]) -> None:
        batch: dict[tuple[str, str, str], SlugRecord] = {}
        for record in records:
            other = batch.get(record.key)
            if other is not None and other is not record:
                raise ActionableError.conflict(
                    record.part_name,
                    record.lang,
                    record.name,
                    existing_object_id=other.object_id,
                )
            batch[record.key] = record

            stored = self.find_slug(record.part_name, lang=record.lang, name=record.name)
            if stored is not None and stored.id != record.id:
                logger.warning(
                    "Rejected slug '%s' (part '%s', lang '%s') for object %s — owned by object %s",
                    record.name,
                    record.part_name,
                    record.lang,
                    record.object_id,
                    stored.object_id,
                )
                raise ActionableError.conflict(
                    record.part_name,
                    record.lang,
                    record.name,
                    existing_object_id=stored.object_id,
                )

    def _object_lock(self, part_name: str, object_id: int) -> threading.Lock:
        return self._object_locks[hash((part_name, object_id)) % _LOCK_STRIPES]


def _new_id() -> str:
    return uuid.uuid4().hex
