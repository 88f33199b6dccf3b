"""Dict-backed slug store.

Keeps parts and slugs in process memory.  Useful for tests and for
embedding the registry in short-lived tools; nothing survives a restart.

Entities cross the store boundary as copies, so a caller editing a
record it loaded changes nothing until it calls :meth:`persist`.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from slug_registry.storage.base import SlugStore
from slug_registry.storage.registry import BackendRegistry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slug_registry.models import PartDefinition, SlugRecord


@BackendRegistry.register
class InMemorySlugStore(SlugStore):
    """Usage::

    store = InMemorySlugStore()
    registry = SlugRegistry(store)
    """

    def __init__(self) -> None:
        super().__init__()
        self._parts: dict[str, PartDefinition] = {}
        self._slugs: dict[str, SlugRecord] = {}
        # (part, lang, name) -> slug id
        self._keys: dict[tuple[str, str, str], str] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    def get_part(self, name: str) -> PartDefinition | None:
        with self._write_lock:
            part = self._parts.get(name)
            return copy.copy(part) if part is not None else None

    def list_parts(self) -> list[PartDefinition]:
        with self._write_lock:
            return [copy.copy(part) for part in self._parts.values()]

    def find_slug(self, part_name: str, *, lang: str, name: str) -> SlugRecord | None:
        with self._write_lock:
            slug_id = self._keys.get((part_name, lang, name))
            if slug_id is None:
                return None
            return copy.copy(self._slugs[slug_id])

    def list_slugs(self, part_name: str, object_id: int) -> list[SlugRecord]:
        with self._write_lock:
            return [
                copy.copy(record)
                for record in self._slugs.values()
                if record.part_name == part_name and record.object_id == object_id
            ]

    def _write_part(self, part: PartDefinition) -> None:
        self._parts[part.name] = copy.copy(part)

    def _write_slugs(self, records: Sequence[SlugRecord]) -> None:
        for record in records:
            assert record.id is not None
            previous = self._slugs.get(record.id)
            if previous is not None and self._keys.get(previous.key) == record.id:
                del self._keys[previous.key]
            self._slugs[record.id] = copy.copy(record)
            self._keys[record.key] = record.id

    def __len__(self) -> int:
        return len(self._slugs)
