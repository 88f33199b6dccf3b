"""ChromaDB-backed slug store.

ChromaDB is an **embedded** database — like SQLite, it lives in a local
directory and needs no server.  Its collections store documents with
flat metadata and support exact-match ``where`` filters, which is all
the slug store needs.  No similarity search is performed, so every
entity carries the same one-dimensional placeholder embedding.

Two collections are used:

  - ``<prefix>parts`` — one document per part definition
  - ``<prefix>slugs`` — one document per slug, any state

Entity fields are stored as metadata; the ChromaDB id is the entity id.
A batch of slugs is written with a single ``upsert`` call.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any

import chromadb
from chromadb.errors import ChromaError

from slug_registry.errors import ActionableError
from slug_registry.logging import logger
from slug_registry.models import CaseRule, PartDefinition, SlugRecord, SlugState
from slug_registry.storage.base import SlugStore
from slug_registry.storage.registry import BackendRegistry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from slug_registry.config import StorageConfig

_PLACEHOLDER_EMBEDDING = [1.0]

DEFAULT_COLLECTION_PREFIX = "slug_"


@BackendRegistry.register
class ChromaSlugStore(SlugStore):
    """Persists parts and slugs in a local ChromaDB directory.

    Usage::

        store = ChromaSlugStore(persist_dir="./data/chroma_db")
        registry = SlugRegistry(store)
    """

    def __init__(
        self,
        persist_dir: str,
        *,
        collection_prefix: str = DEFAULT_COLLECTION_PREFIX,
    ) -> None:
        super().__init__()
        self.persist_dir = persist_dir
        self.collection_prefix = collection_prefix
        with self._guard("open"):
            self._client = chromadb.PersistentClient(path=persist_dir)
            self._parts = self._client.get_or_create_collection(name=f"{collection_prefix}parts")
            self._slugs = self._client.get_or_create_collection(name=f"{collection_prefix}slugs")
        logger.debug(
            "ChromaDB slug store ready at %s (%d parts, %d slugs)",
            persist_dir,
            self._parts.count(),
            self._slugs.count(),
        )

    @classmethod
    def from_config(cls, config: StorageConfig) -> ChromaSlugStore:
        return cls(config.persist_dir, collection_prefix=config.collection_prefix)

    @property
    def backend_name(self) -> str:
        return "chroma"

    # -- parts ---------------------------------------------------------------

    def get_part(self, name: str) -> PartDefinition | None:
        with self._guard("get_part"):
            result = self._parts.get(where=_all_of(name=name), include=["metadatas"])
        parts = _rows(result, _part_from_metadata)
        return parts[0] if parts else None

    def list_parts(self) -> list[PartDefinition]:
        with self._guard("list_parts"):
            result = self._parts.get(include=["metadatas"])
        return _rows(result, _part_from_metadata)

    def _write_part(self, part: PartDefinition) -> None:
        assert part.id is not None
        with self._guard("save_part"):
            self._parts.upsert(
                ids=[part.id],
                documents=[part.name],
                embeddings=[_PLACEHOLDER_EMBEDDING],
                metadatas=[_part_to_metadata(part)],
            )

    # -- slugs ---------------------------------------------------------------

    def find_slug(self, part_name: str, *, lang: str, name: str) -> SlugRecord | None:
        where = _all_of(part=part_name, lang=lang, name=name)
        with self._guard("find_slug"):
            result = self._slugs.get(where=where, include=["metadatas"])
        records = _rows(result, _slug_from_metadata)
        return records[0] if records else None

    def list_slugs(self, part_name: str, object_id: int) -> list[SlugRecord]:
        where = _all_of(part=part_name, object_id=object_id)
        with self._guard("list_slugs"):
            result = self._slugs.get(where=where, include=["metadatas"])
        return _rows(result, _slug_from_metadata)

    def _write_slugs(self, records: Sequence[SlugRecord]) -> None:
        ids = [record.id for record in records]
        assert all(ids)
        with self._guard("persist"):
            self._slugs.upsert(
                ids=ids,  # type: ignore[arg-type]
                documents=[record.name for record in records],
                embeddings=[_PLACEHOLDER_EMBEDDING for _ in records],
                metadatas=[_slug_to_metadata(record) for record in records],
            )

    # -- internal helpers ----------------------------------------------------

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Translate ChromaDB failures into actionable errors.

        ChromaDB's own errors are STORAGE errors.  Anything else is
        classified by :meth:`ActionableError.from_exception`: disk, lock
        and permission failures become STORAGE, the rest UNEXPECTED.
        """
        try:
            yield
        except ChromaError as exc:
            raise ActionableError.storage("chroma", operation, str(exc)) from exc
        except (ValueError, TypeError, OSError, RuntimeError) as exc:
            raise ActionableError.from_exception(exc, "chroma", operation) from exc


# ---------------------------------------------------------------------------
# Metadata mapping
# ---------------------------------------------------------------------------


def _all_of(**conditions: Any) -> dict[str, Any]:
    """Build a ``where`` filter requiring every condition to match."""
    clauses = [{key: {"$eq": value}} for key, value in conditions.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _rows(result: Any, factory: Any) -> list[Any]:
    ids = result.get("ids") or []
    metadatas = result.get("metadatas") or []
    return [factory(entity_id, dict(meta)) for entity_id, meta in zip(ids, metadatas) if meta]


def _part_to_metadata(part: PartDefinition) -> dict[str, Any]:
    return {
        "name": part.name,
        "model_name": part.model_name,
        "case_rule": part.case_rule.value,
        "multilingual": part.multilingual,
        "created_at": part.created_at.isoformat(),
        "updated_at": part.updated_at.isoformat(),
    }


def _part_from_metadata(part_id: str, meta: dict[str, Any]) -> PartDefinition:
    return PartDefinition(
        id=part_id,
        name=str(meta["name"]),
        model_name=str(meta.get("model_name", "")),
        case_rule=CaseRule.parse(meta.get("case_rule")) or CaseRule.NONE,
        multilingual=bool(meta.get("multilingual", False)),
        created_at=datetime.fromisoformat(str(meta["created_at"])),
        updated_at=datetime.fromisoformat(str(meta["updated_at"])),
    )


def _slug_to_metadata(record: SlugRecord) -> dict[str, Any]:
    return {
        "part": record.part_name,
        "object_id": record.object_id,
        "lang": record.lang,
        "name": record.name,
        "state": record.state.value,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
    }


def _slug_from_metadata(slug_id: str, meta: dict[str, Any]) -> SlugRecord:
    return SlugRecord(
        id=slug_id,
        part_name=str(meta["part"]),
        object_id=int(meta["object_id"]),
        lang=str(meta["lang"]),
        name=str(meta["name"]),
        state=SlugState.parse(meta.get("state")) or SlugState.ACTIVE,
        created_at=datetime.fromisoformat(str(meta["created_at"])),
        updated_at=datetime.fromisoformat(str(meta["updated_at"])),
    )
