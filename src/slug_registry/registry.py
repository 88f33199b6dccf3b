"""Slug registry — assignment, history and lookup of slugs.

The registry is the only component that decides slug state.  Assigning
a name to an object is an upsert with automatic history:

1. The same (name, language) already on the object is re-asserted and
   moved to the requested state.
2. Assigning a new **active** name demotes every other slug of the
   object in that language to ``outdated``, so old URLs keep resolving
   and can be redirected.
3. An **alternate** assignment skips the demotion, so several active
   names may coexist in one language.

The load-decide-write sequence runs inside
:meth:`SlugStore.mutate_for_object`, which serializes assignments per
(part, object_id).  A slug claimed by another object in the meantime
surfaces as a retryable CONFLICT from the store; the registry never
retries on its own.

Names are never normalized implicitly.  Call :meth:`SlugRegistry.normalize`
first when the part's case rule should apply.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from slug_registry.cache import PartCache
from slug_registry.errors import ActionableError
from slug_registry.logging import logger
from slug_registry.models import LANG_ALL, CaseRule, PartDefinition, SlugRecord, SlugState
from slug_registry.text import normalize as normalize_case

if TYPE_CHECKING:
    from collections.abc import Iterable

    from slug_registry.config import PartSettings
    from slug_registry.storage.base import SlugStore


class SlugRegistry:
    """Orchestrates part lookup, normalization and slug versioning.

    Usage::

        registry = SlugRegistry(store)
        name = registry.normalize("article", "My Post")
        registry.assign("article", 42, "en", name)
        registry.is_name_available("article", name, "en", excluding_object_id=42)
    """

    def __init__(
        self,
        store: SlugStore,
        *,
        cache: PartCache | None = None,
        cache_enabled: bool = True,
    ) -> None:
        self._store = store
        self._cache = cache if cache is not None else PartCache()
        self._cache_enabled = cache_enabled

    @property
    def store(self) -> SlugStore:
        return self._store

    # -- parts ---------------------------------------------------------------

    def resolve_part(self, part_name: str) -> PartDefinition:
        """Return the part named *part_name*.

        Successful lookups are cached for the registry's lifetime.

        Raises :class:`~slug_registry.errors.ActionableError` (NOT_FOUND)
        when no such part exists.  Misses are not cached.
        """
        if self._cache_enabled:
            cached = self._cache.get(part_name)
            if cached is not None:
                return cached

        part = self._store.get_part(part_name)
        if part is None:
            logger.debug("Part '%s' not found in %s store", part_name, self._store.backend_name)
            raise ActionableError.not_found(part_name)

        if self._cache_enabled:
            return self._cache.add(part)
        return part

    def invalidate_part_cache(self, part_name: str | None = None) -> None:
        """Forget one cached part, or all of them."""
        self._cache.invalidate(part_name)

    def register_part(
        self,
        name: str,
        model_name: str,
        *,
        case_rule: CaseRule = CaseRule.NONE,
        multilingual: bool = False,
    ) -> PartDefinition:
        """Create a new part.

        Raises :class:`~slug_registry.errors.ActionableError` (CONFLICT)
        when a part with the same name exists.
        """
        part = PartDefinition(
            name=name,
            model_name=model_name,
            case_rule=case_rule,
            multilingual=multilingual,
        )
        return self._store.save_part(part)

    def sync_parts(self, part_settings: Iterable[PartSettings]) -> list[PartDefinition]:
        """Create or update parts to match ``[[parts]]`` settings.

        A stored part whose model, case rule or language policy differs
        from its entry is updated in place.

        Changed case rules apply to future normalization only.  Existing
        slugs keep their stored names.
        """
        synced: list[PartDefinition] = []
        for entry in part_settings:
            part = self._store.get_part(entry.name)
            if part is None:
                part = self.register_part(
                    entry.name,
                    entry.model,
                    case_rule=entry.case,
                    multilingual=entry.multilang,
                )
            elif (
                part.model_name != entry.model
                or part.case_rule != entry.case
                or part.multilingual != entry.multilang
            ):
                logger.info(
                    "Updating part '%s': model %s -> %s, case %s -> %s, multilingual %s -> %s",
                    part.name,
                    part.model_name,
                    entry.model,
                    part.case_rule.value,
                    entry.case.value,
                    part.multilingual,
                    entry.multilang,
                )
                part.set_model_name(entry.model).set_case(entry.case).set_multilingual(entry.multilang)
                self._store.save_part(part)
                self._cache.invalidate(part.name)
            synced.append(part)
        return synced

    def list_parts(self) -> list[PartDefinition]:
        return sorted(self._store.list_parts(), key=lambda part: part.name)

    # -- normalization -------------------------------------------------------

    def normalize(self, part_name: str, raw_name: str) -> str:
        """Apply the part's case rule to *raw_name*."""
        part = self.resolve_part(part_name)
        return normalize_case(part.case_rule, raw_name)

    @staticmethod
    def effective_lang(part: PartDefinition, lang: str) -> str:
        """The language slugs of *part* are stored under."""
        return lang if part.multilingual else LANG_ALL

    # -- assignment ----------------------------------------------------------

    def assign(
        self,
        part_name: str,
        object_id: int,
        lang: str,
        name: str,
        state: SlugState | str | int = SlugState.ACTIVE,
        as_alternate: bool = False,
    ) -> SlugRecord:
        """Give *object_id* the slug *name* under *part_name*.

        Returns the record that now carries *name*, whether it was
        created or re-asserted.

        Raises :class:`~slug_registry.errors.ActionableError`:
          - NOT_FOUND if the part does not exist
          - CONFLICT if another object holds (part, lang, name)
        """
        part = self.resolve_part(part_name)
        eff_lang = self.effective_lang(part, lang)
        target = SlugState.parse(state)
        if target is None:
            logger.warning(
                "Unknown slug state %r for '%s' (part '%s') — existing slug left unchanged, new slug stored as 'active'",
                state,
                name,
                part.name,
            )
        supersedes = target is SlugState.ACTIVE and not as_alternate

        def decide(existing: list[SlugRecord]) -> tuple[list[SlugRecord], SlugRecord]:
            touched: list[SlugRecord] = []
            current: SlugRecord | None = None
            for record in existing:
                if record.name == name and record.lang == eff_lang:
                    if target is not None:
                        record.transition_to(target)
                    current = record
                    touched.append(record)
                elif record.lang == eff_lang and supersedes:
                    record.outdate()
                    touched.append(record)

            if current is None:
                current = SlugRecord(
                    part_name=part.name,
                    object_id=object_id,
                    lang=eff_lang,
                    name=name,
                    state=target or SlugState.ACTIVE,
                )
                touched.append(current)
            return touched, current

        record = self._store.mutate_for_object(part.name, object_id, decide)
        logger.info(
            "Assigned slug '%s' to %s #%s (part '%s', lang '%s', state '%s'%s)",
            name,
            part.model_name,
            object_id,
            part.name,
            eff_lang,
            record.state.value,
            ", alternate" if as_alternate else "",
        )
        return record

    # -- queries -------------------------------------------------------------

    def list_for_object(self, part_name: str, object_id: int) -> list[SlugRecord]:
        """Every slug of the object, across languages and states."""
        part = self.resolve_part(part_name)
        return self._store.list_slugs(part.name, object_id)

    def find_by_name(self, part_name: str, name: str, lang: str) -> SlugRecord | None:
        """The slug at (part, effective lang, name), in any state."""
        part = self.resolve_part(part_name)
        return self._store.find_slug(part.name, lang=self.effective_lang(part, lang), name=name)

    def is_name_available(
        self,
        part_name: str,
        name: str,
        lang: str,
        excluding_object_id: int | None = None,
    ) -> bool:
        """True when no other object occupies (part, lang, name).

        Outdated, deleted and hidden slugs still occupy their name, so a
        historical URL is never handed to a different object.
        """
        slug = self.find_by_name(part_name, name, lang)
        if slug is None:
            return True
        return excluding_object_id is not None and slug.object_id == excluding_object_id
