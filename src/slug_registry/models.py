"""Part and slug entities.

A **part** is a named slug namespace (``article``, ``category``) with its
own casing rule and language policy.  A **slug** maps a human-readable
name to an object id inside a (part, language) namespace.

Slugs are never removed.  Their history is carried by :class:`SlugState`:
a former canonical name becomes ``outdated`` so it can still be resolved
and redirected, and ``deleted`` is a state rather than a row removal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from slug_registry.logging import logger

# Language stored for every slug of a non-multilingual part
LANG_ALL = "all"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CaseRule(StrEnum):
    """Case conversion applied by :func:`slug_registry.text.normalize`."""

    NONE = "none"
    LOWER = "lower"
    UPPER = "upper"
    LETTER = "letter"
    CAPITALIZE = "capitalize"

    @classmethod
    def parse(cls, value: object) -> CaseRule | None:
        """Return the matching rule, or ``None`` for unknown values."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


class SlugState(StrEnum):
    """Lifecycle state of a slug.

    Values are display names.  The numeric codes used by older data
    (200/301/410/403) are available through :attr:`legacy_code` and
    :meth:`from_legacy_code` only; they are identifiers, not HTTP status.
    """

    ACTIVE = "active"
    OUTDATED = "outdated"
    DELETED = "deleted"
    HIDDEN = "hidden"

    @property
    def legacy_code(self) -> int:
        return _LEGACY_CODES[self]

    @classmethod
    def from_legacy_code(cls, code: int) -> SlugState | None:
        for state, legacy in _LEGACY_CODES.items():
            if legacy == code:
                return state
        return None

    @classmethod
    def parse(cls, value: object) -> SlugState | None:
        """Accept an enum member, a display name, or a legacy code.

        Returns ``None`` for anything unrecognized.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls.from_legacy_code(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text.isdigit():
                return cls.from_legacy_code(int(text))
            try:
                return cls(text)
            except ValueError:
                return None
        return None


_LEGACY_CODES: dict[SlugState, int] = {
    SlugState.ACTIVE: 200,
    SlugState.OUTDATED: 301,
    SlugState.DELETED: 410,
    SlugState.HIDDEN: 403,
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class PartDefinition:
    """A slug namespace and its formatting policy.

    ``model_name`` names the kind of object the part's slugs point to.
    It is informational and never validated.
    """

    name: str
    model_name: str
    case_rule: CaseRule = CaseRule.NONE
    multilingual: bool = False
    id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def set_model_name(self, model_name: str) -> PartDefinition:
        self.model_name = model_name
        self.touch()
        return self

    def set_case(self, case_rule: CaseRule) -> PartDefinition:
        """Change the case rule.  Existing slugs are not renormalized."""
        self.case_rule = case_rule
        self.touch()
        return self

    def set_multilingual(self, multilingual: bool) -> PartDefinition:
        self.multilingual = bool(multilingual)
        self.touch()
        return self

    def touch(self) -> None:
        self.updated_at = _utcnow()


@dataclass
class SlugRecord:
    """One slug of one object, in one language, in one state.

    Mutate it only through the transition methods; they keep
    ``updated_at`` current.  Changes are durable only after the record
    is passed to :meth:`SlugStore.persist`.
    """

    part_name: str
    object_id: int
    lang: str
    name: str
    state: SlugState = SlugState.ACTIVE
    id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        state = SlugState.parse(self.state)
        if state is None:
            if self.state:
                logger.warning(
                    "Unknown slug state %r for new slug '%s' (part '%s') — using 'active'",
                    self.state,
                    self.name,
                    self.part_name,
                )
            state = SlugState.ACTIVE
        self.state = state

    @property
    def key(self) -> tuple[str, str, str]:
        """The (part, lang, name) triple the store keeps unique."""
        return (self.part_name, self.lang, self.name)

    # -- state transitions ---------------------------------------------------

    def activate(self) -> SlugRecord:
        return self._set_state(SlugState.ACTIVE)

    def outdate(self) -> SlugRecord:
        return self._set_state(SlugState.OUTDATED)

    def delete(self) -> SlugRecord:
        return self._set_state(SlugState.DELETED)

    def hide(self) -> SlugRecord:
        return self._set_state(SlugState.HIDDEN)

    def transition_to(self, state: object) -> bool:
        """Apply the transition matching *state*.

        Returns ``False`` and leaves the record untouched when *state*
        is not a known :class:`SlugState`.
        """
        target = SlugState.parse(state)
        if target is None:
            logger.warning(
                "Unknown slug state %r for '%s' (part '%s') — state left as '%s'",
                state,
                self.name,
                self.part_name,
                self.state.value,
            )
            return False
        _TRANSITIONS[target](self)
        return True

    # -- identity edits ------------------------------------------------------

    def change_object_id(self, new_object_id: int) -> SlugRecord:
        self.object_id = new_object_id
        self.touch()
        return self

    def change_lang(self, new_lang: str) -> SlugRecord:
        self.lang = new_lang
        self.touch()
        return self

    def get_state(self, as_name: bool = False) -> SlugState | str:
        return self.state.value if as_name else self.state

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def _set_state(self, state: SlugState) -> SlugRecord:
        self.state = state
        self.touch()
        return self


_TRANSITIONS = {
    SlugState.ACTIVE: SlugRecord.activate,
    SlugState.OUTDATED: SlugRecord.outdate,
    SlugState.DELETED: SlugRecord.delete,
    SlugState.HIDDEN: SlugRecord.hide,
}
