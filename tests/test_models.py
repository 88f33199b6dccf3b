"""Part and slug entity tests.

Maps to BDD specs: TestSlugStates, TestSlugTransitions, TestPartDefinition
"""

from __future__ import annotations

import logging

import pytest

from slug_registry.models import (
    LANG_ALL,
    CaseRule,
    PartDefinition,
    SlugRecord,
    SlugState,
)


def _slug(state: object = SlugState.ACTIVE) -> SlugRecord:
    return SlugRecord(
        part_name="article",
        object_id=7,
        lang=LANG_ALL,
        name="hello",
        state=state,  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# TestSlugStates
# ---------------------------------------------------------------------------


class TestSlugStates:
    """REQUIREMENT: Slug states are a closed set with a separate legacy mapping.

    WHO: Stores reading older data and callers displaying slug state
    WHAT: the four states have display names; legacy numeric codes map
          both ways; parse() accepts members, names and codes and returns
          None for anything else
    WHY: Older databases stored HTTP-like codes — reading them must not
         depend on the enum's own values
    """

    def test_display_names(self) -> None:
        """Each state's value is its lowercase display name."""
        assert [s.value for s in SlugState] == ["active", "outdated", "deleted", "hidden"]

    @pytest.mark.parametrize(
        ("state", "code"),
        [
            (SlugState.ACTIVE, 200),
            (SlugState.OUTDATED, 301),
            (SlugState.DELETED, 410),
            (SlugState.HIDDEN, 403),
        ],
    )
    def test_legacy_codes_map_both_ways(self, state: SlugState, code: int) -> None:
        """Legacy codes convert to states and back without loss."""
        assert state.legacy_code == code
        assert SlugState.from_legacy_code(code) is state

    def test_parse_accepts_names_and_codes(self) -> None:
        """parse() recognizes a display name, a numeric code and a code string."""
        assert SlugState.parse("Outdated") is SlugState.OUTDATED
        assert SlugState.parse(410) is SlugState.DELETED
        assert SlugState.parse("403") is SlugState.HIDDEN

    @pytest.mark.parametrize("value", ["archived", 500, None, True, 3.5])
    def test_parse_returns_none_for_unknown_values(self, value: object) -> None:
        """Unrecognized values parse to None rather than raising."""
        assert SlugState.parse(value) is None


# ---------------------------------------------------------------------------
# TestSlugTransitions
# ---------------------------------------------------------------------------


class TestSlugTransitions:
    """REQUIREMENT: Slug state changes go through explicit transitions.

    WHO: The registry applying assignment decisions
    WHAT: activate/outdate/delete/hide set the matching state and refresh
          updated_at; transition_to dispatches by state; an unknown state
          leaves the record untouched and logs a warning; new slugs default
          to active
    WHY: Silent state corruption would break redirect resolution for
         every historical URL
    """

    def test_new_slug_defaults_to_active(self) -> None:
        """A slug constructed without a state is active."""
        record = SlugRecord(part_name="article", object_id=1, lang=LANG_ALL, name="x")
        assert record.state is SlugState.ACTIVE

    def test_falsy_state_is_coerced_to_active(self) -> None:
        """A falsy state on construction falls back to active."""
        assert _slug(state=None).state is SlugState.ACTIVE

    def test_state_given_by_name_is_parsed(self) -> None:
        """A state passed as its display name is stored as the enum member."""
        assert _slug(state="hidden").state is SlugState.HIDDEN

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("activate", SlugState.ACTIVE),
            ("outdate", SlugState.OUTDATED),
            ("delete", SlugState.DELETED),
            ("hide", SlugState.HIDDEN),
        ],
    )
    def test_transition_methods_set_state(self, method: str, expected: SlugState) -> None:
        """Each transition method sets its state and returns the record for chaining."""
        record = _slug(state=SlugState.OUTDATED if expected is SlugState.ACTIVE else SlugState.ACTIVE)
        assert getattr(record, method)() is record
        assert record.state is expected

    def test_transition_refreshes_updated_at(self, ticking_clock: object) -> None:
        """A transition moves updated_at forward and leaves created_at alone."""
        record = _slug()
        created = record.created_at
        before = record.updated_at
        record.outdate()
        assert record.updated_at > before
        assert record.created_at == created

    def test_transition_to_dispatches_by_state(self) -> None:
        """transition_to() applies the transition for the given state."""
        record = _slug()
        assert record.transition_to(SlugState.HIDDEN) is True
        assert record.state is SlugState.HIDDEN

    def test_transition_to_unknown_state_is_a_logged_no_op(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An unknown state leaves the record unchanged and warns so the caller can trace it."""
        record = _slug(state=SlugState.OUTDATED)
        with caplog.at_level(logging.WARNING):
            assert record.transition_to("archived") is False
        assert record.state is SlugState.OUTDATED
        assert "archived" in caplog.text

    def test_identity_edits(self) -> None:
        """change_object_id and change_lang rewrite identity fields and the key follows."""
        record = _slug().change_object_id(99).change_lang("de")
        assert record.object_id == 99
        assert record.key == ("article", "de", "hello")

    def test_get_state_as_name(self) -> None:
        """get_state(as_name=True) returns the display name."""
        record = _slug(state=SlugState.DELETED)
        assert record.get_state() is SlugState.DELETED
        assert record.get_state(as_name=True) == "deleted"


# ---------------------------------------------------------------------------
# TestPartDefinition
# ---------------------------------------------------------------------------


class TestPartDefinition:
    """REQUIREMENT: Part definitions default sensibly and record edits.

    WHO: Operators declaring parts and the registry resolving them
    WHAT: new parts default to no case rule and a single language; the
          fluent setters change the policy and refresh updated_at;
          CaseRule.parse tolerates case and whitespace
    WHY: A part's policy decides how every future slug is stored
    """

    def test_defaults(self) -> None:
        """A new part has no case rule and is not multilingual."""
        part = PartDefinition(name="article", model_name="Article")
        assert part.case_rule is CaseRule.NONE
        assert part.multilingual is False
        assert part.id is None

    def test_fluent_setters(self, ticking_clock: object) -> None:
        """set_case and set_multilingual chain and refresh updated_at."""
        part = PartDefinition(name="article", model_name="Article")
        before = part.updated_at
        part.set_case(CaseRule.UPPER).set_multilingual(True)
        assert part.case_rule is CaseRule.UPPER
        assert part.multilingual is True
        assert part.updated_at > before

    def test_case_rule_parse(self) -> None:
        """CaseRule.parse accepts mixed case and returns None for unknown rules."""
        assert CaseRule.parse(" Letter ") is CaseRule.LETTER
        assert CaseRule.parse("snake") is None
        assert CaseRule.parse(None) is None
