"""Actionable error hierarchy for the slug registry.

Errors are classified by **recovery path**, not by origin.
Each error type carries structured guidance for three audiences:
  - The calling code (typed ``error_type`` for routing)
  - The human operator (``suggestion`` + ``troubleshooting`` steps)
  - An AI agent (``ai_guidance`` with concrete next actions)

Two types matter most to application code: ``NOT_FOUND`` (a part is not
configured, so fix the configuration) and ``CONFLICT`` (a concurrent
writer claimed the slug first, so try again).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


class ErrorType(StrEnum):
    """Recovery-path categories — what to *do*, not where it came from."""

    CONFIG = "config"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    STORAGE = "storage"
    PARSE = "parse"
    UNEXPECTED = "unexpected"


# Error types a caller may resolve by simply repeating the operation
RETRYABLE_TYPES = frozenset({ErrorType.CONFLICT})


# ---------------------------------------------------------------------------
# Guidance dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AIGuidance:
    """Machine-readable guidance for an AI agent consuming this error."""

    action_required: str
    command: str | None = None
    discovery_tool: str | None = None
    checks: list[str] | None = None
    steps: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action_required": self.action_required}
        if self.command is not None:
            result["command"] = self.command
        if self.discovery_tool is not None:
            result["discovery_tool"] = self.discovery_tool
        if self.checks is not None:
            result["checks"] = self.checks
        if self.steps is not None:
            result["steps"] = self.steps
        return result


@dataclass(frozen=True)
class Troubleshooting:
    """Sequential, human-readable recovery steps for the operator."""

    steps: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"steps": self.steps}


# ---------------------------------------------------------------------------
# Base actionable error
# ---------------------------------------------------------------------------


@dataclass
class ActionableError(Exception):
    """Structured error with embedded recovery guidance.

    Use the factory classmethods rather than constructing directly —
    they encode domain knowledge so callers don't have to.
    """

    error: str
    error_type: ErrorType
    service: str

    success: bool = field(default=False, init=False)
    suggestion: str | None = None
    ai_guidance: AIGuidance | None = None
    troubleshooting: Troubleshooting | None = None
    context: dict[str, Any] | None = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    # Make it work as a real exception
    def __post_init__(self) -> None:
        super().__init__(self.error)

    @property
    def retryable(self) -> bool:
        """True when repeating the same call may succeed."""
        return self.error_type in RETRYABLE_TYPES

    # -- serialisation -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Compact JSON-ready dict — ``None`` values are excluded."""
        result: dict[str, Any] = {
            "success": self.success,
            "error": self.error,
            "error_type": self.error_type.value,
            "service": self.service,
            "retryable": self.retryable,
            "timestamp": self.timestamp,
        }
        if self.suggestion is not None:
            result["suggestion"] = self.suggestion
        if self.ai_guidance is not None:
            result["ai_guidance"] = self.ai_guidance.to_dict()
        if self.troubleshooting is not None:
            result["troubleshooting"] = self.troubleshooting.to_dict()
        if self.context is not None:
            result["context"] = self.context
        return result

    # -- factory methods -----------------------------------------------------

    @classmethod
    def not_found(
        cls,
        part_name: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """A referenced part definition does not exist in the store."""
        return cls(
            error=f'Part with name "{part_name}" not found',
            error_type=ErrorType.NOT_FOUND,
            service="slug_registry",
            suggestion=suggestion
            or f"Declare part '{part_name}' in [[parts]] and run 'python -m slug_registry sync-parts'",
            ai_guidance=AIGuidance(
                action_required=f"Register part '{part_name}' before assigning slugs to it",
                command="python -m slug_registry sync-parts",
                discovery_tool="python -m slug_registry parts",
                checks=[
                    f"Is '{part_name}' spelled the same way as in config/settings.toml?",
                    "Has sync-parts been run against this store?",
                ],
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    "1. List known parts: python -m slug_registry parts",
                    f"2. Add a [[parts]] entry named '{part_name}' to config/settings.toml",
                    "3. Run: python -m slug_registry sync-parts",
                    "4. Retry the operation",
                ]
            ),
            context={"part": part_name},
        )

    @classmethod
    def conflict(
        cls,
        part_name: str,
        lang: str,
        name: str,
        *,
        existing_object_id: int | None = None,
        suggestion: str | None = None,
    ) -> ActionableError:
        """A write would violate (part, lang, name) uniqueness."""
        owner = f" (owned by object {existing_object_id})" if existing_object_id is not None else ""
        context: dict[str, Any] = {"part": part_name, "lang": lang, "name": name}
        if existing_object_id is not None:
            context["existing_object_id"] = existing_object_id
        return cls(
            error=f"Slug '{name}' already exists in part '{part_name}' for language '{lang}'{owner}",
            error_type=ErrorType.CONFLICT,
            service="slug_store",
            suggestion=suggestion
            or "Another writer claimed this slug first; re-check availability and try again",
            ai_guidance=AIGuidance(
                action_required="Retry the assignment or pick a different slug name",
                discovery_tool=f"python -m slug_registry check {part_name} {name} --lang {lang}",
                checks=[
                    "Is another process assigning the same slug concurrently?",
                    "Is the name occupied by an outdated or deleted slug of another object?",
                ],
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    f"1. Check availability: python -m slug_registry check {part_name} {name} --lang {lang}",
                    "2. If occupied by another object, choose a different name",
                    "3. Otherwise retry the assignment",
                ]
            ),
            context=context,
        )

    @classmethod
    def duplicate_part(
        cls,
        part_name: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """A second part definition would reuse an existing name."""
        return cls(
            error=f"Part '{part_name}' already exists",
            error_type=ErrorType.CONFLICT,
            service="slug_store",
            suggestion=suggestion or f"Use sync-parts to update '{part_name}' instead of creating it again",
            ai_guidance=AIGuidance(
                action_required=f"Update the existing part '{part_name}' rather than registering it twice",
                command="python -m slug_registry sync-parts",
                discovery_tool="python -m slug_registry parts",
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    "1. List known parts: python -m slug_registry parts",
                    f"2. Edit the [[parts]] entry for '{part_name}' in config/settings.toml",
                    "3. Run: python -m slug_registry sync-parts",
                ]
            ),
            context={"part": part_name},
        )

    @classmethod
    def config(
        cls,
        field_name: str,
        reason: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """Missing or invalid configuration in settings.toml."""
        return cls(
            error=f"Configuration error — {field_name}: {reason}",
            error_type=ErrorType.CONFIG,
            service="settings.toml",
            suggestion=suggestion or f"Fix '{field_name}' in config/settings.toml",
            ai_guidance=AIGuidance(
                action_required=f"Correct the '{field_name}' value in config/settings.toml",
                checks=[
                    "Verify config/settings.toml exists",
                    f"Verify '{field_name}' is present and valid",
                ],
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    "1. Open config/settings.toml",
                    f"2. Locate the '{field_name}' setting",
                    f"3. Fix the issue: {reason}",
                    "4. Save and re-run",
                ]
            ),
        )

    @classmethod
    def validation(
        cls,
        field_name: str,
        reason: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """Input validation failure (TOML values, CLI args, etc.)."""
        return cls(
            error=f"Validation error — {field_name}: {reason}",
            error_type=ErrorType.VALIDATION,
            service="validation",
            suggestion=suggestion or f"Fix '{field_name}': {reason}",
            ai_guidance=AIGuidance(
                action_required=f"Correct the value for '{field_name}'",
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    f"1. Check the value of '{field_name}'",
                    f"2. Issue: {reason}",
                    "3. Correct and retry",
                ]
            ),
        )

    @classmethod
    def storage(
        cls,
        backend: str,
        operation: str,
        raw_error: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """The storage backend failed to read or write."""
        return cls(
            error=f"Storage backend '{backend}' failed during {operation}: {raw_error}",
            error_type=ErrorType.STORAGE,
            service=backend,
            suggestion=suggestion or f"Verify the '{backend}' store is reachable and writable",
            ai_guidance=AIGuidance(
                action_required=f"Verify the '{backend}' storage backend",
                checks=[
                    "Is [storage].persist_dir writable?",
                    "Is another process holding the database open?",
                    "Is the disk full?",
                ],
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    "1. Check [storage] in config/settings.toml",
                    "2. Verify the persist directory exists and is writable",
                    "3. Re-run the command",
                ]
            ),
        )

    @classmethod
    def parse(
        cls,
        source: str,
        raw_error: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """A file could not be parsed (settings TOML)."""
        return cls(
            error=f"Parse failure in {source}: {raw_error}",
            error_type=ErrorType.PARSE,
            service=source,
            suggestion=suggestion or f"Fix the syntax of {source}",
            ai_guidance=AIGuidance(
                action_required=f"Repair the syntax of {source}",
                checks=[f"Validate {source} with a TOML linter"],
            ),
            troubleshooting=Troubleshooting(
                steps=[
                    f"1. Open {source}",
                    f"2. Fix the reported problem: {raw_error}",
                    "3. Save and re-run",
                ]
            ),
        )

    @classmethod
    def unexpected(
        cls,
        service: str,
        operation: str,
        raw_error: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """Catch-all for truly unexpected failures."""
        return cls(
            error=f"Unexpected error in {service} during {operation}: {raw_error}",
            error_type=ErrorType.UNEXPECTED,
            service=service,
            suggestion=suggestion or "This is an unexpected error — check logs for details",
            ai_guidance=AIGuidance(
                action_required="Analyze the error and escalate if needed",
                checks=[
                    "Check the full traceback in logs",
                    f"Is {service} in a known-good state?",
                ],
            ),
        )

    @classmethod
    def from_exception(
        cls,
        error: Exception,
        service: str,
        operation: str,
        *,
        suggestion: str | None = None,
    ) -> ActionableError:
        """Auto-classify an exception by keyword patterns.

        A caller-supplied ``suggestion`` is always preserved — it carries
        context the generic classifier cannot infer.
        """
        error_str = str(error).lower()
        raw_error = str(error)

        if any(kw in error_str for kw in ("permission denied", "read-only", "disk", "locked")):
            return cls.storage(service, operation, raw_error, suggestion=suggestion)

        if isinstance(error, (OSError, ConnectionError)):
            return cls.storage(service, operation, raw_error, suggestion=suggestion)

        return cls.unexpected(service, operation, raw_error, suggestion=suggestion)
