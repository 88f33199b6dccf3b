"""Configuration loading and validation.

Loads ``settings.toml`` and validates all fields at startup, before the
store is opened or any slug is written.  A typo in a part's case rule
discovered after thousands of assignments is far more costly than a
startup validation failure.

The validated config is exposed as a :class:`Settings` dataclass with
typed fields for each section: ``storage``, ``cache``, ``logging`` and
the ``parts`` array of tables.
"""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from slug_registry.errors import ActionableError
from slug_registry.models import CaseRule

# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------


@dataclass
class StorageConfig:
    """Store selection from ``[storage]``."""

    backend: str = "chroma"
    persist_dir: str = "./data/chroma_db"
    collection_prefix: str = "slug_"


@dataclass
class CacheConfig:
    """Part cache settings from ``[cache]``."""

    enabled: bool = True


@dataclass
class LoggingConfig:
    """Logging settings from ``[logging]``."""

    level: int = logging.INFO
    log_dir: str = "data/logs"
    file_logging: bool = False


@dataclass
class PartSettings:
    """One ``[[parts]]`` entry."""

    name: str
    model: str
    case: CaseRule = CaseRule.NONE
    multilang: bool = False


@dataclass
class Settings:
    """Top-level validated configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    parts: list[PartSettings] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Default settings path
# ---------------------------------------------------------------------------

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")

_BACKENDS = frozenset({"memory", "chroma"})
_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}
# ChromaDB collection names: alphanumerics, dots, dashes, underscores
_PREFIX_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


# ---------------------------------------------------------------------------
# Loading and validation
# ---------------------------------------------------------------------------


def load_settings(path: str | Path = DEFAULT_SETTINGS_PATH) -> Settings:
    """Load and validate settings from a TOML file.

    Raises :class:`~slug_registry.errors.ActionableError`:
      - CONFIG if the file is missing or a required field is absent
      - VALIDATION if field values are out of range
      - PARSE if the TOML is malformed

    Returns a fully validated :class:`Settings` instance.
    """
    filepath = Path(path)
    if not filepath.exists():
        raise ActionableError.config(
            field_name="settings_path",
            reason=f"Settings file not found: {filepath}",
            suggestion=f"Create {filepath} or copy from config/settings.toml.example",
        )

    raw_text = filepath.read_text(encoding="utf-8")
    try:
        data = tomllib.loads(raw_text)
    except tomllib.TOMLDecodeError as exc:
        raise ActionableError.parse(
            source=str(filepath),
            raw_error=str(exc),
            suggestion=f"Fix TOML syntax in {filepath}",
        ) from None

    return _validate(data, filepath)


def _validate(data: dict[str, object], filepath: Path) -> Settings:
    """Validate raw TOML data and return a Settings instance."""

    # -- storage section -----------------------------------------------------
    storage_data = _optional_section(data, "storage", filepath)

    backend = str(storage_data.get("backend", "chroma"))
    if backend not in _BACKENDS:
        raise ActionableError.validation(
            field_name="storage.backend",
            reason=f"'{backend}' is not a known backend",
            suggestion=f"Set [storage].backend to one of: {', '.join(sorted(_BACKENDS))}",
        )

    prefix = str(storage_data.get("collection_prefix", "slug_"))
    if not _PREFIX_RE.match(prefix):
        raise ActionableError.validation(
            field_name="storage.collection_prefix",
            reason=f"'{prefix}' must start with a letter or digit and contain only [A-Za-z0-9._-]",
        )

    storage = StorageConfig(
        backend=backend,
        persist_dir=str(storage_data.get("persist_dir", "./data/chroma_db")),
        collection_prefix=prefix,
    )

    # -- cache section -------------------------------------------------------
    cache_data = _optional_section(data, "cache", filepath)
    cache = CacheConfig(enabled=_bool_field(cache_data, "enabled", "cache.enabled", default=True))

    # -- logging section -----------------------------------------------------
    logging_data = _optional_section(data, "logging", filepath)

    level_name = str(logging_data.get("level", "INFO")).upper()
    if level_name not in _LOG_LEVELS:
        raise ActionableError.validation(
            field_name="logging.level",
            reason=f"'{level_name}' is not a log level",
            suggestion=f"Set [logging].level to one of: {', '.join(_LOG_LEVELS)}",
        )

    logging_config = LoggingConfig(
        level=_LOG_LEVELS[level_name],
        log_dir=str(logging_data.get("log_dir", "data/logs")),
        file_logging=_bool_field(logging_data, "file_logging", "logging.file_logging", default=False),
    )

    # -- parts array ---------------------------------------------------------
    raw_parts = data.get("parts", [])
    if not isinstance(raw_parts, list):
        raise ActionableError.config(
            field_name="parts",
            reason="parts must be an array of tables ([[parts]])",
            suggestion="Declare each part with a [[parts]] header",
        )

    parts: list[PartSettings] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw_parts):
        if not isinstance(entry, dict):
            raise ActionableError.config(
                field_name=f"parts[{index}]",
                reason=f"entry must be a table, not {type(entry).__name__}",
                suggestion="Declare each part with a [[parts]] header",
            )
        name = str(_require_field(entry, "name", f"parts[{index}]", filepath)).strip()
        model = str(_require_field(entry, "model", f"parts[{index}]", filepath)).strip()
        if not name:
            raise ActionableError.validation(
                field_name=f"parts[{index}].name",
                reason="part name must not be blank",
            )
        if name in seen:
            raise ActionableError.validation(
                field_name=f"parts[{index}].name",
                reason=f"part '{name}' is declared more than once",
                suggestion=f"Keep a single [[parts]] entry named '{name}'",
            )
        seen.add(name)

        case_value = entry.get("case", CaseRule.NONE.value)
        case_rule = CaseRule.parse(case_value)
        if case_rule is None:
            raise ActionableError.validation(
                field_name=f"parts[{index}].case",
                reason=f"'{case_value}' is not a case rule",
                suggestion=f"Use one of: {', '.join(rule.value for rule in CaseRule)}",
            )

        parts.append(
            PartSettings(
                name=name,
                model=model,
                case=case_rule,
                multilang=_bool_field(entry, "multilang", f"parts[{index}].multilang", default=False),
            )
        )

    return Settings(storage=storage, cache=cache, logging=logging_config, parts=parts)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _optional_section(data: dict[str, object], name: str, filepath: Path) -> dict[str, object]:
    """Return a top-level section, ``{}`` when absent, or raise CONFIG error."""
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ActionableError.config(
            field_name=name,
            reason=f"[{name}] in {filepath} must be a table, not {type(section).__name__}",
            suggestion=f"Define [{name}] as a TOML table",
        )
    return section


def _require_field(
    section: dict[str, object], field_name: str, section_name: str, filepath: Path
) -> object:
    """Return a required field within a section, or raise CONFIG error."""
    value = section.get(field_name)
    if value is None:
        raise ActionableError.config(
            field_name=f"{section_name}.{field_name}",
            reason=f"Required field '{field_name}' is missing from {section_name} in {filepath}",
            suggestion=f"Add '{field_name}' to {section_name} in {filepath}",
        )
    return value


def _bool_field(section: dict[str, object], key: str, field_name: str, *, default: bool) -> bool:
    """Return a boolean field, or raise VALIDATION for any non-boolean value.

    ``bool("false")`` is ``True``, so strings and numbers are rejected
    rather than coerced.
    """
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ActionableError.validation(
            field_name=field_name,
            reason=f"{value!r} is not a boolean",
            suggestion=f"Set {field_name} to true or false (unquoted)",
        )
    return value
