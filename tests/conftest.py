"""Global test configuration — shared fixtures.

This conftest provides:

1. **Store fixtures** — ``memory_store`` (dict-backed) and ``store``,
   which runs a test once against each backend (ChromaDB rooted in
   ``tmp_path``).

   ``make_settings`` builds a :class:`Settings` rooted in ``tmp_path``.

2. **Registry fixtures** — ``registry`` is a :class:`SlugRegistry` over
   ``store`` with two parts already registered:

     - ``article``  — case ``lower``, not multilingual
     - ``category`` — case ``capitalize``, multilingual

3. **Clock control** — ``ticking_clock`` replaces the timestamp source
   with one that advances a second per call, so ``updated_at``
   comparisons never depend on the host clock's resolution.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from slug_registry.config import LoggingConfig, PartSettings, Settings, StorageConfig
from slug_registry.models import CaseRule
from slug_registry.registry import SlugRegistry
from slug_registry.storage import ChromaSlugStore, InMemorySlugStore

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from slug_registry.storage import SlugStore


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemorySlugStore:
    return InMemorySlugStore()


@pytest.fixture(params=["memory", "chroma"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> SlugStore:
    """Each test using this fixture runs once per backend."""
    if request.param == "memory":
        return InMemorySlugStore()
    return ChromaSlugStore(persist_dir=str(tmp_path / "chroma"))


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry(store: SlugStore) -> SlugRegistry:
    """Registry with ``article`` (lower, single-language) and ``category``
    (capitalize, multilingual) parts."""
    registry = SlugRegistry(store)
    registry.register_part("article", "Article", case_rule=CaseRule.LOWER)
    registry.register_part(
        "category",
        "Category",
        case_rule=CaseRule.CAPITALIZE,
        multilingual=True,
    )
    return registry


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory fixture — returns a callable that produces a Settings instance.

    Storage and logs are rooted under ``tmp_path``.

    Usage::

        settings = make_settings()
        settings = make_settings(backend="memory", parts=[...])
    """

    def _factory(
        backend: str = "chroma",
        parts: list[PartSettings] | None = None,
    ) -> Settings:
        return Settings(
            storage=StorageConfig(backend=backend, persist_dir=str(tmp_path / "chroma")),
            logging=LoggingConfig(log_dir=str(tmp_path / "logs")),
            parts=parts
            if parts is not None
            else [
                PartSettings(name="article", model="Article", case=CaseRule.LOWER),
                PartSettings(
                    name="category",
                    model="Category",
                    case=CaseRule.CAPITALIZE,
                    multilang=True,
                ),
            ],
        )

    return _factory


# ---------------------------------------------------------------------------
# Clock control
# ---------------------------------------------------------------------------


@pytest.fixture
def ticking_clock(monkeypatch: pytest.MonkeyPatch) -> Callable[[], datetime]:
    """Make every timestamp refresh one second later than the previous one."""
    start = datetime.now(UTC) + timedelta(hours=1)
    ticks = {"n": 0}

    def _tick() -> datetime:
        ticks["n"] += 1
        return start + timedelta(seconds=ticks["n"])

    monkeypatch.setattr("slug_registry.models._utcnow", _tick)
    return _tick
