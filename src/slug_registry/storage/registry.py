"""Backend registry — IoC loader and factory for slug stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from slug_registry.errors import ActionableError

if TYPE_CHECKING:
    from slug_registry.config import StorageConfig
    from slug_registry.storage.base import SlugStore


class BackendRegistry:
    """Decorator-based registry that maps backend name strings to store classes.

    Usage::

        @BackendRegistry.register
        class InMemorySlugStore(SlugStore):
            @property
            def backend_name(self) -> str:
                return "memory"
            ...
    """

    _registry: ClassVar[dict[str, type[SlugStore]]] = {}

    @classmethod
    def register(cls, store_class: type[SlugStore]) -> type[SlugStore]:
        """Class decorator — registers a store by its ``backend_name``."""
        instance = store_class.__new__(store_class)
        cls._registry[instance.backend_name] = store_class
        return store_class

    @classmethod
    def get(cls, backend_name: str) -> type[SlugStore]:
        """Return the store class registered under *backend_name*."""
        if backend_name not in cls._registry:
            known = ", ".join(sorted(cls._registry)) or "none"
            raise ActionableError.config(
                field_name="storage.backend",
                reason=f"No slug store registered for backend '{backend_name}'",
                suggestion=f"Set [storage].backend to one of: {known}",
            )
        return cls._registry[backend_name]

    @classmethod
    def create(cls, config: StorageConfig) -> SlugStore:
        """Instantiate the backend named by ``config.backend``."""
        return cls.get(config.backend).from_config(config)

    @classmethod
    def list_registered(cls) -> list[str]:
        """Return all registered backend name strings."""
        return list(cls._registry.keys())
