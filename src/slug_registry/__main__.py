"""CLI entry point for the slug registry."""

from __future__ import annotations

from slug_registry.cli import main

if __name__ == "__main__":
    main()
