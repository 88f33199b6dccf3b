"""CLI command handlers for the slug registry.

Each public ``handle_*`` function corresponds to a CLI subcommand and
encapsulates the wiring, orchestration, and output for that command.
"""

from __future__ import annotations

import argparse
import sys

from slug_registry.config import DEFAULT_SETTINGS_PATH, Settings, load_settings
from slug_registry.errors import ActionableError
from slug_registry.logging import configure_file_logging, set_level
from slug_registry.models import SlugState
from slug_registry.registry import SlugRegistry
from slug_registry.storage import open_store


def _load(args: argparse.Namespace) -> Settings:
    settings = load_settings(getattr(args, "settings", DEFAULT_SETTINGS_PATH))
    set_level(settings.logging.level)
    if settings.logging.file_logging:
        configure_file_logging(settings.logging.log_dir, level=settings.logging.level)
    return settings


def _open_registry(settings: Settings) -> SlugRegistry:
    store = open_store(settings.storage)
    return SlugRegistry(store, cache_enabled=settings.cache.enabled)


def handle_parts(args: argparse.Namespace) -> None:
    """List the parts known to the store."""
    registry = _open_registry(_load(args))
    parts = registry.list_parts()
    if not parts:
        print("No parts registered. Declare [[parts]] and run 'sync-parts'.")
        return
    print("Registered parts:")
    for part in parts:
        lang_policy = "multilingual" if part.multilingual else "all languages"
        print(f"  - {part.name} (model {part.model_name}, case {part.case_rule.value}, {lang_policy})")


def handle_sync_parts(args: argparse.Namespace) -> None:
    """Create or update the parts declared in settings."""
    settings = _load(args)
    registry = _open_registry(settings)
    parts = registry.sync_parts(settings.parts)
    print(f"Synced {len(parts)} part(s)")


def handle_assign(args: argparse.Namespace) -> None:
    """Assign a slug to an object."""
    registry = _open_registry(_load(args))
    name = registry.normalize(args.part, args.name) if args.normalize else args.name
    record = registry.assign(
        args.part,
        args.object_id,
        args.lang,
        name,
        state=args.state,
        as_alternate=args.alternate,
    )
    print(f"{record.part_name}/{record.lang}/{record.name} -> {record.object_id} [{record.state.value}]")


def handle_list(args: argparse.Namespace) -> None:
    """Print every slug of one object."""
    registry = _open_registry(_load(args))
    records = registry.list_for_object(args.part, args.object_id)
    if not records:
        print(f"No slugs for {args.part} #{args.object_id}")
        return
    for record in sorted(records, key=lambda r: (r.lang, r.created_at)):
        print(f"  [{record.state.value:<8}] {record.lang:<4} {record.name}")


def handle_check(args: argparse.Namespace) -> None:
    """Report whether a slug name is free."""
    registry = _open_registry(_load(args))
    available = registry.is_name_available(
        args.part,
        args.name,
        args.lang,
        excluding_object_id=args.exclude,
    )
    print("available" if available else "taken")
    if not available:
        sys.exit(1)


def handle_find(args: argparse.Namespace) -> None:
    """Show the slug stored under a name."""
    registry = _open_registry(_load(args))
    record = registry.find_by_name(args.part, args.name, args.lang)
    if record is None:
        print(f"No slug '{args.name}' in part '{args.part}'")
        sys.exit(1)
    print(f"{record.part_name}/{record.lang}/{record.name} -> {record.object_id} [{record.state.value}]")


def handle_normalize(args: argparse.Namespace) -> None:
    """Print a name with the part's case rule applied."""
    registry = _open_registry(_load(args))
    print(registry.normalize(args.part, args.name))


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="slug-registry",
        description="Manage canonical and historical slugs for application objects",
    )
    parser.add_argument(
        "--settings",
        type=str,
        default=str(DEFAULT_SETTINGS_PATH),
        metavar="PATH",
        help=f"Settings file (default: {DEFAULT_SETTINGS_PATH})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # -- parts ---------------------------------------------------------------
    sub.add_parser("parts", help="List registered parts")
    sub.add_parser("sync-parts", help="Create or update parts from [[parts]] settings")

    # -- assign --------------------------------------------------------------
    assign_p = sub.add_parser("assign", help="Assign a slug to an object")
    assign_p.add_argument("part", type=str, help="Part name (e.g. article)")
    assign_p.add_argument("object_id", type=int, help="Target object id")
    assign_p.add_argument("name", type=str, help="Slug name")
    assign_p.add_argument("--lang", type=str, default="all", help="Language tag (default: all)")
    assign_p.add_argument(
        "--state",
        choices=[state.value for state in SlugState],
        default=SlugState.ACTIVE.value,
        help="Slug state (default: active)",
    )
    assign_p.add_argument(
        "--alternate",
        action="store_true",
        help="Keep the current active slug instead of outdating it",
    )
    assign_p.add_argument(
        "--normalize",
        action="store_true",
        help="Apply the part's case rule before assigning",
    )

    # -- list ----------------------------------------------------------------
    list_p = sub.add_parser("list", help="List every slug of an object")
    list_p.add_argument("part", type=str)
    list_p.add_argument("object_id", type=int)

    # -- check ---------------------------------------------------------------
    check_p = sub.add_parser("check", help="Check whether a slug name is available")
    check_p.add_argument("part", type=str)
    check_p.add_argument("name", type=str)
    check_p.add_argument("--lang", type=str, default="all")
    check_p.add_argument(
        "--exclude",
        type=int,
        default=None,
        metavar="OBJECT_ID",
        help="Treat slugs owned by this object as available",
    )

    # -- find ----------------------------------------------------------------
    find_p = sub.add_parser("find", help="Show the slug stored under a name")
    find_p.add_argument("part", type=str)
    find_p.add_argument("name", type=str)
    find_p.add_argument("--lang", type=str, default="all")

    # -- normalize -----------------------------------------------------------
    normalize_p = sub.add_parser("normalize", help="Apply a part's case rule to a name")
    normalize_p.add_argument("part", type=str)
    normalize_p.add_argument("name", type=str)

    return parser


_HANDLERS = {
    "parts": handle_parts,
    "sync-parts": handle_sync_parts,
    "assign": handle_assign,
    "list": handle_list,
    "check": handle_check,
    "find": handle_find,
    "normalize": handle_normalize,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        _HANDLERS[args.command](args)
    except ActionableError as exc:
        print(f"Error: {exc.error}", file=sys.stderr)
        if exc.suggestion:
            print(f"  Suggestion: {exc.suggestion}", file=sys.stderr)
        if exc.retryable:
            print("  This error is retryable.", file=sys.stderr)
        sys.exit(1)
