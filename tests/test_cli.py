"""CLI handler tests — parser construction, command wiring, output formatting.

Maps to BDD specs: TestParserConstruction, TestPartsCommands,
TestAssignCommand, TestQueryCommands, TestErrorReporting
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from slug_registry.cli import build_parser, main

if TYPE_CHECKING:
    from pathlib import Path


def _settings_file(tmp_path: Path, *, backend: str = "chroma") -> Path:
    """Write a settings file whose store lives under tmp_path."""
    content = f"""\
[storage]
backend = "{backend}"
persist_dir = "{(tmp_path / "chroma").as_posix()}"

[logging]
level = "WARNING"

[[parts]]
name = "article"
model = "Article"
case = "lower"

[[parts]]
name = "category"
model = "Category"
case = "capitalize"
multilang = true
"""
    path = tmp_path / "settings.toml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def cli(tmp_path: Path) -> list[str]:
    """Global CLI arguments pointing at a synced chroma store."""
    args = ["--settings", str(_settings_file(tmp_path))]
    main([*args, "sync-parts"])
    return args


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ---------------------------------------------------------------------------
# TestParserConstruction
# ---------------------------------------------------------------------------


class TestParserConstruction:
    """REQUIREMENT: The parser exposes every subcommand with its options.

    WHO: The operator typing commands
    WHAT: assign parses object ids as ints and defaults to lang "all" and
          state active; unknown states are rejected by argparse; a
          subcommand is required
    WHY: Bad input must fail in argparse, before any store is opened
    """

    def test_assign_defaults(self) -> None:
        args = build_parser().parse_args(["assign", "article", "42", "my-post"])
        assert args.object_id == 42
        assert args.lang == "all"
        assert args.state == "active"
        assert args.alternate is False
        assert args.normalize is False

    def test_check_exclude_is_int(self) -> None:
        args = build_parser().parse_args(["check", "article", "x", "--exclude", "0"])
        assert args.exclude == 0

    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["assign", "article", "1", "x", "--state", "archived"])

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# ---------------------------------------------------------------------------
# TestPartsCommands
# ---------------------------------------------------------------------------


class TestPartsCommands:
    """REQUIREMENT: sync-parts creates declared parts and parts lists them.

    WHO: The operator setting up a store
    WHAT: sync-parts reports how many parts it synced; parts prints each
          with its model, case rule and language policy; an empty store
          prints a hint
    WHY: The operator must see what policy each part runs under
    """

    def test_sync_then_list(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        args = ["--settings", str(_settings_file(tmp_path))]
        main([*args, "sync-parts"])
        assert "Synced 2 part(s)" in capsys.readouterr().out

        main([*args, "parts"])
        out = capsys.readouterr().out
        assert "article (model Article, case lower, all languages)" in out
        assert "category (model Category, case capitalize, multilingual)" in out

    def test_empty_store_prints_hint(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--settings", str(_settings_file(tmp_path)), "parts"])
        assert "No parts registered" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# TestAssignCommand
# ---------------------------------------------------------------------------


class TestAssignCommand:
    """REQUIREMENT: assign records slugs and reports the stored record.

    WHO: The operator renaming an object by hand
    WHAT: the printed line shows part, effective language, name, object
          and state; --normalize applies the case rule first; the new
          name outdates the old one across CLI invocations
    WHY: The CLI is a thin wrapper — it must show exactly what was stored
    """

    def test_assign_prints_record(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        main([*cli, "assign", "article", "42", "My-Post", "--lang", "en"])
        assert capsys.readouterr().out.strip() == "article/all/My-Post -> 42 [active]"

    def test_normalize_flag(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        main([*cli, "assign", "article", "42", "My-Post", "--normalize"])
        assert "article/all/my-post -> 42 [active]" in capsys.readouterr().out

    def test_history_across_invocations(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        main([*cli, "assign", "article", "42", "My-Post"])
        main([*cli, "assign", "article", "42", "my-new-post"])
        capsys.readouterr()

        main([*cli, "list", "article", "42"])
        out = capsys.readouterr().out
        assert "[outdated] all  My-Post" in out
        assert "[active  ] all  my-new-post" in out


# ---------------------------------------------------------------------------
# TestQueryCommands
# ---------------------------------------------------------------------------


class TestQueryCommands:
    """REQUIREMENT: check, find, list and normalize answer without writing.

    WHO: Scripts probing the registry
    WHAT: check prints available/taken and exits 1 when taken; --exclude
          frees the owner's own name; find prints the record or exits 1;
          normalize prints the case-ruled name
    WHY: Exit codes let shell scripts branch on availability
    """

    def test_check_available(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        main([*cli, "check", "article", "fresh"])
        assert capsys.readouterr().out.strip() == "available"

    def test_check_taken_exits_1(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        main([*cli, "assign", "article", "42", "taken"])
        capsys.readouterr()
        assert _exit_code([*cli, "check", "article", "taken"]) == 1
        assert "taken" in capsys.readouterr().out

    def test_check_exclude_owner(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        main([*cli, "assign", "article", "42", "mine"])
        capsys.readouterr()
        main([*cli, "check", "article", "mine", "--exclude", "42"])
        assert capsys.readouterr().out.strip() == "available"

    def test_find(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        main([*cli, "assign", "category", "5", "Books", "--lang", "en"])
        capsys.readouterr()
        main([*cli, "find", "category", "Books", "--lang", "en"])
        assert "category/en/Books -> 5 [active]" in capsys.readouterr().out

    def test_find_missing_exits_1(self, cli: list[str]) -> None:
        assert _exit_code([*cli, "find", "article", "nothing"]) == 1

    def test_list_empty(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        main([*cli, "list", "article", "7"])
        assert "No slugs for article #7" in capsys.readouterr().out

    def test_normalize(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        main([*cli, "normalize", "category", "science fiction"])
        assert capsys.readouterr().out.strip() == "Science Fiction"


# ---------------------------------------------------------------------------
# TestErrorReporting
# ---------------------------------------------------------------------------


class TestErrorReporting:
    """REQUIREMENT: Actionable errors print their message and suggestion, then exit 1.

    WHO: The operator reading a failed command
    WHAT: NOT_FOUND and CONFIG errors print "Error:" and a suggestion on
          stderr; CONFLICT additionally says it is retryable
    WHY: A traceback tells the operator nothing about how to recover
    """

    def test_unknown_part(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        assert _exit_code([*cli, "assign", "product", "1", "x"]) == 1
        err = capsys.readouterr().err
        assert 'Error: Part with name "product" not found' in err
        assert "Suggestion:" in err
        assert "retryable" not in err

    def test_missing_settings(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _exit_code(["--settings", str(tmp_path / "absent.toml"), "parts"]) == 1
        assert "Settings file not found" in capsys.readouterr().err

    def test_conflict_is_reported_retryable(self, cli: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        main([*cli, "assign", "article", "1", "shared"])
        capsys.readouterr()
        assert _exit_code([*cli, "assign", "article", "2", "shared"]) == 1
        err = capsys.readouterr().err
        assert "already exists" in err
        assert "This error is retryable." in err
