"""CLI tests for wikilens.

Covers every command with:
- One happy path per command
- One error case per command
- Parametrized --help checks

Design:
- Uses fixtures from conftest.py (sample_wiki, runner)
- Passes --quiet so log records never mix into parsed output
- Tests BEHAVIORS not implementations
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from conftest import write_doc

from wikilens import __version__ as WIKILENS_VERSION
from wikilens.cli import cli, format_table

ALL_COMMANDS = ["resolve", "search", "check", "stats", "serve"]


def invoke(runner: CliRunner, root: Path, *args: str):
    return runner.invoke(cli, ["--quiet", "--root", str(root), *args])


# ─────────────────────────────────────────────────────────────────────────────
# Help and version
# ─────────────────────────────────────────────────────────────────────────────


class TestHelp:
    """--help and --version never touch the wiki."""

    def test_group_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ALL_COMMANDS:
            assert command in result.output

    @pytest.mark.parametrize("command", ALL_COMMANDS)
    def test_command_help(self, runner, command):
        result = runner.invoke(cli, [command, "--help"])

        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert WIKILENS_VERSION in result.output


# ─────────────────────────────────────────────────────────────────────────────
# resolve
# ─────────────────────────────────────────────────────────────────────────────


class TestResolve:
    """Tests for `wikilens resolve`."""

    def test_resolve_from_document(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "a", "--from", str(sample_wiki / "notes" / "b.md"))

        assert result.exit_code == 0, result.output
        assert result.output == "**Alpha**\n\ntest\n\nCreated: 2024-01-15\n"

    def test_resolve_from_root_by_default(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "notes/a")

        assert result.exit_code == 0, result.output
        assert "**Alpha**" in result.output

    def test_resolve_json(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "outside", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["title"] == "Outside"
        assert data["exists"] is True
        assert data["summary"] is None

    def test_resolve_missing_exits_1(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "missing")

        assert result.exit_code == 1
        assert "Not found: missing" in result.output

    def test_resolve_missing_json(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "missing", "--json")

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data == {
            "title": "missing",
            "summary": None,
            "created": None,
            "updated": None,
            "exists": False,
        }

    def test_resolve_empty_token(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "resolve", "#heading")

        assert result.exit_code == 2
        assert "empty" in result.output

    def test_resolve_with_missing_root(self, runner, tmp_path):
        result = invoke(runner, tmp_path / "nowhere", "resolve", "anything")

        assert result.exit_code == 1


# ─────────────────────────────────────────────────────────────────────────────
# search
# ─────────────────────────────────────────────────────────────────────────────


class TestSearch:
    """Tests for `wikilens search`."""

    def test_search_all(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "search")

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0].split() == ["LINK", "DIRECTORY", "NAME"]
        assert [line.split()[0] for line in lines[2:]] == ["notes/a", "notes/b", "outside"]

    def test_search_relative_to_document(self, runner, sample_wiki):
        result = invoke(
            runner, sample_wiki, "search", "out", "--from", str(sample_wiki / "notes" / "b.md"), "--json"
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [r["insert_text"] for r in data] == ["../outside"]
        assert data[0]["group_label"] == "root"
        assert data[0]["documentation"] == "**Outside**"

    def test_search_no_matches(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "search", "zzz")

        assert result.exit_code == 0
        assert "No matching documents." in result.output

    def test_search_no_matches_json(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "search", "zzz", "--json")

        assert json.loads(result.output) == []


# ─────────────────────────────────────────────────────────────────────────────
# check
# ─────────────────────────────────────────────────────────────────────────────


class TestCheck:
    """Tests for `wikilens check`."""

    def test_check_reports_broken(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "check", str(sample_wiki / "notes" / "b.md"))

        assert result.exit_code == 1
        assert "BROKEN" in result.output
        assert "3 links, 1 broken" in result.output

    def test_check_all_resolved(self, runner, sample_wiki):
        page = write_doc(sample_wiki, "notes/c.md", body="[[a]] and [[/outside]]\n")

        result = invoke(runner, sample_wiki, "check", str(page))

        assert result.exit_code == 0, result.output
        assert "2 links, 0 broken" in result.output

    def test_check_json(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "check", str(sample_wiki / "notes" / "b.md"), "--json")

        data = json.loads(result.output)
        assert [(s["token"], s["resolved"]) for s in data] == [
            ("a", True),
            ("../outside", True),
            ("missing", False),
        ]

    def test_check_no_links(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "check", str(sample_wiki / "outside.md"))

        assert result.exit_code == 0
        assert "No links found." in result.output

    def test_check_missing_file(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "check", str(sample_wiki / "nope.md"))

        assert result.exit_code == 2


# ─────────────────────────────────────────────────────────────────────────────
# stats
# ─────────────────────────────────────────────────────────────────────────────


class TestStats:
    """Tests for `wikilens stats`."""

    def test_stats_json(self, runner, sample_wiki):
        result = invoke(runner, sample_wiki, "stats", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["initialized"] is True
        assert data["cache_entry_count"] == 3
        assert data["root"] == str(sample_wiki)
        assert data["name_collisions"] == []

    def test_stats_text_lists_shared_names(self, runner, wiki_root):
        write_doc(wiki_root, "a/page.md")
        write_doc(wiki_root, "b/page.md")

        result = invoke(runner, wiki_root, "stats")

        assert result.exit_code == 0, result.output
        assert "Cache entries: 2" in result.output
        assert "Shared names:  page" in result.output


# ─────────────────────────────────────────────────────────────────────────────
# Output helpers
# ─────────────────────────────────────────────────────────────────────────────


class TestFormatTable:
    """Tests for format_table."""

    def test_columns_aligned(self):
        table = format_table([{"a": "x", "b": "long value"}, {"a": "yyyy", "b": None}], ["a", "b"])

        assert [line.rstrip() for line in table.splitlines()] == [
            "A     B",
            "----  ----------",
            "x     long value",
            "yyyy",
        ]

    def test_truncates_long_cells(self):
        table = format_table([{"a": "z" * 20}], ["a"], max_widths={"a": 8})

        assert table.splitlines()[2] == "zzzzz..."

    def test_empty(self):
        assert format_table([], ["a"]) == ""
