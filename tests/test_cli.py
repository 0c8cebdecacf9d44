"""Tests for breaklog.cli."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from conftest import make_changelog, make_entry

from breaklog.cli import cli
from breaklog.models import Issue, Severity


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestInit:
    def test_writes_template(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0, result.output
        changelog = tmp_path / "BREAKING_CHANGES.md"
        assert "## Entries" in changelog.read_text()
        assert "✓ Wrote BREAKING_CHANGES.md" in result.output

    def test_refuses_to_overwrite(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert "Remove legacy user listing" in (project / "BREAKING_CHANGES.md").read_text()

    def test_force_and_file_option(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["--file", "docs/changes.md", "init", "--force"])

        assert result.exit_code == 0, result.output
        assert (project / "docs" / "changes.md").exists()


class TestNew:
    def test_appends_entry(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "new",
                "--title", "Drop XML responses",
                "--date", "2024-06-01",
                "--status", "Announced",
                "--owner", "API platform",
                "--api", "GET /v2/reports",
                "--api", "GET /v2/exports",
                "--step", "Send Accept: application/json.",
            ],
        )

        assert result.exit_code == 0, result.output
        text = (project / "BREAKING_CHANGES.md").read_text()
        assert "### 2024-06-01 — Drop XML responses" in text
        assert "  - `GET /v2/exports`" in text
        assert "  1. Send Accept: application/json." in text
        assert "- **Impact:** <who is affected and how>" in text
        assert text.index("Drop XML responses") < text.index("## Appendix")

    def test_descending_order_adds_on_top(self, runner: CliRunner, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.breaklog]\norder = "descending"\n')
        (project / "BREAKING_CHANGES.md").write_text(
            make_changelog(make_entry("2024-03-01 — C"), make_entry("2024-01-01 — A"))
        )

        result = runner.invoke(cli, ["new", "--title", "D", "--date", "2024-04-01"])

        assert result.exit_code == 0, result.output
        text = (project / "BREAKING_CHANGES.md").read_text()
        assert text.index("2024-04-01 — D") < text.index("2024-03-01 — C")
        assert runner.invoke(cli, ["lint", "--today", "2024-04-01"]).output.count("BC006") == 0

    def test_dry_run_leaves_file(self, runner: CliRunner, project: Path) -> None:
        before = (project / "BREAKING_CHANGES.md").read_text()

        result = runner.invoke(cli, ["new", "--title", "Preview", "--date", "2024-06-01", "--dry-run"])

        assert result.exit_code == 0
        assert result.output.startswith("### 2024-06-01 — Preview")
        assert (project / "BREAKING_CHANGES.md").read_text() == before

    def test_bad_date(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["new", "--title", "x", "--date", "June"])
        assert result.exit_code == 2
        assert "not a YYYY-MM-DD date" in result.output

    def test_bad_status(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["new", "--title", "x", "--status", "Shipped"])
        assert result.exit_code == 2

    def test_missing_changelog(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["new", "--title", "x"])
        assert result.exit_code == 1
        assert "breaklog init" in result.output

    def test_missing_entries_section(self, runner: CliRunner, project: Path) -> None:
        (project / "BREAKING_CHANGES.md").write_text("# Changes\n")
        result = runner.invoke(cli, ["new", "--title", "x"])
        assert result.exit_code == 1
        assert "no '## Entries' section" in result.output


class TestLint:
    def test_clean(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["lint", "--today", "2024-06-01"])
        assert result.exit_code == 0, result.output
        assert "✓ BREAKING_CHANGES.md is clean" in result.output

    def test_errors_fail(self, runner: CliRunner, project: Path) -> None:
        (project / "BREAKING_CHANGES.md").write_text(make_changelog(make_entry(Status="Shipped")))

        result = runner.invoke(cli, ["lint", "--today", "2024-06-01"])

        assert result.exit_code == 1
        assert "BREAKING_CHANGES.md:7: BC002 [error]" in result.output
        assert "1 error(s), 0 warning(s)" in result.output

    def test_warnings_pass_unless_strict(self, runner: CliRunner, project: Path) -> None:
        (project / "BREAKING_CHANGES.md").write_text(make_changelog(make_entry(Effective_Date="soon")))

        assert runner.invoke(cli, ["lint", "--today", "2024-06-01"]).exit_code == 0
        assert runner.invoke(cli, ["lint", "--today", "2024-06-01", "--strict"]).exit_code == 1

    def test_json(self, runner: CliRunner, project: Path) -> None:
        (project / "BREAKING_CHANGES.md").write_text(make_changelog(make_entry(Owner=None)))

        result = runner.invoke(cli, ["lint", "--format", "json", "--today", "2024-06-01"])

        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload == [
            {
                "code": "BC003",
                "severity": "error",
                "message": "missing field 'Owner'",
                "line": 5,
                "entry": "Something",
            }
        ]

    def test_config_from_pyproject(self, runner: CliRunner, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.breaklog]\ndisable = ["BC002"]\n')
        (project / "BREAKING_CHANGES.md").write_text(make_changelog(make_entry(Status="Shipped")))

        assert runner.invoke(cli, ["lint"]).exit_code == 0

    def test_unknown_rule_code(self, runner: CliRunner, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.breaklog]\nwarn = ["BC0O3"]\n')

        result = runner.invoke(cli, ["lint"])

        assert result.exit_code == 1
        assert "unknown rule code(s): BC0O3" in result.output

    def test_malformed_pyproject(self, runner: CliRunner, project: Path) -> None:
        (project / "pyproject.toml").write_text("[tool.breaklog\npath = \n")

        result = runner.invoke(cli, ["rules"])

        assert result.exit_code == 1
        assert "Could not parse pyproject.toml" in result.output
        assert "Traceback" not in result.output

    def test_invalid_config(self, runner: CliRunner, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.breaklog]\norder = "sideways"\n')

        result = runner.invoke(cli, ["lint"])

        assert result.exit_code == 1
        assert "Invalid [tool.breaklog] configuration" in result.output


class TestList:
    def test_text(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("2024-01-15  Completed  Remove legacy user listing")
        assert "[GET /v1/users, GET /v1/users/{id}]" in lines[0]
        assert len(lines) == 2

    def test_filter_by_status(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["list", "--status", "Announced"])
        assert result.output.splitlines() == [
            "2024-05-20  Announced  Require auth on order webhooks"
            "  [POST /v2/orders/webhook, PATCH /v2/orders/{id}]"
        ]

    def test_json(self, runner: CliRunner, project: Path) -> None:
        result = runner.invoke(cli, ["list", "--json", "--status", "Completed"])
        payload = json.loads(result.output)
        assert len(payload) == 1
        assert payload[0]["title"] == "Remove legacy user listing"
        assert payload[0]["fields"]["Owner"] == "Identity team"
        assert payload[0]["migration_steps"] == [
            "Switch to `GET /v2/users`.",
            "Update pagination handling.",
        ]


class TestGuard:
    @pytest.fixture(autouse=True)
    def root(self, project: Path) -> Iterator[MagicMock]:
        with patch("breaklog.cli.repo_root", return_value=project) as mock_root:
            yield mock_root

    @patch("breaklog.cli.run_guard")
    def test_passes_config_and_path(self, mock_guard: MagicMock, runner: CliRunner, project: Path) -> None:
        mock_guard.return_value = []

        result = runner.invoke(cli, ["guard", "--base", "origin/main"])

        assert result.exit_code == 0, result.output
        base, config = mock_guard.call_args.args
        assert base == "origin/main"
        assert config.watch == ["api/**", "openapi.yaml"]
        assert mock_guard.call_args.kwargs == {"path": "BREAKING_CHANGES.md", "verbose": True}

    @patch("breaklog.cli.run_guard")
    def test_path_is_relative_to_repo_root(
        self, mock_guard: MagicMock, runner: CliRunner, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (project / "services" / "api").mkdir(parents=True)
        monkeypatch.chdir(project / "services" / "api")
        mock_guard.return_value = []

        result = runner.invoke(cli, ["--file", "../../BREAKING_CHANGES.md", "guard", "--base", "main"])

        assert result.exit_code == 0, result.output
        assert mock_guard.call_args.kwargs["path"] == "BREAKING_CHANGES.md"

    @patch("breaklog.cli.run_guard")
    def test_changelog_outside_repo(
        self, mock_guard: MagicMock, runner: CliRunner, project: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        elsewhere = tmp_path_factory.mktemp("elsewhere") / "BC.md"

        result = runner.invoke(cli, ["--file", str(elsewhere), "guard", "--base", "main"])

        assert result.exit_code == 1
        assert "outside the repository root" in result.output
        mock_guard.assert_not_called()

    @patch("breaklog.cli.run_guard")
    def test_errors_fail(self, mock_guard: MagicMock, runner: CliRunner, project: Path) -> None:
        mock_guard.return_value = [
            Issue(code="BC015", severity=Severity.ERROR, message="not updated")
        ]

        result = runner.invoke(cli, ["guard", "--base", "main", "--format", "json"])

        assert result.exit_code == 1
        assert json.loads(result.output)[0]["code"] == "BC015"
        assert mock_guard.call_args.kwargs["verbose"] is False


def test_rules_lists_every_code(runner: CliRunner, project: Path) -> None:
    result = runner.invoke(cli, ["rules"])
    assert result.exit_code == 0
    assert result.output.splitlines()[0] == "BC001  error    document has an Entries section"
    assert len(result.output.splitlines()) == 15
