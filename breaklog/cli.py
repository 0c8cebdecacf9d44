"""CLI entry point for breaklog."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import click
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from breaklog.config import Config, load_config
from breaklog.history import guard as run_guard
from breaklog.lint import has_errors, lint_changelog
from breaklog.models import Issue, Status
from breaklog.parser import parse_changelog
from breaklog.render import append_entry, new_entry, render_entry, scaffold
from breaklog.rules import RULES
from breaklog.shell import repo_root

STATUS_CHOICE = click.Choice([s.value for s in Status])


class State:
    """Per-invocation settings shared by all subcommands."""

    def __init__(self, config: Config, path: Path) -> None:
        self.config = config
        self.path = path

    def read(self) -> str:
        if not self.path.exists():
            raise click.ClickException(
                f"{self.path} not found. Run 'breaklog init' to create it."
            )
        return self.path.read_text(encoding="utf-8")


def _parse_day(ctx: click.Context, param: click.Parameter, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"{value!r} is not a YYYY-MM-DD date") from None


def _report(issues: list[Issue], path: str, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps([i.model_dump(mode="json") for i in issues], indent=2))
        return
    for issue in issues:
        click.echo(issue.format(path))
    errors = sum(1 for i in issues if i.severity.value == "error")
    warnings = len(issues) - errors
    if issues:
        click.echo(f"\n{errors} error(s), {warnings} warning(s)")
    else:
        click.echo(f"✓ {path} is clean")


@click.group()
@click.version_option(package_name="breaklog")
@click.option(
    "--file",
    "file_",
    type=click.Path(dir_okay=False),
    default=None,
    help="Changelog to operate on. (default: [tool.breaklog].path or BREAKING_CHANGES.md)",
)
@click.pass_context
def cli(ctx: click.Context, file_: str | None) -> None:
    """Keep a changelog of backend API breaking changes honest."""
    root = Path.cwd()
    try:
        config = load_config(root)
    except TOMLKitError as exc:
        raise click.ClickException(f"Could not parse pyproject.toml: {exc}") from exc
    except ValidationError as exc:
        raise click.ClickException(
            f"Invalid [tool.breaklog] configuration in pyproject.toml:\n{exc}"
        ) from exc
    ctx.obj = State(config, root / (file_ or config.path))


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing changelog.")
@click.pass_obj
def init(state: State, force: bool) -> None:
    """Create the changelog from the bundled template."""
    if state.path.exists() and not force:
        raise click.ClickException(
            f"{state.path} already exists. Use --force to overwrite it."
        )
    state.path.parent.mkdir(parents=True, exist_ok=True)
    state.path.write_text(scaffold(), encoding="utf-8")

    click.echo(f"✓ Wrote {state.path.name}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Commit the changelog")
    click.echo('  2. Record a breaking change: breaklog new --title "..."')
    click.echo("  3. Check it in CI:           breaklog lint && breaklog guard --base origin/main")


@cli.command()
@click.option("--title", required=True, help="Short title for the entry heading.")
@click.option("--date", "on", callback=_parse_day, help="Entry date. (default: today)")
@click.option("--status", type=STATUS_CHOICE, default=Status.PLANNED.value, show_default=True)
@click.option("--owner", help="Owning team or person.")
@click.option("--effective-date", help="When the change takes effect (YYYY-MM-DD).")
@click.option("--pr", help="Pull request or issue link.")
@click.option("--api", "apis", multiple=True, help='Affected API, e.g. "GET /v1/users". Repeatable.')
@click.option("--breaking-change", help="What changes.")
@click.option("--impact", help="Who is affected and how.")
@click.option("--step", "steps", multiple=True, help="Migration step. Repeatable, in order.")
@click.option("--rollback", help="Rollback plan.")
@click.option("--notes", help="Anything else.")
@click.option("--dry-run", is_flag=True, help="Print the entry instead of writing it.")
@click.pass_obj
def new(
    state: State,
    title: str,
    on: date | None,
    status: str,
    owner: str | None,
    effective_date: str | None,
    pr: str | None,
    apis: tuple[str, ...],
    breaking_change: str | None,
    impact: str | None,
    steps: tuple[str, ...],
    rollback: str | None,
    notes: str | None,
    dry_run: bool,
) -> None:
    """Add a new entry; omitted fields are left as <placeholders>.

    The entry goes at the end of the Entries section, or at the top when
    [tool.breaklog].order is "descending".
    """
    entry = new_entry(
        title,
        on=on,
        status=Status(status),
        owner=owner,
        effective_date=effective_date,
        pr=pr,
        apis=list(apis),
        breaking_change=breaking_change,
        impact=impact,
        steps=list(steps),
        rollback=rollback,
        notes=notes,
    )
    if dry_run:
        click.echo(render_entry(entry))
        return

    try:
        updated = append_entry(state.read(), entry, order=state.config.order)
    except ValueError as exc:
        raise click.ClickException(f"{state.path}: {exc}") from exc
    state.path.write_text(updated, encoding="utf-8")
    click.echo(f"✓ Added '{entry.date} — {entry.title}' to {state.path.name}")


@cli.command()
@click.option(
    "--format", "fmt", type=click.Choice(["text", "json"]), default="text", show_default=True
)
@click.option("--strict", is_flag=True, help="Fail on warnings too.")
@click.option(
    "--today", callback=_parse_day, help="Reference date for stale-status checks. (default: today)"
)
@click.pass_obj
def lint(state: State, fmt: str, strict: bool, today: date | None) -> None:
    """Check the changelog against the entry template and conventions."""
    changelog = parse_changelog(state.read())
    issues = lint_changelog(changelog, state.config, today=today)
    _report(issues, state.path.name, fmt)
    if has_errors(issues, strict=strict):
        raise SystemExit(1)


@cli.command("list")
@click.option("--status", type=STATUS_CHOICE, default=None, help="Only entries with this status.")
@click.option("--json", "as_json", is_flag=True, help="Emit entries as JSON.")
@click.pass_obj
def list_entries(state: State, status: str | None, as_json: bool) -> None:
    """List entries in document order."""
    entries = parse_changelog(state.read()).entries
    if status is not None:
        entries = [e for e in entries if e.status is Status(status)]

    if as_json:
        payload = [
            {
                "date": e.date,
                "title": e.title,
                "line": e.line,
                "fields": {f.label: f.value for f in e.fields},
                "affected_apis": [str(a) for a in e.affected_apis()],
                "migration_steps": e.migration_steps(),
            }
            for e in entries
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    for e in entries:
        label = e.get("Status") or "?"
        apis = ", ".join(str(a) for a in e.affected_apis())
        click.echo(f"{e.date}  {label:<10} {e.title}" + (f"  [{apis}]" if apis else ""))


@cli.command()
@click.option("--base", required=True, help="Base revision, e.g. origin/main.")
@click.option(
    "--format", "fmt", type=click.Choice(["text", "json"]), default="text", show_default=True
)
@click.pass_obj
def guard(state: State, base: str, fmt: str) -> None:
    """Check that a change set keeps the changelog append-only and up to date."""
    root = repo_root()
    try:
        path = state.path.resolve().relative_to(root.resolve())
    except ValueError:
        raise click.ClickException(f"{state.path} is outside the repository root") from None
    issues = run_guard(base, state.config, path=str(path), verbose=fmt == "text")
    _report(issues, str(path), fmt)
    if has_errors(issues):
        raise SystemExit(1)


@cli.command()
def rules() -> None:
    """Show every rule code with its default severity."""
    for code, (severity, summary) in RULES.items():
        click.echo(f"{code}  {severity.value:<8} {summary}")
