"""Changelog linting.

Checks a parsed changelog against the entry template and the editorial
conventions: known status values, complete entries, template field order,
well-formed dates, chronological order and conventional API references.
Each check has a stable rule code so projects can disable or demote it.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import date

from .config import Config
from .models import (
    FIELD_ORDER,
    Changelog,
    Entry,
    Issue,
    Severity,
    Status,
)
from .rules import RULES

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_PLACEHOLDER = re.compile(r"^<[^<>]*>$")
_API_ITEM = re.compile(r"^`\s*([A-Za-z]+)\s+(\S+)\s*`")


def parse_date(text: str) -> date | None:
    """Parse a strict YYYY-MM-DD date, returning None for anything else."""
    text = text.strip()
    if not _ISO_DATE.match(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def make_issue(
    config: Config,
    code: str,
    message: str,
    line: int = 0,
    entry: Entry | None = None,
) -> Issue | None:
    """Build an Issue honouring the config's disable/warn lists.

    Returns None when the rule is disabled.
    """
    if code in config.disable:
        return None
    severity = RULES[code][0]
    if code in config.warn:
        severity = Severity.WARNING
    return Issue(
        code=code,
        severity=severity,
        message=message,
        line=line,
        entry=entry.title if entry is not None else None,
    )


def is_blank(value: str | None, config: Config) -> bool:
    """True for missing, empty, or placeholder-only values."""
    if value is None:
        return True
    text = value.strip()
    if not text or _PLACEHOLDER.match(text):
        return True
    return text.upper() in {p.upper() for p in config.placeholders}


def _check_status(entry: Entry) -> Iterator[tuple[str, str, int]]:
    f = entry.field("Status")
    if f is None or not f.value.strip():
        return  # reported as missing by the completeness check
    raw = f.value.strip()
    if entry.status is not None or _PLACEHOLDER.match(raw):
        return
    allowed = ", ".join(s.value for s in Status)
    for s in Status:
        if s.value.lower() == raw.lower():
            yield "BC002", f"status {raw!r} should be written {s.value!r}", f.line
            return
    yield "BC002", f"status {raw!r} is not one of: {allowed}", f.line


def _check_complete(entry: Entry, config: Config) -> Iterator[tuple[str, str, int]]:
    if not entry.title.strip() or _PLACEHOLDER.match(entry.title.strip()):
        yield "BC003", "entry heading has no title", entry.line
    for label in FIELD_ORDER:
        f = entry.field(label)
        if f is None:
            yield "BC003", f"missing field {label!r}", entry.line
        elif is_blank(f.value, config):
            yield "BC003", f"field {label!r} is empty", f.line


def _check_heading_date(entry: Entry) -> Iterator[tuple[str, str, int]]:
    if not entry.date:
        yield "BC004", "heading is not of the form 'YYYY-MM-DD — title'", entry.line
    elif parse_date(entry.date) is None:
        yield "BC004", f"heading date {entry.date!r} is not a valid YYYY-MM-DD date", entry.line


def _check_field_order(entry: Entry) -> Iterator[tuple[str, str, int]]:
    known = [f for f in entry.fields if f.label in FIELD_ORDER]
    last = -1
    for f in known:
        pos = FIELD_ORDER.index(f.label)
        if pos < last:
            yield "BC005", f"field {f.label!r} is out of template order", f.line
            return
        last = pos


def _check_effective_date(entry: Entry, config: Config) -> Iterator[tuple[str, str, int]]:
    f = entry.field("Effective Date")
    if f is None or is_blank(f.value, config):
        return
    if parse_date(f.value) is None:
        yield "BC008", f"effective date {f.value.strip()!r} is not YYYY-MM-DD", f.line


def _check_apis(entry: Entry, config: Config) -> Iterator[tuple[str, str, int]]:
    f = entry.field("Affected APIs")
    if f is None or is_blank(f.value, config):
        return
    for item in entry.api_items():
        match = _API_ITEM.match(item)
        if match is None:
            yield "BC009", f"affected API {item!r} is not a `METHOD /path` reference", f.line
            continue
        method, path = match.group(1), match.group(2)
        if method.upper() not in config.http_methods:
            yield "BC009", f"affected API {item!r} uses unknown method {method!r}", f.line
        elif not path.startswith("/"):
            yield "BC009", f"affected API {item!r} path does not start with '/'", f.line


def _check_labels(entry: Entry) -> Iterator[tuple[str, str, int]]:
    seen: set[str] = set()
    for f in entry.fields:
        if f.label not in FIELD_ORDER:
            yield "BC010", f"unknown field {f.label!r}", f.line
        elif f.label in seen:
            yield "BC010", f"field {f.label!r} appears more than once", f.line
        seen.add(f.label)


def _check_stale_status(entry: Entry, today: date) -> Iterator[tuple[str, str, int]]:
    status = entry.status
    effective = parse_date(entry.get("Effective Date") or "")
    if status is None or effective is None:
        return
    line = entry.field("Status").line  # type: ignore[union-attr]
    if status in (Status.PLANNED, Status.ANNOUNCED) and effective < today:
        yield (
            "BC011",
            f"status is {status.value} but the change took effect on {effective}",
            line,
        )
    elif status in (Status.ACTIVE, Status.COMPLETED) and effective > today:
        yield (
            "BC011",
            f"status is {status.value} but the change takes effect on {effective}",
            line,
        )


def check_entry(entry: Entry, config: Config, today: date) -> list[Issue]:
    """Run every per-entry check on a single entry."""
    found = [
        *_check_status(entry),
        *_check_complete(entry, config),
        *_check_heading_date(entry),
        *_check_field_order(entry),
        *_check_effective_date(entry, config),
        *_check_apis(entry, config),
        *_check_labels(entry),
        *_check_stale_status(entry, today),
    ]
    issues = [make_issue(config, code, msg, line, entry) for code, msg, line in found]
    return [i for i in issues if i is not None]


def check_order(changelog: Changelog, config: Config) -> list[Issue]:
    """Check date ordering and duplicates across entries.

    Entries whose heading date does not parse are skipped for ordering.
    """
    issues: list[Issue | None] = []
    seen: dict[tuple[str, str], int] = {}
    for entry in changelog.entries:
        if entry.key in seen:
            issues.append(
                make_issue(
                    config,
                    "BC007",
                    f"duplicate of the entry at line {seen[entry.key]}",
                    entry.line,
                    entry,
                )
            )
        else:
            seen[entry.key] = entry.line

    if config.order != "none":
        ascending = config.order == "ascending"
        # Latest (ascending) or earliest (descending) dated entry seen so far
        extreme: tuple[date, Entry] | None = None
        for entry in changelog.entries:
            current = parse_date(entry.date)
            if current is None:
                continue
            if extreme is not None:
                bound, bound_entry = extreme
                if current < bound if ascending else current > bound:
                    issues.append(
                        make_issue(
                            config,
                            "BC006",
                            f"dated {current} but follows {bound_entry.title!r} "
                            f"dated {bound} ({config.order} order expected)",
                            entry.line,
                            entry,
                        )
                    )
                    continue
            extreme = (current, entry)
    return [i for i in issues if i is not None]


def lint_changelog(
    changelog: Changelog, config: Config, today: date | None = None
) -> list[Issue]:
    """Lint a parsed changelog.

    Args:
        changelog: Parsed document.
        config: Project configuration (rule selection, accepted values).
        today: Reference date for the stale-status check. Defaults to the
               current date.

    Returns:
        All issues, sorted by line number.
    """
    today = today or date.today()
    if not changelog.has_entries_section:
        issue = make_issue(config, "BC001", "no '## Entries' section found", 0)
        return [issue] if issue else []

    issues: list[Issue] = []
    for entry in changelog.entries:
        issues.extend(check_entry(entry, config, today))
    issues.extend(check_order(changelog, config))
    return sorted(issues, key=lambda i: i.line)


def has_errors(issues: list[Issue], strict: bool = False) -> bool:
    """Whether the issues should fail the run (warnings too when strict)."""
    if strict:
        return bool(issues)
    return any(i.severity is Severity.ERROR for i in issues)
