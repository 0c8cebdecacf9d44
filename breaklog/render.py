"""Rendering entries back to Markdown and appending them to a changelog."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path

from .models import FIELD_ORDER, Entry, FieldValue, Status, split_items
from .parser import entries_section_bounds

TEMPLATES_DIR = Path(__file__).parent / "templates"
EMPTY_MARKER = "_No entries yet._"
_PLACEHOLDER = re.compile(r"^<[^\n]*>$")
_H3 = re.compile(r"^###\s")

# Fields rendered as nested lists; the bool says whether the list is numbered
LIST_FIELDS = {"Affected APIs": False, "Migration Steps": True}

PLACEHOLDERS = {
    "Status": Status.PLANNED.value,
    "Owner": "<team or person>",
    "Effective Date": "<YYYY-MM-DD>",
    "PR/Issue": "<link>",
    "Affected APIs": "<`METHOD /path`>",
    "Breaking Change": "<what changes>",
    "Impact": "<who is affected and how>",
    "Migration Steps": "<first step>",
    "Rollback Plan": "<how to revert or stay compatible>",
    "Notes": "<anything else>",
}


def scaffold() -> str:
    """Return the bundled changelog template."""
    return (TEMPLATES_DIR / "BREAKING_CHANGES.md").read_text()


def new_entry(
    title: str,
    *,
    on: date | None = None,
    status: Status = Status.PLANNED,
    owner: str | None = None,
    effective_date: str | None = None,
    pr: str | None = None,
    apis: list[str] | None = None,
    breaking_change: str | None = None,
    impact: str | None = None,
    steps: list[str] | None = None,
    rollback: str | None = None,
    notes: str | None = None,
) -> Entry:
    """Build a new entry; anything not given becomes a <placeholder>.

    API references without backticks are wrapped ("GET /v1/x" →
    "`GET /v1/x`") to follow the Affected APIs convention.
    """
    values: dict[str, str | None] = {
        "Status": status.value,
        "Owner": owner,
        "Effective Date": effective_date,
        "PR/Issue": pr,
        "Affected APIs": "\n".join(_backtick(a) for a in apis) if apis else None,
        "Breaking Change": breaking_change,
        "Impact": impact,
        "Migration Steps": "\n".join(steps) if steps else None,
        "Rollback Plan": rollback,
        "Notes": notes,
    }
    return Entry(
        date=(on or date.today()).isoformat(),
        title=title,
        fields=[
            FieldValue(label=label, value=values[label] or PLACEHOLDERS[label])
            for label in FIELD_ORDER
        ],
    )


def _backtick(api: str) -> str:
    api = api.strip()
    return api if api.startswith("`") else f"`{api}`"


def render_entry(entry: Entry) -> str:
    """Render an entry in template form, without a trailing newline."""
    lines = [f"### {entry.date} — {entry.title}", ""]
    for f in entry.fields:
        numbered = LIST_FIELDS.get(f.label)
        if numbered is None or _PLACEHOLDER.match(f.value):
            first, *rest = f.value.splitlines() or [""]
            lines.append(f"- **{f.label}:** {first}".rstrip())
            lines.extend(f"  {line}".rstrip() for line in rest)
            continue
        lines.append(f"- **{f.label}:**")
        items = split_items(f.value, sep="," if not numbered else None)
        for n, item in enumerate(items, start=1):
            marker = f"{n}." if numbered else "-"
            lines.append(f"  {marker} {item}")
    return "\n".join(lines)


def append_entry(text: str, entry: Entry, order: str = "ascending") -> str:
    """Insert a rendered entry into the Entries section.

    The entry goes after every existing entry, or before them when `order`
    is "descending". Text between the heading and the first entry stays put.

    Raises:
        ValueError: If the document has no `## Entries` section.
    """
    bounds = entries_section_bounds(text)
    if bounds is None:
        raise ValueError("changelog has no '## Entries' section")
    start, end = bounds
    lines = text.splitlines()

    section = [line for line in lines[start:end] if line.strip() != EMPTY_MARKER]
    while section and not section[-1].strip():
        section.pop()
    while section and not section[0].strip():
        section.pop(0)

    rendered = render_entry(entry).splitlines()
    first = next((i for i, line in enumerate(section) if _H3.match(line)), None)
    if order == "descending" and first is not None:
        head, tail = section[:first], section[first:]
        while head and not head[-1].strip():
            head.pop()
        block = [""] + head + ([""] if head else []) + rendered + [""] + tail + [""]
    else:
        block = [""] + section + ([""] if section else []) + rendered + [""]
    new_lines = lines[:start] + block + lines[end:]
    return "\n".join(new_lines).rstrip("\n") + "\n"
