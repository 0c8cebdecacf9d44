"""Data models for breaklog.

These Pydantic models represent a parsed breaking-change changelog and the
issues reported against it. Field values are kept as the raw strings the
author wrote; nothing here validates them (that is the linter's job).
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field

# Canonical template order of the bold-labelled fields under each entry heading.
FIELD_ORDER: tuple[str, ...] = (
    "Status",
    "Owner",
    "Effective Date",
    "PR/Issue",
    "Affected APIs",
    "Breaking Change",
    "Impact",
    "Migration Steps",
    "Rollback Plan",
    "Notes",
)

_API_SPAN = re.compile(r"`\s*([A-Za-z]+)\s+(\S+?)\s*`")
_LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*)$")


def canonical_label(label: str) -> str | None:
    """Map a label as written ("effective  date") to its canonical name.

    Returns None for labels that are not part of the template.
    """
    key = " ".join(label.split()).lower()
    for name in FIELD_ORDER:
        if name.lower() == key:
            return name
    return None


def split_items(value: str, sep: str | None = None) -> list[str]:
    """Split a free-text list value into items.

    List markup (bullets or numbers) wins, with continuation lines joined onto
    their item. Otherwise every line is an item, further split on sep if given.
    """
    lines = [line for line in value.splitlines() if line.strip()]
    if any(_LIST_ITEM.match(line) for line in lines):
        items: list[str] = []
        for line in lines:
            match = _LIST_ITEM.match(line)
            if match:
                items.append(match.group(1).strip())
            elif items:
                items[-1] = f"{items[-1]} {line.strip()}"
            else:
                items.append(line.strip())
        return items
    if sep is None:
        return [line.strip() for line in lines]
    return [
        part.strip() for line in lines for part in _split_outside_code(line, sep) if part.strip()
    ]


def _split_outside_code(line: str, sep: str) -> list[str]:
    """Split on sep, except inside `code spans` ("`GET /x?a=1,2`" stays whole)."""
    parts = [""]
    in_code = False
    for ch in line:
        if ch == "`":
            in_code = not in_code
        if ch == sep and not in_code:
            parts.append("")
        else:
            parts[-1] += ch
    return parts


class Status(str, Enum):
    """Lifecycle states an entry moves through, in order."""

    PLANNED = "Planned"
    ANNOUNCED = "Announced"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ApiRef(BaseModel):
    """One `<METHOD> <path>` pair from an entry's Affected APIs."""

    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


class FieldValue(BaseModel):
    """A bold-labelled field as it appears in the document.

    Attributes:
        label: Canonical label when the label is part of the template,
               otherwise the label exactly as written.
        value: Field text with surrounding blank lines removed. May span
               several lines (lists).
        line: 1-based line number of the label.
    """

    label: str
    value: str = ""
    line: int = 0


class Entry(BaseModel):
    """A single breaking-change record.

    Attributes:
        date: Date text from the heading (normally YYYY-MM-DD, not checked).
        title: Title text from the heading.
        line: 1-based line number of the heading.
        fields: Fields in document order, including unknown and repeated ones.
    """

    date: str
    title: str
    line: int = 0
    fields: list[FieldValue] = Field(default_factory=list)

    def get(self, label: str) -> str | None:
        """Return the value of the first field with this label, or None."""
        name = canonical_label(label) or label
        for f in self.fields:
            if f.label == name:
                return f.value
        return None

    def field(self, label: str) -> FieldValue | None:
        name = canonical_label(label) or label
        return next((f for f in self.fields if f.label == name), None)

    @property
    def key(self) -> tuple[str, str]:
        return (self.date, self.title)

    @property
    def status(self) -> Status | None:
        """Parsed Status, or None when absent or not one of the known values."""
        raw = (self.get("Status") or "").strip()
        try:
            return Status(raw)
        except ValueError:
            return None

    def api_items(self) -> list[str]:
        return split_items(self.get("Affected APIs") or "", sep=",")

    def affected_apis(self) -> list[ApiRef]:
        """Extract every backticked `<METHOD> <path>` span from Affected APIs."""
        return [
            ApiRef(method=m.group(1).upper(), path=m.group(2))
            for m in _API_SPAN.finditer(self.get("Affected APIs") or "")
        ]

    def migration_steps(self) -> list[str]:
        return split_items(self.get("Migration Steps") or "")


class Changelog(BaseModel):
    """A parsed changelog document.

    Attributes:
        preamble: Text before the Entries section (or the whole document
                  when there is none).
        has_entries_section: Whether a `## Entries` heading was found.
        entries_line: 1-based line of the `## Entries` heading (0 if absent).
        entries: Entries in document order.
    """

    preamble: str = ""
    has_entries_section: bool = False
    entries_line: int = 0
    entries: list[Entry] = Field(default_factory=list)


class Issue(BaseModel):
    """A single lint or guard finding."""

    code: str
    severity: Severity
    message: str
    line: int = 0
    entry: str | None = None

    def format(self, path: str) -> str:
        where = f"{path}:{self.line}" if self.line else path
        return f"{where}: {self.code} [{self.severity.value}] {self.message}"
