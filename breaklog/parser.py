"""Markdown changelog parser.

Reads the `## Entries` section of a breaking-change changelog into Entry
models. Parsing is total: malformed headings or fields never raise, they just
produce entries the linter will complain about.
"""

from __future__ import annotations

import re

from .models import Changelog, Entry, FieldValue, canonical_label

ENTRIES_HEADING = re.compile(r"^##\s+Entries\s*#*\s*$", re.IGNORECASE)
_H2 = re.compile(r"^##\s+\S")
_H3 = re.compile(r"^###\s+(.*?)\s*#*\s*$")
# Em dash, en dash, or a spaced hyphen between date and title
_HEADING_SEP = re.compile(r"\s+[—–-]\s+")
# "**Label:** value", "**Label**: value", optionally as a list item
_FIELD = re.compile(
    r"^\s*(?:[-*+]\s+)?\*\*(?P<label>[^*]+?)(?::\*\*|\*\*\s*:)\s*(?P<rest>.*)$"
)


def split_heading(text: str) -> tuple[str, str]:
    """Split "2024-05-01 — Remove v1 users" into (date, title).

    Without a separator the date is empty and the whole text is the title.
    """
    parts = _HEADING_SEP.split(text.strip(), maxsplit=1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return "", text.strip()


def _finish_field(entry: Entry, label: str, line_no: int, lines: list[str]) -> None:
    value = "\n".join(lines).strip()
    entry.fields.append(FieldValue(label=label, value=value, line=line_no))


def _parse_entry_body(entry: Entry, body: list[tuple[int, str]]) -> None:
    label: str | None = None
    label_line = 0
    buf: list[str] = []
    for line_no, line in body:
        match = _FIELD.match(line)
        if match:
            if label is not None:
                _finish_field(entry, label, label_line, buf)
            raw = match.group("label").strip()
            label = canonical_label(raw) or raw
            label_line = line_no
            buf = [match.group("rest")]
        elif label is not None:
            buf.append(line)
        # Prose before the first label is not part of any field
    if label is not None:
        _finish_field(entry, label, label_line, buf)


def _find_entries_heading(lines: list[str]) -> int | None:
    """Index of the `## Entries` heading, skipping fenced code blocks."""
    in_fence = False
    for idx, line in enumerate(lines):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        elif not in_fence and ENTRIES_HEADING.match(line):
            return idx
    return None


def parse_changelog(text: str) -> Changelog:
    """Parse a changelog document.

    Args:
        text: Full Markdown text of the changelog.

    Returns:
        Changelog with the preamble and every entry found in the Entries
        section, in document order.
    """
    lines = text.splitlines()
    start = _find_entries_heading(lines)
    if start is None:
        return Changelog(preamble=text)

    changelog = Changelog(
        preamble="\n".join(lines[:start]),
        has_entries_section=True,
        entries_line=start + 1,
    )

    current: Entry | None = None
    body: list[tuple[int, str]] = []
    in_fence = False
    for idx in range(start + 1, len(lines)):
        line = lines[idx]
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        if not in_fence:
            if _H2.match(line):
                break
            heading = _H3.match(line)
            if heading:
                if current is not None:
                    _parse_entry_body(current, body)
                    changelog.entries.append(current)
                date, title = split_heading(heading.group(1))
                current = Entry(date=date, title=title, line=idx + 1)
                body = []
                continue
        if current is not None:
            body.append((idx + 1, line))

    if current is not None:
        _parse_entry_body(current, body)
        changelog.entries.append(current)
    return changelog


def entries_section_bounds(text: str) -> tuple[int, int] | None:
    """Return (start, end) line indexes of the Entries section body.

    start is the index just after the `## Entries` heading; end is the index
    of the next level-2 heading or len(lines). None if there is no section.
    """
    lines = text.splitlines()
    start = _find_entries_heading(lines)
    if start is None:
        return None
    in_fence = False
    for idx in range(start + 1, len(lines)):
        line = lines[idx]
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        elif not in_fence and _H2.match(line):
            return start + 1, idx
    return start + 1, len(lines)
