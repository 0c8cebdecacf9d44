"""Pull request guard: compare the changelog against a base revision.

The changelog is append-only. Within a change set:
1. Entries present where the branch forked from base must still be there
2. Their fields should not be rewritten (amend through Notes or a new entry);
   moving Status forward is the one expected edit
3. New entries go after every existing one (before, for descending order)
4. If watched API files changed, the changelog must change too
"""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path

from .config import Config
from .lint import make_issue
from .models import Changelog, Entry, Issue, Status
from .parser import parse_changelog
from .shell import git, merge_base, repo_root, step


def changed_files(rev: str) -> list[str]:
    """List files changed between `rev` and HEAD, relative to the repo root."""
    output = git("diff", "--name-only", rev, "HEAD")
    return [line for line in output.splitlines() if line]


def entries_at(rev: str, path: str) -> Changelog:
    """Parse the changelog as it was at `rev`.

    A file that did not exist at that revision reads as empty.
    """
    return parse_changelog(git("show", f"{rev}:{path}", check=False))


def _moved_forward(old: Entry, new: Entry) -> bool:
    """Whether Status advanced (or stayed) along Planned → ... → Completed."""
    order = list(Status)
    if old.status is None or new.status is None:
        return False
    return order.index(new.status) >= order.index(old.status)


def _misplaced(new: Changelog, old_keys: set[tuple[str, str]], order: str) -> list[Entry]:
    positions = [i for i, e in enumerate(new.entries) if e.key in old_keys]
    if not positions:
        return []
    if order == "descending":
        first_old = min(positions)
        return [e for i, e in enumerate(new.entries) if e.key not in old_keys and i > first_old]
    last_old = max(positions)
    return [e for i, e in enumerate(new.entries) if e.key not in old_keys and i < last_old]


def compare_entries(old: Changelog, new: Changelog, config: Config) -> list[Issue]:
    """Report removed, rewritten, and out-of-place entries.

    Entries are matched by (date, title). Field values are compared after
    whitespace normalization, so re-wrapping a paragraph is not a rewrite.
    New entries belong at the end of the section, or at the top when the
    configured order is descending.
    """
    issues: list[Issue | None] = []
    new_by_key = {e.key: e for e in new.entries}
    old_keys = {e.key for e in old.entries}

    for entry in old.entries:
        current = new_by_key.get(entry.key)
        if current is None:
            issues.append(
                make_issue(
                    config,
                    "BC012",
                    f"entry '{entry.date} — {entry.title}' was removed",
                    new.entries_line,
                    entry,
                )
            )
            continue
        before = {f.label: " ".join(f.value.split()) for f in entry.fields}
        after = {f.label: " ".join(f.value.split()) for f in current.fields}
        for label in sorted(set(before) | set(after)):
            if label == "Status" and _moved_forward(entry, current):
                continue
            if before.get(label) != after.get(label):
                f = current.field(label)
                issues.append(
                    make_issue(
                        config,
                        "BC013",
                        f"field {label!r} of an existing entry was rewritten",
                        f.line if f else current.line,
                        current,
                    )
                )

    if config.order == "descending":
        hint = "new entry is inserted after existing entries; add it at the top"
    else:
        hint = "new entry is inserted before existing entries; append it at the end"
    for entry in _misplaced(new, old_keys, config.order):
        issues.append(make_issue(config, "BC014", hint, entry.line, entry))
    return [i for i in issues if i is not None]


def guard(
    base: str, config: Config, path: str | None = None, verbose: bool = True
) -> list[Issue]:
    """Run the pull request guard against `base`.

    Both the changed-file list and the baseline changelog come from the
    merge base of `base` and HEAD, so entries added to `base` after the
    branch forked are not reported as removed.

    Args:
        base: Git revision to compare against (e.g., "origin/main").
        config: Project configuration; `watch` lists the API globs.
        path: Changelog path relative to the repo root, overriding config.path.
        verbose: Print progress to stdout.

    Returns:
        Issues sorted by line.
    """
    path = Path(path or config.path).as_posix()
    fork = merge_base(base)
    if verbose:
        step(f"Checking {path} against {base} (merge base {fork[:12]})")

    files = changed_files(fork)
    watched = sorted(f for f in files if any(fnmatch(f, pat) for pat in config.watch))
    if verbose:
        for f in watched:
            print(f"  watched file changed: {f}")

    issues: list[Issue | None] = []
    if watched and path not in files:
        issues.append(
            make_issue(
                config,
                "BC015",
                f"{len(watched)} watched file(s) changed but {path} was not updated",
            )
        )

    if path in files:
        changelog_file = repo_root() / path
        # Deleted in this change set: every base entry counts as removed
        text = changelog_file.read_text(encoding="utf-8") if changelog_file.exists() else ""
        current = parse_changelog(text)
        issues.extend(compare_entries(entries_at(fork, path), current, config))
    elif verbose:
        print(f"  {path} unchanged")

    return sorted((i for i in issues if i is not None), key=lambda i: i.line)
