"""Git queries for the pull request guard, plus output helpers.

Every git call runs from the current directory and returns text; a failing
call is fatal and reports git's own error message.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout without trailing whitespace.

    Args:
        *args: Arguments to pass to git (e.g., "diff", "--name-only").
        check: If True (default), exit with git's stderr on failure. Set to
               False for lookups that may legitimately fail, such as showing
               a file that does not exist at a revision; their output is "".
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True)
    if result.returncode != 0:
        if check:
            fatal(f"git {' '.join(args)} failed: {result.stderr.strip()}")
        return ""
    return result.stdout.rstrip()


def repo_root() -> Path:
    """Top-level directory of the working tree; git prints paths relative to it."""
    return Path(git("rev-parse", "--show-toplevel"))


def merge_base(base: str) -> str:
    """Commit where HEAD forked from `base`.

    Comparing against the fork point instead of the tip of `base` keeps
    changes that landed on `base` later out of the picture.
    """
    return git("merge-base", base, "HEAD")


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
