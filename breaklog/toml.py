"""TOML reading utilities.

Uses tomlkit so the same parser handles pyproject.toml everywhere, and the
document can be written back without losing formatting if ever needed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns an empty document when the file does not exist.

    Raises:
        tomlkit.exceptions.ParseError: If the file is not valid TOML.
    """
    if not path.exists():
        return tomlkit.document()
    return tomlkit.parse(path.read_text())


def get_tool_table(doc: tomlkit.TOMLDocument, tool: str) -> dict[str, Any]:
    """Extract [tool.<tool>] as plain Python values, or {} when absent."""
    table = doc.get("tool", {}).get(tool, {})
    # unwrap() strips tomlkit's item wrappers so pydantic sees builtins
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
