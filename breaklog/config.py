"""Project configuration from [tool.breaklog] in pyproject.toml."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .rules import RULES
from .toml import get_tool_table, load_pyproject

DEFAULT_PATH = "BREAKING_CHANGES.md"
DEFAULT_HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class Config(BaseModel):
    """Settings for linting and guarding the changelog.

    Attributes:
        path: Changelog location, relative to the project root.
        order: Expected date order of entries ("none" disables the check).
        disable: Rule codes that are not reported at all.
        warn: Rule codes reported as warnings instead of errors.
        http_methods: Methods accepted in Affected APIs items.
        placeholders: Field values that count as "not filled in".
        watch: Globs of files whose change requires a changelog update.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    path: str = DEFAULT_PATH
    order: Literal["ascending", "descending", "none"] = "ascending"
    disable: list[str] = Field(default_factory=list)
    warn: list[str] = Field(default_factory=list)
    http_methods: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HTTP_METHODS), alias="http-methods"
    )
    placeholders: list[str] = Field(default_factory=lambda: ["TBD", "TODO"])
    watch: list[str] = Field(default_factory=list)

    @field_validator("disable", "warn", "http_methods")
    @classmethod
    def _upper(cls, values: list[str]) -> list[str]:
        return [v.strip().upper() for v in values]

    @field_validator("disable", "warn")
    @classmethod
    def _known_codes(cls, codes: list[str]) -> list[str]:
        unknown = [c for c in codes if c not in RULES]
        if unknown:
            raise ValueError(f"unknown rule code(s): {', '.join(unknown)}")
        return codes


def load_config(root: Path) -> Config:
    """Read [tool.breaklog] from root/pyproject.toml.

    Missing file or table means defaults.

    Raises:
        pydantic.ValidationError: If the table holds unknown keys or bad values.
    """
    doc = load_pyproject(root / "pyproject.toml")
    return Config.model_validate(get_tool_table(doc, "breaklog"))
