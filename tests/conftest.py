"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from breaklog.config import Config

# A clean changelog as of TODAY: every entry complete and in order.
VALID_CHANGELOG = """\
# Backend API Breaking Changes

Intro.

## Entries

### 2024-01-15 — Remove legacy user listing

- **Status:** Completed
- **Owner:** Identity team
- **Effective Date:** 2024-03-01
- **PR/Issue:** https://example.com/pr/101
- **Affected APIs:**
  - `GET /v1/users`
  - `GET /v1/users/{id}`
- **Breaking Change:** The v1 user endpoints are removed.
- **Impact:** Clients still calling v1 receive 404.
- **Migration Steps:**
  1. Switch to `GET /v2/users`.
  2. Update pagination handling.
- **Rollback Plan:** Re-enable the v1 router behind the legacy flag.
- **Notes:** Announced in the January newsletter.

### 2024-05-20 — Require auth on order webhooks

- **Status:** Announced
- **Owner:** Payments
- **Effective Date:** 2024-07-01
- **PR/Issue:** #482
- **Affected APIs:** `POST /v2/orders/webhook`, `PATCH /v2/orders/{id}`
- **Breaking Change:** Webhook calls must carry a signed token.
- **Impact:** Unsigned calls are rejected with 401.
- **Migration Steps:**
  1. Fetch a signing secret from the dashboard.
- **Rollback Plan:** Disable enforcement with the `ORDERS_WEBHOOK_AUTH` flag.
- **Notes:** None.

## Appendix

Unrelated text.
"""

TODAY = date(2024, 6, 1)


def make_entry(heading: str = "2024-06-01 — Something", **overrides: str | None) -> str:
    """Render one entry in template form, dropping fields set to None."""
    values = {
        "Status": "Planned",
        "Owner": "Platform",
        "Effective Date": "2024-09-01",
        "PR/Issue": "#1",
        "Affected APIs": "`DELETE /v1/things/{id}`",
        "Breaking Change": "Things can no longer be deleted.",
        "Impact": "Cleanup jobs fail.",
        "Migration Steps": "1. Archive instead.",
        "Rollback Plan": "Restore the handler.",
        "Notes": "None.",
    }
    for key, value in overrides.items():
        values[key.replace("_", " ")] = value
    lines = [f"### {heading}", ""]
    lines += [f"- **{label}:** {value}" for label, value in values.items() if value is not None]
    return "\n".join(lines) + "\n"


def make_changelog(*entries: str) -> str:
    return "# Changes\n\n## Entries\n\n" + "\n".join(entries)


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def changelog_text() -> str:
    return VALID_CHANGELOG


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with a pyproject.toml and a valid changelog, as cwd."""
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "backend"\nversion = "1.0.0"\n\n'
        "[tool.breaklog]\n"
        'watch = ["api/**", "openapi.yaml"]\n'
    )
    (tmp_path / "BREAKING_CHANGES.md").write_text(VALID_CHANGELOG)
    monkeypatch.chdir(tmp_path)
    return tmp_path
