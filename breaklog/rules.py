"""Rule codes reported by lint and guard, with their default severity."""

from __future__ import annotations

from .models import Severity

# Rule code → (default severity, one-line summary)
RULES: dict[str, tuple[Severity, str]] = {
    "BC001": (Severity.ERROR, "document has an Entries section"),
    "BC002": (Severity.ERROR, "status is a known value"),
    "BC003": (Severity.ERROR, "all template fields present and filled in"),
    "BC004": (Severity.ERROR, "heading date is YYYY-MM-DD"),
    "BC005": (Severity.WARNING, "fields in template order"),
    "BC006": (Severity.ERROR, "entries in date order"),
    "BC007": (Severity.ERROR, "no duplicate entries"),
    "BC008": (Severity.WARNING, "effective date is YYYY-MM-DD"),
    "BC009": (Severity.WARNING, "affected APIs are `METHOD /path`"),
    "BC010": (Severity.WARNING, "no unknown or repeated fields"),
    "BC011": (Severity.WARNING, "status agrees with effective date"),
    "BC012": (Severity.ERROR, "existing entries are not removed"),
    "BC013": (Severity.WARNING, "existing entries are not rewritten"),
    "BC014": (Severity.ERROR, "new entries are added in date order position"),
    "BC015": (Severity.ERROR, "API changes come with a changelog update"),
}
