"""Issue categories."""

from __future__ import annotations

from urbancare.errors import ValidationError

CATEGORIES = (
    "Trash",
    "Water",
    "Infrastructure",
    "Electricity",
    "Drainage",
    "Transportation",
    "Health",
    "Safety",
    "Other",
)

_BY_KEY = {c.lower(): c for c in CATEGORIES}


def normalize_category(value: str | None) -> str:
    key = (value or "").strip().lower()
    if not key:
        raise ValidationError("category is required")
    if key not in _BY_KEY:
        raise ValidationError(
            f"Unknown category {value!r}; expected one of {', '.join(CATEGORIES)}"
        )
    return _BY_KEY[key]
