"""Priority / urgency derivation: category base level plus age escalation."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Mapping

from urbancare.errors import ValidationError


class Urgency(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


LADDER = [Urgency.low, Urgency.medium, Urgency.high, Urgency.critical]

DEFAULT_CATEGORY_BASE: dict[str, Urgency] = {
    "Safety": Urgency.critical,
    "Water": Urgency.high,
    "Electricity": Urgency.high,
    "Infrastructure": Urgency.medium,
    "Transportation": Urgency.medium,
    "Trash": Urgency.low,
    "Other": Urgency.low,
}

DEFAULT_PERIOD_DAYS = 7


def parse_urgency(value: str | Urgency | None) -> Urgency | None:
    if value is None or isinstance(value, Urgency):
        return value
    try:
        return Urgency(value.strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid urgency: {value!r}") from None


def base_urgency(category: str | None, table: Mapping[str, str | Urgency] | None = None) -> Urgency:
    table = DEFAULT_CATEGORY_BASE if table is None else table
    level = table.get(category or "")
    return Urgency(level) if level else Urgency.medium


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def escalation_steps(created_at: datetime, now: datetime, period_days: int = DEFAULT_PERIOD_DAYS) -> int:
    """Number of full ``period_days`` windows elapsed since ``created_at``."""
    if period_days <= 0:
        return 0
    age = _aware(now) - _aware(created_at)
    if age.total_seconds() <= 0:
        return 0
    return int(age.days // period_days)


def escalate(level: Urgency, steps: int) -> Urgency:
    idx = min(LADDER.index(level) + max(steps, 0), len(LADDER) - 1)
    return LADDER[idx]


def derive_priority(
    category: str | None,
    created_at: datetime,
    explicit_urgency: str | Urgency | None = None,
    *,
    now: datetime,
    frozen_at: datetime | None = None,
    escalate_with_age: bool = True,
    period_days: int = DEFAULT_PERIOD_DAYS,
    category_base: Mapping[str, str | Urgency] | None = None,
) -> Urgency:
    """Derive an issue's urgency.

    An explicit urgency set by an authority wins. Otherwise the category's
    base level is raised one rung per full ``period_days`` the issue has been
    open, capped at critical. ``frozen_at`` (the closing time of a resolved or
    closed issue) replaces ``now`` so closed issues stop escalating.
    """
    explicit = parse_urgency(explicit_urgency)
    if explicit is not None:
        return explicit

    level = base_urgency(category, category_base)
    if not escalate_with_age:
        return level

    until = frozen_at if frozen_at is not None else now
    return escalate(level, escalation_steps(created_at, until, period_days))
