"""Issue status enum and the legacy-spelling normalization boundary."""

from __future__ import annotations

from enum import Enum

from urbancare.errors import ValidationError


class IssueStatus(str, Enum):
    reported = "reported"
    assigned = "assigned"
    in_progress = "in_progress"
    completed_by_worker = "completed_by_worker"
    resolved = "resolved"
    closed = "closed"


TERMINAL = frozenset({IssueStatus.resolved, IssueStatus.closed})

# Position along the forward path; closed sits past resolved.
RANK = {
    IssueStatus.reported: 0,
    IssueStatus.assigned: 1,
    IssueStatus.in_progress: 2,
    IssueStatus.completed_by_worker: 3,
    IssueStatus.resolved: 4,
    IssueStatus.closed: 5,
}

# Spellings found in older records and clients.
_ALIASES = {
    "in-progress": IssueStatus.in_progress,
    "inprogress": IssueStatus.in_progress,
    "completed": IssueStatus.completed_by_worker,
    "pending_review": IssueStatus.completed_by_worker,
    "pending-review": IssueStatus.completed_by_worker,
    "solved": IssueStatus.resolved,
    "pending": IssueStatus.reported,
    "open": IssueStatus.reported,
}


def normalize_status(value: str | IssueStatus) -> IssueStatus:
    """Map any known spelling to the canonical status. Unknown values are rejected."""
    if isinstance(value, IssueStatus):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid status: {value!r}", requested=str(value))
    key = value.strip().lower().replace(" ", "_")
    try:
        return IssueStatus(key)
    except ValueError:
        pass
    if key in _ALIASES:
        return _ALIASES[key]
    if key.replace("_", "-") in _ALIASES:
        return _ALIASES[key.replace("_", "-")]
    raise ValidationError(f"Invalid status: {value!r}", requested=value)


def is_terminal(status: IssueStatus) -> bool:
    return status in TERMINAL


def at_least(status: IssueStatus, floor: IssueStatus) -> bool:
    """True when ``status`` has reached ``floor`` along the lifecycle."""
    return RANK[status] >= RANK[floor]


def spellings(status: IssueStatus) -> list[str]:
    """Every stored spelling that normalizes to ``status``."""
    return [status.value] + [alias for alias, s in _ALIASES.items() if s == status]
