"""WorkerTask: a read projection of an assigned Issue, recomputed on every read."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping

from urbancare.lifecycle.priority import LADDER, Urgency
from urbancare.lifecycle.status import IssueStatus, normalize_status

DEFAULT_DURATIONS_HOURS: dict[str, float] = {
    "Trash": 1,
    "Water": 3,
    "Infrastructure": 4,
    "Electricity": 2,
    "Drainage": 3,
    "Transportation": 4,
    "Health": 2,
    "Safety": 2,
    "Other": 2,
}

DEFAULT_SLA_DAYS: dict[str, int] = {"critical": 0, "high": 1, "medium": 3, "low": 7}

_TASK_STATUS = {
    IssueStatus.reported: "pending",
    IssueStatus.assigned: "pending",
    IssueStatus.in_progress: "in_progress",
    IssueStatus.completed_by_worker: "completed",
    IssueStatus.resolved: "completed",
    IssueStatus.closed: "cancelled",
}


@dataclass
class WorkerTask:
    issue_id: str
    worker_id: str | None
    title: str
    description: str
    location: str
    category: str
    priority: Urgency
    status: str
    issue_status: IssueStatus
    assigned_at: datetime | None
    completed_at: datetime | None
    estimated_duration: timedelta
    scheduled_date: datetime
    before_image: str | None = None
    after_image: str | None = None
    worker_notes: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @property
    def estimated_hours(self) -> float:
        return self.estimated_duration.total_seconds() / 3600


def estimated_duration(
    category: str | None,
    durations_hours: Mapping[str, float] | None = None,
    default_hours: float = 2,
) -> timedelta:
    table = DEFAULT_DURATIONS_HOURS if durations_hours is None else durations_hours
    return timedelta(hours=table.get(category or "", default_hours))


def scheduled_date(
    start: datetime,
    priority: Urgency,
    sla_days: Mapping[str, int] | None = None,
) -> datetime:
    table = DEFAULT_SLA_DAYS if sla_days is None else sla_days
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return start + timedelta(days=table.get(priority.value, 3))


def project_task(
    issue,
    priority: Urgency,
    *,
    durations_hours: Mapping[str, float] | None = None,
    default_hours: float = 2,
    sla_days: Mapping[str, int] | None = None,
) -> WorkerTask:
    status = normalize_status(issue.status)
    start = issue.assigned_at or issue.created_at
    return WorkerTask(
        issue_id=issue.id,
        worker_id=issue.assigned_to,
        title=issue.title,
        description=issue.description,
        location=issue.location,
        category=issue.category,
        priority=priority,
        status=_TASK_STATUS[status],
        issue_status=status,
        assigned_at=issue.assigned_at,
        completed_at=issue.completed_at,
        estimated_duration=estimated_duration(issue.category, durations_hours, default_hours),
        scheduled_date=scheduled_date(start, priority, sla_days),
        before_image=issue.image,
        after_image=issue.after_image,
        worker_notes=issue.worker_notes or "",
        latitude=issue.latitude,
        longitude=issue.longitude,
    )


def sort_tasks(tasks: list[WorkerTask]) -> list[WorkerTask]:
    """Most urgent first, then earliest scheduled."""
    return sorted(tasks, key=lambda t: (-LADDER.index(t.priority), t.scheduled_date))
