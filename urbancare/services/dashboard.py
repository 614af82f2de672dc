"""Dashboard rollups for authorities and workers, and public success stories."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.db import crud
from urbancare.lifecycle.priority import Urgency
from urbancare.lifecycle.status import IssueStatus, TERMINAL
from urbancare.models import Issue
from urbancare.models.base import utcnow
from urbancare.services.issues import derive_urgency, list_worker_tasks
from urbancare.services.store import store_operation


def _as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@store_operation
async def authority_stats(db: AsyncSession, user_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    counts = await crud.count_issues_by_status(db)
    open_statuses = [s for s in IssueStatus if s not in TERMINAL]
    open_issues, _ = await crud.query_issues(db, statuses=open_statuses)
    assigned_by_me = await crud.count_issues_assigned_by(db, user_id, statuses=open_statuses)

    return {
        "total_issues": sum(counts.values()),
        "pending_issues": counts[IssueStatus.reported],
        "assigned_issues": counts[IssueStatus.assigned],
        "in_progress_issues": counts[IssueStatus.in_progress],
        "awaiting_review": counts[IssueStatus.completed_by_worker],
        "resolved_issues": counts[IssueStatus.resolved],
        "closed_issues": counts[IssueStatus.closed],
        "assigned_by_me": assigned_by_me,
        "critical_issues": sum(1 for i in open_issues if derive_urgency(i, now) == Urgency.critical),
        "by_status": {s.value: n for s, n in counts.items()},
    }


@store_operation
async def worker_stats(db: AsyncSession, worker_id: str, now: datetime | None = None) -> dict:
    now = now or utcnow()
    tasks = await list_worker_tasks(db, worker_id, now=now)
    today = now.astimezone(timezone.utc).date()
    return {
        "pending_tasks": sum(1 for t in tasks if t.status == "pending"),
        "in_progress_tasks": sum(1 for t in tasks if t.status == "in_progress"),
        "completed_tasks": sum(1 for t in tasks if t.status == "completed"),
        "today_tasks": sum(
            1 for t in tasks
            if t.assigned_at is not None and _as_utc(t.assigned_at).date() == today
        ),
        "overdue_tasks": sum(
            1 for t in tasks if t.status in ("pending", "in_progress") and t.scheduled_date < now
        ),
    }


@store_operation
async def success_stories(db: AsyncSession, limit: int = 3) -> list[Issue]:
    """Resolved issues with a before/after photo pair, most recently resolved first."""
    return await crud.list_success_stories(db, limit=limit)
