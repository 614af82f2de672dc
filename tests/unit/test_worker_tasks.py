from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from urbancare.lifecycle.priority import Urgency
from urbancare.lifecycle.status import IssueStatus
from urbancare.lifecycle.worker_tasks import (
    estimated_duration, project_task, scheduled_date, sort_tasks,
)

ASSIGNED = datetime(2026, 5, 4, 8, 0, tzinfo=timezone.utc)


def _issue(status="assigned", category="Water", assigned_at=ASSIGNED, **kw):
    fields = dict(
        id="issue-1", status=status, category=category, assigned_to="worker-1",
        title="Leak", description="Water main leak", location="5th Cross",
        created_at=ASSIGNED - timedelta(days=2), assigned_at=assigned_at, completed_at=None,
        image="before.jpg", after_image=None, worker_notes=None, latitude=12.9, longitude=77.6,
    )
    fields.update(kw)
    return SimpleNamespace(**fields)


def test_duration_table():
    assert estimated_duration("Trash") == timedelta(hours=1)
    assert estimated_duration("Infrastructure") == timedelta(hours=4)
    assert estimated_duration("Unknown", default_hours=5) == timedelta(hours=5)


def test_schedule_follows_sla():
    assert scheduled_date(ASSIGNED, Urgency.critical) == ASSIGNED
    assert scheduled_date(ASSIGNED, Urgency.high) == ASSIGNED + timedelta(days=1)
    assert scheduled_date(ASSIGNED, Urgency.medium) == ASSIGNED + timedelta(days=3)
    assert scheduled_date(ASSIGNED, Urgency.low) == ASSIGNED + timedelta(days=7)


def test_projection_maps_issue_fields():
    task = project_task(_issue(), Urgency.high)
    assert task.issue_id == "issue-1"
    assert task.status == "pending"
    assert task.issue_status is IssueStatus.assigned
    assert task.estimated_hours == 3
    assert task.scheduled_date == ASSIGNED + timedelta(days=1)
    assert task.before_image == "before.jpg"
    assert task.worker_notes == ""


def test_task_status_mapping():
    expected = {
        "assigned": "pending",
        "in-progress": "in_progress",
        "completed_by_worker": "completed",
        "resolved": "completed",
        "closed": "cancelled",
    }
    for issue_status, task_status in expected.items():
        assert project_task(_issue(status=issue_status), Urgency.low).status == task_status


def test_unassigned_time_falls_back_to_created_at():
    issue = _issue(assigned_at=None)
    task = project_task(issue, Urgency.critical)
    assert task.scheduled_date == issue.created_at


def test_naive_start_is_utc():
    naive = ASSIGNED.replace(tzinfo=None)
    assert scheduled_date(naive, Urgency.high).tzinfo is timezone.utc


def test_sort_by_priority_then_schedule():
    low = project_task(_issue(id="a"), Urgency.low)
    high_late = project_task(_issue(id="b", assigned_at=ASSIGNED + timedelta(days=2)), Urgency.high)
    high_early = project_task(_issue(id="c"), Urgency.high)
    critical = project_task(_issue(id="d"), Urgency.critical)
    ordered = sort_tasks([low, high_late, critical, high_early])
    assert [t.issue_id for t in ordered] == ["d", "c", "b", "a"]
