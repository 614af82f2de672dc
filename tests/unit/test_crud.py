from sqlalchemy import text

from urbancare.db import crud
from urbancare.lifecycle.status import IssueStatus


async def _issue(db, created_by, **kw):
    fields = dict(
        title="Pothole", description="Deep pothole", category="Infrastructure",
        location="MG Road", created_by=created_by,
    )
    fields.update(kw)
    return await crud.insert_issue(db, **fields)


async def test_insert_and_get_issue(db, people):
    issue = await _issue(db, people["citizen"].user_id)
    assert issue.id is not None
    assert issue.status is IssueStatus.reported
    assert issue.comments_count == 0

    fetched = await crud.get_issue(db, issue.id)
    assert fetched.title == "Pothole"


async def test_compare_and_set_applies_when_status_matches(db, people):
    issue = await _issue(db, people["citizen"].user_id)
    ok = await crud.compare_and_set_status(db, issue.id, IssueStatus.reported, {"status": IssueStatus.closed})
    await db.commit()
    assert ok
    await db.refresh(issue)
    assert issue.status is IssueStatus.closed


async def test_compare_and_set_misses_when_status_moved(db, people):
    issue = await _issue(db, people["citizen"].user_id, status=IssueStatus.assigned)
    ok = await crud.compare_and_set_status(db, issue.id, IssueStatus.reported, {"status": IssueStatus.closed})
    assert not ok
    await db.rollback()
    await db.refresh(issue)
    assert issue.status is IssueStatus.assigned


async def test_legacy_spelling_is_read_normalized_and_matched(db, people):
    issue = await _issue(db, people["citizen"].user_id)
    issue_id = issue.id
    await db.execute(text("UPDATE issues SET status = 'in-progress' WHERE id = :id"), {"id": issue_id})
    await db.commit()
    db.expire_all()

    fetched = await crud.get_issue(db, issue_id)
    assert fetched.status is IssueStatus.in_progress

    items, total = await crud.query_issues(db, statuses=[IssueStatus.in_progress])
    assert total == 1 and items[0].id == issue_id

    counts = await crud.count_issues_by_status(db)
    assert counts[IssueStatus.in_progress] == 1

    ok = await crud.compare_and_set_status(
        db, issue_id, IssueStatus.in_progress, {"status": IssueStatus.completed_by_worker},
    )
    await db.commit()
    assert ok
    raw = (await db.execute(text("SELECT status FROM issues WHERE id = :id"), {"id": issue_id})).scalar_one()
    assert raw == "completed_by_worker"


async def test_counters_increment_and_clamp_at_zero(db, people):
    issue = await _issue(db, people["citizen"].user_id)
    await crud.increment_counter(db, issue.id, "volunteers_count", 1)
    await crud.increment_counter(db, issue.id, "volunteers_count", 1)
    assert await crud.get_counter(db, issue.id, "volunteers_count") == 2

    for _ in range(3):
        await crud.increment_counter(db, issue.id, "volunteers_count", -1)
    assert await crud.get_counter(db, issue.id, "volunteers_count") == 0


async def test_query_filters_and_pagination(db, people):
    citizen = people["citizen"].user_id
    for i in range(5):
        await _issue(db, citizen, title=f"Issue {i}", category="Trash", location=f"Ward {i}")
    await _issue(db, citizen, category="Water", location="Lake View")

    items, total = await crud.query_issues(db, category="Trash", limit=2, offset=0)
    assert total == 5
    assert len(items) == 2

    items, total = await crud.query_issues(db, location="lake")
    assert total == 1 and items[0].category == "Water"


async def test_list_workers_filters_role_and_department(db, people):
    workers = await crud.list_workers(db)
    assert {w.id for w in workers} == {people["worker"].user_id, people["other_worker"].user_id}

    roads = await crud.list_workers(db, department="Roads")
    assert [w.id for w in roads] == [people["worker"].user_id]


async def test_remove_upvote_reports_whether_a_row_was_deleted(db, people):
    issue = await _issue(db, people["citizen"].user_id)
    user_id = people["worker"].user_id
    await crud.add_upvote(db, issue.id, user_id)
    await db.commit()

    assert await crud.remove_upvote(db, issue.id, user_id)
    assert not await crud.remove_upvote(db, issue.id, user_id)
    await db.commit()
    assert await crud.get_upvote(db, issue.id, user_id) is None


async def test_count_issues_assigned_by(db, people):
    citizen, desk = people["citizen"].user_id, people["authority"].user_id
    open_issue = await _issue(db, citizen, status=IssueStatus.assigned)
    done = await _issue(db, citizen, status=IssueStatus.resolved)
    for issue in (open_issue, done):
        await crud.add_status_change(db, issue.id, desk, "authority", IssueStatus.reported, IssueStatus.assigned)
    await db.commit()

    assert await crud.count_issues_assigned_by(db, desk) == 2
    assert await crud.count_issues_assigned_by(db, desk, statuses=[IssueStatus.assigned]) == 1
    assert await crud.count_issues_assigned_by(db, citizen) == 0
