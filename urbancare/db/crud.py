"""CRUD operations for the record store.

Single-purpose helpers commit their own work. Helpers that are one step of a
larger write (status CAS, history rows, notes, counter bumps) only flush;
the service layer commits them together.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import String, case, delete, func, select, update, type_coerce
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.lifecycle.status import IssueStatus, spellings
from urbancare.models import (
    User, Issue, Comment, Upvote, InternalNote, StatusChange,
)


# ── User ──────────────────────────────────────────────────

async def create_user(
    db: AsyncSession, email: str, password_hash: str, role: str = "citizen",
    full_name: str = "", department: str | None = None,
    employee_id: str | None = None, phone_number: str = "",
) -> User:
    user = User(
        email=email, password_hash=password_hash, role=role, full_name=full_name,
        department=department, employee_id=employee_id, phone_number=phone_number,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def list_workers(
    db: AsyncSession, department: str | None = None, active_only: bool = True,
) -> list[User]:
    q = select(User).where(User.role == "worker")
    if department:
        q = q.where(User.department == department)
    if active_only:
        q = q.where(User.is_active == True)
    result = await db.execute(q.order_by(User.full_name))
    return list(result.scalars().all())


async def update_user(db: AsyncSession, user: User, **kwargs) -> User:
    for k, v in kwargs.items():
        setattr(user, k, v)
    await db.commit()
    await db.refresh(user)
    return user


# ── Issue ─────────────────────────────────────────────────

async def insert_issue(db: AsyncSession, **fields) -> Issue:
    issue = Issue(**fields)
    db.add(issue)
    await db.commit()
    await db.refresh(issue)
    return issue


async def get_issue(db: AsyncSession, issue_id: str) -> Issue | None:
    return await db.get(Issue, issue_id)


async def update_issue(db: AsyncSession, issue: Issue, **kwargs) -> Issue:
    for k, v in kwargs.items():
        setattr(issue, k, v)
    await db.commit()
    await db.refresh(issue)
    return issue


def _status_in(statuses: list[IssueStatus]):
    # Compare raw stored strings so rows with legacy spellings still match.
    raw = [s for status in statuses for s in spellings(status)]
    return type_coerce(Issue.status, String(30)).in_(raw)


async def compare_and_set_status(
    db: AsyncSession, issue_id: str, expected: IssueStatus, values: dict[str, Any],
) -> bool:
    """Apply ``values`` only if the issue is still in ``expected`` status.

    Returns False when no row matched, i.e. another writer changed the status
    first. Flushes but does not commit.
    """
    stmt = (
        update(Issue)
        .where(Issue.id == issue_id, _status_in([expected]))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def query_issues(
    db: AsyncSession,
    *,
    category: str | None = None,
    statuses: list[IssueStatus] | None = None,
    created_by: str | None = None,
    assigned_to: str | None = None,
    department: str | None = None,
    location: str | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[Issue], int]:
    """Filtered issue listing, newest first. Returns (page, total matching)."""
    conds = []
    if category:
        conds.append(Issue.category == category)
    if statuses:
        conds.append(_status_in(statuses))
    if created_by:
        conds.append(Issue.created_by == created_by)
    if assigned_to:
        conds.append(Issue.assigned_to == assigned_to)
    if department:
        conds.append(Issue.department == department)
    if location:
        conds.append(Issue.location.ilike(f"%{location}%"))
    if created_after:
        conds.append(Issue.created_at >= created_after)
    if created_before:
        conds.append(Issue.created_at <= created_before)

    total = (await db.execute(select(func.count(Issue.id)).where(*conds))).scalar_one()

    q = select(Issue).where(*conds).order_by(Issue.created_at.desc()).offset(offset)
    if limit is not None:
        q = q.limit(limit)
    result = await db.execute(q)
    return list(result.scalars().all()), total


async def count_issues_by_status(db: AsyncSession, assigned_to: str | None = None) -> dict[IssueStatus, int]:
    q = select(Issue.status, func.count(Issue.id)).group_by(Issue.status)
    if assigned_to:
        q = q.where(Issue.assigned_to == assigned_to)
    counts: dict[IssueStatus, int] = {s: 0 for s in IssueStatus}
    for status, n in (await db.execute(q)).all():
        # Legacy spellings group separately but normalize to the same key.
        counts[status] += n
    return counts


async def count_issues_assigned_by(
    db: AsyncSession, actor_id: str, statuses: list[IssueStatus] | None = None,
) -> int:
    """Issues whose history shows ``actor_id`` assigning them, optionally limited by current status."""
    q = (
        select(func.count(func.distinct(StatusChange.issue_id)))
        .join(Issue, Issue.id == StatusChange.issue_id)
        .where(StatusChange.actor_id == actor_id, StatusChange.to_status == IssueStatus.assigned)
    )
    if statuses:
        q = q.where(_status_in(statuses))
    return (await db.execute(q)).scalar_one()


async def list_success_stories(db: AsyncSession, limit: int = 3) -> list[Issue]:
    result = await db.execute(
        select(Issue)
        .where(
            _status_in([IssueStatus.resolved]),
            Issue.image.is_not(None),
            Issue.after_image.is_not(None),
        )
        .order_by(Issue.updated_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# ── Counters ──────────────────────────────────────────────

_COUNTERS = {"comments_count": Issue.comments_count, "volunteers_count": Issue.volunteers_count}


async def increment_counter(db: AsyncSession, issue_id: str, column: str, delta: int) -> None:
    """Atomic ``SET col = col + delta`` clamped at zero. Flushes but does not commit."""
    col = _COUNTERS[column]
    stmt = (
        update(Issue)
        .where(Issue.id == issue_id)
        .values({col: case((col + delta < 0, 0), else_=col + delta)})
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)


async def get_counter(db: AsyncSession, issue_id: str, column: str) -> int:
    result = await db.execute(select(_COUNTERS[column]).where(Issue.id == issue_id))
    return result.scalar_one()


# ── Upvote ────────────────────────────────────────────────

async def get_upvote(db: AsyncSession, issue_id: str, user_id: str) -> Upvote | None:
    result = await db.execute(
        select(Upvote).where(Upvote.issue_id == issue_id, Upvote.user_id == user_id)
    )
    return result.scalars().first()


async def add_upvote(db: AsyncSession, issue_id: str, user_id: str) -> Upvote:
    vote = Upvote(issue_id=issue_id, user_id=user_id)
    db.add(vote)
    await db.flush()
    return vote


async def remove_upvote(db: AsyncSession, issue_id: str, user_id: str) -> bool:
    """Delete the vote row. False when a concurrent request already removed it."""
    result = await db.execute(
        delete(Upvote).where(Upvote.issue_id == issue_id, Upvote.user_id == user_id)
    )
    return result.rowcount == 1


# ── Comment ───────────────────────────────────────────────

async def create_comment(
    db: AsyncSession, issue_id: str, user_id: str, content: str, user_name: str = "",
) -> Comment:
    comment = Comment(issue_id=issue_id, user_id=user_id, content=content, user_name=user_name)
    db.add(comment)
    await db.flush()
    return comment


async def list_comments(db: AsyncSession, issue_id: str) -> list[Comment]:
    result = await db.execute(
        select(Comment).where(Comment.issue_id == issue_id).order_by(Comment.created_at)
    )
    return list(result.scalars().all())


# ── InternalNote ──────────────────────────────────────────

async def create_internal_note(db: AsyncSession, issue_id: str, author_id: str, text: str) -> InternalNote:
    note = InternalNote(issue_id=issue_id, author_id=author_id, text=text)
    db.add(note)
    await db.flush()
    return note


async def list_internal_notes(db: AsyncSession, issue_id: str) -> list[InternalNote]:
    result = await db.execute(
        select(InternalNote).where(InternalNote.issue_id == issue_id).order_by(InternalNote.created_at)
    )
    return list(result.scalars().all())


# ── StatusChange ──────────────────────────────────────────

async def add_status_change(
    db: AsyncSession, issue_id: str, actor_id: str, actor_role: str,
    from_status: IssueStatus | None, to_status: IssueStatus, note: str = "",
) -> StatusChange:
    change = StatusChange(
        issue_id=issue_id, actor_id=actor_id, actor_role=actor_role,
        from_status=from_status, to_status=to_status, note=note,
    )
    db.add(change)
    await db.flush()
    return change


async def list_status_changes(db: AsyncSession, issue_id: str) -> list[StatusChange]:
    result = await db.execute(
        select(StatusChange).where(StatusChange.issue_id == issue_id).order_by(StatusChange.created_at, StatusChange.id)
    )
    return list(result.scalars().all())
