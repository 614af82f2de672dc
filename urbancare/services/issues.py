"""Issue service: the lifecycle engine's public operations against the record store.

Each operation does one read and one write of the issue row. Status changes
are written with a compare-and-swap on the status the plan was computed from,
so two actors racing on the same issue cannot both win.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.config import Settings, get_settings
from urbancare.db import crud
from urbancare.errors import (
    IssueLifecycleError, NotFound, StaleStatus, Unauthenticated, Unauthorized, ValidationError,
)
from urbancare.lifecycle.categories import normalize_category
from urbancare.lifecycle.priority import LADDER, Urgency, derive_priority, parse_urgency
from urbancare.lifecycle.roles import Actor, Role, require_actor
from urbancare.lifecycle.status import IssueStatus, is_terminal, normalize_status
from urbancare.lifecycle.transitions import WorkerRef, plan_transition
from urbancare.lifecycle.worker_tasks import WorkerTask, project_task, sort_tasks
from urbancare.models import Comment, InternalNote, Issue, StatusChange
from urbancare.models.base import utcnow
from urbancare.services.store import store_operation

logger = logging.getLogger(__name__)

TITLE_MAX = 60
DESCRIPTION_MAX = 4000
COMMENT_MAX = 2000


def derive_title(description: str, limit: int = TITLE_MAX) -> str:
    """First line of the description, shortened to ``limit`` characters."""
    first = description.strip().splitlines()[0].strip() if description.strip() else ""
    if len(first) <= limit:
        return first
    return first[: limit - 3].rstrip() + "..."


async def _load_issue(db: AsyncSession, issue_id: str) -> Issue:
    issue = await crud.get_issue(db, issue_id)
    if not issue:
        raise NotFound("Issue not found", issue_id=issue_id)
    return issue


def _require_authority(actor: Actor, action: str) -> None:
    if not actor.is_authority:
        raise Unauthorized(f"Only authorities can {action}")


# ── Reporting ────────────────────────────────────────────

@store_operation
async def report_issue(
    db: AsyncSession,
    actor: Actor | None,
    *,
    description: str,
    category: str,
    location: str = "",
    title: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    image: str | None = None,
    voice_note: str | None = None,
) -> Issue:
    actor = require_actor(actor)

    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required")
    if len(description) > DESCRIPTION_MAX:
        raise ValidationError(f"description must be at most {DESCRIPTION_MAX} characters")
    category = normalize_category(category)

    location = (location or "").strip()
    has_coords = latitude is not None and longitude is not None
    if not location and not has_coords:
        raise ValidationError("location is required (address or latitude/longitude)")
    if (latitude is None) != (longitude is None):
        raise ValidationError("latitude and longitude must be given together")
    if has_coords and not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationError("latitude/longitude out of range")

    title = (title or "").strip() or derive_title(description)

    issue = await crud.insert_issue(
        db,
        title=title,
        description=description,
        category=category,
        location=location,
        latitude=latitude,
        longitude=longitude,
        image=(image or "").strip() or None,
        voice_note=(voice_note or "").strip() or None,
        status=IssueStatus.reported,
        created_by=actor.user_id,
    )
    await crud.add_status_change(
        db, issue.id, actor.user_id, actor.role.value, None, IssueStatus.reported,
    )
    await db.commit()
    logger.info("Issue %s reported by %s (%s)", issue.id, actor.user_id, category)
    return issue


@store_operation
async def get_issue(db: AsyncSession, issue_id: str) -> Issue:
    return await _load_issue(db, issue_id)


# ── Lifecycle ────────────────────────────────────────────

async def _resolve_worker(db: AsyncSession, worker_id: str) -> WorkerRef:
    user = await crud.get_user(db, worker_id)
    valid = bool(user and user.role == Role.worker.value and user.is_active)
    return WorkerRef(user_id=worker_id, department=user.department if user else None, valid=valid)


@store_operation
async def transition(
    db: AsyncSession,
    issue_id: str,
    target: IssueStatus | str,
    actor: Actor | None,
    *,
    after_image: str | None = None,
    worker_notes: str | None = None,
    assigned_to: str | None = None,
    department: str | None = None,
    note: str = "",
    now: datetime | None = None,
) -> Issue:
    """Move an issue to ``target`` on behalf of ``actor``.

    Requesting the current status is a no-op that writes nothing. Raises
    ``InvalidTransition``, ``Unauthorized`` or ``ValidationError`` without
    touching the record, and ``StaleStatus`` when another writer changed the
    status between our read and our write.
    """
    actor = require_actor(actor)
    now = now or utcnow()
    issue = await _load_issue(db, issue_id)

    assignee = await _resolve_worker(db, assigned_to) if assigned_to else None

    try:
        plan = plan_transition(
            issue, target, actor, now=now,
            after_image=after_image, worker_notes=worker_notes,
            assignee=assignee, department=department, note=note,
        )
    except IssueLifecycleError as e:
        logger.warning("Rejected transition on %s by %s/%s: %s",
                       issue_id, actor.role.value, actor.user_id, e.message)
        raise

    if plan.is_noop:
        return issue

    if not await crud.compare_and_set_status(db, issue_id, plan.current, plan.changes):
        # Rollback expires `issue`; only plain values below this point.
        await db.rollback()
        logger.warning("Status of %s changed concurrently (expected %s)", issue_id, plan.current.value)
        raise StaleStatus(issue_id, plan.current.value, plan.target.value)

    # History is public; an authority's note is kept only as an internal note.
    public_note = "" if actor.is_authority else plan.note
    await crud.add_status_change(
        db, issue.id, actor.user_id, actor.role.value, plan.current, plan.target, public_note,
    )
    if plan.note and actor.is_authority:
        await crud.create_internal_note(db, issue.id, actor.user_id, plan.note)
    if plan.is_rejection and not plan.note:
        logger.info("Issue %s sent back to in_progress without a note", issue.id)

    await db.commit()
    await db.refresh(issue)
    logger.info("Issue %s: %s -> %s by %s/%s",
                issue.id, plan.current.value, plan.target.value, actor.role.value, actor.user_id)
    return issue


@store_operation
async def reassign_issue(
    db: AsyncSession,
    issue_id: str,
    worker_id: str,
    actor: Actor | None,
    *,
    department: str | None = None,
    note: str = "",
    now: datetime | None = None,
) -> Issue:
    """Hand an assigned or in-progress issue to a different worker. Status is unchanged."""
    actor = require_actor(actor)
    _require_authority(actor, "reassign issues")
    now = now or utcnow()
    issue = await _load_issue(db, issue_id)

    current = normalize_status(issue.status)
    if current not in (IssueStatus.assigned, IssueStatus.in_progress):
        raise ValidationError(
            f"Only assigned or in-progress issues can be reassigned (status is '{current.value}')",
            issue_id=issue_id, current=current.value,
        )
    worker = await _resolve_worker(db, worker_id)
    if not worker.valid:
        raise ValidationError(f"'{worker_id}' is not an active worker", issue_id=issue_id)
    if worker.user_id == issue.assigned_to:
        return issue

    changes = {
        "assigned_to": worker.user_id,
        "department": department or worker.department,
        "assigned_at": now,
        "updated_at": now,
    }
    previous = issue.assigned_to
    if not await crud.compare_and_set_status(db, issue_id, current, changes):
        await db.rollback()
        logger.warning("Status of %s changed during reassignment (expected %s)", issue_id, current.value)
        raise StaleStatus(issue_id, current.value, current.value)

    text = note.strip() or f"Reassigned from {previous} to {worker.user_id}"
    await crud.create_internal_note(db, issue.id, actor.user_id, text)
    await db.commit()
    await db.refresh(issue)
    logger.info("Issue %s reassigned to %s by %s", issue.id, worker.user_id, actor.user_id)
    return issue


# ── Priority ─────────────────────────────────────────────

def derive_urgency(issue: Issue, now: datetime | None = None, settings: Settings | None = None) -> Urgency:
    """Current urgency of an issue. Resolved and closed issues are frozen at their closing time."""
    s = settings or get_settings()
    status = normalize_status(issue.status)
    frozen_at = issue.updated_at if is_terminal(status) else None
    return derive_priority(
        issue.category,
        issue.created_at,
        issue.urgency,
        now=now or utcnow(),
        frozen_at=frozen_at,
        escalate_with_age=s.priority.escalation_enabled,
        period_days=s.priority.escalation_period_days,
        category_base=s.priority.category_base,
    )


@store_operation
async def set_urgency(
    db: AsyncSession, issue_id: str, urgency: str | Urgency | None, actor: Actor | None,
) -> Issue:
    """Set (or clear, with None) the explicit urgency that overrides derivation."""
    actor = require_actor(actor)
    _require_authority(actor, "set urgency")
    level = parse_urgency(urgency)
    issue = await _load_issue(db, issue_id)
    issue = await crud.update_issue(db, issue, urgency=level.value if level else None)
    logger.info("Issue %s urgency set to %s by %s", issue.id, issue.urgency, actor.user_id)
    return issue


# ── Listing ──────────────────────────────────────────────

@store_operation
async def list_issues(
    db: AsyncSession,
    *,
    category: str | None = None,
    status: str | IssueStatus | None = None,
    urgency: str | Urgency | None = None,
    created_by: str | None = None,
    assigned_to: str | None = None,
    department: str | None = None,
    location: str | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    sort: str = "newest",
    limit: int = 50,
    offset: int = 0,
    now: datetime | None = None,
) -> tuple[list[Issue], int]:
    """Filtered listing. Urgency is derived, so urgency filters and priority
    sorting are applied after the query."""
    if sort not in ("newest", "priority"):
        raise ValidationError("sort must be 'newest' or 'priority'")
    filters = dict(
        category=normalize_category(category) if category else None,
        statuses=[normalize_status(status)] if status else None,
        created_by=created_by,
        assigned_to=assigned_to,
        department=department,
        location=location,
        created_after=created_after,
        created_before=created_before,
    )
    level = parse_urgency(urgency)

    if level is None and sort == "newest":
        return await crud.query_issues(db, limit=limit, offset=offset, **filters)

    now = now or utcnow()
    issues, _ = await crud.query_issues(db, **filters)
    ranked = [(derive_urgency(i, now), i) for i in issues]
    if level is not None:
        ranked = [(u, i) for u, i in ranked if u == level]
    if sort == "priority":
        # Stable sort keeps newest-first within the same urgency.
        ranked.sort(key=lambda pair: -LADDER.index(pair[0]))
    items = [i for _, i in ranked]
    return items[offset:offset + limit], len(items)


@store_operation
async def list_history(db: AsyncSession, issue_id: str) -> list[StatusChange]:
    await _load_issue(db, issue_id)
    return await crud.list_status_changes(db, issue_id)


# ── Engagement ───────────────────────────────────────────

@store_operation
async def toggle_upvote(db: AsyncSession, issue_id: str, user_id: str | None) -> int:
    """Upvote if the user has not, otherwise withdraw. Returns the new count."""
    if not user_id:
        raise Unauthenticated("Sign in to upvote")
    issue = await _load_issue(db, issue_id)

    vote = await crud.get_upvote(db, issue_id, user_id)
    try:
        if vote:
            if await crud.remove_upvote(db, issue_id, user_id):
                await crud.increment_counter(db, issue_id, "volunteers_count", -1)
        else:
            await crud.add_upvote(db, issue_id, user_id)
            await crud.increment_counter(db, issue_id, "volunteers_count", 1)
        await db.commit()
    except IntegrityError:
        # A concurrent request from the same user got there first.
        await db.rollback()
        logger.info("Duplicate upvote on %s by %s ignored", issue_id, user_id)

    await db.refresh(issue)
    return issue.volunteers_count


@store_operation
async def has_upvoted(db: AsyncSession, issue_id: str, user_id: str) -> bool:
    return await crud.get_upvote(db, issue_id, user_id) is not None


@store_operation
async def add_comment(
    db: AsyncSession, issue_id: str, actor: Actor | None, content: str, user_name: str = "",
) -> Comment:
    actor = require_actor(actor)
    content = (content or "").strip()
    if not content:
        raise ValidationError("Comment cannot be empty")
    if len(content) > COMMENT_MAX:
        raise ValidationError(f"Comment must be at most {COMMENT_MAX} characters")
    await _load_issue(db, issue_id)

    comment = await crud.create_comment(db, issue_id, actor.user_id, content, user_name=user_name)
    await crud.increment_counter(db, issue_id, "comments_count", 1)
    await db.commit()
    await db.refresh(comment)
    return comment


@store_operation
async def list_comments(db: AsyncSession, issue_id: str) -> list[Comment]:
    await _load_issue(db, issue_id)
    return await crud.list_comments(db, issue_id)


# ── Internal notes ───────────────────────────────────────

@store_operation
async def add_internal_note(db: AsyncSession, issue_id: str, actor: Actor | None, text: str) -> InternalNote:
    actor = require_actor(actor)
    _require_authority(actor, "add internal notes")
    text = (text or "").strip()
    if not text:
        raise ValidationError("Note cannot be empty")
    await _load_issue(db, issue_id)
    note = await crud.create_internal_note(db, issue_id, actor.user_id, text)
    await db.commit()
    await db.refresh(note)
    return note


@store_operation
async def list_internal_notes(db: AsyncSession, issue_id: str, actor: Actor | None) -> list[InternalNote]:
    actor = require_actor(actor)
    _require_authority(actor, "read internal notes")
    await _load_issue(db, issue_id)
    return await crud.list_internal_notes(db, issue_id)


# ── Worker tasks ─────────────────────────────────────────

_TASK_STATUSES = [
    IssueStatus.assigned, IssueStatus.in_progress,
    IssueStatus.completed_by_worker, IssueStatus.resolved,
]


@store_operation
async def list_worker_tasks(
    db: AsyncSession,
    worker_id: str,
    *,
    include_closed: bool = False,
    now: datetime | None = None,
) -> list[WorkerTask]:
    """Tasks for one worker, most urgent first."""
    statuses = _TASK_STATUSES + ([IssueStatus.closed] if include_closed else [])
    issues, _ = await crud.query_issues(db, assigned_to=worker_id, statuses=statuses)
    s = get_settings()
    now = now or utcnow()
    tasks = [
        project_task(
            issue,
            derive_urgency(issue, now, s),
            durations_hours=s.worker_tasks.durations_hours,
            default_hours=s.worker_tasks.default_duration_hours,
            sla_days=s.worker_tasks.sla_days,
        )
        for issue in issues
    ]
    return sort_tasks(tasks)


@store_operation
async def get_worker_task(db: AsyncSession, issue_id: str, actor: Actor | None, now: datetime | None = None) -> WorkerTask:
    actor = require_actor(actor)
    issue = await _load_issue(db, issue_id)
    if actor.role is Role.worker and issue.assigned_to != actor.user_id:
        raise Unauthorized("This task is assigned to another worker", issue_id=issue_id)
    if actor.role is Role.citizen:
        raise Unauthorized("Citizens cannot view worker tasks", issue_id=issue_id)
    s = get_settings()
    return project_task(
        issue,
        derive_urgency(issue, now, s),
        durations_hours=s.worker_tasks.durations_hours,
        default_hours=s.worker_tasks.default_duration_hours,
        sla_days=s.worker_tasks.sla_days,
    )
