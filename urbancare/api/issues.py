"""Issue API: reporting, listing, lifecycle transitions, engagement, notes."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from urbancare.db.engine import get_db
from urbancare.dependencies import optional_auth, require_auth
from urbancare.lifecycle.roles import Role
from urbancare.lifecycle.transitions import allowed_targets
from urbancare.models import Issue
from urbancare.schemas import (
    CommentCreate, CommentRead, InternalNoteCreate, InternalNoteRead, IssueCreate,
    IssuePage, IssueRead, ReassignRequest, StatusChangeRead, TransitionRequest,
    UpvoteResult, UrgencyUpdate,
)
from urbancare.services import issues as svc
from urbancare.services.auth import AuthContext

router = APIRouter(prefix="/api/issues", tags=["issues"])


def issue_out(issue: Issue, auth: AuthContext | None = None) -> IssueRead:
    """Serialize an issue with its derived priority and the moves open to the caller."""
    out = IssueRead.model_validate(issue)
    out.priority = svc.derive_urgency(issue)
    if auth is not None:
        targets = allowed_targets(issue.status, auth.role)
        if auth.role is Role.worker and issue.assigned_to != auth.user_id:
            targets = []
        out.allowed_transitions = targets
    return out


@router.post("", status_code=201, response_model=IssueRead)
async def report_issue(
    body: IssueCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    issue = await svc.report_issue(
        db, auth.actor,
        description=body.description,
        category=body.category,
        location=body.location,
        title=body.title,
        latitude=body.latitude,
        longitude=body.longitude,
        image=body.image,
        voice_note=body.voice_note,
    )
    return issue_out(issue, auth)


@router.get("", response_model=IssuePage)
async def list_issues(
    category: str | None = None,
    status: str | None = None,
    urgency: str | None = None,
    created_by: str | None = None,
    assigned_to: str | None = None,
    department: str | None = None,
    location: str | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    sort: str = "newest",
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext | None = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
):
    items, total = await svc.list_issues(
        db,
        category=category,
        status=status,
        urgency=urgency,
        created_by=created_by,
        assigned_to=assigned_to,
        department=department,
        location=location,
        created_after=created_after,
        created_before=created_before,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    return IssuePage(
        items=[issue_out(i, auth) for i in items], total=total, offset=offset, limit=limit,
    )


@router.get("/{issue_id}", response_model=IssueRead)
async def get_issue(
    issue_id: str,
    auth: AuthContext | None = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
):
    return issue_out(await svc.get_issue(db, issue_id), auth)


# ── Lifecycle ────────────────────────────────────────────

@router.post("/{issue_id}/transition", response_model=IssueRead)
async def transition_issue(
    issue_id: str,
    body: TransitionRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    issue = await svc.transition(
        db, issue_id, body.status, auth.actor,
        after_image=body.after_image,
        worker_notes=body.worker_notes,
        assigned_to=body.assigned_to,
        department=body.department,
        note=body.note,
    )
    return issue_out(issue, auth)


@router.post("/{issue_id}/reassign", response_model=IssueRead)
async def reassign_issue(
    issue_id: str,
    body: ReassignRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    issue = await svc.reassign_issue(
        db, issue_id, body.worker_id, auth.actor, department=body.department, note=body.note,
    )
    return issue_out(issue, auth)


@router.put("/{issue_id}/urgency", response_model=IssueRead)
async def set_urgency(
    issue_id: str,
    body: UrgencyUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    issue = await svc.set_urgency(db, issue_id, body.urgency, auth.actor)
    return issue_out(issue, auth)


@router.get("/{issue_id}/history", response_model=list[StatusChangeRead])
async def get_history(
    issue_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_history(db, issue_id)


# ── Engagement ───────────────────────────────────────────

@router.post("/{issue_id}/upvote", response_model=UpvoteResult)
async def toggle_upvote(
    issue_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    count = await svc.toggle_upvote(db, issue_id, auth.user_id)
    upvoted = await svc.has_upvoted(db, issue_id, auth.user_id)
    return UpvoteResult(issue_id=issue_id, volunteers_count=count, upvoted=upvoted)


@router.get("/{issue_id}/comments", response_model=list[CommentRead])
async def list_comments(issue_id: str, db: AsyncSession = Depends(get_db)):
    return await svc.list_comments(db, issue_id)


@router.post("/{issue_id}/comments", status_code=201, response_model=CommentRead)
async def add_comment(
    issue_id: str,
    body: CommentCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await svc.add_comment(db, issue_id, auth.actor, body.content, user_name=auth.full_name)


# ── Internal notes (authority only) ──────────────────────

@router.get("/{issue_id}/notes", response_model=list[InternalNoteRead])
async def list_notes(
    issue_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await svc.list_internal_notes(db, issue_id, auth.actor)


@router.post("/{issue_id}/notes", status_code=201, response_model=InternalNoteRead)
async def add_note(
    issue_id: str,
    body: InternalNoteCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await svc.add_internal_note(db, issue_id, auth.actor, body.text)
