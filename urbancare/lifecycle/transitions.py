"""Issue status state machine: transition table, role gate, and side effects.

``plan_transition`` is pure. It inspects an issue (anything with ``id``,
``status``, ``assigned_to`` and ``worker_notes`` attributes), validates the
request and returns the field changes to apply. Persisting the plan is the
service layer's job.

Checks run in a fixed order so callers get the most useful error:

1. unknown target status            -> ValidationError
2. target equals current status     -> no-op plan
3. (current, target) not in table   -> InvalidTransition
4. completion without after_image   -> ValidationError (any role)
5. role / ownership                 -> Unauthorized
6. assignment without a live worker -> ValidationError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from urbancare.errors import InvalidTransition, Unauthorized, ValidationError
from urbancare.lifecycle.roles import Actor, Role
from urbancare.lifecycle.status import IssueStatus, TERMINAL, normalize_status

S = IssueStatus

# (from, to) -> roles allowed to request it
TRANSITIONS: dict[tuple[IssueStatus, IssueStatus], frozenset[Role]] = {
    (S.reported, S.assigned): frozenset({Role.authority}),
    (S.assigned, S.in_progress): frozenset({Role.worker, Role.authority}),
    (S.in_progress, S.completed_by_worker): frozenset({Role.worker}),
    (S.completed_by_worker, S.resolved): frozenset({Role.authority}),
    (S.completed_by_worker, S.in_progress): frozenset({Role.authority}),
}
for _status in S:
    if _status not in TERMINAL:
        TRANSITIONS[(_status, S.closed)] = frozenset({Role.authority})

# Transitions that may only be requested by the worker the issue is assigned to.
_ASSIGNEE_ONLY = frozenset({
    (S.assigned, S.in_progress),
    (S.in_progress, S.completed_by_worker),
})


@dataclass(frozen=True)
class WorkerRef:
    """A candidate assignee as resolved by the caller."""

    user_id: str
    department: str | None = None
    valid: bool = True


@dataclass
class TransitionPlan:
    issue_id: str
    current: IssueStatus
    target: IssueStatus
    changes: dict[str, Any] = field(default_factory=dict)
    note: str = ""

    @property
    def is_noop(self) -> bool:
        return self.current == self.target

    @property
    def is_rejection(self) -> bool:
        return (self.current, self.target) == (S.completed_by_worker, S.in_progress)


def allowed_targets(current: IssueStatus | str, role: Role | None = None) -> list[IssueStatus]:
    """Statuses reachable from ``current``, optionally limited to what ``role`` may request."""
    current = normalize_status(current)
    return [
        to for (frm, to), roles in TRANSITIONS.items()
        if frm == current and (role is None or role in roles)
    ]


def plan_transition(
    issue,
    target: IssueStatus | str,
    actor: Actor,
    *,
    now: datetime,
    after_image: str | None = None,
    worker_notes: str | None = None,
    assignee: WorkerRef | None = None,
    department: str | None = None,
    note: str = "",
) -> TransitionPlan:
    target = normalize_status(target)
    current = normalize_status(issue.status)
    plan = TransitionPlan(issue_id=issue.id, current=current, target=target, note=(note or "").strip())

    if plan.is_noop:
        return plan

    key = (current, target)
    if key not in TRANSITIONS:
        raise InvalidTransition(current.value, target.value, issue_id=issue.id)

    after_image = (after_image or "").strip() or None
    if target == S.completed_by_worker and not after_image:
        raise ValidationError(
            "An after photo is required to mark work as completed",
            issue_id=issue.id, current=current.value, requested=target.value,
        )

    if actor.role not in TRANSITIONS[key]:
        raise Unauthorized(
            f"Role '{actor.role.value}' cannot move an issue from '{current.value}' to '{target.value}'",
            issue_id=issue.id, current=current.value, requested=target.value,
        )
    if key in _ASSIGNEE_ONLY and actor.role is Role.worker and issue.assigned_to != actor.user_id:
        raise Unauthorized(
            "Only the assigned worker can update this task",
            issue_id=issue.id, current=current.value, requested=target.value,
        )

    changes: dict[str, Any] = {"status": target, "updated_at": now}

    if key == (S.reported, S.assigned):
        if assignee is None:
            raise ValidationError("assigned_to is required to assign an issue", issue_id=issue.id)
        if not assignee.valid:
            raise ValidationError(
                f"'{assignee.user_id}' is not an active worker", issue_id=issue.id,
            )
        changes["assigned_to"] = assignee.user_id
        changes["department"] = department or assignee.department
        changes["assigned_at"] = now

    elif key == (S.in_progress, S.completed_by_worker):
        changes["after_image"] = after_image
        changes["completed_at"] = now
        extra = (worker_notes or "").strip()
        if extra:
            existing = (issue.worker_notes or "").strip()
            changes["worker_notes"] = f"{existing}\n{extra}" if existing else extra

    elif key == (S.completed_by_worker, S.in_progress):
        # Sent back: the completion proof no longer stands.
        changes["after_image"] = None
        changes["completed_at"] = None

    plan.changes = changes
    return plan
