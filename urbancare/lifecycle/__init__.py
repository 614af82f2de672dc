"""Issue lifecycle engine: pure rules with no I/O."""

from urbancare.lifecycle.status import IssueStatus, normalize_status, is_terminal, at_least
from urbancare.lifecycle.categories import CATEGORIES, normalize_category
from urbancare.lifecycle.roles import Role, Actor, parse_role, require_actor
from urbancare.lifecycle.priority import Urgency, derive_priority, parse_urgency
from urbancare.lifecycle.transitions import (
    TRANSITIONS, TransitionPlan, WorkerRef, allowed_targets, plan_transition,
)
from urbancare.lifecycle.worker_tasks import WorkerTask, project_task, sort_tasks

__all__ = [
    "IssueStatus", "normalize_status", "is_terminal", "at_least",
    "CATEGORIES", "normalize_category",
    "Role", "Actor", "parse_role", "require_actor",
    "Urgency", "derive_priority", "parse_urgency",
    "TRANSITIONS", "TransitionPlan", "WorkerRef", "allowed_targets", "plan_transition",
    "WorkerTask", "project_task", "sort_tasks",
]
