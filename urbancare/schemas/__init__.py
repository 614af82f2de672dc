"""Pydantic request/response schemas."""

from urbancare.schemas.issue import (
    IssueCreate, IssueRead, IssuePage, TransitionRequest, ReassignRequest,
    UrgencyUpdate, StatusChangeRead, SuccessStory,
)
from urbancare.schemas.engagement import (
    CommentCreate, CommentRead, UpvoteResult, InternalNoteCreate, InternalNoteRead,
)
from urbancare.schemas.user import RegisterRequest, LoginRequest, UserRead, WorkerCreate
from urbancare.schemas.worker_task import WorkerTaskRead

__all__ = [
    "IssueCreate", "IssueRead", "IssuePage", "TransitionRequest", "ReassignRequest",
    "UrgencyUpdate", "StatusChangeRead", "SuccessStory",
    "CommentCreate", "CommentRead", "UpvoteResult", "InternalNoteCreate", "InternalNoteRead",
    "RegisterRequest", "LoginRequest", "UserRead", "WorkerCreate",
    "WorkerTaskRead",
]
