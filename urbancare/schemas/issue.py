from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from urbancare.lifecycle.priority import Urgency
from urbancare.lifecycle.status import IssueStatus


class IssueCreate(BaseModel):
    description: str
    category: str
    location: str = ""
    title: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    image: str | None = None  # URL from object storage
    voice_note: str | None = None


class IssueRead(BaseModel):
    id: str
    title: str
    description: str
    category: str
    location: str
    latitude: float | None = None
    longitude: float | None = None
    image: str | None = None
    after_image: str | None = None
    voice_note: str | None = None
    status: IssueStatus
    urgency: Urgency | None = None  # explicit override
    priority: Urgency | None = None  # derived
    created_by: str
    assigned_to: str | None = None
    department: str | None = None
    comments_count: int = 0
    volunteers_count: int = 0
    worker_notes: str = ""
    created_at: datetime
    updated_at: datetime | None = None
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    allowed_transitions: list[IssueStatus] = []

    model_config = {"from_attributes": True}


class IssuePage(BaseModel):
    items: list[IssueRead]
    total: int
    offset: int
    limit: int


class TransitionRequest(BaseModel):
    status: str
    assigned_to: str | None = None
    department: str | None = None
    after_image: str | None = None
    worker_notes: str | None = None
    note: str = ""


class ReassignRequest(BaseModel):
    worker_id: str
    department: str | None = None
    note: str = ""


class UrgencyUpdate(BaseModel):
    urgency: str | None = None  # None clears the override


class StatusChangeRead(BaseModel):
    id: str
    issue_id: str
    actor_id: str
    actor_role: str
    from_status: IssueStatus | None = None
    to_status: IssueStatus
    note: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class SuccessStory(BaseModel):
    id: str
    title: str
    location: str
    category: str
    before_image: str = Field(validation_alias="image")
    after_image: str
    resolved_at: datetime | None = Field(default=None, validation_alias="updated_at")

    model_config = {"from_attributes": True}
