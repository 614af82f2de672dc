from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from urbancare.lifecycle.priority import Urgency
from urbancare.lifecycle.status import IssueStatus


class WorkerTaskRead(BaseModel):
    issue_id: str
    worker_id: str | None = None
    title: str
    description: str
    location: str
    category: str
    priority: Urgency
    status: str  # pending | in_progress | completed | cancelled
    issue_status: IssueStatus
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    estimated_hours: float
    scheduled_date: datetime
    before_image: str | None = None
    after_image: str | None = None
    worker_notes: str = ""
    latitude: float | None = None
    longitude: float | None = None

    model_config = {"from_attributes": True}
