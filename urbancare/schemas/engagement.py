from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel


class CommentCreate(BaseModel):
    content: str


class CommentRead(BaseModel):
    id: str
    issue_id: str
    user_id: str
    user_name: str = ""
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class UpvoteResult(BaseModel):
    issue_id: str
    volunteers_count: int
    upvoted: bool


class InternalNoteCreate(BaseModel):
    text: str


class InternalNoteRead(BaseModel):
    id: str
    issue_id: str
    author_id: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}
