"""SQLAlchemy ORM models."""

from urbancare.models.base import Base
from urbancare.models.user import User, UserSession
from urbancare.models.issue import Issue
from urbancare.models.engagement import Comment, Upvote
from urbancare.models.history import InternalNote, StatusChange

__all__ = [
    "Base", "User", "UserSession",
    "Issue", "Comment", "Upvote",
    "InternalNote", "StatusChange",
]
