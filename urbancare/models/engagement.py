"""Citizen engagement on issues: comments and upvotes."""

from __future__ import annotations

from sqlalchemy import String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from urbancare.models.base import Base, ULIDMixin


class Comment(Base, ULIDMixin):
    __tablename__ = "comments"

    issue_id: Mapped[str] = mapped_column(String(26), ForeignKey("issues.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    user_name: Mapped[str] = mapped_column(String(255), default="")
    content: Mapped[str] = mapped_column(Text)

    issue = relationship("Issue", back_populates="comments")


class Upvote(Base, ULIDMixin):
    """One row per (issue, user): the server-side record of who has upvoted what."""

    __tablename__ = "upvotes"
    __table_args__ = (UniqueConstraint("issue_id", "user_id", name="uq_upvote_issue_user"),)

    issue_id: Mapped[str] = mapped_column(String(26), ForeignKey("issues.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
