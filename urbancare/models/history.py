"""Authority-only internal notes and the append-only status history of an issue."""

from __future__ import annotations

from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from urbancare.lifecycle.status import IssueStatus
from urbancare.models.base import Base, ULIDMixin
from urbancare.models.status_type import StatusType


class InternalNote(Base, ULIDMixin):
    __tablename__ = "internal_notes"

    issue_id: Mapped[str] = mapped_column(String(26), ForeignKey("issues.id"), index=True)
    author_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    text: Mapped[str] = mapped_column(Text)

    issue = relationship("Issue", back_populates="internal_notes")


class StatusChange(Base, ULIDMixin):
    __tablename__ = "status_changes"

    issue_id: Mapped[str] = mapped_column(String(26), ForeignKey("issues.id"), index=True)
    actor_id: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"))
    actor_role: Mapped[str] = mapped_column(String(20))
    from_status: Mapped[IssueStatus | None] = mapped_column(StatusType(30), nullable=True)
    to_status: Mapped[IssueStatus] = mapped_column(StatusType(30))
    note: Mapped[str] = mapped_column(Text, default="")

    issue = relationship("Issue", back_populates="history")
