"""Issue model: a citizen-reported civic problem and its lifecycle fields."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from urbancare.lifecycle.status import IssueStatus
from urbancare.models.base import Base, ULIDMixin
from urbancare.models.status_type import StatusType


class Issue(Base, ULIDMixin):
    __tablename__ = "issues"

    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(40), index=True)
    location: Mapped[str] = mapped_column(String(300), default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    image: Mapped[str | None] = mapped_column(String(1000), nullable=True, default=None)
    after_image: Mapped[str | None] = mapped_column(String(1000), nullable=True, default=None)
    voice_note: Mapped[str | None] = mapped_column(String(1000), nullable=True, default=None)

    status: Mapped[IssueStatus] = mapped_column(StatusType(30), default=IssueStatus.reported, index=True)
    urgency: Mapped[str | None] = mapped_column(String(10), nullable=True, default=None)  # explicit override

    created_by: Mapped[str] = mapped_column(String(26), ForeignKey("users.id"), index=True)
    assigned_to: Mapped[str | None] = mapped_column(String(26), ForeignKey("users.id"), nullable=True, default=None, index=True)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, default=None)

    comments_count: Mapped[int] = mapped_column(Integer, default=0)
    volunteers_count: Mapped[int] = mapped_column(Integer, default=0)
    worker_notes: Mapped[str] = mapped_column(Text, default="")

    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    comments = relationship("Comment", back_populates="issue", order_by="Comment.created_at")
    internal_notes = relationship("InternalNote", back_populates="issue", order_by="InternalNote.created_at")
    history = relationship("StatusChange", back_populates="issue", order_by="StatusChange.created_at")


Index("ix_issues_lat_lng", Issue.latitude, Issue.longitude)
