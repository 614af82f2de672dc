"""SQLAlchemy TypeDecorator that normalizes issue status spellings at the store boundary."""

from __future__ import annotations

from sqlalchemy import String, TypeDecorator

from urbancare.lifecycle.status import IssueStatus, normalize_status


class StatusType(TypeDecorator):
    """Writes the canonical value, reads any known legacy spelling back as ``IssueStatus``."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return normalize_status(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return normalize_status(value)

    @property
    def python_type(self):
        return IssueStatus
