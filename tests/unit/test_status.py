import pytest

from urbancare.errors import ValidationError
from urbancare.lifecycle.status import (
    IssueStatus, at_least, is_terminal, normalize_status, spellings,
)


@pytest.mark.parametrize("raw, expected", [
    ("reported", IssueStatus.reported),
    ("in-progress", IssueStatus.in_progress),
    ("inprogress", IssueStatus.in_progress),
    ("In Progress", IssueStatus.in_progress),
    ("completed", IssueStatus.completed_by_worker),
    ("pending_review", IssueStatus.completed_by_worker),
    ("pending-review", IssueStatus.completed_by_worker),
    ("solved", IssueStatus.resolved),
    ("pending", IssueStatus.reported),
    ("open", IssueStatus.reported),
    ("CLOSED", IssueStatus.closed),
])
def test_legacy_spellings_normalize(raw, expected):
    assert normalize_status(raw) is expected


@pytest.mark.parametrize("raw", ["", "done", "archived", None, 3])
def test_unknown_status_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_status(raw)


def test_terminal_statuses():
    assert is_terminal(IssueStatus.resolved)
    assert is_terminal(IssueStatus.closed)
    assert not any(is_terminal(s) for s in IssueStatus if s.value not in ("resolved", "closed"))


def test_at_least_follows_forward_path():
    assert at_least(IssueStatus.resolved, IssueStatus.completed_by_worker)
    assert at_least(IssueStatus.assigned, IssueStatus.assigned)
    assert not at_least(IssueStatus.reported, IssueStatus.assigned)


def test_spellings_include_canonical_and_aliases():
    assert spellings(IssueStatus.in_progress) == ["in_progress", "in-progress", "inprogress"]
    assert spellings(IssueStatus.closed) == ["closed"]
