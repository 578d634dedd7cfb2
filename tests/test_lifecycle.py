"""
tests/test_lifecycle.py — Job & Application State Machine Tests
================================================================
"""

from __future__ import annotations

import pytest

from gigquest.database.models import ApplicationStatus, JobStatus
from gigquest.engine.lifecycle import application_transition, job_transition
from gigquest.exceptions import InvalidStateError


class TestJobTransitions:
    @pytest.mark.parametrize("operation, current, target", [
        ("publish", JobStatus.DRAFT, JobStatus.OPEN),
        ("assign", JobStatus.OPEN, JobStatus.IN_PROGRESS),
        ("complete", JobStatus.IN_PROGRESS, JobStatus.COMPLETED),
        ("cancel", JobStatus.OPEN, JobStatus.CANCELLED),
        ("cancel", JobStatus.IN_PROGRESS, JobStatus.CANCELLED),
    ])
    def test_legal(self, operation, current, target):
        assert job_transition(current, operation) == target

    @pytest.mark.parametrize("current", [
        JobStatus.DRAFT, JobStatus.IN_PROGRESS, JobStatus.COMPLETED, JobStatus.CANCELLED,
    ])
    def test_assign_only_from_open(self, current):
        with pytest.raises(InvalidStateError) as exc_info:
            job_transition(current, "assign")
        assert exc_info.value.operation == "assign"
        assert exc_info.value.current == current

    def test_cannot_cancel_completed(self):
        with pytest.raises(InvalidStateError):
            job_transition(JobStatus.COMPLETED, "cancel")

    def test_update_blocked_once_finished(self):
        assert job_transition(JobStatus.IN_PROGRESS, "update") is None
        for current in (JobStatus.COMPLETED, JobStatus.CANCELLED):
            with pytest.raises(InvalidStateError):
                job_transition(current, "update")

    def test_delete_only_drafts(self):
        assert job_transition(JobStatus.DRAFT, "delete") is None
        with pytest.raises(InvalidStateError):
            job_transition(JobStatus.OPEN, "delete")

    def test_plain_string_status(self):
        assert job_transition("draft", "publish") == "open"

    def test_unknown_operation(self):
        with pytest.raises(ValueError):
            job_transition(JobStatus.OPEN, "archive")


class TestApplicationTransitions:
    @pytest.mark.parametrize("operation, target", [
        ("accept", ApplicationStatus.ACCEPTED),
        ("reject", ApplicationStatus.REJECTED),
        ("withdraw", ApplicationStatus.WITHDRAWN),
    ])
    def test_from_pending(self, operation, target):
        assert application_transition(ApplicationStatus.PENDING, operation) == target

    @pytest.mark.parametrize("current", [
        ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN,
    ])
    @pytest.mark.parametrize("operation", ["accept", "reject", "withdraw", "update"])
    def test_terminal_states(self, current, operation):
        with pytest.raises(InvalidStateError):
            application_transition(current, operation)

    @pytest.mark.parametrize("current", list(ApplicationStatus))
    def test_delete_from_any_state(self, current):
        assert application_transition(current, "delete") is None
