"""
gigquest.exceptions — Error taxonomy shared by every service
=============================================================

Services fail fast by raising one of these; the API layer maps ``kind`` to
an HTTP status in a single exception handler.  Tests assert on the class
(or ``kind``), never on message text.
"""

from __future__ import annotations


class GigQuestError(Exception):
    """Base exception for all GigQuest domain errors."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class NotFoundError(GigQuestError):
    """The referenced entity does not exist."""

    kind = "not_found"
    status_code = 404


class ForbiddenError(GigQuestError):
    """The caller lacks rights over the entity."""

    kind = "forbidden"
    status_code = 403


class ConflictError(GigQuestError):
    """Uniqueness violation, duplicate action, or a lost concurrent update."""

    kind = "conflict"
    status_code = 409


class InvalidStateError(GigQuestError):
    """Operation is illegal for the entity's current lifecycle state."""

    kind = "invalid_state"
    status_code = 409

    def __init__(self, message: str, *, current: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.current = current
        self.operation = operation


class InvalidInputError(GigQuestError):
    """A referenced entity fails a business constraint."""

    kind = "invalid_input"
    status_code = 400


class UnauthorizedError(GigQuestError):
    """A token is missing, malformed, expired, or of the wrong kind."""

    kind = "unauthorized"
    status_code = 401
