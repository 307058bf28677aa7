"""Domain exceptions for effort scoring, homework triggers, and storage."""

from __future__ import annotations


class EffortError(Exception):
    """Base class for errors surfaced by the effort monitor."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidModuleError(EffortError):
    """The module key is not a course module (``course:<id>``)."""

    status_code = 400


class NotEnrolledError(EffortError):
    status_code = 404


class AssignmentNotFoundError(EffortError):
    status_code = 404


class HomeworkNotFoundError(EffortError):
    status_code = 404


class PersistenceError(EffortError):
    """A store read or write failed; the computed value was not saved."""

    status_code = 500
