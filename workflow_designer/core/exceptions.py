"""Error types for the designer core and its backend collaborator."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workflow_designer.services.validation import ValidationIssue

GENERIC_NETWORK_ERROR = "Network error"


class AppError(Exception):
    """Base app exception."""


class ValidationError(AppError):
    """Local input failure; blocks progression until the user corrects it."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> ValidationError:
        return cls(issue.code, issue.message)


class InvalidIndex(ValidationError):
    """Stage or action index outside the list, or a stage not yet persisted."""

    def __init__(self, message: str):
        super().__init__("InvalidIndex", message)


class AccessDenied(AppError):
    """The session lacks the capability required by an operation."""


class IntegrationError(AppError):
    """External backend call failure."""


class NetworkError(IntegrationError):
    """The request never produced a response."""


class BackendError(IntegrationError):
    """The backend answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code
