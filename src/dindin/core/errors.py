#!/usr/bin/env python3
"""
Reconciliation Error Taxonomy

Every rejection the engine can produce, each carrying the HTTP-style status
the API boundary answers with and a specific, resource-qualified message.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ValidationError


class ReconciliationError(Exception):
    """Base class for all engine errors."""

    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, Any]:
        """Render as an error response body."""
        return {"error": self.message}


class AuthError(ReconciliationError):
    """No authenticated caller identity."""

    status = 401

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class RequestValidationError(ReconciliationError):
    """One or more rows failed field validation; nothing was written."""

    status = 400

    def __init__(self, groups: dict[str, list["ValidationError"]], message: str = "validation errors found"):
        super().__init__(message)
        self.groups = groups

    @property
    def error_count(self) -> int:
        return sum(len(errors) for errors in self.groups.values())

    def to_body(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "validationErrors": [
                {"resource": resource, "errors": [e.to_dict() for e in errors]}
                for resource, errors in self.groups.items()
            ],
        }


class StructuralError(ReconciliationError):
    """Malformed envelope or request payload."""

    status = 400


class VersionIncompatibleError(ReconciliationError):
    """Backup major version differs from the supported major."""

    status = 400


class ChecksumMismatchError(ReconciliationError):
    """Backup payload does not match its sealed checksum."""

    status = 400


class ConfirmationRequiredError(ReconciliationError):
    """A destructive operation was requested without its confirm flag."""

    status = 400

    def __init__(self, flag: str, message: str | None = None):
        super().__init__(message or f"confirmation required: send {flag}: true to proceed")
        self.flag = flag


class InstallmentLimitError(ReconciliationError):
    """Installment count outside the supported range."""

    status = 400


class NotFoundError(ReconciliationError):
    """Referenced entity is absent or not owned by the caller."""

    status = 404

    def __init__(self, resource: str, entity_id: str | None = None):
        detail = f" ({entity_id})" if entity_id else ""
        super().__init__(f"{resource} not found{detail}")
        self.resource = resource
        self.entity_id = entity_id


class StorageError(ReconciliationError):
    """The persistence collaborator failed."""

    status = 500

    def __init__(self, message: str, resource: str | None = None, action: str | None = None):
        super().__init__(message)
        self.resource = resource
        self.action = action
