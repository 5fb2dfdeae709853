"""
core/errors.py -- Error taxonomy shared by the auth, task, and API layers.

Every failure the server reports deliberately is a TaskServerError. The API
layer registers one exception handler for the base class and renders the
same envelope for all of them:

    {"kind": "<machine-readable kind>", "message": "<human text>"}

Stores and auth helpers raise these; route handlers let them propagate.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

from typing import Any


class TaskServerError(Exception):
    """Base class for errors that map onto a structured HTTP response."""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, message: str, *, status_code: int | None = None, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class ValidationError(TaskServerError):
    """Malformed client input (signup fields, task documents)."""

    status_code = 400
    kind = "validation_error"


class AuthenticationError(TaskServerError):
    """Missing, invalid, or expired token, or bad credentials.

    Defaults to 401. A request that carries no token at all is raised with
    status_code=403.
    """

    status_code = 401
    kind = "authentication_error"


class ConflictError(TaskServerError):
    """A uniqueness rule was violated (e.g. signup with a registered email)."""

    status_code = 400
    kind = "conflict"


class NotFoundError(TaskServerError):
    status_code = 404
    kind = "not_found"


class StorageFault(TaskServerError):
    """The storage driver failed. The driver's message is logged, never returned."""

    status_code = 500
    kind = "storage_fault"
