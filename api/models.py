"""
API request and response models for the task server REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py,
tasks/models.py, and core/models.py, which own the internal domain
representation. Route handlers map between the two.

Response models serialize with camelCase aliases (insertedId, deletedCount,
matchedCount, modifiedCount) -- the field names clients of the task server
already consume.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from core.models import DeleteResult, InsertResult, UpdateResult

# ---------------------------------------------------------------------------
# Shared config
# ---------------------------------------------------------------------------

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    """One failed validation rule. loc is the dotted path to the offending field."""

    loc: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Envelope for every error the API returns."""

    kind: str
    message: str
    errors: Optional[list[FieldError]] = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /signup.

    Only the first 72 UTF-8 bytes of the password take part in hashing (see
    auth/tokens.py); max_length just bounds the request size.
    """

    name: str = Field(default="", max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=255)


class LoginRequest(BaseModel):
    email: str
    password: str


class InsertResultResponse(BaseModel):
    model_config = _CAMEL

    acknowledged: bool
    inserted_id: int

    @classmethod
    def from_result(cls, result: InsertResult) -> "InsertResultResponse":
        return cls(acknowledged=result.acknowledged, inserted_id=result.inserted_id)


class SignupResponse(BaseModel):
    message: str
    result: InsertResultResponse


class PublicUser(BaseModel):
    """The user fields safe to return to clients. Never includes the password hash."""

    email: str
    name: str


class LoginResponse(BaseModel):
    message: str
    token: str
    user: PublicUser


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /task.

    title is the only required key. The named optional fields are type-checked
    when present; any other keys pass through to the stored document as-is.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = None
    deadline: Optional[str] = None
    status: Optional[str] = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class DeleteTaskResponse(BaseModel):
    model_config = _CAMEL

    message: str
    deleted_count: int

    @classmethod
    def from_result(cls, result: DeleteResult) -> "DeleteTaskResponse":
        return cls(message="Task deleted", deleted_count=result.deleted_count)


class StatusUpdateResponse(BaseModel):
    model_config = _CAMEL

    message: str
    matched_count: int
    modified_count: int

    @classmethod
    def from_result(cls, result: UpdateResult) -> "StatusUpdateResponse":
        message = "Task marked as complete" if result.modified_count else "Task already complete"
        return cls(
            message=message,
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
