"""
API request and response models for the accounts REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

UserPublic is the only shape a user ever leaves the service in: it has no
password or salt field, so neither can be echoed by accident.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /signup. Unknown fields (e.g. a client-sent salt) are ignored."""

    username: Optional[str] = Field(default=None, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class StatusResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str


class UserPublic(BaseModel):
    """A user as returned by the API."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: Optional[str] = None
    email: str
    created_at: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at or "",
        )


class LoginUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: Optional[str] = None


class LoginResponse(BaseModel):
    """Response for POST /login."""

    model_config = ConfigDict(frozen=True)

    status: str
    user: LoginUser


class UserResponse(BaseModel):
    """Response for GET /users/{user_id}."""

    model_config = ConfigDict(frozen=True)

    user: UserPublic


class CurrentUser(BaseModel):
    """Resolved identity of the caller. user is None when anonymous."""

    model_config = ConfigDict(frozen=True)

    authenticated: bool
    user: Optional[UserPublic] = None


class UserListResponse(BaseModel):
    """Response for GET /users."""

    model_config = ConfigDict(frozen=True)

    users: list[UserPublic]
    current_user: CurrentUser


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
