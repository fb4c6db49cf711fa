"""
api/routes/users.py -- User read and delete endpoints.

Routes:
  GET    /users            -- all users plus the caller's resolved identity
  GET    /users/{user_id}  -- one user
  DELETE /users/{user_id}  -- delete one user

A non-integer or out-of-range user_id fails path validation and is rendered as 400 by
api/main.py. No role checks: authorization is out of scope for this service.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from api.models import CurrentUser, StatusResponse, UserListResponse, UserPublic, UserResponse
from auth.dependencies import get_user_store, resolve_identity
from auth.models import Authenticated, Identity
from auth.store import UserStore
from core.errors import NotFound

logger = logging.getLogger("accounts.api.users")

router = APIRouter()

# Ids outside the signed 64-bit range fail validation (400) before reaching SQLite.
UserId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


@router.get("/users", response_model=UserListResponse)
def list_users(
    user_store: UserStore = Depends(get_user_store),
    identity: Identity = Depends(resolve_identity),
) -> UserListResponse:
    users = user_store.list_users()
    if isinstance(identity, Authenticated):
        current = CurrentUser(authenticated=True, user=UserPublic.from_user(identity.user))
    else:
        current = CurrentUser(authenticated=False)
    return UserListResponse(
        users=[UserPublic.from_user(u) for u in users],
        current_user=current,
    )


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: UserId, user_store: UserStore = Depends(get_user_store)) -> UserResponse:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise NotFound(f"Couldn't find user with id {user_id}")
    return UserResponse(user=UserPublic.from_user(user))


@router.delete("/users/{user_id}", response_model=StatusResponse)
def delete_user(user_id: UserId, user_store: UserStore = Depends(get_user_store)) -> StatusResponse:
    """Delete a user. A second delete of the same id is a 404."""
    if not user_store.delete_user(user_id):
        raise NotFound(f"Couldn't delete user with id {user_id}")
    logger.info("Deleted user id=%d", user_id)
    return StatusResponse(status="user deleted")
