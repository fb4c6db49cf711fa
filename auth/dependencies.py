"""
auth/dependencies.py -- FastAPI Depends() helpers for request identity.

resolve_identity() is best-effort: no cookie, a bad signature, a session with
no username, a user deleted after login, or a storage fault while looking the
user up all resolve to Anonymous rather than an error. Callers branch on
isinstance(identity, Authenticated) instead of inspecting an empty User.

Layer rule: auth/dependencies.py may import from fastapi because it is part
of the FastAPI dependency injection system, but never from api/.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Anonymous, Authenticated, Identity
from auth.sessions import SessionManager
from auth.store import UserStore
from core.errors import StorageError

logger = logging.getLogger("accounts.auth")


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def resolve_identity(request: Request) -> Identity:
    """Resolve the session cookie to the stored user it names, or Anonymous.

    Never raises. Use as a FastAPI dependency:
        @router.get("/users")
        def route(identity: Identity = Depends(resolve_identity)): ...
    """
    sessions: SessionManager = request.app.state.sessions
    username = sessions.get(request).username
    if username is None:
        return Anonymous()

    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_by_username(username)
    except StorageError:
        logger.warning("Identity lookup failed; treating request as anonymous")
        return Anonymous()
    if user is None:
        return Anonymous()
    return Authenticated(user)
