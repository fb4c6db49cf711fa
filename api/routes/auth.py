"""
api/routes/auth.py -- Registration and session endpoints.

Routes:
  POST /signup   -- register a new account; 201
  POST /login    -- email/password login; sets the session cookie; 202
  POST /logout   -- clears the session cookie; 200

Body parsing failures (wrong Content-Type, malformed JSON, missing fields) are
RequestValidationErrors and are rendered as 400 by api/main.py.

Security:
  Passwords are salted and hashed before the User ever reaches the store.
  Login responses carry Cache-Control: no-store.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, LoginUser, SignupRequest, StatusResponse
from auth.credentials import authenticate, hash_and_salt
from auth.dependencies import get_session_manager, get_user_store
from auth.models import User
from auth.sessions import SessionManager
from auth.store import UserStore
from core.config import Settings, get_settings
from core.errors import Conflict, NotFound, Unauthorized

logger = logging.getLogger("accounts.api.auth")

router = APIRouter()


@router.post("/signup", response_model=StatusResponse, status_code=201)
def sign_up(
    body: SignupRequest,
    user_store: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    """Register a new account.

    The get_by_email() check only saves a bcrypt round for an obvious
    duplicate; the UNIQUE(email) constraint makes create_user() raise Conflict
    if a concurrent signup wins the race.
    """
    if user_store.get_by_email(body.email) is not None:
        raise Conflict("user with that email already exists")

    hashed_password, salt = hash_and_salt(body.password, rounds=settings.bcrypt_rounds)
    user_id = user_store.create_user(
        User(
            username=body.username,
            email=body.email,
            hashed_password=hashed_password,
            salt=salt,
        )
    )
    logger.info("Signed up user id=%d", user_id)
    return StatusResponse(status="Signed up")


@router.post("/login", response_model=LoginResponse, status_code=202)
def login(
    request: Request,
    body: LoginRequest,
    user_store: UserStore = Depends(get_user_store),
    sessions: SessionManager = Depends(get_session_manager),
) -> JSONResponse:
    """Authenticate with email and password and store the username in the session."""
    try:
        user = authenticate(user_store, body.email, body.password)
    except (NotFound, Unauthorized) as exc:
        logger.warning("Failed login: %s", exc.message)
        raise

    session = sessions.get(request)
    session.set_user(user.username)
    resp = JSONResponse(
        status_code=202,
        content=LoginResponse(status="Logged in", user=LoginUser(username=user.username)).model_dump(),
    )
    sessions.save(session, resp)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("Logged in user id=%d", user.id)
    return resp


@router.post("/logout", response_model=StatusResponse)
def logout(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> JSONResponse:
    """Clear the session user and rewrite the cookie."""
    session = sessions.get(request)
    session.clear_user()
    resp = JSONResponse(content=StatusResponse(status="Logged out").model_dump())
    sessions.save(session, resp)
    return resp
