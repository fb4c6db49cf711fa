"""
auth/sessions.py -- Signed cookie sessions.

A session is a tiny value set ({"user": <username>} or empty) serialized
into a single cookie and signed with SECRET_KEY via itsdangerous -- the same
signing library Starlette's SessionMiddleware uses. Nothing is persisted
server-side, so rotating SECRET_KEY invalidates every outstanding session.

SessionManager is created once at startup with the configured secret and
stored on app.state. Routes call:

    session = sessions.get(request)      # never raises; bad cookie -> empty
    session.set_user(username)
    sessions.save(session, response)     # SessionWriteError on failure

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer
from starlette.requests import Request
from starlette.responses import Response

from core.errors import SessionWriteError

logger = logging.getLogger("accounts.sessions")

_USER_KEY = "user"
_SIGNING_SALT = "accounts.session.v1"


@dataclass
class SessionView:
    """In-memory view of one request's session values."""

    values: dict[str, Any] = field(default_factory=dict)

    @property
    def username(self) -> str | None:
        value = self.values.get(_USER_KEY)
        return value if isinstance(value, str) and value else None

    def set_user(self, username: str | None) -> None:
        if username:
            self.values[_USER_KEY] = username
        else:
            self.clear_user()

    def clear_user(self) -> None:
        self.values.pop(_USER_KEY, None)


class SessionManager:
    def __init__(
        self,
        secret_key: str,
        cookie_name: str = "accounts-api",
        max_age: int = 30 * 24 * 3600,
        secure: bool = False,
    ) -> None:
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SIGNING_SALT)

    def get(self, request: Request) -> SessionView:
        """Resolve the request cookie into a SessionView.

        Missing, tampered, expired, or malformed cookies all yield an empty
        view.
        """
        token = request.cookies.get(self.cookie_name)
        if not token:
            return SessionView()
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except BadData:
            logger.info("Ignoring session cookie with invalid signature")
            return SessionView()
        if not isinstance(data, dict):
            return SessionView()
        return SessionView(values=dict(data))

    def save(self, session: SessionView, response: Response) -> None:
        """Write the session to the response as a signed cookie.

        An empty session deletes the cookie instead.
        """
        if not session.values:
            response.delete_cookie(
                self.cookie_name,
                httponly=True,
                samesite="lax",
                secure=self.secure,
            )
            return
        try:
            token = self._serializer.dumps(session.values)
        except (TypeError, ValueError) as exc:
            logger.error("Couldn't serialize session: %s", exc)
            raise SessionWriteError("Couldn't save session.") from exc
        response.set_cookie(
            self.cookie_name,
            value=token,
            max_age=self.max_age,
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )
