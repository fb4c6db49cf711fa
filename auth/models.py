"""
auth/models.py -- Domain dataclasses for accounts and request identity.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; the store and routes do the work. API transport models live in
api/models.py and never expose hashed_password or salt.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is the login key and is unique at the storage layer. username is an
    optional display name with no uniqueness guarantee.

    hashed_password is the bcrypt hash of password || salt, never the
    plaintext. salt is the hex encoding of 32 random bytes generated once at
    signup.
    """

    email: str
    username: str | None = None
    id: int | None = None
    hashed_password: str | None = None
    salt: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Anonymous:
    """No session, or a session that no longer resolves to a stored user."""

    authenticated = False


@dataclass(frozen=True)
class Authenticated:
    user: User

    authenticated = True


# Result of best-effort identity resolution (see auth/dependencies.py).
Identity = Anonymous | Authenticated
