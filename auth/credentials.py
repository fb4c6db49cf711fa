"""
auth/credentials.py -- Password salting, hashing, and verification.

Security design decisions:
  Salt: 32 bytes from the OS CSPRNG (secrets.token_bytes), generated once per
       user at signup and stored hex-encoded next to the hash. The salt is not
       secret; its job is to make precomputed tables useless across users.

  Hash: bcrypt over password || salt. bcrypt only reads the first 72 bytes of
       its input, so a long password would silently push the salt out of the
       hashed material. The concatenation is therefore reduced with SHA-256
       and base64-encoded (44 ASCII bytes, no NULs) before it reaches bcrypt.
       The order password-then-salt must be reproduced exactly at verify time.

  Cost: bcrypt rounds come from Settings.bcrypt_rounds. Tests run with the
       minimum (4) to stay fast.

  Verify: bcrypt.checkpw does a constant-time comparison. A mismatch is a
       plain False; only an unreadable stored hash or salt raises.

An unavailable random source raises EnvironmentFault. That is a broken
deployment, not a request error -- ensure_entropy() probes it at startup so
the process refuses to come up at all.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from typing import TYPE_CHECKING

import bcrypt

from core.errors import CorruptCredential, EnvironmentFault, NotFound, Unauthorized

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("accounts.auth")

SALT_BYTES = 32
DEFAULT_ROUNDS = 12


def _random_salt() -> bytes:
    try:
        return secrets.token_bytes(SALT_BYTES)
    except (NotImplementedError, OSError) as exc:
        logger.critical("Secure random source unavailable: %s", exc)
        raise EnvironmentFault("couldn't create salt: secure random source unavailable") from exc


def ensure_entropy() -> None:
    """Fail fast at startup if the OS random source cannot produce a salt."""
    _random_salt()


def _salted(password: str, salt: bytes) -> bytes:
    """Return the bcrypt input for password || salt."""
    digest = hashlib.sha256(password.encode("utf-8") + salt).digest()
    return base64.b64encode(digest)


def hash_and_salt(password: str, rounds: int = DEFAULT_ROUNDS) -> tuple[str, str]:
    """Return (bcrypt_hash, hex_salt) for a new credential.

    Two calls with the same password produce different salts and therefore
    different hashes.
    """
    salt = _random_salt()
    hashed = bcrypt.hashpw(_salted(password, salt), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8"), salt.hex()


def verify_password(stored_hash: str, salt: str, candidate: str) -> bool:
    """Return True if candidate matches the stored hash+salt pair.

    Raises CorruptCredential if the stored hash or salt cannot be decoded.
    """
    try:
        salt_bytes = bytes.fromhex(salt)
        return bcrypt.checkpw(_salted(candidate, salt_bytes), stored_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError) as exc:
        raise CorruptCredential("Stored credential is unreadable.") from exc


def authenticate(store: UserStore, email: str, password: str) -> User:
    """Resolve an email/password login to a stored User.

    Raises NotFound if no account has this email and Unauthorized if the
    record does not echo the presented email exactly or the password is wrong.
    """
    user = store.get_by_email(email)
    if user is None:
        raise NotFound("User not found")
    if user.email != email:
        raise Unauthorized("incorrect email")
    if not verify_password(user.hashed_password, user.salt, password):
        raise Unauthorized("incorrect password")
    return user
