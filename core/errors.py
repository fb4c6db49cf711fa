"""
core/errors.py -- Error taxonomy for the accounts service.

Every per-request failure is one of the ServiceError subclasses below. Each
carries the HTTP status and the machine-readable code the API layer puts in
the error envelope, so stores and helpers can raise without importing FastAPI.
api/main.py registers one exception handler for the whole hierarchy.

EnvironmentFault is not a ServiceError: it signals a broken
deployment (no secure random source) and aborts startup instead of being
turned into a response.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ServiceError):
    """Bad input shape or type (unparseable body, non-integer id)."""

    status_code = 400
    code = "validation_error"


class Unauthorized(ServiceError):
    """Credentials were presented but did not check out."""

    status_code = 401
    code = "unauthorized"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class Conflict(ServiceError):
    """A uniqueness precondition (unique email) was violated."""

    status_code = 409
    code = "conflict"


class StorageError(ServiceError):
    """Any fault raised by the storage layer."""

    status_code = 500
    code = "storage_error"


class SessionWriteError(ServiceError):
    """The session cookie could not be serialized or signed."""

    status_code = 500
    code = "session_write_error"


class CorruptCredential(ServiceError):
    """A stored password hash or salt is unreadable."""

    status_code = 500
    code = "corrupt_credential"


class EnvironmentFault(RuntimeError):
    """Unrecoverable environment problem, e.g. the OS random source is unavailable."""
