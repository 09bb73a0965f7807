"""Error taxonomy shared by the repository, service and route layers.

Every error carries a stable, client-safe ``message`` and the HTTP status the
route layer answers with. Store error text never reaches the client; it stays
on ``__cause__`` for the logs.
"""
from __future__ import annotations


class UserApiError(Exception):
    status_code = 500
    default_message = "internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(UserApiError, ValueError):
    status_code = 400
    default_message = "invalid input"


class NotFound(UserApiError):
    status_code = 404
    default_message = "user not found"


class StorageError(UserApiError):
    status_code = 500
    default_message = "storage error"


class DuplicateEmail(StorageError):
    default_message = "email already exists"
