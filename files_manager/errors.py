"""
Error taxonomy shared by the HTTP layer and the job workers.

Every error carries the HTTP status it maps to and whether the job queue
may retry a job that failed with it.
"""

from typing import Optional


class FilesManagerError(Exception):
    """Base class for all errors raised by Files Manager modules."""

    status_code: int = 500
    retriable: bool = True
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FilesManagerError):
    """Missing or malformed input. Fails identically on every attempt."""

    status_code = 400
    retriable = False
    default_message = "Invalid input"


class Unauthenticated(FilesManagerError):
    """Bad, missing or expired credentials. Detail is never exposed."""

    status_code = 401
    retriable = False
    default_message = "Unauthorized"


class NotFoundError(FilesManagerError):
    """A referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class TransientIOError(FilesManagerError):
    """A collaborator (cache, database, mail transport) is unavailable."""

    status_code = 500
    default_message = "Internal server error"


__all__ = [
    "FilesManagerError",
    "ValidationError",
    "Unauthenticated",
    "NotFoundError",
    "TransientIOError",
]
