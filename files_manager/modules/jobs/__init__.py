"""
Jobs Module - Black Box Interface

Purpose: Consumer-side handlers for the background queues
Interface: ThumbnailJobHandler, WelcomeEmailJobHandler (callables taking a Job)
Hidden: Payload validation, collaborator lookups, output naming

Each handler returns None on success or an error object for the queue.
"""

from .thumbnail import THUMBNAIL_WIDTHS, ThumbnailJobHandler, thumbnail_path
from .welcome_email import WELCOME_BODY, WELCOME_SUBJECT, WelcomeEmailJobHandler

__all__ = [
    "ThumbnailJobHandler",
    "WelcomeEmailJobHandler",
    "THUMBNAIL_WIDTHS",
    "WELCOME_SUBJECT",
    "WELCOME_BODY",
    "thumbnail_path",
]
