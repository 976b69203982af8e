"""
API Module - Black Box Interface

Purpose: HTTP request and response models
Interface: Pydantic models used by the FastAPI routes
Hidden: Validation details

The API layer only orchestrates - it contains no business logic.
All logic is delegated to appropriate modules.
"""

from .models import (
    CreateUserRequest,
    ErrorResponse,
    StatsResponse,
    StatusResponse,
    TokenResponse,
    UserResponse,
)

__all__ = [
    "CreateUserRequest",
    "UserResponse",
    "TokenResponse",
    "StatusResponse",
    "StatsResponse",
    "ErrorResponse",
]
