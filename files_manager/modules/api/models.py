"""
Files Manager shared API models.

These models define the structure of request and response bodies
exchanged over HTTP.
"""

from typing import Optional

from pydantic import BaseModel, Field

# Request Models (API Input)


class CreateUserRequest(BaseModel):
    """Request to register a user. Fields are checked by the route for exact error messages."""

    email: Optional[str] = Field(None, description="Unique user email")
    password: Optional[str] = Field(None, description="Plaintext password, hashed before storage")


# Response Models (API Output)


class UserResponse(BaseModel):
    """Public view of a user."""

    id: str = Field(..., description="User identifier")
    email: str = Field(..., description="User email")


class TokenResponse(BaseModel):
    """Session token issued by /connect."""

    token: str = Field(..., description="Opaque session token for the X-Token header")


class StatusResponse(BaseModel):
    """Backend liveness."""

    redis: bool = Field(..., description="Whether Redis answered PING")
    db: bool = Field(..., description="Whether MongoDB answered ping")


class StatsResponse(BaseModel):
    """Document counts."""

    users: int = Field(..., ge=0)
    files: int = Field(..., ge=0)


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
