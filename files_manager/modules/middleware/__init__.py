"""
Authentication Middleware Module - Black Box Interface

Purpose: Gate FastAPI routes behind the Basic or X-Token scheme
Interface: AuthMiddleware.basic / AuthMiddleware.bearer route dependencies
Hidden: Header extraction, credential checks, error formatting

Can be used by any FastAPI app or router that needs authentication.
Completely independent and replaceable.
"""

import logging
from typing import Optional

from fastapi import Request

from files_manager.errors import Unauthenticated
from files_manager.modules.auth.service import AuthenticationService, AuthResult
from files_manager.modules.storage import User

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Token"


class AuthMiddleware:
    """
    Request gates for the two authentication schemes.

    Each gate resolves the request to a User and stores it on
    ``request.state.user``. On any failure it raises Unauthenticated, which
    the application renders as a 401 JSON envelope before the route
    handler runs.
    """

    def __init__(
        self,
        auth_service: AuthenticationService,
        token_header: str = TOKEN_HEADER,
        log_attempts: bool = True
    ):
        """
        Initialize authentication middleware.

        Args:
            auth_service: AuthenticationService resolving credentials to users
            token_header: Header carrying the session token
            log_attempts: Whether to log authentication attempts
        """
        self.auth_service = auth_service
        self.token_header = token_header
        self.log_attempts = log_attempts

    def _accept(self, request: Request, result: AuthResult) -> User:
        if not result.ok:
            if self.log_attempts:
                logger.warning(f"Rejected credentials for {request.method} {request.url.path}")
            raise Unauthenticated()

        if self.log_attempts:
            logger.debug(f"Request authenticated via {result.method} for user {result.user.id}")

        request.state.user = result.user
        return result.user

    async def resolve_basic(self, request: Request) -> AuthResult:
        """Resolve a request with the Basic scheme without raising."""
        return await self.auth_service.authenticate_basic(request.headers.get("Authorization"))

    async def resolve_bearer(self, request: Request) -> AuthResult:
        """Resolve a request with the X-Token scheme without raising."""
        return await self.auth_service.authenticate_token(request.headers.get(self.token_header))

    async def basic(self, request: Request) -> User:
        """Route dependency: require valid Basic credentials."""
        return self._accept(request, await self.resolve_basic(request))

    async def bearer(self, request: Request) -> User:
        """Route dependency: require a live session token."""
        return self._accept(request, await self.resolve_bearer(request))


def get_token(request: Request, token_header: str = TOKEN_HEADER) -> Optional[str]:
    """Read the session token presented with a request."""
    return request.headers.get(token_header)


# Module interface - what this module provides
__all__ = [
    "AuthMiddleware",
    "TOKEN_HEADER",
    "get_token",
]
