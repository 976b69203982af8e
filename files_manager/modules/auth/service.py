"""
Authentication Service Facade following Black Box Design principles.

This module provides:
- A clean interface for authentication that hides implementation details
- Standardized authentication results
- Header parsing for the Basic and X-Token schemes
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from files_manager.modules.storage import User, UserStore

from .interfaces import CredentialChecker, TokenResolver

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Standardized authentication result."""
    ok: bool
    user: Optional[User]
    method: Optional[Literal["basic", "token"]]
    error: Optional[str] = None


def _failure() -> AuthResult:
    # Same result for every cause
    return AuthResult(ok=False, user=None, method=None, error="Unauthorized")


def parse_basic_authorization(authorization: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a Basic Authorization header into (email, password).

    Returns None for a missing header, another scheme, extra header parts,
    invalid base64, non UTF-8 content or a payload without ':'. The
    password is everything after the first ':' and may contain ':'.
    """
    if not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Basic":
        return None

    try:
        decoded = base64.b64decode(parts[1], validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    email, sep, password = decoded.partition(":")
    if not sep:
        return None

    return email, password


class AuthenticationService:
    """
    Resolves request credentials to a User.

    This facade hides the credential verifier, session store and user
    lookups behind two calls, one per scheme. Both are total: every
    failure comes back as a non-ok AuthResult, never as an exception.
    """

    def __init__(
        self,
        credential_checker: CredentialChecker,
        token_resolver: TokenResolver,
        user_store: UserStore,
    ):
        self._credentials = credential_checker
        self._tokens = token_resolver
        self._users = user_store

    async def authenticate_basic(self, authorization: Optional[str]) -> AuthResult:
        """
        Authenticate with the Basic scheme.

        Args:
            authorization: Authorization header value

        Returns:
            AuthResult with the verified User on success
        """
        credentials = parse_basic_authorization(authorization)
        if credentials is None:
            return _failure()

        email, password = credentials
        user = await self._credentials.verify(email, password)
        if user is None:
            return _failure()

        return AuthResult(ok=True, user=user, method="basic")

    async def authenticate_token(self, token: Optional[str]) -> AuthResult:
        """
        Authenticate with a session token.

        Args:
            token: X-Token header value

        Returns:
            AuthResult with the session's User on success
        """
        if not token:
            return _failure()

        user_id = await self._tokens.resolve(token)
        if not user_id:
            return _failure()

        user = await self._users.find_by_id(user_id)
        if user is None:
            logger.info(f"Session token references missing user {user_id}")
            return _failure()

        return AuthResult(ok=True, user=user, method="token")
