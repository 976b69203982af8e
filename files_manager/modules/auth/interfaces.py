"""Authentication interfaces following Black Box Design principles."""
from typing import Optional, Protocol

from files_manager.modules.storage import User


class CredentialChecker(Protocol):
    """Protocol for Basic-scheme credential verification."""

    async def verify(self, email: str, password: str) -> Optional[User]:
        """
        Verify an email/password pair.

        Returns:
            The User on success, None otherwise
        """
        ...


class TokenResolver(Protocol):
    """Protocol for session token lookups - allows swappable implementations."""

    async def resolve(self, token: str) -> Optional[str]:
        """
        Resolve a session token.

        Returns:
            User id, or None if the token is unknown or expired
        """
        ...
