import logging
import uuid
from typing import Optional

from files_manager.modules.cache import Cache

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX = "auth_"
SESSION_TTL = 24 * 60 * 60


class SessionIssuer:
    def __init__(self, token_store: Cache, ttl: int = SESSION_TTL):
        """
        Initialize session issuer.

        Args:
            token_store: Expiring key-value store (see Cache protocol)
            ttl: Session TTL in seconds (24 hours)
        """
        self.token_store = token_store
        self.ttl = ttl

    @staticmethod
    def token_key(token: str) -> str:
        """Namespaced cache key for a session token."""
        return f"{TOKEN_KEY_PREFIX}{token}"

    async def issue(self, user_id: str) -> str:
        """
        Mint a new session token for a user.

        Args:
            user_id: Identifier of the authenticated user

        Returns:
            Opaque token (UUID4). Every call returns a new token, even for
            the same user; earlier tokens stay valid until revoked or expired.
        """
        token = str(uuid.uuid4())

        await self.token_store.set(self.token_key(token), str(user_id), self.ttl)
        logger.info(f"Session issued for user {user_id}")

        return token

    async def resolve(self, token: str) -> Optional[str]:
        """
        Get the user id a token maps to.

        Returns:
            User id, or None if the token is unknown, revoked or expired
        """
        if not token:
            return None
        return await self.token_store.get(self.token_key(token))

    async def revoke(self, token: str) -> None:
        """
        End a session early.

        Revoking a token that was never issued or already expired is a no-op.
        """
        if not token:
            return
        await self.token_store.delete(self.token_key(token))
