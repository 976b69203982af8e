from typing import Optional, Protocol


class Cache(Protocol):
    """Protocol for expiring key-value stores used by the auth stack."""

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    async def get(self, key: str) -> Optional[str]:
        ...

    async def delete(self, key: str) -> None:
        ...


class TokenStore:
    def __init__(self, redis_client):
        """
        Initialize token store.

        Args:
            redis_client: Async Redis client
        """
        self.redis = redis_client

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """
        Store value under key, replacing any previous entry.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Seconds until the entry behaves as absent
        """
        if not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be a positive integer, got {ttl_seconds!r}")

        await self.redis.setex(key, ttl_seconds, value)

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if missing or expired."""
        value = await self.redis.get(key)
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        await self.redis.delete(key)
