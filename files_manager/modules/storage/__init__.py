"""
Storage Module - Black Box Interface

Purpose: Abstract all data persistence
Interface: connect(), connect_database(), ping(), disconnect()
Hidden: Redis and MongoDB specifics, connection pooling

Can be replaced with any storage backend without affecting other modules.
"""

import logging
import os
from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from .interfaces import FileRecord, FileStore, User, UserStore
from .mongo import MongoFileStore, MongoUserStore

logger = logging.getLogger(__name__)


class StorageModule:
    """Black box storage abstraction."""

    def __init__(
        self,
        connection_url: Optional[str] = None,
        database_url: Optional[str] = None,
        redis_password: Optional[str] = None,
    ):
        """Initialize storage with connection URLs."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.database_url = database_url or os.getenv(
            "MONGO_URL", "mongodb://localhost:27017/files_manager"
        )
        self.redis_password = redis_password
        self._client: Optional[redis.Redis] = None
        self._mongo: Optional[AsyncIOMotorClient] = None

    async def connect(self) -> redis.Redis:
        """Get cache/queue connection."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.redis_password,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def connect_database(self):
        """Get the MongoDB database named in the connection URL."""
        if not self._mongo:
            self._mongo = AsyncIOMotorClient(self.database_url)
        return self._mongo.get_default_database()

    async def ping(self) -> dict:
        """Report liveness of both backends."""
        status = {"redis": False, "db": False}
        if self._client:
            try:
                status["redis"] = bool(await self._client.ping())
            except redis.RedisError as e:
                logger.warning(f"Redis ping failed: {e}")
        if self._mongo:
            try:
                await self._mongo.admin.command("ping")
                status["db"] = True
            except PyMongoError as e:
                logger.warning(f"MongoDB ping failed: {e}")
        return status

    async def disconnect(self):
        """Close storage connections."""
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._mongo:
            self._mongo.close()
            self._mongo = None


__all__ = [
    "StorageModule",
    "User",
    "FileRecord",
    "UserStore",
    "FileStore",
    "MongoUserStore",
    "MongoFileStore",
]
