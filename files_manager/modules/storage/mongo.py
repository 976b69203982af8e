import logging
from typing import Any, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from files_manager.errors import TransientIOError

from .interfaces import FileRecord, User

logger = logging.getLogger(__name__)


def _object_id(value: Any) -> Optional[ObjectId]:
    """Parse a hex id, returning None for anything that is not an ObjectId."""
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except InvalidId:
        return None


class MongoUserStore:
    def __init__(self, database):
        """
        Initialize user store.

        Args:
            database: motor AsyncIOMotorDatabase
        """
        self.collection = database["users"]

    @staticmethod
    def _to_user(doc: Mapping[str, Any]) -> User:
        return User(id=str(doc["_id"]), email=doc["email"], password_hash=doc["password"])

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            doc = await self.collection.find_one({"email": email})
        except PyMongoError as e:
            raise TransientIOError(f"User lookup failed: {e}") from e
        return self._to_user(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise TransientIOError(f"User lookup failed: {e}") from e
        return self._to_user(doc) if doc else None

    async def insert(self, email: str, password_hash: str) -> str:
        try:
            result = await self.collection.insert_one({"email": email, "password": password_hash})
        except PyMongoError as e:
            raise TransientIOError(f"User insert failed: {e}") from e
        return str(result.inserted_id)

    async def count(self) -> int:
        return await self.collection.count_documents({})


class MongoFileStore:
    def __init__(self, database):
        """
        Initialize file store.

        Args:
            database: motor AsyncIOMotorDatabase
        """
        self.collection = database["files"]

    async def find_by_id_and_owner(self, file_id: str, user_id: str) -> Optional[FileRecord]:
        file_oid = _object_id(file_id)
        user_oid = _object_id(user_id)
        if file_oid is None or user_oid is None:
            return None

        try:
            doc = await self.collection.find_one({"_id": file_oid, "userId": user_oid})
        except PyMongoError as e:
            raise TransientIOError(f"File lookup failed: {e}") from e

        if not doc:
            return None

        return FileRecord(
            id=str(doc["_id"]),
            user_id=str(doc["userId"]),
            local_path=doc.get("localPath", ""),
            name=doc.get("name"),
            type=doc.get("type"),
        )

    async def count(self) -> int:
        return await self.collection.count_documents({})
