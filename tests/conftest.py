"""
Shared pytest fixtures for Files Manager tests.

This module provides common fixtures including:
- Redis mocks for token store, session and queue tests
- In-memory Redis with TTL and list semantics for behavioural tests
- In-memory user and file stores
- FastAPI test client wired with the fakes
"""

import asyncio
import fnmatch
import os
import sys
import time
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from files_manager.modules.auth import hash_password
from files_manager.modules.storage import FileRecord, User


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    # Basic operations
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)

    # List operations
    redis.lpush = AsyncMock()
    redis.rpush = AsyncMock()
    redis.rpop = AsyncMock(return_value=None)
    redis.lmove = AsyncMock(return_value=None)
    redis.blmove = AsyncMock(return_value=None)
    redis.lrem = AsyncMock(return_value=1)
    redis.lrange = AsyncMock(return_value=[])
    redis.llen = AsyncMock(return_value=0)

    # Sorted set operations
    redis.zadd = AsyncMock()
    redis.zrem = AsyncMock(return_value=1)
    redis.zrangebyscore = AsyncMock(return_value=[])
    redis.zcard = AsyncMock(return_value=0)

    redis.ping = AsyncMock(return_value=True)

    return redis


class InMemoryRedis:
    """
    Redis double with in-memory data storage for realistic tests.

    Supports the string, list, set and sorted-set commands the modules use,
    plus transactional pipelines, with key expiry driven by a controllable
    clock (see ``advance``).
    """

    def __init__(self):
        self.strings: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.sets: Dict[str, set] = {}
        self.expiry: Dict[str, float] = {}
        self._offset = 0.0

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def advance(self, seconds: float) -> None:
        """Move the clock forward so TTLs elapse."""
        self._offset += seconds

    def _purge(self, key: str) -> None:
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= self._now():
            self.strings.pop(key, None)
            self.expiry.pop(key, None)

    # Strings
    async def set(self, key, value, ex=None, nx=False, *args, **kwargs):
        self._purge(key)
        if nx and key in self.strings:
            return None
        self.strings[key] = str(value)
        if ex:
            self.expiry[key] = self._now() + ex
        else:
            self.expiry.pop(key, None)
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def get(self, key):
        self._purge(key)
        return self.strings.get(key)

    async def expire(self, key, seconds):
        self._purge(key)
        if key not in self.strings:
            return 0
        self.expiry[key] = self._now() + seconds
        return 1

    async def delete(self, *keys):
        count = 0
        for key in keys:
            self._purge(key)
            found = False
            for space in (self.strings, self.lists, self.zsets, self.sets):
                if key in space:
                    del space[key]
                    found = True
            self.expiry.pop(key, None)
            count += int(found)
        return count

    async def exists(self, *keys):
        total = 0
        for key in keys:
            self._purge(key)
            total += int(any(key in space for space in (self.strings, self.lists, self.zsets, self.sets)))
        return total

    async def keys(self, pattern="*"):
        for key in list(self.strings):
            self._purge(key)
        everything = list(self.strings) + list(self.lists) + list(self.zsets) + list(self.sets)
        return [k for k in everything if fnmatch.fnmatch(k, pattern)]

    # Lists (index 0 is the left end)
    def _list(self, key) -> List[str]:
        return self.lists.setdefault(key, [])

    def _drop_empty(self, key) -> None:
        if key in self.lists and not self.lists[key]:
            del self.lists[key]

    async def lpush(self, key, *values):
        lst = self._list(key)
        for value in values:
            lst.insert(0, str(value))
        return len(lst)

    async def rpush(self, key, *values):
        lst = self._list(key)
        lst.extend(str(v) for v in values)
        return len(lst)

    async def rpop(self, key):
        lst = self.lists.get(key)
        if not lst:
            return None
        value = lst.pop()
        self._drop_empty(key)
        return value

    async def lmove(self, first_list, second_list, src="LEFT", dest="RIGHT"):
        lst = self.lists.get(first_list)
        if not lst:
            return None
        value = lst.pop() if src == "RIGHT" else lst.pop(0)
        self._drop_empty(first_list)
        target = self._list(second_list)
        if dest == "LEFT":
            target.insert(0, value)
        else:
            target.append(value)
        return value

    async def blmove(self, first_list, second_list, timeout, src="LEFT", dest="RIGHT"):
        # An empty list behaves like a (short) timeout
        if not self.lists.get(first_list):
            await asyncio.sleep(0.01)
            return None
        return await self.lmove(first_list, second_list, src, dest)

    async def lrem(self, key, count, value):
        lst = self.lists.get(key, [])
        removed = 0
        i = 0
        while i < len(lst) and (count == 0 or removed < abs(count)):
            if lst[i] == value:
                del lst[i]
                removed += 1
            else:
                i += 1
        self._drop_empty(key)
        return removed

    async def lrange(self, key, start, end):
        lst = self.lists.get(key, [])
        return list(lst[start:None if end == -1 else end + 1])

    async def llen(self, key):
        return len(self.lists.get(key, []))

    # Sorted sets
    async def zadd(self, key, mapping):
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update({str(m): float(s) for m, s in mapping.items()})
        return added

    async def zrem(self, key, *members):
        zset = self.zsets.get(key, {})
        removed = 0
        for member in members:
            if member in zset:
                del zset[member]
                removed += 1
        if key in self.zsets and not zset:
            del self.zsets[key]
        return removed

    async def zrangebyscore(self, key, min, max):
        low, high = float(min), float(max)
        zset = self.zsets.get(key, {})
        return [m for m, s in sorted(zset.items(), key=lambda item: item[1]) if low <= s <= high]

    async def zcard(self, key):
        return len(self.zsets.get(key, {}))

    # Sets
    async def sadd(self, key, *members):
        members_set = self.sets.setdefault(key, set())
        added = sum(1 for m in members if str(m) not in members_set)
        members_set.update(str(m) for m in members)
        return added

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def srem(self, key, *members):
        members_set = self.sets.get(key, set())
        removed = sum(1 for m in members if m in members_set)
        members_set.difference_update(members)
        if key in self.sets and not members_set:
            del self.sets[key]
        return removed

    def pipeline(self, transaction=True):
        return InMemoryPipeline(self)

    async def ping(self):
        return True


class InMemoryPipeline:
    """
    MULTI/EXEC double: commands queue up and run together on execute.

    After ``watch`` commands run immediately until ``multi`` is called,
    like redis-py's pipeline. Nothing else touches the store between
    queued commands, so WATCH never aborts here.
    """

    def __init__(self, redis: InMemoryRedis):
        self.redis = redis
        self.watching = False
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.commands = []
        self.watching = False

    async def watch(self, *keys):
        self.watching = True
        return True

    def multi(self):
        self.watching = False

    def __getattr__(self, name):
        method = getattr(self.redis, name)

        def command(*args, **kwargs):
            if self.watching:
                return method(*args, **kwargs)
            self.commands.append((method, args, kwargs))
            return self

        return command

    async def execute(self):
        commands, self.commands = self.commands, []
        return [await method(*args, **kwargs) for method, args, kwargs in commands]


@pytest.fixture
def memory_redis():
    """In-memory Redis double that reads back what it writes."""
    return InMemoryRedis()


# =============================================================================
# Storage Fakes
# =============================================================================

class InMemoryUserStore:
    """UserStore backed by a dict, ids are ObjectId hex strings."""

    def __init__(self):
        self.users: Dict[str, User] = {}

    async def find_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def insert(self, email: str, password_hash: str) -> str:
        user_id = str(ObjectId())
        self.users[user_id] = User(id=user_id, email=email, password_hash=password_hash)
        return user_id

    async def count(self) -> int:
        return len(self.users)

    def add(self, email: str, password: str) -> User:
        """Synchronous helper for arranging tests."""
        user_id = str(ObjectId())
        user = User(id=user_id, email=email, password_hash=hash_password(password))
        self.users[user_id] = user
        return user


class InMemoryFileStore:
    """FileStore backed by a dict."""

    def __init__(self):
        self.files: Dict[str, FileRecord] = {}

    async def find_by_id_and_owner(self, file_id: str, user_id: str) -> Optional[FileRecord]:
        record = self.files.get(file_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def count(self) -> int:
        return len(self.files)

    def add(self, user_id: str, local_path: str, name: str = "image.png") -> FileRecord:
        record = FileRecord(
            id=str(ObjectId()), user_id=user_id, local_path=local_path, name=name, type="image"
        )
        self.files[record.id] = record
        return record


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def file_store():
    return InMemoryFileStore()


@pytest.fixture
def alice(user_store):
    """A registered user alice@x.com / secret."""
    return user_store.add("alice@x.com", "secret")


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def services(memory_redis, user_store, file_store):
    """Module instances wired with in-memory collaborators."""
    from files_manager.main import Services
    from files_manager.modules.auth.factory import AuthFactory
    from files_manager.modules.queue import JobQueue, RetryPolicy

    storage = MagicMock()
    storage.ping = AsyncMock(return_value={"redis": True, "db": True})
    storage.disconnect = AsyncMock()

    return Services(
        storage=storage,
        users=user_store,
        files=file_store,
        auth=AuthFactory.build(memory_redis, user_store),
        queue=JobQueue(memory_redis, RetryPolicy(max_attempts=3, backoff_seconds=0)),
    )


@pytest.fixture
def client(services):
    """FastAPI TestClient over the app with injected services."""
    from fastapi.testclient import TestClient

    from files_manager.main import create_app

    with TestClient(create_app(services=services)) as test_client:
        yield test_client


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end scenarios across API, queue and handlers"
    )
