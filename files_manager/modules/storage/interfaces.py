"""Storage interfaces following Black Box Design principles."""
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class User:
    """A registered user. The password is only ever held as a hash."""
    id: str
    email: str
    password_hash: str


@dataclass(frozen=True)
class FileRecord:
    """File metadata owned by a user."""
    id: str
    user_id: str
    local_path: str
    name: Optional[str] = None
    type: Optional[str] = None


class UserStore(Protocol):
    """Protocol for user persistence - allows swappable implementations."""

    async def find_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive lookup by email."""
        ...

    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def insert(self, email: str, password_hash: str) -> str:
        """Create a user and return its storage-assigned id."""
        ...

    async def count(self) -> int:
        ...


class FileStore(Protocol):
    """Protocol for file metadata lookups."""

    async def find_by_id_and_owner(self, file_id: str, user_id: str) -> Optional[FileRecord]:
        """Return the file only if it exists and belongs to user_id."""
        ...

    async def count(self) -> int:
        ...
