"""
Credential verification for the Basic scheme.

Passwords are stored as SHA-1 hex digests so that existing user
documents keep verifying.
"""

import hashlib
import secrets
from typing import Optional

from files_manager.modules.storage import User, UserStore


def hash_password(password: str) -> str:
    """One-way hash of a plaintext password."""
    return hashlib.sha1(password.encode("utf-8")).hexdigest()


class CredentialVerifier:
    """Validates email/password pairs against stored user records."""

    def __init__(self, user_store: UserStore):
        """
        Initialize verifier.

        Args:
            user_store: User persistence collaborator
        """
        self.user_store = user_store

    async def verify(self, email: str, password: str) -> Optional[User]:
        """
        Verify a credential pair.

        Args:
            email: Exact, case-sensitive email
            password: Plaintext password

        Returns:
            The matching User, or None. An unknown email and a wrong
            password are indistinguishable to the caller.
        """
        if not email or password is None:
            return None

        user = await self.user_store.find_by_email(email)
        if user is None:
            return None

        # Constant-time compare
        if not secrets.compare_digest(hash_password(password), user.password_hash):
            return None

        return user
