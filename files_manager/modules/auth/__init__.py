"""
Authentication Module - Black Box Interface

Purpose: Verify Basic credentials and session tokens
Interface: CredentialVerifier.verify(), AuthenticationService, AuthFactory.build()
Hidden: Password hashing, header formats, token storage

This module can be completely replaced with any other auth implementation
(OAuth, JWT, external service) without affecting other modules.
"""

from .credentials import CredentialVerifier, hash_password
from .service import AuthenticationService, AuthResult

__all__ = ["CredentialVerifier", "hash_password", "AuthenticationService", "AuthResult"]
