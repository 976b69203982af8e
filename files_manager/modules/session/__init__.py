"""
Session Module - Black Box Interface

Purpose: Manage opaque session token lifecycle
Interface: issue(), resolve(), revoke()
Hidden: Token format, key namespacing, TTL management

Replaceable with any session backend (database, in-memory, distributed cache).
"""

from .session import SESSION_TTL, TOKEN_KEY_PREFIX, SessionIssuer

__all__ = ["SessionIssuer", "SESSION_TTL", "TOKEN_KEY_PREFIX"]
