"""
Cache Module - Black Box Interface

Purpose: Key-value storage with per-key expiration
Interface: set(), get(), delete()
Hidden: Redis commands, byte decoding

Replaceable with any cache exposing the Cache protocol (memcached, in-memory).
"""

from .token_store import Cache, TokenStore

__all__ = ["Cache", "TokenStore"]
