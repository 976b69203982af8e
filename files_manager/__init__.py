"""
Files Manager - authentication and background jobs for a file-management API

Architecture:
- Each module is self-contained with clear interfaces
- Collaborators (cache, database, mail, image resizing) are injected
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- cache: Token store with per-key expiration
- auth: Credential verification and the auth stack factory
- session: Opaque session token lifecycle
- middleware: Basic and X-Token request gates
- queue: Durable named job queue with retries
- jobs: Thumbnail generation and welcome email handlers
- storage: User and file record stores
- media: Raster resizing
- mail: Outbound email
"""

__version__ = "1.0.0"
