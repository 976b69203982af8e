"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authentication stack from injected collaborators
- Wires dependencies together
- Returns the pieces routes need (request gates and session issuer)
"""

import logging
from dataclasses import dataclass
from typing import Any

from files_manager.modules.cache import TokenStore
from files_manager.modules.middleware import AuthMiddleware
from files_manager.modules.session import SessionIssuer
from files_manager.modules.storage import UserStore

from .credentials import CredentialVerifier
from .service import AuthenticationService

logger = logging.getLogger(__name__)


@dataclass
class AuthStack:
    """Wired authentication components."""
    verifier: CredentialVerifier
    sessions: SessionIssuer
    service: AuthenticationService
    middleware: AuthMiddleware


class AuthFactory:
    """
    Factory for building the authentication stack.

    This is the composition root that:
    - Creates all auth components
    - Wires them together via dependency injection
    - Keeps the concrete cache out of route code
    """

    @staticmethod
    def build(redis_client: Any, user_store: UserStore) -> AuthStack:
        """
        Build the complete authentication stack.

        Args:
            redis_client: Async Redis client backing the token store
            user_store: User persistence collaborator

        Returns:
            AuthStack with verifier, session issuer, service and middleware
        """
        token_store = TokenStore(redis_client)
        verifier = CredentialVerifier(user_store)
        sessions = SessionIssuer(token_store)
        service = AuthenticationService(verifier, sessions, user_store)

        logger.info("Authentication stack built with Basic and X-Token schemes")

        return AuthStack(
            verifier=verifier,
            sessions=sessions,
            service=service,
            middleware=AuthMiddleware(service),
        )
