#!/usr/bin/env python3
"""
Files Manager - API Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Serves the HTTP routes

All business logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from files_manager.config.provider import ConfigProvider, EnvConfigProvider
from files_manager.errors import FilesManagerError, ValidationError
from files_manager.logging_config import configure_logging, get_logging_config
from files_manager.modules.api import (
    CreateUserRequest,
    ErrorResponse,
    StatsResponse,
    StatusResponse,
    TokenResponse,
    UserResponse,
)
from files_manager.modules.auth import hash_password
from files_manager.modules.auth.factory import AuthFactory, AuthStack
from files_manager.modules.middleware import get_token
from files_manager.modules.queue import EMAIL_QUEUE, JobQueue, RetryPolicy
from files_manager.modules.storage import (
    FileStore,
    MongoFileStore,
    MongoUserStore,
    StorageModule,
    User,
    UserStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Module instances shared by the routes."""
    storage: Any
    users: UserStore
    files: FileStore
    auth: AuthStack
    queue: JobQueue


async def build_services(config_provider: ConfigProvider) -> Services:
    """Connect backends and wire every module (composition root)."""
    redis_config = config_provider.get_redis_config()
    mongo_config = config_provider.get_mongo_config()
    queue_config = config_provider.get_queue_config()

    storage = StorageModule(redis_config.url, mongo_config.url, redis_config.password)
    redis_client = await storage.connect()
    database = storage.connect_database()

    users = MongoUserStore(database)
    files = MongoFileStore(database)

    return Services(
        storage=storage,
        users=users,
        files=files,
        auth=AuthFactory.build(redis_client, users),
        queue=JobQueue(
            redis_client,
            RetryPolicy(queue_config.max_attempts, queue_config.backoff_seconds),
            lock_seconds=queue_config.lock_seconds,
        ),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


async def require_basic(request: Request) -> User:
    """Route dependency for the Basic scheme."""
    return await get_services(request).auth.middleware.basic(request)


async def require_token(request: Request) -> User:
    """Route dependency for the X-Token scheme."""
    return await get_services(request).auth.middleware.bearer(request)


def create_app(
    services: Optional[Services] = None,
    config_provider: Optional[ConfigProvider] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        services: Pre-built modules (tests inject fakes here). When None,
            modules are built from configuration at startup.
        config_provider: Configuration source, environment by default
    """
    config_provider = config_provider or EnvConfigProvider()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        owned = services is None

        logger.info("Starting Files Manager API...")
        app.state.services = services if not owned else await build_services(config_provider)
        logger.info("Files Manager API started successfully")

        yield

        logger.info("Shutting down Files Manager API...")
        if owned:
            await app.state.services.storage.disconnect()
        logger.info("Files Manager API shutdown complete")

    app = FastAPI(
        title="Files Manager API",
        description="Files Manager - simple file management API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Error handlers

    def error_response(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())

    @app.exception_handler(FilesManagerError)
    async def files_manager_error_handler(request, exc: FilesManagerError):
        """Render module errors as the JSON error envelope."""
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request, exc: RequestValidationError):
        """Render malformed request bodies as a 400 naming the first bad field."""
        errors = exc.errors()
        loc = errors[0].get("loc", ()) if errors else ()
        field = loc[-1] if loc and isinstance(loc[-1], str) else "request body"
        return error_response(400, f"Invalid {field}")

    @app.exception_handler(RedisError)
    async def redis_error_handler(request, exc):
        """Handle Redis errors."""
        logger.error(f"Redis error: {exc}")
        return error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request, exc):
        """Render anything else as a bare 500."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(500, "Internal server error")

    # Status Endpoints

    @app.get("/status", response_model=StatusResponse)
    async def get_status(svc: Services = Depends(get_services)):
        """Report whether Redis and MongoDB are reachable."""
        return await svc.storage.ping()

    @app.get("/stats", response_model=StatsResponse)
    async def get_stats(svc: Services = Depends(get_services)):
        """Report the number of users and files."""
        return StatsResponse(users=await svc.users.count(), files=await svc.files.count())

    # User Endpoints

    @app.post("/users", response_model=UserResponse, status_code=201)
    async def post_new(
        body: Optional[CreateUserRequest] = Body(None),
        svc: Services = Depends(get_services),
    ):
        """
        Register a user and schedule the welcome email.

        Returns:
            201: User created
            400: Missing email, missing password or email already registered
        """
        email = body.email if body else None
        password = body.password if body else None

        if not email:
            raise ValidationError("Missing email")
        if not password:
            raise ValidationError("Missing password")

        if await svc.users.find_by_email(email):
            raise ValidationError("Already exist")

        user_id = await svc.users.insert(email, hash_password(password))
        await svc.queue.enqueue(EMAIL_QUEUE, {"userId": user_id})

        logger.info(f"Registered user {user_id}")
        return UserResponse(id=user_id, email=email)

    @app.get("/users/me", response_model=UserResponse)
    async def get_me(user: User = Depends(require_token)):
        """Return the user owning the presented session token."""
        return UserResponse(id=user.id, email=user.email)

    # Session Endpoints

    @app.get("/connect", response_model=TokenResponse)
    async def get_connect(user: User = Depends(require_basic), svc: Services = Depends(get_services)):
        """
        Exchange Basic credentials for a session token.

        Returns:
            200: Token issued
            401: Unauthorized
        """
        token = await svc.auth.sessions.issue(user.id)
        return TokenResponse(token=token)

    @app.get("/disconnect", status_code=204)
    async def get_disconnect(
        request: Request,
        user: User = Depends(require_token),
        svc: Services = Depends(get_services),
    ):
        """
        Revoke the presented session token.

        Returns:
            204: Signed out
            401: Unauthorized
        """
        await svc.auth.sessions.revoke(get_token(request))
        return Response(status_code=204)

    return app


app = create_app()


def main() -> None:
    """Run the API server with uvicorn."""
    api_config = EnvConfigProvider().get_api_config()
    configure_logging(api_config.log_level)

    uvicorn.run(
        app,
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
