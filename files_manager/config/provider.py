"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class RedisConfig:
    """Redis configuration (token cache and job queue backend)."""
    host: str
    port: int
    db: int
    password: Optional[str] = None

    @property
    def url(self) -> str:
        return f"redis://{self.host}:{self.port}/{self.db}"


@dataclass
class MongoConfig:
    """MongoDB configuration (users and files collections)."""
    host: str
    port: int
    database: str

    @property
    def url(self) -> str:
        return f"mongodb://{self.host}:{self.port}/{self.database}"


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    log_level: str


@dataclass
class QueueConfig:
    """Job queue retry policy and worker configuration."""
    max_attempts: int
    backoff_seconds: int
    lock_seconds: int
    poll_timeout: int
    worker_queues: List[str] = field(default_factory=list)


@dataclass
class MailConfig:
    """Outbound mail configuration."""
    sender: Optional[str]
    smtp_host: Optional[str]
    smtp_port: int
    smtp_username: Optional[str]
    smtp_password: Optional[str]

    @property
    def is_configured(self) -> bool:
        """Check if an SMTP relay is configured."""
        return bool(self.smtp_host)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_redis_config(self) -> RedisConfig:
        ...

    def get_mongo_config(self) -> MongoConfig:
        ...

    def get_api_config(self) -> APIConfig:
        ...

    def get_queue_config(self) -> QueueConfig:
        ...

    def get_mail_config(self) -> MailConfig:
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_redis_config(self) -> RedisConfig:
        """Get Redis configuration from environment variables."""
        # Kubernetes service links inject REDIS_PORT as tcp://host:port
        port_env = os.getenv("REDIS_PORT", "6379")
        if port_env.startswith("tcp://"):
            port = int(port_env.split(":")[-1])
        else:
            port = _env_int("REDIS_PORT", 6379)

        return RedisConfig(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=port,
            db=_env_int("REDIS_DB", 0),
            password=os.getenv("REDIS_PASSWORD") or None,
        )

    def get_mongo_config(self) -> MongoConfig:
        """Get MongoDB configuration from environment variables."""
        return MongoConfig(
            host=os.getenv("DB_HOST", "localhost"),
            port=_env_int("DB_PORT", 27017),
            database=os.getenv("DB_DATABASE", "files_manager"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=_env_int("PORT", 5000),
            host=os.getenv("API_HOST", "0.0.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def get_queue_config(self) -> QueueConfig:
        """Get job queue configuration from environment variables."""
        queues = os.getenv("WORKER_QUEUES", "thumbnail-generation,email-sending")
        return QueueConfig(
            max_attempts=_env_int("JOB_MAX_ATTEMPTS", 3),
            backoff_seconds=_env_int("JOB_BACKOFF_SECONDS", 5),
            lock_seconds=_env_int("JOB_LOCK_SECONDS", 60),
            poll_timeout=_env_int("JOB_POLL_TIMEOUT", 5),
            worker_queues=[name.strip() for name in queues.split(",") if name.strip()],
        )

    def get_mail_config(self) -> MailConfig:
        """Get outbound mail configuration from environment variables."""
        return MailConfig(
            sender=os.getenv("MAIL_SENDER") or None,
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
        )
