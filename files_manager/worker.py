#!/usr/bin/env python3
"""
Files Manager - Worker Entry Point

Runs the background job consumers:
1. Loads configuration
2. Connects Redis and MongoDB
3. Registers the thumbnail and welcome email handlers
4. Delivers jobs until SIGINT/SIGTERM

Start several worker processes to share the load; Redis guarantees each
job is delivered to one of them at a time.
"""

import asyncio
import logging
import signal
from typing import Optional

from files_manager.config.provider import ConfigProvider, EnvConfigProvider, MailConfig
from files_manager.logging_config import configure_logging
from files_manager.modules.jobs import ThumbnailJobHandler, WelcomeEmailJobHandler
from files_manager.modules.mail import LogMailSender, MailSender, SmtpMailSender
from files_manager.modules.media import PillowResizer
from files_manager.modules.queue import EMAIL_QUEUE, THUMBNAIL_QUEUE, JobQueue, RetryPolicy
from files_manager.modules.storage import MongoFileStore, MongoUserStore, StorageModule

logger = logging.getLogger(__name__)


def build_mail_sender(mail_config: MailConfig) -> MailSender:
    """Pick the SMTP transport when configured, otherwise log messages."""
    if mail_config.is_configured:
        return SmtpMailSender(
            sender=mail_config.sender,
            hostname=mail_config.smtp_host,
            port=mail_config.smtp_port,
            username=mail_config.smtp_username,
            password=mail_config.smtp_password,
        )
    logger.warning("SMTP_HOST not set; welcome emails will only be logged")
    return LogMailSender(mail_config.sender or "no-reply@localhost")


def register_handlers(queue: JobQueue, users, files, resizer, mail_sender: MailSender) -> None:
    """Bind each queue to its handler."""
    queue.process(THUMBNAIL_QUEUE, ThumbnailJobHandler(files, resizer))
    queue.process(EMAIL_QUEUE, WelcomeEmailJobHandler(users, mail_sender))


async def run_worker(
    config_provider: Optional[ConfigProvider] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run one delivery loop per configured queue until stop_event is set."""
    config_provider = config_provider or EnvConfigProvider()
    redis_config = config_provider.get_redis_config()
    mongo_config = config_provider.get_mongo_config()
    queue_config = config_provider.get_queue_config()
    stop_event = stop_event or asyncio.Event()

    storage = StorageModule(redis_config.url, mongo_config.url, redis_config.password)
    redis_client = await storage.connect()
    database = storage.connect_database()

    queue = JobQueue(
        redis_client,
        RetryPolicy(queue_config.max_attempts, queue_config.backoff_seconds),
        lock_seconds=queue_config.lock_seconds,
    )
    register_handlers(
        queue,
        MongoUserStore(database),
        MongoFileStore(database),
        PillowResizer(),
        build_mail_sender(config_provider.get_mail_config()),
    )

    logger.info(f"Worker {queue.worker_id} starting on {', '.join(queue_config.worker_queues)}")
    try:
        await asyncio.gather(*(
            queue.run(name, poll_timeout=queue_config.poll_timeout, stop_event=stop_event)
            for name in queue_config.worker_queues
        ))
    finally:
        await storage.disconnect()
        logger.info(f"Worker {queue.worker_id} shut down")


def main() -> None:
    config_provider = EnvConfigProvider()
    configure_logging(config_provider.get_api_config().log_level)

    async def _main():
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)
        await run_worker(config_provider, stop_event)

    asyncio.run(_main())


if __name__ == "__main__":
    main()
