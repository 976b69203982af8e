"""
Queue Module - Black Box Interface

Purpose: Durable named job queues with at-least-once delivery
Interface: enqueue(), process(), process_next(), run(), counts()
Hidden: Redis list layout, leases, delayed retries, dead-lettering

Can be replaced with RabbitMQ, Kafka, or any message queue.
"""

from .queue import (
    EMAIL_QUEUE,
    QUEUE_NAMES,
    THUMBNAIL_QUEUE,
    Job,
    JobHandler,
    JobQueue,
    JobState,
    RetryPolicy,
)

__all__ = [
    "JobQueue",
    "Job",
    "JobHandler",
    "JobState",
    "RetryPolicy",
    "QUEUE_NAMES",
    "THUMBNAIL_QUEUE",
    "EMAIL_QUEUE",
]
