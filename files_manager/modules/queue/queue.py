import asyncio
import contextlib
import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from redis.exceptions import RedisError, WatchError

from files_manager.errors import ValidationError

logger = logging.getLogger(__name__)

THUMBNAIL_QUEUE = "thumbnail-generation"
EMAIL_QUEUE = "email-sending"
QUEUE_NAMES = (THUMBNAIL_QUEUE, EMAIL_QUEUE)


class JobState(str, Enum):
    """Lifecycle of a queued job."""

    PENDING = "pending"
    ACTIVE = "active"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class Job:
    """A unit of deferred work owned by the queue until it reaches a terminal state."""

    id: str
    queue_name: str
    payload: Dict[str, Any]
    state: JobState = JobState.PENDING
    attempts: int = 0
    max_attempts: int = 3
    enqueued_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    available_at: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    last_error: Optional[str] = None

    def to_json(self) -> str:
        data = asdict(self)
        data["state"] = self.state.value
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> "Job":
        data = json.loads(raw)
        data["state"] = JobState(data.get("state", JobState.PENDING.value))
        return cls(**data)


@dataclass
class RetryPolicy:
    """
    When and how often a failed job is attempted again.

    Attempt n (1-based) that fails is retried after
    backoff_seconds * 2 ** (n - 1) seconds, until max_attempts is reached.
    """

    max_attempts: int = 3
    backoff_seconds: int = 5

    def delay_for(self, attempts: int) -> int:
        if self.backoff_seconds <= 0:
            return 0
        return self.backoff_seconds * 2 ** max(0, attempts - 1)


# A handler returns None on success or an exception object describing the failure.
JobHandler = Callable[[Job], Awaitable[Optional[BaseException]]]


class JobQueue:
    def __init__(
        self,
        redis_client,
        retry_policy: Optional[RetryPolicy] = None,
        lock_seconds: int = 60,
        completed_ttl: int = 3600,
        queue_names: Iterable[str] = QUEUE_NAMES,
    ):
        """
        Initialize queue module.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            retry_policy: Retry policy applied to failed jobs
            lock_seconds: Lease a worker holds on an active job
            completed_ttl: Seconds a succeeded job record stays inspectable
            queue_names: Queue names this queue accepts
        """
        self.redis = redis_client
        self.retry_policy = retry_policy or RetryPolicy()
        self.lock_seconds = lock_seconds
        self.completed_ttl = completed_ttl
        self.queue_names = tuple(queue_names)
        self.worker_id = str(uuid.uuid4())
        self._handlers: Dict[str, JobHandler] = {}

    # Key helpers
    @staticmethod
    def _key(queue_name: str, part: str) -> str:
        return f"queue:{queue_name}:{part}"

    @staticmethod
    def _job_key(job_id: str) -> str:
        return f"job:{job_id}"

    @staticmethod
    def _lock_key(job_id: str) -> str:
        return f"job:{job_id}:lock"

    def _check_queue_name(self, queue_name: str) -> None:
        if queue_name not in self.queue_names:
            raise ValidationError(f"Unknown queue: {queue_name}")

    def _write(self, client, job: Job, ttl: Optional[int] = None):
        """Issue the record write on a client or a pipeline."""
        if ttl:
            return client.setex(self._job_key(job.id), ttl, job.to_json())
        return client.set(self._job_key(job.id), job.to_json())

    async def _save(self, job: Job, ttl: Optional[int] = None) -> None:
        await self._write(self.redis, job, ttl)

    async def enqueue(self, queue_name: str, payload: Dict[str, Any]) -> str:
        """
        Add a job to a named queue.

        Args:
            queue_name: One of the accepted queue names
            payload: Small mapping of identifiers for the handler

        Returns:
            Job ID, once the job is stored in Redis

        Logic:
        1. Persist the job record
        2. Push its id onto the waiting list (LPUSH, consumed from the right)
        """
        self._check_queue_name(queue_name)
        if not isinstance(payload, dict):
            raise ValidationError("Job payload must be a mapping")

        job = Job(
            id=str(uuid.uuid4()),
            queue_name=queue_name,
            payload=dict(payload),
            max_attempts=self.retry_policy.max_attempts,
        )

        await self._save(job)
        await self.redis.lpush(self._key(queue_name, "waiting"), job.id)

        logger.info(f"Job {job.id} accepted on {queue_name}")
        return job.id

    def process(self, queue_name: str, handler: JobHandler) -> None:
        """
        Register the handler for a queue in this worker process.

        Only one handler per queue name is allowed.
        """
        self._check_queue_name(queue_name)
        if queue_name in self._handlers:
            raise ValueError(f"A handler is already registered for {queue_name}")
        self._handlers[queue_name] = handler

    async def reserve(self, queue_name: str, wait: int = 0) -> Optional[Job]:
        """
        Take the next job off the waiting list.

        Args:
            queue_name: Queue to pull from
            wait: Seconds to block for a job (0 = non-blocking)

        Returns:
            The job, now active and leased to this worker, or None

        LMOVE/BLMOVE moves the id to the active list atomically, so two
        workers never receive the same job. The lease is taken right after
        the move; recover_stalled only requeues a job seen without a lease
        on two checks a lease period apart, so the short window between
        move and lease is never mistaken for a dead worker.
        """
        await self.promote_delayed(queue_name)

        waiting = self._key(queue_name, "waiting")
        active = self._key(queue_name, "active")

        if wait > 0:
            job_id = await self.redis.blmove(waiting, active, wait, "RIGHT", "LEFT")
        else:
            job_id = await self.redis.lmove(waiting, active, "RIGHT", "LEFT")

        if not job_id:
            return None

        await self.redis.set(self._lock_key(job_id), self.worker_id, ex=self.lock_seconds)

        raw = await self.redis.get(self._job_key(job_id))
        if not raw:
            # Record vanished; ack and skip
            logger.warning(f"Dropping job {job_id} on {queue_name}: record missing")
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.lrem(active, 1, job_id)
                pipe.delete(self._lock_key(job_id))
                await pipe.execute()
            return None

        job = Job.from_json(raw)
        job.state = JobState.ACTIVE
        job.attempts += 1
        job.started_at = datetime.now(UTC).isoformat()
        await self._save(job)

        return job

    async def complete(self, job: Job) -> None:
        """Mark a job succeeded and remove it from further delivery."""
        job.state = JobState.SUCCEEDED
        job.finished_at = datetime.now(UTC).isoformat()
        job.last_error = None

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.lrem(self._key(job.queue_name, "active"), 1, job.id)
            pipe.delete(self._lock_key(job.id))
            self._write(pipe, job, ttl=self.completed_ttl)
            await pipe.execute()

        logger.info(f"Job {job.id} on {job.queue_name} succeeded (attempt {job.attempts})")

    def _dead_letter(self, pipe, job: Job) -> None:
        job.state = JobState.FAILED
        job.finished_at = datetime.now(UTC).isoformat()
        pipe.lrem(self._key(job.queue_name, "active"), 1, job.id)
        pipe.delete(self._lock_key(job.id))
        self._write(pipe, job)
        pipe.lpush(self._key(job.queue_name, "failed"), job.id)

    async def fail(self, job: Job, error: BaseException) -> None:
        """
        Record a failed attempt and retry or dead-letter the job.

        Errors whose ``retriable`` attribute is False, and jobs that used up
        their attempts, go to the failed list. Everything else is scheduled
        again after the policy's backoff. The job leaves the active list in
        the same transaction that puts it on the next one.
        """
        job.last_error = str(error) or error.__class__.__name__
        retriable = getattr(error, "retriable", True)

        if not retriable or job.attempts >= job.max_attempts:
            async with self.redis.pipeline(transaction=True) as pipe:
                self._dead_letter(pipe, job)
                await pipe.execute()
            logger.warning(
                f"Job {job.id} on {job.queue_name} dead-lettered after "
                f"{job.attempts} attempt(s): {job.last_error}"
            )
            return

        delay = self.retry_policy.delay_for(job.attempts)
        now = datetime.now(UTC)
        job.state = JobState.PENDING
        job.available_at = (now + timedelta(seconds=delay)).isoformat()

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.lrem(self._key(job.queue_name, "active"), 1, job.id)
            pipe.delete(self._lock_key(job.id))
            self._write(pipe, job)
            if delay > 0:
                pipe.zadd(self._key(job.queue_name, "delayed"), {job.id: now.timestamp() + delay})
            else:
                pipe.lpush(self._key(job.queue_name, "waiting"), job.id)
            await pipe.execute()

        logger.warning(
            f"Job {job.id} on {job.queue_name} failed attempt {job.attempts}/"
            f"{job.max_attempts}, retrying in {delay}s: {job.last_error}"
        )

    async def _hold_lease(self, job_id: str) -> None:
        """Extend the job's lease every half period until cancelled."""
        interval = self.lock_seconds / 2
        while True:
            await asyncio.sleep(interval)
            try:
                await self.redis.expire(self._lock_key(job_id), self.lock_seconds)
            except RedisError as e:
                logger.warning(f"Could not extend lease on job {job_id}: {e}")

    async def process_next(self, queue_name: str, wait: int = 0) -> bool:
        """
        Deliver one job to the registered handler.

        The lease is renewed while the handler runs, so slow handlers keep
        their job.

        Returns:
            True if a job was processed (successfully or not), False if
            the queue had nothing to deliver
        """
        handler = self._handlers.get(queue_name)
        if handler is None:
            raise ValueError(f"No handler registered for {queue_name}")

        job = await self.reserve(queue_name, wait=wait)
        if job is None:
            return False

        logger.info(f"Processing job {job.id} on {queue_name} (attempt {job.attempts})")

        heartbeat = asyncio.create_task(self._hold_lease(job.id))
        try:
            error = await handler(job)
        except Exception as e:
            # An uncaught fault is a failed attempt, same as a reported one
            logger.exception(f"Handler for {queue_name} raised on job {job.id}")
            error = e
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat

        if isinstance(error, BaseException):
            await self.fail(job, error)
        else:
            await self.complete(job)

        return True

    async def run(
        self,
        queue_name: str,
        poll_timeout: int = 5,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """
        Deliver jobs from one queue until stop_event is set or the task is cancelled.

        Stalled jobs (no lease on two checks in a row) are looked for at
        startup and then once per lease period.
        """
        if queue_name not in self._handlers:
            raise ValueError(f"No handler registered for {queue_name}")

        logger.info(f"Worker {self.worker_id} processing {queue_name}")

        last_recovery = 0.0
        while stop_event is None or not stop_event.is_set():
            try:
                if time.monotonic() - last_recovery >= self.lock_seconds:
                    await self.recover_stalled(queue_name)
                    last_recovery = time.monotonic()

                await self.process_next(queue_name, wait=poll_timeout)
            except RedisError as e:
                logger.error(f"Queue backend error on {queue_name}: {e}")
                await asyncio.sleep(1)

        logger.info(f"Worker {self.worker_id} stopped processing {queue_name}")

    async def promote_delayed(self, queue_name: str) -> int:
        """
        Move delayed retries whose time has come onto the waiting list.

        Returns:
            Number of jobs promoted (0 if another worker promoted them first)
        """
        delayed = self._key(queue_name, "delayed")
        waiting = self._key(queue_name, "waiting")

        async with self.redis.pipeline(transaction=True) as pipe:
            await pipe.watch(delayed)
            due = await pipe.zrangebyscore(delayed, "-inf", time.time())
            if not due:
                return 0

            pipe.multi()
            for job_id in due:
                pipe.zrem(delayed, job_id)
                pipe.lpush(waiting, job_id)
            try:
                await pipe.execute()
            except WatchError:
                return 0

        return len(due)

    async def recover_stalled(self, queue_name: str) -> int:
        """
        Handle active jobs whose worker died or hung past lock_seconds.

        A job is stalled when it has no lease on two checks in a row. The
        first check only marks it; the next one returns it to the front of
        the waiting list, or dead-letters it if the attempt it was on was
        its last. One worker at a time runs the check.

        Returns:
            Number of stalled jobs requeued or dead-lettered
        """
        claimed = await self.redis.set(
            self._key(queue_name, "recovery"),
            self.worker_id,
            nx=True,
            ex=max(self.lock_seconds // 2, 1),
        )
        if not claimed:
            return 0

        active = self._key(queue_name, "active")
        stalled = self._key(queue_name, "stalled")
        suspects = set(await self.redis.smembers(stalled))

        marked = []
        recovered = 0
        for job_id in await self.redis.lrange(active, 0, -1):
            if await self.redis.exists(self._lock_key(job_id)):
                continue
            if job_id not in suspects:
                marked.append(job_id)
                continue
            await self._requeue_stalled(queue_name, job_id)
            recovered += 1

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(stalled)
            if marked:
                pipe.sadd(stalled, *marked)
            await pipe.execute()

        return recovered

    async def _requeue_stalled(self, queue_name: str, job_id: str) -> None:
        job = await self.get_job(job_id)

        async with self.redis.pipeline(transaction=True) as pipe:
            if job is not None and job.attempts >= job.max_attempts:
                job.last_error = "Lease expired on the final attempt"
                self._dead_letter(pipe, job)
                await pipe.execute()
                logger.warning(
                    f"Stalled job {job_id} on {queue_name} dead-lettered after "
                    f"{job.attempts} attempt(s)"
                )
                return

            pipe.lrem(self._key(queue_name, "active"), 1, job_id)
            pipe.rpush(self._key(queue_name, "waiting"), job_id)
            await pipe.execute()

        logger.warning(f"Recovered stalled job {job_id} on {queue_name}")

    async def get_job(self, job_id: str) -> Optional[Job]:
        """
        Get job details.

        Returns:
            Job or None if unknown (or a succeeded job past its retention)
        """
        raw = await self.redis.get(self._job_key(job_id))
        if raw:
            return Job.from_json(raw)
        return None

    async def counts(self, queue_name: str) -> Dict[str, int]:
        """
        Get number of jobs per state.

        Returns:
            Dict with waiting, active, delayed and failed counts
        """
        self._check_queue_name(queue_name)
        return {
            "waiting": await self.redis.llen(self._key(queue_name, "waiting")),
            "active": await self.redis.llen(self._key(queue_name, "active")),
            "delayed": await self.redis.zcard(self._key(queue_name, "delayed")),
            "failed": await self.redis.llen(self._key(queue_name, "failed")),
        }

    async def retry_failed(self, queue_name: str) -> int:
        """
        Move every dead-lettered job back to waiting with a fresh attempt budget.

        Returns:
            Number of jobs requeued
        """
        self._check_queue_name(queue_name)
        failed = self._key(queue_name, "failed")
        waiting = self._key(queue_name, "waiting")
        requeued = 0

        # Oldest dead letter first
        for job_id in reversed(await self.redis.lrange(failed, 0, -1)):
            job = await self.get_job(job_id)

            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.lrem(failed, 1, job_id)
                if job is not None:
                    job.state = JobState.PENDING
                    job.attempts = 0
                    job.finished_at = None
                    job.available_at = None
                    self._write(pipe, job)
                    pipe.lpush(waiting, job_id)
                results = await pipe.execute()

            if job is not None and results[0]:
                requeued += 1

        if requeued:
            logger.info(f"Requeued {requeued} failed job(s) on {queue_name}")
        return requeued
