"""Serial request queue for a rate-limited external API.

Executes submitted async operations one at a time, waits at least
``min_time_between_requests`` seconds after one attempt completes before the
next one starts, and transparently retries operations rejected with a rate
limit (HTTP 429 / quota exceeded) up to ``max_retries`` times. A retried item
goes back to the head of the line, ahead of anything submitted meanwhile.

Operations may run more than once, so they must be safe to re-invoke.
"""

import asyncio
import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

from hwhelper.domain.events.queue_events import (
    DomainEvent, RequestQueued, RequestDeferred, RequestStarted,
    RetryScheduled, RequestSucceeded, RequestFailed,
)
from hwhelper.infrastructure.config.settings import QueueSettings
from hwhelper.infrastructure.resilience.rate_limit import is_rate_limit_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[], Awaitable[Any]]
EventListener = Callable[[DomainEvent], None]

DEFAULT_MIN_TIME_BETWEEN_REQUESTS = 1.0 # seconds
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2.0 # seconds


@dataclass
class QueueItem:
    """One pending unit of work and the future its caller is waiting on."""
    operation: Operation
    future: "asyncio.Future[Any]"
    attempt_count: int = 0 # Rate-limit retries scheduled so far
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    enqueued_at: float = field(default_factory=time.monotonic)


class SerialRequestQueue:
    """Single-lane, paced, retrying queue in front of a rate-limited API."""

    def __init__(
        self,
        min_time_between_requests: float = DEFAULT_MIN_TIME_BETWEEN_REQUESTS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        is_retryable: Callable[[BaseException], bool] = is_rate_limit_error,
        event_listener: Optional[EventListener] = None,
        name: str = "requests",
    ):
        """Initializes the queue. Configuration is fixed for the queue's lifetime.

        Args:
            min_time_between_requests: Minimum seconds between the completion of
                one attempt and the start of the next.
            max_retries: Maximum rate-limit retries per item.
            retry_delay: Seconds to wait before re-attempting a rate-limited item.
            is_retryable: Predicate deciding whether a failure is a rate limit.
            event_listener: Optional callable receiving queue domain events.
            name: Label used in log messages.

        Raises:
            ValueError: If an interval is negative or max_retries is negative.
        """
        if min_time_between_requests < 0:
            raise ValueError(f"min_time_between_requests must be >= 0, got {min_time_between_requests}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {retry_delay}")

        self._min_interval = float(min_time_between_requests)
        self._max_retries = int(max_retries)
        self._retry_delay = float(retry_delay)
        self._is_retryable = is_retryable
        self._event_listener = event_listener
        self.name = name

        self._pending: Deque[QueueItem] = deque()
        self._executing = False
        self._last_completion: Optional[float] = None # Never completed: no pacing wait
        self._drain_task: Optional["asyncio.Task[None]"] = None
        self._stats: Dict[str, int] = {"submitted": 0, "succeeded": 0, "failed": 0, "retried": 0}

        logger.debug(
            f"SerialRequestQueue '{name}' initialized: min_interval={self._min_interval}s, "
            f"max_retries={self._max_retries}, retry_delay={self._retry_delay}s"
        )

    @classmethod
    def from_settings(cls, settings: QueueSettings, **kwargs: Any) -> "SerialRequestQueue":
        """Builds a queue from millisecond-based QueueSettings."""
        return cls(
            min_time_between_requests=settings.min_time_between_requests_ms / 1000.0,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_ms / 1000.0,
            **kwargs,
        )

    # --- Read-only configuration & introspection ---

    @property
    def min_time_between_requests(self) -> float:
        return self._min_interval

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def retry_delay(self) -> float:
        return self._retry_delay

    @property
    def pending_count(self) -> int:
        """Number of items waiting to be executed (excludes the one in flight)."""
        return len(self._pending)

    @property
    def is_executing(self) -> bool:
        return self._executing

    def stats(self) -> Dict[str, int]:
        """Returns counters for submitted, succeeded, failed and retried items."""
        return dict(self._stats, pending=len(self._pending))

    # --- Public API ---

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Queues ``operation`` and returns its eventual result.

        Raises:
            Exception: The operation's own exception if it fails with a
                non-rate-limit error, or with a rate-limit error after
                ``max_retries`` retries.
            asyncio.CancelledError: If the operation cancelled itself.
        """
        future = self._enqueue(operation)
        # The item settles even if this caller stops waiting.
        return await asyncio.shield(future)

    async def submit_with_timeout(self, operation: Callable[[], Awaitable[T]], timeout: Optional[float]) -> T:
        """Like submit, but stops waiting after ``timeout`` seconds.

        The item stays queued and still runs; only this caller gives up.

        Raises:
            asyncio.TimeoutError: If the item has not settled within ``timeout``.
        """
        future = self._enqueue(operation)
        if timeout is None:
            return await asyncio.shield(future)
        return await asyncio.wait_for(asyncio.shield(future), timeout)

    async def join(self) -> None:
        """Waits until the queue is empty and nothing is executing.

        Also returns if the drain loop itself was cancelled (e.g. at shutdown);
        items still pending then start again on the next submit.
        """
        while self._drain_task is not None:
            task = self._drain_task
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if not task.cancelled() or (current is not None and current.cancelling()):
                    raise

    # --- Internals ---

    def _enqueue(self, operation: Operation) -> "asyncio.Future[Any]":
        if not callable(operation):
            raise TypeError(f"operation must be a zero-argument async callable, got {type(operation).__name__}")
        loop = asyncio.get_running_loop()
        item = QueueItem(operation=operation, future=loop.create_future())
        self._pending.append(item)
        self._stats["submitted"] += 1
        logger.debug(f"[{self.name}] Request {item.request_id} queued (pending={len(self._pending)})")
        self._emit(RequestQueued(request_id=item.request_id, queue_depth=len(self._pending)))
        self._process_queue()
        return item.future

    def _process_queue(self) -> None:
        """Starts the drain loop unless it is already running or there is no work."""
        if self._executing or not self._pending:
            return
        # Set before any await so a concurrent submit cannot start a second loop.
        self._executing = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._pending:
                await self._wait_for_pacing()
                if not self._pending:
                    break
                item = self._pending.popleft()
                await self._execute(item)
        finally:
            self._executing = False
            self._drain_task = None

    async def _wait_for_pacing(self) -> None:
        if self._last_completion is None:
            return
        wait_time = self._last_completion + self._min_interval - time.monotonic()
        if wait_time > 0:
            head_id = self._pending[0].request_id if self._pending else None
            logger.debug(f"[{self.name}] Pacing: waiting {wait_time:.3f}s before request {head_id}")
            self._emit(RequestDeferred(request_id=head_id, wait_time_seconds=wait_time))
            await asyncio.sleep(wait_time)

    async def _execute(self, item: QueueItem) -> None:
        self._emit(RequestStarted(request_id=item.request_id, attempt_number=item.attempt_count + 1))
        start_time = time.monotonic()
        try:
            result = await item.operation()
        except asyncio.CancelledError:
            self._last_completion = time.monotonic()
            item.future.cancel()
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # The operation cancelled itself: settle it and keep draining.
            self._stats["failed"] += 1
            logger.warning(f"[{self.name}] Request {item.request_id} was cancelled by its operation")
            self._emit(RequestFailed(
                request_id=item.request_id, attempts=item.attempt_count + 1,
                error_type="CancelledError", error_message="operation cancelled",
            ))
            return
        except Exception as error:
            self._last_completion = time.monotonic()
            await self._handle_failure(item, error)
            return

        self._last_completion = time.monotonic()
        latency_ms = (self._last_completion - start_time) * 1000
        attempts = item.attempt_count + 1
        self._stats["succeeded"] += 1
        logger.debug(f"[{self.name}] Request {item.request_id} succeeded in {latency_ms:.1f}ms (attempts={attempts})")
        self._emit(RequestSucceeded(request_id=item.request_id, attempts=attempts, latency_ms=latency_ms))
        if not item.future.done():
            item.future.set_result(result)

    async def _handle_failure(self, item: QueueItem, error: Exception) -> None:
        try:
            rate_limited = self._is_retryable(error)
        except Exception as predicate_error:
            logger.error(f"[{self.name}] Rate-limit check failed: {predicate_error}", exc_info=True)
            rate_limited = False

        if rate_limited and item.attempt_count < self._max_retries:
            item.attempt_count += 1
            self._stats["retried"] += 1
            logger.warning(
                f"[{self.name}] Rate limit hit for request {item.request_id}. Retrying after "
                f"{self._retry_delay:.2f}s (Attempt {item.attempt_count}/{self._max_retries})"
            )
            self._emit(RetryScheduled(
                request_id=item.request_id, attempt_number=item.attempt_count,
                max_retries=self._max_retries, delay_seconds=self._retry_delay,
            ))
            # Still executing: nothing else may run during the retry delay.
            await asyncio.sleep(self._retry_delay)
            self._pending.appendleft(item)
            return

        attempts = item.attempt_count + 1
        self._stats["failed"] += 1
        if rate_limited:
            logger.error(
                f"[{self.name}] Max retries ({self._max_retries}) reached for request {item.request_id}. "
                f"Last error: {error}"
            )
        else:
            logger.warning(f"[{self.name}] Request {item.request_id} failed: {type(error).__name__}: {error}")
        self._emit(RequestFailed(
            request_id=item.request_id, attempts=attempts, error_type=type(error).__name__,
            error_message=str(error), rate_limited=rate_limited,
        ))
        if not item.future.done():
            item.future.set_exception(error)

    def _emit(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_listener is None:
            return
        try:
            self._event_listener(event)
        except Exception as e:
            logger.error(f"[{self.name}] Event listener raised on {type(event).__name__}: {e}", exc_info=True)
