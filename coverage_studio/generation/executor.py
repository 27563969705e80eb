"""Batched, fault-tolerant execution of generation requests.

A batch is split into fixed-size groups. Groups run strictly one after
another with a pause in between; requests inside a group are dispatched
together. Every request runs its own retry loop, and a request that
exhausts its retries is recorded as a failed result instead of raising, so
a batch always completes with one result per request, in request order.
Generators may return an ``Artifact`` or a bare artifact URI string.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Protocol, Sequence, TypeVar

from coverage_studio.common.config import BatchPreset, Settings, get_settings
from coverage_studio.common.errors import (
    BatchCancelledError,
    GenerationTimeoutError,
    InvalidBatchOptionsError,
    StudioError,
)
from coverage_studio.common.logging import bound_context, get_logger
from coverage_studio.common.models import (
    Artifact,
    GenerationRequest,
    GenerationResult,
    generate_id,
)
from coverage_studio.generation.progress import (
    ProgressTracker,
    compute_batch_stats,
    notify,
)

logger = get_logger(__name__)

T = TypeVar("T")

GenerateFn = Callable[[GenerationRequest], Awaitable[Artifact | str]]
ErrorCallback = Callable[[Exception, GenerationRequest], None]
GroupCallback = Callable[[int, int], None]


# ============================================================================
# Backoff
# ============================================================================


class BackoffPolicy(Protocol):
    """Maps a failed attempt number (1-based) to the pause before the next."""

    def delay_for(self, attempt: int) -> float: ...


@dataclass(frozen=True)
class FixedBackoff:
    """Same pause before every retry."""

    delay: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.delay


@dataclass(frozen=True)
class ExponentialBackoff:
    """Doubling pause with an upper bound and optional proportional jitter."""

    base: float = 1.0
    factor: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.0  # Fraction of the delay added at random

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base * self.factor ** max(attempt - 1, 0), self.max_delay)
        if self.jitter:
            delay += random.uniform(0, self.jitter * delay)
        return delay


def always_retry(error: Exception) -> bool:
    """Treat every failure as transient."""
    return True


def retry_unless_permanent(error: Exception) -> bool:
    """Retry everything except errors flagged as not recoverable."""
    if isinstance(error, StudioError):
        return error.recoverable
    return True


# ============================================================================
# Cancellation
# ============================================================================


class CancellationToken:
    """Cooperative cancellation shared between a caller and a batch run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


# ============================================================================
# Options
# ============================================================================


@dataclass
class BatchOptions:
    """Configuration for one batch run."""

    group_size: int = 10
    max_retries: int = 2
    retry_delay: float = 2.0
    backoff: BackoffPolicy | None = None  # Overrides retry_delay when set
    inter_group_delay: float = 1.0
    request_timeout: float | None = None

    should_retry: Callable[[Exception], bool] = always_retry
    cancel_token: CancellationToken | None = None

    # Sinks
    on_progress: Callable[[int, int], None] | None = None
    on_group_complete: GroupCallback | None = None
    on_error: ErrorCallback | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        preset: BatchPreset = BatchPreset.GENERIC,
        **overrides,
    ) -> "BatchOptions":
        """Build options from configuration and a named group-size preset."""
        settings = settings or get_settings()
        values = {
            "group_size": settings.group_size_for(preset),
            "max_retries": settings.max_retries,
            "retry_delay": settings.retry_delay_seconds,
            "inter_group_delay": settings.inter_group_delay_seconds,
            "request_timeout": settings.request_timeout,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def backoff_policy(self) -> BackoffPolicy:
        return self.backoff or FixedBackoff(self.retry_delay)

    def validate(self) -> None:
        if self.group_size < 1:
            raise InvalidBatchOptionsError(
                f"group_size must be at least 1, got {self.group_size}"
            )
        if self.max_retries < 0:
            raise InvalidBatchOptionsError(
                f"max_retries must not be negative, got {self.max_retries}"
            )
        if self.retry_delay < 0 or self.inter_group_delay < 0:
            raise InvalidBatchOptionsError("delays must not be negative")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise InvalidBatchOptionsError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )


def as_artifact(value: object) -> Artifact:
    """Normalise a generator return value; a bare string is an artifact URI.

    Raises:
        TypeError: If the value is neither an Artifact nor a non-empty string
    """
    if isinstance(value, Artifact):
        return value
    if isinstance(value, str) and value:
        return Artifact(uri=value)
    raise TypeError(f"generator returned {type(value).__name__}, expected Artifact or URI")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split a sequence into ordered groups of at most ``size`` items."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


# ============================================================================
# Run
# ============================================================================


class _BatchRun:
    """State of a single ``run_batch`` invocation."""

    def __init__(
        self,
        generate: GenerateFn,
        options: BatchOptions,
        tracker: ProgressTracker,
    ):
        self.generate = generate
        self.options = options
        self.tracker = tracker
        self.backoff = options.backoff_policy
        self.token = options.cancel_token

    @property
    def cancelled(self) -> bool:
        return self.token is not None and self.token.cancelled

    async def pause(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True if cancelled meanwhile."""
        if self.token is None:
            if delay > 0:
                await asyncio.sleep(delay)
            return False
        if self.token.cancelled:
            return True
        if delay > 0:
            try:
                await asyncio.wait_for(self.token.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        return self.token.cancelled

    async def attempt(self, request: GenerationRequest) -> Artifact:
        """One call into the generator, bounded by timeout and cancellation."""
        task = asyncio.ensure_future(self.generate(request))
        waiters: set[asyncio.Future] = {task}
        cancel_waiter = None
        if self.token is not None:
            cancel_waiter = asyncio.ensure_future(self.token.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self.options.request_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return as_artifact(task.result())

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if self.cancelled:
            raise BatchCancelledError()
        raise GenerationTimeoutError(self.options.request_timeout or 0.0)

    async def run_request(self, request: GenerationRequest) -> GenerationResult:
        """Retry loop for one request; never raises for generation failures."""
        start = time.monotonic()
        attempts = 0
        error: Exception | None = None

        while True:
            if self.cancelled:
                error = BatchCancelledError()
                break

            attempts += 1
            try:
                artifact = await self.attempt(request)
            except Exception as e:
                error = e
                if isinstance(e, BatchCancelledError):
                    break
                if attempts > self.options.max_retries:
                    break
                if not self.options.should_retry(e):
                    logger.warning(
                        "generation_not_retryable",
                        request_id=request.id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    break

                delay = self.backoff.delay_for(attempts)
                logger.warning(
                    "generation_retry",
                    request_id=request.id,
                    attempt=attempts,
                    max_retries=self.options.max_retries,
                    delay_seconds=delay,
                    error=str(e),
                    prompt=request.prompt[:50],
                )
                if await self.pause(delay):
                    error = BatchCancelledError()
                    break
                continue

            result = GenerationResult.success(
                request_id=request.id,
                artifact=artifact,
                attempts=attempts,
                elapsed_seconds=time.monotonic() - start,
            )
            self.tracker.record()
            return result

        message = str(error) or type(error).__name__
        result = GenerationResult.failure(
            request_id=request.id,
            error=message,
            attempts=attempts,
            elapsed_seconds=time.monotonic() - start,
        )
        logger.error(
            "generation_failed",
            request_id=request.id,
            attempts=attempts,
            error_type=type(error).__name__,
            error=message,
            prompt=request.prompt[:50],
        )
        self.tracker.record()
        notify(self.options.on_error, error, request)
        return result


async def run_batch(
    requests: Iterable[GenerationRequest],
    generate: GenerateFn,
    options: BatchOptions | None = None,
) -> list[GenerationResult]:
    """Run generation requests in sequential groups with per-request retries.

    Args:
        requests: Ordered requests to generate
        generate: Async single-request generation function
        options: Grouping, retry and callback configuration

    Returns:
        One result per request, in input order. Per-request failures are
        reported as failed results, never raised.

    Raises:
        InvalidBatchOptionsError: If options are unusable (before dispatch)
    """
    requests = list(requests)
    if not requests:
        return []

    options = options or BatchOptions()
    options.validate()

    groups = chunk(requests, options.group_size)
    tracker = ProgressTracker(len(requests), options.on_progress)
    run = _BatchRun(generate, options, tracker)
    results: list[GenerationResult] = []

    with bound_context(batch_id=generate_id("batch")):
        logger.info(
            "batch_started",
            total=len(requests),
            groups=len(groups),
            group_size=options.group_size,
            max_retries=options.max_retries,
        )

        for index, group in enumerate(groups, start=1):
            if index > 1:
                await run.pause(options.inter_group_delay)

            logger.debug("batch_group_started", group=index, size=len(group))
            group_results = await asyncio.gather(
                *(run.run_request(request) for request in group)
            )
            results.extend(group_results)

            notify(options.on_group_complete, index, len(groups))
            logger.info(
                "batch_group_complete",
                group=index,
                total_groups=len(groups),
                successful=sum(1 for r in group_results if r.succeeded),
                size=len(group),
            )

        stats = compute_batch_stats(results)
        logger.info("batch_complete", cancelled=run.cancelled, **stats.to_dict())

    return results


# ============================================================================
# Executor
# ============================================================================


@dataclass
class ExecutorMetrics:
    """Counters accumulated across batch runs."""

    runs: int = 0
    requests: int = 0
    successes: int = 0
    failures: int = 0
    total_duration_seconds: float = 0.0

    def record(self, results: Sequence[GenerationResult], duration: float) -> None:
        self.runs += 1
        self.requests += len(results)
        self.successes += sum(1 for r in results if r.succeeded)
        self.failures += sum(1 for r in results if not r.succeeded)
        self.total_duration_seconds += duration

    @property
    def success_rate(self) -> float:
        if self.requests == 0:
            return 0.0
        return self.successes / self.requests


@dataclass
class BatchExecutor:
    """Bind a generation function to default options and keep metrics."""

    generate: GenerateFn
    defaults: BatchOptions = field(default_factory=BatchOptions)
    metrics: ExecutorMetrics = field(default_factory=ExecutorMetrics)

    async def run(
        self,
        requests: Iterable[GenerationRequest],
        options: BatchOptions | None = None,
    ) -> list[GenerationResult]:
        start = time.monotonic()
        results = await run_batch(requests, self.generate, options or self.defaults)
        self.metrics.record(results, time.monotonic() - start)
        return results
