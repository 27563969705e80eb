"""Progress tracking and terminal statistics for batch runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from coverage_studio.common.logging import get_logger
from coverage_studio.common.models import GenerationResult, GenerationStatus

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


def progress_percent(completed: int, total: int) -> int:
    """Whole-number completion percentage; an empty batch counts as done."""
    if total <= 0:
        return 100
    # Halves round up
    return int(completed * 100 / total + 0.5)


class ProgressTracker:
    """Counts terminal completions of a batch and forwards them to a sink.

    Completions are folded one at a time from the single event loop that
    owns the run.
    """

    def __init__(self, total: int, on_progress: ProgressCallback | None = None):
        self.total = total
        self.completed = 0
        self._on_progress = on_progress

    @property
    def percent(self) -> int:
        return progress_percent(self.completed, self.total)

    @property
    def done(self) -> bool:
        return self.completed >= self.total

    def record(self) -> None:
        """Record one request reaching a terminal state."""
        if self.done:
            raise RuntimeError("progress recorded past batch total")
        self.completed += 1
        notify(self._on_progress, self.completed, self.total)


def notify(callback: Callable[..., object] | None, *args: object) -> None:
    """Invoke a sink callback; sink failures never affect the batch."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        logger.warning(
            "progress_callback_failed",
            callback=getattr(callback, "__name__", repr(callback)),
            error_type=type(e).__name__,
            error=str(e),
        )


@dataclass(frozen=True)
class BatchStats:
    """Terminal statistics of a set of results."""

    total: int
    successful: int
    failed: int
    success_rate: float  # Percentage, one decimal
    total_time_seconds: float
    average_time_seconds: float  # Averaged over successful items

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": self.success_rate,
            "total_time_seconds": round(self.total_time_seconds, 3),
            "average_time_seconds": round(self.average_time_seconds, 3),
        }


def compute_batch_stats(results: Sequence[GenerationResult]) -> BatchStats:
    """Compute success/failure counts and timing over batch results."""
    total = len(results)
    successful = sum(1 for r in results if r.status == GenerationStatus.SUCCESS)
    failed = total - successful
    total_time = sum(r.elapsed_seconds for r in results)
    success_time = sum(
        r.elapsed_seconds for r in results if r.status == GenerationStatus.SUCCESS
    )

    return BatchStats(
        total=total,
        successful=successful,
        failed=failed,
        success_rate=round(successful / total * 100, 1) if total else 0.0,
        total_time_seconds=total_time,
        average_time_seconds=success_time / successful if successful else 0.0,
    )


def merge_retry_results(
    previous: Sequence[GenerationResult],
    retried: Sequence[GenerationResult],
) -> list[GenerationResult]:
    """Supersede failed results with successful retries of the same request.

    Successful entries are never replaced; a retry that failed again leaves
    the original failure in place. Length and order of ``previous`` are kept.
    """
    retried_by_id = {r.request_id: r for r in retried}
    merged = []
    for result in previous:
        replacement = retried_by_id.get(result.request_id)
        if (
            result.status == GenerationStatus.FAILED
            and replacement is not None
            and replacement.status == GenerationStatus.SUCCESS
        ):
            merged.append(replacement)
        else:
            merged.append(result)
    return merged
