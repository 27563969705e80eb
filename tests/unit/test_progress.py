"""Unit tests for progress tracking and batch statistics."""

import pytest

from coverage_studio.common.models import Artifact, GenerationResult
from coverage_studio.generation.progress import (
    ProgressTracker,
    compute_batch_stats,
    merge_retry_results,
    notify,
    progress_percent,
)


def ok(request_id: str, elapsed: float = 1.0) -> GenerationResult:
    return GenerationResult.success(
        request_id=request_id,
        artifact=Artifact(uri=f"memory://{request_id}"),
        attempts=1,
        elapsed_seconds=elapsed,
    )


def failed(request_id: str, elapsed: float = 1.0) -> GenerationResult:
    return GenerationResult.failure(
        request_id=request_id,
        error="boom",
        attempts=3,
        elapsed_seconds=elapsed,
    )


class TestProgressPercent:
    """Tests for percentage rounding."""

    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 3, 0),
            (1, 3, 33),
            (2, 3, 67),
            (3, 3, 100),
            (5, 12, 42),
            (1, 8, 13),
            (5, 8, 63),
            (1, 40, 3),
        ],
    )
    def test_rounding(self, completed, total, expected):
        """Test whole-number rounding of completion, halves rounding up."""
        assert progress_percent(completed, total) == expected

    def test_empty_total_is_complete(self):
        """Test that an empty batch reports 100%."""
        assert progress_percent(0, 0) == 100


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_record_forwards_counts(self):
        """Test each record reaches the sink with the running count."""
        seen = []
        tracker = ProgressTracker(3, lambda c, t: seen.append((c, t)))

        tracker.record()
        tracker.record()

        assert seen == [(1, 3), (2, 3)]
        assert tracker.percent == 67
        assert not tracker.done

        tracker.record()
        assert tracker.done

    def test_record_past_total_raises(self):
        """Test the tracker refuses to count past the batch size."""
        tracker = ProgressTracker(1)
        tracker.record()

        with pytest.raises(RuntimeError):
            tracker.record()

    def test_notify_swallows_sink_errors(self):
        """Test a broken sink does not propagate."""
        def broken(*args):
            raise ValueError("bad sink")

        notify(broken, 1, 2)
        notify(None, 1, 2)


class TestBatchStats:
    """Tests for compute_batch_stats."""

    def test_mixed_results(self):
        """Test counts, rate and timing over mixed outcomes."""
        stats = compute_batch_stats([ok("a", 2.0), ok("b", 4.0), failed("c", 6.0)])

        assert stats.total == 3
        assert stats.successful == 2
        assert stats.failed == 1
        assert stats.success_rate == 66.7
        assert stats.total_time_seconds == pytest.approx(12.0)
        assert stats.average_time_seconds == pytest.approx(3.0)

    def test_empty_results(self):
        """Test stats over nothing."""
        stats = compute_batch_stats([])

        assert stats.total == 0
        assert stats.success_rate == 0.0
        assert stats.average_time_seconds == 0.0

    def test_to_dict(self):
        """Test serialisation for logging."""
        data = compute_batch_stats([ok("a")]).to_dict()

        assert data["total"] == 1
        assert data["successful"] == 1
        assert data["success_rate"] == 100.0


class TestMergeRetryResults:
    """Tests for merge_retry_results."""

    def test_successful_retry_supersedes_failure(self):
        """Test failures are replaced by successful retries of the same id."""
        previous = [ok("a"), failed("b"), failed("c")]
        retried = [ok("b"), failed("c")]

        merged = merge_retry_results(previous, retried)

        assert [r.request_id for r in merged] == ["a", "b", "c"]
        assert merged[1].succeeded
        assert merged[2] is previous[2]

    def test_successes_never_replaced(self):
        """Test that an earlier success is kept even if retried again."""
        previous = [ok("a")]
        merged = merge_retry_results(previous, [failed("a")])

        assert merged[0] is previous[0]
