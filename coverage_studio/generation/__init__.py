"""Batch generation core: executor, progress, and generation client."""

from coverage_studio.generation.executor import (
    BackoffPolicy,
    BatchExecutor,
    BatchOptions,
    CancellationToken,
    ExecutorMetrics,
    ExponentialBackoff,
    FixedBackoff,
    GenerateFn,
    always_retry,
    as_artifact,
    chunk,
    retry_unless_permanent,
    run_batch,
)
from coverage_studio.generation.progress import (
    BatchStats,
    ProgressTracker,
    compute_batch_stats,
    merge_retry_results,
    progress_percent,
)
from coverage_studio.generation.backends import (
    GenerationClient,
    ImageGeneratorBackend,
    StubImageBackend,
    aspect_ratio_dimensions,
    create_generation_client,
)

__all__ = [
    # Executor
    "BackoffPolicy",
    "BatchExecutor",
    "BatchOptions",
    "CancellationToken",
    "ExecutorMetrics",
    "ExponentialBackoff",
    "FixedBackoff",
    "GenerateFn",
    "always_retry",
    "as_artifact",
    "chunk",
    "retry_unless_permanent",
    "run_batch",
    # Progress
    "BatchStats",
    "ProgressTracker",
    "compute_batch_stats",
    "merge_retry_results",
    "progress_percent",
    # Backends
    "GenerationClient",
    "ImageGeneratorBackend",
    "StubImageBackend",
    "aspect_ratio_dimensions",
    "create_generation_client",
]
