"""Common utilities and shared components."""

from coverage_studio.common.config import BatchPreset, Settings, get_settings
from coverage_studio.common.errors import (
    BatchCancelledError,
    GenerationTimeoutError,
    InvalidBatchOptionsError,
    PackNotFoundError,
    PermanentGenerationError,
    StudioError,
)
from coverage_studio.common.logging import bound_context, get_logger, setup_logging

__all__ = [
    "BatchPreset",
    "Settings",
    "get_settings",
    "BatchCancelledError",
    "GenerationTimeoutError",
    "InvalidBatchOptionsError",
    "PackNotFoundError",
    "PermanentGenerationError",
    "StudioError",
    "bound_context",
    "get_logger",
    "setup_logging",
]
