"""Error taxonomy for the generation core.

Per-request failures inside a batch are captured as data on
``GenerationResult``; the exceptions below are either raised before any
work is dispatched (configuration and lookup problems) or recorded as the
error of a failed attempt.
"""

from __future__ import annotations


class StudioError(Exception):
    """Base exception for coverage studio errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class PackNotFoundError(StudioError):
    """Raised when a pack id does not resolve to a catalog entry."""

    def __init__(self, pack_id: str):
        super().__init__(f"Pack not found: {pack_id}", recoverable=False)
        self.pack_id = pack_id


class InvalidBatchOptionsError(StudioError):
    """Raised when batch options cannot describe a runnable batch."""

    def __init__(self, message: str):
        super().__init__(message, recoverable=False)


class GenerationTimeoutError(StudioError):
    """Raised when a single generation attempt exceeds its timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Generation timed out after {timeout_seconds:g}s",
            recoverable=True,
        )
        self.timeout_seconds = timeout_seconds


class BatchCancelledError(StudioError):
    """Recorded on requests that a cancelled batch will not finish."""

    def __init__(self, message: str = "Batch cancelled"):
        super().__init__(message, recoverable=False)


class PermanentGenerationError(StudioError):
    """Raised by generators for failures that retrying cannot fix.

    Examples are content-policy rejections or malformed prompts.
    """

    def __init__(self, message: str):
        super().__init__(message, recoverable=False)
