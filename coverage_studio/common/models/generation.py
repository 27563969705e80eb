"""Generation request and result models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coverage_studio.common.models.base import generate_id, utc_now


class GenerationStatus(str, Enum):
    """Terminal status of one request within a batch run."""

    SUCCESS = "success"
    FAILED = "failed"


class GenerationRequest(BaseModel):
    """An instruction to produce one artifact.

    Immutable once constructed. Retries issue a fresh attempt against the
    same request; the ``id`` is carried through the whole pipeline so that
    results can be matched back without comparing prompt text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id("req"))
    prompt: str
    reference_artifacts: list[str] = Field(default_factory=list)
    aspect_ratio: str | None = None
    resolution: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def summary(self) -> dict:
        """Return summary for logging."""
        return {
            "id": self.id,
            "prompt": self.prompt[:50],
            "references": len(self.reference_artifacts),
            "aspect_ratio": self.aspect_ratio,
        }


class Artifact(BaseModel):
    """A generated artifact returned by the remote generation operation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id("artifact"))
    created_at: datetime = Field(default_factory=utc_now)

    uri: str
    mime_type: str = "image/png"
    prompt: str = ""

    width: int = 0
    height: int = 0

    backend: str = ""
    cost: float = 0.0


class GenerationResult(BaseModel):
    """Outcome of one request after its retry loop finished."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    status: GenerationStatus
    artifact: Artifact | None = None
    error: str | None = None
    attempts: int = Field(default=1, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _check_outcome(self) -> "GenerationResult":
        if self.status == GenerationStatus.SUCCESS:
            if self.artifact is None or self.error is not None:
                raise ValueError("successful result needs an artifact and no error")
        else:
            if self.artifact is not None or not self.error:
                raise ValueError("failed result needs an error and no artifact")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status == GenerationStatus.SUCCESS

    @classmethod
    def success(
        cls,
        request_id: str,
        artifact: Artifact,
        attempts: int,
        elapsed_seconds: float,
    ) -> "GenerationResult":
        return cls(
            request_id=request_id,
            status=GenerationStatus.SUCCESS,
            artifact=artifact,
            attempts=attempts,
            elapsed_seconds=elapsed_seconds,
        )

    @classmethod
    def failure(
        cls,
        request_id: str,
        error: str,
        attempts: int,
        elapsed_seconds: float,
    ) -> "GenerationResult":
        return cls(
            request_id=request_id,
            status=GenerationStatus.FAILED,
            error=error or "Unknown error",
            attempts=attempts,
            elapsed_seconds=elapsed_seconds,
        )
