"""Coverage pack and coverage library models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coverage_studio.common.models.base import generate_id, utc_now
from coverage_studio.common.models.generation import GenerationStatus


class EntityType(str, Enum):
    """Kind of bible entity a coverage run targets."""

    CHARACTER = "character"
    LOCATION = "location"
    PRODUCT = "product"


class ShotCategory(str, Enum):
    """Grouping of shot specs inside a pack."""

    ROTATIONAL = "rotational"
    HEIGHT = "height"
    DISTANCE = "distance"
    SPECIALTY = "specialty"


class LibraryStatus(str, Enum):
    """Lifecycle of a coverage library."""

    GENERATING = "generating"
    COMPLETE = "complete"
    FAILED = "failed"


# ============================================================================
# Packs
# ============================================================================


class ShotSpec(BaseModel):
    """One static shot in a pack: framing type, angle and description."""

    model_config = ConfigDict(frozen=True)

    type: str
    angle_label: str
    description: str
    category: ShotCategory


class CoveragePack(BaseModel):
    """A named, read-only list of shot specs."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    applicable_entity_types: frozenset[EntityType] = frozenset(EntityType)
    shot_specs: tuple[ShotSpec, ...] = Field(min_length=1)

    recommended: bool = False
    estimated_time: str = ""
    estimated_cost: str = ""

    @property
    def shot_count(self) -> int:
        return len(self.shot_specs)

    def applies_to(self, entity_type: EntityType | str) -> bool:
        return EntityType(entity_type) in self.applicable_entity_types


# ============================================================================
# Library
# ============================================================================


class CoverageAngle(BaseModel):
    """The realised result of one shot spec within a library.

    Replaced (never mutated) when a retry flips it from failed to success.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id("angle"))
    created_at: datetime = Field(default_factory=utc_now)

    # Shot spec
    category: ShotCategory
    type: str
    angle_label: str
    description: str

    # Generation
    prompt: str
    resolution: str = ""
    aspect_ratio: str | None = None
    reference_artifacts: list[str] = Field(default_factory=list)
    artifact_ref: str | None = None
    status: GenerationStatus
    error: str | None = None
    attempts: int = 0
    generation_time: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_outcome(self) -> "CoverageAngle":
        if self.status == GenerationStatus.SUCCESS:
            if self.artifact_ref is None or self.error is not None:
                raise ValueError("successful angle needs an artifact and no error")
        elif self.artifact_ref is not None or not self.error:
            raise ValueError("failed angle needs an error and no artifact")
        return self

    @property
    def failed(self) -> bool:
        return self.status == GenerationStatus.FAILED


class TimingStats(BaseModel):
    """Aggregate timing of a coverage run."""

    model_config = ConfigDict(frozen=True)

    total_time_seconds: float = 0.0
    average_time_per_angle_seconds: float = 0.0
    success_rate: float = 0.0


class CoverageLibrary(BaseModel):
    """Result record of one pack run against one entity.

    Mutated in place by the orchestrator that owns it while a run is in
    progress; callers only read it and hand it back for retries.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: generate_id("library"))
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = None

    # Target
    entity_ref: str
    entity_name: str
    entity_type: EntityType
    pack_id: str
    pack_name: str = ""

    # Results
    angles: list[CoverageAngle] = Field(default_factory=list)
    status: LibraryStatus = LibraryStatus.GENERATING
    progress: int = Field(default=0, ge=0, le=100)
    generated_count: int = 0
    failed_count: int = 0
    retry_runs: int = 0

    timing_stats: TimingStats | None = None

    @property
    def total_count(self) -> int:
        return len(self.angles)

    @property
    def failed_angles(self) -> list[CoverageAngle]:
        return [a for a in self.angles if a.failed]

    @property
    def success_rate(self) -> float:
        if not self.angles:
            return 0.0
        return round(self.generated_count / len(self.angles) * 100, 1)

    def recount(self) -> None:
        """Recompute success/failure counts over the full angle set."""
        self.generated_count = sum(
            1 for a in self.angles if a.status == GenerationStatus.SUCCESS
        )
        self.failed_count = sum(1 for a in self.angles if a.failed)

    def summary(self) -> dict:
        """Return summary for logging."""
        return {
            "id": self.id,
            "entity": self.entity_name,
            "entity_type": self.entity_type.value,
            "pack_id": self.pack_id,
            "status": self.status.value,
            "generated": self.generated_count,
            "failed": self.failed_count,
            "total": self.total_count,
            "success_rate": self.success_rate,
        }
