"""Data models for the coverage studio."""

from coverage_studio.common.models.base import generate_id, utc_now
from coverage_studio.common.models.generation import (
    Artifact,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
)
from coverage_studio.common.models.coverage import (
    CoverageAngle,
    CoverageLibrary,
    CoveragePack,
    EntityType,
    LibraryStatus,
    ShotCategory,
    ShotSpec,
    TimingStats,
)
from coverage_studio.common.models.entities import (
    Beat,
    CharacterProfile,
    EntityProfile,
    LocationProfile,
    ProductProfile,
)

__all__ = [
    # Base
    "generate_id",
    "utc_now",
    # Generation
    "Artifact",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStatus",
    # Coverage
    "CoverageAngle",
    "CoverageLibrary",
    "CoveragePack",
    "EntityType",
    "LibraryStatus",
    "ShotCategory",
    "ShotSpec",
    "TimingStats",
    # Entities
    "Beat",
    "CharacterProfile",
    "EntityProfile",
    "LocationProfile",
    "ProductProfile",
]
