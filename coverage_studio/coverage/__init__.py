"""Coverage packs and coverage library orchestration."""

from coverage_studio.coverage.packs import (
    DEFAULT_CATALOG,
    PackCatalog,
    get_all_pack_ids,
    get_pack,
    get_packs_for_entity_type,
    get_recommended_pack,
)
from coverage_studio.coverage.orchestrator import (
    ASPECT_RATIO_BY_ENTITY,
    CoverageOptions,
    CoverageOrchestrator,
    build_angle_prompt,
    generate_coverage_library,
    retry_failed_angles,
)

__all__ = [
    # Packs
    "DEFAULT_CATALOG",
    "PackCatalog",
    "get_all_pack_ids",
    "get_pack",
    "get_packs_for_entity_type",
    "get_recommended_pack",
    # Orchestrator
    "ASPECT_RATIO_BY_ENTITY",
    "CoverageOptions",
    "CoverageOrchestrator",
    "build_angle_prompt",
    "generate_coverage_library",
    "retry_failed_angles",
]
