"""Variant and sequence generation flows built on the batch executor."""

from coverage_studio.sequences.beat_variants import (
    VARIANT_MODIFIERS,
    BeatVariant,
    BeatVariantSet,
    VariantType,
    build_beat_prompt,
    collect_beat_references,
    generate_beat_variants,
    variant_types_for,
)
from coverage_studio.sequences.scene_coverage import (
    CINEMATIC_9_SHOT_GRID,
    CinematicShotSpec,
    SceneCoverageResult,
    SceneCoverageShot,
    generate_scene_coverage,
    resolve_selection,
)
from coverage_studio.sequences.beat_batch import (
    BeatBatchResult,
    generate_beats,
)

__all__ = [
    # Beat variants
    "VARIANT_MODIFIERS",
    "BeatVariant",
    "BeatVariantSet",
    "VariantType",
    "build_beat_prompt",
    "collect_beat_references",
    "generate_beat_variants",
    "variant_types_for",
    # Scene coverage
    "CINEMATIC_9_SHOT_GRID",
    "CinematicShotSpec",
    "SceneCoverageResult",
    "SceneCoverageShot",
    "generate_scene_coverage",
    "resolve_selection",
    # Beat batch
    "BeatBatchResult",
    "generate_beats",
]
