"""Scene coverage: a user-selected subset of a 9-shot cinematic grid."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from coverage_studio.common.config import Settings, get_settings
from coverage_studio.common.errors import InvalidBatchOptionsError
from coverage_studio.common.logging import get_logger
from coverage_studio.common.models import (
    GenerationRequest,
    GenerationResult,
    generate_id,
)
from coverage_studio.generation.executor import BatchOptions, GenerateFn, run_batch

logger = get_logger(__name__)


@dataclass(frozen=True)
class CinematicShotSpec:
    """One cell of the cinematic coverage grid."""

    id: str
    name: str
    framing: str
    description: str


CINEMATIC_9_SHOT_GRID: tuple[CinematicShotSpec, ...] = (
    CinematicShotSpec("ews", "Extreme Wide", "extreme wide shot", "Establishes the whole environment"),
    CinematicShotSpec("ws", "Wide", "wide shot", "Full scene with subjects in context"),
    CinematicShotSpec("mws", "Medium Wide", "medium wide shot", "Subjects from the knees up"),
    CinematicShotSpec("ms", "Medium", "medium shot", "Subjects from the waist up"),
    CinematicShotSpec("mcu", "Medium Close Up", "medium close up", "Head and shoulders"),
    CinematicShotSpec("cu", "Close Up", "close up", "Face fills the frame"),
    CinematicShotSpec("ecu", "Extreme Close Up", "extreme close up", "Eyes or a key detail"),
    CinematicShotSpec("low", "Low Angle", "low angle shot", "Camera below eye line looking up"),
    CinematicShotSpec("high", "High Angle", "high angle shot", "Camera above looking down"),
)

GRID_BY_ID = {spec.id: spec for spec in CINEMATIC_9_SHOT_GRID}


@dataclass(frozen=True)
class SceneCoverageShot:
    spec: CinematicShotSpec
    prompt: str
    result: GenerationResult

    @property
    def succeeded(self) -> bool:
        return self.result.succeeded


@dataclass
class SceneCoverageResult:
    """Coverage shots for the selected grid cells, in grid order."""

    scene_description: str
    shots: list[SceneCoverageShot] = field(default_factory=list)
    success_count: int = 0
    total_count: int = 0

    @property
    def failed_shots(self) -> list[SceneCoverageShot]:
        return [s for s in self.shots if not s.succeeded]


def build_scene_shot_prompt(
    scene_description: str,
    spec: CinematicShotSpec,
    scene_context: str = "",
) -> str:
    prompt = f"{scene_description}. {spec.framing.capitalize()}: {spec.description}."
    if scene_context:
        prompt += f"\nCONTEXT: {scene_context}"
    return prompt


def resolve_selection(selected_shot_ids: Sequence[str] | None) -> list[CinematicShotSpec]:
    """Grid cells for a selection, kept in grid order.

    Raises:
        InvalidBatchOptionsError: If the selection is empty or unknown
    """
    if selected_shot_ids is None:
        return list(CINEMATIC_9_SHOT_GRID)
    selected = set(selected_shot_ids)
    if not selected:
        raise InvalidBatchOptionsError("select at least one shot type")
    unknown = selected - GRID_BY_ID.keys()
    if unknown:
        raise InvalidBatchOptionsError(f"unknown shot ids: {sorted(unknown)}")
    return [spec for spec in CINEMATIC_9_SHOT_GRID if spec.id in selected]


async def generate_scene_coverage(
    scene_description: str,
    generate: GenerateFn,
    selected_shot_ids: Sequence[str] | None = None,
    scene_context: str = "",
    style_references: Sequence[str] = (),
    aspect_ratio: str = "16:9",
    resolution: str | None = None,
    on_progress: Callable[[int, int], None] | None = None,
    settings: Settings | None = None,
) -> SceneCoverageResult:
    """Generate coverage shots for a scene.

    All selected shots go out as a single group; the counts on the result
    cover the selected shots only.
    """
    settings = settings or get_settings()
    specs = resolve_selection(selected_shot_ids)

    requests = [
        GenerationRequest(
            id=generate_id("scene_shot"),
            prompt=build_scene_shot_prompt(scene_description, spec, scene_context),
            reference_artifacts=list(style_references),
            aspect_ratio=aspect_ratio,
            resolution=resolution or settings.default_resolution,
            metadata={"shot_id": spec.id},
        )
        for spec in specs
    ]

    options = BatchOptions.from_settings(
        settings,
        group_size=len(requests),
        on_progress=on_progress,
    )
    results = await run_batch(requests, generate, options)

    shots = [
        SceneCoverageShot(spec=spec, prompt=request.prompt, result=result)
        for spec, request, result in zip(specs, requests, results)
    ]
    coverage = SceneCoverageResult(
        scene_description=scene_description,
        shots=shots,
        success_count=sum(1 for s in shots if s.succeeded),
        total_count=len(specs),
    )
    logger.info(
        "scene_coverage_generated",
        selected=coverage.total_count,
        succeeded=coverage.success_count,
    )
    return coverage
