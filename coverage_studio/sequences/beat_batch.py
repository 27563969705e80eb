"""Batch generation of storyboard beats in small parallel groups."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Sequence

from coverage_studio.common.config import BatchPreset, Settings, get_settings
from coverage_studio.common.errors import InvalidBatchOptionsError
from coverage_studio.common.logging import get_logger
from coverage_studio.common.models import (
    Artifact,
    Beat,
    CharacterProfile,
    GenerationRequest,
    GenerationResult,
    LocationProfile,
    ProductProfile,
)
from coverage_studio.generation.executor import BatchOptions, GenerateFn, run_batch
from coverage_studio.generation.progress import BatchStats, compute_batch_stats
from coverage_studio.sequences.beat_variants import (
    build_beat_prompt,
    collect_beat_references,
)

logger = get_logger(__name__)


@dataclass
class BeatBatchResult:
    """Outcome of generating visuals for a list of beats."""

    generated: dict[str, Artifact] = field(default_factory=dict)  # beat_id -> artifact
    failed: dict[str, str] = field(default_factory=dict)  # beat_id -> error
    skipped: list[str] = field(default_factory=list)  # already had visuals
    results: list[GenerationResult] = field(default_factory=list)

    @property
    def stats(self) -> BatchStats:
        return compute_batch_stats(self.results)

    def apply_to(self, beats: Sequence[Beat]) -> list[Beat]:
        """Attach generated artifacts to their beats."""
        updated = []
        for beat in beats:
            artifact = self.generated.get(beat.id)
            if artifact is not None:
                beat = beat.with_generated_images([artifact.id])
            updated.append(beat)
        return updated


async def generate_beats(
    beats: Sequence[Beat],
    generate: GenerateFn,
    characters: Sequence[CharacterProfile] = (),
    locations: Sequence[LocationProfile] = (),
    products: Sequence[ProductProfile] = (),
    aspect_ratio: str = "16:9",
    resolution: str | None = None,
    on_progress: Callable[[int, int], None] | None = None,
    settings: Settings | None = None,
    **overrides,
) -> BeatBatchResult:
    """Generate one visual per beat that has none yet.

    Beats are processed in groups of ``settings.beat_group_size`` (3 by
    default). Keyword overrides are passed to ``BatchOptions``.

    Raises:
        InvalidBatchOptionsError: If two beats to generate share an id
    """
    settings = settings or get_settings()
    batch = BeatBatchResult()

    pending = []
    for beat in beats:
        if beat.has_visuals:
            batch.skipped.append(beat.id)
        else:
            pending.append(beat)

    if not pending:
        logger.info("beat_batch_nothing_to_generate", skipped=len(batch.skipped))
        return batch

    # Results are keyed by beat id
    counts = Counter(beat.id for beat in pending)
    duplicates = sorted(beat_id for beat_id, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidBatchOptionsError(f"duplicate beat ids: {duplicates}")

    requests = [
        GenerationRequest(
            id=beat.id,
            prompt=build_beat_prompt(beat, characters, locations, products),
            reference_artifacts=collect_beat_references(beat, characters, locations),
            aspect_ratio=aspect_ratio,
            resolution=resolution or settings.default_resolution,
            metadata={"beat_id": beat.id},
        )
        for beat in pending
    ]

    options = BatchOptions.from_settings(
        settings,
        BatchPreset.BEAT,
        on_progress=on_progress,
        **overrides,
    )
    batch.results = await run_batch(requests, generate, options)

    for result in batch.results:
        if result.succeeded:
            batch.generated[result.request_id] = result.artifact
        else:
            batch.failed[result.request_id] = result.error

    logger.info(
        "beat_batch_complete",
        generated=len(batch.generated),
        failed=len(batch.failed),
        skipped=len(batch.skipped),
    )
    return batch
