"""Coverage library generation and selective retry.

The orchestrator turns an entity plus a pack into one generation request
per shot spec, runs them through the batch executor and folds the results
into a ``CoverageLibrary``. Each request id doubles as the id of the angle
it produces, so retries are matched back by id and never by prompt text.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from coverage_studio.common.config import BatchPreset, Settings, get_settings
from coverage_studio.common.logging import get_logger
from coverage_studio.common.models import (
    CoverageAngle,
    CoverageLibrary,
    CoveragePack,
    EntityProfile,
    EntityType,
    GenerationRequest,
    GenerationResult,
    GenerationStatus,
    LibraryStatus,
    ShotSpec,
    TimingStats,
    generate_id,
    utc_now,
)
from coverage_studio.coverage.packs import DEFAULT_CATALOG, PackCatalog
from coverage_studio.generation.executor import (
    BatchExecutor,
    BatchOptions,
    CancellationToken,
    GenerateFn,
)
from coverage_studio.generation.progress import notify, progress_percent

logger = get_logger(__name__)


# Static framing policy: wide plates for locations, square for subjects
ASPECT_RATIO_BY_ENTITY = {
    EntityType.LOCATION: "16:9",
    EntityType.CHARACTER: "1:1",
    EntityType.PRODUCT: "1:1",
}


@dataclass
class CoverageOptions:
    """Per-run options for coverage generation."""

    max_concurrent: int = 10
    resolution: str | None = None  # Falls back to settings.default_resolution

    # Atmosphere modifiers
    time_of_day: str | None = None
    weather: str | None = None

    # Retry overrides (None = settings)
    max_retries: int | None = None
    retry_delay: float | None = None
    inter_group_delay: float | None = None

    cancel_token: CancellationToken | None = None

    # Sinks
    on_progress: Callable[[int, int, int], None] | None = None  # percent, done, total
    on_angle_complete: Callable[[CoverageAngle], None] | None = None
    on_complete: Callable[[CoverageLibrary], None] | None = None
    on_error: Callable[[Exception], None] | None = None


def build_angle_prompt(
    entity: EntityProfile,
    shot: ShotSpec,
    resolution: str,
    time_of_day: str | None = None,
    weather: str | None = None,
) -> str:
    """Concrete prompt for one shot spec of a pack."""
    name = entity.display_name
    base = entity.prompt_fragment
    if name and name not in base:
        base = f"{name}, {base}" if base else name

    prompt = (
        f"{base}. {shot.description}.\n"
        f"Professional cinematography, {resolution}, {shot.type} shot, {shot.angle_label}."
    )
    if time_of_day:
        prompt += f" {time_of_day} lighting."
    if weather:
        prompt += f" {weather} weather."
    return prompt


class CoverageOrchestrator:
    """Runs coverage packs for bible entities.

    Args:
        generate: Async single-request generation function
        catalog: Pack lookup, defaults to the built-in catalog
        settings: Batch presets and retry defaults
        executor: Batch executor bound to its own generation function; pass
            either this or ``generate``, not both

    Raises:
        ValueError: If neither or both of ``generate`` and ``executor`` are given
    """

    def __init__(
        self,
        generate: GenerateFn | None = None,
        catalog: PackCatalog = DEFAULT_CATALOG,
        settings: Settings | None = None,
        executor: BatchExecutor | None = None,
    ):
        if (generate is None) == (executor is None):
            raise ValueError("pass exactly one of generate or executor")
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.executor = executor or BatchExecutor(generate)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_library(
        self,
        entity: EntityProfile,
        entity_type: EntityType | str,
        pack_id: str,
        options: CoverageOptions | None = None,
    ) -> CoverageLibrary:
        """Generate a coverage library for an entity from a named pack.

        Raises:
            PackNotFoundError: If the pack id is unknown (nothing dispatched)
        """
        options = options or CoverageOptions()
        pack = self.catalog.require(pack_id)
        entity_type = EntityType(entity_type)
        resolution = options.resolution or self.settings.default_resolution

        library = CoverageLibrary(
            entity_ref=entity.id,
            entity_name=entity.display_name,
            entity_type=entity_type,
            pack_id=pack.id,
            pack_name=pack.name,
        )

        requests = self._build_requests(entity, entity_type, pack, resolution, options)

        logger.info(
            "coverage_generation_started",
            library_id=library.id,
            entity=library.entity_name,
            entity_type=entity_type.value,
            pack_id=pack.id,
            shots=pack.shot_count,
        )

        def on_progress(completed: int, total: int) -> None:
            percent = progress_percent(completed, total)
            library.progress = max(library.progress, percent)
            notify(options.on_progress, percent, completed, total)

        batch_options = self._batch_options(
            options,
            group_size=options.max_concurrent,
            on_progress=on_progress,
        )

        start = time.monotonic()
        try:
            results = await self.executor.run(requests, batch_options)
            self._check_alignment(requests, results)
        except Exception as e:
            library.status = LibraryStatus.FAILED
            logger.error(
                "coverage_generation_aborted",
                library_id=library.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            notify(options.on_error, e)
            raise

        angles = []
        for shot, request, result in zip(pack.shot_specs, requests, results):
            angle = self._to_angle(shot, request, result, options)
            notify(options.on_angle_complete, angle)
            angles.append(angle)

        library.angles = angles
        library.recount()
        total_time = time.monotonic() - start
        library.timing_stats = TimingStats(
            total_time_seconds=total_time,
            average_time_per_angle_seconds=total_time / len(angles),
            success_rate=library.success_rate,
        )
        library.status = LibraryStatus.COMPLETE
        library.progress = 100
        library.completed_at = utc_now()

        logger.info("coverage_generation_complete", **library.summary())
        notify(options.on_complete, library)
        return library

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------

    async def retry_failed(
        self,
        library: CoverageLibrary,
        options: CoverageOptions | None = None,
    ) -> CoverageLibrary:
        """Re-drive only the failed angles of a library and merge in place.

        Angles that succeed on retry are replaced; angles that fail again are
        left as they were. A library without failures is returned untouched.
        """
        failed = library.failed_angles
        if not failed:
            logger.info("no_failed_angles_to_retry", library_id=library.id)
            return library

        options = options or CoverageOptions()
        logger.info(
            "coverage_retry_started",
            library_id=library.id,
            failed=len(failed),
        )

        library.status = LibraryStatus.GENERATING
        library.progress = 0
        library.completed_at = None

        requests = [
            GenerationRequest(
                id=angle.id,
                prompt=angle.prompt,
                reference_artifacts=angle.reference_artifacts,
                aspect_ratio=angle.aspect_ratio,
                resolution=angle.resolution or None,
            )
            for angle in failed
        ]

        def on_progress(completed: int, total: int) -> None:
            percent = progress_percent(completed, total)
            library.progress = max(library.progress, percent)
            notify(options.on_progress, percent, completed, total)

        batch_options = self._batch_options(
            options,
            group_size=self.settings.group_size_for(BatchPreset.RETRY),
            on_progress=on_progress,
        )

        start = time.monotonic()
        try:
            results = await self.executor.run(requests, batch_options)
            self._check_alignment(requests, results)
        except Exception as e:
            library.status = LibraryStatus.FAILED
            logger.error(
                "coverage_retry_aborted",
                library_id=library.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            notify(options.on_error, e)
            raise

        retried = {r.request_id: r for r in results}
        merged = []
        for angle in library.angles:
            result = retried.get(angle.id)
            if angle.failed and result is not None and result.succeeded:
                angle = angle.model_copy(update={
                    "status": GenerationStatus.SUCCESS,
                    "artifact_ref": result.artifact.uri,
                    "error": None,
                    "attempts": angle.attempts + result.attempts,
                    "generation_time": result.elapsed_seconds,
                })
                notify(options.on_angle_complete, angle)
            merged.append(angle)

        library.angles = merged
        library.recount()
        library.retry_runs += 1

        previous_time = library.timing_stats.total_time_seconds if library.timing_stats else 0.0
        total_time = previous_time + (time.monotonic() - start)
        library.timing_stats = TimingStats(
            total_time_seconds=total_time,
            average_time_per_angle_seconds=total_time / len(merged),
            success_rate=library.success_rate,
        )
        library.status = LibraryStatus.COMPLETE
        library.progress = 100
        library.completed_at = utc_now()

        logger.info(
            "coverage_retry_complete",
            library_id=library.id,
            generated=library.generated_count,
            still_failed=library.failed_count,
        )
        notify(options.on_complete, library)
        return library

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_requests(
        self,
        entity: EntityProfile,
        entity_type: EntityType,
        pack: CoveragePack,
        resolution: str,
        options: CoverageOptions,
    ) -> list[GenerationRequest]:
        references = entity.reference_artifacts()
        aspect_ratio = ASPECT_RATIO_BY_ENTITY[entity_type]
        return [
            GenerationRequest(
                id=generate_id("angle"),
                prompt=build_angle_prompt(
                    entity,
                    shot,
                    resolution,
                    time_of_day=options.time_of_day,
                    weather=options.weather,
                ),
                reference_artifacts=references,
                aspect_ratio=aspect_ratio,
                resolution=resolution,
                metadata={"pack_id": pack.id, "shot_index": index},
            )
            for index, shot in enumerate(pack.shot_specs)
        ]

    def _batch_options(
        self,
        options: CoverageOptions,
        group_size: int,
        on_progress: Callable[[int, int], None],
    ) -> BatchOptions:
        overrides = {
            "group_size": group_size,
            "on_progress": on_progress,
            "on_error": lambda error, request: notify(options.on_error, error),
            "cancel_token": options.cancel_token,
        }
        if options.max_retries is not None:
            overrides["max_retries"] = options.max_retries
        if options.retry_delay is not None:
            overrides["retry_delay"] = options.retry_delay
        if options.inter_group_delay is not None:
            overrides["inter_group_delay"] = options.inter_group_delay
        return BatchOptions.from_settings(self.settings, **overrides)

    @staticmethod
    def _check_alignment(
        requests: list[GenerationRequest],
        results: list[GenerationResult],
    ) -> None:
        # Results are zipped back to shot specs by position
        if [r.id for r in requests] != [r.request_id for r in results]:
            raise RuntimeError("batch results do not line up with requests")

    @staticmethod
    def _to_angle(
        shot: ShotSpec,
        request: GenerationRequest,
        result: GenerationResult,
        options: CoverageOptions,
    ) -> CoverageAngle:
        return CoverageAngle(
            id=request.id,
            category=shot.category,
            type=shot.type,
            angle_label=shot.angle_label,
            description=shot.description,
            prompt=request.prompt,
            resolution=request.resolution or "",
            aspect_ratio=request.aspect_ratio,
            reference_artifacts=list(request.reference_artifacts),
            artifact_ref=result.artifact.uri if result.artifact else None,
            status=result.status,
            error=result.error,
            attempts=result.attempts,
            generation_time=result.elapsed_seconds,
            metadata={
                "time_of_day": options.time_of_day,
                "weather": options.weather,
                "cinematic_use": [shot.type.lower()],
            },
        )


async def generate_coverage_library(
    entity: EntityProfile,
    entity_type: EntityType | str,
    pack_id: str,
    generate: GenerateFn,
    options: CoverageOptions | None = None,
    catalog: PackCatalog = DEFAULT_CATALOG,
    settings: Settings | None = None,
) -> CoverageLibrary:
    """Convenience wrapper around ``CoverageOrchestrator.generate_library``."""
    orchestrator = CoverageOrchestrator(generate, catalog=catalog, settings=settings)
    return await orchestrator.generate_library(entity, entity_type, pack_id, options)


async def retry_failed_angles(
    library: CoverageLibrary,
    generate: GenerateFn,
    options: CoverageOptions | None = None,
    settings: Settings | None = None,
) -> CoverageLibrary:
    """Convenience wrapper around ``CoverageOrchestrator.retry_failed``."""
    orchestrator = CoverageOrchestrator(generate, settings=settings)
    return await orchestrator.retry_failed(library, options)
