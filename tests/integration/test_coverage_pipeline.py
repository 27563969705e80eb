"""End-to-end coverage runs against the stub generation client."""

from pathlib import Path

import pytest

from coverage_studio.common.models import Beat, EntityType, LibraryStatus
from coverage_studio.coverage import CoverageOptions, CoverageOrchestrator
from coverage_studio.generation import GenerationClient, StubImageBackend
from coverage_studio.sequences import generate_beats, generate_scene_coverage


class FlakyBackend(StubImageBackend):
    """Stub backend that fails every prompt containing a marker once."""

    def __init__(self, marker: str, **kwargs):
        super().__init__(**kwargs)
        self.marker = marker
        self.failed_once: set[str] = set()

    async def generate(self, prompt, width, height, reference_artifacts):
        if self.marker in prompt and prompt not in self.failed_once:
            self.failed_once.add(prompt)
            raise RuntimeError("simulated rate limit")
        return await super().generate(prompt, width, height, reference_artifacts)


@pytest.mark.integration
class TestCoveragePipeline:
    """Full coverage runs writing real image files."""

    @pytest.mark.asyncio
    async def test_contact_sheet_with_flaky_provider(self, tmp_path, fast_settings, character):
        """Test a 12-shot pack completes despite transient provider errors."""
        client = GenerationClient(
            backend=FlakyBackend("Close Up", max_edge=64),
            output_dir=str(tmp_path),
        )
        orchestrator = CoverageOrchestrator(client.generate, settings=fast_settings)

        library = await orchestrator.generate_library(
            character,
            EntityType.CHARACTER,
            "contact-sheet",
            CoverageOptions(resolution="1K"),
        )

        assert library.status == LibraryStatus.COMPLETE
        assert library.generated_count == 12
        assert library.failed_count == 0
        assert all(Path(a.artifact_ref).exists() for a in library.angles)
        assert any(a.attempts == 2 for a in library.angles)
        assert client.generated_count == 12

    @pytest.mark.asyncio
    async def test_failed_run_then_retry(self, tmp_path, fast_settings, location):
        """Test a library with failures is completed by a retry pass."""
        client = GenerationClient(
            backend=StubImageBackend(failure_rate=1.0, max_edge=64),
            output_dir=str(tmp_path),
        )
        orchestrator = CoverageOrchestrator(client.generate, settings=fast_settings)

        library = await orchestrator.generate_library(
            location,
            EntityType.LOCATION,
            "location",
            CoverageOptions(max_retries=0),
        )
        assert library.failed_count == 8

        client.backend = StubImageBackend(max_edge=64)
        await orchestrator.retry_failed(library)

        assert library.generated_count == 8
        assert library.failed_count == 0
        assert library.success_rate == 100.0
        assert len(list(tmp_path.glob("*.png"))) == 8

    @pytest.mark.asyncio
    async def test_library_round_trips_as_json(self, tmp_path, fast_settings, character):
        """Test a finished library can be stored and reloaded."""
        client = GenerationClient(backend=StubImageBackend(max_edge=32), output_dir=str(tmp_path))
        orchestrator = CoverageOrchestrator(client.generate, settings=fast_settings)

        library = await orchestrator.generate_library(character, EntityType.CHARACTER, "turnaround")
        restored = type(library).model_validate_json(library.model_dump_json())

        assert restored.id == library.id
        assert [a.id for a in restored.angles] == [a.id for a in library.angles]


@pytest.mark.integration
class TestSequencePipeline:
    """Sequence flows against the stub generation client."""

    @pytest.mark.asyncio
    async def test_scene_coverage_and_beats(self, tmp_path, fast_settings, character, location):
        """Test scene coverage and storyboard beats write frames."""
        client = GenerationClient(backend=StubImageBackend(max_edge=32), output_dir=str(tmp_path))

        coverage = await generate_scene_coverage(
            "Harbor Market at night",
            client.generate,
            selected_shot_ids=["ws", "cu"],
            settings=fast_settings,
        )
        beats = await generate_beats(
            [
                Beat(id="beat_1", visual_summary="Mara enters the market", characters=["Mara"]),
                Beat(id="beat_2", visual_summary="Stalls glow in the rain", locations=["Harbor Market"]),
            ],
            client.generate,
            characters=[character],
            locations=[location],
            settings=fast_settings,
        )

        assert coverage.success_count == 2
        assert set(beats.generated) == {"beat_1", "beat_2"}
        assert client.generated_count == 4
