"""Pytest configuration and fixtures."""

import asyncio
from typing import Callable

import pytest

from coverage_studio.common.config import Settings
from coverage_studio.common.models import (
    Artifact,
    CharacterProfile,
    GenerationRequest,
    LocationProfile,
)


class FakeGenerator:
    """Scripted async generator that records calls and concurrency.

    ``should_fail(request, attempt)`` decides whether the given attempt
    (1-based, counted per request id) raises.
    """

    def __init__(
        self,
        should_fail: Callable[[GenerationRequest, int], bool] | None = None,
        delay: float = 0.0,
        error_factory: Callable[[GenerationRequest], Exception] | None = None,
    ):
        self.should_fail = should_fail or (lambda request, attempt: False)
        self.delay = delay
        self.error_factory = error_factory or (
            lambda request: RuntimeError(f"provider error for {request.id}")
        )

        self.calls: list[GenerationRequest] = []
        self.attempts: dict[str, int] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, request: GenerationRequest) -> Artifact:
        self.calls.append(request)
        attempt = self.attempts.get(request.id, 0) + 1
        self.attempts[request.id] = attempt

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.should_fail(request, attempt):
                raise self.error_factory(request)
            return Artifact(
                uri=f"memory://{request.id}/{attempt}",
                prompt=request.prompt,
            )
        finally:
            self.in_flight -= 1

    @property
    def prompts(self) -> list[str]:
        return [r.prompt for r in self.calls]


@pytest.fixture
def fake_generator():
    """Factory for scripted generators."""
    return FakeGenerator


@pytest.fixture
def fast_settings(tmp_path):
    """Settings with all pauses disabled."""
    return Settings(
        retry_delay_seconds=0.0,
        inter_group_delay_seconds=0.0,
        request_timeout_seconds=0.0,
        output_dir=str(tmp_path / "coverage"),
    )


@pytest.fixture
def character():
    """Sample character profile."""
    return CharacterProfile(
        name="Mara",
        description="A wiry courier with cropped silver hair and a red rain jacket",
        image_refs=["refs/mara_01.png"],
    )


@pytest.fixture
def location():
    """Sample location profile."""
    return LocationProfile(
        name="Harbor Market",
        description="Covered fish market on a wet pier with neon signage",
        anchor_image="refs/harbor_plate.png",
        time_of_day="night",
    )
