"""Image generation backends and the caller-owned generation client.

The remote generation operation is opaque to the batch core: anything with
the shape ``async (GenerationRequest) -> Artifact`` can drive a batch.
``GenerationClient`` is the implementation used by the application. It is
created once, holds the backend and output directory, and its ``generate``
method is passed to the executor directly.
"""

from __future__ import annotations

import asyncio
import hashlib
import random
import time
from abc import ABC, abstractmethod
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from coverage_studio.common.config import Settings, get_settings
from coverage_studio.common.logging import get_logger
from coverage_studio.common.models import Artifact, GenerationRequest

logger = get_logger(__name__)


# Long edge in pixels per resolution label
RESOLUTION_LONG_EDGE = {
    "1K": 1024,
    "2K": 2048,
    "4K": 4096,
}

# Cost estimates per image (in USD)
BACKEND_COST_ESTIMATES = {
    "stub": 0.0,
}


def aspect_ratio_dimensions(
    aspect_ratio: str | None,
    resolution: str | None = None,
) -> tuple[int, int]:
    """Pixel dimensions for an aspect ratio such as ``"16:9"`` at a resolution.

    Unknown or missing values fall back to a square 1K frame.
    """
    long_edge = RESOLUTION_LONG_EDGE.get((resolution or "1K").upper(), 1024)
    try:
        w_part, h_part = (aspect_ratio or "1:1").split(":")
        w_ratio, h_ratio = float(w_part), float(h_part)
        if w_ratio <= 0 or h_ratio <= 0:
            raise ValueError(aspect_ratio)
    except ValueError:
        w_ratio, h_ratio = 1.0, 1.0

    if w_ratio >= h_ratio:
        return long_edge, max(1, round(long_edge * h_ratio / w_ratio))
    return max(1, round(long_edge * w_ratio / h_ratio)), long_edge


class ImageGeneratorBackend(ABC):
    """Abstract base class for image generation backends."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        width: int,
        height: int,
        reference_artifacts: list[str],
    ) -> tuple[Image.Image, float]:
        """Generate an image from the prompt.

        Returns:
            Tuple of (PIL Image, generation cost in USD)
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logging."""


class StubImageBackend(ImageGeneratorBackend):
    """Offline backend that renders labelled placeholder frames.

    Lets the whole coverage pipeline run without provider credentials.
    ``latency`` and ``failure_rate`` simulate a slow, flaky provider so
    retry behaviour can be exercised end to end.
    """

    def __init__(
        self,
        latency: float = 0.0,
        failure_rate: float = 0.0,
        max_edge: int = 1024,
        seed: int | None = None,
    ):
        self.latency = latency
        self.failure_rate = failure_rate
        self.max_edge = max_edge
        self._random = random.Random(seed)

    @property
    def name(self) -> str:
        return "stub"

    async def generate(
        self,
        prompt: str,
        width: int,
        height: int,
        reference_artifacts: list[str],
    ) -> tuple[Image.Image, float]:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.failure_rate and self._random.random() < self.failure_rate:
            raise RuntimeError("Stub backend simulated a provider failure")

        # Render at preview size; stubs do not need full resolution
        scale = min(1.0, self.max_edge / max(width, height))
        width = max(1, int(width * scale))
        height = max(1, int(height * scale))

        bg_color = (30, 35, 45)
        fg_color = (200, 180, 140)
        accent_color = (255, 200, 100)

        img = Image.new("RGB", (width, height), bg_color)
        draw = ImageDraw.Draw(img)

        # Vertical gradient for depth
        for y in range(height):
            factor = 1.0 - (y / height) * 0.3
            draw.line(
                [(0, y), (width, y)],
                fill=tuple(int(c * factor) for c in bg_color),
            )

        draw.rectangle(
            [(0, 0), (width - 1, height - 1)],
            outline=accent_color,
            width=max(1, min(width, height) // 128),
        )

        font = ImageFont.load_default()
        margin = max(4, min(width, height) // 20)
        draw.text((margin, margin), "COVERAGE STUB", fill=accent_color, font=font)

        lines = _wrap(prompt, max_chars=max(10, width // 8), max_lines=6)
        y_offset = height // 2 - len(lines) * 7
        for line in lines:
            draw.text((margin, y_offset), line, fill=fg_color, font=font)
            y_offset += 14

        if reference_artifacts:
            draw.text(
                (margin, height - margin - 12),
                f"{len(reference_artifacts)} reference(s)",
                fill=fg_color,
                font=font,
            )

        return img, BACKEND_COST_ESTIMATES["stub"]


def _wrap(text: str, max_chars: int, max_lines: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        if len(current) + len(word) + 1 <= max_chars:
            current = f"{current} {word}".strip()
            continue
        if current:
            lines.append(current)
        current = word
        if len(lines) >= max_lines:
            return lines
    if current and len(lines) < max_lines:
        lines.append(current)
    return lines


class GenerationClient:
    """Caller-owned client for the remote generation operation.

    Create one per process and reuse it; there is no module-level instance.
    """

    def __init__(
        self,
        backend: ImageGeneratorBackend | None = None,
        output_dir: str = "outputs/coverage",
        default_resolution: str = "4K",
    ):
        self.backend = backend or StubImageBackend()
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.default_resolution = default_resolution

        self.total_cost_usd = 0.0
        self.generated_count = 0

    async def generate(self, request: GenerationRequest) -> Artifact:
        """Generate and store one artifact for a request.

        Raises whatever the backend raises; the batch executor owns retries.
        """
        start_time = time.time()
        width, height = aspect_ratio_dimensions(
            request.aspect_ratio,
            request.resolution or self.default_resolution,
        )

        logger.debug(
            "generating_image",
            request_id=request.id,
            backend=self.backend.name,
            width=width,
            height=height,
        )

        image, cost = await self.backend.generate(
            prompt=request.prompt,
            width=width,
            height=height,
            reference_artifacts=list(request.reference_artifacts),
        )

        content_hash = hashlib.md5(request.prompt.encode()).hexdigest()[:8]
        output_path = self.output_dir / f"{request.id}_{content_hash}.png"
        image.save(output_path, "PNG")

        self.total_cost_usd += cost
        self.generated_count += 1

        logger.debug(
            "image_generated",
            request_id=request.id,
            path=str(output_path),
            cost=cost,
            time=round(time.time() - start_time, 3),
        )

        return Artifact(
            uri=str(output_path),
            mime_type="image/png",
            prompt=request.prompt[:500],
            width=image.width,
            height=image.height,
            backend=self.backend.name,
            cost=cost,
        )

    def get_cost_report(self) -> dict:
        """Return cost tracking summary."""
        return {
            "backend": self.backend.name,
            "generated_count": self.generated_count,
            "total_cost_usd": self.total_cost_usd,
        }


def create_generation_client(
    settings: Settings | None = None,
    **backend_kwargs,
) -> GenerationClient:
    """Create a generation client with the configured backend.

    Args:
        settings: Settings providing backend name, output dir and resolution
        **backend_kwargs: Additional kwargs for backend initialization

    Returns:
        Configured GenerationClient
    """
    settings = settings or get_settings()

    if settings.image_backend != "stub":
        logger.warning(
            "unknown_backend_using_stub",
            requested=settings.image_backend,
        )
    backend = StubImageBackend(**backend_kwargs)

    return GenerationClient(
        backend=backend,
        output_dir=settings.output_dir,
        default_resolution=settings.default_resolution,
    )
