"""Creative variants of a single storyboard beat."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

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
    generate_id,
)
from coverage_studio.generation.executor import BatchOptions, GenerateFn, run_batch
from coverage_studio.generation.progress import BatchStats, compute_batch_stats

logger = get_logger(__name__)

MAX_REFERENCE_IMAGES = 4


class VariantType(str, Enum):
    """Creative direction applied to a beat's base prompt."""

    STANDARD = "Standard"
    DRAMATIC = "Dramatic"
    CINEMATIC = "Cinematic"
    ARTISTIC = "Artistic"


VARIANT_MODIFIERS: dict[VariantType, tuple[str, str]] = {
    VariantType.STANDARD: (
        "",
        "Direct interpretation of the visual summary",
    ),
    VariantType.DRAMATIC: (
        "\n\nCREATIVE DIRECTION: DRAMATIC\n"
        "- Increase lighting contrast with strong shadows and highlights\n"
        "- Use dynamic camera angles\n"
        "- Amplify emotional intensity in expressions and body language\n"
        "- Bold compositional choices with strong leading lines",
        "High contrast, dynamic angles, intense mood",
    ),
    VariantType.CINEMATIC: (
        "\n\nCREATIVE DIRECTION: CINEMATIC\n"
        "- Shallow depth of field with focused subject\n"
        "- Film grain texture, anamorphic lens feel\n"
        "- Subtle teal and orange color grading\n"
        "- Rule of thirds composition with purposeful negative space",
        "Shallow focus, film texture, graded color",
    ),
    VariantType.ARTISTIC: (
        "\n\nCREATIVE DIRECTION: ARTISTIC\n"
        "- Painterly interpretation with expressive color\n"
        "- Stylised lighting and unconventional framing\n"
        "- Emphasis on mood over literal detail",
        "Painterly, stylised, mood-first",
    ),
}


def build_beat_prompt(
    beat: Beat,
    characters: Sequence[CharacterProfile] = (),
    locations: Sequence[LocationProfile] = (),
    products: Sequence[ProductProfile] = (),
) -> str:
    """Base prompt for a beat with the bible entities it references."""
    prompt = (
        f"SHOT ACTION: {beat.visual_summary}. "
        f"Shot Type: {beat.shot_type}. Mood: {beat.mood}."
    )

    relevant_characters = [c for c in characters if c.name in beat.characters]
    if relevant_characters:
        prompt += "\n\nCHARACTERS:"
        for char in relevant_characters:
            prompt += f"\n- {char.name}: {char.prompt_fragment}"

    relevant_locations = [loc for loc in locations if loc.name in beat.locations]
    if relevant_locations:
        prompt += "\n\nLOCATION:"
        for loc in relevant_locations:
            prompt += f"\n- {loc.name}: {loc.prompt_snippet or loc.description}"
            if loc.time_of_day:
                prompt += f" ({loc.time_of_day})"
            if loc.lighting_notes:
                prompt += f" - {loc.lighting_notes}"

    relevant_products = [p for p in products if p.name in beat.products]
    if relevant_products:
        prompt += "\n\nPRODUCT PLACEMENT:"
        for prod in relevant_products:
            prompt += f"\n- {prod.name}: {prod.prompt_snippet or prod.description}"
            if prod.brand_guidelines:
                prompt += f" ({prod.brand_guidelines})"

    return prompt


def collect_beat_references(
    beat: Beat,
    characters: Sequence[CharacterProfile] = (),
    locations: Sequence[LocationProfile] = (),
) -> list[str]:
    """First reference of each entity in the beat, capped for the provider."""
    references = []
    for char in characters:
        if char.name in beat.characters:
            refs = char.reference_artifacts()
            if refs:
                references.append(refs[0])
    for loc in locations:
        if loc.name in beat.locations:
            refs = loc.reference_artifacts()
            if refs:
                references.append(refs[0])
    return references[:MAX_REFERENCE_IMAGES]


def variant_types_for(count: int) -> list[VariantType]:
    types = [VariantType.STANDARD, VariantType.DRAMATIC, VariantType.CINEMATIC]
    if count > 3:
        types.append(VariantType.ARTISTIC)
    return types[:count]


@dataclass(frozen=True)
class BeatVariant:
    """One successfully generated variant."""

    beat_id: str
    variant_type: VariantType
    description: str
    prompt: str
    artifact: Artifact


@dataclass
class BeatVariantSet:
    """Outcome of a variant run for one beat."""

    beat_id: str
    variants: list[BeatVariant] = field(default_factory=list)
    failures: dict[VariantType, str] = field(default_factory=dict)
    results: list[GenerationResult] = field(default_factory=list)

    @property
    def stats(self) -> BatchStats:
        return compute_batch_stats(self.results)


async def generate_beat_variants(
    beat: Beat,
    generate: GenerateFn,
    characters: Sequence[CharacterProfile] = (),
    locations: Sequence[LocationProfile] = (),
    products: Sequence[ProductProfile] = (),
    variant_count: int | None = None,
    aspect_ratio: str = "16:9",
    resolution: str = "2K",
    options: BatchOptions | None = None,
    settings: Settings | None = None,
) -> BeatVariantSet:
    """Generate creative variants of a beat, all dispatched together.

    Args:
        beat: Beat to explore
        generate: Async single-request generation function
        characters: Character bible, filtered to those named in the beat
        locations: Location bible, filtered to those named in the beat
        products: Product bible, filtered to those named in the beat
        variant_count: Number of variants (settings.variant_count if None)
        aspect_ratio: Frame aspect ratio
        resolution: Resolution label
        options: Batch options; group size is forced to the variant count

    Returns:
        BeatVariantSet with successful variants and per-variant failures
    """
    settings = settings or get_settings()
    count = variant_count if variant_count is not None else settings.group_size_for(BatchPreset.VARIANT)
    if not 1 <= count <= len(VariantType):
        raise InvalidBatchOptionsError(
            f"variant_count must be between 1 and {len(VariantType)}, got {count}"
        )

    types = variant_types_for(count)
    base_prompt = build_beat_prompt(beat, characters, locations, products)
    references = collect_beat_references(beat, characters, locations)

    requests = [
        GenerationRequest(
            id=generate_id("variant"),
            prompt=base_prompt + VARIANT_MODIFIERS[variant_type][0],
            reference_artifacts=references,
            aspect_ratio=aspect_ratio,
            resolution=resolution,
            metadata={"beat_id": beat.id, "variant_type": variant_type.value},
        )
        for variant_type in types
    ]

    if options is None:
        options = BatchOptions.from_settings(settings, BatchPreset.VARIANT)
    options = replace(options, group_size=len(requests))

    results = await run_batch(requests, generate, options)

    variant_set = BeatVariantSet(beat_id=beat.id, results=results)
    for variant_type, request, result in zip(types, requests, results):
        if result.succeeded:
            variant_set.variants.append(
                BeatVariant(
                    beat_id=beat.id,
                    variant_type=variant_type,
                    description=VARIANT_MODIFIERS[variant_type][1],
                    prompt=request.prompt,
                    artifact=result.artifact,
                )
            )
        else:
            variant_set.failures[variant_type] = result.error

    logger.info(
        "beat_variants_generated",
        beat_id=beat.id,
        requested=len(types),
        generated=len(variant_set.variants),
    )
    return variant_set
