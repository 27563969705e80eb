"""Bible entities targeted by coverage and variant generation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from coverage_studio.common.models.base import generate_id
from coverage_studio.common.models.coverage import EntityType


class EntityProfile(BaseModel):
    """Fields shared by characters, locations and products.

    Profiles are frozen. Edits go through the explicit ``with_*`` methods,
    each returning an updated copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id("entity"))
    name: str = ""
    description: str = ""
    prompt_snippet: str = ""  # Stable prompt fragment for visual consistency
    image_refs: list[str] = Field(default_factory=list)

    entity_type: EntityType = EntityType.CHARACTER

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def prompt_fragment(self) -> str:
        """Descriptive fragment used as the base of generation prompts."""
        return self.prompt_snippet or self.description

    def reference_artifacts(self) -> list[str]:
        """Existing references passed through to the generator."""
        return list(self.image_refs)

    def with_name(self, name: str) -> "EntityProfile":
        return self.model_copy(update={"name": name})

    def with_description(self, description: str) -> "EntityProfile":
        return self.model_copy(update={"description": description})

    def with_prompt_snippet(self, snippet: str) -> "EntityProfile":
        return self.model_copy(update={"prompt_snippet": snippet})

    def with_reference_images(self, refs: list[str]) -> "EntityProfile":
        return self.model_copy(update={"image_refs": list(refs)})


class CharacterProfile(EntityProfile):
    """A character in the project bible."""

    id: str = Field(default_factory=lambda: generate_id("char"))
    entity_type: EntityType = EntityType.CHARACTER

    character_sheet: str | None = None  # Preferred reference when present

    def reference_artifacts(self) -> list[str]:
        refs = list(self.image_refs)
        if self.character_sheet:
            refs.insert(0, self.character_sheet)
        return refs

    def with_character_sheet(self, sheet: str | None) -> "CharacterProfile":
        return self.model_copy(update={"character_sheet": sheet})


class LocationProfile(EntityProfile):
    """A location in the project bible."""

    id: str = Field(default_factory=lambda: generate_id("loc"))
    entity_type: EntityType = EntityType.LOCATION

    anchor_image: str | None = None  # Location plate
    time_of_day: str | None = None
    lighting_notes: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or "Location"

    @property
    def prompt_fragment(self) -> str:
        return self.prompt_snippet or f"{self.name} {self.description}".strip()

    def reference_artifacts(self) -> list[str]:
        refs = list(self.image_refs)
        if self.anchor_image:
            refs.insert(0, self.anchor_image)
        return refs

    def with_anchor_image(self, image: str | None) -> "LocationProfile":
        return self.model_copy(update={"anchor_image": image})

    def with_lighting(
        self, time_of_day: str | None, lighting_notes: str | None
    ) -> "LocationProfile":
        return self.model_copy(
            update={"time_of_day": time_of_day, "lighting_notes": lighting_notes}
        )


class ProductProfile(EntityProfile):
    """A product in the project bible."""

    id: str = Field(default_factory=lambda: generate_id("prod"))
    entity_type: EntityType = EntityType.PRODUCT

    brand_guidelines: str | None = None

    @property
    def prompt_fragment(self) -> str:
        return f"{self.name}, {self.prompt_snippet or self.description}"

    def with_brand_guidelines(self, guidelines: str | None) -> "ProductProfile":
        return self.model_copy(update={"brand_guidelines": guidelines})


class Beat(BaseModel):
    """A storyboard beat from the script breakdown."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id("beat"))
    visual_summary: str
    shot_type: str = "Medium"
    mood: str = ""

    characters: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    products: list[str] = Field(default_factory=list)

    generated_image_ids: list[str] = Field(default_factory=list)
    has_sequence_grid: bool = False

    @property
    def has_visuals(self) -> bool:
        return bool(self.generated_image_ids) or self.has_sequence_grid

    def with_generated_images(self, image_ids: list[str]) -> "Beat":
        return self.model_copy(
            update={"generated_image_ids": list(self.generated_image_ids) + image_ids}
        )
