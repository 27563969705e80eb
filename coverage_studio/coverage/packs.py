"""Coverage pack catalog.

Packs are static reference data: a named list of shot specs that defines
what one coverage run produces for an entity.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from coverage_studio.common.errors import PackNotFoundError
from coverage_studio.common.models import (
    CoveragePack,
    EntityType,
    ShotCategory,
    ShotSpec,
)


def _shot(shot_type: str, angle: str, description: str, category: ShotCategory) -> ShotSpec:
    return ShotSpec(type=shot_type, angle_label=angle, description=description, category=category)


ROT = ShotCategory.ROTATIONAL
HGT = ShotCategory.HEIGHT
DST = ShotCategory.DISTANCE
SPC = ShotCategory.SPECIALTY

CHARACTER_ONLY = frozenset({EntityType.CHARACTER})


TURNAROUND = CoveragePack(
    id="turnaround",
    name="Turnaround",
    description="Front, side, back views for reference",
    applicable_entity_types=frozenset({EntityType.CHARACTER, EntityType.PRODUCT}),
    estimated_time="1-2 min",
    estimated_cost="$0.03",
    shot_specs=(
        _shot("Full Body", "Front", "Full body front view, neutral pose, eye level", ROT),
        _shot("Full Body", "Side Profile", "Full body side profile, neutral pose, eye level", ROT),
        _shot("Full Body", "Back", "Full body back view, neutral pose, eye level", ROT),
    ),
)

CONTACT_SHEET = CoveragePack(
    id="contact-sheet",
    name="3x4 Contact Sheet",
    description="Complete visual reference library (12 shots)",
    applicable_entity_types=CHARACTER_ONLY,
    recommended=True,
    estimated_time="3-5 min",
    estimated_cost="$0.12",
    shot_specs=(
        # Row 1: establishing
        _shot("Extreme Wide", "High Angle Establishing", "Wide establishing shot from high angle", DST),
        _shot("Wide", "Eye Level Master", "Wide master shot at eye level", DST),
        _shot("Full Body", "Low Angle Hero", "Full body shot from low angle (power pose)", HGT),
        # Row 2: medium
        _shot("Medium", "Front", "Medium shot, front view, eye level", ROT),
        _shot("Medium", "3/4 Profile", "Medium shot, 3/4 profile angle", ROT),
        _shot("Medium", "Profile", "Medium shot, side profile", ROT),
        # Row 3: close
        _shot("Medium Close Up", "Front", "Medium close up, front view", DST),
        _shot("Close Up", "Front", "Close up, front view, eye level", DST),
        _shot("Close Up", "Side Profile", "Close up, side profile", ROT),
        # Row 4: specialty
        _shot("Extreme Close Up", "Eyes", "Extreme close up of eyes/face", DST),
        _shot("Medium", "Dutch Angle", "Medium shot with dutch angle for energy", SPC),
        _shot("Over The Shoulder", "Medium", "Over-the-shoulder medium shot", SPC),
    ),
)

DIALOGUE = CoveragePack(
    id="dialogue",
    name="Dialogue Pack",
    description="Master, OTS, close-ups for conversation scenes",
    applicable_entity_types=CHARACTER_ONLY,
    estimated_time="2 min",
    estimated_cost="$0.05",
    shot_specs=(
        _shot("Wide", "Master Shot", "Wide master showing scene", DST),
        _shot("Medium", "Over The Shoulder Left", "OTS shot from left", SPC),
        _shot("Medium", "Over The Shoulder Right", "OTS shot from right", SPC),
        _shot("Close Up", "Front A", "Close up front view", DST),
        _shot("Close Up", "Front B", "Close up alternate angle", DST),
    ),
)

ACTION = CoveragePack(
    id="action",
    name="Action Pack",
    description="Dynamic shots for action sequences",
    applicable_entity_types=CHARACTER_ONLY,
    estimated_time="2 min",
    estimated_cost="$0.05",
    shot_specs=(
        _shot("Wide", "Action Master", "Wide master shot showing action", DST),
        _shot("Low Angle", "Hero Power Shot", "Low angle hero shot emphasizing power", HGT),
        _shot("Close Up", "Detail", "Close up of key detail", DST),
        _shot("Overhead", "Bird Eye", "Overhead shot showing layout", HGT),
        _shot("Medium", "Dutch Angle Tension", "Dutch angle medium shot for tension", SPC),
    ),
)

PRODUCT_HERO = CoveragePack(
    id="product-hero",
    name="Product Hero",
    description="Commercial product photography angles",
    applicable_entity_types=frozenset({EntityType.PRODUCT}),
    estimated_time="2 min",
    estimated_cost="$0.06",
    shot_specs=(
        _shot("Front View", "3/4 Right", "3/4 front right view, hero angle", ROT),
        _shot("Close Up", "Logo Detail", "Close up of brand logo/feature", DST),
        _shot("Wide", "Lifestyle Context", "Product in lifestyle context", DST),
        _shot("Extreme Close Up", "Material Texture", "Extreme close up of material/texture", DST),
        _shot("Side Profile", "Full Product", "Clean side profile of full product", ROT),
        _shot("Overhead", "Top Down", "Overhead top-down clean shot", HGT),
    ),
)

# Location packs carry no character framings
LOCATION = CoveragePack(
    id="location",
    name="Location Pack",
    description="Environment variety for location shots",
    applicable_entity_types=frozenset({EntityType.LOCATION}),
    estimated_time="3 min",
    estimated_cost="$0.08",
    shot_specs=(
        _shot("Extreme Wide", "Establishing", "Extreme wide establishing shot", DST),
        _shot("Wide", "Environment Master", "Wide master of environment", DST),
        _shot("Medium", "Detail Feature 1", "Medium shot of key architectural detail", DST),
        _shot("Medium", "Detail Feature 2", "Medium shot of secondary detail", DST),
        _shot("Close Up", "Texture Detail", "Close up of surface texture", DST),
        _shot("Overhead", "Layout", "Overhead showing spatial layout", HGT),
        _shot("Low Angle", "Architecture", "Low angle emphasizing architecture", HGT),
        _shot("Dutch Angle", "Dynamic", "Dutch angle for dynamic perspective", SPC),
    ),
)


class PackCatalog(Mapping[str, CoveragePack]):
    """Read-only lookup of packs by id."""

    def __init__(self, packs: list[CoveragePack]):
        self._packs = {pack.id: pack for pack in packs}

    def __getitem__(self, pack_id: str) -> CoveragePack:
        return self._packs[pack_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._packs)

    def __len__(self) -> int:
        return len(self._packs)

    def require(self, pack_id: str) -> CoveragePack:
        """Resolve a pack or raise ``PackNotFoundError``."""
        pack = self._packs.get(pack_id)
        if pack is None:
            raise PackNotFoundError(pack_id)
        return pack

    def ids(self) -> list[str]:
        return list(self._packs)

    def recommended(self) -> CoveragePack:
        for pack in self._packs.values():
            if pack.recommended:
                return pack
        return next(iter(self._packs.values()))

    def for_entity_type(self, entity_type: EntityType | str) -> list[CoveragePack]:
        return [p for p in self._packs.values() if p.applies_to(entity_type)]


DEFAULT_CATALOG = PackCatalog(
    [TURNAROUND, CONTACT_SHEET, DIALOGUE, ACTION, PRODUCT_HERO, LOCATION]
)


def get_pack(pack_id: str) -> CoveragePack | None:
    """Get pack by ID from the default catalog."""
    return DEFAULT_CATALOG.get(pack_id)


def get_recommended_pack() -> CoveragePack:
    return DEFAULT_CATALOG.recommended()


def get_all_pack_ids() -> list[str]:
    return DEFAULT_CATALOG.ids()


def get_packs_for_entity_type(entity_type: EntityType | str) -> list[CoveragePack]:
    """Packs that make sense for a character, location or product."""
    return DEFAULT_CATALOG.for_entity_type(entity_type)
