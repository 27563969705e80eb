"""Unit tests for the coverage pack catalog."""

import pytest
from pydantic import ValidationError

from coverage_studio.common.errors import PackNotFoundError
from coverage_studio.common.models import EntityType
from coverage_studio.coverage.packs import (
    DEFAULT_CATALOG,
    TURNAROUND,
    PackCatalog,
    get_all_pack_ids,
    get_pack,
    get_packs_for_entity_type,
    get_recommended_pack,
)


class TestDefaultCatalog:
    """Tests for the built-in packs."""

    def test_pack_ids(self):
        """Test all built-in packs are registered."""
        assert get_all_pack_ids() == [
            "turnaround",
            "contact-sheet",
            "dialogue",
            "action",
            "product-hero",
            "location",
        ]

    @pytest.mark.parametrize(
        "pack_id,shots",
        [
            ("turnaround", 3),
            ("contact-sheet", 12),
            ("dialogue", 5),
            ("action", 5),
            ("product-hero", 6),
            ("location", 8),
        ],
    )
    def test_shot_counts(self, pack_id, shots):
        """Test each pack carries its fixed number of shot specs."""
        assert get_pack(pack_id).shot_count == shots

    def test_turnaround_angles(self):
        """Test the turnaround pack order."""
        assert [s.angle_label for s in TURNAROUND.shot_specs] == [
            "Front",
            "Side Profile",
            "Back",
        ]

    def test_recommended_pack(self):
        """Test the contact sheet is recommended."""
        assert get_recommended_pack().id == "contact-sheet"

    def test_unknown_pack(self):
        """Test lookups for unknown ids."""
        assert get_pack("missing") is None
        with pytest.raises(PackNotFoundError, match="Pack not found: missing"):
            DEFAULT_CATALOG.require("missing")

    def test_packs_for_entity_type(self):
        """Test applicability filtering."""
        location_packs = [p.id for p in get_packs_for_entity_type(EntityType.LOCATION)]
        product_packs = [p.id for p in get_packs_for_entity_type("product")]

        assert location_packs == ["location"]
        assert product_packs == ["turnaround", "product-hero"]
        assert "dialogue" in [p.id for p in get_packs_for_entity_type(EntityType.CHARACTER)]

    def test_shot_specs_are_immutable(self):
        """Test packs are static reference data."""
        with pytest.raises(ValidationError):
            TURNAROUND.shot_specs[0].angle_label = "Top"


class TestPackCatalog:
    """Tests for custom catalogs."""

    def test_custom_catalog(self):
        """Test a catalog built from a subset of packs."""
        catalog = PackCatalog([TURNAROUND])

        assert len(catalog) == 1
        assert "turnaround" in catalog
        assert catalog["turnaround"] is TURNAROUND
        assert catalog.recommended() is TURNAROUND
