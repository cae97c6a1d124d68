"""Tests for biome table and generation validation."""

import pytest

from hearthgen.terrain.biomes import Biome, BiomeBlender
from hearthgen.terrain.generator import GenerationResult
from hearthgen.terrain.validation import validate_biomes, validate_result


class TestValidateBiomes:
    """Tests for biome table checks."""

    def test_default_table_covers_climate(self, blender: BiomeBlender) -> None:
        """The default table matches most of the climate cube."""
        result = validate_biomes(blender)
        assert result.passed
        assert 0.0 < result.stats["coverage"] <= 1.0

    def test_narrow_table_warns(self) -> None:
        """A single tiny biome leaves most of the cube uncovered."""
        tiny = Biome("Tiny", (0.0, 0.05), (0.0, 0.05), (0.0, 0.05), blend_strength=10.0)
        result = validate_biomes(BiomeBlender([tiny]))
        assert result.passed
        assert result.stats["coverage"] < 0.9
        assert any("cover" in w for w in result.warnings)

    def test_shadowed_biome_warns(self) -> None:
        """A biome that never wins is reported."""
        wide = Biome("Wide", (0.0, 1.0), (0.0, 1.0), (0.0, 1.0))
        shadowed = Biome("Shadowed", (0.0, 1.0), (0.0, 1.0), (0.0, 1.0))
        result = validate_biomes(BiomeBlender([wide, shadowed]))
        assert any("Shadowed" in w for w in result.warnings)

    def test_invalid_range_is_error(self) -> None:
        """Hand-built biomes with inverted ranges fail validation."""
        broken = Biome("Broken", (0.8, 0.2), (0.0, 1.0), (0.0, 1.0))
        result = validate_biomes(BiomeBlender([broken]))
        assert not result.passed
        assert any("Broken" in e for e in result.errors)


class TestValidateResult:
    """Tests for generated world checks."""

    def test_generated_world_passes(self, small_result: GenerationResult) -> None:
        """A normal generation passes with distribution stats."""
        result = validate_result(small_result)
        assert result.passed
        assert sum(result.stats["distribution"].values()) == pytest.approx(1.0)
        assert set(result.stats["regions"]) == {b.name for b in small_result.biomes}

    def test_dominance_warning(self, small_result: GenerationResult) -> None:
        """A zero dominance limit flags the most common biome."""
        result = validate_result(small_result, max_dominance=0.0)
        assert result.warnings
