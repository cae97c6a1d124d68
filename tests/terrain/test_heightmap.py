"""Tests for height synthesis and normalization."""

import numpy as np
import pytest

from hearthgen.exceptions import ConfigurationError, InvalidGridError
from hearthgen.terrain.config import HeightConfig, NoiseParameters, TerrainShapeConfig
from hearthgen.terrain.heightmap import (
    continental_mask,
    grid_coordinates,
    height_distribution,
    max_raw_height,
    mountain_gate,
    normalize_heightfield,
    reference_height,
    synthesize_heightfield,
    terrain_height,
)


class TestTerrainHeight:
    """Tests for the raw terrain height function."""

    def test_seed_12345_small_grid_in_bounds(self) -> None:
        """A 4x4 grid of the default budgets stays within [0, 180]."""
        x, z = np.meshgrid(np.arange(4) * 250.0, np.arange(4) * 250.0)
        heights = terrain_height(x, z, 12345, 50.0, 30.0, 100.0)
        assert heights.shape == (4, 4)
        assert not np.isnan(heights).any()
        assert heights.min() >= 0.0
        assert heights.max() <= 180.0

    def test_deterministic(self) -> None:
        """Same seed and coordinates give identical heights."""
        x, z = np.meshgrid(np.arange(32) * 30.0, np.arange(32) * 30.0)
        np.testing.assert_array_equal(terrain_height(x, z, 9), terrain_height(x, z, 9))

    def test_scalar_input(self) -> None:
        """Scalar coordinates give a float."""
        assert isinstance(terrain_height(120.0, 480.0, 3), float)

    def test_max_raw_height_bounds_output(self) -> None:
        """No sample exceeds the theoretical maximum, even with cliffs on."""
        shape = TerrainShapeConfig(cliff_strength=0.5)
        x, z = np.meshgrid(np.arange(48) * 40.0, np.arange(48) * 40.0)
        heights = terrain_height(x, z, 77, 50.0, 30.0, 100.0, shape)
        assert heights.max() <= max_raw_height(50.0, 30.0, 100.0, shape)

    def test_cliffs_change_terrain(self) -> None:
        """A positive cliff strength alters heights."""
        x, z = np.meshgrid(np.arange(32) * 40.0, np.arange(32) * 40.0)
        plain = terrain_height(x, z, 5)
        cliffs = terrain_height(x, z, 5, shape=TerrainShapeConfig(cliff_strength=0.6))
        assert not np.allclose(plain, cliffs)

    def test_hill_parameters_change_terrain(self) -> None:
        """The hills noise record feeds the hill layer."""
        x, z = np.meshgrid(np.arange(32) * 40.0, np.arange(32) * 40.0)
        default = terrain_height(x, z, 5)
        shape = TerrainShapeConfig(hills=NoiseParameters(frequency=0.02, octaves=1))
        changed = terrain_height(x, z, 5, shape=shape)
        assert not np.allclose(default, changed)

    def test_zero_mountain_budget_bounded(self) -> None:
        """Without mountains the height stays under base plus hill budgets."""
        x, z = np.meshgrid(np.arange(32) * 60.0, np.arange(32) * 60.0)
        heights = terrain_height(x, z, 11, 50.0, 30.0, 0.0)
        assert heights.max() <= max_raw_height(50.0, 30.0, 0.0)
        assert heights.min() >= 0.0


class TestMountainGate:
    """Tests for the continental mountain gate."""

    def test_below_threshold_is_zero(self) -> None:
        """Mask values under the threshold allow no mountains."""
        assert mountain_gate(0.3, 0.5, 1.5) == 0.0

    def test_full_mask_is_one(self) -> None:
        """A mask of 1 fully opens the gate."""
        assert mountain_gate(1.0, 0.5, 1.5) == pytest.approx(1.0)

    def test_threshold_one_closes_gate(self) -> None:
        """Threshold 1 never opens the gate and never divides by zero."""
        np.testing.assert_array_equal(mountain_gate(np.array([0.5, 1.0]), 1.0, 2.0), 0.0)

    def test_continental_mask_range(self) -> None:
        """Mask values lie in [0, 1]."""
        x, z = np.meshgrid(np.arange(20) * 500.0, np.arange(20) * 500.0)
        mask = continental_mask(x, z, 12)
        assert mask.min() >= 0.0
        assert mask.max() <= 1.0


class TestGrid:
    """Tests for grid sampling helpers."""

    def test_grid_coordinates_shape_and_spacing(self) -> None:
        """Rows follow Z, columns follow X."""
        xx, zz = grid_coordinates(8, 4, 800.0, 400.0)
        assert xx.shape == (4, 8)
        assert xx[0, 1] == pytest.approx(100.0)
        assert zz[1, 0] == pytest.approx(100.0)

    def test_grid_too_small(self) -> None:
        """Grids below 2x2 are rejected."""
        with pytest.raises(InvalidGridError):
            grid_coordinates(1, 5, 100.0, 100.0)

    def test_synthesize_matches_point_evaluation(self) -> None:
        """Grid synthesis equals evaluating the height function per sample."""
        config = HeightConfig()
        heights = synthesize_heightfield(6, 5, 600.0, 500.0, 21, config)
        assert heights.shape == (5, 6)
        expected = terrain_height(200.0, 300.0, 21, shape=config.shape)
        assert heights[3, 2] == pytest.approx(expected)


class TestNormalization:
    """Tests for the single normalization step."""

    def test_divides_by_reference(self) -> None:
        """Raw heights are divided by the reference height."""
        raw = np.array([[0.0, 87.0], [174.0, 43.5]])
        np.testing.assert_allclose(normalize_heightfield(raw, 174.0), [[0.0, 0.5], [1.0, 0.25]])

    def test_clips_out_of_range(self) -> None:
        """Values pushed past the bounds are clipped."""
        raw = np.array([-3.0, 200.0])
        np.testing.assert_array_equal(normalize_heightfield(raw, 100.0), [0.0, 1.0])

    def test_non_positive_reference(self) -> None:
        """A zero reference height is a configuration error."""
        with pytest.raises(ConfigurationError):
            normalize_heightfield(np.zeros((2, 2)), 0.0)

    def test_synthesized_heights_not_pre_normalized(self) -> None:
        """Synthesis returns raw units; only normalization maps to [0, 1]."""
        config = HeightConfig()
        raw = synthesize_heightfield(32, 32, 4000.0, 4000.0, 12345, config)
        assert raw.max() > 10.0
        assert raw.max() <= reference_height(config)
        heights = normalize_heightfield(raw, reference_height(config))
        np.testing.assert_allclose(heights, raw / reference_height(config))

    def test_reference_height_default(self) -> None:
        """Default budgets give a reference inside the 180 unit envelope."""
        assert reference_height(HeightConfig()) == pytest.approx(174.0)


class TestHeightDistribution:
    """Tests for terrain band statistics."""

    def test_bands_sum_to_one(self) -> None:
        """Every cell falls in exactly one band."""
        heights = np.linspace(0.0, 1.0, 101)
        bands = height_distribution(heights)
        assert sum(bands.values()) == pytest.approx(1.0)

    def test_band_assignment(self) -> None:
        """Cells land in the expected bands."""
        bands = height_distribution(np.array([0.1, 0.2, 0.5, 0.9]))
        assert bands == {"plains": 0.25, "hills": 0.25, "mountains": 0.25, "peaks": 0.25}
