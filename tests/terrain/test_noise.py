"""Tests for noise generation functions."""

import numpy as np
import pytest

from hearthgen.exceptions import InvalidNoiseParameters
from hearthgen.terrain.config import NoiseParameters
from hearthgen.terrain.noise import (
    billow_noise,
    domain_warp,
    fractal_from_params,
    fractal_noise,
    radial_falloff,
    ridge_noise,
    smoothstep,
    value_noise,
    voronoi_noise,
    warped_noise,
)


@pytest.fixture
def coords() -> tuple[np.ndarray, np.ndarray]:
    """64x64 grid of world coordinates spanning 0..630."""
    return np.meshgrid(np.arange(64) * 10.0, np.arange(64) * 10.0)


class TestValueNoise:
    """Tests for seeded value noise."""

    def test_deterministic_with_same_seed(self, coords) -> None:
        """Same seed produces identical output."""
        x, y = coords
        np.testing.assert_array_equal(value_noise(x, y, 42), value_noise(x, y, 42))

    def test_different_seed_different_output(self, coords) -> None:
        """Different seeds produce different output."""
        x, y = coords
        assert not np.allclose(value_noise(x, y, 42), value_noise(x, y, 43))

    def test_output_range(self, coords) -> None:
        """Values stay within [0, 1]."""
        x, y = coords
        result = value_noise(x, y, 7, frequency=0.05)
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_scalar_input_returns_float(self) -> None:
        """Scalar coordinates give a plain float."""
        assert isinstance(value_noise(12.5, 40.0, 1), float)

    def test_scalar_matches_array(self, coords) -> None:
        """Scalar evaluation agrees with vectorised evaluation."""
        x, y = coords
        grid = value_noise(x, y, 99, frequency=0.02)
        assert value_noise(x[5, 7], y[5, 7], 99, frequency=0.02) == pytest.approx(grid[5, 7])

    def test_continuous(self) -> None:
        """Nearby samples have nearby values."""
        a = value_noise(100.0, 100.0, 5, frequency=0.01)
        b = value_noise(100.01, 100.0, 5, frequency=0.01)
        assert abs(a - b) < 0.01

    def test_large_seeds_do_not_alias(self) -> None:
        """Seeds differing by 2**32 produce different noise."""
        x, y = np.meshgrid(np.arange(16.0), np.arange(16.0))
        a = value_noise(x * 10, y * 10, 5)
        b = value_noise(x * 10, y * 10, 5 + 2**32)
        assert not np.allclose(a, b)

    def test_negative_seed(self) -> None:
        """Negative seeds are accepted and deterministic."""
        assert value_noise(3.0, 4.0, -17) == value_noise(3.0, 4.0, -17)

    @pytest.mark.parametrize("frequency", [0.0, -0.5])
    def test_non_positive_frequency_rejected(self, frequency: float) -> None:
        """Frequency must be positive."""
        with pytest.raises(InvalidNoiseParameters):
            value_noise(1.0, 1.0, 0, frequency=frequency)


class TestFractalNoise:
    """Tests for fBm noise."""

    def test_output_range(self, coords) -> None:
        """Normalised by total amplitude, so values stay within [0, 1]."""
        x, y = coords
        result = fractal_noise(x, y, 11, octaves=6, frequency=0.02)
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_single_octave_is_value_noise(self, coords) -> None:
        """One octave reduces to plain value noise."""
        x, y = coords
        np.testing.assert_allclose(
            fractal_noise(x, y, 3, octaves=1, frequency=0.02),
            value_noise(x, y, 3, frequency=0.02),
        )

    def test_more_octaves_more_detail(self, coords) -> None:
        """More octaves adds higher frequency detail."""
        x, y = coords
        low = fractal_noise(x, y, 42, octaves=1, frequency=0.01)
        high = fractal_noise(x, y, 42, octaves=6, frequency=0.01)
        grad_low = np.abs(np.diff(low, axis=0)).mean()
        grad_high = np.abs(np.diff(high, axis=0)).mean()
        assert grad_high > grad_low

    def test_zero_octaves_rejected(self) -> None:
        """At least one octave is required."""
        with pytest.raises(InvalidNoiseParameters):
            fractal_noise(0.0, 0.0, 1, octaves=0)

    def test_from_params(self, coords) -> None:
        """A NoiseParameters record drives the same computation."""
        x, y = coords
        params = NoiseParameters(frequency=0.02, octaves=3)
        np.testing.assert_array_equal(
            fractal_from_params(x, y, 8, params),
            fractal_noise(x, y, 8, octaves=3, frequency=0.02),
        )

    def test_from_params_with_warp(self, coords) -> None:
        """Warp strength perturbs the lookup."""
        x, y = coords
        plain = fractal_from_params(x, y, 8, NoiseParameters(frequency=0.02))
        warped = fractal_from_params(x, y, 8, NoiseParameters(frequency=0.02, warp_strength=40.0))
        assert not np.allclose(plain, warped)


class TestDerivedNoise:
    """Tests for ridge, billow, warped and cellular noise."""

    def test_ridge_and_billow_are_complementary(self, coords) -> None:
        """Ridge is one minus billow for the same base noise."""
        x, y = coords
        np.testing.assert_allclose(
            ridge_noise(x, y, 4, 0.02) + billow_noise(x, y, 4, 0.02), 1.0
        )

    def test_ridge_range(self, coords) -> None:
        """Ridge noise stays within [0, 1]."""
        x, y = coords
        result = ridge_noise(x, y, 4, 0.02)
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_domain_warp_bounded(self, coords) -> None:
        """Warp offsets never exceed strength times axis scale."""
        x, y = coords
        wx, wy = domain_warp(x, y, 1, 0.01, 50.0, x_scale=1.0, y_scale=0.35)
        assert np.abs(wx - x).max() <= 50.0
        assert np.abs(wy - y).max() <= 50.0 * 0.35 + 1e-9

    def test_warped_noise_range(self, coords) -> None:
        """Warped noise stays within [0, 1]."""
        x, y = coords
        result = warped_noise(x, y, 2, 0.02, 15.0)
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_voronoi_range(self, coords) -> None:
        """Cellular noise is clipped to [0, 1]."""
        x, y = coords
        result = voronoi_noise(x, y, 6, 0.03)
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_voronoi_deterministic(self, coords) -> None:
        """Same seed gives identical cells."""
        x, y = coords
        np.testing.assert_array_equal(voronoi_noise(x, y, 6, 0.03), voronoi_noise(x, y, 6, 0.03))


class TestRadialFalloff:
    """Tests for radial falloff."""

    def test_full_at_center_zero_outside(self) -> None:
        """Value is untouched at the centre and zero beyond the radius."""
        assert radial_falloff(0.8, 50.0, 50.0, 50.0, 50.0, 10.0) == pytest.approx(0.8)
        assert radial_falloff(0.8, 70.0, 50.0, 50.0, 50.0, 10.0) == 0.0

    def test_halfway(self) -> None:
        """Linear falloff halves the value at half the radius."""
        assert radial_falloff(1.0, 55.0, 50.0, 50.0, 50.0, 10.0) == pytest.approx(0.5)

    def test_non_positive_radius_rejected(self) -> None:
        """Radius must be positive."""
        with pytest.raises(InvalidNoiseParameters):
            radial_falloff(1.0, 0.0, 0.0, 0.0, 0.0, 0.0)


class TestSmoothstep:
    """Tests for smoothstep function."""

    def test_below_edge0(self) -> None:
        """Values below edge0 return 0."""
        assert smoothstep(0.2, 0.8, 0.1) == 0.0

    def test_above_edge1(self) -> None:
        """Values above edge1 return 1."""
        assert smoothstep(0.2, 0.8, 0.9) == 1.0

    def test_midpoint(self) -> None:
        """Midpoint returns 0.5."""
        assert smoothstep(0.0, 1.0, 0.5) == pytest.approx(0.5)
