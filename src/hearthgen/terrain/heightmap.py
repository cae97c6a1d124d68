"""Height synthesis: layered noise composed into raw terrain elevation.

Heights produced here are in raw units (the same units as
``base_height``/``hill_height``/``mountain_height``). Normalization to [0, 1]
happens once, in :func:`normalize_heightfield`, after erosion.
"""

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray

from ..exceptions import ConfigurationError, InvalidGridError
from .config import HeightConfig, TerrainShapeConfig
from .noise import (
    domain_warp,
    fractal_from_params,
    fractal_noise,
    ridge_noise,
    smoothstep,
    voronoi_noise,
    warped_noise,
)

logger = structlog.get_logger()

# Sub-seed offsets for each layer; octaves consume seed + i within a layer.
BASE_SEED_OFFSET = 0
HILL_SEED_OFFSET = 1000
MOUNTAIN_SEED_OFFSET = 2000
CONTINENTAL_SEED_OFFSET = 3000
MOUNTAIN_WARP_SEED_OFFSET = 4000
DETAIL_SEED_OFFSET = 5000
CLIFF_SEED_OFFSET = 6000


def continental_mask(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.0003,
) -> float | NDArray[np.float64]:
    """Very low frequency 2-octave noise marking mountain territory."""
    return fractal_noise(
        x, y, seed + CONTINENTAL_SEED_OFFSET, octaves=2, frequency=frequency
    )


def mountain_range_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.0008,
    warp_strength: float = 150.0,
    stretch_x: float = 1.0,
    stretch_y: float = 0.35,
) -> float | NDArray[np.float64]:
    """Ridge noise sampled through an asymmetric domain warp.

    The warp offset is larger along X than along Y, so ridges read as long
    ranges instead of isolated round peaks.
    """
    wx, wy = domain_warp(
        x,
        y,
        seed + MOUNTAIN_WARP_SEED_OFFSET,
        frequency,
        warp_strength,
        x_scale=stretch_x,
        y_scale=stretch_y,
    )
    return ridge_noise(wx, wy, seed + MOUNTAIN_SEED_OFFSET, frequency)


def mountain_gate(
    mask: ArrayLike,
    threshold: float,
    sharpness: float,
) -> NDArray[np.float64]:
    """Ramp from 0 at ``threshold`` to 1 at mask value 1, raised to ``sharpness``."""
    if threshold >= 1.0:
        return np.zeros_like(np.asarray(mask, dtype=np.float64))
    ramp = np.clip((np.asarray(mask, dtype=np.float64) - threshold) / (1.0 - threshold), 0.0, 1.0)
    return ramp**sharpness


def max_raw_height(
    base_height: float,
    hill_height: float,
    mountain_height: float,
    shape: TerrainShapeConfig | None = None,
) -> float:
    """Largest value :func:`terrain_height` can return for these budgets."""
    shape = shape or TerrainShapeConfig()
    return (
        base_height
        + hill_height * (shape.hill_weight + shape.detail_weight + shape.cliff_strength)
        + mountain_height
    )


def terrain_height(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    base_height: float = 50.0,
    hill_height: float = 30.0,
    mountain_height: float = 100.0,
    shape: TerrainShapeConfig | None = None,
) -> float | NDArray[np.float64]:
    """Raw terrain elevation at world coordinates.

    Layers, summed in raw units:

    - base plains: low-frequency fBm, always present;
    - rolling hills: medium-frequency fBm at ``hill_weight``;
    - mountains: warped ridge noise gated by the continental mask;
    - micro detail: warped value noise at ``detail_weight``;
    - cliffs: Voronoi cell borders at ``cliff_strength`` (off by default).

    The sum is divided by :func:`max_raw_height`, raised to
    ``shaping_exponent`` and scaled back, which compresses lowlands slightly
    while keeping raw units.

    Args:
        x: World X coordinate(s).
        y: World Z coordinate(s).
        seed: World seed.
        base_height: Height budget of the plains layer.
        hill_height: Height budget of hills (and detail/cliff layers).
        mountain_height: Height budget of mountain ranges.
        shape: Layer frequencies and weights.

    Returns:
        Elevation in [0, max_raw_height].
    """
    shape = shape or TerrainShapeConfig()

    mask = continental_mask(x, y, seed, shape.continental_frequency)
    gate = mountain_gate(mask, shape.continental_threshold, shape.mountain_sharpness)
    ridges = mountain_range_noise(
        x,
        y,
        seed,
        shape.mountain_frequency,
        shape.warp_strength,
        shape.warp_stretch_x,
        shape.warp_stretch_z,
    )
    hills = fractal_from_params(x, y, seed + HILL_SEED_OFFSET, shape.hills)
    base = fractal_from_params(x, y, seed + BASE_SEED_OFFSET, shape.base)

    height = base * base_height
    height = height + hills * shape.hill_weight * hill_height
    height = height + gate * ridges * mountain_height

    if shape.detail_weight > 0:
        detail = warped_noise(
            x,
            y,
            seed + DETAIL_SEED_OFFSET,
            shape.detail_frequency,
            shape.detail_warp_strength,
        )
        height = height + detail * shape.detail_weight * hill_height

    if shape.cliff_strength > 0:
        cells = voronoi_noise(x, y, seed + CLIFF_SEED_OFFSET, shape.cliff_frequency)
        cliffs = smoothstep(shape.cliff_threshold, 1.0, cells)
        height = height + cliffs * shape.cliff_strength * hill_height

    max_height = max_raw_height(base_height, hill_height, mountain_height, shape)
    if max_height <= 0:
        return height * 0.0

    shaped = np.clip(np.asarray(height) / max_height, 0.0, 1.0) ** shape.shaping_exponent
    result = shaped * max_height
    if result.ndim == 0:
        return float(result)
    return result


def grid_coordinates(
    cols: int,
    rows: int,
    world_width: float,
    world_length: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """World (x, z) coordinates of every grid sample, shape (rows, cols).

    Cell (r, c) samples world position ``(c * width / cols, r * length / rows)``.
    """
    if cols < 2 or rows < 2:
        raise InvalidGridError(f"grid must be at least 2x2, got {cols}x{rows}")
    xs = np.arange(cols, dtype=np.float64) * (world_width / cols)
    zs = np.arange(rows, dtype=np.float64) * (world_length / rows)
    return np.meshgrid(xs, zs)


def synthesize_heightfield(
    cols: int,
    rows: int,
    world_width: float,
    world_length: float,
    seed: int,
    config: HeightConfig,
) -> NDArray[np.float64]:
    """Evaluate :func:`terrain_height` over a grid.

    Args:
        cols: Samples along X.
        rows: Samples along Z.
        world_width: World extent along X.
        world_length: World extent along Z.
        seed: World seed.
        config: Height budgets and layer shape.

    Returns:
        Raw heightfield of shape (rows, cols), float64.
    """
    xx, zz = grid_coordinates(cols, rows, world_width, world_length)
    heights = np.asarray(
        terrain_height(
            xx,
            zz,
            seed,
            config.base_height,
            config.hill_height,
            config.mountain_height,
            config.shape,
        ),
        dtype=np.float64,
    )

    logger.info(
        "heightfield_synthesized",
        rows=rows,
        cols=cols,
        seed=seed,
        min=round(float(heights.min()), 3),
        max=round(float(heights.max()), 3),
        theoretical_max=round(reference_height(config), 3),
    )
    return heights


def reference_height(config: HeightConfig) -> float:
    """Divisor used by :func:`normalize_heightfield` for this configuration."""
    return max_raw_height(
        config.base_height, config.hill_height, config.mountain_height, config.shape
    )


def normalize_heightfield(
    heights: NDArray[np.floating],
    reference: float,
) -> NDArray[np.float64]:
    """Map raw heights to [0, 1]. This is the only normalization step.

    Dividing by the theoretical maximum (rather than the observed range)
    keeps identical raw heights at identical normalized heights across
    seeds. Values pushed past the bounds by erosion are clipped.

    Args:
        heights: Raw heightfield.
        reference: Raw height that maps to 1.0.

    Returns:
        New float64 array in [0, 1].

    Raises:
        ConfigurationError: If reference is not positive.
    """
    if not reference > 0:
        raise ConfigurationError(f"reference height must be > 0, got {reference}")
    return np.clip(np.asarray(heights, dtype=np.float64) / reference, 0.0, 1.0)


def height_distribution(heights01: NDArray[np.floating]) -> dict[str, float]:
    """Fraction of cells in each elevation band of a normalized heightfield."""
    total = heights01.size
    if total == 0:
        return {"plains": 0.0, "hills": 0.0, "mountains": 0.0, "peaks": 0.0}
    return {
        "plains": float(np.count_nonzero(heights01 < 0.15)) / total,
        "hills": float(np.count_nonzero((heights01 >= 0.15) & (heights01 < 0.4))) / total,
        "mountains": float(np.count_nonzero((heights01 >= 0.4) & (heights01 <= 0.6))) / total,
        "peaks": float(np.count_nonzero(heights01 > 0.6)) / total,
    }
