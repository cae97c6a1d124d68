"""Particle-based hydraulic erosion.

Simulates independent water droplets that run downhill over a heightfield,
picking up sediment where they speed down slopes and dropping it where they
slow, climb or stop. The heightfield is modified in place.
"""

import math
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray

logger = structlog.get_logger()

MAX_LIFETIME = 30
GRAVITY = 4.0
DEPOSIT_SPEED = 0.3
ERODE_SPEED = 0.3
MIN_SLOPE = 0.01

_FLAT_GRADIENT = 1e-12
_SEED_MASK = 0xFFFFFFFFFFFFFFFF


@dataclass
class ErosionStats:
    """Totals accumulated over one erosion run."""

    droplets: int = 0
    left_grid: int = 0
    settled: int = 0
    eroded: float = 0.0
    deposited: float = 0.0

    @property
    def net_change(self) -> float:
        """Deposited minus eroded material; zero up to rounding."""
        return self.deposited - self.eroded


def erode(
    heightfield: NDArray[np.floating],
    iterations: int,
    erosion_strength: float = 0.3,
    sediment_capacity: float = 4.0,
    evaporation_rate: float = 0.02,
    seed: int = 0,
) -> ErosionStats:
    """Erode a heightfield in place with simulated water droplets.

    Spawn positions come from ``numpy.random.default_rng(seed)``, so a run is
    deterministic for fixed inputs. Grids smaller than 2x2 are left
    untouched and a warning is logged.

    Args:
        heightfield: 2D float array, shape (rows, cols). Modified in place.
        iterations: Number of droplets to simulate.
        erosion_strength: Multiplier on the eroded amount.
        sediment_capacity: Sediment carried per unit of slope, speed and water.
        evaporation_rate: Fraction of water lost each step.
        seed: Seed for droplet spawn positions.

    Returns:
        ErosionStats for the run.

    Raises:
        ValueError: If heightfield is not a 2D float array or iterations < 0.
    """
    if heightfield.ndim != 2:
        raise ValueError("heightfield must be a 2D array")
    if not np.issubdtype(heightfield.dtype, np.floating):
        raise ValueError("heightfield must have a floating point dtype")
    if iterations < 0:
        raise ValueError("iterations must be >= 0")

    stats = ErosionStats()
    rows, cols = heightfield.shape
    if rows < 2 or cols < 2:
        logger.warning("erosion_skipped", reason="grid_too_small", rows=rows, cols=cols)
        return stats

    rng = np.random.default_rng(int(seed) & _SEED_MASK)
    spawns = rng.random((iterations, 2))
    spawns[:, 0] *= cols - 1
    spawns[:, 1] *= rows - 1

    for pos_x, pos_y in spawns.tolist():
        _simulate_droplet(
            heightfield,
            pos_x,
            pos_y,
            erosion_strength,
            sediment_capacity,
            evaporation_rate,
            stats,
        )
        stats.droplets += 1

    logger.info(
        "erosion_complete",
        droplets=stats.droplets,
        left_grid=stats.left_grid,
        settled=stats.settled,
        eroded=round(stats.eroded, 4),
        deposited=round(stats.deposited, 4),
    )
    return stats


def _simulate_droplet(
    heights: NDArray[np.floating],
    pos_x: float,
    pos_y: float,
    erosion_strength: float,
    sediment_capacity: float,
    evaporation_rate: float,
    stats: ErosionStats,
) -> None:
    """Run one droplet until it leaves the grid, settles or evaporates."""
    rows, cols = heights.shape
    water = 1.0
    sediment = 0.0
    velocity = 1.0

    for _ in range(MAX_LIFETIME):
        current_height = bilinear_height(heights, pos_x, pos_y)
        grad_x, grad_y = cell_gradient(heights, pos_x, pos_y)

        length = math.hypot(grad_x, grad_y)
        if length < _FLAT_GRADIENT:
            stats.settled += 1
            break

        # One cell length downhill
        new_x = pos_x - grad_x / length
        new_y = pos_y - grad_y / length

        if not (0.0 <= new_x < cols - 1 and 0.0 <= new_y < rows - 1):
            stats.left_grid += 1
            break

        height_diff = bilinear_height(heights, new_x, new_y) - current_height
        capacity = max(-height_diff, MIN_SLOPE) * velocity * water * sediment_capacity

        if sediment > capacity or height_diff > 0:
            if height_diff > 0:
                amount = min(height_diff, sediment)
            else:
                amount = (sediment - capacity) * DEPOSIT_SPEED
            sediment -= amount
            _distribute(heights, pos_x, pos_y, amount)
            stats.deposited += amount
        else:
            amount = max(0.0, min((capacity - sediment) * ERODE_SPEED, -height_diff))
            amount *= erosion_strength
            _distribute(heights, pos_x, pos_y, -amount)
            sediment += amount
            stats.eroded += amount

        velocity = math.sqrt(max(0.0, velocity * velocity + height_diff * GRAVITY))
        water *= 1.0 - evaporation_rate
        pos_x, pos_y = new_x, new_y

    # Whatever is still carried lands where the droplet stopped
    if sediment > 0:
        _distribute(heights, pos_x, pos_y, sediment)
        stats.deposited += sediment


def bilinear_height(heights: NDArray[np.floating], x: float, y: float) -> float:
    """Bilinearly interpolated height at a position inside the grid interior.

    ``x`` indexes columns and ``y`` rows; both must satisfy
    ``0 <= x < cols - 1`` and ``0 <= y < rows - 1``.
    """
    x0 = int(x)
    y0 = int(y)
    fx = x - x0
    fy = y - y0

    h00 = float(heights[y0, x0])
    h10 = float(heights[y0, x0 + 1])
    h01 = float(heights[y0 + 1, x0])
    h11 = float(heights[y0 + 1, x0 + 1])

    near = h00 + (h10 - h00) * fx
    far = h01 + (h11 - h01) * fx
    return near + (far - near) * fy


def cell_gradient(heights: NDArray[np.floating], x: float, y: float) -> tuple[float, float]:
    """Central differences at the droplet's cell, clamped at grid edges."""
    rows, cols = heights.shape
    cx = int(x)
    cy = int(y)

    left = float(heights[cy, max(0, cx - 1)])
    right = float(heights[cy, min(cols - 1, cx + 1)])
    down = float(heights[max(0, cy - 1), cx])
    up = float(heights[min(rows - 1, cy + 1), cx])

    return right - left, up - down


def _distribute(heights: NDArray[np.floating], x: float, y: float, amount: float) -> None:
    """Add ``amount`` to the four cells around (x, y) by bilinear weight."""
    x0 = int(x)
    y0 = int(y)
    fx = x - x0
    fy = y - y0

    heights[y0, x0] += amount * (1.0 - fx) * (1.0 - fy)
    heights[y0, x0 + 1] += amount * fx * (1.0 - fy)
    heights[y0 + 1, x0] += amount * (1.0 - fx) * fy
    heights[y0 + 1, x0 + 1] += amount * fx * fy
