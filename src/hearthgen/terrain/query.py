"""Point queries against a generated world.

:class:`TerrainQuery` answers height, slope and biome questions at world
positions. :class:`TerrainWorld` owns the current generation and refuses
queries while a new one is being built.
"""

import math
import threading
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray

from ..exceptions import GenerationInProgressError, TerrainNotGeneratedError
from .biomes import Biome, BiomeBlender
from .config import TerrainConfig
from .generator import GenerationResult, generate_terrain

logger = structlog.get_logger()


@dataclass(frozen=True)
class ClimateSample:
    """Interpolated (height, temperature, humidity) at one position."""

    height: float
    temperature: float
    humidity: float


class TerrainQuery:
    """Read-only queries over a GenerationResult.

    World position (x, z) maps to grid column ``x * cols / width`` and row
    ``z * rows / length``. Positions outside the sampled area are clamped to
    its edge. Grids are bilinearly interpolated.
    """

    def __init__(self, result: GenerationResult) -> None:
        self.result = result
        world = result.config.world
        self._rows, self._cols = result.heights.shape
        self._cell_x = world.width / self._cols
        self._cell_z = world.length / self._rows
        self._vertical_scale = world.vertical_scale
        biomes = result.config.biomes
        self._blender = BiomeBlender(
            result.biomes,
            global_blend_factor=biomes.global_blend_factor,
            use_global_factor=biomes.use_global_factor,
            falloff_rate=biomes.falloff_rate,
            epsilon=biomes.epsilon,
        )

    def _grid_position(self, world_x: float, world_z: float) -> tuple[float, float]:
        col = min(max(world_x / self._cell_x, 0.0), self._cols - 1.0)
        row = min(max(world_z / self._cell_z, 0.0), self._rows - 1.0)
        return col, row

    def _sample(self, grid: NDArray[np.floating], world_x: float, world_z: float) -> float:
        col, row = self._grid_position(world_x, world_z)
        c0 = min(int(col), self._cols - 2)
        r0 = min(int(row), self._rows - 2)
        fc = col - c0
        fr = row - r0

        near = grid[r0, c0] + (grid[r0, c0 + 1] - grid[r0, c0]) * fc
        far = grid[r0 + 1, c0] + (grid[r0 + 1, c0 + 1] - grid[r0 + 1, c0]) * fc
        return float(near + (far - near) * fr)

    def height_at(self, world_x: float, world_z: float) -> float:
        """Normalized height in [0, 1]."""
        return self._sample(self.result.heights, world_x, world_z)

    def elevation_at(self, world_x: float, world_z: float) -> float:
        """Height in raw terrain units."""
        return self.height_at(world_x, world_z) * self.result.reference_height

    def gradient_at(self, world_x: float, world_z: float) -> tuple[float, float]:
        """Surface gradient (dy/dx, dy/dz) with height in ``vertical_scale`` units.

        Uses central differences one cell apart, one-sided at the edges.
        """
        max_x = (self._cols - 1) * self._cell_x
        max_z = (self._rows - 1) * self._cell_z
        x = min(max(world_x, 0.0), max_x)
        z = min(max(world_z, 0.0), max_z)

        x_lo, x_hi = max(x - self._cell_x, 0.0), min(x + self._cell_x, max_x)
        z_lo, z_hi = max(z - self._cell_z, 0.0), min(z + self._cell_z, max_z)

        dx = (self.height_at(x_hi, z) - self.height_at(x_lo, z)) / (x_hi - x_lo)
        dz = (self.height_at(x, z_hi) - self.height_at(x, z_lo)) / (z_hi - z_lo)
        return dx * self._vertical_scale, dz * self._vertical_scale

    def slope_at(self, world_x: float, world_z: float) -> float:
        """Steepness in degrees; 0 is flat."""
        dx, dz = self.gradient_at(world_x, world_z)
        return math.degrees(math.atan(math.hypot(dx, dz)))

    def normal_at(self, world_x: float, world_z: float) -> tuple[float, float, float]:
        """Unit surface normal (x, y, z) with y up."""
        dx, dz = self.gradient_at(world_x, world_z)
        length = math.sqrt(dx * dx + 1.0 + dz * dz)
        return -dx / length, 1.0 / length, -dz / length

    def climate_at(self, world_x: float, world_z: float) -> ClimateSample:
        return ClimateSample(
            height=self.height_at(world_x, world_z),
            temperature=self._sample(self.result.temperature, world_x, world_z),
            humidity=self._sample(self.result.humidity, world_x, world_z),
        )

    def biome_weights_at(self, world_x: float, world_z: float) -> dict[Biome, float]:
        """Normalized biome weights for the interpolated climate sample."""
        sample = self.climate_at(world_x, world_z)
        return self._blender.normalized_weights(sample.height, sample.temperature, sample.humidity)

    def primary_biome_at(self, world_x: float, world_z: float) -> Biome:
        sample = self.climate_at(world_x, world_z)
        return self._blender.primary_biome(sample.height, sample.temperature, sample.humidity)

    def is_valid_placement(self, world_x: float, world_z: float, max_slope: float = 45.0) -> bool:
        """True if the ground is no steeper than ``max_slope`` degrees."""
        return self.slope_at(world_x, world_z) <= max_slope


class TerrainWorld:
    """Holds the current generation and guards it during regeneration.

    Args:
        config: Configuration used by :meth:`regenerate` when none is given.
        generator: Function building a GenerationResult from a config.
    """

    def __init__(
        self,
        config: TerrainConfig | None = None,
        generator: Callable[[TerrainConfig], GenerationResult] = generate_terrain,
    ) -> None:
        self.config = config or TerrainConfig()
        self._generator = generator
        self._lock = threading.Lock()
        self._generating = False
        self._result: GenerationResult | None = None
        self._query: TerrainQuery | None = None

    @property
    def is_generating(self) -> bool:
        with self._lock:
            return self._generating

    def regenerate(self, config: TerrainConfig | None = None) -> GenerationResult:
        """Build a new world, replacing the current one on success.

        Raises:
            GenerationInProgressError: If a generation is already running.
        """
        with self._lock:
            if self._generating:
                raise GenerationInProgressError("terrain generation already in progress")
            self._generating = True
            if config is not None:
                self.config = config
            target = self.config

        try:
            result = self._generator(target)
            query = TerrainQuery(result)
            with self._lock:
                self._result = result
                self._query = query
        finally:
            with self._lock:
                self._generating = False

        logger.info("world_regenerated", name=target.name, seed=target.seed)
        return result

    def query(self) -> TerrainQuery:
        """Query surface for the current world.

        Raises:
            GenerationInProgressError: While :meth:`regenerate` is running.
            TerrainNotGeneratedError: If no world has been generated yet.
        """
        with self._lock:
            if self._generating:
                raise GenerationInProgressError("terrain is being regenerated")
            if self._query is None:
                raise TerrainNotGeneratedError("no terrain has been generated")
            return self._query

    @property
    def result(self) -> GenerationResult:
        return self.query().result
