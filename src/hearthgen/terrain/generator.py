"""Main terrain generation orchestration."""

import time
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray

from .biomes import Biome, BiomeBlender
from .climate import generate_climate
from .config import TerrainConfig
from .erosion import ErosionStats, erode
from .heightmap import (
    height_distribution,
    normalize_heightfield,
    reference_height,
    synthesize_heightfield,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class GenerationResult:
    """Result of terrain generation with all intermediate data.

    Every array is read-only.

    Attributes:
        heights: Normalized heightfield in [0, 1], shape (rows, cols).
        raw_heights: Heightfield in raw units before erosion.
        reference_height: Raw height that maps to normalized 1.0.
        temperature: Temperature grid in [0, 1].
        humidity: Humidity grid in [0, 1].
        biome_weights: Shape (rows, cols, n_biomes), each cell sums to 1.
        biomes: Biomes in weight-array order.
        config: Configuration that produced this result.
        erosion_stats: Totals from the erosion stage.
        fallback_cells: Cells that matched no biome and used the fallback.
    """

    heights: NDArray[np.float64]
    raw_heights: NDArray[np.float64]
    reference_height: float
    temperature: NDArray[np.float64]
    humidity: NDArray[np.float64]
    biome_weights: NDArray[np.float64]
    biomes: tuple[Biome, ...]
    config: TerrainConfig
    erosion_stats: ErosionStats
    fallback_cells: int = 0

    @property
    def shape(self) -> tuple[int, int]:
        return self.heights.shape

    def primary_biome_indices(self) -> NDArray[np.intp]:
        """Index of the heaviest biome per cell."""
        return np.argmax(self.biome_weights, axis=-1)


def _freeze(array: NDArray) -> NDArray:
    array.setflags(write=False)
    return array


def generate_terrain(config: TerrainConfig) -> GenerationResult:
    """Generate heights, climate and biome weights from configuration.

    Stages: height synthesis, hydraulic erosion, normalization, climate,
    biome blending. The result is fully determined by ``config``.

    Args:
        config: Terrain generation configuration.

    Returns:
        GenerationResult with frozen arrays.
    """
    world = config.world
    size = world.resolution
    started = time.perf_counter()

    logger.info(
        "generation_started",
        name=config.name,
        seed=config.seed,
        resolution=size,
        width=world.width,
        length=world.length,
    )

    # Validate the biome table before spending time on the grids
    blender = BiomeBlender.from_config(config.biomes)

    stage = time.perf_counter()
    raw = synthesize_heightfield(size, size, world.width, world.length, config.seed, config.height)
    raw_heights = raw.copy()
    logger.debug("stage_complete", stage="heights", seconds=round(time.perf_counter() - stage, 3))

    stage = time.perf_counter()
    if config.erosion.enabled:
        erosion_stats = erode(
            raw,
            config.erosion.iterations,
            erosion_strength=config.erosion.erosion_strength,
            sediment_capacity=config.erosion.sediment_capacity,
            evaporation_rate=config.erosion.evaporation_rate,
            seed=config.seed + config.erosion.seed_offset,
        )
    else:
        erosion_stats = ErosionStats()
        logger.info("erosion_disabled")
    logger.debug("stage_complete", stage="erosion", seconds=round(time.perf_counter() - stage, 3))

    reference = reference_height(config.height)
    heights = normalize_heightfield(raw, reference)

    stage = time.perf_counter()
    climate = generate_climate(
        size, size, world.width, world.length, config.seed, config.climate, heights
    )
    logger.debug("stage_complete", stage="climate", seconds=round(time.perf_counter() - stage, 3))

    stage = time.perf_counter()
    weights, fallback_cells = blender.weight_grid(heights, climate.temperature, climate.humidity)
    logger.debug("stage_complete", stage="biomes", seconds=round(time.perf_counter() - stage, 3))

    result = GenerationResult(
        heights=_freeze(heights),
        raw_heights=_freeze(raw_heights),
        reference_height=reference,
        temperature=_freeze(climate.temperature),
        humidity=_freeze(climate.humidity),
        biome_weights=_freeze(weights),
        biomes=blender.biomes,
        config=config,
        erosion_stats=erosion_stats,
        fallback_cells=fallback_cells,
    )

    _log_terrain_stats(result)
    logger.info(
        "generation_complete",
        name=config.name,
        seconds=round(time.perf_counter() - started, 3),
    )
    return result


def biome_distribution(result: GenerationResult) -> dict[str, float]:
    """Fraction of cells where each biome is the primary biome."""
    primary = result.primary_biome_indices()
    counts = np.bincount(primary.ravel(), minlength=len(result.biomes))
    total = primary.size
    return {biome.name: float(counts[i]) / total for i, biome in enumerate(result.biomes)}


def _log_terrain_stats(result: GenerationResult) -> None:
    """Log terrain band and biome statistics."""
    bands = height_distribution(result.heights)
    logger.info(
        "terrain_bands",
        **{band: f"{fraction:.1%}" for band, fraction in bands.items()},
    )

    biomes = biome_distribution(result)
    logger.info(
        "biome_distribution",
        fractions={name: round(fraction, 4) for name, fraction in biomes.items()},
    )

    if result.fallback_cells:
        logger.warning(
            "biome_fallback_used",
            cells=result.fallback_cells,
            fraction=round(result.fallback_cells / result.heights.size, 4),
        )
