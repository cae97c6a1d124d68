"""Procedural terrain generation package.

This package implements seeded heightfield synthesis from layered noise,
particle-based hydraulic erosion, latitude-driven climate fields, and
biome blending from (height, temperature, humidity) lookup tables.
"""

from .biomes import Biome, BiomeBlender, default_biomes, match_score, range_score
from .climate import ClimateFields, generate_climate
from .config import TerrainConfig, find_config, list_configs, load_config
from .erosion import ErosionStats, erode
from .generator import GenerationResult, biome_distribution, generate_terrain
from .heightmap import normalize_heightfield, synthesize_heightfield, terrain_height
from .query import ClimateSample, TerrainQuery, TerrainWorld
from .validation import ValidationResult, validate_biomes, validate_result

__all__ = [
    "Biome",
    "BiomeBlender",
    "ClimateFields",
    "ClimateSample",
    "ErosionStats",
    "GenerationResult",
    "TerrainConfig",
    "TerrainQuery",
    "TerrainWorld",
    "ValidationResult",
    "biome_distribution",
    "default_biomes",
    "erode",
    "find_config",
    "generate_climate",
    "generate_terrain",
    "list_configs",
    "load_config",
    "match_score",
    "normalize_heightfield",
    "range_score",
    "synthesize_heightfield",
    "terrain_height",
    "validate_biomes",
    "validate_result",
]
