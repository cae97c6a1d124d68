"""Seeded terrain synthesis, hydraulic erosion and biome blending."""

from .exceptions import (
    ConfigurationError,
    EmptyBiomeCollectionError,
    GenerationInProgressError,
    InvalidGridError,
    InvalidNoiseParameters,
    TerrainError,
    TerrainNotGeneratedError,
)

__all__ = [
    "ConfigurationError",
    "EmptyBiomeCollectionError",
    "GenerationInProgressError",
    "InvalidGridError",
    "InvalidNoiseParameters",
    "TerrainError",
    "TerrainNotGeneratedError",
]

__version__ = "0.1.0"
