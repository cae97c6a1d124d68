"""Shared test fixtures for terrain tests."""

import pytest

from hearthgen.terrain.biomes import BiomeBlender, default_biomes
from hearthgen.terrain.config import ErosionConfig, TerrainConfig, WorldConfig
from hearthgen.terrain.generator import GenerationResult, generate_terrain


@pytest.fixture
def small_config() -> TerrainConfig:
    """24x24 world with light erosion, fast enough for every test."""
    return TerrainConfig(
        seed=12345,
        world=WorldConfig(width=1000.0, length=1000.0, resolution=24),
        erosion=ErosionConfig(iterations=200),
    )


@pytest.fixture(scope="module")
def small_result() -> GenerationResult:
    """Generated world shared by read-only tests in a module."""
    config = TerrainConfig(
        seed=12345,
        world=WorldConfig(width=1000.0, length=1000.0, resolution=24),
        erosion=ErosionConfig(iterations=200),
    )
    return generate_terrain(config)


@pytest.fixture
def blender() -> BiomeBlender:
    """Blender over the default biome table."""
    return BiomeBlender(default_biomes())
