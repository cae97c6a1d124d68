"""Terrain generation configuration models and preset loading."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NoiseParameters(BaseModel):
    """Parameters for a single fractal noise lookup."""

    model_config = ConfigDict(frozen=True)

    frequency: float = Field(default=0.01, gt=0, description="Base frequency (1/world units)")
    octaves: int = Field(default=4, ge=1, description="Number of octaves for fBm")
    lacunarity: float = Field(default=2.0, gt=0, description="Frequency multiplier per octave")
    gain: float = Field(default=0.5, gt=0, description="Amplitude multiplier per octave")
    warp_strength: float | None = Field(
        default=None, ge=0, description="Optional domain warp offset in world units"
    )


class WorldConfig(BaseModel):
    """World extents and grid resolution."""

    width: float = Field(default=1000.0, gt=0, description="World width (X) in world units")
    length: float = Field(default=1000.0, gt=0, description="World length (Z) in world units")
    resolution: int = Field(
        default=129, ge=2, le=4097, description="Heightfield samples per axis"
    )
    vertical_scale: float = Field(
        default=600.0, gt=0, description="World units spanned by normalized height 1.0"
    )


class TerrainShapeConfig(BaseModel):
    """Frequencies and weights of the height layers."""

    continental_frequency: float = Field(default=0.0003, gt=0, description="Continental mask frequency")
    continental_threshold: float = Field(
        default=0.5, ge=0, lt=1, description="Mask value above which mountains may appear"
    )
    mountain_frequency: float = Field(default=0.0008, gt=0, description="Mountain ridge frequency")
    warp_strength: float = Field(default=150.0, ge=0, description="Mountain domain warp offset")
    warp_stretch_x: float = Field(default=1.0, ge=0, description="Warp scale along X")
    warp_stretch_z: float = Field(default=0.35, ge=0, description="Warp scale along Z")
    mountain_sharpness: float = Field(
        default=1.5, ge=1, description="Exponent on the mountain gate ramp"
    )
    hills: NoiseParameters = Field(
        default_factory=lambda: NoiseParameters(frequency=0.0025, octaves=3, lacunarity=2.2),
        description="Rolling hills fBm",
    )
    hill_weight: float = Field(default=0.6, ge=0, description="Hill contribution relative to hill_height")
    base: NoiseParameters = Field(
        default_factory=lambda: NoiseParameters(frequency=0.001, octaves=4),
        description="Base plains fBm",
    )
    detail_frequency: float = Field(default=0.01, gt=0, description="Warped detail frequency")
    detail_warp_strength: float = Field(default=10.0, ge=0, description="Detail warp offset")
    detail_weight: float = Field(
        default=0.2, ge=0, description="Detail contribution relative to hill_height"
    )
    cliff_frequency: float = Field(default=0.01, gt=0, description="Voronoi cliff cell frequency")
    cliff_threshold: float = Field(default=0.6, ge=0, lt=1, description="Cell distance where cliffs start")
    cliff_strength: float = Field(
        default=0.0, ge=0, description="Cliff contribution relative to hill_height (0 = off)"
    )
    shaping_exponent: float = Field(
        default=1.1, ge=1, description="Power applied to the normalized height sum"
    )


class HeightConfig(BaseModel):
    """Height budget of each terrain layer in raw units."""

    base_height: float = Field(default=50.0, ge=0, description="Plains height")
    hill_height: float = Field(default=30.0, ge=0, description="Rolling hills height")
    mountain_height: float = Field(default=100.0, ge=0, description="Mountain range height")
    shape: TerrainShapeConfig = Field(default_factory=TerrainShapeConfig)

    @model_validator(mode="after")
    def _check_budget(self) -> "HeightConfig":
        if self.base_height + self.hill_height + self.mountain_height <= 0:
            raise ValueError("at least one of base/hill/mountain height must be positive")
        return self


class ErosionConfig(BaseModel):
    """Hydraulic erosion parameters."""

    enabled: bool = Field(default=True, description="Run the erosion stage")
    iterations: int = Field(default=20000, ge=0, description="Number of droplets")
    erosion_strength: float = Field(default=0.3, ge=0, description="Erosion multiplier")
    sediment_capacity: float = Field(default=4.0, ge=0, description="Sediment carried per unit flow")
    evaporation_rate: float = Field(default=0.02, ge=0, le=1, description="Water lost per step")
    seed_offset: int = Field(default=7919, description="Offset from world seed for droplet spawns")


class ClimateConfig(BaseModel):
    """Temperature and humidity field parameters."""

    temperature_noise: NoiseParameters = Field(
        default_factory=lambda: NoiseParameters(frequency=0.002, octaves=3),
        description="Large-scale temperature variation",
    )
    rainfall_noise: NoiseParameters = Field(
        default_factory=lambda: NoiseParameters(frequency=0.003, octaves=3),
        description="Regional rainfall",
    )
    humidity_detail_noise: NoiseParameters = Field(
        default_factory=lambda: NoiseParameters(frequency=0.006, octaves=3),
        description="Local humidity detail",
    )
    latitude_exponent: float = Field(default=1.5, gt=0, description="Shape of the latitude gradient")
    latitude_weight: float = Field(
        default=0.7, ge=0, le=1, description="Latitude share of temperature (rest is noise)"
    )
    altitude_cooling: float = Field(
        default=0.2, ge=0, le=1, description="Max temperature reduction at normalized height 1"
    )
    humidity_detail_weight: float = Field(
        default=0.3, ge=0, le=1, description="Detail noise share of humidity (rest is rainfall)"
    )
    lowland_humidity_boost: float = Field(
        default=0.15, ge=0, le=1, description="Max humidity boost at normalized height 0"
    )


class BiomeDefinition(BaseModel):
    """A biome lookup-table row."""

    name: str
    height_range: tuple[float, float] = (0.0, 1.0)
    temperature_range: tuple[float, float] = (0.0, 1.0)
    humidity_range: tuple[float, float] = (0.0, 1.0)
    blend_strength: float = Field(default=3.0, gt=0, description="Sharpness of the territory edge")
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Opaque rendering data (color, texture)"
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "BiomeDefinition":
        for label in ("height_range", "temperature_range", "humidity_range"):
            low, high = getattr(self, label)
            if not 0.0 <= low <= high <= 1.0:
                raise ValueError(f"{self.name}: {label} must satisfy 0 <= min <= max <= 1")
        return self


def _default_biome_definitions() -> list[BiomeDefinition]:
    return [
        BiomeDefinition(
            name="Water",
            height_range=(0.0, 0.05),
            temperature_range=(0.0, 1.0),
            humidity_range=(0.8, 1.0),
            blend_strength=5.0,
            payload={"color": [0.2, 0.4, 0.7]},
        ),
        BiomeDefinition(
            name="Plains",
            height_range=(0.0, 0.2),
            temperature_range=(0.4, 0.8),
            humidity_range=(0.0, 0.5),
            payload={"color": [0.6, 0.7, 0.2]},
        ),
        BiomeDefinition(
            name="Forest",
            height_range=(0.0, 0.2),
            temperature_range=(0.3, 0.7),
            humidity_range=(0.5, 1.0),
            blend_strength=5.0,
            payload={"color": [0.05, 0.3, 0.05]},
        ),
        BiomeDefinition(
            name="Rock",
            height_range=(0.2, 0.75),
            temperature_range=(0.2, 0.8),
            humidity_range=(0.0, 0.4),
            blend_strength=5.0,
            payload={"color": [0.4, 0.4, 0.45]},
        ),
        BiomeDefinition(
            name="Snow",
            height_range=(0.7, 1.0),
            temperature_range=(0.0, 0.3),
            humidity_range=(0.0, 1.0),
            payload={"color": [0.9, 0.95, 1.0]},
        ),
    ]


class BiomeSetConfig(BaseModel):
    """Biome table and blending settings."""

    global_blend_factor: float = Field(default=3.0, gt=0, description="Shared blend factor")
    use_global_factor: bool = Field(
        default=True, description="Use the global factor instead of per-biome strengths"
    )
    falloff_rate: float = Field(default=5.0, gt=0, description="Exponential falloff outside ranges")
    epsilon: float = Field(default=0.001, gt=0, description="Negligible score/weight cutoff")
    definitions: list[BiomeDefinition] = Field(default_factory=_default_biome_definitions)


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    name: str = Field(default="default", description="Preset name")
    description: str = Field(default="", description="What this preset produces")
    seed: int = Field(default=12345, description="World seed for reproducibility")

    world: WorldConfig = Field(default_factory=WorldConfig)
    height: HeightConfig = Field(default_factory=HeightConfig)
    erosion: ErosionConfig = Field(default_factory=ErosionConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    biomes: BiomeSetConfig = Field(default_factory=BiomeSetConfig)


def load_config(config_path: Path) -> TerrainConfig:
    """Load terrain configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values are out of range.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent.parent / "configs"


def find_config(name: str) -> Path:
    """Find a preset file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends with .toml
    2. configs/{name}.toml
    3. configs/{name}

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available preset names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))
