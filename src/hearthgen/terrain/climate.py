"""Climate fields: temperature and humidity grids for biome matching."""

from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray

from ..exceptions import InvalidGridError
from .config import ClimateConfig
from .heightmap import grid_coordinates
from .noise import fractal_from_params

logger = structlog.get_logger()

TEMPERATURE_SEED_OFFSET = 15000
HUMIDITY_SEED_OFFSET = 25000
HUMIDITY_DETAIL_SEED_OFFSET = 35000


@dataclass(frozen=True)
class ClimateFields:
    """Temperature and humidity grids, shape (rows, cols), values in [0, 1]."""

    temperature: NDArray[np.float64]
    humidity: NDArray[np.float64]


def latitude_gradient(
    normalized_z: ArrayLike,
    exponent: float = 1.5,
) -> NDArray[np.float64]:
    """Warmth by latitude: 1 at the middle row, 0 at the north and south edges."""
    z = np.clip(np.asarray(normalized_z, dtype=np.float64), 0.0, 1.0)
    return (1.0 - np.abs(z * 2.0 - 1.0)) ** exponent


def _check_heights(heights: NDArray[np.floating] | None, rows: int, cols: int) -> None:
    if heights is not None and heights.shape != (rows, cols):
        raise InvalidGridError(
            f"heights shape {heights.shape} does not match grid ({rows}, {cols})"
        )


def temperature_field(
    cols: int,
    rows: int,
    world_width: float,
    world_length: float,
    seed: int,
    config: ClimateConfig,
    heights: NDArray[np.floating] | None = None,
) -> NDArray[np.float64]:
    """Temperature grid from latitude, large-scale noise and altitude.

    Args:
        cols: Samples along X.
        rows: Samples along Z.
        world_width: World extent along X.
        world_length: World extent along Z.
        seed: World seed.
        config: Climate parameters.
        heights: Optional normalized heightfield; higher cells are colder.

    Returns:
        Temperature in [0, 1], shape (rows, cols).
    """
    _check_heights(heights, rows, cols)
    xx, zz = grid_coordinates(cols, rows, world_width, world_length)

    normalized_z = np.arange(rows, dtype=np.float64) / rows
    latitude = latitude_gradient(normalized_z, config.latitude_exponent)[:, np.newaxis]

    variation = fractal_from_params(
        xx, zz, seed + TEMPERATURE_SEED_OFFSET, config.temperature_noise
    )

    weight = config.latitude_weight
    temperature = latitude * weight + variation * (1.0 - weight)
    if heights is not None:
        temperature = temperature - np.asarray(heights, dtype=np.float64) * config.altitude_cooling

    return np.clip(temperature, 0.0, 1.0)


def humidity_field(
    cols: int,
    rows: int,
    world_width: float,
    world_length: float,
    seed: int,
    config: ClimateConfig,
    heights: NDArray[np.floating] | None = None,
) -> NDArray[np.float64]:
    """Humidity grid from rainfall noise, finer detail and a lowland boost.

    Arguments match :func:`temperature_field`. Humidity does not depend on
    temperature.
    """
    _check_heights(heights, rows, cols)
    xx, zz = grid_coordinates(cols, rows, world_width, world_length)

    rain = fractal_from_params(xx, zz, seed + HUMIDITY_SEED_OFFSET, config.rainfall_noise)
    detail = fractal_from_params(
        xx, zz, seed + HUMIDITY_DETAIL_SEED_OFFSET, config.humidity_detail_noise
    )

    weight = config.humidity_detail_weight
    humidity = rain * (1.0 - weight) + detail * weight
    if heights is not None:
        humidity = humidity + (1.0 - np.asarray(heights, dtype=np.float64)) * config.lowland_humidity_boost

    return np.clip(humidity, 0.0, 1.0)


def generate_climate(
    cols: int,
    rows: int,
    world_width: float,
    world_length: float,
    seed: int,
    config: ClimateConfig,
    heights: NDArray[np.floating] | None = None,
) -> ClimateFields:
    """Build both climate grids for a world."""
    temperature = temperature_field(cols, rows, world_width, world_length, seed, config, heights)
    humidity = humidity_field(cols, rows, world_width, world_length, seed, config, heights)

    logger.info(
        "climate_generated",
        rows=rows,
        cols=cols,
        temperature_mean=round(float(temperature.mean()), 3),
        humidity_mean=round(float(humidity.mean()), 3),
    )
    return ClimateFields(temperature=temperature, humidity=humidity)
