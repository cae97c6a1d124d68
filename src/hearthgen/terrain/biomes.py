"""Biome matching and blending.

Each biome claims a box in (height, temperature, humidity) space. A cell's
affinity for a biome is 1 inside the box and decays exponentially outside
it; the blender turns affinities into a weight mixture that sums to 1.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray

from ..exceptions import ConfigurationError, EmptyBiomeCollectionError
from .config import BiomeDefinition, BiomeSetConfig, _default_biome_definitions

logger = structlog.get_logger()


@dataclass(frozen=True, eq=False)
class Biome:
    """A biome lookup-table entry.

    Compared and hashed by identity, so two biomes with equal fields are
    still distinct keys in a weight mapping.
    """

    name: str
    height_range: tuple[float, float]
    temperature_range: tuple[float, float]
    humidity_range: tuple[float, float]
    blend_strength: float = 3.0
    payload: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_definition(cls, definition: BiomeDefinition) -> "Biome":
        return cls(
            name=definition.name,
            height_range=tuple(definition.height_range),
            temperature_range=tuple(definition.temperature_range),
            humidity_range=tuple(definition.humidity_range),
            blend_strength=definition.blend_strength,
            payload=dict(definition.payload),
        )


def definitions_to_biomes(definitions: Iterable[BiomeDefinition]) -> list[Biome]:
    return [Biome.from_definition(d) for d in definitions]


def default_biomes() -> list[Biome]:
    """Water, Plains, Forest, Rock and Snow."""
    return definitions_to_biomes(_default_biome_definitions())


def range_distance(value: ArrayLike, low: float, high: float) -> NDArray[np.float64]:
    """Distance from ``value`` to the closed range [low, high]; 0 inside."""
    v = np.asarray(value, dtype=np.float64)
    return np.maximum(low - v, 0.0) + np.maximum(v - high, 0.0)


def range_score(
    value: ArrayLike,
    low: float,
    high: float,
    falloff_rate: float = 5.0,
) -> float | NDArray[np.float64]:
    """1 inside [low, high], ``exp(-distance * falloff_rate)`` outside."""
    score = np.exp(-range_distance(value, low, high) * falloff_rate)
    if score.ndim == 0:
        return float(score)
    return score


def match_score(
    height: ArrayLike,
    temperature: ArrayLike,
    humidity: ArrayLike,
    biome: Biome,
    falloff_rate: float = 5.0,
) -> float | NDArray[np.float64]:
    """How well a climate sample fits a biome, in [0, 1].

    The three per-axis scores are multiplied and the product is raised to
    ``biome.blend_strength``; higher strengths make territory edges sharper.

    Args:
        height: Normalized height(s).
        temperature: Temperature(s) in [0, 1].
        humidity: Humidity value(s) in [0, 1].
        biome: Biome to score against.
        falloff_rate: Exponential decay rate outside a range.

    Returns:
        Score with the broadcast shape of the inputs (float for scalars).
    """
    score = (
        np.asarray(range_score(height, *biome.height_range, falloff_rate))
        * np.asarray(range_score(temperature, *biome.temperature_range, falloff_rate))
        * np.asarray(range_score(humidity, *biome.humidity_range, falloff_rate))
    ) ** biome.blend_strength
    if score.ndim == 0:
        return float(score)
    return score


class BiomeBlender:
    """Turns climate samples into normalized biome weight mixtures.

    Attributes:
        biomes: Biomes in collection order.
        global_blend_factor: Shared softening factor.
        use_global_factor: If False, each biome's own blend_strength is the
            softening factor.
        falloff_rate: Decay rate used by :func:`range_score`.
        epsilon: Scores and weights at or below this are ignored.
    """

    def __init__(
        self,
        biomes: Sequence[Biome],
        global_blend_factor: float = 3.0,
        use_global_factor: bool = True,
        falloff_rate: float = 5.0,
        epsilon: float = 0.001,
    ) -> None:
        self.biomes = tuple(biomes)
        if not self.biomes:
            raise EmptyBiomeCollectionError("biome collection is empty")

        names = [b.name for b in self.biomes]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"duplicate biome names: {duplicates}")
        if not global_blend_factor > 0:
            raise ConfigurationError("global_blend_factor must be > 0")
        if not falloff_rate > 0:
            raise ConfigurationError("falloff_rate must be > 0")
        if not epsilon > 0:
            raise ConfigurationError("epsilon must be > 0")

        self.global_blend_factor = global_blend_factor
        self.use_global_factor = use_global_factor
        self.falloff_rate = falloff_rate
        self.epsilon = epsilon

    @classmethod
    def from_config(cls, config: BiomeSetConfig) -> "BiomeBlender":
        return cls(
            definitions_to_biomes(config.definitions),
            global_blend_factor=config.global_blend_factor,
            use_global_factor=config.use_global_factor,
            falloff_rate=config.falloff_rate,
            epsilon=config.epsilon,
        )

    def _factor(self, biome: Biome) -> float:
        if self.use_global_factor:
            return self.global_blend_factor
        return biome.blend_strength

    def weights(self, height: float, temperature: float, humidity: float) -> dict[Biome, float]:
        """Raw, unnormalized weights of every biome that matches at all.

        Biomes scoring below epsilon are skipped; the rest get
        ``score ** (1 / factor)`` and are kept only if that exceeds epsilon.
        """
        result: dict[Biome, float] = {}
        for biome in self.biomes:
            score = match_score(height, temperature, humidity, biome, self.falloff_rate)
            if score < self.epsilon:
                continue
            weight = score ** (1.0 / self._factor(biome))
            if weight > self.epsilon:
                result[biome] = weight
        return result

    def fallback_biome(self, height: float) -> Biome:
        """Biome whose height range is nearest; the first one wins ties."""
        distances = [float(range_distance(height, *b.height_range)) for b in self.biomes]
        return self.biomes[int(np.argmin(distances))]

    def normalized_weights(
        self, height: float, temperature: float, humidity: float
    ) -> dict[Biome, float]:
        """Weights summing to 1, or the nearest-height-band fallback."""
        raw = self.weights(height, temperature, humidity)
        total = sum(raw.values())
        if total > self.epsilon:
            return {biome: w / total for biome, w in raw.items()}
        return {self.fallback_biome(height): 1.0}

    def primary_biome(self, height: float, temperature: float, humidity: float) -> Biome:
        """Biome with the largest normalized weight."""
        weights = self.normalized_weights(height, temperature, humidity)
        return max(weights, key=weights.__getitem__)

    def weight_grid(
        self,
        heights: NDArray[np.floating],
        temperature: NDArray[np.floating],
        humidity: NDArray[np.floating],
    ) -> tuple[NDArray[np.float64], int]:
        """Normalized weights for every cell of a grid.

        Args:
            heights: Normalized heights, shape (rows, cols).
            temperature: Temperature grid of the same shape.
            humidity: Humidity grid of the same shape.

        Returns:
            Tuple of (weights, fallback_count). Weights have shape
            (rows, cols, n_biomes) in biome order and sum to 1 per cell.
        """
        if not heights.shape == temperature.shape == humidity.shape:
            raise ConfigurationError(
                f"grid shapes differ: {heights.shape}, {temperature.shape}, {humidity.shape}"
            )

        raw = np.zeros(heights.shape + (len(self.biomes),), dtype=np.float64)
        for i, biome in enumerate(self.biomes):
            score = np.asarray(
                match_score(heights, temperature, humidity, biome, self.falloff_rate)
            )
            weight = np.where(score >= self.epsilon, score ** (1.0 / self._factor(biome)), 0.0)
            raw[..., i] = np.where(weight > self.epsilon, weight, 0.0)

        total = raw.sum(axis=-1)
        matched = total > self.epsilon
        weights = np.zeros_like(raw)
        weights[matched] = raw[matched] / total[matched][:, np.newaxis]

        fallback_count = int(np.count_nonzero(~matched))
        if fallback_count:
            distances = np.stack(
                [range_distance(heights, *b.height_range) for b in self.biomes], axis=-1
            )
            nearest = np.argmin(distances, axis=-1)
            unmatched = np.nonzero(~matched)
            weights[unmatched + (nearest[unmatched],)] = 1.0
            logger.debug("biome_fallback_cells", count=fallback_count)

        return weights, fallback_count
