"""Post-generation validation of biome tables and generated worlds."""

import numpy as np
import structlog
from scipy import ndimage

from .biomes import Biome, BiomeBlender
from .generator import GenerationResult, biome_distribution

logger = structlog.get_logger()


class ValidationResult:
    """Result of terrain validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.stats: dict[str, object] = {}
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_biomes(
    blender: BiomeBlender,
    samples_per_axis: int = 11,
    min_coverage: float = 0.9,
) -> ValidationResult:
    """Check a biome table before it is used for generation.

    Samples the (height, temperature, humidity) unit cube on a regular grid
    and reports how much of it is matched by at least one biome without the
    fallback.

    Args:
        blender: Blender holding the biome table.
        samples_per_axis: Grid points per climate axis (>= 2).
        min_coverage: Coverage below this fraction is a warning.

    Returns:
        ValidationResult; ``stats["coverage"]`` holds the matched fraction.
    """
    result = ValidationResult()

    # Check 1: Ranges inside [0, 1] and ordered
    for biome in blender.biomes:
        _check_ranges(biome, result)

    # Check 2: Coverage of the climate cube
    axis = np.linspace(0.0, 1.0, max(samples_per_axis, 2))
    h, t, m = np.meshgrid(axis, axis, axis, indexing="ij")
    weights, fallback_count = blender.weight_grid(h, t, m)

    coverage = 1.0 - fallback_count / h.size
    result.stats["coverage"] = coverage
    if coverage < min_coverage:
        result.add_warning(
            f"Biomes cover {coverage:.1%} of climate space (minimum {min_coverage:.0%})"
        )

    # Check 3: Every biome is primary somewhere
    primary = np.argmax(weights, axis=-1)
    for i, biome in enumerate(blender.biomes):
        if not np.any(primary == i):
            result.add_warning(f"Biome '{biome.name}' is never the primary biome")

    _log_result("biome_table", result)
    return result


def validate_result(
    result: GenerationResult,
    max_dominance: float = 0.9,
) -> ValidationResult:
    """Check a generated world's grids and biome distribution.

    Args:
        result: Generated terrain.
        max_dominance: A single biome covering more than this fraction of
            cells is a warning.

    Returns:
        ValidationResult; stats hold the distribution and region counts.
    """
    validation = ValidationResult()

    # Check 1: Grid values in range
    _check_unit_grid("heights", result.heights, validation)
    _check_unit_grid("temperature", result.temperature, validation)
    _check_unit_grid("humidity", result.humidity, validation)

    # Check 2: Weights sum to 1
    sums = result.biome_weights.sum(axis=-1)
    if not np.allclose(sums, 1.0, atol=1e-9):
        bad = int(np.count_nonzero(~np.isclose(sums, 1.0, atol=1e-9)))
        validation.add_error(f"Biome weights do not sum to 1 in {bad} cells")

    # Check 3: Dominance and fragmentation
    distribution = biome_distribution(result)
    validation.stats["distribution"] = distribution
    for name, fraction in distribution.items():
        if fraction > max_dominance:
            validation.add_warning(f"Biome '{name}' covers {fraction:.1%} of the world")

    validation.stats["regions"] = _count_regions(result)

    _log_result("generation_result", validation)
    return validation


def _check_ranges(biome: Biome, result: ValidationResult) -> None:
    for label in ("height_range", "temperature_range", "humidity_range"):
        low, high = getattr(biome, label)
        if not 0.0 <= low <= high <= 1.0:
            result.add_error(f"Biome '{biome.name}' has invalid {label} ({low}, {high})")


def _check_unit_grid(name: str, grid: np.ndarray, result: ValidationResult) -> None:
    if np.isnan(grid).any():
        result.add_error(f"{name} contains NaN")
    elif grid.min() < 0.0 or grid.max() > 1.0:
        result.add_error(f"{name} outside [0, 1]: [{grid.min():.3f}, {grid.max():.3f}]")


def _count_regions(result: GenerationResult) -> dict[str, int]:
    """Connected regions (4-neighbourhood) where each biome is primary."""
    primary = result.primary_biome_indices()
    counts = {}
    for i, biome in enumerate(result.biomes):
        _, num_regions = ndimage.label(primary == i)
        counts[biome.name] = int(num_regions)
    return counts


def _log_result(target: str, result: ValidationResult) -> None:
    if result.passed:
        logger.info("validation_passed", target=target, warnings=len(result.warnings))
    else:
        logger.warning("validation_failed", target=target, errors=len(result.errors))
        for error in result.errors:
            logger.error("validation_error", target=target, message=error)

    for warning in result.warnings:
        logger.warning("validation_warning", target=target, message=warning)
