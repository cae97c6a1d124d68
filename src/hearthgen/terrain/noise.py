"""Noise generation functions for terrain generation.

Provides seeded value noise, fBm (fractal Brownian motion), ridge and
billow transforms, domain warping, cellular (Voronoi) noise and radial
falloff. Every function is a pure function of coordinates, seed and
parameters and accepts scalars or NumPy arrays.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import InvalidNoiseParameters
from .config import NoiseParameters

_MASK64 = 0xFFFFFFFFFFFFFFFF
_PRIME_X = np.uint64(0x9E3779B97F4A7C15)
_PRIME_Y = np.uint64(0xC2B2AE3D27D4EB4F)
_MIX_1 = np.uint64(0xBF58476D1CE4E5B9)
_MIX_2 = np.uint64(0x94D049BB133111EB)
_UNIT = 1.0 / float(1 << 53)

# Seed-derived translation is kept well inside float64 integer precision.
_OFFSET_SPAN = 4096.0


def _mix64(h: NDArray[np.uint64]) -> NDArray[np.uint64]:
    """splitmix64 finalizer."""
    h = h ^ (h >> np.uint64(30))
    h = h * _MIX_1
    h = h ^ (h >> np.uint64(27))
    h = h * _MIX_2
    return h ^ (h >> np.uint64(31))


def _seed_bits(seed: int, channel: int = 0) -> NDArray[np.uint64]:
    with np.errstate(over="ignore"):
        return _mix64(np.asarray(int(seed) & _MASK64, dtype=np.uint64) + np.uint64(channel))


def _lattice_hash(
    ix: NDArray[np.int64],
    iy: NDArray[np.int64],
    seed: int,
    channel: int = 0,
) -> NDArray[np.float64]:
    """Hash integer lattice points to floats in [0, 1)."""
    with np.errstate(over="ignore"):
        h = ix.astype(np.uint64) * _PRIME_X ^ iy.astype(np.uint64) * _PRIME_Y
        h = _mix64(h ^ _seed_bits(seed, channel))
    return (h >> np.uint64(11)).astype(np.float64) * _UNIT


def _seed_offset(seed: int) -> tuple[float, float]:
    bits = int(_seed_bits(seed, channel=7))
    ox = ((bits >> 32) / float(1 << 32)) * _OFFSET_SPAN
    oy = ((bits & 0xFFFFFFFF) / float(1 << 32)) * _OFFSET_SPAN
    return ox, oy


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _output(values: NDArray[np.float64]) -> float | NDArray[np.float64]:
    if values.ndim == 0:
        return float(values)
    return values


def _check_frequency(frequency: float) -> None:
    if not frequency > 0:
        raise InvalidNoiseParameters(f"frequency must be > 0, got {frequency}")


def _scaled_coords(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    _check_frequency(frequency)
    ox, oy = _seed_offset(seed)
    xs, ys = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
    )
    return xs * frequency + ox, ys * frequency + oy


def value_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.01,
) -> float | NDArray[np.float64]:
    """Seeded coherent value noise.

    Lattice values come from a 64-bit hash of (cell, seed); the sample point
    is also translated by a seed-derived offset so different seeds
    decorrelate even near the origin.

    Args:
        x: World X coordinate(s).
        y: World Y (or Z) coordinate(s).
        seed: Integer seed.
        frequency: Lattice cells per world unit.

    Returns:
        Noise in [0, 1]; a float for scalar input, else an array.
    """
    sx, sy = _scaled_coords(x, y, seed, frequency)
    x0 = np.floor(sx)
    y0 = np.floor(sy)
    tx = _fade(sx - x0)
    ty = _fade(sy - y0)
    ix = x0.astype(np.int64)
    iy = y0.astype(np.int64)

    h00 = _lattice_hash(ix, iy, seed)
    h10 = _lattice_hash(ix + 1, iy, seed)
    h01 = _lattice_hash(ix, iy + 1, seed)
    h11 = _lattice_hash(ix + 1, iy + 1, seed)

    near = h00 + (h10 - h00) * tx
    far = h01 + (h11 - h01) * tx
    return _output(near + (far - near) * ty)


def fractal_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    octaves: int = 4,
    frequency: float = 0.01,
    lacunarity: float = 2.0,
    gain: float = 0.5,
) -> float | NDArray[np.float64]:
    """Fractal Brownian motion built from value noise.

    Octave ``i`` uses seed ``seed + i``, frequency ``frequency * lacunarity**i``
    and amplitude ``gain**i``. The sum is divided by the total amplitude so
    the result stays in [0, 1] for any octave count.

    Args:
        x: World X coordinate(s).
        y: World Y coordinate(s).
        seed: Integer seed.
        octaves: Number of noise layers to sum (>= 1).
        frequency: Frequency of the first octave.
        lacunarity: Frequency multiplier between octaves.
        gain: Amplitude multiplier between octaves.

    Returns:
        Noise in [0, 1].
    """
    if octaves < 1:
        raise InvalidNoiseParameters(f"octaves must be >= 1, got {octaves}")
    if not lacunarity > 0 or not gain > 0:
        raise InvalidNoiseParameters("lacunarity and gain must be > 0")
    _check_frequency(frequency)

    total: float | NDArray[np.float64] = 0.0
    amplitude = 1.0
    max_value = 0.0
    freq = frequency

    for i in range(octaves):
        total = total + value_noise(x, y, seed + i, freq) * amplitude
        max_value += amplitude
        amplitude *= gain
        freq *= lacunarity

    return total / max_value


def ridge_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.01,
) -> float | NDArray[np.float64]:
    """Sharp ridges: ``1 - |2n - 1|``, peaking where the base noise is 0.5."""
    n = value_noise(x, y, seed, frequency)
    return 1.0 - np.abs(n * 2.0 - 1.0)


def billow_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.01,
) -> float | NDArray[np.float64]:
    """Puffy billows: ``|2n - 1|``."""
    n = value_noise(x, y, seed, frequency)
    return np.abs(n * 2.0 - 1.0)


def domain_warp(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float,
    strength: float,
    x_scale: float = 1.0,
    y_scale: float = 1.0,
) -> tuple[float | NDArray[np.float64], float | NDArray[np.float64]]:
    """Perturb sample coordinates with two independent noise lookups.

    Offsets are centred on zero and span ``±strength`` scaled per axis.
    Unequal ``x_scale``/``y_scale`` stretch features along one axis, which
    turns round blobs into elongated ranges.

    Args:
        x: World X coordinate(s).
        y: World Y coordinate(s).
        seed: Integer seed; lookups use ``seed + 100`` and ``seed + 200``.
        frequency: Frequency of the warp noise.
        strength: Maximum offset in world units.
        x_scale: Multiplier on the X offset.
        y_scale: Multiplier on the Y offset.

    Returns:
        Warped (x, y) coordinates.
    """
    dx = (np.asarray(value_noise(x, y, seed + 100, frequency)) * 2.0 - 1.0) * strength * x_scale
    dy = (np.asarray(value_noise(x, y, seed + 200, frequency)) * 2.0 - 1.0) * strength * y_scale
    wx = np.asarray(x, dtype=np.float64) + dx
    wy = np.asarray(y, dtype=np.float64) + dy
    return _output(wx), _output(wy)


def warped_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.01,
    warp_strength: float = 10.0,
) -> float | NDArray[np.float64]:
    """Value noise sampled at domain-warped coordinates (organic, flowing)."""
    wx, wy = domain_warp(x, y, seed, frequency, warp_strength)
    return value_noise(wx, wy, seed, frequency)


def voronoi_noise(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    frequency: float = 0.01,
) -> float | NDArray[np.float64]:
    """Cellular noise: distance to the nearest jittered feature point.

    Each lattice cell holds one feature point. The distance (in cell units)
    to the closest point among the 3x3 neighbouring cells is clipped to
    [0, 1]; values near 1 trace cell borders.
    """
    sx, sy = _scaled_coords(x, y, seed, frequency)
    cx = np.floor(sx).astype(np.int64)
    cy = np.floor(sy).astype(np.int64)
    nearest = np.full(sx.shape, np.inf)

    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            gx = cx + dx
            gy = cy + dy
            px = gx + _lattice_hash(gx, gy, seed, channel=1)
            py = gy + _lattice_hash(gx, gy, seed, channel=2)
            nearest = np.minimum(nearest, np.hypot(px - sx, py - sy))

    return _output(np.clip(nearest, 0.0, 1.0))


def radial_falloff(
    value: ArrayLike,
    x: ArrayLike,
    y: ArrayLike,
    center_x: float,
    center_y: float,
    radius: float,
) -> float | NDArray[np.float64]:
    """Attenuate ``value`` linearly to zero at ``radius`` from the center.

    Raises:
        InvalidNoiseParameters: If radius is not positive.
    """
    if not radius > 0:
        raise InvalidNoiseParameters(f"radius must be > 0, got {radius}")
    distance = np.hypot(
        np.asarray(x, dtype=np.float64) - center_x,
        np.asarray(y, dtype=np.float64) - center_y,
    )
    falloff = np.clip(1.0 - distance / radius, 0.0, 1.0)
    return _output(np.asarray(value, dtype=np.float64) * falloff)


def fractal_from_params(
    x: ArrayLike,
    y: ArrayLike,
    seed: int,
    params: NoiseParameters,
) -> float | NDArray[np.float64]:
    """Evaluate fBm described by a NoiseParameters record.

    When ``params.warp_strength`` is set the coordinates are domain warped
    (seed ``seed + 300``) before sampling.
    """
    if params.warp_strength:
        x, y = domain_warp(x, y, seed + 300, params.frequency, params.warp_strength)
    return fractal_noise(
        x,
        y,
        seed,
        octaves=params.octaves,
        frequency=params.frequency,
        lacunarity=params.lacunarity,
        gain=params.gain,
    )


def smoothstep(edge0: float, edge1: float, x: ArrayLike) -> float | NDArray[np.float64]:
    """Smooth Hermite interpolation between 0 and 1.

    Args:
        edge0: Lower edge of transition.
        edge1: Upper edge of transition.
        x: Input values.

    Returns:
        Smoothly interpolated values in [0, 1].
    """
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return _output(t * t * (3.0 - 2.0 * t))
