# terrain_synth/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides improved 3D Perlin (gradient) noise, its fractal
(multi-octave) accumulation, and plain white noise.

Data Contract:
---------------
- Inputs:
    - table: A PermutationTable (512 uint8 entries).
    - x, y, z: Scalars, or NumPy arrays of coordinates (broadcastable).
    - octaves, base_frequency, persistence, lacunarity: Standard noise parameters.
- Outputs:
    - Noise values, typically in the range [-1, 1] for a single octave.
      Fractal sums are not normalized.
- Side Effects: None.
- Invariants: Sampling is a pure function of the coordinates and the table.
  The value is exactly 0 at every point with all-integer coordinates.
================================================================================
"""

from typing import Protocol

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .permutation import PermutationTable, EntropySource


class ScalarField(Protocol):
    """
    Anything that can sample a continuous scalar field at (x, y, z).
    FractalAccumulator and TerrainMeshBuilder only rely on this interface.
    """

    def sample(self, x: float, y: float, z: float = 0.0) -> float: ...
    def sample_grid(self, x: np.ndarray, y: np.ndarray, z=0.0) -> np.ndarray: ...


@njit
def _lerp(t, a, b):
    "Linear interpolation."
    return a + t * (b - a)

@njit
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6 - 15) + 10)

@njit
def _grad(hash_value, x, y, z):
    """Dot product of one of 12 edge gradients (picked by the hash) with (x, y, z)."""
    h = hash_value & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)

@njit
def perlin_noise_3d(p, x, y, z):
    """
    Improved Perlin noise at a single point. `p` is the 512-entry table.
    """
    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)

    X = int(fx) & 255
    Y = int(fy) & 255
    Z = int(fz) & 255

    x -= fx
    y -= fy
    z -= fz

    u = _fade(x)
    v = _fade(y)
    w = _fade(z)

    A = p[X] + Y
    AA = p[A] + Z
    AB = p[A + 1] + Z
    B = p[X + 1] + Y
    BA = p[B] + Z
    BB = p[B + 1] + Z

    return _lerp(w,
                 _lerp(v,
                       _lerp(u, _grad(p[AA], x, y, z),
                             _grad(p[BA], x - 1, y, z)),
                       _lerp(u, _grad(p[AB], x, y - 1, z),
                             _grad(p[BB], x - 1, y - 1, z))),
                 _lerp(v,
                       _lerp(u, _grad(p[AA + 1], x, y, z - 1),
                             _grad(p[BA + 1], x - 1, y, z - 1)),
                       _lerp(u, _grad(p[AB + 1], x, y - 1, z - 1),
                             _grad(p[BB + 1], x - 1, y - 1, z - 1))))

@njit
def _perlin_noise_flat(p, xs, ys, zs):
    """Evaluates perlin_noise_3d over flat, equally sized coordinate arrays."""
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = perlin_noise_3d(p, xs[i], ys[i], zs[i])
    return out


def perlin_noise_grid(p: np.ndarray, x, y, z=0.0) -> np.ndarray:
    """
    Generate 3D Perlin noise for arrays of coordinates. The inputs are broadcast
    against each other and the output has the broadcast shape.
    """
    bx, by, bz = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64),
        np.asarray(y, dtype=np.float64),
        np.asarray(z, dtype=np.float64),
    )
    shape = bx.shape
    flat = _perlin_noise_flat(
        p,
        np.ascontiguousarray(bx).ravel(),
        np.ascontiguousarray(by).ravel(),
        np.ascontiguousarray(bz).ravel(),
    )
    return flat.reshape(shape)


class GradientNoiseField:
    """
    Continuous 3D gradient noise backed by one permutation table.
    Sampling never mutates the field.
    """

    def __init__(self, table: PermutationTable = None, seed=None, source=None):
        """
        Args:
            table (PermutationTable, optional): A pre-computed table. If None,
                one is generated from `seed` / `source`.
            seed (optional): Numeric seed for a reproducible table.
            source (optional): Explicit randomness source for the shuffle.
        """
        if table is None:
            table = PermutationTable.generate(seed=seed, source=source)
        self.table = table
        self._p = table.values

    def sample(self, x: float, y: float, z: float = 0.0) -> float:
        return float(perlin_noise_3d(self._p, float(x), float(y), float(z)))

    def sample_grid(self, x, y, z=0.0) -> np.ndarray:
        return perlin_noise_grid(self._p, x, y, z)


def _check_octaves(octaves: int):
    if int(octaves) != octaves or octaves <= 0:
        raise ValueError(f"octaves must be a positive integer, got {octaves!r}.")


class FractalAccumulator:
    """
    Sums frequency- and amplitude-scaled octaves of any ScalarField.
    No normalization is applied: the range grows with the octave count.
    """

    def __init__(self, field: ScalarField):
        self.field = field

    def accumulate(self, x: float, y: float, z: float, octaves: int, base_frequency: float,
                   persistence: float = DEFAULTS.DEFAULT_PERSISTENCE,
                   lacunarity: float = DEFAULTS.DEFAULT_LACUNARITY) -> float:
        """Fractal sum at a single point."""
        _check_octaves(octaves)
        total = 0.0
        amplitude = 1.0
        frequency = base_frequency
        for _ in range(int(octaves)):
            total += self.field.sample(x * frequency, y * frequency, z * frequency) * amplitude
            amplitude *= persistence
            frequency *= lacunarity
        return total

    def accumulate_grid(self, x, y, z, octaves: int, base_frequency: float,
                        persistence: float = DEFAULTS.DEFAULT_PERSISTENCE,
                        lacunarity: float = DEFAULTS.DEFAULT_LACUNARITY) -> np.ndarray:
        """Fractal sum over arrays of coordinates (same semantics as `accumulate`)."""
        _check_octaves(octaves)
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        total = np.zeros(np.broadcast_shapes(x.shape, y.shape, z.shape))
        amplitude = 1.0
        frequency = base_frequency
        for _ in range(int(octaves)):
            total += self.field.sample_grid(x * frequency, y * frequency, z * frequency) * amplitude
            amplitude *= persistence
            frequency *= lacunarity
        return total


def white_noise(shape, source=None) -> np.ndarray:
    """
    Independent uniform values in [0, 1) for every cell of `shape`.
    The source is any object with `next_float()`; defaults to entropy.
    """
    if source is None:
        source = EntropySource()
    count = int(np.prod(shape))
    values = np.fromiter((source.next_float() for _ in range(count)), dtype=np.float64, count=count)
    return values.reshape(shape)
