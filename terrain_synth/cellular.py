# terrain_synth/cellular.py

"""
================================================================================
CELLULAR (WORLEY) NOISE
================================================================================
This module provides a cellular noise field over a small, moving set of 2D
feature points in the unit square, plus the caller-side motion patterns used
to animate it.

Data Contract:
---------------
- Inputs:
    - count, rng/seed: Number of feature points and their randomness source.
    - x, y: Query coordinates in unit-square space (scalars or NumPy arrays).
- Outputs:
    - (d1, d2): Distances to the nearest and second-nearest feature points.
    - solid / edge field values in [0, 1].
- Side Effects: `advance` and `set_positions` mutate the point positions.
  The field is not thread-safe.
- Invariants: Every position lies in [0, 1)^2 after any `advance` or
  `set_positions` call (periodic topology).
================================================================================
"""

import math
from typing import NamedTuple

import numpy as np
from numba import njit
from scipy.spatial.distance import cdist

from . import config as DEFAULTS


class FeaturePoint(NamedTuple):
    """A snapshot of one feature point."""
    x: float
    y: float
    vx: float
    vy: float


@njit
def _nearest_two(px, py, x, y):
    """Single pass over all points keeping the running minimum and second minimum."""
    d1 = np.inf
    d2 = np.inf
    for i in range(px.shape[0]):
        dx = px[i] - x
        dy = py[i] - y
        dist = math.sqrt(dx * dx + dy * dy)
        if dist < d1:
            d2 = d1
            d1 = dist
        elif dist < d2:
            d2 = dist
    return d1, d2


def _wrap_unit(values: np.ndarray) -> np.ndarray:
    """Wraps values periodically into [0, 1)."""
    wrapped = np.mod(values, 1.0)
    # np.mod can round tiny negatives up to exactly 1.0.
    wrapped[wrapped >= 1.0] = 0.0
    return wrapped


class CellularField:
    """
    Worley noise over a fixed number of feature points.
    Queries are O(point count); there is no spatial index.
    """

    def __init__(self, count: int = DEFAULTS.DEFAULT_FEATURE_POINTS, rng: np.random.Generator = None,
                 seed: int = None, positions: np.ndarray = None, velocities: np.ndarray = None,
                 config: dict = None):
        """
        Args:
            count (int): Number of feature points (ignored when positions are given).
            rng (np.random.Generator, optional): Source for random positions and velocities.
            seed (int, optional): Seed for a new generator when rng is None.
                With neither, operating-system entropy is used.
            positions / velocities (np.ndarray, optional): Explicit (n, 2) arrays.
            config (dict, optional): Overrides for the field scale constants.
        """
        config = config or {}
        self.settings = {
            'solid_scale': config.get('solid_scale', DEFAULTS.CELL_SOLID_SCALE),
            'edge_scale': config.get('edge_scale', DEFAULTS.CELL_EDGE_SCALE),
            'velocity_scale': config.get('velocity_scale', DEFAULTS.FEATURE_VELOCITY_SCALE),
        }

        if positions is not None:
            positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
            count = positions.shape[0]
        if count <= 0:
            raise ValueError(f"A cellular field needs at least one feature point, got {count}.")

        if rng is None:
            rng = np.random.default_rng(seed)

        if positions is None:
            positions = rng.random((count, 2))
        if velocities is None:
            velocities = (rng.random((count, 2)) - 0.5) * self.settings['velocity_scale']
        else:
            velocities = np.array(velocities, dtype=np.float64).reshape(-1, 2)
            if velocities.shape[0] != count:
                raise ValueError(
                    f"Expected {count} velocities to match the feature points, got {velocities.shape[0]}."
                )

        self._positions = _wrap_unit(positions)
        self._velocities = velocities

    @property
    def count(self) -> int:
        return self._positions.shape[0]

    @property
    def positions(self) -> np.ndarray:
        """A copy of the (n, 2) position array."""
        return self._positions.copy()

    @property
    def velocities(self) -> np.ndarray:
        return self._velocities.copy()

    def points(self) -> list[FeaturePoint]:
        return [
            FeaturePoint(float(p[0]), float(p[1]), float(v[0]), float(v[1]))
            for p, v in zip(self._positions, self._velocities)
        ]

    # --- Queries ---
    def nearest_distances(self, x: float, y: float) -> tuple[float, float]:
        """Euclidean distances to the nearest and second-nearest points (d1 <= d2)."""
        d1, d2 = _nearest_two(self._positions[:, 0], self._positions[:, 1], float(x), float(y))
        return float(d1), float(d2)

    def solid_field(self, x: float, y: float) -> float:
        d1, _ = self.nearest_distances(x, y)
        return min(d1 * self.settings['solid_scale'], 1.0)

    def edge_field(self, x: float, y: float) -> float:
        d1, d2 = self.nearest_distances(x, y)
        return min((d2 - d1) * self.settings['edge_scale'], 1.0)

    def nearest_distances_grid(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """
        Brute-force (d1, d2) for arrays of query points, computing every
        query-to-point distance at once.
        """
        x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        shape = x.shape
        queries = np.column_stack((x.ravel(), y.ravel()))
        dist = cdist(queries, self._positions)

        if self.count == 1:
            d1 = dist[:, 0]
            d2 = np.full_like(d1, np.inf)
        else:
            nearest = np.partition(dist, 1, axis=1)
            d1 = nearest[:, 0]
            d2 = nearest[:, 1]
        return d1.reshape(shape), d2.reshape(shape)

    def solid_field_grid(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        d1, _ = self.nearest_distances_grid(x, y)
        return np.minimum(d1 * self.settings['solid_scale'], 1.0)

    def edge_field_grid(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        d1, d2 = self.nearest_distances_grid(x, y)
        return np.minimum((d2 - d1) * self.settings['edge_scale'], 1.0)

    # --- Mutation ---
    def advance(self, dt: float):
        """Moves every point by velocity * dt and wraps it back into [0, 1)."""
        self._positions = _wrap_unit(self._positions + self._velocities * dt)

    def set_positions(self, positions: np.ndarray):
        """
        Overwrites all point positions (used by caller-side motion patterns).
        Positions are wrapped into [0, 1); velocities are left untouched.
        """
        positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        if positions.shape[0] != self.count:
            raise ValueError(f"Expected {self.count} positions, got {positions.shape[0]}.")
        self._positions = _wrap_unit(positions)


# --- Caller-side Motion Patterns ---
def anchor_positions(count: int) -> np.ndarray:
    """Deterministic per-point anchors spread over the unit square."""
    i = np.arange(count, dtype=np.float64)
    return np.column_stack((
        np.mod(i * DEFAULTS.MOTION_ANCHOR_STEP_X, 1.0),
        np.mod(i * DEFAULTS.MOTION_ANCHOR_STEP_Y, 1.0),
    ))

def orbit_positions(count: int, time: float, radius: float = DEFAULTS.ORBIT_RADIUS,
                    angular_speed: float = DEFAULTS.ORBIT_ANGULAR_SPEED) -> np.ndarray:
    """Each point circles its anchor; the phase is offset per point."""
    i = np.arange(count, dtype=np.float64)
    angle = time * angular_speed + i * DEFAULTS.MOTION_PHASE_STEP
    offsets = np.column_stack((np.cos(angle), np.sin(angle))) * radius
    return anchor_positions(count) + offsets

def pulse_positions(count: int, time: float, amplitude: float = DEFAULTS.PULSE_AMPLITUDE) -> np.ndarray:
    """Each point slides in and out along a fixed direction from its anchor."""
    i = np.arange(count, dtype=np.float64)
    pulse = np.sin(time + i) * amplitude
    angle = i * DEFAULTS.MOTION_PHASE_STEP
    offsets = np.column_stack((np.cos(angle) * pulse, np.sin(angle) * pulse))
    return anchor_positions(count) + offsets
