# terrain_synth/biomes.py

"""
================================================================================
BIOME CLASSIFICATION
================================================================================
This module maps a biome value and a raw fractal height to a final terrain
height and an RGB color, using five ordered threshold bands:
ocean, beach, plains, hills and mountain (with snow on the highest peaks).

It is designed to be a pure, stateless utility with no rendering dependencies,
so it can be used by the mesh builder, the viewer and the baker alike.

Data Contract:
---------------
- Inputs:
    - biome_value: Classification value, nominally in [0, 1].
    - raw_height: Un-normalized fractal height.
    - water_level, mountain_frequency: User parameters in [0, 1].
- Outputs:
    - final_height (float or np.ndarray).
    - color: RGB in [0, 1] (tuple, or an (..., 3) float array).
- Side Effects: None.
- Invariants: Bands are contiguous and non-overlapping. Threshold orderings
  that would break that are rejected with ThresholdOrderError.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS


class ThresholdOrderError(ValueError):
    """Raised when derived biome thresholds are not strictly increasing."""


def smoothstep(edge0, edge1, x):
    """Cubic ease t^2 (3 - 2t) with t = clamp((x - edge0) / (edge1 - edge0), 0, 1). Edges are scalars."""
    if edge1 == edge0:
        # Degenerate span: a hard step at the edge.
        return np.where(np.asarray(x) < edge0, 0.0, 1.0)
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3 - 2 * t)

def _lerp_color(color1, color2, t) -> np.ndarray:
    """Interpolates two RGB colors for every blend factor in `t` (returns shape t.shape + (3,))."""
    c1 = np.asarray(color1, dtype=np.float64)
    c2 = np.asarray(color2, dtype=np.float64)
    t = np.asarray(t, dtype=np.float64)[..., np.newaxis]
    return c1 + (c2 - c1) * t


class BiomeThresholds:
    """The four band boundaries derived from (water_level, mountain_frequency)."""

    def __init__(self, water_level: float, beach_threshold: float, hill_threshold: float, mountain_threshold: float):
        self.water_level = water_level
        self.beach_threshold = beach_threshold
        self.hill_threshold = hill_threshold
        self.mountain_threshold = mountain_threshold

    @classmethod
    def derive(cls, water_level: float, mountain_frequency: float,
               beach_offset: float = DEFAULTS.BEACH_THRESHOLD_OFFSET,
               hill_offset: float = DEFAULTS.HILL_THRESHOLD_OFFSET) -> "BiomeThresholds":
        """
        mountain = 1 - mountain_frequency, hill = mountain - hill_offset,
        beach = water_level + beach_offset.

        Raises:
            ThresholdOrderError: If 0 <= water < beach < hill < mountain <= 1
                does not hold.
        """
        mountain_threshold = 1.0 - mountain_frequency
        thresholds = cls(
            water_level=water_level,
            beach_threshold=water_level + beach_offset,
            hill_threshold=mountain_threshold - hill_offset,
            mountain_threshold=mountain_threshold,
        )
        thresholds.validate()
        return thresholds

    def validate(self):
        ordered = (
            0.0 <= self.water_level
            < self.beach_threshold
            < self.hill_threshold
            < self.mountain_threshold
            <= 1.0
        )
        if not ordered:
            raise ThresholdOrderError(
                f"Biome thresholds must satisfy 0 <= water < beach < hill < mountain <= 1, got "
                f"water={self.water_level:.3f}, beach={self.beach_threshold:.3f}, "
                f"hill={self.hill_threshold:.3f}, mountain={self.mountain_threshold:.3f}."
            )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.water_level, self.beach_threshold, self.hill_threshold, self.mountain_threshold)

    def __repr__(self) -> str:
        return (f"BiomeThresholds(water_level={self.water_level}, beach_threshold={self.beach_threshold}, "
                f"hill_threshold={self.hill_threshold}, mountain_threshold={self.mountain_threshold})")


class BiomeClassifier:
    """
    Classifies terrain samples into biome bands. All band constants come from
    the config module and may be overridden with a config dictionary.
    """
    def __init__(self, config: dict = None, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        config = config or {}

        # --- Consolidate Configuration ---
        self.settings = {
            'beach_threshold_offset': config.get('beach_threshold_offset', DEFAULTS.BEACH_THRESHOLD_OFFSET),
            'hill_threshold_offset': config.get('hill_threshold_offset', DEFAULTS.HILL_THRESHOLD_OFFSET),
            'height_rules': {**DEFAULTS.BIOME_HEIGHT_RULES, **config.get('height_rules', {})},
            'colors': {**DEFAULTS.BIOME_COLORS, **config.get('colors', {})},
            'snow_blend_start': config.get('snow_blend_start', DEFAULTS.SNOW_BLEND_START),
            'snow_blend_end': config.get('snow_blend_end', DEFAULTS.SNOW_BLEND_END),
        }

    def thresholds(self, water_level: float, mountain_frequency: float) -> BiomeThresholds:
        return BiomeThresholds.derive(
            water_level, mountain_frequency,
            beach_offset=self.settings['beach_threshold_offset'],
            hill_offset=self.settings['hill_threshold_offset'],
        )

    def band_index(self, biome_value, water_level: float, mountain_frequency: float):
        """Index into DEFAULTS.BIOME_BANDS for each biome value."""
        water, beach, hill, mountain = self.thresholds(water_level, mountain_frequency).as_tuple()
        v = np.asarray(biome_value, dtype=np.float64)
        index = np.select([v < water, v < beach, v < hill, v < mountain], [0, 1, 2, 3], default=4)
        return int(index) if index.ndim == 0 else index

    def classify_array(self, biome_values: np.ndarray, raw_heights: np.ndarray,
                       water_level: float, mountain_frequency: float) -> tuple[np.ndarray, np.ndarray]:
        """
        Vectorized classification.

        Returns:
            (final_heights, colors): heights with the broadcast input shape and
            colors with that shape plus a trailing RGB axis.
        """
        water, beach, hill, mountain = self.thresholds(water_level, mountain_frequency).as_tuple()
        v, h = np.broadcast_arrays(np.asarray(biome_values, dtype=np.float64),
                                   np.asarray(raw_heights, dtype=np.float64))
        rules = self.settings['height_rules']
        colors = self.settings['colors']

        # --- 1. Band Masks ---
        band_conditions = [v < water, v < beach, v < hill, v < mountain]
        band = np.select(band_conditions, [0, 1, 2, 3], default=4)
        masks = [band == i for i in range(len(DEFAULTS.BIOME_BANDS))]

        # --- 2. Height Transform ---
        multipliers = np.array([rules[name][0] for name in DEFAULTS.BIOME_BANDS])
        offsets = np.array([rules[name][1] for name in DEFAULTS.BIOME_BANDS])
        final_heights = h * multipliers[band] + offsets[band]

        # --- 3. Band Color Blends ---
        # Depth is clamped so fractal overshoot below 0 cannot leave [0, 1] colors.
        if water > 0:
            depth = np.clip((water - v) / water, 0.0, 1.0)
        else:
            depth = np.ones_like(v)
        ocean = _lerp_color(colors['shallow_ocean'], colors['deep_ocean'], depth)
        beach_color = _lerp_color(colors['shallow_ocean'], colors['beach'], smoothstep(water, beach, v))
        plains = _lerp_color(colors['beach'], colors['plains'], smoothstep(beach, hill, v))
        hills = _lerp_color(colors['plains'], colors['hills'], smoothstep(hill, mountain, v))

        snow_start = self.settings['snow_blend_start']
        peaks = _lerp_color(colors['hills'], colors['mountains'], smoothstep(mountain, 1.0, v))
        snow = _lerp_color(colors['mountains'], colors['snow'],
                           smoothstep(snow_start, self.settings['snow_blend_end'], final_heights))
        mountains = np.where((final_heights > snow_start)[..., np.newaxis], snow, peaks)

        result = np.select(
            [m[..., np.newaxis] for m in masks],
            [ocean, beach_color, plains, hills, mountains],
        )
        return final_heights, result

    def classify(self, biome_value: float, raw_height: float, water_level: float,
                 mountain_frequency: float) -> tuple[float, tuple[float, float, float]]:
        """Classifies one sample. Returns (final_height, (r, g, b))."""
        heights, colors = self.classify_array(biome_value, raw_height, water_level, mountain_frequency)
        return float(heights), tuple(float(c) for c in colors)
