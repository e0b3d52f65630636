# terrain_synth/rasters.py

"""
================================================================================
RASTER SAMPLING & PIXEL CONVERSION
================================================================================
This module samples the noise fields once per pixel and converts the values
into 8-bit RGB arrays.

It has no dependencies on Pygame, so it can be used by both the real-time
viewer and the offline baker script.

Data Contract:
---------------
- Inputs: A noise field and raster dimensions, or a [0, 1] value array of
  shape (height, width).
- Outputs: Float arrays of shape (height, width), or uint8 RGB arrays of shape
  (width, height, 3) (the orientation pygame.surfarray expects).
- Side Effects: None.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS
from .cellular import CellularField
from .noise import ScalarField
from .terrain import Mesh


def _check_dimensions(width: int, height: int):
    if width <= 0 or height <= 0:
        raise ValueError(f"Raster dimensions must be positive, got {width}x{height}.")

def pixel_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """Pixel column and row indices, each of shape (height, width)."""
    _check_dimensions(width, height)
    return np.meshgrid(np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64))

def gradient_raster(field: ScalarField, width: int, height: int,
                    scale: float = DEFAULTS.DEFAULT_RASTER_SCALE, time: float = 0.0) -> np.ndarray:
    """Gradient noise per pixel with time as the z axis, remapped to [0, 1]."""
    px, py = pixel_grid(width, height)
    values = field.sample_grid(px * scale, py * scale, time)
    return (values + 1) * 0.5

def cellular_raster(field: CellularField, width: int, height: int, mode: str = "solid") -> np.ndarray:
    """Cellular noise per pixel, sampled in unit-square space."""
    px, py = pixel_grid(width, height)
    nx = px / width
    ny = py / height
    if mode == "solid":
        return field.solid_field_grid(nx, ny)
    if mode == "edge":
        return field.edge_field_grid(nx, ny)
    raise ValueError(f"Unknown cellular raster mode '{mode}'. Expected 'solid' or 'edge'.")

def to_grayscale_pixels(values: np.ndarray) -> np.ndarray:
    """Converts [0, 1] values of shape (height, width) into a grayscale RGB array."""
    gray_values = (np.clip(values, 0.0, 1.0) * 255).astype(np.uint8)
    colors = np.stack([gray_values] * 3, axis=-1)
    return np.transpose(colors, (1, 0, 2))

def to_tinted_pixels(values: np.ndarray, tint: tuple = DEFAULTS.RED_TINT) -> np.ndarray:
    """Like to_grayscale_pixels, with each channel multiplied by `tint` (clipped to 255)."""
    gray_values = np.floor(np.clip(values, 0.0, 1.0) * 255)
    colors = np.clip(gray_values[..., np.newaxis] * np.asarray(tint), 0, 255).astype(np.uint8)
    return np.transpose(colors, (1, 0, 2))

def terrain_color_pixels(mesh: Mesh) -> np.ndarray:
    """Top-down view of a square grid mesh: one pixel per vertex, from its color."""
    side = int(round(np.sqrt(mesh.vertex_count)))
    if side * side != mesh.vertex_count:
        raise ValueError(f"Mesh with {mesh.vertex_count} vertices is not a square grid.")
    colors = (np.clip(mesh.colors, 0.0, 1.0) * 255).astype(np.uint8).reshape(side, side, 3)
    return np.transpose(colors, (1, 0, 2))
