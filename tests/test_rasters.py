"""
Tests for per-pixel sampling and pixel conversion.
"""

import numpy as np
import pytest

from terrain_synth.cellular import CellularField
from terrain_synth.noise import GradientNoiseField
from terrain_synth.rasters import (
    cellular_raster,
    gradient_raster,
    pixel_grid,
    terrain_color_pixels,
    to_grayscale_pixels,
    to_tinted_pixels,
)
from terrain_synth.terrain import generate_terrain


class TestSampling:
    """Test suite for the raster samplers."""

    def setup_method(self):
        self.noise = GradientNoiseField(seed=2)
        self.cells = CellularField(positions=[[0.25, 0.5], [0.75, 0.5]])

    def test_pixel_grid_shape(self):
        px, py = pixel_grid(4, 3)
        assert px.shape == py.shape == (3, 4)
        assert px[0].tolist() == [0, 1, 2, 3]
        assert py[:, 0].tolist() == [0, 1, 2]

    def test_rejects_empty_raster(self):
        with pytest.raises(ValueError):
            pixel_grid(0, 10)

    def test_gradient_raster_matches_field(self):
        raster = gradient_raster(self.noise, 6, 4, scale=0.05, time=1.5)
        assert raster.shape == (4, 6)
        expected = (self.noise.sample(3 * 0.05, 2 * 0.05, 1.5) + 1) * 0.5
        assert raster[2, 3] == pytest.approx(expected)

    def test_gradient_raster_origin_is_mid_gray(self):
        # Noise vanishes on integer lattice points, so pixel (0, 0) at time 0 maps to 0.5.
        raster = gradient_raster(self.noise, 3, 3)
        assert raster[0, 0] == pytest.approx(0.5)

    def test_cellular_raster_uses_unit_coordinates(self):
        raster = cellular_raster(self.cells, 8, 4)
        assert raster.shape == (4, 8)
        # Pixel (2, 2) samples (0.25, 0.5), a feature point.
        assert raster[2, 2] == 0.0

    def test_cellular_edge_mode(self):
        raster = cellular_raster(self.cells, 8, 4, mode="edge")
        # Pixel (4, 2) samples (0.5, 0.5), equidistant from both points.
        assert raster[2, 4] == pytest.approx(0.0, abs=1e-12)

    def test_cellular_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            cellular_raster(self.cells, 8, 4, mode="voronoi")


class TestPixelConversion:
    """Test suite for the value to RGB conversions."""

    def test_grayscale_orientation_and_values(self):
        values = np.array([[0.0, 0.5, 1.0]])
        pixels = to_grayscale_pixels(values)
        assert pixels.shape == (3, 1, 3)
        assert pixels.dtype == np.uint8
        assert pixels[:, 0, 0].tolist() == [0, 127, 255]
        assert (pixels[..., 0] == pixels[..., 1]).all()

    def test_grayscale_clips_out_of_range(self):
        pixels = to_grayscale_pixels(np.array([[-0.5, 1.5]]))
        assert pixels[:, 0, 0].tolist() == [0, 255]

    def test_tint_is_clipped(self):
        pixels = to_tinted_pixels(np.array([[1.0, 0.5]]))
        assert pixels[0, 0].tolist() == [255, 127, 127]
        assert pixels[1, 0].tolist() == [139, 63, 63]

    def test_custom_tint(self):
        pixels = to_tinted_pixels(np.array([[1.0]]), tint=(0.0, 1.0, 0.0))
        assert pixels[0, 0].tolist() == [0, 255, 0]

    def test_terrain_color_pixels(self):
        mesh = generate_terrain(seed=4, resolution=5, world_size=10)
        pixels = terrain_color_pixels(mesh)
        assert pixels.shape == (6, 6, 3)
        assert pixels.dtype == np.uint8
        # Vertex (row z=1, column x=2) lands at pixel (x=2, y=1).
        expected = (np.clip(mesh.colors[1 * 6 + 2], 0.0, 1.0) * 255).astype(np.uint8)
        assert pixels[2, 1].tolist() == expected.tolist()
