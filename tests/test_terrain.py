"""
Tests for the terrain mesh builder, index generation and normal recomputation.
"""

import logging

import numpy as np
import pytest

from terrain_synth.biomes import ThresholdOrderError
from terrain_synth.noise import GradientNoiseField
from terrain_synth.terrain import (
    Mesh,
    TerrainMeshBuilder,
    compute_vertex_normals,
    generate_terrain,
    grid_indices,
)

PARAMS = {'water_level': 0.3, 'mountain_frequency': 0.2, 'smoothness': 4}


class ZeroField:
    """A flat ScalarField: every sample is 0."""

    def sample(self, x, y, z=0.0):
        return 0.0

    def sample_grid(self, x, y, z=0.0):
        return np.zeros(np.broadcast_shapes(np.shape(x), np.shape(y), np.shape(z)))


class TestGridIndices:
    """Test suite for triangle index generation."""

    def test_single_quad_winding(self):
        indices = grid_indices(1)
        # Vertices: 0 = top-left, 1 = top-right, 2 = bottom-left, 3 = bottom-right.
        assert indices.tolist() == [0, 2, 1, 1, 2, 3]

    def test_counts_and_range(self):
        indices = grid_indices(5)
        assert indices.size == 3 * 2 * 25
        assert indices.max() < 36

    def test_index_dtype_grows_with_vertex_count(self):
        assert grid_indices(255).dtype == np.uint16
        assert grid_indices(256).dtype == np.uint32


class TestVertexNormals:
    """Test suite for compute_vertex_normals."""

    def test_flat_triangle_points_up(self):
        positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
        normals = compute_vertex_normals(positions, [0, 1, 2])
        np.testing.assert_allclose(normals, [[0.0, 1.0, 0.0]] * 3)

    def test_degenerate_triangle_gives_zero_normals(self):
        positions = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
        normals = compute_vertex_normals(positions, [0, 1, 2])
        np.testing.assert_array_equal(normals, np.zeros((3, 3)))

    def test_unreferenced_vertex_gets_zero_normal(self):
        positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [5.0, 5.0, 5.0]])
        normals = compute_vertex_normals(positions, [0, 1, 2])
        np.testing.assert_array_equal(normals[3], [0.0, 0.0, 0.0])

    def test_shared_vertex_averages_faces(self):
        # Two faces meeting at a ridge along the z axis.
        positions = np.array([
            [0.0, 0.0, 0.0], [0.0, 0.0, 1.0],
            [-1.0, -1.0, 0.0], [1.0, -1.0, 0.0],
        ])
        indices = [0, 2, 1, 0, 1, 3]
        normals = compute_vertex_normals(positions, indices)
        np.testing.assert_allclose(normals[0], [0.0, 1.0, 0.0], atol=1e-12)


class TestTerrainMeshBuilder:
    """Test suite for TerrainMeshBuilder.build."""

    def setup_method(self):
        self.builder = TerrainMeshBuilder(logger=logging.getLogger("test"))
        self.height_field = GradientNoiseField(seed=0.42)
        self.biome_field = GradientNoiseField(seed=0.42 * 1.5)

    def test_resolution_two_counts(self):
        mesh = self.builder.build(2, 10, self.height_field, self.biome_field, PARAMS)
        assert mesh.vertex_count == 9
        assert mesh.triangle_count == 8
        assert mesh.indices.size == 24
        assert mesh.indices.max() < 9

    def test_vertex_layout(self):
        mesh = self.builder.build(2, 10, self.height_field, self.biome_field, PARAMS)
        np.testing.assert_allclose(mesh.positions[:, 0], [-5, 0, 5] * 3)
        np.testing.assert_allclose(mesh.positions[:, 2], [-5] * 3 + [0] * 3 + [5] * 3)

    def test_attribute_arrays(self):
        mesh = self.builder.build(8, 20, self.height_field, self.biome_field, PARAMS)
        assert mesh.positions.shape == mesh.normals.shape == mesh.colors.shape == (81, 3)
        assert mesh.positions.dtype == np.float32
        assert np.all((mesh.colors >= 0.0) & (mesh.colors <= 1.0))
        lengths = np.linalg.norm(mesh.normals, axis=1)
        assert np.all(np.isclose(lengths, 1.0, atol=1e-5) | (lengths == 0.0))

    def test_build_is_deterministic(self):
        a = self.builder.build(6, 30, GradientNoiseField(seed=5), GradientNoiseField(seed=7.5), PARAMS)
        b = self.builder.build(6, 30, GradientNoiseField(seed=5), GradientNoiseField(seed=7.5), PARAMS)
        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.colors, b.colors)
        np.testing.assert_array_equal(a.indices, b.indices)

    def test_flat_fields_give_upward_normals(self):
        mesh = self.builder.build(4, 10, ZeroField(), ZeroField(), PARAMS)
        # Biome value (0 + 1) / 2 = 0.5 sits in the plains band: height 0 * 2 = 0.
        np.testing.assert_allclose(mesh.positions[:, 1], 0.0)
        np.testing.assert_allclose(mesh.normals, np.tile([0.0, 1.0, 0.0], (25, 1)), atol=1e-6)

    def test_mesh_is_read_only(self):
        mesh = self.builder.build(2, 10, self.height_field, self.biome_field, PARAMS)
        with pytest.raises(ValueError):
            mesh.positions[0, 0] = 1.0

    @pytest.mark.parametrize("resolution", [0, -3, 1.5])
    def test_rejects_invalid_resolution(self, resolution):
        with pytest.raises(ValueError):
            self.builder.build(resolution, 10, self.height_field, self.biome_field, PARAMS)

    def test_rejects_invalid_world_size(self):
        with pytest.raises(ValueError):
            self.builder.build(2, 0, self.height_field, self.biome_field, PARAMS)

    def test_rejects_invalid_smoothness(self):
        with pytest.raises(ValueError):
            self.builder.build(2, 10, self.height_field, self.biome_field, {**PARAMS, 'smoothness': 0})

    def test_rejects_out_of_order_thresholds(self):
        with pytest.raises(ThresholdOrderError):
            self.builder.build(2, 10, self.height_field, self.biome_field,
                               {'water_level': 0.7, 'mountain_frequency': 0.5, 'smoothness': 4})

    def test_buffers_are_flat(self):
        mesh = self.builder.build(3, 10, self.height_field, self.biome_field, PARAMS)
        buffers = mesh.to_buffers()
        assert buffers['vertices'].shape == (48,)
        assert buffers['normals'].shape == (48,)
        assert buffers['colors'].shape == (48,)
        assert buffers['indices'].shape == (54,)

    def test_save_round_trip(self, tmp_path):
        mesh = self.builder.build(3, 10, self.height_field, self.biome_field, PARAMS)
        path = tmp_path / "mesh.npz"
        mesh.save(str(path))
        with np.load(path) as data:
            np.testing.assert_array_equal(data['indices'], mesh.indices)
            np.testing.assert_array_equal(data['vertices'], mesh.positions.ravel())


class TestMesh:
    """Test suite for Mesh validation."""

    def test_rejects_mismatched_attributes(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((3, 3)), np.zeros((2, 3)), np.zeros((3, 3)), [0, 1, 2])

    def test_rejects_out_of_range_indices(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((3, 3)), [0, 1, 3])


class TestGenerateTerrain:
    """Test suite for the one-call generate_terrain helper."""

    def test_seeded_generation_is_reproducible(self):
        a = generate_terrain(seed="highlands", resolution=4, world_size=20)
        b = generate_terrain(seed="highlands", resolution=4, world_size=20)
        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.colors, b.colors)

    def test_unseeded_generation_is_valid(self):
        mesh = generate_terrain(resolution=3, world_size=12)
        assert mesh.vertex_count == 16
        assert mesh.triangle_count == 18

    @pytest.mark.parametrize("seed", ["inf", "Infinity", "-inf", "1e400"])
    def test_non_finite_text_seeds_generate(self, seed):
        mesh = generate_terrain(seed=seed, resolution=2, world_size=10)
        assert mesh.vertex_count == 9
