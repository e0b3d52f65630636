# terrain_synth/terrain.py

"""
================================================================================
TERRAIN MESH BUILDER
================================================================================
This module contains the TerrainMeshBuilder class, which samples a height
field and a biome field over a regular grid, classifies every grid point into
a biome band, and emits a triangulated, colored mesh with smooth normals.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): Parameters which can override the internal defaults
      (octave counts, base frequencies, classifier constants).
    - logger: A configured Python logging object for runtime messages.
- Inputs (build):
    - resolution, world_size: Grid subdivisions and world extent.
    - height_field, biome_field: Any ScalarField.
    - classifier_params (dict): water_level, mountain_frequency, smoothness.
- Outputs:
    - Mesh: float32 positions / normals / colors and a triangle index list.
- Side Effects: Logs messages using the provided logger.
- Invariants: (resolution + 1)^2 vertices, 2 * resolution^2 triangles, every
  index in range. Given the same fields and parameters, the output is
  deterministic.
================================================================================
"""

import logging
import time

import numpy as np

from . import config as DEFAULTS
from .biomes import BiomeClassifier
from .noise import FractalAccumulator, GradientNoiseField, ScalarField
from .permutation import resolve_seed


class Mesh:
    """
    A read-only triangle mesh. Attribute arrays have shape (vertex_count, 3);
    `indices` is a flat triangle list.
    """
    def __init__(self, positions: np.ndarray, normals: np.ndarray, colors: np.ndarray, indices: np.ndarray):
        self.positions = np.asarray(positions, dtype=np.float32)
        self.normals = np.asarray(normals, dtype=np.float32)
        self.colors = np.asarray(colors, dtype=np.float32)
        self.indices = np.asarray(indices)

        if not (self.positions.shape == self.normals.shape == self.colors.shape):
            raise ValueError("Mesh attribute arrays must all have the same shape.")
        if self.indices.size % 3 != 0:
            raise ValueError(f"Index count {self.indices.size} is not a multiple of 3.")
        if self.indices.size and int(self.indices.max()) >= self.positions.shape[0]:
            raise ValueError("Mesh indices reference vertices out of range.")

        for array in (self.positions, self.normals, self.colors, self.indices):
            array.setflags(write=False)

    @property
    def vertex_count(self) -> int:
        return self.positions.shape[0]

    @property
    def triangle_count(self) -> int:
        return self.indices.size // 3

    def to_buffers(self) -> dict:
        """Flat arrays ready for vertex-buffer upload (3 floats per vertex)."""
        return {
            'vertices': self.positions.ravel(),
            'normals': self.normals.ravel(),
            'colors': self.colors.ravel(),
            'indices': self.indices,
        }

    def save(self, path: str):
        """Writes the mesh to a compressed .npz archive."""
        np.savez_compressed(path, **self.to_buffers())


def grid_indices(resolution: int) -> np.ndarray:
    """
    Triangle list for a (resolution + 1)^2 row-major vertex grid. Each quad
    emits (top_left, bottom_left, top_right) and (top_right, bottom_left, bottom_right).
    """
    row = resolution + 1
    vertex_count = row * row
    dtype = np.uint16 if vertex_count <= DEFAULTS.MAX_UINT16_VERTICES else np.uint32

    zs, xs = np.meshgrid(np.arange(resolution), np.arange(resolution), indexing='ij')
    top_left = (zs * row + xs).ravel()
    top_right = top_left + 1
    bottom_left = top_left + row
    bottom_right = bottom_left + 1

    triangles = np.column_stack((
        top_left, bottom_left, top_right,
        top_right, bottom_left, bottom_right,
    ))
    return triangles.ravel().astype(dtype)


def compute_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Area-weighted smooth normals: every face normal (v1 - v0) x (v2 - v0) is
    added to its three vertices, then each sum is normalized. Vertices whose
    sum has zero length keep a zero normal.
    """
    positions = np.asarray(positions, dtype=np.float64)
    triangles = np.asarray(indices, dtype=np.int64).reshape(-1, 3)

    v0 = positions[triangles[:, 0]]
    v1 = positions[triangles[:, 1]]
    v2 = positions[triangles[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)

    accumulated = np.zeros_like(positions)
    for corner in range(3):
        np.add.at(accumulated, triangles[:, corner], face_normals)

    lengths = np.linalg.norm(accumulated, axis=1, keepdims=True)
    return np.divide(
        accumulated,
        lengths,
        out=np.zeros_like(accumulated),
        where=lengths > 0
    )


class TerrainMeshBuilder:
    """
    Builds classified terrain meshes from two scalar fields.
    This class is backend-only and does not handle any rendering.
    """
    def __init__(self, config: dict = None, logger: logging.Logger = None, classifier: BiomeClassifier = None):
        """
        Initializes the mesh builder.

        Args:
            config (dict, optional): User-defined parameters to override defaults.
            logger (logging.Logger, optional): The logger instance for all output.
            classifier (BiomeClassifier, optional): A pre-configured classifier.
                If None, one is created from the same config.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.user_config = config or {}

        # --- Consolidate Configuration ---
        self.settings = {
            'height_octaves': self.user_config.get('height_octaves', DEFAULTS.HEIGHT_NOISE_OCTAVES),
            'height_base_frequency': self.user_config.get('height_base_frequency', DEFAULTS.HEIGHT_NOISE_BASE_FREQUENCY),
            'height_z': self.user_config.get('height_z', DEFAULTS.HEIGHT_NOISE_Z),
            'biome_base_frequency': self.user_config.get('biome_base_frequency', DEFAULTS.BIOME_NOISE_BASE_FREQUENCY),
            'biome_z': self.user_config.get('biome_z', DEFAULTS.BIOME_NOISE_Z),
            'persistence': self.user_config.get('persistence', DEFAULTS.DEFAULT_PERSISTENCE),
            'lacunarity': self.user_config.get('lacunarity', DEFAULTS.DEFAULT_LACUNARITY),
            'water_level': self.user_config.get('water_level', DEFAULTS.DEFAULT_WATER_LEVEL),
            'mountain_frequency': self.user_config.get('mountain_frequency', DEFAULTS.DEFAULT_MOUNTAIN_FREQUENCY),
            'smoothness': self.user_config.get('smoothness', DEFAULTS.DEFAULT_SMOOTHNESS),
        }
        self.classifier = classifier or BiomeClassifier(self.user_config, logger=self.logger)
        self.logger.debug(f"TerrainMeshBuilder initialized with settings: {self.settings}")

    def grid_coordinates(self, resolution: int, world_size: float) -> tuple[np.ndarray, np.ndarray]:
        """World (x, z) for every grid point, centred on the origin, row-major by z."""
        steps = (np.arange(resolution + 1) / resolution - 0.5) * world_size
        z_grid, x_grid = np.meshgrid(steps, steps, indexing='ij')
        return x_grid, z_grid

    def build(self, resolution: int, world_size: float, height_field: ScalarField, biome_field: ScalarField,
              classifier_params: dict = None) -> Mesh:
        """
        Generates the terrain mesh.

        Args:
            resolution (int): Grid subdivisions per side (> 0).
            world_size (float): World extent per side (> 0).
            height_field (ScalarField): Source of the raw height.
            biome_field (ScalarField): Source of the biome value.
            classifier_params (dict, optional): 'water_level', 'mountain_frequency'
                and 'smoothness' (the biome octave count).

        Raises:
            ValueError: On non-positive resolution, world size or smoothness.
            ThresholdOrderError: If the derived biome thresholds are out of order.
        """
        params = classifier_params or {}
        water_level = params.get('water_level', self.settings['water_level'])
        mountain_frequency = params.get('mountain_frequency', self.settings['mountain_frequency'])
        smoothness = params.get('smoothness', self.settings['smoothness'])

        # --- 1. Validate at the boundary; nothing is silently clamped ---
        if int(resolution) != resolution or resolution <= 0:
            raise ValueError(f"resolution must be a positive integer, got {resolution!r}.")
        if world_size <= 0:
            raise ValueError(f"world_size must be positive, got {world_size!r}.")
        if int(smoothness) != smoothness or smoothness <= 0:
            raise ValueError(f"smoothness must be a positive integer octave count, got {smoothness!r}.")
        resolution = int(resolution)
        # Fail on bad thresholds before doing any sampling.
        thresholds = self.classifier.thresholds(water_level, mountain_frequency)

        start_time = time.perf_counter()
        self.logger.info(
            f"Building terrain mesh: resolution={resolution}, world_size={world_size}, "
            f"water_level={water_level}, mountain_frequency={mountain_frequency}, smoothness={smoothness}"
        )
        self.logger.debug(f"Derived thresholds: {thresholds}")

        # --- 2. Sample the height and biome layers ---
        x_grid, z_grid = self.grid_coordinates(resolution, world_size)
        raw_height = FractalAccumulator(height_field).accumulate_grid(
            x_grid, z_grid, self.settings['height_z'],
            octaves=self.settings['height_octaves'],
            base_frequency=self.settings['height_base_frequency'],
            persistence=self.settings['persistence'],
            lacunarity=self.settings['lacunarity'],
        )
        biome_raw = FractalAccumulator(biome_field).accumulate_grid(
            x_grid, z_grid, self.settings['biome_z'],
            octaves=int(smoothness),
            base_frequency=self.settings['biome_base_frequency'],
            persistence=self.settings['persistence'],
            lacunarity=self.settings['lacunarity'],
        )
        # Remap the natural [-1, 1] range to [0, 1].
        biome_value = (biome_raw + 1) / 2

        # --- 3. Classify ---
        final_height, colors = self.classifier.classify_array(
            biome_value, raw_height, water_level, mountain_frequency
        )

        # --- 4. Assemble vertices, indices and normals ---
        positions = np.column_stack((x_grid.ravel(), final_height.ravel(), z_grid.ravel()))
        indices = grid_indices(resolution)
        normals = compute_vertex_normals(positions, indices)

        mesh = Mesh(positions, normals, colors.reshape(-1, 3), indices)
        elapsed = time.perf_counter() - start_time
        self.logger.info(
            f"Terrain mesh built in {elapsed:.3f}s: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles."
        )
        return mesh


def generate_terrain(seed=None, water_level: float = DEFAULTS.DEFAULT_WATER_LEVEL,
                     mountain_frequency: float = DEFAULTS.DEFAULT_MOUNTAIN_FREQUENCY,
                     smoothness: int = DEFAULTS.DEFAULT_SMOOTHNESS,
                     resolution: int = DEFAULTS.DEFAULT_MESH_RESOLUTION,
                     world_size: float = DEFAULTS.DEFAULT_WORLD_SIZE,
                     config: dict = None, logger: logging.Logger = None) -> Mesh:
    """
    One-call terrain generation. The height layer is seeded from `seed` and the
    biome layer from `seed * BIOME_SEED_FACTOR`; without a seed both layers use
    entropy. Text seeds are resolved with `resolve_seed`.
    """
    logger = logger or logging.getLogger(__name__)
    numeric_seed = resolve_seed(seed)
    if numeric_seed is None:
        logger.info("No seed provided, generating terrain from entropy.")
        height_field = GradientNoiseField()
        biome_field = GradientNoiseField()
    else:
        logger.info(f"Generating terrain with seed: {numeric_seed}")
        height_field = GradientNoiseField(seed=numeric_seed)
        biome_field = GradientNoiseField(seed=numeric_seed * DEFAULTS.BIOME_SEED_FACTOR)

    builder = TerrainMeshBuilder(config=config, logger=logger)
    return builder.build(
        resolution, world_size, height_field, biome_field,
        {'water_level': water_level, 'mountain_frequency': mountain_frequency, 'smoothness': smoothness},
    )
