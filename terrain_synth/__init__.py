# terrain_synth/__init__.py

# This file makes the 'terrain_synth' directory a Python package.
# It also defines the public API of the package.

from .permutation import PermutationTable, SeededSource, EntropySource, hash_seed_string, resolve_seed
from .noise import ScalarField, GradientNoiseField, FractalAccumulator, white_noise
from .cellular import CellularField, FeaturePoint, anchor_positions, orbit_positions, pulse_positions
from .biomes import BiomeClassifier, BiomeThresholds, ThresholdOrderError, smoothstep
from .terrain import Mesh, TerrainMeshBuilder, compute_vertex_normals, generate_terrain
from .animation import CellularAnimator

__all__ = [
    "PermutationTable", "SeededSource", "EntropySource", "hash_seed_string", "resolve_seed",
    "ScalarField", "GradientNoiseField", "FractalAccumulator", "white_noise",
    "CellularField", "FeaturePoint", "anchor_positions", "orbit_positions", "pulse_positions",
    "BiomeClassifier", "BiomeThresholds", "ThresholdOrderError", "smoothstep",
    "Mesh", "TerrainMeshBuilder", "compute_vertex_normals", "generate_terrain",
    "CellularAnimator",
]
