# terrain_synth/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the noise
fields, the biome classifier and the terrain mesh builder. These values are
used if they are not explicitly provided by the caller's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC TERRAIN.
Instead, pass a configuration dictionary to the BiomeClassifier or
TerrainMeshBuilder instance.
================================================================================
"""

# --- Permutation Table ---
PERMUTATION_SIZE = 256
# Linear-congruential constants for the reproducible seeded source.
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

# --- Seed Hashing ---
# Text seeds are folded into a signed 32-bit rolling hash, then scaled into [0, 1).
SEED_HASH_MULTIPLIER = 31
SEED_HASH_DIVISOR = 2147483647
# The biome layer is seeded from the master seed so both layers stay deterministic.
BIOME_SEED_FACTOR = 1.5

# --- Fractal Noise ---
DEFAULT_PERSISTENCE = 0.5
DEFAULT_LACUNARITY = 2.0

# Height layer (sharp detail).
HEIGHT_NOISE_OCTAVES = 6
HEIGHT_NOISE_BASE_FREQUENCY = 0.03
HEIGHT_NOISE_Z = 0.0

# Biome layer (broad regions). Its octave count is the user-facing "smoothness".
BIOME_NOISE_BASE_FREQUENCY = 0.02
BIOME_NOISE_Z = 10.0

# --- Cellular Noise ---
DEFAULT_FEATURE_POINTS = 50
# Feature point velocities are drawn from (u - 0.5) * FEATURE_VELOCITY_SCALE per axis.
FEATURE_VELOCITY_SCALE = 0.001
# k1: flat cell interiors that darken towards the boundaries.
CELL_SOLID_SCALE = 3.0
# k2: bright only where two cells are nearly equidistant.
CELL_EDGE_SCALE = 10.0

# Caller-side motion patterns. Anchors are spread with two irrational-ish steps.
MOTION_ANCHOR_STEP_X = 0.123
MOTION_ANCHOR_STEP_Y = 0.456
MOTION_PHASE_STEP = 2.0
ORBIT_RADIUS = 0.1
ORBIT_ANGULAR_SPEED = 0.1
PULSE_AMPLITUDE = 0.15

# --- Animation ---
ANIMATION_TIME_STEP = 0.01
ANIMATION_MODE_DURATION_S = 5.0
ANIMATION_MODES = ("drift", "circular", "pulsing", "edge")
# Tinted modes multiply the grayscale value per channel (clipped to 255).
RED_TINT = (1.1, 0.5, 0.5)
DEFAULT_RASTER_SCALE = 0.05

# --- Biome Thresholds (Normalized 0.0 to 1.0) ---
DEFAULT_WATER_LEVEL = 0.3
DEFAULT_MOUNTAIN_FREQUENCY = 0.2
DEFAULT_SMOOTHNESS = 4
BEACH_THRESHOLD_OFFSET = 0.05
HILL_THRESHOLD_OFFSET = 0.2

# Ordered band names, lowest to highest.
BIOME_BANDS = ("ocean", "beach", "plains", "hills", "mountain")

# Per-band height transform: final_height = raw_height * multiplier + offset.
BIOME_HEIGHT_RULES = {
    "ocean": (0.3, -2.0),
    "beach": (0.5, -0.5),
    "plains": (2.0, 0.0),
    "hills": (6.0, 0.0),
    "mountain": (12.0, 0.0),
}

# Peaks above SNOW_BLEND_START fade to snow, fully white at SNOW_BLEND_END.
SNOW_BLEND_START = 8.0
SNOW_BLEND_END = 12.0

# --- Biome Colors (linear RGB, 0.0 to 1.0) ---
BIOME_COLORS = {
    "deep_ocean": (0.05, 0.15, 0.4),
    "shallow_ocean": (0.1, 0.3, 0.6),
    "beach": (0.9, 0.85, 0.6),
    "plains": (0.3, 0.7, 0.2),
    "hills": (0.35, 0.55, 0.25),
    "mountains": (0.5, 0.5, 0.5),
    "snow": (0.9, 0.9, 0.95),
}

# --- Mesh ---
DEFAULT_MESH_RESOLUTION = 100
DEFAULT_WORLD_SIZE = 50.0
# Index buffers fall back to 32-bit once vertices no longer fit in 16 bits.
MAX_UINT16_VERTICES = 65536

# --- Rendering & Baking ---
DEFAULT_RASTER_WIDTH = 320
DEFAULT_RASTER_HEIGHT = 240
DEFAULT_BAKE_FRAMES = 8
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
