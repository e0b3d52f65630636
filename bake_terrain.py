# bake_terrain.py

"""
================================================================================
OFFLINE TERRAIN BAKER SCRIPT
================================================================================
This script is a command-line tool for generating a terrain mesh and a set of
noise raster frames from a JSON configuration, and saving them to disk
("baking"). Any vertex-buffer renderer can load the mesh archive directly.

Output layout:
    <output>/terrain_mesh.npz        vertices / normals / colors / indices
    <output>/terrain_colors.png      top-down biome color map
    <output>/gradient/frame_XXX.png  animated gradient noise (time as z)
    <output>/cellular/frame_XXX.png  cellular noise through the animation modes
    <output>/white_noise.png

Usage:
    python bake_terrain.py --config path/to/your/config.json [--output DIR]
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import numpy as np
from PIL import Image
from tqdm import tqdm

from terrain_synth import config as DEFAULTS
from terrain_synth.animation import CellularAnimator
from terrain_synth.cellular import CellularField
from terrain_synth.noise import GradientNoiseField, white_noise
from terrain_synth.permutation import SeededSource, resolve_seed
from terrain_synth.terrain import generate_terrain
from terrain_synth import rasters


def save_pixels(color_array: np.ndarray, file_path: str):
    """
    Saves a (width, height, 3) pixel array as a PNG with Pillow.
    """
    os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
    # Pillow works with (height, width, channels) arrays, so we need to transpose.
    img_data = np.ascontiguousarray(np.transpose(color_array, (1, 0, 2)))
    Image.fromarray(img_data, 'RGB').save(file_path, 'PNG')


def _raster_settings(raster_params: dict) -> tuple[int, int, int]:
    """Reads and validates (width, height, frames) from the raster section."""
    width = raster_params.get('width', DEFAULTS.DEFAULT_RASTER_WIDTH)
    height = raster_params.get('height', DEFAULTS.DEFAULT_RASTER_HEIGHT)
    frames = raster_params.get('frames', DEFAULTS.DEFAULT_BAKE_FRAMES)
    for name, value in (('width', width), ('height', height), ('frames', frames)):
        if isinstance(value, bool) or int(value) != value:
            raise ValueError(f"{name} must be an integer, got {value!r}.")
    if width <= 0 or height <= 0:
        raise ValueError(f"Raster dimensions must be positive, got {width}x{height}.")
    if frames < 0:
        raise ValueError(f"frames must not be negative, got {frames}.")
    return int(width), int(height), int(frames)


def bake_terrain(config_path: str, output_dir: str = None) -> str | None:
    """
    Loads a configuration, generates the mesh and raster frames, and writes
    them to `output_dir`. Returns the output directory, or None on failure.
    """
    # 1. --- Setup Logging ---
    logging.basicConfig(level=logging.INFO, format=DEFAULTS.LOG_FORMAT, stream=sys.stdout)
    logger = logging.getLogger("Baker")

    # 2. --- Load Configuration ---
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return None

    terrain_params = config.get('terrain_parameters', {})
    raster_params = config.get('raster_parameters', {})
    seed = resolve_seed(terrain_params.get('seed'))
    if seed is None:
        logger.warning("No seed in configuration; the bake will not be reproducible.")

    # Raster settings are checked before anything is written to disk.
    try:
        width, height, frames = _raster_settings(raster_params)
    except (TypeError, ValueError, OverflowError) as e:
        logger.critical(f"Invalid raster parameters: {e}")
        return None

    if output_dir is None:
        output_dir = os.path.join("baked_terrain", f"seed_{seed}" if seed is not None else "entropy")

    start_time = time.perf_counter()

    # 3. --- Terrain Mesh ---
    try:
        mesh = generate_terrain(
            seed=seed,
            water_level=terrain_params.get('water_level', DEFAULTS.DEFAULT_WATER_LEVEL),
            mountain_frequency=terrain_params.get('mountain_frequency', DEFAULTS.DEFAULT_MOUNTAIN_FREQUENCY),
            smoothness=terrain_params.get('smoothness', DEFAULTS.DEFAULT_SMOOTHNESS),
            resolution=terrain_params.get('resolution', DEFAULTS.DEFAULT_MESH_RESOLUTION),
            world_size=terrain_params.get('world_size', DEFAULTS.DEFAULT_WORLD_SIZE),
            config=config.get('builder_overrides', {}),
            logger=logger,
        )
    except ValueError as e:
        logger.critical(f"Invalid terrain parameters: {e}")
        return None

    os.makedirs(output_dir, exist_ok=True)
    mesh.save(os.path.join(output_dir, "terrain_mesh.npz"))
    save_pixels(rasters.terrain_color_pixels(mesh), os.path.join(output_dir, "terrain_colors.png"))
    logger.info(f"Saved mesh with {mesh.vertex_count} vertices and {mesh.triangle_count} triangles.")

    # 4. --- Noise Raster Frames ---
    gradient_field = GradientNoiseField(seed=seed)
    cell_rng = np.random.default_rng(None if seed is None else int(abs(seed) * DEFAULTS.LCG_MODULUS))
    animator = CellularAnimator(CellularField(rng=cell_rng), logger=logger)
    # Spread the baked frames evenly over one full cycle of animation modes.
    frame_seconds = DEFAULTS.ANIMATION_MODE_DURATION_S * len(animator.modes) / max(frames, 1)

    for frame in tqdm(range(frames), desc="Baking Frames"):
        t = frame * DEFAULTS.ANIMATION_TIME_STEP * 10
        gradient = rasters.gradient_raster(gradient_field, width, height, time=t)
        save_pixels(rasters.to_grayscale_pixels(gradient),
                    os.path.join(output_dir, "gradient", f"frame_{frame:03d}.png"))

        animator.update(frame_seconds)
        cells = animator.sample_raster(width, height)
        pixels = rasters.to_tinted_pixels(cells) if animator.tinted else rasters.to_grayscale_pixels(cells)
        save_pixels(pixels, os.path.join(output_dir, "cellular", f"frame_{frame:03d}.png"))

    source = SeededSource(seed) if seed is not None else None
    save_pixels(rasters.to_grayscale_pixels(white_noise((height, width), source)),
                os.path.join(output_dir, "white_noise.png"))

    end_time = time.perf_counter()
    logger.info(f"Baking complete! Total time: {end_time - start_time:.2f} seconds.")
    logger.info(f"Baked terrain saved to: {output_dir}")
    return output_dir


# --- Command-Line Interface ---
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Offline terrain and noise baker.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the JSON configuration file for the terrain to be baked."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory. Defaults to baked_terrain/seed_<seed>."
    )
    args = parser.parse_args()

    bake_terrain(args.config, args.output)
