# viewer.py

"""
================================================================================
NOISE & TERRAIN PREVIEW
================================================================================
A small pygame window for previewing the noise fields and the terrain color
map. All sampling happens in terrain_synth; this file only blits pixels.

Keys:
    1  gradient noise (animated, time as z)
    2  cellular noise (drift / circular / pulsing / edge cycle)
    3  white noise
    4  top-down terrain biome colors
    R  regenerate the terrain with a new seed
    ESC quit

Usage:
    python viewer.py [--seed SEED] [--water-level 0.3] [--mountain-frequency 0.2] [--smoothness 4]
================================================================================
"""

import argparse
import logging
import sys

import numpy as np
import pygame

from terrain_synth import config as DEFAULTS
from terrain_synth import rasters
from terrain_synth.animation import CellularAnimator
from terrain_synth.cellular import CellularField
from terrain_synth.noise import GradientNoiseField, white_noise
from terrain_synth.terrain import generate_terrain

# --- Application Constants ---
SCREEN_WIDTH = 640
SCREEN_HEIGHT = 480
# Noise is sampled at half resolution and scaled up for speed.
RENDER_SCALE = 2
TARGET_FPS = 30
VIEW_MODES = ("gradient", "cellular", "white", "terrain")
PREVIEW_MESH_RESOLUTION = 160


class ViewerApp:
    """The main application class for the preview window."""
    def __init__(self, args: argparse.Namespace):
        logging.basicConfig(level=logging.INFO, format=DEFAULTS.LOG_FORMAT)
        self.logger = logging.getLogger(__name__)
        self.args = args

        self.logger.info("Initializing Pygame...")
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Terrain Synth Preview")
        self.font = pygame.font.Font(None, 24)

        self.clock = pygame.time.Clock()
        self.is_running = True

        self.raster_width = SCREEN_WIDTH // RENDER_SCALE
        self.raster_height = SCREEN_HEIGHT // RENDER_SCALE
        self.view_mode = "gradient"
        self.noise_time = 0.0

        self.gradient_field = GradientNoiseField(seed=args.seed)
        self.animator = CellularAnimator(CellularField(), logger=self.logger)
        self.terrain_pixels = None
        self.seed = args.seed
        self.regenerate_terrain()

    def regenerate_terrain(self):
        """Builds a new terrain mesh and caches its top-down color image."""
        try:
            mesh = generate_terrain(
                seed=self.seed,
                water_level=self.args.water_level,
                mountain_frequency=self.args.mountain_frequency,
                smoothness=self.args.smoothness,
                resolution=PREVIEW_MESH_RESOLUTION,
                logger=self.logger,
            )
        except ValueError as e:
            self.logger.error(f"Cannot build terrain: {e}")
            self.terrain_pixels = None
            return
        self.terrain_pixels = rasters.terrain_color_pixels(mesh)

    def run(self):
        """The main application loop."""
        while self.is_running:
            delta_time = self.clock.tick(TARGET_FPS) / 1000.0
            self.handle_events()
            self.draw(delta_time)

        self.logger.info("Exiting viewer.")
        pygame.quit()
        sys.exit()

    def handle_events(self):
        """Processes user input and other events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.is_running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.is_running = False
                elif pygame.K_1 <= event.key <= pygame.K_4:
                    self.view_mode = VIEW_MODES[event.key - pygame.K_1]
                    self.logger.info(f"View mode switched to '{self.view_mode}'.")
                elif event.key == pygame.K_r:
                    self.seed = float(np.random.default_rng().random())
                    self.logger.info(f"Regenerating terrain with seed {self.seed:.6f}")
                    self.regenerate_terrain()

    def _current_pixels(self, delta_time: float) -> np.ndarray | None:
        if self.view_mode == "gradient":
            self.noise_time += DEFAULTS.ANIMATION_TIME_STEP
            values = rasters.gradient_raster(
                self.gradient_field, self.raster_width, self.raster_height, time=self.noise_time
            )
            return rasters.to_grayscale_pixels(values)
        if self.view_mode == "cellular":
            self.animator.update(delta_time)
            values = self.animator.sample_raster(self.raster_width, self.raster_height)
            if self.animator.tinted:
                return rasters.to_tinted_pixels(values)
            return rasters.to_grayscale_pixels(values)
        if self.view_mode == "white":
            return rasters.to_grayscale_pixels(white_noise((self.raster_height, self.raster_width)))
        return self.terrain_pixels

    def draw(self, delta_time: float):
        """Handles all rendering for the application."""
        self.screen.fill((10, 10, 20))

        pixels = self._current_pixels(delta_time)
        if pixels is not None:
            surface = pygame.surfarray.make_surface(pixels)
            scaled = pygame.transform.scale(surface, (SCREEN_WIDTH, SCREEN_HEIGHT))
            self.screen.blit(scaled, (0, 0))

        label = self.view_mode
        if self.view_mode == "cellular":
            label = f"cellular: {self.animator.mode}"
        text = self.font.render(label, True, (255, 255, 255))
        self.screen.blit(text, (10, 10))

        pygame.display.set_caption(f"Terrain Synth Preview | {label} | {self.clock.get_fps():.0f} FPS")
        pygame.display.flip()


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Preview noise fields and terrain colors.")
    parser.add_argument("--seed", type=float, default=None)
    parser.add_argument("--water-level", type=float, default=DEFAULTS.DEFAULT_WATER_LEVEL)
    parser.add_argument("--mountain-frequency", type=float, default=DEFAULTS.DEFAULT_MOUNTAIN_FREQUENCY)
    parser.add_argument("--smoothness", type=int, default=DEFAULTS.DEFAULT_SMOOTHNESS)

    app = ViewerApp(parser.parse_args())
    app.run()
