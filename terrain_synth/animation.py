# terrain_synth/animation.py

"""
================================================================================
CELLULAR ANIMATION
================================================================================
This module provides a self-contained class that animates a CellularField
through four modes (drift, circular, pulsing, edge). The mode and the
animation time are owned by the animator instance, not by module globals.

Data Contract:
---------------
- Inputs (on initialization):
    - field (CellularField): The field to animate. The animator mutates it.
    - config (dict): Optional overrides for the mode duration and time step.
- Public Methods:
    - update(real_delta_time): Advances time, cycles modes, moves the points.
    - sample_raster(width, height): [0, 1] values for the current mode.
- Public Properties:
    - mode (str), time (float), tinted (bool).
- Side Effects: Mutates the field's point positions.
- Invariants: Mode switches depend only on the accumulated real time, not on
  the frequency of updates.
================================================================================
"""

import logging

import numpy as np

from . import config as DEFAULTS
from .cellular import CellularField, orbit_positions, pulse_positions
from .rasters import cellular_raster


class CellularAnimator:
    """Drives a CellularField through the drift / circular / pulsing / edge cycle."""

    def __init__(self, field: CellularField, config: dict = None, logger: logging.Logger = None):
        config = config or {}
        self.field = field
        self.logger = logger or logging.getLogger(__name__)

        # --- 1. Load Animation Configuration ---
        self.modes = tuple(config.get('modes', DEFAULTS.ANIMATION_MODES))
        self.mode_duration = config.get('mode_duration_s', DEFAULTS.ANIMATION_MODE_DURATION_S)
        self.time_step = config.get('time_step', DEFAULTS.ANIMATION_TIME_STEP)
        unknown = set(self.modes) - set(DEFAULTS.ANIMATION_MODES)
        if unknown:
            raise ValueError(f"Unknown animation modes: {sorted(unknown)}")
        if not self.modes:
            raise ValueError("At least one animation mode is required.")

        # --- 2. Initialize State Variables ---
        self.time = 0.0
        self._real_seconds_elapsed = 0.0
        self.mode_index = 0

    @property
    def mode(self) -> str:
        return self.modes[self.mode_index]

    @property
    def tinted(self) -> bool:
        """Whether the renderer should red-tint the current mode."""
        return self.mode in ("pulsing", "edge")

    def update(self, real_delta_time: float):
        """
        Advances the animation by one frame.

        Args:
            real_delta_time (float): Real-world seconds since the last frame.
        """
        self._real_seconds_elapsed += real_delta_time
        mode_index = int(self._real_seconds_elapsed // self.mode_duration) % len(self.modes)
        if mode_index != self.mode_index:
            self.mode_index = mode_index
            self.logger.info(f"Animation mode: {self.mode}")

        self.time += self.time_step
        mode = self.mode
        if mode in ("drift", "edge"):
            self.field.advance(1.0)
        elif mode == "circular":
            self.field.set_positions(orbit_positions(self.field.count, self.time))
        elif mode == "pulsing":
            self.field.set_positions(pulse_positions(self.field.count, self.time))

    def sample_raster(self, width: int, height: int) -> np.ndarray:
        """[0, 1] values for the current mode; edge mode highlights cell borders."""
        return cellular_raster(self.field, width, height, mode="edge" if self.mode == "edge" else "solid")
