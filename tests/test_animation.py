"""
Tests for the cellular animation cycle.
"""

import numpy as np
import pytest

from terrain_synth.animation import CellularAnimator
from terrain_synth.cellular import CellularField, orbit_positions, pulse_positions


class TestCellularAnimator:
    """Test suite for CellularAnimator."""

    def setup_method(self):
        self.field = CellularField(count=12, seed=6)
        self.animator = CellularAnimator(self.field)

    def test_starts_in_drift_mode(self):
        assert self.animator.mode == "drift"
        assert self.animator.time == 0.0
        assert not self.animator.tinted

    def test_drift_moves_points_by_velocity(self):
        before = self.field.positions
        velocities = self.field.velocities
        self.animator.update(0.016)
        expected = np.mod(before + velocities, 1.0)
        np.testing.assert_allclose(self.field.positions, expected)

    def test_time_advances_per_update(self):
        for _ in range(10):
            self.animator.update(0.016)
        assert self.animator.time == pytest.approx(0.1)

    def test_modes_cycle_on_real_time(self):
        seen = []
        for _ in range(4):
            self.animator.update(5.0)
            seen.append(self.animator.mode)
        assert seen == ["circular", "pulsing", "edge", "drift"]

    def test_mode_switch_independent_of_frame_rate(self):
        for _ in range(299):
            self.animator.update(1 / 60)
        assert self.animator.mode == "drift"
        self.animator.update(0.1)
        assert self.animator.mode == "circular"

    def test_circular_mode_places_points_on_orbits(self):
        self.animator.update(5.0)
        expected = np.mod(orbit_positions(12, self.animator.time), 1.0)
        np.testing.assert_allclose(self.field.positions, expected)

    def test_pulsing_mode_places_points_on_pulse(self):
        self.animator.update(10.0)
        assert self.animator.mode == "pulsing"
        assert self.animator.tinted
        expected = np.mod(pulse_positions(12, self.animator.time), 1.0)
        np.testing.assert_allclose(self.field.positions, expected)

    def test_edge_mode_samples_edges(self):
        self.animator.update(15.0)
        assert self.animator.mode == "edge"
        assert self.animator.tinted
        raster = self.animator.sample_raster(16, 8)
        np.testing.assert_allclose(raster, self.field.edge_field_grid(
            *np.meshgrid(np.arange(16) / 16, np.arange(8) / 8)))

    def test_sample_raster_shape_and_range(self):
        raster = self.animator.sample_raster(20, 10)
        assert raster.shape == (10, 20)
        assert np.all((raster >= 0.0) & (raster <= 1.0))

    def test_points_stay_in_unit_square(self):
        for _ in range(100):
            self.animator.update(0.5)
            positions = self.field.positions
            assert np.all((positions >= 0.0) & (positions < 1.0))

    def test_custom_mode_list(self):
        animator = CellularAnimator(self.field, config={'modes': ["edge"], 'mode_duration_s': 1.0})
        animator.update(3.0)
        assert animator.mode == "edge"

    def test_rejects_unknown_modes(self):
        with pytest.raises(ValueError):
            CellularAnimator(self.field, config={'modes': ["spiral"]})

    def test_rejects_empty_mode_list(self):
        with pytest.raises(ValueError):
            CellularAnimator(self.field, config={'modes': []})
