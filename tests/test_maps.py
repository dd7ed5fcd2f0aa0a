"""Tests for the preset simulator maps."""

import numpy as np
import pytest

from maxwell_fdtd import Simulation
from maxwell_fdtd.maps import (
    FIBER_PERMITTIVITY,
    PRESETS,
    SOURCE_AMPLITUDE,
    SOURCE_FREQUENCY,
    WALL_PERMITTIVITY,
    double_slit,
    empty,
    fiber_optics,
    get_preset,
)


class TestEmpty:
    def test_vacuum_and_no_sources(self):
        simulator_map = empty((20, 10))
        material = simulator_map.material_map.to_array()
        assert simulator_map.material_map.shape == (20, 10)
        assert np.all(material == [1.0, 1.0, 0.0])
        assert simulator_map.sources == []
        assert simulator_map.settings.grid_size == (20, 10)


class TestDoubleSlit:
    @pytest.fixture(scope="class")
    def permittivity(self):
        return double_slit().material_map.permittivity

    def test_wall_rows(self, permittivity):
        wall_rows = [y for y in range(500) if permittivity[y, 0] == WALL_PERMITTIVITY]
        assert wall_rows == [49, 50, 51]

    def test_slit_columns(self, permittivity):
        gaps = [x for x in range(500) if permittivity[50, x] == 1.0]
        assert gaps == [90, 91, 92, 93, 94, 106, 107, 108, 109, 110]

    def test_wall_between_slits(self, permittivity):
        assert np.all(permittivity[49:52, 95:106] == WALL_PERMITTIVITY)

    def test_vacuum_elsewhere(self, permittivity):
        assert np.all(permittivity[:49] == 1.0)
        assert np.all(permittivity[52:] == 1.0)

    def test_source(self):
        (source,) = double_slit().sources
        assert source.position == (100, 33)
        assert source.amplitude == SOURCE_AMPLITUDE
        assert source.frequency == SOURCE_FREQUENCY
        assert source.turn_off_time is None


class TestFiberOptics:
    def test_source_burst_at_fiber_entrance(self):
        simulator_map = fiber_optics()
        (source,) = simulator_map.sources
        assert source.position == (55, 30)
        assert source.turn_off_time == 0.5

        x, y = int(source.position[0]), int(source.position[1])
        assert simulator_map.material_map.permittivity[y, x] == FIBER_PERMITTIVITY

    def test_only_fiber_and_vacuum(self):
        permittivity = fiber_optics().material_map.permittivity
        assert set(np.unique(permittivity)) == {1.0, FIBER_PERMITTIVITY}
        assert np.all(fiber_optics().material_map.conductivity == 0.0)

    def test_small_grid_stays_in_bounds(self):
        simulator_map = fiber_optics((40, 40))
        assert simulator_map.material_map.shape == (40, 40)


class TestPresets:
    def test_registry(self):
        assert set(PRESETS) == {"empty", "double_slit", "fiber_optics"}

    def test_get_preset_with_size(self):
        assert get_preset("double_slit", (100, 80)).material_map.shape == (100, 80)

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="Available"):
            get_preset("triple_slit")

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_presets_load_into_simulation(self, name):
        sim = Simulation.from_simulator_map(get_preset(name, (60, 60)), backend="numpy")
        sim.step_sim()
        assert sim.solver.grid_size == (60, 60)
        assert np.all(np.isfinite(sim.frame().electric))
