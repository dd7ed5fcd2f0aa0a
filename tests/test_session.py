"""Tests for the simulation session."""

import numpy as np
import pytest

from maxwell_fdtd import (
    PointSource,
    Simulation,
    SimulationSettings,
    make_draw_ellipse_info,
    make_draw_square_info,
)

DT = 0.02


@pytest.fixture
def sim():
    return Simulation(SimulationSettings(grid_size=(24, 24)), backend="numpy")


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    def test_defaults(self):
        settings = SimulationSettings()
        assert settings.dt == 0.02
        assert settings.cell_size == 0.03
        assert settings.grid_size == (500, 500)
        assert settings.simulation_speed == 1.0
        assert settings.reflective_boundary is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"dt": 0.0},
            {"cell_size": -1.0},
            {"grid_size": (0, 10)},
            {"simulation_speed": -1.0},
        ],
    )
    def test_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            SimulationSettings(**kwargs)

    def test_dict_round_trip(self):
        settings = SimulationSettings(dt=0.01, grid_size=(30, 20), cell_size=0.05,
                                      simulation_speed=2.5, reflective_boundary=True)
        data = settings.to_dict()
        assert data["gridSize"] == [30, 20]
        assert data["simulationSpeed"] == 2.5
        assert SimulationSettings.from_dict(data) == settings

    def test_from_dict_missing_keys_use_defaults(self):
        settings = SimulationSettings.from_dict({"dt": 0.01})
        assert settings.dt == 0.01
        assert settings.grid_size == (500, 500)


# =============================================================================
# Stepping
# =============================================================================


class TestStepSim:
    def test_sources_injected_before_fields_step(self, sim):
        sim.add_source(PointSource(position=(12, 12), amplitude=2.0, frequency=1.0))
        sim.step_sim()

        # S = -A·dt at t = 0; E picks up S·dt in the electric half-step
        electric = sim.frame().electric
        assert electric[12, 12, 2] == pytest.approx(-2.0 * DT * DT, rel=1e-4)
        assert sim.time == pytest.approx(DT)
        assert sim.step_count == 1

    def test_probe_records_each_step(self, sim):
        sim.add_source(PointSource(position=(12, 12), amplitude=2.0, frequency=1.0))
        sim.add_probe("center", (12, 12))
        for _ in range(4):
            sim.step_sim()

        data = sim.get_probe_data("center")["center"]
        assert len(data) == 4
        assert data[0] == pytest.approx(-2.0 * DT * DT, rel=1e-4)

    def test_probe_outside_grid_rejected(self, sim):
        with pytest.raises(ValueError, match="outside"):
            sim.add_probe("bad", (24, 0))

    def test_unknown_probe_raises(self, sim):
        with pytest.raises(KeyError):
            sim.get_probe_data("missing")

    def test_explicit_dt(self, sim):
        sim.step_sim(dt=0.01)
        assert sim.time == pytest.approx(0.01)

    @pytest.mark.parametrize(
        "speed,expected",
        [
            (1.0, [1, 1, 1, 1]),
            (0.5, [0, 1, 0, 1]),
            (2.5, [2, 3, 2, 3]),
            (0.0, [0, 0, 0, 0]),
        ],
    )
    def test_tick_carries_fractional_speed(self, sim, speed, expected):
        sim.set_simulation_speed(speed)
        assert [sim.tick() for _ in range(4)] == expected
        assert sim.step_count == sum(expected)

    def test_set_dt(self, sim):
        sim.set_dt(0.01)
        sim.step_sim()
        assert sim.solver.coefficient_dt == 0.01
        with pytest.raises(ValueError):
            sim.set_dt(-1.0)


# =============================================================================
# Run
# =============================================================================


class TestRun:
    def test_run_steps(self, sim):
        sim.run(steps=10)
        assert sim.step_count == 10
        assert sim.time == pytest.approx(10 * DT)

    def test_run_duration_rounds_up(self):
        sim = Simulation(SimulationSettings(dt=0.015, grid_size=(16, 16)), backend="numpy")
        sim.run(duration=0.1)
        assert sim.step_count == 7

    def test_run_requires_exactly_one_length(self, sim):
        with pytest.raises(ValueError, match="exactly one"):
            sim.run()
        with pytest.raises(ValueError, match="exactly one"):
            sim.run(steps=5, duration=1.0)

    def test_callback_receives_step_numbers(self, sim):
        seen = []
        sim.run(steps=5, callback=seen.append)
        assert seen == [0, 1, 2, 3, 4]

    def test_track_energy(self, sim):
        sim.add_source(PointSource(position=(12, 12), amplitude=5.0, frequency=2.0))
        sim.run(steps=10, track_energy=True)
        history = sim.solver.get_energy_history()
        assert len(history) == 11
        assert [step for step, _, _ in history] == list(range(11))
        assert history[-1][2] > 0

    def test_progress_bar(self, sim):
        sim.run(steps=3, progress=True)
        assert sim.step_count == 3


# =============================================================================
# Editing and reconfiguration
# =============================================================================


class TestEditing:
    def test_inject_signal_uses_configured_dt(self, sim):
        sim.inject_signal(make_draw_square_info((5, 5), 0.5, 10.0))
        assert sim.solver.get_source_field()[5, 5, 2] == pytest.approx(10.0 * DT)

    def test_reset_fields_clears_probes(self, sim):
        sim.add_probe("p", (3, 3))
        sim.run(steps=3)
        sim.reset_fields()
        assert sim.step_count == 0
        assert sim.time == 0.0
        assert len(sim.get_probe_data("p")["p"]) == 0

    def test_set_grid_size_updates_settings(self, sim):
        sim.set_grid_size((40, 30))
        assert sim.settings.grid_size == (40, 30)
        assert sim.frame().electric.shape == (30, 40, 3)

    def test_set_grid_size_rejects_stranded_probe(self, sim):
        sim.add_probe("edge", (20, 20))
        with pytest.raises(ValueError, match="edge"):
            sim.set_grid_size((10, 10))

    def test_set_cell_size_and_boundary(self, sim):
        sim.set_cell_size(0.05)
        sim.set_reflective_boundary(True)
        assert sim.settings.cell_size == 0.05
        assert sim.solver.reflective_boundary
        assert sim.settings.reflective_boundary


# =============================================================================
# Frames and maps
# =============================================================================


class TestFrame:
    def test_energy_density(self, sim):
        sim.draw_material("permittivity", make_draw_square_info((4, 4), 0.5, 2.0))
        sim.solver.storage.electric.current[4, 4] = [1.0, 0.0, 2.0]
        sim.solver.storage.magnetic.current[4, 4] = [0.0, 3.0, 0.0]

        density = sim.frame().energy_density()
        assert density.shape == (24, 24, 2)
        assert density[4, 4, 0] == pytest.approx(2.0 * 5.0)
        assert density[4, 4, 1] == pytest.approx(9.0)

    def test_hidden_components_are_zero(self, sim):
        sim.solver.storage.electric.current[4, 4, 2] = 1.0
        sim.solver.storage.magnetic.current[4, 4, 2] = 1.0
        density = sim.frame(show_electric=False, show_magnetic=True).energy_density()
        assert density[4, 4, 0] == 0.0
        assert density[4, 4, 1] == 1.0

    def test_frame_does_not_alias_state(self, sim):
        frame = sim.frame()
        frame.electric[...] = 1.0
        assert np.all(sim.frame().electric == 0.0)
        assert frame.cell_size == sim.solver.cell_size
        assert frame.grid_size == (24, 24)


class TestSimulatorMap:
    def test_round_trip(self, sim):
        sim.draw_material("permittivity", make_draw_ellipse_info((10, 10), 4, 3.0))
        sim.draw_material("conductivity", make_draw_square_info((5, 5), 2, 0.25))
        sim.add_source(PointSource(position=(12, 3), amplitude=1.0, frequency=2.0, turn_off_time=1.0))
        sim.set_simulation_speed(2.0)

        simulator_map = sim.to_simulator_map()
        restored = Simulation.from_simulator_map(simulator_map, backend="numpy")

        np.testing.assert_array_equal(restored.solver.get_material(), sim.solver.get_material())
        assert restored.sources == sim.sources
        assert restored.settings == sim.settings

    def test_load_resizes_to_material(self, sim):
        other = Simulation(SimulationSettings(grid_size=(10, 8)), backend="numpy")
        other.draw_material("permittivity", make_draw_square_info((2, 2), 1, 4.0))

        sim.run(steps=2)
        sim.load_simulator_map(other.to_simulator_map())

        assert sim.solver.grid_size == (10, 8)
        assert sim.time == 0.0
        assert sim.step_count == 0
        assert sim.solver.get_material()[2, 2, 0] == 4.0
