"""
Simulation session: a solver plus settings, sources and probes.

The session is what a host application drives. It owns one
:class:`FDTDSolver`, the :class:`SimulationSettings` it was built from and
the list of sources, and exposes:

- ``step_sim``: one full step (inject sources, H half-step, E half-step)
- ``tick``: ``simulation_speed`` steps per host tick, carrying fractions
- ``run``: a batch of steps with progress, energy tracking and HDF5 output
- ``frame``: a read-only view of the fields for a rendering collaborator

Example:
    >>> from maxwell_fdtd import PointSource, Simulation, SimulationSettings
    >>> sim = Simulation(SimulationSettings(grid_size=(128, 128)))
    >>> sim.add_source(PointSource(position=(64, 64), amplitude=1.0, frequency=3.0))
    >>> sim.add_probe("center", (70, 64))
    >>> sim.run(steps=200)
    >>> trace = sim.get_probe_data("center")["center"]
"""

from __future__ import annotations

import math
import time as time_module
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from maxwell_fdtd.config import SimulationSettings, validate_simulation_speed
from maxwell_fdtd.io.serialization import MaterialMap, SimulatorMap
from maxwell_fdtd.materials.base import MaterialType

from .backends import Backend, BackendName
from .drawing import DrawInfo
from .solver import FDTDSolver, validate_dt
from .sources import Probe, Source


@dataclass(frozen=True)
class RenderFrame:
    """Snapshot of everything a renderer consumes for one frame.

    Args:
        electric: Current E field, shape (height, width, 3)
        magnetic: Current H field, shape (height, width, 3)
        material: Material field, shape (height, width, 3)
        cell_size: Physical cell size
        grid_size: (width, height) in cells
        show_electric: Include electric energy
        show_magnetic: Include magnetic energy
    """

    electric: NDArray[np.float32]
    magnetic: NDArray[np.float32]
    material: NDArray[np.float32]
    cell_size: float
    grid_size: tuple[int, int]
    show_electric: bool = True
    show_magnetic: bool = True

    def energy_density(self) -> NDArray[np.float32]:
        """Per-cell (ε|E|², µ|H|²), shape (height, width, 2).

        Hidden components are zero.
        """
        height, width = self.electric.shape[:2]
        density = np.zeros((height, width, 2), dtype=np.float32)
        if self.show_electric:
            density[..., 0] = self.material[..., 0] * np.sum(self.electric**2, axis=-1)
        if self.show_magnetic:
            density[..., 1] = self.material[..., 1] * np.sum(self.magnetic**2, axis=-1)
        return density


class Simulation:
    """Host-facing simulation session.

    Args:
        settings: Simulation settings (default settings if omitted)
        sources: Initial sources
        backend: Array backend name or instance, passed to the solver

    Example:
        >>> sim = Simulation()
        >>> sim.draw_material("permittivity", make_draw_ellipse_info((250, 250), 40, 5.0))
        >>> sim.tick()
        1
    """

    def __init__(
        self,
        settings: SimulationSettings | None = None,
        sources: Iterable[Source] | None = None,
        backend: BackendName | Backend = "auto",
    ):
        self.settings = settings if settings is not None else SimulationSettings()
        self.solver = FDTDSolver(
            grid_size=self.settings.grid_size,
            cell_size=self.settings.cell_size,
            reflective_boundary=self.settings.reflective_boundary,
            backend=backend,
        )
        self._sources: list[Source] = list(sources) if sources is not None else []
        self._probes: dict[str, Probe] = {}
        self._step_count = 0
        self._speed_carry = 0.0
        self._track_energy = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def dt(self) -> float:
        return self.settings.dt

    @property
    def time(self) -> float:
        return self.solver.time

    @property
    def step_count(self) -> int:
        """Number of completed ``step_sim`` calls since the last field reset."""
        return self._step_count

    @property
    def sources(self) -> list[Source]:
        return self._sources

    @sources.setter
    def sources(self, sources: Iterable[Source]) -> None:
        self._sources = list(sources)

    @property
    def probes(self) -> dict[str, Probe]:
        return self._probes

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_dt(self, dt: float) -> None:
        """Change the timestep; coefficients follow on the next step."""
        self.settings.dt = validate_dt(dt)

    def set_simulation_speed(self, speed: float) -> None:
        self.settings.simulation_speed = validate_simulation_speed(speed)

    def set_grid_size(self, grid_size: tuple[int, int], preserve_material: bool = True) -> None:
        """Resize the grid; fields and time are reset.

        Raises:
            ValueError: If a probe would fall outside the new grid
        """
        width, height = grid_size
        for probe in self._probes.values():
            x, y = probe.position
            if not (0 <= x < width and 0 <= y < height):
                raise ValueError(
                    f"Probe '{probe.name}' at {probe.position} lies outside a "
                    f"{width}x{height} grid"
                )
        self.solver.set_grid_size(grid_size, preserve_material=preserve_material)
        self.settings.grid_size = self.solver.grid_size
        self._after_field_reset()

    def set_cell_size(self, cell_size: float) -> None:
        self.solver.set_cell_size(cell_size)
        self.settings.cell_size = self.solver.cell_size
        self._after_field_reset()

    def set_reflective_boundary(self, reflective_boundary: bool) -> None:
        self.solver.set_reflective_boundary(reflective_boundary)
        self.settings.reflective_boundary = self.solver.reflective_boundary

    # =========================================================================
    # Sources and probes
    # =========================================================================

    def add_source(self, source: Source) -> None:
        self._sources.append(source)

    def add_probe(self, name: str, position: tuple[int, int], component: int = 2) -> None:
        """Add a probe recording one E component at a cell after every step.

        Raises:
            ValueError: If the position is outside the grid
        """
        x, y = position
        if not self.solver.grid.contains(x, y):
            raise ValueError(f"Probe position {position} outside grid {self.solver.grid_size}")
        self._probes[name] = Probe(name=name, position=(int(x), int(y)), component=component)

    def get_probe_data(self, name: str | None = None) -> dict[str, NDArray[np.floating]]:
        """Get recorded probe data.

        Args:
            name: Specific probe name, or None for all probes

        Returns:
            Dict mapping probe names to field time series

        Raises:
            KeyError: If the named probe doesn't exist
        """
        if name is not None:
            if name not in self._probes:
                raise KeyError(f"Probe '{name}' not found")
            return {name: self._probes[name].get_data()}
        return {name: probe.get_data() for name, probe in self._probes.items()}

    # =========================================================================
    # Editing
    # =========================================================================

    def inject_signal(self, draw_info: DrawInfo, dt: float | None = None) -> None:
        self.solver.inject_signal(draw_info, dt if dt is not None else self.dt)

    def draw_material(self, material_type: MaterialType, draw_info: DrawInfo) -> None:
        self.solver.draw_material(material_type, draw_info)

    def load_material_from_components(
        self,
        permittivity: NDArray[np.floating],
        permeability: NDArray[np.floating],
        conductivity: NDArray[np.floating] | None = None,
    ) -> None:
        self.solver.load_material_from_components(permittivity, permeability, conductivity)

    def reset_fields(self) -> None:
        """Clear fields, time, step count and probe recordings."""
        self.solver.reset_fields()
        self._after_field_reset()

    def reset_materials(self) -> None:
        self.solver.reset_materials()

    def _after_field_reset(self) -> None:
        self._step_count = 0
        self._speed_carry = 0.0
        for probe in self._probes.values():
            probe.clear()

    # =========================================================================
    # Stepping
    # =========================================================================

    def step_sim(self, dt: float | None = None) -> None:
        """Advance one full step: sources, then H, then E.

        Args:
            dt: Timestep (default: the configured dt)
        """
        dt = validate_dt(dt if dt is not None else self.dt)

        for source in self._sources:
            source.inject(self.solver, dt)

        self.solver.step_magnetic(dt)
        self.solver.step_electric(dt)
        self._step_count += 1

        for probe in self._probes.values():
            probe.record(probe.sample(self.solver))

        if self._track_energy:
            self.solver.record_energy(self._step_count)

    def tick(self) -> int:
        """Advance by ``simulation_speed`` steps for one host tick.

        Fractional speeds accumulate, so a speed of 0.5 steps every other
        tick.

        Returns:
            Number of steps taken
        """
        self._speed_carry += self.settings.simulation_speed
        steps = int(self._speed_carry)
        self._speed_carry -= steps
        for _ in range(steps):
            self.step_sim()
        return steps

    def run(
        self,
        steps: int | None = None,
        duration: float | None = None,
        progress: bool = False,
        track_energy: bool = False,
        callback: Callable[[int], None] | None = None,
        output_file: str | Path | None = None,
        snapshot_interval: int | None = None,
    ) -> None:
        """Run a batch of steps.

        Args:
            steps: Number of steps (exclusive with ``duration``)
            duration: Simulation time to cover; rounded up to whole steps
            progress: If True, show a tqdm progress bar
            track_energy: If True, record energy after every step
            callback: Function called after each step with signature
                callback(step)
            output_file: Path to HDF5 output file (optional)
            snapshot_interval: Save an energy density snapshot to HDF5 every
                N steps (default: no snapshots)

        Raises:
            ValueError: If neither or both of steps/duration are given
        """
        if (steps is None) == (duration is None):
            raise ValueError("Provide exactly one of 'steps' or 'duration'")
        n_steps = int(steps) if steps is not None else int(math.ceil(duration / self.dt))
        if n_steps < 0:
            raise ValueError(f"Number of steps must be non-negative, got {n_steps}")

        start_time = time_module.time()

        self._track_energy = track_energy
        if track_energy and not self.solver.get_energy_history():
            self.solver.record_energy(self._step_count)

        hdf5_writer = None
        if output_file:
            from maxwell_fdtd.io.hdf5 import HDF5ResultWriter

            hdf5_writer = HDF5ResultWriter(output_file, self)

        try:
            if progress:
                from tqdm import tqdm

                iterator = tqdm(range(n_steps), desc="FDTD simulation")
            else:
                iterator = range(n_steps)

            for step in iterator:
                self.step_sim()

                if hdf5_writer:
                    save_snapshot = (
                        snapshot_interval is not None and step % snapshot_interval == 0
                    )
                    hdf5_writer.write_timestep(self._step_count - 1, save_snapshot)

                if callback:
                    callback(self._step_count - 1)

            if track_energy:
                self.solver.check_energy_drift()

        finally:
            self._track_energy = False
            if hdf5_writer:
                runtime = time_module.time() - start_time
                hdf5_writer.finalize(runtime=runtime, backend=self.solver.backend.name)

    # =========================================================================
    # Rendering and maps
    # =========================================================================

    def frame(self, show_electric: bool = True, show_magnetic: bool = True) -> RenderFrame:
        """Copy out the current fields for rendering; never mutates state."""
        solver = self.solver
        return RenderFrame(
            electric=solver.get_electric_field(),
            magnetic=solver.get_magnetic_field(),
            material=solver.get_material(),
            cell_size=solver.cell_size,
            grid_size=solver.grid_size,
            show_electric=show_electric,
            show_magnetic=show_magnetic,
        )

    def to_simulator_map(self) -> SimulatorMap:
        """Capture material, settings and sources as a shareable map."""
        return SimulatorMap(
            material_map=MaterialMap.from_array(self.solver.get_material()),
            settings=SimulationSettings.from_dict(self.settings.to_dict()),
            sources=list(self._sources),
        )

    def load_simulator_map(self, simulator_map: SimulatorMap) -> None:
        """Apply a simulator map.

        The grid takes the material map's size, fields are cleared and the
        map's settings and sources replace the current ones.
        """
        settings = simulator_map.settings
        material_map = simulator_map.material_map

        self._probes.clear()
        self.settings = SimulationSettings(
            dt=settings.dt,
            grid_size=material_map.shape,
            cell_size=settings.cell_size,
            simulation_speed=settings.simulation_speed,
            reflective_boundary=settings.reflective_boundary,
        )
        if self.solver.grid_size != material_map.shape:
            self.solver.set_grid_size(material_map.shape, preserve_material=False)
        if self.solver.cell_size != settings.cell_size:
            self.solver.set_cell_size(settings.cell_size)
        self.solver.set_reflective_boundary(settings.reflective_boundary)
        self.solver.load_material(material_map.to_array())
        self.solver.reset_fields()
        self._sources = list(simulator_map.sources)
        self._after_field_reset()

    @classmethod
    def from_simulator_map(
        cls, simulator_map: SimulatorMap, backend: BackendName | Backend = "auto"
    ) -> Simulation:
        """Build a new session from a simulator map."""
        simulation = cls(
            SimulationSettings(
                dt=simulator_map.settings.dt,
                grid_size=simulator_map.material_map.shape,
                cell_size=simulator_map.settings.cell_size,
                simulation_speed=simulator_map.settings.simulation_speed,
                reflective_boundary=simulator_map.settings.reflective_boundary,
            ),
            backend=backend,
        )
        simulation.load_simulator_map(simulator_map)
        return simulation

    def __repr__(self) -> str:
        return (
            f"Simulation(grid_size={self.solver.grid_size}, dt={self.dt}, "
            f"sources={len(self._sources)}, probes={len(self._probes)})"
        )
