"""Simulation settings.

Defaults reproduce the interactive simulator: a 500x500 grid of 0.03-sized
cells stepped with dt = 0.02 (Courant number ≈ 0.94), one step per tick.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from maxwell_fdtd.core.grid import validate_cell_size, validate_grid_size
from maxwell_fdtd.core.solver import DEFAULT_CELL_SIZE, DEFAULT_GRID_SIZE, validate_dt

DEFAULT_DT = 0.02
DEFAULT_SIMULATION_SPEED = 1.0


@dataclass
class SimulationSettings:
    """Configuration of a simulation session.

    Args:
        dt: Timestep
        grid_size: Grid dimensions (width, height) in cells
        cell_size: Physical size of one cell
        simulation_speed: Simulation steps per host tick; fractional speeds
            accumulate across ticks
        reflective_boundary: Use reflective instead of open boundaries

    Raises:
        ValueError: If any value is out of range
    """

    dt: float = DEFAULT_DT
    grid_size: tuple[int, int] = DEFAULT_GRID_SIZE
    cell_size: float = DEFAULT_CELL_SIZE
    simulation_speed: float = DEFAULT_SIMULATION_SPEED
    reflective_boundary: bool = False

    def __post_init__(self):
        self.dt = validate_dt(self.dt)
        self.grid_size = validate_grid_size(*self.grid_size)
        self.cell_size = validate_cell_size(self.cell_size)
        self.simulation_speed = validate_simulation_speed(self.simulation_speed)
        self.reflective_boundary = bool(self.reflective_boundary)

    def to_dict(self) -> dict:
        """Wire form with camelCase keys."""
        return {
            "dt": self.dt,
            "gridSize": list(self.grid_size),
            "cellSize": self.cell_size,
            "simulationSpeed": self.simulation_speed,
            "reflectiveBoundary": self.reflective_boundary,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SimulationSettings:
        """Build settings from the wire form; missing keys take defaults."""
        return cls(
            dt=data.get("dt", DEFAULT_DT),
            grid_size=tuple(data.get("gridSize", DEFAULT_GRID_SIZE)),
            cell_size=data.get("cellSize", DEFAULT_CELL_SIZE),
            simulation_speed=data.get("simulationSpeed", DEFAULT_SIMULATION_SPEED),
            reflective_boundary=data.get("reflectiveBoundary", False),
        )


def validate_simulation_speed(speed: float) -> float:
    """Validate steps-per-tick.

    Raises:
        ValueError: If the speed is negative or not finite
    """
    speed = float(speed)
    if not math.isfinite(speed) or speed < 0:
        raise ValueError(f"Simulation speed must be non-negative, got {speed}")
    return speed
