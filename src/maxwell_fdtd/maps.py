"""
Preset simulator maps.

Each preset builds a complete :class:`SimulatorMap` (material, settings and
sources) for a grid of the given size, default 500x500:

- ``empty``: vacuum everywhere, no sources
- ``double_slit``: a high-permittivity wall with two gaps in front of a
  point source
- ``fiber_optics``: a curved ε=2 waveguide fed by a short source burst

Example:
    >>> from maxwell_fdtd.maps import PRESETS
    >>> simulator_map = PRESETS["double_slit"]()
    >>> simulator_map.material_map.shape
    (500, 500)
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np

from maxwell_fdtd.config import DEFAULT_DT, DEFAULT_SIMULATION_SPEED, SimulationSettings
from maxwell_fdtd.core.solver import DEFAULT_CELL_SIZE, DEFAULT_GRID_SIZE
from maxwell_fdtd.core.sources import PointSource
from maxwell_fdtd.io.serialization import MaterialMap, SimulatorMap

# Double slit
WALL_PERMITTIVITY = 100.0
WALL_HALF_THICKNESS = 2

# Fiber optics
FIBER_PERMITTIVITY = 2.0
FIBER_THICKNESS = 2
FIBER_CURVE_POINTS = 100

SOURCE_AMPLITUDE = 2e6
SOURCE_FREQUENCY = 3.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _settings(grid_size: tuple[int, int]) -> SimulationSettings:
    return SimulationSettings(
        dt=DEFAULT_DT,
        grid_size=grid_size,
        cell_size=DEFAULT_CELL_SIZE,
        simulation_speed=DEFAULT_SIMULATION_SPEED,
    )


def empty(grid_size: tuple[int, int] = DEFAULT_GRID_SIZE) -> SimulatorMap:
    """Vacuum everywhere and no sources."""
    return SimulatorMap(
        material_map=MaterialMap.empty(grid_size),
        settings=_settings(grid_size),
        sources=[],
    )


def double_slit(grid_size: tuple[int, int] = DEFAULT_GRID_SIZE) -> SimulatorMap:
    """Two slits in a dielectric wall at a tenth of the height.

    The slits are five cells wide, centered 7.5 cells either side of x = W/5,
    with the point source on the same column at y = H/15.
    """
    width, height = grid_size
    permittivity = np.ones((height, width), dtype=np.float32)

    ys = np.arange(height)
    wall_rows = np.abs(ys - height / 10) < WALL_HALF_THICKNESS
    permittivity[wall_rows, :] = WALL_PERMITTIVITY

    slit_center = width / 5
    xs = np.arange(width)
    left_slit = (xs >= slit_center - 10) & (xs < slit_center - 5)
    right_slit = (xs > slit_center + 5) & (xs <= slit_center + 10)
    gaps = left_slit | right_slit
    permittivity[np.ix_(wall_rows, gaps)] = 1.0

    source = PointSource(
        position=(_round_half_up(width / 5), _round_half_up(height / 15)),
        amplitude=SOURCE_AMPLITUDE,
        frequency=SOURCE_FREQUENCY,
    )
    return SimulatorMap(
        material_map=MaterialMap(permittivity, np.ones_like(permittivity)),
        settings=_settings(grid_size),
        sources=[source],
    )


def fiber_optics(grid_size: tuple[int, int] = DEFAULT_GRID_SIZE) -> SimulatorMap:
    """A curved optical fiber with a source burst at its entrance."""
    width, height = grid_size
    permittivity = np.ones((height, width), dtype=np.float32)

    def curve_point(t: float) -> tuple[int, int]:
        bend = width / 10 * 0.5 / (2 * t + 1) * (1 - math.sin(2 * math.pi * t))
        return (_round_half_up(30 + bend), _round_half_up(30 + t * width / 3))

    for i in range(FIBER_CURVE_POINTS):
        px, py = curve_point(i / FIBER_CURVE_POINTS)
        x0, x1 = max(px - FIBER_THICKNESS, 0), min(px + FIBER_THICKNESS, width)
        y0, y1 = max(py - FIBER_THICKNESS, 0), min(py + FIBER_THICKNESS, height)
        if x0 < x1 and y0 < y1:
            permittivity[y0:y1, x0:x1] = FIBER_PERMITTIVITY

    source = PointSource(
        position=curve_point(0.0),
        amplitude=SOURCE_AMPLITUDE,
        frequency=SOURCE_FREQUENCY,
        turn_off_time=0.5,
    )
    return SimulatorMap(
        material_map=MaterialMap(permittivity, np.ones_like(permittivity)),
        settings=_settings(grid_size),
        sources=[source],
    )


PRESETS: dict[str, Callable[..., SimulatorMap]] = {
    "empty": empty,
    "double_slit": double_slit,
    "fiber_optics": fiber_optics,
}


def get_preset(name: str, grid_size: tuple[int, int] = DEFAULT_GRID_SIZE) -> SimulatorMap:
    """Build a preset map by name.

    Raises:
        KeyError: If the preset is unknown
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown preset '{name}'. Available: {sorted(PRESETS)}") from None
    return factory(grid_size)
