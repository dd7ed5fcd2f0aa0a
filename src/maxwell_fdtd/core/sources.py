"""
Signal sources and field probes.

Sources are evaluated once per simulation step, before the magnetic
half-step, and inject into the solver's source accumulator through the
brush engine. Probes sample one field component at a cell after each step.

Example:
    >>> source = PointSource(position=(100, 33), amplitude=2e6, frequency=3.0)
    >>> source.value_at(0.0)
    -2000000.0
    >>> PointSource((0, 0), 1.0, 1.0, turn_off_time=0.5).value_at(1.0) is None
    True
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import numpy as np
from numpy.typing import NDArray

from .drawing import make_draw_square_info

if TYPE_CHECKING:
    from .solver import FDTDSolver

# Point sources paint the snapped center cell only
POINT_SOURCE_HALF_SIZE = 0.5


@dataclass
class PointSource:
    """Periodic point source driving Ez at one cell.

    The injected signal is ``-amplitude * cos(2π · frequency · t)`` while
    ``t >= 0`` and, if a turn-off time is given, ``t <= turn_off_time``.

    Args:
        position: Cell coordinates (x, y)
        amplitude: Signal amplitude
        frequency: Oscillation frequency in 1/time units
        turn_off_time: Time after which the source stops (None: never)
    """

    position: tuple[float, float]
    amplitude: float
    frequency: float
    turn_off_time: float | None = None

    type: ClassVar[str] = "point"

    def __post_init__(self):
        self.position = (float(self.position[0]), float(self.position[1]))
        for name in ("amplitude", "frequency"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"Source {name} must be finite, got {getattr(self, name)}")
        if self.turn_off_time is not None and math.isnan(self.turn_off_time):
            raise ValueError("Source turn_off_time must not be NaN")

    def value_at(self, t: float) -> float | None:
        """Signal value at time t, or None while the source is inactive."""
        if t < 0:
            return None
        if self.turn_off_time is not None and t > self.turn_off_time:
            return None
        return -self.amplitude * math.cos(2.0 * math.pi * self.frequency * t)

    def inject(self, solver: FDTDSolver, dt: float) -> None:
        """Inject the current signal value into the solver's source field."""
        value = self.value_at(solver.time)
        if value is None:
            return
        draw_info = make_draw_square_info(self.position, POINT_SOURCE_HALF_SIZE, value)
        solver.inject_signal(draw_info, dt)


# Closed set of source variants
Source = PointSource


@dataclass
class Probe:
    """Field recording probe at a specific cell.

    Args:
        name: Identifier for this probe
        position: Cell coordinates (x, y)
        component: Electric field component to record (0=x, 1=y, 2=z)
    """

    name: str
    position: tuple[int, int]
    component: int = 2
    data: list[float] = field(default_factory=list)

    def __post_init__(self):
        if self.component not in (0, 1, 2):
            raise ValueError(f"Probe component must be 0, 1 or 2, got {self.component}")

    def sample(self, solver: FDTDSolver) -> float:
        """Read the probed component from the solver's current E field."""
        x, y = self.position
        return float(solver.storage.electric.current[y, x, self.component])

    def record(self, value: float) -> None:
        """Record a field sample."""
        self.data.append(value)

    def get_data(self) -> NDArray[np.floating]:
        """Get recorded data as numpy array."""
        return np.array(self.data, dtype=np.float32)

    def clear(self) -> None:
        """Clear recorded data."""
        self.data.clear()
