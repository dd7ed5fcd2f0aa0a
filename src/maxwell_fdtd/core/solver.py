"""
2D electromagnetic FDTD solver on a staggered Yee grid.

Implements the lossy-medium leapfrog scheme for the full vector fields
E = (Ex, Ey, Ez) and H = (Hx, Hy, Hz) with in-plane derivatives only:

    ∂E/∂t = (1/ε)(curl H - σE)
    ∂H/∂t = -(1/µ)(curl E + σH)

Each update is semi-implicit in the damping term, giving per-cell
coefficients (see :mod:`maxwell_fdtd.materials.base`)

    F' = alpha · F + beta · (discrete curl)

The electric and magnetic half-steps are exposed separately; callers
alternate ``step_magnetic`` and ``step_electric`` and each half-step
advances simulation time by ``dt / 2``.

Source accumulator:
    Injected signals are collected in a separate field S. Every electric
    step adds ``S · dt`` to E and then decays S by ``0.1^dt``, so a single
    brush stroke keeps driving the field for a short while.

Boundaries:
    - Reflective: plain update, neighbours outside the grid read as zero
    - Open (default): cells within two cells of an edge take the previous
      value of the cell one step further inward, a cheap first-order
      absorbing condition

Example:
    >>> solver = FDTDSolver(grid_size=(200, 200), cell_size=0.03)
    >>> solver.inject_signal(make_draw_square_info((100, 100), 0.5, 1.0), dt=0.02)
    >>> for _ in range(100):
    ...     solver.step_magnetic(0.02)
    ...     solver.step_electric(0.02)
    >>> round(solver.time, 6)
    2.0
"""

from __future__ import annotations

import warnings
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from maxwell_fdtd.materials.base import (
    MaterialType,
    combine_material_maps,
    courant_number,
    material_channel,
    validate_material,
)

from .backends import Backend, BackendName, get_backend
from .drawing import DrawInfo, DrawShape, snap_to_grid
from .grid import (
    DEFAULT_MATERIAL,
    DoubleBuffer,
    FieldStorage,
    Grid,
    validate_cell_size,
    validate_grid_size,
)
from .kernels import Kernel, dispatch

DEFAULT_GRID_SIZE = (500, 500)
DEFAULT_CELL_SIZE = 0.03


def validate_dt(dt: float) -> float:
    """Validate a timestep.

    Raises:
        ValueError: If dt is not a positive finite number
    """
    dt = float(dt)
    if not np.isfinite(dt) or dt <= 0:
        raise ValueError(f"Timestep dt must be positive, got {dt}")
    return dt


class FDTDSolver:
    """2D lossy-medium electromagnetic FDTD solver.

    Args:
        grid_size: Grid dimensions (width, height) in cells
        cell_size: Physical size of one cell
        reflective_boundary: If True, waves reflect at the grid edge;
            otherwise the open (absorbing) boundary is used
        backend: Array backend - "auto", "numpy" or "torch", or a backend
            instance
            - "auto": torch on a GPU device if available, else NumPy
            - "numpy": Force NumPy on the CPU
            - "torch": PyTorch (raises ImportError if not installed)
        warn_energy_drift: If True, ``check_energy_drift`` emits a warning
            when recorded energy changes by more than the threshold
        energy_drift_threshold: Fractional drift threshold (default: 1%)

    Attributes:
        storage: Field storage holding E, H, S, material and coefficients
        coefficient_updates: Number of times the alpha/beta coefficients
            were recomputed

    Example:
        >>> solver = FDTDSolver(grid_size=(64, 64), cell_size=0.03)
        >>> solver.draw_material("permittivity", make_draw_ellipse_info((32, 32), 8, 4.0))
        >>> solver.step_magnetic(0.02)
        >>> solver.step_electric(0.02)
    """

    def __init__(
        self,
        grid_size: tuple[int, int] = DEFAULT_GRID_SIZE,
        cell_size: float = DEFAULT_CELL_SIZE,
        reflective_boundary: bool = False,
        backend: BackendName | Backend = "auto",
        warn_energy_drift: bool = False,
        energy_drift_threshold: float = 0.01,
    ):
        width, height = validate_grid_size(*grid_size)
        self._grid = Grid(width=width, height=height, cell_size=cell_size)

        if isinstance(backend, str):
            backend = get_backend(backend)
        self.backend = backend
        self.storage = FieldStorage(self._grid, self.backend)

        self._reflective_boundary = bool(reflective_boundary)
        self._time = 0.0

        # Coefficient cache: valid for _coefficient_dt unless dirty
        self._coefficient_dt: float | None = None
        self._coefficients_dirty = True
        self.coefficient_updates = 0

        # Energy tracking
        self._energy_history: list[tuple[int, float, float]] = []
        self._warn_energy_drift = warn_energy_drift
        self._energy_drift_threshold = energy_drift_threshold

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def grid_size(self) -> tuple[int, int]:
        """Grid size (width, height) in cells."""
        return self._grid.size

    @property
    def cell_size(self) -> float:
        return self._grid.cell_size

    @property
    def reflective_boundary(self) -> bool:
        return self._reflective_boundary

    @property
    def time(self) -> float:
        """Simulation time; each half-step adds dt/2."""
        return self._time

    @property
    def coefficient_dt(self) -> float | None:
        """Timestep the cached coefficients were computed for (None if never)."""
        return self._coefficient_dt

    @property
    def using_gpu(self) -> bool:
        return self.backend.name == "torch" and self.backend.device != "cpu"

    # =========================================================================
    # Stepping
    # =========================================================================

    def _ensure_coefficients(self, dt: float) -> None:
        """Recompute alpha/beta when dt changed or material/cell size is dirty."""
        if not self._coefficients_dirty and self._coefficient_dt == dt:
            return

        dispatch(
            Kernel.ALPHA_BETA,
            self.backend,
            self.storage.coefficients,
            self.storage.material.current,
            dt,
            self.cell_size,
        )
        self._coefficient_dt = dt
        self._coefficients_dirty = False
        self.coefficient_updates += 1
        self._check_courant(dt)

    def courant_number(self, dt: float) -> float:
        """Courant number of ``dt`` for the fastest medium currently drawn."""
        material = self.storage.material.current
        min_permittivity = float(material[..., 0].min())
        min_permeability = float(material[..., 1].min())
        return courant_number(dt, self.cell_size, min_permittivity, min_permeability)

    def _check_courant(self, dt: float) -> None:
        courant = self.courant_number(dt)
        if courant > 1.0:
            warnings.warn(
                f"Courant number {courant:.3f} exceeds 1 (dt={dt}, "
                f"cell_size={self.cell_size}); the simulation is unstable. "
                "Reduce dt or increase the cell size.",
                UserWarning,
                stacklevel=3,
            )

    def _boundary(self):
        if self._reflective_boundary:
            return None
        s = self.storage
        return (s.band_y, s.band_x, s.band_source_y, s.band_source_x)

    def step_electric(self, dt: float) -> None:
        """Advance E by one half-step.

        Applies and decays the source accumulator, then updates E from the
        curl of the current H.

        Args:
            dt: Timestep
        """
        dt = validate_dt(dt)
        self._ensure_coefficients(dt)

        be = self.backend
        electric = self.storage.electric
        source = self.storage.electric_source

        electric.swap()
        source.swap()
        dispatch(Kernel.INJECT_SOURCE, be, electric.current, electric.previous, source.previous, dt)

        electric.swap()
        dispatch(Kernel.DECAY_SOURCE, be, source.current, source.previous, dt)

        dispatch(
            Kernel.UPDATE_ELECTRIC,
            be,
            electric.current,
            electric.previous,
            self.storage.magnetic.current,
            self.storage.coefficients,
            self._boundary(),
        )
        self._time += dt / 2

    def step_magnetic(self, dt: float) -> None:
        """Advance H by one half-step from the curl of the current E.

        Args:
            dt: Timestep
        """
        dt = validate_dt(dt)
        self._ensure_coefficients(dt)

        magnetic = self.storage.magnetic
        magnetic.swap()
        dispatch(
            Kernel.UPDATE_MAGNETIC,
            self.backend,
            magnetic.current,
            self.storage.electric.current,
            magnetic.previous,
            self.storage.coefficients,
            self._boundary(),
        )
        self._time += dt / 2

    # =========================================================================
    # Drawing
    # =========================================================================

    def _draw(
        self,
        target: DoubleBuffer,
        draw_info: DrawInfo,
        value: tuple[float, float, float],
        keep: tuple[float, float, float],
    ) -> None:
        extent = draw_info.extent
        if extent[0] <= 0 or extent[1] <= 0:
            return

        kernel = Kernel.DRAW_SQUARE if draw_info.shape == DrawShape.SQUARE else Kernel.DRAW_ELLIPSE
        target.swap()
        dispatch(
            kernel,
            self.backend,
            target.current,
            target.previous,
            self.storage.cell_x,
            self.storage.cell_y,
            snap_to_grid(draw_info.center),
            extent,
            value,
            keep,
        )

    def inject_signal(self, draw_info: DrawInfo, dt: float) -> None:
        """Add ``draw_info.value * dt`` to the Ez channel of the source field.

        The stroke is additive on every channel, so repeated injections at
        the same cell accumulate.

        Args:
            draw_info: Brush shape, position and signal value
            dt: Timestep
        """
        dt = validate_dt(dt)
        self._draw(
            self.storage.electric_source,
            draw_info,
            value=(0.0, 0.0, draw_info.value * dt),
            keep=(1.0, 1.0, 1.0),
        )

    def draw_material(self, material_type: MaterialType, draw_info: DrawInfo) -> None:
        """Overwrite one material channel inside the brush.

        Args:
            material_type: "permittivity", "permeability" or "conductivity"
            draw_info: Brush shape, position and material value

        Raises:
            ValueError: If the material type is unknown or the value is out
                of range for it
        """
        channel = material_channel(material_type)
        if not np.isfinite(draw_info.value):
            raise ValueError(f"Material value must be finite, got {draw_info.value}")
        if channel == 2:
            if draw_info.value < 0:
                raise ValueError(f"Conductivity must be non-negative, got {draw_info.value}")
        elif draw_info.value <= 0:
            raise ValueError(f"{material_type.capitalize()} must be positive, got {draw_info.value}")

        value = [0.0, 0.0, 0.0]
        keep = [1.0, 1.0, 1.0]
        value[channel] = draw_info.value
        keep[channel] = 0.0

        self._draw(self.storage.material, draw_info, tuple(value), tuple(keep))
        self._coefficients_dirty = True

    # =========================================================================
    # Material
    # =========================================================================

    def load_material(self, material: NDArray[np.floating]) -> None:
        """Replace the whole material field.

        Args:
            material: Array of shape (height, width, 3) holding
                (permittivity, permeability, conductivity) per cell

        Raises:
            ValueError: If the array is invalid or doesn't match the grid
        """
        material = validate_material(material, shape=self._grid.shape)
        data = self.backend.asarray(material)
        self.storage.material.current[...] = data
        self.storage.material.previous[...] = data
        self._coefficients_dirty = True

    def load_material_from_components(
        self,
        permittivity: NDArray[np.floating],
        permeability: NDArray[np.floating],
        conductivity: NDArray[np.floating] | None = None,
    ) -> None:
        """Load the material from separate per-component maps."""
        self.load_material(combine_material_maps(permittivity, permeability, conductivity))

    def get_material(self) -> NDArray[np.float32]:
        """Get a copy of the material field, shape (height, width, 3)."""
        return np.array(self.backend.to_numpy(self.storage.material.current), dtype=np.float32)

    def get_electric_field(self) -> NDArray[np.float32]:
        """Get a copy of the current E field, shape (height, width, 3)."""
        return np.array(self.backend.to_numpy(self.storage.electric.current), dtype=np.float32)

    def get_magnetic_field(self) -> NDArray[np.float32]:
        """Get a copy of the current H field, shape (height, width, 3)."""
        return np.array(self.backend.to_numpy(self.storage.magnetic.current), dtype=np.float32)

    def get_source_field(self) -> NDArray[np.float32]:
        """Get a copy of the current source accumulator, shape (height, width, 3)."""
        return np.array(
            self.backend.to_numpy(self.storage.electric_source.current), dtype=np.float32
        )

    # =========================================================================
    # Reset and reconfiguration
    # =========================================================================

    def reset_fields(self) -> None:
        """Zero E, H and the source accumulator and set time back to 0."""
        self.storage.reset_fields()
        self._time = 0.0
        self._energy_history.clear()

    def reset_materials(self) -> None:
        """Set every cell back to the default material."""
        self.storage.reset_materials()
        self._coefficients_dirty = True

    def set_grid_size(self, grid_size: tuple[int, int], preserve_material: bool = True) -> None:
        """Resize the grid.

        Fields are cleared and time reset to 0. The material is cropped or
        padded with the default material when ``preserve_material`` is set,
        otherwise reset to defaults.

        Args:
            grid_size: New (width, height) in cells
            preserve_material: Keep the overlapping part of the material

        Raises:
            ValueError: If a dimension is not a positive integer
        """
        width, height = validate_grid_size(*grid_size)
        old_material = self.get_material() if preserve_material else None

        self._grid = Grid(width=width, height=height, cell_size=self.cell_size)
        self.storage.resize(width, height)
        self._time = 0.0
        self._energy_history.clear()
        self._coefficients_dirty = True

        if old_material is not None:
            material = np.empty((height, width, 3), dtype=np.float32)
            material[...] = DEFAULT_MATERIAL
            h = min(height, old_material.shape[0])
            w = min(width, old_material.shape[1])
            material[:h, :w] = old_material[:h, :w]
            self.load_material(material)

    def set_cell_size(self, cell_size: float) -> None:
        """Change the physical cell size; clears fields and resets time.

        Raises:
            ValueError: If the cell size is not positive
        """
        self._grid.cell_size = validate_cell_size(cell_size)
        self.reset_fields()
        self._coefficients_dirty = True

    def set_reflective_boundary(self, reflective_boundary: bool) -> None:
        """Switch between reflective and open boundaries (next step onward)."""
        self._reflective_boundary = bool(reflective_boundary)

    # =========================================================================
    # Energy tracking
    # =========================================================================

    def compute_energy(self) -> float:
        """Compute the field energy Σ|E|² + Σ|H|² over the current buffers.

        For the leapfrog scheme this quantity is bounded rather than exactly
        conserved; it serves as a stability and absorption diagnostic.

        Returns:
            Field energy (dimensionless units)
        """
        be = self.backend
        electric = self.storage.electric.current
        magnetic = self.storage.magnetic.current
        return be.sum(electric * electric) + be.sum(magnetic * magnetic)

    def record_energy(self, step: int) -> float:
        """Append (step, time, energy) to the energy history."""
        energy = self.compute_energy()
        self._energy_history.append((step, self._time, energy))
        return energy

    def get_energy_history(self) -> list[tuple[int, float, float]]:
        """Get energy history recorded during simulation.

        Returns:
            List of (step, time, energy) tuples
        """
        return self._energy_history.copy()

    def energy_report(self) -> dict:
        """Generate an energy diagnostic report over the recorded history.

        Returns:
            Dict with keys:
            - initial_energy: Energy at first recorded step
            - final_energy: Energy at last recorded step
            - max_energy: Maximum energy observed
            - min_energy: Minimum energy observed
            - energy_change_percent: (final - initial) / initial * 100
            - conservation_status: "stable" | "growing" | "decaying"
            - n_samples: Number of energy samples recorded

        Raises:
            ValueError: If no energy history has been recorded
        """
        if not self._energy_history:
            raise ValueError(
                "No energy history recorded. Run with track_energy=True first."
            )

        energies = np.array([e for _, _, e in self._energy_history])
        initial_energy = energies[0]
        final_energy = energies[-1]

        if initial_energy == 0:
            energy_change_percent = 0.0 if final_energy == 0 else float("inf")
        else:
            energy_change_percent = (final_energy - initial_energy) / initial_energy * 100

        status: Literal["stable", "growing", "decaying"]
        if abs(energy_change_percent) <= 1.0:
            status = "stable"
        elif energy_change_percent > 0:
            status = "growing"
        else:
            status = "decaying"

        return {
            "initial_energy": float(initial_energy),
            "final_energy": float(final_energy),
            "max_energy": float(np.max(energies)),
            "min_energy": float(np.min(energies)),
            "energy_change_percent": float(energy_change_percent),
            "conservation_status": status,
            "n_samples": len(self._energy_history),
        }

    def check_energy_drift(self) -> None:
        """Warn when recorded energy drifted past the configured threshold."""
        if not self._warn_energy_drift or len(self._energy_history) < 2:
            return
        report = self.energy_report()
        if abs(report["energy_change_percent"]) > self._energy_drift_threshold * 100:
            warnings.warn(
                f"Energy drift detected: {report['energy_change_percent']:.2f}% change "
                f"(threshold: {self._energy_drift_threshold * 100:.1f}%). "
                f"Status: {report['conservation_status']}",
                UserWarning,
                stacklevel=2,
            )

    def __repr__(self) -> str:
        width, height = self.grid_size
        return (
            f"FDTDSolver(grid_size=({width}, {height}), cell_size={self.cell_size}, "
            f"reflective_boundary={self._reflective_boundary}, backend={self.backend.name!r})"
        )
