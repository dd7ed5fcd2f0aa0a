"""
Grid specification and double-buffered field storage for 2D FDTD simulation.

This module provides the computational domain and the arrays that live on it:

Classes:
    Grid: Cell counts and the physical size of a cell
    DoubleBuffer: A ``current``/``previous`` pair of arrays behind an index swap
    FieldStorage: All simulation fields, allocated and resized together

Array layout:
    Every field is stored as ``(height, width, channels)`` in row-major order,
    so ``field[y, x]`` is the vector sample of cell ``(x, y)``. The electric
    field E, magnetic field H and source accumulator S carry 3 channels
    (x, y, z components); the material carries (permittivity, permeability,
    conductivity); the coefficient field carries (alpha_E, beta_E, alpha_H,
    beta_H).

Swap discipline:
    A kernel reads ``previous`` and writes ``current``. Only ``current`` is
    authoritative between kernels; ``previous`` is scratch space or the input
    that was just consumed. No kernel ever writes the buffer it reads.

Example:
    >>> from maxwell_fdtd.core.grid import FieldStorage, Grid
    >>> grid = Grid(width=200, height=100, cell_size=0.03)
    >>> storage = FieldStorage(grid)
    >>> storage.electric.current.shape
    (100, 200, 3)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .backends import Backend, NumpyBackend

# Default material: vacuum-like, lossless
DEFAULT_PERMITTIVITY = 1.0
DEFAULT_PERMEABILITY = 1.0
DEFAULT_CONDUCTIVITY = 0.0
DEFAULT_MATERIAL = (DEFAULT_PERMITTIVITY, DEFAULT_PERMEABILITY, DEFAULT_CONDUCTIVITY)

FIELD_CHANNELS = 3
COEFFICIENT_CHANNELS = 4


def validate_grid_size(width: int, height: int) -> tuple[int, int]:
    """Validate grid dimensions.

    Args:
        width: Number of cells along x
        height: Number of cells along y

    Returns:
        The dimensions as a tuple of ints

    Raises:
        ValueError: If a dimension is not a positive integer
    """
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or int(value) != value:
            raise ValueError(f"Grid {name} must be an integer, got {value!r}")
        if value <= 0:
            raise ValueError(f"Grid {name} must be positive, got {value}")
    return int(width), int(height)


def validate_cell_size(cell_size: float) -> float:
    """Validate the physical size of a cell.

    Raises:
        ValueError: If the cell size is not a positive finite number
    """
    cell_size = float(cell_size)
    if not np.isfinite(cell_size) or cell_size <= 0:
        raise ValueError(f"Cell size must be positive, got {cell_size}")
    return cell_size


@dataclass
class Grid:
    """Uniform 2D grid specification.

    Args:
        width: Number of cells along x
        height: Number of cells along y
        cell_size: Physical length of one cell edge

    Attributes:
        size: ``(width, height)`` in cells
        shape: ``(height, width)`` array shape
        num_cells: Total number of cells

    Example:
        >>> grid = Grid(width=4, height=3, cell_size=0.5)
        >>> grid.physical_extent()
        (2.0, 1.5)
    """

    width: int
    height: int
    cell_size: float

    def __post_init__(self):
        self.width, self.height = validate_grid_size(self.width, self.height)
        self.cell_size = validate_cell_size(self.cell_size)

    @property
    def size(self) -> tuple[int, int]:
        """Grid size ``(width, height)`` in cells."""
        return (self.width, self.height)

    @property
    def shape(self) -> tuple[int, int]:
        """Array shape ``(height, width)``."""
        return (self.height, self.width)

    @property
    def num_cells(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    def physical_extent(self) -> tuple[float, float]:
        """Get the physical domain size.

        Returns:
            Tuple (Lx, Ly) of domain dimensions
        """
        return (self.width * self.cell_size, self.height * self.cell_size)

    def contains(self, x: int, y: int) -> bool:
        """Whether cell ``(x, y)`` lies inside the grid."""
        return 0 <= x < self.width and 0 <= y < self.height

    def to_cell_coords(self, relative_point: tuple[float, float]) -> tuple[float, float]:
        """Convert a point in relative ``[0, 1]`` coordinates to cell coordinates.

        Pointer positions arrive normalized to the canvas. Cell ``i`` is
        centered on ``i`` and spans ``[i - 0.5, i + 0.5)``, so
        :func:`~maxwell_fdtd.core.drawing.snap_to_grid` of the result is the
        cell under the pointer.
        """
        return (
            relative_point[0] * self.width - 0.5,
            relative_point[1] * self.height - 0.5,
        )


class DoubleBuffer:
    """Two equally-shaped arrays in named slots behind an index swap.

    Args:
        first: Array initially in the ``current`` slot
        second: Array initially in the ``previous`` slot
    """

    def __init__(self, first, second):
        self._buffers = [first, second]
        self._index = 0

    @property
    def current(self):
        """The authoritative buffer."""
        return self._buffers[self._index]

    @property
    def previous(self):
        """The scratch / just-consumed buffer."""
        return self._buffers[1 - self._index]

    def swap(self) -> None:
        """Exchange the roles of ``current`` and ``previous``."""
        self._index = 1 - self._index

    def fill_all(self, value: float | tuple[float, ...]) -> None:
        """Fill both buffers with a scalar or per-channel value."""
        for buffer in self._buffers:
            _fill(buffer, value)

    def __repr__(self) -> str:
        return f"DoubleBuffer(shape={tuple(self.current.shape)})"


def _fill(buffer, value: float | tuple[float, ...]) -> None:
    if isinstance(value, tuple):
        for channel, channel_value in enumerate(value):
            buffer[..., channel] = channel_value
    else:
        buffer[...] = value


class FieldStorage:
    """All fields of one simulation, allocated and resized atomically.

    Args:
        grid: Grid specification
        backend: Array backend (default: NumPy)

    Attributes:
        electric: Double-buffered E field, shape (h, w, 3)
        magnetic: Double-buffered H field, shape (h, w, 3)
        electric_source: Double-buffered source accumulator S, shape (h, w, 3)
        material: Double-buffered (permittivity, permeability, conductivity)
        coefficients: Single (alpha_E, beta_E, alpha_H, beta_H) field
    """

    def __init__(self, grid: Grid, backend: Backend | None = None):
        self.backend = backend if backend is not None else NumpyBackend()
        self._allocate(grid.width, grid.height)
        self.reset_fields()
        self.reset_materials()

    def _allocate(self, width: int, height: int) -> None:
        be = self.backend
        shape = (height, width, FIELD_CHANNELS)

        def make_field() -> DoubleBuffer:
            return DoubleBuffer(be.zeros(shape), be.zeros(shape))

        self.width = width
        self.height = height
        self.electric = make_field()
        self.magnetic = make_field()
        self.electric_source = make_field()
        self.material = make_field()
        self.coefficients = be.zeros((height, width, COEFFICIENT_CHANNELS))
        self._build_boundary_index()

    def _build_boundary_index(self) -> None:
        """Precompute mirror-cell indices for the open boundary band.

        Cells within 2 cells of an edge copy the cell one step inward per
        violated edge; offsets on opposite edges cancel on tiny grids.
        """
        ys, xs = np.indices((self.height, self.width))
        offset_x = (xs < 2).astype(np.intp) - (xs + 2 >= self.width).astype(np.intp)
        offset_y = (ys < 2).astype(np.intp) - (ys + 2 >= self.height).astype(np.intp)
        band = (
            (xs < 2) | (xs + 2 >= self.width) | (ys < 2) | (ys + 2 >= self.height)
        )

        be = self.backend
        self.band_y = be.index_array(ys[band])
        self.band_x = be.index_array(xs[band])
        self.band_source_y = be.index_array((ys + offset_y)[band])
        self.band_source_x = be.index_array((xs + offset_x)[band])
        self.cell_x = be.asarray(xs)
        self.cell_y = be.asarray(ys)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    def resize(self, width: int, height: int) -> None:
        """Reallocate every field for a new grid size.

        Field contents are not carried over; all fields come back cleared and
        the material at its defaults.
        """
        width, height = validate_grid_size(width, height)
        self._allocate(width, height)
        self.reset_fields()
        self.reset_materials()

    def reset_fields(self) -> None:
        """Zero E, H and S (both buffers)."""
        self.electric.fill_all(0.0)
        self.magnetic.fill_all(0.0)
        self.electric_source.fill_all(0.0)

    def reset_materials(self) -> None:
        """Set every cell to the default material."""
        self.material.fill_all(DEFAULT_MATERIAL)
