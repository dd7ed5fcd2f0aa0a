"""Core solver: grid, kernels, stepper, brushes and sources."""

from maxwell_fdtd.core.backends import (
    NumpyBackend,
    TorchBackend,
    get_backend,
    get_gpu_info,
    has_gpu_support,
    has_torch,
)
from maxwell_fdtd.core.drawing import (
    DrawEllipseInfo,
    DrawShape,
    DrawSquareInfo,
    make_draw_ellipse_info,
    make_draw_square_info,
    snap_to_grid,
)
from maxwell_fdtd.core.grid import DoubleBuffer, FieldStorage, Grid
from maxwell_fdtd.core.kernels import Kernel
from maxwell_fdtd.core.solver import FDTDSolver
from maxwell_fdtd.core.sources import PointSource, Probe, Source

__all__ = [
    "NumpyBackend",
    "TorchBackend",
    "get_backend",
    "get_gpu_info",
    "has_gpu_support",
    "has_torch",
    "DrawShape",
    "DrawSquareInfo",
    "DrawEllipseInfo",
    "make_draw_square_info",
    "make_draw_ellipse_info",
    "snap_to_grid",
    "Grid",
    "DoubleBuffer",
    "FieldStorage",
    "Kernel",
    "FDTDSolver",
    "PointSource",
    "Probe",
    "Source",
]
