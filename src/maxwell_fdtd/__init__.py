"""
Maxwell FDTD - 2D electromagnetic wave simulation.

Main exports:
- FDTDSolver: Lossy-medium 2D Yee-grid stepper
- Simulation: Session driving a solver with sources, probes and output
- SimulationSettings: dt, grid size, cell size, speed, boundary
- PointSource, Probe: Periodic point source and field probe
- make_draw_square_info, make_draw_ellipse_info: Brush strokes for
  painting material and injecting signals
- MaterialMap, SimulatorMap: Serializable material and full simulator state
"""

from maxwell_fdtd.core.backends import get_backend, get_gpu_info, has_gpu_support
from maxwell_fdtd.core.drawing import (
    DrawEllipseInfo,
    DrawShape,
    DrawSquareInfo,
    make_draw_ellipse_info,
    make_draw_square_info,
)
from maxwell_fdtd.core.grid import Grid
from maxwell_fdtd.core.solver import FDTDSolver
from maxwell_fdtd.core.sources import PointSource, Probe
from maxwell_fdtd.config import SimulationSettings
from maxwell_fdtd.io.serialization import (
    DecodeError,
    MaterialMap,
    MaterialMapDecodeError,
    SimulatorMap,
    UnknownSourceTypeError,
    decode_material_map,
    encode_material_map,
    load_simulator_map,
    save_simulator_map,
)
from maxwell_fdtd.core.session import RenderFrame, Simulation
from maxwell_fdtd.maps import PRESETS

# Submodules for more specific imports
from . import analysis, io, maps, materials

__version__ = "0.1.0"

__all__ = [
    # Core solver
    "FDTDSolver",
    "Grid",
    "Simulation",
    "SimulationSettings",
    "RenderFrame",
    "PointSource",
    "Probe",
    "get_backend",
    "get_gpu_info",
    "has_gpu_support",
    # Brushes
    "DrawShape",
    "DrawSquareInfo",
    "DrawEllipseInfo",
    "make_draw_square_info",
    "make_draw_ellipse_info",
    # Serialization
    "MaterialMap",
    "SimulatorMap",
    "DecodeError",
    "MaterialMapDecodeError",
    "UnknownSourceTypeError",
    "encode_material_map",
    "decode_material_map",
    "save_simulator_map",
    "load_simulator_map",
    "PRESETS",
    # Submodules
    "analysis",
    "io",
    "maps",
    "materials",
]
