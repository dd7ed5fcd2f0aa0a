"""Pytest configuration for the maxwell-fdtd test suite.

Sets up process-wide state that must exist before torch is imported, and
provides the small solvers shared across test modules.
"""

import os

import numpy as np
import pytest

# =============================================================================
# OpenMP Library Conflict Resolution
# =============================================================================
# PyTorch and NumPy can each bring their own OpenMP runtime. Loading both in
# one process aborts with "OMP: Error #15" on some platforms unless duplicate
# runtimes are allowed. Must be set before torch is imported.
# =============================================================================
os.environ.setdefault("KMP_DUPLICATE_LIB_OK", "TRUE")


def pytest_configure(config):
    os.environ["KMP_DUPLICATE_LIB_OK"] = "TRUE"


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def small_solver():
    """Create a small NumPy solver for fast tests."""
    from maxwell_fdtd import FDTDSolver

    return FDTDSolver(grid_size=(32, 32), cell_size=0.03, backend="numpy")


def gaussian_bump(width: int, height: int, center: tuple[float, float], sigma: float):
    """Gaussian of unit peak on a (height, width) grid."""
    ys, xs = np.indices((height, width))
    r2 = (xs - center[0]) ** 2 + (ys - center[1]) ** 2
    return np.exp(-r2 / (2 * sigma**2)).astype(np.float32)


@pytest.fixture
def bump():
    return gaussian_bump
