"""
Material model for lossy, non-dispersive 2D electromagnetic media.

Every cell carries a material triple:

    permittivity ε  (> 0, default 1)
    permeability µ  (> 0, default 1)
    conductivity σ  (>= 0, default 0)

Lossy-medium update coefficients:
    For a field with medium constant κ (κ = ε for the electric update,
    κ = µ for the magnetic update) and damping σ, the semi-implicit
    discretization of ∂F/∂t = (1/κ)(curl - σF) gives

        c     = σ·Δt / (2κ)
        alpha = (1 - c) / (1 + c)             fraction of the old value kept
        beta  = Δt / (κ·cellSize) / (1 + c)    coupling to the curl term

    This stays stable for large σ where forward-Euler damping does not.

Stability:
    In 2D the leapfrog scheme needs Δt·v·√2 <= cellSize, with wave speed
    v = 1/√(εµ). The slowest admissible Δt is set by the fastest medium
    (smallest εµ).
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import NDArray

MaterialType = Literal["permittivity", "permeability", "conductivity"]

MATERIAL_CHANNELS: dict[str, int] = {
    "permittivity": 0,
    "permeability": 1,
    "conductivity": 2,
}


def material_channel(material_type: MaterialType) -> int:
    """Get the material-field channel index for a material type.

    Raises:
        ValueError: If the material type is unknown
    """
    try:
        return MATERIAL_CHANNELS[material_type]
    except KeyError:
        raise ValueError(
            f"Unknown material type '{material_type}'. "
            f"Valid types: {list(MATERIAL_CHANNELS.keys())}"
        ) from None


def lossy_coefficients(kappa, sigma, dt: float, cell_size: float):
    """Compute lossy-medium alpha/beta update coefficients.

    Works element-wise on scalars, NumPy arrays and torch tensors.

    Args:
        kappa: Medium constant (ε for electric, µ for magnetic), > 0
        sigma: Conductivity, >= 0
        dt: Timestep
        cell_size: Physical cell size

    Returns:
        Tuple (alpha, beta)

    Example:
        >>> lossy_coefficients(1.0, 0.0, 0.02, 0.03)
        (1.0, 0.6666666666666667)
    """
    c = sigma * dt / (2.0 * kappa)
    d = 1.0 / (1.0 + c)
    alpha = (1.0 - c) * d
    beta = dt / (kappa * cell_size) * d
    return alpha, beta


def courant_number(
    dt: float, cell_size: float, min_permittivity: float = 1.0, min_permeability: float = 1.0
) -> float:
    """Courant number of the 2D scheme; values above 1 are unstable.

    Args:
        dt: Timestep
        cell_size: Physical cell size
        min_permittivity: Smallest permittivity on the grid
        min_permeability: Smallest permeability on the grid
    """
    speed = 1.0 / np.sqrt(min_permittivity * min_permeability)
    return float(dt * speed * np.sqrt(2.0) / cell_size)


def validate_material(material: NDArray[np.floating], shape: tuple[int, int] | None = None) -> NDArray[np.float32]:
    """Validate a material array.

    Args:
        material: Array of shape (height, width, 3) holding
            (permittivity, permeability, conductivity) per cell
        shape: Expected (height, width), if any

    Returns:
        The material as a contiguous float32 array

    Raises:
        ValueError: On wrong shape, non-finite values, non-positive
            permittivity/permeability or negative conductivity
    """
    material = np.asarray(material, dtype=np.float32)
    if material.ndim != 3 or material.shape[2] != 3:
        raise ValueError(
            f"Material must have shape (height, width, 3), got {material.shape}"
        )
    if shape is not None and material.shape[:2] != tuple(shape):
        raise ValueError(
            f"Material shape {material.shape[:2]} doesn't match grid shape {tuple(shape)}"
        )
    if not np.all(np.isfinite(material)):
        raise ValueError("Material contains non-finite values")
    if np.any(material[..., 0] <= 0):
        raise ValueError("Permittivity must be positive everywhere")
    if np.any(material[..., 1] <= 0):
        raise ValueError("Permeability must be positive everywhere")
    if np.any(material[..., 2] < 0):
        raise ValueError("Conductivity must be non-negative everywhere")
    return np.ascontiguousarray(material)


def combine_material_maps(
    permittivity: NDArray[np.floating],
    permeability: NDArray[np.floating],
    conductivity: NDArray[np.floating] | None = None,
) -> NDArray[np.float32]:
    """Stack per-component maps into one (height, width, 3) material array.

    Args:
        permittivity: Array of shape (height, width)
        permeability: Array of shape (height, width)
        conductivity: Array of shape (height, width), zero if omitted

    Raises:
        ValueError: If the component shapes differ
    """
    permittivity = np.asarray(permittivity, dtype=np.float32)
    permeability = np.asarray(permeability, dtype=np.float32)
    if conductivity is None:
        conductivity = np.zeros_like(permittivity)
    conductivity = np.asarray(conductivity, dtype=np.float32)

    if not (permittivity.shape == permeability.shape == conductivity.shape):
        raise ValueError(
            "Material component shapes differ: "
            f"permittivity {permittivity.shape}, permeability {permeability.shape}, "
            f"conductivity {conductivity.shape}"
        )
    if permittivity.ndim != 2:
        raise ValueError(f"Material components must be 2D, got {permittivity.ndim}D")

    return np.stack([permittivity, permeability, conductivity], axis=-1)
