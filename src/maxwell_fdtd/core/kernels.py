"""Data-parallel compute kernels for the 2D FDTD solver.

Each kernel is a whole-grid operation that reads its input buffers and writes
exactly one output buffer. Inputs and output are always distinct arrays (the
caller passes ``previous`` buffers as inputs and a ``current`` buffer as
output), so every cell update within a kernel is independent of every other.

Kernels are written against the small array API shared by NumPy arrays and
torch tensors; module-level operations go through the backend object.

Grid layout (staggered Yee grid, arrays indexed ``[y, x, component]``):
- E[y, x] at integer positions (x, y)
- H[y, x] offset by +1/2 cell in x and y

Out-of-bounds neighbours read as zero.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from maxwell_fdtd.materials.base import lossy_coefficients

# Source accumulator keeps 0.1^dt of its value per electric step
SOURCE_DECAY_BASE = 0.1


class Kernel(Enum):
    """The fixed set of solver kernels."""

    ALPHA_BETA = "alpha_beta"
    INJECT_SOURCE = "inject_source"
    DECAY_SOURCE = "decay_source"
    UPDATE_ELECTRIC = "update_electric"
    UPDATE_MAGNETIC = "update_magnetic"
    DRAW_SQUARE = "draw_square"
    DRAW_ELLIPSE = "draw_ellipse"


def neighbor(backend, array, dx: int, dy: int):
    """Return ``array`` sampled at ``(x + dx, y + dy)`` with zero outside.

    Args:
        backend: Array backend
        array: 2D array indexed [y, x]
        dx: x offset (-1, 0 or 1)
        dy: y offset (-1, 0 or 1)
    """
    out = backend.zeros_like(array)
    height, width = array.shape[0], array.shape[1]

    src_y = slice(max(dy, 0), height + min(dy, 0))
    dst_y = slice(max(-dy, 0), height + min(-dy, 0))
    src_x = slice(max(dx, 0), width + min(dx, 0))
    dst_x = slice(max(-dx, 0), width + min(-dx, 0))

    out[dst_y, dst_x] = array[src_y, src_x]
    return out


def alpha_beta(backend, out, material, dt: float, cell_size: float) -> None:
    """Compute (alpha_E, beta_E, alpha_H, beta_H) for every cell.

    The electric update uses permittivity as its medium constant, the
    magnetic update uses permeability; both are damped by the conductivity.
    """
    permittivity = material[..., 0]
    permeability = material[..., 1]
    conductivity = material[..., 2]

    alpha_e, beta_e = lossy_coefficients(permittivity, conductivity, dt, cell_size)
    alpha_h, beta_h = lossy_coefficients(permeability, conductivity, dt, cell_size)

    out[..., 0] = alpha_e
    out[..., 1] = beta_e
    out[..., 2] = alpha_h
    out[..., 3] = beta_h


def inject_source(backend, out, field, source, dt: float) -> None:
    """``out = field + source * dt``."""
    out[...] = field + source * dt


def decay_source(backend, out, source, dt: float) -> None:
    """``out = source * 0.1^dt``."""
    out[...] = source * (SOURCE_DECAY_BASE**dt)


def _apply_open_boundary(out, previous, boundary) -> None:
    """Copy the previous value of the next cell inward into the boundary band."""
    band_y, band_x, source_y, source_x = boundary
    out[band_y, band_x] = previous[source_y, source_x]


def update_electric(
    backend, out, electric, magnetic, coefficients, boundary=None
) -> None:
    """Leapfrog update of E from the curl of H.

    Args:
        backend: Array backend
        out: Output E buffer
        electric: Previous E
        magnetic: Current H
        coefficients: (alpha_E, beta_E, alpha_H, beta_H) field
        boundary: Open-boundary band indices, or None for a reflective edge
    """
    alpha = coefficients[..., 0]
    beta = coefficients[..., 1]

    hx = magnetic[..., 0]
    hy = magnetic[..., 1]
    hz = magnetic[..., 2]

    hx_y_minus = neighbor(backend, hx, 0, -1)
    hy_x_minus = neighbor(backend, hy, -1, 0)
    hz_x_minus = neighbor(backend, hz, -1, 0)
    hz_y_minus = neighbor(backend, hz, 0, -1)

    # d_z terms vanish in 2D
    out[..., 0] = alpha * electric[..., 0] + beta * (hz - hz_y_minus)
    out[..., 1] = alpha * electric[..., 1] - beta * (hz - hz_x_minus)
    out[..., 2] = alpha * electric[..., 2] + beta * (
        (hy - hy_x_minus) - (hx - hx_y_minus)
    )

    if boundary is not None:
        _apply_open_boundary(out, electric, boundary)


def update_magnetic(
    backend, out, electric, magnetic, coefficients, boundary=None
) -> None:
    """Leapfrog update of H from the curl of E.

    Args:
        backend: Array backend
        out: Output H buffer
        electric: Current E
        magnetic: Previous H
        coefficients: (alpha_E, beta_E, alpha_H, beta_H) field
        boundary: Open-boundary band indices, or None for a reflective edge
    """
    alpha = coefficients[..., 2]
    beta = coefficients[..., 3]

    ex = electric[..., 0]
    ey = electric[..., 1]
    ez = electric[..., 2]

    ex_y_plus = neighbor(backend, ex, 0, 1)
    ey_x_plus = neighbor(backend, ey, 1, 0)
    ez_x_plus = neighbor(backend, ez, 1, 0)
    ez_y_plus = neighbor(backend, ez, 0, 1)

    out[..., 0] = alpha * magnetic[..., 0] - beta * (ez_y_plus - ez)
    out[..., 1] = alpha * magnetic[..., 1] + beta * (ez_x_plus - ez)
    out[..., 2] = alpha * magnetic[..., 2] - beta * (
        (ey_x_plus - ey) - (ex_y_plus - ex)
    )

    if boundary is not None:
        _apply_open_boundary(out, magnetic, boundary)


def _blend(backend, out, texture, within, value, keep) -> None:
    for channel in range(out.shape[-1]):
        old = texture[..., channel]
        out[..., channel] = backend.where(
            within, value[channel] + keep[channel] * old, old
        )


def draw_square(
    backend, out, texture, cell_x, cell_y, center, half_size, value, keep
) -> None:
    """Paint cells whose distance to ``center`` is below ``half_size`` on both axes.

    Included cells become ``value + keep * old``; others keep ``old``.

    Args:
        backend: Array backend
        out: Output buffer
        texture: Previous buffer
        cell_x, cell_y: Per-cell index arrays
        center: Snapped cell index (x, y)
        half_size: Half extent (x, y) in cells
        value: Per-channel values
        keep: Per-channel keep factors (0 overwrite, 1 add)
    """
    within = (abs(cell_x - center[0]) < half_size[0]) & (
        abs(cell_y - center[1]) < half_size[1]
    )
    _blend(backend, out, texture, within, value, keep)


def draw_ellipse(
    backend, out, texture, cell_x, cell_y, center, radius, value, keep
) -> None:
    """Paint cells inside the ellipse around ``center``.

    A cell is inside when ``(dx/rx)^2 + (dy/ry)^2 <= 1``. Sub-cell radii use
    a threshold of 2 so that the center cell is always painted.
    """
    dx = (cell_x - center[0]) / radius[0]
    dy = (cell_y - center[1]) / radius[1]
    threshold = 2.0 if radius[0] < 1.0 or radius[1] < 1.0 else 1.0
    within = dx * dx + dy * dy <= threshold
    _blend(backend, out, texture, within, value, keep)


KERNELS: dict[Kernel, Callable[..., None]] = {
    Kernel.ALPHA_BETA: alpha_beta,
    Kernel.INJECT_SOURCE: inject_source,
    Kernel.DECAY_SOURCE: decay_source,
    Kernel.UPDATE_ELECTRIC: update_electric,
    Kernel.UPDATE_MAGNETIC: update_magnetic,
    Kernel.DRAW_SQUARE: draw_square,
    Kernel.DRAW_ELLIPSE: draw_ellipse,
}


def dispatch(kernel: Kernel, backend, out, *args, **kwargs) -> None:
    """Run ``kernel`` writing into ``out``."""
    KERNELS[kernel](backend, out, *args, **kwargs)
