"""Brush descriptions for painting onto fields and materials.

A brush stroke is a shape, a center, an extent and a value. Coordinates and
extents are in cell units, with integer coordinates addressing cells directly;
fractional centers are snapped to the nearest cell index before painting.
Scalar extents apply to both axes.

Example:
    >>> info = make_draw_square_info(center=(10, 10), half_size=3, value=5.0)
    >>> info.shape
    <DrawShape.SQUARE: 'square'>
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum


class DrawShape(str, Enum):
    """Brush shapes."""

    SQUARE = "square"
    ELLIPSE = "ellipse"


def _pair(value: float | tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, numbers.Real):
        return (float(value), float(value))
    x, y = value
    return (float(x), float(y))


@dataclass(frozen=True)
class DrawSquareInfo:
    """Axis-aligned square/rectangle brush.

    Args:
        center: Brush center in cell coordinates
        half_size: Half extent (x, y) in cells; a cell is painted when its
            distance to the snapped center is below the half extent
        value: Value to paint
    """

    center: tuple[float, float]
    half_size: tuple[float, float]
    value: float

    shape = DrawShape.SQUARE

    @property
    def extent(self) -> tuple[float, float]:
        return self.half_size


@dataclass(frozen=True)
class DrawEllipseInfo:
    """Ellipse brush.

    Args:
        center: Brush center in cell coordinates
        radius: Radii (x, y) in cells
        value: Value to paint
    """

    center: tuple[float, float]
    radius: tuple[float, float]
    value: float

    shape = DrawShape.ELLIPSE

    @property
    def extent(self) -> tuple[float, float]:
        return self.radius


DrawInfo = DrawSquareInfo | DrawEllipseInfo


def make_draw_square_info(
    center: tuple[float, float],
    half_size: float | tuple[float, float],
    value: float,
) -> DrawSquareInfo:
    """Create a square brush; a scalar half size applies to both axes."""
    return DrawSquareInfo(center=_pair(center), half_size=_pair(half_size), value=float(value))


def make_draw_ellipse_info(
    center: tuple[float, float],
    radius: float | tuple[float, float],
    value: float,
) -> DrawEllipseInfo:
    """Create an ellipse brush; a scalar radius gives a circle."""
    return DrawEllipseInfo(center=_pair(center), radius=_pair(radius), value=float(value))


def snap_to_grid(center: tuple[float, float], cell_size: float = 1.0) -> tuple[int, int]:
    """Snap a point to the nearest cell index.

    Subtracts the residual ``center mod cell_size`` and rounds up when the
    residual exceeds half a cell (exact halves round down).

    Args:
        center: Point in the same units as ``cell_size``
        cell_size: Size of one cell (1 for cell coordinates)

    Returns:
        Cell index (x, y)

    Example:
        >>> snap_to_grid((3.4, 3.6))
        (3, 4)
    """
    snapped = []
    for coordinate in center:
        residual = math.fmod(coordinate, cell_size)
        if residual < 0:
            residual += cell_size
        index = round((coordinate - residual) / cell_size)
        if residual > 0.5 * cell_size:
            index += 1
        snapped.append(int(index))
    return (snapped[0], snapped[1])
