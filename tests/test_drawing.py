"""Tests for brush descriptions, grid snapping and the draw kernels."""

import dataclasses

import numpy as np
import pytest

from maxwell_fdtd import FDTDSolver
from maxwell_fdtd.core.drawing import (
    DrawShape,
    make_draw_ellipse_info,
    make_draw_square_info,
    snap_to_grid,
)


class TestDrawInfo:
    def test_square_scalar_size_broadcasts(self):
        info = make_draw_square_info((4, 5), 3, 2.0)
        assert info.shape == DrawShape.SQUARE
        assert info.center == (4.0, 5.0)
        assert info.half_size == (3.0, 3.0)
        assert info.extent == (3.0, 3.0)
        assert info.value == 2.0

    def test_ellipse_per_axis_radius(self):
        info = make_draw_ellipse_info((1.5, 2.5), (4, 2), -1.0)
        assert info.shape == DrawShape.ELLIPSE
        assert info.radius == (4.0, 2.0)

    def test_numpy_scalars_accepted(self):
        info = make_draw_square_info((np.int64(3), np.int64(3)), np.float32(2.0), np.float64(1.0))
        assert info.half_size == (2.0, 2.0)

    def test_frozen(self):
        info = make_draw_square_info((0, 0), 1, 1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.value = 3.0


class TestSnapToGrid:
    @pytest.mark.parametrize(
        "center,expected",
        [
            ((3.0, 7.0), (3, 7)),
            ((3.4, 3.6), (3, 4)),
            ((3.5, 2.5), (3, 2)),
            ((0.51, 0.49), (1, 0)),
            ((-0.7, -0.2), (-1, 0)),
        ],
    )
    def test_cell_units(self, center, expected):
        assert snap_to_grid(center) == expected

    def test_physical_units(self):
        assert snap_to_grid((0.10, 0.05), cell_size=0.03) == (3, 2)


# =============================================================================
# Draw containment through the solver
# =============================================================================


def _changed_cells(before, after, channel):
    return {
        (int(x), int(y)) for y, x in zip(*np.nonzero(before[..., channel] != after[..., channel]))
    }


class TestDrawContainment:
    def test_square_paints_chebyshev_neighbourhood(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_square_info((10, 12), 3, 5.0))
        after = small_solver.get_material()

        changed = _changed_cells(before, after, 0)
        expected = {(x, y) for x in range(8, 13) for y in range(10, 15)}
        assert changed == expected
        assert np.all(after[12, 10] == [5.0, 1.0, 0.0])

    def test_rectangle_uses_per_axis_extent(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_square_info((16, 16), (4, 1), 3.0))
        changed = _changed_cells(before, small_solver.get_material(), 0)
        assert changed == {(x, 16) for x in range(13, 20)}

    def test_ellipse_paints_disc(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_ellipse_info((16, 16), 3, 4.0))
        changed = _changed_cells(before, small_solver.get_material(), 0)

        expected = {
            (x, y)
            for x in range(32)
            for y in range(32)
            if ((x - 16) / 3) ** 2 + ((y - 16) / 3) ** 2 <= 1
        }
        assert changed == expected
        assert len(changed) == 29

    def test_sub_cell_ellipse_paints_center(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_ellipse_info((5, 6), 0.5, 4.0))
        assert _changed_cells(before, small_solver.get_material(), 0) == {(5, 6)}

    def test_fractional_center_snaps(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_square_info((5.7, 6.2), 0.5, 4.0))
        assert _changed_cells(before, small_solver.get_material(), 0) == {(6, 6)}

    def test_brush_partly_outside_grid(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_square_info((0, 0), 2, 4.0))
        changed = _changed_cells(before, small_solver.get_material(), 0)
        assert changed == {(0, 0), (1, 0), (0, 1), (1, 1)}

    def test_non_positive_extent_paints_nothing(self, small_solver):
        before = small_solver.get_material()
        small_solver.draw_material("permittivity", make_draw_ellipse_info((5, 5), 0, 4.0))
        np.testing.assert_array_equal(before, small_solver.get_material())

    def test_other_channels_untouched(self, small_solver):
        small_solver.draw_material("conductivity", make_draw_square_info((10, 10), 2, 0.5))
        small_solver.draw_material("permeability", make_draw_square_info((10, 10), 2, 3.0))
        material = small_solver.get_material()
        np.testing.assert_allclose(material[10, 10], [1.0, 3.0, 0.5])

    def test_signal_painted_into_source_ez(self):
        solver = FDTDSolver(grid_size=(16, 16), backend="numpy")
        solver.inject_signal(make_draw_square_info((4, 4), 1, 2.0), dt=0.5)
        source = solver.get_source_field()
        assert source[4, 4, 2] == pytest.approx(1.0)
        assert np.all(source[..., :2] == 0)
        assert np.count_nonzero(source[..., 2]) == 1


class TestPointerToCell:
    @pytest.mark.parametrize("relative", [0.401, 0.45, 0.47, 0.499])
    def test_pointer_inside_cell_paints_that_cell(self, relative):
        solver = FDTDSolver(grid_size=(10, 10), backend="numpy")
        center = solver.grid.to_cell_coords((relative, relative))
        assert snap_to_grid(center) == (4, 4)

        before = solver.get_material()
        solver.draw_material("permittivity", make_draw_square_info(center, 0.5, 4.0))
        assert _changed_cells(before, solver.get_material(), 0) == {(4, 4)}

    def test_pointer_past_cell_edge_paints_next_cell(self):
        solver = FDTDSolver(grid_size=(10, 10), backend="numpy")
        center = solver.grid.to_cell_coords((0.51, 0.05))
        assert snap_to_grid(center) == (5, 0)
