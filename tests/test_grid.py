"""Tests for grid specification and double-buffered field storage."""

import numpy as np
import pytest

from maxwell_fdtd.core.grid import (
    DEFAULT_MATERIAL,
    DoubleBuffer,
    FieldStorage,
    Grid,
)

# =============================================================================
# Grid
# =============================================================================


class TestGrid:
    def test_basic_properties(self):
        grid = Grid(width=20, height=10, cell_size=0.5)
        assert grid.size == (20, 10)
        assert grid.shape == (10, 20)
        assert grid.num_cells == 200
        assert grid.physical_extent() == (10.0, 5.0)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 5)])
    def test_rejects_non_positive_size(self, width, height):
        with pytest.raises(ValueError, match="positive"):
            Grid(width=width, height=height, cell_size=0.03)

    def test_rejects_fractional_size(self):
        with pytest.raises(ValueError, match="integer"):
            Grid(width=10.5, height=10, cell_size=0.03)

    @pytest.mark.parametrize("cell_size", [0.0, -0.1, float("nan"), float("inf")])
    def test_rejects_invalid_cell_size(self, cell_size):
        with pytest.raises(ValueError, match="Cell size"):
            Grid(width=10, height=10, cell_size=cell_size)

    def test_contains(self):
        grid = Grid(width=4, height=3, cell_size=1.0)
        assert grid.contains(0, 0)
        assert grid.contains(3, 2)
        assert not grid.contains(4, 0)
        assert not grid.contains(0, -1)

    def test_to_cell_coords(self):
        grid = Grid(width=200, height=100, cell_size=0.03)
        assert grid.to_cell_coords((0.5, 0.25)) == (99.5, 24.5)

    def test_to_cell_coords_puts_cell_centers_on_integers(self):
        grid = Grid(width=10, height=10, cell_size=0.03)
        # center of cell 4 is at 4.5 / 10 of the canvas
        assert grid.to_cell_coords((0.45, 0.45)) == pytest.approx((4.0, 4.0))
        assert grid.to_cell_coords((0.0, 1.0)) == pytest.approx((-0.5, 9.5))


# =============================================================================
# DoubleBuffer
# =============================================================================


class TestDoubleBuffer:
    def test_swap_exchanges_roles(self):
        a = np.zeros(3)
        b = np.ones(3)
        buffer = DoubleBuffer(a, b)
        assert buffer.current is a
        assert buffer.previous is b

        buffer.swap()
        assert buffer.current is b
        assert buffer.previous is a

        buffer.swap()
        assert buffer.current is a

    def test_fill_all_per_channel(self):
        buffer = DoubleBuffer(np.zeros((2, 2, 3)), np.zeros((2, 2, 3)))
        buffer.fill_all((1.0, 2.0, 3.0))
        for array in (buffer.current, buffer.previous):
            np.testing.assert_array_equal(array[0, 0], [1.0, 2.0, 3.0])


# =============================================================================
# FieldStorage
# =============================================================================


class TestFieldStorage:
    def test_allocation_shapes(self):
        storage = FieldStorage(Grid(width=8, height=5, cell_size=0.03))
        for field in (storage.electric, storage.magnetic, storage.electric_source, storage.material):
            assert field.current.shape == (5, 8, 3)
            assert field.previous.shape == (5, 8, 3)
            assert field.current.dtype == np.float32
        assert storage.coefficients.shape == (5, 8, 4)

    def test_initial_state(self):
        storage = FieldStorage(Grid(width=4, height=4, cell_size=0.03))
        assert np.all(storage.electric.current == 0)
        assert np.all(storage.magnetic.previous == 0)
        np.testing.assert_array_equal(storage.material.current[2, 3], DEFAULT_MATERIAL)
        np.testing.assert_array_equal(storage.material.previous[0, 0], DEFAULT_MATERIAL)

    def test_resize_reallocates_and_clears(self):
        storage = FieldStorage(Grid(width=4, height=4, cell_size=0.03))
        storage.electric.current[...] = 5.0
        storage.material.current[..., 0] = 7.0

        storage.resize(6, 3)

        assert storage.shape == (3, 6)
        assert storage.electric.current.shape == (3, 6, 3)
        assert np.all(storage.electric.current == 0)
        assert np.all(storage.material.current[..., 0] == 1.0)

    def test_resize_rejects_invalid(self):
        storage = FieldStorage(Grid(width=4, height=4, cell_size=0.03))
        with pytest.raises(ValueError):
            storage.resize(0, 4)

    def test_boundary_band_sources(self):
        """Band cells read from one cell inward per violated edge."""
        storage = FieldStorage(Grid(width=8, height=8, cell_size=0.03))
        mapping = {
            (int(x), int(y)): (int(sx), int(sy))
            for x, y, sx, sy in zip(
                storage.band_x, storage.band_y, storage.band_source_x, storage.band_source_y
            )
        }

        # Edges
        assert mapping[(0, 4)] == (1, 4)
        assert mapping[(1, 4)] == (2, 4)
        assert mapping[(7, 4)] == (6, 4)
        assert mapping[(4, 0)] == (4, 1)
        assert mapping[(4, 6)] == (4, 5)
        # Corners: offsets add
        assert mapping[(0, 0)] == (1, 1)
        assert mapping[(7, 7)] == (6, 6)
        # Interior cells are not in the band
        assert (3, 3) not in mapping
        assert (2, 5) not in mapping
        # 8x8 grid minus a 4x4 interior
        assert len(mapping) == 64 - 16

    def test_boundary_band_on_tiny_grid_stays_in_bounds(self):
        storage = FieldStorage(Grid(width=2, height=3, cell_size=0.03))
        assert np.all((storage.band_source_x >= 0) & (storage.band_source_x < 2))
        assert np.all((storage.band_source_y >= 0) & (storage.band_source_y < 3))
