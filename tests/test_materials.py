"""Tests for the material model and lossy-medium coefficients."""

import numpy as np
import pytest

from maxwell_fdtd.materials import (
    combine_material_maps,
    courant_number,
    lossy_coefficients,
    material_channel,
    validate_material,
)


class TestMaterialChannel:
    def test_channels(self):
        assert material_channel("permittivity") == 0
        assert material_channel("permeability") == 1
        assert material_channel("conductivity") == 2

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown material type"):
            material_channel("density")


class TestLossyCoefficients:
    def test_lossless_vacuum(self):
        alpha, beta = lossy_coefficients(1.0, 0.0, 0.02, 0.03)
        assert alpha == pytest.approx(1.0)
        assert beta == pytest.approx(0.02 / 0.03)

    def test_formula(self):
        kappa, sigma, dt, cell_size = 4.0, 10.0, 0.02, 0.03
        c = sigma * dt / (2 * kappa)
        alpha, beta = lossy_coefficients(kappa, sigma, dt, cell_size)
        assert alpha == pytest.approx((1 - c) / (1 + c))
        assert beta == pytest.approx(dt / (kappa * cell_size) / (1 + c))

    def test_conductivity_damps(self):
        alpha, _ = lossy_coefficients(1.0, 5.0, 0.02, 0.03)
        assert 0.0 < alpha < 1.0

    def test_large_conductivity_stays_bounded(self):
        alpha, beta = lossy_coefficients(1.0, 1e6, 0.02, 0.03)
        assert -1.0 <= alpha <= 1.0
        assert beta >= 0.0

    def test_elementwise_arrays(self):
        kappa = np.array([1.0, 2.0, 4.0])
        sigma = np.zeros(3)
        alpha, beta = lossy_coefficients(kappa, sigma, 0.02, 0.03)
        np.testing.assert_allclose(alpha, 1.0)
        np.testing.assert_allclose(beta, 0.02 / (kappa * 0.03))


class TestCourantNumber:
    def test_default_settings_are_stable(self):
        courant = courant_number(0.02, 0.03)
        assert courant == pytest.approx(0.02 * np.sqrt(2) / 0.03)
        assert courant < 1.0

    def test_slower_medium_lowers_courant(self):
        assert courant_number(0.02, 0.03, min_permittivity=4.0) == pytest.approx(
            courant_number(0.02, 0.03) / 2
        )

    def test_large_dt_unstable(self):
        assert courant_number(0.05, 0.03) > 1.0


class TestValidateMaterial:
    def test_valid_material_returns_float32(self):
        material = np.ones((4, 5, 3))
        material[..., 2] = 0.0
        result = validate_material(material)
        assert result.dtype == np.float32
        assert result.shape == (4, 5, 3)

    def test_wrong_channel_count(self):
        with pytest.raises(ValueError, match="shape"):
            validate_material(np.ones((4, 4, 2)))

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="doesn't match"):
            validate_material(np.ones((4, 4, 3)), shape=(5, 4))

    def test_non_positive_permittivity(self):
        material = np.ones((2, 2, 3))
        material[0, 0, 0] = 0.0
        with pytest.raises(ValueError, match="Permittivity"):
            validate_material(material)

    def test_non_positive_permeability(self):
        material = np.ones((2, 2, 3))
        material[1, 1, 1] = -1.0
        with pytest.raises(ValueError, match="Permeability"):
            validate_material(material)

    def test_negative_conductivity(self):
        material = np.ones((2, 2, 3))
        material[0, 1, 2] = -0.5
        with pytest.raises(ValueError, match="Conductivity"):
            validate_material(material)

    def test_non_finite(self):
        material = np.ones((2, 2, 3))
        material[0, 0, 0] = np.nan
        with pytest.raises(ValueError, match="non-finite"):
            validate_material(material)


class TestCombineMaterialMaps:
    def test_conductivity_defaults_to_zero(self):
        material = combine_material_maps(np.full((3, 4), 2.0), np.ones((3, 4)))
        assert material.shape == (3, 4, 3)
        assert np.all(material[..., 0] == 2.0)
        assert np.all(material[..., 2] == 0.0)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="shapes differ"):
            combine_material_maps(np.ones((3, 4)), np.ones((4, 3)))
