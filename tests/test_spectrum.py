"""Tests for spectral and energy analysis helpers."""

import numpy as np
import pytest

from maxwell_fdtd.analysis import (
    dominant_frequency,
    field_energy,
    power_spectrum,
    wavelength_in_cells,
)


class TestPowerSpectrum:
    def test_dominant_frequency_of_cosine(self):
        t = np.arange(1000) / 50.0
        trace = np.cos(2 * np.pi * 3.0 * t)
        assert dominant_frequency(trace, sample_rate=50.0) == pytest.approx(3.0)

    def test_ignores_dc_offset(self):
        t = np.arange(1000) / 50.0
        trace = 10.0 + 0.1 * np.sin(2 * np.pi * 5.0 * t)
        assert dominant_frequency(trace, sample_rate=50.0) == pytest.approx(5.0)

    def test_frequency_axis(self):
        freqs, power = power_spectrum(np.random.default_rng(0).normal(size=100), 10.0)
        assert freqs[0] == 0.0
        assert freqs[-1] == pytest.approx(5.0)
        assert power.shape == freqs.shape

    @pytest.mark.parametrize("trace", [np.zeros(1), np.zeros((4, 4))])
    def test_rejects_bad_trace(self, trace):
        with pytest.raises(ValueError, match="at least 2 samples"):
            power_spectrum(trace, 10.0)

    def test_rejects_bad_sample_rate(self):
        with pytest.raises(ValueError, match="Sample rate"):
            power_spectrum(np.zeros(10), 0.0)


class TestFieldEnergy:
    def test_unweighted(self):
        electric = np.zeros((4, 4, 3))
        magnetic = np.zeros((4, 4, 3))
        electric[1, 1] = [1.0, 2.0, 0.0]
        magnetic[2, 2] = [0.0, 0.0, 3.0]
        assert field_energy(electric, magnetic) == pytest.approx(5.0 + 9.0)

    def test_material_weighted(self):
        electric = np.ones((2, 2, 3))
        magnetic = np.ones((2, 2, 3))
        material = np.zeros((2, 2, 3))
        material[..., 0] = 2.0
        material[..., 1] = 0.5
        assert field_energy(electric, magnetic, material) == pytest.approx(4 * (6.0 + 1.5))


class TestWavelength:
    def test_vacuum(self):
        assert wavelength_in_cells(3.0, 0.03) == pytest.approx(1 / 3.0 / 0.03)

    def test_dielectric_shortens_wavelength(self):
        assert wavelength_in_cells(3.0, 0.03, permittivity=4.0) == pytest.approx(
            wavelength_in_cells(3.0, 0.03) / 2
        )
