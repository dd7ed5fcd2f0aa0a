"""
Spectral and energy analysis of simulation output.

Probe traces are sampled once per simulation step, so their sample rate is
``1 / dt``.

Typical usage:
    >>> sim.run(steps=2000)
    >>> trace = sim.get_probe_data("center")["center"]
    >>> f = dominant_frequency(trace, sample_rate=1 / sim.dt)
"""

from typing import Literal

import numpy as np
from numpy.typing import NDArray
from scipy import signal

WindowType = Literal["hann", "hamming", "blackman", "boxcar"]


def power_spectrum(
    trace: NDArray[np.floating],
    sample_rate: float,
    window: WindowType = "hann",
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """Power spectral density of a probe trace.

    Args:
        trace: 1D time series
        sample_rate: Samples per unit time
        window: Window applied before the FFT

    Returns:
        Tuple (frequencies, power)

    Raises:
        ValueError: If the trace has fewer than two samples or the sample
            rate is not positive
    """
    trace = np.asarray(trace, dtype=np.float64)
    if trace.ndim != 1 or trace.size < 2:
        raise ValueError(f"Trace must be 1D with at least 2 samples, got shape {trace.shape}")
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")

    return signal.periodogram(trace, fs=sample_rate, window=window, detrend="constant")


def dominant_frequency(
    trace: NDArray[np.floating],
    sample_rate: float,
    window: WindowType = "hann",
) -> float:
    """Frequency carrying the most power, excluding DC.

    Example:
        >>> t = np.arange(1000) * 0.02
        >>> round(dominant_frequency(np.cos(2 * np.pi * 3 * t), 50.0), 1)
        3.0
    """
    freqs, power = power_spectrum(trace, sample_rate, window)
    if freqs.size < 2:
        return 0.0
    return float(freqs[1:][np.argmax(power[1:])])


def field_energy(
    electric: NDArray[np.floating],
    magnetic: NDArray[np.floating],
    material: NDArray[np.floating] | None = None,
) -> float:
    """Total field energy of E and H arrays of shape (height, width, 3).

    Without a material this is Σ|E|² + Σ|H|²; with one, each term is
    weighted per cell by ε and µ respectively.
    """
    electric = np.asarray(electric, dtype=np.float64)
    magnetic = np.asarray(magnetic, dtype=np.float64)
    e2 = np.sum(electric**2, axis=-1)
    h2 = np.sum(magnetic**2, axis=-1)
    if material is not None:
        material = np.asarray(material, dtype=np.float64)
        e2 = e2 * material[..., 0]
        h2 = h2 * material[..., 1]
    return float(np.sum(e2) + np.sum(h2))


def wavelength_in_cells(
    frequency: float,
    cell_size: float,
    permittivity: float = 1.0,
    permeability: float = 1.0,
) -> float:
    """Wavelength of a wave of ``frequency`` in a medium, measured in cells.

    Values below ~10 cells are poorly resolved by the scheme.
    """
    speed = 1.0 / np.sqrt(permittivity * permeability)
    return float(speed / frequency / cell_size)
