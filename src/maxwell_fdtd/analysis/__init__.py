"""Post-processing and analysis tools."""

# Probe spectra and field energy
from maxwell_fdtd.analysis.spectrum import (
    dominant_frequency,
    field_energy,
    power_spectrum,
    wavelength_in_cells,
)

__all__ = [
    "dominant_frequency",
    "field_energy",
    "power_spectrum",
    "wavelength_in_cells",
]
