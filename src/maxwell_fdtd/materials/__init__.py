"""Material model: per-cell (permittivity, permeability, conductivity)."""

from maxwell_fdtd.materials.base import (
    MATERIAL_CHANNELS,
    MaterialType,
    combine_material_maps,
    courant_number,
    lossy_coefficients,
    material_channel,
    validate_material,
)

__all__ = [
    "MATERIAL_CHANNELS",
    "MaterialType",
    "combine_material_maps",
    "courant_number",
    "lossy_coefficients",
    "material_channel",
    "validate_material",
]
