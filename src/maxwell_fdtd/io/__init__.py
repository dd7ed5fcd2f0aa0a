"""Serialization formats and result files."""

from maxwell_fdtd.io.hdf5 import (
    HDF5ResultReader,
    HDF5ResultWriter,
)
from maxwell_fdtd.io.serialization import (
    LEGACY_MATERIAL_MAP_VERSION,
    MATERIAL_MAP_VERSION,
    DecodeError,
    MaterialMap,
    MaterialMapDecodeError,
    SimulatorMap,
    UnknownSourceTypeError,
    decode_material_map,
    encode_material_map,
    load_simulator_map,
    material_map_from_bytes,
    material_map_to_bytes,
    save_simulator_map,
    source_from_descriptor,
    source_to_descriptor,
)

__all__ = [
    "HDF5ResultWriter",
    "HDF5ResultReader",
    "MATERIAL_MAP_VERSION",
    "LEGACY_MATERIAL_MAP_VERSION",
    "DecodeError",
    "MaterialMapDecodeError",
    "UnknownSourceTypeError",
    "MaterialMap",
    "SimulatorMap",
    "encode_material_map",
    "decode_material_map",
    "material_map_to_bytes",
    "material_map_from_bytes",
    "source_to_descriptor",
    "source_from_descriptor",
    "save_simulator_map",
    "load_simulator_map",
]
