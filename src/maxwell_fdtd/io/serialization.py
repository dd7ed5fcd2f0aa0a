"""
Wire formats for material maps, source descriptors and simulator maps.

Material map payload:
    A flat run of little-endian float32 values

        [width, height, (ε₀, µ₀, σ₀), (ε₁, µ₁, σ₁), ...]

    in row-major order (x fastest). The legacy version 1 payload carries
    only (ε, µ) per cell; conductivity decodes as 0.

Envelope:
    Payloads travel inside a JSON-compatible envelope

        {"version": 2, "compressed": true, "data": "<base64>"}

    where ``data`` is the payload, zlib-deflated when ``compressed`` is set.

Source descriptor:
    {"type": "point", "position": [x, y], "amplitude": A, "frequency": f,
     "turnOffTime": T}   (turnOffTime optional)

Simulator map:
    {"materialMap": <envelope>, "simulationSettings": {...},
     "sourceDescriptors": [...]}

Example:
    >>> material_map = MaterialMap.empty((4, 4))
    >>> envelope = encode_material_map(material_map)
    >>> decode_material_map(envelope).shape
    (4, 4)
"""

from __future__ import annotations

import base64
import binascii
import json
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from maxwell_fdtd.config import SimulationSettings
from maxwell_fdtd.core.grid import DEFAULT_MATERIAL
from maxwell_fdtd.core.sources import PointSource, Source
from maxwell_fdtd.materials.base import combine_material_maps, validate_material

MATERIAL_MAP_VERSION = 2
LEGACY_MATERIAL_MAP_VERSION = 1

# Values per cell for each payload version
_CELL_CHANNELS = {
    LEGACY_MATERIAL_MAP_VERSION: 2,
    MATERIAL_MAP_VERSION: 3,
}

_WIRE_DTYPE = np.dtype("<f4")


# =============================================================================
# Errors
# =============================================================================


class DecodeError(ValueError):
    """Raised when serialized data cannot be decoded."""


class MaterialMapDecodeError(DecodeError):
    """Raised for a corrupt or unsupported material map payload."""


class UnknownSourceTypeError(DecodeError):
    """Raised for a source descriptor with an unknown ``type``."""


# =============================================================================
# Material maps
# =============================================================================


@dataclass
class MaterialMap:
    """Per-cell material components, each of shape (height, width).

    Args:
        permittivity: Permittivity map
        permeability: Permeability map
        conductivity: Conductivity map (zero if omitted)
    """

    permittivity: NDArray[np.float32]
    permeability: NDArray[np.float32]
    conductivity: NDArray[np.float32] | None = None

    def __post_init__(self):
        stacked = combine_material_maps(self.permittivity, self.permeability, self.conductivity)
        self.permittivity = stacked[..., 0].copy()
        self.permeability = stacked[..., 1].copy()
        self.conductivity = stacked[..., 2].copy()

    @property
    def shape(self) -> tuple[int, int]:
        """Map size (width, height) in cells."""
        return (self.permittivity.shape[1], self.permittivity.shape[0])

    def to_array(self) -> NDArray[np.float32]:
        """Stack into a (height, width, 3) material array."""
        return np.stack([self.permittivity, self.permeability, self.conductivity], axis=-1)

    @classmethod
    def from_array(cls, material: NDArray[np.floating]) -> MaterialMap:
        """Split a (height, width, 3) material array."""
        material = np.asarray(material, dtype=np.float32)
        return cls(material[..., 0], material[..., 1], material[..., 2])

    @classmethod
    def empty(cls, shape: tuple[int, int]) -> MaterialMap:
        """Default material everywhere; ``shape`` is (width, height)."""
        width, height = shape
        material = np.empty((height, width, 3), dtype=np.float32)
        material[...] = DEFAULT_MATERIAL
        return cls.from_array(material)


def material_map_to_bytes(material_map: MaterialMap, version: int = MATERIAL_MAP_VERSION) -> bytes:
    """Serialize a material map to its raw float32 payload.

    Args:
        material_map: Map to serialize
        version: Payload version (1 drops conductivity)

    Raises:
        ValueError: If the version is unsupported
    """
    if version not in _CELL_CHANNELS:
        raise ValueError(f"Unsupported material map version: {version}")

    width, height = material_map.shape
    cells = material_map.to_array()[..., : _CELL_CHANNELS[version]]
    header = np.array([width, height], dtype=_WIRE_DTYPE)
    return header.tobytes() + cells.astype(_WIRE_DTYPE).tobytes()


def material_map_from_bytes(payload: bytes, version: int = MATERIAL_MAP_VERSION) -> MaterialMap:
    """Parse a raw float32 payload.

    Raises:
        MaterialMapDecodeError: If the payload is truncated, inconsistent
            with its header or holds invalid material values
    """
    if not isinstance(version, int) or version not in _CELL_CHANNELS:
        raise MaterialMapDecodeError(f"Unsupported material map version: {version!r}")
    if len(payload) % _WIRE_DTYPE.itemsize != 0 or len(payload) < 2 * _WIRE_DTYPE.itemsize:
        raise MaterialMapDecodeError(
            f"Material map payload has invalid length {len(payload)} bytes"
        )

    values = np.frombuffer(payload, dtype=_WIRE_DTYPE)
    width, height = float(values[0]), float(values[1])
    if not (width.is_integer() and height.is_integer()) or width <= 0 or height <= 0:
        raise MaterialMapDecodeError(f"Invalid material map size: {width} x {height}")
    width, height = int(width), int(height)

    channels = _CELL_CHANNELS[version]
    cells = values[2:]
    expected = width * height * channels
    if cells.size != expected:
        raise MaterialMapDecodeError(
            f"Material map of size {width}x{height} needs {expected} values, "
            f"got {cells.size}"
        )

    cells = cells.astype(np.float32).reshape(height, width, channels)
    if channels == 2:
        cells = np.concatenate([cells, np.zeros((height, width, 1), dtype=np.float32)], axis=-1)

    try:
        material = validate_material(cells)
    except ValueError as e:
        raise MaterialMapDecodeError(f"Invalid material values: {e}") from e
    return MaterialMap.from_array(material)


def encode_material_map(
    material_map: MaterialMap, compress: bool = True, version: int = MATERIAL_MAP_VERSION
) -> dict[str, Any]:
    """Encode a material map into a JSON-compatible envelope.

    Args:
        material_map: Map to encode
        compress: Deflate the payload with zlib
        version: Payload version

    Returns:
        Envelope dict with keys version, compressed, data
    """
    payload = material_map_to_bytes(material_map, version)
    if compress:
        payload = zlib.compress(payload)
    return {
        "version": version,
        "compressed": compress,
        "data": base64.b64encode(payload).decode("ascii"),
    }


def decode_material_map(envelope: dict[str, Any]) -> MaterialMap:
    """Decode a material map envelope.

    Raises:
        MaterialMapDecodeError: If the envelope or its payload is corrupt
    """
    if not isinstance(envelope, dict):
        raise MaterialMapDecodeError(f"Material map envelope must be an object, got {type(envelope).__name__}")
    try:
        version = envelope["version"]
        compressed = bool(envelope.get("compressed", False))
        data = envelope["data"]
    except KeyError as e:
        raise MaterialMapDecodeError(f"Material map envelope is missing {e}") from None
    if isinstance(version, bool) or not isinstance(version, int):
        raise MaterialMapDecodeError(f"Material map version must be an integer, got {version!r}")

    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise MaterialMapDecodeError(f"Material map data is not valid base64: {e}") from e

    if compressed:
        try:
            payload = zlib.decompress(payload)
        except zlib.error as e:
            raise MaterialMapDecodeError(f"Material map data failed to decompress: {e}") from e

    return material_map_from_bytes(payload, version)


# =============================================================================
# Source descriptors
# =============================================================================


def source_to_descriptor(source: Source) -> dict[str, Any]:
    """Describe a source in its wire form."""
    descriptor = {
        "type": source.type,
        "position": [source.position[0], source.position[1]],
        "amplitude": source.amplitude,
        "frequency": source.frequency,
    }
    if source.turn_off_time is not None:
        descriptor["turnOffTime"] = source.turn_off_time
    return descriptor


def source_from_descriptor(descriptor: dict[str, Any]) -> Source:
    """Build a source from its wire form.

    Raises:
        UnknownSourceTypeError: If ``type`` is not a known source type
        DecodeError: If required fields are missing or malformed
    """
    source_type = descriptor.get("type") if isinstance(descriptor, dict) else None
    if source_type != PointSource.type:
        raise UnknownSourceTypeError(f"Unknown source type: {source_type!r}")

    try:
        x, y = descriptor["position"]
        return PointSource(
            position=(float(x), float(y)),
            amplitude=float(descriptor["amplitude"]),
            frequency=float(descriptor["frequency"]),
            turn_off_time=(
                float(descriptor["turnOffTime"])
                if descriptor.get("turnOffTime") is not None
                else None
            ),
        )
    except KeyError as e:
        raise DecodeError(f"Source descriptor is missing {e}") from None
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Malformed source descriptor: {e}") from e


# =============================================================================
# Simulator maps
# =============================================================================


@dataclass
class SimulatorMap:
    """A complete shareable simulator state: material, settings and sources."""

    material_map: MaterialMap
    settings: SimulationSettings = field(default_factory=SimulationSettings)
    sources: list[Source] = field(default_factory=list)

    def to_dict(self, compress: bool = True) -> dict[str, Any]:
        return {
            "materialMap": encode_material_map(self.material_map, compress=compress),
            "simulationSettings": self.settings.to_dict(),
            "sourceDescriptors": [source_to_descriptor(s) for s in self.sources],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulatorMap:
        """Decode a simulator map dict.

        Raises:
            DecodeError: If any part fails to decode
        """
        try:
            envelope = data["materialMap"]
            settings_data = data.get("simulationSettings", {})
            descriptors = data.get("sourceDescriptors", [])
        except (KeyError, AttributeError, TypeError) as e:
            raise DecodeError(f"Invalid simulator map: {e}") from None
        if not isinstance(descriptors, list):
            raise DecodeError(
                f"sourceDescriptors must be a list, got {type(descriptors).__name__}"
            )

        material_map = decode_material_map(envelope)
        try:
            settings = SimulationSettings.from_dict(settings_data)
        except (AttributeError, TypeError, ValueError) as e:
            raise DecodeError(f"Invalid simulation settings: {e}") from e
        sources = [source_from_descriptor(d) for d in descriptors]
        return cls(material_map=material_map, settings=settings, sources=sources)


def save_simulator_map(simulator_map: SimulatorMap, path: str | Path, compress: bool = True) -> Path:
    """Write a simulator map as JSON.

    Returns:
        Path to the written file
    """
    path = Path(path)
    with open(path, "w") as f:
        json.dump(simulator_map.to_dict(compress=compress), f, indent=2)
    return path


def load_simulator_map(path: str | Path) -> SimulatorMap:
    """Read a simulator map written by :func:`save_simulator_map`.

    Raises:
        DecodeError: If the file is not valid JSON or fails to decode
    """
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Simulator map {path} is not valid JSON: {e}") from e
    return SimulatorMap.from_dict(data)
