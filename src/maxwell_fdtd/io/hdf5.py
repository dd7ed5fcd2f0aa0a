"""HDF5 output format for simulation results.

Streams a run to a single HDF5 file laid out as:

    /metadata     creation time, package version, runtime, backend
    /grid         size, cell size, physical extent
    /simulation   dt, boundary, Courant number, final step/time
    /sources      one subgroup per source with its descriptor fields
    /materials    (height, width, 3) material field at the start of the run
    /fields       energy_density snapshots (n, height, width, 2) + steps
    /probes       one growing dataset per probe
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import h5py
import numpy as np
from numpy.typing import NDArray


if TYPE_CHECKING:
    from maxwell_fdtd.core.session import Simulation


class HDF5ResultWriter:
    """Streaming writer for simulation results.

    Example:
        >>> writer = HDF5ResultWriter("results.h5", simulation)
        >>> for _ in range(num_steps):
        ...     simulation.step_sim()
        ...     writer.write_timestep(simulation.step_count - 1, save_snapshot=True)
        >>> writer.finalize(runtime=12.3)
    """

    def __init__(
        self,
        filename: str | Path,
        simulation: Simulation,
        compression: str | None = "gzip",
        compression_level: int = 4,
    ):
        """Initialize HDF5 writer.

        Args:
            filename: Output file path
            simulation: Simulation session to record
            compression: Compression algorithm ('gzip', 'lzf', None)
            compression_level: Compression level (0-9 for gzip)
        """
        self.filename = Path(filename)
        self.simulation = simulation
        self.file = h5py.File(filename, "w")
        self.compression = compression
        self.compression_opts = compression_level if compression == "gzip" else None

        self._write_metadata()
        self._create_datasets()

    def _write_metadata(self):
        """Write simulation metadata to HDF5 attributes."""
        from maxwell_fdtd import __version__

        simulation = self.simulation
        solver = simulation.solver

        meta = self.file.create_group("metadata")
        meta.attrs["created_at"] = datetime.now(timezone.utc).isoformat()
        meta.attrs["solver_version"] = __version__

        grid_group = self.file.create_group("grid")
        grid_group.attrs["size"] = list(solver.grid_size)
        grid_group.attrs["cell_size"] = solver.cell_size
        grid_group.attrs["extent"] = list(solver.grid.physical_extent())

        sim_group = self.file.create_group("simulation")
        sim_group.attrs["dt"] = simulation.dt
        sim_group.attrs["simulation_speed"] = simulation.settings.simulation_speed
        sim_group.attrs["reflective_boundary"] = solver.reflective_boundary
        sim_group.attrs["courant_number"] = solver.courant_number(simulation.dt)

        sources_group = self.file.create_group("sources")
        for i, source in enumerate(simulation.sources):
            src = sources_group.create_group(f"source_{i}")
            src.attrs["type"] = source.type
            src.attrs["position"] = list(source.position)
            src.attrs["amplitude"] = source.amplitude
            src.attrs["frequency"] = source.frequency
            if source.turn_off_time is not None:
                src.attrs["turn_off_time"] = source.turn_off_time

    def _create_datasets(self):
        """Create datasets for the material, snapshots and probes."""
        simulation = self.simulation

        self.file.create_group("fields")
        self.energy_dataset = None
        self.steps_dataset = None
        self._next_snapshot_idx = 0

        probes_group = self.file.create_group("probes")
        for name, probe in simulation.probes.items():
            dataset = probes_group.create_dataset(
                name,
                shape=(0,),
                maxshape=(None,),
                dtype=np.float32,
                chunks=True,
                compression=self.compression,
                compression_opts=self.compression_opts,
            )
            dataset.attrs["position"] = list(probe.position)
            dataset.attrs["component"] = probe.component

        materials_group = self.file.create_group("materials")
        materials_group.create_dataset(
            "material",
            data=simulation.solver.get_material(),
            compression=self.compression,
            compression_opts=self.compression_opts,
        )

    def write_timestep(self, step: int, save_snapshot: bool = False):
        """Write data for the current timestep.

        Args:
            step: Current step number
            save_snapshot: If True, save an energy density snapshot
        """
        simulation = self.simulation

        probes_group = self.file["probes"]
        for name, probe in simulation.probes.items():
            dataset = probes_group[name]
            current_data = probe.get_data()
            if len(current_data) > dataset.shape[0]:
                start = dataset.shape[0]
                dataset.resize((len(current_data),))
                dataset[start:] = current_data[start:]

        if save_snapshot:
            density = simulation.frame().energy_density()
            if self.energy_dataset is None:
                fields_group = self.file["fields"]
                self.energy_dataset = fields_group.create_dataset(
                    "energy_density",
                    shape=(1,) + density.shape,
                    maxshape=(None,) + density.shape,
                    dtype=np.float32,
                    chunks=(1,) + density.shape,
                    compression=self.compression,
                    compression_opts=self.compression_opts,
                )
                self.energy_dataset.attrs["channels"] = ["electric", "magnetic"]
                self.steps_dataset = fields_group.create_dataset(
                    "steps", shape=(0,), maxshape=(None,), dtype=np.int64, chunks=True
                )

            idx = self._next_snapshot_idx
            if idx >= self.energy_dataset.shape[0]:
                self.energy_dataset.resize((idx + 1,) + density.shape)
            self.energy_dataset[idx] = density
            self.steps_dataset.resize((idx + 1,))
            self.steps_dataset[idx] = step
            self._next_snapshot_idx += 1

    def finalize(self, runtime: float | None = None, **extra_metadata):
        """Write final metadata and close file.

        Args:
            runtime: Total runtime in seconds
            **extra_metadata: Additional metadata to store
        """
        simulation = self.simulation

        sim_group = self.file["simulation"]
        sim_group.attrs["num_steps"] = simulation.step_count
        sim_group.attrs["total_time"] = simulation.time

        history = simulation.solver.get_energy_history()
        if history:
            sim_group.create_dataset("energy_history", data=np.array(history, dtype=np.float64))

        if runtime is not None:
            self.file["metadata"].attrs["total_runtime_seconds"] = runtime

        for key, value in extra_metadata.items():
            self.file["metadata"].attrs[key] = value

        self.file.flush()
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file:
            self.finalize()


class HDF5ResultReader:
    """Reader for simulation results written by :class:`HDF5ResultWriter`.

    Example:
        >>> with HDF5ResultReader("results.h5") as reader:
        ...     metadata = reader.get_metadata()
        ...     trace = reader.load_probe("center")
    """

    def __init__(self, filename: str | Path):
        self.filename = Path(filename)
        self.file = h5py.File(filename, "r")

    def get_metadata(self) -> dict[str, Any]:
        """Extract all simulation metadata.

        Returns:
            Dict with metadata, grid, simulation, sources and probes entries
        """
        metadata = {}

        for group in ("metadata", "grid", "simulation"):
            if group in self.file:
                metadata[group] = dict(self.file[group].attrs)

        if "sources" in self.file:
            metadata["sources"] = [
                dict(self.file[f"sources/{name}"].attrs) for name in self.file["sources"]
            ]

        if "probes" in self.file:
            metadata["probes"] = {
                name: dict(self.file[f"probes/{name}"].attrs) for name in self.file["probes"]
            }

        return metadata

    def load_snapshot(self, index: int) -> NDArray[np.floating]:
        """Load the energy density snapshot at ``index``.

        Returns:
            Array of shape (height, width, 2)
        """
        if "fields/energy_density" not in self.file:
            raise ValueError("No energy density snapshots in file")
        return self.file["fields/energy_density"][index]

    def get_snapshot_steps(self) -> NDArray[np.int64]:
        """Steps at which snapshots were taken."""
        if "fields/steps" not in self.file:
            return np.zeros(0, dtype=np.int64)
        return self.file["fields/steps"][:]

    def get_num_snapshots(self) -> int:
        if "fields/energy_density" not in self.file:
            return 0
        return self.file["fields/energy_density"].shape[0]

    def load_probe(self, probe_name: str) -> NDArray[np.floating]:
        """Load a probe time series.

        Raises:
            KeyError: If the probe is not in the file
        """
        if f"probes/{probe_name}" not in self.file:
            available = list(self.file["probes"].keys()) if "probes" in self.file else []
            raise KeyError(f"Probe '{probe_name}' not found. Available: {available}")
        return self.file[f"probes/{probe_name}"][:]

    def get_probe_names(self) -> list[str]:
        if "probes" not in self.file:
            return []
        return list(self.file["probes"].keys())

    def load_material(self) -> NDArray[np.floating] | None:
        """Load the material field, or None if not present."""
        if "materials/material" not in self.file:
            return None
        return self.file["materials/material"][:]

    def load_energy_history(self) -> NDArray[np.floating] | None:
        """Load (step, time, energy) rows, or None if energy was not tracked."""
        if "simulation/energy_history" not in self.file:
            return None
        return self.file["simulation/energy_history"][:]

    def close(self):
        """Close the HDF5 file."""
        if self.file:
            self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
