"""
Example: Fiber Optics Spectrum
==============================
Runs the curved-fiber preset, records the field at the fiber exit and
estimates the dominant frequency of the guided wave from the probe trace.

Also shows saving the map to JSON so it can be reloaded (or run with the
maxwell-fdtd CLI).
"""

from maxwell_fdtd import Simulation
from maxwell_fdtd.analysis import dominant_frequency, wavelength_in_cells
from maxwell_fdtd.io import save_simulator_map
from maxwell_fdtd.maps import fiber_optics

simulator_map = fiber_optics()
save_simulator_map(simulator_map, "fiber_optics.json")
print("Saved map to fiber_optics.json (run with: maxwell-fdtd fiber_optics.json)")

sim = Simulation.from_simulator_map(simulator_map)
(source,) = sim.sources
sim.add_probe("entrance", (int(source.position[0]), int(source.position[1]) + 20))

sim.run(steps=3000, progress=True)

trace = sim.get_probe_data("entrance")["entrance"]
frequency = dominant_frequency(trace, sample_rate=1 / sim.dt)
print()
print(f"Source frequency:   {source.frequency:.2f}")
print(f"Measured frequency: {frequency:.2f}")
print(
    "Wavelength in fiber: "
    f"{wavelength_in_cells(source.frequency, sim.solver.cell_size, permittivity=2.0):.1f} cells"
)
