"""
Example: Double Slit Interference
=================================
A point source illuminates a high-permittivity wall with two narrow slits.
The waves leaving each slit interfere, producing the classic fringe pattern
on a row of probes behind the wall.

Output: double_slit.h5 (energy density snapshots and probe data)

Grid: 500 × 500 cells @ 0.03 cell size
Source: 3.0 frequency point source at (100, 33)
Probes: a screen of 9 probes along y = 300
"""

import numpy as np

from maxwell_fdtd import Simulation
from maxwell_fdtd.maps import double_slit

# Build the session from the preset map (material, settings and source)
sim = Simulation.from_simulator_map(double_slit())

# Screen of probes 250 cells behind the wall
screen_x = np.linspace(20, 180, 9).astype(int)
for x in screen_x:
    sim.add_probe(f"screen_{x}", (int(x), 300))

print("=" * 60)
print("FDTD Simulation: Double Slit")
print("=" * 60)
print(sim)
print(f"Backend: {sim.solver.backend.name} ({sim.solver.backend.device})")
print("=" * 60)
print()

sim.run(steps=1500, progress=True, output_file="double_slit.h5", snapshot_interval=100)

# Time-averaged intensity at each screen position over the last 500 steps
print()
print("Screen intensity (last 500 steps):")
for x in screen_x:
    trace = sim.get_probe_data(f"screen_{x}")[f"screen_{x}"]
    intensity = np.mean(trace[-500:] ** 2)
    print(f"  x = {x:3d}: {intensity:.3e}")

print()
print("Analyze in Python:")
print("  >>> from maxwell_fdtd.io import HDF5ResultReader")
print("  >>> reader = HDF5ResultReader('double_slit.h5')")
print("  >>> density = reader.load_snapshot(-1)")


def visualize_frame(frame):
    """Show electric and magnetic energy density side by side.

    Args:
        frame: RenderFrame from Simulation.frame()
    """
    import matplotlib.pyplot as plt

    density = frame.energy_density()
    fig, axes = plt.subplots(1, 2, figsize=(12, 6))
    for ax, channel, title in zip(axes, range(2), ("ε|E|²", "µ|H|²")):
        image = ax.imshow(np.log10(density[..., channel] + 1e-12), origin="upper", cmap="magma")
        ax.set_title(title)
        fig.colorbar(image, ax=ax, label="log10 energy density")
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    try:
        visualize_frame(sim.frame())
    except ImportError:
        print("Install matplotlib to plot the final frame (pip install maxwell-fdtd[plot])")
