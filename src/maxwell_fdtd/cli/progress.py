"""Progress display for simulation runs.

Provides a rich terminal UI for run progress:
- Progress bar with percentage, elapsed time and ETA
- Computational throughput (Mcells/s)
- Memory usage
"""

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table


if TYPE_CHECKING:
    from maxwell_fdtd.core.session import Simulation


def format_time(seconds: float) -> str:
    """Format a duration like "42s", "1m 23s" or "2h 15m"."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format a byte count like "256.0 MB"."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class SimulationProgress:
    """Real-time progress display for a simulation run.

    Example:
        >>> progress = SimulationProgress(console, simulation, num_steps)
        >>> simulation.run(steps=num_steps, callback=progress.update)
        >>> progress.finish()
    """

    def __init__(
        self,
        console: Console,
        simulation: "Simulation",
        num_steps: int,
        update_interval: float = 0.1,
    ):
        """Initialize progress display.

        Args:
            console: Rich console instance
            simulation: Simulation session being run
            num_steps: Total number of steps
            update_interval: Minimum time between updates (seconds)
        """
        self.console = console
        self.simulation = simulation
        self.num_steps = num_steps
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0
        self._finished = False

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            console=console,
        )
        self.task = self.progress.add_task("Computing", total=num_steps)
        self.progress.start()

    def update(self, step: int):
        """Update the display after a step; rate-limited.

        Args:
            step: Step number just completed (0-indexed)
        """
        current_time = time.time()
        if current_time - self.last_update < self.update_interval:
            return

        steps_completed = step + 1
        self.progress.update(self.task, completed=steps_completed)

        elapsed = current_time - self.start_time
        num_cells = self.simulation.solver.grid.num_cells
        if elapsed > 0:
            throughput_mcells = steps_completed * num_cells / elapsed / 1e6
        else:
            throughput_mcells = 0.0

        current_memory = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, current_memory)

        self.progress.update(
            self.task,
            description=(
                f"Computing [dim]{throughput_mcells:.1f} Mcells/s, "
                f"{format_bytes(current_memory)} (peak {format_bytes(self.peak_memory)})[/dim]"
            ),
        )
        self.last_update = current_time

    def finish(self):
        """Stop the progress display; safe to call more than once."""
        if self._finished:
            return
        self.progress.update(self.task, completed=self.num_steps)
        self.progress.stop()
        self._finished = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_simulation_info(console: Console, simulation: "Simulation", output_path, num_steps: int):
    """Print simulation parameters before running.

    Args:
        console: Rich console instance
        simulation: Simulation session
        output_path: Path to output file
        num_steps: Number of steps to run
    """
    solver = simulation.solver
    width, height = solver.grid_size

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Grid", f"{width} × {height} ({solver.grid.num_cells / 1e3:.1f}k cells)")
    table.add_row("Cell size", f"{solver.cell_size:g}")
    table.add_row("Timestep", f"{simulation.dt:g} (Courant {solver.courant_number(simulation.dt):.2f})")
    table.add_row("Duration", f"{num_steps} steps (t = {simulation.dt * num_steps:g})")
    table.add_row("Boundary", "reflective" if solver.reflective_boundary else "open")
    table.add_row("Sources", str(len(simulation.sources)))
    if simulation.probes:
        table.add_row("Probes", ", ".join(simulation.probes))

    backend = solver.backend
    table.add_row("Backend", f"{backend.name} ({backend.device})")
    table.add_row("Output", str(output_path))

    console.print(table)
    console.print()
