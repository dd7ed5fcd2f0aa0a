"""Command-line tool for running simulator maps.

The maxwell-fdtd CLI loads a preset or a saved simulator map, runs it with
progress tracking and writes the results to HDF5.
"""

import sys
import time
from pathlib import Path

import click
from rich.console import Console

from maxwell_fdtd import __version__
from maxwell_fdtd.core.session import Simulation
from maxwell_fdtd.io.serialization import DecodeError, load_simulator_map
from maxwell_fdtd.maps import PRESETS, get_preset

from .progress import SimulationProgress, format_bytes, format_time, print_simulation_info

console = Console()


def _load_simulation(map_source: str, grid_size, backend: str, verbose: bool) -> Simulation:
    """Build a session from a preset name or a simulator-map JSON file."""
    if map_source in PRESETS:
        if verbose:
            console.print(f"Using preset: {map_source}")
        simulator_map = get_preset(map_source, grid_size) if grid_size else get_preset(map_source)
    else:
        path = Path(map_source)
        if not path.exists():
            raise click.BadParameter(
                f"'{map_source}' is neither a preset ({', '.join(sorted(PRESETS))}) "
                "nor an existing file",
                param_hint="MAP",
            )
        if grid_size:
            raise click.BadParameter(
                "only applies to presets; a simulator map file carries its own size",
                param_hint="'--grid-size'",
            )
        simulator_map = load_simulator_map(path)
    return Simulation.from_simulator_map(simulator_map, backend=backend)


@click.command()
@click.argument("map_source", metavar="MAP")
@click.option("--steps", "-n", type=click.IntRange(min=0), default=1000, show_default=True,
              help="Number of simulation steps")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file path (default: results_{map}.h5)",
)
@click.option(
    "--backend",
    type=click.Choice(["auto", "numpy", "torch"]),
    default="auto",
    help="Array backend (default: auto-detect)",
)
@click.option("--grid-size", type=(int, int), default=None, help="Grid size W H for presets")
@click.option("--reflective", is_flag=True, help="Use reflective instead of open boundaries")
@click.option(
    "--probe",
    "probes",
    type=(str, int, int),
    multiple=True,
    help="Record Ez at a cell: NAME X Y (repeatable)",
)
@click.option(
    "--snapshot-interval",
    type=click.IntRange(min=1),
    help="Save energy density every N steps to HDF5 (increases file size)",
)
@click.option("--track-energy", is_flag=True, help="Record field energy every step")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option("--dry-run", is_flag=True, help="Show parameters without running")
@click.version_option(version=__version__, prog_name="maxwell-fdtd")
def main(
    map_source: str,
    steps: int,
    output: Path | None,
    backend: str,
    grid_size: tuple[int, int] | None,
    reflective: bool,
    probes: tuple[tuple[str, int, int], ...],
    snapshot_interval: int | None,
    track_energy: bool,
    verbose: bool,
    dry_run: bool,
):
    """Run a simulator map and save the results to HDF5.

    MAP is a preset name (empty, double_slit, fiber_optics) or the path to
    a simulator map JSON file written by save_simulator_map.

    \b
    Example:
        maxwell-fdtd double_slit --steps 500 --probe screen 100 400
    """
    sys.exit(_run(
        map_source, steps, output, backend, grid_size, reflective, probes,
        snapshot_interval, track_energy, verbose, dry_run,
    ))


def _run(
    map_source, steps, output, backend, grid_size, reflective, probes,
    snapshot_interval, track_energy, verbose, dry_run,
) -> int:
    try:
        console.print(f"\n[bold]Maxwell FDTD:[/bold] {map_source}", style="blue")
        console.print("─" * 60)

        console.print("Loading simulation...", style="dim")
        try:
            simulation = _load_simulation(map_source, grid_size, backend, verbose)
        except DecodeError as e:
            console.print(f"\n[bold red]Invalid simulator map:[/bold red] {e}")
            return 1
        except click.BadParameter as e:
            console.print(f"\n[bold red]Error:[/bold red] {e.format_message()}")
            return 2

        if reflective:
            simulation.set_reflective_boundary(True)

        for name, x, y in probes:
            try:
                simulation.add_probe(name, (x, y))
            except ValueError as e:
                console.print(f"\n[bold red]Error:[/bold red] {e}")
                return 1

        if output is None:
            output = Path(f"results_{Path(map_source).stem}.h5")

        print_simulation_info(console, simulation, output, steps)

        if dry_run:
            console.print("[yellow]Dry run - simulation not executed[/yellow]")
            return 0

        start_time = time.time()
        progress = SimulationProgress(console, simulation, steps)

        try:
            simulation.run(
                steps=steps,
                track_energy=track_energy,
                output_file=str(output),
                callback=progress.update,
                snapshot_interval=snapshot_interval,
            )
        except KeyboardInterrupt:
            progress.finish()
            console.print("\n[yellow]Interrupted by user[/yellow]")
            return 130
        except Exception as e:
            progress.finish()
            console.print(f"\n[bold red]Simulation Error:[/bold red] {e}")
            if verbose:
                console.print_exception()
            return 1
        finally:
            progress.finish()

        runtime = time.time() - start_time

        console.print("─" * 60)
        console.print("✓ [bold green]Simulation complete![/bold green]")

        if output.exists():
            console.print(f"  Output: {output} ({format_bytes(output.stat().st_size)})")
        else:
            console.print(f"  Output: {output}")

        console.print(f"  Runtime: {format_time(runtime)}")
        if runtime > 0:
            throughput = steps * simulation.solver.grid.num_cells / runtime / 1e6
            console.print(f"  Average throughput: {throughput:.1f} Mcells/s")

        if track_energy:
            report = simulation.solver.energy_report()
            console.print(
                f"  Energy: {report['final_energy']:.3e} "
                f"({report['conservation_status']}, {report['energy_change_percent']:+.1f}%)"
            )

        if verbose:
            console.print("\n[dim]Results can be analyzed with HDF5 tools (h5py, HDFView)[/dim]")

        return 0

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        return 1


if __name__ == "__main__":
    main()
