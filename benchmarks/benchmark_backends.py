#!/usr/bin/env python3
"""
Backend Throughput Benchmark

Measures solver throughput (Mcells/s) for the NumPy and PyTorch backends
across grid sizes, with open and reflective boundaries.

Usage:
    python3 benchmarks/benchmark_backends.py               # Full suite
    python3 benchmarks/benchmark_backends.py --quick       # Small grids only
    python3 benchmarks/benchmark_backends.py --json        # Output results as JSON
"""

import argparse
import json
import time
from dataclasses import asdict, dataclass

from maxwell_fdtd import FDTDSolver, make_draw_square_info
from maxwell_fdtd.core.backends import get_backend, has_torch


@dataclass
class BenchmarkResult:
    """Timing for one backend/grid/boundary combination."""
    backend: str
    device: str
    grid_size: tuple[int, int]
    reflective: bool
    n_steps: int
    time_ms: float
    mcells_per_sec: float


def _synchronize(solver: FDTDSolver) -> None:
    if not solver.using_gpu:
        return
    import torch

    if solver.backend.device.startswith("cuda"):
        torch.cuda.synchronize()
    elif solver.backend.device == "mps":
        torch.mps.synchronize()


def run_benchmark(
    backend_name: str,
    size: int,
    reflective: bool,
    n_steps: int = 200,
    warmup_steps: int = 10,
    dt: float = 0.02,
) -> BenchmarkResult:
    """Time ``n_steps`` full steps on a square grid.

    Args:
        backend_name: "numpy" or "torch"
        size: Grid width and height in cells
        reflective: Use reflective boundaries
        n_steps: Number of timed steps
        warmup_steps: Untimed steps run first
        dt: Timestep

    Returns:
        BenchmarkResult with timing and throughput
    """
    solver = FDTDSolver(
        grid_size=(size, size),
        reflective_boundary=reflective,
        backend=get_backend(backend_name),
    )
    solver.inject_signal(make_draw_square_info((size // 2, size // 2), 2, 100.0), dt)

    for _ in range(warmup_steps):
        solver.step_magnetic(dt)
        solver.step_electric(dt)
    _synchronize(solver)

    start = time.perf_counter()
    for _ in range(n_steps):
        solver.step_magnetic(dt)
        solver.step_electric(dt)
    _synchronize(solver)
    elapsed = time.perf_counter() - start

    return BenchmarkResult(
        backend=solver.backend.name,
        device=solver.backend.device,
        grid_size=(size, size),
        reflective=reflective,
        n_steps=n_steps,
        time_ms=elapsed * 1000,
        mcells_per_sec=size * size * n_steps / elapsed / 1e6,
    )


def main():
    parser = argparse.ArgumentParser(description="Benchmark FDTD array backends")
    parser.add_argument("--quick", action="store_true", help="Small grids only")
    parser.add_argument("--steps", type=int, default=200, help="Timed steps per run")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    args = parser.parse_args()

    sizes = [64, 128] if args.quick else [128, 256, 500, 1000]
    backends = ["numpy"] + (["torch"] if has_torch() else [])

    results = []
    for backend_name in backends:
        for size in sizes:
            for reflective in (False, True):
                result = run_benchmark(backend_name, size, reflective, n_steps=args.steps)
                results.append(result)
                if not args.json:
                    boundary = "reflective" if reflective else "open"
                    print(
                        f"{result.backend:>6} ({result.device:<4}) {size:>5}² {boundary:<10} "
                        f"{result.time_ms:9.1f} ms  {result.mcells_per_sec:8.1f} Mcells/s"
                    )

    if args.json:
        print(json.dumps([asdict(r) for r in results], indent=2))


if __name__ == "__main__":
    main()
