#!/usr/bin/env python3
"""Benchmark the Wave Function Collapse solver on the terrain catalogue."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

from terrawave.terrain import create_tile_catalog
from terrawave.wfc import Grid, Propagator, Solver

GRID_SIZES: tuple[tuple[int, int], ...] = (
    (16, 16),
    (32, 24),
    (48, 48),
    (64, 48),
)


class WFCBenchmark:
    """Benchmark runner for the WFC solver."""

    def __init__(self, iterations: int, max_backtracks: int) -> None:
        self.iterations = iterations
        self.max_backtracks = max_backtracks
        self.catalog = create_tile_catalog(terrain_only=True)
        self.results: dict[str, dict[str, float]] = {}

    def _run_case(self, width: int, height: int) -> dict[str, float]:
        """Run one benchmark case and return averaged timings and counters."""
        elapsed_total = 0.0
        backtracks_total = 0
        failures = 0

        for i in range(self.iterations):
            grid = Grid(width, height, self.catalog)
            solver = Solver(
                grid,
                Propagator(grid),
                seed=(width * 1_000_000) + (height * 1_000) + i,
                max_backtracks=self.max_backtracks,
            )

            start = time.perf_counter()
            result = solver.solve()
            elapsed_total += time.perf_counter() - start

            backtracks_total += result.backtracks
            failures += not result.success

        return {
            "solve_ms": (elapsed_total / self.iterations) * 1000.0,
            "avg_backtracks": backtracks_total / self.iterations,
            "failures": failures,
        }

    def run(self) -> None:
        """Run all configured grid-size benchmarks."""
        print("WFC Benchmark")
        print("=" * 50)
        print(f"Iterations per size: {self.iterations}")
        print(f"Tiles: {len(self.catalog)}")
        print()
        print(f"{'Size':>12} {'Solve (ms)':>12} {'Backtracks':>12} {'Failed':>8}")
        print("-" * 50)

        for width, height in GRID_SIZES:
            case = self._run_case(width, height)

            size_key = f"{width}x{height}"
            self.results[size_key] = case

            print(
                f"{size_key:>12} {case['solve_ms']:12.2f} "
                f"{case['avg_backtracks']:12.1f} {int(case['failures']):8d}"
            )

    def save_results(self, filename: str) -> None:
        """Save benchmark output to a JSON file."""
        with Path(filename).open("w") as f:
            json.dump(self.results, f, indent=2)
        print(f"\nSaved benchmark results to {filename}")

    def compare_with_baseline(self, baseline_file: str) -> None:
        """Compare current run with a saved baseline JSON file."""
        try:
            with Path(baseline_file).open() as f:
                baseline: dict[str, dict[str, float]] = json.load(f)
        except FileNotFoundError:
            print(f"\nBaseline file not found: {baseline_file}")
            return

        print(f"\nComparison vs baseline: {baseline_file}")
        print("=" * 64)

        for size_key, current in self.results.items():
            if size_key not in baseline:
                continue

            old_ms = baseline[size_key].get("solve_ms", 0.0)
            new_ms = current["solve_ms"]
            if old_ms <= 0:
                continue

            delta_pct = ((new_ms - old_ms) / old_ms) * 100.0
            speed_ratio = old_ms / new_ms if new_ms > 0 else 0.0
            trend = "faster" if speed_ratio > 1.0 else "slower"

            print(
                f"{size_key:>12}: {new_ms:8.2f}ms "
                f"vs {old_ms:8.2f}ms | {speed_ratio:5.2f}x {trend} "
                f"({delta_pct:+6.1f}%)"
            )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark the WFC solver")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of runs per grid size (default: 5)",
    )
    parser.add_argument(
        "--max-backtracks",
        type=int,
        default=500,
        help="Backtrack budget per solve (default: 500)",
    )
    parser.add_argument("--save", type=str, help="Save current results to JSON")
    parser.add_argument(
        "--compare",
        type=str,
        help="Compare current results against baseline JSON",
    )
    args = parser.parse_args(argv)

    benchmark = WFCBenchmark(
        iterations=args.iterations, max_backtracks=args.max_backtracks
    )
    benchmark.run()

    if args.save:
        benchmark.save_results(args.save)

    if args.compare:
        benchmark.compare_with_baseline(args.compare)


if __name__ == "__main__":
    main()
