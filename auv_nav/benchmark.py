"""
Benchmark comparison of the grid planners.

Compares:
    - A* (deterministic graph search)
    - RRT (sampling-based)
    - DRL (online deep Q-learning)

Metrics:
    - Path length
    - Computation time
    - Nodes explored
    - Path smoothness
    - Success rate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .grid import GridConfig, ObstacleGrid, Path, Position
from .planners import Algorithm, PlannerHandle, select_planner
from .smoothing import path_length, path_smoothness


@dataclass
class BenchmarkResult:
    """Outcome and metrics of one planner on one query."""

    algorithm: str
    success: bool
    path_length: float = 0.0
    computation_time_ms: float = 0.0
    nodes_explored: int = 0
    path_smoothness: float = 0.0  # Average heading change
    path: Path = field(default_factory=list)

    def __str__(self) -> str:
        if not self.success:
            return f"{self.algorithm}: FAILED"
        return (f"{self.algorithm}: length={self.path_length:.2f} cells, "
                f"time={self.computation_time_ms:.1f}ms, "
                f"nodes={self.nodes_explored}")


def reaches_goal(path: Path, goal: Position, grid: ObstacleGrid) -> bool:
    """A run succeeds when the path ends at the goal along clear segments."""
    return bool(path) and path[-1] == goal and grid.path_is_clear(path)


class Benchmark:
    """
    Runs the grid planners side by side on one obstacle map.

    Planners are built once, so the DRL agent keeps learning across the
    trials of a suite.
    """

    def __init__(
        self,
        obstacles: Iterable[Position],
        grid_config: GridConfig | None = None,
        algorithms: Iterable[Algorithm] = tuple(Algorithm),
        seed: int | None = None
    ):
        self.grid_config = grid_config or GridConfig()
        self.grid = ObstacleGrid(obstacles, self.grid_config)

        # Initialize planners
        self.planners: Dict[str, PlannerHandle] = {}
        for algorithm in algorithms:
            handle = select_planner(algorithm, self.grid_config, seed=seed)
            self.planners[handle.algorithm.value] = handle

    def run_single(
        self,
        start: Position,
        goal: Position,
        algorithm: str
    ) -> BenchmarkResult:
        """Plan once with the named planner and score the result."""
        if algorithm not in self.planners:
            raise ValueError(f"Unknown algorithm: {algorithm}")

        planner = self.planners[algorithm]
        result = planner.find_path(start, goal, self.grid)

        if not reaches_goal(result.path, goal, self.grid):
            return BenchmarkResult(
                algorithm=algorithm,
                success=False,
                computation_time_ms=result.execution_time_ms,
                nodes_explored=result.nodes_explored,
                path=result.path
            )

        return BenchmarkResult(
            algorithm=algorithm,
            success=True,
            path_length=path_length(result.path),
            computation_time_ms=result.execution_time_ms,
            nodes_explored=result.nodes_explored,
            path_smoothness=path_smoothness(result.path),
            path=result.path
        )

    def run_comparison(
        self,
        start: Position,
        goal: Position
    ) -> Dict[str, BenchmarkResult]:
        """One run of every configured planner on the same query."""
        return {name: self.run_single(start, goal, name) for name in self.planners}

    def run_benchmark_suite(
        self,
        scenarios: List[Tuple[Position, Position]],
        num_trials: int = 5
    ) -> Dict[str, Dict[str, float]]:
        """
        Repeat the comparison over start/goal pairs and aggregate per planner.

        Stochastic planners keep their state between trials, so RRT draws
        fresh samples and the DQN agent keeps training. Averages are taken
        over successful runs only.
        """
        runs: Dict[str, List[BenchmarkResult]] = {name: [] for name in self.planners}
        for start, goal in scenarios:
            for _ in range(num_trials):
                for name, result in self.run_comparison(start, goal).items():
                    runs[name].append(result)

        stats = {}
        for name, results in runs.items():
            ok = [r for r in results if r.success]
            metrics = np.array(
                [[r.path_length, r.computation_time_ms, r.nodes_explored, r.path_smoothness] for r in ok],
                dtype=float
            ).reshape(-1, 4)
            means = metrics.mean(axis=0) if len(ok) else np.zeros(4)
            stats[name] = {
                'success_rate': len(ok) / len(results) if results else 0.0,
                'avg_length': float(means[0]),
                'avg_time_ms': float(means[1]),
                'avg_nodes': float(means[2]),
                'avg_smoothness': float(means[3]),
            }
        return stats

    def print_comparison(self, results: Dict[str, BenchmarkResult]) -> None:
        """Print one row per planner for a single comparison."""
        header = f"{'Planner':<10} {'Reached':>8} {'Length':>9} {'Time ms':>10} {'Nodes':>9} {'Turn rad':>9}"
        print()
        print(header)
        print("-" * len(header))

        for name, r in results.items():
            length = f"{r.path_length:.2f}" if r.success else "-"
            turns = f"{r.path_smoothness:.3f}" if r.success else "-"
            print(f"{name:<10} {'yes' if r.success else 'no':>8} {length:>9} "
                  f"{r.computation_time_ms:>10.1f} {r.nodes_explored:>9} {turns:>9}")
