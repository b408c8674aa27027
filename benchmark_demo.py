"""
Benchmark demo: A*, RRT and DQN on one scenario.

Plots the planned routes next to per-planner length, node and time bars,
then prints statistics aggregated over several trials.
"""

from __future__ import annotations

import argparse
import logging

import matplotlib.pyplot as plt

from auv_nav.benchmark import Benchmark, BenchmarkResult
from auv_nav.planners import Algorithm
from auv_nav.visualization import Visualizer, create_scenario

PLANNER_COLORS = {
    Algorithm.ASTAR.value: '#e74c3c',
    Algorithm.RRT.value: '#3498db',
    Algorithm.DRL.value: '#27ae60',
}


def parse_args():
    p = argparse.ArgumentParser(description="Compare the AUV grid planners")
    p.add_argument("--scenario", type=str, default="reef",
                   choices=["open_water", "wall", "reef", "enclosed"])
    p.add_argument("--algorithms", nargs="+", default=[a.value for a in Algorithm],
                   choices=[a.value for a in Algorithm], help="Planners to compare")
    p.add_argument("--trials", type=int, default=3, help="Repetitions for the aggregated table")
    p.add_argument("--seed", type=int, default=None, help="Seed for RRT sampling and DQN exploration")
    p.add_argument("--save", type=str, default=None, help="Write the figure here instead of showing it")
    return p.parse_args()


def _bar_panel(ax: plt.Axes, names: list[str], values: list[float], ylabel: str, fmt: str) -> None:
    """Bar chart with the value printed above each bar."""
    bars = ax.bar(names, values, color=[PLANNER_COLORS[n] for n in names])
    ax.set_ylabel(ylabel)
    ax.set_title(ylabel)

    for bar, value in zip(bars, values):
        if value > 0:
            ax.annotate(format(value, fmt),
                        (bar.get_x() + bar.get_width() / 2, bar.get_height()),
                        ha='center', va='bottom', fontsize=9)


def plot_comparison(
    benchmark: Benchmark,
    results: dict[str, BenchmarkResult],
    title: str
) -> plt.Figure:
    """Routes on the grid plus length, node and time bars per planner."""
    fig, axes = plt.subplots(1, 4, figsize=(24, 6),
                             gridspec_kw={'width_ratios': [2, 1, 1, 1]})

    viz = Visualizer(benchmark.grid)
    viz.plot_environment(axes[0])
    for name, result in results.items():
        # Failed runs are drawn faded so the best-effort route stays visible
        viz.plot_path(result.path, axes[0], color=PLANNER_COLORS[name], label=name,
                      alpha=1.0 if result.success else 0.35)
    axes[0].set_title('Routes')
    axes[0].legend(loc='upper right')

    names = list(results)
    _bar_panel(axes[1], names,
               [results[n].path_length if results[n].success else 0.0 for n in names],
               'Path length (cells)', '.1f')
    _bar_panel(axes[2], names, [float(results[n].nodes_explored) for n in names],
               'Nodes explored', '.0f')
    _bar_panel(axes[3], names, [results[n].computation_time_ms for n in names],
               'Planning time (ms)', '.1f')

    fig.suptitle(title, fontsize=14, fontweight='bold')
    fig.tight_layout()
    return fig


def print_stats_table(stats: dict, trials: int) -> None:
    """Table of suite averages, taken over successful runs."""
    header = f"{'Planner':<10} {'Success':>8} {'Length':>9} {'Time ms':>10} {'Nodes':>9} {'Turn rad':>9}"
    print()
    print(f"Averages over {trials} trial(s)")
    print(header)
    print("-" * len(header))

    for name, s in stats.items():
        print(f"{name:<10} {s['success_rate']:>8.0%} {s['avg_length']:>9.2f} "
              f"{s['avg_time_ms']:>10.2f} {s['avg_nodes']:>9.0f} {s['avg_smoothness']:>9.3f}")


def main():
    args = parse_args()
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    obstacles, start, goal = create_scenario(args.scenario)
    benchmark = Benchmark(
        obstacles,
        algorithms=[Algorithm.parse(a) for a in args.algorithms],
        seed=args.seed
    )

    print(f"Scenario '{args.scenario}': {len(obstacles)} obstacles, "
          f"({start.x}, {start.y}) -> ({goal.x}, {goal.y})")

    results = benchmark.run_comparison(start, goal)
    benchmark.print_comparison(results)

    stats = benchmark.run_benchmark_suite([(start, goal)], num_trials=args.trials)
    print_stats_table(stats, args.trials)

    fig = plot_comparison(benchmark, results,
                          f"Planner comparison: {args.scenario.replace('_', ' ')}")

    if args.save:
        fig.savefig(args.save, dpi=150, bbox_inches='tight')
        print(f"\nFigure written to {args.save}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
