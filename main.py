"""Demo script for AUV grid path planning."""

from __future__ import annotations

import argparse
import logging

import matplotlib.pyplot as plt
import numpy as np

from auv_nav import ObstacleGrid, PlannerSession, Simulation, Visualizer
from auv_nav.simulation import generate_random_obstacles
from auv_nav.visualization import create_scenario


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="AUV Path Planning Demo")

    p.add_argument(
        "--algorithm",
        type=str,
        default="astar",
        choices=["astar", "rrt", "drl"],
        help="Planner used by the vehicle"
    )
    p.add_argument(
        "--scenario",
        type=str,
        default="wall",
        choices=["open_water", "wall", "reef", "enclosed", "random"],
        help="Predefined scenario to run"
    )
    p.add_argument(
        "--obstacles",
        type=int,
        default=40,
        help="Obstacle count for the random scenario"
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the random scenario"
    )
    p.add_argument(
        "--max_ticks",
        type=int,
        default=500,
        help="Stop the run after this many ticks"
    )
    p.add_argument(
        "--save",
        type=str,
        default=None,
        help="Save result to image file"
    )
    p.add_argument(
        "--no_plot",
        action="store_true",
        help="Skip the plot"
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Log planner decisions"
    )

    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print("=" * 60)
    print("AUV PATH PLANNING")
    print("=" * 60)
    print(f"Scenario:  {args.scenario}")
    print(f"Algorithm: {args.algorithm}")
    print()

    if args.scenario == "random":
        _, start, goal = create_scenario("open_water")
        obstacles = generate_random_obstacles(
            args.obstacles, start, goal, rng=np.random.default_rng(args.seed)
        )
    else:
        obstacles, start, goal = create_scenario(args.scenario)

    print(f"Start: ({start.x}, {start.y})")
    print(f"Goal:  ({goal.x}, {goal.y})")
    print(f"Obstacles: {len(obstacles)}")
    print()

    session = PlannerSession()
    sim = Simulation(start, goal, obstacles, args.algorithm, session=session, max_ticks=args.max_ticks)

    print("Running...")
    stats = sim.run()

    print(f"Outcome: {stats.outcome.value}")
    print(f"Moves: {stats.total_moves}")
    print(f"Replans: {stats.replans}")
    print(f"Nodes explored: {stats.nodes_explored}")
    print(f"Path efficiency: {stats.path_efficiency * 100:.0f}%")
    print(f"Time: {stats.execution_time_ms:.1f} ms ({stats.average_time_per_move_ms:.2f} ms/move)")

    if args.no_plot:
        return

    grid = ObstacleGrid(obstacles)
    viz = Visualizer(grid)

    planned = None
    if session.last_result is not None and session.last_result.path:
        planned = session.last_result.path

    fig = viz.plot_planning_result(
        start, goal,
        path=planned,
        trail=stats.path_history,
        title=f"{session.planner(args.algorithm).name} - {args.scenario.replace('_', ' ').title()}"
    )

    if args.save:
        fig.savefig(args.save, dpi=150, bbox_inches='tight')
        print(f"Result saved to {args.save}")
    else:
        plt.show()

    print("\nDone!")


if __name__ == "__main__":
    main()
