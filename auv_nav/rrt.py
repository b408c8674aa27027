"""
RRT (Rapidly-exploring Random Tree) planner for cluttered grids.

Cheap queries never reach the sampler: a clear straight line is returned
as is, and short queries with few obstacles are handed to A*. Everything
else grows a goal-biased tree, then the tree path is shortcut and its
straight runs collapsed.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Iterable, List

import numpy as np

from .astar import AStarPlanner, PlanningResult, SearchNode, elapsed_ms, reconstruct_path
from .grid import GridConfig, ObstacleGrid, Position, as_position
from .smoothing import optimize_path

logger = logging.getLogger(__name__)


@dataclass
class RRTConfig:
    """RRT planner configuration."""

    max_iterations: int = 3000
    step_size: float = 2.0  # Maximum extension per iteration (cells)
    goal_bias: float = 0.3  # Probability of sampling the goal
    adaptive_goal_bias: bool = True  # Raise goal bias while progress stalls
    goal_bias_step: float = 0.05
    max_goal_bias: float = 0.6
    stall_iterations: int = 100  # Iterations without progress before raising bias
    near_goal_threshold: float = 2.0  # Distance at which a goal connection is tried

    # Queries below both limits are delegated to A*
    shortcut_distance: float = 10.0
    shortcut_obstacle_count: int = 5

    max_segment_length: float | None = 8.0  # Midpoint insertion threshold
    seed: int | None = None

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be positive")
        if self.step_size <= 0:
            raise ValueError("step_size must be positive")
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ValueError(f"goal_bias must be in [0, 1], got {self.goal_bias}")
        if not 0.0 <= self.max_goal_bias <= 1.0:
            raise ValueError(f"max_goal_bias must be in [0, 1], got {self.max_goal_bias}")


class RRTPlanner:
    """
    Goal-biased RRT over integer grid cells.

    Tree nodes are rounded to cells so that the resulting waypoints can be
    followed by the discrete move interface. Results are not deterministic
    unless a seed is configured.
    """

    name = "RRT (Rapidly-exploring Random Tree)"
    description = "Efficient for complex environments, uses random sampling to explore space quickly."

    def __init__(
        self,
        grid_config: GridConfig | None = None,
        config: RRTConfig | None = None
    ):
        self.grid_config = grid_config or GridConfig()
        self.config = config or RRTConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self._fallback = AStarPlanner(self.grid_config)

        # Diagnostics of the last tree search
        self.last_goal_bias = self.config.goal_bias
        self.last_connection: str | None = None  # "exact", "near_goal" or None on failure

    def find_path(
        self,
        start: Position,
        goal: Position,
        obstacles: Iterable[Position]
    ) -> PlanningResult:
        start, goal = as_position(start), as_position(goal)
        grid = obstacles if isinstance(obstacles, ObstacleGrid) else ObstacleGrid(obstacles, self.grid_config)
        t0 = time.perf_counter()

        # Direct line of sight
        if grid.segment_is_clear(start, goal):
            path = [start] if start == goal else [start, goal]
            return PlanningResult(path, 1, elapsed_ms(t0))

        # Small problems don't need sampling
        if (start.distance_to(goal) < self.config.shortcut_distance
                and len(grid.obstacles) < self.config.shortcut_obstacle_count):
            logger.debug("RRT delegating short query %s -> %s to A*", start, goal)
            return self._fallback.search(start, goal, grid)

        path, iterations = self._grow_tree(start, goal, grid)
        return PlanningResult(path, iterations, elapsed_ms(t0))

    def _grow_tree(self, start: Position, goal: Position, grid: ObstacleGrid):
        cfg = self.config

        nodes: List[SearchNode] = [SearchNode(f_cost=0.0, position=start)]
        coords = np.empty((cfg.max_iterations + 1, 2), dtype=float)
        coords[0] = (start.x, start.y)
        occupied = {start}

        best = nodes[0]
        best_dist = start.distance_to(goal)
        goal_bias = cfg.goal_bias
        self.last_goal_bias = goal_bias
        self.last_connection = None
        since_improvement = 0
        iterations = 0

        for _ in range(cfg.max_iterations):
            iterations += 1

            # Select target point with goal bias
            if self.rng.random() < goal_bias:
                target = goal
            else:
                target = Position(
                    int(self.rng.integers(grid.width)),
                    int(self.rng.integers(grid.height))
                )

            nearest = nodes[self._nearest(coords[:len(nodes)], target)]
            new_point = self._steer(nearest.position, target)

            if new_point in occupied or not grid.segment_is_clear(nearest.position, new_point):
                since_improvement += 1
            else:
                g_cost = nearest.g_cost + nearest.position.distance_to(new_point)
                new_node = SearchNode(
                    f_cost=g_cost,
                    position=new_point,
                    g_cost=g_cost,
                    parent=nearest
                )
                coords[len(nodes)] = (new_point.x, new_point.y)
                nodes.append(new_node)
                occupied.add(new_point)

                dist = new_point.distance_to(goal)
                if dist < best_dist:
                    best, best_dist = new_node, dist
                    since_improvement = 0
                else:
                    since_improvement += 1

                # Check if goal reached
                if new_point == goal:
                    logger.debug("RRT reached goal in %d iterations", iterations)
                    self.last_connection = "exact"
                    return optimize_path(reconstruct_path(new_node), grid, cfg.max_segment_length), iterations

                if dist <= cfg.near_goal_threshold and grid.segment_is_clear(new_point, goal):
                    goal_node = SearchNode(f_cost=0.0, position=goal, parent=new_node)
                    logger.debug("RRT connected to goal in %d iterations", iterations)
                    self.last_connection = "near_goal"
                    return optimize_path(reconstruct_path(goal_node), grid, cfg.max_segment_length), iterations

            if cfg.adaptive_goal_bias and since_improvement >= cfg.stall_iterations:
                goal_bias = min(cfg.max_goal_bias, goal_bias + cfg.goal_bias_step)
                self.last_goal_bias = goal_bias
                since_improvement = 0

        # Best effort: path to the closest node, then head for the goal
        logger.warning(
            "RRT did not reach goal after %d iterations, best distance %.2f",
            iterations, best_dist
        )
        partial = optimize_path(reconstruct_path(best), grid, cfg.max_segment_length)
        if partial[-1] != goal:
            partial.append(goal)
        return partial, iterations

    @staticmethod
    def _nearest(coords: np.ndarray, target: Position) -> int:
        """Index of the tree node nearest to target."""
        d = np.hypot(coords[:, 0] - target.x, coords[:, 1] - target.y)
        return int(np.argmin(d))

    def _steer(self, origin: Position, target: Position) -> Position:
        """Step from origin toward target by at most step_size, rounded to a cell."""
        dx = target.x - origin.x
        dy = target.y - origin.y
        d = math.hypot(dx, dy)

        if d <= self.config.step_size:
            return target

        ratio = self.config.step_size / d
        return Position(
            int(round(origin.x + dx * ratio)),
            int(round(origin.y + dy * ratio))
        )
