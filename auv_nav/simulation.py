"""
Tick-driven AUV simulation.

Drives a PlannerSession the way the interactive front end does: one poll
per tick, one cell per move, and a run summary once the vehicle arrives,
gets stuck or collides.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

import numpy as np

from .grid import GridConfig, ObstacleGrid, Position, as_position
from .planners import Algorithm
from .session import PlannerSession, StepKind

logger = logging.getLogger(__name__)

DEFAULT_START = Position(4, 10)
DEFAULT_GOAL = Position(25, 10)


class Outcome(Enum):
    RUNNING = "running"
    ARRIVED = "arrived"
    BLOCKED = "blocked"
    COLLIDED = "collided"
    TIMED_OUT = "timed_out"


@dataclass
class SimulationStats:
    """Summary of one simulation run."""

    path_length: int = 0
    execution_time_ms: float = 0.0
    collision_count: int = 0
    path_efficiency: float = 0.0  # Manhattan(start, goal) / moves taken
    nodes_explored: int = 0
    average_time_per_move_ms: float = 0.0
    total_moves: int = 0
    obstacle_count: int = 0
    replans: int = 0
    path_history: List[Position] = field(default_factory=list)
    outcome: Outcome = Outcome.RUNNING


class Simulation:
    """
    Single vehicle run from start to goal.

    The session is injected so that a run can reuse a trained DRL planner
    or share a cache with other runs on the same map.
    """

    def __init__(
        self,
        start: Position = DEFAULT_START,
        goal: Position = DEFAULT_GOAL,
        obstacles: Iterable[Position] = (),
        algorithm="astar",
        session: PlannerSession | None = None,
        grid_config: GridConfig | None = None,
        max_ticks: int = 500
    ):
        self.grid_config = grid_config or (session.grid_config if session else GridConfig())
        self.start = as_position(start)
        self.goal = as_position(goal)
        self.obstacles = frozenset(as_position(o) for o in obstacles)
        self.algorithm = Algorithm.parse(algorithm)
        self.session = session or PlannerSession(self.grid_config)
        self.max_ticks = max_ticks

        self.grid = ObstacleGrid(self.obstacles, self.grid_config)
        self.position = self.start
        self.ticks = 0
        self.stats = SimulationStats(obstacle_count=len(self.obstacles))
        self._plan_count_at_start = self.session.plan_count
        self._nodes_at_start = self.session.nodes_explored
        self._t0: float | None = None

    @property
    def finished(self) -> bool:
        return self.stats.outcome is not Outcome.RUNNING

    def tick(self) -> Outcome:
        """Poll the session once and apply the returned move."""
        if self.finished:
            return self.stats.outcome
        if self._t0 is None:
            self._t0 = time.perf_counter()

        self.ticks += 1
        step = self.session.next_step(self.position, self.goal, self.obstacles, self.algorithm)

        if step.kind is not StepKind.MOVE:
            if self.position == self.goal:
                self._finish(Outcome.ARRIVED)
            else:
                self._finish(Outcome.BLOCKED)
            return self.stats.outcome

        new_position = self.position.step(step.move)
        if not self.grid.is_free(new_position):
            self.stats.collision_count += 1
            logger.warning("AUV collided moving %s from %s", step.move.name, self.position)
            self._finish(Outcome.COLLIDED)
            return self.stats.outcome

        self.position = new_position
        self.stats.path_history.append(new_position)

        if self.ticks >= self.max_ticks:
            self._finish(Outcome.TIMED_OUT)
        return self.stats.outcome

    def run(self) -> SimulationStats:
        """Tick until the run ends."""
        while not self.finished:
            self.tick()
        return self.stats

    def _finish(self, outcome: Outcome) -> None:
        stats = self.stats
        stats.outcome = outcome
        stats.execution_time_ms = (time.perf_counter() - self._t0) * 1000.0 if self._t0 else 0.0
        stats.total_moves = len(stats.path_history)
        stats.path_length = stats.total_moves
        stats.replans = self.session.plan_count - self._plan_count_at_start
        stats.nodes_explored = self.session.nodes_explored - self._nodes_at_start

        if stats.total_moves > 0:
            stats.average_time_per_move_ms = stats.execution_time_ms / stats.total_moves
            if outcome is Outcome.ARRIVED:
                stats.path_efficiency = self.start.manhattan_to(self.goal) / stats.total_moves

        logger.info(
            "Simulation %s after %d ticks (%d moves, %d replans)",
            outcome.value, self.ticks, stats.total_moves, stats.replans
        )


def generate_random_obstacles(
    count: int,
    start: Position = DEFAULT_START,
    goal: Position = DEFAULT_GOAL,
    grid_config: GridConfig | None = None,
    rng: np.random.Generator | None = None
) -> List[Position]:
    """
    Random unique obstacles, never within one cell of start or goal.

    Raises:
        ValueError: if the grid cannot hold that many obstacles
    """
    config = grid_config or GridConfig()
    rng = rng or np.random.default_rng()

    def reserved(p: Position) -> bool:
        return (max(abs(p.x - start.x), abs(p.y - start.y)) <= 1
                or max(abs(p.x - goal.x), abs(p.y - goal.y)) <= 1)

    candidates = [
        Position(x, y)
        for x in range(config.width)
        for y in range(config.height)
        if not reserved(Position(x, y))
    ]
    if count > len(candidates):
        raise ValueError(f"Cannot place {count} obstacles, only {len(candidates)} cells available")

    picks = rng.choice(len(candidates), size=count, replace=False)
    return [candidates[i] for i in picks]
