"""
Planner session: path cache and per-tick move prediction.

A session is what the simulation loop talks to. Each tick it is given the
vehicle's cell, the goal, the obstacle set and the algorithm, and answers
with a single move. The session keeps the path it is following, re-plans
when the inputs change or the vehicle leaves the path, and caches full
paths per (algorithm, position, goal, obstacles) key.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator

from .astar import PlanningResult
from .grid import GridConfig, Move, Path, Position, as_position, obstacle_key
from .planners import Algorithm, PlannerHandle, select_planner

logger = logging.getLogger(__name__)

NO_MOVE = -1  # Legacy sentinel for both "arrived" and "no path"

PlannerFactory = Callable[[Algorithm, GridConfig], PlannerHandle]


class StepKind(Enum):
    MOVE = "move"
    ARRIVED = "arrived"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one tick: a move, arrival at the goal, or no usable path."""

    kind: StepKind
    move: Move | None = None

    @classmethod
    def arrived(cls) -> StepResult:
        return cls(StepKind.ARRIVED)

    @classmethod
    def blocked(cls) -> StepResult:
        return cls(StepKind.BLOCKED)

    @classmethod
    def moving(cls, move: Move) -> StepResult:
        return cls(StepKind.MOVE, move)

    @property
    def code(self) -> int:
        """Integer move code, NO_MOVE for both terminal outcomes."""
        if self.kind is StepKind.MOVE:
            return int(self.move)
        return NO_MOVE


def cache_key(algorithm, current: Position, goal: Position, obstacles: Iterable[Position]) -> str:
    """Key combining algorithm, current cell, goal and the sorted obstacle set."""
    algorithm = Algorithm.parse(algorithm)
    return f"{algorithm.value}-{current}-{goal}-{obstacle_key(obstacles)}"


class PlannerSession:
    """
    Stateful bridge between the tick loop and the planners.

    Calls must be serialized: a session runs at most one plan at a time.
    next_step, clear_cache and reset raise RuntimeError if entered while a
    plan is in flight. Independent simulations should use independent
    sessions.

    Paths from non-deterministic planners (RRT, DRL) are kept out of the
    cache unless cache_stochastic is set, since a cached random path would
    be replayed as if it were the only answer for its key.
    """

    def __init__(
        self,
        grid_config: GridConfig | None = None,
        planner_factory: PlannerFactory | None = None,
        cache_stochastic: bool = False
    ):
        self.grid_config = grid_config or GridConfig()
        self.planner_factory = planner_factory or select_planner
        self.cache_stochastic = cache_stochastic

        # State
        self.cache: Dict[str, Path] = {}
        self.path: Path = []
        self.last_key: str | None = None
        self.last_result: PlanningResult | None = None
        self.plan_count = 0
        self.nodes_explored = 0

        self._planners: Dict[Algorithm, PlannerHandle] = {}
        self._lock = threading.Lock()

    def planner(self, algorithm) -> PlannerHandle:
        """Planner for an algorithm, created once and kept for the session."""
        algorithm = Algorithm.parse(algorithm)
        if algorithm not in self._planners:
            self._planners[algorithm] = self.planner_factory(algorithm, self.grid_config)
        return self._planners[algorithm]

    def next_step(
        self,
        current: Position,
        goal: Position,
        obstacles: Iterable[Position],
        algorithm="astar"
    ) -> StepResult:
        """
        Decide the vehicle's next move.

        Re-plans with a fresh planner call when there is no current path,
        the vehicle is not on it, or any of position, goal, obstacles or
        algorithm differ from the previous call. Otherwise the cached path
        for the key (or the path already being followed) is reused.
        """
        algorithm = Algorithm.parse(algorithm)
        current, goal = as_position(current), as_position(goal)
        obstacles = frozenset(as_position(o) for o in obstacles)

        with self._exclusive():
            key = cache_key(algorithm, current, goal, obstacles)
            handle = self.planner(algorithm)
            cacheable = handle.deterministic or self.cache_stochastic

            if not self.path or current not in self.path or key != self.last_key:
                self.path = self._plan(handle, current, goal, obstacles)
                if cacheable:
                    self.cache[key] = self.path
            elif cacheable and key in self.cache:
                self.path = self.cache[key]

            self.last_key = key
            return self._step_along(current)

    def predict_next_move(
        self,
        current: Position,
        goal: Position,
        obstacles: Iterable[Position],
        algorithm="astar"
    ) -> int:
        """Integer form of next_step: 0-3 for a move, -1 for arrived or no path."""
        return self.next_step(current, goal, obstacles, algorithm).code

    def clear_cache(self) -> None:
        """Drop all cached paths, e.g. after obstacles or endpoints were edited."""
        with self._exclusive():
            self.cache.clear()

    def reset(self) -> None:
        """Forget cached paths and the path being followed, keep the planners."""
        with self._exclusive():
            self.cache.clear()
            self.path = []
            self.last_key = None
            self.last_result = None

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise RuntimeError("A plan is already in flight for this session")
        try:
            yield
        finally:
            self._lock.release()

    def _plan(self, handle: PlannerHandle, current: Position, goal: Position, obstacles) -> Path:
        result = handle.find_path(current, goal, obstacles)
        self.plan_count += 1
        self.nodes_explored += result.nodes_explored
        self.last_result = result
        logger.debug(
            "%s planned %d waypoints in %.2f ms (%d nodes)",
            handle.name, len(result.path), result.execution_time_ms, result.nodes_explored
        )
        return list(result.path)

    def _step_along(self, current: Position) -> StepResult:
        if not self.path:
            logger.warning("No path found from %s", current)
            return StepResult.blocked()

        if current not in self.path:
            return StepResult.blocked()

        index = self.path.index(current)
        if index == len(self.path) - 1:
            return StepResult.arrived()

        move = Move.between(current, self.path[index + 1])
        if move is None:
            return StepResult.blocked()
        return StepResult.moving(move)


_default_session: PlannerSession | None = None


def default_session() -> PlannerSession:
    """Process-wide session for callers that drive a single simulation."""
    global _default_session
    if _default_session is None:
        _default_session = PlannerSession()
    return _default_session


def predict_next_move(current, goal, obstacles, algorithm="astar") -> int:
    return default_session().predict_next_move(current, goal, obstacles, algorithm)


def clear_path_cache() -> None:
    default_session().clear_cache()
