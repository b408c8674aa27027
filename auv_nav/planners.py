"""Planner selection by algorithm identifier."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from .astar import AStarPlanner, PlanningResult
from .drl import DRLConfig, DRLPlanner
from .grid import GridConfig, Position
from .rrt import RRTConfig, RRTPlanner

FindPath = Callable[[Position, Position, Iterable[Position]], PlanningResult]


class Algorithm(str, Enum):
    """Closed set of planning algorithms."""

    ASTAR = "astar"
    RRT = "rrt"
    DRL = "drl"

    @classmethod
    def parse(cls, value) -> Algorithm:
        """Resolve an identifier, defaulting to A* for unknown ones."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.ASTAR


@dataclass(frozen=True)
class PlannerHandle:
    """
    Capabilities of a selected planner.

    deterministic tells the session whether a cached path can stand in for
    a fresh call with the same inputs.
    """

    algorithm: Algorithm
    name: str
    description: str
    deterministic: bool
    find_path: FindPath
    planner: object = None


def select_planner(
    algorithm_id,
    grid_config: GridConfig | None = None,
    seed: int | None = None
) -> PlannerHandle:
    """
    Build a fresh planner for the given algorithm identifier.

    Args:
        algorithm_id: "astar", "rrt", "drl" or an Algorithm; anything else
            selects A*
        grid_config: Grid dimensions shared by all planners
        seed: Random seed for the stochastic planners

    Returns:
        PlannerHandle wrapping the new planner instance
    """
    algorithm = Algorithm.parse(algorithm_id)
    grid_config = grid_config or GridConfig()

    if algorithm is Algorithm.RRT:
        planner = RRTPlanner(grid_config, RRTConfig(seed=seed))
        deterministic = False
    elif algorithm is Algorithm.DRL:
        planner = DRLPlanner(grid_config, DRLConfig(seed=seed))
        deterministic = False
    else:
        planner = AStarPlanner(grid_config)
        deterministic = True

    return PlannerHandle(
        algorithm=algorithm,
        name=planner.name,
        description=planner.description,
        deterministic=deterministic,
        find_path=planner.find_path,
        planner=planner
    )
