"""A* path planning on the vehicle grid."""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .grid import GridConfig, ObstacleGrid, Path, Position, as_position

logger = logging.getLogger(__name__)


@dataclass
class PlanningResult:
    """Output of a single planner invocation."""

    path: Path = field(default_factory=list)
    nodes_explored: int = 0
    execution_time_ms: float = 0.0

    @property
    def found(self) -> bool:
        return len(self.path) > 0


@dataclass(order=True)
class SearchNode:
    """Search node shared by the grid planners."""

    f_cost: float  # Total cost (g + h)
    tie: int = 0  # Insertion order, breaks f_cost ties
    position: Position = field(compare=False, default=None)
    g_cost: float = field(compare=False, default=0.0)  # Cost from start
    h_cost: float = field(compare=False, default=0.0)  # Estimate to goal
    parent: SearchNode | None = field(compare=False, default=None)


def reconstruct_path(node: SearchNode | None) -> Path:
    """Reconstruct path by following parent pointers."""
    path = []
    current = node

    while current is not None:
        path.append(current.position)
        current = current.parent

    path.reverse()
    return path


def manhattan(a: Position, b: Position) -> float:
    return abs(a.x - b.x) + abs(a.y - b.y)


@dataclass
class AStarConfig:
    """A* planner configuration."""

    diagonal: bool = False  # 8-connected search
    straight_cost: float = 1.0
    diagonal_cost: float = 1.4  # ~sqrt(2)


class AStarPlanner:
    """
    Grid A* with a Manhattan heuristic.

    With unit step costs on the 4-connected grid the heuristic is admissible
    and the returned path is optimal. The 8-connected variant keeps the
    Manhattan heuristic, trading strict optimality for fewer expansions.
    """

    name = "A* Search"
    description = "Optimal pathfinding using heuristic-based search. Guarantees shortest path."

    def __init__(
        self,
        grid_config: GridConfig | None = None,
        config: AStarConfig | None = None
    ):
        self.grid_config = grid_config or GridConfig()
        self.config = config or AStarConfig()

    def find_path(
        self,
        start: Position,
        goal: Position,
        obstacles: Iterable[Position]
    ) -> PlanningResult:
        grid = obstacles if isinstance(obstacles, ObstacleGrid) else ObstacleGrid(obstacles, self.grid_config)
        return self.search(as_position(start), as_position(goal), grid)

    def search(self, start: Position, goal: Position, grid: ObstacleGrid) -> PlanningResult:
        """Plan a path over an already built obstacle grid."""
        t0 = time.perf_counter()
        counter = itertools.count()

        h = manhattan(start, goal)
        start_node = SearchNode(f_cost=h, tie=next(counter), position=start, g_cost=0.0, h_cost=h)

        open_set: List[SearchNode] = [start_node]
        closed_set = set()
        best_g: Dict[Position, float] = {start: 0.0}
        nodes_explored = 0

        while open_set:
            # Pop node with lowest f_cost, oldest first on ties
            current = heapq.heappop(open_set)
            nodes_explored += 1

            # Skip stale duplicates
            if current.position in closed_set:
                continue

            if current.position == goal:
                path = reconstruct_path(current)
                logger.debug("A* reached goal after %d pops", nodes_explored)
                return PlanningResult(path, nodes_explored, elapsed_ms(t0))

            closed_set.add(current.position)

            for neighbor, is_diagonal in grid.neighbors(current.position, self.config.diagonal):
                if neighbor in closed_set:
                    continue

                step = self.config.diagonal_cost if is_diagonal else self.config.straight_cost
                g_cost = current.g_cost + step

                # Only push if we found a better path to this cell
                if neighbor in best_g and g_cost >= best_g[neighbor]:
                    continue
                best_g[neighbor] = g_cost

                h_cost = manhattan(neighbor, goal)
                heapq.heappush(open_set, SearchNode(
                    f_cost=g_cost + h_cost,
                    tie=next(counter),
                    position=neighbor,
                    g_cost=g_cost,
                    h_cost=h_cost,
                    parent=current
                ))

        logger.debug("A* found no path after %d pops", nodes_explored)
        return PlanningResult([], nodes_explored, elapsed_ms(t0))


def elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0
