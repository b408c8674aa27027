"""Grid geometry and obstacle representation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator, List, Tuple

import numpy as np
from scipy.ndimage import distance_transform_edt

_EPS = 1e-9


class Move(IntEnum):
    """Discrete vehicle moves, valued as the simulation loop expects them."""

    LEFT = 0
    RIGHT = 1
    UP = 2
    DOWN = 3

    @property
    def delta(self) -> Tuple[int, int]:
        return _MOVE_DELTAS[self]

    @staticmethod
    def between(current: Position, target: Position) -> Move | None:
        """
        Move that heads from current toward target.

        The x axis is resolved first, so a diagonal target yields a
        horizontal move. Returns None when both positions are equal.
        """
        if target.x < current.x:
            return Move.LEFT
        if target.x > current.x:
            return Move.RIGHT
        if target.y < current.y:
            return Move.UP
        if target.y > current.y:
            return Move.DOWN
        return None


_MOVE_DELTAS = {
    Move.LEFT: (-1, 0),
    Move.RIGHT: (1, 0),
    Move.UP: (0, -1),
    Move.DOWN: (0, 1),
}


@dataclass(frozen=True, order=True)
class Position:
    """Integer grid cell."""

    x: int
    y: int

    def __iter__(self) -> Iterator[int]:
        return iter((self.x, self.y))

    def to_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def distance_to(self, other: Position) -> float:
        """Euclidean distance to another cell."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def manhattan_to(self, other: Position) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def step(self, move: Move) -> Position:
        dx, dy = move.delta
        return Position(self.x + dx, self.y + dy)

    def __str__(self) -> str:
        return f"{self.x},{self.y}"


Path = List[Position]


@dataclass
class GridConfig:
    """Grid configuration parameters."""

    width: int = 30  # Cells along x
    height: int = 20  # Cells along y
    samples_per_cell: int = 4  # Segment sampling resolution for collision checks
    footprint: float = 1.0  # Side of the square swept along a segment (cells)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid must be non-empty, got {self.width}x{self.height}")
        if self.samples_per_cell < 1:
            raise ValueError("samples_per_cell must be at least 1")


def as_position(value) -> Position:
    """Coerce an (x, y) pair into a Position."""
    if isinstance(value, Position):
        return value
    x, y = value
    return Position(int(x), int(y))


def obstacle_key(obstacles: Iterable[Position]) -> str:
    """Serialize an obstacle set independently of its order."""
    return "|".join(str(p) for p in sorted(set(obstacles)))


class ObstacleGrid:
    """
    Bounded grid with a static obstacle set.

    Keeps the obstacle set for membership tests and a boolean occupancy
    array (indexed [y, x]) for vectorized lookups. The nearest-obstacle
    index map is computed lazily from a Euclidean distance transform.
    """

    def __init__(
        self,
        obstacles: Iterable = (),
        config: GridConfig | None = None
    ):
        self.config = config or GridConfig()
        self.obstacles = frozenset(as_position(o) for o in obstacles)

        # Binary occupancy grid (True = obstacle)
        self.occupancy = np.zeros(
            (self.config.height, self.config.width),
            dtype=bool
        )
        for p in self.obstacles:
            if self.in_bounds(p):
                self.occupancy[p.y, p.x] = True

        self._nearest_indices: np.ndarray | None = None

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def in_bounds(self, p: Position) -> bool:
        return 0 <= p.x < self.config.width and 0 <= p.y < self.config.height

    def is_obstacle(self, p: Position) -> bool:
        return p in self.obstacles

    def is_free(self, p: Position) -> bool:
        """Free means inside the grid and not an obstacle."""
        if not self.in_bounds(p):
            return False
        return not self.occupancy[p.y, p.x]

    def _cell_blocked(self, x: int, y: int) -> bool:
        if not (0 <= x < self.config.width and 0 <= y < self.config.height):
            return True  # Out of bounds = blocked
        return bool(self.occupancy[y, x])

    def neighbors(self, p: Position, diagonal: bool = False) -> List[Tuple[Position, bool]]:
        """
        Free neighbors of a cell as (position, is_diagonal) pairs.

        Cardinal order is up, right, down, left. A diagonal neighbor is
        dropped when either orthogonal cell next to it is blocked.
        """
        result = []
        for move in (Move.UP, Move.RIGHT, Move.DOWN, Move.LEFT):
            n = p.step(move)
            if self.is_free(n):
                result.append((n, False))

        if diagonal:
            for dx, dy in ((1, -1), (1, 1), (-1, 1), (-1, -1)):
                n = Position(p.x + dx, p.y + dy)
                if not self.is_free(n):
                    continue
                if self._cell_blocked(p.x + dx, p.y) or self._cell_blocked(p.x, p.y + dy):
                    continue
                result.append((n, True))

        return result

    def _footprint_blocked(self, fx: float, fy: float) -> bool:
        """Check every cell overlapped by the footprint square centred at (fx, fy)."""
        half = self.config.footprint / 2
        x_lo = math.floor(fx - half + 0.5 + _EPS)
        x_hi = math.ceil(fx + half - 0.5 - _EPS)
        y_lo = math.floor(fy - half + 0.5 + _EPS)
        y_hi = math.ceil(fy + half - 0.5 - _EPS)

        for cy in range(y_lo, y_hi + 1):
            for cx in range(x_lo, x_hi + 1):
                if self._cell_blocked(cx, cy):
                    return True
        return False

    def segment_is_clear(self, a: Position, b: Position) -> bool:
        """
        Check the straight segment between two cell centres.

        Samples the segment at sub-cell resolution and inflates every sample
        by the configured footprint, which keeps a one-cell margin around
        diagonal segments. Endpoints are ordered first so that the result
        does not depend on the direction of travel.
        """
        if not (self.is_free(a) and self.is_free(b)):
            return False
        if a == b:
            return True

        a, b = min(a, b), max(a, b)
        dist = a.distance_to(b)
        num_samples = max(2, int(math.ceil(dist * self.config.samples_per_cell)) + 1)

        for t in np.linspace(0.0, 1.0, num_samples):
            fx = a.x + t * (b.x - a.x)
            fy = a.y + t * (b.y - a.y)
            if self._footprint_blocked(fx, fy):
                return False

        return True

    def path_is_clear(self, path: List[Position]) -> bool:
        """True if every consecutive pair of waypoints has a clear segment."""
        return all(
            self.segment_is_clear(path[i], path[i + 1])
            for i in range(len(path) - 1)
        )

    def _compute_nearest_indices(self) -> None:
        """Index map of the nearest obstacle cell for every grid cell."""
        # distance_transform_edt measures distance to the nearest zero,
        # so obstacles have to be the zeros of the input.
        _, indices = distance_transform_edt(
            ~self.occupancy,
            return_distances=True,
            return_indices=True
        )
        self._nearest_indices = indices

    def nearest_obstacle(self, p: Position) -> Position | None:
        """Nearest obstacle cell (Euclidean), or None without obstacles."""
        if not self.occupancy.any():
            return None
        if self._nearest_indices is None:
            self._compute_nearest_indices()

        x = min(max(p.x, 0), self.config.width - 1)
        y = min(max(p.y, 0), self.config.height - 1)
        ny = int(self._nearest_indices[0, y, x])
        nx = int(self._nearest_indices[1, y, x])
        return Position(nx, ny)
