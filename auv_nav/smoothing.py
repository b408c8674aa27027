"""Path post-processing shared by the sampling and learning planners."""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

from .grid import ObstacleGrid, Path, Position


def _direction(a: Position, b: Position) -> Tuple[int, int]:
    """Reduced direction vector from a to b."""
    dx = b.x - a.x
    dy = b.y - a.y
    g = math.gcd(dx, dy)
    if g == 0:
        return (0, 0)
    return (dx // g, dy // g)


def shortcut_path(
    path: Path,
    grid: ObstacleGrid,
    max_segment_length: float | None = None
) -> Path:
    """
    Greedy path shortcutting.

    From each waypoint, jump to the furthest later waypoint that is reachable
    along a clear straight segment. When nothing further is visible the next
    waypoint is taken as is. Segments longer than max_segment_length get
    their rounded midpoint inserted, provided it is free and both halves are
    clear.

    Args:
        path: Waypoints, first is the start
        grid: Obstacle grid used for segment checks
        max_segment_length: Split threshold (cells), None to disable

    Returns:
        Shortened path with the same endpoints
    """
    if len(path) <= 2:
        return list(path)

    optimized = [path[0]]
    current = 0

    while current < len(path) - 1:
        furthest = current + 1

        for i in range(len(path) - 1, current + 1, -1):
            if grid.segment_is_clear(path[current], path[i]):
                furthest = i
                break

        a, b = path[current], path[furthest]
        if max_segment_length is not None and a.distance_to(b) > max_segment_length:
            mid = Position(int(round((a.x + b.x) / 2)), int(round((a.y + b.y) / 2)))
            if (mid != a and mid != b and grid.is_free(mid)
                    and grid.segment_is_clear(a, mid)
                    and grid.segment_is_clear(mid, b)):
                optimized.append(mid)

        optimized.append(b)
        current = furthest

    return optimized


def collapse_straight_runs(path: Path, grid: ObstacleGrid | None = None) -> Path:
    """
    Drop waypoints in the middle of straight runs.

    Keeps the start, the end and every point where the direction changes.
    With a grid, a point is only dropped if the merged segment is still clear.
    """
    if len(path) <= 2:
        return list(path)

    collapsed = [path[0]]
    for i in range(1, len(path) - 1):
        prev, point, nxt = collapsed[-1], path[i], path[i + 1]
        if point == prev:
            continue
        if _direction(prev, point) == _direction(point, nxt):
            if grid is None or grid.segment_is_clear(prev, nxt):
                continue
        collapsed.append(point)

    if path[-1] != collapsed[-1]:
        collapsed.append(path[-1])
    return collapsed


def optimize_path(
    path: Path,
    grid: ObstacleGrid,
    max_segment_length: float | None = None
) -> Path:
    """Shortcut a raw path, then collapse its straight runs."""
    return collapse_straight_runs(shortcut_path(path, grid, max_segment_length), grid)


def path_length(path: Path) -> float:
    """Total Euclidean length of a waypoint path."""
    if len(path) < 2:
        return 0.0
    return sum(path[i].distance_to(path[i + 1]) for i in range(len(path) - 1))


def path_smoothness(path: Path) -> float:
    """
    Average heading change between consecutive segments (rad).

    Lower values indicate smoother paths.
    """
    if len(path) < 3:
        return 0.0

    turns: List[float] = []
    for i in range(1, len(path) - 1):
        theta1 = math.atan2(path[i].y - path[i - 1].y, path[i].x - path[i - 1].x)
        theta2 = math.atan2(path[i + 1].y - path[i].y, path[i + 1].x - path[i].x)

        dtheta = abs(theta2 - theta1)
        if dtheta > math.pi:
            dtheta = 2 * math.pi - dtheta

        turns.append(dtheta)

    return float(np.mean(turns)) if turns else 0.0
