"""Visualization utilities for AUV grid planning."""

from __future__ import annotations

from typing import List, Tuple

import matplotlib.pyplot as plt
import matplotlib.patches as patches

from .grid import GridConfig, ObstacleGrid, Path, Position


class Visualizer:
    """Plotting tools for grids, planned paths and vehicle trails."""

    # Color scheme
    COLORS = {
        'obstacle': '#2c3e50',
        'water': '#d6eaf8',
        'path': '#e74c3c',
        'trail': '#27ae60',
        'start': '#3498db',
        'goal': '#9b59b6',
        'vehicle': '#f39c12',
    }

    def __init__(self, grid: ObstacleGrid):
        self.grid = grid

    def plot_environment(self, ax: plt.Axes | None = None) -> plt.Axes:
        """Plot water cells and obstacles, y axis pointing down like the grid."""
        if ax is None:
            fig, ax = plt.subplots(figsize=(12, 8))

        ax.add_patch(patches.Rectangle(
            (-0.5, -0.5), self.grid.width, self.grid.height,
            facecolor=self.COLORS['water'], edgecolor='none'
        ))
        for p in self.grid.obstacles:
            if self.grid.in_bounds(p):
                ax.add_patch(patches.Rectangle(
                    (p.x - 0.5, p.y - 0.5), 1, 1,
                    facecolor=self.COLORS['obstacle'], edgecolor='none'
                ))

        ax.set_xlim(-0.5, self.grid.width - 0.5)
        ax.set_ylim(self.grid.height - 0.5, -0.5)
        ax.set_xticks(range(self.grid.width))
        ax.set_yticks(range(self.grid.height))
        ax.tick_params(labelsize=7)
        ax.set_xlabel('X (cells)')
        ax.set_ylabel('Y (cells)')
        ax.set_aspect('equal')
        ax.grid(True, alpha=0.3)

        return ax

    def plot_path(
        self,
        path: Path,
        ax: plt.Axes,
        color: str | None = None,
        linewidth: float = 2.0,
        label: str | None = None,
        show_waypoints: bool = True,
        alpha: float = 1.0
    ) -> None:
        """Plot path as a line through cell centres."""
        if not path:
            return

        color = color or self.COLORS['path']
        x = [p.x for p in path]
        y = [p.y for p in path]

        ax.plot(x, y, color=color, linewidth=linewidth, label=label, alpha=alpha)
        if show_waypoints:
            ax.scatter(x, y, color=color, s=12, alpha=alpha, zorder=3)

    def plot_start_goal(self, start: Position, goal: Position, ax: plt.Axes) -> None:
        """Plot start and goal cells."""
        ax.scatter([start.x], [start.y], marker='o', s=160,
                   color=self.COLORS['start'], edgecolors='black', label='Start', zorder=4)
        ax.scatter([goal.x], [goal.y], marker='*', s=260,
                   color=self.COLORS['goal'], edgecolors='black', label='Goal', zorder=4)

    def plot_planning_result(
        self,
        start: Position,
        goal: Position,
        path: Path | None = None,
        trail: Path | None = None,
        title: str = "AUV Path Planning"
    ) -> plt.Figure:
        """Create complete visualization of a plan and, optionally, the driven trail."""
        fig, ax = plt.subplots(figsize=(12, 8))

        self.plot_environment(ax)

        if path:
            self.plot_path(path, ax, color=self.COLORS['path'],
                           linewidth=2, label='Planned Path')

        if trail:
            self.plot_path([start] + list(trail), ax, color=self.COLORS['trail'],
                           linewidth=3, label='AUV Trail', show_waypoints=False, alpha=0.8)
            last = trail[-1]
            ax.scatter([last.x], [last.y], marker='s', s=120,
                       color=self.COLORS['vehicle'], edgecolors='black', label='AUV', zorder=5)

        self.plot_start_goal(start, goal, ax)

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.legend(loc='upper right')

        plt.tight_layout()
        return fig


def create_scenario(
    scenario: str = "wall",
    grid_config: GridConfig | None = None
) -> Tuple[List[Position], Position, Position]:
    """
    Create predefined test scenarios on the default 30x20 grid.

    Args:
        scenario: One of "open_water", "wall", "reef", "enclosed"

    Returns:
        (obstacles, start, goal)
    """
    config = grid_config or GridConfig()
    start = Position(4, 10)
    goal = Position(25, 10)

    if scenario == "open_water":
        obstacles: List[Position] = []

    elif scenario == "wall":
        # Wall across the direct route
        obstacles = [Position(x, 10) for x in range(10, 16)]

    elif scenario == "reef":
        # Staggered vertical reefs forcing a weave
        obstacles = [Position(10, y) for y in range(0, 14)]
        obstacles += [Position(18, y) for y in range(6, config.height)]
        obstacles += [Position(22, y) for y in range(0, 9)]

    elif scenario == "enclosed":
        # Goal boxed in on all sides
        obstacles = [
            Position(goal.x + dx, goal.y + dy)
            for dx in (-1, 0, 1) for dy in (-1, 0, 1)
            if (dx, dy) != (0, 0)
        ]

    else:
        raise ValueError(f"Unknown scenario: {scenario}")

    return obstacles, start, goal
