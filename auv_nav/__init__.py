"""AUV grid pathfinding: A*, RRT and online DQN planners."""

from .grid import GridConfig, Move, ObstacleGrid, Position
from .astar import AStarConfig, AStarPlanner, PlanningResult
from .rrt import RRTConfig, RRTPlanner
from .drl import DRLConfig, DRLPlanner, Experience, ReplayBuffer
from .smoothing import optimize_path, shortcut_path, collapse_straight_runs
from .planners import Algorithm, PlannerHandle, select_planner
from .session import (
    PlannerSession,
    StepKind,
    StepResult,
    clear_path_cache,
    predict_next_move,
)
from .simulation import Simulation, SimulationStats, generate_random_obstacles
from .benchmark import Benchmark, BenchmarkResult
from .visualization import Visualizer, create_scenario

__all__ = [
    # Grid
    "GridConfig",
    "Move",
    "ObstacleGrid",
    "Position",
    # Planners
    "AStarConfig",
    "AStarPlanner",
    "PlanningResult",
    "RRTConfig",
    "RRTPlanner",
    "DRLConfig",
    "DRLPlanner",
    "Experience",
    "ReplayBuffer",
    # Path post-processing
    "optimize_path",
    "shortcut_path",
    "collapse_straight_runs",
    # Dispatch and session
    "Algorithm",
    "PlannerHandle",
    "select_planner",
    "PlannerSession",
    "StepKind",
    "StepResult",
    "clear_path_cache",
    "predict_next_move",
    # Simulation
    "Simulation",
    "SimulationStats",
    "generate_random_obstacles",
    # Benchmark
    "Benchmark",
    "BenchmarkResult",
    # Visualization
    "Visualizer",
    "create_scenario",
]
