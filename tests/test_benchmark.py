"""Tests for the planner benchmark and scenario plotting."""

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from auv_nav.benchmark import Benchmark, reaches_goal
from auv_nav.grid import ObstacleGrid, Position
from auv_nav.planners import Algorithm
from auv_nav.visualization import Visualizer, create_scenario


class TestBenchmark:
    """Tests for single runs and aggregated statistics."""

    def setup_method(self):
        """Wall scenario with the two fast planners."""
        # WHY: The DQN planner trains a network per query, which is slow
        # and adds nothing to checking the bookkeeping.
        self.obstacles, self.start, self.goal = create_scenario("wall")
        self.benchmark = Benchmark(self.obstacles, algorithms=(Algorithm.ASTAR, Algorithm.RRT), seed=1)

    def test_astar_result(self):
        result = self.benchmark.run_single(self.start, self.goal, "astar")

        assert result.success
        assert result.path_length == pytest.approx(23.0)
        assert result.nodes_explored > 0
        assert result.path_smoothness > 0.0

    def test_comparison_covers_all_planners(self):
        results = self.benchmark.run_comparison(self.start, self.goal)

        assert set(results) == {"astar", "rrt"}
        assert results["astar"].success
        assert results["rrt"].success
        assert results["rrt"].path[-1] == self.goal

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            self.benchmark.run_single(self.start, self.goal, "dijkstra")

    def test_suite_statistics(self):
        stats = self.benchmark.run_benchmark_suite([(self.start, self.goal)], num_trials=2)

        assert stats["astar"]["success_rate"] == pytest.approx(1.0)
        assert stats["astar"]["avg_length"] == pytest.approx(23.0)
        assert 0.0 <= stats["rrt"]["success_rate"] <= 1.0

    def test_failed_run_on_enclosed_goal(self):
        obstacles, start, goal = create_scenario("enclosed")
        benchmark = Benchmark(obstacles, algorithms=(Algorithm.ASTAR,))

        result = benchmark.run_single(start, goal, "astar")

        assert not result.success
        assert str(result) == "astar: FAILED"

    def test_reaches_goal(self):
        grid = ObstacleGrid([Position(5, 0)])
        assert reaches_goal([Position(0, 0), Position(0, 3)], Position(0, 3), grid)
        assert not reaches_goal([Position(0, 0), Position(9, 0)], Position(9, 0), grid)
        assert not reaches_goal([], Position(9, 0), grid)


class TestScenarios:
    """Tests for the predefined scenarios and their plots."""

    @pytest.mark.parametrize("name", ["open_water", "wall", "reef", "enclosed"])
    def test_endpoints_are_free(self, name):
        obstacles, start, goal = create_scenario(name)
        grid = ObstacleGrid(obstacles)

        assert grid.is_free(start)
        assert grid.is_free(goal)

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            create_scenario("trench")

    def test_plot_planning_result(self):
        obstacles, start, goal = create_scenario("wall")
        viz = Visualizer(ObstacleGrid(obstacles))

        fig = viz.plot_planning_result(
            start, goal,
            path=[start, Position(9, 9), Position(16, 9), goal],
            trail=[Position(5, 10), Position(6, 10)]
        )

        assert len(fig.axes) == 1
        plt.close(fig)
