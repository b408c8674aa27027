"""Tests for the planner session and its path cache."""

import pytest

from auv_nav import session as session_module
from auv_nav.astar import AStarPlanner
from auv_nav.grid import GridConfig, Move, Position
from auv_nav.planners import Algorithm, PlannerHandle, select_planner
from auv_nav.session import NO_MOVE, PlannerSession, StepKind, cache_key


class CountingPlanner:
    """A* wrapper that counts how often it is asked to plan."""

    def __init__(self):
        self.calls = 0
        self.astar = AStarPlanner()

    def find_path(self, start, goal, obstacles):
        self.calls += 1
        return self.astar.find_path(start, goal, obstacles)


def counting_factory(counter, deterministic=True):
    def factory(algorithm, grid_config):
        return PlannerHandle(
            algorithm=algorithm,
            name="counting",
            description="",
            deterministic=deterministic,
            find_path=counter.find_path,
            planner=counter
        )
    return factory


START = Position(4, 10)
GOAL = Position(25, 10)


class TestNextStep:
    """Tests for per-tick move prediction."""

    def setup_method(self):
        """Session backed by a counting A* planner."""
        # WHY: Counting calls is the only way to tell a cache hit from a
        # fresh plan that happens to return the same path.
        self.counter = CountingPlanner()
        self.session = PlannerSession(planner_factory=counting_factory(self.counter))

    def test_first_move_in_open_water(self):
        assert self.session.predict_next_move(START, GOAL, [], "astar") == int(Move.RIGHT)

    def test_drives_to_goal_then_reports_arrival(self):
        """Following the answers moves right 21 times and then stops."""
        position, moves = START, []
        for _ in range(30):
            code = self.session.predict_next_move(position, GOAL, [], "astar")
            if code == NO_MOVE:
                break
            moves.append(code)
            position = position.step(Move(code))

        assert moves == [int(Move.RIGHT)] * 21
        assert position == GOAL

    def test_identical_call_reuses_path(self):
        """Asking twice with the same inputs plans once."""
        a = self.session.predict_next_move(START, GOAL, [], "astar")
        b = self.session.predict_next_move(START, GOAL, [], "astar")

        assert a == b
        assert self.counter.calls == 1
        assert self.session.plan_count == 1

    def test_replans_when_goal_changes(self):
        self.session.next_step(START, GOAL, [], "astar")
        self.session.next_step(START, Position(25, 15), [], "astar")
        assert self.counter.calls == 2

    def test_replans_when_obstacles_change(self):
        self.session.next_step(START, GOAL, [], "astar")
        step = self.session.next_step(START, GOAL, [Position(5, 10)], "astar")

        assert self.counter.calls == 2
        assert step.move is not Move.RIGHT

    def test_replans_when_algorithm_changes(self):
        self.session.next_step(START, GOAL, [], "astar")
        self.session.next_step(START, GOAL, [], "rrt")
        assert self.counter.calls == 2

    def test_replans_when_off_path(self):
        """A vehicle that is not on the current path gets a new one."""
        self.session.next_step(START, GOAL, [], "astar")
        step = self.session.next_step(Position(4, 5), GOAL, [], "astar")

        assert self.counter.calls == 2
        assert step.kind is StepKind.MOVE

    def test_moving_along_path_replans_from_new_cell(self):
        """The current cell is part of the key, so each move plans again."""
        self.session.next_step(START, GOAL, [], "astar")
        self.session.next_step(Position(5, 10), GOAL, [], "astar")
        assert self.counter.calls == 2

    def test_at_goal_is_arrived(self):
        step = self.session.next_step(GOAL, GOAL, [], "astar")

        assert step.kind is StepKind.ARRIVED
        assert step.move is None
        assert step.code == NO_MOVE

    def test_unreachable_goal_is_blocked(self):
        """No path and arrival share -1, but next_step tells them apart."""
        walls = [Position(GOAL.x + dx, GOAL.y + dy)
                 for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)]
        step = self.session.next_step(START, GOAL, walls, "astar")

        assert step.kind is StepKind.BLOCKED
        assert step.code == NO_MOVE
        assert self.session.predict_next_move(START, GOAL, walls, "astar") == NO_MOVE

    def test_obstacle_order_does_not_matter(self):
        obstacles = [Position(10, 3), Position(2, 15), Position(20, 7)]
        self.session.next_step(START, GOAL, obstacles, "astar")
        self.session.next_step(START, GOAL, list(reversed(obstacles)), "astar")
        assert self.counter.calls == 1

    def test_reentrant_call_is_rejected(self):
        """A planner that calls back into its own session is an error."""
        session = self.session

        def reentrant(algorithm, grid_config):
            def find_path(start, goal, obstacles):
                return session.next_step(start, goal, obstacles, "astar")
            return PlannerHandle(algorithm, "reentrant", "", True, find_path)

        session.planner_factory = reentrant
        with pytest.raises(RuntimeError):
            session.next_step(START, GOAL, [], "drl")

        # Lock is released again afterwards
        session.planner_factory = counting_factory(self.counter)
        assert session.next_step(START, GOAL, [], "rrt").kind is StepKind.MOVE

    def test_reset_during_plan_is_rejected(self):
        """Cache and path cannot be cleared while a plan is in flight."""
        # WHY: The move is derived from the path right after planning. A
        # reset in between would leave the vehicle without a path.
        session, counter, errors = self.session, self.counter, []

        def resetting(algorithm, grid_config):
            def find_path(start, goal, obstacles):
                for clear in (session.reset, session.clear_cache):
                    try:
                        clear()
                    except RuntimeError as exc:
                        errors.append(exc)
                return counter.find_path(start, goal, obstacles)
            return PlannerHandle(algorithm, "resetting", "", True, find_path)

        session.planner_factory = resetting
        step = session.next_step(START, GOAL, [], "drl")

        assert len(errors) == 2
        assert step.move is Move.RIGHT
        assert session.path[-1] == GOAL
        assert cache_key("drl", START, GOAL, []) in session.cache

        # Outside a plan both work again
        session.reset()
        assert session.path == []
        assert session.cache == {}


class TestPathCache:
    """Tests for cache contents and invalidation."""

    def test_deterministic_paths_are_cached(self):
        session = PlannerSession(planner_factory=counting_factory(CountingPlanner()))
        session.next_step(START, GOAL, [], "astar")

        key = cache_key("astar", START, GOAL, [])
        assert key in session.cache
        assert session.cache[key][0] == START
        assert session.cache[key][-1] == GOAL

    def test_stochastic_paths_are_not_cached(self):
        session = PlannerSession(planner_factory=counting_factory(CountingPlanner(), deterministic=False))
        session.next_step(START, GOAL, [], "rrt")
        assert session.cache == {}

    def test_stochastic_caching_can_be_enabled(self):
        session = PlannerSession(
            planner_factory=counting_factory(CountingPlanner(), deterministic=False),
            cache_stochastic=True
        )
        session.next_step(START, GOAL, [], "rrt")
        assert len(session.cache) == 1

    def test_clear_cache(self):
        counter = CountingPlanner()
        session = PlannerSession(planner_factory=counting_factory(counter))
        session.next_step(START, GOAL, [], "astar")

        session.clear_cache()

        assert session.cache == {}

    def test_reset_forgets_current_path(self):
        counter = CountingPlanner()
        session = PlannerSession(planner_factory=counting_factory(counter))
        session.next_step(START, GOAL, [], "astar")

        session.reset()
        session.next_step(START, GOAL, [], "astar")

        assert counter.calls == 2

    def test_cache_key_format(self):
        key = cache_key("rrt", Position(1, 2), Position(3, 4), [Position(9, 9), Position(0, 5)])
        assert key == "rrt-1,2-3,4-0,5|9,9"


class TestPlannerSelection:
    """Tests for algorithm dispatch."""

    def test_unknown_algorithm_defaults_to_astar(self):
        assert Algorithm.parse("dijkstra") is Algorithm.ASTAR
        assert select_planner("dijkstra").algorithm is Algorithm.ASTAR

    def test_handles_report_determinism(self):
        assert select_planner("astar").deterministic
        assert not select_planner("rrt", seed=1).deterministic
        assert not select_planner("drl", seed=1).deterministic

    def test_each_selection_is_a_new_instance(self):
        assert select_planner("rrt").planner is not select_planner("rrt").planner

    def test_session_keeps_planner_per_algorithm(self):
        session = PlannerSession(GridConfig())
        assert session.planner("drl") is session.planner(Algorithm.DRL)


class TestModuleLevelApi:
    """Tests for the process-wide convenience functions."""

    def setup_method(self):
        session_module._default_session = None

    def teardown_method(self):
        session_module._default_session = None

    def test_predict_and_clear(self):
        assert session_module.predict_next_move((4, 10), (25, 10), [], "astar") == int(Move.RIGHT)
        assert session_module.default_session().cache

        session_module.clear_path_cache()

        assert session_module.default_session().cache == {}
