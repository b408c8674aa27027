"""Tests for the grid geometry primitives."""

import pytest

from auv_nav.grid import GridConfig, Move, ObstacleGrid, Position, obstacle_key


class TestPosition:
    """Tests for the Position value type."""

    def test_structural_equality(self):
        """Two positions with the same coordinates are the same cell."""
        # WHY: Paths, caches and obstacle sets all rely on value equality.
        assert Position(3, 4) == Position(3, 4)
        assert len({Position(3, 4), Position(3, 4)}) == 1

    def test_distance_to_other_point(self):
        """Classic 3-4-5 triangle should give distance of 5."""
        a = Position(0, 0)
        b = Position(3, 4)
        assert a.distance_to(b) == pytest.approx(5.0)
        assert a.manhattan_to(b) == 7

    def test_step_moves_one_cell(self):
        p = Position(5, 5)
        assert p.step(Move.LEFT) == Position(4, 5)
        assert p.step(Move.RIGHT) == Position(6, 5)
        assert p.step(Move.UP) == Position(5, 4)
        assert p.step(Move.DOWN) == Position(5, 6)

    def test_unpacks_to_tuple(self):
        x, y = Position(1, 2)
        assert (x, y) == (1, 2)
        assert Position(1, 2).to_tuple() == (1, 2)


class TestMove:
    """Tests for deriving moves between cells."""

    def test_move_values_match_action_codes(self):
        """Move values are the integers the simulation loop understands."""
        # WHY: The front end switches on 0-3, so the enum values are a contract.
        assert [int(m) for m in (Move.LEFT, Move.RIGHT, Move.UP, Move.DOWN)] == [0, 1, 2, 3]

    def test_between_adjacent_cells(self):
        c = Position(5, 5)
        assert Move.between(c, Position(4, 5)) is Move.LEFT
        assert Move.between(c, Position(6, 5)) is Move.RIGHT
        assert Move.between(c, Position(5, 4)) is Move.UP
        assert Move.between(c, Position(5, 6)) is Move.DOWN

    def test_between_resolves_x_first(self):
        """A diagonal or distant waypoint is approached along x first."""
        # WHY: RRT waypoints can be several cells away; the vehicle still
        # has to make a single-axis move each tick.
        assert Move.between(Position(0, 0), Position(3, 3)) is Move.RIGHT
        assert Move.between(Position(5, 5), Position(5, 0)) is Move.UP

    def test_between_same_cell_is_none(self):
        assert Move.between(Position(2, 2), Position(2, 2)) is None


class TestObstacleGrid:
    """Tests for bounds, membership and collision checks."""

    def setup_method(self):
        """Default 30x20 grid with no obstacles."""
        self.grid = ObstacleGrid([])

    def test_default_dimensions(self):
        assert self.grid.width == 30
        assert self.grid.height == 20
        assert self.grid.occupancy.shape == (20, 30)

    def test_out_of_bounds_is_not_free(self):
        """Positions outside the map count as blocked."""
        # WHY: The vehicle should never leave the grid. Treating
        # out-of-bounds as a wall prevents that.
        assert not self.grid.is_free(Position(-1, 5))
        assert not self.grid.is_free(Position(30, 5))
        assert not self.grid.is_free(Position(5, 20))
        assert self.grid.is_free(Position(29, 19))

    def test_obstacle_membership(self):
        grid = ObstacleGrid([Position(3, 3), (4, 4)])
        assert grid.is_obstacle(Position(3, 3))
        assert grid.is_obstacle(Position(4, 4))
        assert not grid.is_free(Position(4, 4))
        assert grid.is_free(Position(5, 5))

    def test_duplicate_obstacles_collapse(self):
        grid = ObstacleGrid([Position(1, 1), Position(1, 1), (1, 1)])
        assert len(grid.obstacles) == 1

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            GridConfig(width=0, height=10)

    def test_neighbors_order_and_bounds(self):
        """Cardinal neighbors come up, right, down, left and stay in bounds."""
        # WHY: A* breaks ties in insertion order, so neighbor order shapes
        # which of several equally short paths is returned.
        cells = [p for p, _ in self.grid.neighbors(Position(5, 5))]
        assert cells == [Position(5, 4), Position(6, 5), Position(5, 6), Position(4, 5)]

        corner = [p for p, _ in self.grid.neighbors(Position(0, 0))]
        assert corner == [Position(1, 0), Position(0, 1)]

    def test_diagonal_neighbors_do_not_cut_corners(self):
        """A diagonal is dropped when an orthogonal cell next to it is blocked."""
        grid = ObstacleGrid([Position(6, 5)])
        cells = {p for p, diag in grid.neighbors(Position(5, 5), diagonal=True) if diag}
        assert Position(6, 4) not in cells
        assert Position(6, 6) not in cells
        assert Position(4, 4) in cells
        assert Position(4, 6) in cells

    def test_horizontal_segment_ignores_neighbouring_rows(self):
        """A segment along a row only touches that row."""
        grid = ObstacleGrid([Position(8, 11), Position(8, 9)])
        assert grid.segment_is_clear(Position(4, 10), Position(12, 10))

    def test_segment_through_obstacle_is_blocked(self):
        grid = ObstacleGrid([Position(8, 10)])
        assert not grid.segment_is_clear(Position(4, 10), Position(12, 10))

    def test_diagonal_segment_keeps_margin(self):
        """A diagonal segment may not graze an obstacle's corner."""
        # WHY: The vehicle follows diagonals as a staircase of single-axis
        # moves, so cells beside the diagonal must be free as well.
        grid = ObstacleGrid([Position(1, 0)])
        assert not grid.segment_is_clear(Position(0, 0), Position(2, 2))
        assert grid.segment_is_clear(Position(0, 1), Position(2, 3))

    def test_segment_check_is_symmetric(self):
        grid = ObstacleGrid([Position(5, 7), Position(9, 3), Position(12, 12)])
        a, b = Position(2, 1), Position(17, 14)
        assert grid.segment_is_clear(a, b) == grid.segment_is_clear(b, a)

    def test_segment_to_blocked_endpoint(self):
        grid = ObstacleGrid([Position(10, 10)])
        assert not grid.segment_is_clear(Position(5, 10), Position(10, 10))
        assert not grid.segment_is_clear(Position(5, 10), Position(30, 10))

    def test_nearest_obstacle(self):
        grid = ObstacleGrid([Position(10, 10), Position(2, 2)])
        assert grid.nearest_obstacle(Position(3, 3)) == Position(2, 2)
        assert grid.nearest_obstacle(Position(12, 9)) == Position(10, 10)
        assert grid.nearest_obstacle(Position(10, 10)) == Position(10, 10)

    def test_nearest_obstacle_without_obstacles(self):
        assert self.grid.nearest_obstacle(Position(3, 3)) is None

    def test_obstacle_key_ignores_order(self):
        a = [Position(3, 1), Position(1, 2), Position(10, 0)]
        assert obstacle_key(a) == obstacle_key(reversed(a))
        assert obstacle_key(a) != obstacle_key(a[:2])
