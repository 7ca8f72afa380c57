"""Tests for the Grid module."""

import numpy as np
import pytest

from snake_royale.geometry import Action, Coordinate, Orientation
from snake_royale.grid import (
    EMPTY_CELL,
    FOOD_CELL,
    OBSTACLE_CELL,
    WALL_CELL,
    Cell,
    CellType,
    Grid,
)


def _pos(grid, x, y):
    return Coordinate(x, y).to_pos(grid.width)


class TestGridInit:
    def test_default_dimensions(self):
        grid = Grid()
        assert grid.width == 20
        assert grid.height == 20
        assert grid.size == 400

    def test_minimum_size_enforced(self):
        with pytest.raises(ValueError, match="at least 4"):
            Grid(width=3, height=4)
        with pytest.raises(ValueError, match="at least 4"):
            Grid(width=4, height=3)

    def test_all_cells_start_empty(self):
        grid = Grid(width=5, height=6)
        assert np.all(grid.kinds == CellType.EMPTY)
        assert grid.nb_free_cells == 30
        assert grid.nb_alive_snakes == 0

    def test_diagonal_is_rounded_up(self):
        assert Grid(width=5, height=5).diagonal == 8.0
        assert Grid(width=6, height=8).diagonal == 10.0


class TestGridAccess:
    def test_set_and_get_by_position(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(7, Cell(CellType.SNAKE_BODY, 3))
        assert grid.tile_at(7) == Cell(CellType.SNAKE_BODY, 3)

    def test_get_by_coordinate(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(_pos(grid, 2, 3), FOOD_CELL)
        assert grid.tile_at(Coordinate(2, 3)) == FOOD_CELL

    def test_non_snake_cells_have_no_owner(self):
        grid = Grid(width=5, height=5)
        assert grid.tile_at(0) == EMPTY_CELL
        assert grid.tile_at(0).snake_id is None

    @pytest.mark.parametrize(
        "coord", [Coordinate(-1, 0), Coordinate(5, 0), Coordinate(0, -1),
                  Coordinate(0, 5)],
    )
    def test_out_of_bounds_coordinates_are_walls(self, coord):
        grid = Grid(width=5, height=5)
        assert grid.tile_at(coord) == WALL_CELL

    def test_out_of_range_positions_are_walls(self):
        grid = Grid(width=5, height=5)
        assert grid.tile_at(-1) == WALL_CELL
        assert grid.tile_at(25) == WALL_CELL

    def test_row_overflow_is_a_wall_not_the_next_row(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(_pos(grid, 0, 1), OBSTACLE_CELL)
        # (5, 0) would alias (0, 1) through the linear formula.
        assert grid.tile_at(Coordinate(5, 0)) == WALL_CELL

    def test_set_out_of_bounds_raises(self):
        grid = Grid(width=5, height=5)
        with pytest.raises(IndexError, match="out of bounds"):
            grid.set_tile(25, FOOD_CELL)
        with pytest.raises(IndexError, match="out of bounds"):
            grid.set_tile(-1, FOOD_CELL)

    def test_walls_are_never_stored(self):
        grid = Grid(width=5, height=5)
        with pytest.raises(ValueError, match="WALL"):
            grid.set_tile(0, WALL_CELL)

    def test_is_free(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(1, FOOD_CELL)
        grid.set_tile(2, OBSTACLE_CELL)
        grid.set_tile(3, Cell(CellType.SNAKE_TAIL, 0))
        assert grid.is_free(0)
        assert grid.is_free(1)
        assert not grid.is_free(2)
        assert not grid.is_free(3)
        assert not grid.is_free(Coordinate(-1, 0))

    def test_to_pos_and_to_coord(self):
        grid = Grid(width=6, height=5)
        assert grid.to_pos(Coordinate(4, 3)) == 22
        assert grid.to_pos(Coordinate(6, 0)) is None
        assert grid.to_coord(22) == Coordinate(4, 3)


class TestObstacles:
    def test_obstacles_are_placed(self):
        grid = Grid(width=10, height=10, rng=np.random.default_rng(0))
        grid.add_random_obstacles(5, 2)
        nb_obstacles = int(np.count_nonzero(grid.kinds == CellType.OBSTACLE))
        assert 1 <= nb_obstacles <= 5 * 4

    def test_free_counter_matches_recount(self):
        grid = Grid(width=10, height=10, rng=np.random.default_rng(3))
        grid.add_random_obstacles(8, 3)
        counted = grid.nb_free_cells
        assert grid.recount_free_cells() == counted

    def test_zero_obstacles(self):
        grid = Grid(width=5, height=5)
        grid.add_random_obstacles(0, 2)
        assert grid.nb_free_cells == 25

    def test_max_size_must_fit(self):
        grid = Grid(width=5, height=5)
        with pytest.raises(ValueError, match="max_size"):
            grid.add_random_obstacles(1, 5)
        with pytest.raises(ValueError, match="max_size"):
            grid.add_random_obstacles(1, 0)

    def test_same_seed_same_obstacles(self):
        a = Grid(width=12, height=12, rng=np.random.default_rng(9))
        b = Grid(width=12, height=12, rng=np.random.default_rng(9))
        a.add_random_obstacles(5, 2)
        b.add_random_obstacles(5, 2)
        assert np.array_equal(a.kinds, b.kinds)


class TestFood:
    def test_probability_one_places_food_on_empty_board(self):
        grid = Grid(width=5, height=5, rng=np.random.default_rng(1))
        position = grid.regenerate_food(1.0)
        assert position is not None
        assert grid.tile_at(position) == FOOD_CELL

    def test_probability_zero_never_places_food(self):
        grid = Grid(width=5, height=5, rng=np.random.default_rng(1))
        for _ in range(50):
            assert grid.regenerate_food(0.0) is None
        assert not np.any(grid.kinds == CellType.FOOD)

    def test_never_overwrites_occupied_cells(self):
        grid = Grid(width=4, height=4, rng=np.random.default_rng(5))
        for position in range(grid.size):
            if position % 2:
                grid.set_tile(position, OBSTACLE_CELL)
            else:
                grid.set_tile(position, Cell(CellType.SNAKE_BODY, 2))
        before_kinds = grid.kinds.copy()
        before_owners = grid.owners.copy()
        for _ in range(200):
            assert grid.regenerate_food(1.0) is None
        assert np.array_equal(grid.kinds, before_kinds)
        assert np.array_equal(grid.owners, before_owners)

    def test_repeated_regeneration_only_creates_food(self):
        grid = Grid(width=6, height=6, rng=np.random.default_rng(2))
        grid.set_tile(0, OBSTACLE_CELL)
        grid.set_tile(1, Cell(CellType.SNAKE_HEAD, 0))
        for _ in range(500):
            grid.regenerate_food(1.0)
        assert grid.tile_at(0) == OBSTACLE_CELL
        assert grid.tile_at(1) == Cell(CellType.SNAKE_HEAD, 0)
        kinds = set(grid.kinds[2:].tolist())
        assert kinds <= {CellType.EMPTY, CellType.FOOD}


class TestFreeCells:
    def test_recount_includes_food_only(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(0, FOOD_CELL)
        grid.set_tile(1, OBSTACLE_CELL)
        grid.set_tile(2, Cell(CellType.SNAKE_HEAD, 0))
        grid.set_tile(3, Cell(CellType.SNAKE_BODY, 0))
        grid.set_tile(4, Cell(CellType.SNAKE_TAIL, 0))
        assert grid.recount_free_cells() == 21
        assert grid.nb_free_cells == 21


class TestNonSuicidalActions:
    def test_open_board_allows_everything(self):
        grid = Grid(width=5, height=5)
        actions = grid.non_suicidal_actions(Coordinate(2, 2), Orientation.NORTH)
        assert actions == [Action.LEFT, Action.FRONT, Action.RIGHT]

    def test_corner_excludes_walls(self):
        grid = Grid(width=5, height=5)
        # Facing north in the top-left corner: left is west, front is north.
        actions = grid.non_suicidal_actions(Coordinate(0, 0), Orientation.NORTH)
        assert actions == [Action.RIGHT]

    def test_occupied_cells_are_excluded(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(_pos(grid, 2, 1), OBSTACLE_CELL)
        grid.set_tile(_pos(grid, 3, 2), Cell(CellType.SNAKE_TAIL, 1))
        actions = grid.non_suicidal_actions(Coordinate(2, 2), Orientation.NORTH)
        assert actions == [Action.LEFT]

    def test_food_is_allowed(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(_pos(grid, 3, 2), FOOD_CELL)
        actions = grid.non_suicidal_actions(Coordinate(2, 2), Orientation.EAST)
        assert Action.FRONT in actions

    def test_fully_blocked(self):
        grid = Grid(width=5, height=5)
        for x, y in ((1, 0), (0, 1)):
            grid.set_tile(_pos(grid, x, y), OBSTACLE_CELL)
        assert grid.non_suicidal_actions(Coordinate(0, 0), Orientation.NORTH) == []


class TestSnapshot:
    def test_snapshot_is_a_copy(self):
        grid = Grid(width=5, height=5)
        grid.nb_alive_snakes = 2
        snap = grid.snapshot()
        grid.set_tile(0, FOOD_CELL)
        assert snap.tile_at(0) == EMPTY_CELL
        assert snap.nb_alive_snakes == 2

    def test_snapshot_is_read_only(self):
        snap = Grid(width=5, height=5).snapshot()
        with pytest.raises(ValueError):
            snap.set_tile(0, FOOD_CELL)

    def test_snapshot_draws_do_not_advance_the_grid_rng(self):
        grid = Grid(width=5, height=5, rng=np.random.default_rng(7))
        twin = Grid(width=5, height=5, rng=np.random.default_rng(7))
        snap = grid.snapshot()
        assert snap.rng is not grid.rng
        assert snap.regenerate_food(0.0) is None
        assert grid.rng.random() == twin.rng.random()


class TestGridSerialization:
    def test_to_dict_structure(self):
        grid = Grid(width=6, height=5)
        d = grid.to_dict()
        assert d["width"] == 6
        assert d["height"] == 5
        assert len(d["cells"]) == 5
        assert len(d["cells"][0]) == 6

    def test_to_dict_reflects_state(self):
        grid = Grid(width=5, height=5)
        grid.set_tile(_pos(grid, 2, 1), Cell(CellType.SNAKE_HEAD, 4))
        d = grid.to_dict()
        assert d["cells"][1][2] == CellType.SNAKE_HEAD
        assert d["owners"][1][2] == 4
