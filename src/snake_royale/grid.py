"""Grid representation for the snake arena."""

from __future__ import annotations

import copy
import enum
import logging
import math
from typing import NamedTuple

import numpy as np

from snake_royale.geometry import (
    ALL_ACTIONS,
    Action,
    Coordinate,
    Orientation,
    next_coord_towards,
    next_orientation,
)

logger = logging.getLogger(__name__)

# Owner code stored for cells that do not belong to a snake.
NO_OWNER = -1


class CellType(enum.IntEnum):
    """Integer codes stored in the grid buffer.

    ``EMPTY`` and ``FOOD`` come first so that free cells are exactly the
    codes ``<= FOOD``. ``WALL`` is only returned for out-of-bounds reads.
    """

    EMPTY = 0
    FOOD = 1
    OBSTACLE = 2
    WALL = 3
    SNAKE_HEAD = 4
    SNAKE_BODY = 5
    SNAKE_TAIL = 6


_SNAKE_TYPES = frozenset(
    {CellType.SNAKE_HEAD, CellType.SNAKE_BODY, CellType.SNAKE_TAIL},
)


class Cell(NamedTuple):
    """Content of one grid cell. ``snake_id`` is set for snake cells only."""

    kind: CellType
    snake_id: int | None = None

    @property
    def is_free(self) -> bool:
        """Empty and food cells can be entered."""
        return self.kind <= CellType.FOOD

    @property
    def is_snake(self) -> bool:
        return self.kind in _SNAKE_TYPES


EMPTY_CELL = Cell(CellType.EMPTY)
FOOD_CELL = Cell(CellType.FOOD)
OBSTACLE_CELL = Cell(CellType.OBSTACLE)
WALL_CELL = Cell(CellType.WALL)


class Grid:
    """NumPy-backed arena of ``width × height`` cells.

    Cells live in two flat buffers indexed by ``x + y * width``: one holds
    the :class:`CellType` code, the other the owning snake id (or
    :data:`NO_OWNER`). Reads are total; out-of-bounds reads yield
    :data:`WALL_CELL`.
    """

    def __init__(
        self,
        width: int = 20,
        height: int = 20,
        rng: np.random.Generator | None = None,
    ) -> None:
        if width < 4 or height < 4:
            raise ValueError("Grid dimensions must be at least 4×4.")
        self.width = width
        self.height = height
        self.size = width * height
        self.rng = rng if rng is not None else np.random.default_rng()
        self.kinds = np.zeros(self.size, dtype=np.int8)
        self.owners = np.full(self.size, NO_OWNER, dtype=np.int32)
        self.nb_free_cells = self.size
        self.nb_alive_snakes = 0

    @property
    def diagonal(self) -> float:
        """Length of the board diagonal, rounded up."""
        return float(math.ceil(math.hypot(self.width, self.height)))

    # -- coordinates -----------------------------------------------------

    def in_bounds(self, coord: Coordinate) -> bool:
        return 0 <= coord.x < self.width and 0 <= coord.y < self.height

    def to_pos(self, coord: Coordinate) -> int | None:
        """Linear position of *coord*, or ``None`` when out of bounds."""
        if not self.in_bounds(coord):
            return None
        return coord.to_pos(self.width)

    def to_coord(self, position: int) -> Coordinate:
        return Coordinate.from_pos(position, self.width)

    # -- cell access -----------------------------------------------------

    def tile_at(self, where: int | Coordinate) -> Cell:
        """Return the cell at a position or coordinate."""
        if isinstance(where, Coordinate):
            position = self.to_pos(where)
            if position is None:
                return WALL_CELL
        else:
            position = where
            if not 0 <= position < self.size:
                return WALL_CELL
        kind = CellType(int(self.kinds[position]))
        if kind in _SNAKE_TYPES:
            return Cell(kind, int(self.owners[position]))
        return Cell(kind)

    def is_free(self, where: int | Coordinate) -> bool:
        """Whether the cell is empty or food. Out of bounds is never free."""
        return self.tile_at(where).is_free

    def set_tile(self, position: int, cell: Cell) -> None:
        """Write *cell* at *position*.

        Raises:
            IndexError: If *position* lies outside the grid.
        """
        if not 0 <= position < self.size:
            raise IndexError(
                f"Position {position} out of bounds: W={self.width} "
                f"H={self.height} W*H={self.size}."
            )
        if cell.kind == CellType.WALL:
            raise ValueError("WALL cells cannot be stored in the grid.")
        self.kinds[position] = cell.kind
        self.owners[position] = (
            cell.snake_id if cell.snake_id is not None else NO_OWNER
        )

    # -- board population ------------------------------------------------

    def add_random_obstacles(self, count: int, max_size: int) -> None:
        """Scatter *count* square obstacles with sides in ``[1, max_size]``.

        Blocks may overlap each other; overlapping blocks simply cover fewer
        cells.
        """
        if count <= 0:
            return
        if not 1 <= max_size < min(self.width, self.height):
            raise ValueError(
                "max_size must be at least 1 and smaller than both grid "
                f"dimensions, got {max_size}."
            )
        for _ in range(count):
            side = int(self.rng.integers(0, max_size)) + 1
            x = int(self.rng.integers(0, self.width - side))
            y = int(self.rng.integers(0, self.height - side))
            for i in range(side):
                for j in range(side):
                    position = Coordinate(x + i, y + j).to_pos(self.width)
                    if self.kinds[position] != CellType.OBSTACLE:
                        self.set_tile(position, OBSTACLE_CELL)
                        self.nb_free_cells -= 1
        logger.debug(
            "Placed %d obstacle(s), %d free cells left.",
            count,
            self.nb_free_cells,
        )

    def regenerate_food(self, probability: float) -> int | None:
        """With *probability*, turn one random empty cell into food.

        Returns the position that holds food afterwards, or ``None`` when
        nothing was placed.
        """
        if self.rng.random() >= probability:
            return None
        position = int(self.rng.integers(0, self.size))
        if self.kinds[position] > CellType.FOOD:
            return None
        self.set_tile(position, FOOD_CELL)
        return position

    def recount_free_cells(self) -> int:
        """Recompute and return the number of empty and food cells."""
        self.nb_free_cells = int(np.count_nonzero(self.kinds <= CellType.FOOD))
        return self.nb_free_cells

    def non_suicidal_actions(
        self, origin: Coordinate, orientation: Orientation,
    ) -> list[Action]:
        """Actions from *origin* whose destination is in bounds and free.

        The result follows the order Left, Front, Right.
        """
        actions: list[Action] = []
        for action in ALL_ACTIONS:
            target = next_coord_towards(
                origin, next_orientation(orientation, action),
            )
            if self.is_free(target):
                actions.append(action)
        return actions

    # -- copies ----------------------------------------------------------

    def snapshot(self) -> Grid:
        """Return a read-only copy of the grid.

        Writing to the copy raises ``ValueError``.
        """
        snap = Grid.__new__(Grid)
        snap.width = self.width
        snap.height = self.height
        snap.size = self.size
        # Draws on the copy must not advance the live generator.
        snap.rng = copy.deepcopy(self.rng)
        snap.kinds = self.kinds.copy()
        snap.owners = self.owners.copy()
        snap.kinds.setflags(write=False)
        snap.owners.setflags(write=False)
        snap.nb_free_cells = self.nb_free_cells
        snap.nb_alive_snakes = self.nb_alive_snakes
        return snap

    def to_dict(self) -> dict:
        """Serialize grid state to a dictionary of row-major lists."""
        return {
            "width": self.width,
            "height": self.height,
            "cells": self.kinds.reshape(self.height, self.width).tolist(),
            "owners": self.owners.reshape(self.height, self.width).tolist(),
            "nb_free_cells": self.nb_free_cells,
            "nb_alive_snakes": self.nb_alive_snakes,
        }
