"""Snake representation and movement logic."""

from __future__ import annotations

import enum
import logging
from collections import deque
from typing import TYPE_CHECKING

from snake_royale.geometry import (
    Action,
    Coordinate,
    Orientation,
    next_coord_towards,
    next_orientation,
)
from snake_royale.grid import EMPTY_CELL, Cell, CellType, Grid

if TYPE_CHECKING:
    from snake_royale.controller import Controller

logger = logging.getLogger(__name__)

# Number of moves between two automatic growth ticks.
GROWTH_RATE = 3


class SnakeStatus(enum.Enum):
    """Lifecycle of a snake within one game."""

    ALIVE = "alive"
    JUST_DIED = "just_died"
    DEAD = "dead"


class SnakeState:
    """The part of a snake that controllers get to see.

    ``body`` holds linear grid positions; the head is ``body[0]`` and the
    tail is ``body[-1]``. Controllers must treat it as read-only.
    """

    __slots__ = ("snake_id", "body", "orientation", "status")

    def __init__(self, snake_id: int) -> None:
        self.snake_id = snake_id
        self.body: deque[int] = deque()
        self.orientation = Orientation.NORTH
        self.status = SnakeStatus.ALIVE

    @property
    def alive(self) -> bool:
        return self.status is SnakeStatus.ALIVE

    @property
    def head_pos(self) -> int:
        return self.body[0]

    def head_coord(self, grid: Grid) -> Coordinate:
        return grid.to_coord(self.body[0])

    def to_dict(self) -> dict:
        """Serialize snake state to a dictionary."""
        return {
            "snake_id": self.snake_id,
            "body": list(self.body),
            "orientation": self.orientation.name,
            "alive": self.alive,
        }


class Snake:
    """A snake driven by a controller.

    The growth countdown is decremented on every successful move. When it
    reaches zero the snake keeps its tail for that move and the countdown
    starts over from ``growth_rate``.
    """

    def __init__(
        self,
        snake_id: int,
        controller: Controller,
        growth_rate: int = GROWTH_RATE,
    ) -> None:
        if growth_rate < 1:
            raise ValueError("growth_rate must be at least 1.")
        self.state = SnakeState(snake_id)
        self.controller = controller
        self.growth_rate = growth_rate
        self.growth_countdown = growth_rate

    @property
    def snake_id(self) -> int:
        return self.state.snake_id

    @property
    def body(self) -> deque[int]:
        return self.state.body

    @property
    def status(self) -> SnakeStatus:
        return self.state.status

    @property
    def alive(self) -> bool:
        return self.state.alive

    def place(self, position: int, grid: Grid) -> None:
        """Put a fresh single-cell snake at *position*, facing north."""
        if self.body:
            raise RuntimeError(f"Snake {self.snake_id} is already placed.")
        self.body.append(position)
        self.state.orientation = Orientation.NORTH
        grid.set_tile(position, Cell(CellType.SNAKE_HEAD, self.snake_id))

    def choose_action(self, grid: Grid) -> Action | None:
        """Ask the controller for the next action.

        Dead snakes are not asked; ``None`` is returned instead. A
        controller that returns nothing gets :attr:`Action.FRONT`.
        """
        if not self.alive:
            logger.warning(
                "choose_action() called on dead snake %d.", self.snake_id,
            )
            return None
        action = self.controller.next_action(self.state, grid)
        if action is None:
            logger.debug(
                "Controller of snake %d chose nothing, going front.",
                self.snake_id,
            )
            return Action.FRONT
        return action

    def make_a_step(self, action: Action, grid: Grid) -> None:
        """Move one cell according to *action* and update the grid.

        A blocked move marks the snake as just died and only turns its
        current head into body. Collisions between heads arriving on the
        same cell are settled afterwards by the game, see
        :meth:`head_is_intact`.
        """
        if not self.alive:
            logger.warning(
                "make_a_step() called on dead snake %d.", self.snake_id,
            )
            return

        sid = self.snake_id
        orientation = next_orientation(self.state.orientation, action)
        head_pos = self.body[0]
        target = next_coord_towards(grid.to_coord(head_pos), orientation)
        target_pos = grid.to_pos(target)

        if target_pos is None:
            self._die(head_pos, grid, "hit the wall")
            return

        target_cell = grid.tile_at(target_pos)
        if not target_cell.is_free:
            if (
                target_cell.kind == CellType.SNAKE_HEAD
                and target_cell.snake_id != sid
            ):
                # Claim the contested head so its owner notices the clash.
                grid.set_tile(target_pos, Cell(CellType.SNAKE_HEAD, sid))
            self._die(head_pos, grid, f"ran into {target_cell.kind.name}")
            return

        ate = target_cell.kind == CellType.FOOD

        if self.growth_countdown <= 0:
            raise RuntimeError(
                f"Snake {sid} has a non-positive growth countdown."
            )
        self.growth_countdown -= 1
        growing = self.growth_countdown == 0
        if growing:
            self.growth_countdown = self.growth_rate

        self.body.appendleft(target_pos)
        self.state.orientation = orientation

        grid.set_tile(head_pos, Cell(CellType.SNAKE_BODY, sid))
        if not ate and not growing:
            grid.set_tile(self.body.pop(), EMPTY_CELL)
            if not self.body:
                raise RuntimeError(
                    f"Snake {sid} has an empty body after moving."
                )
        grid.set_tile(self.body[-1], Cell(CellType.SNAKE_TAIL, sid))
        grid.set_tile(target_pos, Cell(CellType.SNAKE_HEAD, sid))

    def head_is_intact(self, grid: Grid) -> bool:
        """Whether the head cell still carries this snake's head."""
        return grid.tile_at(self.body[0]) == Cell(
            CellType.SNAKE_HEAD, self.snake_id,
        )

    def mark_just_died(self) -> None:
        if self.alive:
            self.state.status = SnakeStatus.JUST_DIED

    def remove_from_board(self, grid: Grid) -> None:
        """Clear the body from the grid and become dead for good."""
        if self.status is SnakeStatus.DEAD:
            logger.warning(
                "Snake %d was already removed from the board.", self.snake_id,
            )
            return
        for position in self.body:
            grid.set_tile(position, EMPTY_CELL)
        self.body.clear()
        self.state.status = SnakeStatus.DEAD

    def _die(self, head_pos: int, grid: Grid, reason: str) -> None:
        grid.set_tile(head_pos, Cell(CellType.SNAKE_BODY, self.snake_id))
        self.state.status = SnakeStatus.JUST_DIED
        logger.debug("Snake %d %s.", self.snake_id, reason)
