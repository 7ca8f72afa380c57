"""Controller contract and the random reference controller."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

from snake_royale.geometry import Action

if TYPE_CHECKING:
    from snake_royale.grid import Grid
    from snake_royale.snake import SnakeState

# Action used when a controller has nothing better to offer.
DEFAULT_ACTION = Action.FRONT


@runtime_checkable
class Controller(Protocol):
    """Anything that picks the next move of a snake.

    Implementations read *state* and *grid* and must not modify either.
    They are called at most once per tick, before any snake moves.
    Returning ``None`` is allowed and means :data:`DEFAULT_ACTION`.
    """

    def next_action(self, state: SnakeState, grid: Grid) -> Action | None:
        ...


def random_non_suicidal_action(
    rng: np.random.Generator, state: SnakeState, grid: Grid,
) -> Action:
    """Pick uniformly among the moves that do not kill the snake outright.

    When every move is fatal, :data:`DEFAULT_ACTION` is returned.
    """
    actions = grid.non_suicidal_actions(
        state.head_coord(grid), state.orientation,
    )
    if not actions:
        return DEFAULT_ACTION
    return actions[int(rng.integers(len(actions)))]


class RandomController:
    """Moves at random while avoiding immediate death."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)

    def next_action(self, state: SnakeState, grid: Grid) -> Action:
        return random_non_suicidal_action(self._rng, state, grid)
