"""Weighted heuristic controller built on :func:`compute_stats`."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from snake_royale.analysis import MAX_DEPTH, NB_STATS, Stats, compute_stats
from snake_royale.geometry import (
    ALL_ACTIONS,
    Action,
    next_coord_towards,
    next_orientation,
)

if TYPE_CHECKING:
    from snake_royale.grid import Grid
    from snake_royale.snake import SnakeState

# One weight per statistic and per relative action.
NB_WEIGHTS = NB_STATS * len(ALL_ACTIONS)

# Hand-tuned weights, repeated for Left, Front and Right.
GOOD_WEIGHTS: tuple[float, ...] = (
    1.0, 0.2, 0.07, -0.1, -0.01,
    1.0, 0.2, 0.07, -0.1, -0.01,
    1.0, 0.2, 0.07, -0.1, -0.01,
)


def score_action(
    stats: Stats, weights: Sequence[float], action: Action,
) -> float:
    """Weighted sum of *stats* using the weight block of *action*."""
    offset = ALL_ACTIONS.index(action) * NB_STATS
    block = weights[offset:offset + NB_STATS]
    score = sum(w * s for w, s in zip(block, stats.as_tuple(), strict=True))
    if math.isnan(score):
        raise ValueError(f"Score of {action.name} is NaN.")
    return score


class HeuristicController:
    """Picks the action whose destination scores best.

    Each candidate destination is explored with :func:`compute_stats`; a
    destination off the board is explored as ``None``. Ties go to the
    earliest action in Left, Front, Right order.
    """

    def __init__(
        self,
        weights: Sequence[float] = GOOD_WEIGHTS,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        if len(weights) != NB_WEIGHTS:
            raise ValueError(
                f"Got {len(weights)} weights, but {NB_WEIGHTS} are needed."
            )
        self.weights = tuple(float(w) for w in weights)
        self.max_depth = max_depth

    def action_scores(
        self, state: SnakeState, grid: Grid,
    ) -> dict[Action, float]:
        """Score every action for the snake described by *state*."""
        head = state.head_coord(grid)
        scores: dict[Action, float] = {}
        for action in ALL_ACTIONS:
            target = next_coord_towards(
                head, next_orientation(state.orientation, action),
            )
            stats = compute_stats(
                state.snake_id,
                target if grid.in_bounds(target) else None,
                grid,
                max_depth=self.max_depth,
            )
            scores[action] = score_action(stats, self.weights, action)
        return scores

    def next_action(self, state: SnakeState, grid: Grid) -> Action:
        scores = self.action_scores(state, grid)
        return max(ALL_ACTIONS, key=scores.__getitem__)
