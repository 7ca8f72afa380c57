"""Snake Royale: a multi-snake arena simulation engine."""

from snake_royale.analysis import MAX_DEPTH, Stats, compute_stats
from snake_royale.batch import (
    MatchSpec,
    MatchTally,
    SubprocessMatchRunner,
    play_match,
    run_batch,
    tally_results,
)
from snake_royale.controller import Controller, RandomController
from snake_royale.game import Draw, Game, GameConfig, GameResults, Winner
from snake_royale.geometry import (
    Action,
    Coordinate,
    Orientation,
    inverse_action,
    next_coord_towards,
    next_orientation,
)
from snake_royale.grid import Cell, CellType, Grid
from snake_royale.heuristic import GOOD_WEIGHTS, HeuristicController
from snake_royale.snake import Snake, SnakeState, SnakeStatus

__all__ = [
    "GOOD_WEIGHTS",
    "MAX_DEPTH",
    "Action",
    "Cell",
    "CellType",
    "Controller",
    "Coordinate",
    "Draw",
    "Game",
    "GameConfig",
    "GameResults",
    "Grid",
    "HeuristicController",
    "MatchSpec",
    "MatchTally",
    "Orientation",
    "RandomController",
    "Snake",
    "SnakeState",
    "SnakeStatus",
    "Stats",
    "SubprocessMatchRunner",
    "Winner",
    "compute_stats",
    "inverse_action",
    "next_coord_towards",
    "next_orientation",
    "play_match",
    "run_batch",
    "tally_results",
]
