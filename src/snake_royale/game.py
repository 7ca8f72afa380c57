"""Step-based simulation of several snakes sharing one grid."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from pathlib import Path

import numpy as np

from snake_royale.controller import Controller
from snake_royale.geometry import Action, Coordinate
from snake_royale.grid import Grid
from snake_royale.snake import GROWTH_RATE, Snake

logger = logging.getLogger(__name__)

StepHook = Callable[[Grid], None]


@dataclass(frozen=True)
class GameConfig:
    """Board dimensions and tunables of a game.

    Supports JSON serialization so batches can be reproduced.
    """

    width: int = 20
    height: int = 20
    nb_obstacles: int = 5
    max_obstacle_size: int = 2
    food_probability: float = 0.1
    growth_rate: int = GROWTH_RATE
    max_placement_attempts: int = 10_000
    continue_if_known_winner: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.width < 4 or self.height < 4:
            raise ValueError("width and height must each be at least 4.")
        if self.nb_obstacles < 0:
            raise ValueError("nb_obstacles must be non-negative.")
        if not 1 <= self.max_obstacle_size < min(self.width, self.height):
            raise ValueError(
                "max_obstacle_size must be at least 1 and smaller than both "
                "grid dimensions."
            )
        if not 0.0 <= self.food_probability <= 1.0:
            raise ValueError("food_probability must be within [0, 1].")
        if self.growth_rate < 1:
            raise ValueError("growth_rate must be at least 1.")
        if self.max_placement_attempts < 1:
            raise ValueError("max_placement_attempts must be at least 1.")

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> GameConfig:
        """Load config from a JSON file."""
        return cls(**json.loads(Path(path).read_text()))


@dataclass(frozen=True)
class Winner:
    """A single snake outlived all the others."""

    snake_id: int


@dataclass(frozen=True)
class Draw:
    """The last snakes died on the same tick."""


@dataclass(frozen=True)
class GameResults:
    """Outcome of a finished game.

    ``winner`` is ``None`` for a solo game, where winning is meaningless.
    ``steps`` is the tick on which the outcome became known.
    """

    winner: Winner | Draw | None
    steps: int


class Game:
    """Owns the grid and the snakes and advances them tick by tick.

    Typical use::

        game = Game(GameConfig(width=30, height=6))
        game.add_snake(0, RandomController())
        game.add_snake(1, HeuristicController())
        game.initialize()
        results = game.run_to_end()
    """

    def __init__(self, config: GameConfig | None = None) -> None:
        cfg = config or GameConfig()
        self.config = cfg
        self.rng = np.random.default_rng(cfg.seed)
        self.grid = Grid(width=cfg.width, height=cfg.height, rng=self.rng)
        self.grid.add_random_obstacles(cfg.nb_obstacles, cfg.max_obstacle_size)

        self.snakes: list[Snake] = []
        self._before_each_step: list[StepHook] = []
        self._after_each_step: list[StepHook] = []

        self.initialized = False
        self.steps = 0
        self.results: GameResults | None = None
        # When lazy, the game stops as soon as the outcome is known.
        self.lazy_simulation = not cfg.continue_if_known_winner

    # -- setup -----------------------------------------------------------

    def add_snake(self, snake_id: int, controller: Controller) -> Snake:
        """Register a snake. Ids must be unique within the game."""
        if self.initialized:
            raise RuntimeError("Snakes must be added before initialize().")
        if any(s.snake_id == snake_id for s in self.snakes):
            raise ValueError(f"The ID {snake_id} is already used!")
        snake = Snake(snake_id, controller, growth_rate=self.config.growth_rate)
        self.snakes.append(snake)
        return snake

    def before_each_step(self, hook: StepHook) -> None:
        """Call *hook* with a read-only grid copy before every tick."""
        self._before_each_step.append(hook)

    def after_each_step(self, hook: StepHook) -> None:
        """Call *hook* with a read-only grid copy after every tick."""
        self._after_each_step.append(hook)

    def continue_simulation_if_known_winner(self, value: bool) -> None:
        """Keep stepping after the outcome is known, until all snakes die."""
        self.lazy_simulation = not value

    def initialize(
        self, start_positions: Mapping[int, Coordinate] | None = None,
    ) -> None:
        """Place every snake on a free cell, facing north.

        Snakes listed in *start_positions* start on the given coordinate;
        the others are placed at random.

        Raises:
            RuntimeError: If called twice, or if no free cell was found
                for a snake within the configured number of attempts.
            ValueError: If a requested start cell is not free.
        """
        if self.initialized:
            raise RuntimeError("The game is already initialized.")
        start_positions = start_positions or {}
        unknown = set(start_positions) - {s.snake_id for s in self.snakes}
        if unknown:
            raise ValueError(f"Unknown snake id(s) {sorted(unknown)}.")

        for snake in self.snakes:
            if snake.snake_id in start_positions:
                coord = start_positions[snake.snake_id]
                position = self.grid.to_pos(coord)
                if position is None or not self.grid.is_free(position):
                    raise ValueError(
                        f"Start cell {tuple(coord)} of snake "
                        f"{snake.snake_id} is not free."
                    )
            else:
                position = self._find_start_position(snake.snake_id)
            snake.place(position, self.grid)

        self.grid.nb_alive_snakes = len(self.snakes)
        self.grid.recount_free_cells()
        self.initialized = True
        logger.debug(
            "Game initialized with %d snake(s) on a %dx%d grid.",
            len(self.snakes),
            self.grid.width,
            self.grid.height,
        )

    def _find_start_position(self, snake_id: int) -> int:
        # Heads already placed are not free, so they are never picked twice.
        for _ in range(self.config.max_placement_attempts):
            position = int(self.rng.integers(0, self.grid.size))
            if self.grid.is_free(position):
                return position
        raise RuntimeError(
            f"Not able to find an initial position for snake {snake_id}."
        )

    # -- simulation ------------------------------------------------------

    def alive_snakes(self) -> list[Snake]:
        return [s for s in self.snakes if s.alive]

    def is_game_over(self) -> bool:
        return self.results is not None

    def step(self) -> None:
        """Advance the game by one tick.

        All controllers choose on the same board, then the snakes move in
        insertion order. Heads that were overwritten by another head during
        the tick are detected afterwards, so same-tick head collisions kill
        every snake involved whatever the order.
        """
        if not self.initialized:
            raise RuntimeError("Call initialize() before step().")

        self._run_hooks(self._before_each_step)

        alive = self.alive_snakes()
        actions: list[tuple[Snake, Action]] = []
        for snake in alive:
            action = snake.choose_action(self.grid)
            if action is not None:
                actions.append((snake, action))

        for snake, action in actions:
            snake.make_a_step(action, self.grid)

        for snake in alive:
            if snake.alive and not snake.head_is_intact(self.grid):
                snake.mark_just_died()
                logger.debug("Snake %d lost a head-to-head.", snake.snake_id)

        for snake in alive:
            if not snake.alive:
                snake.remove_from_board(self.grid)

        self.steps += 1
        nb_alive = sum(1 for s in alive if s.alive)
        self.grid.nb_alive_snakes = nb_alive
        self.grid.regenerate_food(self.config.food_probability)
        self.grid.recount_free_cells()

        if self.results is None:
            self._update_results(len(alive), nb_alive)

        self._run_hooks(self._after_each_step)

    def _update_results(self, prev_nb_alive: int, nb_alive: int) -> None:
        nb_snakes = len(self.snakes)
        if prev_nb_alive > 0 and nb_alive == 0:
            winner: Winner | Draw | None = Draw() if nb_snakes > 1 else None
        elif prev_nb_alive > 1 and nb_alive == 1:
            winner = Winner(self.alive_snakes()[0].snake_id)
        else:
            return
        self.results = GameResults(winner=winner, steps=self.steps)
        logger.info("Game over after %d step(s): %s.", self.steps, winner)

    def run_to_end(self) -> GameResults:
        """Step until the outcome is known and return it.

        When continuing past a known winner is enabled, stepping goes on
        until no snake is left alive; the results stay those of the tick
        that decided the game.
        """
        if not self.snakes:
            raise RuntimeError("Cannot run a game without snakes.")
        if not self.initialized:
            raise RuntimeError("Call initialize() before run_to_end().")
        while self.results is None or (
            not self.lazy_simulation and self.alive_snakes()
        ):
            self.step()
        return self.results

    def _run_hooks(self, hooks: list[StepHook]) -> None:
        if not hooks:
            return
        snapshot = self.grid.snapshot()
        for hook in hooks:
            hook(snapshot)

    def get_state(self) -> dict:
        """Return a serializable view of the game."""
        return {
            "steps": self.steps,
            "game_over": self.is_game_over(),
            "grid": self.grid.to_dict(),
            "snakes": [s.state.to_dict() for s in self.snakes],
            "config": self.config.to_dict(),
        }
