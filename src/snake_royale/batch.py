"""Batched evaluation of independent games, in-process or in workers."""

from __future__ import annotations

import logging
import multiprocessing as mp
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from snake_royale.controller import Controller
from snake_royale.game import Draw, Game, GameConfig, GameResults, Winner

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[], Controller]


@dataclass(frozen=True)
class MatchSpec:
    """One game to play: a config and a controller factory per snake.

    Snake ids are the factory indices. Factories must be picklable (a
    class or a ``functools.partial``) to run in worker processes.
    """

    controllers: tuple[ControllerFactory, ...]
    config: GameConfig = field(default_factory=GameConfig)

    def __post_init__(self) -> None:
        if not self.controllers:
            raise ValueError("A match needs at least one controller.")


def play_match(spec: MatchSpec) -> GameResults:
    """Build, initialize and run one game to its end."""
    game = Game(spec.config)
    for snake_id, factory in enumerate(spec.controllers):
        game.add_snake(snake_id, factory())
    game.initialize()
    return game.run_to_end()


def run_batch(specs: Iterable[MatchSpec]) -> list[GameResults]:
    """Play every match in this process, in order."""
    results = [play_match(spec) for spec in specs]
    logger.info("Batch of %d game(s) finished.", len(results))
    return results


def _worker_loop(conn: mp.connection.Connection) -> None:
    """Worker process main loop for :class:`SubprocessMatchRunner`."""
    while True:
        cmd, data = conn.recv()
        if cmd == "play":
            conn.send(play_match(data))
        elif cmd == "close":
            conn.close()
            break


class SubprocessMatchRunner:
    """Play matches in separate worker processes.

    Games share nothing, so CPU-bound batches scale with the number of
    workers instead of being held back by the GIL.
    """

    def __init__(self, num_workers: int) -> None:
        self._closed = False
        self._parent_conns: list[mp.connection.Connection] = []
        self._procs: list[mp.Process] = []
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1.")
        self.num_workers = num_workers

        ctx = mp.get_context("spawn")
        for _ in range(num_workers):
            parent_conn, child_conn = ctx.Pipe()
            proc = ctx.Process(
                target=_worker_loop, args=(child_conn,), daemon=True,
            )
            proc.start()
            child_conn.close()
            self._parent_conns.append(parent_conn)
            self._procs.append(proc)

    def run(self, specs: Sequence[MatchSpec]) -> list[GameResults]:
        """Play *specs* across the workers and return results in order."""
        if self._closed:
            raise RuntimeError("The runner is closed.")
        results: list[GameResults] = []
        for start in range(0, len(specs), self.num_workers):
            chunk = specs[start:start + self.num_workers]
            for conn, spec in zip(self._parent_conns, chunk):
                conn.send(("play", spec))
            for conn, _ in zip(self._parent_conns, chunk):
                results.append(conn.recv())
        logger.info(
            "Batch of %d game(s) finished on %d worker(s).",
            len(results),
            self.num_workers,
        )
        return results

    def close(self) -> None:
        """Shut down all worker processes."""
        if self._closed:
            return
        self._closed = True
        for conn in self._parent_conns:
            try:
                conn.send(("close", None))
                conn.close()
            except (BrokenPipeError, OSError):
                pass
        for proc in self._procs:
            proc.join(timeout=5)
            if proc.is_alive():
                proc.terminate()

    def __enter__(self) -> SubprocessMatchRunner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        self.close()


@dataclass
class MatchTally:
    """Win/draw/loss counts of one snake over a batch."""

    wins: int = 0
    draws: int = 0
    losses: int = 0

    @property
    def games(self) -> int:
        return self.wins + self.draws + self.losses

    @property
    def points(self) -> int:
        """Two points per win, one per draw."""
        return 2 * self.wins + self.draws

    @property
    def win_ratio(self) -> float:
        return self.wins / self.games if self.games else 0.0

    def summary(self) -> str:
        return (
            f"{self.games} games: {self.wins} won, {self.draws} drawn, "
            f"{self.losses} lost ({self.points} points)"
        )


def tally_results(results: Iterable[GameResults], snake_id: int) -> MatchTally:
    """Count how snake *snake_id* fared in *results*.

    Solo games, which have no winner, count as losses.
    """
    tally = MatchTally()
    for result in results:
        if result.winner == Winner(snake_id):
            tally.wins += 1
        elif isinstance(result.winner, Draw):
            tally.draws += 1
        else:
            tally.losses += 1
    return tally
