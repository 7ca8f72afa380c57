"""Bounded breadth-first reachability statistics used to score moves."""

from __future__ import annotations

from collections import deque
from dataclasses import astuple, dataclass, fields

import numpy as np

from snake_royale.geometry import Coordinate
from snake_royale.grid import CellType, Grid

# BFS sight distance. Cells further away are neither expanded nor counted.
MAX_DEPTH = 30


@dataclass(frozen=True)
class Stats:
    """Normalized reachability statistics, each roughly within ``[0, 1]``.

    Attributes:
        accessible_area: Reachable free cells over the board's free cells.
        num_accessible_food: Reachable food cells over the free cells.
        sum_dist_enemy_heads: Summed BFS distance to enemy heads over the
            largest possible sum. ``1.0`` when no enemy head is in sight.
        sum_dist_enemy_tails: Same for enemy tails.
        min_dist_to_food: Distance to the nearest food over the board
            diagonal. ``1.0`` when no food is in sight.
    """

    accessible_area: float
    num_accessible_food: float
    sum_dist_enemy_heads: float
    sum_dist_enemy_tails: float
    min_dist_to_food: float

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return astuple(self)


NB_STATS = len(fields(Stats))


def compute_stats(
    snake_id: int,
    coord: Coordinate | None,
    grid: Grid,
    max_depth: int = MAX_DEPTH,
) -> Stats:
    """Explore the board from *coord* as seen by snake *snake_id*.

    ``coord`` is ``None`` when the candidate move leaves the board; the
    search is then empty, as it is when *coord* is not free. Enemy heads
    and tails next to an explored cell add that cell's distance to their
    sums and stop the branch there.
    """
    if max_depth < 0:
        raise ValueError("max_depth must be non-negative.")

    width, height = grid.width, grid.height
    diagonal = grid.diagonal
    kinds = grid.kinds
    owners = grid.owners

    accessible_area = 0
    num_accessible_food = 0
    sum_dist_enemy_heads = 0
    sum_dist_enemy_tails = 0
    min_dist_to_food = diagonal

    visited = np.zeros(grid.size, dtype=bool)
    queue: deque[tuple[int, int]] = deque()

    if coord is not None:
        start = grid.to_pos(coord)
        if start is not None and kinds[start] <= CellType.FOOD:
            queue.append((start, 0))
            visited[start] = True

    while queue:
        pos, dist = queue.popleft()
        if dist > max_depth:
            break

        kind = kinds[pos]
        if kind == CellType.EMPTY:
            accessible_area += 1
        elif kind == CellType.FOOD:
            accessible_area += 1
            num_accessible_food += 1
            min_dist_to_food = min(min_dist_to_food, dist)

        x, y = pos % width, pos // width
        for nx, ny in ((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)):
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            npos = nx + ny * width
            if visited[npos]:
                continue
            visited[npos] = True
            nkind = kinds[npos]
            if nkind <= CellType.FOOD:
                queue.append((npos, dist + 1))
            elif nkind == CellType.SNAKE_HEAD:
                if owners[npos] != snake_id:
                    sum_dist_enemy_heads += dist
            elif nkind == CellType.SNAKE_TAIL:
                if owners[npos] != snake_id:
                    sum_dist_enemy_tails += dist

    max_sum_dist_enemy = (grid.nb_alive_snakes - 1) * diagonal
    if max_sum_dist_enemy > 0:
        # Enemies out of sight count as far away rather than adjacent.
        if sum_dist_enemy_heads == 0:
            sum_dist_enemy_heads = max_sum_dist_enemy
        if sum_dist_enemy_tails == 0:
            sum_dist_enemy_tails = max_sum_dist_enemy
        heads = sum_dist_enemy_heads / max_sum_dist_enemy
        tails = sum_dist_enemy_tails / max_sum_dist_enemy
    else:
        heads = tails = 1.0

    nb_free_cells = max(grid.nb_free_cells, 1)
    return Stats(
        accessible_area=accessible_area / nb_free_cells,
        num_accessible_food=num_accessible_food / nb_free_cells,
        sum_dist_enemy_heads=float(heads),
        sum_dist_enemy_tails=float(tails),
        min_dist_to_food=float(min_dist_to_food) / diagonal,
    )
