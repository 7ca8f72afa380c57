"""Coordinates, compass orientations and relative turn actions."""

from __future__ import annotations

import enum
from typing import NamedTuple


class Coordinate(NamedTuple):
    """A board coordinate. ``x`` grows eastwards, ``y`` grows southwards."""

    x: int
    y: int

    def to_pos(self, width: int) -> int:
        """Linear position of this coordinate on a board of *width* columns.

        The result is only meaningful for in-bounds coordinates.
        """
        return self.x + self.y * width

    @classmethod
    def from_pos(cls, position: int, width: int) -> Coordinate:
        return cls(position % width, position // width)

    def is_out_of_bounds(self, width: int, height: int) -> bool:
        return not (0 <= self.x < width and 0 <= self.y < height)


class Orientation(enum.Enum):
    """Compass orientations with (dx, dy) values."""

    NORTH = (0, -1)
    EAST = (1, 0)
    SOUTH = (0, 1)
    WEST = (-1, 0)


class Action(enum.Enum):
    """Turns relative to the current orientation."""

    LEFT = "left"
    FRONT = "front"
    RIGHT = "right"


# Fixed enumeration order used wherever actions are listed.
ALL_ACTIONS: tuple[Action, ...] = (Action.LEFT, Action.FRONT, Action.RIGHT)

_CLOCKWISE: tuple[Orientation, ...] = (
    Orientation.NORTH,
    Orientation.EAST,
    Orientation.SOUTH,
    Orientation.WEST,
)

_ROTATION: dict[Action, int] = {
    Action.LEFT: -1,
    Action.FRONT: 0,
    Action.RIGHT: 1,
}

_NEXT_ORIENTATION: dict[tuple[Orientation, Action], Orientation] = {
    (orientation, action): _CLOCKWISE[(i + _ROTATION[action]) % 4]
    for i, orientation in enumerate(_CLOCKWISE)
    for action in ALL_ACTIONS
}

_INVERSE_ACTIONS: dict[Action, Action] = {
    Action.LEFT: Action.RIGHT,
    Action.FRONT: Action.FRONT,
    Action.RIGHT: Action.LEFT,
}


def next_orientation(current: Orientation, action: Action) -> Orientation:
    """Absolute orientation after taking *action* while facing *current*."""
    return _NEXT_ORIENTATION[(current, action)]


def inverse_action(action: Action) -> Action:
    """The action undoing the rotation of *action*."""
    return _INVERSE_ACTIONS[action]


def next_coord_towards(origin: Coordinate, orientation: Orientation) -> Coordinate:
    """Coordinate one step away from *origin* in *orientation*."""
    dx, dy = orientation.value
    return Coordinate(origin.x + dx, origin.y + dy)
