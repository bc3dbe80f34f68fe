"""Compass directions and the grid arithmetic built on them."""

from __future__ import annotations

from enum import Enum


class Direction(str, Enum):
    """Eight-way absolute facing.  ``y`` grows southward."""

    NORTH = "north"
    NORTHEAST = "northeast"
    EAST = "east"
    SOUTHEAST = "southeast"
    SOUTH = "south"
    SOUTHWEST = "southwest"
    WEST = "west"
    NORTHWEST = "northwest"

    @property
    def offset(self) -> tuple[int, int]:
        """``(dx, dy)`` of a single step in this direction."""
        return _OFFSETS[self]

    @property
    def is_cardinal(self) -> bool:
        return self in (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)

    def rotate(self, degrees: int) -> Direction:
        """Rotate clockwise by *degrees* (a multiple of 45; negative turns left)."""
        steps = degrees // 45
        idx = _CLOCKWISE.index(self)
        return _CLOCKWISE[(idx + steps) % len(_CLOCKWISE)]

    def opposite(self) -> Direction:
        return self.rotate(180)


_CLOCKWISE: list[Direction] = [
    Direction.NORTH,
    Direction.NORTHEAST,
    Direction.EAST,
    Direction.SOUTHEAST,
    Direction.SOUTH,
    Direction.SOUTHWEST,
    Direction.WEST,
    Direction.NORTHWEST,
]

_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.NORTHEAST: (1, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTHEAST: (1, 1),
    Direction.SOUTH: (0, 1),
    Direction.SOUTHWEST: (-1, 1),
    Direction.WEST: (-1, 0),
    Direction.NORTHWEST: (-1, -1),
}


class RelativeDirection(str, Enum):
    """Direction expressed relative to an entity's facing."""

    FORWARD = "forward"
    FORWARD_RIGHT = "forward_right"
    RIGHT = "right"
    BACKWARD_RIGHT = "backward_right"
    BACKWARD = "backward"
    BACKWARD_LEFT = "backward_left"
    LEFT = "left"
    FORWARD_LEFT = "forward_left"

    def resolve(self, facing: Direction) -> Direction:
        return facing.rotate(_RELATIVE_DEGREES[self])


_RELATIVE_DEGREES: dict[RelativeDirection, int] = {
    RelativeDirection.FORWARD: 0,
    RelativeDirection.FORWARD_RIGHT: 45,
    RelativeDirection.RIGHT: 90,
    RelativeDirection.BACKWARD_RIGHT: 135,
    RelativeDirection.BACKWARD: 180,
    RelativeDirection.BACKWARD_LEFT: 225,
    RelativeDirection.LEFT: 270,
    RelativeDirection.FORWARD_LEFT: 315,
}


def direction_between(x1: int, y1: int, x2: int, y2: int) -> Direction | None:
    """Return the compass direction from ``(x1, y1)`` towards ``(x2, y2)``.

    The angle is snapped to the nearest of the eight directions.  Returns
    ``None`` when both points coincide.
    """
    dx, dy = x2 - x1, y2 - y1
    if dx == 0 and dy == 0:
        return None
    sx = (dx > 0) - (dx < 0)
    sy = (dy > 0) - (dy < 0)
    # Snap shallow angles onto the dominant axis (tan(22.5deg) ~ 0.414).
    if sx and sy:
        if abs(dy) * 1000 < abs(dx) * 414:
            sy = 0
        elif abs(dx) * 1000 < abs(dy) * 414:
            sx = 0
    for direction, offset in _OFFSETS.items():
        if offset == (sx, sy):
            return direction
    return None  # pragma: no cover


def is_cardinal_line(x1: int, y1: int, x2: int, y2: int) -> bool:
    return x1 == x2 or y1 == y2


def is_diagonal_line(x1: int, y1: int, x2: int, y2: int) -> bool:
    return abs(x2 - x1) == abs(y2 - y1)
