"""
Spatial utilities for the ecosystem simulator.

Provides bounded (non-wrapping) grid math: clamping, Manhattan distance,
cardinal steps and the "larger axis first" heading used by every species
when walking toward a target.

All functions assume a 2D grid with dimensions (width, height) where valid
coordinates are 0 <= x < width and 0 <= y < height. Positions that would
leave the grid are clamped to the nearest edge, never wrapped.
"""

from __future__ import annotations

import math

# Cardinal directions only. North is toward y = 0.
DIRECTIONS: dict[str, tuple[int, int]] = {
    "north": (0, -1),
    "east": (1, 0),
    "south": (0, 1),
    "west": (-1, 0),
}

DIRECTION_ORDER: tuple[str, ...] = ("north", "east", "south", "west")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value to [low, high]."""
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]."""
    return clamp(value, 0.0, 1.0)


def clamp_to_grid(x: int, y: int, width: int, height: int) -> tuple[int, int]:
    """
    Clamp (x, y) coordinates to stay within grid bounds.

    Args:
        x, y: Raw coordinates (may be negative or >= dimensions).
        width, height: Grid dimensions.

    Returns:
        Clamped (x, y) tuple within [0, width) and [0, height).
    """
    return (
        int(clamp(x, 0, width - 1)),
        int(clamp(y, 0, height - 1)),
    )


def in_bounds(x: int, y: int, width: int, height: int) -> bool:
    """True if (x, y) is a valid cell of a width x height grid."""
    return 0 <= x < width and 0 <= y < height


def step(
    x: int, y: int,
    direction: str,
    width: int, height: int,
) -> tuple[int, int]:
    """
    Compute one cardinal step, clamped to the grid.

    At an edge the clamped position may equal the starting position.

    Args:
        x, y: Current position.
        direction: One of "north", "east", "south", "west".
        width, height: Grid dimensions.

    Returns:
        New (x, y) position.

    Raises:
        KeyError: If direction is not a cardinal direction name.
    """
    dx, dy = DIRECTIONS[direction]
    return clamp_to_grid(x + dx, y + dy, width, height)


def manhattan(x1: int, y1: int, x2: int, y2: int) -> int:
    """Manhattan (4-neighbour) distance between two cells."""
    return abs(x2 - x1) + abs(y2 - y1)


def direction_toward(cx: int, cy: int, tx: int, ty: int) -> str:
    """
    Pick the cardinal direction that moves (cx, cy) toward (tx, ty).

    Steps along the axis with the larger absolute displacement. Ties,
    including the degenerate case of target == current, go to the
    vertical axis; a zero vertical displacement then resolves to north.

    Args:
        cx, cy: Current position.
        tx, ty: Target position.

    Returns:
        Direction name.
    """
    dx = tx - cx
    dy = ty - cy
    if abs(dx) > abs(dy):
        return "east" if dx > 0 else "west"
    return "south" if dy > 0 else "north"


def midpoint(a: tuple[int, int], b: tuple[int, int]) -> tuple[int, int]:
    """Floor of the midpoint between two cells."""
    return (
        math.floor((a[0] + b[0]) / 2),
        math.floor((a[1] + b[1]) / 2),
    )
