"""
Terrain tiles for the ecosystem simulator.

The world grid is seeded once: each cell is independently grass (70%,
food 10), water (20%, food 5) or rock (10%, food 0). Only grass regrows.
Tiles are stored by the World as NumPy arrays; `Tile` is the value object
handed out to callers, so mutating it never touches the grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


MAX_FOOD = 10.0


class TileKind(IntEnum):
    """Terrain type. Integer values are the codes stored in the grid array."""
    GRASS = 0
    WATER = 1
    ROCK = 2


# (kind, cumulative probability, initial food value), in draw order.
TERRAIN_TABLE: tuple[tuple[TileKind, float, float], ...] = (
    (TileKind.GRASS, 0.7, 10.0),
    (TileKind.WATER, 0.9, 5.0),
    (TileKind.ROCK, 1.0, 0.0),
)


@dataclass(slots=True)
class Tile:
    """
    A snapshot of one grid cell.

    Attributes:
        kind: Terrain type.
        food_value: Edible food on the cell, in [0, 10].
    """
    kind: TileKind
    food_value: float

    @property
    def is_grass(self) -> bool:
        return self.kind == TileKind.GRASS

    @property
    def has_food(self) -> bool:
        return self.food_value > 0

    def __repr__(self) -> str:
        return f"Tile(kind={self.kind.name.lower()}, food={self.food_value:.2f})"
