"""
Text frame rendering for the ecosystem simulator.

`render_frame()` turns a World into a grid of (glyph, color) cells plus an
info dict, without touching the simulation. The CLI prints it with
`Frame.to_text()`; the Streamlit grid view reuses the same glyph and color
rules.

Symbols:
  ♣ ♠ ·   grass (food > 7, > 3, otherwise)
  ≈       water
  ▲       rock
  r R °   rabbit (medium, large, small)
  f F °   fluffles (medium, large, small)
  ♥       courting animal
  •       immature animal of a courting species
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ecosim.core.animal import Animal
from ecosim.core.tile import Tile, TileKind
from ecosim.core.world import World
from ecosim.simulation.disaster import Disaster


ANSI_COLORS = {
    "white": "\033[37m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
}
ANSI_DIM = "\033[2m"
ANSI_RESET = "\033[0m"


@dataclass(frozen=True, slots=True)
class Cell:
    glyph: str
    color: str
    dim: bool = False


@dataclass
class Frame:
    """
    One rendered view of the world.

    Attributes:
        width, height: Grid dimensions.
        cells: Rows of cells, indexed cells[y][x].
        info: Summary values (tick, population, pressure, disaster, terrain).
    """
    width: int
    height: int
    cells: list[list[Cell]]
    info: dict = field(default_factory=dict)

    def cell_at(self, x: int, y: int) -> Cell:
        return self.cells[y][x]

    def to_text(self, color: bool = False) -> str:
        """Grid rows followed by the info panel, as plain (or ANSI) text."""
        lines = []
        for row in self.cells:
            if color:
                lines.append("".join(_ansi(c) for c in row))
            else:
                lines.append("".join(c.glyph for c in row))

        info = self.info
        lines.append("")
        lines.append(
            f"Tick {info.get('tick', 0)} | Animals {info.get('population', 0)}"
            f"/{info.get('capacity', 0)} | Pressure {need_bar(info.get('pressure', 0), 10)}"
        )
        disaster = info.get("disaster")
        if disaster and disaster.get("active"):
            lines.append(
                f"DISASTER: {disaster['kind']} ({round(disaster['intensity'] * 100)}%, "
                f"{disaster['duration_remaining']} ticks remaining)"
            )
        return "\n".join(lines)


def _ansi(cell: Cell) -> str:
    prefix = ANSI_COLORS.get(cell.color, "")
    if cell.dim:
        prefix = ANSI_DIM + prefix
    return f"{prefix}{cell.glyph}{ANSI_RESET}"


def fur_color(value: float) -> str:
    """Display color for a furColor gene value."""
    if value > 0.8:
        return "red"
    if value > 0.6:
        return "yellow"
    if value > 0.4:
        return "magenta"
    if value > 0.2:
        return "blue"
    return "white"


def terrain_cell(tile: Tile) -> Cell:
    if tile.kind == TileKind.WATER:
        return Cell("≈", "blue")
    if tile.kind == TileKind.ROCK:
        return Cell("▲", "white")
    if tile.food_value > 7:
        return Cell("♣", "green")
    if tile.food_value > 3:
        return Cell("♠", "green")
    return Cell("·", "green")


def animal_cell(animal: Animal) -> Cell:
    profile = animal.profile
    size = animal.gene("size", 0.5)
    if size > 0.7:
        glyph = profile.large_glyph
    elif size < 0.3:
        glyph = profile.small_glyph
    else:
        glyph = profile.glyph

    if profile.courtship:
        if animal.is_mating:
            glyph = "♥"
        if not animal.is_adult():
            glyph = "•"

    stats = animal.get_stats()
    return Cell(glyph, fur_color(animal.gene("furColor", 0.0)), dim=stats.energy < 30)


def need_bar(value: float, maximum: float = 100, width: int = 15) -> str:
    """Text progress bar such as '[█████░░░░░] 50/100'."""
    filled = max(0, min(width, round(value / maximum * width))) if maximum else 0
    return f"[{'█' * filled}{'░' * (width - filled)}] {value:g}/{maximum:g}"


def render_frame(world: World, disaster: Optional[Disaster] = None) -> Frame:
    """
    Render the world read-only.

    Args:
        world: World to draw.
        disaster: Current disaster state, shown in the info panel.

    Returns:
        Frame with one cell per grid position; where several animals share
        a cell the last registered one is drawn.
    """
    cells = [
        [terrain_cell(world.get_tile((x, y))) for x in range(world.width)]
        for y in range(world.height)
    ]
    animals = world.get_all_animals()
    for animal in animals:
        cells[animal.y][animal.x] = animal_cell(animal)

    info = {
        "tick": world.tick_count,
        "population": len(animals),
        "capacity": world.get_max_population(),
        "pressure": world.get_population_pressure(),
        "terrain": world.get_terrain_stats(),
        "disaster": disaster.to_dict() if disaster is not None else None,
    }
    return Frame(world.width, world.height, cells, info)
