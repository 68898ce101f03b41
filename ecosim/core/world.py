"""
World (Simulation Environment) for the ecosystem simulator.

Owns the bounded terrain grid, the registry of living animals and the
shared random generator every stochastic draw goes through. Provides the
spatial queries animals use to decide what to do (tiles, food, neighbours
by Manhattan radius) and tracks population pressure, the 0-10 congestion
scalar that throttles reproduction, drives crowding stress and slows grass
regrowth.

Terrain and food are stored as NumPy arrays indexed [y, x]. Callers only
ever receive `Tile` copies.
"""

from __future__ import annotations

import math
import warnings
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np
from numpy.typing import NDArray

from ecosim.core.tile import MAX_FOOD, TERRAIN_TABLE, Tile, TileKind
from ecosim.utils.spatial import in_bounds, manhattan

if TYPE_CHECKING:
    from ecosim.core.animal import Animal
    from ecosim.core.config import SimConfig


EventSink = Callable[[str, str], None]

CAPACITY_FRACTION = 0.3
MAX_PRESSURE = 10
PRESSURE_NUDGE_LIMIT = 5
STRESS_PRESSURE = 5
BASE_REGROWTH = 0.1
MIN_REGROWTH = 0.01
MILESTONE_EVERY = 5


@dataclass
class LifeStats:
    """Counters of life events, reset by the engine every tick."""
    births: int = 0
    deaths: Counter = field(default_factory=Counter)
    attacks: int = 0
    kills: int = 0
    courtships_started: int = 0
    failed_reproductions: int = 0
    rejected_offspring: int = 0

    @property
    def total_deaths(self) -> int:
        return sum(self.deaths.values())

    def to_dict(self) -> dict:
        return {
            "births": self.births,
            "deaths": self.total_deaths,
            "deaths_injury": self.deaths.get("injury", 0),
            "deaths_starvation": self.deaths.get("starvation", 0),
            "deaths_old_age": self.deaths.get("old_age", 0),
            "deaths_predation": self.deaths.get("predation", 0),
            "attacks": self.attacks,
            "kills": self.kills,
            "courtships_started": self.courtships_started,
            "failed_reproductions": self.failed_reproductions,
            "rejected_offspring": self.rejected_offspring,
        }


class World:
    """
    The simulation world: a bounded 2D grid of terrain plus animals.

    Attributes:
        width: Grid width.
        height: Grid height.
        rng: Shared random generator.
        events: Optional sink receiving (category, message) pairs.
        tick_count: Completed ticks (advanced by the engine).
        life_stats: Life-event counters for the current tick.
    """

    def __init__(
        self,
        width: int,
        height: int,
        rng: Optional[np.random.Generator] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Create a world and seed its terrain.

        Each cell is independently grass (70%, food 10), water (20%,
        food 5) or rock (10%, food 0).

        Args:
            width, height: Grid dimensions (both >= 1).
            rng: Random generator shared by everything in this world.
                 Uses an unseeded default if None.
            events: Optional event sink.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width < 1 or height < 1:
            raise ValueError(f"World dimensions must be positive, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.events = events
        self.tick_count: int = 0
        self.life_stats = LifeStats()

        self._animals: dict[int, Animal] = {}
        self._max_population = math.floor(self.width * self.height * CAPACITY_FRACTION)
        self._pressure: int = 0

        self._terrain, self._food = self._generate_terrain()

    @classmethod
    def from_config(
        cls,
        config: SimConfig,
        rng: Optional[np.random.Generator] = None,
        events: Optional[EventSink] = None,
    ) -> World:
        """Build a world from the config; seeds its own RNG if none given."""
        if rng is None:
            rng = np.random.default_rng(config.world.seed)
        return cls(config.world.width, config.world.height, rng=rng, events=events)

    def _generate_terrain(self) -> tuple[NDArray[np.int8], NDArray[np.float64]]:
        draws = self.rng.random((self.height, self.width))
        thresholds = np.array([row[1] for row in TERRAIN_TABLE])
        kind_index = np.minimum(
            np.searchsorted(thresholds, draws, side="right"), len(TERRAIN_TABLE) - 1
        )
        kinds = np.array([int(row[0]) for row in TERRAIN_TABLE], dtype=np.int8)
        initial_food = np.array([row[2] for row in TERRAIN_TABLE], dtype=np.float64)
        return kinds[kind_index], initial_food[kind_index]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def emit(self, category: str, message: str) -> None:
        """Forward an event to the sink. Sink failures never reach the simulation."""
        if self.events is None:
            return
        try:
            self.events(category, message)
        except Exception as exc:
            warnings.warn(
                f"Event sink failed on '{category}' event: {exc}",
                RuntimeWarning,
                stacklevel=2,
            )

    def record_death(self, cause: str) -> None:
        self.life_stats.deaths[cause] += 1

    def reset_life_stats(self) -> LifeStats:
        """Swap in fresh counters and return the previous ones."""
        previous = self.life_stats
        self.life_stats = LifeStats()
        return previous

    # ------------------------------------------------------------------
    # Animal management
    # ------------------------------------------------------------------

    def add_animal(self, animal: Animal) -> bool:
        """
        Register an animal.

        At capacity the animal is rejected and, while pressure is below 5,
        pressure is nudged up by one. Otherwise the animal is stored and
        pressure is recomputed as min(10, floor(size / capacity * 10)).
        An id that is already registered is refused and nothing changes.

        Returns:
            True if the animal was added.
        """
        if animal.id in self._animals:
            return False
        if len(self._animals) >= self._max_population:
            if self._pressure < PRESSURE_NUDGE_LIMIT:
                self._pressure += 1
                self.emit(
                    "population",
                    f"World at capacity ({self._max_population}); pressure rose to {self._pressure}",
                )
            return False

        self._animals[animal.id] = animal
        self._pressure = self._compute_pressure()

        if len(self._animals) % MILESTONE_EVERY == 0:
            self.emit("population", f"Population reached {len(self._animals)}")
        return True

    def remove_animal(self, animal_id: int) -> bool:
        """
        Unregister an animal. Removing an absent id is a no-op.

        Pressure is left as is until the next successful add_animal().

        Returns:
            True if an animal was removed.
        """
        return self._animals.pop(animal_id, None) is not None

    def _compute_pressure(self) -> int:
        if self._max_population <= 0:
            return MAX_PRESSURE
        return min(MAX_PRESSURE, math.floor(len(self._animals) / self._max_population * MAX_PRESSURE))

    def get_animal(self, animal_id: Optional[int]) -> Optional[Animal]:
        if animal_id is None:
            return None
        return self._animals.get(animal_id)

    def get_all_animals(self) -> list[Animal]:
        """Snapshot of all living animals in registration order."""
        return list(self._animals.values())

    def get_animals_in_radius(self, center: tuple[int, int], radius: int) -> list[Animal]:
        """
        Animals within Manhattan distance `radius` of `center`.

        Results follow registration order. An animal standing at `center`
        is included, so callers looking for others must skip themselves.
        """
        cx, cy = center
        return [
            a for a in self._animals.values()
            if manhattan(cx, cy, a.x, a.y) <= radius
        ]

    @property
    def alive_count(self) -> int:
        return len(self._animals)

    @property
    def is_extinct(self) -> bool:
        return len(self._animals) == 0

    def get_population_pressure(self) -> int:
        return self._pressure

    def get_max_population(self) -> int:
        return self._max_population

    # ------------------------------------------------------------------
    # Terrain
    # ------------------------------------------------------------------

    def is_position_valid(self, pos: tuple[int, int]) -> bool:
        return in_bounds(pos[0], pos[1], self.width, self.height)

    def get_tile(self, pos: tuple[int, int]) -> Optional[Tile]:
        """Copy of the tile at pos, or None if pos is off the grid."""
        if not self.is_position_valid(pos):
            return None
        x, y = pos
        return Tile(TileKind(int(self._terrain[y, x])), float(self._food[y, x]))

    def set_tile(self, pos: tuple[int, int], kind: TileKind, food_value: Optional[float] = None) -> None:
        """
        Overwrite one cell. Food defaults to the kind's initial value.

        Raises:
            IndexError: If pos is off the grid.
        """
        if not self.is_position_valid(pos):
            raise IndexError(f"Position {pos} is outside the {self.width}x{self.height} grid")
        if food_value is None:
            food_value = next(row[2] for row in TERRAIN_TABLE if row[0] == kind)
        x, y = pos
        self._terrain[y, x] = int(kind)
        self._food[y, x] = min(MAX_FOOD, max(0.0, float(food_value)))

    def fill_terrain(self, kind: TileKind, food_value: Optional[float] = None) -> None:
        """Overwrite every cell with the same terrain."""
        if food_value is None:
            food_value = next(row[2] for row in TERRAIN_TABLE if row[0] == kind)
        self._terrain.fill(int(kind))
        self._food.fill(min(MAX_FOOD, max(0.0, float(food_value))))

    def consume_food(self, pos: tuple[int, int], amount: float) -> float:
        """
        Remove up to `amount` food from a tile of any kind.

        Returns:
            Food actually removed; 0 for an off-grid position.
        """
        if not self.is_position_valid(pos):
            return 0.0
        x, y = pos
        consumed = min(float(self._food[y, x]), max(0.0, amount))
        self._food[y, x] -= consumed
        return consumed

    def deplete_grass(self, fraction: float) -> None:
        """Every grass tile loses `fraction` of its current food."""
        grass = self._terrain == TileKind.GRASS
        self._food[grass] -= self._food[grass] * fraction

    def terrain_grid(self) -> NDArray[np.int8]:
        """Copy of the terrain codes, indexed [y, x]."""
        return self._terrain.copy()

    def food_grid(self) -> NDArray[np.float64]:
        """Copy of the food values, indexed [y, x]."""
        return self._food.copy()

    def get_terrain_stats(self) -> dict:
        grass = self._terrain == TileKind.GRASS
        grass_count = int(grass.sum())
        return {
            "grass": grass_count,
            "water": int((self._terrain == TileKind.WATER).sum()),
            "rock": int((self._terrain == TileKind.ROCK).sum()),
            "avg_grass_food": float(self._food[grass].mean()) if grass_count else 0.0,
        }

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def update(self) -> None:
        """
        Advance every animal once, then regrow grass.

        Animals are visited in registration order over a snapshot taken at
        the start of the tick: animals killed earlier in the tick are
        skipped and animals born during it first act on the next tick.
        """
        for animal in list(self._animals.values()):
            if animal.id not in self._animals:
                continue
            if self._pressure > STRESS_PRESSURE:
                animal.apply_environmental_stress(self._pressure)
            animal.update()

        self._regrow()

    def _regrow(self) -> None:
        rate = max(MIN_REGROWTH, BASE_REGROWTH - self._pressure * 0.01)
        grass = self._terrain == TileKind.GRASS
        self._food[grass] = np.minimum(MAX_FOOD, self._food[grass] + rate)

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"World(size={self.width}x{self.height}, tick={self.tick_count}, "
            f"animals={self.alive_count}/{self._max_population}, "
            f"pressure={self._pressure})"
        )
