"""
Species policies for the ecosystem simulator.

A species is a data row (`SpeciesProfile`) rather than an Animal subclass:
the tag on each animal selects a decision function, a set of genome
overrides, behaviour flags and display glyphs.

Both species share one decision skeleton. Each tick the animal draws
r = random(); if r < intelligence it walks a priority list of needs
(urgent hunger, exhaustion, moderate hunger, mating, company), otherwise it
picks from a flat weighted set (forage 40%, rest 20%, wander 40%).

  Rabbit:   baseline herbivore. Mates instantly with an adjacent partner.
  Fluffles: social predator. Rolls for aggression first, may hunt, and
            courts a partner over several ticks before reproducing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from ecosim.core.genome import Genome
from ecosim.utils.spatial import DIRECTIONS, DIRECTION_ORDER, step

if TYPE_CHECKING:
    from ecosim.core.animal import Animal


class Species(str, Enum):
    RABBIT = "rabbit"
    FLUFFLES = "fluffles"


# Decision thresholds
URGENT_HUNGER = 70
LOW_ENERGY = 30
MODERATE_HUNGER = 40
DESPERATE_HUNGER = 80
HUNTING_HUNGER = 60
HUNTING_ENERGY = 50
MATING_URGE = 0.6
MATING_ENERGY = 70
MATING_MAX_PRESSURE = 7
SOCIAL_THRESHOLD = 0.7
SOCIAL_MAX_PRESSURE = 8

# Flat (low-intelligence) choice weights, cumulative
FLAT_FORAGE = 0.4
FLAT_REST = 0.6

MATE_SEARCH_RADIUS = 2
COMPANY_SEARCH_RADIUS = 3
HUNT_RADIUS = 2
BITE_SIZE = 5.0


@dataclass(frozen=True)
class SpeciesProfile:
    """
    Everything that differs between species.

    Attributes:
        species: Tag this profile belongs to.
        act: Decision function run once per tick for an idle animal.
        genome_overrides: Standard-gene values for newly seeded animals.
        courtship: Mates through the multi-tick courtship protocol.
        predatory: May hunt and attack other animals.
        rest_gain: Energy recovered by one rest action.
        glyph: Display glyph for a medium-sized animal.
        large_glyph: Display glyph when size > 0.7.
        small_glyph: Display glyph when size < 0.3.
    """
    species: Species
    act: Callable[[Animal], None]
    genome_overrides: dict[str, float] = field(default_factory=dict)
    courtship: bool = False
    predatory: bool = False
    rest_gain: float = 5.0
    glyph: str = "?"
    large_glyph: str = "?"
    small_glyph: str = "°"

    def default_genome(self) -> Genome:
        """Standard genome with this species' overrides applied."""
        return Genome.create_standard(self.genome_overrides)


# ---------------------------------------------------------------------------
# Shared actions
# ---------------------------------------------------------------------------

def wander(animal: Animal) -> None:
    """Step in a uniformly random cardinal direction."""
    index = int(animal.world.rng.integers(0, len(DIRECTION_ORDER)))
    animal.move(DIRECTION_ORDER[index])


def rest(animal: Animal) -> None:
    animal.rest(animal.profile.rest_gain)


def seek_company(animal: Animal) -> None:
    """Walk toward the closest other animal (any species) within radius 3."""
    closest = _closest_other(animal, COMPANY_SEARCH_RADIUS)
    if closest is None:
        wander(animal)
    else:
        animal.move_toward(closest.position)


def hunt(animal: Animal) -> None:
    """Attack the closest animal within radius 2, or close in on it."""
    prey = _closest_other(animal, HUNT_RADIUS)
    if prey is None:
        wander(animal)
    elif animal.distance_to(prey) <= 1:
        animal.attack(prey)
    else:
        animal.move_toward(prey.position)


def _closest_other(animal: Animal, radius: int) -> Optional[Animal]:
    closest = None
    best = None
    for other in animal.world.get_animals_in_radius(animal.position, radius):
        if other.id == animal.id:
            continue
        distance = animal.distance_to(other)
        if best is None or distance < best:
            best = distance
            closest = other
    return closest


# ---------------------------------------------------------------------------
# Rabbit
# ---------------------------------------------------------------------------

def graze(animal: Animal) -> None:
    """
    Eat from the current tile if it has food (any terrain), otherwise step
    onto a random neighbouring tile that has food, otherwise wander.
    """
    world = animal.world
    tile = world.get_tile(animal.position)
    if tile is not None and tile.has_food:
        animal.eat(world.consume_food(animal.position, BITE_SIZE))
        return

    for index in world.rng.permutation(len(DIRECTION_ORDER)):
        direction = DIRECTION_ORDER[int(index)]
        target = step(animal.x, animal.y, direction, world.width, world.height)
        neighbour = world.get_tile(target)
        if neighbour is not None and neighbour.has_food:
            animal.move(direction)
            return

    wander(animal)


def seek_mate_instant(animal: Animal) -> None:
    """Reproduce with the first same-species animal adjacent, else approach one."""
    for other in animal.world.get_animals_in_radius(animal.position, MATE_SEARCH_RADIUS):
        if other.id == animal.id or other.species != animal.species:
            continue
        distance = animal.distance_to(other)
        if distance <= 1:
            animal.reproduce(other)
            return
        if distance <= MATE_SEARCH_RADIUS:
            animal.move_toward(other.position)
            return
    wander(animal)


def rabbit_act(animal: Animal) -> None:
    rng = animal.world.rng
    stats = animal.get_stats()
    pressure = animal.world.get_population_pressure()

    if rng.random() < animal.gene("intelligence", 0.3):
        if stats.hunger > URGENT_HUNGER:
            graze(animal)
        elif stats.energy < LOW_ENERGY:
            rest(animal)
        elif stats.hunger > MODERATE_HUNGER:
            graze(animal)
        elif (animal.is_adult()
              and animal.gene("reproductiveUrge", 0.0) > MATING_URGE
              and stats.energy > MATING_ENERGY
              and pressure < MATING_MAX_PRESSURE):
            seek_mate_instant(animal)
        elif (animal.gene("socialBehavior", 0.0) > SOCIAL_THRESHOLD
              and pressure < SOCIAL_MAX_PRESSURE):
            seek_company(animal)
        else:
            wander(animal)
        return

    choice = rng.random()
    if choice < FLAT_FORAGE:
        graze(animal)
    elif choice < FLAT_REST:
        rest(animal)
    else:
        wander(animal)


# ---------------------------------------------------------------------------
# Fluffles
# ---------------------------------------------------------------------------

def browse(animal: Animal) -> None:
    """
    Step onto the richest neighbouring grass tile (N, E, S, W order, first
    strictly best wins) and eat up to 5 food there. Wander if no
    neighbouring grass has food.
    """
    world = animal.world
    best_direction = None
    best_food = 0.0
    for direction in DIRECTION_ORDER:
        dx, dy = DIRECTIONS[direction]
        target = (animal.x + dx, animal.y + dy)
        if not world.is_position_valid(target):
            continue
        tile = world.get_tile(target)
        if tile.is_grass and tile.food_value > best_food:
            best_food = tile.food_value
            best_direction = direction

    if best_direction is None:
        wander(animal)
        return

    animal.move(best_direction)
    tile = world.get_tile(animal.position)
    if tile is not None and tile.is_grass and tile.has_food:
        animal.eat(world.consume_food(animal.position, min(BITE_SIZE, tile.food_value)))


def court(animal: Animal) -> None:
    """Start courting an adjacent adult of the same species, or approach one."""
    for other in animal.world.get_animals_in_radius(animal.position, MATE_SEARCH_RADIUS):
        if other.id == animal.id or other.species != animal.species or not other.is_adult():
            continue
        distance = animal.distance_to(other)
        if distance <= 1:
            animal.start_courtship(other.id)
            return
        if distance <= MATE_SEARCH_RADIUS:
            animal.move_toward(other.position)
            return
    wander(animal)


def fluffles_act(animal: Animal) -> None:
    aggressive = animal.should_be_aggressive()
    rng = animal.world.rng
    stats = animal.get_stats()
    pressure = animal.world.get_population_pressure()

    if rng.random() < animal.gene("intelligence", 0.3):
        if stats.hunger > URGENT_HUNGER:
            if aggressive and (stats.hunger > DESPERATE_HUNGER or stats.energy < HUNTING_ENERGY):
                hunt(animal)
            else:
                browse(animal)
        elif stats.energy < LOW_ENERGY:
            rest(animal)
        elif stats.hunger > MODERATE_HUNGER:
            if aggressive and (stats.hunger > HUNTING_HUNGER or stats.energy < HUNTING_ENERGY):
                hunt(animal)
            else:
                browse(animal)
        elif (animal.gene("reproductiveUrge", 0.0) > MATING_URGE
              and stats.energy > MATING_ENERGY
              and pressure < MATING_MAX_PRESSURE
              and animal.is_adult()):
            court(animal)
        elif (animal.gene("socialBehavior", 0.0) > SOCIAL_THRESHOLD
              and pressure < SOCIAL_MAX_PRESSURE
              and not aggressive):
            seek_company(animal)
        elif aggressive and stats.energy < HUNTING_ENERGY:
            hunt(animal)
        else:
            wander(animal)
        return

    choice = rng.random()
    if aggressive and stats.energy < HUNTING_ENERGY and choice < FLAT_FORAGE:
        hunt(animal)
    elif choice < FLAT_FORAGE:
        browse(animal)
    elif choice < FLAT_REST:
        rest(animal)
    else:
        wander(animal)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

# Small, fast, fertile body plan shared by both species.
_SMALL_FORAGER_GENES = {
    "size": 0.3,
    "speed": 0.7,
    "metabolism": 0.7,
    "vision": 0.6,
    "intelligence": 0.4,
    "aggression": 0.2,
    "socialBehavior": 0.6,
    "reproductiveUrge": 0.8,
}

PROFILES: dict[Species, SpeciesProfile] = {
    Species.RABBIT: SpeciesProfile(
        species=Species.RABBIT,
        act=rabbit_act,
        genome_overrides=dict(_SMALL_FORAGER_GENES),
        rest_gain=5.0,
        glyph="r",
        large_glyph="R",
    ),
    Species.FLUFFLES: SpeciesProfile(
        species=Species.FLUFFLES,
        act=fluffles_act,
        genome_overrides={**_SMALL_FORAGER_GENES, "maturityAge": 0.4},
        courtship=True,
        predatory=True,
        rest_gain=10.0,
        glyph="f",
        large_glyph="F",
    ),
}


def get_profile(species: Species | str) -> SpeciesProfile:
    """Look up the profile for a species tag or name."""
    return PROFILES[Species(species)]
