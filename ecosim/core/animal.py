"""
Animal (Agent) for the ecosystem simulator.

Each animal carries a named-gene genome and four needs: health, energy and
hunger (clamped to [0, 100]) plus an unbounded age. Once per tick the World
calls `update()`, which runs the lifecycle in a fixed order:

  1. age +1, hunger +1, energy -0.5
  2. death on health <= 0 or hunger >= 100
  3. stochastic old-age death past 70% of the genetic maximum age
  4. courtship continuation if mating, otherwise the species policy

Dead animals are removed from the World registry immediately; there is no
dead state. Species-specific decisions live in `ecosim.core.species`; this
module holds the shared actions (move, eat, rest, attack, reproduce,
courtship) every species builds on.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

from ecosim.core.genome import Genome
from ecosim.core.species import Species, SpeciesProfile, get_profile
from ecosim.utils.spatial import (
    clamp,
    clamp_to_grid,
    direction_toward,
    manhattan,
    midpoint,
    step,
)

if TYPE_CHECKING:
    from ecosim.core.world import World


STAT_MAX = 100.0

# Lifecycle constants
BASE_LIFESPAN = 100
LIFESPAN_GENE_SCALE = 50
OLD_AGE_FRACTION = 0.7
OLD_AGE_DEATH_SCALE = 0.1
BASE_MATURITY_AGE = 25
MIN_MATURITY_AGE = 15

# Action costs
MOVE_COST = 1.0
REPRODUCTION_MIN_ENERGY = 50.0
REPRODUCTION_COST = 30.0
FAILED_REPRODUCTION_COST = 10.0
ATTACK_MIN_ENERGY = 20.0
ATTACK_COST = 15.0

COURTSHIP_DURATION = 4


# Unique ID counter for animals
_next_animal_id: int = 0


def _get_next_id() -> int:
    """Generate a globally unique animal ID."""
    global _next_animal_id
    aid = _next_animal_id
    _next_animal_id += 1
    return aid


def reset_animal_id_counter() -> None:
    """Reset the ID counter (useful for tests)."""
    global _next_animal_id
    _next_animal_id = 0


@dataclass
class AnimalStats:
    """Needs of one animal. health/energy/hunger live in [0, 100]."""
    health: float = 100.0
    energy: float = 100.0
    hunger: float = 0.0
    age: float = 0.0

    def __post_init__(self) -> None:
        self.health = clamp(self.health, 0.0, STAT_MAX)
        self.energy = clamp(self.energy, 0.0, STAT_MAX)
        self.hunger = clamp(self.hunger, 0.0, STAT_MAX)
        self.age = max(0.0, self.age)

    def copy(self) -> AnimalStats:
        return replace(self)


class Animal:
    """
    An animal agent on the simulation grid.

    Attributes:
        id: Unique identifier.
        species: Species tag selecting the decision policy.
        x: Current x-coordinate on the grid.
        y: Current y-coordinate on the grid.
        world: The World this animal lives in (spatial queries, RNG,
               registration of offspring).
    """

    __slots__ = (
        "id", "species", "x", "y", "world",
        "_genome", "_stats", "_partner_id", "_courtship_progress",
    )

    def __init__(
        self,
        genome: Genome,
        x: int,
        y: int,
        world: World,
        species: Species | str = Species.FLUFFLES,
        stats: Optional[AnimalStats] = None,
    ):
        """
        Create an animal.

        Args:
            genome: Genome for this animal (owned; not shared with the caller).
            x, y: Initial grid position (clamped to the world's bounds).
            world: World providing spatial queries and the shared RNG.
            species: Species tag.
            stats: Starting needs. Defaults to full health/energy, no hunger.
        """
        self.id = _get_next_id()
        self.species = Species(species)
        self.world = world
        self.x, self.y = clamp_to_grid(x, y, world.width, world.height)
        self._genome = genome.copy()
        self._stats = stats.copy() if stats is not None else AnimalStats()
        self._partner_id: Optional[int] = None
        self._courtship_progress = 0

    # ------------------------------------------------------------------
    # Read access (copies only)
    # ------------------------------------------------------------------

    @property
    def position(self) -> tuple[int, int]:
        """Current grid position."""
        return (self.x, self.y)

    def get_position(self) -> tuple[int, int]:
        return (self.x, self.y)

    def get_stats(self) -> AnimalStats:
        """Independent copy of the current needs."""
        return self._stats.copy()

    def get_genome(self) -> Genome:
        """Independent copy of the genome."""
        return self._genome.copy()

    def gene(self, name: str, default: float) -> float:
        """Gene value with a use-specific fallback for absent genes."""
        return self._genome.value(name, default)

    @property
    def profile(self) -> SpeciesProfile:
        return get_profile(self.species)

    @property
    def is_mating(self) -> bool:
        return self._partner_id is not None

    @property
    def partner_id(self) -> Optional[int]:
        return self._partner_id

    @property
    def courtship_progress(self) -> int:
        return self._courtship_progress

    @property
    def max_age(self) -> float:
        """Genetic maximum age: 100 + lifespan * 50."""
        return BASE_LIFESPAN + self._genome.value("lifespan", 0.0) * LIFESPAN_GENE_SCALE

    @property
    def maturity_age(self) -> float:
        """Age at which the animal may reproduce (never below 15)."""
        if "maturityAge" in self._genome:
            modifier = self._genome.value("maturityAge", 0.5) * 20 - 10
        else:
            modifier = 0.0
        return max(MIN_MATURITY_AGE, BASE_MATURITY_AGE + modifier)

    def is_adult(self) -> bool:
        return self._stats.age >= self.maturity_age

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Advance this animal by one tick."""
        s = self._stats
        s.age += 1
        s.hunger = min(STAT_MAX, s.hunger + 1)
        s.energy = max(0.0, s.energy - 0.5)

        if s.health <= 0:
            self.die("injury")
            return
        if s.hunger >= STAT_MAX:
            self.die("starvation")
            return

        threshold = self.max_age * OLD_AGE_FRACTION
        if s.age > threshold:
            death_chance = (s.age - threshold) / (self.max_age * (1 - OLD_AGE_FRACTION))
            if self.world.rng.random() < death_chance * OLD_AGE_DEATH_SCALE:
                self.die("old_age")
                return

        if self.is_mating:
            self.continue_courtship()
        else:
            self.profile.act(self)

    def die(self, cause: str) -> None:
        """Remove this animal from the world. Safe to call twice."""
        if self.world.remove_animal(self.id):
            self.world.record_death(cause)
            self.world.emit(
                "death",
                f"{self.species.value} {self.id} died ({cause}) at age {self._stats.age:.0f}",
            )

    # ------------------------------------------------------------------
    # Needs mutation
    # ------------------------------------------------------------------

    def eat(self, food_value: float) -> None:
        """Reduce hunger by the food eaten and recover half of it as energy."""
        s = self._stats
        s.hunger = max(0.0, s.hunger - food_value)
        s.energy = min(STAT_MAX, s.energy + food_value / 2)

    def rest(self, amount: float) -> None:
        self._stats.energy = min(STAT_MAX, self._stats.energy + amount)

    def damage(self, amount: float) -> None:
        """Lose health. Death is resolved on the next update()."""
        self._stats.health = clamp(self._stats.health - amount, 0.0, STAT_MAX)

    def adjust_energy(self, delta: float) -> None:
        self._stats.energy = clamp(self._stats.energy + delta, 0.0, STAT_MAX)

    def set_energy(self, value: float) -> None:
        self._stats.energy = clamp(value, 0.0, STAT_MAX)

    def adjust_hunger(self, delta: float) -> None:
        self._stats.hunger = clamp(self._stats.hunger + delta, 0.0, STAT_MAX)

    def apply_environmental_stress(self, pressure: int) -> None:
        """
        Apply crowding effects for the current population pressure.

          pressure > 7:      hunger +0.5, energy -0.3, 5% chance of -1 health
          5 < pressure <= 7: hunger +0.3, energy -0.1
          pressure <= 5:     no effect
        """
        if pressure > 7:
            self.adjust_hunger(0.5)
            self.adjust_energy(-0.3)
            if self.world.rng.random() < 0.05:
                self.damage(1)
        elif pressure > 5:
            self.adjust_hunger(0.3)
            self.adjust_energy(-0.1)

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def move(self, direction: str) -> None:
        """
        Step one cell in a cardinal direction, clamped to the grid.

        Always costs 1 energy, even when clamping leaves the animal where
        it was.
        """
        self.x, self.y = step(self.x, self.y, direction, self.world.width, self.world.height)
        self.adjust_energy(-MOVE_COST)

    def move_toward(self, target: tuple[int, int]) -> None:
        self.move(direction_toward(self.x, self.y, target[0], target[1]))

    def distance_to(self, other: Animal) -> int:
        return manhattan(self.x, self.y, other.x, other.y)

    # ------------------------------------------------------------------
    # Aggression
    # ------------------------------------------------------------------

    def should_be_aggressive(self) -> bool:
        """
        Roll whether the animal turns to hunting this tick.

        Tendency = aggression*0.3 + (1 - energy/100)*0.2 + (hunger/100)*0.4
                   - friendship*0.3
        """
        aggression = self.gene("aggression", 0.3)
        friendship = self.gene("friendship", 0.5)
        energy_factor = max(0.0, 1 - self._stats.energy / STAT_MAX)
        hunger_factor = self._stats.hunger / STAT_MAX
        tendency = (
            aggression * 0.3
            + energy_factor * 0.2
            + hunger_factor * 0.4
            - friendship * 0.3
        )
        return self.world.rng.random() < tendency

    def attack(self, target: Animal) -> bool:
        """
        Attack another animal.

        Requires at least 20 energy; every attempt costs 15 energy.
        Success chance = 0.3 + aggression*0.4 + max(0, speed - target_speed)*0.3.
        A successful attack kills the target and feeds the attacker.

        Args:
            target: Animal to attack.

        Returns:
            True if the target was killed.
        """
        if self._stats.energy < ATTACK_MIN_ENERGY:
            return False

        aggression = self.gene("aggression", 0.3)
        speed = self.gene("speed", 0.5)
        target_speed = target.gene("speed", 0.5)
        success_chance = 0.3 + aggression * 0.4 + max(0.0, speed - target_speed) * 0.3

        self.adjust_energy(-ATTACK_COST)
        self.world.life_stats.attacks += 1

        rng = self.world.rng
        if rng.random() < success_chance:
            gain = 30 + int(rng.integers(0, 20))
            self.adjust_energy(gain)
            self.adjust_hunger(-40)
            self.world.life_stats.kills += 1
            self.world.emit("attack", f"{self.species.value} {self.id} killed {target.id}")
            target.die("predation")
            return True

        self.world.emit("attack", f"{self.species.value} {self.id} failed to catch {target.id}")
        return False

    # ------------------------------------------------------------------
    # Reproduction
    # ------------------------------------------------------------------

    def reproduce(self, partner: Animal) -> Optional[Animal]:
        """
        Attempt to produce one offspring with a partner.

        Both animals must be adult with at least 50 energy, otherwise
        nothing happens. Success chance is
        max(0.1, reproductiveUrge - population_pressure*0.08). A failed
        attempt costs the caller 10 energy, a successful one 30. The
        offspring takes the caller's species, a mutated recombination of
        both genomes and the floored midpoint of the parents' positions.

        Args:
            partner: The other parent.

        Returns:
            The offspring, or None if reproduction was denied, failed, or
            the world had no room for it.
        """
        if not self.is_adult() or not partner.is_adult():
            return None
        if (self._stats.energy < REPRODUCTION_MIN_ENERGY
                or partner._stats.energy < REPRODUCTION_MIN_ENERGY):
            return None

        world = self.world
        rng = world.rng
        urge = self.gene("reproductiveUrge", 0.5)
        success_chance = max(0.1, urge - world.get_population_pressure() * 0.08)

        if rng.random() >= success_chance:
            self.adjust_energy(-FAILED_REPRODUCTION_COST)
            world.life_stats.failed_reproductions += 1
            return None

        child_genome = Genome.combine(self._genome, partner._genome, rng).mutate(rng)
        cx, cy = midpoint(self.position, partner.position)
        self.adjust_energy(-REPRODUCTION_COST)

        offspring = Animal(child_genome, cx, cy, world, species=self.species)
        if not world.add_animal(offspring):
            world.life_stats.rejected_offspring += 1
            world.emit("birth", f"Offspring of {self.id} couldn't survive due to overpopulation")
            return None

        world.life_stats.births += 1
        world.emit(
            "birth",
            f"{self.species.value} {self.id} and {partner.id} produced {offspring.id} "
            f"at ({cx}, {cy})",
        )
        return offspring

    # ------------------------------------------------------------------
    # Courtship
    # ------------------------------------------------------------------

    def start_courtship(self, partner_id: int) -> None:
        """Enter the mating state with a partner. No-op if already mating."""
        if self._partner_id is not None:
            return
        self._partner_id = partner_id
        self._courtship_progress = 0
        self.world.life_stats.courtships_started += 1
        self.world.emit("courtship", f"{self.species.value} {self.id} started courting {partner_id}")

    def end_courtship(self) -> None:
        self._partner_id = None
        self._courtship_progress = 0

    def continue_courtship(self) -> None:
        """
        Advance the courtship by one tick.

        Aborts if the partner is gone. After COURTSHIP_DURATION ticks the
        animal attempts reproduce() and returns to idle whatever the
        outcome; before that it keeps within one cell of the partner.
        Pairing is one-sided: the partner is not required to be courting
        this animal back.
        """
        partner = self.world.get_animal(self._partner_id)
        if partner is None:
            self.world.emit("courtship", f"{self.species.value} {self.id} lost its partner")
            self.end_courtship()
            return

        self._courtship_progress += 1
        if self._courtship_progress >= COURTSHIP_DURATION:
            offspring = self.reproduce(partner)
            self.end_courtship()
            outcome = f"produced {offspring.id}" if offspring is not None else "produced no offspring"
            self.world.emit(
                "courtship",
                f"{self.species.value} {self.id} and {partner.id} finished courting and {outcome}",
            )
            return

        self.world.emit(
            "courtship",
            f"{self.species.value} {self.id} courting {partner.id} "
            f"({self._courtship_progress}/{COURTSHIP_DURATION})",
        )
        if self.distance_to(partner) > 1:
            self.move_toward(partner.position)

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        s = self._stats
        return (
            f"Animal(id={self.id}, species={self.species.value}, pos=({self.x},{self.y}), "
            f"health={s.health:.1f}, energy={s.energy:.1f}, hunger={s.hunger:.1f}, "
            f"age={s.age:.0f})"
        )

    def to_dict(self) -> dict:
        """Serialize animal state for metrics/rendering."""
        s = self._stats
        return {
            "id": self.id,
            "species": self.species.value,
            "x": self.x,
            "y": self.y,
            "health": round(s.health, 6),
            "energy": round(s.energy, 6),
            "hunger": round(s.hunger, 6),
            "age": s.age,
            "adult": self.is_adult(),
            "mating": self.is_mating,
            "partner_id": self._partner_id,
            "genes": {g.name: round(g.value, 6) for g in self._genome.genes()},
        }
