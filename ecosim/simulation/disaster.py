"""
Disaster Engine for the ecosystem simulator.

Random environmental shocks, checked once per tick after the World update:

  Minor challenges (single tick, only while no disaster is active):
    - food shortage:  every grass tile loses 30% of its food
    - disease:        ceil(20%) of the population lose 20 health each
    - harsh weather:  every animal's energy = max(10, energy - 10)

  Major disasters (multi-tick, at most one active):
    - earthquake:  tiles lose food, animals may be injured
    - drought:     grass withers every 5th tick, animals get hungrier
    - disease:     animals may lose health
    - cold snap:   animals lose energy and may lose health

A disaster applies its effect on the tick it is triggered, then once more
on every following tick until its duration runs out.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ecosim.core.config import DisasterConfig
from ecosim.core.tile import TileKind
from ecosim.core.world import World


class DisasterKind(str, Enum):
    NONE = "none"
    EARTHQUAKE = "earthquake"
    DROUGHT = "drought"
    DISEASE = "disease"
    COLD_SNAP = "cold_snap"


MAJOR_KINDS: tuple[DisasterKind, ...] = (
    DisasterKind.EARTHQUAKE,
    DisasterKind.DROUGHT,
    DisasterKind.DISEASE,
    DisasterKind.COLD_SNAP,
)

FOOD_SHORTAGE_LOSS = 0.3
CHALLENGE_DISEASE_SHARE = 0.2
CHALLENGE_DISEASE_DAMAGE = 20
HARSH_WEATHER_DRAIN = 10
HARSH_WEATHER_FLOOR = 10

EARTHQUAKE_TERRAIN_CHANCE = 0.3
EARTHQUAKE_TILES = 5
DROUGHT_PERIOD = 5


@dataclass
class Disaster:
    """State of the current major disaster."""
    kind: DisasterKind = DisasterKind.NONE
    duration_remaining: int = 0
    intensity: float = 0.0
    active: bool = False
    elapsed: int = 0

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "duration_remaining": self.duration_remaining,
            "intensity": round(self.intensity, 6),
            "active": self.active,
            "elapsed": self.elapsed,
        }


class DisasterEngine:
    """
    Rolls for and applies challenges and disasters.

    All randomness comes from `world.rng`, so a seeded world replays the
    same sequence of shocks.

    Attributes:
        config: Odds and duration range.
        disaster: Current disaster state (kind NONE while inactive).
        last_challenge: Kind of the minor challenge fired on the most recent
                        step, or None.
    """

    def __init__(self, config: Optional[DisasterConfig] = None):
        self.config = config if config is not None else DisasterConfig()
        self.disaster = Disaster()
        self.last_challenge: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.disaster.active

    # ------------------------------------------------------------------
    # Per-tick step
    # ------------------------------------------------------------------

    def step(self, world: World) -> str:
        """
        Advance the disaster state machine by one tick.

        Returns:
            Event string: "triggered", "continued", "ended", "challenge"
            or "none".
        """
        self.last_challenge = None

        if self.disaster.active:
            d = self.disaster
            d.elapsed += 1
            self._apply_effects(world)
            d.duration_remaining -= 1
            if d.duration_remaining <= 0:
                self.end(world)
                return "ended"
            return "continued"

        event = "none"
        rng = world.rng
        if rng.random() < self.config.challenge_chance:
            self._apply_challenge(world)
            event = "challenge"

        if rng.random() < self.config.disaster_chance:
            self.trigger(world)
            event = "triggered"

        return event

    # ------------------------------------------------------------------
    # Trigger / End
    # ------------------------------------------------------------------

    def trigger(
        self,
        world: World,
        kind: Optional[DisasterKind | str] = None,
        intensity: Optional[float] = None,
        duration: Optional[int] = None,
    ) -> Disaster:
        """
        Start a major disaster and apply its first tick of effects.

        Unset parameters are drawn from `world.rng`: kind uniformly, duration
        as min_duration + integers(0, duration_spread), intensity as
        0.5 + random() * 0.5. Replaces any disaster already running.

        Returns:
            The new disaster state.
        """
        rng = world.rng
        if kind is None:
            kind = MAJOR_KINDS[int(rng.integers(0, len(MAJOR_KINDS)))]
        kind = DisasterKind(kind)
        if kind == DisasterKind.NONE:
            raise ValueError("Cannot trigger a disaster of kind 'none'")
        if duration is None:
            duration = self.config.min_duration + int(rng.integers(0, self.config.duration_spread))
        if intensity is None:
            intensity = 0.5 + rng.random() * 0.5

        self.disaster = Disaster(
            kind=kind,
            duration_remaining=int(duration),
            intensity=float(intensity),
            active=True,
            elapsed=1,
        )
        world.emit(
            "disaster",
            f"MAJOR DISASTER: a {kind.value} has struck (intensity {round(intensity * 100)}%, "
            f"{duration} ticks)",
        )
        self._apply_effects(world)
        return self.disaster

    def end(self, world: Optional[World] = None) -> None:
        """Clear the current disaster. No-op if none is active."""
        if not self.disaster.active:
            return
        kind = self.disaster.kind
        self.disaster = Disaster()
        if world is not None:
            world.emit("disaster", f"The {kind.value} has ended. The world begins to recover.")

    # ------------------------------------------------------------------
    # Minor challenges
    # ------------------------------------------------------------------

    def _apply_challenge(self, world: World) -> None:
        roll = world.rng.random()
        if roll < 0.3:
            self.last_challenge = "food_shortage"
            world.emit("challenge", "Environmental event: food shortage")
            world.deplete_grass(FOOD_SHORTAGE_LOSS)
        elif roll < 0.6:
            self.last_challenge = "disease"
            world.emit("challenge", "Environmental event: disease spreading among animals")
            animals = world.get_all_animals()
            if animals:
                count = math.ceil(len(animals) * CHALLENGE_DISEASE_SHARE)
                for index in world.rng.choice(len(animals), size=count, replace=False):
                    animals[int(index)].damage(CHALLENGE_DISEASE_DAMAGE)
        else:
            self.last_challenge = "harsh_weather"
            world.emit("challenge", "Environmental event: harsh weather conditions")
            for animal in world.get_all_animals():
                energy = animal.get_stats().energy
                animal.set_energy(max(HARSH_WEATHER_FLOOR, energy - HARSH_WEATHER_DRAIN))

    # ------------------------------------------------------------------
    # Major disaster effects
    # ------------------------------------------------------------------

    def _apply_effects(self, world: World) -> None:
        d = self.disaster
        rng = world.rng
        intensity = d.intensity
        animals = world.get_all_animals()

        if d.kind == DisasterKind.EARTHQUAKE:
            if rng.random() < EARTHQUAKE_TERRAIN_CHANCE:
                for _ in range(EARTHQUAKE_TILES):
                    pos = (int(rng.integers(0, world.width)), int(rng.integers(0, world.height)))
                    tile = world.get_tile(pos)
                    if tile is not None and tile.kind == TileKind.GRASS:
                        world.consume_food(pos, tile.food_value * intensity)
            for animal in animals:
                if rng.random() < intensity * 0.2:
                    animal.damage(math.floor(20 * intensity))

        elif d.kind == DisasterKind.DROUGHT:
            if d.elapsed % DROUGHT_PERIOD == 0:
                world.deplete_grass(0.1 * intensity)
                world.emit("disaster", "The drought continues to wither the vegetation...")
            for animal in animals:
                animal.adjust_hunger(intensity * 2)

        elif d.kind == DisasterKind.DISEASE:
            for animal in animals:
                if rng.random() < intensity * 0.15:
                    animal.damage(math.floor(10 * intensity))

        elif d.kind == DisasterKind.COLD_SNAP:
            for animal in animals:
                animal.adjust_energy(-intensity * 2)
                if rng.random() < intensity * 0.1:
                    animal.damage(math.floor(5 * intensity))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_status(self) -> dict:
        """Return a status dict for logging/UI."""
        status = self.disaster.to_dict()
        status["last_challenge"] = self.last_challenge
        return status

    def __repr__(self) -> str:
        d = self.disaster
        if not d.active:
            return "DisasterEngine(inactive)"
        return (
            f"DisasterEngine(kind={d.kind.value}, remaining={d.duration_remaining}, "
            f"intensity={d.intensity:.2f})"
        )
