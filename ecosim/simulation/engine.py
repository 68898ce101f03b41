"""
Simulation Engine: main tick loop for the ecosystem simulator.

One tick is:
  1. World update (every animal acts once, then grass regrows)
  2. Disaster engine step (challenges, disaster trigger/continue/end)
  3. tick counter +1
  4. KPI collection every `run.stats_every_n_ticks` ticks
  5. callbacks (on_tick, on_disaster)

The engine owns the seeded random generator through its World; nothing
else in the simulation creates randomness of its own.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from ecosim.core.animal import Animal, reset_animal_id_counter
from ecosim.core.config import SimConfig
from ecosim.core.species import Species, get_profile
from ecosim.core.world import LifeStats, World
from ecosim.logging.event_log import EventLog
from ecosim.simulation.disaster import DisasterEngine
from ecosim.simulation.metrics import MetricsCollector


# ---------------------------------------------------------------------------
# Tick statistics
# ---------------------------------------------------------------------------

@dataclass
class TickStats:
    """Statistics collected during a single tick."""
    tick: int = 0
    alive_count: int = 0
    pressure: int = 0
    disaster_event: str = "none"
    life: LifeStats = field(default_factory=LifeStats)


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Result of a complete simulation run."""
    config: SimConfig
    seed: int
    total_ticks: int = 0
    final_alive_count: int = 0
    peak_population: int = 0
    total_births: int = 0
    deaths_by_cause: dict[str, int] = field(default_factory=dict)
    disasters_triggered: int = 0
    extinct: bool = False
    extinction_tick: Optional[int] = None

    def to_dict(self) -> dict:
        """Summary fields for summary.json (config excluded)."""
        return {
            "seed": self.seed,
            "total_ticks": self.total_ticks,
            "final_alive_count": self.final_alive_count,
            "peak_population": self.peak_population,
            "total_births": self.total_births,
            "deaths_by_cause": dict(self.deaths_by_cause),
            "disasters_triggered": self.disasters_triggered,
            "extinct": self.extinct,
            "extinction_tick": self.extinction_tick,
        }


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Core simulation engine.

    Attributes:
        config: Simulation configuration.
        world: The simulation world.
        disasters: Disaster engine.
        metrics: KPI collector.
        event_log: Event sink wired into the world.
        rng: Master random generator (the world's).
        tick_stats: Statistics for the most recent tick.
        on_tick: Optional callback invoked after each tick(tick_number, engine).
        on_disaster: Optional callback invoked on disaster events(event, engine).
    """

    def __init__(
        self,
        config: SimConfig,
        seed: Optional[int] = None,
        event_log: Optional[EventLog] = None,
    ):
        """
        Create a simulation engine.

        Args:
            config: Simulation configuration.
            seed: Random seed override. None = use config.world.seed.
            event_log: Event sink. None = in-memory log sized from config.
        """
        self.config = config

        if seed is not None:
            self.config.world.seed = seed

        if event_log is None:
            event_log = EventLog(
                history_size=config.events.history_size,
                console=config.events.console,
            )
        self.event_log = event_log

        self.world = World.from_config(
            self.config,
            rng=np.random.default_rng(self.config.world.seed),
            events=self.event_log,
        )
        self.rng = self.world.rng

        self.disasters = DisasterEngine(self.config.disasters)
        self.metrics = MetricsCollector()

        self.tick_stats = TickStats()
        self._total_births = 0
        self._total_deaths: Counter = Counter()
        self._peak_population = 0
        self._disasters_triggered = 0

        # Callbacks
        self.on_tick: Optional[Callable[[int, "SimulationEngine"], None]] = None
        self.on_disaster: Optional[Callable[[str, "SimulationEngine"], None]] = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(
        self,
        count: Optional[int] = None,
        species: Optional[Species | str] = None,
    ) -> list[Animal]:
        """
        Seed the initial population at random positions.

        Only as many animals as the world has room for are created. Ids restart
        from 0 only while the world is empty, so repeated calls add to the
        existing population.

        Args:
            count: Number of animals. None = config.population.initial_count.
            species: Species to seed. None = config.population.species.

        Returns:
            The animals added.
        """
        if count is None:
            count = self.config.population.initial_count
        if species is None:
            species = self.config.population.species

        world = self.world
        if world.alive_count == 0:
            reset_animal_id_counter()
        profile = get_profile(species)
        count = min(count, world.get_max_population() - world.alive_count)

        added = []
        for _ in range(count):
            x = int(self.rng.integers(0, world.width))
            y = int(self.rng.integers(0, world.height))
            animal = Animal(profile.default_genome(), x, y, world, species=profile.species)
            if world.add_animal(animal):
                added.append(animal)

        self._peak_population = max(self._peak_population, world.alive_count)
        world.emit(
            "population",
            f"Seeded {len(added)} {profile.species.value} on a {world.width}x{world.height} world",
        )
        return added

    # ------------------------------------------------------------------
    # Core tick
    # ------------------------------------------------------------------

    def tick(self) -> TickStats:
        """
        Execute one simulation tick.

        Returns:
            TickStats for this tick.
        """
        world = self.world
        self.event_log.tick = world.tick_count + 1

        # --- 1. Animals act, grass regrows ---
        world.update()

        # --- 2. Disasters ---
        disaster_event = self.disasters.step(world)
        if disaster_event == "triggered":
            self._disasters_triggered += 1

        # --- 3. Advance time ---
        world.tick_count += 1

        # --- 4. Stats ---
        life = world.reset_life_stats()
        self._total_births += life.births
        self._total_deaths.update(life.deaths)
        self._peak_population = max(self._peak_population, world.alive_count)

        stats = TickStats(
            tick=world.tick_count,
            alive_count=world.alive_count,
            pressure=world.get_population_pressure(),
            disaster_event=disaster_event,
            life=life,
        )
        self.tick_stats = stats

        if world.tick_count % self.config.run.stats_every_n_ticks == 0:
            self.metrics.collect(world, self.disasters, life)

        # --- 5. Callbacks ---
        if disaster_event not in ("none", "continued") and self.on_disaster is not None:
            self.on_disaster(disaster_event, self)
        if self.on_tick is not None:
            self.on_tick(world.tick_count, self)

        return stats

    # ------------------------------------------------------------------
    # Multi-tick run
    # ------------------------------------------------------------------

    def run(self, max_ticks: Optional[int] = None) -> RunResult:
        """
        Run the simulation until max_ticks or extinction.

        Args:
            max_ticks: Maximum number of ticks. None = config.run.max_ticks.

        Returns:
            RunResult with summary statistics.
        """
        if max_ticks is None:
            max_ticks = self.config.run.max_ticks

        result = RunResult(config=self.config, seed=self.config.world.seed)

        ticks_run = 0
        while ticks_run < max_ticks:
            self.tick()
            ticks_run += 1

            if self.world.is_extinct:
                result.extinct = True
                result.extinction_tick = self.world.tick_count
                self.world.emit("population", "All animals have died. The world is empty.")
                break

        result.total_ticks = ticks_run
        result.final_alive_count = self.world.alive_count
        result.peak_population = self._peak_population
        result.total_births = self._total_births
        result.deaths_by_cause = dict(self._total_deaths)
        result.disasters_triggered = self._disasters_triggered
        return result

    # ------------------------------------------------------------------
    # Disaster control (manual trigger from UI or script)
    # ------------------------------------------------------------------

    def trigger_disaster(
        self,
        kind: Optional[str] = None,
        intensity: Optional[float] = None,
        duration: Optional[int] = None,
    ) -> dict:
        """Manually start a disaster. Returns the disaster status."""
        self.disasters.trigger(self.world, kind=kind, intensity=intensity, duration=duration)
        self._disasters_triggered += 1
        if self.on_disaster is not None:
            self.on_disaster("triggered", self)
        return self.disasters.get_status()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def current_tick(self) -> int:
        return self.world.tick_count

    @property
    def alive_count(self) -> int:
        return self.world.alive_count

    @property
    def is_extinct(self) -> bool:
        return self.world.is_extinct

    @property
    def total_births(self) -> int:
        return self._total_births

    @property
    def deaths_by_cause(self) -> dict[str, int]:
        return dict(self._total_deaths)

    def __repr__(self) -> str:
        return (
            f"SimulationEngine(tick={self.current_tick}, alive={self.alive_count}, "
            f"disaster={self.disasters.disaster.kind.value})"
        )
