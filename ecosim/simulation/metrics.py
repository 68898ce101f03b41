"""
KPI Metrics collection for the ecosystem simulator.

MetricsCollector gathers per-tick Key Performance Indicators (KPIs) from
the world state, the tick's life-event counters and the disaster engine.
It produces a flat dictionary per sample suitable for CSV export and
charting.
"""

from __future__ import annotations

import re
from typing import Optional

import numpy as np

from ecosim.core.animal import Animal
from ecosim.core.genome import STANDARD_GENES
from ecosim.core.species import Species
from ecosim.core.world import LifeStats, World
from ecosim.simulation.disaster import DisasterEngine


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


GENE_KPIS: dict[str, str] = {d.name: f"avg_{_snake(d.name)}" for d in STANDARD_GENES}

_LIFE_KPIS = [
    "births",
    "deaths",
    "deaths_injury",
    "deaths_starvation",
    "deaths_old_age",
    "deaths_predation",
    "attacks",
    "kills",
    "courtships_started",
    "failed_reproductions",
    "rejected_offspring",
]


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """
    Collects and computes KPIs per sampled tick.

    Usage:
      1. After a tick, call `collect(world, disasters, life_stats)`
      2. Resulting dict is appended to `history`
      3. Call `get_history()` to retrieve all collected snapshots

    Attributes:
        history: List of KPI dicts, one per sample.
    """

    def __init__(self):
        self.history: list[dict] = []

    def collect(
        self,
        world: World,
        disasters: Optional[DisasterEngine] = None,
        life_stats: Optional[LifeStats] = None,
    ) -> dict:
        """
        Compute all KPIs for the current tick and append to history.

        Args:
            world: Current world state.
            disasters: Disaster engine (for disaster state columns).
            life_stats: Life-event counters for the tick. Defaults to the
                        world's current counters.

        Returns:
            Dict of KPI_name -> value.
        """
        if life_stats is None:
            life_stats = world.life_stats

        alive = world.get_all_animals()
        kpis: dict = {}

        # --- Population ---
        kpis["tick"] = world.tick_count
        kpis["alive_count"] = len(alive)
        kpis["capacity"] = world.get_max_population()
        kpis["pressure"] = world.get_population_pressure()
        kpis["extinction_flag"] = len(alive) == 0
        for species in Species:
            kpis[f"count_{species.value}"] = sum(1 for a in alive if a.species == species)
        kpis["mating_count"] = sum(1 for a in alive if a.is_mating)
        kpis["adult_count"] = sum(1 for a in alive if a.is_adult())

        # --- Life events ---
        kpis.update(life_stats.to_dict())

        # --- Needs ---
        kpis.update(self._need_stats(alive))

        # --- Genes ---
        for gene, kpi in GENE_KPIS.items():
            values = [a.gene(gene, np.nan) for a in alive]
            kpis[kpi] = float(np.nanmean(values)) if alive and not np.all(np.isnan(values)) else 0.0
        kpis["genetic_diversity"] = self._compute_genetic_diversity(alive)

        # --- Terrain ---
        terrain = world.get_terrain_stats()
        kpis["grass_tiles"] = terrain["grass"]
        kpis["water_tiles"] = terrain["water"]
        kpis["rock_tiles"] = terrain["rock"]
        kpis["avg_grass_food"] = terrain["avg_grass_food"]

        # --- Disaster ---
        if disasters is not None:
            d = disasters.disaster
            kpis["disaster_active"] = d.active
            kpis["disaster_kind"] = d.kind.value
            kpis["disaster_intensity"] = d.intensity
            kpis["disaster_remaining"] = d.duration_remaining
            kpis["challenge"] = disasters.last_challenge or ""
        else:
            kpis["disaster_active"] = False
            kpis["disaster_kind"] = "none"
            kpis["disaster_intensity"] = 0.0
            kpis["disaster_remaining"] = 0
            kpis["challenge"] = ""

        self.history.append(kpis)
        return kpis

    @staticmethod
    def _need_stats(animals: list[Animal]) -> dict:
        stats = [a.get_stats() for a in animals]
        out = {}
        for need in ("health", "energy", "hunger", "age"):
            if stats:
                values = np.array([getattr(s, need) for s in stats])
                out[f"avg_{need}"] = float(np.mean(values))
                out[f"min_{need}"] = float(np.min(values))
                out[f"max_{need}"] = float(np.max(values))
            else:
                out[f"avg_{need}"] = 0.0
                out[f"min_{need}"] = 0.0
                out[f"max_{need}"] = 0.0
        return out

    @staticmethod
    def _compute_genetic_diversity(animals: list[Animal]) -> float:
        """
        Mean per-gene standard deviation across the population.

        Only standard genes carried by every animal are compared.
        0.0 with fewer than 2 animals.
        """
        if len(animals) < 2:
            return 0.0
        genomes = [a.get_genome() for a in animals]
        shared = [d.name for d in STANDARD_GENES if all(d.name in g for g in genomes)]
        if not shared:
            return 0.0
        matrix = np.array([[g.value(name, 0.0) for name in shared] for g in genomes])
        return float(np.mean(np.std(matrix, axis=0)))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI snapshots."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI snapshot, or None."""
        return self.history[-1] if self.history else None

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all samples."""
        return [snap[kpi_name] for snap in self.history if kpi_name in snap]

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        names = [
            "tick",
            "alive_count",
            "capacity",
            "pressure",
            "extinction_flag",
        ]
        names += [f"count_{s.value}" for s in Species]
        names += ["mating_count", "adult_count"]
        names += _LIFE_KPIS
        for need in ("health", "energy", "hunger", "age"):
            names += [f"avg_{need}", f"min_{need}", f"max_{need}"]
        names += list(GENE_KPIS.values())
        names += [
            "genetic_diversity",
            "grass_tiles",
            "water_tiles",
            "rock_tiles",
            "avg_grass_food",
            "disaster_active",
            "disaster_kind",
            "disaster_intensity",
            "disaster_remaining",
            "challenge",
        ]
        return names
