"""
Unit tests for the Disaster Engine.

Tests cover:
- Manual trigger and state machine (continue, end, duration)
- Major disaster effects on terrain and live animals
- Minor challenges (food shortage, disease, harsh weather)
- Random triggering from configured odds
"""

import numpy as np
import pytest

from ecosim.core.animal import Animal, AnimalStats, reset_animal_id_counter
from ecosim.core.config import DisasterConfig
from ecosim.core.genome import Genome
from ecosim.core.tile import TileKind
from ecosim.core.world import World
from ecosim.simulation.disaster import Disaster, DisasterEngine, DisasterKind


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_ids():
    reset_animal_id_counter()
    yield
    reset_animal_id_counter()


@pytest.fixture
def make_world(scripted):
    def _make(values=(), default=0.99):
        events = []
        world = World(
            10, 10,
            rng=scripted(values=values, default=default),
            events=lambda c, m: events.append((c, m)),
        )
        world.fill_terrain(TileKind.GRASS)
        world.recorded = events
        return world
    return _make


def populate(world, count=1, **stats):
    animals = []
    for i in range(count):
        animal = Animal(Genome.create_standard(), i % 10, i // 10, world, stats=AnimalStats(**stats))
        world.add_animal(animal)
        animals.append(animal)
    return animals


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class TestTrigger:
    def test_inactive_by_default(self):
        engine = DisasterEngine()
        assert not engine.active
        assert engine.disaster == Disaster()

    def test_manual_trigger(self, make_world):
        world = make_world()
        engine = DisasterEngine()
        d = engine.trigger(world, kind="drought", intensity=0.8, duration=12)
        assert engine.active
        assert d.kind is DisasterKind.DROUGHT
        assert d.intensity == pytest.approx(0.8)
        assert d.duration_remaining == 12
        assert d.elapsed == 1
        assert world.recorded[0][0] == "disaster"

    def test_trigger_none_rejected(self, make_world):
        with pytest.raises(ValueError):
            DisasterEngine().trigger(make_world(), kind=DisasterKind.NONE)

    def test_trigger_unknown_kind(self, make_world):
        with pytest.raises(ValueError):
            DisasterEngine().trigger(make_world(), kind="meteor")

    def test_ends_after_duration(self, make_world):
        world = make_world()
        engine = DisasterEngine()
        engine.trigger(world, kind="disease", intensity=0.5, duration=3)
        assert engine.step(world) == "continued"
        assert engine.step(world) == "continued"
        assert engine.step(world) == "ended"
        assert not engine.active
        assert engine.disaster.kind is DisasterKind.NONE

    def test_end_is_idempotent(self, make_world):
        world = make_world()
        engine = DisasterEngine()
        engine.trigger(world, kind="cold_snap", intensity=0.5, duration=5)
        engine.end(world)
        engine.end(world)
        assert not engine.active

    def test_active_disaster_blocks_rolls(self, make_world):
        world = make_world(default=0.0)
        engine = DisasterEngine(DisasterConfig(challenge_chance=1.0, disaster_chance=1.0))
        engine.trigger(world, kind="drought", intensity=0.5, duration=10)
        assert engine.step(world) == "continued"
        assert engine.last_challenge is None
        assert engine.disaster.kind is DisasterKind.DROUGHT

    def test_status(self, make_world):
        world = make_world()
        engine = DisasterEngine()
        engine.trigger(world, kind="earthquake", intensity=0.6, duration=4)
        status = engine.get_status()
        assert status["kind"] == "earthquake"
        assert status["active"] is True
        assert status["last_challenge"] is None


# ---------------------------------------------------------------------------
# Major disaster effects
# ---------------------------------------------------------------------------

class TestEffects:
    def test_drought_withers_on_fifth_tick(self, make_world):
        world = make_world()
        engine = DisasterEngine()
        engine.trigger(world, kind="drought", intensity=1.0, duration=30)
        for _ in range(3):
            engine.step(world)
        assert world.get_tile((4, 4)).food_value == pytest.approx(10)
        engine.step(world)
        assert world.get_tile((4, 4)).food_value == pytest.approx(9)

    def test_drought_hunger(self, make_world):
        world = make_world()
        (animal,) = populate(world)
        DisasterEngine().trigger(world, kind="drought", intensity=1.0, duration=5)
        assert animal.get_stats().hunger == pytest.approx(2)

    def test_disease_damages_live_animal(self, make_world):
        world = make_world(default=0.0)
        (animal,) = populate(world)
        DisasterEngine().trigger(world, kind="disease", intensity=1.0, duration=5)
        assert animal.get_stats().health == 90

    def test_cold_snap(self, make_world):
        world = make_world(default=0.99)
        (animal,) = populate(world, energy=80)
        DisasterEngine().trigger(world, kind="cold_snap", intensity=1.0, duration=5)
        stats = animal.get_stats()
        assert stats.energy == pytest.approx(78)
        assert stats.health == 100

    def test_earthquake(self, make_world):
        world = make_world(default=0.0)
        (animal,) = populate(world)
        DisasterEngine().trigger(world, kind="earthquake", intensity=1.0, duration=5)
        assert animal.get_stats().health == 80
        depleted = int((world.food_grid() == 0).sum())
        assert 1 <= depleted <= 5

    def test_earthquake_spares_non_grass(self, make_world):
        world = make_world(default=0.0)
        world.fill_terrain(TileKind.WATER)
        DisasterEngine().trigger(world, kind="earthquake", intensity=1.0, duration=5)
        assert world.food_grid().min() == 5


# ---------------------------------------------------------------------------
# Minor challenges
# ---------------------------------------------------------------------------

class TestChallenges:
    @pytest.fixture
    def engine(self):
        return DisasterEngine(DisasterConfig(challenge_chance=1.0, disaster_chance=0.0))

    def test_food_shortage(self, make_world, engine):
        world = make_world(values=[0.0, 0.1])
        assert engine.step(world) == "challenge"
        assert engine.last_challenge == "food_shortage"
        assert world.get_tile((0, 0)).food_value == pytest.approx(7)
        assert ("challenge", "Environmental event: food shortage") in world.recorded

    def test_disease_hits_twenty_percent(self, make_world, engine):
        world = make_world(values=[0.0, 0.5])
        animals = populate(world, 10)
        engine.step(world)
        assert engine.last_challenge == "disease"
        health = sorted(a.get_stats().health for a in animals)
        assert health == [80, 80] + [100] * 8

    def test_disease_empty_world(self, make_world, engine):
        world = make_world(values=[0.0, 0.5])
        assert engine.step(world) == "challenge"

    def test_harsh_weather(self, make_world, engine):
        world = make_world(values=[0.0, 0.9])
        strong, weak = populate(world, 2, energy=50)
        weak.set_energy(15)
        engine.step(world)
        assert engine.last_challenge == "harsh_weather"
        assert strong.get_stats().energy == 40
        assert weak.get_stats().energy == 10

    def test_challenge_clears_next_tick(self, make_world):
        world = make_world(values=[0.0, 0.1, 0.99])
        engine = DisasterEngine(DisasterConfig(challenge_chance=0.5, disaster_chance=0.0))
        engine.step(world)
        assert engine.last_challenge == "food_shortage"
        engine.step(world)
        assert engine.last_challenge is None


# ---------------------------------------------------------------------------
# Random triggering
# ---------------------------------------------------------------------------

class TestRandomTrigger:
    def test_quiet_tick(self, make_world):
        world = make_world(default=0.99)
        assert DisasterEngine().step(world) == "none"

    def test_random_disaster(self, make_world):
        world = make_world(default=0.99)
        engine = DisasterEngine(DisasterConfig(challenge_chance=0.0, disaster_chance=1.0))
        assert engine.step(world) == "triggered"
        d = engine.disaster
        assert d.kind is not DisasterKind.NONE
        assert 20 <= d.duration_remaining < 50
        assert 0.5 <= d.intensity <= 1.0

    def test_seeded_sequence_repeats(self):
        config = DisasterConfig(challenge_chance=0.2, disaster_chance=0.05)

        def run(seed):
            world = World(10, 10, rng=np.random.default_rng(seed))
            engine = DisasterEngine(config)
            return [engine.step(world) for _ in range(200)]

        assert run(11) == run(11)
