"""
Unit tests for species decision policies.

Tests cover:
- Profile registry (overrides, flags, rest gain)
- Rabbit: flat choices, grazing, instant mating, seeking company
- Fluffles: browsing, hunting, courtship start, flat hunting branch
"""

import pytest

from ecosim.core.animal import Animal, AnimalStats, reset_animal_id_counter
from ecosim.core.genome import Genome
from ecosim.core.species import (
    PROFILES,
    Species,
    browse,
    fluffles_act,
    get_profile,
    graze,
    rabbit_act,
    wander,
)
from ecosim.core.tile import TileKind
from ecosim.core.world import World


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
        world = World(10, 10, rng=scripted(values=values, default=default))
        world.fill_terrain(TileKind.GRASS)
        return world
    return _make


def spawn(world, species, x=5, y=5, genes=None, **stats):
    genome = Genome.create_standard({**get_profile(species).genome_overrides, **(genes or {})})
    animal = Animal(genome, x, y, world, species=species, stats=AnimalStats(**stats))
    assert world.add_animal(animal)
    return animal


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestProfiles:
    def test_both_species_registered(self):
        assert set(PROFILES) == {Species.RABBIT, Species.FLUFFLES}

    def test_lookup_by_name(self):
        assert get_profile("rabbit").species is Species.RABBIT

    def test_unknown_species(self):
        with pytest.raises(ValueError):
            get_profile("wolf")

    def test_rabbit_profile(self):
        profile = get_profile(Species.RABBIT)
        assert profile.rest_gain == 5
        assert not profile.courtship
        assert not profile.predatory
        assert profile.act is rabbit_act

    def test_fluffles_profile(self):
        profile = get_profile(Species.FLUFFLES)
        assert profile.rest_gain == 10
        assert profile.courtship
        assert profile.predatory
        assert profile.act is fluffles_act

    def test_default_genomes(self):
        rabbit = get_profile(Species.RABBIT).default_genome()
        fluffles = get_profile(Species.FLUFFLES).default_genome()
        assert len(rabbit) == 12
        assert rabbit.value("speed", 0) == pytest.approx(0.7)
        assert rabbit.value("maturityAge", 0) == pytest.approx(0.5)
        assert fluffles.value("maturityAge", 0) == pytest.approx(0.4)


# ---------------------------------------------------------------------------
# Shared actions
# ---------------------------------------------------------------------------

class TestSharedActions:
    def test_wander_moves_one_cell(self, make_world):
        world = make_world()
        a = spawn(world, Species.RABBIT)
        wander(a)
        assert abs(a.x - 5) + abs(a.y - 5) == 1
        assert a.get_stats().energy == 99

    def test_graze_current_tile(self, make_world):
        world = make_world()
        a = spawn(world, Species.RABBIT, hunger=50, energy=50)
        graze(a)
        assert a.get_stats().hunger == 45
        assert a.get_stats().energy == pytest.approx(52.5)
        assert world.get_tile((5, 5)).food_value == 5

    def test_graze_eats_from_water(self, make_world):
        world = make_world()
        world.set_tile((5, 5), TileKind.WATER)
        a = spawn(world, Species.RABBIT, hunger=50)
        graze(a)
        assert world.get_tile((5, 5)).food_value == 0
        assert a.get_stats().hunger == 45

    def test_graze_steps_to_food(self, make_world):
        world = make_world()
        world.fill_terrain(TileKind.ROCK)
        world.set_tile((6, 5), TileKind.GRASS)
        a = spawn(world, Species.RABBIT)
        graze(a)
        assert a.position == (6, 5)
        assert a.get_stats().energy == 99

    def test_browse_picks_first_best(self, make_world):
        world = make_world()
        a = spawn(world, Species.FLUFFLES, hunger=75, energy=80)
        browse(a)
        assert a.position == (5, 4)
        assert world.get_tile((5, 4)).food_value == 5
        stats = a.get_stats()
        assert stats.hunger == 70
        assert stats.energy == pytest.approx(81.5)

    def test_browse_prefers_richer_tile(self, make_world):
        world = make_world()
        world.set_tile((4, 5), TileKind.GRASS, 10)
        for pos in ((5, 4), (6, 5), (5, 6)):
            world.set_tile(pos, TileKind.GRASS, 3)
        a = spawn(world, Species.FLUFFLES)
        browse(a)
        assert a.position == (4, 5)

    def test_browse_ignores_water(self, make_world):
        world = make_world()
        world.fill_terrain(TileKind.WATER)
        world.set_tile((5, 6), TileKind.GRASS, 2)
        a = spawn(world, Species.FLUFFLES, hunger=50)
        browse(a)
        assert a.position == (5, 6)
        assert a.get_stats().hunger == 48


# ---------------------------------------------------------------------------
# Rabbit
# ---------------------------------------------------------------------------

class TestRabbit:
    def test_flat_rest(self, make_world):
        world = make_world(values=[0.9, 0.5])
        a = spawn(world, Species.RABBIT, energy=50)
        rabbit_act(a)
        assert a.get_stats().energy == 55
        assert a.position == (5, 5)

    def test_flat_forage(self, make_world):
        world = make_world(values=[0.9, 0.1])
        a = spawn(world, Species.RABBIT, hunger=50, energy=50)
        rabbit_act(a)
        assert a.get_stats().hunger == 45

    def test_urgent_hunger_grazes(self, make_world):
        world = make_world(values=[0.0])
        a = spawn(world, Species.RABBIT, hunger=80)
        rabbit_act(a)
        assert a.get_stats().hunger == 75

    def test_exhausted_rests(self, make_world):
        world = make_world(values=[0.0])
        a = spawn(world, Species.RABBIT, energy=20)
        rabbit_act(a)
        assert a.get_stats().energy == 25

    def test_instant_mating(self, make_world):
        world = make_world(values=[0.0, 0.0], default=0.99)
        a = spawn(world, Species.RABBIT, age=30, energy=80)
        spawn(world, Species.RABBIT, x=5, y=6, age=30, energy=80)
        rabbit_act(a)
        assert world.alive_count == 3
        assert world.life_stats.births == 1

    def test_no_mating_across_species(self, make_world):
        world = make_world(values=[0.0], default=0.99)
        a = spawn(world, Species.RABBIT, age=30, energy=80)
        spawn(world, Species.FLUFFLES, x=5, y=6, age=30, energy=80)
        rabbit_act(a)
        assert world.alive_count == 2

    def test_seeks_company(self, make_world):
        world = make_world(values=[0.0])
        a = spawn(world, Species.RABBIT, genes={"socialBehavior": 0.9}, energy=80)
        spawn(world, Species.FLUFFLES, x=5, y=8)
        rabbit_act(a)
        assert a.position == (5, 6)


# ---------------------------------------------------------------------------
# Fluffles
# ---------------------------------------------------------------------------

class TestFluffles:
    def test_hungry_browses_when_calm(self, make_world):
        world = make_world(values=[0.99, 0.0])
        a = spawn(world, Species.FLUFFLES, hunger=75, energy=80)
        fluffles_act(a)
        assert a.position == (5, 4)
        assert a.get_stats().hunger == 70

    def test_desperate_hunts(self, make_world):
        world = make_world(values=[0.0, 0.0, 0.0])
        a = spawn(world, Species.FLUFFLES, hunger=85, energy=40)
        prey = spawn(world, Species.RABBIT, x=5, y=6)
        fluffles_act(a)
        assert world.get_animal(prey.id) is None
        assert world.life_stats.kills == 1
        assert world.life_stats.deaths["predation"] == 1

    def test_hunt_closes_in(self, make_world):
        world = make_world(values=[0.0, 0.0])
        a = spawn(world, Species.FLUFFLES, hunger=85, energy=40)
        spawn(world, Species.RABBIT, x=5, y=7)
        fluffles_act(a)
        assert a.position == (5, 6)
        assert world.life_stats.attacks == 0

    def test_starts_courtship(self, make_world):
        world = make_world(values=[0.99, 0.0])
        a = spawn(world, Species.FLUFFLES, age=30, energy=80)
        b = spawn(world, Species.FLUFFLES, x=6, y=5, age=30, energy=80)
        fluffles_act(a)
        assert a.is_mating
        assert a.partner_id == b.id
        assert not b.is_mating
        assert world.life_stats.courtships_started == 1

    def test_skips_immature_partner(self, make_world):
        world = make_world(values=[0.99, 0.0])
        a = spawn(world, Species.FLUFFLES, age=30, energy=80)
        spawn(world, Species.FLUFFLES, x=6, y=5, age=0, energy=80)
        fluffles_act(a)
        assert not a.is_mating

    def test_flat_branch_hunts(self, make_world):
        world = make_world(values=[0.0, 0.9, 0.1, 0.99])
        a = spawn(world, Species.FLUFFLES, energy=40)
        spawn(world, Species.RABBIT, x=5, y=6)
        fluffles_act(a)
        assert world.life_stats.attacks == 1
        assert a.get_stats().energy == 25

    def test_flat_rest(self, make_world):
        world = make_world(values=[0.99, 0.9, 0.5])
        a = spawn(world, Species.FLUFFLES, energy=50)
        fluffles_act(a)
        assert a.get_stats().energy == 60
