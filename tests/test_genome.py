"""
Unit tests for the Genome system.

Tests cover:
- Gene clamping and copy semantics
- Standard catalog and overrides
- Mutation (per-gene rate, step size, gene count preserved)
- Recombination (union of names, 40/40/20 inheritance split)
"""

import numpy as np
import pytest

from ecosim.core.genome import Gene, Genome, STANDARD_GENES, MUTATION_STEP


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def standard() -> Genome:
    return Genome.create_standard()


# ---------------------------------------------------------------------------
# Gene / Genome basics
# ---------------------------------------------------------------------------

class TestGene:
    def test_value_clamped(self):
        assert Gene("a", 1.7, 0.1).value == 1.0
        assert Gene("a", -0.2, 0.1).value == 0.0

    def test_rate_clamped(self):
        assert Gene("a", 0.5, 3.0).mutation_rate == 1.0
        assert Gene("a", 0.5, -1.0).mutation_rate == 0.0

    def test_copy_is_independent(self):
        g = Gene("a", 0.5, 0.1)
        c = g.copy()
        c.value = 0.9
        assert g.value == 0.5


class TestGenomeAccess:
    def test_add_stores_copy(self):
        g = Gene("speed", 0.4, 0.1)
        genome = Genome()
        genome.add(g)
        g.value = 0.9
        assert genome.get("speed").value == pytest.approx(0.4)

    def test_get_returns_copy(self):
        genome = Genome([Gene("speed", 0.4, 0.1)])
        genome.get("speed").value = 0.9
        assert genome.get("speed").value == pytest.approx(0.4)

    def test_get_missing_is_none(self):
        assert Genome().get("speed") is None

    def test_value_fallback(self):
        genome = Genome([Gene("speed", 0.4, 0.1)])
        assert genome.value("speed", 0.5) == pytest.approx(0.4)
        assert genome.value("aggression", 0.3) == pytest.approx(0.3)

    def test_add_replaces_same_name(self):
        genome = Genome([Gene("speed", 0.4, 0.1), Gene("speed", 0.6, 0.2)])
        assert len(genome) == 1
        assert genome.get("speed").value == pytest.approx(0.6)

    def test_copy_independent(self, standard):
        clone = standard.copy()
        clone.add(Gene("size", 0.99, 0.05))
        assert standard.get("size").value == pytest.approx(0.5)

    def test_contains_and_names(self, standard):
        assert "speed" in standard
        assert "wings" not in standard
        assert standard.names() == {d.name for d in STANDARD_GENES}

    def test_describe(self):
        assert "speed" in Genome.describe("speed").lower()
        assert Genome.describe("wings") is None

    def test_to_dict(self):
        genome = Genome([Gene("speed", 0.4, 0.1)])
        assert genome.to_dict() == {"speed": {"name": "speed", "value": 0.4, "mutation_rate": 0.1}}


class TestStandardGenome:
    def test_has_all_twelve_genes(self, standard):
        assert len(standard) == 12

    def test_catalog_defaults(self, standard):
        assert standard.get("intelligence").value == pytest.approx(0.3)
        assert standard.get("intelligence").mutation_rate == pytest.approx(0.03)
        assert standard.get("furColor").mutation_rate == pytest.approx(0.15)

    def test_overrides_keep_catalog_rate(self):
        genome = Genome.create_standard({"speed": 0.9})
        assert genome.get("speed").value == pytest.approx(0.9)
        assert genome.get("speed").mutation_rate == pytest.approx(0.1)


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------

class TestMutate:
    def test_returns_new_genome(self, standard, rng):
        mutated = standard.mutate(rng)
        assert mutated is not standard

    def test_preserves_gene_count_and_names(self, standard, rng):
        for _ in range(20):
            mutated = standard.mutate(rng)
            assert len(mutated) == len(standard)
            assert mutated.names() == standard.names()

    def test_no_mutation_when_roll_above_rate(self, standard, scripted):
        mutated = standard.mutate(scripted(default=0.99))
        assert mutated == standard

    def test_every_gene_mutates_within_step(self, standard, scripted):
        mutated = standard.mutate(scripted(default=0.0))
        for gene in standard.genes():
            delta = abs(mutated.get(gene.name).value - gene.value)
            assert delta <= MUTATION_STEP + 1e-9

    def test_values_stay_in_unit_interval(self, rng):
        genome = Genome([Gene("a", 0.0, 1.0), Gene("b", 1.0, 1.0)])
        for _ in range(50):
            genome = genome.mutate(rng)
            for gene in genome.genes():
                assert 0.0 <= gene.value <= 1.0

    def test_mutation_rate_unchanged(self, standard, scripted):
        mutated = standard.mutate(scripted(default=0.0))
        for gene in standard.genes():
            assert mutated.get(gene.name).mutation_rate == gene.mutation_rate


# ---------------------------------------------------------------------------
# Recombination
# ---------------------------------------------------------------------------

class TestCombine:
    @pytest.fixture
    def parents(self):
        a = Genome([Gene("x", 0.1, 0.1), Gene("shared", 0.2, 0.2)])
        b = Genome([Gene("shared", 0.6, 0.4), Gene("z", 0.9, 0.3)])
        return a, b

    def test_union_of_names(self, parents, rng):
        a, b = parents
        child = Genome.combine(a, b, rng)
        assert child.names() == {"x", "shared", "z"}

    def test_never_smaller_than_either_parent(self, rng):
        a = Genome.create_standard()
        b = Genome([Gene("wings", 0.5, 0.1)])
        child = Genome.combine(a, b, rng)
        assert len(child) >= max(len(a), len(b))

    def test_unshared_genes_copied_verbatim(self, parents, rng):
        a, b = parents
        child = Genome.combine(a, b, rng)
        assert child.get("x") == Gene("x", 0.1, 0.1)
        assert child.get("z") == Gene("z", 0.9, 0.3)

    def test_shared_from_parent_a(self, parents, scripted):
        a, b = parents
        child = Genome.combine(a, b, scripted(default=0.1))
        assert child.get("shared").value == pytest.approx(0.2)

    def test_shared_from_parent_b(self, parents, scripted):
        a, b = parents
        child = Genome.combine(a, b, scripted(default=0.5))
        assert child.get("shared").value == pytest.approx(0.6)

    def test_shared_blended(self, parents, scripted):
        a, b = parents
        child = Genome.combine(a, b, scripted(default=0.9))
        shared = child.get("shared")
        assert shared.value == pytest.approx(0.4)
        assert shared.mutation_rate == pytest.approx(0.3)

    def test_parents_untouched(self, parents, rng):
        a, b = parents
        before_a, before_b = a.copy(), b.copy()
        Genome.combine(a, b, rng)
        assert a == before_a
        assert b == before_b

    def test_split_is_roughly_forty_forty_twenty(self):
        rng = np.random.default_rng(7)
        a = Genome([Gene("g", 0.0, 0.1)])
        b = Genome([Gene("g", 1.0, 0.1)])
        values = [Genome.combine(a, b, rng).get("g").value for _ in range(4000)]
        share_a = values.count(0.0) / len(values)
        share_b = values.count(1.0) / len(values)
        assert share_a == pytest.approx(0.4, abs=0.04)
        assert share_b == pytest.approx(0.4, abs=0.04)
