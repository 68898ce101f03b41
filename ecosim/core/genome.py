"""
Genome system for the ecosystem simulator.

Each animal carries a genome: a mapping of named genes, each holding a
normalized value in [0, 1] and its own per-gene mutation rate.

Inheritance is sexual. `Genome.combine()` walks the union of both parents'
gene names; a gene carried by only one parent is copied verbatim, a gene
carried by both is taken from parent A (40%), parent B (40%) or blended by
averaging value and mutation rate (20%). `mutate()` then nudges each gene by
up to +/-0.1 with probability equal to that gene's own mutation rate.

The standard gene catalog is plain data (`STANDARD_GENES`) so species can
reuse or extend it with overrides rather than hardcoded branches.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Iterable, Iterator, Optional

import numpy as np

from ecosim.utils.spatial import clamp01


# Largest absolute nudge applied to a gene value by a single mutation.
MUTATION_STEP = 0.1

# Recombination thresholds for genes carried by both parents.
INHERIT_FROM_A = 0.4
INHERIT_FROM_B = 0.8


@dataclass(slots=True)
class Gene:
    """
    A single heritable trait.

    Attributes:
        name: Unique gene name within a genome (e.g., "speed").
        value: Normalized trait value in [0, 1].
        mutation_rate: Probability in [0, 1] that this gene mutates when
                       the genome is copied into an offspring.
    """
    name: str
    value: float
    mutation_rate: float

    def __post_init__(self) -> None:
        self.value = clamp01(float(self.value))
        self.mutation_rate = clamp01(float(self.mutation_rate))

    def copy(self) -> Gene:
        return Gene(self.name, self.value, self.mutation_rate)


@dataclass(frozen=True)
class GeneDefinition:
    """Catalog row describing a standard gene and its defaults."""
    name: str
    default_value: float
    default_mutation_rate: float
    description: str
    min_value: float = 0.0
    max_value: float = 1.0


STANDARD_GENES: tuple[GeneDefinition, ...] = (
    GeneDefinition("size", 0.5, 0.05, "Physical size of the animal", 0.1, 1.0),
    GeneDefinition("speed", 0.5, 0.1, "Movement speed and agility", 0.1, 1.0),
    GeneDefinition("metabolism", 0.5, 0.05, "Rate of energy consumption", 0.1, 1.0),
    GeneDefinition("vision", 0.5, 0.08, "Ability to detect food and threats at a distance", 0.1, 1.0),
    GeneDefinition("intelligence", 0.3, 0.03, "Problem-solving and decision-making ability", 0.1, 1.0),
    GeneDefinition("aggression", 0.3, 0.1, "Tendency to fight rather than flee"),
    GeneDefinition("socialBehavior", 0.5, 0.07, "Tendency to group with others"),
    GeneDefinition("furColor", 0.5, 0.15, "Color of fur/skin"),
    GeneDefinition("reproductiveUrge", 0.5, 0.1, "Desire to reproduce when conditions are right", 0.1, 1.0),
    GeneDefinition("lifespan", 0.5, 0.05, "Natural maximum age", 0.2, 1.0),
    GeneDefinition("maturityAge", 0.5, 0.05, "Age at which the animal reaches maturity", 0.2, 0.8),
    GeneDefinition("friendship", 0.5, 0.1, "Tendency to be friendly rather than aggressive"),
)

_CATALOG: dict[str, GeneDefinition] = {d.name: d for d in STANDARD_GENES}


class Genome:
    """
    Named-gene genome for an animal.

    Treated as immutable once built: `mutate()` and `combine()` always
    return new Genome instances. `add()` exists for construction.
    """

    __slots__ = ("_genes",)

    def __init__(self, genes: Optional[Iterable[Gene]] = None):
        """
        Create a genome.

        Args:
            genes: Initial genes. Later genes replace earlier ones with the
                   same name.
        """
        self._genes: dict[str, Gene] = {}
        if genes is not None:
            for gene in genes:
                self.add(gene)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def add(self, gene: Gene) -> None:
        """Insert or replace a gene (stored as an independent copy)."""
        self._genes[gene.name] = gene.copy()

    def get(self, name: str) -> Optional[Gene]:
        """Return a copy of the named gene, or None if absent."""
        gene = self._genes.get(name)
        return gene.copy() if gene is not None else None

    def value(self, name: str, default: float) -> float:
        """
        Return a gene's value, or `default` if the genome lacks it.

        Callers pass the fallback documented for their particular use, so a
        missing gene never surfaces as an error.
        """
        gene = self._genes.get(name)
        return gene.value if gene is not None else default

    def names(self) -> set[str]:
        return set(self._genes)

    def genes(self) -> list[Gene]:
        """All genes, as independent copies."""
        return [g.copy() for g in self._genes.values()]

    def copy(self) -> Genome:
        """Create an independent deep copy of this genome."""
        return Genome(self._genes.values())

    @staticmethod
    def describe(name: str) -> Optional[str]:
        """Catalog description of a standard gene, or None."""
        definition = _CATALOG.get(name)
        return definition.description if definition is not None else None

    # ------------------------------------------------------------------
    # Mutation / Recombination
    # ------------------------------------------------------------------

    def mutate(self, rng: Optional[np.random.Generator] = None) -> Genome:
        """
        Return a mutated copy of this genome.

        Each gene independently mutates with probability equal to its own
        mutation rate; a mutation adds uniform(-0.1, 0.1) to the value and
        clamps the result to [0, 1]. Gene count is preserved exactly.

        Args:
            rng: Random generator. Uses default if None.

        Returns:
            New Genome.
        """
        if rng is None:
            rng = np.random.default_rng()

        mutated = Genome()
        for gene in self._genes.values():
            if rng.random() < gene.mutation_rate:
                delta = rng.uniform(-MUTATION_STEP, MUTATION_STEP)
                mutated.add(Gene(gene.name, clamp01(gene.value + delta), gene.mutation_rate))
            else:
                mutated.add(gene)
        return mutated

    @staticmethod
    def combine(
        a: Genome,
        b: Genome,
        rng: Optional[np.random.Generator] = None,
    ) -> Genome:
        """
        Recombine two parent genomes into an offspring genome.

        The result carries the union of both parents' gene names, so it is
        never smaller than either parent.

        Args:
            a: First parent (the initiating animal).
            b: Second parent.
            rng: Random generator. Uses default if None.

        Returns:
            New Genome.
        """
        if rng is None:
            rng = np.random.default_rng()

        child = Genome()
        names = list(a._genes) + [n for n in b._genes if n not in a._genes]
        for name in names:
            gene_a = a._genes.get(name)
            gene_b = b._genes.get(name)

            if gene_a is not None and gene_b is not None:
                roll = rng.random()
                if roll < INHERIT_FROM_A:
                    child.add(gene_a)
                elif roll < INHERIT_FROM_B:
                    child.add(gene_b)
                else:
                    child.add(Gene(
                        name,
                        (gene_a.value + gene_b.value) / 2,
                        (gene_a.mutation_rate + gene_b.mutation_rate) / 2,
                    ))
            else:
                child.add(gene_a if gene_a is not None else gene_b)
        return child

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @staticmethod
    def create_standard(overrides: Optional[dict[str, float]] = None) -> Genome:
        """
        Build a genome holding every gene of the standard catalog.

        Args:
            overrides: gene name -> value. Replaces the default value only;
                       the catalog mutation rate is kept.

        Returns:
            New Genome with all 12 standard genes.
        """
        overrides = overrides or {}
        return Genome(
            Gene(d.name, overrides.get(d.name, d.default_value), d.default_mutation_rate)
            for d in STANDARD_GENES
        )

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, dict]:
        """Serialize genes for logging/metrics."""
        return {name: asdict(gene) for name, gene in self._genes.items()}

    def __len__(self) -> int:
        return len(self._genes)

    def __contains__(self, name: object) -> bool:
        return name in self._genes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._genes))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Genome):
            return NotImplemented
        return self._genes == other._genes

    def __repr__(self) -> str:
        inner = ", ".join(f"{n}={g.value:.2f}" for n, g in self._genes.items())
        return f"Genome({inner})"
