"""Population orchestration for the evolutionary training loop."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from random import Random
from statistics import mean, median

from .evaluator import Evaluator
from .mutation import MutationConfig, MutationType, mutate
from .network import Network


@dataclass(frozen=True, slots=True)
class PopulationConfig:
    """Configuration values governing population evolution."""

    population_size: int = 100
    min_mutations: int = 0
    max_mutations: int = 5
    survival_threshold: float = 0.05
    elitism: int = 0
    fitness_threshold: float | None = None
    max_generations: int | None = 30
    mutation: MutationConfig = field(default_factory=MutationConfig)

    def __post_init__(self) -> None:
        if self.population_size <= 0:
            msg = "population_size must be positive."
            raise ValueError(msg)
        if self.min_mutations < 0:
            msg = "min_mutations must be >= 0."
            raise ValueError(msg)
        if self.max_mutations < self.min_mutations:
            msg = "max_mutations must be >= min_mutations."
            raise ValueError(msg)
        if not 0.0 < self.survival_threshold <= 1.0:
            msg = "survival_threshold must be in (0, 1]."
            raise ValueError(msg)
        if self.elitism < 0:
            msg = "elitism must be >= 0."
            raise ValueError(msg)
        if self.fitness_threshold is None and self.max_generations is None:
            msg = "Either fitness_threshold or max_generations must be set."
            raise ValueError(msg)
        if self.max_generations is not None and self.max_generations <= 0:
            msg = "max_generations must be positive when provided."
            raise ValueError(msg)

    @property
    def seed_count(self) -> int:
        """Number of top individuals retained as seeds for the next generation."""
        count = round(self.population_size * self.survival_threshold)
        return min(self.population_size, max(1, count))


@dataclass(slots=True)
class Organism:
    """A population member and the fitness it scored in the last evaluation."""

    network: Network
    fitness: float | None = None

    def copy(self) -> Organism:
        return Organism(network=self.network.copy(), fitness=self.fitness)


@dataclass(frozen=True, slots=True)
class GenerationSummary:
    """Statistics describing one completed generation."""

    generation: int
    best_fitness: float
    mean_fitness: float
    median_fitness: float
    champion_nodes: int
    champion_edges: int
    finished: bool


def _check_fitness(value: object) -> float:
    try:
        fitness = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as error:
        msg = f"Evaluator must return a real number, got {value!r}"
        raise ValueError(msg) from error
    if math.isnan(fitness):
        msg = "Evaluator returned NaN."
        raise ValueError(msg)
    return fitness


def _clone_counts(size: int, seeds: int) -> list[int]:
    """Return how many clones each seed contributes, in rank order."""
    if seeds > size:
        msg = f"Cannot clone {seeds} seeds into a population of {size}."
        raise ValueError(msg)
    base, extra = divmod(size, seeds)
    return [base + 1 if index < extra else base for index in range(seeds)]


@dataclass(slots=True)
class PopulationState:
    """Mutable state of the population across generations."""

    generation: int
    organisms: list[Organism]
    rng: Random
    config: PopulationConfig
    best_fitness: float = float("-inf")
    champion: Organism | None = None

    @classmethod
    def seeded(
        cls,
        organism: Network,
        config: PopulationConfig,
        rng: Random | None = None,
    ) -> PopulationState:
        """Create a population of identical copies of a starting organism."""
        organisms = [
            Organism(network=organism.copy()) for _ in range(config.population_size)
        ]
        return cls(
            generation=0,
            organisms=organisms,
            rng=rng if rng is not None else Random(),
            config=config,
        )

    def evaluate(self, evaluator: Evaluator) -> list[float]:
        """Score every organism and record the result on it."""
        fitnesses: list[float] = []
        for organism in self.organisms:
            fitness = _check_fitness(evaluator(organism.network))
            organism.fitness = fitness
            fitnesses.append(fitness)
        generation_best = max(fitnesses)
        if generation_best > self.best_fitness:
            self.best_fitness = generation_best
        return fitnesses

    def select(self) -> list[Organism]:
        """Rank organisms by fitness and return the retained seeds.

        The champion is updated to a copy of the top-ranked organism.
        """
        if any(organism.fitness is None for organism in self.organisms):
            msg = "Population must be evaluated before selection."
            raise RuntimeError(msg)
        self.organisms.sort(key=lambda organism: organism.fitness, reverse=True)
        self.champion = self.organisms[0].copy()
        return self.organisms[: self.config.seed_count]

    def repopulate(self, seeds: Sequence[Organism]) -> None:
        """Refill the population by cloning each seed in rank order.

        Every seed gets at least one clone; the remainder goes one extra
        clone each to the top-ranked seeds.
        """
        if not seeds:
            msg = "At least one seed is required to repopulate."
            raise ValueError(msg)
        organisms: list[Organism] = []
        counts = _clone_counts(self.config.population_size, len(seeds))
        for seed, count in zip(seeds, counts, strict=True):
            for _ in range(count):
                organisms.append(Organism(network=seed.network.copy()))
        self.organisms = organisms

    def mutate_all(self) -> dict[MutationType, int]:
        """Mutate every organism except the leading elite clones.

        Returns:
            How often each operator was applied in this pass.
        """
        config = self.config
        counts = _clone_counts(config.population_size, config.seed_count)
        # The first clone of each top seed sits at the running sum of counts.
        starts = [sum(counts[:index]) for index in range(len(counts))]
        elites = set(starts[: config.elitism])
        applied: dict[MutationType, int] = {}
        for index, organism in enumerate(self.organisms):
            if index in elites:
                continue
            count = self.rng.randint(config.min_mutations, config.max_mutations)
            for kind in mutate(organism.network, self.rng, config.mutation, count):
                applied[kind] = applied.get(kind, 0) + 1
        return applied

    def should_stop(self) -> bool:
        """Return whether the configured stopping rule has been met."""
        threshold = self.config.fitness_threshold
        if (
            threshold is not None
            and self.champion is not None
            and self.champion.fitness is not None
            and self.champion.fitness >= threshold
        ):
            return True
        limit = self.config.max_generations
        return limit is not None and self.generation >= limit

    def step(self, evaluator: Evaluator) -> GenerationSummary:
        """Run one generation: evaluate, select and, unless stopping, breed."""
        fitnesses = self.evaluate(evaluator)
        seeds = self.select()
        champion = self.champion
        if champion is None:
            msg = "Selection did not produce a champion."
            raise RuntimeError(msg)
        summary_generation = self.generation

        reached = (
            self.config.fitness_threshold is not None
            and max(fitnesses) >= self.config.fitness_threshold
        )
        if not reached:
            self.repopulate(seeds)
            self.mutate_all()
        self.generation += 1

        return GenerationSummary(
            generation=summary_generation,
            best_fitness=max(fitnesses),
            mean_fitness=mean(fitnesses),
            median_fitness=median(fitnesses),
            champion_nodes=len(champion.network.nodes),
            champion_edges=len(champion.network.edges),
            finished=self.should_stop(),
        )

    def run(
        self,
        evaluator: Evaluator,
        on_generation: Callable[[GenerationSummary], None] | None = None,
    ) -> Network:
        """Evolve until the stopping rule fires and return the champion network.

        With only a fitness threshold configured this loops until the
        threshold is reached.
        """
        while not self.should_stop():
            summary = self.step(evaluator)
            if on_generation is not None:
                on_generation(summary)
        if self.champion is None:
            msg = "No generation was evaluated."
            raise RuntimeError(msg)
        return self.champion.network.copy()


__all__ = [
    "GenerationSummary",
    "Organism",
    "PopulationConfig",
    "PopulationState",
]
