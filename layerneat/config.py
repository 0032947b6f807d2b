"""Configuration loading utilities for evolution runs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .activations import ActivationFn
from .evaluator import Sample
from .mutation import DEFAULT_MUTATION_WEIGHTS, MutationConfig, MutationType
from .network import Network
from .population import PopulationConfig


def _default_weights() -> dict[str, float]:
    return {kind.value: weight for kind, weight in DEFAULT_MUTATION_WEIGHTS.items()}


@dataclass(slots=True)
class EvolutionConfig:
    population_size: int = 100
    min_mutations: int = 0
    max_mutations: int = 5
    survival_threshold: float = 0.05
    elitism: int = 0
    fitness_threshold: float | None = None
    max_generations: int | None = 30
    seed: int | None = None
    inputs: int = 1
    outputs: int = 1
    default_activation: str = "linear"
    weight_range: tuple[float, float] = (-1.0, 1.0)
    bias_range: tuple[float, float] = (-1.0, 1.0)
    threshold_range: tuple[float, float] = (0.0, 1.0)
    mutation_weights: dict[str, float] = field(default_factory=_default_weights)

    def mutation_config(self) -> MutationConfig:
        weights = {
            MutationType.coerce(name): value
            for name, value in self.mutation_weights.items()
        }
        return MutationConfig(
            weight_range=self.weight_range,
            bias_range=self.bias_range,
            threshold_range=self.threshold_range,
            weights=weights,
        )

    def population_config(self) -> PopulationConfig:
        return PopulationConfig(
            population_size=self.population_size,
            min_mutations=self.min_mutations,
            max_mutations=self.max_mutations,
            survival_threshold=self.survival_threshold,
            elitism=self.elitism,
            fitness_threshold=self.fitness_threshold,
            max_generations=self.max_generations,
            mutation=self.mutation_config(),
        )

    def starting_network(self) -> Network:
        """Build the organism every individual starts from."""
        return Network.with_io(
            self.inputs,
            self.outputs,
            default_activation=ActivationFn.parse(self.default_activation),
        )


@dataclass(slots=True)
class TaskConfig:
    samples: tuple[Sample, ...]

    @property
    def input_size(self) -> int:
        return len(self.samples[0].inputs)

    @property
    def output_size(self) -> int:
        return len(self.samples[0].targets)


@dataclass(slots=True)
class RunConfig:
    evolution_config: Path
    task_config: Path
    output_dir: Path = Path("runs")
    resume: Path | None = None
    save_every: int | None = None

    def resolve(self, base_path: Path) -> RunConfig:
        return RunConfig(
            evolution_config=(base_path / self.evolution_config).resolve(),
            task_config=(base_path / self.task_config).resolve(),
            output_dir=(base_path / self.output_dir).resolve(),
            resume=(base_path / self.resume).resolve() if self.resume else None,
            save_every=self.save_every,
        )


def _load_yaml(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        msg = f"Expected mapping in YAML file: {path}"
        raise ValueError(msg)
    return data


def _range(
    data: Mapping[str, Any],
    key: str,
    default: tuple[float, float],
) -> tuple[float, float]:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        msg = f"{key} must be a two-element list, got {value!r}"
        raise ValueError(msg)
    return (float(value[0]), float(value[1]))


def load_evolution_config(path: Path) -> EvolutionConfig:
    data = _load_yaml(path)
    weights = _default_weights()
    raw_weights = data.get("mutation_weights") or {}
    if not isinstance(raw_weights, Mapping):
        msg = "mutation_weights must be a mapping of operator name to weight"
        raise ValueError(msg)
    for name, value in raw_weights.items():
        weights[MutationType.coerce(name).value] = float(value)
    return EvolutionConfig(
        population_size=int(data.get("population_size", 100)),
        min_mutations=int(data.get("min_mutations", 0)),
        max_mutations=int(data.get("max_mutations", 5)),
        survival_threshold=float(data.get("survival_threshold", 0.05)),
        elitism=int(data.get("elitism", 0)),
        fitness_threshold=(
            float(data["fitness_threshold"])
            if data.get("fitness_threshold") is not None
            else None
        ),
        # An explicit null disables the generation limit.
        max_generations=(
            int(data["max_generations"])
            if data.get("max_generations") is not None
            else (None if "max_generations" in data else 30)
        ),
        seed=(int(data["seed"]) if data.get("seed") is not None else None),
        inputs=int(data.get("inputs", 1)),
        outputs=int(data.get("outputs", 1)),
        default_activation=str(data.get("default_activation", "linear")),
        weight_range=_range(data, "weight_range", (-1.0, 1.0)),
        bias_range=_range(data, "bias_range", (-1.0, 1.0)),
        threshold_range=_range(data, "threshold_range", (0.0, 1.0)),
        mutation_weights=weights,
    )


def load_task_config(path: Path) -> TaskConfig:
    data = _load_yaml(path)
    raw_samples = data.get("samples")
    if not isinstance(raw_samples, list) or not raw_samples:
        msg = f"Task file must define a non-empty 'samples' list: {path}"
        raise ValueError(msg)
    samples: list[Sample] = []
    for index, entry in enumerate(raw_samples):
        if not isinstance(entry, Mapping):
            msg = f"Sample {index} must be a mapping with 'inputs' and 'targets'"
            raise ValueError(msg)
        samples.append(
            Sample(
                inputs=tuple(entry.get("inputs") or ()),
                targets=tuple(entry.get("targets") or ()),
            )
        )
    return TaskConfig(samples=tuple(samples))


def load_run_config(path: Path) -> RunConfig:
    data = _load_yaml(path)
    evolution_path = data.get("evolution_config")
    task_path = data.get("task_config")
    if evolution_path is None or task_path is None:
        msg = "run.yml must specify 'evolution_config' and 'task_config' paths"
        raise ValueError(msg)
    base = path.parent
    run = RunConfig(
        evolution_config=Path(evolution_path),
        task_config=Path(task_path),
        output_dir=Path(data.get("output_dir", "runs")),
        resume=(Path(data["resume"]) if data.get("resume") else None),
        save_every=(int(data["save_every"]) if data.get("save_every") else None),
    )
    return run.resolve(base)


__all__ = [
    "EvolutionConfig",
    "RunConfig",
    "TaskConfig",
    "load_evolution_config",
    "load_run_config",
    "load_task_config",
]
