"""Evaluators that score networks against a task."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .network import Network

Evaluator = Callable[[Network], float]


@dataclass(frozen=True, slots=True)
class Sample:
    """One supervised example: an input vector and its expected outputs."""

    inputs: tuple[float, ...]
    targets: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(float(x) for x in self.inputs))
        object.__setattr__(self, "targets", tuple(float(x) for x in self.targets))


@dataclass(slots=True)
class EvaluationStats:
    """Aggregate counters from evaluations run so far."""

    fires: int = 0
    evaluations: int = 0

    def accumulate(self, *, fires: int, evaluations: int) -> None:
        """Add counters to the aggregate totals."""
        self.fires += fires
        self.evaluations += evaluations


class DatasetEvaluator:
    """Scores a network by its negative mean squared error over samples."""

    def __init__(self, samples: Sequence[Sample]) -> None:
        if not samples:
            msg = "At least one sample is required."
            raise ValueError(msg)
        input_size = len(samples[0].inputs)
        target_size = len(samples[0].targets)
        for sample in samples:
            if len(sample.inputs) != input_size or len(sample.targets) != target_size:
                msg = "All samples must share the same input and target sizes."
                raise ValueError(msg)
        self.samples = tuple(samples)
        self.stats = EvaluationStats()

    def __call__(self, network: Network) -> float:
        squared_error = 0.0
        terms = 0
        for sample in self.samples:
            outputs = network.fire(sample.inputs)
            if len(outputs) != len(sample.targets):
                msg = (
                    f"Network produced {len(outputs)} outputs "
                    f"but the task expects {len(sample.targets)}."
                )
                raise ValueError(msg)
            for output, target in zip(outputs, sample.targets, strict=True):
                diff = output - target
                squared_error += diff * diff
                terms += 1
        self.stats.accumulate(fires=len(self.samples), evaluations=1)
        if terms == 0:
            return 0.0
        if math.isnan(squared_error):
            return float("-inf")
        return -squared_error / terms


__all__ = [
    "DatasetEvaluator",
    "EvaluationStats",
    "Evaluator",
    "Sample",
]
