"""Scalar activation functions applied to a node's summed input."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from random import Random


class ActivationKind(str, Enum):
    """Closed set of supported transfer functions."""

    LINEAR = "linear"
    RELU = "relu"
    LEAKY_RELU = "leaky_relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    STEP = "step"

    @classmethod
    def coerce(cls, value: ActivationKind | str) -> ActivationKind:
        """Coerce a string or ActivationKind into an ActivationKind instance."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            msg = f"Unsupported activation value: {value!r}"
            raise TypeError(msg)
        try:
            return cls(value.strip().lower())
        except ValueError as error:
            valid = ", ".join(member.value for member in cls)
            msg = f"Invalid activation {value!r}. Expected one of: {valid}"
            raise ValueError(msg) from error


def _sigmoid(x: float) -> float:
    if x >= 0:
        z = math.exp(-x)
        return 1.0 / (1.0 + z)
    z = math.exp(x)
    return z / (1.0 + z)


@dataclass(frozen=True, slots=True)
class ActivationFn:
    """Activation function value; `threshold` only matters for STEP."""

    kind: ActivationKind = ActivationKind.LINEAR
    threshold: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ActivationKind.coerce(self.kind))
        threshold = float(self.threshold)
        if not math.isfinite(threshold):
            msg = "threshold must be a finite number."
            raise ValueError(msg)
        object.__setattr__(self, "threshold", threshold)

    def __call__(self, x: float) -> float:
        kind = self.kind
        if kind is ActivationKind.LINEAR:
            return x
        if kind is ActivationKind.RELU:
            return max(x, 0.0)
        if kind is ActivationKind.LEAKY_RELU:
            return max(x, 0.0) + 0.01 * x
        if kind is ActivationKind.SIGMOID:
            return _sigmoid(x)
        if kind is ActivationKind.TANH:
            return math.tanh(x)
        if kind is ActivationKind.STEP:
            return 1.0 if x > self.threshold else 0.0
        msg = f"Unhandled activation kind: {kind!r}"
        raise AssertionError(msg)

    @classmethod
    def linear(cls) -> ActivationFn:
        return cls(ActivationKind.LINEAR)

    @classmethod
    def step(cls, threshold: float) -> ActivationFn:
        return cls(ActivationKind.STEP, threshold)

    @classmethod
    def parse(cls, value: ActivationFn | str) -> ActivationFn:
        """Build an activation from a name such as ``"tanh"`` or ``"step:0.5"``."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            msg = f"Unsupported activation value: {value!r}"
            raise TypeError(msg)
        name, _, raw_threshold = value.partition(":")
        kind = ActivationKind.coerce(name)
        if not raw_threshold:
            return cls(kind)
        if kind is not ActivationKind.STEP:
            msg = f"Only step activations take a threshold, got {value!r}"
            raise ValueError(msg)
        try:
            threshold = float(raw_threshold)
        except ValueError as error:
            msg = f"Invalid step threshold in {value!r}"
            raise ValueError(msg) from error
        return cls(kind, threshold)

    def describe(self) -> str:
        """Return the string form accepted by `parse`."""
        if self.kind is ActivationKind.STEP:
            return f"{self.kind.value}:{self.threshold!r}"
        return self.kind.value


def random_activation(
    rng: Random,
    threshold_range: tuple[float, float] = (0.0, 1.0),
) -> ActivationFn:
    """Draw an activation kind uniformly; step thresholds come from the range."""
    kind = rng.choice(list(ActivationKind))
    if kind is ActivationKind.STEP:
        return ActivationFn.step(rng.uniform(*threshold_range))
    return ActivationFn(kind)


__all__ = ["ActivationFn", "ActivationKind", "random_activation"]
