"""Graph primitives: layer identifiers, nodes and edges."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from .activations import ActivationFn
from .errors import InvariantViolationError


class NodeKind(str, Enum):
    """Enumeration of supported node categories."""

    INPUT = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"


_RANKS = {NodeKind.INPUT: 0, NodeKind.HIDDEN: 1, NodeKind.OUTPUT: 2}


@dataclass(frozen=True, slots=True)
class LayerId:
    """Totally ordered layer tag: Input < Hidden(0) < Hidden(1) < ... < Output."""

    kind: NodeKind
    ordinal: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", NodeKind(self.kind))
        if self.kind is NodeKind.HIDDEN:
            if self.ordinal < 0:
                msg = "Hidden layer ordinal must be non-negative."
                raise ValueError(msg)
        elif self.ordinal != 0:
            msg = f"{self.kind.value} layer does not take an ordinal."
            raise ValueError(msg)

    @classmethod
    def input(cls) -> LayerId:
        return cls(NodeKind.INPUT)

    @classmethod
    def output(cls) -> LayerId:
        return cls(NodeKind.OUTPUT)

    @classmethod
    def hidden(cls, ordinal: int) -> LayerId:
        return cls(NodeKind.HIDDEN, ordinal)

    @property
    def is_hidden(self) -> bool:
        return self.kind is NodeKind.HIDDEN

    def sort_key(self) -> tuple[int, int]:
        return (_RANKS[self.kind], self.ordinal)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LayerId):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, LayerId):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, LayerId):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LayerId):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        if self.is_hidden:
            return f"hidden({self.ordinal})"
        return self.kind.value


def _finite(label: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as error:
        msg = f"{label} must be convertible to float, got {value!r}"
        raise ValueError(msg) from error
    if not math.isfinite(number):
        msg = f"{label} must be a finite number."
        raise ValueError(msg)
    return number


@dataclass(slots=True)
class Node:
    """Computation unit positioned in exactly one layer."""

    id: int
    layer: LayerId
    bias: float = 0.0
    activation: ActivationFn = field(default_factory=ActivationFn.linear)
    value: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        if self.id < 0:
            msg = "Node id must be non-negative."
            raise ValueError(msg)
        self.bias = _finite("bias", self.bias)

    @property
    def kind(self) -> NodeKind:
        """Node kind, always derived from the layer."""
        return self.layer.kind

    def load(self, value: float) -> None:
        """Write an external input value; only valid on input nodes."""
        if self.kind is not NodeKind.INPUT:
            msg = f"Cannot set value of non-input node {self.id}."
            raise InvariantViolationError(msg)
        self.value = float(value)

    def accumulate(self, amount: float) -> None:
        self.value += amount

    def finalize(self) -> None:
        """Apply bias and activation to the accumulated sum."""
        self.value = self.activation(self.value + self.bias)

    def copy(self) -> Node:
        """Return a copy with a cleared accumulator."""
        return Node(
            id=self.id,
            layer=self.layer,
            bias=self.bias,
            activation=self.activation,
        )


@dataclass(slots=True)
class Edge:
    """Weighted connection from an earlier-layer node to a later-layer node."""

    id: int
    source: int
    destination: int
    weight: float

    def __post_init__(self) -> None:
        for label, value in (
            ("id", self.id),
            ("source", self.source),
            ("destination", self.destination),
        ):
            if value < 0:
                msg = f"{label} must be non-negative."
                raise ValueError(msg)
        self.weight = _finite("weight", self.weight)

    def touches(self, node_id: int) -> bool:
        return node_id in (self.source, self.destination)

    def copy(self) -> Edge:
        return Edge(
            id=self.id,
            source=self.source,
            destination=self.destination,
            weight=self.weight,
        )


__all__ = ["Edge", "LayerId", "Node", "NodeKind"]
