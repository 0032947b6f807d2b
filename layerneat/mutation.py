"""Structural and parametric mutation operators with fallback chaining."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from random import Random

from .activations import ActivationFn, ActivationKind, random_activation
from .errors import MutationExhaustedError
from .network import Network

MAX_FALLBACK_DEPTH = 8


class MutationType(str, Enum):
    """Mutation operators understood by `apply_mutation`."""

    ADD_NODE_TO_EXISTING_LAYER = "add_node_to_existing_layer"
    ADD_NODE_TO_NEW_LAYER = "add_node_to_new_layer"
    ADD_EDGE = "add_edge"
    MODIFY_EDGE = "modify_edge"
    REMOVE_EDGE = "remove_edge"
    MODIFY_NODE = "modify_node"
    REMOVE_NODE = "remove_node"
    CHANGE_ACTIVATION_FN = "change_activation_fn"

    @classmethod
    def coerce(cls, value: MutationType | str) -> MutationType:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as error:
            valid = ", ".join(member.value for member in cls)
            msg = f"Invalid mutation type {value!r}. Expected one of: {valid}"
            raise ValueError(msg) from error


DEFAULT_MUTATION_WEIGHTS: dict[MutationType, float] = {
    MutationType.ADD_NODE_TO_EXISTING_LAYER: 3.0,
    MutationType.ADD_NODE_TO_NEW_LAYER: 1.0,
    MutationType.ADD_EDGE: 2.0,
    MutationType.MODIFY_EDGE: 6.0,
    MutationType.REMOVE_EDGE: 1.0,
    MutationType.MODIFY_NODE: 6.0,
    MutationType.REMOVE_NODE: 1.0,
    MutationType.CHANGE_ACTIVATION_FN: 1.0,
}


def _check_range(label: str, bounds: tuple[float, float]) -> tuple[float, float]:
    low, high = (float(bounds[0]), float(bounds[1]))
    if not (math.isfinite(low) and math.isfinite(high)):
        msg = f"{label} bounds must be finite."
        raise ValueError(msg)
    if low > high:
        msg = f"{label} lower bound must not exceed upper bound."
        raise ValueError(msg)
    return (low, high)


@dataclass(frozen=True, slots=True)
class MutationConfig:
    """Random ranges and relative operator weights used when mutating."""

    weight_range: tuple[float, float] = (-1.0, 1.0)
    bias_range: tuple[float, float] = (-1.0, 1.0)
    threshold_range: tuple[float, float] = (0.0, 1.0)
    weights: Mapping[MutationType, float] = field(
        default_factory=lambda: dict(DEFAULT_MUTATION_WEIGHTS)
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "weight_range", _check_range("weight_range", self.weight_range)
        )
        object.__setattr__(
            self, "bias_range", _check_range("bias_range", self.bias_range)
        )
        object.__setattr__(
            self,
            "threshold_range",
            _check_range("threshold_range", self.threshold_range),
        )
        weights = {
            MutationType.coerce(name): float(value)
            for name, value in self.weights.items()
        }
        if any(value < 0.0 or not math.isfinite(value) for value in weights.values()):
            msg = "Mutation weights must be finite and non-negative."
            raise ValueError(msg)
        if sum(weights.values()) <= 0.0:
            msg = "At least one mutation weight must be positive."
            raise ValueError(msg)
        object.__setattr__(self, "weights", weights)

    def choose(self, rng: Random) -> MutationType:
        """Draw an operator according to the relative weights."""
        kinds = list(self.weights)
        return rng.choices(kinds, weights=[self.weights[k] for k in kinds], k=1)[0]


# Each operator returns None on success or the operator to fall back to.
Operator = Callable[[Network, Random, MutationConfig], MutationType | None]


def _add_node_to_existing_layer(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    hidden = network.hidden_layers
    if not hidden:
        return MutationType.ADD_NODE_TO_NEW_LAYER
    network.create_node(rng.choice(hidden), rng.uniform(*config.bias_range))
    return None


def _add_node_to_new_layer(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    layer = network.add_layer()
    network.create_node(layer, rng.uniform(*config.bias_range))
    return None


def _add_edge(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.nodes:
        return MutationType.ADD_NODE_TO_EXISTING_LAYER
    first = rng.choice(list(network.nodes.values()))
    others = [node for node in network.nodes.values() if node.layer != first.layer]
    if not others:
        return MutationType.ADD_NODE_TO_EXISTING_LAYER
    second = rng.choice(others)
    begin, end = (first, second) if first.layer < second.layer else (second, first)
    if network.has_connection(begin.id, end.id):
        return MutationType.MODIFY_EDGE
    network.create_edge(begin.id, end.id, rng.uniform(*config.weight_range))
    return None


def _modify_edge(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.edges:
        return MutationType.ADD_EDGE
    edge = rng.choice(list(network.edges.values()))
    edge.weight = rng.uniform(*config.weight_range)
    return None


def _remove_edge(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.edges:
        return MutationType.ADD_EDGE
    network.remove_edge(rng.choice(list(network.edges)))
    return None


def _modify_node(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.nodes:
        return MutationType.ADD_NODE_TO_EXISTING_LAYER
    node = rng.choice(list(network.nodes.values()))
    node.bias = rng.uniform(*config.bias_range)
    if node.activation.kind is ActivationKind.STEP:
        node.activation = ActivationFn.step(rng.uniform(*config.threshold_range))
    return None


def _remove_node(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.nodes:
        msg = "Cannot remove a node from a network without nodes."
        raise MutationExhaustedError(msg)
    hidden = network.hidden_node_ids
    if not hidden:
        return MutationType.ADD_NODE_TO_NEW_LAYER
    node_id = rng.choice(hidden)
    for edge_id in network.incident_edge_ids(node_id):
        network.remove_edge(edge_id)
    network.remove_node(node_id)
    return None


def _change_activation_fn(
    network: Network, rng: Random, config: MutationConfig
) -> MutationType | None:
    if not network.nodes:
        return MutationType.ADD_NODE_TO_EXISTING_LAYER
    node = rng.choice(list(network.nodes.values()))
    node.activation = random_activation(rng, config.threshold_range)
    return None


OPERATORS: dict[MutationType, Operator] = {
    MutationType.ADD_NODE_TO_EXISTING_LAYER: _add_node_to_existing_layer,
    MutationType.ADD_NODE_TO_NEW_LAYER: _add_node_to_new_layer,
    MutationType.ADD_EDGE: _add_edge,
    MutationType.MODIFY_EDGE: _modify_edge,
    MutationType.REMOVE_EDGE: _remove_edge,
    MutationType.MODIFY_NODE: _modify_node,
    MutationType.REMOVE_NODE: _remove_node,
    MutationType.CHANGE_ACTIVATION_FN: _change_activation_fn,
}


def apply_mutation(
    network: Network,
    mutation: MutationType | str,
    rng: Random,
    config: MutationConfig | None = None,
) -> MutationType:
    """Apply one mutation, following fallbacks until an operator succeeds.

    Returns:
        The operator that was actually applied.

    Raises:
        MutationExhaustedError: If no operator in the chain could be applied
            within `MAX_FALLBACK_DEPTH` steps.
    """
    if config is None:
        config = MutationConfig()
    current = MutationType.coerce(mutation)
    chain = [current]
    for _ in range(MAX_FALLBACK_DEPTH):
        fallback = OPERATORS[current](network, rng, config)
        if fallback is None:
            return current
        current = fallback
        chain.append(current)
    path = " -> ".join(item.value for item in chain)
    msg = f"Mutation fallback chain did not terminate: {path}"
    raise MutationExhaustedError(msg)


def mutate(
    network: Network,
    rng: Random,
    config: MutationConfig,
    count: int,
) -> list[MutationType]:
    """Apply `count` weighted random mutations in sequence."""
    if count < 0:
        msg = "count must be >= 0."
        raise ValueError(msg)
    return [
        apply_mutation(network, config.choose(rng), rng, config) for _ in range(count)
    ]


__all__ = [
    "DEFAULT_MUTATION_WEIGHTS",
    "MAX_FALLBACK_DEPTH",
    "MutationConfig",
    "MutationType",
    "apply_mutation",
    "mutate",
]
