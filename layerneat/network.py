"""Layered feed-forward network: structure editing and forward propagation."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from .activations import ActivationFn
from .errors import (
    InputShapeError,
    InvariantViolationError,
    StructuralReferenceError,
)
from .genes import Edge, LayerId, Node, NodeKind


@dataclass(slots=True)
class Network:
    """Owns nodes, edges and declared layers; entities refer to each other by id.

    Ids come from counters stored on the network and are never reused, even
    after removals.
    """

    nodes: dict[int, Node] = field(default_factory=dict)
    edges: dict[int, Edge] = field(default_factory=dict)
    layers: list[LayerId] = field(
        default_factory=lambda: [LayerId.input(), LayerId.output()]
    )
    default_activation: ActivationFn = field(default_factory=ActivationFn.linear)
    next_node_id: int = 0
    next_edge_id: int = 0

    def __post_init__(self) -> None:
        self.layers = sorted(set(self.layers))
        if LayerId.input() not in self.layers or LayerId.output() not in self.layers:
            msg = "Network must declare both an input and an output layer."
            raise InvariantViolationError(msg)

    @classmethod
    def empty(cls, default_activation: ActivationFn | None = None) -> Network:
        """Create a network with only input and output layers and no nodes."""
        if default_activation is None:
            return cls()
        return cls(default_activation=default_activation)

    @classmethod
    def with_io(
        cls,
        inputs: int,
        outputs: int,
        default_activation: ActivationFn | None = None,
    ) -> Network:
        """Create a network pre-populated with input and output nodes."""
        if inputs < 0 or outputs < 0:
            msg = "Input and output counts must be non-negative."
            raise ValueError(msg)
        network = cls.empty(default_activation)
        for _ in range(inputs):
            network.create_node(LayerId.input())
        for _ in range(outputs):
            network.create_node(LayerId.output())
        return network

    def copy(self) -> Network:
        """Return an independent deep copy, ids and counters included."""
        return Network(
            nodes={node_id: node.copy() for node_id, node in self.nodes.items()},
            edges={edge_id: edge.copy() for edge_id, edge in self.edges.items()},
            layers=list(self.layers),
            default_activation=self.default_activation,
            next_node_id=self.next_node_id,
            next_edge_id=self.next_edge_id,
        )

    # Lookups

    def has_layer(self, layer: LayerId) -> bool:
        return layer in self.layers

    def node(self, node_id: int) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            msg = f"Node {node_id} does not exist."
            raise StructuralReferenceError(msg) from None

    def edge(self, edge_id: int) -> Edge:
        try:
            return self.edges[edge_id]
        except KeyError:
            msg = f"Edge {edge_id} does not exist."
            raise StructuralReferenceError(msg) from None

    def nodes_in_layer(self, layer: LayerId) -> list[Node]:
        """Return the layer's nodes in ascending id order."""
        if layer not in self.layers:
            msg = f"Layer {layer} does not exist."
            raise StructuralReferenceError(msg)
        return [node for node in self.nodes.values() if node.layer == layer]

    @property
    def input_ids(self) -> tuple[int, ...]:
        return tuple(node.id for node in self.nodes_in_layer(LayerId.input()))

    @property
    def output_ids(self) -> tuple[int, ...]:
        return tuple(node.id for node in self.nodes_in_layer(LayerId.output()))

    @property
    def hidden_node_ids(self) -> tuple[int, ...]:
        return tuple(node.id for node in self.nodes.values() if node.layer.is_hidden)

    @property
    def hidden_layers(self) -> tuple[LayerId, ...]:
        return tuple(layer for layer in self.layers if layer.is_hidden)

    def incident_edge_ids(self, node_id: int) -> tuple[int, ...]:
        return tuple(
            edge_id for edge_id, edge in self.edges.items() if edge.touches(node_id)
        )

    def outgoing_edges(self, node_ids: Iterable[int]) -> Iterator[Edge]:
        sources = set(node_ids)
        for edge in self.edges.values():
            if edge.source in sources:
                yield edge

    def has_connection(self, source: int, destination: int) -> bool:
        return any(
            edge.source == source and edge.destination == destination
            for edge in self.edges.values()
        )

    # Structural edits

    def add_layer(self) -> LayerId:
        """Append a hidden layer after the current deepest hidden layer."""
        hidden = self.hidden_layers
        ordinal = max(layer.ordinal for layer in hidden) + 1 if hidden else 0
        layer = LayerId.hidden(ordinal)
        if layer in self.layers:
            msg = f"Layer {layer} already exists; layer bookkeeping is inconsistent."
            raise InvariantViolationError(msg)
        self.layers.append(layer)
        self.layers.sort()
        return layer

    def create_node(
        self,
        layer: LayerId,
        bias: float = 0.0,
        activation: ActivationFn | None = None,
    ) -> int:
        """Create a node in a declared layer and return its id."""
        if layer not in self.layers:
            msg = f"Layer {layer} does not exist."
            raise StructuralReferenceError(msg)
        node = Node(
            id=self.next_node_id,
            layer=layer,
            bias=bias,
            activation=self.default_activation if activation is None else activation,
        )
        self.nodes[node.id] = node
        self.next_node_id += 1
        return node.id

    def create_edge(
        self,
        source: int,
        destination: int,
        weight: float,
        *,
        edge_id: int | None = None,
    ) -> int:
        """Connect two nodes; the destination layer must follow the source layer."""
        source_node = self.node(source)
        destination_node = self.node(destination)
        if destination_node.layer <= source_node.layer:
            msg = (
                f"Edge {source}->{destination} must point to a later layer "
                f"({source_node.layer} -> {destination_node.layer})."
            )
            raise InvariantViolationError(msg)
        if edge_id is None:
            edge_id = self.next_edge_id
        if edge_id in self.edges:
            msg = f"Edge with id {edge_id} already exists."
            raise InvariantViolationError(msg)
        # Ids below the counter may belong to removed edges.
        if edge_id < self.next_edge_id:
            msg = f"Edge id {edge_id} was already issued by this network."
            raise InvariantViolationError(msg)
        edge = Edge(id=edge_id, source=source, destination=destination, weight=weight)
        self.edges[edge_id] = edge
        self.next_edge_id = max(self.next_edge_id, edge_id + 1)
        return edge_id

    def remove_edge(self, edge_id: int) -> Edge:
        edge = self.edge(edge_id)
        del self.edges[edge_id]
        return edge

    def remove_node(self, node_id: int) -> Node:
        """Remove a hidden node; its incident edges must already be gone."""
        node = self.node(node_id)
        if not node.layer.is_hidden:
            msg = f"Cannot remove {node.kind.value} node {node_id}."
            raise InvariantViolationError(msg)
        if self.incident_edge_ids(node_id):
            msg = f"Node {node_id} still has incident edges."
            raise InvariantViolationError(msg)
        del self.nodes[node_id]
        return node

    # Propagation

    def set_inputs(self, inputs: Sequence[float]) -> None:
        """Write input values into input nodes in ascending id order."""
        input_nodes = self.nodes_in_layer(LayerId.input())
        if len(inputs) != len(input_nodes):
            msg = (
                f"Expected {len(input_nodes)} inputs "
                f"but received {len(inputs)}."
            )
            raise InputShapeError(msg)
        values = [float(value) for value in inputs]
        self.reset()
        for node, value in zip(input_nodes, values, strict=True):
            node.load(value)

    def propagate(self) -> None:
        """Push values forward layer by layer.

        A node's bias and activation are applied once, when its layer becomes
        current. Every edge into it comes from an earlier layer, so its sum is
        complete by then.
        """
        for layer in self.layers:
            layer_nodes = self.nodes_in_layer(layer)
            if layer.kind is not NodeKind.INPUT:
                for node in layer_nodes:
                    node.finalize()
            for edge in self.outgoing_edges(node.id for node in layer_nodes):
                source = self.nodes[edge.source]
                self.nodes[edge.destination].accumulate(source.value * edge.weight)

    def read_outputs(self) -> list[float]:
        return [node.value for node in self.nodes_in_layer(LayerId.output())]

    def reset(self) -> None:
        """Zero every accumulator."""
        for node in self.nodes.values():
            node.value = 0.0

    def fire(self, inputs: Sequence[float]) -> list[float]:
        """Run one forward pass and return the output values."""
        self.set_inputs(inputs)
        try:
            self.propagate()
            return self.read_outputs()
        finally:
            self.reset()


__all__ = ["Network"]
