from __future__ import annotations

import math

import pytest
from layerneat.activations import ActivationFn, ActivationKind
from layerneat.errors import InvariantViolationError
from layerneat.genes import Edge, LayerId, Node, NodeKind


def test_layer_ordering_is_total() -> None:
    layers = [
        LayerId.output(),
        LayerId.hidden(3),
        LayerId.input(),
        LayerId.hidden(0),
        LayerId.hidden(1),
    ]
    assert sorted(layers) == [
        LayerId.input(),
        LayerId.hidden(0),
        LayerId.hidden(1),
        LayerId.hidden(3),
        LayerId.output(),
    ]
    assert LayerId.input() < LayerId.hidden(10_000) < LayerId.output()
    assert LayerId.hidden(2) != LayerId.hidden(3)
    assert LayerId.hidden(2) == LayerId.hidden(2)
    assert LayerId.output() >= LayerId.output()


def test_layer_rejects_invalid_ordinals() -> None:
    with pytest.raises(ValueError):
        LayerId.hidden(-1)

    with pytest.raises(ValueError):
        LayerId(NodeKind.INPUT, 4)


def test_layer_is_hashable_and_printable() -> None:
    assert len({LayerId.hidden(1), LayerId.hidden(1), LayerId.input()}) == 2
    assert str(LayerId.hidden(4)) == "hidden(4)"
    assert str(LayerId.output()) == "output"


def test_node_kind_follows_layer() -> None:
    node = Node(id=3, layer=LayerId.hidden(0), bias=0.5)
    assert node.kind is NodeKind.HIDDEN
    assert Node(id=0, layer=LayerId.input()).kind is NodeKind.INPUT
    assert Node(id=1, layer=LayerId.output()).kind is NodeKind.OUTPUT


def test_only_input_nodes_accept_external_values() -> None:
    source = Node(id=0, layer=LayerId.input())
    source.load(0.25)
    assert source.value == 0.25

    hidden = Node(id=1, layer=LayerId.hidden(0))
    with pytest.raises(InvariantViolationError):
        hidden.load(1.0)
    assert hidden.value == 0.0


def test_node_finalize_applies_bias_then_activation() -> None:
    node = Node(
        id=2,
        layer=LayerId.output(),
        bias=-0.5,
        activation=ActivationFn(ActivationKind.RELU),
    )
    node.accumulate(0.2)
    node.finalize()
    assert node.value == 0.0

    node.value = 0.0
    node.accumulate(1.5)
    node.finalize()
    assert math.isclose(node.value, 1.0)


def test_node_copy_clears_accumulator() -> None:
    node = Node(id=4, layer=LayerId.hidden(1), bias=0.1)
    node.accumulate(7.0)
    copied = node.copy()
    assert copied.value == 0.0
    assert copied.bias == node.bias
    assert copied.layer == node.layer


def test_node_and_edge_reject_invalid_values() -> None:
    with pytest.raises(ValueError):
        Node(id=-1, layer=LayerId.input())

    with pytest.raises(ValueError):
        Node(id=0, layer=LayerId.input(), bias=float("nan"))

    with pytest.raises(ValueError):
        Edge(id=-1, source=0, destination=1, weight=0.0)

    with pytest.raises(ValueError):
        Edge(id=0, source=0, destination=1, weight=float("inf"))

    with pytest.raises(ValueError):
        Edge(id=0, source=0, destination=1, weight=object())  # type: ignore[arg-type]


def test_edge_touches_both_endpoints() -> None:
    edge = Edge(id=0, source=2, destination=5, weight=1.0)
    assert edge.touches(2)
    assert edge.touches(5)
    assert not edge.touches(3)
    assert edge.copy() == edge
