from __future__ import annotations

from random import Random

import pytest
from layerneat.activations import ActivationFn, ActivationKind
from layerneat.errors import MutationExhaustedError
from layerneat.genes import LayerId
from layerneat.mutation import (
    MAX_FALLBACK_DEPTH,
    MutationConfig,
    MutationType,
    apply_mutation,
    mutate,
)
from layerneat.network import Network


def _layered_network() -> Network:
    network = Network.with_io(2, 1)
    layer = network.add_layer()
    hidden = network.create_node(layer, 0.1)
    network.create_edge(0, hidden, 0.5)
    network.create_edge(1, hidden, -0.5)
    network.create_edge(hidden, 2, 1.0)
    return network


def _assert_consistent(network: Network) -> None:
    for edge in network.edges.values():
        assert edge.source in network.nodes
        assert edge.destination in network.nodes
        assert network.node(edge.destination).layer > network.node(edge.source).layer
    for node in network.nodes.values():
        assert node.layer in network.layers


def test_add_node_to_existing_layer_falls_back_to_new_layer() -> None:
    network = Network.with_io(1, 1)
    applied = apply_mutation(
        network, MutationType.ADD_NODE_TO_EXISTING_LAYER, Random(0)
    )
    assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
    assert network.hidden_layers == (LayerId.hidden(0),)
    assert len(network.hidden_node_ids) == 1


def test_add_node_to_existing_layer_uses_bias_range() -> None:
    network = _layered_network()
    config = MutationConfig(bias_range=(0.25, 0.25))
    applied = apply_mutation(
        network, MutationType.ADD_NODE_TO_EXISTING_LAYER, Random(1), config
    )
    assert applied is MutationType.ADD_NODE_TO_EXISTING_LAYER
    assert len(network.hidden_layers) == 1
    new_node = network.node(network.next_node_id - 1)
    assert new_node.layer == LayerId.hidden(0)
    assert new_node.bias == 0.25


def test_add_node_to_new_layer_always_applies() -> None:
    network = _layered_network()
    applied = apply_mutation(network, "add_node_to_new_layer", Random(2))
    assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
    assert network.hidden_layers == (LayerId.hidden(0), LayerId.hidden(1))


def test_add_edge_on_single_node_falls_back_to_add_node() -> None:
    network = Network.empty()
    network.create_node(LayerId.input())
    applied = apply_mutation(network, MutationType.ADD_EDGE, Random(3))
    assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
    assert len(network.nodes) == 2
    assert network.edges == {}


def test_add_edge_on_empty_network_adds_node() -> None:
    network = Network.empty()
    applied = apply_mutation(network, MutationType.ADD_EDGE, Random(4))
    assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
    assert len(network.nodes) == 1


def test_add_edge_creates_correctly_ordered_edge() -> None:
    rng = Random(5)
    config = MutationConfig(weight_range=(0.5, 0.75))
    for _ in range(20):
        network = Network.with_io(3, 2)
        applied = apply_mutation(network, MutationType.ADD_EDGE, rng, config)
        assert applied is MutationType.ADD_EDGE
        (edge,) = network.edges.values()
        assert edge.source in network.input_ids
        assert edge.destination in network.output_ids
        assert 0.5 <= edge.weight <= 0.75


def test_add_edge_on_existing_pair_modifies_weight() -> None:
    network = Network.with_io(1, 1)
    network.create_edge(0, 1, 0.0)
    config = MutationConfig(weight_range=(0.9, 0.9))
    applied = apply_mutation(network, MutationType.ADD_EDGE, Random(6), config)
    assert applied is MutationType.MODIFY_EDGE
    (edge,) = network.edges.values()
    assert edge.weight == 0.9


def test_modify_and_remove_edge_fall_back_to_add_edge() -> None:
    for mutation in (MutationType.MODIFY_EDGE, MutationType.REMOVE_EDGE):
        network = Network.with_io(1, 1)
        applied = apply_mutation(network, mutation, Random(7))
        assert applied is MutationType.ADD_EDGE
        assert len(network.edges) == 1


def test_modify_edge_reassigns_weight() -> None:
    network = _layered_network()
    config = MutationConfig(weight_range=(3.0, 3.0))
    apply_mutation(network, MutationType.MODIFY_EDGE, Random(8), config)
    assert sorted(edge.weight for edge in network.edges.values()).count(3.0) == 1


def test_remove_edge_deletes_one_edge() -> None:
    network = _layered_network()
    apply_mutation(network, MutationType.REMOVE_EDGE, Random(9))
    assert len(network.edges) == 2
    _assert_consistent(network)


def test_modify_node_reassigns_bias_and_step_threshold() -> None:
    network = Network.empty(ActivationFn.step(0.5))
    network.create_node(LayerId.output(), 0.0)
    config = MutationConfig(bias_range=(-0.3, -0.3), threshold_range=(0.8, 0.8))
    apply_mutation(network, MutationType.MODIFY_NODE, Random(10), config)
    node = network.node(0)
    assert node.bias == -0.3
    assert node.activation == ActivationFn.step(0.8)


def test_node_mutations_on_empty_network_add_a_node() -> None:
    for mutation in (MutationType.MODIFY_NODE, MutationType.CHANGE_ACTIVATION_FN):
        network = Network.empty()
        applied = apply_mutation(network, mutation, Random(11))
        assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
        assert len(network.nodes) == 1


def test_change_activation_fn_picks_from_closed_set() -> None:
    network = Network.with_io(1, 0)
    rng = Random(12)
    seen = set()
    for _ in range(100):
        apply_mutation(network, MutationType.CHANGE_ACTIVATION_FN, rng)
        seen.add(network.node(0).activation.kind)
    assert seen == set(ActivationKind)


def test_remove_node_sweeps_incident_edges() -> None:
    network = _layered_network()
    (hidden,) = network.hidden_node_ids
    applied = apply_mutation(network, MutationType.REMOVE_NODE, Random(13))
    assert applied is MutationType.REMOVE_NODE
    assert hidden not in network.nodes
    assert network.edges == {}
    assert all(not edge.touches(hidden) for edge in network.edges.values())
    _assert_consistent(network)


def test_remove_node_never_removes_io_nodes() -> None:
    network = Network.with_io(2, 2)
    applied = apply_mutation(network, MutationType.REMOVE_NODE, Random(14))
    assert applied is MutationType.ADD_NODE_TO_NEW_LAYER
    assert len(network.input_ids) == 2
    assert len(network.output_ids) == 2
    assert len(network.hidden_node_ids) == 1


def test_remove_node_on_empty_network_is_fatal() -> None:
    network = Network.empty()
    with pytest.raises(MutationExhaustedError):
        apply_mutation(network, MutationType.REMOVE_NODE, Random(15))
    assert network.nodes == {}


def test_fallback_chain_is_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    from layerneat import mutation as module

    def always_defer(network, rng, config):
        return MutationType.MODIFY_EDGE

    monkeypatch.setitem(module.OPERATORS, MutationType.MODIFY_EDGE, always_defer)
    with pytest.raises(MutationExhaustedError) as info:
        apply_mutation(Network.empty(), MutationType.MODIFY_EDGE, Random(16))
    assert str(info.value).count("modify_edge") == MAX_FALLBACK_DEPTH + 1


def test_mutate_applies_requested_count_and_keeps_invariants() -> None:
    rng = Random(17)
    network = Network.with_io(2, 1)
    config = MutationConfig()
    for _ in range(50):
        applied = mutate(network, rng, config, 4)
        assert len(applied) == 4
        _assert_consistent(network)
    assert len(network.input_ids) == 2
    assert len(network.output_ids) == 1
    network.fire([0.5, -0.5])


def test_mutate_respects_zero_weights() -> None:
    rng = Random(18)
    config = MutationConfig(weights={MutationType.ADD_NODE_TO_NEW_LAYER: 1.0})
    network = Network.with_io(1, 1)
    applied = mutate(network, rng, config, 3)
    assert applied == [MutationType.ADD_NODE_TO_NEW_LAYER] * 3
    assert len(network.hidden_layers) == 3


def test_mutation_config_validation() -> None:
    with pytest.raises(ValueError):
        MutationConfig(weight_range=(1.0, -1.0))

    with pytest.raises(ValueError):
        MutationConfig(weights={MutationType.ADD_EDGE: -1.0})

    with pytest.raises(ValueError):
        MutationConfig(weights={MutationType.ADD_EDGE: 0.0})

    with pytest.raises(ValueError):
        MutationConfig(weights={"grow_wings": 1.0})  # type: ignore[dict-item]

    with pytest.raises(ValueError):
        mutate(Network.empty(), Random(0), MutationConfig(), -1)
