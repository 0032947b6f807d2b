"""Network serialization and checkpoint helpers for saving and resuming runs."""

from __future__ import annotations

import pickle
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .activations import ActivationFn
from .errors import (
    LayerNeatError,
    NetworkFormatError,
    NetworkIOError,
)
from .genes import LayerId, Node, NodeKind
from .network import Network
from .population import PopulationState

FORMAT_NAME = "layerneat.network"
FORMAT_VERSION = 1


def _encode_layer(layer: LayerId) -> str:
    return str(layer)


def _decode_layer(value: Any) -> LayerId:
    if not isinstance(value, str):
        msg = f"Layer must be a string, got {value!r}"
        raise NetworkFormatError(msg)
    text = value.strip().lower()
    if text == NodeKind.INPUT.value:
        return LayerId.input()
    if text == NodeKind.OUTPUT.value:
        return LayerId.output()
    if text.startswith("hidden(") and text.endswith(")"):
        try:
            return LayerId.hidden(int(text[len("hidden(") : -1]))
        except ValueError as error:
            msg = f"Invalid hidden layer {value!r}"
            raise NetworkFormatError(msg) from error
    msg = f"Unknown layer {value!r}"
    raise NetworkFormatError(msg)


def network_to_dict(network: Network) -> dict[str, Any]:
    """Return a plain structure describing the whole network."""
    return {
        "format": FORMAT_NAME,
        "version": FORMAT_VERSION,
        "default_activation": network.default_activation.describe(),
        "layers": [_encode_layer(layer) for layer in network.layers],
        "next_node_id": network.next_node_id,
        "next_edge_id": network.next_edge_id,
        "nodes": [
            {
                "id": node.id,
                "layer": _encode_layer(node.layer),
                "bias": node.bias,
                "activation": node.activation.describe(),
            }
            for node in network.nodes.values()
        ],
        "edges": [
            {
                "id": edge.id,
                "source": edge.source,
                "destination": edge.destination,
                "weight": edge.weight,
            }
            for edge in network.edges.values()
        ],
    }


def _require(mapping: Mapping[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if key not in mapping:
        msg = f"Missing field {key!r}"
        raise NetworkFormatError(msg)
    value = mapping[key]
    # bool is an int subclass; never accept it where a number is expected.
    if isinstance(value, bool) or not isinstance(value, kind):
        msg = f"Field {key!r} has unexpected value {value!r}"
        raise NetworkFormatError(msg)
    return value


def network_from_dict(data: Any) -> Network:
    """Rebuild a network, validating every node and edge on the way."""
    if not isinstance(data, Mapping):
        msg = "Network payload must be a mapping."
        raise NetworkFormatError(msg)
    if data.get("format") != FORMAT_NAME:
        msg = f"Unsupported payload format {data.get('format')!r}"
        raise NetworkFormatError(msg)
    if data.get("version") != FORMAT_VERSION:
        msg = f"Unsupported payload version {data.get('version')!r}"
        raise NetworkFormatError(msg)

    try:
        layers = [_decode_layer(item) for item in _require(data, "layers", list)]
        network = Network(
            layers=layers,
            default_activation=ActivationFn.parse(
                _require(data, "default_activation", str)
            ),
        )

        node_entries = _require(data, "nodes", list)
        for entry in sorted(node_entries, key=lambda item: _require(item, "id", int)):
            layer = _decode_layer(entry.get("layer"))
            if not network.has_layer(layer):
                msg = f"Node {entry['id']} references undeclared layer {layer}"
                raise NetworkFormatError(msg)
            node = Node(
                id=_require(entry, "id", int),
                layer=layer,
                bias=_require(entry, "bias", (int, float)),
                activation=ActivationFn.parse(_require(entry, "activation", str)),
            )
            if node.id in network.nodes:
                msg = f"Duplicate node id {node.id}"
                raise NetworkFormatError(msg)
            network.nodes[node.id] = node
        network.next_node_id = max(
            _require(data, "next_node_id", int),
            max(network.nodes, default=-1) + 1,
        )

        edge_entries = _require(data, "edges", list)
        for entry in sorted(edge_entries, key=lambda item: _require(item, "id", int)):
            network.create_edge(
                _require(entry, "source", int),
                _require(entry, "destination", int),
                _require(entry, "weight", (int, float)),
                edge_id=_require(entry, "id", int),
            )
        network.next_edge_id = max(
            _require(data, "next_edge_id", int), network.next_edge_id
        )
    except NetworkFormatError:
        raise
    except (LayerNeatError, ValueError, TypeError, AttributeError) as error:
        msg = f"Invalid network payload: {error}"
        raise NetworkFormatError(msg) from error
    return network


def serialize_network(network: Network) -> bytes:
    """Encode a network as a YAML document."""
    text = yaml.safe_dump(network_to_dict(network), sort_keys=False)
    return text.encode("utf-8")


def deserialize_network(data: bytes) -> Network:
    """Decode bytes produced by `serialize_network`."""
    try:
        payload = yaml.safe_load(data.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as error:
        msg = f"Could not parse network payload: {error}"
        raise NetworkFormatError(msg) from error
    return network_from_dict(payload)


def save_network(path: Path, network: Network) -> None:
    """Write a serialized network to disk."""
    target = Path(path)
    payload = serialize_network(network)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
    except OSError as error:
        msg = f"Could not write network to {target}: {error}"
        raise NetworkIOError(msg) from error


def load_network(path: Path) -> Network:
    """Read a network previously written by `save_network`."""
    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as error:
        msg = f"Could not read network from {source}: {error}"
        raise NetworkIOError(msg) from error
    return deserialize_network(data)


@dataclass(slots=True)
class TrainingCheckpoint:
    """Serializable representation of a training session."""

    generation: int
    population_state: PopulationState
    best_network: Network
    best_fitness: float


def save_checkpoint(path: Path, checkpoint: TrainingCheckpoint) -> None:
    """Persist a training checkpoint to disk."""
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            pickle.dump(checkpoint, handle, protocol=pickle.HIGHEST_PROTOCOL)
    except OSError as error:
        msg = f"Could not write checkpoint to {target}: {error}"
        raise NetworkIOError(msg) from error


def load_checkpoint(path: Path) -> TrainingCheckpoint:
    """Load a previously saved training checkpoint."""
    source = Path(path)
    try:
        with source.open("rb") as handle:
            data: Any = pickle.load(handle)
    except OSError as error:
        msg = f"Could not read checkpoint from {source}: {error}"
        raise NetworkIOError(msg) from error
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as error:
        msg = f"Corrupt checkpoint payload in {source}: {error}"
        raise NetworkFormatError(msg) from error
    if not isinstance(data, TrainingCheckpoint):
        msg = f"Invalid checkpoint payload in {source}"
        raise NetworkFormatError(msg)
    return data


__all__ = [
    "FORMAT_NAME",
    "FORMAT_VERSION",
    "TrainingCheckpoint",
    "deserialize_network",
    "load_checkpoint",
    "load_network",
    "network_from_dict",
    "network_to_dict",
    "save_checkpoint",
    "save_network",
    "serialize_network",
]
