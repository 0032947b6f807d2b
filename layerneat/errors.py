"""Exception hierarchy shared across the network, mutation and persistence layers."""

from __future__ import annotations


class LayerNeatError(Exception):
    """Base class for all errors raised by layerneat."""


class StructuralReferenceError(LayerNeatError, KeyError):
    """A node, edge or layer id could not be resolved."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class InvariantViolationError(LayerNeatError, ValueError):
    """An operation would break a structural invariant of the network."""


class InputShapeError(LayerNeatError, ValueError):
    """Input vector length does not match the number of input nodes."""


class MutationExhaustedError(LayerNeatError, RuntimeError):
    """A mutation and every fallback it chained to were inapplicable."""


class PersistenceError(LayerNeatError):
    """Base class for serialization and file errors."""


class NetworkIOError(PersistenceError, OSError):
    """Reading or writing a network file failed."""


class NetworkFormatError(PersistenceError, ValueError):
    """A serialized payload is malformed or describes an invalid network."""


__all__ = [
    "InputShapeError",
    "InvariantViolationError",
    "LayerNeatError",
    "MutationExhaustedError",
    "NetworkFormatError",
    "NetworkIOError",
    "PersistenceError",
    "StructuralReferenceError",
]
