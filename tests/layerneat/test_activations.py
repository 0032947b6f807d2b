from __future__ import annotations

import math
from random import Random

import pytest
from layerneat.activations import ActivationFn, ActivationKind, random_activation


@pytest.mark.parametrize(
    ("kind", "x", "expected"),
    [
        (ActivationKind.LINEAR, -2.5, -2.5),
        (ActivationKind.RELU, -2.0, 0.0),
        (ActivationKind.RELU, 3.0, 3.0),
        (ActivationKind.LEAKY_RELU, -2.0, -0.02),
        (ActivationKind.LEAKY_RELU, 2.0, 2.02),
        (ActivationKind.SIGMOID, 0.0, 0.5),
        (ActivationKind.TANH, 0.5, math.tanh(0.5)),
    ],
)
def test_activation_values(kind: ActivationKind, x: float, expected: float) -> None:
    assert ActivationFn(kind)(x) == pytest.approx(expected)


def test_sigmoid_is_stable_for_large_inputs() -> None:
    sigmoid = ActivationFn(ActivationKind.SIGMOID)
    assert sigmoid(1000.0) == pytest.approx(1.0)
    assert sigmoid(-1000.0) == pytest.approx(0.0)


def test_step_uses_strict_threshold() -> None:
    step = ActivationFn.step(0.3)
    assert step(0.3) == 0.0
    assert step(0.31) == 1.0
    assert step(-5.0) == 0.0


def test_parse_and_describe() -> None:
    assert ActivationFn.parse("TanH") == ActivationFn(ActivationKind.TANH)
    step = ActivationFn.parse("step:0.25")
    assert step.kind is ActivationKind.STEP
    assert step.threshold == 0.25
    assert ActivationFn.parse(step.describe()) == step
    assert ActivationFn.parse("leaky_relu").describe() == "leaky_relu"


def test_parse_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        ActivationFn.parse("swish")

    with pytest.raises(ValueError):
        ActivationFn.parse("relu:0.5")

    with pytest.raises(ValueError):
        ActivationFn.parse("step:abc")

    with pytest.raises(TypeError):
        ActivationKind.coerce(3)  # type: ignore[arg-type]


def test_random_activation_covers_closed_set() -> None:
    rng = Random(7)
    seen = {random_activation(rng, (0.2, 0.4)) for _ in range(300)}
    kinds = {activation.kind for activation in seen}
    assert kinds == set(ActivationKind)
    for activation in seen:
        if activation.kind is ActivationKind.STEP:
            assert 0.2 <= activation.threshold <= 0.4
