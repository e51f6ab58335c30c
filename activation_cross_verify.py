# activation_cross_verify.py

from __future__ import annotations

from dataclasses import FrozenInstanceError

import numpy as np
import pytest
import torch
import torch.nn.functional as F

from ember.ember_activation import (
    EmberActivation,
    EmberLeakyReLU,
    EmberReLU,
    EmberSigmoid,
    EmberSinusoid,
    EmberTanH,
)


NUM_TRIALS = 64


def assert_allclose(a, b, atol=1e-10, rtol=1e-10):
    if not np.allclose(a, b, atol=atol, rtol=rtol):
        diff = np.abs(np.asarray(a) - np.asarray(b))
        max_diff = float(diff.max())
        raise AssertionError(
            f"Arrays differ: max |a-b| = {max_diff}, "
            f"atol={atol}, rtol={rtol}"
        )


# Each Ember activation paired with the torch function it should agree with.
PAIRS = [
    (EmberSigmoid(), torch.sigmoid),
    (EmberReLU(), torch.relu),
    (EmberLeakyReLU(0.01), lambda t: F.leaky_relu(t, negative_slope=0.01)),
    (EmberLeakyReLU(0.2), lambda t: F.leaky_relu(t, negative_slope=0.2)),
    (EmberTanH(), torch.tanh),
    (EmberSinusoid(), torch.sin),
]


def make_random_input() -> np.ndarray:
    """
    50% of the time a vector (C,), otherwise a batch (N, C); values in (-6, 6).
    """
    if np.random.rand() < 0.5:
        shape = (int(np.random.randint(1, 11)),)
    else:
        shape = (int(np.random.randint(1, 11)), int(np.random.randint(1, 11)))
    return np.random.uniform(-6.0, 6.0, size=shape)


def cross_verify_activation_once(act: EmberActivation, torch_fn, trial_index: int) -> None:
    x = make_random_input()

    x_torch = torch.from_numpy(x.copy()).requires_grad_(True)
    y_torch = torch_fn(x_torch)
    y_torch.sum().backward()

    value = act.value(x)
    deriv = act.derivative(x)

    if value.shape != x.shape or deriv.shape != x.shape:
        raise AssertionError(
            f"{act!r} trial {trial_index}: shapes {value.shape}/{deriv.shape} "
            f"do not match input {x.shape}"
        )

    assert_allclose(value, y_torch.detach().numpy())
    assert_allclose(deriv, x_torch.grad.detach().numpy())


def test_activation_cross_verify():
    np.random.seed(2468)
    torch.manual_seed(2468)
    for act, torch_fn in PAIRS:
        for i in range(NUM_TRIALS):
            cross_verify_activation_once(act, torch_fn, i)


def test_sigmoid_examples():
    sig = EmberSigmoid()
    assert sig.value(0.0) == pytest.approx(0.5)
    assert sig.derivative(0.0) == pytest.approx(0.25)


def test_relu_examples():
    relu = EmberReLU()
    assert relu.value(-3.0) == 0.0
    assert relu.value(3.0) == 3.0
    assert relu.derivative(-1.0) == 0.0
    assert relu.derivative(1.0) == 1.0
    # only strictly negative inputs are switched off
    assert relu.derivative(0.0) == 1.0


def test_leaky_relu_examples():
    leaky = EmberLeakyReLU(coefficient=0.01)
    assert leaky.value(-10.0) == pytest.approx(-0.1)
    assert leaky.value(4.0) == pytest.approx(4.0)
    assert leaky.derivative(-10.0) == pytest.approx(0.01)
    assert leaky.derivative(4.0) == pytest.approx(1.0)


def test_tanh_and_sinusoid_examples():
    assert EmberTanH().value(0.0) == pytest.approx(0.0)
    assert EmberTanH().derivative(0.0) == pytest.approx(1.0)
    assert EmberSinusoid().value(0.0) == pytest.approx(0.0)
    assert EmberSinusoid().derivative(0.0) == pytest.approx(1.0)


def test_activation_does_not_touch_input():
    x = np.array([[-1.0, 0.5], [2.0, -3.0]])
    original = x.copy()
    for act, _ in PAIRS:
        act.value(x)
        act.derivative(x)
    np.testing.assert_array_equal(x, original)


def test_strategies_are_immutable_values():
    leaky = EmberLeakyReLU(0.05)
    assert leaky == EmberLeakyReLU(0.05)
    with pytest.raises(FrozenInstanceError):
        leaky.coefficient = 0.5


def test_base_activation_is_abstract():
    with pytest.raises(NotImplementedError):
        EmberActivation().value(1.0)
    with pytest.raises(NotImplementedError):
        EmberActivation().derivative(1.0)


if __name__ == "__main__":
    print(f"[activation_cross_verify] Running {NUM_TRIALS} trials per activation...")
    np.random.seed(2468)
    torch.manual_seed(2468)

    for act, torch_fn in PAIRS:
        for i in range(NUM_TRIALS):
            cross_verify_activation_once(act, torch_fn, i)
        print(f"  [OK] {act!r}")

    print("[activation_cross_verify] All activations agree with torch.")
