# network_cross_verify.py

from __future__ import annotations

import numpy as np
import pytest
import torch

from ember.ember_activation import EmberSigmoid, EmberSinusoid, EmberTanH
from ember.ember_error import EmberMeanSquared
from ember.ember_initializer import EmberInit
from ember.ember_network import EmberNetwork
from ember.grad_check import grad_check_weight


# --------------------------------------------------
# Config
# --------------------------------------------------

NUM_TRIALS = 48

ACTIVATIONS = [
    (EmberSigmoid(), torch.sigmoid),
    (EmberTanH(), torch.tanh),
    (EmberSinusoid(), torch.sin),
]


# --------------------------------------------------
# Helpers
# --------------------------------------------------

def assert_allclose(a, b, atol=1e-9, rtol=1e-9):
    if not np.allclose(a, b, atol=atol, rtol=rtol):
        diff = np.abs(np.asarray(a) - np.asarray(b))
        max_diff = float(diff.max())
        raise AssertionError(
            f"Arrays differ: max |a-b| = {max_diff}, "
            f"atol={atol}, rtol={rtol}"
        )


def torch_sgd_step(matrices, torch_act, x: np.ndarray, y: np.ndarray, lr: float):
    """
    Reference step in torch: mean-over-batch of the summed
    0.5 * (y - a)^2, autograd, then plain SGD on every matrix.

    Returns the updated matrices and the mean output error derivative.
    """
    params = [torch.from_numpy(m.copy()).requires_grad_(True) for m in matrices]

    a = torch.from_numpy(x.copy())
    for M in params:
        a = torch_act(a @ M[:-1, :] + M[-1, :])

    y_t = torch.from_numpy(y.copy())
    n = 1 if x.ndim == 1 else x.shape[0]
    loss = (0.5 * (y_t - a) ** 2).sum() / float(n)
    loss.backward()

    updated = [(M - lr * M.grad).detach().numpy() for M in params]
    reported = float((a - y_t).mean())
    return updated, reported


def cross_verify_network_once(trial_index: int) -> None:
    act, torch_act = ACTIVATIONS[trial_index % len(ACTIVATIONS)]

    input_size = int(np.random.randint(1, 7))
    depth = int(np.random.randint(1, 5))
    layer_sizes = [int(np.random.randint(1, 7)) for _ in range(depth)]
    lr = float(np.random.uniform(0.05, 1.0))

    net = EmberNetwork(
        act,
        EmberMeanSquared(),
        lr,
        input_size,
        layer_sizes,
        weight_init=EmberInit.RANDOM,
        bias_init=EmberInit.RANDOM,
    )
    before = [layer.weights for layer in net.layers]

    if np.random.rand() < 0.5:
        x = np.random.uniform(-1.0, 1.0, size=(input_size,))
        y = np.random.uniform(-1.0, 1.0, size=(layer_sizes[-1],))
    else:
        n = int(np.random.randint(1, 7))
        x = np.random.uniform(-1.0, 1.0, size=(n, input_size))
        y = np.random.uniform(-1.0, 1.0, size=(n, layer_sizes[-1]))

    expected_after, expected_reported = torch_sgd_step(before, torch_act, x, y, lr)

    reported = net.back_propagation(x, y)

    assert reported == pytest.approx(expected_reported, abs=1e-10)
    for layer, ref in zip(net.layers, expected_after):
        if layer.weights.shape != ref.shape:
            raise AssertionError(
                f"Matrix shape changed on trial {trial_index}: "
                f"{layer.weights.shape} vs {ref.shape}"
            )
        assert_allclose(layer.weights, ref)


def test_network_cross_verify() -> None:
    np.random.seed(97531)
    torch.manual_seed(97531)

    for i in range(NUM_TRIALS):
        cross_verify_network_once(i)


# --------------------------------------------------
# Finite-difference checks
# --------------------------------------------------

def test_grad_check_every_entry_single_example():
    np.random.seed(42)
    net = EmberNetwork(EmberTanH(), EmberMeanSquared(), 0.3, 3, [4, 2],
                       weight_init="xavier", bias_init="random")
    x = np.random.randn(3)
    y = np.random.randn(2)
    snapshot = [layer.weights for layer in net.layers]

    for layer_idx, layer in enumerate(net.layers):
        rows, cols = layer.weights.shape
        for r in range(rows):
            for c in range(cols):
                analytic, numeric = grad_check_weight(net, x, y, layer_idx, r, c)
                assert analytic == pytest.approx(numeric, abs=1e-7)

    # the check restores everything it touched
    for layer, m in zip(net.layers, snapshot):
        np.testing.assert_array_equal(layer.weights, m)
    assert net.learning_rate == 0.3


def test_grad_check_batch():
    np.random.seed(43)
    net = EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 2, [3, 3, 1],
                       weight_init="random", bias_init="random")
    x = np.random.randn(5, 2)
    y = np.random.rand(5, 1)

    for layer_idx in range(len(net)):
        analytic, numeric = grad_check_weight(net, x, y, layer_idx, 0, 0)
        assert analytic == pytest.approx(numeric, abs=1e-7)


def test_grad_check_rejects_bad_index():
    net = EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 2, [2])
    with pytest.raises(IndexError):
        grad_check_weight(net, np.ones(2), np.ones(2), 0, 5, 0)


# --------------------------------------------------
# Script entry point
# --------------------------------------------------

if __name__ == "__main__":
    np.random.seed(97531)
    torch.manual_seed(97531)

    print(f"[network_cross_verify] Running {NUM_TRIALS} random networks...")
    try:
        for i in range(NUM_TRIALS):
            cross_verify_network_once(i)
            print(f"  [OK] trial {i+1}/{NUM_TRIALS}")
    except AssertionError as e:
        print(f"[network_cross_verify] FAILED on trial {i}: {e}")
        raise
    else:
        print("[network_cross_verify] EmberNetwork matches a torch SGD step on every trial.")
