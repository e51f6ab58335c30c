# fully_connected_cross_verify.py

from __future__ import annotations

import numpy as np
import pytest
import torch
import torch.nn.functional as F

from ember.ember_activation import (
    EmberLeakyReLU,
    EmberSigmoid,
    EmberTanH,
)
from ember.ember_fully_connected import EmberFullyConnected
from ember.ember_initializer import EmberInit
from ember.ember_layer import EmberInputLayer


# --------------------------------------------------
# Config
# --------------------------------------------------

NUM_TRIALS = 128

ACTIVATIONS = [
    (EmberSigmoid(), torch.sigmoid),
    (EmberTanH(), torch.tanh),
    (EmberLeakyReLU(0.1), lambda t: F.leaky_relu(t, negative_slope=0.1)),
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


def make_layer(in_features: int, out_features: int, act, weights=None) -> EmberFullyConnected:
    return EmberFullyConnected(
        out_features,
        EmberInputLayer(in_features),
        act,
        weights=weights,
    )


def torch_reference(M: np.ndarray, torch_act, x: np.ndarray, dc_da: np.ndarray):
    """
    Same layer in torch, with autograd doing the calculus.

    Returns (z, a, grad_M, dc_da0) where grad_M is averaged over the
    batch for 2-D inputs, exactly like the Ember batched update.
    """
    W = torch.from_numpy(M[:-1, :].copy()).requires_grad_(True)   # (D, C)
    b = torch.from_numpy(M[-1, :].copy()).requires_grad_(True)    # (C,)
    x_t = torch.from_numpy(x.copy()).requires_grad_(True)

    z = x_t @ W + b
    a = torch_act(z)

    # Pulling dc_da back through a: sum(dc_da * a) has d/da == dc_da.
    (a * torch.from_numpy(dc_da.copy())).sum().backward()

    n = 1 if x.ndim == 1 else x.shape[0]
    grad_M = np.vstack([W.grad.numpy(), b.grad.numpy()[None, :]]) / float(n)

    return z.detach().numpy(), a.detach().numpy(), grad_M, x_t.grad.numpy()


def make_random_case():
    """
    50% single example (D,), 50% batch (N, D); D, C, N in [1, 8].
    """
    in_features = int(np.random.randint(1, 9))
    out_features = int(np.random.randint(1, 9))
    if np.random.rand() < 0.5:
        x_shape = (in_features,)
        g_shape = (out_features,)
    else:
        n = int(np.random.randint(1, 9))
        x_shape = (n, in_features)
        g_shape = (n, out_features)

    M = np.random.randn(in_features + 1, out_features)
    x = np.random.uniform(-2.0, 2.0, size=x_shape)
    dc_da = np.random.randn(*g_shape)
    alpha = float(np.random.uniform(0.01, 1.0))
    return M, x, dc_da, alpha


# --------------------------------------------------
# Core cross-verify
# --------------------------------------------------

def cross_verify_fully_connected_once(trial_index: int) -> None:
    """
    One random layer, one random upstream gradient:
      1. forward weighted sum and activation match torch
      2. returned dC/da0 matches torch's input gradient
      3. the updated matrix equals M - alpha * grad (averaged for batches)
    """
    act, torch_act = ACTIVATIONS[trial_index % len(ACTIVATIONS)]
    M, x, dc_da, alpha = make_random_case()

    layer = make_layer(M.shape[0] - 1, M.shape[1], act, weights=M)

    z_ref, a_ref, grad_ref, dx_ref = torch_reference(M, torch_act, x, dc_da)

    z = layer.forward_weighted_sum(x)
    a = layer.forward_activation(z)

    if z.shape != z_ref.shape:
        raise AssertionError(
            f"Output shape mismatch on trial {trial_index}: "
            f"ember={z.shape}, torch={z_ref.shape}, input_shape={x.shape}"
        )

    assert_allclose(z, z_ref)
    assert_allclose(a, a_ref)

    dc_da0 = layer.back_prop(dc_da, x, z, alpha)

    if dc_da0.shape != x.shape:
        raise AssertionError(
            f"Input-grad shape mismatch on trial {trial_index}: "
            f"ember={dc_da0.shape}, input={x.shape}"
        )

    assert_allclose(dc_da0, dx_ref)
    assert_allclose(layer.weights, M - alpha * grad_ref)


def test_fully_connected_cross_verify() -> None:
    np.random.seed(5678)
    torch.manual_seed(5678)

    for i in range(NUM_TRIALS):
        cross_verify_fully_connected_once(i)


# --------------------------------------------------
# Contract checks
# --------------------------------------------------

def test_shape_invariant_survives_back_prop():
    np.random.seed(11)
    layer = EmberFullyConnected(3, EmberInputLayer(5), EmberSigmoid())
    assert layer.weights.shape == (6, 3)

    for _ in range(25):
        x = np.random.randn(4, 5)
        z = layer.forward_weighted_sum(x)
        layer.back_prop(np.random.randn(4, 3), x, z, 0.1)
        x1 = np.random.randn(5)
        z1 = layer.forward_weighted_sum(x1)
        layer.back_prop(np.random.randn(3), x1, z1, 0.1)

    assert layer.weights.shape == (6, 3)
    assert layer.size() == 3
    assert layer.previous_size == 5


def test_literal_weights_must_match_shape():
    prev = EmberInputLayer(3)
    with pytest.raises(ValueError):
        EmberFullyConnected(2, prev, EmberSigmoid(), weights=np.zeros((3, 3)))
    with pytest.raises(ValueError):
        EmberFullyConnected(2, prev, EmberSigmoid(), weights=np.zeros((4, 3)))

    layer = EmberFullyConnected(2, prev, EmberSigmoid(), weights=np.zeros((4, 2)))
    assert layer.weights.shape == (4, 2)


def test_literal_weights_are_copied():
    M = np.ones((3, 2))
    layer = make_layer(2, 2, EmberSigmoid(), weights=M)
    z = layer.forward_weighted_sum([1.0, 1.0])
    layer.back_prop(np.ones(2), np.ones(2), z, 0.5)

    np.testing.assert_array_equal(M, np.ones((3, 2)))

    snapshot = layer.weights
    snapshot[0, 0] = 99.0
    assert layer.weights[0, 0] != 99.0


def test_bad_sizes_and_activation():
    with pytest.raises(ValueError):
        EmberFullyConnected(0, EmberInputLayer(2), EmberSigmoid())
    with pytest.raises(ValueError):
        EmberInputLayer(0)
    with pytest.raises(TypeError):
        EmberFullyConnected(2, EmberInputLayer(2), "sigmoid")


def test_initializer_layout():
    layer = EmberFullyConnected(
        4, EmberInputLayer(3), EmberSigmoid(),
        weight_init=EmberInit.RANDOM, bias_init=EmberInit.ZERO,
    )
    assert layer.weight_block.shape == (3, 4)
    np.testing.assert_array_equal(layer.bias, np.zeros(4))
    assert np.any(layer.weight_block != 0.0)

    zero = EmberFullyConnected(
        4, EmberInputLayer(3), EmberSigmoid(),
        weight_init="zero", bias_init="random",
    )
    np.testing.assert_array_equal(zero.weight_block, np.zeros((3, 4)))
    assert np.any(zero.bias != 0.0)


def test_forward_is_pure():
    np.random.seed(3)
    M = np.random.randn(4, 2)
    layer = make_layer(3, 2, EmberTanH(), weights=M)
    x = np.random.randn(5, 3)
    x_before = x.copy()

    a1 = layer.forward(x)
    a2 = layer.forward(x)

    np.testing.assert_array_equal(a1, a2)
    np.testing.assert_array_equal(x, x_before)
    np.testing.assert_array_equal(layer.weights, M)


def test_single_and_batch_of_one_agree():
    np.random.seed(21)
    M = np.random.randn(4, 3)
    x = np.random.randn(3)
    dc_da = np.random.randn(3)

    single = make_layer(3, 3, EmberSigmoid(), weights=M)
    batched = make_layer(3, 3, EmberSigmoid(), weights=M)

    z = single.forward_weighted_sum(x)
    out_single = single.back_prop(dc_da, x, z, 0.3)

    zb = batched.forward_weighted_sum(x[None, :])
    out_batched = batched.back_prop(dc_da[None, :], x[None, :], zb, 0.3)

    assert_allclose(single.weights, batched.weights, atol=1e-14, rtol=1e-14)
    assert_allclose(out_single, out_batched[0], atol=1e-14, rtol=1e-14)


def test_batch_update_is_averaged_not_summed():
    np.random.seed(22)
    M = np.random.randn(3, 2)
    x = np.random.randn(2)
    dc_da = np.random.randn(2)

    single = make_layer(2, 2, EmberSigmoid(), weights=M)
    z = single.forward_weighted_sum(x)
    single.back_prop(dc_da, x, z, 0.5)

    # Four copies of the same example: the mean gradient is the single gradient.
    batched = make_layer(2, 2, EmberSigmoid(), weights=M)
    xb = np.tile(x, (4, 1))
    zb = batched.forward_weighted_sum(xb)
    batched.back_prop(np.tile(dc_da, (4, 1)), xb, zb, 0.5)

    assert_allclose(single.weights, batched.weights, atol=1e-14, rtol=1e-14)


def test_shape_errors_leave_layer_untouched():
    M = np.arange(12, dtype=np.float64).reshape(4, 3)
    layer = make_layer(3, 3, EmberSigmoid(), weights=M)

    with pytest.raises(ValueError):
        layer.forward_weighted_sum(np.ones(2))
    with pytest.raises(ValueError):
        layer.forward_activation(np.ones(4))
    with pytest.raises(ValueError):
        layer.forward_weighted_sum(np.ones((2, 2, 3)))

    # wrong previous-activation width
    with pytest.raises(ValueError):
        layer.back_prop(np.ones(3), np.ones(2), np.ones(3), 0.1)
    # single-example gradient with a batched z
    with pytest.raises(ValueError):
        layer.back_prop(np.ones(3), np.ones(3), np.ones((1, 3)), 0.1)
    # batch sizes disagree
    with pytest.raises(ValueError):
        layer.back_prop(np.ones((2, 3)), np.ones((3, 3)), np.ones((2, 3)), 0.1)

    np.testing.assert_array_equal(layer.weights, M)


# --------------------------------------------------
# Script entry point
# --------------------------------------------------

if __name__ == "__main__":
    np.random.seed(5678)
    torch.manual_seed(5678)

    print(f"[fully_connected_cross_verify] Running {NUM_TRIALS} random 1D/2D trials...")
    try:
        for i in range(NUM_TRIALS):
            cross_verify_fully_connected_once(i)
            print(f"  [OK] trial {i+1}/{NUM_TRIALS}")
    except AssertionError as e:
        print(f"[fully_connected_cross_verify] FAILED on trial {i}: {e}")
        raise
    else:
        print("[fully_connected_cross_verify] All trials passed. "
              "EmberFullyConnected and torch autograd agree on this random suite.")
