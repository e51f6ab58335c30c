# error_cross_verify.py

from __future__ import annotations

import numpy as np
import pytest
import torch

from ember.ember_error import EmberError, EmberMeanSquared
from ember.ember_reduction import EmberReduction, reduce_values


NUM_TRIALS = 128


def assert_allclose(a, b, atol=1e-10, rtol=1e-10):
    if not np.allclose(a, b, atol=atol, rtol=rtol):
        diff = np.abs(np.asarray(a) - np.asarray(b))
        max_diff = float(diff.max())
        raise AssertionError(
            f"Arrays differ: max |a-b| = {max_diff}, "
            f"atol={atol}, rtol={rtol}"
        )


def cross_verify_mean_squared_once(trial_index: int) -> None:
    """
    Elementwise 0.5 * (y - x)^2 against torch autograd w.r.t. the observed x.
    """
    shape = (int(np.random.randint(1, 9)), int(np.random.randint(1, 9)))
    y = np.random.uniform(-3.0, 3.0, size=shape)
    x = np.random.uniform(-3.0, 3.0, size=shape)

    ms = EmberMeanSquared()

    x_torch = torch.from_numpy(x.copy()).requires_grad_(True)
    y_torch = torch.from_numpy(y.copy())
    per_elem = 0.5 * (y_torch - x_torch) ** 2
    per_elem.sum().backward()

    assert_allclose(ms.value(y, x), per_elem.detach().numpy())
    assert_allclose(ms.derivative(y, x), x_torch.grad.detach().numpy())

    # "mean" reduction over every element is torch's MSELoss / 2
    mse = torch.nn.functional.mse_loss(x_torch.detach(), y_torch, reduction="mean")
    assert ms.total(y, x, "mean") == pytest.approx(0.5 * float(mse), rel=1e-10)


def test_mean_squared_cross_verify():
    np.random.seed(1357)
    torch.manual_seed(1357)
    for i in range(NUM_TRIALS):
        cross_verify_mean_squared_once(i)


def test_mean_squared_examples():
    ms = EmberMeanSquared()
    assert ms.value(1.0, 0.5) == pytest.approx(0.125)
    assert ms.derivative(1.0, 0.5) == pytest.approx(-0.5)
    assert ms.derivative(0.5, 1.0) == pytest.approx(0.5)
    assert ms.value(0.3, 0.3) == 0.0


def test_total_reductions():
    ms = EmberMeanSquared()
    y = np.array([[1.0, 0.0], [0.0, 1.0]])
    x = np.array([[0.0, 0.0], [0.0, 0.0]])

    assert ms.total(y, x, "sum") == pytest.approx(1.0)
    assert ms.total(y, x, EmberReduction.MEAN) == pytest.approx(0.25)
    np.testing.assert_allclose(ms.total(y, x, "none"), [[0.5, 0.0], [0.0, 0.5]])


def test_total_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        EmberMeanSquared().total(np.zeros(3), np.zeros(2))


def test_reduction_from_value():
    assert EmberReduction.from_value("MEAN") is EmberReduction.MEAN
    assert EmberReduction.from_value(EmberReduction.SUM) is EmberReduction.SUM
    with pytest.raises(ValueError):
        EmberReduction.from_value("median")
    assert reduce_values(np.array([]), "mean") == 0.0


def test_base_error_is_abstract():
    with pytest.raises(NotImplementedError):
        EmberError().derivative(1.0, 0.0)


if __name__ == "__main__":
    print(f"[error_cross_verify] Running {NUM_TRIALS} random trials...")
    np.random.seed(1357)
    torch.manual_seed(1357)

    try:
        for i in range(NUM_TRIALS):
            cross_verify_mean_squared_once(i)
            print(f"  [OK] trial {i+1}/{NUM_TRIALS}")
    except AssertionError as e:
        print(f"[error_cross_verify] FAILED on trial {i}: {e}")
        raise
    else:
        print("[error_cross_verify] EmberMeanSquared == torch for all random trials.")
