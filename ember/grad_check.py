# ember/grad_check.py
from __future__ import annotations

import logging

import numpy as np

from ember.ember_functional import as_array
from ember.ember_network import EmberNetwork
from ember.ember_reduction import EmberReduction

logger = logging.getLogger(__name__)


def compute_loss(net: EmberNetwork, x: np.ndarray, expected: np.ndarray) -> float:
    """
    The quantity back-propagation descends: the summed error value,
    divided by the batch size for a batch. Pure forward.
    """
    batch_size = x.shape[0] if x.ndim == 2 else 1
    return float(net.error_value(x, expected, EmberReduction.SUM)) / float(batch_size)


def grad_check_weight(
    net: EmberNetwork,
    x,
    expected,
    layer_idx: int,
    row: int,
    col: int,
    eps: float = 1e-5,
):
    """
    Compare the analytic dC/dM[row, col] of one layer against a
    central finite difference.

    The analytic value is read off a single back-propagation step
    taken with learning rate 1: the entry moves by exactly -gradient.
    Every layer's matrix is restored afterwards, so the network is
    left as it was.

    Returns:
        (analytic, numeric)
    """
    x_arr = as_array(x, name="network input")
    y_arr = as_array(expected, name="expected output")

    layer = net[layer_idx]
    M = layer._weights

    if not (0 <= row < M.shape[0] and 0 <= col < M.shape[1]):
        raise IndexError(
            f"grad_check_weight: ({row}, {col}) is outside {layer.name} matrix {M.shape}"
        )

    snapshot = [l._weights.copy() for l in net.layers]
    saved_rate = net.learning_rate

    try:
        # --- 1) Analytic gradient via one unit-rate step ---
        before = M[row, col]
        net.learning_rate = 1.0
        net.back_propagation(x_arr, y_arr)
        analytic = float(before - layer._weights[row, col])

        for l, m in zip(net.layers, snapshot):
            l._weights[...] = m

        # --- 2) Numeric gradient via finite differences ---
        M[row, col] = before + eps
        loss_plus = compute_loss(net, x_arr, y_arr)

        M[row, col] = before - eps
        loss_minus = compute_loss(net, x_arr, y_arr)

        numeric = (loss_plus - loss_minus) / (2.0 * eps)
    finally:
        net.learning_rate = saved_rate
        for l, m in zip(net.layers, snapshot):
            l._weights[...] = m

    logger.debug(
        "grad_check %s M[%d,%d]: analytic=%.8g numeric=%.8g diff=%.3g",
        layer.name, row, col, analytic, numeric, abs(analytic - numeric),
    )

    return analytic, numeric
