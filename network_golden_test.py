# network_golden_test.py

from __future__ import annotations

import numpy as np
import pytest

from ember.ember_activation import EmberSigmoid
from ember.ember_error import EmberMeanSquared
from ember.ember_network import EmberNetwork


# --------------------------------------------------
# The classic 2-2-2 worked example
# --------------------------------------------------
#
#   i1, i2 = 0.05, 0.10      targets o1, o2 = 0.01, 0.99
#
#   hidden:  w1=.15 (i1->h1)  w2=.20 (i2->h1)  w3=.25 (i1->h2)  w4=.30 (i2->h2)  b=.35
#   output:  w5=.40 (h1->o1)  w6=.45 (h2->o1)  w7=.50 (h1->o2)  w8=.55 (h2->o2)  b=.60
#
# Rows are inputs, columns are units, last row is the bias.

HIDDEN_WEIGHTS = [[0.15, 0.25], [0.20, 0.30], [0.35, 0.35]]
OUTPUT_WEIGHTS = [[0.40, 0.50], [0.45, 0.55], [0.6, 0.6]]

INPUT = np.array([0.05, 0.10])
EXPECTED = np.array([0.01, 0.99])
LEARNING_RATE = 0.5

GOLDEN_Z1 = [0.3775, 0.3925]
GOLDEN_A1 = [0.593269992, 0.596884378]
GOLDEN_Z2 = [1.105905967, 1.224921404]
GOLDEN_A2 = [0.75136507, 0.772928465]

GOLDEN_HIDDEN_AFTER = [
    [0.149780716, 0.24975114],
    [0.19956143, 0.29950229],
    [0.345614323, 0.345022873],
]
GOLDEN_OUTPUT_AFTER = [
    [0.35891648, 0.511301270],
    [0.408666186, 0.561370121],
    [0.530750719, 0.619049118],
]

# mean of dC/da at the output: ((0.75136507 - 0.01) + (0.772928465 - 0.99)) / 2
GOLDEN_REPORTED = 0.2621467675

# sum of 0.5 * (target - out)^2 over both outputs
GOLDEN_TOTAL_ERROR = 0.298371109


def make_golden_net() -> EmberNetwork:
    return EmberNetwork(
        EmberSigmoid(),
        EmberMeanSquared(),
        LEARNING_RATE,
        input_size=2,
        layer_sizes=[2, 2],
        weights=[HIDDEN_WEIGHTS, OUTPUT_WEIGHTS],
    )


def test_golden_forward_sequence():
    net = make_golden_net()
    hidden, output = net.layers

    z1 = hidden.forward_weighted_sum(INPUT)
    a1 = hidden.forward_activation(z1)
    z2 = output.forward_weighted_sum(a1)
    a2 = output.forward_activation(z2)

    np.testing.assert_allclose(z1, GOLDEN_Z1, atol=1e-8)
    np.testing.assert_allclose(a1, GOLDEN_A1, atol=1e-8)
    np.testing.assert_allclose(z2, GOLDEN_Z2, atol=1e-8)
    np.testing.assert_allclose(a2, GOLDEN_A2, atol=1e-8)

    np.testing.assert_allclose(net.forward_pass(INPUT), GOLDEN_A2, atol=1e-8)


def test_golden_error_value():
    net = make_golden_net()
    assert net.error_value(INPUT, EXPECTED, "sum") == pytest.approx(GOLDEN_TOTAL_ERROR, abs=1e-8)
    assert net.error_value(INPUT, EXPECTED) == pytest.approx(GOLDEN_TOTAL_ERROR / 2.0, abs=1e-8)


def test_golden_back_propagation():
    net = make_golden_net()

    reported = net.back_propagation(INPUT, EXPECTED)

    assert reported == pytest.approx(GOLDEN_REPORTED, abs=1e-7)
    np.testing.assert_allclose(net[1].weights, GOLDEN_OUTPUT_AFTER, atol=1e-7)
    np.testing.assert_allclose(net[0].weights, GOLDEN_HIDDEN_AFTER, atol=1e-7)


def test_golden_batch_of_duplicates_matches_single():
    single = make_golden_net()
    batched = make_golden_net()

    r_single = single.back_propagation(INPUT, EXPECTED)
    r_batched = batched.back_propagation(np.tile(INPUT, (2, 1)), np.tile(EXPECTED, (2, 1)))

    assert r_batched == pytest.approx(r_single, abs=1e-14)
    for a, b in zip(single.layers, batched.layers):
        np.testing.assert_allclose(a.weights, b.weights, atol=1e-14)
    np.testing.assert_allclose(batched[1].weights, GOLDEN_OUTPUT_AFTER, atol=1e-7)


# --------------------------------------------------
# Network-level properties
# --------------------------------------------------

def test_forward_pass_is_deterministic():
    np.random.seed(7)
    net = EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 4, [5, 3, 2])
    x = np.random.randn(6, 4)

    first = net.forward_pass(x)
    second = net.forward_pass(x)

    np.testing.assert_array_equal(first, second)
    assert first.shape == (6, 2)


def test_back_propagation_descends():
    """
    One sigmoid layer, one fixed example: the error value must fall
    and the reported derivative mean must shrink toward zero.
    """
    net = EmberNetwork(
        EmberSigmoid(),
        EmberMeanSquared(),
        0.5,
        input_size=2,
        layer_sizes=[1],
        weight_init="zero",
        bias_init="zero",
    )
    x = np.array([0.3, -0.7])
    y = np.array([0.9])

    errors = []
    reported = []
    for _ in range(300):
        errors.append(float(net.error_value(x, y)))
        reported.append(net.back_propagation(x, y))

    assert all(b < a for a, b in zip(errors, errors[1:]))
    assert abs(reported[-1]) < abs(reported[0])
    assert reported[0] < 0.0  # output starts at 0.5, below the 0.9 target


def test_layer_shapes_follow_previous_layer():
    net = EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 7, [4, 9, 3])
    assert [layer.weights.shape for layer in net.layers] == [(8, 4), (5, 9), (10, 3)]
    assert net.input_size == 7
    assert net.output_size == 3
    assert len(net) == 3
    assert net.input_layer.size() == 7


def test_construction_errors():
    with pytest.raises(ValueError):
        EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 2, [])
    with pytest.raises(ValueError):
        EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.0, 2, [2])
    with pytest.raises(ValueError):
        EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 2, [2, 2], weights=[HIDDEN_WEIGHTS])
    with pytest.raises(ValueError):
        EmberNetwork(EmberSigmoid(), EmberMeanSquared(), 0.1, 3, [2, 2],
                     weights=[HIDDEN_WEIGHTS, OUTPUT_WEIGHTS])
    with pytest.raises(TypeError):
        EmberNetwork(EmberSigmoid(), "mse", 0.1, 2, [2])


def test_call_shape_errors_do_not_update():
    net = make_golden_net()

    with pytest.raises(ValueError):
        net.forward_pass(np.ones(3))
    with pytest.raises(ValueError):
        net.back_propagation(np.ones(2), np.ones(3))
    with pytest.raises(ValueError):
        net.back_propagation(np.ones((2, 2)), np.ones(2))
    with pytest.raises(ValueError):
        net.back_propagation(np.ones((2, 2)), np.ones((3, 2)))

    np.testing.assert_allclose(net[0].weights, HIDDEN_WEIGHTS)
    np.testing.assert_allclose(net[1].weights, OUTPUT_WEIGHTS)


def test_back_propagation_leaves_caller_arrays_alone():
    net = make_golden_net()
    x = INPUT.copy()
    y = EXPECTED.copy()
    net.back_propagation(x, y)
    np.testing.assert_array_equal(x, INPUT)
    np.testing.assert_array_equal(y, EXPECTED)


if __name__ == "__main__":
    net = make_golden_net()
    print("[network_golden_test] forward:", net.forward_pass(INPUT))
    print("[network_golden_test] reported:", net.back_propagation(INPUT, EXPECTED))
    for layer in net.layers:
        print(f"[network_golden_test] {layer.name} after one step:\n{layer.weights}")
