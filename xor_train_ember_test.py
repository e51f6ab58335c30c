# xor_train_ember_test.py

from __future__ import annotations

import numpy as np
import pytest

from ember.ember_activation import EmberLeakyReLU, EmberSigmoid
from ember.ember_config import (
    EmberNetworkConfig,
    activation_from_name,
    error_from_name,
)
from ember.ember_error import EmberMeanSquared
from xor_train_ember import XOR_X, XOR_Y, build_xor_net, train_xor_ember


def test_xor_training_reduces_error():
    net, history = train_xor_ember(epochs=1500, print_every=0)

    assert len(history) == 1500
    assert history[-1] < history[0]
    assert net.forward_pass(XOR_X).shape == (4, 1)


def test_build_xor_net_is_seedable():
    a = build_xor_net(rng=np.random.RandomState(5))
    b = build_xor_net(rng=np.random.RandomState(5))
    for la, lb in zip(a.layers, b.layers):
        np.testing.assert_array_equal(la.weights, lb.weights)
    np.testing.assert_array_equal(a.forward_pass(XOR_X), b.forward_pass(XOR_X))
    assert XOR_Y.shape == (4, 1)


def test_config_from_dict_builds_network():
    cfg = EmberNetworkConfig.from_dict(
        {
            "input_size": 3,
            "layer_sizes": ["4", 2],
            "learning_rate": 0.25,
            "activation": "leaky_relu",
            "leaky_coefficient": 0.2,
            "weight_init": "kaiming_he",
        }
    )
    net = cfg.build()

    assert cfg.layer_sizes == [4, 2]
    assert net.learning_rate == 0.25
    assert net.activation == EmberLeakyReLU(0.2)
    assert [layer.weights.shape for layer in net.layers] == [(4, 4), (5, 2)]


def test_config_rejects_bad_input():
    with pytest.raises(ValueError):
        EmberNetworkConfig.from_dict({"input_size": 2})
    with pytest.raises(ValueError):
        EmberNetworkConfig.from_dict({"input_size": 2, "layer_sizes": [1], "momentum": 0.9})
    with pytest.raises(ValueError):
        EmberNetworkConfig(input_size=2, layer_sizes=[1], weight_init="orthogonal").build()


def test_name_lookups():
    assert activation_from_name("Sigmoid") == EmberSigmoid()
    assert activation_from_name("leaky_relu") == EmberLeakyReLU()
    assert error_from_name("mean_squared") == EmberMeanSquared()
    with pytest.raises(ValueError):
        activation_from_name("softmax")
    with pytest.raises(ValueError):
        error_from_name("cross_entropy")
