# initializer_stats_test.py

from __future__ import annotations

import math

import numpy as np
import pytest

from ember.ember_initializer import (
    EmberInit,
    generate_bias,
    generate_weights,
    init_stddev,
)


FAN_IN = 400
FAN_OUT = 300


def check_normal_stats(samples: np.ndarray, stddev: float) -> None:
    """
    With ~10^5 draws the sample mean sits well inside 0.02 stddev and
    the sample stddev inside 2% of the target.
    """
    assert abs(float(samples.mean())) < 0.02 * stddev
    assert float(samples.std()) == pytest.approx(stddev, rel=0.02)


@pytest.mark.parametrize(
    "strategy, expected_std",
    [
        (EmberInit.RANDOM, 1.0),
        (EmberInit.XAVIER, math.sqrt(2.0 / (FAN_IN + FAN_OUT))),
        (EmberInit.KAIMING_HE, math.sqrt(2.0 / FAN_IN)),
    ],
)
def test_weight_statistics(strategy, expected_std):
    rng = np.random.default_rng(2024)
    w = generate_weights(FAN_IN, FAN_OUT, strategy, rng=rng)

    assert w.shape == (FAN_OUT, FAN_IN)
    assert w.dtype == np.float64
    assert init_stddev(FAN_IN, FAN_OUT, strategy) == pytest.approx(expected_std)
    check_normal_stats(w, expected_std)


@pytest.mark.parametrize("strategy", [EmberInit.XAVIER, EmberInit.KAIMING_HE])
def test_bias_statistics(strategy):
    rng = np.random.default_rng(7)
    # many draws of a long bias vector
    b = np.concatenate([generate_bias(FAN_IN, 5000, strategy, rng=rng) for _ in range(20)])

    assert generate_bias(FAN_IN, 5000, strategy, rng=rng).shape == (5000,)
    check_normal_stats(b, init_stddev(FAN_IN, 5000, strategy))


def test_zero_strategy():
    np.testing.assert_array_equal(generate_weights(3, 2, "zero"), np.zeros((2, 3)))
    np.testing.assert_array_equal(generate_bias(3, 2, EmberInit.ZERO), np.zeros(2))


def test_global_seed_reproduces():
    np.random.seed(99)
    first = generate_weights(4, 3, "xavier")
    np.random.seed(99)
    second = generate_weights(4, 3, "xavier")
    np.testing.assert_array_equal(first, second)


def test_strategy_names():
    assert EmberInit.from_value("Xavier") is EmberInit.XAVIER
    assert EmberInit.from_value("KaimingHe") is EmberInit.KAIMING_HE
    assert EmberInit.from_value("kaiming-he") is EmberInit.KAIMING_HE
    with pytest.raises(ValueError):
        EmberInit.from_value("orthogonal")


def test_bad_fans():
    with pytest.raises(ValueError):
        generate_weights(0, 3, "random")
    with pytest.raises(ValueError):
        generate_bias(3, 0, "random")


if __name__ == "__main__":
    for strategy in EmberInit:
        w = generate_weights(FAN_IN, FAN_OUT, strategy)
        print(
            f"[initializer_stats_test] {strategy.value:>10}: "
            f"mean={w.mean():+.5f} std={w.std():.5f} "
            f"target={init_stddev(FAN_IN, FAN_OUT, strategy):.5f}"
        )
