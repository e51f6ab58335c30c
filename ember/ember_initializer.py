# ember/ember_initializer.py
from __future__ import annotations

import math
from enum import Enum

import numpy as np


class EmberInit(str, Enum):
    """
    Named parameter initialization strategies.

    - ZERO        => all zeros
    - RANDOM      => standard normal, N(0, 1)
    - XAVIER      => N(0, sqrt(2 / (fan_in + fan_out)))   (Glorot)
    - KAIMING_HE  => N(0, sqrt(2 / fan_in))               (He)
    """

    ZERO = "zero"
    RANDOM = "random"
    XAVIER = "xavier"
    KAIMING_HE = "kaiming_he"

    @staticmethod
    def from_value(val: str | EmberInit) -> EmberInit:
        if isinstance(val, EmberInit):
            return val

        if isinstance(val, str):
            val_lower = val.lower().replace("-", "_")
            if val_lower == "kaiminghe":
                val_lower = "kaiming_he"
            for e in EmberInit:
                if e.value == val_lower:
                    return e

        raise ValueError(
            f"Invalid initializer: {val!r}. "
            f"Expected one of: {[e.value for e in EmberInit]}"
        )


def init_stddev(fan_in: int, fan_out: int, strategy: str | EmberInit) -> float:
    """
    Standard deviation a strategy draws from (0.0 for ZERO).
    """
    strategy = EmberInit.from_value(strategy)

    match strategy:
        case EmberInit.ZERO:
            return 0.0
        case EmberInit.RANDOM:
            return 1.0
        case EmberInit.XAVIER:
            return math.sqrt(2.0 / float(fan_in + fan_out))
        case EmberInit.KAIMING_HE:
            return math.sqrt(2.0 / float(fan_in))
        case _:
            raise RuntimeError(f"Unknown initializer: {strategy}")


def _check_fans(fan_in: int, fan_out: int) -> None:
    if int(fan_in) <= 0 or int(fan_out) <= 0:
        raise ValueError(
            f"fan_in and fan_out must be positive, got fan_in={fan_in}, fan_out={fan_out}"
        )


def _normal(shape, stddev: float, rng) -> np.ndarray:
    # rng may be a np.random.Generator or a RandomState; both have .normal.
    # Without one we draw from the global state so np.random.seed() applies.
    source = np.random if rng is None else rng
    return np.asarray(source.normal(0.0, stddev, size=shape), dtype=np.float64)


def generate_weights(
    fan_in: int,
    fan_out: int,
    strategy: str | EmberInit,
    rng=None,
) -> np.ndarray:
    """
    Weight matrix for a layer with fan_in inputs and fan_out outputs.

    returns: (fan_out, fan_in) float64, one row per output unit
    """
    _check_fans(fan_in, fan_out)
    strategy = EmberInit.from_value(strategy)
    shape = (int(fan_out), int(fan_in))

    if strategy is EmberInit.ZERO:
        return np.zeros(shape, dtype=np.float64)

    return _normal(shape, init_stddev(fan_in, fan_out, strategy), rng)


def generate_bias(
    fan_in: int,
    fan_out: int,
    strategy: str | EmberInit,
    rng=None,
) -> np.ndarray:
    """
    Bias vector for a layer with fan_in inputs and fan_out outputs.

    returns: (fan_out,) float64, one bias per output unit
    """
    _check_fans(fan_in, fan_out)
    strategy = EmberInit.from_value(strategy)
    shape = (int(fan_out),)

    if strategy is EmberInit.ZERO:
        return np.zeros(shape, dtype=np.float64)

    return _normal(shape, init_stddev(fan_in, fan_out, strategy), rng)
