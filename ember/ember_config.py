# ember/ember_config.py
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, List

from ember.ember_activation import (
    EmberActivation,
    EmberLeakyReLU,
    EmberReLU,
    EmberSigmoid,
    EmberSinusoid,
    EmberTanH,
)
from ember.ember_error import EmberError, EmberMeanSquared
from ember.ember_initializer import EmberInit
from ember.ember_network import EmberNetwork

ACTIVATIONS = {
    "sigmoid": EmberSigmoid,
    "relu": EmberReLU,
    "leaky_relu": EmberLeakyReLU,
    "tanh": EmberTanH,
    "sinusoid": EmberSinusoid,
}

ERRORS = {
    "mean_squared": EmberMeanSquared,
}


def activation_from_name(name: str, coefficient: float | None = None) -> EmberActivation:
    """
    "sigmoid" | "relu" | "leaky_relu" | "tanh" | "sinusoid"

    coefficient only applies to leaky_relu.
    """
    key = str(name).lower()
    if key not in ACTIVATIONS:
        raise ValueError(
            f"Unknown activation: {name!r}. Expected one of: {sorted(ACTIVATIONS)}"
        )
    if key == "leaky_relu" and coefficient is not None:
        return EmberLeakyReLU(coefficient=float(coefficient))
    return ACTIVATIONS[key]()


def error_from_name(name: str) -> EmberError:
    key = str(name).lower()
    if key not in ERRORS:
        raise ValueError(f"Unknown error: {name!r}. Expected one of: {sorted(ERRORS)}")
    return ERRORS[key]()


@dataclass
class EmberNetworkConfig:
    """
    Plain description of a network, by name.

        cfg = EmberNetworkConfig(input_size=2, layer_sizes=[4, 1], learning_rate=0.5)
        net = cfg.build()
    """

    input_size: int
    layer_sizes: List[int]
    learning_rate: float = 0.1
    activation: str = "sigmoid"
    leaky_coefficient: float | None = None
    error: str = "mean_squared"
    weight_init: str = EmberInit.XAVIER.value
    bias_init: str = EmberInit.ZERO.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmberNetworkConfig":
        """
        Build a config from a plain dict (e.g. parsed JSON). Unknown keys are rejected.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"EmberNetworkConfig: unknown keys {unknown}")
        kwargs = dict(data)

        missing = [k for k in ("input_size", "layer_sizes") if k not in kwargs]
        if missing:
            raise ValueError(f"EmberNetworkConfig: missing required keys {missing}")

        kwargs["layer_sizes"] = [int(s) for s in kwargs["layer_sizes"]]
        return cls(**kwargs)

    def build(self, rng=None) -> EmberNetwork:
        return EmberNetwork(
            activation=activation_from_name(self.activation, self.leaky_coefficient),
            error=error_from_name(self.error),
            learning_rate=self.learning_rate,
            input_size=self.input_size,
            layer_sizes=self.layer_sizes,
            weight_init=EmberInit.from_value(self.weight_init),
            bias_init=EmberInit.from_value(self.bias_init),
            rng=rng,
        )
