# ember/ember_network.py
from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from ember.ember_activation import EmberActivation
from ember.ember_error import EmberError
from ember.ember_functional import as_array, check_same_layout, check_width
from ember.ember_fully_connected import EmberFullyConnected
from ember.ember_initializer import EmberInit
from ember.ember_layer import EmberInputLayer
from ember.ember_reduction import EmberReduction

logger = logging.getLogger(__name__)


class EmberNetwork:
    """
    A stack of fully-connected layers trained with plain gradient descent.

    Forward pass:
        input -> layer_0 -> layer_1 -> ... -> layer_N -> output

    Back-propagation:
        error derivative at the output -> layer_N.back_prop -> ... -> layer_0.back_prop

    Every layer shares the same activation strategy. The network owns
    its layers and the input placeholder; nothing else touches them.

    Inputs are either a single example (1-D) or a batch (2-D, one
    example per row). The batched path averages gradients over the
    batch, so it is mini-batch gradient descent.
    """

    def __init__(
        self,
        activation: EmberActivation,
        error: EmberError,
        learning_rate: float,
        input_size: int,
        layer_sizes: Sequence[int],
        weight_init: str | EmberInit = EmberInit.XAVIER,
        bias_init: str | EmberInit = EmberInit.ZERO,
        weights: Sequence | None = None,
        rng=None,
    ):
        """
        Example:
            net = EmberNetwork(
                EmberSigmoid(),
                EmberMeanSquared(),
                learning_rate=0.5,
                input_size=2,
                layer_sizes=[2, 2],
            )

        weights, when given, holds one literal (previous + 1, size)
        matrix per layer and takes precedence over the initializers.
        """
        if not isinstance(error, EmberError):
            raise TypeError(f"error must be an EmberError, got {type(error).__name__}")

        layer_sizes = [int(s) for s in layer_sizes]
        if len(layer_sizes) == 0:
            raise ValueError("EmberNetwork needs at least one layer size.")

        learning_rate = float(learning_rate)
        if not learning_rate > 0.0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")

        if weights is not None and len(weights) != len(layer_sizes):
            raise ValueError(
                f"Got {len(weights)} literal weight matrices for {len(layer_sizes)} layers."
            )

        self.activation = activation
        self.error = error
        self.learning_rate = learning_rate

        self.input_layer = EmberInputLayer(input_size)
        self._layers: List[EmberFullyConnected] = []

        # Each layer sizes itself against the one before it.
        prev = self.input_layer
        for i, size in enumerate(layer_sizes):
            layer = EmberFullyConnected(
                size,
                prev,
                activation,
                weights=None if weights is None else weights[i],
                weight_init=weight_init,
                bias_init=bias_init,
                rng=rng,
                name=f"fc{i}",
            )
            self._layers.append(layer)
            prev = layer

        logger.debug(
            "built network %d -> %s, learning_rate=%s",
            self.input_size,
            layer_sizes,
            self.learning_rate,
        )

    # ------------------------------------------------------
    # Shape helpers
    # ------------------------------------------------------
    @property
    def input_size(self) -> int:
        return self.input_layer.size()

    @property
    def output_size(self) -> int:
        return self._layers[-1].size()

    @property
    def layers(self) -> List[EmberFullyConnected]:
        return list(self._layers)

    def _check_pair(self, x: np.ndarray, expected: np.ndarray) -> None:
        check_width(x, self.input_size, "network input")
        check_width(expected, self.output_size, "expected output")
        check_same_layout(x, expected, "input", "expected")

    # ------------------------------------------------------
    # Forward pass
    # ------------------------------------------------------
    def forward_pass(self, x) -> np.ndarray:
        """
        Feed an input through every layer.

        x: (input_size,) or (N, input_size)
        returns: final activation, (output_size,) or (N, output_size)

        Keeps nothing around for a later backward step;
        back_propagation() does its own forward sweep.
        """
        prev_act = as_array(x, name="network input")
        check_width(prev_act, self.input_size, "network input")

        for layer in self._layers:
            z = layer.forward_weighted_sum(prev_act)
            prev_act = layer.forward_activation(z)

        return prev_act

    def __call__(self, x) -> np.ndarray:
        return self.forward_pass(x)

    # ------------------------------------------------------
    # Back-propagation
    # ------------------------------------------------------
    def back_propagation(self, x, expected) -> float:
        """
        One gradient descent step on a single example or a batch.

        x:        (input_size,) or (N, input_size)
        expected: (output_size,) or (N, output_size)

        Returns the mean of the output error DERIVATIVE, dC/da at the
        last layer, over every output element. This is a signed proxy
        for how far off the network is, not the error value itself;
        use error_value() for a loss.
        """
        x_arr = as_array(x, name="network input")
        y_arr = as_array(expected, name="expected output")
        self._check_pair(x_arr, y_arr)

        # activations[0] is the input; weighted_sums[i + 1] pairs with activations[i + 1]
        count = len(self._layers) + 1
        activations: List[np.ndarray | None] = [None] * count
        weighted_sums: List[np.ndarray | None] = [None] * count

        activations[0] = x_arr

        for i, layer in enumerate(self._layers):
            z = layer.forward_weighted_sum(activations[i])
            a = layer.forward_activation(z)
            weighted_sums[i + 1] = z
            activations[i + 1] = a

        dc_da = np.asarray(self.error.derivative(y_arr, activations[-1]), dtype=np.float64)
        reported = float(dc_da.mean())

        # Reverse sweep: each layer hands dC/da0 to the layer before it.
        for i in range(len(self._layers) - 1, -1, -1):
            dc_da = self._layers[i].back_prop(
                dc_da,
                activations[i],
                weighted_sums[i + 1],
                self.learning_rate,
            )

        logger.debug("back_propagation: mean error derivative %.6g", reported)
        return reported

    # ------------------------------------------------------
    # Reporting
    # ------------------------------------------------------
    def error_value(
        self,
        x,
        expected,
        reduction: str | EmberReduction = EmberReduction.MEAN,
    ) -> float | np.ndarray:
        """
        The error strategy's value() over the network output, reduced.

        Pure forward pass; parameters are not touched.
        """
        x_arr = as_array(x, name="network input")
        y_arr = as_array(expected, name="expected output")
        self._check_pair(x_arr, y_arr)

        out = self.forward_pass(x_arr)
        return self.error.total(y_arr, out, reduction)

    # ------------------------------------------------------
    # Convenience
    # ------------------------------------------------------
    def __len__(self):
        return len(self._layers)

    def __getitem__(self, idx: int) -> EmberFullyConnected:
        return self._layers[idx]

    def __repr__(self):
        inner = ",\n  ".join(repr(layer) for layer in self._layers)
        return (
            f"EmberNetwork(\n  {self.input_layer!r},\n  {inner}\n"
            f")[error={self.error!r}, learning_rate={self.learning_rate}]"
        )
