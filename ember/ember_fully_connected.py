# ember/ember_fully_connected.py
from __future__ import annotations

import logging

import numpy as np

from ember.ember_activation import EmberActivation
from ember.ember_functional import (
    EMBER_DTYPE,
    as_array,
    check_same_layout,
    check_width,
    elementwise,
    weighted_sum,
)
from ember.ember_initializer import EmberInit, generate_bias, generate_weights
from ember.ember_layer import EmberLayer

logger = logging.getLogger(__name__)


class EmberFullyConnected:
    """
    A layer with an edge from every unit of the previous layer to
    every unit of this one.

    Shapes (conceptually):
        Input features:  D = previous_layer.size()
        Output units:    C = size

    Weights and biases live in ONE matrix, M, of shape (D + 1, C):

        M[0:D, :]  weight block, M[j, i] connects input j to unit i
        M[D, :]    bias row, one bias per output unit

    so the forward transform is a single pre-multiplication of the
    input with a 1 appended:

        z = [x, 1] @ M
        a = activation(z)

    Forward:
        x: (D,)    -> z, a: (C,)
        x: (N, D)  -> z, a: (N, C)

    Backward (back_prop):
        dc_da: dC/da for this layer, same shape as a
        a0:    activation of the previous layer, same shape as x
        z:     this layer's weighted sum, same shape as a
        Produces dC/da0 (same shape as a0) and applies one gradient
        descent step to M in place.
    """

    def __init__(
        self,
        size: int,
        previous_layer: EmberLayer,
        activation: EmberActivation,
        weights=None,
        weight_init: str | EmberInit = EmberInit.XAVIER,
        bias_init: str | EmberInit = EmberInit.ZERO,
        rng=None,
        name: str | None = None,
    ):
        if not isinstance(activation, EmberActivation):
            raise TypeError(
                f"activation must be an EmberActivation, got {type(activation).__name__}"
            )

        self._size = int(size)
        self.previous_size = int(previous_layer.size())
        self.activation = activation
        self.name = name or f"EmberFullyConnected({self.previous_size}->{self._size})"

        if self._size <= 0:
            raise ValueError(f"{self.name}: size must be positive, got {size}")
        if self.previous_size <= 0:
            raise ValueError(
                f"{self.name}: previous layer size must be positive, got {self.previous_size}"
            )

        expected_shape = (self.previous_size + 1, self._size)

        if weights is not None:
            # Literal weights + bias, copied so the caller keeps ownership of theirs.
            m = np.array(weights, dtype=EMBER_DTYPE, copy=True)
            if m.shape != expected_shape:
                raise ValueError(
                    f"{self.name}: weight matrix must have shape {expected_shape} "
                    f"(previous size + 1 rows, size columns), got {m.shape}"
                )
            self._weights = m
        else:
            # The initializer speaks (fan_out, fan_in); our block is (fan_in, fan_out).
            w = generate_weights(self.previous_size, self._size, weight_init, rng=rng)
            b = generate_bias(self.previous_size, self._size, bias_init, rng=rng)

            self._weights = np.zeros(expected_shape, dtype=EMBER_DTYPE)
            self._weights[: self.previous_size, :] = w.T
            self._weights[self.previous_size, :] = b

        logger.debug("built %s with matrix %s", self.name, self._weights.shape)

    # ------------------------------------------------------
    # Introspection
    # ------------------------------------------------------
    def size(self) -> int:
        return self._size

    @property
    def weights(self) -> np.ndarray:
        """
        Copy of the combined (D + 1, C) weight + bias matrix.
        """
        return self._weights.copy()

    @property
    def weight_block(self) -> np.ndarray:
        """
        Copy of the (D, C) weights without the bias row.
        """
        return self._weights[:-1, :].copy()

    @property
    def bias(self) -> np.ndarray:
        """
        Copy of the (C,) bias row.
        """
        return self._weights[-1, :].copy()

    # ------------------------------------------------------
    # Forward pass
    # ------------------------------------------------------
    def forward_weighted_sum(self, x) -> np.ndarray:
        """
        x: (D,) or (N, D)
        returns: z, (C,) or (N, C)
        """
        x_arr = as_array(x, name=f"{self.name} input")
        check_width(x_arr, self.previous_size, f"{self.name} input")
        return weighted_sum(x_arr, self._weights)

    def forward_activation(self, z) -> np.ndarray:
        """
        z: (C,) or (N, C)
        returns: a, same shape
        """
        z_arr = as_array(z, name=f"{self.name} z")
        check_width(z_arr, self._size, f"{self.name} z")
        return elementwise(self.activation.value, z_arr)

    def forward(self, x) -> np.ndarray:
        """
        Convenience: activation(weighted_sum(x)).
        """
        return self.forward_activation(self.forward_weighted_sum(x))

    def __call__(self, x) -> np.ndarray:
        return self.forward(x)

    # ------------------------------------------------------
    # Backward pass
    # ------------------------------------------------------
    def back_prop(self, dc_da, a0, z, alpha: float) -> np.ndarray:
        """
        One gradient descent step on this layer.

        dc_da: (C,) or (N, C)   derivative of cost w.r.t. this layer's activation
        a0:    (D,) or (N, D)   previous layer's activation
        z:     (C,) or (N, C)   this layer's weighted sum
        alpha: learning rate

        Returns:
            dc_da0, (D,) or (N, D): derivative of cost w.r.t. a0

        1-D arguments take the single-example path, 2-D arguments the
        batched path, where gradients are AVERAGED over the batch.
        """
        dc_da = as_array(dc_da, name=f"{self.name} dc_da")
        a0 = as_array(a0, name=f"{self.name} a0")
        z = as_array(z, name=f"{self.name} z")

        check_width(dc_da, self._size, f"{self.name} dc_da")
        check_width(z, self._size, f"{self.name} z")
        check_width(a0, self.previous_size, f"{self.name} a0")
        check_same_layout(dc_da, z, "dc_da", "z")
        check_same_layout(dc_da, a0, "dc_da", "a0")

        if dc_da.ndim == 1:
            return self._back_prop_single(dc_da, a0, z, float(alpha))

        return self._back_prop_batch(dc_da, a0, z, float(alpha))

    def _back_prop_single(
        self,
        dc_da: np.ndarray,
        a0: np.ndarray,
        z: np.ndarray,
        alpha: float,
    ) -> np.ndarray:
        # da/dz, then the local gradient at the weighted sum
        da_dz = elementwise(self.activation.derivative, z)   # (C,)
        dc_dz = dc_da * da_dz                                 # (C,)

        # dC/dM:
        #   weight block [j, i] = a0[j] * dc_dz[i]   (outer product)
        #   bias row     [i]    = dc_dz[i]           (bias input is the constant 1)
        grad = np.zeros_like(self._weights)
        grad[:-1, :] = np.outer(a0, dc_dz)
        grad[-1, :] = dc_dz

        grad *= alpha

        # dC/da0 uses the weights as they were for this forward pass,
        # so it is computed before the update. Bias row excluded.
        dc_da0 = self._weights[:-1, :] @ dc_dz                # (D,)

        # Descent, not ascent.
        self._weights -= grad

        return dc_da0

    def _back_prop_batch(
        self,
        dc_da: np.ndarray,
        a0: np.ndarray,
        z: np.ndarray,
        alpha: float,
    ) -> np.ndarray:
        batch_size = dc_da.shape[0]
        if batch_size == 0:
            raise ValueError(f"{self.name}: back_prop got an empty batch")

        da_dz = elementwise(self.activation.derivative, z)   # (N, C)
        dc_dz = dc_da * da_dz                                 # (N, C)

        # Average over the batch:
        #   weight block = a0^T @ dc_dz / N      (D, C)
        #   bias row     = mean_n dc_dz[n, :]    (C,)
        grad = np.zeros_like(self._weights)
        grad[:-1, :] = (a0.T @ dc_dz) / float(batch_size)
        grad[-1, :] = dc_dz.mean(axis=0)

        grad *= alpha

        # Per-example dC/da0, bias row excluded.
        dc_da0 = dc_dz @ self._weights[:-1, :].T              # (N, D)

        self._weights -= grad

        return dc_da0

    def __repr__(self):
        return f"{self.name}(M={self._weights.shape}, activation={self.activation!r})"
