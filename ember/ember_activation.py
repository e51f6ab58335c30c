# ember/ember_activation.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class EmberActivation:
    """
    An activation strategy: a pair of elementwise functions.

        value(z)       -> a
        derivative(z)  -> da/dz

    Both are written with NumPy ufuncs, so they take a float, a vector
    or a whole batch matrix and return the same shape.

    Strategies hold no state (LeakyReLU's coefficient is fixed at
    construction), so one instance can be shared by every layer.
    """

    def value(self, x):
        raise NotImplementedError(f"{self.__class__.__name__}.value not implemented.")

    def derivative(self, x):
        raise NotImplementedError(f"{self.__class__.__name__}.derivative not implemented.")

    def __call__(self, x):
        return self.value(x)


@dataclass(frozen=True)
class EmberSigmoid(EmberActivation):
    """
    s(x) = 1 / (1 + e^-x)
    s'(x) = s(x) * (1 - s(x))
    """

    def value(self, x):
        return 1.0 / (1.0 + np.exp(-np.asarray(x, dtype=np.float64)))

    def derivative(self, x):
        fx = self.value(x)
        return fx * (1.0 - fx)


@dataclass(frozen=True)
class EmberReLU(EmberActivation):
    """
    max(0, x)

    The derivative at exactly 0 is taken as 1 (only x < 0 is "off").
    """

    def value(self, x):
        return np.maximum(0.0, np.asarray(x, dtype=np.float64))

    def derivative(self, x):
        x_arr = np.asarray(x, dtype=np.float64)
        return np.where(x_arr < 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class EmberLeakyReLU(EmberActivation):
    """
    x            for x >= 0
    coefficient * x  for x < 0
    """

    coefficient: float = 0.01

    def value(self, x):
        x_arr = np.asarray(x, dtype=np.float64)
        return np.where(x_arr < 0.0, self.coefficient * x_arr, x_arr)

    def derivative(self, x):
        x_arr = np.asarray(x, dtype=np.float64)
        return np.where(x_arr < 0.0, self.coefficient, 1.0)


@dataclass(frozen=True)
class EmberTanH(EmberActivation):

    def value(self, x):
        return np.tanh(np.asarray(x, dtype=np.float64))

    def derivative(self, x):
        fx = self.value(x)
        return 1.0 - fx * fx


@dataclass(frozen=True)
class EmberSinusoid(EmberActivation):

    def value(self, x):
        return np.sin(np.asarray(x, dtype=np.float64))

    def derivative(self, x):
        return np.cos(np.asarray(x, dtype=np.float64))
