# ember/ember_error.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ember.ember_reduction import EmberReduction, reduce_values


@dataclass(frozen=True)
class EmberError:
    """
    Base class for error strategies.

    Both methods compare a true value y with an observed value x,
    elementwise, so they accept floats or arrays of matching shape:

        value(y, x)       -> error
        derivative(y, x)  -> d(error)/dx

    Back-propagation only ever consumes derivative(). value() exists
    for reporting (see total()).
    """

    def value(self, y, x):
        raise NotImplementedError(f"{self.__class__.__name__}.value not implemented.")

    def derivative(self, y, x):
        raise NotImplementedError(f"{self.__class__.__name__}.derivative not implemented.")

    def total(self, y, x, reduction: str | EmberReduction = EmberReduction.MEAN):
        """
        Per-element error values collapsed with the given reduction.
        """
        y_arr = np.asarray(y, dtype=np.float64)
        x_arr = np.asarray(x, dtype=np.float64)
        if y_arr.shape != x_arr.shape:
            raise ValueError(
                f"{self.__class__.__name__}: true shape {y_arr.shape} "
                f"does not match observed shape {x_arr.shape}"
            )
        return reduce_values(self.value(y_arr, x_arr), reduction)


@dataclass(frozen=True)
class EmberMeanSquared(EmberError):
    """
    value(y, x)      = 0.5 * (y - x)^2
    derivative(y, x) = -(y - x)

    The 0.5 cancels the 2 from the power rule, so the derivative is
    simply "observed minus true".
    """

    def value(self, y, x):
        diff = np.asarray(y, dtype=np.float64) - np.asarray(x, dtype=np.float64)
        return 0.5 * diff * diff

    def derivative(self, y, x):
        diff = np.asarray(y, dtype=np.float64) - np.asarray(x, dtype=np.float64)
        return -diff
