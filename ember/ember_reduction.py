# ember/ember_reduction.py
from __future__ import annotations
from enum import Enum

import numpy as np


class EmberReduction(str, Enum):
    """
    How a block of per-element error values collapses for reporting.

    - NONE  => keep the per-element values, same shape as the output
    - MEAN  => a single scalar (average over every element)
    - SUM   => a single scalar (total over every element)
    """

    NONE = "none"
    MEAN = "mean"
    SUM = "sum"

    @staticmethod
    def from_value(val: str | EmberReduction) -> EmberReduction:
        """
        Accepts either an EmberReduction member or one of
        "none" / "mean" / "sum" (any case).
        """
        if isinstance(val, EmberReduction):
            return val

        if isinstance(val, str):
            val_lower = val.lower()
            for r in EmberReduction:
                if r.value == val_lower:
                    return r

        raise ValueError(
            f"Invalid reduction: {val!r}. "
            f"Expected one of: {[r.value for r in EmberReduction]}"
        )


def reduce_values(values: np.ndarray, reduction: str | EmberReduction) -> float | np.ndarray:
    """
    Apply a reduction to an array of per-element values.
    """
    values = np.asarray(values, dtype=np.float64)
    reduction = EmberReduction.from_value(reduction)

    match reduction:
        case EmberReduction.MEAN:
            if values.size == 0:
                return 0.0
            return float(values.mean())

        case EmberReduction.SUM:
            return float(values.sum())

        case EmberReduction.NONE:
            return values.copy()

        case _:
            raise RuntimeError(f"Unknown reduction: {reduction}")
