# ember/ember_functional.py
from __future__ import annotations

from typing import Callable

import numpy as np

# Every array that flows through the engine is float64.
EMBER_DTYPE = np.float64


def as_array(x, name: str = "input") -> np.ndarray:
    """
    Copy x into a fresh float64 array that is 1-D (single example)
    or 2-D (one example per row).

    The copy matters: callers may keep mutating their own arrays,
    and layer parameters are the only state we hold on to.
    """
    arr = np.array(x, dtype=EMBER_DTYPE, copy=True)
    if arr.ndim not in (1, 2):
        raise ValueError(
            f"{name}: expected a 1-D vector or a 2-D batch (N, D), got shape {arr.shape}"
        )
    return arr


def check_width(arr: np.ndarray, width: int, name: str) -> None:
    """
    The last axis of arr must be exactly `width` wide.
    """
    if arr.shape[-1] != width:
        raise ValueError(
            f"{name}: expected last dimension {width}, got {arr.shape[-1]} "
            f"(shape {arr.shape})"
        )


def check_same_layout(a: np.ndarray, b: np.ndarray, name_a: str, name_b: str) -> None:
    """
    Both arrays must be single examples, or both batches of the same size.
    """
    if a.ndim != b.ndim:
        raise ValueError(
            f"{name_a} is {a.ndim}-D but {name_b} is {b.ndim}-D; "
            f"single-example and batched arguments cannot be mixed"
        )
    if a.ndim == 2 and a.shape[0] != b.shape[0]:
        raise ValueError(
            f"{name_a} has batch size {a.shape[0]} but {name_b} has {b.shape[0]}"
        )


def append_ones(x: np.ndarray) -> np.ndarray:
    """
    Augment an input with the constant bias input.

        x: (D,)    -> (D + 1,)    with a trailing 1
        x: (N, D)  -> (N, D + 1)  with a trailing column of ones
    """
    if x.ndim == 1:
        return np.append(x, 1.0)

    ones = np.ones((x.shape[0], 1), dtype=x.dtype)
    return np.hstack([x, ones])


def weighted_sum(x: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Pure function: z = [x, 1] @ M

    x:       (D,) or (N, D)
    weights: (D + 1, C) -- weight rows followed by one bias row
    returns: (C,) or (N, C)

    For the single example this is the same as

        z[i] = sum_j x[j] * M[j, i] + M[D, i]

    i.e. column i holds everything neuron i needs.
    """
    return append_ones(x) @ weights


def elementwise(f: Callable[[np.ndarray], np.ndarray], m: np.ndarray) -> np.ndarray:
    """
    Apply f to every entry of m and hand back a new float64 array
    of the same shape. m itself is never touched.
    """
    out = np.asarray(f(m), dtype=EMBER_DTYPE)
    if out.shape != m.shape:
        out = np.broadcast_to(out, m.shape).copy()
    return out
