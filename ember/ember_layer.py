# ember/ember_layer.py
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmberLayer(Protocol):
    """
    Anything that can sit in front of a fully-connected layer.

    The only thing a layer ever asks of its predecessor is how wide
    its output is, and only once: when it sizes its weight matrix.
    """

    def size(self) -> int:
        ...


class EmberInputLayer:
    """
    Placeholder for the network input ("layer 0").

    No parameters, no computation. It exists so the first real layer
    can size its weight matrix the same way every later layer does.
    """

    def __init__(self, size: int, name: str | None = None):
        if int(size) <= 0:
            raise ValueError(f"EmberInputLayer: size must be positive, got {size}")
        self._size = int(size)
        self.name = name or "input"

    def size(self) -> int:
        return self._size

    def __repr__(self):
        return f"EmberInputLayer(size={self._size})"
