from __future__ import annotations

import math
from typing import Callable


class CostScaling:
    """Determines how an upgrade's cost changes with its purchased level."""

    def __init__(self, fn: Callable[[int, int], int], multiplier: float = 1.0) -> None:
        self._fn = fn
        self.multiplier = multiplier

    def compute(self, base_cost: int, level: int) -> int:
        return self._fn(base_cost, level)

    @classmethod
    def geometric(cls, multiplier: float = 1.5) -> CostScaling:
        """Cost = floor(base * multiplier^level)."""
        m = multiplier  # capture

        def _compute(base: int, level: int) -> int:
            return math.floor(base * m ** level)

        return cls(_compute, multiplier=m)

    @classmethod
    def custom(cls, fn: Callable[[int, int], int]) -> CostScaling:
        """Arbitrary integer cost function."""
        return cls(fn)
