from __future__ import annotations

from dataclasses import dataclass

from .units import Size


@dataclass(frozen=True)
class TolerancePolicy:
    """Decide how much unused capacity a bucket may keep in a solution.

    By default a bucket is rejected when its leftover exceeds
    ``capacity * ratio``, so ``ratio=1.0`` accepts any leftover and
    ``ratio=0.0`` only accepts full buckets. ``inverted=True`` uses
    ``capacity * (1 - ratio)`` instead, matching older tooling that
    interpreted the ratio as the required fill fraction.
    """

    ratio: float = 1.0
    inverted: bool = False
    eps: float = 1e-9

    def threshold(self, capacity: Size) -> float:
        factor = 1.0 - self.ratio if self.inverted else self.ratio
        return capacity * factor

    def accepts(self, remaining: Size, capacity: Size) -> bool:
        return remaining <= self.threshold(capacity) + self.eps
