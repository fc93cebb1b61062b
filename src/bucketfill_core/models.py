from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Tuple, TypeVar

from .units import Size

T = TypeVar("T")

# One tuple of items per bucket, in bucket order.
Assignment = Tuple[Tuple[T, ...], ...]


class MarkedPlaceholder:
    """Sentinel standing in for a pre-placed marked item."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<marked>"


MARKED = MarkedPlaceholder()


@dataclass
class Bucket(Generic[T]):
    """Capacity-limited container filled during the search."""

    capacity: Size
    remaining: Size = field(init=False)
    contents: List[T] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.remaining = self.capacity

    def can_fit(self, size: Size) -> bool:
        return self.remaining >= size

    def reserve(self, item: T, size: Size) -> None:
        self.remaining -= size
        self.contents.append(item)

    @property
    def is_empty(self) -> bool:
        return not self.contents


@dataclass(eq=False)
class SizedItem:
    """Labelled item with a fixed size, compared by identity."""

    label: str
    size: Size

    def __repr__(self) -> str:
        return f"SizedItem({self.label!r}, {self.size!r})"


def size_of(item: SizedItem) -> Size:
    return item.size


def snapshot(buckets: List[Bucket[T]]) -> Assignment:
    return tuple(tuple(bucket.contents) for bucket in buckets)
