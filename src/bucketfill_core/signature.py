from __future__ import annotations

from typing import Any, Callable, Tuple

from .models import MARKED, Assignment
from .units import Size

BucketProfile = Tuple[int, Tuple[float, ...]]


def canonicalize(
    assignment: Assignment,
    size: Callable[[Any], Size],
    *,
    marked_placeholder: Any = MARKED,
    eps: float = 1e-6,
) -> list[BucketProfile]:
    """Reduce each bucket to its marked count and its sorted, rounded sizes."""

    profiles: list[BucketProfile] = []
    for contents in assignment:
        marked = 0
        sizes = []
        for item in contents:
            if item is marked_placeholder:
                marked += 1
                continue
            sizes.append(round(size(item) / eps) * eps)
        profiles.append((marked, tuple(sorted(sizes))))
    return profiles


def assignment_signature(
    assignment: Assignment,
    size: Callable[[Any], Size],
    *,
    marked_placeholder: Any = MARKED,
    eps: float = 1e-6,
) -> tuple:
    return tuple(
        canonicalize(assignment, size, marked_placeholder=marked_placeholder, eps=eps)
    )
