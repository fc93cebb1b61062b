from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from .models import MARKED, Assignment
from .units import Size


def bucket_loads(
    assignment: Assignment,
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
) -> np.ndarray:
    """Total size placed in each bucket, marked items included."""

    loads = np.zeros(len(assignment), dtype=float)
    for index, contents in enumerate(assignment):
        for item in contents:
            if item is marked_placeholder:
                loads[index] += marked_sizes[index] if marked_sizes else 0.0
            else:
                loads[index] += size(item)
    return loads


def compute_fill_metrics(
    assignment: Assignment,
    capacities: Sequence[Size],
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
) -> Dict[str, float]:
    if not assignment:
        return {
            "items": 0.0,
            "used": 0.0,
            "waste": 0.0,
            "fill_ratio": 0.0,
            "min_fill": 0.0,
            "max_waste": 0.0,
        }
    caps = np.asarray(capacities, dtype=float)
    loads = bucket_loads(
        assignment,
        size,
        marked_sizes=marked_sizes,
        marked_placeholder=marked_placeholder,
    )
    waste = np.clip(caps - loads, 0.0, None)
    with np.errstate(divide="ignore", invalid="ignore"):
        fills = np.where(caps > 0, loads / caps, 1.0)
    total_capacity = float(caps.sum())
    return {
        "items": float(sum(len(contents) for contents in assignment)),
        "used": float(loads.sum()),
        "waste": float(waste.sum()),
        "fill_ratio": float(loads.sum() / total_capacity) if total_capacity > 0 else 1.0,
        "min_fill": float(fills.min()),
        "max_waste": float(waste.max()),
    }
