from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, TypeVar

from .errors import PackingInputError
from .units import Size, is_positive_size

T = TypeVar("T")


@dataclass(frozen=True)
class CheckedProblem:
    """Inputs after the contract checks, with every size evaluated once."""

    capacities: List[Size]
    primary_sizes: List[Size]
    secondary_sizes: List[Size]
    marked_sizes: List[Size]


def _coerce_real(value, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise PackingInputError(f"{what} is not a number: {value!r}") from exc


def measure_stream(
    items: Sequence[T], size: Callable[[T], Size], stream: str
) -> List[Size]:
    sizes: List[Size] = []
    for index, item in enumerate(items):
        try:
            raw = size(item)
        except (TypeError, ValueError) as exc:
            raise PackingInputError(
                f"{stream}[{index}]: size function failed for {item!r}: {exc}"
            ) from exc
        value = _coerce_real(raw, f"{stream}[{index}] size")
        if not is_positive_size(value):
            raise PackingInputError(
                f"{stream}[{index}]: size must be a positive finite number, got {raw!r}"
            )
        sizes.append(value)
    return sizes


def validate_problem(
    buckets: Sequence[Size],
    primary: Sequence[T],
    secondary: Sequence[T],
    tol_ratio: float,
    marked_sizes: Optional[Sequence[Size]],
    size: Callable[[T], Size],
) -> CheckedProblem:
    """Check the solver preconditions and fail before any search starts."""

    if not buckets:
        raise PackingInputError("at least one bucket is required")
    capacities: List[Size] = []
    for index, raw in enumerate(buckets):
        value = _coerce_real(raw, f"buckets[{index}]")
        if not math.isfinite(value) or value < 0:
            raise PackingInputError(
                f"buckets[{index}]: capacity must be a finite number >= 0, got {raw!r}"
            )
        capacities.append(value)

    ratio = _coerce_real(tol_ratio, "tol_ratio")
    if not 0.0 <= ratio <= 1.0:
        raise PackingInputError(f"tol_ratio must lie in [0, 1], got {tol_ratio!r}")

    marked: List[Size] = []
    if marked_sizes is not None and len(marked_sizes):
        if len(marked_sizes) != len(capacities):
            raise PackingInputError(
                f"marked_sizes has {len(marked_sizes)} entries for "
                f"{len(capacities)} buckets"
            )
        for index, raw in enumerate(marked_sizes):
            value = _coerce_real(raw, f"marked_sizes[{index}]")
            if not is_positive_size(value):
                raise PackingInputError(
                    f"marked_sizes[{index}]: must be a positive finite number, got {raw!r}"
                )
            marked.append(value)

    return CheckedProblem(
        capacities=capacities,
        primary_sizes=measure_stream(primary, size, "primary"),
        secondary_sizes=measure_stream(secondary, size, "secondary"),
        marked_sizes=marked,
    )
