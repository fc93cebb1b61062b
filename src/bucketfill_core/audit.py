from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .metrics import bucket_loads
from .models import MARKED, Assignment
from .units import Size


@dataclass(frozen=True)
class AuditPolicy:
    eps: float = 1e-9
    allow_empty_buckets: bool = False


DEFAULT_AUDIT_POLICY = AuditPolicy()


def primary_counts(assignment: Assignment, primary: Sequence[Any]) -> list[int]:
    """How many times each primary item (by identity) appears in ``assignment``."""

    positions: dict[int, list[int]] = {}
    for index, item in enumerate(primary):
        positions.setdefault(id(item), []).append(index)
    counts = [0] * len(primary)
    seen: dict[int, int] = {}
    for contents in assignment:
        for item in contents:
            slots = positions.get(id(item))
            if not slots:
                continue
            # Repeated references to one object fill its slots in order.
            hit = seen.get(id(item), 0)
            counts[slots[min(hit, len(slots) - 1)]] += 1
            seen[id(item)] = hit + 1
    return counts


def assignment_flags(
    assignment: Assignment,
    capacities: Sequence[Size],
    primary: Sequence[Any],
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
    policy: AuditPolicy | None = None,
) -> set[str]:
    if policy is None:
        policy = DEFAULT_AUDIT_POLICY
    flags: set[str] = set()

    if len(assignment) != len(capacities):
        flags.add("bucket_count_mismatch")
        return flags

    loads = bucket_loads(
        assignment,
        size,
        marked_sizes=marked_sizes,
        marked_placeholder=marked_placeholder,
    )
    if any(load > capacity + policy.eps for load, capacity in zip(loads, capacities)):
        flags.add("over_capacity")

    if not policy.allow_empty_buckets and any(not contents for contents in assignment):
        flags.add("empty_bucket")

    counts = primary_counts(assignment, primary)
    if any(count == 0 for count in counts):
        flags.add("primary_missing")
    if any(count > 1 for count in counts):
        flags.add("primary_duplicated")

    return flags


def is_consistent(
    assignment: Assignment,
    capacities: Sequence[Size],
    primary: Sequence[Any],
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
    policy: AuditPolicy | None = None,
) -> bool:
    return not assignment_flags(
        assignment,
        capacities,
        primary,
        size,
        marked_sizes=marked_sizes,
        marked_placeholder=marked_placeholder,
        policy=policy,
    )
