from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from .metrics import compute_fill_metrics
from .models import MARKED, Assignment
from .signature import assignment_signature
from .units import Size


@dataclass(frozen=True)
class Solution:
    order: int
    assignment: Assignment
    signature: tuple
    metrics: dict[str, float]
    marked_bucket: Optional[int] = None


@dataclass
class SolutionCatalog:
    """Distinct solutions in discovery order, keyed by their size profile."""

    solutions: list[Solution]
    by_signature: dict[tuple, Solution]
    duplicates: int = 0
    total: int = field(default=0)

    @classmethod
    def empty(cls) -> "SolutionCatalog":
        return cls(solutions=[], by_signature={}, duplicates=0, total=0)

    def __len__(self) -> int:
        return len(self.solutions)

    def assignments(self) -> list[Assignment]:
        return [solution.assignment for solution in self.solutions]


def find_marked_bucket(assignment: Assignment, marked_placeholder: Any = MARKED) -> Optional[int]:
    for index, contents in enumerate(assignment):
        if any(item is marked_placeholder for item in contents):
            return index
    return None


def build_solution_catalog(
    assignments: Iterable[Assignment],
    capacities: Sequence[Size],
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
    eps: float = 1e-6,
) -> SolutionCatalog:
    """Wrap raw assignments and drop those repeating an earlier size profile.

    The first assignment found for each profile is kept; no reordering takes
    place.
    """
    catalog = SolutionCatalog.empty()
    for order, assignment in enumerate(assignments):
        catalog.total += 1
        signature = assignment_signature(
            assignment, size, marked_placeholder=marked_placeholder, eps=eps
        )
        if signature in catalog.by_signature:
            catalog.duplicates += 1
            continue
        solution = Solution(
            order=order,
            assignment=assignment,
            signature=signature,
            metrics=compute_fill_metrics(
                assignment,
                capacities,
                size,
                marked_sizes=marked_sizes,
                marked_placeholder=marked_placeholder,
            ),
            marked_bucket=find_marked_bucket(assignment, marked_placeholder),
        )
        catalog.solutions.append(solution)
        catalog.by_signature[signature] = solution
    return catalog
