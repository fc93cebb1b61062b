"""Exhaustive backtracking search that distributes two item streams into buckets.

The search keeps one set of :class:`~bucketfill_core.models.Bucket` objects per
pre-placement attempt and mutates them in place, undoing every placement
before trying the next bucket. Sibling branches therefore share state, which
is why the search cannot be split across threads without switching to a
copy-per-branch scheme.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import (
    Any,
    Callable,
    Generic,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from .errors import SearchLimitExceeded
from .models import MARKED, Assignment, Bucket, snapshot
from .tolerance import TolerancePolicy
from .units import Size
from .validation import validate_problem

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SearchOptions:
    """Knobs that do not change which states count as solutions.

    ``repeat_unseeded`` reruns the unseeded search once per bucket, as older
    callers expect, which repeats every solution ``len(buckets)`` times.
    ``max_steps`` and ``max_seconds`` bound the search; ``None`` means
    unbounded.
    """

    repeat_unseeded: bool = False
    max_steps: Optional[int] = None
    max_seconds: Optional[float] = None


@contextmanager
def placed(bucket: Bucket, item: Any, size: Size) -> Iterator[Bucket]:
    """Put ``item`` into ``bucket`` for the duration of the block."""

    previous = bucket.remaining
    bucket.remaining = previous - size
    bucket.contents.append(item)
    try:
        yield bucket
    finally:
        bucket.contents.pop()
        bucket.remaining = previous


class BucketFillSearch(Generic[T]):
    """Enumerate every valid distribution of ``primary``/``secondary`` items.

    Sizes are measured once up front; the streams themselves are only read
    by position, so the caller's sequences are never modified.
    """

    def __init__(
        self,
        buckets: Sequence[Size],
        primary: Sequence[T],
        secondary: Sequence[T] = (),
        *,
        size: Callable[[T], Size] = float,
        policy: TolerancePolicy | None = None,
        marked_sizes: Optional[Sequence[Size]] = None,
        marked_placeholder: Any = MARKED,
        options: SearchOptions | None = None,
    ) -> None:
        if policy is None:
            policy = TolerancePolicy()
        self.primary: Tuple[T, ...] = tuple(primary)
        self.secondary: Tuple[T, ...] = tuple(secondary)
        checked = validate_problem(
            tuple(buckets),
            self.primary,
            self.secondary,
            policy.ratio,
            marked_sizes,
            size,
        )
        self.capacities = checked.capacities
        self._primary_sizes = checked.primary_sizes
        self._secondary_sizes = checked.secondary_sizes
        self.marked_sizes = checked.marked_sizes
        self.marked_placeholder = marked_placeholder
        self.policy = policy
        self.options = options or SearchOptions()
        self.solutions: List[Assignment] = []
        self.steps = 0
        self._deadline: Optional[float] = None

    def fresh_buckets(self) -> List[Bucket[T]]:
        return [Bucket(capacity) for capacity in self.capacities]

    def seeded_starts(self) -> Iterator[Tuple[Optional[int], List[Bucket[T]]]]:
        """Yield ``(marked_bucket_index, buckets)`` for every search to run."""

        if not self.marked_sizes:
            rounds = len(self.capacities) if self.options.repeat_unseeded else 1
            for _ in range(rounds):
                yield None, self.fresh_buckets()
            return
        for index, marked_size in enumerate(self.marked_sizes):
            buckets = self.fresh_buckets()
            target = buckets[index]
            if target.capacity < marked_size:
                logger.debug(
                    "Skipping marked item in bucket %d: size %.4g exceeds capacity %.4g",
                    index,
                    marked_size,
                    target.capacity,
                )
                continue
            target.reserve(self.marked_placeholder, marked_size)
            yield index, buckets

    def run(self) -> List[Assignment]:
        self.solutions = []
        self.steps = 0
        self._deadline = None
        if self.options.max_seconds is not None:
            self._deadline = time.monotonic() + self.options.max_seconds
        for seed, buckets in self.seeded_starts():
            before = len(self.solutions)
            self._backtrack(buckets, 0, 0)
            logger.debug(
                "Seed %s produced %d solution(s)", seed, len(self.solutions) - before
            )
        logger.info(
            "Bucket search finished: %d solution(s), %d step(s), %d bucket(s)",
            len(self.solutions),
            self.steps,
            len(self.capacities),
        )
        return self.solutions

    def _tick(self) -> None:
        self.steps += 1
        max_steps = self.options.max_steps
        if max_steps is not None and self.steps > max_steps:
            raise SearchLimitExceeded(
                f"search exceeded {max_steps} steps", list(self.solutions), self.steps
            )
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchLimitExceeded(
                f"search exceeded {self.options.max_seconds} seconds",
                list(self.solutions),
                self.steps,
            )

    def _pending(self, p: int, s: int) -> Optional[Tuple[T, Size, int, int]]:
        """Head item, its size and the stream positions after consuming it."""

        if p < len(self.primary):
            return self.primary[p], self._primary_sizes[p], p + 1, s
        if s < len(self.secondary):
            return self.secondary[s], self._secondary_sizes[s], p, s + 1
        return None

    def is_solution(self, buckets: List[Bucket[T]], p: int) -> bool:
        if p < len(self.primary):
            return False
        if any(bucket.is_empty for bucket in buckets):
            return False
        return all(
            self.policy.accepts(bucket.remaining, bucket.capacity) for bucket in buckets
        )

    def _backtrack(self, buckets: List[Bucket[T]], p: int, s: int) -> None:
        self._tick()
        pending = self._pending(p, s)
        if pending is None or not any(b.can_fit(pending[1]) for b in buckets):
            if self.is_solution(buckets, p):
                self.solutions.append(snapshot(buckets))
            return

        item, item_size, next_p, next_s = pending
        for bucket in buckets:
            if not bucket.can_fit(item_size):
                continue
            with placed(bucket, item, item_size):
                self._backtrack(buckets, next_p, next_s)


def solve(
    buckets: Sequence[Size],
    primary: Sequence[T],
    secondary: Sequence[T],
    tol_ratio: float,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
    size: Callable[[T], Size] = float,
    *,
    options: SearchOptions | None = None,
    policy: TolerancePolicy | None = None,
) -> List[Assignment]:
    """Return every assignment of the items to ``buckets`` that passes validity.

    Each assignment holds one tuple of items per bucket. ``policy`` only
    selects how the tolerance is interpreted; its ratio is replaced by
    ``tol_ratio``.

    Examples
    --------
    >>> solve([5, 5], [3, 4], [], 1.0)
    [((3,), (4,)), ((4,), (3,))]
    """
    if policy is None:
        policy = TolerancePolicy(ratio=tol_ratio)
    else:
        policy = replace(policy, ratio=tol_ratio)
    search = BucketFillSearch(
        buckets,
        primary,
        secondary,
        size=size,
        policy=policy,
        marked_sizes=marked_sizes,
        marked_placeholder=marked_placeholder,
        options=options,
    )
    return search.run()
