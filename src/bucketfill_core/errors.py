"""Exceptions raised by the bucket packing solver."""

from __future__ import annotations

from typing import Any, List


class PackingInputError(ValueError):
    """Caller supplied buckets, items or sizes that break the solver contract."""


class ProblemFormatError(ValueError):
    """A stored problem definition could not be interpreted."""


class SearchLimitExceeded(RuntimeError):
    """The configured step or time budget ran out before the search finished.

    ``solutions`` holds the assignments accepted before the budget ran out.
    """

    def __init__(self, message: str, solutions: List[Any], steps: int) -> None:
        super().__init__(message)
        self.solutions = solutions
        self.steps = steps
