"""Exhaustive bucket packing for two item streams."""

from .errors import PackingInputError, ProblemFormatError, SearchLimitExceeded
from .models import MARKED, Bucket, MarkedPlaceholder, SizedItem, size_of
from .solutions import Solution, SolutionCatalog, build_solution_catalog
from .solver import BucketFillSearch, SearchOptions, solve
from .tolerance import TolerancePolicy

__all__ = [
    "Bucket",
    "BucketFillSearch",
    "MARKED",
    "MarkedPlaceholder",
    "PackingInputError",
    "ProblemFormatError",
    "SearchLimitExceeded",
    "SearchOptions",
    "SizedItem",
    "Solution",
    "SolutionCatalog",
    "TolerancePolicy",
    "build_solution_catalog",
    "size_of",
    "solve",
]
