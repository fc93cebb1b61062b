from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from .errors import ProblemFormatError
from .models import MARKED, SizedItem, size_of
from .settings import default_options, default_policy
from .solutions import SolutionCatalog, build_solution_catalog
from .solver import solve
from .units import parse_float

logger = logging.getLogger(__name__)

MARKED_LABEL = "<marked>"


@dataclass
class Problem:
    name: str
    buckets: List[float]
    primary: List[SizedItem]
    secondary: List[SizedItem] = field(default_factory=list)
    tol_ratio: Optional[float] = None
    marked_sizes: List[float] = field(default_factory=list)


def get_problem_dir() -> str:
    env_dir = os.getenv("BUCKETFILL_PROBLEM_DIR")
    if env_dir:
        return str(Path(env_dir).expanduser().resolve())
    argv_path = Path(sys.argv[0]) if sys.argv[0] else None
    if argv_path and argv_path.is_file():
        base_dir = argv_path.parent
    else:
        base_dir = Path.cwd()
    default_dir = base_dir / "data" / "problems"
    return str(default_dir.resolve())


def ensure_problem_dir() -> str:
    path = Path(get_problem_dir())
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def _problem_path(name: str) -> str:
    return str(Path(get_problem_dir()) / f"{name}.json")


def _solutions_path(name: str) -> str:
    return str(Path(get_problem_dir()) / f"{name}.solutions.json")


def list_problems() -> list[str]:
    """Return available problem names."""
    path = ensure_problem_dir()
    files = [
        f[:-5]
        for f in os.listdir(path)
        if f.endswith(".json") and not f.endswith(".solutions.json")
    ]
    files.sort()
    return files


def _number(value: Any, where: str) -> float:
    try:
        if isinstance(value, str):
            return parse_float(value)
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ProblemFormatError(f"{where}: expected a number, got {value!r}") from exc


def _items(raw: Any, stream: str) -> List[SizedItem]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ProblemFormatError(f"{stream}: expected a list")
    items: List[SizedItem] = []
    for index, entry in enumerate(raw):
        where = f"{stream}[{index}]"
        if isinstance(entry, dict):
            if "size" not in entry:
                raise ProblemFormatError(f"{where}: missing 'size'")
            label = str(entry.get("label", f"{stream}-{index + 1}"))
            items.append(SizedItem(label, _number(entry["size"], where)))
        else:
            items.append(SizedItem(f"{stream}-{index + 1}", _number(entry, where)))
    return items


def problem_from_dict(data: Any, name: str = "") -> Problem:
    if not isinstance(data, dict):
        raise ProblemFormatError("problem must be a JSON object")
    buckets = data.get("buckets")
    if not isinstance(buckets, list):
        raise ProblemFormatError("buckets: expected a list of capacities")
    marked = data.get("markedSizes") or []
    if not isinstance(marked, list):
        raise ProblemFormatError("markedSizes: expected a list")
    tol_ratio = data.get("tolRatio")
    return Problem(
        name=str(data.get("name", name)),
        buckets=[_number(value, f"buckets[{i}]") for i, value in enumerate(buckets)],
        primary=_items(data.get("primary"), "primary"),
        secondary=_items(data.get("secondary"), "secondary"),
        tol_ratio=None if tol_ratio is None else _number(tol_ratio, "tolRatio"),
        marked_sizes=[_number(value, f"markedSizes[{i}]") for i, value in enumerate(marked)],
    )


def problem_to_dict(problem: Problem) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": problem.name,
        "buckets": list(problem.buckets),
        "primary": [{"label": item.label, "size": item.size} for item in problem.primary],
        "secondary": [
            {"label": item.label, "size": item.size} for item in problem.secondary
        ],
        "markedSizes": list(problem.marked_sizes),
    }
    if problem.tol_ratio is not None:
        data["tolRatio"] = problem.tol_ratio
    return data


def load_problem(name: str) -> Problem:
    path = _problem_path(name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ProblemFormatError(f"{path}: invalid JSON ({exc})") from exc
    return problem_from_dict(data, name=name)


def save_problem(name: str, problem: Problem) -> None:
    ensure_problem_dir()
    with open(_problem_path(name), "w", encoding="utf-8") as f:
        json.dump(problem_to_dict(problem), f, ensure_ascii=False, indent=2)


def solve_problem(problem: Problem) -> SolutionCatalog:
    """Run the search for ``problem`` using the configured defaults."""

    policy = default_policy(problem.tol_ratio)
    assignments = solve(
        problem.buckets,
        problem.primary,
        problem.secondary,
        policy.ratio,
        problem.marked_sizes,
        MARKED,
        size_of,
        options=default_options(),
        policy=policy,
    )
    catalog = build_solution_catalog(
        assignments,
        problem.buckets,
        size_of,
        marked_sizes=problem.marked_sizes,
    )
    logger.info(
        "Problem %r: %d distinct solution(s) out of %d",
        problem.name,
        len(catalog),
        catalog.total,
    )
    return catalog


def _label(item: Any) -> str:
    if item is MARKED:
        return MARKED_LABEL
    return getattr(item, "label", str(item))


def solutions_to_payload(problem: Problem, catalog: SolutionCatalog) -> dict[str, Any]:
    return {
        "name": problem.name,
        "buckets": list(problem.buckets),
        "solutions": [
            {
                "order": solution.order,
                "markedBucket": solution.marked_bucket,
                "buckets": [
                    [_label(item) for item in contents]
                    for contents in solution.assignment
                ],
                "metrics": solution.metrics,
            }
            for solution in catalog.solutions
        ],
    }


def save_solutions(name: str, problem: Problem, catalog: SolutionCatalog) -> str:
    ensure_problem_dir()
    path = _solutions_path(name)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(solutions_to_payload(problem, catalog), f, ensure_ascii=False, indent=2)
    return path


__all__ = [
    "Problem",
    "get_problem_dir",
    "ensure_problem_dir",
    "list_problems",
    "problem_from_dict",
    "problem_to_dict",
    "load_problem",
    "save_problem",
    "solve_problem",
    "solutions_to_payload",
    "save_solutions",
]
