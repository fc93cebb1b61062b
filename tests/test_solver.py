import itertools

import pytest

from bucketfill_core import (
    MARKED,
    BucketFillSearch,
    SearchLimitExceeded,
    SearchOptions,
    SizedItem,
    TolerancePolicy,
    size_of,
    solve,
)
from bucketfill_core import solver
from bucketfill_core.audit import is_consistent
from bucketfill_core.models import Bucket


def _items(*sizes):
    return [SizedItem(f"i{n}", s) for n, s in enumerate(sizes)]


def _sizes(assignment):
    return tuple(tuple(size_of(item) for item in bucket) for bucket in assignment)


def test_one_item_per_bucket_when_both_cannot_share():
    a, b = _items(3, 3)
    result = solve([5, 5], [a, b], [], 1.0, size=size_of)
    assert result == [((a,), (b,)), ((b,), (a,))]
    assert {_sizes(r) for r in result} == {((3,), (3,))}


def test_item_larger_than_every_bucket_gives_no_solution():
    assert solve([4], [5], [], 1.0) == []


def test_unfilled_bucket_rejects_state():
    assert solve([10, 10], [], [4], 1.0) == []


def test_secondary_only_fills_single_bucket():
    # the secondary item fits, so it is placed even with primary empty from the start
    assert solve([10], [], [4], 1.0) == [((4,),)]


def test_secondary_only_rejected_by_inverted_tolerance():
    policy = TolerancePolicy(inverted=True)
    assert solve([10], [], [4], 1.0, policy=policy) == []


def test_enumerates_every_assignment():
    a, b = _items(3, 2)
    c = SizedItem("c", 1)
    result = solve([6, 4], [a, b], [c], 1.0, size=size_of)
    assert result == [
        ((a, b), (c,)),
        ((a, c), (b,)),
        ((a,), (b, c)),
        ((b, c), (a,)),
        ((b,), (a, c)),
    ]


def test_secondary_stops_at_first_item_that_does_not_fit():
    (a,) = _items(3)
    c = SizedItem("c", 4)
    d = SizedItem("d", 1)
    result = solve([5], [a], [c, d], 1.0, size=size_of)
    assert result == [((a,),)]


def test_primary_is_placed_before_secondary():
    a = SizedItem("a", 2)
    c = SizedItem("c", 2)
    result = solve([2, 2], [a], [c], 1.0, size=size_of)
    assert result == [((a,), (c,)), ((c,), (a,))]


@pytest.mark.parametrize("ratio, expected", [(0.5, 1), (0.3, 0)])
def test_tolerance_ratio_limits_leftover(ratio, expected):
    assert len(solve([10], [6], [], ratio)) == expected


def test_zero_ratio_requires_full_buckets():
    assert solve([5, 5], [2, 3, 5], [], 0.0) == [((2, 3), (5,)), ((5,), (2, 3))]


def test_marked_item_seeded_once_per_bucket():
    (a,) = _items(3)
    result = solve([5, 5], [a], [], 1.0, [2, 2], MARKED, size_of)
    assert result == [((MARKED,), (a,)), ((a,), (MARKED,))]


def test_marked_item_skipped_when_bucket_too_small():
    (a,) = _items(1)
    result = solve([5, 1], [a], [], 1.0, [2, 2], MARKED, size_of)
    assert result == [((MARKED,), (a,))]


def test_custom_placeholder_is_used():
    slot = object()
    result = solve([4, 4], [4], [], 1.0, [4, 4], slot)
    assert result == [((slot,), (4,)), ((4,), (slot,))]


def test_marked_size_reduces_remaining_capacity():
    # 3 + marked 3 > 5, so the item must go to the other bucket
    result = solve([5, 5], [3], [], 1.0, [3, 3], MARKED)
    assert result == [((MARKED,), (3,)), ((3,), (MARKED,))]


def test_unseeded_search_runs_once_by_default():
    a, b = _items(3, 3)
    assert len(solve([5, 5], [a, b], [], 1.0, size=size_of)) == 2


def test_repeat_unseeded_multiplies_solutions():
    a, b = _items(3, 3)
    options = SearchOptions(repeat_unseeded=True)
    result = solve([5, 5], [a, b], [], 1.0, size=size_of, options=options)
    assert len(result) == 4
    assert result[:2] == result[2:]


def test_input_streams_are_not_modified():
    primary = _items(2, 2, 1)
    secondary = _items(1, 1)
    primary_before = list(primary)
    secondary_before = list(secondary)
    solve([3, 3], primary, secondary, 1.0, size=size_of)
    assert primary == primary_before
    assert secondary == secondary_before


def test_repeated_runs_are_identical():
    primary = _items(2, 2, 1)
    secondary = _items(1, 3)
    first = solve([4, 3, 2], primary, secondary, 0.8, size=size_of)
    second = solve([4, 3, 2], primary, secondary, 0.8, size=size_of)
    assert first == second


def test_solutions_respect_invariants():
    capacities = [6, 4, 3]
    primary = _items(3, 2, 2, 1)
    secondary = _items(1, 2)
    result = solve(capacities, primary, secondary, 1.0, size=size_of)
    assert result
    for assignment in result:
        assert is_consistent(assignment, capacities, primary, size_of)
        assert all(
            sum(size_of(item) for item in bucket) <= cap
            for bucket, cap in zip(assignment, capacities)
        )


def test_size_is_measured_once_per_item():
    calls = []

    def size(item):
        calls.append(item)
        return item

    solve([5, 5, 5], [1, 2, 3], [1], 1.0, size=size)
    assert len(calls) == 4


def test_search_exposes_step_count():
    search = BucketFillSearch([5, 5], [3, 3])
    assert len(search.run()) == 2
    # root, two first placements, two second placements
    assert search.steps == 5
    assert search.solutions == [((3,), (3,)), ((3,), (3,))]


def test_step_budget_raises_with_partial_results():
    a, b = _items(3, 2)
    options = SearchOptions(max_steps=4)
    with pytest.raises(SearchLimitExceeded) as excinfo:
        solve([6, 4], [a, b], [SizedItem("c", 1)], 1.0, size=size_of, options=options)
    assert excinfo.value.steps == 5
    assert len(excinfo.value.solutions) == 0


def test_step_budget_keeps_found_solutions():
    options = SearchOptions(max_steps=5)
    with pytest.raises(SearchLimitExceeded) as excinfo:
        solve([6, 4], [3, 2], [1], 1.0, options=options)
    assert excinfo.value.solutions == [((3, 2), (1,))]


def test_time_budget_raises(monkeypatch):
    clock = itertools.chain([0.0, 0.5], itertools.repeat(10.0))
    monkeypatch.setattr(solver.time, "monotonic", lambda: next(clock))
    options = SearchOptions(max_seconds=1.0)
    with pytest.raises(SearchLimitExceeded):
        solve([6, 4], [3, 2], [1], 1.0, options=options)


def test_placed_restores_bucket_on_error():
    bucket = Bucket(1.0)
    bucket.reserve("seed", 0.3)
    before = bucket.remaining
    with pytest.raises(RuntimeError):
        with solver.placed(bucket, "x", 0.1):
            assert bucket.contents == ["seed", "x"]
            raise RuntimeError("boom")
    assert bucket.contents == ["seed"]
    assert bucket.remaining == before


def test_iterator_streams_are_read_once():
    assert solve([5, 5], iter([3, 3]), [], 1.0) == [((3,), (3,)), ((3,), (3,))]
    assert solve([5], [], iter([4]), 1.0) == [((4,),)]
    assert solve(iter([4, 4]), iter([4]), iter([4]), 1.0) == [((4,), (4,)), ((4,), (4,))]
