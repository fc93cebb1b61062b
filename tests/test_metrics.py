import math

from bucketfill_core.metrics import bucket_loads, compute_fill_metrics
from bucketfill_core.models import MARKED


def test_loads_include_marked_sizes():
    loads = bucket_loads(((MARKED, 1.0), (2.0, 2.0)), float, marked_sizes=[1.5, 4.0])
    assert loads.tolist() == [2.5, 4.0]


def test_fill_metrics_golden_values():
    metrics = compute_fill_metrics(((4.0,), (1.0, 1.0)), [5.0, 4.0], float)
    assert metrics["items"] == 3.0
    assert math.isclose(metrics["used"], 6.0)
    assert math.isclose(metrics["waste"], 3.0)
    assert math.isclose(metrics["fill_ratio"], 6.0 / 9.0, rel_tol=1e-6)
    assert math.isclose(metrics["min_fill"], 0.5)
    assert math.isclose(metrics["max_waste"], 2.0)


def test_fill_metrics_empty_assignment():
    metrics = compute_fill_metrics((), [], float)
    assert metrics["used"] == 0.0
    assert metrics["fill_ratio"] == 0.0
