"""
Prometheus metrics for the dispatch engine.
"""

from prometheus_client import Counter, Gauge, Histogram

from sqlload.utils.metrics import get_or_create_metric

DISPATCHED_TOTAL = get_or_create_metric(
    lambda: Counter(
        "sqlload_dispatched_total",
        "Transactions dispatched by the rate scheduler",
    ),
    "sqlload_dispatched_total",
)

COMPLETIONS_TOTAL = get_or_create_metric(
    lambda: Counter(
        "sqlload_completions_total",
        "Finished transactions by result",
        ["result"],  # success, failure
    ),
    "sqlload_completions_total",
)

PHASE_LATENCY = get_or_create_metric(
    lambda: Histogram(
        "sqlload_phase_latency_seconds",
        "Latency of each transaction phase",
        ["phase"],  # create, save, commit
        buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    ),
    "sqlload_phase_latency_seconds",
)

IN_FLIGHT_WORKERS = get_or_create_metric(
    lambda: Gauge(
        "sqlload_in_flight_workers",
        "Workers dispatched and not yet finished",
    ),
    "sqlload_in_flight_workers",
)
