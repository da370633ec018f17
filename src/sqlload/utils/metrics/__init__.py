"""
Prometheus metrics helpers

Usage:
    from sqlload.utils.metrics import get_or_create_metric, initialize_metrics

    DISPATCHED = get_or_create_metric(
        lambda: Counter("sqlload_dispatched_total", "Dispatched transactions"),
        "sqlload_dispatched_total",
    )
    initialize_metrics(port=9091)
"""

import logging
from typing import Any, Callable, TypeVar

from prometheus_client import REGISTRY, CollectorRegistry

from .publisher import ApplicationInfo, MetricsPublisher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the already registered collector of that name.

    Module reloads (and test runs that import a module twice) would otherwise
    fail with "Duplicated timeseries in CollectorRegistry".

    Args:
        metric_factory: Callable that creates the metric
        metric_name: Registered name to look up on collision
        registry: Prometheus registry to use (default: global REGISTRY)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


def initialize_metrics(
    port: int = 9091,
    registry: CollectorRegistry | None = None,
    version: str = "1.0.0",
) -> dict[str, Any]:
    """
    Start the metrics server and register application info

    Returns:
        {"publisher": MetricsPublisher, "app_info": ApplicationInfo}
    """
    logger.info(f"Initializing metrics on port {port}")

    publisher = MetricsPublisher(port=port, registry=registry)
    publisher.start()

    return {
        "publisher": publisher,
        "app_info": ApplicationInfo(version=version, registry=registry),
    }


__all__ = [
    "MetricsPublisher",
    "ApplicationInfo",
    "initialize_metrics",
    "get_or_create_metric",
]
