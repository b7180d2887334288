"""
Prometheus metrics for dataset operations.

Usage:
    from dbunit.utils.metrics import OPERATIONS_TOTAL, start_metrics_server

    start_metrics_server(9091)
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the already registered one.

    Module reloads (common under test runners) would otherwise fail with
    a duplicate timeseries error.

    Args:
        metric_factory: Callable that creates the metric
        metric_name: Registered name used for lookup when it already exists
        registry: Prometheus registry to look in

    Returns:
        The new or existing metric
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


OPERATIONS_TOTAL = get_or_create_metric(
    lambda: Counter(
        "dbunit_operations_total",
        "Dataset operations executed",
        ["operation", "strategy", "status"],
    ),
    "dbunit_operations_total",
)

OPERATION_SECONDS = get_or_create_metric(
    lambda: Histogram(
        "dbunit_operation_seconds",
        "Duration of dataset operations",
        ["operation"],
        buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    ),
    "dbunit_operation_seconds",
)

ROWS_APPLIED_TOTAL = get_or_create_metric(
    lambda: Counter(
        "dbunit_rows_applied_total",
        "Dataset rows written to the database",
        ["table", "action"],
    ),
    "dbunit_rows_applied_total",
)

DIFFERENCES_TOTAL = get_or_create_metric(
    lambda: Counter(
        "dbunit_differences_total",
        "Verifications that reported a difference",
        ["strategy"],
    ),
    "dbunit_differences_total",
)


def start_metrics_server(port: int) -> None:
    """Expose the default registry over HTTP on ``port``."""
    start_http_server(port)
    logger.info(f"Metrics server listening on port {port}")
