"""
Prometheus metrics for enum table synchronization.

Usage:
    from enum_sync.metrics import MetricsPublisher

    # Expose /metrics while a long sync run is in progress
    MetricsPublisher(port=9091).start()
"""

import logging
from typing import Callable, TypeVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the existing one if already registered.

    Modules can be reloaded (tests, interactive sessions) without
    "Duplicated timeseries" errors from the registry.

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry to use (default: global REGISTRY)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


ENUM_ROWS_CHANGED = get_or_create_metric(
    lambda: Counter(
        "enum_sync_rows_changed_total",
        "Enum table rows written during synchronization",
        ["table", "operation"],  # insert, update, delete
    ),
    "enum_sync_rows_changed_total",
)

ENUM_TABLE_SYNC_TIME = get_or_create_metric(
    lambda: Histogram(
        "enum_sync_table_seconds",
        "Time to read, plan and apply one enum table",
        ["table"],
        buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
    ),
    "enum_sync_table_seconds",
)

ENUM_DATABASES_SYNCED = get_or_create_metric(
    lambda: Counter(
        "enum_sync_databases_total",
        "Databases processed by synchronization runs",
        ["status"],  # succeeded, failed
    ),
    "enum_sync_databases_total",
)

ENUM_ACTIVE_WORKERS = get_or_create_metric(
    lambda: Gauge(
        "enum_sync_active_workers",
        "Number of databases currently being synchronized in parallel",
    ),
    "enum_sync_active_workers",
)


class MetricsPublisher:
    """
    Starts an HTTP server that exposes metrics on the /metrics endpoint.
    """

    def __init__(
        self,
        port: int = 9091,
        registry: CollectorRegistry | None = None,
    ):
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server could not listen on port {self.port}: {e}"
            ) from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        return self._server_started
