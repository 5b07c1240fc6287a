# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Prometheus metrics for dispatched routes.

Counters are created per metric name prefix on first use, so an API built
from explicit settings reports under its own ``metrics_prefix``.
"""

from dataclasses import dataclass
from threading import Lock

from prometheus_client import Counter

DEFAULT_PREFIX = "content_api"


@dataclass(frozen=True)
class RouteMetrics:
    responses_total: Counter
    route_errors_total: Counter


_metrics: dict[str, RouteMetrics] = {}
_lock = Lock()


def route_metrics(prefix: str = DEFAULT_PREFIX) -> RouteMetrics:
    """Return the counters for ``prefix``, registering them on first call."""
    with _lock:
        metrics = _metrics.get(prefix)
        if metrics is None:
            metrics = RouteMetrics(
                responses_total=Counter(
                    f"{prefix}_responses_total",
                    "Total responses produced by content API routes",
                    ["method", "code"],
                ),
                route_errors_total=Counter(
                    f"{prefix}_route_errors_total",
                    "Filter and handler failures converted to error envelopes",
                    ["kind"],  # kind: "coded", "unexpected"
                ),
            )
            _metrics[prefix] = metrics
        return metrics


def record_response(method: str, code: int, prefix: str = DEFAULT_PREFIX) -> None:
    """Count a response leaving the dispatch boundary."""
    route_metrics(prefix).responses_total.labels(method=method, code=str(code)).inc()


def record_error(kind: str, prefix: str = DEFAULT_PREFIX) -> None:
    """Count a failure converted to an error envelope."""
    route_metrics(prefix).route_errors_total.labels(kind=kind).inc()
