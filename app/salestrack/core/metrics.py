from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.salestrack.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self, enabled: bool | None = None) -> None:
        self.enabled = settings.METRICS_ENABLED if enabled is None else enabled
        self._registry: CollectorRegistry | None = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000),
            registry=self._registry,
        )
        self._idempotency_replay_total = Counter(
            "idempotency_replay_total",
            "Idempotent replay responses.",
            registry=self._registry,
        )
        self._permission_denied_total = Counter(
            "permission_denied_total",
            "Permission denied decisions by permission key.",
            ["permission"],
            registry=self._registry,
        )
        self._activity_log_failures_total = Counter(
            "activity_log_failures_total",
            "Activity log writes that failed.",
            registry=self._registry,
        )
        self._sales_closed_total = Counter(
            "sales_closed_total",
            "Sales closed by period closing.",
            registry=self._registry,
        )

    def reset(self) -> None:
        if self.enabled:
            self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        self._http_requests_total.labels(route=route, method=method, status=str(status_code)).inc()
        self._http_request_duration_ms.labels(route=route, method=method).observe(latency_ms)

    def increment_idempotency_replay(self) -> None:
        if self.enabled:
            self._idempotency_replay_total.inc()

    def increment_permission_denied(self, permission: str) -> None:
        if self.enabled:
            self._permission_denied_total.labels(permission=permission).inc()

    def increment_activity_log_failure(self) -> None:
        if self.enabled:
            self._activity_log_failures_total.inc()

    def add_sales_closed(self, count: int) -> None:
        if self.enabled and count:
            self._sales_closed_total.inc(count)

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
