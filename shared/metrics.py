"""
Shared metrics configuration for the Edge Authorizer.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry so several services (or tests) can live
    in one process without clashing on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_authorizer_metrics()

    def _setup_authorizer_metrics(self):
        """Set up decision, cache and upstream metrics."""
        self._metrics["authorization_decisions_total"] = Counter(
            "authorization_decisions_total",
            "Total authorization decisions",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["token_rejections_total"] = Counter(
            "token_rejections_total",
            "Total rejected bearer tokens",
            ["reason"],
            registry=self.registry
        )

        self._metrics["cache_lookups_total"] = Counter(
            "cache_lookups_total",
            "Total cache lookups",
            ["cache", "result"],
            registry=self.registry
        )

        self._metrics["upstream_calls_total"] = Counter(
            "upstream_calls_total",
            "Total outbound calls to collaborators",
            ["dependency", "status"],
            registry=self.registry
        )

        self._metrics["upstream_call_duration_seconds"] = Histogram(
            "upstream_call_duration_seconds",
            "Outbound call duration in seconds",
            ["dependency"],
            registry=self.registry
        )

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels)

    def render(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
