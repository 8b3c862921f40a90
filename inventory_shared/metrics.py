"""
Shared metrics configuration for the IT Asset Inventory toolkit.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


class MetricsCollector:
    """Centralized metrics collector for the toolkit service.

    Each collector owns a registry so that several service instances can
    coexist in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
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

        self._setup_inventory_metrics()

    def _setup_inventory_metrics(self):
        """Set up toolkit-specific metrics."""
        self._metrics["records_evaluated_total"] = Counter(
            "records_evaluated_total",
            "Records passed through the rule evaluator",
            ["operation"],
            registry=self.registry
        )

        self._metrics["rule_evaluation_duration_seconds"] = Histogram(
            "rule_evaluation_duration_seconds",
            "Rule evaluation duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["imports_total"] = Counter(
            "imports_total",
            "Import validations by data type and outcome",
            ["data_type", "outcome"],
            registry=self.registry
        )

        self._metrics["exports_total"] = Counter(
            "exports_total",
            "Export artifacts by format and outcome",
            ["format", "outcome"],
            registry=self.registry
        )

    def render_latest(self) -> bytes:
        """Render the registry in Prometheus exposition format."""
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

    def record_evaluation(self, operation: str, record_count: int, duration: float):
        """Record a rule evaluator run."""
        self._metrics["records_evaluated_total"].labels(operation=operation).inc(record_count)
        self._metrics["rule_evaluation_duration_seconds"].labels(operation=operation).observe(duration)

    def record_import(self, data_type: str, outcome: str):
        self._metrics["imports_total"].labels(data_type=data_type, outcome=outcome).inc()

    def record_export(self, export_format: str, outcome: str):
        self._metrics["exports_total"].labels(format=export_format, outcome=outcome).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
