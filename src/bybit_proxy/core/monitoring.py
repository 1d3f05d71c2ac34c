"""Monitoring and metrics collection.

This module provides Prometheus metrics collection and monitoring
functionality for the application.
"""

from typing import Optional

from prometheus_client import Counter, Histogram, Info
import structlog

logger = structlog.get_logger(__name__)

# Prometheus metrics
proxy_requests = Counter(
    "proxy_requests_total",
    "Total number of proxied requests",
    ["environment", "status"]
)

proxy_duration = Histogram(
    "proxy_request_duration_seconds",
    "End-to-end proxied request duration in seconds",
    ["environment"]
)

upstream_requests = Counter(
    "upstream_requests_total",
    "Total requests sent to the exchange",
    ["environment", "status_code"]
)

upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Exchange request duration in seconds",
    ["environment"]
)

auth_attempts = Counter(
    "auth_attempts_total",
    "Total number of proxy token checks",
    ["status"]
)

signed_requests = Counter(
    "signed_requests_total",
    "Outbound requests by authentication mode",
    ["environment", "mode"]
)

error_count = Counter(
    "errors_total",
    "Total number of errors",
    ["type", "component"]
)

# Application info
app_info = Info(
    "app_info",
    "Application information"
)


def setup_monitoring(name: str, version: str) -> None:
    """Setup monitoring and metrics collection."""
    logger.info("Setting up monitoring")

    app_info.info({
        "version": version,
        "name": name,
    })


def track_proxy_request(environment: str, status: str, duration: Optional[float] = None) -> None:
    """Track proxy request metrics.

    Args:
        environment: Upstream environment.
        status: Request status (success, error).
        duration: Request duration in seconds.
    """
    proxy_requests.labels(environment=environment, status=status).inc()

    if duration is not None:
        proxy_duration.labels(environment=environment).observe(duration)


def track_upstream_request(environment: str, status_code: int, duration: float) -> None:
    """Track exchange request metrics.

    Args:
        environment: Upstream environment.
        status_code: HTTP status code, 0 when the call did not complete.
        duration: Request duration in seconds.
    """
    upstream_requests.labels(
        environment=environment,
        status_code=status_code
    ).inc()

    upstream_duration.labels(environment=environment).observe(duration)


def track_auth_attempt(status: str) -> None:
    """Track proxy token check outcome (success, failure, unconfigured)."""
    auth_attempts.labels(status=status).inc()


def track_signing(environment: str, mode: str) -> None:
    """Track how an outbound request was authenticated (signed, presigned, unsigned)."""
    signed_requests.labels(environment=environment, mode=mode).inc()


def track_error(error_type: str, component: str) -> None:
    """Track error occurrence.

    Args:
        error_type: Type of error.
        component: Component where error occurred.
    """
    error_count.labels(type=error_type, component=component).inc()
