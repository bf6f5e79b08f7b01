"""Observability module for the LTS backend.

Provides structured logging, metrics, request correlation and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    remote_price_syncs_total,
    remote_price_archives_total,
    remote_call_latency_ms,
    tier_replacements_total,
    tier_validation_failures_total,
)
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth, get_overall_health
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "remote_price_syncs_total",
    "remote_price_archives_total",
    "remote_call_latency_ms",
    "tier_replacements_total",
    "tier_validation_failures_total",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    "get_overall_health",
    # Middleware
    "RequestIDMiddleware",
]
