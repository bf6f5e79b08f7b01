"""Health check utilities.

Components checked:
- database: SELECT 1 round trip
- price_gateway: the configured payment-provider gateway can be built
  (no network call is made, so a provider outage does not fail /health)
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


def check_price_gateway_health(gateway_factory: Callable) -> ComponentHealth:
    """Check that the remote price gateway is configured.

    A misconfigured gateway only degrades the service: local pricing and
    quotes keep working, remote sync does not.
    """
    try:
        gateway = gateway_factory()
    except Exception as e:
        logger.warning(f"Price gateway not available: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message=f"Price gateway error: {str(e)}"
        )
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"Price gateway {gateway.get_gateway_type()} configured",
    )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
