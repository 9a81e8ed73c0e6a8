"""
Quillpost Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer checks.
How:   Asks the connection manager for the shared connection and reports
       whether the document store is reachable.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   document store reachable
    - unhealthy: connection string missing or store unreachable

    The endpoint always answers 200; the status field carries the verdict.
"""

import logging
import time

from fastapi import APIRouter, Depends

from app import __version__
from app.database import ConnectionManager, get_connection_manager
from app.exceptions import BlogError
from app.schemas.post import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    manager: ConnectionManager = Depends(get_connection_manager),
) -> HealthResponse:
    """
    Check the service and its document store.

    A first check on a cold process establishes the shared connection, so
    later API requests reuse it.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await manager.get_connection()
    except BlogError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e.message)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
