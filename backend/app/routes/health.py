"""
RecipeShare Backend — Health Check Route
=========================================

What:  Liveness/readiness probe for Docker and load balancers, and the
       frontend's "connected to the database" badge.
How:   Counts categories (a real query against a seeded table, not just
       SELECT 1) and times the round trip.

Status levels:
    healthy    database answered (HTTP 200)
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response

from app import __version__
from app.database import async_session_factory
from app.schemas.common import HealthResponse
from app.services.category_service import category_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"
    categories = None
    latency_ms = None

    probe_start = time.perf_counter()
    try:
        async with async_session_factory() as session:
            categories = await category_service.count_categories(session)
        latency_ms = round((time.perf_counter() - probe_start) * 1000, 2)
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        categories=categories,
        latency_ms=latency_ms,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
