"""
Schools24 Backend — Health & Readiness Routes
===============================================

What:  Liveness (/health) and readiness (/ready) checks, mounted at the root.
Who:   Docker health checks, load balancers, monitoring.

Check semantics:
    /health: the process is up and serving. Always 200, with cache stats
             so dashboards can watch the hit rate. An unreachable cache
             backend reports cache_items as null instead of failing.
    /ready:  the database answers SELECT 1. 200 {ready: true} or
             503 {ready: false}; orchestrators stop routing on 503.
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import ping_database
from app.exceptions import CacheError
from app.routes.deps import get_cache
from app.schemas.common import HealthResponse, ReadyResponse
from app.services.cache_service import CacheService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service liveness check",
)
async def health_check(cache: CacheService = Depends(get_cache)) -> HealthResponse:
    stats = cache.stats()
    try:
        cache_items = await cache.len()
    except CacheError as e:
        logger.warning("Health check: cache size unavailable (%s)", e.message)
        cache_items = None
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=__version__,
        time=int(time.time()),
        cache_hits=stats.hits,
        cache_misses=stats.misses,
        cache_items=cache_items,
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"description": "Database unreachable", "model": ReadyResponse}},
    summary="Readiness check (database)",
)
async def readiness_check():
    if not await ping_database():
        logger.warning("Readiness check failed: database unreachable")
        return JSONResponse(status_code=503, content={"ready": False})
    return ReadyResponse(ready=True)
