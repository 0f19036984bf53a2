"""
Health Check Routes
===================

A single readiness-style probe: the cache directory must exist and be
writable. An unhealthy cache answers 503 so load balancers and
orchestrators can act on the status code alone.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Response, status

from blobcache.application.api.dependencies import CacheDep, SettingsDep
from blobcache.application.api.models.cache import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health_check(cache: CacheDep, settings: SettingsDep, response: Response):
    """Report whether the cache directory is usable."""
    health = await cache.health_check()
    if health["status"] != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=health["status"],
        app=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        cache_dir=health["cache_dir"],
        writable=health["writable"],
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
