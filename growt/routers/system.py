"""
System health router.

Wired to:
- StorageBackend for database diagnostics
- Settings for configuration
"""

import time

from fastapi import APIRouter

from growt import __version__
from growt.config import get_settings
from growt.storage import StorageError, get_storage
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()


@router.get("/health")
async def system_health():
    """
    Get system health status.
    Checks database connectivity and reports actual service health.
    """
    settings = get_settings()
    uptime = time.time() - _startup_time

    db_status = "healthy"
    weight_count = None
    try:
        weight_count = get_storage().count_weights()
    except StorageError as e:
        logger.warning("system_health_db_unavailable", error=str(e))
        db_status = f"unhealthy: {str(e)}"

    return {
        "success": True,
        "data": {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": __version__,
            "uptime_seconds": round(uptime, 1),
            "database": db_status,
            "weighings": weight_count,
            "reporting_timezone": settings.reporting_timezone,
        },
    }
