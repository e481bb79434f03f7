"""
Public router - readings of animals their owners chose to share.

No authentication. Only livestock flagged is_public is visible.
"""

from fastapi import APIRouter, Depends, HTTPException

from growt.engine.pipeline import WeighingAnalytics, get_analytics
from growt.models.readings import ReadingScope
from growt.routers.logs import serialize_reading
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/logs")
async def public_logs(analytics: WeighingAnalytics = Depends(get_analytics)):
    readings = analytics.annotated_logs(ReadingScope.public())
    return {
        "success": True,
        "data": [serialize_reading(r) for r in readings],
        "count": len(readings),
    }


@router.get("/latest")
async def public_latest(analytics: WeighingAnalytics = Depends(get_analytics)):
    snapshots = analytics.latest_snapshots(ReadingScope.public())
    return {
        "success": True,
        "data": [serialize_reading(r) for r in snapshots],
        "count": len(snapshots),
    }


@router.get("/stats")
async def public_stats(analytics: WeighingAnalytics = Depends(get_analytics)):
    """Headline numbers of the public page."""
    return {"success": True, "data": analytics.global_stats().model_dump()}


@router.get("/{rfid}/logs")
async def public_livestock_logs(
    rfid: str,
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """Weighing history of one shared animal; private animals are reported as missing."""
    shared = {l.rfid for l in analytics.storage.read_livestocks(public_only=True)}
    if rfid not in shared:
        logger.info("public_livestock_not_found", rfid=rfid)
        raise HTTPException(status_code=404, detail=f"Livestock {rfid} not found")

    readings = analytics.annotated_logs(ReadingScope.public(), rfid=rfid)
    return {
        "success": True,
        "data": [serialize_reading(r) for r in readings],
        "count": len(readings),
    }
