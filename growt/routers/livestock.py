"""
Livestock router - the owner's herd.

Wired to:
- WeighingAnalytics for latest snapshots and the herd roster
- StorageBackend for registration lookups
"""

from fastapi import APIRouter, Depends, HTTPException

from growt.auth.dependencies import get_current_user_id
from growt.engine.pipeline import WeighingAnalytics, get_analytics
from growt.models.readings import ReadingScope
from growt.routers.logs import serialize_reading
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def list_livestock(
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """
    Every registered animal with its latest weighing.

    Animals never weighed are listed with a null weight and reading id.
    """
    roster = analytics.herd_roster(ReadingScope.owner(user_id))
    return {
        "success": True,
        "data": [serialize_reading(r) for r in roster],
        "count": len(roster),
    }


@router.get("/latest")
async def latest_weighings(
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """Latest weighing per animal, weighed animals only."""
    snapshots = analytics.latest_snapshots(ReadingScope.owner(user_id))
    return {
        "success": True,
        "data": [serialize_reading(r) for r in snapshots],
        "count": len(snapshots),
    }


@router.get("/{rfid}/logs")
async def livestock_logs(
    rfid: str,
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """Weighing history of one of the owner's animals, newest first."""
    owned = {l.rfid for l in analytics.storage.read_livestocks(user_id=user_id)}
    if rfid not in owned:
        logger.warning("livestock_not_found", user_id=user_id, rfid=rfid)
        raise HTTPException(status_code=404, detail=f"Livestock {rfid} not found")

    readings = analytics.annotated_logs(ReadingScope.owner(user_id), rfid=rfid)
    return {
        "success": True,
        "data": [serialize_reading(r) for r in readings],
        "count": len(readings),
    }
