"""
Weighing log router - the owner's full data log.

Wired to:
- WeighingAnalytics for annotated, newest-first readings
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends

from growt.auth.dependencies import get_current_user_id
from growt.engine.pipeline import WeighingAnalytics, get_analytics
from growt.models.readings import AnnotatedReading, ReadingScope
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def serialize_reading(reading: AnnotatedReading) -> dict[str, Any]:
    """Flatten an annotated reading into the log table row shape."""
    return {
        "id": reading.reading_id,
        "rfid": reading.entity_id,
        "name": reading.display_name,
        "weight": reading.weight,
        "created_at": reading.recorded_at.isoformat(),
        "delta": reading.delta,
        "status": reading.status.value,
        "age": reading.age.model_dump() if reading.age else None,
        "life_stage": reading.life_stage.value if reading.life_stage else None,
        "livestock": reading.attributes.model_dump(),
    }


@router.get("")
async def list_logs(
    rfid: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """
    Every weighing of the owner's animals, newest first.

    Args:
        rfid: Only this animal's readings
    """
    logger.info("logs_list", user_id=user_id, rfid=rfid)

    readings = analytics.annotated_logs(ReadingScope.owner(user_id), rfid=rfid)
    return {
        "success": True,
        "data": [serialize_reading(r) for r in readings],
        "count": len(readings),
    }


@router.get("/stats")
async def log_stats(
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """Summary cards of the data-log page."""
    stats = analytics.data_log_stats(ReadingScope.owner(user_id))
    return {"success": True, "data": stats.model_dump()}
