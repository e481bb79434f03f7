"""
IoT ingestion router - weighings pushed by smart scales.

The only writer of weighing events. Scales authenticate with the shared
x-growt-iot-key header and identify themselves by device id or serial.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from growt.auth.dependencies import require_iot_key
from growt.models.livestock import WeightIngestRequest, WeightIngestResponse
from growt.storage import get_storage
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/weights",
    response_model=WeightIngestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_iot_key)],
)
async def ingest_weight(request: WeightIngestRequest):
    """
    Record one weighing.

    A device_id is trusted as sent. A device_serial must belong to an
    approved, active device.
    """
    storage = get_storage()

    device_id: Optional[str] = None
    if request.device_id is not None:
        device_id = str(request.device_id)
    elif request.device_serial is not None:
        device = storage.read_device_by_serial(request.device_serial)
        if device is None or not device.accepts_weighings:
            logger.warning(
                "iot_device_rejected",
                device_serial=request.device_serial,
                found=device is not None,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Device not found or not active",
            )
        device_id = device.id

    created_at = request.measured_at or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    weight_id = storage.insert_weight(
        rfid=request.rfid,
        weight=request.weight,
        created_at=created_at,
        device_id=device_id,
    )

    if device_id is not None and not storage.touch_device(device_id, created_at):
        logger.warning("iot_device_unknown", device_id=device_id)

    logger.info(
        "iot_weight_ingested",
        weight_id=weight_id,
        rfid=request.rfid,
        device_id=device_id,
    )
    return WeightIngestResponse(success=True, weight_id=weight_id)
