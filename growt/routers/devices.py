"""
Device console router - registered IoT scales.

Owners see their own scales; an admin token sees every scale for
approval.

Wired to:
- StorageBackend for device rows and counts
"""

from typing import Optional

from fastapi import APIRouter, Depends

from growt.auth.dependencies import get_device_scope
from growt.models.livestock import Device
from growt.storage import StorageBackend, get_storage
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def serialize_device(device: Device) -> dict:
    data = device.model_dump(mode="json")
    data["accepts_weighings"] = device.accepts_weighings
    return data


@router.get("")
async def list_devices(
    owner_user_id: Optional[str] = Depends(get_device_scope),
    storage: StorageBackend = Depends(get_storage),
):
    """Devices newest first."""
    devices = storage.read_devices(owner_user_id=owner_user_id)
    logger.info("devices_listed", owner_user_id=owner_user_id, count=len(devices))
    return {
        "success": True,
        "data": [serialize_device(d) for d in devices],
        "count": len(devices),
    }


@router.get("/stats")
async def device_stats(
    owner_user_id: Optional[str] = Depends(get_device_scope),
    storage: StorageBackend = Depends(get_storage),
):
    """Total, active and pending devices plus the weighings they pushed."""
    stats = storage.device_stats(owner_user_id=owner_user_id)
    return {"success": True, "data": stats.model_dump()}
