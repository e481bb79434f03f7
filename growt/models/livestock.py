"""
Livestock registration and IoT device models.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from .enums import DeviceStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Livestock(BaseModel):
    """
    A registered animal, keyed by its RFID tag.

    Attributes:
        rfid: RFID code, the animal's stable identifier
        user_id: Owner of the animal
        name: Display name
        breed: Breed label
        dob: Date of birth, "YYYY-MM-DD"
        sex: Sex label
        species: Species label
        photo_url: URL of the photo in object storage
        is_public: Shared on the public page
        created_at: Registration time
    """

    rfid: str = Field(min_length=1)
    user_id: Optional[str] = None
    name: Optional[str] = None
    breed: Optional[str] = None
    dob: Optional[str] = None
    sex: Optional[str] = None
    species: Optional[str] = None
    photo_url: Optional[str] = None
    is_public: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at")
    @classmethod
    def attach_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)


class Device(BaseModel):
    """An IoT scale allowed to push weighings once approved."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    serial_number: str = Field(min_length=1)
    name: str = ""
    owner_user_id: Optional[str] = None
    status: DeviceStatus = DeviceStatus.PENDING
    is_active: bool = False
    last_seen_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def accepts_weighings(self) -> bool:
        return self.is_active and self.status == DeviceStatus.ACTIVE


class DeviceStats(BaseModel):
    """
    Device console summary cards.

    active_devices counts the is_active flag only; pending_devices counts
    status "pending". total_logs is every weighing for an admin, otherwise
    weighings pushed by the owner's devices for the owner's animals.
    """

    total_devices: int = Field(ge=0)
    active_devices: int = Field(ge=0)
    pending_devices: int = Field(ge=0)
    total_logs: int = Field(ge=0)


class WeightIngestRequest(BaseModel):
    """
    Weighing pushed by an IoT scale.

    The device may identify itself by id or by serial number; the serial is
    only trusted once the device has been approved.
    """

    rfid: str = Field(min_length=1)
    weight: float = Field(gt=0)
    device_id: Optional[UUID] = None
    device_serial: Optional[str] = Field(default=None, min_length=1)
    measured_at: Optional[datetime] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "rfid": "RFID-0001",
                "weight": 182.5,
                "device_serial": "SCALE-42",
                "measured_at": "2024-06-01T08:30:00Z",
            }
        }
    }


class WeightIngestResponse(BaseModel):
    success: bool = True
    weight_id: int
