"""
Pytest configuration and shared fixtures for the GROWT test suite.

Data factories, an in-memory storage backend, environment isolation, and
reusable fixtures across all test types (unit, integration, golden,
property-based).
"""

import os
import tempfile
import uuid as _uuid
from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

# Set testing environment BEFORE importing the app.
# Use a temp path that does not exist yet; DuckDB creates the file.
_test_db_path = os.path.join(tempfile.gettempdir(), f"growt_test_{_uuid.uuid4().hex[:8]}.duckdb")
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path
os.environ["IOT_API_KEY"] = "test-iot-key"
os.environ["REPORTING_TIMEZONE"] = "UTC"


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------

from growt.engine.age import calculate_age_parts, classify_life_stage
from growt.models.enums import DeviceStatus, Status
from growt.models.livestock import Device, DeviceStats, Livestock
from growt.models.readings import AnnotatedReading, LivestockAttributes, Reading

UTC = timezone.utc

# Fixed request time so ages are reproducible
FIXED_NOW = datetime(2024, 7, 15, 12, 0, tzinfo=UTC)


def ts(year: int, month: int, day: int, hour: int = 8, minute: int = 0) -> datetime:
    """Aware UTC timestamp shorthand."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def make_attributes(
    name: Optional[str] = "Bessie",
    dob: Optional[str] = "2023-01-15",
    user_id: Optional[str] = "user-1",
    is_public: bool = False,
    **overrides,
) -> LivestockAttributes:
    defaults = dict(
        user_id=user_id,
        name=name,
        breed="Bali",
        dob=dob,
        sex="female",
        species="cattle",
        photo_url=None,
        is_public=is_public,
    )
    defaults.update(overrides)
    return LivestockAttributes(**defaults)


def make_raw_row(
    id: int = 1,
    rfid: str = "RFID-0001",
    weight: Optional[float] = 150.0,
    created_at: str = "2024-06-01T08:00:00+00:00",
    livestocks: Optional[dict] = None,
    **overrides,
) -> dict:
    """Factory for rows in the store's nested join shape."""
    row = {
        "id": id,
        "rfid": rfid,
        "weight": weight,
        "created_at": created_at,
        "livestocks": livestocks if livestocks is not None else make_attributes().model_dump(),
    }
    row.update(overrides)
    return row


def make_reading(
    entity_id: str = "RFID-0001",
    weight: Optional[float] = 150.0,
    recorded_at: Optional[datetime] = None,
    reading_id: Optional[int] = 1,
    attributes: Optional[LivestockAttributes] = None,
) -> Reading:
    """Factory for canonical readings."""
    return Reading(
        reading_id=reading_id,
        entity_id=entity_id,
        weight=weight,
        recorded_at=recorded_at or ts(2024, 6, 1),
        attributes=attributes or make_attributes(),
    )


def make_annotated(
    entity_id: str = "RFID-0001",
    weight: Optional[float] = 150.0,
    recorded_at: Optional[datetime] = None,
    reading_id: Optional[int] = 1,
    delta: Optional[float] = None,
    status: Status = Status.STABLE,
    attributes: Optional[LivestockAttributes] = None,
    now: datetime = FIXED_NOW,
) -> AnnotatedReading:
    """Factory for annotated readings with explicit delta and status."""
    attributes = attributes or make_attributes()
    age = calculate_age_parts(attributes.dob, now)
    return AnnotatedReading(
        reading_id=reading_id,
        entity_id=entity_id,
        weight=weight,
        recorded_at=recorded_at or ts(2024, 6, 1),
        attributes=attributes,
        delta=delta,
        status=status,
        age=age,
        life_stage=classify_life_stage(age),
    )


def make_livestock(
    rfid: str = "RFID-0001",
    user_id: Optional[str] = "user-1",
    name: Optional[str] = "Bessie",
    dob: Optional[str] = "2023-01-15",
    is_public: bool = False,
    created_at: Optional[datetime] = None,
    **overrides,
) -> Livestock:
    """Factory for registered livestock."""
    defaults = dict(
        rfid=rfid,
        user_id=user_id,
        name=name,
        breed="Bali",
        dob=dob,
        sex="female",
        species="cattle",
        photo_url=None,
        is_public=is_public,
        created_at=created_at or ts(2024, 1, 1),
    )
    defaults.update(overrides)
    return Livestock(**defaults)


def make_device(
    serial_number: str = "SCALE-42",
    status: DeviceStatus = DeviceStatus.ACTIVE,
    is_active: bool = True,
    **overrides,
) -> Device:
    """Factory for IoT scale devices."""
    defaults = dict(
        serial_number=serial_number,
        name="Barn scale",
        owner_user_id="user-1",
        status=status,
        is_active=is_active,
    )
    defaults.update(overrides)
    return Device(**defaults)


# ---------------------------------------------------------------------------
# Mock storage
# ---------------------------------------------------------------------------


class MockStorage:
    """
    In-memory mock of StorageBackend for unit tests.

    Returns rows in the same nested shape as the DuckDB implementation and
    applies the same inner-join and visibility filters.
    """

    def __init__(self):
        self._livestocks: dict[str, Livestock] = {}
        self._weights: list[dict] = []
        self._devices: dict[str, Device] = {}
        self._next_id = 1

    # --- Read methods ---
    def read_weight_rows(self, user_id=None, public_only=False, rfid=None):
        rows = []
        for weight in self._weights:
            livestock = self._livestocks.get(weight["rfid"])
            if livestock is None:
                continue
            if user_id is not None and livestock.user_id != user_id:
                continue
            if public_only and not livestock.is_public:
                continue
            if rfid is not None and weight["rfid"] != rfid:
                continue
            created_at = weight["created_at"]
            rows.append(
                {
                    **weight,
                    "created_at": (
                        created_at.isoformat() if isinstance(created_at, datetime) else created_at
                    ),
                    "livestocks": livestock.model_dump(exclude={"rfid", "created_at"}),
                }
            )
        return sorted(rows, key=lambda r: (str(r["created_at"]), str(r["id"])))

    def read_livestocks(self, user_id=None, public_only=False):
        results = list(self._livestocks.values())
        if user_id is not None:
            results = [l for l in results if l.user_id == user_id]
        if public_only:
            results = [l for l in results if l.is_public]
        return sorted(results, key=lambda l: (l.created_at, l.rfid))

    def read_device(self, device_id):
        return self._devices.get(device_id)

    def read_device_by_serial(self, serial_number):
        for device in self._devices.values():
            if device.serial_number == serial_number:
                return device
        return None

    def read_devices(self, owner_user_id=None):
        results = list(self._devices.values())
        if owner_user_id is not None:
            results = [d for d in results if d.owner_user_id == owner_user_id]
        return sorted(results, key=lambda d: d.created_at, reverse=True)

    def device_stats(self, owner_user_id=None):
        devices = self.read_devices(owner_user_id=owner_user_id)
        if owner_user_id is None:
            total_logs = len(self._weights)
        else:
            total_logs = 0
            for weight in self._weights:
                device = self._devices.get(weight.get("device_id"))
                livestock = self._livestocks.get(weight["rfid"])
                if (
                    device is not None
                    and livestock is not None
                    and device.owner_user_id == owner_user_id
                    and livestock.user_id == owner_user_id
                ):
                    total_logs += 1
        return DeviceStats(
            total_devices=len(devices),
            active_devices=sum(1 for d in devices if d.is_active),
            pending_devices=sum(1 for d in devices if d.status == DeviceStatus.PENDING),
            total_logs=total_logs,
        )

    def count_weights(self):
        return len(self._weights)

    # --- Write methods ---
    def insert_weight(self, rfid, weight, created_at, device_id=None):
        weight_id = self._next_id
        self._next_id += 1
        self._weights.append(
            {
                "id": weight_id,
                "rfid": rfid,
                "weight": weight,
                "created_at": created_at,
                "device_id": device_id,
            }
        )
        return weight_id

    def write_livestock(self, livestock):
        self._livestocks[livestock.rfid] = livestock
        return livestock.rfid

    def write_device(self, device):
        self._devices[device.id] = device
        return device.id

    def touch_device(self, device_id, seen_at):
        device = self._devices.get(device_id)
        if device is None:
            return False
        self._devices[device_id] = device.model_copy(update={"last_seen_at": seen_at})
        return True

    # --- Test helpers ---
    def add_raw_row(self, row: dict):
        """Inject a row that bypasses insert_weight (e.g. malformed data)."""
        self._weights.append(row)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_storage():
    """Fresh MockStorage instance for each test."""
    return MockStorage()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def herd_storage(mock_storage):
    """
    MockStorage with two owners and a public animal.

    user-1: Bessie (RFID-0001, three weighings), Daisy (RFID-0002, two
    weighings, public), Clover (RFID-0003, never weighed).
    user-2: Rex (RFID-0100, one weighing).
    """
    mock_storage.write_livestock(make_livestock("RFID-0001", name="Bessie", dob="2023-01-15"))
    mock_storage.write_livestock(
        make_livestock("RFID-0002", name="Daisy", dob="2024-03-01", is_public=True)
    )
    mock_storage.write_livestock(
        make_livestock("RFID-0003", name="Clover", dob="2024-06-20", created_at=ts(2024, 6, 21))
    )
    mock_storage.write_livestock(make_livestock("RFID-0100", user_id="user-2", name="Rex"))

    mock_storage.insert_weight("RFID-0001", 100.0, ts(2024, 5, 3))
    mock_storage.insert_weight("RFID-0002", 40.0, ts(2024, 5, 4))
    mock_storage.insert_weight("RFID-0001", 110.0, ts(2024, 6, 2))
    mock_storage.insert_weight("RFID-0002", 38.0, ts(2024, 6, 5))
    mock_storage.insert_weight("RFID-0001", 110.0, ts(2024, 7, 1))
    mock_storage.insert_weight("RFID-0100", 300.0, ts(2024, 6, 10))
    return mock_storage


@pytest.fixture
def client():
    """FastAPI test client for integration tests."""
    from growt.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def sample_user_id():
    return "user-1"


@pytest.fixture
def auth_headers(sample_user_id):
    """Authenticated request headers carrying a real signed token."""
    from growt.auth.jwt import issue_owner_token

    token = issue_owner_token(sample_user_id)
    return {
        "Authorization": f"Bearer {token}",
        "X-Request-ID": str(_uuid.uuid4()),
    }


@pytest.fixture
def admin_headers():
    """Token of a device-console admin who owns no animals."""
    from growt.auth.jwt import issue_owner_token

    return {"Authorization": f"Bearer {issue_owner_token('admin-1', role='admin')}"}


@pytest.fixture
def iot_headers():
    return {"x-growt-iot-key": "test-iot-key"}
