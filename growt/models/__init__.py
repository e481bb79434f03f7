"""
Pydantic v2 data models for the GROWT analytics service.

Model Organization:
    - enums: Status, LifeStage, DeviceStatus
    - readings: raw store rows, canonical readings, annotated readings, scopes
    - dashboard: monthly KPI points and summary cards
    - livestock: registered animals, IoT devices, ingestion payloads

Usage:
    >>> from growt.models import RawWeightRow, ReadingScope
    >>> row = RawWeightRow(id=1, rfid="A1", weight="100.5", created_at="2024-06-01T08:00:00Z")
    >>> row.weight
    100.5
"""

from .dashboard import (
    DashboardStats,
    DataLogStats,
    GlobalStats,
    HealthIndexBreakdown,
    MonthlyPoint,
)
from .enums import DeviceStatus, LifeStage, Status
from .livestock import (
    Device,
    DeviceStats,
    Livestock,
    WeightIngestRequest,
    WeightIngestResponse,
)
from .readings import (
    AgeParts,
    AnnotatedReading,
    LivestockAttributes,
    RawWeightRow,
    Reading,
    ReadingScope,
)

__all__ = [
    # Enumerations
    "DeviceStatus",
    "LifeStage",
    "Status",
    # Readings
    "AgeParts",
    "AnnotatedReading",
    "LivestockAttributes",
    "RawWeightRow",
    "Reading",
    "ReadingScope",
    # Dashboard
    "DashboardStats",
    "DataLogStats",
    "GlobalStats",
    "HealthIndexBreakdown",
    "MonthlyPoint",
    # Livestock and devices
    "Device",
    "DeviceStats",
    "Livestock",
    "WeightIngestRequest",
    "WeightIngestResponse",
]
