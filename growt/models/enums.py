"""
Enumeration types for the GROWT analytics service.

All enums inherit from str to ensure JSON serialization compatibility.
"""

from enum import Enum


class Status(str, Enum):
    """
    Weight trend of one reading relative to the animal's previous reading.

    The first reading of an animal has nothing to compare against and is
    always STABLE.
    """

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class LifeStage(str, Enum):
    """Life-stage bucket derived from total age in whole months."""

    INFANT = "infant"
    JUVENILE = "juvenile"
    ADULT = "adult"


class DeviceStatus(str, Enum):
    """Approval state of an IoT weighing device."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    REVOKED = "revoked"
