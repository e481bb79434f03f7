"""
Abstract storage interface for the GROWT analytics service.

The relational store owns livestock registrations, weighing events and IoT
devices. The analytics pipeline only reads from it; the IoT ingestion
route is the single writer of weighing events.

Read methods return rows in the store's nested join shape, already
filtered by ownership or public visibility:

    {
        "id": 17,
        "rfid": "RFID-0001",
        "weight": 182.5,
        "created_at": "2024-06-01T08:30:00+00:00",
        "livestocks": {"user_id": ..., "name": ..., "breed": ..., "dob": "2023-01-15",
                       "sex": ..., "species": ..., "photo_url": ..., "is_public": true},
    }
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from growt.models.livestock import Device, DeviceStats, Livestock


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


class StorageBackend(ABC):
    """
    Abstract base class for all storage implementations.

    Implementations must be safe to share across request threads.
    """

    # =========================================================================
    # Weighing events
    # =========================================================================

    @abstractmethod
    def read_weight_rows(
        self,
        user_id: Optional[str] = None,
        public_only: bool = False,
        rfid: Optional[str] = None,
    ) -> list[dict]:
        """
        Read weighing rows joined to their livestock.

        Weighings of RFIDs with no registered livestock are not returned.

        Args:
            user_id: Only animals owned by this user
            public_only: Only animals flagged public
            rfid: Only this animal

        Returns:
            Nested rows ordered by created_at ascending

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    def insert_weight(
        self,
        rfid: str,
        weight: Optional[float],
        created_at: datetime,
        device_id: Optional[str] = None,
    ) -> int:
        """
        Append one weighing event.

        Returns:
            The new row id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def count_weights(self) -> int:
        """Total number of weighing rows."""
        pass

    # =========================================================================
    # Livestock
    # =========================================================================

    @abstractmethod
    def write_livestock(self, livestock: Livestock) -> str:
        """Insert or replace a livestock registration; returns the RFID."""
        pass

    @abstractmethod
    def read_livestocks(
        self,
        user_id: Optional[str] = None,
        public_only: bool = False,
    ) -> list[Livestock]:
        """Registered animals, ordered by registration time ascending."""
        pass

    # =========================================================================
    # Devices
    # =========================================================================

    @abstractmethod
    def write_device(self, device: Device) -> str:
        """Insert or replace a device; returns its id."""
        pass

    @abstractmethod
    def read_device(self, device_id: str) -> Optional[Device]:
        pass

    @abstractmethod
    def read_device_by_serial(self, serial_number: str) -> Optional[Device]:
        pass

    @abstractmethod
    def read_devices(self, owner_user_id: Optional[str] = None) -> list[Device]:
        """Devices newest first; all devices when owner_user_id is None."""
        pass

    @abstractmethod
    def device_stats(self, owner_user_id: Optional[str] = None) -> DeviceStats:
        """
        Device console counts.

        With an owner, total_logs counts only weighings whose device and
        animal both belong to that owner.
        """
        pass

    @abstractmethod
    def touch_device(self, device_id: str, seen_at: datetime) -> bool:
        """Record the last time a device pushed a weighing; False if unknown."""
        pass
