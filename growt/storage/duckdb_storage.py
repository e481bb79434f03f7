"""
DuckDB storage implementation for the GROWT analytics service.

Stands in for the managed relational store: livestock registrations,
append-only weighing events and IoT devices in a local DuckDB file.
Timestamps are stored as naive UTC and returned as ISO-8601 strings with
an explicit +00:00 offset, matching the store's wire shape.
"""

import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

from growt.models.enums import DeviceStatus
from growt.models.livestock import Device, DeviceStats, Livestock

from .base import StorageBackend, StorageError

logger = structlog.get_logger(__name__)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_aware_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _dob_text(value: Any) -> Optional[str]:
    if isinstance(value, date):
        return value.isoformat()
    return value


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Architecture:
    - Thread-local connections to one database file
    - Idempotent schema creation on first use
    - Weighing ids drawn from a sequence, returned by INSERT ... RETURNING

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/growt.duckdb"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except duckdb.Error as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        try:
            yield self._local.connection
        except duckdb.Error as e:
            logger.error("duckdb_operation_failed", error=str(e))
            raise StorageError(str(e)) from e

    def _initialize_schema(self):
        """Create tables, sequences and indexes. Safe to call repeatedly."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS livestocks (
                        rfid VARCHAR PRIMARY KEY,
                        user_id VARCHAR,
                        name VARCHAR,
                        breed VARCHAR,
                        dob VARCHAR,
                        sex VARCHAR,
                        species VARCHAR,
                        photo_url VARCHAR,
                        is_public BOOLEAN NOT NULL DEFAULT FALSE,
                        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                conn.execute("CREATE SEQUENCE IF NOT EXISTS weights_id_seq START 1")

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS weights (
                        id BIGINT PRIMARY KEY DEFAULT nextval('weights_id_seq'),
                        rfid VARCHAR NOT NULL,
                        weight DOUBLE,
                        device_id VARCHAR,
                        created_at TIMESTAMP NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_weights_rfid
                    ON weights(rfid)
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_weights_created_at
                    ON weights(created_at)
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS devices (
                        id VARCHAR PRIMARY KEY,
                        serial_number VARCHAR NOT NULL,
                        name VARCHAR NOT NULL DEFAULT '',
                        owner_user_id VARCHAR,
                        status VARCHAR NOT NULL DEFAULT 'pending',
                        is_active BOOLEAN NOT NULL DEFAULT FALSE,
                        last_seen_at TIMESTAMP,
                        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                    )
                """)

            self._initialized = True
            logger.info("duckdb_schema_initialized")

    # =========================================================================
    # Weighing events
    # =========================================================================

    def read_weight_rows(
        self,
        user_id: Optional[str] = None,
        public_only: bool = False,
        rfid: Optional[str] = None,
    ) -> list[dict]:
        query = """
            SELECT w.id, w.rfid, w.weight, w.created_at,
                   l.user_id, l.name, l.breed, l.dob, l.sex, l.species,
                   l.photo_url, l.is_public
            FROM weights w
            JOIN livestocks l ON l.rfid = w.rfid
            WHERE 1=1
        """
        params: list[Any] = []

        if user_id is not None:
            query += " AND l.user_id = ?"
            params.append(user_id)
        if public_only:
            query += " AND l.is_public = TRUE"
        if rfid is not None:
            query += " AND w.rfid = ?"
            params.append(rfid)

        query += " ORDER BY w.created_at ASC, w.id ASC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            {
                "id": row[0],
                "rfid": row[1],
                "weight": row[2],
                "created_at": _to_aware_utc(row[3]).isoformat(),
                "livestocks": {
                    "user_id": row[4],
                    "name": row[5],
                    "breed": row[6],
                    "dob": _dob_text(row[7]),
                    "sex": row[8],
                    "species": row[9],
                    "photo_url": row[10],
                    "is_public": row[11],
                },
            }
            for row in rows
        ]

    def insert_weight(
        self,
        rfid: str,
        weight: Optional[float],
        created_at: datetime,
        device_id: Optional[str] = None,
    ) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                INSERT INTO weights (rfid, weight, device_id, created_at)
                VALUES (?, ?, ?, ?)
                RETURNING id
                """,
                [rfid, weight, device_id, _to_naive_utc(created_at)],
            ).fetchone()

        weight_id = int(row[0])
        logger.debug("weight_inserted", weight_id=weight_id, rfid=rfid)
        return weight_id

    def count_weights(self) -> int:
        with self._get_connection() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM weights").fetchone()[0])

    # =========================================================================
    # Livestock
    # =========================================================================

    def write_livestock(self, livestock: Livestock) -> str:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO livestocks
                    (rfid, user_id, name, breed, dob, sex, species, photo_url, is_public, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    livestock.rfid,
                    livestock.user_id,
                    livestock.name,
                    livestock.breed,
                    livestock.dob,
                    livestock.sex,
                    livestock.species,
                    livestock.photo_url,
                    livestock.is_public,
                    _to_naive_utc(livestock.created_at),
                ],
            )
        return livestock.rfid

    def read_livestocks(
        self,
        user_id: Optional[str] = None,
        public_only: bool = False,
    ) -> list[Livestock]:
        query = """
            SELECT rfid, user_id, name, breed, dob, sex, species, photo_url, is_public, created_at
            FROM livestocks
            WHERE 1=1
        """
        params: list[Any] = []
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)
        if public_only:
            query += " AND is_public = TRUE"
        query += " ORDER BY created_at ASC, rfid ASC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            Livestock(
                rfid=row[0],
                user_id=row[1],
                name=row[2],
                breed=row[3],
                dob=_dob_text(row[4]),
                sex=row[5],
                species=row[6],
                photo_url=row[7],
                is_public=bool(row[8]),
                created_at=_to_aware_utc(row[9]),
            )
            for row in rows
        ]

    # =========================================================================
    # Devices
    # =========================================================================

    _DEVICE_COLUMNS = "id, serial_number, name, owner_user_id, status, is_active, last_seen_at, created_at"

    def _row_to_device(self, row: tuple) -> Device:
        return Device(
            id=row[0],
            serial_number=row[1],
            name=row[2],
            owner_user_id=row[3],
            status=DeviceStatus(row[4]),
            is_active=bool(row[5]),
            last_seen_at=_to_aware_utc(row[6]),
            created_at=_to_aware_utc(row[7]),
        )

    def write_device(self, device: Device) -> str:
        with self._get_connection() as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO devices ({self._DEVICE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    device.id,
                    device.serial_number,
                    device.name,
                    device.owner_user_id,
                    device.status.value,
                    device.is_active,
                    _to_naive_utc(device.last_seen_at),
                    _to_naive_utc(device.created_at),
                ],
            )
        return device.id

    def read_device(self, device_id: str) -> Optional[Device]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {self._DEVICE_COLUMNS} FROM devices WHERE id = ?",
                [device_id],
            ).fetchone()
        return self._row_to_device(row) if row else None

    def read_device_by_serial(self, serial_number: str) -> Optional[Device]:
        with self._get_connection() as conn:
            row = conn.execute(
                f"SELECT {self._DEVICE_COLUMNS} FROM devices WHERE serial_number = ?",
                [serial_number],
            ).fetchone()
        return self._row_to_device(row) if row else None

    def read_devices(self, owner_user_id: Optional[str] = None) -> list[Device]:
        query = f"SELECT {self._DEVICE_COLUMNS} FROM devices WHERE 1=1"
        params: list[Any] = []
        if owner_user_id is not None:
            query += " AND owner_user_id = ?"
            params.append(owner_user_id)
        query += " ORDER BY created_at DESC, id ASC"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_device(row) for row in rows]

    def device_stats(self, owner_user_id: Optional[str] = None) -> DeviceStats:
        device_query = """
            SELECT
                COUNT(*),
                COUNT(*) FILTER (WHERE is_active),
                COUNT(*) FILTER (WHERE status = 'pending')
            FROM devices
        """
        if owner_user_id is None:
            log_query = "SELECT COUNT(*) FROM weights"
            device_params: list[Any] = []
            log_params: list[Any] = []
        else:
            device_query += " WHERE owner_user_id = ?"
            log_query = """
                SELECT COUNT(*)
                FROM weights w
                INNER JOIN devices d ON d.id = w.device_id
                INNER JOIN livestocks l ON l.rfid = w.rfid
                WHERE d.owner_user_id = ? AND l.user_id = ?
            """
            device_params = [owner_user_id]
            log_params = [owner_user_id, owner_user_id]

        with self._get_connection() as conn:
            total, active, pending = conn.execute(device_query, device_params).fetchone()
            total_logs = conn.execute(log_query, log_params).fetchone()[0]

        return DeviceStats(
            total_devices=int(total),
            active_devices=int(active),
            pending_devices=int(pending),
            total_logs=int(total_logs),
        )

    def touch_device(self, device_id: str, seen_at: datetime) -> bool:
        with self._get_connection() as conn:
            rows = conn.execute(
                "UPDATE devices SET last_seen_at = ? WHERE id = ? RETURNING id",
                [_to_naive_utc(seen_at), device_id],
            ).fetchall()
        return bool(rows)

    # =========================================================================
    # Testing
    # =========================================================================

    def clear_for_testing(self) -> None:
        """Delete every row; schema and sequences stay."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM weights")
            conn.execute("DELETE FROM livestocks")
            conn.execute("DELETE FROM devices")
        logger.info("duckdb_storage_cleared")
