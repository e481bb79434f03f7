"""
Snapshot Reducer - latest reading per entity.
"""

from typing import Iterable

from growt.models.readings import AnnotatedReading


def _recency(reading: AnnotatedReading) -> tuple:
    # Highest row id wins among identical timestamps
    return (
        reading.recorded_at,
        reading.reading_id if reading.reading_id is not None else -1,
    )


def latest_per_entity(readings: Iterable[AnnotatedReading]) -> dict[str, AnnotatedReading]:
    """
    Collapse readings to the most recent one per entity.

    The result does not depend on input order.

    Args:
        readings: Annotated readings in any order

    Returns:
        entity_id -> latest AnnotatedReading, keyed in sorted entity order
    """
    latest: dict[str, AnnotatedReading] = {}
    for reading in readings:
        current = latest.get(reading.entity_id)
        if current is None or _recency(reading) > _recency(current):
            latest[reading.entity_id] = reading
    return {entity_id: latest[entity_id] for entity_id in sorted(latest)}


def sort_by_display_name(readings: Iterable[AnnotatedReading]) -> list[AnnotatedReading]:
    """List order for herd views: by name, falling back to the RFID."""
    return sorted(readings, key=lambda r: (r.display_name, r.entity_id))
