"""
Status/Delta Annotator.

Orders a scope's readings by entity and time, then folds over them once
with a local ``entity -> last weight seen`` map to derive each reading's
signed delta and trend status. Age and life stage are attached from the
animal's date of birth relative to the request time ("now"), not to the
reading's own timestamp, so historical rows show the animal's current age.

A reading with no weight still updates the map, which breaks the delta
chain: the next weighed reading of that animal gets no delta.
"""

from datetime import datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

import structlog

from growt.engine.age import calculate_age_parts, classify_life_stage
from growt.models.enums import Status
from growt.models.readings import AgeParts, AnnotatedReading, Reading

logger = structlog.get_logger()


def chronological_key(reading: Reading) -> tuple:
    """Sort key: entity, then time, then row id for identical timestamps."""
    return (
        reading.entity_id,
        reading.recorded_at,
        reading.reading_id if reading.reading_id is not None else -1,
    )


def classify_status(previous: Optional[float], current: Optional[float]) -> tuple[Optional[float], Status]:
    """
    Compare a weight with the entity's previous one.

    Returns:
        (delta, status); delta is None and status STABLE when either side
        is missing.
    """
    if previous is None or current is None:
        return None, Status.STABLE
    delta = current - previous
    if current > previous:
        return delta, Status.IMPROVING
    if current < previous:
        return delta, Status.DECLINING
    return delta, Status.STABLE


def annotate_readings(
    readings: Iterable[Reading],
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> list[AnnotatedReading]:
    """
    Attach delta, status, age and life stage to every reading.

    Args:
        readings: All readings of one visibility scope, any order
        now: Reference instant for ages (default: current time)
        tz: Reporting timezone used to read "now" as a calendar date

    Returns:
        AnnotatedReadings ordered by (entity_id, recorded_at, reading_id)
        ascending. Callers re-sort for display.
    """
    now = now or datetime.now(tz)
    ordered = sorted(readings, key=chronological_key)

    last_weight_seen: dict[str, Optional[float]] = {}
    age_by_dob: dict[Optional[str], Optional[AgeParts]] = {}
    annotated: list[AnnotatedReading] = []

    for reading in ordered:
        previous = last_weight_seen.get(reading.entity_id)
        delta, status = classify_status(previous, reading.weight)

        dob = reading.attributes.dob
        if dob not in age_by_dob:
            age_by_dob[dob] = calculate_age_parts(dob, now, tz)
        age = age_by_dob[dob]

        annotated.append(
            AnnotatedReading(
                **reading.model_dump(exclude={"attributes"}),
                attributes=reading.attributes,
                delta=delta,
                status=status,
                age=age,
                life_stage=classify_life_stage(age),
            )
        )
        last_weight_seen[reading.entity_id] = reading.weight

    logger.debug(
        "readings_annotated",
        readings=len(annotated),
        entities=len(last_weight_seen),
    )
    return annotated


def newest_first(readings: Iterable[AnnotatedReading]) -> list[AnnotatedReading]:
    """Display order for log tables: latest weighing on top."""
    return sorted(
        readings,
        key=lambda r: (
            r.recorded_at,
            r.reading_id if r.reading_id is not None else -1,
        ),
        reverse=True,
    )
