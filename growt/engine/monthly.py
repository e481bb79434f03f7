"""
Monthly KPI Aggregator.

Buckets annotated readings by calendar month of ``recorded_at`` in the
reporting timezone, reduces each bucket to the latest reading per animal,
and computes herd-level KPIs plus month-over-month changes and the health
index. Only months that contain readings appear; there is no gap-filling
and an animal absent from a month is not carried forward into it.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

import structlog

from growt.engine.health_index import HealthIndexCalculator
from growt.engine.snapshot import latest_per_entity
from growt.models.dashboard import MonthlyPoint
from growt.models.enums import Status
from growt.models.readings import AnnotatedReading

logger = structlog.get_logger()

STUCK_STATUSES = (Status.STABLE, Status.DECLINING)


def month_key(reading: AnnotatedReading, tz: Optional[ZoneInfo] = None) -> str:
    instant = reading.recorded_at.astimezone(tz) if tz is not None else reading.recorded_at
    return f"{instant.year:04d}-{instant.month:02d}"


def month_label(key: str) -> str:
    year, month = (int(part) for part in key.split("-"))
    return date(year, month, 1).strftime("%b %Y")


def is_stuck_or_declining(reading: AnnotatedReading) -> bool:
    """Stable or declining against a real prior reading; first readings never count."""
    return reading.delta is not None and reading.status in STUCK_STATUSES


def percent_change(current: Optional[float], previous: Optional[float]) -> float:
    """Month-over-month change in percent; 0 when the prior value is missing or zero."""
    if current is None or previous is None or previous == 0:
        return 0.0
    return (current - previous) / previous * 100


class MonthlyKPIAggregator:
    """
    Builds the ordered monthly KPI series for one visibility scope.

    Attributes:
        tz: Reporting timezone for month boundaries
        health_index: Calculator for the composite score

    Example:
        >>> aggregator = MonthlyKPIAggregator(tz=ZoneInfo("UTC"))
        >>> series = aggregator.aggregate(annotated_readings)
        >>> [p.month_key for p in series]
        ['2024-05', '2024-06']
    """

    def __init__(
        self,
        tz: Optional[ZoneInfo] = None,
        health_index: Optional[HealthIndexCalculator] = None,
    ):
        self.tz = tz
        self.health_index = health_index or HealthIndexCalculator()
        self.logger = structlog.get_logger()

    def monthly_snapshots(
        self, readings: Iterable[AnnotatedReading]
    ) -> dict[str, dict[str, AnnotatedReading]]:
        """month_key -> (entity_id -> latest reading within that month), keys ascending."""
        buckets: dict[str, list[AnnotatedReading]] = defaultdict(list)
        for reading in readings:
            buckets[month_key(reading, self.tz)].append(reading)
        return {key: latest_per_entity(buckets[key]) for key in sorted(buckets)}

    def build_point(self, key: str, snapshots: dict[str, AnnotatedReading]) -> MonthlyPoint:
        """KPIs of one month before any month-over-month comparison."""
        latest = list(snapshots.values())
        weights = [r.weight for r in latest if r.weight is not None]
        average_weight = sum(weights) / len(weights) if weights else None

        return MonthlyPoint(
            month_key=key,
            label=month_label(key),
            total_entities=len(latest),
            average_weight=average_weight,
            stuck_or_declining_count=sum(1 for r in latest if is_stuck_or_declining(r)),
        )

    def apply_trends(self, points: list[MonthlyPoint]) -> list[MonthlyPoint]:
        """
        Fill percentage and health fields in series order.

        The first point has every percentage at 0 and a zero health delta.
        """
        previous: Optional[MonthlyPoint] = None
        for point in points:
            if previous is None:
                point.total_entities_pct = 0.0
                point.average_weight_pct = 0.0
                point.stuck_loss_pct = 0.0
            else:
                point.total_entities_pct = (
                    (point.total_entities - previous.total_entities) / previous.total_entities * 100
                    if previous.total_entities > 0
                    else 0.0
                )
                point.average_weight_pct = percent_change(
                    point.average_weight, previous.average_weight
                )
                point.stuck_loss_pct = (
                    point.stuck_or_declining_count / point.total_entities * 100
                    if point.total_entities > 0
                    else 0.0
                )

            point.health_score, point.health_score_delta = self.health_index.score_with_delta(
                point.total_entities_pct,
                point.average_weight_pct,
                point.stuck_loss_pct,
                previous.health_score if previous is not None else None,
            )
            previous = point
        return points

    def aggregate(
        self,
        readings: Iterable[AnnotatedReading],
        max_months: Optional[int] = None,
    ) -> list[MonthlyPoint]:
        """
        Compute the monthly series.

        Args:
            readings: Annotated readings of the whole scope (statuses and
                deltas already reflect the full history)
            max_months: Keep only the trailing N months present in the data;
                trends are computed within the kept window

        Returns:
            MonthlyPoints ascending by month_key; empty for no readings
        """
        snapshots = self.monthly_snapshots(readings)
        points = [self.build_point(key, latest) for key, latest in snapshots.items()]

        if max_months is not None:
            if max_months < 1:
                raise ValueError("max_months must be at least 1")
            points = points[-max_months:]

        self.apply_trends(points)

        self.logger.info(
            "monthly_series_computed",
            months=len(points),
            first_month=points[0].month_key if points else None,
            last_month=points[-1].month_key if points else None,
        )
        return points
