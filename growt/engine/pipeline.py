"""
Weighing analytics pipeline.

Fetches a scope's raw rows from storage once per call, then runs the pure
components in order:

    raw rows -> ReadingNormalizer -> annotate_readings
        -> newest_first                     (log tables)
        -> latest_per_entity                (herd lists)
        -> MonthlyKPIAggregator             (monthly series + health index)

Nothing is cached or written back: every call recomputes from the stored
readings, and two calls over identical rows return identical results.
"""

from datetime import datetime
from typing import Optional

import structlog

from growt.config import Settings, get_settings
from growt.engine.age import calculate_age_parts, classify_life_stage
from growt.engine.annotator import annotate_readings, newest_first
from growt.engine.health_index import HealthIndexCalculator
from growt.engine.monthly import MonthlyKPIAggregator
from growt.engine.normalizer import ReadingNormalizer
from growt.engine.snapshot import latest_per_entity, sort_by_display_name
from growt.engine import summary
from growt.models.dashboard import DashboardStats, DataLogStats, GlobalStats, MonthlyPoint
from growt.models.enums import Status
from growt.models.readings import AnnotatedReading, LivestockAttributes, ReadingScope
from growt.storage.base import StorageBackend

# Trailing months behind the dashboard summary cards
STATS_WINDOW_MONTHS = 3


class WeighingAnalytics:
    """
    Per-request analytics over one visibility scope.

    Attributes:
        storage: Storage backend supplying joined weighing rows
        settings: Reporting timezone and health index constants
        normalizer: Boundary validation of raw rows
        aggregator: Monthly KPI aggregator

    Example:
        >>> analytics = WeighingAnalytics(storage=get_storage())
        >>> series = analytics.monthly_series(ReadingScope.owner("user-1"), max_months=12)
        >>> series[-1].health_score
        87.5
    """

    def __init__(self, storage: StorageBackend, settings: Optional[Settings] = None):
        self.storage = storage
        self.settings = settings or get_settings()
        self.tz = self.settings.tz
        self.normalizer = ReadingNormalizer()
        self.aggregator = MonthlyKPIAggregator(
            tz=self.tz,
            health_index=HealthIndexCalculator.from_settings(self.settings),
        )
        self.logger = structlog.get_logger()

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or datetime.now(self.tz)

    def _annotated(self, scope: ReadingScope, now: datetime) -> list[AnnotatedReading]:
        """Fetch, validate and annotate every reading of the scope."""
        rows = self.storage.read_weight_rows(
            user_id=scope.user_id,
            public_only=scope.public_only,
        )
        readings = self.normalizer.normalize_batch(rows)
        annotated = annotate_readings(readings, now=now, tz=self.tz)

        self.logger.info(
            "scope_readings_annotated",
            scope=scope.label,
            readings=len(annotated),
        )
        return annotated

    def annotated_logs(
        self,
        scope: ReadingScope,
        rfid: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[AnnotatedReading]:
        """
        Full weighing log, newest first.

        Args:
            scope: Owner or public scope
            rfid: Restrict to one animal; deltas are still computed over
                the whole scope so they match the full log
            now: Reference instant for ages
        """
        annotated = self._annotated(scope, self._now(now))
        if rfid is not None:
            annotated = [r for r in annotated if r.entity_id == rfid]
        return newest_first(annotated)

    def latest_snapshots(
        self, scope: ReadingScope, now: Optional[datetime] = None
    ) -> list[AnnotatedReading]:
        """Latest reading per animal, sorted by display name."""
        latest = latest_per_entity(self._annotated(scope, self._now(now)))
        return sort_by_display_name(latest.values())

    def herd_roster(
        self, scope: ReadingScope, now: Optional[datetime] = None
    ) -> list[AnnotatedReading]:
        """
        Every registered animal of the scope with its latest reading.

        Animals never weighed appear with no reading id, no weight, no
        delta, STABLE status and their registration time as recorded_at.
        """
        now = self._now(now)
        latest = latest_per_entity(self._annotated(scope, now))
        livestocks = self.storage.read_livestocks(
            user_id=scope.user_id,
            public_only=scope.public_only,
        )

        roster: list[AnnotatedReading] = []
        for livestock in livestocks:
            snapshot = latest.get(livestock.rfid)
            if snapshot is not None:
                roster.append(snapshot)
                continue

            age = calculate_age_parts(livestock.dob, now, self.tz)
            roster.append(
                AnnotatedReading(
                    reading_id=None,
                    entity_id=livestock.rfid,
                    weight=None,
                    recorded_at=livestock.created_at,
                    attributes=LivestockAttributes(
                        **livestock.model_dump(exclude={"rfid", "created_at"})
                    ),
                    delta=None,
                    status=Status.STABLE,
                    age=age,
                    life_stage=classify_life_stage(age),
                )
            )

        self.logger.info(
            "herd_roster_built",
            scope=scope.label,
            registered=len(livestocks),
            weighed=sum(1 for r in roster if r.reading_id is not None),
        )
        return sort_by_display_name(roster)

    def monthly_series(
        self,
        scope: ReadingScope,
        max_months: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[MonthlyPoint]:
        """Monthly KPI series ascending by month; empty when the scope has no readings."""
        annotated = self._annotated(scope, self._now(now))
        if not annotated:
            return []
        return self.aggregator.aggregate(annotated, max_months=max_months)

    def dashboard_stats(
        self, scope: ReadingScope, now: Optional[datetime] = None
    ) -> DashboardStats:
        series = self.monthly_series(scope, max_months=STATS_WINDOW_MONTHS, now=now)
        return summary.dashboard_stats(series)

    def data_log_stats(
        self, scope: ReadingScope, now: Optional[datetime] = None
    ) -> DataLogStats:
        now = self._now(now)
        return summary.data_log_stats(self._annotated(scope, now), now=now, tz=self.tz)

    def global_stats(self, now: Optional[datetime] = None) -> GlobalStats:
        return summary.global_stats(self._annotated(ReadingScope.public(), self._now(now)))


def get_analytics() -> WeighingAnalytics:
    """FastAPI dependency: analytics bound to the configured storage backend."""
    from growt.storage import get_storage

    return WeighingAnalytics(storage=get_storage())
