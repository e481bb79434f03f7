"""
Summary cards derived from annotated readings and the monthly series.
"""

from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from growt.engine.monthly import is_stuck_or_declining, month_key
from growt.engine.snapshot import latest_per_entity
from growt.models.dashboard import DashboardStats, DataLogStats, GlobalStats, MonthlyPoint
from growt.models.readings import AnnotatedReading


def _weights(readings: Sequence[AnnotatedReading]) -> list[float]:
    return [r.weight for r in readings if r.weight is not None]


def dashboard_stats(series: Sequence[MonthlyPoint]) -> DashboardStats:
    """
    Compare the last point of a monthly series with the one before it.

    Differences and previous-month values are None (or 0 for counts) when
    the series holds a single month.
    """
    if not series:
        return DashboardStats()

    current = series[-1]
    prev = series[-2] if len(series) >= 2 else None

    avg_weight_diff = None
    if prev is not None and current.average_weight is not None and prev.average_weight is not None:
        avg_weight_diff = current.average_weight - prev.average_weight

    return DashboardStats(
        total_livestock=current.total_entities,
        total_livestock_diff=current.total_entities - prev.total_entities if prev else 0,
        total_livestock_pct=current.total_entities_pct if prev else None,
        avg_weight=current.average_weight,
        avg_weight_diff=avg_weight_diff,
        avg_weight_pct=current.average_weight_pct if prev else None,
        stuck_loss_count=current.stuck_or_declining_count,
        stuck_loss_diff=(
            current.stuck_or_declining_count - prev.stuck_or_declining_count if prev else 0
        ),
        stuck_loss_pct=current.stuck_loss_pct if current.total_entities > 0 else None,
        health_score_current=current.health_score,
        health_score_prev=prev.health_score if prev else None,
    )


def data_log_stats(
    readings: Sequence[AnnotatedReading],
    now: datetime,
    tz: Optional[ZoneInfo] = None,
) -> DataLogStats:
    """Cards for the data-log page of one scope."""
    weights = _weights(readings)
    now_local = now.astimezone(tz) if tz is not None else now
    this_month = f"{now_local.year:04d}-{now_local.month:02d}"

    return DataLogStats(
        total_logs=len(readings),
        highest_weight=max(weights) if weights else None,
        stuck_loss_count=sum(1 for r in readings if is_stuck_or_declining(r)),
        logs_this_month=sum(1 for r in readings if month_key(r, tz) == this_month),
    )


def global_stats(readings: Sequence[AnnotatedReading]) -> GlobalStats:
    """Cards for the public page; averages every weighed public reading."""
    weights = _weights(readings)
    return GlobalStats(
        total_shared_livestock=len(latest_per_entity(readings)),
        global_avg_weight=sum(weights) / len(weights) if weights else None,
        highest_recorded_weight=max(weights) if weights else None,
        total_logs=len(readings),
    )
