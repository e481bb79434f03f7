"""
Dashboard router - monthly KPI chart and summary cards.

Wired to:
- WeighingAnalytics (MonthlyKPIAggregator + HealthIndexCalculator)
- Settings for the default series window
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from growt.auth.dependencies import get_current_user_id
from growt.config import get_settings
from growt.engine.pipeline import WeighingAnalytics, get_analytics
from growt.models.readings import ReadingScope
from growt.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _parse_months(months: Optional[str]) -> Optional[int]:
    """Window size from the query string; "all" disables the window."""
    if months is None:
        return get_settings().dashboard_series_months
    if months.strip().lower() == "all":
        return None
    try:
        value = int(months)
    except ValueError:
        raise HTTPException(status_code=422, detail="months must be a positive integer or 'all'")
    if value < 1:
        raise HTTPException(status_code=422, detail="months must be a positive integer or 'all'")
    return value


@router.get("/monthly")
async def monthly_series(
    months: Optional[str] = Query(None, description="Trailing months to keep, or 'all'"),
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """
    Monthly headcount, average weight, stuck/declining share and health score.

    Points are ascending by month. Months without readings are skipped, so
    month-over-month percentages compare adjacent points.
    """
    max_months = _parse_months(months)
    logger.info("dashboard_monthly", user_id=user_id, max_months=max_months)

    series = analytics.monthly_series(ReadingScope.owner(user_id), max_months=max_months)
    return {
        "success": True,
        "data": [point.model_dump() for point in series],
        "count": len(series),
    }


@router.get("/stats")
async def dashboard_stats(
    user_id: str = Depends(get_current_user_id),
    analytics: WeighingAnalytics = Depends(get_analytics),
):
    """Summary cards comparing the latest month with the one before."""
    stats = analytics.dashboard_stats(ReadingScope.owner(user_id))
    return {"success": True, "data": stats.model_dump()}
