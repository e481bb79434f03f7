"""
Dashboard output models: monthly KPI series and summary cards.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MonthlyPoint(BaseModel):
    """
    Herd-level KPIs for one calendar month present in the data.

    Months without readings never appear; the series is not gap-filled.

    Attributes:
        month_key: "YYYY-MM" in the reporting timezone
        label: Short display label, e.g. "Jun 2024"
        total_entities: Animals with at least one reading this month
        average_weight: Mean of the latest weighed reading per animal, or None
        stuck_or_declining_count: Animals whose latest reading this month is
            stable or declining against a real prior reading
        total_entities_pct: Month-over-month headcount change (%)
        average_weight_pct: Month-over-month average weight change (%)
        stuck_loss_pct: Same-month share of the herd stuck or declining (%)
        health_score: Composite 0-100 health index
        health_score_delta: Change of health_score from the previous point
    """

    month_key: str = Field(pattern=r"^\d{4}-\d{2}$")
    label: str = ""
    total_entities: int = Field(ge=0)
    average_weight: Optional[float] = None
    stuck_or_declining_count: int = Field(ge=0)
    total_entities_pct: float = 0.0
    average_weight_pct: float = 0.0
    stuck_loss_pct: float = 0.0
    health_score: float = Field(default=100.0, ge=0.0, le=100.0)
    health_score_delta: float = 0.0


class HealthIndexBreakdown(BaseModel):
    """Risk terms behind one month's health score."""

    growth_down_risk: float = Field(ge=0.0, le=1.0)
    weight_down_risk: float = Field(ge=0.0, le=1.0)
    stuck_risk: float = Field(ge=0.0, le=1.0)
    combined_risk: float = Field(ge=0.0, le=1.0)
    health_score: float = Field(ge=0.0, le=100.0)


class DashboardStats(BaseModel):
    """Summary cards comparing the latest month with the one before it."""

    total_livestock: int = 0
    total_livestock_diff: int = 0
    total_livestock_pct: Optional[float] = None

    avg_weight: Optional[float] = None
    avg_weight_diff: Optional[float] = None
    avg_weight_pct: Optional[float] = None

    stuck_loss_count: int = 0
    stuck_loss_diff: int = 0
    stuck_loss_pct: Optional[float] = None

    health_score_current: Optional[float] = None
    health_score_prev: Optional[float] = None


class DataLogStats(BaseModel):
    """Cards on the owner's data-log page."""

    total_logs: int = 0
    highest_weight: Optional[float] = None
    stuck_loss_count: int = 0
    logs_this_month: int = 0


class GlobalStats(BaseModel):
    """Cards on the public livestock page."""

    total_shared_livestock: int = 0
    global_avg_weight: Optional[float] = None
    highest_recorded_weight: Optional[float] = None
    total_logs: int = 0
