"""
Health Index Calculator - composite 0-100 herd score.

A fixed risk-weighting heuristic, not a statistical model:

    growth_down_risk = clamp(max(0, -total_entities_pct) / 20)
    weight_down_risk = clamp(max(0, -average_weight_pct) / 10)
    stuck_risk       = clamp(stuck_loss_pct / 40)
    combined_risk    = 0.4 * growth + 0.3 * weight + 0.3 * stuck
    health_score     = max(0, 100 * (1 - combined_risk))

Only decreases in headcount and average weight are penalized; increases
contribute zero risk and never lift the score above 100. The weights and
saturation points are configuration constants whose defaults must stay as
above for parity with existing dashboards.
"""

from typing import Optional

import structlog

from growt.config import Settings
from growt.models.dashboard import HealthIndexBreakdown

logger = structlog.get_logger()

# Risk term weights; must sum to 1.0
DEFAULT_WEIGHTS = {
    "headcount": 0.4,
    "weight": 0.3,
    "stuck": 0.3,
}

# Percentage at which each risk term saturates at 1.0
DEFAULT_SATURATION_PCT = {
    "headcount": 20.0,
    "weight": 10.0,
    "stuck": 40.0,
}


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class HealthIndexCalculator:
    """
    Converts one month's percentage signals into a health score.

    Attributes:
        w_headcount: Weight of the headcount-drop risk term
        w_weight: Weight of the average-weight-drop risk term
        w_stuck: Weight of the stuck/declining share risk term
        headcount_saturation: Headcount drop (%) at which its risk is 1.0
        weight_saturation: Average weight drop (%) at which its risk is 1.0
        stuck_saturation: Stuck share (%) at which its risk is 1.0

    Example:
        >>> calc = HealthIndexCalculator()
        >>> calc.compute(total_entities_pct=-20.0, average_weight_pct=0.0, stuck_loss_pct=0.0).health_score
        60.0
    """

    def __init__(
        self,
        w_headcount: float = DEFAULT_WEIGHTS["headcount"],
        w_weight: float = DEFAULT_WEIGHTS["weight"],
        w_stuck: float = DEFAULT_WEIGHTS["stuck"],
        headcount_saturation: float = DEFAULT_SATURATION_PCT["headcount"],
        weight_saturation: float = DEFAULT_SATURATION_PCT["weight"],
        stuck_saturation: float = DEFAULT_SATURATION_PCT["stuck"],
    ):
        """
        Raises:
            ValueError: If weights don't sum to approximately 1.0 or a
                saturation point is not positive
        """
        total = w_headcount + w_weight + w_stuck
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Health index weights must sum to 1.0, got {total:.4f}")
        if min(headcount_saturation, weight_saturation, stuck_saturation) <= 0:
            raise ValueError("Saturation points must be positive")

        self.w_headcount = w_headcount
        self.w_weight = w_weight
        self.w_stuck = w_stuck
        self.headcount_saturation = headcount_saturation
        self.weight_saturation = weight_saturation
        self.stuck_saturation = stuck_saturation

    @classmethod
    def from_settings(cls, settings: Settings) -> "HealthIndexCalculator":
        return cls(
            w_headcount=settings.health_weight_headcount,
            w_weight=settings.health_weight_avg_weight,
            w_stuck=settings.health_weight_stuck,
            headcount_saturation=settings.headcount_drop_saturation_pct,
            weight_saturation=settings.weight_drop_saturation_pct,
            stuck_saturation=settings.stuck_share_saturation_pct,
        )

    def compute(
        self,
        total_entities_pct: float,
        average_weight_pct: float,
        stuck_loss_pct: float,
    ) -> HealthIndexBreakdown:
        growth_down_risk = clamp01(max(0.0, -total_entities_pct) / self.headcount_saturation)
        weight_down_risk = clamp01(max(0.0, -average_weight_pct) / self.weight_saturation)
        stuck_risk = clamp01(stuck_loss_pct / self.stuck_saturation)

        combined_risk = clamp01(
            self.w_headcount * growth_down_risk
            + self.w_weight * weight_down_risk
            + self.w_stuck * stuck_risk
        )
        health_score = max(0.0, 100 * (1 - combined_risk))

        return HealthIndexBreakdown(
            growth_down_risk=growth_down_risk,
            weight_down_risk=weight_down_risk,
            stuck_risk=stuck_risk,
            combined_risk=combined_risk,
            health_score=min(100.0, health_score),
        )

    def score_with_delta(
        self,
        total_entities_pct: float,
        average_weight_pct: float,
        stuck_loss_pct: float,
        previous_score: Optional[float],
    ) -> tuple[float, float]:
        """
        Returns:
            (health_score, health_score_delta); the delta is 0 without a
            previous month.
        """
        score = self.compute(total_entities_pct, average_weight_pct, stuck_loss_pct).health_score
        delta = score - previous_score if previous_score is not None else 0.0
        return score, delta
