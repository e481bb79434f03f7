"""
Weighing analytics engine.

Pure components that turn raw weighing rows into dashboard-ready data:

- Normalization: store rows -> validated Reading objects
- Annotation: per-animal weight delta, trend status, age and life stage
- Snapshots: latest reading per animal
- Monthly KPIs: headcount, average weight, stuck/declining share per month
- Health index: composite 0-100 herd score from the monthly KPIs

WeighingAnalytics wires them to a storage backend for one visibility scope.
"""

__all__ = [
    "HealthIndexCalculator",
    "MonthlyKPIAggregator",
    "ReadingNormalizer",
    "ReadingValidationError",
    "WeighingAnalytics",
    "annotate_readings",
    "calculate_age_parts",
    "classify_life_stage",
    "latest_per_entity",
]

from growt.engine.age import calculate_age_parts, classify_life_stage
from growt.engine.annotator import annotate_readings
from growt.engine.health_index import HealthIndexCalculator
from growt.engine.monthly import MonthlyKPIAggregator
from growt.engine.normalizer import ReadingNormalizer, ReadingValidationError
from growt.engine.pipeline import WeighingAnalytics
from growt.engine.snapshot import latest_per_entity
