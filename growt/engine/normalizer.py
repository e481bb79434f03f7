"""
Reading Normalizer - raw store rows to canonical readings.

Validates each joined row from the data store against ``RawWeightRow`` and
maps it to a fixed-shape ``Reading``. Validation is all-or-nothing per
batch: one malformed row rejects the whole request so that partial data
is never rendered as if it were complete.
"""

from typing import Any, Iterable

import structlog
from pydantic import ValidationError

from growt.models.readings import LivestockAttributes, RawWeightRow, Reading

logger = structlog.get_logger()


class ReadingValidationError(ValueError):
    """
    Raised when a batch of raw rows contains at least one malformed row.

    Attributes:
        issues: One dict per problem: {"row": index, "field": dotted path,
            "message": pydantic's message}
    """

    def __init__(self, issues: list[dict]):
        self.issues = issues
        rows = sorted({issue["row"] for issue in issues})
        super().__init__(
            f"Rejected reading batch: {len(issues)} issue(s) in row(s) {rows}"
        )


class ReadingNormalizer:
    """
    Maps raw joined rows to canonical ``Reading`` records.

    Example:
        >>> normalizer = ReadingNormalizer()
        >>> readings = normalizer.normalize_batch([
        ...     {"id": 1, "rfid": "A1", "weight": "100", "created_at": "2024-06-01T08:00:00Z",
        ...      "livestocks": {"name": "Bessie", "dob": "2023-01-15"}},
        ... ])
        >>> readings[0].weight
        100.0
    """

    def __init__(self):
        self.logger = structlog.get_logger()

    def normalize_row(self, raw: Any) -> Reading:
        """Validate and map one row; raises pydantic.ValidationError."""
        row = RawWeightRow.model_validate(raw)
        return Reading(
            reading_id=row.id,
            entity_id=row.rfid,
            weight=row.weight,
            recorded_at=row.created_at,
            attributes=row.livestocks or LivestockAttributes(),
        )

    def normalize_batch(self, rows: Iterable[Any]) -> list[Reading]:
        """
        Normalize a full batch, failing fast on any malformed row.

        Args:
            rows: Raw rows as returned by the store

        Returns:
            Readings in input order

        Raises:
            ReadingValidationError: If any row fails validation
        """
        readings: list[Reading] = []
        issues: list[dict] = []

        for index, raw in enumerate(rows):
            try:
                readings.append(self.normalize_row(raw))
            except ValidationError as e:
                for error in e.errors():
                    issues.append(
                        {
                            "row": index,
                            "field": ".".join(str(part) for part in error["loc"]) or "__root__",
                            "message": error["msg"],
                        }
                    )

        if issues:
            self.logger.warning(
                "reading_batch_rejected",
                rows=len(readings) + len({i["row"] for i in issues}),
                issue_count=len(issues),
                first_issue=issues[0],
            )
            raise ReadingValidationError(issues)

        return readings
