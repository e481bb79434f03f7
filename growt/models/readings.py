"""
Reading data models for the weighing analytics pipeline.

Raw rows arrive from the data store in a nested shape (flat weighing
fields plus a possibly-null ``livestocks`` object). They are validated
once at the boundary into fixed-shape ``Reading`` records; nothing past
the normalizer sees the raw shape.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import LifeStage, Status


_SHORT_OFFSET = re.compile(r"(T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")


def _ensure_utc(value: datetime) -> datetime:
    """Store timestamps without an offset are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LivestockAttributes(BaseModel):
    """
    Denormalized static attributes of an animal, re-attached to every reading.

    Attributes:
        user_id: Owner of the animal
        name: Display name
        breed: Breed label
        dob: Date of birth as stored ("YYYY-MM-DD"), unparsed
        sex: Sex label
        species: Species label
        photo_url: Final URL of the animal's photo in object storage
        is_public: Whether the owner shares this animal publicly
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    name: Optional[str] = None
    breed: Optional[str] = None
    dob: Optional[str] = None
    sex: Optional[str] = None
    species: Optional[str] = None
    photo_url: Optional[str] = None
    is_public: bool = False

    @field_validator("is_public", mode="before")
    @classmethod
    def null_means_private(cls, v: Any) -> Any:
        return False if v is None else v


class RawWeightRow(BaseModel):
    """
    One joined row as returned by the data store.

    ``id``, ``rfid`` and ``created_at`` are required; a row missing any of
    them fails validation and takes the whole batch down with it.
    """

    id: int
    rfid: str = Field(min_length=1)
    weight: Optional[float] = None
    created_at: datetime
    livestocks: Optional[LivestockAttributes] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def accept_space_separator(cls, v: Any) -> Any:
        # Postgres text output uses "2024-06-01 10:00:00+00"
        if isinstance(v, str):
            v = v.strip()
            if "T" not in v and " " in v:
                v = v.replace(" ", "T", 1)
            v = _SHORT_OFFSET.sub(r"\1:00", v)
        return v

    @field_validator("created_at")
    @classmethod
    def attach_utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @field_validator("weight")
    @classmethod
    def reject_non_finite(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not math.isfinite(v):
            raise ValueError("weight must be a finite number")
        return v


class Reading(BaseModel):
    """
    Canonical weighing event.

    Attributes:
        reading_id: Row id in the weights table (None only for roster
            placeholders of never-weighed animals)
        entity_id: RFID code of the animal
        weight: Weight in kilograms, or None if unmeasured
        recorded_at: Timezone-aware instant of the weighing
        attributes: Static animal attributes at query time
    """

    model_config = ConfigDict(frozen=True)

    reading_id: Optional[int] = None
    entity_id: str
    weight: Optional[float] = None
    recorded_at: datetime
    attributes: LivestockAttributes = Field(default_factory=LivestockAttributes)


class AgeParts(BaseModel):
    """Calendar age split into years, months and days."""

    model_config = ConfigDict(frozen=True)

    years: int
    months: int
    days: int

    @property
    def total_months(self) -> int:
        return self.years * 12 + self.months

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.years, self.months, self.days)


class AnnotatedReading(Reading):
    """
    A reading plus the fields derived from its entity's history.

    Derived fields are never stored; they are recomputed on every request.
    """

    delta: Optional[float] = None
    status: Status = Status.STABLE
    age: Optional[AgeParts] = None
    life_stage: Optional[LifeStage] = None

    @property
    def display_name(self) -> str:
        return self.attributes.name or self.entity_id


class ReadingScope(BaseModel):
    """
    Visibility scope a batch of readings was fetched for.

    Either one owner's animals or every publicly shared animal.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    public_only: bool = False

    @model_validator(mode="after")
    def exactly_one_scope(self) -> "ReadingScope":
        if self.public_only == (self.user_id is not None):
            raise ValueError("scope needs either a user_id or public_only, not both")
        return self

    @classmethod
    def owner(cls, user_id: str) -> "ReadingScope":
        return cls(user_id=user_id)

    @classmethod
    def public(cls) -> "ReadingScope":
        return cls(public_only=True)

    @property
    def label(self) -> str:
        return "public" if self.public_only else f"owner:{self.user_id}"
