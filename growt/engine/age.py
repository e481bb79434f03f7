"""
Age Calculator and Life-Stage Classifier.

Ages are exact calendar differences between a date of birth and the
reference date, borrowing days from the preceding month(s) and months from
the preceding year so that variable month lengths never yield a negative
day count (Jan 31 -> Mar 1 is 0y 0m 29d in a common year).

The date of birth is a local calendar date, never a UTC instant, so the
result does not shift by a day around midnight.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from growt.models.enums import LifeStage
from growt.models.readings import AgeParts

_DOB_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Whole-month upper bounds, inclusive
INFANT_MAX_MONTHS = 6
JUVENILE_MAX_MONTHS = 18


def parse_dob(dob: Optional[str]) -> Optional[date]:
    """
    Parse a "YYYY-MM-DD" string as a calendar date.

    Returns None for absent, malformed or impossible dates (e.g. 2023-02-30).
    """
    if not dob:
        return None
    match = _DOB_PATTERN.match(dob.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - timedelta(days=1)).day


def _reference_date(
    reference: Union[date, datetime, None], tz: Optional[ZoneInfo]
) -> date:
    if reference is None:
        reference = datetime.now(tz)
    if isinstance(reference, datetime):
        if tz is not None and reference.tzinfo is not None:
            reference = reference.astimezone(tz)
        return reference.date()
    return reference


def calculate_age_parts(
    dob: Optional[str],
    reference: Union[date, datetime, None] = None,
    tz: Optional[ZoneInfo] = None,
) -> Optional[AgeParts]:
    """
    Compute calendar age from a date of birth.

    Args:
        dob: Date of birth as "YYYY-MM-DD"
        reference: Reference instant or date (default: now)
        tz: Zone in which an aware reference instant is read as a date

    Returns:
        AgeParts, or None if dob is absent or unparseable. A reference date
        before dob is not rejected; the borrow rules apply mechanically.
    """
    born = parse_dob(dob)
    if born is None:
        return None

    ref = _reference_date(reference, tz)

    years = ref.year - born.year
    months = ref.month - born.month
    days = ref.day - born.day

    # Borrow from the month(s) immediately preceding the reference month
    borrow_year, borrow_month = ref.year, ref.month
    while days < 0:
        borrow_month -= 1
        if borrow_month == 0:
            borrow_month = 12
            borrow_year -= 1
        months -= 1
        days += _days_in_month(borrow_year, borrow_month)

    if months < 0:
        years -= 1
        months += 12

    return AgeParts(years=years, months=months, days=days)


def classify_life_stage(age: Optional[AgeParts]) -> Optional[LifeStage]:
    """Bucket an age by whole months; days never move the boundary."""
    if age is None:
        return None
    total_months = age.total_months
    if total_months <= INFANT_MAX_MONTHS:
        return LifeStage.INFANT
    if total_months <= JUVENILE_MAX_MONTHS:
        return LifeStage.JUVENILE
    return LifeStage.ADULT
