"""Daily study streak calculation and expiry rules."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

DEFAULT_EXPIRY_DAYS = 2


class StreakTransition(str, enum.Enum):
    STARTED = "started"
    SAME_DAY = "same_day"
    INCREMENTED = "incremented"
    BROKEN = "broken"


@dataclass(frozen=True)
class StreakUpdate:
    new_streak: int
    last_study_date: date
    transition: StreakTransition
    previous_streak: int = 0

    @property
    def changed(self) -> bool:
        return self.transition is not StreakTransition.SAME_DAY


def _as_date(value: date | datetime) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def today_in(tz_name: str = "UTC", now: datetime | None = None) -> date:
    """Return the calendar date of ``now`` in the given IANA timezone."""
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def update_streak(
    last_study_date: date | datetime | None,
    today: date | datetime,
    current_streak: int,
) -> StreakUpdate:
    """Compute the streak after a qualifying activity on ``today``.

    Dates are compared at day granularity:

    - no previous activity starts a streak at 1
    - activity on the same day leaves the streak and date untouched
    - activity on the next day extends the streak by one
    - any larger gap (or a date in the future) resets the streak to 1
    """
    today = _as_date(today)

    if last_study_date is None:
        return StreakUpdate(1, today, StreakTransition.STARTED, current_streak)

    last = _as_date(last_study_date)
    days_difference = (today - last).days

    if days_difference == 0:
        return StreakUpdate(current_streak, last, StreakTransition.SAME_DAY, current_streak)
    if days_difference == 1:
        return StreakUpdate(current_streak + 1, today, StreakTransition.INCREMENTED, current_streak)
    return StreakUpdate(1, today, StreakTransition.BROKEN, current_streak)


def streak_expiry_cutoff(today: date | datetime, expiry_days: int = DEFAULT_EXPIRY_DAYS) -> date:
    """Users whose last study date is strictly before this date have lost their streak."""
    return _as_date(today) - timedelta(days=expiry_days)


def is_streak_expired(
    last_study_date: date | None,
    today: date | datetime,
    current_streak: int,
    expiry_days: int = DEFAULT_EXPIRY_DAYS,
) -> bool:
    """Whether the daily expiry sweep should reset this user's streak to 0."""
    if last_study_date is None or current_streak <= 0:
        return False
    return _as_date(last_study_date) < streak_expiry_cutoff(today, expiry_days)
