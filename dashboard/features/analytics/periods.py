"""Lookback period tokens and their resolution to time windows."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Literal, get_args

from sqlalchemy import ColumnElement

from dashboard.core.exceptions import ValidationError

Period = Literal["7d", "30d", "90d", "1y"]
ActivityPeriod = Literal["7d", "30d", "90d"]
RevenuePeriod = Literal["30d", "90d", "1y"]

ALL_PERIODS: tuple[str, ...] = get_args(Period)
ACTIVITY_PERIODS: tuple[str, ...] = get_args(ActivityPeriod)
REVENUE_PERIODS: tuple[str, ...] = get_args(RevenuePeriod)

PERIOD_DAYS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class TimeWindow:
    """Lookback window ending at the instant the query was made.

    Row filters treat both bounds as inclusive.
    """

    start: datetime
    end: datetime

    @property
    def days(self) -> int:
        """Elapsed whole days, rounded up."""
        return math.ceil((self.end - self.start) / ONE_DAY)

    def contains(self, column: ColumnElement[Any]) -> ColumnElement[bool]:
        """SQL predicate selecting rows whose timestamp lies in the window."""
        return (column >= self.start) & (column <= self.end)


def days_for(period: str) -> int:
    """Map a period token to its length in days.

    Raises:
        ValidationError: If the token is unknown.
    """
    try:
        return PERIOD_DAYS[period]
    except KeyError:
        raise ValidationError(
            f"Unknown period '{period}'",
            details={"field": "period", "period": period, "allowed": list(ALL_PERIODS)},
        ) from None


def resolve_period(
    period: str,
    now: datetime,
    allowed: tuple[str, ...] = ALL_PERIODS,
) -> TimeWindow:
    """Resolve a period token to the window [now - N days, now].

    Args:
        period: Period token.
        now: Reference instant, normally from the injected clock.
        allowed: Tokens accepted by the calling metric.

    Returns:
        The resolved time window.

    Raises:
        ValidationError: If the token is unknown or not accepted by the metric.
    """
    if period not in allowed:
        raise ValidationError(
            f"Period '{period}' is not supported here",
            details={"field": "period", "period": period, "allowed": list(allowed)},
        )
    return TimeWindow(start=now - timedelta(days=days_for(period)), end=now)
