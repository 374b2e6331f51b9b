"""Statistics - Pure functions summarizing daily logs over a period.

All functions are pure: same input always produces same output, no side effects.
"""

import calendar
from datetime import date, timedelta
from enum import Enum

from pydantic import BaseModel

from .models import DailyLog
from .streaks import current_streak_from_logs, goals_met, longest_streak_from_logs


class Period(str, Enum):
    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "three_months"


class PeriodSummary(BaseModel):
    """Aggregate metrics over the logs of a period."""

    start_date: date
    end_date: date
    days_logged: int
    perfect_days: int
    avg_water: int
    avg_protein: int
    avg_calories: int
    current_streak: int
    longest_streak: int


def subtract_months(day: date, months: int) -> date:
    """Move a date back by whole months, clamping to the target month's end."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def period_start(period: Period, end: date) -> date:
    """First date covered by a period ending on end (inclusive)."""
    if period == Period.WEEK:
        return end - timedelta(days=7)
    if period == Period.MONTH:
        return subtract_months(end, 1)
    return subtract_months(end, 3)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last date of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def summarize_period(logs: list[DailyLog], start_date: date, end_date: date) -> PeriodSummary:
    """Summarize the logs falling between start_date and end_date.

    Args:
        logs: Daily logs (may include days outside the range)
        start_date: First day of the period (inclusive)
        end_date: Last day of the period (inclusive), treated as today

    Returns:
        PeriodSummary; averages are whole units over logged days only
    """
    period_logs = [log for log in logs if start_date <= log.log_date <= end_date]
    days_logged = len(period_logs)

    def average(total: int) -> int:
        return total // days_logged if days_logged > 0 else 0

    return PeriodSummary(
        start_date=start_date,
        end_date=end_date,
        days_logged=days_logged,
        perfect_days=sum(1 for log in period_logs if goals_met(log)),
        avg_water=average(sum(log.total_water for log in period_logs)),
        avg_protein=average(sum(log.total_protein for log in period_logs)),
        avg_calories=average(sum(log.total_calories for log in period_logs)),
        current_streak=current_streak_from_logs(period_logs, end_date),
        longest_streak=longest_streak_from_logs(period_logs),
    )
