"""Streak Rules - Pure functions for goal completion and streak counting.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, timedelta

from .models import DailyLog, User


def goals_met(log: DailyLog | None) -> bool:
    """Check whether all three daily goals were reached.

    An absent log never meets its goals.
    """
    if log is None:
        return False
    return (
        log.total_water >= log.water_goal
        and log.total_protein >= log.protein_goal
        and log.total_calories >= log.calorie_goal
    )


def next_streak(streak_before_today: int, today_met: bool, yesterday_met: bool) -> int:
    """Apply the continuation rule.

    Args:
        streak_before_today: Streak value carried into today
        today_met: Whether today's goals are met
        yesterday_met: Whether yesterday's goals were met

    Returns:
        New streak: continued, restarted at 1, or reset to 0
    """
    if not today_met:
        return 0
    if yesterday_met:
        return streak_before_today + 1
    return 1


def apply_streak(user: User, today: date, today_met: bool, yesterday_met: bool) -> User:
    """Return the user with the streak evaluated for today.

    The first evaluation of a day carries current_streak in as the base and
    remembers it in streak_base; later evaluations on the same day reuse that
    base, so evaluating again without new data changes nothing.

    Totals only grow within a day, so once today has counted as met, a later
    evaluation made from staler totals cannot take the streak back down.
    """
    if user.streak_date == today:
        base = user.streak_base
        today_met = today_met or user.current_streak > 0
    else:
        base = user.current_streak

    streak = next_streak(base, today_met, yesterday_met)
    return user.model_copy(
        update={
            "current_streak": streak,
            "longest_streak": max(user.longest_streak, streak),
            "streak_date": today,
            "streak_base": base,
        }
    )


def longest_streak_from_logs(logs: list[DailyLog]) -> int:
    """Longest run of consecutive calendar days with all goals met."""
    longest = 0
    current = 0
    previous: date | None = None

    for log in sorted(logs, key=lambda x: x.log_date):
        if not goals_met(log):
            current = 0
        elif previous is not None and current and log.log_date - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = log.log_date

    return longest


def current_streak_from_logs(logs: list[DailyLog], today: date) -> int:
    """Count consecutive met days ending today, or yesterday if today is unmet.

    Today still being in progress does not break a streak that ran through
    yesterday.
    """
    met_dates = {log.log_date for log in logs if goals_met(log)}

    day = today if today in met_dates else today - timedelta(days=1)
    streak = 0
    while day in met_dates:
        streak += 1
        day -= timedelta(days=1)
    return streak
