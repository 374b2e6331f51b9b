"""Ledger Calculations - Pure functions for daily log and lifetime arithmetic.

All functions are pure: same input always produces same output, no side effects.
The storage shell runs them inside transactions.
"""

from datetime import date, datetime

from .models import (
    DailyLog,
    ENTRY_FIELDS,
    IntakeEntry,
    IntakeType,
    TOTAL_FIELDS,
    User,
)


_LIFETIME_FIELDS = {
    IntakeType.WATER: "total_water_consumed",
    IntakeType.PROTEIN: "total_protein_consumed",
    IntakeType.CALORIES: "total_calories_consumed",
}


def default_log(user: User, log_date: date) -> DailyLog:
    """Create an empty log that snapshots the user's current goals.

    Args:
        user: Owner of the log
        log_date: Calendar date of the log

    Returns:
        DailyLog with no entries and zero totals
    """
    return DailyLog(
        user_id=user.user_id,
        log_date=log_date,
        water_goal=user.water_goal,
        protein_goal=user.protein_goal,
        calorie_goal=user.calorie_goal,
    )


def make_entry(
    intake_type: IntakeType, amount: int, timestamp: datetime, note: str = ""
) -> IntakeEntry:
    """Build an intake entry stamped with the time of day it was recorded."""
    return IntakeEntry(
        amount=amount,
        time=timestamp.strftime("%H:%M"),
        timestamp=timestamp,
        type=intake_type,
        note=note,
    )


def apply_entry(log: DailyLog, entry: IntakeEntry, updated_at: datetime) -> DailyLog:
    """Append an entry to its category and add its amount to that total.

    Args:
        log: Current log (left untouched)
        entry: Entry to append
        updated_at: Modification timestamp for the new log

    Returns:
        New DailyLog with the entry appended
    """
    entries_field = ENTRY_FIELDS[entry.type]
    total_field = TOTAL_FIELDS[entry.type]

    data = log.model_dump()
    data[entries_field] = [*log.entries_for(entry.type), entry]
    data[total_field] = log.total_for(entry.type) + entry.amount
    data["updated_at"] = updated_at
    return DailyLog(**data)


def add_lifetime_total(user: User, intake_type: IntakeType, amount: int) -> User:
    """Return the user with amount added to the category's lifetime total."""
    field = _LIFETIME_FIELDS[intake_type]
    return user.model_copy(update={field: getattr(user, field) + amount})
