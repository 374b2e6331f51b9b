"""Intake Validation - Pure functions checking a proposed entry against limits.

All functions are pure: same input always produces same output, no side effects.
"""

from .models import IntakeType, ValidationResult


MIN_INTAKE_AMOUNT = 1

# Largest single entry per category (ml, g, kcal)
MAX_SINGLE_ENTRY = {
    IntakeType.WATER: 2000,
    IntakeType.PROTEIN: 100,
    IntakeType.CALORIES: 1500,
}

# Largest daily total per category (ml, g, kcal)
MAX_DAILY_TOTAL = {
    IntakeType.WATER: 10000,
    IntakeType.PROTEIN: 500,
    IntakeType.CALORIES: 10000,
}

REASON_NOT_WHOLE = "amount must be a whole number"
REASON_TOO_SMALL = "amount too small"
REASON_ENTRY_TOO_LARGE = "single entry exceeds maximum"
REASON_DAILY_LIMIT = "daily limit would be exceeded"


def validate_intake(
    intake_type: IntakeType, amount: int, current_daily_total: int | None
) -> ValidationResult:
    """Check a proposed intake against per-entry and per-day ceilings.

    Args:
        intake_type: Category of the intake
        amount: Proposed amount in the category's unit
        current_daily_total: Today's total so far, or None if unknown

    Returns:
        ValidationResult; when not ok, reason says which rule failed.
        An unknown daily total skips the daily ceiling check only.
    """
    # bool is an int subclass but never a meaningful amount
    if not isinstance(amount, int) or isinstance(amount, bool):
        return ValidationResult(ok=False, reason=REASON_NOT_WHOLE)

    if amount < MIN_INTAKE_AMOUNT:
        return ValidationResult(ok=False, reason=REASON_TOO_SMALL)

    if amount > MAX_SINGLE_ENTRY[intake_type]:
        return ValidationResult(ok=False, reason=REASON_ENTRY_TOO_LARGE)

    if current_daily_total is not None:
        if current_daily_total + amount > MAX_DAILY_TOTAL[intake_type]:
            return ValidationResult(ok=False, reason=REASON_DAILY_LIMIT)

    return ValidationResult(ok=True)
