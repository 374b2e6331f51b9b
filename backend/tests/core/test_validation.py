"""Unit tests for intake validation - pure functions, no mocks needed."""

import pytest

from hydrotrack.core.models import IntakeType
from hydrotrack.core.validation import (
    MAX_DAILY_TOTAL,
    MAX_SINGLE_ENTRY,
    REASON_DAILY_LIMIT,
    REASON_ENTRY_TOO_LARGE,
    REASON_NOT_WHOLE,
    REASON_TOO_SMALL,
    validate_intake,
)


ALL_TYPES = list(IntakeType)


class TestWholeAmounts:
    """Tests for the whole-number rule."""

    @pytest.mark.parametrize("amount", [1.5, 250.0, "250", None, True])
    def test_non_integers_rejected(self, amount):
        """Fractions, floats, strings, None and booleans are rejected."""
        result = validate_intake(IntakeType.WATER, amount, 0)
        assert result.ok is False
        assert result.reason == REASON_NOT_WHOLE


class TestAmountTooSmall:
    """Tests for the minimum amount rule."""

    @pytest.mark.parametrize("intake_type", ALL_TYPES)
    @pytest.mark.parametrize("amount", [0, -1, -500])
    def test_non_positive_rejected(self, intake_type, amount):
        """Zero and negative amounts are rejected for every category."""
        result = validate_intake(intake_type, amount, 0)
        assert result.ok is False
        assert result.reason == REASON_TOO_SMALL

    def test_one_accepted(self):
        """The smallest positive amount is accepted."""
        assert validate_intake(IntakeType.PROTEIN, 1, 0).ok is True


class TestSingleEntryCeiling:
    """Tests for the per-entry ceiling."""

    @pytest.mark.parametrize("intake_type", ALL_TYPES)
    def test_at_ceiling_accepted(self, intake_type):
        """An entry exactly at the ceiling is accepted."""
        result = validate_intake(intake_type, MAX_SINGLE_ENTRY[intake_type], 0)
        assert result.ok is True
        assert result.reason is None

    @pytest.mark.parametrize("intake_type", ALL_TYPES)
    def test_above_ceiling_rejected(self, intake_type):
        """An entry one over the ceiling is rejected."""
        result = validate_intake(intake_type, MAX_SINGLE_ENTRY[intake_type] + 1, 0)
        assert result.ok is False
        assert result.reason == REASON_ENTRY_TOO_LARGE

    def test_ceilings(self):
        """Ceilings are 2000 ml, 100 g and 1500 kcal."""
        assert MAX_SINGLE_ENTRY == {
            IntakeType.WATER: 2000,
            IntakeType.PROTEIN: 100,
            IntakeType.CALORIES: 1500,
        }

    def test_checked_even_without_daily_total(self):
        """An unknown daily total never skips the per-entry check."""
        result = validate_intake(IntakeType.WATER, 2001, None)
        assert result.ok is False
        assert result.reason == REASON_ENTRY_TOO_LARGE


class TestDailyCeiling:
    """Tests for the projected daily total."""

    def test_over_daily_limit_rejected(self):
        """9900 + 200 = 10100 ml exceeds the 10000 ml daily limit."""
        result = validate_intake(IntakeType.WATER, 200, 9900)
        assert result.ok is False
        assert result.reason == REASON_DAILY_LIMIT

    def test_exactly_at_daily_limit_accepted(self):
        """9900 + 100 lands exactly on the limit and is accepted."""
        assert validate_intake(IntakeType.WATER, 100, 9900).ok is True

    def test_protein_daily_limit(self):
        """Protein is capped at 500 g per day."""
        assert MAX_DAILY_TOTAL[IntakeType.PROTEIN] == 500
        assert validate_intake(IntakeType.PROTEIN, 50, 460).reason == REASON_DAILY_LIMIT

    def test_calorie_daily_limit(self):
        """Calories are capped at 10000 kcal per day."""
        assert validate_intake(IntakeType.CALORIES, 1500, 8500).ok is True
        assert validate_intake(IntakeType.CALORIES, 1500, 8501).ok is False

    def test_unknown_total_skips_daily_check(self):
        """Without a known total the daily limit is not enforced."""
        assert validate_intake(IntakeType.WATER, 2000, None).ok is True
