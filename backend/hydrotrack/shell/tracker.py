"""Intake Tracker - The operations the presentation layer calls.

Wires validation, the ledger engine and both evaluators into the intake
flow, and exposes the read side (today's log, history, statistics,
achievements) and profile edits.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from ..core.achievements import merge_with_catalog
from ..core.errors import NotFoundError, ValidationError
from ..core.goals import ProfileUpdate, apply_profile_update
from ..core.models import AchievementRecord, DailyLog, IntakeType, User
from ..core.stats import Period, PeriodSummary, month_bounds, period_start, summarize_period
from ..core.validation import validate_intake
from .evaluators import AchievementEvaluator, StreakEvaluator
from .ledger import LedgerEngine
from .store import DailyLogCallback, Subscription, TrackerStore


logger = logging.getLogger(__name__)


@dataclass
class IntakeResult:
    """Outcome of a recorded intake.

    Attributes:
        log: Today's log including the new entry
        streak: New current streak, or None if streak evaluation failed
        unlocked: Achievement IDs unlocked by this intake
    """

    log: DailyLog
    streak: Optional[int] = None
    unlocked: list[str] = field(default_factory=list)


class IntakeTracker:
    """Entry point for recording intake and reading progress.

    Daily-limit validation uses the last log this tracker saw for the day.
    If none has been seen, the daily limit check is skipped rather than
    blocking the entry.
    """

    def __init__(
        self,
        store: TrackerStore,
        ledger: LedgerEngine | None = None,
        streaks: StreakEvaluator | None = None,
        achievements: AchievementEvaluator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.ledger = ledger or LedgerEngine(store)
        self.streaks = streaks or StreakEvaluator(store)
        self.achievements = achievements or AchievementEvaluator(store)
        self._clock = clock
        # Latest day seen per user; history reads never displace it
        self._cached_logs: dict[str, DailyLog] = {}

    def _remember(self, log: DailyLog) -> DailyLog:
        cached = self._cached_logs.get(log.user_id)
        if cached is None or log.log_date >= cached.log_date:
            self._cached_logs[log.user_id] = log
        return log

    def cached_daily_total(self, user_id: str, intake_type: IntakeType, today: date) -> int | None:
        """Today's total as last seen by this tracker, or None if unknown."""
        log = self._cached_logs.get(user_id)
        if log is None or log.log_date != today:
            return None
        return log.total_for(intake_type)

    # ==================== Intake ====================

    def add_intake(
        self,
        user_id: str,
        intake_type: IntakeType,
        amount: int,
        note: str = "",
        now: datetime | None = None,
    ) -> IntakeResult:
        """Validate and record an intake, then refresh streak and achievements.

        Args:
            user_id: The user's ID
            intake_type: Category of the intake
            amount: Amount in the category's unit
            note: Optional free-text note
            now: Current time (defaults to the tracker's clock)

        Returns:
            IntakeResult with the updated log

        Raises:
            ValidationError: If the entry is rejected; nothing is written
            NotFoundError: If the user does not exist
            PersistenceError: If the intake could not be recorded
        """
        now = now or self._clock()
        today = now.date()

        result = validate_intake(
            intake_type, amount, self.cached_daily_total(user_id, intake_type, today)
        )
        if not result.ok:
            logger.info("Rejected %s intake of %s: %s", intake_type.value, amount, result.reason)
            raise ValidationError(result.reason or "invalid intake")

        log = self._remember(
            self.ledger.append_intake(
                user_id, intake_type, amount, now, today=today, note=note
            )
        )
        outcome = IntakeResult(log=log)

        # The intake is recorded; later failures must not undo or fail it.
        try:
            outcome.streak = self.streaks.update_streak(user_id, today)
        except Exception:
            logger.exception("Streak update failed for %s", user_id[:8])

        try:
            user = self._store.get_user(user_id)
            if user is not None:
                fresh_log = self._store.get_daily_log(user_id, today) or log
                outcome.unlocked = self.achievements.check_achievements(
                    user_id, user, self._remember(fresh_log), now
                )
        except Exception:
            logger.exception("Achievement check failed for %s", user_id[:8])

        return outcome

    # ==================== Queries ====================

    def get_user(self, user_id: str) -> User:
        """Fetch a user.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id[:8]}")
        return user

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog:
        """Fetch a day's log, or an empty one with the user's current goals."""
        return self._remember(self.ledger.get_daily_log(user_id, log_date))

    def get_today_log(self, user_id: str, now: datetime | None = None) -> DailyLog:
        """Fetch today's log."""
        return self.get_daily_log(user_id, (now or self._clock()).date())

    def get_logs(self, user_id: str, start_date: date, end_date: date) -> list[DailyLog]:
        """Stored logs between two dates (inclusive), ordered by date."""
        return self._store.query_logs_by_date_range(user_id, start_date, end_date)

    def get_month_history(self, user_id: str, year: int, month: int) -> list[DailyLog]:
        """Stored logs for a calendar month, most recent first."""
        start_date, end_date = month_bounds(year, month)
        logs = self.get_logs(user_id, start_date, end_date)
        return sorted(logs, key=lambda x: x.log_date, reverse=True)

    def get_statistics(
        self, user_id: str, period: Period, today: date | None = None
    ) -> PeriodSummary:
        """Summarize the period ending today."""
        end_date = today or self._clock().date()
        start_date = period_start(period, end_date)
        logs = self.get_logs(user_id, start_date, end_date)
        return summarize_period(logs, start_date, end_date)

    def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        """Every catalog achievement with the user's unlock state."""
        records = self._store.list_achievements(user_id)
        return merge_with_catalog(self.achievements.catalog, records)

    def watch_today_log(
        self, user_id: str, callback: DailyLogCallback, now: datetime | None = None
    ) -> Subscription:
        """Subscribe to today's log, keeping the validation cache current."""
        today = (now or self._clock()).date()

        def on_change(log: DailyLog | None) -> None:
            if log is not None:
                self._remember(log)
            callback(log)

        return self._store.subscribe_daily_log(user_id, today, on_change)

    # ==================== Profile ====================

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User:
        """Apply a profile edit to the stored user.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self._store.transactional_update_user(
            user_id, lambda u: apply_profile_update(u, update)
        )
        logger.info("Profile updated for %s", user_id[:8])
        return user
