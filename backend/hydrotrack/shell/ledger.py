"""Ledger Engine - Records intake entries against the persisted daily log.

Each intake is two transactional updates: the day's log, then the user's
lifetime total. Both go through the store's compare-and-set transactions,
so concurrent intakes from any number of devices all land.
"""

import logging
from datetime import date, datetime

from ..core.errors import NotFoundError, ValidationError
from ..core.ledger import add_lifetime_total, apply_entry, default_log, make_entry
from ..core.models import DailyLog, IntakeType, User
from .store import TrackerStore


logger = logging.getLogger(__name__)

REASON_NOT_TODAY = "entry date is not the current date"


class LedgerEngine:
    """Applies intake entries to daily logs and lifetime totals."""

    def __init__(self, store: TrackerStore) -> None:
        self._store = store

    def _require_user(self, user_id: str) -> User:
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id[:8]}")
        return user

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog:
        """Fetch a daily log, synthesizing an empty one if none is stored.

        The synthesized log is not persisted.

        Raises:
            NotFoundError: If neither the log nor the user exists
        """
        log = self._store.get_daily_log(user_id, log_date)
        if log is not None:
            return log
        return default_log(self._require_user(user_id), log_date)

    def append_intake(
        self,
        user_id: str,
        intake_type: IntakeType,
        amount: int,
        timestamp: datetime,
        *,
        today: date,
        note: str = "",
    ) -> DailyLog:
        """Record an intake on today's log and the user's lifetime total.

        Args:
            user_id: The user's ID
            intake_type: Category of the intake
            amount: Amount in the category's unit
            timestamp: When the intake was recorded
            today: The current calendar date
            note: Optional free-text note

        Returns:
            The daily log as written

        Raises:
            ValidationError: If timestamp does not fall on today
            NotFoundError: If the user does not exist
            PersistenceError: If either transaction fails
        """
        if timestamp.date() != today:
            raise ValidationError(REASON_NOT_TODAY)

        entry = make_entry(intake_type, amount, timestamp, note)
        # Goals for a new log come from the user as of this intake
        user = self._require_user(user_id)

        def append(log: DailyLog | None) -> DailyLog:
            if log is None:
                log = default_log(user, today)
            return apply_entry(log, entry, updated_at=timestamp)

        log = self._store.transactional_update_daily_log(user_id, today, append)
        logger.info(
            "Recorded %d %s for %s on %s", amount, intake_type.value, user_id[:8], today
        )

        self._store.transactional_update_user(
            user_id, lambda u: add_lifetime_total(u, intake_type, amount)
        )
        return log
