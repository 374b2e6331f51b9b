"""Evaluators - Streak and achievement updates run after each intake."""

import logging
from datetime import date, datetime, timedelta
from typing import Sequence

from ..core.achievements import ACHIEVEMENT_CATALOG, find_newly_unlocked
from ..core.ledger import default_log
from ..core.models import AchievementRecord, AchievementTemplate, DailyLog, User
from ..core.streaks import apply_streak, goals_met
from .store import TrackerStore


logger = logging.getLogger(__name__)


class StreakEvaluator:
    """Derives and persists the user's streak from today's and yesterday's logs."""

    def __init__(self, store: TrackerStore) -> None:
        self._store = store

    def update_streak(self, user_id: str, today: date) -> int:
        """Re-evaluate the streak for today.

        Args:
            user_id: The user's ID
            today: The current calendar date

        Returns:
            The new current streak

        Raises:
            NotFoundError: If the user does not exist
        """
        def evaluate(current: User) -> User:
            # Read the logs on every attempt so a retry sees the latest totals
            today_log = self._store.get_daily_log(user_id, today) or default_log(current, today)
            yesterday_log = self._store.get_daily_log(user_id, today - timedelta(days=1))
            return apply_streak(current, today, goals_met(today_log), goals_met(yesterday_log))

        updated = self._store.transactional_update_user(user_id, evaluate)
        logger.debug(
            "Streak for %s: %d (longest %d)",
            user_id[:8],
            updated.current_streak,
            updated.longest_streak,
        )
        return updated.current_streak


class AchievementEvaluator:
    """Unlocks catalog achievements whose requirements the user now meets."""

    def __init__(
        self,
        store: TrackerStore,
        catalog: Sequence[AchievementTemplate] = ACHIEVEMENT_CATALOG,
    ) -> None:
        self._store = store
        self.catalog = catalog

    def check_achievements(
        self, user_id: str, user: User, today_log: DailyLog, now: datetime
    ) -> list[str]:
        """Persist unlocks for achievements newly reached.

        Args:
            user_id: The user's ID
            user: Freshest user snapshot
            today_log: Freshest log for today
            now: Unlock timestamp

        Returns:
            IDs of achievements unlocked by this call, in catalog order
        """
        unlocked_ids = {
            r.achievement_id for r in self._store.list_achievements(user_id) if r.is_unlocked
        }
        newly_unlocked: list[str] = []
        for template in find_newly_unlocked(self.catalog, user, today_log, unlocked_ids):
            record = AchievementRecord.from_template(template, unlocked_at=now)
            # Another device may have unlocked it since the listing above
            if self._store.create_achievement(user_id, record):
                logger.info("Achievement unlocked for %s: %s", user_id[:8], template.title)
                newly_unlocked.append(template.achievement_id)
        return newly_unlocked
