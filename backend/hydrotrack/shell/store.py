"""Store Interface - The persistence contract the engines depend on.

Implemented by the Firestore client and by the in-memory store. Every
transactional update is an atomic read-modify-write: fn receives the
current document and its result is written only if nothing else wrote the
document in between, otherwise fn is re-run on the fresh document.
"""

from datetime import date
from typing import Callable, Optional, Protocol

from ..core.models import AchievementRecord, DailyLog, User


class Subscription(Protocol):
    """Handle for a live subscription."""

    def unsubscribe(self) -> None:
        """Stop delivering updates."""


UserCallback = Callable[[Optional[User]], None]
DailyLogCallback = Callable[[Optional[DailyLog]], None]


class TrackerStore(Protocol):
    """Persistence for users, daily logs and achievement unlocks."""

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user, or None if absent."""

    def update_user(self, user: User) -> None:
        """Overwrite the full user document."""

    def transactional_update_user(
        self, user_id: str, fn: Callable[[User], User]
    ) -> User:
        """Atomically replace the user with fn(user). Raises NotFoundError if absent."""

    def delete_user(self, user_id: str) -> None:
        """Delete the user with all of their logs and achievements."""

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog | None:
        """Fetch a daily log, or None if absent."""

    def transactional_update_daily_log(
        self,
        user_id: str,
        log_date: date,
        fn: Callable[[DailyLog | None], DailyLog],
    ) -> DailyLog:
        """Atomically replace the log with fn(log); fn gets None if absent."""

    def query_logs_by_date_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyLog]:
        """Logs from start_date to end_date (inclusive), ordered by date."""

    def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        """Unlock records for the user."""

    def create_achievement(self, user_id: str, record: AchievementRecord) -> bool:
        """Write an unlock record once. Returns False if it already exists."""

    def subscribe_user(self, user_id: str, callback: UserCallback) -> Subscription:
        """Deliver the user document to callback on every change."""

    def subscribe_daily_log(
        self, user_id: str, log_date: date, callback: DailyLogCallback
    ) -> Subscription:
        """Deliver the daily log to callback on every change."""
