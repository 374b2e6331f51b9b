"""Firestore Client - Persistence for users, daily logs and achievements.

This module handles all database I/O against Firestore.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..core.errors import HydroTrackError, NotFoundError, PersistenceError
from ..core.models import AchievementRecord, DailyLog, User
from .store import DailyLogCallback, Subscription, UserCallback


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        timeout: Per-request timeout in seconds (None for the library default)
        max_attempts: Attempts per transaction before giving up on contention
    """

    project_id: str | None = None
    database: str | None = None
    timeout: float | None = None
    max_attempts: int = 5


class TrackerFirestoreClient:
    """Client for persisting users, daily logs and achievements to Firestore.

    Document structure per user:
        users/{user_id}: { email, water_goal, current_streak, ... }
            logs/{YYYY-MM-DD}: { log_date, water_entries: [...], total_water, ... }
            achievements/{achievement_id}: { title, is_unlocked, unlocked_at, ... }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _request_kwargs(self) -> dict[str, Any]:
        if self.config.timeout is None:
            return {}
        return {"timeout": self.config.timeout}

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self.client.collection("users").document(user_id)

    def _log_ref(self, user_id: str, log_date: date) -> firestore.DocumentReference:
        """Get reference to daily log document."""
        return self._user_ref(user_id).collection("logs").document(log_date.isoformat())

    def _achievement_ref(self, user_id: str, achievement_id: str) -> firestore.DocumentReference:
        """Get reference to achievement unlock document."""
        return self._user_ref(user_id).collection("achievements").document(achievement_id)

    # ==================== User Operations ====================

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user.

        Args:
            user_id: The user's ID

        Returns:
            User if found, None otherwise
        """
        logger.debug("Fetching user: %s", user_id[:8])
        try:
            doc = self._user_ref(user_id).get(**self._request_kwargs())
        except Exception as e:
            logger.error("Failed to fetch user: %s", str(e))
            raise PersistenceError("Failed to fetch user") from e
        if not doc.exists:
            return None
        return User(**doc.to_dict())

    def update_user(self, user: User) -> None:
        """Overwrite a user document.

        Args:
            user: The user to save
        """
        logger.info("Saving user: %s", user.user_id[:8])
        try:
            self._user_ref(user.user_id).set(
                user.model_dump(mode="json"), **self._request_kwargs()
            )
        except Exception as e:
            logger.error("Failed to save user: %s", str(e))
            raise PersistenceError("Failed to save user") from e

    def transactional_update_user(
        self, user_id: str, fn: Callable[[User], User]
    ) -> User:
        """Atomically replace a user with fn(user).

        Args:
            user_id: The user's ID
            fn: Pure function from the current user to the new user

        Returns:
            The user as written

        Raises:
            NotFoundError: If the user does not exist
            PersistenceError: If the transaction fails
        """
        ref = self._user_ref(user_id)

        @firestore.transactional
        def _update(transaction: firestore.Transaction) -> User:
            snapshot = ref.get(transaction=transaction, **self._request_kwargs())
            if not snapshot.exists:
                raise NotFoundError(f"User not found: {user_id[:8]}")
            updated = fn(User(**snapshot.to_dict()))
            transaction.set(ref, updated.model_dump(mode="json"))
            return updated

        return self._run_transaction(_update, "update user")

    def delete_user(self, user_id: str) -> None:
        """Delete a user document and its logs and achievements.

        Args:
            user_id: The user's ID
        """
        logger.info("Deleting user: %s", user_id[:8])
        user_ref = self._user_ref(user_id)
        try:
            for name in ("logs", "achievements"):
                for doc in user_ref.collection(name).stream(**self._request_kwargs()):
                    doc.reference.delete(**self._request_kwargs())
            user_ref.delete(**self._request_kwargs())
        except Exception as e:
            logger.error("Failed to delete user: %s", str(e))
            raise PersistenceError("Failed to delete user") from e

    # ==================== Daily Log Operations ====================

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog | None:
        """Fetch a daily log.

        Args:
            user_id: The user's ID
            log_date: Date of the log

        Returns:
            DailyLog if found, None otherwise
        """
        logger.debug("Fetching log for %s on %s", user_id[:8], log_date)
        try:
            doc = self._log_ref(user_id, log_date).get(**self._request_kwargs())
        except Exception as e:
            logger.error("Failed to fetch log: %s", str(e))
            raise PersistenceError("Failed to fetch daily log") from e
        if not doc.exists:
            return None
        return DailyLog(**doc.to_dict())

    def transactional_update_daily_log(
        self,
        user_id: str,
        log_date: date,
        fn: Callable[[DailyLog | None], DailyLog],
    ) -> DailyLog:
        """Atomically replace a daily log with fn(log).

        Args:
            user_id: The user's ID
            log_date: Date of the log
            fn: Pure function from the current log (None if absent) to the new log

        Returns:
            The log as written
        """
        ref = self._log_ref(user_id, log_date)

        @firestore.transactional
        def _update(transaction: firestore.Transaction) -> DailyLog:
            snapshot = ref.get(transaction=transaction, **self._request_kwargs())
            current = DailyLog(**snapshot.to_dict()) if snapshot.exists else None
            updated = fn(current)
            transaction.set(ref, updated.model_dump(mode="json"))
            return updated

        return self._run_transaction(_update, "update daily log")

    def query_logs_by_date_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyLog]:
        """Fetch logs for a date range.

        Args:
            user_id: The user's ID
            start_date: Start of range (inclusive)
            end_date: End of range (inclusive)

        Returns:
            List of DailyLogs found, ordered by date (may be empty)
        """
        logger.debug(
            "Fetching logs for %s from %s to %s", user_id[:8], start_date, end_date
        )
        try:
            # ISO dates sort lexicographically, so string bounds work
            logs_ref = self._user_ref(user_id).collection("logs")
            query = (
                logs_ref.where(filter=FieldFilter("log_date", ">=", start_date.isoformat()))
                .where(filter=FieldFilter("log_date", "<=", end_date.isoformat()))
                .order_by("log_date")
            )
            logs = [DailyLog(**doc.to_dict()) for doc in query.stream(**self._request_kwargs())]
        except Exception as e:
            logger.error("Failed to fetch logs range: %s", str(e))
            raise PersistenceError("Failed to fetch logs") from e

        logger.debug("Found %d logs in range", len(logs))
        return logs

    # ==================== Achievement Operations ====================

    def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        """Fetch the user's achievement unlock records.

        Args:
            user_id: The user's ID

        Returns:
            List of unlock records (may be empty)
        """
        try:
            docs = self._user_ref(user_id).collection("achievements").stream(
                **self._request_kwargs()
            )
            return [AchievementRecord(**doc.to_dict()) for doc in docs]
        except Exception as e:
            logger.error("Failed to fetch achievements: %s", str(e))
            raise PersistenceError("Failed to fetch achievements") from e

    def create_achievement(self, user_id: str, record: AchievementRecord) -> bool:
        """Write an unlock record if none exists yet.

        Args:
            user_id: The user's ID
            record: The unlock record

        Returns:
            True if written, False if the achievement was already unlocked
        """
        logger.info("Unlocking %s for user: %s", record.achievement_id, user_id[:8])
        try:
            self._achievement_ref(user_id, record.achievement_id).create(
                record.model_dump(mode="json"), **self._request_kwargs()
            )
            return True
        except gcp_exceptions.AlreadyExists:
            logger.debug("Achievement already unlocked: %s", record.achievement_id)
            return False
        except Exception as e:
            logger.error("Failed to unlock achievement: %s", str(e))
            raise PersistenceError("Failed to unlock achievement") from e

    # ==================== Subscriptions ====================

    def subscribe_user(self, user_id: str, callback: UserCallback) -> Subscription:
        """Deliver the user document to callback on every change.

        Args:
            user_id: The user's ID
            callback: Receives the User, or None if the document is absent

        Returns:
            Watch handle; call unsubscribe() to stop
        """

        def on_snapshot(snapshots, changes, read_time) -> None:
            for snapshot in snapshots:
                callback(User(**snapshot.to_dict()) if snapshot.exists else None)

        return self._user_ref(user_id).on_snapshot(on_snapshot)

    def subscribe_daily_log(
        self, user_id: str, log_date: date, callback: DailyLogCallback
    ) -> Subscription:
        """Deliver a daily log to callback on every change.

        Args:
            user_id: The user's ID
            log_date: Date of the log
            callback: Receives the DailyLog, or None if the document is absent

        Returns:
            Watch handle; call unsubscribe() to stop
        """

        def on_snapshot(snapshots, changes, read_time) -> None:
            for snapshot in snapshots:
                callback(DailyLog(**snapshot.to_dict()) if snapshot.exists else None)

        return self._log_ref(user_id, log_date).on_snapshot(on_snapshot)

    # ==================== Helpers ====================

    def _run_transaction(self, update: Callable[[Any], Any], action: str) -> Any:
        """Run a transactional function, mapping library errors to PersistenceError."""
        try:
            return update(self.client.transaction(max_attempts=self.config.max_attempts))
        except HydroTrackError:
            raise
        except Exception as e:
            logger.error("Failed to %s: %s", action, str(e))
            raise PersistenceError(f"Failed to {action}") from e
