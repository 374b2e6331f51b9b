"""In-Memory Store - A process-local TrackerStore with compare-and-set semantics.

Documents are kept as JSON-compatible dicts with a version number. A
transactional update reads a document and its version, runs fn without
holding any lock, and commits only if the version is unchanged; on conflict
it re-runs fn on the fresh document, like a Firestore transaction.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from ..core.errors import NotFoundError, PersistenceError
from ..core.models import AchievementRecord, DailyLog, User
from .store import DailyLogCallback, UserCallback


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5

_Key = tuple[str, ...]


@dataclass
class _Document:
    data: dict[str, Any]
    version: int


class MemorySubscription:
    """Handle returned by the in-memory subscribe methods."""

    def __init__(self, store: "InMemoryTrackerStore", key: _Key, callback: Callable) -> None:
        self._store = store
        self._key = key
        self._callback = callback

    def unsubscribe(self) -> None:
        self._store._remove_listener(self._key, self._callback)


class InMemoryTrackerStore:
    """Thread-safe in-memory implementation of TrackerStore.

    Key layout mirrors the Firestore document paths:
        ("users", user_id)
        ("users", user_id, "logs", YYYY-MM-DD)
        ("users", user_id, "achievements", achievement_id)
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        self.max_attempts = max_attempts
        self._docs: dict[_Key, _Document] = {}
        self._listeners: dict[_Key, list[Callable[[dict | None], None]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _user_key(user_id: str) -> _Key:
        return ("users", user_id)

    @staticmethod
    def _log_key(user_id: str, log_date: date) -> _Key:
        return ("users", user_id, "logs", log_date.isoformat())

    @staticmethod
    def _achievement_key(user_id: str, achievement_id: str) -> _Key:
        return ("users", user_id, "achievements", achievement_id)

    # ==================== Document primitives ====================

    def _read(self, key: _Key) -> _Document | None:
        with self._lock:
            doc = self._docs.get(key)
            if doc is None:
                return None
            return _Document(data=dict(doc.data), version=doc.version)

    def _write(self, key: _Key, data: dict[str, Any], expected_version: int | None) -> bool:
        """Commit data if the stored version still equals expected_version.

        expected_version None means "document must be absent"; -1 writes
        unconditionally.
        """
        with self._lock:
            current = self._docs.get(key)
            current_version = current.version if current is not None else None
            if expected_version != -1 and current_version != expected_version:
                return False
            next_version = (current_version or 0) + 1
            self._docs[key] = _Document(data=data, version=next_version)
            listeners = list(self._listeners.get(key, []))
        self._notify(listeners, data)
        return True

    def _delete(self, key: _Key) -> None:
        with self._lock:
            self._docs.pop(key, None)
            listeners = list(self._listeners.get(key, []))
        self._notify(listeners, None)

    def _transact(self, key: _Key, fn: Callable[[dict | None], dict]) -> dict:
        for attempt in range(1, self.max_attempts + 1):
            doc = self._read(key)
            data = fn(doc.data if doc is not None else None)
            if self._write(key, data, doc.version if doc is not None else None):
                return data
            logger.debug("Write conflict on %s (attempt %d)", "/".join(key), attempt)
        logger.error("Transaction on %s gave up after %d attempts", "/".join(key), self.max_attempts)
        raise PersistenceError(f"Too much contention on {'/'.join(key)}")

    def _notify(self, listeners: list[Callable[[dict | None], None]], data: dict | None) -> None:
        for listener in listeners:
            try:
                listener(data)
            except Exception:
                logger.exception("Subscription callback failed")

    def _add_listener(self, key: _Key, listener: Callable[[dict | None], None]) -> MemorySubscription:
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)
            doc = self._docs.get(key)
            initial = dict(doc.data) if doc is not None else None
        # Like a snapshot listener, deliver the current state right away
        self._notify([listener], initial)
        return MemorySubscription(self, key, listener)

    def _remove_listener(self, key: _Key, listener: Callable) -> None:
        with self._lock:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

    # ==================== User Operations ====================

    def get_user(self, user_id: str) -> User | None:
        doc = self._read(self._user_key(user_id))
        return User(**doc.data) if doc is not None else None

    def update_user(self, user: User) -> None:
        self._write(self._user_key(user.user_id), user.model_dump(mode="json"), -1)

    def transactional_update_user(self, user_id: str, fn: Callable[[User], User]) -> User:
        def update(data: dict | None) -> dict:
            if data is None:
                raise NotFoundError(f"User not found: {user_id[:8]}")
            return fn(User(**data)).model_dump(mode="json")

        return User(**self._transact(self._user_key(user_id), update))

    def delete_user(self, user_id: str) -> None:
        prefix = self._user_key(user_id)
        with self._lock:
            keys = [key for key in self._docs if key[: len(prefix)] == prefix]
        for key in keys:
            self._delete(key)

    # ==================== Daily Log Operations ====================

    def get_daily_log(self, user_id: str, log_date: date) -> DailyLog | None:
        doc = self._read(self._log_key(user_id, log_date))
        return DailyLog(**doc.data) if doc is not None else None

    def transactional_update_daily_log(
        self,
        user_id: str,
        log_date: date,
        fn: Callable[[DailyLog | None], DailyLog],
    ) -> DailyLog:
        def update(data: dict | None) -> dict:
            current = DailyLog(**data) if data is not None else None
            return fn(current).model_dump(mode="json")

        return DailyLog(**self._transact(self._log_key(user_id, log_date), update))

    def query_logs_by_date_range(
        self, user_id: str, start_date: date, end_date: date
    ) -> list[DailyLog]:
        prefix = (*self._user_key(user_id), "logs")
        start, end = start_date.isoformat(), end_date.isoformat()
        with self._lock:
            matches = [
                dict(doc.data)
                for key, doc in self._docs.items()
                if key[:3] == prefix and start <= key[3] <= end
            ]
        logs = [DailyLog(**data) for data in matches]
        return sorted(logs, key=lambda x: x.log_date)

    # ==================== Achievement Operations ====================

    def list_achievements(self, user_id: str) -> list[AchievementRecord]:
        prefix = (*self._user_key(user_id), "achievements")
        with self._lock:
            matches = [dict(doc.data) for key, doc in self._docs.items() if key[:3] == prefix]
        return [AchievementRecord(**data) for data in matches]

    def create_achievement(self, user_id: str, record: AchievementRecord) -> bool:
        key = self._achievement_key(user_id, record.achievement_id)
        return self._write(key, record.model_dump(mode="json"), None)

    # ==================== Subscriptions ====================

    def subscribe_user(self, user_id: str, callback: UserCallback) -> MemorySubscription:
        def listener(data: dict | None) -> None:
            callback(User(**data) if data is not None else None)

        return self._add_listener(self._user_key(user_id), listener)

    def subscribe_daily_log(
        self, user_id: str, log_date: date, callback: DailyLogCallback
    ) -> MemorySubscription:
        def listener(data: dict | None) -> None:
            callback(DailyLog(**data) if data is not None else None)

        return self._add_listener(self._log_key(user_id, log_date), listener)
