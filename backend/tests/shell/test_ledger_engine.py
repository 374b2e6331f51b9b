"""Tests for the ledger engine against the in-memory store."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from hydrotrack.core.errors import NotFoundError, PersistenceError, ValidationError
from hydrotrack.core.models import IntakeType, User
from hydrotrack.shell.ledger import LedgerEngine
from hydrotrack.shell.memory_store import InMemoryTrackerStore


TODAY = date(2024, 12, 28)
NOW = datetime(2024, 12, 28, 9, 15)


@pytest.fixture
def store():
    """Store with one user on the default goals."""
    s = InMemoryTrackerStore()
    s.update_user(User(user_id="user-1"))
    return s


@pytest.fixture
def ledger(store):
    return LedgerEngine(store)


class TestAppendIntake:
    """Tests for append_intake."""

    def test_first_intake_creates_log(self, ledger, store):
        """The first intake of the day creates the log with the user's goals."""
        log = ledger.append_intake("user-1", IntakeType.WATER, 250, NOW, today=TODAY)

        assert log.total_water == 250
        assert log.water_entries[0].time == "09:15"
        assert (log.water_goal, log.protein_goal, log.calorie_goal) == (2000, 100, 2000)
        assert store.get_daily_log("user-1", TODAY) == log

    def test_updates_lifetime_total(self, ledger, store):
        """Each intake also adds to the user's lifetime total."""
        ledger.append_intake("user-1", IntakeType.PROTEIN, 30, NOW, today=TODAY)
        ledger.append_intake("user-1", IntakeType.PROTEIN, 20, NOW, today=TODAY)

        user = store.get_user("user-1")
        assert user.total_protein_consumed == 50
        assert user.total_water_consumed == 0

    def test_goal_snapshot_is_kept(self, ledger, store):
        """Changing goals mid-day does not touch today's existing log."""
        ledger.append_intake("user-1", IntakeType.WATER, 250, NOW, today=TODAY)
        store.update_user(User(user_id="user-1", water_goal=3000, total_water_consumed=250))
        log = ledger.append_intake("user-1", IntakeType.WATER, 250, NOW, today=TODAY)

        assert log.water_goal == 2000

    def test_rejects_other_dates(self, ledger, store):
        """Entries for any day but today are rejected before writing."""
        with pytest.raises(ValidationError):
            ledger.append_intake(
                "user-1", IntakeType.WATER, 250, datetime(2024, 12, 27, 23, 59), today=TODAY
            )
        assert store.get_daily_log("user-1", date(2024, 12, 27)) is None

    def test_unknown_user(self, ledger):
        """Without a user no default log can be made."""
        with pytest.raises(NotFoundError):
            ledger.append_intake("nobody", IntakeType.WATER, 250, NOW, today=TODAY)

    def test_persistence_failure_surfaces(self):
        """A failed log transaction raises and skips the lifetime update."""
        store = MagicMock()
        store.get_user.return_value = User(user_id="user-1")
        store.transactional_update_daily_log.side_effect = PersistenceError("down")

        with pytest.raises(PersistenceError):
            LedgerEngine(store).append_intake("user-1", IntakeType.WATER, 250, NOW, today=TODAY)
        store.transactional_update_user.assert_not_called()


class TestConcurrentAppends:
    """Concurrent intakes must all land."""

    def test_two_concurrent_additions(self, ledger, store):
        """100 ml and 200 ml at the same time give 300 ml in two entries."""
        barrier = threading.Barrier(2)
        real_update = store.transactional_update_daily_log

        def synchronized_update(user_id, log_date, fn):
            # Make both threads read before either writes
            def fn_after_barrier(log):
                try:
                    barrier.wait(timeout=1)
                except threading.BrokenBarrierError:
                    pass
                return fn(log)

            return real_update(user_id, log_date, fn_after_barrier)

        store.transactional_update_daily_log = synchronized_update

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(ledger.append_intake, "user-1", IntakeType.WATER, amount, NOW, today=TODAY)
                for amount in (100, 200)
            ]
            for future in futures:
                future.result()

        log = store.get_daily_log("user-1", TODAY)
        assert log.total_water == 300
        assert sorted(e.amount for e in log.water_entries) == [100, 200]
        assert store.get_user("user-1").total_water_consumed == 300

    def test_many_concurrent_additions(self):
        """A burst of taps loses nothing."""
        store = InMemoryTrackerStore(max_attempts=100)
        store.update_user(User(user_id="user-1"))
        ledger = LedgerEngine(store)

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [
                pool.submit(ledger.append_intake, "user-1", IntakeType.CALORIES, 10, NOW, today=TODAY)
                for _ in range(20)
            ]:
                future.result()

        log = store.get_daily_log("user-1", TODAY)
        assert log.total_calories == 200
        assert len(log.calorie_entries) == 20
        assert store.get_user("user-1").total_calories_consumed == 200


class TestGetDailyLog:
    """Tests for reading logs through the engine."""

    def test_synthesizes_missing_log(self, ledger, store):
        """A missing log reads as empty with current goals, without being stored."""
        log = ledger.get_daily_log("user-1", TODAY)
        assert log.total_water == 0
        assert log.water_goal == 2000
        assert store.get_daily_log("user-1", TODAY) is None

    def test_repeated_reads_match(self, ledger):
        """Reading twice without writes gives identical totals."""
        ledger.append_intake("user-1", IntakeType.WATER, 400, NOW, today=TODAY)
        first = ledger.get_daily_log("user-1", TODAY)
        second = ledger.get_daily_log("user-1", TODAY)
        assert (first.total_water, first.total_protein, first.total_calories) == (
            second.total_water,
            second.total_protein,
            second.total_calories,
        )

    def test_missing_user_and_log(self, ledger):
        """No log and no user is NotFoundError."""
        with pytest.raises(NotFoundError):
            ledger.get_daily_log("nobody", TODAY)
