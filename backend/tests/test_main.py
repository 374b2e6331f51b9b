"""Tests for environment-driven wiring."""

import logging

import pytest

from hydrotrack import main
from hydrotrack.shell.firestore_client import TrackerFirestoreClient
from hydrotrack.shell.memory_store import InMemoryTrackerStore
from hydrotrack.shell.tracker import IntakeTracker


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test with no HydroTrack settings and fresh singletons."""
    for name in (
        "HYDROTRACK_STORE",
        "GOOGLE_CLOUD_PROJECT",
        "FIRESTORE_DATABASE",
        "HYDROTRACK_REQUEST_TIMEOUT",
        "HYDROTRACK_MAX_ATTEMPTS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    main.reset()
    yield
    main.reset()


class TestFirestoreConfig:
    """Tests for firestore_config_from_env."""

    def test_defaults(self):
        """Without settings the hydrotrack database and no timeout are used."""
        config = main.firestore_config_from_env()
        assert config.project_id is None
        assert config.database == "hydrotrack"
        assert config.timeout is None
        assert config.max_attempts == 5

    def test_from_env(self, monkeypatch):
        """Every setting is read from the environment."""
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj")
        monkeypatch.setenv("FIRESTORE_DATABASE", "staging")
        monkeypatch.setenv("HYDROTRACK_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("HYDROTRACK_MAX_ATTEMPTS", "8")

        config = main.firestore_config_from_env()

        assert config.project_id == "proj"
        assert config.database == "staging"
        assert config.timeout == 2.5
        assert config.max_attempts == 8


class TestCreateStore:
    """Tests for create_store."""

    def test_firestore_is_default(self):
        """Firestore is used unless another store is chosen."""
        store = main.create_store()
        assert isinstance(store, TrackerFirestoreClient)
        assert store.config.database == "hydrotrack"

    def test_memory(self, monkeypatch):
        """HYDROTRACK_STORE=memory selects the in-memory store."""
        monkeypatch.setenv("HYDROTRACK_STORE", "Memory")
        monkeypatch.setenv("HYDROTRACK_MAX_ATTEMPTS", "3")

        store = main.create_store()

        assert isinstance(store, InMemoryTrackerStore)
        assert store.max_attempts == 3

    def test_unknown_store(self, monkeypatch):
        """An unknown store name is a configuration error."""
        monkeypatch.setenv("HYDROTRACK_STORE", "redis")
        with pytest.raises(ValueError):
            main.create_store()


class TestSingletons:
    """Tests for the lazy getters."""

    def test_shared_store(self, monkeypatch):
        """Tracker and auth client share one store."""
        monkeypatch.setenv("HYDROTRACK_STORE", "memory")

        tracker = main.get_tracker()

        assert isinstance(tracker, IntakeTracker)
        assert main.get_tracker() is tracker
        assert main.get_auth_client()._store is main.get_store()

    def test_reset(self, monkeypatch):
        """reset() makes the next getter build a new store."""
        monkeypatch.setenv("HYDROTRACK_STORE", "memory")
        first = main.get_store()
        main.reset()
        assert main.get_store() is not first


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_level_from_env(self, monkeypatch):
        """LOG_LEVEL is passed to basicConfig."""
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        monkeypatch.setenv("LOG_LEVEL", "debug")

        main.configure_logging()

        assert calls == [{"level": "DEBUG", "format": main.LOG_FORMAT}]
