"""HydroTrack - Logging setup and environment-driven wiring.

The presentation layer calls get_tracker() / get_auth_client() and works
with the returned objects; everything else is configured from the
environment.
"""

import logging
import os

from .shell.auth import AuthClient
from .shell.firestore_client import FirestoreConfig, TrackerFirestoreClient
from .shell.memory_store import DEFAULT_MAX_ATTEMPTS, InMemoryTrackerStore
from .shell.store import TrackerStore
from .shell.tracker import IntakeTracker


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)

# Lazy-initialized singletons
_store: TrackerStore | None = None
_tracker: IntakeTracker | None = None
_auth_client: AuthClient | None = None


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL (default INFO)."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format=LOG_FORMAT,
    )


def firestore_config_from_env() -> FirestoreConfig:
    """Build Firestore settings from environment variables."""
    timeout = os.environ.get("HYDROTRACK_REQUEST_TIMEOUT")
    return FirestoreConfig(
        project_id=os.environ.get("GOOGLE_CLOUD_PROJECT"),
        database=os.environ.get("FIRESTORE_DATABASE", "hydrotrack"),
        timeout=float(timeout) if timeout else None,
        max_attempts=int(os.environ.get("HYDROTRACK_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
    )


def create_store() -> TrackerStore:
    """Create the store selected by HYDROTRACK_STORE (firestore or memory)."""
    backend = os.environ.get("HYDROTRACK_STORE", "firestore").lower()
    if backend == "memory":
        logger.info("Using in-memory store")
        return InMemoryTrackerStore(
            max_attempts=int(os.environ.get("HYDROTRACK_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
        )
    if backend != "firestore":
        raise ValueError(f"Unknown HYDROTRACK_STORE: {backend}")

    config = firestore_config_from_env()
    logger.info("Using Firestore database: %s", config.database)
    return TrackerFirestoreClient(config)


def get_store() -> TrackerStore:
    """Get or create the store."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_tracker() -> IntakeTracker:
    """Get or create the intake tracker."""
    global _tracker
    if _tracker is None:
        _tracker = IntakeTracker(get_store())
    return _tracker


def get_auth_client() -> AuthClient:
    """Get or create Auth client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient(get_store())
    return _auth_client


def reset() -> None:
    """Drop the cached singletons so the next getter call re-reads the environment."""
    global _store, _tracker, _auth_client
    _store = None
    _tracker = None
    _auth_client = None
