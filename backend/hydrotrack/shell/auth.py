"""Authentication - API key generation, validation and the signed-in user.

Handles API key creation, hashing, and validation. Never stores plaintext keys.
"""

import hashlib
import logging
import secrets
from contextvars import ContextVar
from datetime import datetime

from ..core.errors import NotFoundError
from ..core.models import User
from .store import TrackerStore


logger = logging.getLogger(__name__)

API_KEY_PREFIX = "htk_"
API_KEY_RANDOM_BYTES = 32
# Shortest key we accept: the prefix plus 36 random characters
MIN_API_KEY_LENGTH = len(API_KEY_PREFIX) + 36
USER_ID_LENGTH = 32

# Signed-in user for the current request/task
_current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)


def generate_api_key() -> str:
    """Issue a new HydroTrack API key (htk_ followed by URL-safe random text)."""
    return API_KEY_PREFIX + secrets.token_urlsafe(API_KEY_RANDOM_BYTES)


def hash_api_key(api_key: str) -> str:
    """Derive the user_id a key signs in as.

    The key itself is never stored; the user document is keyed by this digest
    and also keeps it as api_key_hash.
    """
    return hashlib.sha256(api_key.encode()).hexdigest()[:USER_ID_LENGTH]


def validate_api_key_format(api_key: str | None) -> bool:
    """Cheap shape check run before any store lookup."""
    return (
        bool(api_key)
        and api_key.startswith(API_KEY_PREFIX)
        and len(api_key) >= MIN_API_KEY_LENGTH
    )


class AuthClient:
    """Client for API key authentication operations.

    Registers users with default goals, validates API keys against the store
    and tracks which user is signed in for the current context.
    """

    def __init__(self, store: TrackerStore) -> None:
        """Initialize auth client.

        Args:
            store: Store holding the user documents
        """
        self._store = store

    def register_user(self, email: str, display_name: str = "") -> tuple[str, str]:
        """Register a new user with default goals and generate their API key.

        Args:
            email: User's email address
            display_name: Name shown in the app

        Returns:
            Tuple of (api_key, user_id) - api_key is only returned once!
        """
        logger.info("Registering new user: %s", email)

        api_key = generate_api_key()
        user_id = hash_api_key(api_key)

        user = User(
            user_id=user_id,
            email=email,
            display_name=display_name,
            api_key_hash=user_id,
            created_at=datetime.utcnow(),
        )
        self._store.update_user(user)

        logger.info("User registered successfully: %s", user_id[:8])
        return api_key, user_id

    def validate_api_key(self, api_key: str) -> str | None:
        """Validate an API key and return the user_id if valid.

        Args:
            api_key: The API key to validate

        Returns:
            user_id if valid, None if invalid
        """
        if not validate_api_key_format(api_key):
            logger.warning("Invalid API key format")
            return None

        user_id = hash_api_key(api_key)
        if self._store.get_user(user_id) is None:
            logger.warning("API key not found in database")
            return None

        logger.debug("API key validated for user: %s", user_id[:8])
        return user_id

    def sign_in(self, api_key: str) -> str | None:
        """Validate an API key and make its user the current user.

        Args:
            api_key: The API key presented by the client

        Returns:
            user_id if signed in, None if the key is invalid
        """
        user_id = self.validate_api_key(api_key)
        if user_id is not None:
            _current_user_id.set(user_id)
        return user_id

    def sign_out(self) -> None:
        """Clear the current user."""
        _current_user_id.set(None)

    def current_user_id(self) -> str | None:
        """Return the signed-in user's ID, if any."""
        return _current_user_id.get()

    def delete_account(self) -> None:
        """Delete the signed-in user's account and all their data.

        Raises:
            NotFoundError: If no user is signed in
        """
        user_id = self.current_user_id()
        if user_id is None:
            raise NotFoundError("No user logged in")

        logger.info("Deleting account: %s", user_id[:8])
        self._store.delete_user(user_id)
        self.sign_out()
