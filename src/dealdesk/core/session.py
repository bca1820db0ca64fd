"""Client session: bearer token, cached user, and the browsing-session flag.

The SessionService is constructed once by the application factory and handed
to everything that needs it (guards, interceptor, services). It is the only
place that reads or writes the session keys.

Storage layout:
- durable  ``auth_token``              bearer token (trimmed)
- durable  ``user_data``               JSON-encoded User
- ephemeral ``hasLoggedInThisSession`` "true" once an interactive login
  succeeded in this process
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from src.dealdesk.core.errors import StorageError
from src.dealdesk.core.storage import KeyValueStorage
from src.dealdesk.users.schemas import User

logger = structlog.get_logger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user_data"
SESSION_FLAG_KEY = "hasLoggedInThisSession"


def is_usable_token(token: str | None) -> bool:
    """A token is usable iff it is a string with non-whitespace content."""
    return isinstance(token, str) and len(token.strip()) > 0


class SessionService:
    """Reads and writes the client session through two storages.

    Args:
        durable: Storage that survives restarts (token, cached user).
        ephemeral: Storage scoped to the current browsing session.
    """

    def __init__(self, durable: KeyValueStorage, ephemeral: KeyValueStorage) -> None:
        self._durable = durable
        self._ephemeral = ephemeral
        self._current_user: User | None = self._load_user()

    # ── Token ─────────────────────────────────────────────────────────────

    def get_token(self) -> str | None:
        return self._durable.get_item(TOKEN_KEY)

    def set_token(self, token: str) -> None:
        self._durable.set_item(TOKEN_KEY, token.strip())

    def is_authenticated(self) -> bool:
        """True when the stored token is usable."""
        return is_usable_token(self.get_token())

    # ── Cached user ───────────────────────────────────────────────────────

    def get_current_user(self) -> User | None:
        return self._current_user

    def set_user(self, user: User) -> None:
        self._durable.set_item(USER_KEY, user.model_dump_json())
        self._current_user = user

    def is_admin(self) -> bool:
        user = self._current_user
        return user is not None and user.is_admin

    # ── Browsing-session flag ─────────────────────────────────────────────

    def has_logged_in_this_session(self) -> bool:
        return self._ephemeral.get_item(SESSION_FLAG_KEY) == "true"

    def mark_logged_in_this_session(self) -> None:
        self._ephemeral.set_item(SESSION_FLAG_KEY, "true")

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def start(self, token: str, user: User) -> None:
        """Persist a freshly issued token and its user.

        If the user record cannot be written the token is removed again, so a
        failed start leaves no half-written session.
        """
        self.set_token(token)
        try:
            self.set_user(user)
        except StorageError:
            self._durable.remove_item(TOKEN_KEY)
            logger.error("session.start_failed", username=user.username)
            raise
        logger.info("session.started", username=user.username, role=user.role.value)

    def logout(self) -> None:
        """Clear token, cached user and the browsing-session flag."""
        self._durable.remove_item(TOKEN_KEY)
        self._durable.remove_item(USER_KEY)
        self._ephemeral.remove_item(SESSION_FLAG_KEY)
        self._current_user = None
        logger.info("session.cleared")

    def _load_user(self) -> User | None:
        raw = self._durable.get_item(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("session.cached_user_invalid")
            return None
