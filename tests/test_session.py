"""Tests for SessionService and the usable-token predicate."""

from __future__ import annotations

import pytest

from src.dealdesk.core.errors import StorageError
from src.dealdesk.core.session import (
    SESSION_FLAG_KEY,
    TOKEN_KEY,
    USER_KEY,
    SessionService,
    is_usable_token,
)
from src.dealdesk.core.storage import MemoryStorage
from src.dealdesk.users.schemas import User, UserRole


class TestIsUsableToken:
    """Test the usable-token predicate."""

    @pytest.mark.parametrize("token", [None, "", "   ", "\t\n"])
    def test_blank_tokens_are_unusable(self, token):
        assert is_usable_token(token) is False

    @pytest.mark.parametrize("token", ["abc", "  abc  ", "x"])
    def test_tokens_with_content_are_usable(self, token):
        assert is_usable_token(token) is True

    def test_non_string_is_unusable(self):
        assert is_usable_token(123) is False  # type: ignore[arg-type]


class TestSessionService:
    """Test token, user and browsing-session flag handling."""

    def test_new_session_is_empty(self, session):
        assert session.get_token() is None
        assert session.get_current_user() is None
        assert session.is_authenticated() is False
        assert session.has_logged_in_this_session() is False
        assert session.is_admin() is False

    def test_set_token_stores_trimmed(self, session, durable):
        session.set_token("  abc  ")
        assert durable.get_item(TOKEN_KEY) == "abc"
        assert session.is_authenticated() is True

    def test_whitespace_token_is_not_authenticated(self, session, durable):
        durable.set_item(TOKEN_KEY, "   ")
        assert session.is_authenticated() is False

    def test_start_persists_token_and_user(self, session, durable, admin_user):
        session.start("tok", admin_user)

        assert durable.get_item(TOKEN_KEY) == "tok"
        assert User.model_validate_json(durable.get_item(USER_KEY)) == admin_user
        assert session.get_current_user() == admin_user
        assert session.is_admin() is True

    def test_start_does_not_set_session_flag(self, session, admin_user):
        """Only an explicit login marks the browsing session."""
        session.start("tok", admin_user)
        assert session.has_logged_in_this_session() is False

    def test_mark_logged_in_uses_ephemeral_storage(self, session, ephemeral, durable):
        session.mark_logged_in_this_session()
        assert ephemeral.get_item(SESSION_FLAG_KEY) == "true"
        assert durable.get_item(SESSION_FLAG_KEY) is None
        assert session.has_logged_in_this_session() is True

    def test_logout_clears_everything(self, session, durable, ephemeral, login_as, admin_user):
        login_as(admin_user)
        session.logout()

        assert durable.get_item(TOKEN_KEY) is None
        assert durable.get_item(USER_KEY) is None
        assert ephemeral.get_item(SESSION_FLAG_KEY) is None
        assert session.get_current_user() is None
        assert session.is_authenticated() is False

    def test_cached_user_is_loaded_on_construction(self, durable, ephemeral, regular_user):
        """A fresh service over the same durable storage restores the user."""
        SessionService(durable, ephemeral).start("tok", regular_user)

        restored = SessionService(durable, ephemeral)
        assert restored.get_current_user() == regular_user
        assert restored.is_admin() is False

    def test_corrupt_cached_user_is_ignored(self, durable, ephemeral):
        durable.set_item(USER_KEY, "{broken")
        assert SessionService(durable, ephemeral).get_current_user() is None

    def test_new_process_keeps_token_but_not_flag(self, durable, admin_user, login_as):
        """The durable token survives a restart; the login flag does not."""
        login_as(admin_user)
        restarted = SessionService(durable, MemoryStorage())
        assert restarted.is_authenticated() is True
        assert restarted.has_logged_in_this_session() is False

    def test_user_role_survives_serialization(self, session, durable):
        session.set_user(User(id="u-9", username="root", role=UserRole.ADMIN))
        assert '"role":"ADMIN"' in durable.get_item(USER_KEY)


class _UserWriteFailingStorage(MemoryStorage):
    """Accepts the token but fails to persist the user record."""

    def set_item(self, key: str, value: str) -> None:
        if key == USER_KEY:
            raise StorageError("disk full")
        super().set_item(key, value)


class TestSessionStartFailure:
    """Test that a failed start leaves no half-written session."""

    def test_token_removed_when_user_write_fails(self, ephemeral, regular_user):
        durable = _UserWriteFailingStorage()
        session = SessionService(durable, ephemeral)

        with pytest.raises(StorageError):
            session.start("tok", regular_user)

        assert durable.get_item(TOKEN_KEY) is None
        assert session.is_authenticated() is False
        assert session.get_current_user() is None
