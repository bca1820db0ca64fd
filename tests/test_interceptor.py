"""Tests for the auth interceptor: bearer header rules and 401/403 handling."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio

from src.dealdesk.api.interceptor import AuthInterceptor, is_auth_endpoint
from src.dealdesk.core.errors import ApiError, ErrorKind
from src.dealdesk.core.navigation import Navigator
from src.dealdesk.core.session import TOKEN_KEY


class TestIsAuthEndpoint:
    """Test detection of the authentication endpoint group."""

    def test_login_is_auth_endpoint(self):
        assert is_auth_endpoint("http://testserver/api/auth/login")

    def test_deals_is_not_auth_endpoint(self):
        assert not is_auth_endpoint("http://testserver/api/deals")

    def test_marker_in_query_string_does_not_count(self):
        assert not is_auth_endpoint(httpx.URL("http://testserver/api/deals?next=/auth/x"))


# ── Request side ───────────────────────────────────────────────────────────


class TestRequestHeaders:
    """Test which requests carry Authorization."""

    @pytest.fixture
    def interceptor(self, session):
        return AuthInterceptor(session, MagicMock(spec=Navigator))

    async def test_bearer_header_uses_trimmed_token(self, interceptor, durable):
        durable.set_item(TOKEN_KEY, "  abc  ")
        request = httpx.Request("GET", "http://testserver/api/deals")

        await interceptor.on_request(request)

        assert request.headers["Authorization"] == "Bearer abc"

    async def test_auth_endpoint_never_gets_header(self, interceptor, durable):
        durable.set_item(TOKEN_KEY, "abc")
        request = httpx.Request("POST", "http://testserver/api/auth/login")

        await interceptor.on_request(request)

        assert "Authorization" not in request.headers

    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_unusable_token_sends_no_header(self, interceptor, durable, token):
        if token is not None:
            durable.set_item(TOKEN_KEY, token)
        request = httpx.Request("GET", "http://testserver/api/deals")

        await interceptor.on_request(request)

        assert "Authorization" not in request.headers

    async def test_header_sent_over_the_wire(self, app, backend, regular_user):
        """End to end through ApiClient and the mock transport."""
        app.session.start("  tok-xyz ", regular_user)
        backend.add("GET", "/deals", json=[])
        backend.add("POST", "/auth/login", json={"token": "new"})

        await app.client.get("/deals")
        await app.client.post("/auth/login", json={"username": "a", "password": "b"})

        assert backend.calls("GET", "/deals")[0].headers["Authorization"] == "Bearer tok-xyz"
        assert "Authorization" not in backend.calls("POST", "/auth/login")[0].headers


# ── Response side ──────────────────────────────────────────────────────────


class TestUnauthorizedHandling:
    """Test the 401 flow: one session clear and one redirect, unless on the login view."""

    @pytest_asyncio.fixture
    async def on_deals_view(self, app, regular_user):
        app.session.start("tok", regular_user)
        app.session.mark_logged_in_this_session()
        assert app.open("/deals/7") is True
        return app

    async def test_401_clears_session_and_redirects_once(self, on_deals_view, backend):
        app = on_deals_view
        backend.add("GET", "/deals", status=401)
        app.session.logout = MagicMock(wraps=app.session.logout)
        history_before = len(app.navigator.history)

        with pytest.raises(ApiError) as exc_info:
            await app.deals.list_deals()

        assert exc_info.value.kind == ErrorKind.AUTH
        assert exc_info.value.raw_status == 401
        app.session.logout.assert_called_once()
        assert len(app.navigator.history) == history_before + 1
        assert app.navigator.current_path == "/login"
        assert app.navigator.query_param("returnUrl") == "/deals/7"
        assert app.session.get_token() is None

    async def test_401_on_login_view_does_nothing(self, app, backend, durable):
        durable.set_item(TOKEN_KEY, "tok")
        backend.add("GET", "/deals", status=401)
        app.session.logout = MagicMock(wraps=app.session.logout)
        history_before = list(app.navigator.history)

        with pytest.raises(ApiError):
            await app.deals.list_deals()

        app.session.logout.assert_not_called()
        assert app.navigator.history == history_before
        assert durable.get_item(TOKEN_KEY) == "tok"

    async def test_401_from_auth_endpoint_keeps_session(self, on_deals_view, backend):
        app = on_deals_view
        backend.add("POST", "/auth/login", status=401, json={"message": "Bad credentials"})

        with pytest.raises(ApiError):
            await app.client.post("/auth/login", json={"username": "x", "password": "y"})

        assert app.session.get_token() == "tok"
        assert app.navigator.current_url == "/deals/7"


class TestForbiddenHandling:
    """Test the 403 flow."""

    async def test_403_navigates_to_landing(self, app, backend, admin_user):
        app.session.start("tok", admin_user)
        app.session.mark_logged_in_this_session()
        app.open("/admin/users")
        backend.add("GET", "/admin/users", status=403)

        with pytest.raises(ApiError) as exc_info:
            await app.users.list_users()

        assert exc_info.value.kind == ErrorKind.AUTH
        assert exc_info.value.raw_status == 403
        assert app.navigator.current_url == "/deals"
        assert app.session.is_authenticated() is True

    def test_other_statuses_have_no_side_effects(self, session):
        navigator = MagicMock(spec=Navigator)
        interceptor = AuthInterceptor(session, navigator)

        for status in (200, 400, 404, 500):
            interceptor.handle_status(status, "http://testserver/api/deals")

        navigator.navigate.assert_not_called()
