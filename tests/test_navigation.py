"""Tests for the in-process Navigator and route matching."""

from __future__ import annotations

from unittest.mock import MagicMock

from src.dealdesk.core.navigation import Navigator, Route


class TestRouteMatching:
    """Test Route.matches."""

    def test_path_matches_itself_and_children(self):
        route = Route("/deals")
        assert route.matches("/deals")
        assert route.matches("/deals/42/edit")
        assert not route.matches("/dealsx")
        assert not route.matches("/admin/users")

    def test_empty_path_matches_only_root(self):
        route = Route("")
        assert route.matches("/")
        assert route.matches("")
        assert not route.matches("/deals")

    def test_wildcard_matches_anything(self):
        assert Route("**").matches("/anything/at/all")


class TestNavigator:
    """Test navigation, redirects, guards and history."""

    def _navigator(self, *guards):
        return Navigator(
            routes=[
                Route("/login"),
                Route("/deals", guards=tuple(guards)),
                Route("", redirect_to="/login"),
                Route("**", redirect_to="/login"),
            ]
        )

    def test_navigate_to_public_route(self):
        navigator = self._navigator()
        assert navigator.navigate("/login") is True
        assert navigator.current_url == "/login"
        assert navigator.history == ["/login"]

    def test_root_and_unknown_paths_redirect_to_login(self):
        navigator = self._navigator()
        navigator.navigate("/")
        assert navigator.current_url == "/login"
        navigator.navigate("/no/such/view")
        assert navigator.current_url == "/login"

    def test_query_params_are_encoded(self):
        navigator = self._navigator()
        navigator.navigate("/login", {"returnUrl": "/deals/5?tab=notes"})

        assert navigator.current_path == "/login"
        assert navigator.query_param("returnUrl") == "/deals/5?tab=notes"

    def test_missing_query_param_is_none(self):
        navigator = self._navigator()
        navigator.navigate("/login")
        assert navigator.query_param("returnUrl") is None

    def test_denying_guard_blocks_entry(self):
        guard = MagicMock(return_value=False)
        navigator = self._navigator(guard)
        navigator.navigate("/login")

        assert navigator.navigate("/deals/9") is False
        guard.assert_called_once_with("/deals/9", navigator)
        assert navigator.current_url == "/login"

    def test_allowing_guard_enters_route(self):
        navigator = self._navigator(MagicMock(return_value=True))
        assert navigator.navigate("/deals") is True
        assert navigator.is_at("/deals")

    def test_replace_url_overwrites_last_entry(self):
        navigator = self._navigator()
        navigator.navigate("/login", {"returnUrl": "/deals"})
        navigator.navigate("/login", replace_url=True)

        assert navigator.history == ["/login"]

    def test_relative_path_gets_leading_slash(self):
        assert Navigator.build_url("deals") == "/deals"
