"""Route guards for protected views.

``decide_access`` is the pure authorization decision. ``AuthGuard`` reads the
session, asks for a decision, and applies its side effects: at most one
logout and exactly one navigation per denied evaluation. ``RoleGuard`` gates
admin-only views.

Decision table (token, session flag):

    usable + valid + flag   -> allow
    usable + no flag        -> /login, replacing history, no returnUrl
    anything else           -> /login?returnUrl=<requested>, logout if a
                               token value was present
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from src.dealdesk.core.navigation import Navigator
from src.dealdesk.core.session import SessionService, is_usable_token

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/login"
DEFAULT_LANDING_PATH = "/deals"
RETURN_URL_PARAM = "returnUrl"


class GuardOutcome(str, Enum):
    ALLOW = "allow"
    REDIRECT_REPLACE = "redirect_replace"
    REDIRECT_WITH_RETURN_URL = "redirect_with_return_url"


@dataclass(frozen=True)
class GuardDecision:
    """Result of an access check; carries everything needed to act on it."""

    outcome: GuardOutcome
    redirect_to: str | None = None
    return_url: str | None = None
    replace_url: bool = False
    clear_session: bool = False

    @property
    def allowed(self) -> bool:
        return self.outcome == GuardOutcome.ALLOW


def decide_access(
    token: str | None,
    token_valid: bool,
    logged_in_this_session: bool,
    requested_url: str,
    login_path: str = LOGIN_PATH,
) -> GuardDecision:
    """Decide whether a protected view may be entered.

    Args:
        token: Raw stored token (may be None, empty or whitespace).
        token_valid: The session store's own validity verdict.
        logged_in_this_session: Whether an interactive login happened in
            this browsing session.
        requested_url: The URL being navigated to.
        login_path: Where denied navigations are sent.
    """
    usable = is_usable_token(token)

    if usable and token_valid and logged_in_this_session:
        return GuardDecision(outcome=GuardOutcome.ALLOW)

    if usable and not logged_in_this_session:
        # Fresh load with a leftover durable token
        return GuardDecision(
            outcome=GuardOutcome.REDIRECT_REPLACE,
            redirect_to=login_path,
            replace_url=True,
        )

    return GuardDecision(
        outcome=GuardOutcome.REDIRECT_WITH_RETURN_URL,
        redirect_to=login_path,
        return_url=requested_url,
        clear_session=bool(token),
    )


class AuthGuard:
    """Allows protected views only for an authenticated, logged-in session."""

    def __init__(self, session: SessionService, login_path: str = LOGIN_PATH) -> None:
        self._session = session
        self._login_path = login_path

    def evaluate(self, requested_url: str) -> GuardDecision:
        return decide_access(
            token=self._session.get_token(),
            token_valid=self._session.is_authenticated(),
            logged_in_this_session=self._session.has_logged_in_this_session(),
            requested_url=requested_url,
            login_path=self._login_path,
        )

    def __call__(self, requested_url: str, navigator: Navigator) -> bool:
        decision = self.evaluate(requested_url)
        if decision.allowed:
            return True

        logger.info(
            "guard.denied",
            requested_url=requested_url,
            outcome=decision.outcome.value,
            clear_session=decision.clear_session,
        )
        if decision.clear_session:
            self._session.logout()

        query = {RETURN_URL_PARAM: decision.return_url} if decision.return_url else None
        navigator.navigate(decision.redirect_to or self._login_path, query, replace_url=decision.replace_url)
        return False


class RoleGuard:
    """Allows admin-only views for ADMIN users; everyone else lands on the deals list."""

    def __init__(self, session: SessionService, fallback_path: str = DEFAULT_LANDING_PATH) -> None:
        self._session = session
        self._fallback_path = fallback_path

    def __call__(self, requested_url: str, navigator: Navigator) -> bool:
        if self._session.is_admin():
            return True
        logger.info("guard.role_denied", requested_url=requested_url)
        navigator.navigate(self._fallback_path)
        return False
