"""View route table.

    /login          public
    /deals/**       authenticated
    /admin/users/** authenticated, ADMIN only
    "" and unknown  redirect to /login
"""

from __future__ import annotations

from src.dealdesk.config import Settings
from src.dealdesk.core.guards import AuthGuard, RoleGuard
from src.dealdesk.core.navigation import WILDCARD, Route
from src.dealdesk.core.session import SessionService

DEALS_PATH = "/deals"
ADMIN_USERS_PATH = "/admin/users"


def build_routes(session: SessionService, settings: Settings) -> list[Route]:
    """Build the ordered route table with guards bound to ``session``."""
    auth_guard = AuthGuard(session, login_path=settings.LOGIN_PATH)
    role_guard = RoleGuard(session, fallback_path=settings.DEFAULT_LANDING_PATH)

    return [
        Route(settings.LOGIN_PATH),
        Route(DEALS_PATH, guards=(auth_guard,)),
        Route(ADMIN_USERS_PATH, guards=(auth_guard, role_guard)),
        Route("", redirect_to=settings.LOGIN_PATH),
        Route(WILDCARD, redirect_to=settings.LOGIN_PATH),
    ]
