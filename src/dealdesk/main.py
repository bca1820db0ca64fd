"""Application factory.

Wires settings, storages, the session, the navigator with its route table,
the API client with the auth interceptor, and the services into one
DealDeskApp. Nothing in the package holds module-level session state; every
component gets the session it needs from here.
"""

from __future__ import annotations

import httpx
import structlog

from src.dealdesk.api.client import ApiClient
from src.dealdesk.api.interceptor import AuthInterceptor
from src.dealdesk.config import Settings, get_settings
from src.dealdesk.core.guards import RETURN_URL_PARAM
from src.dealdesk.core.logging import configure_structlog
from src.dealdesk.core.navigation import Navigator
from src.dealdesk.core.session import SessionService
from src.dealdesk.core.storage import FileStorage, KeyValueStorage, MemoryStorage
from src.dealdesk.deals.service import DealService
from src.dealdesk.routes import build_routes
from src.dealdesk.services.auth import AuthService
from src.dealdesk.users.schemas import User
from src.dealdesk.users.service import UserService

logger = structlog.get_logger(__name__)


class DealDeskApp:
    """A running client: session, navigation and the backend services."""

    def __init__(
        self,
        settings: Settings,
        session: SessionService,
        navigator: Navigator,
        client: ApiClient,
    ) -> None:
        self.settings = settings
        self.session = session
        self.navigator = navigator
        self.client = client
        self.auth = AuthService(client, session)
        self.deals = DealService(client, session)
        self.users = UserService(client)

    async def login(self, username: str, password: str) -> User:
        """Log in, then resume the pending ``returnUrl`` or open the landing view."""
        user = await self.auth.login(username, password)
        target = self.navigator.query_param(RETURN_URL_PARAM) or self.settings.DEFAULT_LANDING_PATH
        self.navigator.navigate(target)
        return user

    def logout(self) -> None:
        self.auth.logout()
        self.navigator.navigate(self.settings.LOGIN_PATH)

    def open(self, path: str) -> bool:
        """Navigate to a view; False when a guard redirected elsewhere."""
        return self.navigator.navigate(path)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> DealDeskApp:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    durable_storage: KeyValueStorage | None = None,
    ephemeral_storage: KeyValueStorage | None = None,
) -> DealDeskApp:
    """Build a DealDeskApp.

    Args:
        settings: Defaults to the cached environment settings.
        transport: httpx transport override (tests pass httpx.MockTransport).
        durable_storage: Defaults to a FileStorage at ``settings.storage_path``.
        ephemeral_storage: Defaults to a fresh MemoryStorage, so every process
            starts a new browsing session.
    """
    settings = settings or get_settings()
    configure_structlog(settings)

    session = SessionService(
        durable=durable_storage if durable_storage is not None else FileStorage(settings.storage_path),
        ephemeral=ephemeral_storage if ephemeral_storage is not None else MemoryStorage(),
    )
    navigator = Navigator(routes=build_routes(session, settings))
    interceptor = AuthInterceptor(
        session,
        navigator,
        login_path=settings.LOGIN_PATH,
        landing_path=settings.DEFAULT_LANDING_PATH,
    )
    client = ApiClient(
        settings.API_BASE_URL,
        interceptor,
        timeout=settings.HTTP_TIMEOUT,
        transport=transport,
    )

    # Root redirects to the login view
    navigator.navigate("/")

    logger.info(
        "app.created",
        api_base_url=settings.API_BASE_URL,
        environment=settings.ENVIRONMENT.value,
        authenticated=session.is_authenticated(),
    )
    return DealDeskApp(settings, session, navigator, client)
