"""Authorization interceptor installed as httpx event hooks.

Request side: attach ``Authorization: Bearer <token>`` to every call outside
the authentication endpoint group, and only when a usable token is stored.

Response side: on 401 from a non-auth endpoint, clear the session and send the
user to the login view with the current view as ``returnUrl`` (skipped when
already on the login view). On 403, send the user to the default landing
view. Hooks never swallow the response; the API client still raises.
"""

from __future__ import annotations

import httpx
import structlog

from src.dealdesk.core.guards import DEFAULT_LANDING_PATH, LOGIN_PATH, RETURN_URL_PARAM
from src.dealdesk.core.navigation import Navigator
from src.dealdesk.core.session import SessionService, is_usable_token

logger = structlog.get_logger(__name__)

AUTH_ENDPOINT_MARKER = "/auth/"


def is_auth_endpoint(url: httpx.URL | str) -> bool:
    """True for calls in the authentication endpoint group (login etc.)."""
    path = url.path if isinstance(url, httpx.URL) else httpx.URL(url).path
    return AUTH_ENDPOINT_MARKER in path


class AuthInterceptor:
    """Bearer-token and auth-failure handling for every backend call.

    Args:
        session: Session to read the token from and clear on 401.
        navigator: Router used for the login / landing redirects.
        login_path: Login view path.
        landing_path: Default protected view used on 403.
    """

    def __init__(
        self,
        session: SessionService,
        navigator: Navigator,
        login_path: str = LOGIN_PATH,
        landing_path: str = DEFAULT_LANDING_PATH,
    ) -> None:
        self._session = session
        self._navigator = navigator
        self._login_path = login_path
        self._landing_path = landing_path

    @property
    def event_hooks(self) -> dict[str, list]:
        return {"request": [self.on_request], "response": [self.on_response]}

    def authorization_header(self, url: httpx.URL | str) -> str | None:
        """Header value to send with a request to ``url``, if any."""
        if is_auth_endpoint(url):
            return None
        token = self._session.get_token()
        if not is_usable_token(token):
            return None
        return f"Bearer {token.strip()}"

    async def on_request(self, request: httpx.Request) -> None:
        header = self.authorization_header(request.url)
        if header is not None:
            request.headers["Authorization"] = header
            return

        request.headers.pop("Authorization", None)
        if not is_auth_endpoint(request.url):
            logger.warning("interceptor.no_token", url=str(request.url))

    async def on_response(self, response: httpx.Response) -> None:
        self.handle_status(response.status_code, response.request.url)

    def handle_status(self, status_code: int, url: httpx.URL | str) -> None:
        """Apply session/navigation side effects for an auth failure status."""
        if status_code == 401 and not is_auth_endpoint(url):
            if self._navigator.is_at(self._login_path):
                return
            current_url = self._navigator.current_url
            logger.warning("interceptor.unauthorized", url=str(url), return_url=current_url)
            self._session.logout()
            self._navigator.navigate(self._login_path, {RETURN_URL_PARAM: current_url})
        elif status_code == 403:
            logger.warning("interceptor.forbidden", url=str(url))
            self._navigator.navigate(self._landing_path)
