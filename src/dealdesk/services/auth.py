"""Login and logout.

The login response shape varies between backend versions (token at the root
or under ``data``, under several names), so token and user fields are read
through ordered extractor tuples like the rest of the normalization layer.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from src.dealdesk.api.client import ApiClient
from src.dealdesk.core.errors import ApiError, ClientValidationError, ErrorKind
from src.dealdesk.core.normalize import Extractor, as_identifier, as_text, field, first_present, unwrap_entity
from src.dealdesk.core.session import SessionService
from src.dealdesk.users.normalizer import resolve_role
from src.dealdesk.users.schemas import User

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/auth/login"

TOKEN_FIELDS: tuple[str, ...] = (
    "token",
    "accessToken",
    "jwtToken",
    "access_token",
    "jwt_token",
    "authToken",
)
ROOT_TOKEN_FIELDS: tuple[str, ...] = ("token", "accessToken")

MISSING_TOKEN_MESSAGE = "Invalid token received from server. Token field not found in response."

LOGIN_STATUS_MESSAGES: dict[int, str] = {
    401: "Login failed. Please check your username and password.",
    403: "Access forbidden. Your account may not have permission.",
    400: "Invalid request. Please check your input.",
    500: "Server error. Please try again later.",
}


def _string_field(name: str) -> Extractor:
    def _extract(payload: Mapping[str, Any]) -> Any:
        value = payload.get(name)
        return value if isinstance(value, str) and value.strip() else None

    return _extract


def extract_login_token(response: Any) -> str | None:
    """First non-blank token string from the payload, then from the root."""
    payload = unwrap_entity(response)
    candidates: list[tuple[Any, tuple[str, ...]]] = [(payload, TOKEN_FIELDS), (response, ROOT_TOKEN_FIELDS)]
    for source, names in candidates:
        if isinstance(source, Mapping):
            token = first_present(source, (_string_field(n) for n in names))
            if token is not None:
                return token.strip()
    return None


def extract_login_user(response: Any) -> User:
    """Build the session user from a login response."""
    payload = unwrap_entity(response)
    payload = payload if isinstance(payload, Mapping) else {}
    root = response if isinstance(response, Mapping) else {}

    username = first_present(payload, (field("username"), field("userName"))) or root.get("username")
    role_source = payload if (payload.get("roles") or payload.get("role")) else root

    return User(
        id=as_identifier(payload.get("id")) or 0,
        username=as_text(username) or "",
        email=as_text(payload.get("email")) or "",
        role=resolve_role(role_source),
        enabled=True,
    )


def describe_login_error(error: ApiError) -> str:
    """Login-screen wording for a failed login attempt."""
    if error.kind == ErrorKind.TRANSPORT or isinstance(error, ClientValidationError):
        return error.message
    if error.raw_status in LOGIN_STATUS_MESSAGES:
        return LOGIN_STATUS_MESSAGES[error.raw_status]
    if error.raw_status:
        return f"Error {error.raw_status}: {error.message or 'Request failed'}"
    return error.message or "Login failed. Please check your credentials and ensure backend is running."


class AuthService:
    """Authenticates against the backend and owns session start/stop."""

    def __init__(self, client: ApiClient, session: SessionService) -> None:
        self._client = client
        self._session = session

    async def login(self, username: str, password: str) -> User:
        """Log in, persist the session and mark this browsing session as logged in.

        Raises:
            ClientValidationError: Username or password missing.
            ApiError: Backend rejected the login, or sent no token.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ClientValidationError("Username and password are required")

        logger.info("auth.login_attempt", username=username)
        response = await self._client.post(LOGIN_PATH, json={"username": username, "password": password})

        token = extract_login_token(response)
        if token is None:
            logger.error(
                "auth.token_missing",
                response_keys=sorted(response.keys()) if isinstance(response, Mapping) else None,
            )
            raise ApiError(ErrorKind.SERVER, MISSING_TOKEN_MESSAGE, raw_status=None, body=response)

        user = extract_login_user(response)
        self._session.start(token, user)
        self._session.mark_logged_in_this_session()
        logger.info("auth.login_succeeded", username=user.username, role=user.role.value)
        return user

    def logout(self) -> None:
        self._session.logout()
        logger.info("auth.logged_out")
