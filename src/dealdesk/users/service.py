"""Admin user management against the backend."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from src.dealdesk.api.client import ApiClient
from src.dealdesk.core.errors import ClientValidationError
from src.dealdesk.users.normalizer import normalize_user, normalize_users
from src.dealdesk.users.schemas import CreateUserRequest, UpdateUserStatusRequest, User

logger = structlog.get_logger(__name__)


def build_create_user_payload(request: CreateUserRequest | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(request, CreateUserRequest):
        user = request
    else:
        try:
            user = CreateUserRequest.model_validate(request)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "request"
            raise ClientValidationError(f"Invalid {location}: {first['msg']}") from e
    return user.model_dump(mode="json")


class UserService:
    """Typed service interface for the admin user endpoints."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_users(self) -> list[User]:
        users = normalize_users(await self._client.get("/admin/users"))
        logger.debug("users.listed", count=len(users))
        return users

    async def create_user(self, request: CreateUserRequest | Mapping[str, Any]) -> User:
        payload = build_create_user_payload(request)
        user = normalize_user(await self._client.post("/admin/users", json=payload))
        logger.info("users.created", username=payload["username"], role=payload["role"])
        return user

    async def update_user_status(self, user_id: int | str, enabled: bool) -> User:
        """Enable or disable a user.

        The backend expects the flag as ``active``; the returned User reports
        it as ``enabled``, falling back to the requested value when the
        response carries neither field.
        """
        payload = UpdateUserStatusRequest(active=enabled).model_dump()
        response = await self._client.put(f"/admin/users/{user_id}/status", json=payload)
        user = normalize_user(response, fallback_id=user_id, fallback_enabled=enabled)
        logger.info("users.status_updated", user_id=user_id, enabled=user.enabled)
        return user
