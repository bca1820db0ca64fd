"""Normalize backend user payloads onto the canonical User shape.

Role detection accepts every shape the backend has been seen to send:
``roles`` as a list or a string, a single ``role``, or Spring Security
``authorities`` (strings or ``{"authority": ...}`` objects). ADMIN and
ROLE_ADMIN both mean admin; anything else is a plain user.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src.dealdesk.core.normalize import (
    as_identifier,
    as_text,
    extract_collection,
    field,
    first_present,
    unwrap_entity,
)
from src.dealdesk.users.schemas import User, UserRole

ADMIN_ROLE_NAMES = frozenset({"ADMIN", "ROLE_ADMIN"})

USER_COLLECTION_KEYS = ("data", "content", "users")


def _is_admin_name(value: Any) -> bool:
    return isinstance(value, str) and value.strip().upper() in ADMIN_ROLE_NAMES


def _authority_name(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("authority")
    return value


def resolve_role(payload: Mapping[str, Any]) -> UserRole:
    roles = payload.get("roles")
    if isinstance(roles, list):
        return UserRole.ADMIN if any(_is_admin_name(r) for r in roles) else UserRole.USER
    if isinstance(roles, str) and roles:
        return UserRole.ADMIN if _is_admin_name(roles) else UserRole.USER

    role = payload.get("role")
    if role:
        return UserRole.ADMIN if _is_admin_name(as_text(role)) else UserRole.USER

    authorities = payload.get("authorities")
    if isinstance(authorities, list):
        if any(_is_admin_name(_authority_name(a)) for a in authorities):
            return UserRole.ADMIN
    return UserRole.USER


def resolve_enabled(payload: Mapping[str, Any], default: bool = True) -> bool:
    """``enabled`` wins, then the backend's ``active``, then ``default``."""
    for key in ("enabled", "active"):
        if payload.get(key) is not None:
            return bool(payload[key])
    return default


def normalize_user(
    response: Any,
    fallback_id: int | str = 0,
    fallback_enabled: bool = True,
) -> User:
    payload = unwrap_entity(response)
    if not isinstance(payload, Mapping):
        return User(id=fallback_id, enabled=fallback_enabled)

    identifier = as_identifier(first_present(payload, (field("id"), field("_id"))))
    return User(
        id=identifier if identifier not in (None, "", 0) else fallback_id,
        username=as_text(payload.get("username")) or "",
        email=as_text(payload.get("email")) or "",
        role=resolve_role(payload),
        enabled=resolve_enabled(payload, fallback_enabled),
    )


def normalize_users(response: Any) -> list[User]:
    return [normalize_user(item) for item in extract_collection(response, USER_COLLECTION_KEYS)]
