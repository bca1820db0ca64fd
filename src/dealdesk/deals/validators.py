"""Client-side validation of deal write payloads.

Each builder returns the exact JSON body to send, or raises
ClientValidationError before anything reaches the network.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.dealdesk.core.errors import ClientValidationError
from src.dealdesk.deals.schemas import (
    LEGACY_STAGE_ALIASES,
    VALID_STAGES,
    CreateDealRequest,
    UpdateDealRequest,
)

CREATE_DEAL_REQUIRED = ("dealName", "clientName", "dealType", "sector", "summary", "currentStage")


def _trimmed(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _coerce(model: type, data: Any) -> Any:
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ClientValidationError(f"Expected a {model.__name__} or mapping, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ClientValidationError(f"Invalid {model.__name__}: {e.errors()[0]['msg']}") from e


def build_create_deal_payload(request: CreateDealRequest | Mapping[str, Any]) -> dict[str, str]:
    """Trim every field and require all six; the stage must be a backend stage."""
    deal = _coerce(CreateDealRequest, request)
    payload = {key: _trimmed(value) for key, value in deal.model_dump(by_alias=True).items()}

    if not all(payload[key] for key in CREATE_DEAL_REQUIRED):
        raise ClientValidationError(
            f"All fields ({', '.join(CREATE_DEAL_REQUIRED)}) are required"
        )
    if payload["currentStage"] not in VALID_STAGES:
        raise ClientValidationError(
            f"Invalid currentStage. Must be one of: {', '.join(VALID_STAGES)}"
        )
    return payload


def build_update_deal_payload(request: UpdateDealRequest | Mapping[str, Any]) -> dict[str, str]:
    """Partial update: only fields with content after trimming are sent."""
    update = _coerce(UpdateDealRequest, request)
    payload: dict[str, str] = {}
    for key, value in update.model_dump(by_alias=True).items():
        text = _trimmed(value)
        if text:
            payload[key] = text
    return payload


def resolve_stage(stage: Any) -> str:
    """Map legacy stage names onto the backend enumeration and validate."""
    raw = _trimmed(stage)
    backend_stage = LEGACY_STAGE_ALIASES.get(raw, raw)
    if backend_stage not in VALID_STAGES:
        raise ClientValidationError(f"Invalid stage. Must be one of: {', '.join(VALID_STAGES)}")
    return backend_stage


def build_stage_payload(stage: Any) -> dict[str, str]:
    return {"stage": resolve_stage(stage)}


def build_note_payload(note_text: Any) -> dict[str, str]:
    text = _trimmed(note_text)
    if not text:
        raise ClientValidationError("Note cannot be empty")
    return {"noteText": text}


def build_deal_value_payload(deal_value: Any) -> dict[str, float | int]:
    """The value must be a real, finite number greater than zero."""
    if isinstance(deal_value, bool) or not isinstance(deal_value, (int, float)):
        raise ClientValidationError("Deal value must be a positive number")
    try:
        finite = math.isfinite(deal_value)
    except OverflowError:
        # int beyond float range
        finite = False
    if not finite or deal_value <= 0:
        raise ClientValidationError("Deal value must be a positive number")
    return {"dealValue": deal_value}
