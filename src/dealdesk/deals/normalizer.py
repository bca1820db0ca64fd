"""Normalize backend deal payloads onto the canonical Deal shape.

Precedence for every field is an explicit tuple of extractors so it can be
read top to bottom and tested on its own:

- STAGE_EXTRACTORS: currentStage, then ``stage`` (unwrapped when the backend
  sends the enum as an object), then the alternate key names.
- FIELD_ALIASES: camelCase first, snake_case (or older name) only when the
  camelCase value is absent. A present camelCase value is never overwritten.
- NOTE_FIELD_ALIASES: canonical note keys, then the backend's own note keys.

normalize_deal and normalize_deals are total: any JSON value goes in, a Deal
(or list of Deals) comes out.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from src.dealdesk.core.normalize import (
    Extractor,
    as_identifier,
    as_number,
    as_text,
    extract_collection,
    field,
    first_present,
    is_present,
    unwrap_entity,
)
from src.dealdesk.deals.schemas import Deal, DealNote

# ── Stage resolution ────────────────────────────────────────────────────────

STAGE_ALTERNATE_KEYS: tuple[str, ...] = (
    "dealStage",
    "stageType",
    "stageName",
    "deal_stage",
    "stage_type",
    "stage_name",
)


def _unwrap_enum_object(value: Any) -> Any:
    """Enum serialized as an object: ``name``, then ``value``, then its JSON text."""
    if isinstance(value, Mapping):
        for key in ("name", "value"):
            if is_present(value.get(key)):
                return value[key]
        return json.dumps(value, default=str, sort_keys=True)
    return value


def _stage_from_current_stage(payload: Mapping[str, Any]) -> str | None:
    return as_text(_unwrap_enum_object(payload.get("currentStage")))


def _stage_from_stage_field(payload: Mapping[str, Any]) -> str | None:
    return as_text(_unwrap_enum_object(payload.get("stage")))


def _stage_from_alternate_keys(payload: Mapping[str, Any]) -> str | None:
    for key in STAGE_ALTERNATE_KEYS:
        value = as_text(payload.get(key))
        if is_present(value):
            return value
    return None


STAGE_EXTRACTORS: tuple[Extractor, ...] = (
    _stage_from_current_stage,
    _stage_from_stage_field,
    _stage_from_alternate_keys,
)


def resolve_stage(payload: Mapping[str, Any]) -> str | None:
    """Resolve the deal's stage to a single string, or None if nothing matches."""
    return first_present(payload, STAGE_EXTRACTORS)


# ── Field aliasing ──────────────────────────────────────────────────────────

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "dealName": ("dealName", "deal_name"),
    "clientName": ("clientName", "client_name"),
    "expectedCloseDate": ("expectedCloseDate", "expected_close_date"),
    "dealValue": ("dealValue", "deal_value"),
    "dealType": ("dealType", "deal_type"),
    "summary": ("summary", "description"),
    "createdDate": ("createdDate", "createdAt"),
    "lastModifiedDate": ("lastModifiedDate", "updatedAt"),
    "createdBy": ("createdBy", "createdByUsername"),
}

NOTE_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "content": ("content", "noteText"),
    "createdDate": ("createdDate", "timestamp"),
    "createdBy": ("createdBy", "username"),
}


def _aliased(payload: Mapping[str, Any], aliases: dict[str, tuple[str, ...]], name: str) -> Any:
    return first_present(payload, (field(key) for key in aliases[name]))


# ── Public API ──────────────────────────────────────────────────────────────


def normalize_note(raw: Mapping[str, Any]) -> DealNote:
    return DealNote(
        id=as_identifier(raw.get("id")),
        content=as_text(_aliased(raw, NOTE_FIELD_ALIASES, "content")) or "",
        created_date=as_text(_aliased(raw, NOTE_FIELD_ALIASES, "createdDate")),
        created_by=as_text(_aliased(raw, NOTE_FIELD_ALIASES, "createdBy")),
    )


def normalize_deal(response: Any) -> Deal:
    """Normalize one deal payload (wrapped in ``data`` or bare)."""
    payload = unwrap_entity(response)
    if not isinstance(payload, Mapping):
        return Deal()

    raw_notes = payload.get("notes")
    notes = (
        [normalize_note(note) for note in raw_notes if isinstance(note, Mapping)]
        if isinstance(raw_notes, list)
        else []
    )

    return Deal(
        id=as_identifier(payload.get("id")),
        deal_name=as_text(_aliased(payload, FIELD_ALIASES, "dealName")) or "",
        deal_value=as_number(_aliased(payload, FIELD_ALIASES, "dealValue")),
        stage=resolve_stage(payload),
        client_name=as_text(_aliased(payload, FIELD_ALIASES, "clientName")) or "",
        deal_type=as_text(_aliased(payload, FIELD_ALIASES, "dealType")),
        sector=as_text(payload.get("sector")),
        summary=as_text(_aliased(payload, FIELD_ALIASES, "summary")),
        description=as_text(payload.get("description")) or "",
        expected_close_date=as_text(_aliased(payload, FIELD_ALIASES, "expectedCloseDate")),
        created_date=as_text(_aliased(payload, FIELD_ALIASES, "createdDate")),
        last_modified_date=as_text(_aliased(payload, FIELD_ALIASES, "lastModifiedDate")),
        created_by=as_text(_aliased(payload, FIELD_ALIASES, "createdBy")),
        notes=notes,
    )


def normalize_deals(response: Any) -> list[Deal]:
    """Normalize a deal collection (bare list, ``data`` or ``content``)."""
    return [normalize_deal(item) for item in extract_collection(response, ("data", "content"))]
