"""Pydantic schemas for deals -- canonical entities and write payloads.

Defines:
- DealStage: the backend's five-value stage enumeration
- LEGACY_STAGE_ALIASES: the older six-value UI vocabulary mapped onto DealStage
- DealNote, Deal: canonical shapes every view consumes
- CreateDealRequest, UpdateDealRequest: write payloads (camelCase on the wire)

All models accept either snake_case attribute names or the camelCase wire
names, and serialize with ``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DealStage(str, Enum):
    """Pipeline stage as the backend names it."""

    PROSPECT = "Prospect"
    UNDER_EVALUATION = "UnderEvaluation"
    TERM_SHEET_SUBMITTED = "TermSheetSubmitted"
    CLOSED = "Closed"
    LOST = "Lost"


VALID_STAGES: tuple[str, ...] = tuple(stage.value for stage in DealStage)

LEGACY_STAGE_ALIASES: dict[str, str] = {
    "PROSPECTING": DealStage.PROSPECT.value,
    "QUALIFICATION": DealStage.UNDER_EVALUATION.value,
    "PROPOSAL": DealStage.TERM_SHEET_SUBMITTED.value,
    "NEGOTIATION": DealStage.TERM_SHEET_SUBMITTED.value,
    "CLOSED_WON": DealStage.CLOSED.value,
    "CLOSED_LOST": DealStage.LOST.value,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Canonical entities ──────────────────────────────────────────────────────


class DealNote(_CamelModel):
    """Append-only note attached to a deal."""

    id: int | str | None = None
    content: str = ""
    created_date: str | None = None
    created_by: str | None = None


class Deal(_CamelModel):
    """Canonical deal shape produced by the normalizer.

    ``stage`` is always a plain string (or None when the backend sent nothing
    usable) no matter which field or shape the backend used for it.
    """

    id: int | str | None = None
    deal_name: str = ""
    deal_value: float | None = None
    stage: str | None = None
    client_name: str = ""
    deal_type: str | None = None
    sector: str | None = None
    summary: str | None = None
    description: str = ""
    expected_close_date: str | None = None
    created_date: str | None = None
    last_modified_date: str | None = None
    created_by: str | None = None
    notes: list[DealNote] = Field(default_factory=list)


# ── Write payloads ──────────────────────────────────────────────────────────


class CreateDealRequest(_CamelModel):
    """Body for POST /deals. Every field is required by the backend."""

    deal_name: str | None = None
    client_name: str | None = None
    deal_type: str | None = None
    sector: str | None = None
    summary: str | None = None
    current_stage: str | None = None


class UpdateDealRequest(_CamelModel):
    """Body for PUT /deals/{id}. Omitted fields are left unchanged."""

    summary: str | None = None
    sector: str | None = None
    deal_type: str | None = None
