"""Deal operations against the backend.

Every mutating call validates its payload first (see validators.py) and
every response passes through the normalizer, so callers only ever see
canonical Deal objects or an ApiError.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from src.dealdesk.api.client import ApiClient
from src.dealdesk.core.errors import ApiError
from src.dealdesk.core.session import SessionService
from src.dealdesk.deals.normalizer import normalize_deal, normalize_deals
from src.dealdesk.deals.schemas import CreateDealRequest, Deal, UpdateDealRequest
from src.dealdesk.deals.validators import (
    build_create_deal_payload,
    build_deal_value_payload,
    build_note_payload,
    build_stage_payload,
    build_update_deal_payload,
)

logger = structlog.get_logger(__name__)

DealId = int | str


class DealService:
    """Typed service interface for deals.

    Args:
        client: API client bound to the backend.
        session: Session used to gate admin-only follow-up writes.
    """

    def __init__(self, client: ApiClient, session: SessionService) -> None:
        self._client = client
        self._session = session

    async def list_deals(self) -> list[Deal]:
        response = await self._client.get("/deals")
        deals = normalize_deals(response)
        logger.debug("deals.listed", count=len(deals))
        return deals

    async def get_deal(self, deal_id: DealId) -> Deal:
        return normalize_deal(await self._client.get(f"/deals/{deal_id}"))

    async def create_deal(self, request: CreateDealRequest | Mapping[str, Any]) -> Deal:
        payload = build_create_deal_payload(request)
        deal = normalize_deal(await self._client.post("/deals", json=payload))
        logger.info("deals.created", deal_id=deal.id, stage=payload["currentStage"])
        return deal

    async def update_deal(self, deal_id: DealId, request: UpdateDealRequest | Mapping[str, Any]) -> Deal:
        payload = build_update_deal_payload(request)
        deal = normalize_deal(await self._client.put(f"/deals/{deal_id}", json=payload))
        logger.info("deals.updated", deal_id=deal_id, fields=sorted(payload))
        return deal

    async def update_stage(self, deal_id: DealId, stage: str) -> Deal:
        payload = build_stage_payload(stage)
        deal = normalize_deal(await self._client.patch(f"/deals/{deal_id}/stage", json=payload))
        logger.info("deals.stage_updated", deal_id=deal_id, stage=payload["stage"])
        return deal

    async def add_note(self, deal_id: DealId, note_text: str) -> Deal:
        payload = build_note_payload(note_text)
        deal = normalize_deal(await self._client.post(f"/deals/{deal_id}/notes", json=payload))
        logger.info("deals.note_added", deal_id=deal_id)
        return deal

    async def update_value(self, deal_id: DealId, deal_value: float) -> Deal:
        """Set a deal's value. Admin-only in the UI; callers gate on ``session.is_admin()``."""
        payload = build_deal_value_payload(deal_value)
        deal = normalize_deal(await self._client.patch(f"/deals/{deal_id}/value", json=payload))
        logger.info("deals.value_updated", deal_id=deal_id)
        return deal

    async def delete_deal(self, deal_id: DealId) -> None:
        """Delete a deal. Admin-only in the UI; callers gate on ``session.is_admin()``."""
        await self._client.delete(f"/deals/{deal_id}")
        logger.info("deals.deleted", deal_id=deal_id)

    async def create_deal_with_extras(
        self,
        request: CreateDealRequest | Mapping[str, Any],
        deal_value: float | None = None,
        note: str | None = None,
    ) -> Deal:
        """Create a deal, then best-effort set its value and first note.

        The value is only sent for admins and only when positive. Failures of
        either follow-up are logged; the created deal is returned regardless.
        """
        deal = await self.create_deal(request)
        if deal.id is None:
            logger.warning("deals.followups_skipped", reason="created deal has no id")
            return deal

        if self._session.is_admin() and isinstance(deal_value, (int, float)) and deal_value > 0:
            try:
                await self.update_value(deal.id, deal_value)
            except ApiError as e:
                logger.warning("deals.followup_value_failed", deal_id=deal.id, kind=e.kind.value, error=e.message)

        if note and note.strip():
            try:
                await self.add_note(deal.id, note)
            except ApiError as e:
                logger.warning("deals.followup_note_failed", deal_id=deal.id, kind=e.kind.value, error=e.message)

        return deal
