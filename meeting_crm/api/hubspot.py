"""
API Router: HubSpot Sync and Connectivity Endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from meeting_crm.logging_config import get_logger
from meeting_crm.schemas.sync import SyncRequest
from meeting_crm.services.completion import CompletionClient
from meeting_crm.services.hubspot import HubSpotClient
from meeting_crm.services.sync import SyncOrchestrator
from meeting_crm.api.dependencies import (
    get_completion_client,
    get_hubspot_client,
    get_sync_orchestrator,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["HubSpot"])


@router.post("/sync-to-hubspot")
async def sync_to_hubspot(
    body: SyncRequest,
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> dict[str, Any]:
    """Push an extraction's company, contact and deal to HubSpot."""
    report = await orchestrator.sync(body.extraction_id, body.sync_options)
    return report.to_payload()


@router.get("/hubspot/test")
async def test_hubspot(client: HubSpotClient = Depends(get_hubspot_client)) -> dict[str, bool]:
    """Check that the HubSpot token works."""
    return {"connected": await client.test_connection()}


@router.get("/openai/test")
async def test_openai(client: CompletionClient = Depends(get_completion_client)) -> dict[str, bool]:
    """Check that the OpenAI key works."""
    return {"connected": await client.test_connection()}
