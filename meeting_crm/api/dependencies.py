"""
Request dependencies.

Services live on ``app.state``. Storage is built at startup; the OpenAI
and HubSpot clients are built on first use so that a missing credential
only fails the endpoints that need it.
"""

from __future__ import annotations

from fastapi import Depends, Request

from meeting_crm.config import Settings
from meeting_crm.services.completion import CompletionClient
from meeting_crm.services.extraction import ExtractionEngine
from meeting_crm.services.hubspot import HubSpotClient
from meeting_crm.services.sync import SyncOrchestrator
from meeting_crm.storage.base import Storage


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_completion_client(request: Request) -> CompletionClient:
    # Runs on the event loop; nothing is awaited between the check and the set
    state = request.app.state
    if state.completion is None:
        state.completion = CompletionClient.from_settings(state.settings)
    return state.completion


async def get_hubspot_client(request: Request) -> HubSpotClient:
    state = request.app.state
    if state.hubspot is None:
        state.hubspot = HubSpotClient.from_settings(state.settings)
    return state.hubspot


async def get_extraction_engine(
    completion: CompletionClient = Depends(get_completion_client),
) -> ExtractionEngine:
    return ExtractionEngine(completion)


async def get_sync_orchestrator(
    storage: Storage = Depends(get_storage),
    crm: HubSpotClient = Depends(get_hubspot_client),
    settings: Settings = Depends(get_app_settings),
) -> SyncOrchestrator:
    return SyncOrchestrator(
        storage=storage,
        crm=crm,
        guard_enabled=settings.sync_guard_enabled,
    )
