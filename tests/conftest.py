"""Shared fixtures.

Provides:
- In-memory storage
- A mock HubSpot client handing out sequential ids per object type
- A mock completion client returning a canned JSON record
- FastAPI test app + async HTTP client wired to the mocks
"""

from __future__ import annotations

import copy
import itertools
import json
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from meeting_crm.config import Settings
from meeting_crm.storage.memory import InMemoryStorage


FULL_RECORD = {
    "contact": {
        "name": "Jane Smith",
        "email": "jane@acme.com",
        "title": "VP of Operations",
        "phone": "+1 555 0100",
        "confidence": 92,
    },
    "company": {
        "name": "Acme",
        "industry": "Manufacturing",
        "size": "250 employees",
        "website": "acme.com",
        "confidence": 88,
    },
    "deal": {
        "name": "Acme - Support",
        "value": 50000,
        "closeDate": "2026-12-31",
        "stage": "Proposal",
        "confidence": 75,
    },
}


@pytest.fixture
def full_record() -> dict:
    return copy.deepcopy(FULL_RECORD)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def crm() -> AsyncMock:
    """Mock HubSpot client: company-1, contact-1, deal-1, ..."""
    mock = AsyncMock()
    counters = {kind: itertools.count(1) for kind in ("company", "contact", "deal")}
    mock.create_company.side_effect = lambda **_: f"company-{next(counters['company'])}"
    mock.create_contact.side_effect = lambda **_: f"contact-{next(counters['contact'])}"
    mock.create_deal.side_effect = lambda **_: f"deal-{next(counters['deal'])}"
    mock.test_connection.return_value = True
    return mock


@pytest.fixture
def completion() -> AsyncMock:
    mock = AsyncMock()
    mock.complete.return_value = json.dumps(FULL_RECORD)
    mock.test_connection.return_value = True
    return mock


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, openai_api_key="sk-test", hubspot_access_token="pat-test")


@pytest.fixture
def app(settings, storage, completion, crm):
    from meeting_crm.api_server import create_app

    return create_app(settings=settings, storage=storage, completion=completion, hubspot=crm)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
