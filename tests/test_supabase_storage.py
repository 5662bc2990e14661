"""Unit tests for the Supabase storage backend.

The Supabase client is a MagicMock; query builders return themselves so
chained calls end in a configurable ``execute()``.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from meeting_crm.config import Settings, StorageBackend
from meeting_crm.errors import ConfigurationError, NotFound
from meeting_crm.schemas.crm import CompanyCreate
from meeting_crm.storage.supabase import SupabaseStorage


EXTRACTION_ROW = {
    "id": 7,
    "meeting_summary": "notes",
    "extracted_data": "{}",
    "synced_to_hubspot": False,
    "created_at": "2026-10-01T12:00:00+00:00",
}


def _client(*results: list[dict]) -> tuple[MagicMock, MagicMock]:
    """Client whose successive execute() calls return the given row lists."""
    query = MagicMock()
    for method in ("select", "insert", "update", "eq", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [MagicMock(data=rows) for rows in results]

    client = MagicMock()
    client.table.return_value = query
    return client, query


def test_from_settings_requires_credentials():
    settings = Settings(_env_file=None, storage_backend=StorageBackend.SUPABASE)

    with pytest.raises(ConfigurationError):
        SupabaseStorage.from_settings(settings)


async def test_create_extraction_inserts_snake_case_row():
    client, query = _client([EXTRACTION_ROW])
    storage = SupabaseStorage(client)

    extraction = await storage.create_extraction("notes", "{}")

    client.table.assert_called_with("extractions")
    query.insert.assert_called_once_with(
        {"meeting_summary": "notes", "extracted_data": "{}", "synced_to_hubspot": False}
    )
    assert extraction.id == 7
    assert extraction.created_at.year == 2026


async def test_get_all_extractions_orders_newest_first():
    client, query = _client([EXTRACTION_ROW])
    storage = SupabaseStorage(client)

    extractions = await storage.get_all_extractions()

    assert [e.id for e in extractions] == [7]
    query.order.assert_any_call("created_at", desc=True)


async def test_update_missing_extraction_raises_not_found():
    client, _ = _client([])
    storage = SupabaseStorage(client)

    with pytest.raises(NotFound):
        await storage.update_extraction(99, synced_to_hubspot=True)


async def test_mark_synced_filters_on_current_value():
    client, query = _client([{**EXTRACTION_ROW, "synced_to_hubspot": True}])
    storage = SupabaseStorage(client)

    assert await storage.mark_synced_if_unsynced(7) is True
    query.eq.assert_any_call("synced_to_hubspot", False)


async def test_mark_synced_returns_false_when_already_synced():
    client, _ = _client([], [{**EXTRACTION_ROW, "synced_to_hubspot": True}])
    storage = SupabaseStorage(client)

    assert await storage.mark_synced_if_unsynced(7) is False


async def test_create_company_omits_absent_columns():
    client, query = _client([{"id": 3, "name": "Acme", "hubspot_id": "501", "confidence": 80,
                              "created_at": "2026-10-01T12:00:00+00:00"}])
    storage = SupabaseStorage(client)

    company = await storage.create_company(CompanyCreate(name="Acme", hubspot_id="501", confidence=80))

    query.insert.assert_called_once_with({"name": "Acme", "confidence": 80.0, "hubspot_id": "501"})
    assert company.id == 3
