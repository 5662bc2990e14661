"""
Supabase storage backend.

Wraps the official Supabase Python client. Tables mirror the entity
models column-for-column in snake_case: ``extractions``, ``contacts``,
``companies`` and ``deals``, each with a serial ``id`` and a
``created_at`` default of ``now()``.
"""

from __future__ import annotations

from typing import Any

from supabase import Client, create_client

from meeting_crm.config import Settings
from meeting_crm.errors import ConfigurationError, NotFound
from meeting_crm.logging_config import get_logger
from meeting_crm.schemas.crm import (
    Company,
    CompanyCreate,
    Contact,
    ContactCreate,
    Deal,
    DealCreate,
    Extraction,
)
from meeting_crm.storage.base import Storage

logger = get_logger(__name__)

EXTRACTIONS_TABLE = "extractions"
CONTACTS_TABLE = "contacts"
COMPANIES_TABLE = "companies"
DEALS_TABLE = "deals"


class SupabaseStorage(Storage):
    """Storage implementation on top of a Supabase (PostgREST) project."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> SupabaseStorage:
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ConfigurationError("Supabase URL and service key are required for the supabase storage backend")

        client = create_client(settings.supabase_url, settings.supabase_service_key)
        logger.info("supabase_client_initialized", url=settings.supabase_url)
        return cls(client)

    @property
    def client(self) -> Client:
        """Access the raw Supabase client."""
        return self._client

    def _insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.client.table(table).insert(payload).execute()
        except Exception as e:
            logger.error("supabase_insert_error", table=table, error=str(e))
            raise
        if not response.data:
            raise RuntimeError(f"Insert into {table} returned no rows")
        return response.data[0]

    def _select_by_id(self, table: str, row_id: int) -> dict[str, Any] | None:
        try:
            response = self.client.table(table).select("*").eq("id", row_id).limit(1).execute()
        except Exception as e:
            logger.error("supabase_select_error", table=table, id=row_id, error=str(e))
            raise
        return response.data[0] if response.data else None

    # ── Extractions ──────────────────────────────────────────────

    async def create_extraction(
        self,
        meeting_summary: str,
        extracted_data: str,
        synced_to_hubspot: bool = False,
    ) -> Extraction:
        row = self._insert(
            EXTRACTIONS_TABLE,
            {
                "meeting_summary": meeting_summary,
                "extracted_data": extracted_data,
                "synced_to_hubspot": synced_to_hubspot,
            },
        )
        return Extraction.model_validate(row)

    async def get_extraction(self, extraction_id: int) -> Extraction | None:
        row = self._select_by_id(EXTRACTIONS_TABLE, extraction_id)
        return Extraction.model_validate(row) if row else None

    async def update_extraction(self, extraction_id: int, *, synced_to_hubspot: bool) -> Extraction:
        try:
            response = (
                self.client.table(EXTRACTIONS_TABLE)
                .update({"synced_to_hubspot": synced_to_hubspot})
                .eq("id", extraction_id)
                .execute()
            )
        except Exception as e:
            logger.error("supabase_update_error", id=extraction_id, error=str(e))
            raise
        if not response.data:
            raise NotFound("Extraction", extraction_id)
        return Extraction.model_validate(response.data[0])

    async def mark_synced_if_unsynced(self, extraction_id: int) -> bool:
        # The filter on the current value makes the update a compare-and-swap
        response = (
            self.client.table(EXTRACTIONS_TABLE)
            .update({"synced_to_hubspot": True})
            .eq("id", extraction_id)
            .eq("synced_to_hubspot", False)
            .execute()
        )
        if response.data:
            return True
        if self._select_by_id(EXTRACTIONS_TABLE, extraction_id) is None:
            raise NotFound("Extraction", extraction_id)
        return False

    async def get_all_extractions(self) -> list[Extraction]:
        response = (
            self.client.table(EXTRACTIONS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .order("id", desc=True)
            .execute()
        )
        return [Extraction.model_validate(row) for row in response.data or []]

    # ── CRM mirrors ──────────────────────────────────────────────

    async def create_contact(self, contact: ContactCreate) -> Contact:
        row = self._insert(CONTACTS_TABLE, contact.model_dump(exclude_none=True))
        return Contact.model_validate(row)

    async def get_contact(self, contact_id: int) -> Contact | None:
        row = self._select_by_id(CONTACTS_TABLE, contact_id)
        return Contact.model_validate(row) if row else None

    async def create_company(self, company: CompanyCreate) -> Company:
        row = self._insert(COMPANIES_TABLE, company.model_dump(exclude_none=True))
        return Company.model_validate(row)

    async def get_company(self, company_id: int) -> Company | None:
        row = self._select_by_id(COMPANIES_TABLE, company_id)
        return Company.model_validate(row) if row else None

    async def create_deal(self, deal: DealCreate) -> Deal:
        row = self._insert(DEALS_TABLE, deal.model_dump(exclude_none=True))
        return Deal.model_validate(row)

    async def get_deal(self, deal_id: int) -> Deal | None:
        row = self._select_by_id(DEALS_TABLE, deal_id)
        return Deal.model_validate(row) if row else None
