"""Storage abstract base class -- the persistence interface the pipeline depends on.

Every backend (in-memory, Supabase) implements this ABC. The storage
instance is created once at startup and injected into the extraction
and sync services; nothing in the pipeline reaches for a global store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from meeting_crm.schemas.crm import (
    Company,
    CompanyCreate,
    Contact,
    ContactCreate,
    Deal,
    DealCreate,
    Extraction,
)


class Storage(ABC):
    """Abstract interface for extraction and CRM mirror persistence.

    Methods:
        create_extraction: Persist a new extraction, assigning id and created_at.
        get_extraction: Fetch an extraction by id, or None.
        update_extraction: Set the synced flag; raises NotFound if missing.
        mark_synced_if_unsynced: Atomically flip synced false -> true.
        get_all_extractions: All extractions, newest first.
        create_contact / create_company / create_deal: Append a mirror row.
        get_contact / get_company / get_deal: Fetch a mirror row by id, or None.
    """

    @abstractmethod
    async def create_extraction(
        self,
        meeting_summary: str,
        extracted_data: str,
        synced_to_hubspot: bool = False,
    ) -> Extraction:
        """Persist a new extraction."""
        ...

    @abstractmethod
    async def get_extraction(self, extraction_id: int) -> Extraction | None:
        """Fetch an extraction by id."""
        ...

    @abstractmethod
    async def update_extraction(self, extraction_id: int, *, synced_to_hubspot: bool) -> Extraction:
        """Update the synced flag of an existing extraction."""
        ...

    @abstractmethod
    async def mark_synced_if_unsynced(self, extraction_id: int) -> bool:
        """Compare-and-swap synced false -> true. Returns False if already synced."""
        ...

    @abstractmethod
    async def get_all_extractions(self) -> list[Extraction]:
        """List extractions ordered newest-created first."""
        ...

    @abstractmethod
    async def create_contact(self, contact: ContactCreate) -> Contact:
        ...

    @abstractmethod
    async def get_contact(self, contact_id: int) -> Contact | None:
        ...

    @abstractmethod
    async def create_company(self, company: CompanyCreate) -> Company:
        ...

    @abstractmethod
    async def get_company(self, company_id: int) -> Company | None:
        ...

    @abstractmethod
    async def create_deal(self, deal: DealCreate) -> Deal:
        ...

    @abstractmethod
    async def get_deal(self, deal_id: int) -> Deal | None:
        ...
