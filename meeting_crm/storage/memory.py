"""
In-memory storage backend.

Arena-style maps keyed by id with one monotonic counter per table.
Used for local development and tests; state lives only as long as the
instance that owns it.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Iterator

from meeting_crm.errors import NotFound
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


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStorage(Storage):
    """Dict-backed Storage implementation."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._extractions: dict[int, Extraction] = {}
        self._contacts: dict[int, Contact] = {}
        self._companies: dict[int, Company] = {}
        self._deals: dict[int, Deal] = {}
        self._extraction_ids: Iterator[int] = itertools.count(1)
        self._contact_ids: Iterator[int] = itertools.count(1)
        self._company_ids: Iterator[int] = itertools.count(1)
        self._deal_ids: Iterator[int] = itertools.count(1)

    # ── Extractions ──────────────────────────────────────────────

    async def create_extraction(
        self,
        meeting_summary: str,
        extracted_data: str,
        synced_to_hubspot: bool = False,
    ) -> Extraction:
        async with self._lock:
            extraction = Extraction(
                id=next(self._extraction_ids),
                meeting_summary=meeting_summary,
                extracted_data=extracted_data,
                synced_to_hubspot=synced_to_hubspot,
                created_at=_now(),
            )
            self._extractions[extraction.id] = extraction
        logger.debug("extraction_stored", extraction_id=extraction.id)
        return extraction.model_copy()

    async def get_extraction(self, extraction_id: int) -> Extraction | None:
        extraction = self._extractions.get(extraction_id)
        return extraction.model_copy() if extraction else None

    async def update_extraction(self, extraction_id: int, *, synced_to_hubspot: bool) -> Extraction:
        async with self._lock:
            existing = self._extractions.get(extraction_id)
            if existing is None:
                raise NotFound("Extraction", extraction_id)
            updated = existing.model_copy(update={"synced_to_hubspot": synced_to_hubspot})
            self._extractions[extraction_id] = updated
        return updated.model_copy()

    async def mark_synced_if_unsynced(self, extraction_id: int) -> bool:
        async with self._lock:
            existing = self._extractions.get(extraction_id)
            if existing is None:
                raise NotFound("Extraction", extraction_id)
            if existing.synced_to_hubspot:
                return False
            self._extractions[extraction_id] = existing.model_copy(update={"synced_to_hubspot": True})
            return True

    async def get_all_extractions(self) -> list[Extraction]:
        # Ties on created_at fall back to the later id
        ordered = sorted(
            self._extractions.values(),
            key=lambda e: (e.created_at, e.id),
            reverse=True,
        )
        return [e.model_copy() for e in ordered]

    # ── CRM mirrors ──────────────────────────────────────────────

    async def create_contact(self, contact: ContactCreate) -> Contact:
        async with self._lock:
            row = Contact(id=next(self._contact_ids), created_at=_now(), **contact.model_dump())
            self._contacts[row.id] = row
        return row.model_copy()

    async def get_contact(self, contact_id: int) -> Contact | None:
        row = self._contacts.get(contact_id)
        return row.model_copy() if row else None

    async def create_company(self, company: CompanyCreate) -> Company:
        async with self._lock:
            row = Company(id=next(self._company_ids), created_at=_now(), **company.model_dump())
            self._companies[row.id] = row
        return row.model_copy()

    async def get_company(self, company_id: int) -> Company | None:
        row = self._companies.get(company_id)
        return row.model_copy() if row else None

    async def create_deal(self, deal: DealCreate) -> Deal:
        async with self._lock:
            row = Deal(id=next(self._deal_ids), created_at=_now(), **deal.model_dump())
            self._deals[row.id] = row
        return row.model_copy()

    async def get_deal(self, deal_id: int) -> Deal | None:
        row = self._deals.get(deal_id)
        return row.model_copy() if row else None

    # ── Inspection helpers ───────────────────────────────────────

    @property
    def contacts(self) -> list[Contact]:
        return list(self._contacts.values())

    @property
    def companies(self) -> list[Company]:
        return list(self._companies.values())

    @property
    def deals(self) -> list[Deal]:
        return list(self._deals.values())
