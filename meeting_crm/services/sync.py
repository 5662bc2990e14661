"""
Sync Orchestrator.

Pushes an extraction's company, contact and deal to HubSpot, in that
order, threading the ids each step produces into the steps after it:

1. Company -- needs ``company.name``.
2. Contact -- needs ``contact.email``; carries the company name.
3. Deal    -- needs ``deal.name``; associated with the company and
   contact created in this pass.

Each step is guarded on its own. A failed step is recorded and the next
one still runs, just without the id the failed step would have produced.
Once all three have been attempted the extraction is marked synced, so
"synced" means an attempt completed, not that every entity landed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from meeting_crm.errors import NotFound
from meeting_crm.logging_config import extraction_id_var, get_logger
from meeting_crm.schemas.crm import CompanyCreate, ContactCreate, DealCreate
from meeting_crm.schemas.extraction import ExtractedRecord
from meeting_crm.schemas.sync import EntitySyncResult, StepStatus, SyncOptions, SyncReport
from meeting_crm.storage.base import Storage

logger = get_logger(__name__)


class CRMCapability(Protocol):
    async def create_company(
        self,
        name: str,
        industry: Optional[str] = None,
        size: Optional[str] = None,
        website: Optional[str] = None,
    ) -> str:
        ...

    async def create_contact(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        title: Optional[str] = None,
        phone: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> str:
        ...

    async def create_deal(
        self,
        name: Optional[str] = None,
        value: Optional[float] = None,
        close_date: Optional[str] = None,
        stage: Optional[str] = None,
        contact_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> str:
        ...


@dataclass
class _PassState:
    """Ids produced so far in one sync pass."""
    company_external_id: Optional[str] = None
    company_local_id: Optional[int] = None
    contact_external_id: Optional[str] = None
    contact_local_id: Optional[int] = None


class SyncOrchestrator:
    """
    Sequences the three HubSpot creates for one extraction.

    With ``guard_enabled`` the extraction is claimed (synced false -> true)
    before any external call and an already-synced extraction is left
    alone. Without it, every call repeats the creates and appends new
    mirror rows.
    """

    def __init__(self, storage: Storage, crm: CRMCapability, guard_enabled: bool = False) -> None:
        self._storage = storage
        self._crm = crm
        self._guard_enabled = guard_enabled

    async def sync(self, extraction_id: int, options: SyncOptions | None = None) -> SyncReport:
        options = options or SyncOptions()

        extraction = await self._storage.get_extraction(extraction_id)
        if extraction is None:
            raise NotFound("Extraction", extraction_id)

        record = extraction.record
        token = extraction_id_var.set(extraction_id)
        try:
            if self._guard_enabled and not await self._storage.mark_synced_if_unsynced(extraction_id):
                logger.info("sync_already_claimed")
                return SyncReport(extraction_id=extraction_id, already_synced=True)

            logger.info("sync_started", options=options.model_dump())

            state = _PassState()
            company = await self._sync_company(record, options, state)
            contact = await self._sync_contact(record, options, state, company)
            deal = await self._sync_deal(record, options, state)

            if not self._guard_enabled:
                await self._storage.update_extraction(extraction_id, synced_to_hubspot=True)

            logger.info(
                "sync_complete",
                company=company.status.value,
                contact=contact.status.value,
                deal=deal.status.value,
            )
            return SyncReport(
                extraction_id=extraction_id,
                company=company,
                contact=contact,
                deal=deal,
            )
        finally:
            extraction_id_var.reset(token)

    async def _sync_company(
        self,
        record: ExtractedRecord,
        options: SyncOptions,
        state: _PassState,
    ) -> EntitySyncResult:
        data = record.company
        if not options.create_company:
            return self._skip("company", "disabled")
        if not data.name:
            return self._skip("company", "missing_name")

        try:
            state.company_external_id = await self._crm.create_company(
                name=data.name,
                industry=data.industry,
                size=data.size,
                website=data.website,
            )
            mirror = await self._storage.create_company(
                CompanyCreate(
                    name=data.name,
                    industry=data.industry,
                    size=data.size,
                    website=data.website,
                    confidence=data.confidence,
                    hubspot_id=state.company_external_id,
                )
            )
        except Exception as e:
            return self._fail("company", e, state.company_external_id)

        state.company_local_id = mirror.id
        return EntitySyncResult.succeeded(state.company_external_id, mirror.id)

    async def _sync_contact(
        self,
        record: ExtractedRecord,
        options: SyncOptions,
        state: _PassState,
        company: EntitySyncResult,
    ) -> EntitySyncResult:
        data = record.contact
        if not options.create_contact:
            return self._skip("contact", "disabled")
        if not data.email:
            return self._skip("contact", "missing_email")

        # Withheld only when no HubSpot company exists to match it
        company_created = company.status != StepStatus.FAILED or state.company_external_id is not None
        company_name = record.company.name if company_created else None

        try:
            state.contact_external_id = await self._crm.create_contact(
                name=data.name,
                email=data.email,
                title=data.title,
                phone=data.phone,
                company_name=company_name,
            )
            mirror = await self._storage.create_contact(
                ContactCreate(
                    name=data.name,
                    email=data.email,
                    title=data.title,
                    phone=data.phone,
                    confidence=data.confidence,
                    hubspot_id=state.contact_external_id,
                    company_id=state.company_local_id,
                )
            )
        except Exception as e:
            return self._fail("contact", e, state.contact_external_id)

        state.contact_local_id = mirror.id
        return EntitySyncResult.succeeded(state.contact_external_id, mirror.id)

    async def _sync_deal(
        self,
        record: ExtractedRecord,
        options: SyncOptions,
        state: _PassState,
    ) -> EntitySyncResult:
        data = record.deal
        if not options.create_deal:
            return self._skip("deal", "disabled")
        if not data.name:
            return self._skip("deal", "missing_name")

        external_id: Optional[str] = None
        try:
            external_id = await self._crm.create_deal(
                name=data.name,
                value=data.value,
                close_date=data.close_date,
                stage=data.stage,
                contact_id=state.contact_external_id,
                company_id=state.company_external_id,
            )
            mirror = await self._storage.create_deal(
                DealCreate(
                    name=data.name,
                    value=data.value,
                    close_date=data.close_date,
                    stage=data.stage,
                    confidence=data.confidence,
                    hubspot_id=external_id,
                    contact_id=state.contact_local_id,
                    company_id=state.company_local_id,
                )
            )
        except Exception as e:
            return self._fail("deal", e, external_id)

        return EntitySyncResult.succeeded(external_id, mirror.id)

    @staticmethod
    def _skip(entity: str, reason: str) -> EntitySyncResult:
        logger.info("sync_step_skipped", entity=entity, reason=reason)
        return EntitySyncResult.skipped(reason)

    @staticmethod
    def _fail(entity: str, error: Exception, external_id: Optional[str]) -> EntitySyncResult:
        logger.error(
            "sync_step_failed",
            entity=entity,
            error=str(error),
            error_type=type(error).__name__,
            hubspot_id=external_id,
        )
        return EntitySyncResult.failed(str(error), external_id=external_id)
