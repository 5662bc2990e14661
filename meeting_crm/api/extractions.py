"""
API Router: Extraction Endpoints.

Runs the extraction pipeline on meeting summaries and exposes the
extraction history.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from meeting_crm.errors import NotFound
from meeting_crm.logging_config import get_logger
from meeting_crm.schemas.crm import ExtractionResponse
from meeting_crm.schemas.extraction import validate_extracted_data
from meeting_crm.services.extraction import ExtractionEngine, extract_and_store
from meeting_crm.storage.base import Storage
from meeting_crm.api.dependencies import get_extraction_engine, get_storage

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Extractions"])


class ExtractRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    meeting_summary: str = Field(min_length=1)


class StoreExtractionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    meeting_summary: str = Field(min_length=1)
    extracted_data: Any = None

    @field_validator("meeting_summary")
    @classmethod
    def summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Meeting summary is required")
        return value


@router.post("/extract")
async def extract(
    body: ExtractRequest,
    engine: ExtractionEngine = Depends(get_extraction_engine),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    """Extract contact, company and deal data from a meeting summary and store it."""
    extraction, record = await extract_and_store(engine, storage, body.meeting_summary)
    return {"id": extraction.id, "extractedData": record.to_payload()}


@router.post("/extractions")
async def store_extraction(
    body: StoreExtractionRequest,
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    """Store a record that was extracted elsewhere (e.g. edited in the UI)."""
    record = validate_extracted_data(body.extracted_data)
    extraction = await storage.create_extraction(
        meeting_summary=body.meeting_summary,
        extracted_data=record.to_json(),
        synced_to_hubspot=False,
    )
    logger.info("extraction_stored", extraction_id=extraction.id)
    return {"id": extraction.id, "success": True}


@router.get("/extractions", response_model=list[ExtractionResponse])
async def list_extractions(storage: Storage = Depends(get_storage)) -> list[ExtractionResponse]:
    """Extraction history, newest first."""
    extractions = await storage.get_all_extractions()
    return [ExtractionResponse.from_extraction(e) for e in extractions]


@router.get("/extractions/{extraction_id}", response_model=ExtractionResponse)
async def get_extraction(
    extraction_id: int,
    storage: Storage = Depends(get_storage),
) -> ExtractionResponse:
    extraction = await storage.get_extraction(extraction_id)
    if extraction is None:
        raise NotFound("Extraction", extraction_id)
    return ExtractionResponse.from_extraction(extraction)
