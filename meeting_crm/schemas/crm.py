"""
Persisted entities: extractions and their local CRM mirrors.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from meeting_crm.schemas.extraction import ExtractedRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Extraction(_CamelModel):
    """A meeting summary and the record extracted from it."""
    id: int
    meeting_summary: str
    extracted_data: str  # serialized ExtractedRecord
    synced_to_hubspot: bool = False
    created_at: datetime

    @property
    def record(self) -> ExtractedRecord:
        return ExtractedRecord.from_json(self.extracted_data)


class ExtractionResponse(_CamelModel):
    """Extraction as returned by the API, with the record parsed."""
    id: int
    meeting_summary: str
    extracted_data: dict[str, Any]
    synced_to_hubspot: bool
    created_at: datetime

    @classmethod
    def from_extraction(cls, extraction: Extraction) -> "ExtractionResponse":
        return cls(
            id=extraction.id,
            meeting_summary=extraction.meeting_summary,
            extracted_data=extraction.record.to_payload(),
            synced_to_hubspot=extraction.synced_to_hubspot,
            created_at=extraction.created_at,
        )


class ContactCreate(_CamelModel):
    name: Optional[str] = None
    email: str
    title: Optional[str] = None
    phone: Optional[str] = None
    confidence: float = 0
    hubspot_id: Optional[str] = None
    company_id: Optional[int] = None


class Contact(ContactCreate):
    id: int
    created_at: datetime


class CompanyCreate(_CamelModel):
    name: str
    industry: Optional[str] = None
    size: Optional[str] = None
    website: Optional[str] = None
    confidence: float = 0
    hubspot_id: Optional[str] = None


class Company(CompanyCreate):
    id: int
    created_at: datetime


class DealCreate(_CamelModel):
    name: str
    value: Optional[float] = None
    close_date: Optional[str] = None
    stage: Optional[str] = None
    confidence: float = 0
    hubspot_id: Optional[str] = None
    contact_id: Optional[int] = None
    company_id: Optional[int] = None


class Deal(DealCreate):
    id: int
    created_at: datetime
