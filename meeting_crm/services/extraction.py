"""
Extraction Engine.

Turns a free-text meeting summary into a validated ExtractedRecord by
asking the completion model for a JSON object and running it through
the record schema. Either a fully validated record comes back or
``ExtractionFailed`` is raised; there is no partially extracted result.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from meeting_crm.errors import ExtractionFailed, ValidationError
from meeting_crm.logging_config import get_logger
from meeting_crm.schemas.crm import Extraction
from meeting_crm.schemas.extraction import ExtractedRecord, validate_extracted_data
from meeting_crm.storage.base import Storage

logger = get_logger(__name__)


class CompletionCapability(Protocol):
    async def complete(self, system_prompt: str, user_text: str, want_json: bool = True) -> str:
        ...


# Sent as the system turn; the meeting summary is the user turn.
EXTRACTION_PROMPT = """You are an expert CRM data extraction assistant. Extract structured contact, company, and deal information from B2B sales meeting summaries.

Respond with JSON in this exact format:
{
  "contact": {
    "name": "string or null",
    "email": "string or null",
    "title": "string or null",
    "phone": "string or null",
    "confidence": number (0-100)
  },
  "company": {
    "name": "string or null",
    "industry": "string or null",
    "size": "string or null",
    "website": "string or null",
    "confidence": number (0-100)
  },
  "deal": {
    "name": "string or null",
    "value": number or null,
    "closeDate": "string or null",
    "stage": "string or null",
    "confidence": number (0-100)
  }
}

Guidelines:
- Extract only information explicitly mentioned in the text. Never infer or invent values.
- Set each confidence score (0-100) from how clearly the information was stated.
- For deal value, give the numeric amount only, without currency symbols or separators.
- For company size, use a descriptive string like "50 employees" or "small team".
- For deal stage, use a standard sales pipeline stage such as "Qualified Lead", "Proposal" or "Negotiation".
- If no deal name is stated, name the deal "Company Name - Product/Service".
- Use null (not an empty string) for anything that was not mentioned.
- Always include every confidence score as a number between 0 and 100."""


def parse_completion(raw: str) -> Any:
    """
    Decode the completion payload.

    Malformed output degrades to an empty object so it validates as a
    record with every field absent and every confidence at 0.
    """
    try:
        parsed = json.loads(raw or "{}")
    except ValueError:
        logger.warning("completion_not_json", preview=(raw or "")[:200])
        return {}

    if not isinstance(parsed, dict):
        logger.warning("completion_not_object", payload_type=type(parsed).__name__)
        return {}
    return parsed


class ExtractionEngine:
    """Meeting summary -> ExtractedRecord."""

    def __init__(self, completion: CompletionCapability, system_prompt: str = EXTRACTION_PROMPT) -> None:
        self._completion = completion
        self._system_prompt = system_prompt

    async def extract(self, meeting_summary: str) -> ExtractedRecord:
        """
        Run the completion and validate its payload.

        Raises:
            ValidationError: if the summary is empty (no completion call is made).
            ExtractionFailed: if the completion fails or its JSON does not validate.
        """
        if not meeting_summary or not meeting_summary.strip():
            raise ValidationError(
                "Meeting summary is required",
                errors=[{"path": "meetingSummary", "message": "must not be empty", "type": "missing"}],
            )

        logger.info("extraction_started", summary_length=len(meeting_summary))

        try:
            raw = await self._completion.complete(self._system_prompt, meeting_summary, want_json=True)
        except Exception as e:
            logger.error("extraction_completion_error", error=str(e))
            raise ExtractionFailed(f"Failed to extract CRM data: {e}") from e

        try:
            record = validate_extracted_data(parse_completion(raw))
        except ValidationError as e:
            logger.error("extraction_invalid_payload", errors=e.errors)
            raise ExtractionFailed(f"Failed to extract CRM data: {e.message}") from e

        logger.info(
            "extraction_complete",
            contact_confidence=record.contact.confidence,
            company_confidence=record.company.confidence,
            deal_confidence=record.deal.confidence,
        )
        return record


async def extract_and_store(
    engine: ExtractionEngine,
    storage: Storage,
    meeting_summary: str,
) -> tuple[Extraction, ExtractedRecord]:
    """Extract a record and persist it as a new, unsynced extraction."""
    record = await engine.extract(meeting_summary)
    extraction = await storage.create_extraction(
        meeting_summary=meeting_summary,
        extracted_data=record.to_json(),
        synced_to_hubspot=False,
    )
    logger.info("extraction_saved", extraction_id=extraction.id)
    return extraction, record
