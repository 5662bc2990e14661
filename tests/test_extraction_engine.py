"""Unit tests for the extraction engine.

Uses an AsyncMock completion client -- no real OpenAI calls.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from meeting_crm.errors import CompletionError, ExtractionFailed, ValidationError
from meeting_crm.services.extraction import (
    EXTRACTION_PROMPT,
    ExtractionEngine,
    extract_and_store,
    parse_completion,
)


EMPTY_PAYLOAD = {
    "contact": {"confidence": 0},
    "company": {"confidence": 0},
    "deal": {"confidence": 0},
}


class TestParseCompletion:
    def test_parses_json_object(self):
        assert parse_completion('{"contact": {"name": "Jane"}}') == {"contact": {"name": "Jane"}}

    @pytest.mark.parametrize("raw", ["not json", "", "[1, 2]", '"just a string"', "null"])
    def test_anything_else_becomes_empty_object(self, raw):
        assert parse_completion(raw) == {}


class TestExtractionEngine:
    async def test_returns_validated_record(self, completion, full_record):
        engine = ExtractionEngine(completion)

        record = await engine.extract("Met Jane Smith from Acme about a support contract.")

        assert record.to_payload() == full_record

    async def test_sends_prompt_as_system_turn_and_requests_json(self, completion):
        engine = ExtractionEngine(completion)
        summary = "Call with Bob at Globex."

        await engine.extract(summary)

        completion.complete.assert_awaited_once_with(EXTRACTION_PROMPT, summary, want_json=True)

    def test_prompt_carries_extraction_rules(self):
        prompt = EXTRACTION_PROMPT.lower()

        assert "explicitly mentioned" in prompt
        assert "without currency symbols" in prompt
        assert "company name - product/service" in prompt
        assert "qualified lead" in prompt

    @pytest.mark.parametrize("summary", ["", "   ", "\n\t"])
    async def test_blank_summary_is_rejected_before_completion(self, completion, summary):
        engine = ExtractionEngine(completion)

        with pytest.raises(ValidationError):
            await engine.extract(summary)

        completion.complete.assert_not_awaited()

    async def test_unparseable_completion_degrades_to_empty_record(self, completion):
        completion.complete.return_value = "not json"
        engine = ExtractionEngine(completion)

        record = await engine.extract("Some notes")

        assert record.to_payload() == EMPTY_PAYLOAD

    async def test_completion_failure_raises_extraction_failed(self, completion):
        cause = CompletionError(429, '{"error": "rate limited"}')
        completion.complete.side_effect = cause
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed) as exc_info:
            await engine.extract("Some notes")

        assert exc_info.value.__cause__ is cause
        assert "429" in str(exc_info.value)

    async def test_invalid_payload_raises_extraction_failed(self, completion):
        completion.complete.return_value = json.dumps({"deal": {"value": "$50,000", "confidence": 80}})
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed) as exc_info:
            await engine.extract("Some notes")

        assert isinstance(exc_info.value.__cause__, ValidationError)

    async def test_out_of_range_confidence_fails_the_whole_extraction(self, completion):
        completion.complete.return_value = json.dumps({"contact": {"name": "Jane", "confidence": 150}})
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed):
            await engine.extract("Some notes")

    async def test_non_finite_deal_value_fails_the_extraction(self, completion):
        # json.loads accepts these tokens
        completion.complete.return_value = '{"deal": {"name": "Acme - Support", "value": Infinity}}'
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed) as exc_info:
            await engine.extract("Some notes")

        assert "deal.value" in {err["path"] for err in exc_info.value.__cause__.errors}

    async def test_no_retry_on_failure(self):
        completion = AsyncMock()
        completion.complete.side_effect = RuntimeError("connection reset")
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed):
            await engine.extract("Some notes")

        assert completion.complete.await_count == 1


class TestExtractAndStore:
    async def test_persists_unsynced_extraction(self, completion, storage, full_record):
        engine = ExtractionEngine(completion)

        extraction, record = await extract_and_store(engine, storage, "Met Jane from Acme.")

        stored = await storage.get_extraction(extraction.id)
        assert stored is not None
        assert stored.meeting_summary == "Met Jane from Acme."
        assert stored.synced_to_hubspot is False
        assert stored.record == record
        assert json.loads(stored.extracted_data) == full_record

    async def test_nothing_is_stored_when_extraction_fails(self, completion, storage):
        completion.complete.side_effect = RuntimeError("boom")
        engine = ExtractionEngine(completion)

        with pytest.raises(ExtractionFailed):
            await extract_and_store(engine, storage, "Some notes")

        assert await storage.get_all_extractions() == []
