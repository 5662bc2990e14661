"""Unit tests for the extracted-record schema and validator."""

from __future__ import annotations

import copy

import pytest

from meeting_crm.errors import ValidationError
from meeting_crm.schemas.extraction import ExtractedRecord, validate_extracted_data


def _paths(exc: ValidationError) -> set[str]:
    return {err["path"] for err in exc.errors}


class TestValidRecords:
    def test_full_record_round_trips_unchanged(self, full_record):
        record = validate_extracted_data(copy.deepcopy(full_record))

        again = ExtractedRecord.from_json(record.to_json())

        assert again == record
        assert again.to_payload() == full_record

    def test_close_date_uses_camel_case_on_the_wire(self, full_record):
        record = validate_extracted_data(full_record)

        assert record.deal.close_date == "2026-12-31"
        assert record.to_payload()["deal"]["closeDate"] == "2026-12-31"

    def test_null_and_absent_are_equivalent(self):
        with_nulls = validate_extracted_data({
            "contact": {"name": None, "email": None, "title": None, "phone": None, "confidence": 10},
            "company": {"name": "Acme", "industry": None, "confidence": 50},
            "deal": {"name": None, "value": None, "closeDate": None, "stage": None, "confidence": 0},
        })
        absent = validate_extracted_data({
            "contact": {"confidence": 10},
            "company": {"name": "Acme", "confidence": 50},
            "deal": {"confidence": 0},
        })

        assert with_nulls == absent
        assert with_nulls.contact.email is None
        assert "email" not in with_nulls.to_payload()["contact"]

    def test_blank_strings_mean_not_mentioned(self):
        record = validate_extracted_data({"contact": {"name": "", "email": "   ", "confidence": 40}})

        assert record.contact.name is None
        assert record.contact.email is None
        assert record.to_payload()["contact"] == {"confidence": 40}

    def test_missing_confidence_defaults_to_zero(self):
        record = validate_extracted_data({"contact": {"name": "Jane"}, "company": {}, "deal": {}})

        assert record.contact.confidence == 0
        assert record.company.confidence == 0
        assert record.deal.confidence == 0

    def test_null_confidence_defaults_to_zero(self):
        record = validate_extracted_data({"deal": {"name": "Acme - Support", "confidence": None}})

        assert record.deal.confidence == 0

    def test_missing_or_null_entities_are_empty(self):
        record = validate_extracted_data({"contact": None})

        assert record.to_payload() == {
            "contact": {"confidence": 0},
            "company": {"confidence": 0},
            "deal": {"confidence": 0},
        }

    def test_unknown_keys_are_ignored(self):
        record = validate_extracted_data({
            "contact": {"email": "jane@acme.com", "linkedin": "jane-s", "confidence": 60},
            "notes": "follow up next week",
        })

        assert record.contact.email == "jane@acme.com"
        assert "linkedin" not in record.to_payload()["contact"]

    @pytest.mark.parametrize("confidence", [0, 100, 55.5])
    def test_confidence_bounds_are_inclusive(self, confidence):
        record = validate_extracted_data({"company": {"name": "Acme", "confidence": confidence}})

        assert record.company.confidence == confidence

    def test_deal_value_accepts_floats(self):
        record = validate_extracted_data({"deal": {"name": "X", "value": 1250.75}})

        assert record.deal.value == 1250.75


class TestRejectedRecords:
    @pytest.mark.parametrize("confidence", [150, -5])
    def test_out_of_range_confidence_is_rejected(self, confidence):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({"contact": {"confidence": confidence}})

        assert "contact.confidence" in _paths(exc_info.value)

    def test_string_deal_value_is_not_coerced(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({"deal": {"name": "Acme - Support", "value": "50000"}})

        assert "deal.value" in _paths(exc_info.value)

    def test_string_confidence_is_not_coerced(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({"company": {"confidence": "90"}})

        assert "company.confidence" in _paths(exc_info.value)

    @pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_numbers_are_rejected(self, number):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({
                "company": {"name": "Acme", "confidence": number},
                "deal": {"name": "Acme - Support", "value": number},
            })

        assert {"company.confidence", "deal.value"} <= _paths(exc_info.value)

    def test_boolean_value_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_extracted_data({"deal": {"value": True}})

    def test_number_where_string_expected_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({"contact": {"phone": 5550100}})

        assert "contact.phone" in _paths(exc_info.value)

    def test_every_offending_path_is_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data({
                "contact": {"email": 42},
                "deal": {"value": "lots", "confidence": 101},
            })

        assert {"contact.email", "deal.value", "deal.confidence"} <= _paths(exc_info.value)

    def test_non_object_record_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_extracted_data(["not", "a", "record"])

        assert exc_info.value.errors

    def test_stored_text_that_is_not_json_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ExtractedRecord.from_json("{broken")

        assert exc_info.value.errors[0]["type"] == "json_invalid"
