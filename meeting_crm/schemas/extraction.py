"""
Data models for CRM data extracted from meeting notes.

This is the single source of truth for the shape of an extracted record.
String fields are optional and nullable; ``null``, absence and blank
strings all mean "not mentioned". Numbers are strict: a string where a
number is expected is rejected rather than coerced. ``confidence`` is
always present, defaults to 0 and must lie in [0, 100].
"""

from __future__ import annotations

import json
import math
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainValidator,
    StrictStr,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from meeting_crm.errors import ValidationError

CONFIDENCE_MIN = 0
CONFIDENCE_MAX = 100


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _strict_number(value: Any) -> Union[int, float]:
    # bool is an int subclass; numeric strings are not numbers
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PydanticCustomError("number_type", "Input should be a number")
    # NaN and Infinity parse from completions but are not JSON numbers
    if not math.isfinite(value):
        raise PydanticCustomError("finite_number", "Input should be a finite number")
    return value


def _null_to_zero(value: Any) -> Any:
    return 0 if value is None else value


def _check_confidence(value: Union[int, float]) -> Union[int, float]:
    if not CONFIDENCE_MIN <= value <= CONFIDENCE_MAX:
        raise ValueError(f"confidence must be between {CONFIDENCE_MIN} and {CONFIDENCE_MAX}")
    return value


def _null_to_empty(value: Any) -> Any:
    return {} if value is None else value


Number = Annotated[Union[int, float], PlainValidator(_strict_number)]
OptionalText = Annotated[Optional[StrictStr], BeforeValidator(_blank_to_none)]
Confidence = Annotated[Number, BeforeValidator(_null_to_zero), AfterValidator(_check_confidence)]


class _EntityData(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    confidence: Confidence = 0


class ContactData(_EntityData):
    """Person mentioned in the meeting."""
    name: OptionalText = None
    email: OptionalText = None
    title: OptionalText = None
    phone: OptionalText = None


class CompanyData(_EntityData):
    """Organization the contact belongs to."""
    name: OptionalText = None
    industry: OptionalText = None
    size: OptionalText = None  # free-form, e.g. "50 employees"
    website: OptionalText = None


class DealData(_EntityData):
    """Sales opportunity discussed in the meeting."""
    name: OptionalText = None
    value: Optional[Number] = None  # bare amount, no currency symbol
    close_date: OptionalText = None
    stage: OptionalText = None


class ExtractedRecord(BaseModel):
    """Contact, company and deal extracted from one meeting summary."""

    model_config = ConfigDict(extra="ignore")

    contact: Annotated[ContactData, BeforeValidator(_null_to_empty)] = Field(default_factory=ContactData)
    company: Annotated[CompanyData, BeforeValidator(_null_to_empty)] = Field(default_factory=CompanyData)
    deal: Annotated[DealData, BeforeValidator(_null_to_empty)] = Field(default_factory=DealData)

    def to_payload(self) -> dict[str, Any]:
        """Plain dict with camelCase keys; absent fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_json(cls, text: str) -> ExtractedRecord:
        """Parse the stored form back into a validated record."""
        try:
            raw = json.loads(text)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Stored extracted data is not valid JSON",
                errors=[{"path": "<root>", "message": str(e), "type": "json_invalid"}],
            ) from e
        return validate_extracted_data(raw)


def _format_errors(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return [
        {
            "path": ".".join(str(part) for part in err["loc"]) or "<root>",
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def validate_extracted_data(value: Any) -> ExtractedRecord:
    """
    Validate an arbitrary JSON-like value as an ExtractedRecord.

    Raises:
        ValidationError: with one entry per offending path.
    """
    try:
        return ExtractedRecord.model_validate(value)
    except PydanticValidationError as e:
        raise ValidationError("Extracted data failed validation", errors=_format_errors(e)) from e
