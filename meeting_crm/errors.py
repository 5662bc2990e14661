"""
Exception taxonomy.

Every failure the pipeline raises on purpose derives from
``MeetingCrmError``. The API layer maps each class to an HTTP status;
anything else is reported as an internal failure.
"""

from __future__ import annotations

from typing import Any


class MeetingCrmError(Exception):
    """Base class for all service errors."""


class ValidationError(MeetingCrmError):
    """Malformed request body or extracted-data shape violation."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ExtractionFailed(MeetingCrmError):
    """Completion call failed or returned a payload that does not validate."""


class ExternalApiError(MeetingCrmError):
    """A HubSpot call returned a non-success response or could not be sent."""

    def __init__(self, status_code: int | None, body: str) -> None:
        if status_code is None:
            message = f"HubSpot request failed: {body}"
        else:
            message = f"HubSpot API error: {status_code} - {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CompletionError(MeetingCrmError):
    """The OpenAI completion call failed."""

    def __init__(self, status_code: int | None, body: str) -> None:
        if status_code is None:
            message = f"Completion request failed: {body}"
        else:
            message = f"OpenAI API error: {status_code} - {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotFound(MeetingCrmError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConfigurationError(MeetingCrmError):
    """A required credential or setting is missing."""
