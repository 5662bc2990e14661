"""
Data models for HubSpot sync requests and per-entity outcomes.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SyncOptions(BaseModel):
    """Which entity types to push. All enabled by default."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    create_contact: bool = True
    create_company: bool = True
    create_deal: bool = True


class SyncRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    extraction_id: int
    sync_options: SyncOptions = Field(default_factory=SyncOptions)


class StepStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class EntitySyncResult(BaseModel):
    """Outcome of one sync step (company, contact or deal)."""

    status: StepStatus
    external_id: Optional[str] = None
    local_id: Optional[int] = None
    error: Optional[str] = None
    reason: Optional[str] = None  # why a step was skipped

    @classmethod
    def succeeded(cls, external_id: str, local_id: int) -> "EntitySyncResult":
        return cls(status=StepStatus.SUCCESS, external_id=external_id, local_id=local_id)

    @classmethod
    def failed(cls, error: str, external_id: str | None = None) -> "EntitySyncResult":
        return cls(status=StepStatus.FAILED, error=error, external_id=external_id)

    @classmethod
    def skipped(cls, reason: str) -> "EntitySyncResult":
        return cls(status=StepStatus.SKIPPED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == StepStatus.SUCCESS

    def to_payload(self) -> dict[str, Any]:
        if self.status == StepStatus.SKIPPED:
            return {"skipped": True, "reason": self.reason}
        if self.status == StepStatus.SUCCESS:
            return {"success": True, "externalId": self.external_id}
        payload: dict[str, Any] = {"success": False, "error": self.error}
        if self.external_id:
            # Created remotely but the local mirror write failed
            payload["externalId"] = self.external_id
        return payload


class SyncReport(BaseModel):
    """Composite result of syncing one extraction."""

    extraction_id: int
    company: Optional[EntitySyncResult] = None
    contact: Optional[EntitySyncResult] = None
    deal: Optional[EntitySyncResult] = None
    already_synced: bool = False

    def to_payload(self) -> dict[str, Any]:
        results = {
            name: result.to_payload()
            for name, result in (
                ("company", self.company),
                ("contact", self.contact),
                ("deal", self.deal),
            )
            if result is not None
        }
        payload: dict[str, Any] = {"success": True, "results": results}
        if self.already_synced:
            payload["alreadySynced"] = True
        return payload
