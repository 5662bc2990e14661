"""
HubSpot CRM client.

Creates companies, contacts and deals through the CRM v3 objects API and
reports connectivity. Each create is a single authenticated POST; any
non-2xx response is raised as ``ExternalApiError`` with the status code
and body exactly as HubSpot returned them.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from meeting_crm.config import Settings
from meeting_crm.errors import ConfigurationError, ExternalApiError
from meeting_crm.logging_config import get_logger

logger = get_logger(__name__)

HUBSPOT_BASE_URL = "https://api.hubapi.com"

DEFAULT_DEAL_STAGE = "qualifiedtobuy"
DEFAULT_PIPELINE = "default"

# HubSpot-defined association type ids for deal -> X
DEAL_TO_CONTACT_ASSOCIATION = 3
DEAL_TO_COMPANY_ASSOCIATION = 5


def split_name(name: Optional[str]) -> tuple[str, str]:
    """First whitespace-delimited token, then the rest ("" when missing)."""
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _format_amount(value: Optional[float]) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _association(object_id: str, type_id: int) -> dict[str, Any]:
    return {
        "to": {"id": object_id},
        "types": [{"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": type_id}],
    }


class HubSpotClient:
    """Async HubSpot client authenticated with a private-app bearer token."""

    def __init__(
        self,
        access_token: str,
        base_url: str = HUBSPOT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token or not access_token.strip():
            raise ConfigurationError("HubSpot API key not found in environment variables")

        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> HubSpotClient:
        return cls(
            access_token=settings.hubspot_access_token,
            base_url=settings.hubspot_base_url,
            timeout=settings.hubspot_timeout_seconds,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.error("hubspot_request_failed", method=method, path=path, error=str(e))
            raise ExternalApiError(None, str(e)) from e

        if response.is_error:
            logger.error(
                "hubspot_api_error",
                method=method,
                path=path,
                status=response.status_code,
                body=response.text[:500],
            )
            raise ExternalApiError(response.status_code, response.text)

        return response.json()

    async def _create(self, object_type: str, body: dict[str, Any]) -> str:
        result = await self._request("POST", f"/crm/v3/objects/{object_type}", json=body)
        external_id = str(result["id"])
        logger.info("hubspot_object_created", object_type=object_type, hubspot_id=external_id)
        return external_id

    async def create_company(
        self,
        name: str,
        industry: Optional[str] = None,
        size: Optional[str] = None,
        website: Optional[str] = None,
    ) -> str:
        """Create a company and return its HubSpot id."""
        return await self._create(
            "companies",
            {
                "properties": {
                    "name": name or "",
                    "industry": industry or "",
                    "numberofemployees": size or "",
                    "website": website or "",
                }
            },
        )

    async def create_contact(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        title: Optional[str] = None,
        phone: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> str:
        """Create a contact and return its HubSpot id."""
        first_name, last_name = split_name(name)
        return await self._create(
            "contacts",
            {
                "properties": {
                    "email": email or "",
                    "firstname": first_name,
                    "lastname": last_name,
                    "jobtitle": title or "",
                    "phone": phone or "",
                    "company": company_name or "",
                }
            },
        )

    async def create_deal(
        self,
        name: Optional[str] = None,
        value: Optional[float] = None,
        close_date: Optional[str] = None,
        stage: Optional[str] = None,
        contact_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> str:
        """Create a deal, associated with the given contact/company, and return its HubSpot id."""
        body: dict[str, Any] = {
            "properties": {
                "dealname": name or "",
                "amount": _format_amount(value),
                "closedate": close_date or "",
                "dealstage": stage or DEFAULT_DEAL_STAGE,
                "pipeline": DEFAULT_PIPELINE,
            }
        }

        associations = []
        if contact_id:
            associations.append(_association(contact_id, DEAL_TO_CONTACT_ASSOCIATION))
        if company_id:
            associations.append(_association(company_id, DEAL_TO_COMPANY_ASSOCIATION))
        if associations:
            body["associations"] = associations

        return await self._create("deals", body)

    async def test_connection(self) -> bool:
        """Lightweight read used as a health signal. Never raises."""
        try:
            await self._request("GET", "/crm/v3/objects/contacts", params={"limit": 1})
            return True
        except Exception as e:
            logger.warning("hubspot_connection_test_failed", error=str(e))
            return False

    async def aclose(self) -> None:
        await self._http.aclose()
