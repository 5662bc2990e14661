"""
OpenAI completion client.

Thin wrapper over the chat completions endpoint: one system prompt, one
user turn, optionally forcing a JSON object response. Everything about
what to ask for lives with the caller.
"""

from __future__ import annotations

from typing import Any

import httpx

from meeting_crm.config import Settings
from meeting_crm.errors import CompletionError, ConfigurationError
from meeting_crm.logging_config import get_logger

logger = get_logger(__name__)


class CompletionClient:
    """Async client for OpenAI chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OpenAI API key not found in environment variables")

        self.model = model
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> CompletionClient:
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.openai_timeout_seconds,
        )

    async def complete(self, system_prompt: str, user_text: str, want_json: bool = True) -> str:
        """
        Run a single chat completion and return the raw message content.

        Raises:
            CompletionError: on transport failure or a non-2xx response.
        """
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
        }
        if want_json:
            body["response_format"] = {"type": "json_object"}

        try:
            response = await self._http.post("/chat/completions", json=body)
        except httpx.HTTPError as e:
            raise CompletionError(None, str(e)) from e

        if response.is_error:
            raise CompletionError(response.status_code, response.text)

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError(response.status_code, "Completion response had no message content") from e

        logger.debug(
            "completion_received",
            model=data.get("model", self.model),
            total_tokens=(data.get("usage") or {}).get("total_tokens"),
        )
        return content or ""

    async def test_connection(self) -> bool:
        """Cheap authenticated read; False on any failure."""
        try:
            response = await self._http.get("/models")
            response.raise_for_status()
            return True
        except Exception as e:
            logger.warning("openai_connection_test_failed", error=str(e))
            return False

    async def aclose(self) -> None:
        await self._http.aclose()
