"""n8n webhook client for availability checks and reservation submission."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import aiohttp

from reservas.logging_config import get_logger, sanitize_for_log
from reservas.services.exceptions import ServiceError
from reservas.services.http import request_json

logger: Any = get_logger(__name__)

SERVICE_NAME = "webhook"


@dataclass(slots=True)
class WebhookClient:
    """Post availability checks and reservations to the automation webhook."""

    webhook_url: str
    timeout_seconds: float = 10.0

    _session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> WebhookClient:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        self._session = aiohttp.ClientSession(timeout=timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _post(self, payload: dict[str, Any]) -> Any:
        if not self._session:
            raise ServiceError("Client session not initialized")

        logger.debug(f"POST {self.webhook_url}: {json.dumps(sanitize_for_log(payload))}")
        raw = await request_json(
            self._session,
            "POST",
            self.webhook_url,
            service=SERVICE_NAME,
            payload=payload,
        )
        logger.debug(f"Webhook response: {raw!r}")
        return raw

    async def post_availability_check(self, args: dict[str, Any]) -> Any:
        """Forward the assistant's availability arguments as a tool-call message.

        Returns:
            Decoded JSON response, or the raw text for non-JSON bodies
        """
        payload = {
            "message": {
                "toolCalls": [
                    {
                        "id": "manual_call_1",
                        "function": {"arguments": json.dumps(args, ensure_ascii=False)},
                    }
                ],
                "type": "tool-calls",
            }
        }
        return await self._post(payload)

    async def post_reservation(self, payload: dict[str, Any]) -> Any:
        """Submit a finished reservation (analysis message)."""
        return await self._post(payload)
