"""Hosted assistant client (OpenAI Assistants v2 REST API)."""

from __future__ import annotations

from typing import Any

import aiohttp

from reservas.config import Settings, get_settings
from reservas.logging_config import get_logger
from reservas.services.assistant.protocol import (
    Role,
    RunState,
    ThreadMessage,
    ToolOutput,
)
from reservas.services.exceptions import ServiceError, UpstreamError
from reservas.services.http import request_json

logger: Any = get_logger(__name__)

SERVICE_NAME = "assistant API"


class AssistantClient:
    """Thin async wrapper around the threads/runs/messages endpoints.

    Usage:
        async with AssistantClient() as client:
            thread_id = await client.create_conversation()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._base_url = self._settings.assistant_api_base.rstrip("/")
        self._assistant_id = self._settings.assistant_id
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> AssistantClient:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._settings.http_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.openai_api_key.get_secret_value()}",
            "OpenAI-Beta": "assistants=v2",
        }

    async def _call(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if self._session is None:
            raise ServiceError("Client session not initialized")

        data = await request_json(
            self._session,
            method,
            f"{self._base_url}{path}",
            service=SERVICE_NAME,
            payload=payload,
            headers=self.headers,
        )
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Unexpected {SERVICE_NAME} response for {method} {path}",
                status=200,
                body=str(data),
            )
        return data

    async def create_conversation(self) -> str:
        data = await self._call("POST", "/threads", {})
        logger.debug(f"Thread created: {data.get('id')}")
        return data["id"]

    async def post_message(self, conversation_id: str, role: Role, text: str) -> None:
        await self._call(
            "POST",
            f"/threads/{conversation_id}/messages",
            {"role": role.value, "content": text},
        )

    async def start_run(self, conversation_id: str) -> str:
        data = await self._call(
            "POST",
            f"/threads/{conversation_id}/runs",
            {"assistant_id": self._assistant_id},
        )
        logger.debug(f"Run started: {data.get('id')}")
        return data["id"]

    async def get_run(self, conversation_id: str, run_id: str) -> RunState:
        data = await self._call("GET", f"/threads/{conversation_id}/runs/{run_id}")
        return RunState.from_api(data)

    async def submit_tool_outputs(
        self,
        conversation_id: str,
        run_id: str,
        outputs: list[ToolOutput],
    ) -> None:
        await self._call(
            "POST",
            f"/threads/{conversation_id}/runs/{run_id}/submit_tool_outputs",
            {
                "tool_outputs": [
                    {"tool_call_id": item.call_id, "output": item.output} for item in outputs
                ]
            },
        )

    async def list_messages(self, conversation_id: str) -> list[ThreadMessage]:
        data = await self._call("GET", f"/threads/{conversation_id}/messages?order=desc")
        return [ThreadMessage.from_api(item) for item in data.get("data") or []]

    async def cancel_run(self, conversation_id: str, run_id: str) -> None:
        await self._call("POST", f"/threads/{conversation_id}/runs/{run_id}/cancel", {})

    async def close(self) -> None:
        """Close the HTTP session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
