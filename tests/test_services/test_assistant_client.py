"""Tests for the hosted assistant HTTP client."""

import pytest

from reservas.services.assistant.client import AssistantClient
from reservas.services.assistant.protocol import Role, RunStatus, ToolOutput
from reservas.services.exceptions import (
    AuthError,
    RateLimitError,
    ServiceError,
    ServiceTimeoutError,
    TransportError,
    UpstreamError,
)

THREAD = "thread_abc"
RUN = "run_123"


@pytest.fixture
def make_client(settings_factory):
    def _make(base_url: str, **overrides) -> AssistantClient:
        return AssistantClient(settings_factory(assistant_api_base=base_url, **overrides))

    return _make


class TestRequests:
    """Tests for request shapes."""

    @pytest.mark.asyncio
    async def test_create_conversation_sends_auth_headers(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", {"id": THREAD, "object": "thread"})

        async with make_client(base_url) as client:
            thread_id = await client.create_conversation()

        assert thread_id == THREAD
        request = app.requests[0]
        assert request.headers["Authorization"] == "Bearer test-openai-key"
        assert request.headers["OpenAI-Beta"] == "assistants=v2"
        assert request.body == {}

    @pytest.mark.asyncio
    async def test_post_message(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", f"/threads/{THREAD}/messages", {"id": "msg_1"})

        async with make_client(base_url) as client:
            await client.post_message(THREAD, Role.USER, "Hola, quiero reservar")

        assert app.requests[0].body == {"role": "user", "content": "Hola, quiero reservar"}

    @pytest.mark.asyncio
    async def test_start_run_uses_configured_assistant(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", f"/threads/{THREAD}/runs", {"id": RUN, "status": "queued"})

        async with make_client(base_url) as client:
            run_id = await client.start_run(THREAD)

        assert run_id == RUN
        assert app.requests[0].body == {"assistant_id": "asst_test"}

    @pytest.mark.asyncio
    async def test_get_run_parses_tool_calls(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply(
            "GET",
            f"/threads/{THREAD}/runs/{RUN}",
            {
                "id": RUN,
                "status": "requires_action",
                "required_action": {
                    "type": "submit_tool_outputs",
                    "submit_tool_outputs": {
                        "tool_calls": [
                            {
                                "id": "call_1",
                                "type": "function",
                                "function": {
                                    "name": "checkAvailability",
                                    "arguments": '{"hora": "21:00"}',
                                },
                            }
                        ]
                    },
                },
                "last_error": None,
            },
        )

        async with make_client(base_url) as client:
            state = await client.get_run(THREAD, RUN)

        assert state.run_id == RUN
        assert state.status == RunStatus.REQUIRES_ACTION
        assert len(state.pending_tool_calls) == 1
        call = state.pending_tool_calls[0]
        assert call.call_id == "call_1"
        assert call.name == "checkAvailability"
        assert call.arguments == '{"hora": "21:00"}'

    @pytest.mark.asyncio
    async def test_get_run_failed_with_error(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply(
            "GET",
            f"/threads/{THREAD}/runs/{RUN}",
            {
                "id": RUN,
                "status": "failed",
                "last_error": {"code": "server_error", "message": "Something went wrong"},
            },
        )

        async with make_client(base_url) as client:
            state = await client.get_run(THREAD, RUN)

        assert state.status == RunStatus.FAILED
        assert state.pending_tool_calls == ()
        assert state.last_error == "Something went wrong"

    @pytest.mark.asyncio
    async def test_unknown_status_treated_as_running(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("GET", f"/threads/{THREAD}/runs/{RUN}", {"id": RUN, "status": "thinking"})

        async with make_client(base_url) as client:
            state = await client.get_run(THREAD, RUN)

        assert state.status == RunStatus.IN_PROGRESS
        assert state.status.is_pending is True

    @pytest.mark.asyncio
    async def test_submit_tool_outputs(self, http_app, make_client) -> None:
        app, base_url = http_app
        path = f"/threads/{THREAD}/runs/{RUN}/submit_tool_outputs"
        app.reply("POST", path, {"id": RUN, "status": "queued"})

        async with make_client(base_url) as client:
            await client.submit_tool_outputs(
                THREAD,
                RUN,
                [ToolOutput("call_1", '{"available": true}'), ToolOutput("call_2", "{}")],
            )

        assert app.requests[0].body == {
            "tool_outputs": [
                {"tool_call_id": "call_1", "output": '{"available": true}'},
                {"tool_call_id": "call_2", "output": "{}"},
            ]
        }

    @pytest.mark.asyncio
    async def test_list_messages_newest_first(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply(
            "GET",
            f"/threads/{THREAD}/messages",
            {
                "object": "list",
                "data": [
                    {
                        "id": "msg_2",
                        "role": "assistant",
                        "content": [{"type": "text", "text": {"value": "¿Para cuántos?"}}],
                    },
                    {
                        "id": "msg_1",
                        "role": "user",
                        "content": [{"type": "text", "text": {"value": "Hola"}}],
                    },
                ],
            },
        )

        async with make_client(base_url) as client:
            messages = await client.list_messages(THREAD)

        assert app.requests[0].query == {"order": "desc"}
        assert [m.role for m in messages] == [Role.ASSISTANT, Role.USER]
        assert messages[0].text == "¿Para cuántos?"
        assert messages[0].message_id == "msg_2"

    @pytest.mark.asyncio
    async def test_message_without_text_part(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply(
            "GET",
            f"/threads/{THREAD}/messages",
            {"data": [{"id": "msg_1", "role": "assistant", "content": [{"type": "image_file"}]}]},
        )

        async with make_client(base_url) as client:
            messages = await client.list_messages(THREAD)

        assert messages[0].text == ""

    @pytest.mark.asyncio
    async def test_cancel_run(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", f"/threads/{THREAD}/runs/{RUN}/cancel", {"id": RUN, "status": "cancelling"})

        async with make_client(base_url) as client:
            await client.cancel_run(THREAD, RUN)

        assert app.requests[0].path == f"/threads/{THREAD}/runs/{RUN}/cancel"


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_unauthorized(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", {"error": {"message": "Incorrect API key"}}, status=401)

        async with make_client(base_url) as client:
            with pytest.raises(AuthError) as exc_info:
                await client.create_conversation()

        assert exc_info.value.status == 401
        assert "Incorrect API key" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_rate_limited(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", {"error": {}}, status=429, headers={"Retry-After": "7"})

        async with make_client(base_url) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.create_conversation()

        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_server_error(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", text="Bad gateway", status=502)

        async with make_client(base_url) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.create_conversation()

        assert exc_info.value.status == 502
        assert exc_info.value.body == "Bad gateway"

    @pytest.mark.asyncio
    async def test_non_object_body(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", ["not", "an", "object"])

        async with make_client(base_url) as client:
            with pytest.raises(UpstreamError):
                await client.create_conversation()

    @pytest.mark.asyncio
    async def test_timeout(self, http_app, make_client) -> None:
        app, base_url = http_app
        app.reply("POST", "/threads", {"id": THREAD}, delay=1.0)

        async with make_client(base_url, http_timeout_seconds=0.2) as client:
            with pytest.raises(ServiceTimeoutError):
                await client.create_conversation()

    @pytest.mark.asyncio
    async def test_connection_refused(self, make_client) -> None:
        async with make_client("http://127.0.0.1:1") as client:
            with pytest.raises(TransportError):
                await client.create_conversation()

    @pytest.mark.asyncio
    async def test_call_outside_context_manager(self, make_client) -> None:
        client = make_client("http://127.0.0.1:1")

        with pytest.raises(ServiceError):
            await client.create_conversation()
