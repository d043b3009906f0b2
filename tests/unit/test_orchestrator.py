from collections.abc import Iterator
from typing import Any, ClassVar
from unittest.mock import MagicMock, patch

import httpx
import pytest

from invoice_chat.chat.client_base import BaseChatClient
from invoice_chat.chat.exceptions import ChatClientNetworkError
from invoice_chat.chat.models import (
    CHUNK_ERROR,
    CHUNK_FINISH,
    CHUNK_REASONING,
    CHUNK_START,
    CHUNK_STEP_FINISH,
    CHUNK_TEXT,
    CHUNK_TOOL_CALL,
    CHUNK_TOOL_RESULT,
    ROLE_ASSISTANT,
    ROLE_TOOL,
    Attachment,
    ConversationMessage,
    StreamDelta,
    ToolCallDelta,
    TurnRequest,
)
from invoice_chat.chat.openai_client_adapter import OpenAIClientAdapter
from invoice_chat.chat.orchestrator import (
    STREAM_ERROR_MESSAGE,
    ConversationOrchestrator,
    to_provider_messages,
)
from invoice_chat.chat.tools.base import BaseTool
from invoice_chat.chat.tools.registry import ToolRegistry

MODEL_NAMES = {"chat-model-large": "gpt-4o", "chat-model-reasoning": "o3-mini"}


class ScriptedClient(BaseChatClient):
    """Plays back one list of deltas per model step."""

    def __init__(self, steps: list[list[StreamDelta]], fail_on_step: int | None = None) -> None:
        self._steps = list(steps)
        self._fail_on_step = fail_on_step
        self.calls: list[dict[str, Any]] = []

    def stream_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Iterator[StreamDelta]:
        self.calls.append({"model": model, "messages": list(messages), "tools": tools})
        if self._fail_on_step == len(self.calls):
            raise ChatClientNetworkError("AI provider network error: reset")
        yield from self._steps.pop(0)

    def create_completion(self, *, model: str, system_prompt: str, user_prompt: str) -> str:
        return "title"


class WeatherStub(BaseTool):
    name: ClassVar[str] = "getWeather"
    description: ClassVar[str] = "weather"
    parameters: ClassVar[dict[str, Any]] = {"type": "object", "properties": {}}

    def run(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return {"temperature": 21}


def _text_step(*pieces: str) -> list[StreamDelta]:
    deltas = [StreamDelta(text=p) for p in pieces]
    deltas.append(StreamDelta(finish_reason="stop"))
    return deltas


def _tool_step(call_id: str = "call_1") -> list[StreamDelta]:
    return [
        StreamDelta(tool_calls=(ToolCallDelta(index=0, call_id=call_id, name="getWeather", arguments='{"latitude"'),)),
        StreamDelta(tool_calls=(ToolCallDelta(index=0, arguments=': 1, "longitude": 2}'),)),
        StreamDelta(finish_reason="tool_calls"),
    ]


def _orchestrator(client: BaseChatClient, max_steps: int = 5) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        client=client,
        tools=ToolRegistry([WeatherStub()]),
        model_names=MODEL_NAMES,
        reasoning_model_key="chat-model-reasoning",
        max_steps=max_steps,
    )


def _request(model_key: str = "chat-model-large") -> TurnRequest:
    return TurnRequest(
        system_prompt="You are helpful.",
        messages=[ConversationMessage(id="u1", role="user", content="Hi")],
        model_key=model_key,
    )


class TestPlainTurn:
    def test_streams_text_then_resolves_result(self) -> None:
        client = ScriptedClient([_text_step("Hello ", "wor", "ld")])
        stream = _orchestrator(client).stream(_request())

        assert not stream.completion.done()
        chunks = list(stream)

        assert chunks[0].type == CHUNK_START
        assert chunks[-1].type == CHUNK_FINISH
        text_chunks = [c.payload for c in chunks if c.type == CHUNK_TEXT]
        assert text_chunks == ["Hello ", "world"]
        result = stream.completion.result()
        assert result.text == "Hello world"
        assert result.first_message_text == "Hello world"
        assert result.response_messages[0].role == ROLE_ASSISTANT

    def test_maps_model_key_and_prefixes_system_prompt(self) -> None:
        client = ScriptedClient([_text_step("ok")])
        list(_orchestrator(client).stream(_request()))

        call = client.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["messages"][0] == {"role": "system", "content": "You are helpful."}
        assert call["messages"][1] == {"role": "user", "content": "Hi"}

    def test_nothing_sent_until_iterated(self) -> None:
        client = ScriptedClient([_text_step("ok")])
        _orchestrator(client).stream(_request())
        assert client.calls == []


class TestToolUse:
    def test_tool_step_then_answer(self) -> None:
        client = ScriptedClient([_tool_step(), _text_step("It is 21 degrees")])
        stream = _orchestrator(client).stream(_request())

        chunks = list(stream)

        types = [c.type for c in chunks]
        assert types.index(CHUNK_TOOL_CALL) < types.index(CHUNK_TOOL_RESULT)
        assert types.count(CHUNK_STEP_FINISH) == 2
        tool_result = next(c for c in chunks if c.type == CHUNK_TOOL_RESULT)
        assert tool_result.payload == {"toolCallId": "call_1", "result": {"temperature": 21}}

        result = stream.completion.result()
        assert result.text == "It is 21 degrees"
        assert result.tool_invocations[0].arguments == {"latitude": 1, "longitude": 2}
        assert [m.role for m in result.response_messages] == [ROLE_ASSISTANT, ROLE_TOOL, ROLE_ASSISTANT]

    def test_tool_result_is_fed_back_to_model(self) -> None:
        client = ScriptedClient([_tool_step(), _text_step("done")])
        list(_orchestrator(client).stream(_request()))

        second_call = client.calls[1]["messages"]
        assert second_call[-2]["tool_calls"][0]["function"]["name"] == "getWeather"
        assert second_call[-1] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "content": '{"temperature": 21}',
        }

    def test_stops_after_max_steps(self) -> None:
        client = ScriptedClient([_tool_step("a"), _tool_step("b"), _tool_step("c")])
        stream = _orchestrator(client, max_steps=2).stream(_request())

        chunks = list(stream)

        assert len(client.calls) == 2
        assert chunks[-1].type == CHUNK_FINISH
        assert len(stream.completion.result().tool_invocations) == 2

    def test_reasoning_model_gets_no_tools(self) -> None:
        client = ScriptedClient([_text_step("ok")])
        list(_orchestrator(client).stream(_request("chat-model-reasoning")))

        assert client.calls[0]["tools"] is None
        assert client.calls[0]["model"] == "o3-mini"

    def test_max_steps_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            _orchestrator(ScriptedClient([]), max_steps=0)


    def test_step_without_finish_reason_does_not_inherit_previous_one(self) -> None:
        client = ScriptedClient([_tool_step(), [StreamDelta(text="It is 21 degrees")]])
        stream = _orchestrator(client).stream(_request())

        chunks = list(stream)

        step_finishes = [c.payload for c in chunks if c.type == CHUNK_STEP_FINISH]
        assert step_finishes[0]["finishReason"] == "tool_calls"
        assert step_finishes[1] == {"finishReason": "stop", "isContinued": False}
        assert chunks[-1].payload == {"finishReason": "stop"}
        assert stream.completion.result().finish_reason == "stop"


class TestReasoning:
    def test_reasoning_streamed_and_attached_to_first_message(self) -> None:
        steps = [[StreamDelta(reasoning="Let me think. "), StreamDelta(text="Answer"), StreamDelta(finish_reason="stop")]]
        stream = _orchestrator(ScriptedClient(steps)).stream(_request("chat-model-reasoning"))

        chunks = list(stream)

        assert any(c.type == CHUNK_REASONING for c in chunks)
        result = stream.completion.result()
        assert result.reasoning == "Let me think. "
        assert result.response_messages[0].content[0] == {
            "type": "reasoning",
            "reasoning": "Let me think. ",
        }
        assert result.first_message_text == "Answer"


class TestFailureAndCancellation:
    def test_provider_error_yields_error_chunk(self) -> None:
        client = ScriptedClient([], fail_on_step=1)
        stream = _orchestrator(client).stream(_request())

        chunks = list(stream)

        assert chunks[-1].type == CHUNK_ERROR
        assert chunks[-1].payload == STREAM_ERROR_MESSAGE
        assert isinstance(stream.completion.exception(), ChatClientNetworkError)

    def test_transport_error_from_openai_stream_yields_error_chunk(self) -> None:
        def broken_stream():
            raise httpx.RemoteProtocolError("peer closed connection")
            yield  # pragma: no cover

        sdk_client = MagicMock()
        sdk_client.chat.completions.create.return_value = broken_stream()
        with patch(
            "invoice_chat.chat.openai_client_adapter.openai.OpenAI",
            return_value=sdk_client,
        ):
            adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30)
        stream = _orchestrator(adapter).stream(_request())

        chunks = list(stream)

        assert [c.type for c in chunks] == [CHUNK_START, CHUNK_ERROR]
        assert isinstance(stream.completion.exception(), ChatClientNetworkError)

    def test_closing_early_cancels_completion(self) -> None:
        client = ScriptedClient([_text_step("one ", "two ", "three ")])
        stream = _orchestrator(client).stream(_request())

        next(stream)
        next(stream)
        stream.close()

        assert stream.completion.cancelled()

    def test_close_after_completion_keeps_result(self) -> None:
        stream = _orchestrator(ScriptedClient([_text_step("done")])).stream(_request())
        list(stream)
        stream.close()
        assert stream.completion.result().text == "done"


class TestToProviderMessages:
    def test_image_attachments_become_image_parts(self) -> None:
        message = ConversationMessage(
            id="u1",
            role="user",
            content="What is this?",
            attachments=[Attachment(url="data:image/png;base64,AAA", content_type="image/png")],
        )

        converted = to_provider_messages("sys", [message])

        assert converted[1]["content"] == [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}},
        ]
