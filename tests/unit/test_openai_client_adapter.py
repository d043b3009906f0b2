from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from invoice_chat.chat.exceptions import ChatClientError, ChatClientNetworkError
from invoice_chat.chat.openai_client_adapter import OpenAIClientAdapter


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _stream_chunk(
    content: str | None = None,
    reasoning: str | None = None,
    tool_calls: list[MagicMock] | None = None,
    finish_reason: str | None = None,
) -> MagicMock:
    delta = MagicMock()
    delta.content = content
    delta.reasoning_content = reasoning
    delta.reasoning = None
    delta.tool_calls = tool_calls
    choice = MagicMock()
    choice.delta = delta
    choice.finish_reason = finish_reason
    chunk = MagicMock()
    chunk.choices = [choice]
    return chunk


def _tool_call_delta(index: int, call_id: str | None, name: str | None, arguments: str) -> MagicMock:
    call = MagicMock()
    call.index = index
    call.id = call_id
    call.function.name = name
    call.function.arguments = arguments
    return call


def _make_adapter(mock_client: MagicMock) -> OpenAIClientAdapter:
    with patch(
        "invoice_chat.chat.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)


class TestCreateCompletion:
    def test_returns_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("Acme invoice")
        adapter = _make_adapter(mock_client)

        content = adapter.create_completion(model="m", system_prompt="system", user_prompt="user")

        assert content == "Acme invoice"
        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    def test_raises_error_for_empty_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientError, match="empty response"):
            adapter.create_completion(model="m", system_prompt="s", user_prompt="u")

    def test_raises_error_for_no_choices(self) -> None:
        mock_client = MagicMock()
        response = MagicMock()
        response.choices = []
        mock_client.chat.completions.create.return_value = response
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientError, match="no choices"):
            adapter.create_completion(model="m", system_prompt="s", user_prompt="u")

    def test_raises_network_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientNetworkError, match="network error"):
            adapter.create_completion(model="m", system_prompt="s", user_prompt="u")

    def test_raises_network_error_on_timeout(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.TimeoutException("timeout")
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientNetworkError, match="network error"):
            adapter.create_completion(model="m", system_prompt="s", user_prompt="u")

    def test_raises_network_error_on_api_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="server error",
            request=MagicMock(),
            body=None,
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientNetworkError, match="API error"):
            adapter.create_completion(model="m", system_prompt="s", user_prompt="u")


class TestStreamCompletion:
    def test_yields_text_and_finish_reason(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = iter(
            [_stream_chunk(content="Hello "), _stream_chunk(content="world", finish_reason="stop")]
        )
        adapter = _make_adapter(mock_client)

        deltas = list(adapter.stream_completion(model="m", messages=[]))

        assert [d.text for d in deltas] == ["Hello ", "world"]
        assert deltas[-1].finish_reason == "stop"
        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["stream"] is True
        assert "tools" not in kwargs

    def test_passes_tools(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = iter([])
        adapter = _make_adapter(mock_client)
        tools = [{"type": "function", "function": {"name": "getWeather"}}]

        list(adapter.stream_completion(model="m", messages=[], tools=tools))

        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["tools"] == tools

    def test_reads_reasoning_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = iter(
            [_stream_chunk(reasoning="thinking...")]
        )
        adapter = _make_adapter(mock_client)

        deltas = list(adapter.stream_completion(model="m", messages=[]))

        assert deltas[0].reasoning == "thinking..."

    def test_maps_tool_call_deltas(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = iter(
            [
                _stream_chunk(tool_calls=[_tool_call_delta(0, "call_1", "getWeather", '{"lat')]),
                _stream_chunk(tool_calls=[_tool_call_delta(0, None, None, 'itude": 1}')]),
            ]
        )
        adapter = _make_adapter(mock_client)

        deltas = list(adapter.stream_completion(model="m", messages=[]))

        first, second = deltas[0].tool_calls[0], deltas[1].tool_calls[0]
        assert first.call_id == "call_1"
        assert first.name == "getWeather"
        assert second.call_id is None
        assert first.arguments + second.arguments == '{"latitude": 1}'

    def test_skips_chunks_without_choices(self) -> None:
        empty = MagicMock()
        empty.choices = []
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = iter([empty, _stream_chunk(content="x")])
        adapter = _make_adapter(mock_client)

        assert len(list(adapter.stream_completion(model="m", messages=[]))) == 1

    def test_raises_network_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientNetworkError):
            list(adapter.stream_completion(model="m", messages=[]))

    def test_raises_network_error_when_stream_breaks_mid_body(self) -> None:
        def broken_stream():
            yield _stream_chunk(content="Hel")
            raise httpx.RemoteProtocolError("peer closed connection")

        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = broken_stream()
        adapter = _make_adapter(mock_client)

        deltas = adapter.stream_completion(model="m", messages=[])

        assert next(deltas).text == "Hel"
        with pytest.raises(ChatClientNetworkError, match="network error"):
            next(deltas)

    def test_raises_network_error_on_read_error(self) -> None:
        def broken_stream():
            raise httpx.ReadError("connection reset")
            yield  # pragma: no cover

        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = broken_stream()
        adapter = _make_adapter(mock_client)
        with pytest.raises(ChatClientNetworkError):
            list(adapter.stream_completion(model="m", messages=[]))
