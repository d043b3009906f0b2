"""Streaming model turns with bounded tool use.

A turn is one or more model steps. A step that ends with tool calls runs the
tools, feeds their results back and continues, up to ``max_steps``. Chunks are
forwarded to the caller as they arrive; the complete TurnResult is delivered
through a Future that resolves only when the model finishes the turn.
"""

import json
import time
import uuid
from collections.abc import Iterator
from concurrent.futures import Future
from typing import Any

from invoice_chat.chat.client_base import BaseChatClient
from invoice_chat.chat.exceptions import ChatClientError
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
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    ConversationMessage,
    ResponseMessage,
    StreamChunk,
    ToolCall,
    ToolInvocation,
    TurnRequest,
    TurnResult,
)
from invoice_chat.chat.smoothing import WordSmoother
from invoice_chat.chat.tools.registry import ToolRegistry
from invoice_chat.logging.logger import Log

STREAM_ERROR_MESSAGE = "Oops, an error occurred!"


class TurnStream:
    """Live stream of chunks for one turn, plus a future for its result.

    Closing the stream before the model finishes cancels the future.
    """

    def __init__(self, chunks: Iterator[StreamChunk], completion: "Future[TurnResult]") -> None:
        self._chunks = chunks
        self._completion = completion

    @property
    def completion(self) -> "Future[TurnResult]":
        return self._completion

    def __iter__(self) -> "TurnStream":
        return self

    def __next__(self) -> StreamChunk:
        return next(self._chunks)

    def close(self) -> None:
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
        if not self._completion.done():
            self._completion.cancel()


class ConversationOrchestrator:
    def __init__(
        self,
        *,
        client: BaseChatClient,
        tools: ToolRegistry,
        model_names: dict[str, str],
        reasoning_model_key: str,
        max_steps: int = 5,
        chunk_delay_ms: int = 0,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._client = client
        self._tools = tools
        self._model_names = model_names
        self._reasoning_model_key = reasoning_model_key
        self._max_steps = max_steps
        self._chunk_delay = chunk_delay_ms / 1000

    def stream(self, request: TurnRequest) -> TurnStream:
        """Start a turn. Nothing is sent to the model until the stream is iterated."""
        completion: Future[TurnResult] = Future()
        return TurnStream(self._run(request, completion), completion)

    def active_tools(self, model_key: str) -> list[dict[str, Any]]:
        if model_key == self._reasoning_model_key:
            return []
        return self._tools.definitions()

    def _run(self, request: TurnRequest, completion: "Future[TurnResult]") -> Iterator[StreamChunk]:
        model = self._model_names.get(request.model_key, request.model_key)
        tools = self.active_tools(request.model_key)
        messages = to_provider_messages(request.system_prompt, request.messages)
        message_id = str(uuid.uuid4())

        text_parts: list[str] = []
        reasoning_parts: list[str] = []
        invocations: list[ToolInvocation] = []
        response_messages: list[ResponseMessage] = []
        finish_reason = "stop"

        try:
            yield StreamChunk(CHUNK_START, {"messageId": message_id})
            for step in range(self._max_steps):
                smoother = WordSmoother()
                step_text: list[str] = []
                pending: dict[int, ToolCall] = {}
                step_finish_reason: str | None = None

                for delta in self._client.stream_completion(
                    model=model, messages=messages, tools=tools or None
                ):
                    if delta.reasoning:
                        reasoning_parts.append(delta.reasoning)
                        yield StreamChunk(CHUNK_REASONING, delta.reasoning)
                    if delta.text:
                        step_text.append(delta.text)
                        for word in smoother.push(delta.text):
                            yield self._text_chunk(word)
                    for call_delta in delta.tool_calls:
                        call = pending.setdefault(
                            call_delta.index,
                            ToolCall(call_id=call_delta.call_id or str(uuid.uuid4()), name=""),
                        )
                        if call_delta.call_id:
                            call.call_id = call_delta.call_id
                        if call_delta.name:
                            call.name += call_delta.name
                        if call_delta.arguments:
                            call.arguments += call_delta.arguments
                    if delta.finish_reason:
                        step_finish_reason = delta.finish_reason
                for word in smoother.flush():
                    yield self._text_chunk(word)

                text = "".join(step_text)
                text_parts.append(text)
                calls = [pending[index] for index in sorted(pending)]
                finish_reason = step_finish_reason or ("tool_calls" if calls else "stop")
                response_messages.append(_assistant_message(text, calls))
                if not calls:
                    yield StreamChunk(
                        CHUNK_STEP_FINISH, {"finishReason": finish_reason, "isContinued": False}
                    )
                    break

                messages.append(_provider_tool_call_message(text, calls))
                for call in calls:
                    yield StreamChunk(
                        CHUNK_TOOL_CALL,
                        {"toolCallId": call.call_id, "toolName": call.name, "args": call.arguments},
                    )
                    arguments, tool_result = self._tools.run(call.name, call.arguments)
                    Log.info(f"Tool {call.name} called in step {step + 1}")
                    invocations.append(
                        ToolInvocation(
                            call_id=call.call_id,
                            name=call.name,
                            arguments=arguments,
                            result=tool_result,
                        )
                    )
                    messages.append(_provider_tool_result_message(call, tool_result))
                    response_messages.append(_tool_message(call, tool_result))
                    yield StreamChunk(
                        CHUNK_TOOL_RESULT, {"toolCallId": call.call_id, "result": tool_result}
                    )
                yield StreamChunk(
                    CHUNK_STEP_FINISH, {"finishReason": finish_reason, "isContinued": True}
                )

            result = TurnResult(
                text="".join(text_parts),
                reasoning="".join(reasoning_parts),
                tool_invocations=invocations,
                response_messages=response_messages,
                finish_reason=finish_reason,
            )
            if result.reasoning and response_messages:
                response_messages[0].content.insert(
                    0, {"type": "reasoning", "reasoning": result.reasoning}
                )
            completion.set_result(result)
            yield StreamChunk(CHUNK_FINISH, {"finishReason": finish_reason})
        except ChatClientError as exc:
            Log.error(f"Chat error: {exc}")
            completion.set_exception(exc)
            yield StreamChunk(CHUNK_ERROR, STREAM_ERROR_MESSAGE)
            return
        finally:
            if not completion.done():
                completion.cancel()

    def _text_chunk(self, word: str) -> StreamChunk:
        if self._chunk_delay > 0:
            time.sleep(self._chunk_delay)
        return StreamChunk(CHUNK_TEXT, word)


def to_provider_messages(
    system_prompt: str,
    messages: list[ConversationMessage],
) -> list[dict[str, Any]]:
    """Convert conversation messages to OpenAI chat format, prefixed by the system prompt."""
    converted: list[dict[str, Any]] = [{"role": ROLE_SYSTEM, "content": system_prompt}]
    for message in messages:
        images = [a for a in message.attachments if a.content_type.startswith("image/")]
        if message.role == ROLE_USER and images:
            parts: list[dict[str, Any]] = [{"type": "text", "text": message.content}]
            parts.extend({"type": "image_url", "image_url": {"url": a.url}} for a in images)
            converted.append({"role": ROLE_USER, "content": parts})
        else:
            converted.append({"role": message.role, "content": message.content})
    return converted


def _assistant_message(text: str, calls: list[ToolCall]) -> ResponseMessage:
    content: list[dict[str, Any]] = []
    if text:
        content.append({"type": "text", "text": text})
    content.extend(
        {"type": "tool-call", "toolCallId": c.call_id, "toolName": c.name, "args": c.arguments}
        for c in calls
    )
    return ResponseMessage(id=str(uuid.uuid4()), role=ROLE_ASSISTANT, content=content)


def _tool_message(call: ToolCall, result: dict[str, Any]) -> ResponseMessage:
    return ResponseMessage(
        id=str(uuid.uuid4()),
        role=ROLE_TOOL,
        content=[
            {
                "type": "tool-result",
                "toolCallId": call.call_id,
                "toolName": call.name,
                "result": result,
            }
        ],
    )


def _provider_tool_call_message(text: str, calls: list[ToolCall]) -> dict[str, Any]:
    return {
        "role": ROLE_ASSISTANT,
        "content": text or None,
        "tool_calls": [
            {
                "id": c.call_id,
                "type": "function",
                "function": {"name": c.name, "arguments": c.arguments or "{}"},
            }
            for c in calls
        ],
    }


def _provider_tool_result_message(call: ToolCall, result: dict[str, Any]) -> dict[str, Any]:
    return {"role": ROLE_TOOL, "tool_call_id": call.call_id, "content": json.dumps(result)}
