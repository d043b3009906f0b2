from collections.abc import Iterator
from typing import Any

import httpx
import openai

from invoice_chat.chat.client_base import BaseChatClient
from invoice_chat.chat.exceptions import ChatClientError, ChatClientNetworkError
from invoice_chat.chat.models import StreamDelta, ToolCallDelta


class OpenAIClientAdapter(BaseChatClient):
    """Chat client adapter built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def stream_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Iterator[StreamDelta]:
        kwargs: dict[str, Any] = {"model": model, "messages": messages, "stream": True}
        if tools:
            kwargs["tools"] = tools
        try:
            stream = self._client.chat.completions.create(**kwargs)
            for chunk in stream:
                if not chunk.choices:
                    continue
                yield self._to_delta(chunk.choices[0])
        except (openai.APIConnectionError, httpx.TransportError) as exc:
            raise ChatClientNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ChatClientNetworkError(f"AI provider API error: {exc}") from exc
        except httpx.HTTPError as exc:
            # the SDK does not wrap errors raised while reading the response body
            raise ChatClientNetworkError(f"AI provider stream error: {exc}") from exc

    def create_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ChatClientNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ChatClientNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ChatClientError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ChatClientError("AI returned empty response")
        return content

    @staticmethod
    def _to_delta(choice: Any) -> StreamDelta:
        delta = choice.delta
        # DeepSeek-style providers expose reasoning_content, OpenRouter uses reasoning
        reasoning = getattr(delta, "reasoning_content", None) or getattr(
            delta, "reasoning", None
        )
        tool_calls = tuple(
            ToolCallDelta(
                index=call.index,
                call_id=call.id,
                name=call.function.name if call.function else None,
                arguments=call.function.arguments if call.function else None,
            )
            for call in (delta.tool_calls or [])
        )
        return StreamDelta(
            text=delta.content,
            reasoning=reasoning if isinstance(reasoning, str) else None,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
        )
