"""Example chat client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseChatClient and register the provider in ChatClientFactory.
"""

from collections.abc import Iterator
from typing import Any, ClassVar

from invoice_chat.chat.client_base import BaseChatClient
from invoice_chat.chat.models import StreamDelta


class ExampleClientAdapter(BaseChatClient):
    """Offline adapter that streams a fixed reply.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_REPLY: ClassVar[str] = "This is an example reply from the offline chat client."
    DEFAULT_TITLE: ClassVar[str] = "Example chat"

    def __init__(self, reply: str | None = None) -> None:
        self._reply = reply if reply is not None else self.DEFAULT_REPLY

    def stream_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Iterator[StreamDelta]:
        _ = model, messages, tools
        for word in self._reply.split(" "):
            yield StreamDelta(text=word + " ")
        yield StreamDelta(finish_reason="stop")

    def create_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        _ = model, system_prompt, user_prompt
        return self.DEFAULT_TITLE
