from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from invoice_chat.chat.models import StreamDelta


class BaseChatClient(ABC):
    """Contract for provider-specific chat model clients."""

    @abstractmethod
    def stream_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Iterator[StreamDelta]:
        """Yield provider-neutral deltas until the model finishes one step.

        The last delta carries a finish_reason.

        Raises:
            ChatClientError: on unusable provider output.
            ChatClientNetworkError: on transport or API failures.
        """

    @abstractmethod
    def create_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return a single non-streamed completion as plain text."""
