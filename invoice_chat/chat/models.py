from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"
ROLE_SYSTEM = "system"

CHUNK_START = "start"
CHUNK_TEXT = "text"
CHUNK_REASONING = "reasoning"
CHUNK_TOOL_CALL = "tool-call"
CHUNK_TOOL_RESULT = "tool-result"
CHUNK_STEP_FINISH = "step-finish"
CHUNK_FINISH = "finish"
CHUNK_ERROR = "error"


@dataclass
class Attachment:
    """File reference attached to a message by the upload endpoint."""

    url: str
    content_type: str
    name: str = ""
    extracted_text: str = ""


@dataclass
class ConversationMessage:
    """A message in a chat. Attachments are mutable until sanitized."""

    id: str
    role: str
    content: str
    chat_id: str | None = None
    attachments: list[Attachment] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class ToolCall:
    """A tool call requested by the model, assembled from stream deltas."""

    call_id: str
    name: str
    arguments: str = ""


@dataclass
class ToolInvocation:
    """A completed tool call. Lives only for one streaming turn."""

    call_id: str
    name: str
    arguments: dict[str, Any]
    result: dict[str, Any]


@dataclass(frozen=True)
class ToolCallDelta:
    index: int
    call_id: str | None = None
    name: str | None = None
    arguments: str | None = None


@dataclass(frozen=True)
class StreamDelta:
    """Provider-neutral increment of a streaming completion."""

    text: str | None = None
    reasoning: str | None = None
    tool_calls: tuple[ToolCallDelta, ...] = ()
    finish_reason: str | None = None


@dataclass(frozen=True)
class StreamChunk:
    """Event forwarded to the caller while a turn is streaming."""

    type: str
    payload: Any = None


@dataclass(frozen=True)
class TurnRequest:
    system_prompt: str
    messages: list[ConversationMessage]
    model_key: str


@dataclass
class ResponseMessage:
    """Assistant or tool message produced during a turn, ready to persist."""

    id: str
    role: str
    content: list[dict[str, Any]]


@dataclass
class TurnResult:
    """Everything the model produced in a completed turn."""

    text: str
    reasoning: str = ""
    tool_invocations: list[ToolInvocation] = field(default_factory=list)
    response_messages: list[ResponseMessage] = field(default_factory=list)
    finish_reason: str = "stop"

    @property
    def first_message_text(self) -> str:
        """Text of the first assistant message, used for output accounting."""
        for message in self.response_messages:
            if message.role != ROLE_ASSISTANT:
                continue
            for part in message.content:
                if part.get("type") == "text":
                    return str(part.get("text", ""))
            return ""
        return ""
