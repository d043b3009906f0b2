"""Line-oriented data stream encoding understood by the chat front end.

Each line is ``<code>:<json>\n``.
"""

import json

from invoice_chat.chat.models import (
    CHUNK_ERROR,
    CHUNK_FINISH,
    CHUNK_REASONING,
    CHUNK_START,
    CHUNK_STEP_FINISH,
    CHUNK_TEXT,
    CHUNK_TOOL_CALL,
    CHUNK_TOOL_RESULT,
    StreamChunk,
)

DATA_STREAM_HEADERS = {"x-vercel-ai-data-stream": "v1"}

_CODES: dict[str, str] = {
    CHUNK_TEXT: "0",
    CHUNK_ERROR: "3",
    CHUNK_TOOL_CALL: "9",
    CHUNK_TOOL_RESULT: "a",
    CHUNK_FINISH: "d",
    CHUNK_STEP_FINISH: "e",
    CHUNK_START: "f",
    CHUNK_REASONING: "g",
}

_EMPTY_USAGE = {"promptTokens": 0, "completionTokens": 0}


def encode_chunk(chunk: StreamChunk) -> str:
    code = _CODES.get(chunk.type)
    if code is None:
        raise ValueError(f"Unknown stream chunk type '{chunk.type}'")
    payload = chunk.payload
    if chunk.type in (CHUNK_FINISH, CHUNK_STEP_FINISH):
        payload = {"usage": _EMPTY_USAGE, **payload}
    return f"{code}:{json.dumps(payload, ensure_ascii=False)}\n"
